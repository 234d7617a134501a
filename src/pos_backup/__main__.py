"""Allow ``python -m pos_backup``."""

import sys

from pos_backup.cli import main

sys.exit(main())
