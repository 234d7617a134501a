"""TOML loader for ``BackupConfig``."""

import tomllib
from pathlib import Path

from pos_backup.config.models import BackupConfig

DEFAULT_CONFIG_FILE = "pos-backup.toml"


def load_backup_config(config_path: Path | None = None) -> BackupConfig:
    """Load backup configuration from a TOML file.

    Recognised sections::

        [paths]       app_identifier, product_name, config_root,
                      backups_dirname, backup_extension
        [snapshot]    pages_per_step, step_sleep_ms, auto_backup_enabled
        [restore]     tables, derive_table_order, clear_scope, busy_timeout
        [retention]   days

    Args:
        config_path: Path to the TOML file.  When ``None``, ``pos-backup.toml``
            in the working directory is used if it exists, otherwise the
            built-in defaults are returned.

    Returns:
        BackupConfig with file values layered over the defaults.

    Raises:
        FileNotFoundError: If an explicit ``config_path`` doesn't exist.
        ValueError: If the file contains invalid values.
    """
    if config_path is None:
        default_path = Path.cwd() / DEFAULT_CONFIG_FILE
        if not default_path.exists():
            return BackupConfig()
        config_path = default_path

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Backup config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    values: dict = {}
    values.update(data.get("paths", {}))
    values.update(data.get("snapshot", {}))
    values.update(data.get("restore", {}))

    retention = data.get("retention", {})
    if "days" in retention:
        values["retention_days"] = retention["days"]

    return BackupConfig(**values)
