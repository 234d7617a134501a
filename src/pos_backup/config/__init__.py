"""Configuration management: TOML loading and config models.

Usage:
    >>> from pos_backup.config import load_backup_config, BackupConfig
"""

from pos_backup.config.loader import load_backup_config
from pos_backup.config.models import DEFAULT_TABLES, BackupConfig

__all__ = ["load_backup_config", "BackupConfig", "DEFAULT_TABLES"]
