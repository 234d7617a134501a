"""pos-backup: backup and restore for a point-of-sale SQLite database.

Takes consistent snapshots of the live (possibly WAL-mode) database,
catalogs them on disk, and restores them either by replacing the file or
by reloading rows inside one transaction, with a safety backup before
every destructive step.

Usage:
    from pos_backup import BackupService, BackupConfig
    from pos_backup import load_backup_config, copy_table, TableSpec
"""

__version__ = "0.1.0"

# Config
from pos_backup.config.loader import load_backup_config
from pos_backup.config.models import BackupConfig

# Errors
from pos_backup.errors import (
    BackupError,
    BackupIOError,
    BackupNotFoundError,
    CommitFailedError,
    ConfigurationError,
    InvalidFileTypeError,
    SourceNotFoundError,
)

# Paths
from pos_backup.paths import resolve_backups_dir, resolve_database_path

# Backup models and engines
from pos_backup.backup.models import (
    BackupArtifact,
    BackupLogEntry,
    FileRestoreResult,
    RestoreOutcome,
    TableResult,
    TableSpec,
)
from pos_backup.backup.table_copy import copy_table

# Facade
from pos_backup.service import BackupService

__all__ = [
    # Config
    "load_backup_config",
    "BackupConfig",
    # Errors
    "BackupError",
    "BackupIOError",
    "BackupNotFoundError",
    "CommitFailedError",
    "ConfigurationError",
    "InvalidFileTypeError",
    "SourceNotFoundError",
    # Paths
    "resolve_database_path",
    "resolve_backups_dir",
    # Backup
    "BackupArtifact",
    "BackupLogEntry",
    "FileRestoreResult",
    "RestoreOutcome",
    "TableResult",
    "TableSpec",
    "copy_table",
    # Facade
    "BackupService",
]
