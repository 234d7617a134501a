"""Backup, catalog, and restore of the live SQLite database.

Usage:
    from pos_backup.backup import create_backup, list_backups, restore_data
    from pos_backup.backup import BackupArtifact, RestoreOutcome, TableSpec
"""

from pos_backup.backup.catalog import (
    delete_backup,
    export_backup,
    get_backup_file_path,
    get_backups_dir_path,
    list_backups,
    prune_backups,
)
from pos_backup.backup.history import get_backup_log, get_last_backup_info, log_backup
from pos_backup.backup.models import (
    BackupArtifact,
    BackupLogEntry,
    FileRestoreResult,
    RestoreOutcome,
    TableResult,
    TableSpec,
)
from pos_backup.backup.restore import (
    import_external_backup,
    restore_data,
    restore_data_from_file,
    restore_file,
)
from pos_backup.backup.snapshot import create_backup, create_safety_backup, ensure_daily_backup
from pos_backup.backup.table_copy import copy_table

__all__ = [
    "BackupArtifact",
    "BackupLogEntry",
    "FileRestoreResult",
    "RestoreOutcome",
    "TableResult",
    "TableSpec",
    "copy_table",
    "create_backup",
    "create_safety_backup",
    "delete_backup",
    "ensure_daily_backup",
    "export_backup",
    "get_backup_file_path",
    "get_backup_log",
    "get_backups_dir_path",
    "get_last_backup_info",
    "import_external_backup",
    "list_backups",
    "log_backup",
    "prune_backups",
    "restore_data",
    "restore_data_from_file",
    "restore_file",
]
