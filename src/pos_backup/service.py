"""Caller-facing facade over the backup/restore operations.

``BackupService`` binds a ``BackupConfig`` and exposes each operation as
a synchronous method.  It holds no connections or cached state; every
call resolves paths and opens connections fresh.

Usage:
    from pos_backup.service import BackupService

    service = BackupService.from_config_file()
    artifact = service.create_backup()
    outcome = service.restore_data(artifact.filename)
"""

from pathlib import Path
from typing import Literal

from pos_backup.backup import catalog, history, restore, snapshot
from pos_backup.backup.models import (
    PRE_IMPORT_PREFIX,
    BackupArtifact,
    BackupLogEntry,
    FileRestoreResult,
    RestoreOutcome,
)
from pos_backup.config.loader import load_backup_config
from pos_backup.config.models import BackupConfig


class BackupService:
    """Backup/restore operations for one application configuration."""

    def __init__(self, config: BackupConfig | None = None) -> None:
        self.config = config or BackupConfig()

    @classmethod
    def from_config_file(cls, config_path: Path | None = None) -> "BackupService":
        """Build a service from ``pos-backup.toml`` (or defaults)."""
        return cls(load_backup_config(config_path))

    def create_backup(self, backup_type: Literal["auto", "manual"] = "manual") -> BackupArtifact:
        """Create a page-copy backup of the live database."""
        return snapshot.create_backup(self.config, backup_type)

    def list_backups(self) -> list[BackupArtifact]:
        """List backup files, newest first."""
        return catalog.list_backups(self.config)

    def restore_file(self, filename: str) -> FileRestoreResult:
        """Replace the live database file with a cataloged backup."""
        return restore.restore_file(self.config, filename)

    def import_external_backup(self, source_path: str | Path) -> FileRestoreResult:
        """Replace the live database file with a backup from anywhere on disk."""
        return restore.import_external_backup(self.config, source_path)

    def export_backup(self, filename: str, destination: str | Path) -> str:
        """Copy a cataloged backup to a file or directory."""
        return catalog.export_backup(self.config, filename, destination)

    def delete_backup(self, filename: str) -> str:
        """Delete a cataloged backup."""
        return catalog.delete_backup(self.config, filename)

    def get_backups_dir_path(self) -> str:
        """Get the backups directory path."""
        return catalog.get_backups_dir_path(self.config)

    def get_backup_file_path(self, filename: str) -> str:
        """Get the full path of a cataloged backup."""
        return catalog.get_backup_file_path(self.config, filename)

    def create_safety_backup(self) -> str:
        """Byte-copy the live database to a ``pre_import_safety_`` file."""
        return snapshot.create_safety_backup(self.config, PRE_IMPORT_PREFIX)

    def restore_data(self, backup: str | Path) -> RestoreOutcome:
        """Data-level restore from an absolute path or a backups-dir filename."""
        if Path(backup).is_absolute():
            return restore.restore_data(self.config, backup)
        return restore.restore_data_from_file(self.config, str(backup))

    def prune_backups(self, retention_days: int | None = None) -> list[str]:
        """Delete backups older than the retention window."""
        return catalog.prune_backups(self.config, retention_days)

    def ensure_daily_backup(self) -> BackupArtifact | None:
        """Create today's automatic backup if it doesn't exist yet."""
        return snapshot.ensure_daily_backup(self.config)

    def get_backup_log(self, limit: int = 50) -> list[BackupLogEntry]:
        """Get recorded backup attempts, newest first."""
        return history.get_backup_log(self.config, limit)

    def get_last_backup_info(self) -> BackupLogEntry | None:
        """Get the most recent backup attempt."""
        return history.get_last_backup_info(self.config)
