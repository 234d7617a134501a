"""Backup catalog: list, delete, export, and prune backup files.

The backups directory listing is the catalog -- there is no manifest or
index file.  Every call re-reads the directory.

Usage:
    from pos_backup.backup.catalog import list_backups, delete_backup

    for artifact in list_backups(config):
        print(artifact.filename, artifact.file_size)
    delete_backup(config, "motormods_backup_2025-01-15_09-30-00.db")
"""

import logging
import shutil
from datetime import datetime, timedelta
from pathlib import Path

from pos_backup.backup.history import prune_backup_log
from pos_backup.backup.models import BackupArtifact
from pos_backup.config.models import BackupConfig
from pos_backup.errors import BackupIOError, BackupNotFoundError, InvalidFileTypeError
from pos_backup.paths import resolve_backups_dir

logger = logging.getLogger(__name__)


def _iso_timestamp(epoch_seconds: float) -> str:
    """Local ISO-8601 timestamp with UTC offset."""
    return datetime.fromtimestamp(epoch_seconds).astimezone().isoformat()


def backup_path_for(config: BackupConfig, filename: str) -> Path:
    """Get the path of ``filename`` inside the backups directory.

    Names containing directory components are rejected so a caller can't
    reach files outside the backups directory.

    Raises:
        BackupNotFoundError: If ``filename`` isn't a plain filename.
    """
    backups_dir = resolve_backups_dir(config)
    if not filename or Path(filename).name != filename:
        raise BackupNotFoundError(f"Backup file not found: {filename}")
    return backups_dir / filename


def list_backups(config: BackupConfig) -> list[BackupArtifact]:
    """List backup files, most recently modified first.

    Scans the backups directory non-recursively.  Only files with the
    database extension are included; files that vanish or can't be
    stat'ed during the scan are skipped.
    """
    backups_dir = resolve_backups_dir(config)
    extension = config.backup_extension.lower()

    entries: list[tuple[float, BackupArtifact]] = []
    for entry in backups_dir.iterdir():
        if entry.suffix.lower() != extension:
            continue
        try:
            if not entry.is_file():
                continue
            stat = entry.stat()
        except OSError:
            continue

        entries.append((
            stat.st_mtime,
            BackupArtifact(
                filename=entry.name,
                path=str(entry),
                file_size=stat.st_size,
                timestamp=_iso_timestamp(stat.st_mtime),
            ),
        ))

    # Sort on the raw mtime; sorted() is stable for equal times
    entries.sort(key=lambda item: item[0], reverse=True)
    return [artifact for _, artifact in entries]


def delete_backup(config: BackupConfig, filename: str) -> str:
    """Delete a backup file.

    Returns:
        Confirmation message.

    Raises:
        BackupNotFoundError: If the file doesn't exist.
        InvalidFileTypeError: If the file doesn't have the database extension.
        BackupIOError: If the file can't be removed.
    """
    backup_path = backup_path_for(config, filename)

    if not backup_path.is_file():
        raise BackupNotFoundError(f"Backup file not found: {filename}")

    if backup_path.suffix.lower() != config.backup_extension.lower():
        raise InvalidFileTypeError(
            f"Can only delete {config.backup_extension} backup files: {filename}"
        )

    try:
        backup_path.unlink()
    except OSError as e:
        raise BackupIOError(f"Failed to delete backup {filename}: {e}") from e

    logger.info("Deleted backup %s", filename)
    return f"Backup deleted: {filename}"


def export_backup(config: BackupConfig, filename: str, destination: str | Path) -> str:
    """Copy a cataloged backup to an arbitrary destination.

    Args:
        config: Backup configuration.
        filename: Name of a file in the backups directory.
        destination: Target file path, or an existing directory to copy into.

    Returns:
        Confirmation message.

    Raises:
        BackupNotFoundError: If the backup doesn't exist.
        BackupIOError: If the copy fails.
    """
    backup_path = backup_path_for(config, filename)
    if not backup_path.is_file():
        raise BackupNotFoundError(f"Backup file not found: {filename}")

    try:
        exported = shutil.copy(backup_path, destination)
    except OSError as e:
        raise BackupIOError(f"Failed to export backup {filename}: {e}") from e

    logger.info("Exported backup %s to %s", filename, exported)
    return f"Backup exported to: {exported}"


def get_backups_dir_path(config: BackupConfig) -> str:
    """Get the backups directory path (for the caller's file picker)."""
    return str(resolve_backups_dir(config))


def get_backup_file_path(config: BackupConfig, filename: str) -> str:
    """Get the full path of a backup file.

    Raises:
        BackupNotFoundError: If the file doesn't exist.
    """
    backup_path = backup_path_for(config, filename)
    if not backup_path.is_file():
        raise BackupNotFoundError(f"Backup file not found: {filename}")
    return str(backup_path)


def prune_backups(
    config: BackupConfig,
    retention_days: int | None = None,
    now: datetime | None = None,
) -> list[str]:
    """Delete backups older than the retention window.

    User backups and safety backups are pruned; other ``.db`` files in the
    directory are left alone.  The newest user backup is always kept.
    ``backup_log`` rows older than the window are deleted as well.

    Args:
        config: Backup configuration.
        retention_days: Window in days (default: ``config.retention_days``).
        now: Reference time (default: current local time).

    Returns:
        Filenames that were deleted.
    """
    days = retention_days if retention_days is not None else config.retention_days
    reference = (now or datetime.now()).astimezone()
    cutoff = reference - timedelta(days=days)

    artifacts = list_backups(config)
    manual = [a for a in artifacts if a.filename.startswith(config.backup_prefix)]
    keep = manual[0].filename if manual else None

    deleted: list[str] = []
    for artifact in artifacts:
        if artifact.filename == keep:
            continue
        if not (artifact.filename.startswith(config.backup_prefix) or artifact.is_safety_backup):
            continue
        if datetime.fromisoformat(artifact.timestamp) >= cutoff:
            continue
        try:
            Path(artifact.path).unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Failed to prune backup %s: %s", artifact.filename, e)
            continue
        deleted.append(artifact.filename)

    if deleted:
        logger.info("Pruned %d backups older than %d days", len(deleted), days)

    log_rows = prune_backup_log(config, cutoff)
    if log_rows:
        logger.info("Pruned %d backup_log entries older than %d days", log_rows, days)
    return deleted
