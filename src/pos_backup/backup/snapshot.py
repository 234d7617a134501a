"""Snapshot engine: consistent copies of the live database.

User backups go through SQLite's online backup API, which copies pages
(folding in WAL content that isn't checkpointed yet) in small batches so
other connections can keep reading and writing.  Safety backups taken
right before a destructive operation are byte copies of the file, made
after the WAL has been checkpointed into it.

Usage:
    from pos_backup.backup.snapshot import create_backup, create_safety_backup

    artifact = create_backup(config)
    safety_name = create_safety_backup(config)
"""

import logging
import os
import shutil
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import BinaryIO, Literal

from pos_backup.backup.catalog import list_backups, prune_backups
from pos_backup.backup.history import log_backup
from pos_backup.backup.models import (
    PRE_IMPORT_PREFIX,
    TIMESTAMP_FORMAT,
    BackupArtifact,
    BackupLogEntry,
)
from pos_backup.config.models import BackupConfig
from pos_backup.errors import BackupIOError, SourceNotFoundError
from pos_backup.paths import resolve_backups_dir, resolve_database_path

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"


def _timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def _page_copy(db_path: Path, dest_path: Path, config: BackupConfig) -> None:
    """Copy ``db_path`` into ``dest_path`` with the online backup API."""
    src = sqlite3.connect(str(db_path), timeout=config.busy_timeout)
    try:
        dst = sqlite3.connect(str(dest_path))
        try:
            src.backup(
                dst,
                pages=config.pages_per_step,
                sleep=config.step_sleep_ms / 1000,
            )
        finally:
            dst.close()
    finally:
        src.close()


def _checkpoint_wal(db_path: Path, config: BackupConfig) -> bool:
    """Fold committed WAL content into the main database file.

    Returns:
        True if the main file now holds every committed transaction.
    """
    wal_path = db_path.with_name(db_path.name + "-wal")
    if not wal_path.exists():
        return True

    conn = sqlite3.connect(str(db_path), timeout=config.busy_timeout)
    try:
        busy, log_frames, checkpointed = conn.execute(
            "PRAGMA wal_checkpoint(TRUNCATE)"
        ).fetchone()
    finally:
        conn.close()

    # Not in WAL mode: (0, -1, -1)
    return busy == 0 and log_frames == checkpointed


def _create_new_file(backups_dir: Path, stem: str, extension: str) -> tuple[Path, BinaryIO]:
    """Create a file that doesn't exist yet, adding ``_1``, ``_2``... on collision."""
    candidate = backups_dir / f"{stem}{extension}"
    attempt = 0
    while True:
        try:
            return candidate, open(candidate, "xb")
        except FileExistsError:
            attempt += 1
            candidate = backups_dir / f"{stem}_{attempt}{extension}"


def create_backup(
    config: BackupConfig,
    backup_type: Literal["auto", "manual"] = "manual",
) -> BackupArtifact:
    """Create a full backup of the live database.

    The copy is written to ``<name>.partial`` and renamed into place only
    after the backup completes, so a failed run never leaves a file that
    looks like a valid backup.  Two backups in the same second share a
    filename; the later one replaces the earlier.

    The attempt (success or failure) is recorded in the live database's
    ``backup_log`` table when it has one.

    Args:
        config: Backup configuration.
        backup_type: ``manual`` for user-initiated backups, ``auto`` for
            the daily backup.

    Returns:
        The created artifact (``timestamp`` is the creation time).

    Raises:
        SourceNotFoundError: If the live database doesn't exist.
        BackupIOError: If the copy fails.
    """
    db_path = resolve_database_path(config)
    backups_dir = resolve_backups_dir(config)

    if not db_path.is_file():
        raise SourceNotFoundError(f"Database file not found: {db_path}")

    filename = f"{config.backup_prefix}{_timestamp()}{config.backup_extension}"
    backup_path = backups_dir / filename
    partial_path = backups_dir / f"{filename}{PARTIAL_SUFFIX}"

    if backup_path.exists():
        logger.warning("Backup %s already exists and will be replaced", filename)

    try:
        partial_path.unlink(missing_ok=True)
        _page_copy(db_path, partial_path, config)
        os.replace(partial_path, backup_path)
        file_size = backup_path.stat().st_size
    except (sqlite3.Error, OSError) as e:
        partial_path.unlink(missing_ok=True)
        log_backup(config, BackupLogEntry(
            backup_file=filename,
            backup_date=datetime.now().astimezone().isoformat(),
            backup_type=backup_type,
            status="failed",
            notes=str(e),
        ))
        raise BackupIOError(f"Failed to create backup {filename}: {e}") from e

    created = datetime.now().astimezone().isoformat()
    log_backup(config, BackupLogEntry(
        backup_file=filename,
        backup_date=created,
        backup_type=backup_type,
        file_size=file_size,
    ))

    logger.info("Created %s backup %s (%d bytes)", backup_type, filename, file_size)
    return BackupArtifact(
        filename=filename,
        path=str(backup_path),
        file_size=file_size,
        timestamp=created,
    )


def create_safety_backup(config: BackupConfig, prefix: str = PRE_IMPORT_PREFIX) -> str:
    """Byte-copy the live database into the backups directory.

    WAL content is checkpointed into the main file first; if the checkpoint
    can't complete (another connection is mid-read), the copy goes through
    the online backup API instead.  An existing file is never overwritten:
    a name already taken in the same second gets a ``_1``, ``_2``... suffix.

    Args:
        config: Backup configuration.
        prefix: Filename prefix, ``pre_import_safety_`` or ``pre_restore_safety_``.

    Returns:
        Filename of the safety backup.

    Raises:
        SourceNotFoundError: If the live database doesn't exist.
        BackupIOError: If the copy fails.  The caller must not go on to
            modify the live database.
    """
    db_path = resolve_database_path(config)
    backups_dir = resolve_backups_dir(config)

    if not db_path.is_file():
        raise SourceNotFoundError(f"Database file not found: {db_path}")

    safety_path: Path | None = None
    try:
        checkpointed = _checkpoint_wal(db_path, config)
        safety_path, handle = _create_new_file(
            backups_dir, f"{prefix}{_timestamp()}", config.backup_extension
        )
        with handle:
            if checkpointed:
                with open(db_path, "rb") as src:
                    shutil.copyfileobj(src, handle)
        if not checkpointed:
            logger.warning("WAL checkpoint incomplete, page-copying %s", db_path.name)
            _page_copy(db_path, safety_path, config)
    except (sqlite3.Error, OSError) as e:
        if safety_path is not None:
            safety_path.unlink(missing_ok=True)
        raise BackupIOError(f"Failed to create safety backup: {e}") from e

    logger.info("Created safety backup %s", safety_path.name)
    return safety_path.name


def ensure_daily_backup(config: BackupConfig, today: date | None = None) -> BackupArtifact | None:
    """Create an ``auto`` backup unless one was already made today, then prune.

    Does nothing when ``config.auto_backup_enabled`` is off.

    Args:
        config: Backup configuration.
        today: Local date to compare against (default: today).

    Returns:
        The new artifact, or ``None`` if no backup was made.
    """
    if not config.auto_backup_enabled:
        logger.info("Automatic backup is disabled")
        return None

    today = today or date.today()

    for artifact in list_backups(config):
        if not artifact.filename.startswith(config.backup_prefix):
            continue
        if datetime.fromisoformat(artifact.timestamp).date() == today:
            logger.debug("Backup already done for %s", today)
            return None
        # list is newest first; an older user backup settles the check
        break

    artifact = create_backup(config, backup_type="auto")
    prune_backups(config)
    return artifact
