"""Restore orchestrator: data-level and file-level restores.

Data-level restore (``restore_data``) replaces row contents of the live
database inside one transaction; it takes effect on the connection set
the application already has open.  File-level restore (``restore_file``,
``import_external_backup``) replaces the database file itself and needs
the application to reopen its connection.

Every restore takes a safety backup of the live database first.  If the
safety backup can't be written, nothing is modified.

Usage:
    from pos_backup.backup.restore import restore_data, restore_file

    outcome = restore_data(config, "/path/to/motormods_backup_2025-01-15_09-30-00.db")
    print(outcome.records_imported, outcome.safety_backup)

    result = restore_file(config, "motormods_backup_2025-01-15_09-30-00.db")
"""

import logging
import shutil
import sqlite3
from pathlib import Path

from sqlalchemy import create_engine, delete, table
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from pos_backup.backup.catalog import backup_path_for
from pos_backup.backup.models import (
    PRE_IMPORT_PREFIX,
    PRE_RESTORE_PREFIX,
    FileRestoreResult,
    RestoreOutcome,
    TableResult,
    TableSpec,
)
from pos_backup.backup.snapshot import create_safety_backup
from pos_backup.backup.table_copy import copy_table_rows
from pos_backup.config.models import BackupConfig
from pos_backup.errors import (
    BackupIOError,
    BackupNotFoundError,
    CommitFailedError,
    InvalidFileTypeError,
    SourceNotFoundError,
)
from pos_backup.paths import resolve_backups_dir, resolve_database_path
from pos_backup.schema.introspector import list_tables

logger = logging.getLogger(__name__)

# Files SQLite keeps beside a database in WAL mode
SIDECAR_SUFFIXES = ("-wal", "-shm")


def _create_engine(db_path: Path, config: BackupConfig) -> Engine:
    """Create a SQLite engine for a single restore call."""
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"timeout": config.busy_timeout},
    )


def _resolve_table_spec(config: BackupConfig, target: Connection) -> TableSpec:
    """Fixed table list from config, or the live schema's FK order."""
    if config.derive_table_order:
        return TableSpec.from_connection(target)
    return TableSpec(tables=config.tables)


def _safety_backup_if_present(config: BackupConfig, prefix: str) -> str | None:
    """Take a safety backup when the live database exists."""
    if not resolve_database_path(config).is_file():
        return None
    return create_safety_backup(config, prefix)


# ------------------------------------------------------------------
# Data-level restore
# ------------------------------------------------------------------


def restore_data(
    config: BackupConfig,
    backup_path: str | Path,
    table_spec: TableSpec | None = None,
) -> RestoreOutcome:
    """Restore row data from a backup file into the live database.

    Steps:
        1. Check the backup exists (nothing is touched otherwise).
        2. Byte-copy the live database to ``pre_restore_safety_<ts>.db``.
        3. Disable foreign key enforcement on the target connection.
        4. In one transaction, clear tables children-first, then copy them
           from the backup parents-first.  Clear and import failures are
           logged and recorded per table; they don't stop the restore.
        5. Commit (rollback and raise ``CommitFailedError`` on failure).
        6. Re-enable foreign keys; a failure is reported in the outcome.

    Args:
        config: Backup configuration.
        backup_path: Absolute path to the backup database.
        table_spec: Table order override.  Defaults to ``config.tables``,
            or the live FK order when ``config.derive_table_order`` is set.

    Returns:
        RestoreOutcome with totals, per-table results and the safety backup name.

    Raises:
        BackupNotFoundError: If the backup file doesn't exist.
        BackupIOError: If the safety backup or connection setup fails.
        CommitFailedError: If the transaction can't be committed.
    """
    backup_file = Path(backup_path)
    if not backup_file.is_file():
        raise BackupNotFoundError(f"Backup file not found: {backup_path}")

    db_path = resolve_database_path(config)
    resolve_backups_dir(config)

    safety_backup = _safety_backup_if_present(config, PRE_RESTORE_PREFIX)

    source_engine = _create_engine(backup_file, config)
    target_engine = _create_engine(db_path, config)
    try:
        with source_engine.connect() as source, target_engine.connect() as target:
            try:
                spec = table_spec or _resolve_table_spec(config, target)
                # PRAGMA foreign_keys is a no-op inside a transaction
                target.exec_driver_sql("PRAGMA foreign_keys = OFF")
                target.commit()
            except SQLAlchemyError as e:
                raise BackupIOError(
                    f"Failed to prepare main database: {e}", safety_backup
                ) from e

            outcome = _restore_tables(config, source, target, spec, safety_backup)
    finally:
        source_engine.dispose()
        target_engine.dispose()

    logger.info(outcome.message)
    return outcome


def _restore_tables(
    config: BackupConfig,
    source: Connection,
    target: Connection,
    spec: TableSpec,
    safety_backup: str | None,
) -> RestoreOutcome:
    """Clear and reload every table in ``spec`` inside one transaction."""
    try:
        present = set(list_tables(source))
    except SQLAlchemyError as e:
        raise BackupIOError(f"Failed to open backup database: {e}", safety_backup) from e

    results = {name: TableResult(table=name) for name in spec.insert_order}

    trans = target.begin()

    # Clear tables first (reverse order for foreign keys)
    for name in spec.delete_order:
        if config.clear_scope == "present" and name not in present:
            continue
        try:
            target.execute(delete(table(name)))
        except SQLAlchemyError as e:
            logger.warning("Could not clear table %s: %s", name, e)
            results[name].error = f"clear failed: {e}"
        else:
            results[name].cleared = True

    # Import data in forward order
    total_imported = 0
    for name in spec.insert_order:
        result = results[name]
        if name not in present:
            result.status = "missing"
            continue
        try:
            copied, failed = copy_table_rows(source, target, name)
        except SQLAlchemyError as e:
            logger.warning("Error importing %s: %s", name, e)
            result.status = "failed"
            result.error = str(e)
            continue
        result.rows = copied
        result.rows_failed = failed
        if copied == 0 and failed > 0:
            result.status = "failed"
            result.error = f"all {failed} rows failed to insert"
        total_imported += copied
        logger.debug("Imported %d rows into %s", copied, name)

    try:
        trans.commit()
    except SQLAlchemyError as e:
        _rollback(target)
        raise CommitFailedError(
            f"Failed to commit restore transaction: {e}", safety_backup
        ) from e

    foreign_keys_restored = True
    try:
        target.exec_driver_sql("PRAGMA foreign_keys = ON")
        target.commit()
    except SQLAlchemyError as e:
        logger.warning("Could not re-enable foreign keys: %s", e)
        foreign_keys_restored = False

    message = f"Successfully restored {total_imported} records from backup"
    if not foreign_keys_restored:
        message += "; foreign key enforcement is off until the database is reopened"

    return RestoreOutcome(
        success=True,
        message=message,
        records_imported=total_imported,
        safety_backup=safety_backup,
        tables=list(results.values()),
        foreign_keys_restored=foreign_keys_restored,
    )


def _rollback(target: Connection) -> None:
    """Roll back after a failed commit.

    A failed commit leaves SQLAlchemy's transaction inactive, but SQLite
    keeps its own transaction open, so the DBAPI connection is rolled
    back directly as well.
    """
    try:
        target.rollback()
        target.connection.dbapi_connection.rollback()
    except (SQLAlchemyError, sqlite3.Error) as e:
        logger.error("Rollback after failed commit also failed: %s", e)


def restore_data_from_file(
    config: BackupConfig,
    filename: str,
    table_spec: TableSpec | None = None,
) -> RestoreOutcome:
    """Data-level restore from a file in the backups directory."""
    return restore_data(config, backup_path_for(config, filename), table_spec)


# ------------------------------------------------------------------
# File-level restore
# ------------------------------------------------------------------


def _replace_database_file(source: Path, db_path: Path, safety_backup: str | None) -> None:
    """Overwrite the live database file with ``source``.

    Stale WAL/SHM files from the old database are removed so SQLite
    doesn't replay them onto the new file.
    """
    try:
        shutil.copyfile(source, db_path)
    except OSError as e:
        raise BackupIOError(f"Failed to restore database: {e}", safety_backup) from e

    for suffix in SIDECAR_SUFFIXES:
        sidecar = db_path.with_name(db_path.name + suffix)
        try:
            sidecar.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove %s: %s", sidecar.name, e)


def restore_file(config: BackupConfig, filename: str) -> FileRestoreResult:
    """Replace the live database file with a cataloged backup.

    The application must reopen its database connection afterwards.

    Raises:
        BackupNotFoundError: If the backup doesn't exist.
        BackupIOError: If the safety backup or the copy fails.
    """
    backup_path = backup_path_for(config, filename)
    if not backup_path.is_file():
        raise BackupNotFoundError(f"Backup file not found: {filename}")

    safety_backup = _safety_backup_if_present(config, PRE_RESTORE_PREFIX)
    _replace_database_file(backup_path, resolve_database_path(config), safety_backup)

    logger.info("Database file restored from %s", filename)
    return FileRestoreResult(
        message=(
            f"Database restored from {filename}. "
            f"Safety backup created: {safety_backup or 'none (no existing database)'}"
        ),
        safety_backup=safety_backup,
    )


def import_external_backup(config: BackupConfig, source_path: str | Path) -> FileRestoreResult:
    """Replace the live database file with a backup from anywhere on disk.

    Raises:
        SourceNotFoundError: If ``source_path`` doesn't exist.
        InvalidFileTypeError: If ``source_path`` lacks the database extension.
        BackupIOError: If the safety backup or the copy fails.
    """
    source = Path(source_path)
    if not source.is_file():
        raise SourceNotFoundError(f"Source backup file not found: {source_path}")

    if source.suffix.lower() != config.backup_extension.lower():
        raise InvalidFileTypeError(
            f"Invalid backup file. Expected {config.backup_extension} file: {source.name}"
        )

    resolve_backups_dir(config)
    safety_backup = _safety_backup_if_present(config, PRE_IMPORT_PREFIX)
    _replace_database_file(source, resolve_database_path(config), safety_backup)

    logger.info("Database file imported from %s", source)
    return FileRestoreResult(
        message=(
            "Database imported from external backup. "
            f"Safety backup created: {safety_backup or 'none (no existing database)'}"
        ),
        safety_backup=safety_backup,
    )
