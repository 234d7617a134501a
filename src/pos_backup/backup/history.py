"""Backup history kept in the live database's ``backup_log`` table.

Every backup attempt (manual or automatic, successful or not) is recorded
as a row so the application can show when the last backup ran.  Live
databases without a ``backup_log`` table are left alone; only columns the
table actually has are written.

Usage:
    from pos_backup.backup.history import get_last_backup_info, log_backup

    last = get_last_backup_info(config)
    if last:
        print(last.backup_date, last.backup_type)
"""

import logging
from datetime import datetime

from sqlalchemy import column, create_engine, delete, insert, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from pos_backup.backup.models import BackupLogEntry
from pos_backup.config.models import BackupConfig
from pos_backup.errors import BackupIOError
from pos_backup.paths import resolve_database_path
from pos_backup.schema.introspector import get_column_names

logger = logging.getLogger(__name__)

BACKUP_LOG_TABLE = "backup_log"


def _live_engine(config: BackupConfig) -> Engine | None:
    """Engine for the live database, or None if it doesn't exist."""
    db_path = resolve_database_path(config)
    if not db_path.is_file():
        return None
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"timeout": config.busy_timeout},
    )


def log_backup(config: BackupConfig, entry: BackupLogEntry) -> bool:
    """Record a backup attempt.

    Failures are logged, not raised; a backup must not fail because its
    history row couldn't be written.

    Returns:
        True if a row was inserted.
    """
    engine = _live_engine(config)
    if engine is None:
        return False

    try:
        with engine.begin() as conn:
            columns = set(get_column_names(conn, BACKUP_LOG_TABLE))
            if not columns:
                logger.debug("No %s table in live database, not recording", BACKUP_LOG_TABLE)
                return False
            values = {k: v for k, v in entry.model_dump().items() if k in columns}
            log_table = table(BACKUP_LOG_TABLE, *[column(name) for name in values])
            conn.execute(insert(log_table), values)
    except SQLAlchemyError as e:
        logger.warning("Could not record backup %s: %s", entry.backup_file, e)
        return False
    finally:
        engine.dispose()

    return True


def get_backup_log(config: BackupConfig, limit: int = 50) -> list[BackupLogEntry]:
    """Get recorded backup attempts, newest first.

    Returns an empty list when the live database or its ``backup_log``
    table doesn't exist.

    Raises:
        BackupIOError: If the table can't be read.
    """
    engine = _live_engine(config)
    if engine is None:
        return []

    try:
        with engine.connect() as conn:
            columns = get_column_names(conn, BACKUP_LOG_TABLE)
            wanted = [name for name in BackupLogEntry.model_fields if name in columns]
            if "backup_file" not in wanted or "backup_date" not in wanted:
                return []
            log_table = table(BACKUP_LOG_TABLE, *[column(name) for name in wanted])
            stmt = select(log_table).order_by(log_table.c.backup_date.desc()).limit(limit)
            rows = conn.execute(stmt).mappings().all()
    except SQLAlchemyError as e:
        raise BackupIOError(f"Failed to read {BACKUP_LOG_TABLE}: {e}") from e
    finally:
        engine.dispose()

    # NULL columns fall back to the model defaults
    return [
        BackupLogEntry(**{k: v for k, v in row.items() if v is not None})
        for row in rows
    ]


def get_last_backup_info(config: BackupConfig) -> BackupLogEntry | None:
    """Get the most recent backup attempt, or None if nothing is recorded."""
    entries = get_backup_log(config, limit=1)
    return entries[0] if entries else None


def prune_backup_log(config: BackupConfig, cutoff: datetime) -> int:
    """Delete history rows dated before ``cutoff``.

    Returns:
        Number of rows deleted (0 if there's no table or the delete failed).
    """
    engine = _live_engine(config)
    if engine is None:
        return 0

    try:
        with engine.begin() as conn:
            if "backup_date" not in get_column_names(conn, BACKUP_LOG_TABLE):
                return 0
            log_table = table(BACKUP_LOG_TABLE, column("backup_date"))
            result = conn.execute(
                delete(log_table).where(log_table.c.backup_date < cutoff.isoformat())
            )
            deleted = result.rowcount
    except SQLAlchemyError as e:
        logger.warning("Could not prune %s: %s", BACKUP_LOG_TABLE, e)
        return 0
    finally:
        engine.dispose()

    return deleted
