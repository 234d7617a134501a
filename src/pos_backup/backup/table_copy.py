"""Table-copy engine: copy one table's rows between two databases.

The column list is read from the source table's schema, so a backup made
under an older or newer schema copies exactly the columns it has.  A
table missing from the source copies nothing.  Rows are upserted by
primary key (``INSERT OR REPLACE``); a row whose insert fails is logged
and skipped, the rest of the table still goes through.

Usage:
    from sqlalchemy import create_engine
    from pos_backup.backup.table_copy import copy_table

    with create_engine("sqlite:///backup.db").connect() as source, \\
            create_engine("sqlite:///live.db").connect() as target:
        copied = copy_table(source, target, "products")
        target.commit()
"""

import logging

from sqlalchemy import column, insert, select, table
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from pos_backup.schema.introspector import get_column_names, has_table

logger = logging.getLogger(__name__)


def copy_table(source: Connection, target: Connection, table_name: str) -> int:
    """Copy every row of ``table_name`` from ``source`` into ``target``.

    Does not commit -- the caller owns the target transaction.

    Args:
        source: Connection to the backup database.
        target: Connection to the live database.
        table_name: Table to copy.

    Returns:
        Number of rows successfully inserted (0 if the source lacks the table).

    Raises:
        SQLAlchemyError: If the source table can't be read.
    """
    copied, _ = copy_table_rows(source, target, table_name)
    return copied


def copy_table_rows(source: Connection, target: Connection, table_name: str) -> tuple[int, int]:
    """Copy a table and report ``(rows_copied, rows_failed)``.

    Same behaviour as ``copy_table()``; the restore orchestrator uses the
    failure count for its per-table results.
    """
    if not has_table(source, table_name):
        logger.debug("Table %s not in source, skipping", table_name)
        return 0, 0

    columns = get_column_names(source, table_name)
    if not columns:
        return 0, 0

    table_clause = table(table_name, *[column(name) for name in columns])

    # Materialize all rows before writing
    rows = source.execute(select(table_clause)).all()

    insert_stmt = insert(table_clause).prefix_with("OR REPLACE")

    copied = 0
    failed = 0
    for row in rows:
        try:
            target.execute(insert_stmt, dict(zip(columns, row)))
        except SQLAlchemyError as e:
            failed += 1
            logger.warning("Failed to insert row into %s: %s", table_name, e)
        else:
            copied += 1

    logger.debug("Copied %d rows into %s (%d failed)", copied, table_name, failed)
    return copied, failed
