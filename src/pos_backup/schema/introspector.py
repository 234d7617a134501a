"""SQLite schema introspection via SQLAlchemy's ``Inspector``.

This module queries a database connection to extract the parts of the
schema the table-copy engine relies on:
- Table names
- Column names in declaration order
- Foreign key dependencies between tables

and orders tables by those dependencies so inserts run parents-first and
deletes run children-first.

Usage:
    from sqlalchemy import create_engine
    from pos_backup.schema.introspector import get_fk_dependencies, dependency_order

    with create_engine("sqlite:///shop.db").connect() as conn:
        deps = get_fk_dependencies(conn)
        order = dependency_order(deps, list(deps))
"""

from sqlalchemy import inspect
from sqlalchemy.engine import Connection

# SQLite internal tables, never copied
EXCLUDED_TABLES = {
    "sqlite_sequence",
    "sqlite_stat1",
    "sqlite_stat4",
}


def list_tables(conn: Connection) -> list[str]:
    """Get all user table names, sorted by name."""
    return [
        name
        for name in inspect(conn).get_table_names()
        if name not in EXCLUDED_TABLES
    ]


def has_table(conn: Connection, table_name: str) -> bool:
    """Check whether ``table_name`` exists in the connection's schema catalog."""
    return inspect(conn).has_table(table_name)


def get_column_names(conn: Connection, table_name: str) -> list[str]:
    """Get column names for a table in declaration order.

    Returns an empty list if the table doesn't exist.
    """
    inspector = inspect(conn)
    if not inspector.has_table(table_name):
        return []
    return [col["name"] for col in inspector.get_columns(table_name)]


def get_fk_dependencies(conn: Connection) -> dict[str, set[str]]:
    """Build an FK dependency graph from the live schema.

    Returns:
        Dict mapping each table to the set of tables it references via FK.
        Self-references are dropped.

    Example:
        deps = get_fk_dependencies(conn)
        # {"products": set(), "invoice_items": {"invoices", "products"}}
    """
    inspector = inspect(conn)
    dependencies: dict[str, set[str]] = {}

    for table_name in list_tables(conn):
        dependencies[table_name] = set()
        for fk in inspector.get_foreign_keys(table_name):
            referenced_table = fk.get("referred_table")
            if referenced_table and referenced_table != table_name:
                dependencies[table_name].add(referenced_table)

    return dependencies


def dependency_order(dependencies: dict[str, set[str]], tables: list[str]) -> list[str]:
    """Topological sort of tables based on FK dependencies.

    Returns tables in forward order: parent tables first, child tables last.
    Tables with no dependency relationship keep their relative input order.

    Args:
        dependencies: FK dependency graph (table -> set of referenced tables).
        tables: List of table names to sort.

    Returns:
        Tables sorted so that parent tables come before child tables.
    """
    # Filter dependencies to only include relevant tables
    relevant = {t: dependencies.get(t, set()) & set(tables) for t in tables}

    sorted_tables: list[str] = []
    visited: set[str] = set()
    visiting: set[str] = set()  # For cycle detection

    def visit(table: str) -> None:
        if table in visited:
            return
        if table in visiting:
            # Cycle detected -- break it by just adding the table
            return
        visiting.add(table)
        for dep in sorted(relevant.get(table, set()), key=tables.index):
            visit(dep)
        visiting.discard(table)
        visited.add(table)
        sorted_tables.append(table)

    for table in tables:
        visit(table)

    return sorted_tables
