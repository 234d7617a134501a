"""Schema introspection and FK dependency ordering.

Usage:
    from pos_backup.schema import get_fk_dependencies, dependency_order
"""

from pos_backup.schema.introspector import (
    dependency_order,
    get_column_names,
    get_fk_dependencies,
    has_table,
    list_tables,
)

__all__ = [
    "dependency_order",
    "get_column_names",
    "get_fk_dependencies",
    "has_table",
    "list_tables",
]
