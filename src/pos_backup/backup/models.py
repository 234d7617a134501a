"""Result models for backup artifacts and restores.

Usage:
    from pos_backup.backup.models import BackupArtifact, TableSpec, RestoreOutcome

    spec = TableSpec(tables=["products", "invoices", "invoice_items"])
    spec.insert_order   # ['products', 'invoices', 'invoice_items']
    spec.delete_order   # ['invoice_items', 'invoices', 'products']
"""

from typing import Literal

from pydantic import BaseModel, Field
from sqlalchemy.engine import Connection

from pos_backup.schema.introspector import dependency_order, get_fk_dependencies

PRE_RESTORE_PREFIX = "pre_restore_safety_"
PRE_IMPORT_PREFIX = "pre_import_safety_"

# strftime format embedded in backup filenames (second resolution)
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


class BackupArtifact(BaseModel):
    """A backup file on disk."""

    filename: str
    path: str
    file_size: int
    timestamp: str          # ISO-8601 with offset (creation or modification time)

    @property
    def kind(self) -> Literal["manual", "pre_restore", "pre_import", "other"]:
        """Origin of the backup, derived from its filename."""
        if self.filename.startswith(PRE_RESTORE_PREFIX):
            return "pre_restore"
        if self.filename.startswith(PRE_IMPORT_PREFIX):
            return "pre_import"
        if "_backup_" in self.filename:
            return "manual"
        return "other"

    @property
    def is_safety_backup(self) -> bool:
        return self.kind in ("pre_restore", "pre_import")


class TableSpec(BaseModel):
    """Tables ordered by dependency (parents first)."""

    tables: list[str]

    @classmethod
    def from_connection(cls, conn: Connection, tables: list[str] | None = None) -> "TableSpec":
        """Derive the order from the foreign keys declared in a live schema.

        Args:
            conn: Connection to the database whose schema defines the order.
            tables: Tables to order.  Defaults to every table in the schema.
        """
        dependencies = get_fk_dependencies(conn)
        names = list(tables) if tables is not None else sorted(dependencies)
        return cls(tables=dependency_order(dependencies, names))

    @property
    def insert_order(self) -> list[str]:
        """Parents before children."""
        return list(self.tables)

    @property
    def delete_order(self) -> list[str]:
        """Children before parents."""
        return list(reversed(self.tables))


class TableResult(BaseModel):
    """Per-table result of a data-level restore.

    Attributes:
        table: Table name.
        status: ``copied`` when rows were read from the backup, ``missing``
            when the backup has no such table, ``failed`` when reading the
            table raised or every one of its rows failed to insert.
        rows: Rows successfully written to the live database.
        rows_failed: Rows whose insert raised and were skipped.
        cleared: True if the table was emptied before the import.
        error: Error text for a failed clear or import.
    """

    table: str
    status: Literal["copied", "missing", "failed"] = "copied"
    rows: int = 0
    rows_failed: int = 0
    cleared: bool = False
    error: str | None = None


class RestoreOutcome(BaseModel):
    """Result of ``restore_data()``."""

    success: bool
    message: str
    records_imported: int = 0
    safety_backup: str | None = None
    tables: list[TableResult] = Field(default_factory=list)
    foreign_keys_restored: bool = True

    @property
    def needs_reconnect(self) -> bool:
        """True if FK enforcement could not be re-enabled on this connection."""
        return not self.foreign_keys_restored

    def format_report(self) -> str:
        """Format the outcome as a human-readable report."""
        lines = [self.message]
        if self.safety_backup:
            lines.append(f"  Safety backup: {self.safety_backup}")
        for result in self.tables:
            if result.status == "missing":
                lines.append(f"  - {result.table}: skipped (not in backup)")
            elif result.status == "failed":
                lines.append(f"  - {result.table}: failed ({result.error})")
            else:
                line = f"  - {result.table}: {result.rows} rows"
                if result.rows_failed:
                    line += f", {result.rows_failed} failed"
                lines.append(line)
        return "\n".join(lines)


class FileRestoreResult(BaseModel):
    """Result of a file-level restore or import."""

    message: str
    safety_backup: str | None = None


class BackupLogEntry(BaseModel):
    """One backup attempt recorded in the ``backup_log`` table."""

    backup_file: str
    backup_date: str        # ISO-8601 with offset
    backup_type: Literal["auto", "manual"] = "manual"
    file_size: int | None = None
    status: Literal["success", "failed"] = "success"
    notes: str | None = None
