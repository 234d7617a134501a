"""Pydantic models for backup/restore configuration."""

from typing import Literal

from pydantic import BaseModel, Field


# Tables restored in order (parents before children)
DEFAULT_TABLES: list[str] = [
    "products",
    "invoices",
    "invoice_items",
    "settings",
    "stock_adjustments",
    "sales_returns",
    "return_items",
    "backup_log",
    "users",
]


class BackupConfig(BaseModel):
    """Complete backup/restore configuration from pos-backup.toml."""

    # Paths
    app_identifier: str = "com.motormods.app"   # per-user config directory name
    product_name: str = "motormods"             # database file stem and backup prefix
    config_root: str | None = None              # overrides the platform config dir
    backups_dirname: str = "backups"
    backup_extension: str = ".db"

    # Snapshot
    pages_per_step: int = Field(default=100, gt=0)
    step_sleep_ms: int = Field(default=10, ge=0)
    auto_backup_enabled: bool = True          # daily automatic backup

    # Restore
    tables: list[str] = Field(default_factory=lambda: list(DEFAULT_TABLES))
    derive_table_order: bool = False
    clear_scope: Literal["all", "present"] = "all"
    busy_timeout: float = Field(default=5.0, ge=0)

    # Retention
    retention_days: int = Field(default=30, gt=0)

    @property
    def database_filename(self) -> str:
        """Filename of the live database (e.g. ``motormods.db``)."""
        return f"{self.product_name}{self.backup_extension}"

    @property
    def backup_prefix(self) -> str:
        """Filename prefix of user-initiated backups."""
        return f"{self.product_name}_backup_"
