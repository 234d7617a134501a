"""Shared fixtures: an isolated config root and a live POS database."""

from pathlib import Path

import pytest

from db_helpers import LIVE_ROWS, TABLES, make_db
from pos_backup.config.models import BackupConfig


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep the real user config dir out of every test."""
    monkeypatch.delenv("POS_BACKUP_HOME", raising=False)


@pytest.fixture
def config(tmp_path) -> BackupConfig:
    """Config rooted in a temporary app directory."""
    return BackupConfig(
        config_root=str(tmp_path / "app"),
        tables=list(TABLES),
        busy_timeout=1.0,
        step_sleep_ms=0,
    )


@pytest.fixture
def live_db(config) -> Path:
    """The live database at the configured location."""
    root = Path(config.config_root)
    root.mkdir(parents=True, exist_ok=True)
    return make_db(root / config.database_filename, LIVE_ROWS)


@pytest.fixture
def backups_dir(config) -> Path:
    """The (created) backups directory."""
    path = Path(config.config_root) / config.backups_dirname
    path.mkdir(parents=True, exist_ok=True)
    return path
