"""Tests for the backup history kept in the live database's backup_log table."""

import sqlite3
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from db_helpers import BACKUP_LOG_SCHEMA, LIVE_ROWS, SCHEMA, make_db
from pos_backup.backup.catalog import prune_backups
from pos_backup.backup.history import (
    get_backup_log,
    get_last_backup_info,
    log_backup,
)
from pos_backup.backup.models import BackupLogEntry
from pos_backup.backup.snapshot import create_backup, ensure_daily_backup
from pos_backup.errors import BackupIOError


@pytest.fixture
def logged_db(config) -> Path:
    """Live database that has a backup_log table."""
    root = Path(config.config_root)
    root.mkdir(parents=True, exist_ok=True)
    return make_db(root / config.database_filename, LIVE_ROWS, SCHEMA + BACKUP_LOG_SCHEMA)


def _entry(backup_date: str, **kwargs) -> BackupLogEntry:
    return BackupLogEntry(backup_file=f"b_{backup_date}.db", backup_date=backup_date, **kwargs)


class TestLogBackup:
    """Verify log_backup() writes only where a backup_log table exists."""

    def test_no_live_database(self, config):
        assert log_backup(config, _entry("2025-01-01T10:00:00+00:00")) is False

    def test_no_backup_log_table(self, config, live_db):
        """Live databases without the table are left alone."""
        assert log_backup(config, _entry("2025-01-01T10:00:00+00:00")) is False
        assert get_backup_log(config) == []

    def test_inserts_row(self, config, logged_db):
        entry = _entry("2025-01-01T10:00:00+00:00", backup_type="auto", file_size=4096)

        assert log_backup(config, entry) is True

        assert get_backup_log(config) == [entry]

    def test_older_table_layout(self, config):
        """Only the columns the table has are written."""
        root = Path(config.config_root)
        root.mkdir(parents=True, exist_ok=True)
        make_db(
            root / config.database_filename,
            schema="CREATE TABLE backup_log (backup_file TEXT, backup_date TEXT, status TEXT);",
        )

        assert log_backup(config, _entry("2025-01-01T10:00:00+00:00", notes="x")) is True

        [entry] = get_backup_log(config)
        assert entry.backup_type == "manual"
        assert entry.notes is None


class TestBackupLogQueries:
    """Verify reading the history back."""

    def test_newest_first_with_limit(self, config, logged_db):
        for day in ("2025-01-01", "2025-03-01", "2025-02-01"):
            log_backup(config, _entry(f"{day}T10:00:00+00:00"))

        dates = [e.backup_date[:10] for e in get_backup_log(config, limit=2)]

        assert dates == ["2025-03-01", "2025-02-01"]

    def test_last_backup_info(self, config, logged_db):
        assert get_last_backup_info(config) is None

        log_backup(config, _entry("2025-01-01T10:00:00+00:00", backup_type="auto"))
        log_backup(config, _entry("2025-01-02T10:00:00+00:00", status="failed"))

        last = get_last_backup_info(config)
        assert last.backup_date.startswith("2025-01-02")
        assert last.status == "failed"

    def test_null_columns_use_defaults(self, config, logged_db):
        """Rows written by other code with NULL type/status still load."""
        conn = sqlite3.connect(str(logged_db))
        conn.execute(
            "INSERT INTO backup_log (backup_file, backup_date, backup_type, status) "
            "VALUES ('x.db', '2025-01-01', NULL, NULL)"
        )
        conn.commit()
        conn.close()

        [entry] = get_backup_log(config)
        assert entry.backup_type == "manual"
        assert entry.status == "success"

    def test_unreadable_database(self, config):
        """A live file that isn't a database raises BackupIOError."""
        root = Path(config.config_root)
        root.mkdir(parents=True, exist_ok=True)
        (root / config.database_filename).write_bytes(b"not a database" * 100)

        with pytest.raises(BackupIOError, match="backup_log"):
            get_backup_log(config)


class TestBackupsAreRecorded:
    """Verify backups record their attempts."""

    def test_manual_backup_recorded(self, config, logged_db):
        artifact = create_backup(config)

        last = get_last_backup_info(config)
        assert last.backup_file == artifact.filename
        assert last.backup_type == "manual"
        assert last.status == "success"
        assert last.file_size == artifact.file_size

    def test_failed_backup_recorded(self, config, logged_db):
        """A failed attempt is recorded with its error, then raised."""
        with patch(
            "pos_backup.backup.snapshot._page_copy",
            side_effect=sqlite3.OperationalError("disk I/O error"),
        ):
            with pytest.raises(BackupIOError):
                create_backup(config)

        last = get_last_backup_info(config)
        assert last.status == "failed"
        assert last.file_size is None
        assert "disk I/O error" in last.notes

    def test_daily_backup_recorded_as_auto(self, config, logged_db):
        ensure_daily_backup(config)
        assert get_last_backup_info(config).backup_type == "auto"

    def test_prune_removes_old_history(self, config, logged_db):
        """History rows older than the retention window are deleted."""
        old = (datetime.now().astimezone() - timedelta(days=90)).isoformat()
        recent = (datetime.now().astimezone() - timedelta(days=1)).isoformat()
        log_backup(config, _entry(old))
        log_backup(config, _entry(recent))

        prune_backups(config, retention_days=30)

        assert [e.backup_date for e in get_backup_log(config)] == [recent]
