"""Tests for the BackupService facade."""

import inspect
import textwrap
from pathlib import Path

import pytest

from db_helpers import BACKUP_LOG_SCHEMA, BACKUP_ROWS, LIVE_ROWS, make_db, read_rows
from pos_backup.config.models import BackupConfig
from pos_backup.errors import BackupNotFoundError
from pos_backup.service import BackupService


@pytest.fixture
def service(config) -> BackupService:
    return BackupService(config)


class TestConstruction:
    """Verify how a service gets its configuration."""

    def test_default_config(self):
        assert BackupService().config == BackupConfig()

    def test_from_config_file(self, tmp_path):
        config_file = tmp_path / "pos-backup.toml"
        config_file.write_text(textwrap.dedent(f"""\
            [paths]
            config_root = '{tmp_path / "shop"}'
            product_name = "bikeshop"
        """))

        service = BackupService.from_config_file(config_file)

        assert service.config.database_filename == "bikeshop.db"
        assert Path(service.get_backups_dir_path()) == (tmp_path / "shop" / "backups").resolve()

    def test_from_config_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            BackupService.from_config_file(tmp_path / "nope.toml")


class TestOperations:
    """Verify each facade method reaches its operation."""

    def test_create_then_list(self, service, live_db):
        artifact = service.create_backup()

        listed = service.list_backups()

        assert [a.filename for a in listed] == [artifact.filename]
        assert Path(service.get_backup_file_path(artifact.filename)) == Path(artifact.path)

    def test_restore_data_by_filename(self, service, live_db, backups_dir):
        make_db(backups_dir / "motormods_backup_2025-01-01_10-00-00.db", BACKUP_ROWS)

        outcome = service.restore_data("motormods_backup_2025-01-01_10-00-00.db")

        assert outcome.success
        assert read_rows(live_db, "products") == BACKUP_ROWS["products"]

    def test_restore_data_by_absolute_path(self, service, live_db, tmp_path):
        """Absolute paths outside the backups dir are accepted."""
        external = make_db(tmp_path / "elsewhere.db", BACKUP_ROWS)

        outcome = service.restore_data(str(external))

        assert outcome.records_imported == sum(len(r) for r in BACKUP_ROWS.values())

    def test_restore_data_unknown_name(self, service, live_db, backups_dir):
        with pytest.raises(BackupNotFoundError):
            service.restore_data("missing.db")
        assert read_rows(live_db, "products") == LIVE_ROWS["products"]

    def test_restore_file_and_import(self, service, live_db, backups_dir, tmp_path):
        backup = make_db(backups_dir / "motormods_backup_2025-01-01_10-00-00.db", BACKUP_ROWS)

        result = service.restore_file(backup.name)
        assert result.safety_backup.startswith("pre_restore_safety_")
        assert live_db.read_bytes() == backup.read_bytes()

        external = make_db(tmp_path / "usb.db", LIVE_ROWS)
        result = service.import_external_backup(external)
        assert result.safety_backup.startswith("pre_import_safety_")
        assert read_rows(live_db, "products") == LIVE_ROWS["products"]

    def test_export_and_delete(self, service, live_db, tmp_path):
        artifact = service.create_backup()
        destination = tmp_path / "exported.db"

        service.export_backup(artifact.filename, destination)
        service.delete_backup(artifact.filename)

        assert destination.is_file()
        assert service.list_backups() == []

    def test_create_safety_backup(self, service, live_db, backups_dir):
        filename = service.create_safety_backup()

        assert filename.startswith("pre_import_safety_")
        assert (backups_dir / filename).read_bytes() == live_db.read_bytes()

    def test_prune_backups(self, service, live_db):
        service.create_backup()
        assert service.prune_backups(retention_days=1) == []

    def test_ensure_daily_backup(self, service, live_db):
        first = service.ensure_daily_backup()
        second = service.ensure_daily_backup()

        assert first is not None
        assert second is None
        assert len(service.list_backups()) == 1

    def test_backup_history(self, service, live_db):
        make_db(live_db, schema=BACKUP_LOG_SCHEMA)
        assert service.get_last_backup_info() is None

        service.create_backup()
        artifact = service.create_backup(backup_type="auto")

        assert artifact.kind == "manual"
        assert len(service.get_backup_log()) == 2
        last = service.get_last_backup_info()
        assert last.backup_type == "auto"
        assert last.backup_file == artifact.filename


class TestDocumentation:
    """Verify the facade documents what callers can do."""

    def test_public_methods_have_docstrings(self):
        undocumented = [
            name
            for name, member in inspect.getmembers(BackupService)
            if not name.startswith("_")
            and callable(member)
            and not inspect.getdoc(member)
        ]
        assert undocumented == []
