"""Tests for package exports and public API.

Verifies that all __init__.py files export the expected names, that
__all__ lists are defined and accurate, and that top-level convenience
imports work correctly.
"""

import importlib

import pytest


class TestTopLevelExports:
    """Tests for src/pos_backup/__init__.py exports."""

    def test_version_defined(self) -> None:
        """Package __version__ is defined and is a string."""
        import pos_backup

        assert pos_backup.__version__ == "0.1.0"

    def test_all_names_are_importable(self) -> None:
        """Every name in __all__ is actually accessible on the module."""
        import pos_backup

        for name in pos_backup.__all__:
            assert hasattr(pos_backup, name), (
                f"'{name}' is in __all__ but not accessible on pos_backup"
            )

    def test_facade_and_models(self) -> None:
        """BackupService and result models importable from top level."""
        from pos_backup import BackupService, RestoreOutcome, TableSpec, copy_table

        assert isinstance(BackupService, type)
        assert isinstance(RestoreOutcome, type)
        assert isinstance(TableSpec, type)
        assert callable(copy_table)

    def test_errors_share_base(self) -> None:
        """Every exported error derives from BackupError."""
        import pos_backup

        for name in pos_backup.__all__:
            obj = getattr(pos_backup, name)
            if isinstance(obj, type) and issubclass(obj, Exception):
                assert issubclass(obj, pos_backup.BackupError)


@pytest.mark.parametrize(
    "module_name",
    ["pos_backup.backup", "pos_backup.config", "pos_backup.schema"],
)
def test_subpackage_all_is_accurate(module_name: str) -> None:
    """Subpackage __all__ lists only names the module actually has."""
    module = importlib.import_module(module_name)
    assert module.__all__
    for name in module.__all__:
        assert hasattr(module, name), f"{module_name}.{name} missing"


class TestErrorMessages:
    """Verify safety-backup details are carried on errors."""

    def test_commit_failed_names_safety_backup(self) -> None:
        from pos_backup.errors import CommitFailedError

        error = CommitFailedError("Failed to commit", "pre_restore_safety_x.db")
        assert error.safety_backup == "pre_restore_safety_x.db"
        assert str(error) == "Failed to commit (safety backup: pre_restore_safety_x.db)"

    def test_io_error_without_safety_backup(self) -> None:
        from pos_backup.errors import BackupIOError

        error = BackupIOError("disk full")
        assert error.safety_backup is None
        assert str(error) == "disk full"
