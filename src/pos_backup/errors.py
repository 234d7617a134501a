"""Error types raised by the backup/restore subsystem.

Every error derives from ``BackupError`` so callers (the UI layer, the
CLI) can catch one type and show ``str(exc)`` to the user.  Errors raised
after a safety backup exists carry its filename in ``safety_backup``.
"""


class BackupError(Exception):
    """Base class for all backup/restore failures."""

    pass


class ConfigurationError(BackupError):
    """Raised when the application directories cannot be resolved or created."""

    pass


class SourceNotFoundError(BackupError):
    """Raised when the live database (or an import source) does not exist."""

    pass


class BackupNotFoundError(BackupError):
    """Raised when a named backup file does not exist."""

    pass


class InvalidFileTypeError(BackupError):
    """Raised when a file does not carry the database extension."""

    pass


class BackupIOError(BackupError):
    """Raised when copying or writing a database file fails."""

    def __init__(self, message: str, safety_backup: str | None = None) -> None:
        if safety_backup:
            message = f"{message} (safety backup: {safety_backup})"
        super().__init__(message)
        self.safety_backup = safety_backup


class CommitFailedError(BackupError):
    """Raised when the restore transaction cannot be committed.

    The live database may be partially cleared; ``safety_backup`` names
    the file holding its pre-restore state.
    """

    def __init__(self, message: str, safety_backup: str | None = None) -> None:
        if safety_backup:
            message = f"{message} (safety backup: {safety_backup})"
        super().__init__(message)
        self.safety_backup = safety_backup
