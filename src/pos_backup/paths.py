"""Resolution of the live database file and the backups directory.

Paths are resolved fresh on every call; nothing is cached.

Priority for the config root:
1. ``config.config_root`` (from pos-backup.toml)
2. ``POS_BACKUP_HOME`` env var
3. Platform per-user config dir joined with ``config.app_identifier``
"""

import logging
import os
import sys
from pathlib import Path

from pos_backup.config.models import BackupConfig
from pos_backup.errors import ConfigurationError

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "POS_BACKUP_HOME"


def _platform_config_dir() -> Path:
    """Return the per-user configuration directory for this platform."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise ConfigurationError("Cannot determine config directory: APPDATA is not set")
        return Path(appdata)

    try:
        home = Path.home()
    except RuntimeError as e:
        raise ConfigurationError(f"Cannot determine home directory: {e}") from e

    if sys.platform == "darwin":
        return home / "Library" / "Application Support"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return home / ".config"


def resolve_config_root(config: BackupConfig) -> Path:
    """Get the application-scoped configuration directory.

    Args:
        config: Backup configuration.

    Returns:
        Absolute path to the app config directory (not created).

    Raises:
        ConfigurationError: If the platform config dir cannot be determined.
    """
    if config.config_root:
        return Path(config.config_root).expanduser().resolve()

    env_root = os.environ.get(HOME_ENV_VAR)
    if env_root:
        return Path(env_root).expanduser().resolve()

    return (_platform_config_dir() / config.app_identifier).resolve()


def resolve_database_path(config: BackupConfig) -> Path:
    """Get the path of the live database file.

    The file itself may not exist yet; callers check that as a precondition.
    """
    return resolve_config_root(config) / config.database_filename


def resolve_backups_dir(config: BackupConfig) -> Path:
    """Get the backups directory beside the live database, creating it if absent.

    Raises:
        ConfigurationError: If the directory cannot be created.
    """
    backups_dir = resolve_config_root(config) / config.backups_dirname
    if not backups_dir.exists():
        try:
            backups_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot create backups directory {backups_dir}: {e}"
            ) from e
        logger.debug("Created backups directory %s", backups_dir)
    return backups_dir
