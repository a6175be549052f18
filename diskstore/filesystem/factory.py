"""
Bootstrap helper for the filesystem manager.

There is no module-level instance: the application builds one manager at
startup and passes it to whatever needs storage.
"""

import os
from typing import Optional

from diskstore.common.logging_config import setup_logging
from diskstore.config.settings import Settings, get_settings
from diskstore.filesystem.manager import FilesystemManager


def create_filesystem_manager(
    settings: Optional[Settings] = None,
    configure_logging: bool = True,
) -> FilesystemManager:
    """
    Build a FilesystemManager from settings.

    Args:
        settings: Application settings (loaded from the environment when None)
        configure_logging: Apply settings.log_level and settings.log_json to
            the root logger. Pass False when the host application already
            configures logging.

    Returns:
        FilesystemManager whose local disks default to <storage_path>/app
    """
    if settings is None:
        settings = get_settings()

    if configure_logging:
        setup_logging(settings.log_level, settings.log_json)

    return FilesystemManager(
        settings,
        default_local_root=os.path.join(settings.storage_path, "app"),
    )
