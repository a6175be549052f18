"""
Filesystem abstraction for file operations.

Provides a Filesystem facade over pluggable storage drivers (local disk,
S3) and a FilesystemManager resolving named disks from configuration.
"""

from diskstore.filesystem.exceptions import (
    DriverNotAvailableError,
    FileNotFound,
    FileWriteError,
    InvalidDiskError,
    StorageError,
)
from diskstore.filesystem.factory import create_filesystem_manager
from diskstore.filesystem.filesystem import Filesystem
from diskstore.filesystem.manager import FilesystemManager
from diskstore.filesystem.uploads import StarletteUpload, StreamUpload, UploadedFile

__all__ = [
    "DriverNotAvailableError",
    "FileNotFound",
    "FileWriteError",
    "Filesystem",
    "FilesystemManager",
    "InvalidDiskError",
    "StarletteUpload",
    "StorageError",
    "StreamUpload",
    "UploadedFile",
    "create_filesystem_manager",
]
