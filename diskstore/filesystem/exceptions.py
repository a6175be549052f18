"""
Exceptions raised by the filesystem layer.

Driver errors (see drivers.base) and the facade errors below share the
StorageError base so callers can catch everything from one place.
"""

from typing import Optional


class StorageError(Exception):
    """Base exception for all storage-related errors."""
    pass


class FileNotFound(StorageError):
    """Raised when a file cannot be located or read."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"File not found at path: {path}")


class FileWriteError(StorageError):
    """Raised when a file cannot be written."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Unable to write file at path: {path}")


class InvalidDiskError(StorageError):
    """Raised when a disk is not configured or uses an unsupported driver."""

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(
            message or f"Disk [{name}] does not have a configured driver.")


class DriverNotAvailableError(StorageError):
    """Raised when the library backing a driver is not installed."""
    pass
