"""
Storage drivers backing a Filesystem.

The S3 driver is not imported here; it needs boto3 and is loaded on demand
by the FilesystemManager.
"""

from diskstore.filesystem.drivers.base import (
    DriverError,
    PathTraversalDetected,
    StorageAttributes,
    StorageDriver,
    UnableToCheckExistence,
    UnableToCopyFile,
    UnableToCreateDirectory,
    UnableToDeleteDirectory,
    UnableToDeleteFile,
    UnableToGenerateTemporaryUrl,
    UnableToListContents,
    UnableToMoveFile,
    UnableToReadFile,
    UnableToRetrieveMetadata,
    UnableToWriteFile,
    normalize_path,
)
from diskstore.filesystem.drivers.local import LocalDriver

__all__ = [
    "DriverError",
    "LocalDriver",
    "PathTraversalDetected",
    "StorageAttributes",
    "StorageDriver",
    "UnableToCheckExistence",
    "UnableToCopyFile",
    "UnableToCreateDirectory",
    "UnableToDeleteDirectory",
    "UnableToDeleteFile",
    "UnableToGenerateTemporaryUrl",
    "UnableToListContents",
    "UnableToMoveFile",
    "UnableToReadFile",
    "UnableToRetrieveMetadata",
    "UnableToWriteFile",
    "normalize_path",
]
