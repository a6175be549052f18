"""
Abstract base class for storage drivers.

Defines the primitive operations every backend (local disk, S3, ...) must
provide, the listing entry type, and the driver error taxonomy the
Filesystem facade translates into domain errors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Dict, Iterator, Optional, Union

from diskstore.filesystem.exceptions import StorageError


class DriverError(StorageError):
    """Base class for failures reported by a storage driver."""

    operation = "perform operation on"

    def __init__(self, location: str, reason: str = ""):
        self.location = location
        self.reason = reason
        message = f"Unable to {self.operation} location: {location}."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class UnableToCheckExistence(DriverError):
    operation = "check existence for"


class UnableToReadFile(DriverError):
    operation = "read file from"


class UnableToWriteFile(DriverError):
    operation = "write file to"


class UnableToDeleteFile(DriverError):
    operation = "delete file at"


class UnableToCopyFile(DriverError):
    operation = "copy file from"


class UnableToMoveFile(DriverError):
    operation = "move file from"


class UnableToRetrieveMetadata(DriverError):
    operation = "retrieve metadata for"


class UnableToListContents(DriverError):
    operation = "list contents of"


class UnableToCreateDirectory(DriverError):
    operation = "create directory at"


class UnableToDeleteDirectory(DriverError):
    operation = "delete directory at"


class UnableToGenerateTemporaryUrl(DriverError):
    operation = "generate temporary url for"


class PathTraversalDetected(DriverError):
    operation = "resolve path outside of root for"


FILE = "file"
DIRECTORY = "dir"


@dataclass(frozen=True)
class StorageAttributes:
    """A single entry yielded by a directory listing."""

    path: str
    type: str
    file_size: Optional[int] = None
    last_modified: Optional[int] = None

    def is_file(self) -> bool:
        return self.type == FILE

    def is_dir(self) -> bool:
        return self.type == DIRECTORY


def normalize_path(path: str) -> str:
    """
    Normalize a path relative to a disk root.

    Leading/trailing separators are stripped, repeated separators collapsed
    and '.' / '..' segments resolved.

    Args:
        path: Path as supplied by the caller

    Returns:
        Normalized path ('' for the root itself)

    Raises:
        PathTraversalDetected: If the path resolves above the root
    """
    parts = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not parts:
                raise PathTraversalDetected(path)
            parts.pop()
            continue
        parts.append(segment)
    return "/".join(parts)


def resolve_expiration(expiration: Union[datetime, timedelta]) -> int:
    """Convert an expiration (absolute or relative) to seconds from now."""
    if isinstance(expiration, timedelta):
        seconds = expiration.total_seconds()
    else:
        now = datetime.now(expiration.tzinfo)
        seconds = (expiration - now).total_seconds()
    return max(1, int(seconds))


class StorageDriver(ABC):
    """
    Abstract base class for storage drivers.

    All driver implementations (local, S3, etc.) must implement these
    methods. Paths are relative to the driver's root and every failure is
    raised as a DriverError subclass.
    """

    # Drivers that can sign time-limited URLs set this and override
    # temporary_url().
    supports_temporary_urls = False

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """
        Check whether a file exists.

        Raises:
            UnableToCheckExistence: If the backend cannot answer
        """
        pass

    @abstractmethod
    def read(self, path: str) -> bytes:
        """
        Read a file to completion.

        Raises:
            UnableToReadFile: If the file is missing or unreadable
        """
        pass

    @abstractmethod
    def read_stream(self, path: str) -> BinaryIO:
        """
        Open a file for streaming reads. The caller owns the handle.

        Raises:
            UnableToReadFile: If the file is missing or unreadable
        """
        pass

    @abstractmethod
    def write(self, path: str, contents: bytes, options: Optional[Dict[str, Any]] = None) -> None:
        """
        Write (overwrite) a file from bytes.

        Raises:
            UnableToWriteFile: If the write fails
        """
        pass

    @abstractmethod
    def write_stream(self, path: str, stream: BinaryIO, options: Optional[Dict[str, Any]] = None) -> None:
        """
        Write (overwrite) a file from a readable stream.

        The stream is read from its current position and left open.

        Raises:
            UnableToWriteFile: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        """
        Delete a file.

        Raises:
            UnableToDeleteFile: If the file is missing or cannot be removed
        """
        pass

    @abstractmethod
    def copy(self, source: str, destination: str) -> None:
        """Raises UnableToCopyFile on failure."""
        pass

    @abstractmethod
    def move(self, source: str, destination: str) -> None:
        """Raises UnableToMoveFile on failure."""
        pass

    @abstractmethod
    def file_size(self, path: str) -> int:
        """Raises UnableToRetrieveMetadata on failure."""
        pass

    @abstractmethod
    def last_modified(self, path: str) -> int:
        """Return the modification time as epoch seconds."""
        pass

    @abstractmethod
    def mime_type(self, path: str) -> str:
        """Raises UnableToRetrieveMetadata when the type cannot be determined."""
        pass

    @abstractmethod
    def list_contents(self, directory: str = "", deep: bool = False) -> Iterator[StorageAttributes]:
        """
        List entries under a directory.

        Args:
            directory: Directory to list ('' for the root)
            deep: Descend into subdirectories

        Returns:
            Iterator of StorageAttributes with root-relative paths

        Raises:
            UnableToListContents: If the listing fails
        """
        pass

    @abstractmethod
    def create_directory(self, path: str, options: Optional[Dict[str, Any]] = None) -> None:
        """Raises UnableToCreateDirectory on failure."""
        pass

    @abstractmethod
    def delete_directory(self, path: str) -> None:
        """Raises UnableToDeleteDirectory on failure."""
        pass

    def temporary_url(self, path: str, expiration: Union[datetime, timedelta]) -> str:
        """
        Generate a time-limited URL for a file.

        Raises:
            UnableToGenerateTemporaryUrl: If the driver cannot sign URLs
        """
        raise UnableToGenerateTemporaryUrl(
            path, f"{type(self).__name__} does not support temporary URLs.")
