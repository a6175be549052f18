"""
Filesystem facade over a single storage driver.

Read and write primitives raise typed errors (FileNotFound, FileWriteError).
Most other operations report failure as False/None and log the underlying
driver error instead of raising it.
"""

import logging
import secrets
from datetime import datetime, timedelta
from pathlib import PurePosixPath
from typing import Any, BinaryIO, Dict, List, Optional, Union

from diskstore.filesystem.drivers.base import (
    DriverError,
    StorageDriver,
    UnableToReadFile,
    UnableToWriteFile,
)
from diskstore.filesystem.exceptions import FileNotFound, FileWriteError
from diskstore.filesystem.uploads import UploadedFile

logger = logging.getLogger(__name__)


class Filesystem:
    """
    Uniform file operations for one disk.

    Paths are relative to the disk root. Instances are immutable after
    construction.
    """

    def __init__(self, driver: StorageDriver, root: str = "", url: Optional[str] = None):
        """
        Initialize the facade.

        Args:
            driver: Storage driver performing the I/O
            root: Root location used by path() ('' when not applicable)
            url: Public URL base used by url() (None for none)
        """
        self._driver = driver
        self._root = root
        self._url = url

    @property
    def driver(self) -> StorageDriver:
        return self._driver

    def exists(self, path: str) -> bool:
        """Check if a file exists. Never raises."""
        try:
            return self._driver.file_exists(path)
        except DriverError as e:
            logger.warning(f"Existence check failed for {path}: {e}")
            return False

    def get(self, path: str) -> bytes:
        """
        Get the contents of a file.

        Raises:
            FileNotFound: If the file cannot be read
        """
        try:
            return self._driver.read(path)
        except UnableToReadFile as e:
            raise FileNotFound(path) from e

    def read_stream(self, path: str) -> BinaryIO:
        """
        Open a readable stream for a file. The caller must close it.

        Raises:
            FileNotFound: If the file cannot be read
        """
        try:
            return self._driver.read_stream(path)
        except UnableToReadFile as e:
            raise FileNotFound(path) from e

    def put(self, path: str, contents: Union[bytes, str], options: Optional[Dict[str, Any]] = None) -> bool:
        """
        Write contents to a file, replacing any existing file.

        Args:
            path: Destination path
            contents: Bytes, or text encoded as UTF-8
            options: Driver write options (visibility, mimetype, metadata)

        Returns:
            True

        Raises:
            FileWriteError: If the write fails
        """
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        try:
            self._driver.write(path, contents, options or {})
            return True
        except UnableToWriteFile as e:
            raise FileWriteError(path) from e

    def put_stream(self, path: str, stream: BinaryIO, options: Optional[Dict[str, Any]] = None) -> bool:
        """
        Write a stream to a file.

        The stream is read from its current position and is not closed; the
        caller keeps ownership of it.

        Raises:
            FileWriteError: If the write fails
        """
        try:
            self._driver.write_stream(path, stream, options or {})
            return True
        except UnableToWriteFile as e:
            raise FileWriteError(path) from e

    def put_file(self, path: str, file: UploadedFile, options: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """Store an upload under a random name. See put_file_as()."""
        return self.put_file_as(path, file, self._generate_filename(file), options)

    def put_file_as(
        self,
        path: str,
        file: UploadedFile,
        name: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """
        Store an upload as path/name.

        The upload's stream is detached, rewound and written. It is closed
        on every exit path.

        Args:
            path: Destination directory
            file: Upload to store
            name: Filename to store it under
            options: Driver write options

        Returns:
            The stored path, or None if the stream could not be detached or
            the write failed
        """
        stream = file.detach_stream()
        if stream is None:
            logger.warning(f"Upload for {path}/{name} has no stream to store")
            return None

        directory = path.rstrip("/")
        file_path = f"{directory}/{name.lstrip('/')}" if directory else name.lstrip("/")

        try:
            # Upstream code may have partially consumed the stream
            stream.seek(0)
            self._driver.write_stream(file_path, stream, options or {})
            return file_path
        except (UnableToWriteFile, OSError, ValueError) as e:
            logger.warning(f"Failed to store upload at {file_path}: {e}")
            return None
        finally:
            stream.close()

    def prepend(self, path: str, data: Union[bytes, str]) -> bool:
        """Prepend data to a file, creating it if missing. Not atomic."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        if self.exists(path):
            return self.put(path, data + self.get(path))
        return self.put(path, data)

    def append(self, path: str, data: Union[bytes, str]) -> bool:
        """Append data to a file, creating it if missing. Not atomic."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        if self.exists(path):
            return self.put(path, self.get(path) + data)
        return self.put(path, data)

    def delete(self, paths: Union[str, List[str]]) -> bool:
        """
        Delete one or more files.

        Files are deleted in order. Deletion stops at the first failure, so
        earlier files may already be gone when False is returned.
        """
        if isinstance(paths, str):
            paths = [paths]

        for path in paths:
            try:
                self._driver.delete(path)
            except DriverError as e:
                logger.warning(f"Failed to delete {path}: {e}")
                return False

        return True

    def copy(self, source: str, destination: str) -> bool:
        try:
            self._driver.copy(source, destination)
            return True
        except DriverError as e:
            logger.warning(f"Failed to copy {source} to {destination}: {e}")
            return False

    def move(self, source: str, destination: str) -> bool:
        try:
            self._driver.move(source, destination)
            return True
        except DriverError as e:
            logger.warning(f"Failed to move {source} to {destination}: {e}")
            return False

    def size(self, path: str) -> int:
        """File size in bytes. Driver errors propagate unchanged."""
        return self._driver.file_size(path)

    def last_modified(self, path: str) -> int:
        """Modification time as epoch seconds. Driver errors propagate unchanged."""
        return self._driver.last_modified(path)

    def mime_type(self, path: str) -> Optional[str]:
        try:
            return self._driver.mime_type(path)
        except DriverError as e:
            logger.warning(f"Failed to determine mime type of {path}: {e}")
            return None

    def files(self, directory: str = "", recursive: bool = False) -> List[str]:
        """List file paths in a directory, in driver listing order."""
        return [
            entry.path
            for entry in self._driver.list_contents(directory, recursive)
            if entry.is_file()
        ]

    def directories(self, directory: str = "", recursive: bool = False) -> List[str]:
        """List directory paths in a directory, in driver listing order."""
        return [
            entry.path
            for entry in self._driver.list_contents(directory, recursive)
            if entry.is_dir()
        ]

    def make_directory(self, path: str) -> bool:
        try:
            self._driver.create_directory(path, {})
            return True
        except DriverError as e:
            logger.warning(f"Failed to create directory {path}: {e}")
            return False

    def delete_directory(self, directory: str) -> bool:
        try:
            self._driver.delete_directory(directory)
            return True
        except DriverError as e:
            logger.warning(f"Failed to delete directory {directory}: {e}")
            return False

    def url(self, path: str) -> str:
        """Public URL for a file, or the path itself when no base is set."""
        if self._url is not None:
            return f"{self._url.rstrip('/')}/{path.lstrip('/')}"
        return path

    def temporary_url(self, path: str, expiration: Union[datetime, timedelta]) -> str:
        """
        Time-limited URL for a file.

        Drivers without signing support fall back to url(), ignoring the
        expiration.
        """
        if self._driver.supports_temporary_urls:
            return self._driver.temporary_url(path, expiration)
        return self.url(path)

    def path(self, path: str) -> str:
        """Full path of a file, joined onto the root when one is set."""
        if self._root != "":
            return f"{self._root.rstrip('/')}/{path.lstrip('/')}"
        return path

    @staticmethod
    def _generate_filename(file: UploadedFile) -> str:
        extension = PurePosixPath(file.client_filename or "").suffix
        name = secrets.token_hex(20)
        return f"{name}{extension}"
