"""
Local disk storage driver.

Every path is resolved beneath a single root directory. Writes create any
missing parent directories, and an optional 'visibility' option maps to
POSIX permissions:
- public:  files 0644, directories 0755
- private: files 0600, directories 0700
"""

import logging
import mimetypes
import os
import shutil
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, Optional

from diskstore.filesystem.drivers.base import (
    DIRECTORY,
    FILE,
    StorageAttributes,
    StorageDriver,
    UnableToCheckExistence,
    UnableToCopyFile,
    UnableToCreateDirectory,
    UnableToDeleteDirectory,
    UnableToDeleteFile,
    UnableToListContents,
    UnableToMoveFile,
    UnableToReadFile,
    UnableToRetrieveMetadata,
    UnableToWriteFile,
    normalize_path,
)

logger = logging.getLogger(__name__)

PERMISSIONS = {
    FILE: {"public": 0o644, "private": 0o600},
    DIRECTORY: {"public": 0o755, "private": 0o700},
}


class LocalDriver(StorageDriver):
    """Storage driver backed by a directory on the local filesystem."""

    def __init__(self, root: str):
        """
        Initialize the local driver.

        Args:
            root: Root directory for the disk, created if missing
        """
        self.base_path = Path(root).resolve()
        self._ensure_root()

    def _ensure_root(self) -> None:
        """Create the root directory if it doesn't exist."""
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _prefix(self, path: str) -> Path:
        """Convert a disk-relative path to an absolute Path under the root."""
        relative = normalize_path(path)
        return self.base_path / relative if relative else self.base_path

    def _relative(self, location: Path) -> str:
        return location.relative_to(self.base_path).as_posix()

    def _visibility_mode(self, path: str, kind: str, options: Optional[Dict[str, Any]], error) -> Optional[int]:
        visibility = (options or {}).get("visibility")
        if visibility is None:
            return None
        if visibility not in PERMISSIONS[kind]:
            raise error(path, f"Unknown visibility: {visibility}")
        return PERMISSIONS[kind][visibility]

    def file_exists(self, path: str) -> bool:
        location = self._prefix(path)
        try:
            return location.is_file()
        except OSError as e:
            raise UnableToCheckExistence(path, str(e)) from e

    def read(self, path: str) -> bytes:
        location = self._prefix(path)
        try:
            return location.read_bytes()
        except (OSError, ValueError) as e:
            raise UnableToReadFile(path, str(e)) from e

    def read_stream(self, path: str) -> BinaryIO:
        location = self._prefix(path)
        try:
            return open(location, "rb")
        except (OSError, ValueError) as e:
            raise UnableToReadFile(path, str(e)) from e

    def write(self, path: str, contents: bytes, options: Optional[Dict[str, Any]] = None) -> None:
        location = self._prefix(path)
        mode = self._visibility_mode(path, FILE, options, UnableToWriteFile)
        try:
            location.parent.mkdir(parents=True, exist_ok=True)
            location.write_bytes(contents)
            if mode is not None:
                os.chmod(location, mode)
        except (OSError, ValueError) as e:
            raise UnableToWriteFile(path, str(e)) from e

    def write_stream(self, path: str, stream: BinaryIO, options: Optional[Dict[str, Any]] = None) -> None:
        location = self._prefix(path)
        mode = self._visibility_mode(path, FILE, options, UnableToWriteFile)
        try:
            location.parent.mkdir(parents=True, exist_ok=True)
            with open(location, "wb") as f:
                shutil.copyfileobj(stream, f)
            if mode is not None:
                os.chmod(location, mode)
        except (OSError, ValueError) as e:
            raise UnableToWriteFile(path, str(e)) from e

    def delete(self, path: str) -> None:
        location = self._prefix(path)
        if not location.is_file():
            raise UnableToDeleteFile(path, "File does not exist.")
        try:
            location.unlink()
        except OSError as e:
            raise UnableToDeleteFile(path, str(e)) from e

    def copy(self, source: str, destination: str) -> None:
        source_path = self._prefix(source)
        destination_path = self._prefix(destination)
        if not source_path.is_file():
            raise UnableToCopyFile(source, "Source file does not exist.")
        try:
            destination_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, destination_path)
        except OSError as e:
            raise UnableToCopyFile(source, str(e)) from e

    def move(self, source: str, destination: str) -> None:
        source_path = self._prefix(source)
        destination_path = self._prefix(destination)
        if not source_path.is_file():
            raise UnableToMoveFile(source, "Source file does not exist.")
        try:
            destination_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source_path), str(destination_path))
        except OSError as e:
            raise UnableToMoveFile(source, str(e)) from e

    def _stat(self, path: str) -> os.stat_result:
        location = self._prefix(path)
        if not location.is_file():
            raise UnableToRetrieveMetadata(path, "File does not exist.")
        try:
            return location.stat()
        except OSError as e:
            raise UnableToRetrieveMetadata(path, str(e)) from e

    def file_size(self, path: str) -> int:
        return self._stat(path).st_size

    def last_modified(self, path: str) -> int:
        return int(self._stat(path).st_mtime)

    def mime_type(self, path: str) -> str:
        location = self._prefix(path)
        if not location.is_file():
            raise UnableToRetrieveMetadata(path, "File does not exist.")
        mime, _ = mimetypes.guess_type(location.name)
        if mime is None:
            raise UnableToRetrieveMetadata(path, "Unknown mime type.")
        return mime

    def _attributes(self, location: Path) -> StorageAttributes:
        if location.is_dir():
            return StorageAttributes(
                path=self._relative(location),
                type=DIRECTORY,
                last_modified=int(location.stat().st_mtime),
            )
        stat = location.stat()
        return StorageAttributes(
            path=self._relative(location),
            type=FILE,
            file_size=stat.st_size,
            last_modified=int(stat.st_mtime),
        )

    def list_contents(self, directory: str = "", deep: bool = False) -> Iterator[StorageAttributes]:
        location = self._prefix(directory)
        if not location.is_dir():
            return

        try:
            if deep:
                for dirpath, dirnames, filenames in os.walk(location):
                    current = Path(dirpath)
                    for name in dirnames + filenames:
                        yield self._attributes(current / name)
            else:
                with os.scandir(location) as entries:
                    for entry in entries:
                        yield self._attributes(Path(entry.path))
        except OSError as e:
            raise UnableToListContents(directory, str(e)) from e

    def create_directory(self, path: str, options: Optional[Dict[str, Any]] = None) -> None:
        location = self._prefix(path)
        mode = self._visibility_mode(path, DIRECTORY, options, UnableToCreateDirectory)
        try:
            location.mkdir(parents=True, exist_ok=True)
            if mode is not None:
                os.chmod(location, mode)
        except (OSError, ValueError) as e:
            raise UnableToCreateDirectory(path, str(e)) from e

    def delete_directory(self, path: str) -> None:
        location = self._prefix(path)
        if location == self.base_path:
            raise UnableToDeleteDirectory(path, "Refusing to delete the root directory.")
        if not location.is_dir():
            raise UnableToDeleteDirectory(path, "Directory does not exist.")
        try:
            shutil.rmtree(location)
        except OSError as e:
            raise UnableToDeleteDirectory(path, str(e)) from e
        logger.debug(f"Deleted directory {location}")
