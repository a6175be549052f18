"""
Filesystem manager resolving named disks into Filesystem instances.

Disks are configured under 'filesystems.disks.<name>' and built lazily on
first use. Each resolved Filesystem is cached for the manager's lifetime;
reconfiguration requires a new manager.
"""

import logging
import os
import threading
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Union

from diskstore.common.logging_config import PerformanceTracker, disk_context
from diskstore.config.settings import Settings
from diskstore.filesystem.drivers.local import LocalDriver
from diskstore.filesystem.exceptions import DriverNotAvailableError, InvalidDiskError
from diskstore.filesystem.filesystem import Filesystem
from diskstore.filesystem.uploads import UploadedFile

logger = logging.getLogger(__name__)

DiskCreator = Callable[[Dict[str, Any]], Filesystem]


class FilesystemManager:
    """
    Resolves disk names to memoized Filesystem instances.

    The manager also exposes every Filesystem operation directly; those
    calls go to the default disk.
    """

    def __init__(self, config: Settings, default_local_root: Optional[str] = None):
        """
        Initialize the manager.

        Args:
            config: Settings providing 'filesystems.*' keys via get()
            default_local_root: Root for local disks that don't configure one
        """
        self.config = config
        self.default_local_root = default_local_root
        self._disks: Dict[str, Filesystem] = {}
        self._lock = threading.Lock()
        self._custom_creators: Dict[str, DiskCreator] = {}
        self._creators: Dict[str, DiskCreator] = {
            "local": self._create_local_driver,
            "s3": self._create_s3_driver,
        }

    def disk(self, name: Optional[str] = None) -> Filesystem:
        """
        Get a filesystem disk instance.

        Args:
            name: Disk name (default disk when omitted)

        Returns:
            Cached Filesystem for the disk

        Raises:
            InvalidDiskError: If the disk is not configured or its driver is unsupported
            DriverNotAvailableError: If the driver's library is not installed
        """
        if name is None:
            name = self.get_default_disk()

        filesystem = self._disks.get(name)
        if filesystem is not None:
            return filesystem

        with self._lock:
            # Another thread may have resolved it while we waited
            filesystem = self._disks.get(name)
            if filesystem is None:
                filesystem = self._resolve(name)
                self._disks[name] = filesystem
        return filesystem

    def get_default_disk(self) -> str:
        """Get the default disk name."""
        return str(self.config.get("filesystems.default", "local"))

    def extend(self, driver: str, creator: DiskCreator) -> None:
        """
        Register a creator for a custom driver kind.

        Args:
            driver: Driver name used in disk configuration
            creator: Callable building a Filesystem from the disk configuration

        Raises:
            ValueError: If the name clashes with a built-in driver
        """
        if driver in self._creators:
            raise ValueError(f"Cannot override built-in driver: {driver}")
        self._custom_creators[driver] = creator

    def _get_disk_config(self, name: str) -> Optional[Dict[str, Any]]:
        config = self.config.get(f"filesystems.disks.{name}")
        return config if isinstance(config, dict) else None

    def _resolve(self, name: str) -> Filesystem:
        config = self._get_disk_config(name)
        if config is None:
            raise InvalidDiskError(name)

        driver = config.get("driver") or "local"
        creator = self._creators.get(driver) or self._custom_creators.get(driver)
        if creator is None:
            raise InvalidDiskError(
                name, f"Driver [{driver}] for disk [{name}] is not supported.")

        with disk_context(name), PerformanceTracker(
            "resolve_disk", logger, logging.DEBUG, disk=name, driver=driver
        ):
            return creator(config)

    def _create_local_driver(self, config: Dict[str, Any]) -> Filesystem:
        root = config.get("root") or self.default_local_root \
            or os.path.join(os.getcwd(), "storage", "app")
        return Filesystem(LocalDriver(root), root, config.get("url"))

    def _create_s3_driver(self, config: Dict[str, Any]) -> Filesystem:
        try:
            from diskstore.filesystem.drivers.s3 import S3Driver, build_s3_client
        except ImportError as e:
            raise DriverNotAvailableError(
                "The s3 driver requires boto3. Install with: pip install diskstore[s3]"
            ) from e

        bucket = config.get("bucket") or ""
        prefix = config.get("prefix") or ""
        driver = S3Driver(build_s3_client(config), bucket, prefix)

        url = config.get("url")
        if url is None:
            url = f"https://{bucket}.s3.amazonaws.com"
            if driver.prefix:
                url = f"{url}/{driver.prefix}"

        return Filesystem(driver, "", url)

    # Default disk operations

    def exists(self, path: str) -> bool:
        return self.disk().exists(path)

    def get(self, path: str) -> bytes:
        return self.disk().get(path)

    def read_stream(self, path: str) -> BinaryIO:
        return self.disk().read_stream(path)

    def put(self, path: str, contents: Union[bytes, str], options: Optional[Dict[str, Any]] = None) -> bool:
        return self.disk().put(path, contents, options)

    def put_stream(self, path: str, stream: BinaryIO, options: Optional[Dict[str, Any]] = None) -> bool:
        return self.disk().put_stream(path, stream, options)

    def put_file(self, path: str, file: UploadedFile, options: Optional[Dict[str, Any]] = None) -> Optional[str]:
        return self.disk().put_file(path, file, options)

    def put_file_as(
        self,
        path: str,
        file: UploadedFile,
        name: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        return self.disk().put_file_as(path, file, name, options)

    def prepend(self, path: str, data: Union[bytes, str]) -> bool:
        return self.disk().prepend(path, data)

    def append(self, path: str, data: Union[bytes, str]) -> bool:
        return self.disk().append(path, data)

    def delete(self, paths: Union[str, List[str]]) -> bool:
        return self.disk().delete(paths)

    def copy(self, source: str, destination: str) -> bool:
        return self.disk().copy(source, destination)

    def move(self, source: str, destination: str) -> bool:
        return self.disk().move(source, destination)

    def size(self, path: str) -> int:
        return self.disk().size(path)

    def last_modified(self, path: str) -> int:
        return self.disk().last_modified(path)

    def mime_type(self, path: str) -> Optional[str]:
        return self.disk().mime_type(path)

    def files(self, directory: str = "", recursive: bool = False) -> List[str]:
        return self.disk().files(directory, recursive)

    def directories(self, directory: str = "", recursive: bool = False) -> List[str]:
        return self.disk().directories(directory, recursive)

    def make_directory(self, path: str) -> bool:
        return self.disk().make_directory(path)

    def delete_directory(self, directory: str) -> bool:
        return self.disk().delete_directory(directory)

    def url(self, path: str) -> str:
        return self.disk().url(path)

    def temporary_url(self, path: str, expiration: Union[datetime, timedelta]) -> str:
        return self.disk().temporary_url(path, expiration)

    def path(self, path: str) -> str:
        return self.disk().path(path)
