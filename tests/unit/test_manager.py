"""
Unit tests for the filesystem manager.
"""

import builtins
import os
import threading
from unittest.mock import MagicMock, patch

import pytest

from diskstore.config.settings import Settings
from diskstore.filesystem.drivers.local import LocalDriver
from diskstore.filesystem.exceptions import DriverNotAvailableError, InvalidDiskError
from diskstore.filesystem.factory import create_filesystem_manager
from diskstore.filesystem.filesystem import Filesystem
from diskstore.filesystem.manager import FilesystemManager


@pytest.fixture
def manager(test_settings, tmp_path):
    return FilesystemManager(test_settings, default_local_root=str(tmp_path / "default"))


class TestDiskResolution:
    """Test resolving disks by name."""

    def test_default_disk_name(self, manager):
        assert manager.get_default_disk() == "local"

    def test_default_disk_falls_back_to_local(self, tmp_path):
        settings = Settings(filesystems={"disks": {}})
        assert FilesystemManager(settings).get_default_disk() == "local"

    def test_disk_without_name_uses_default(self, manager):
        assert manager.disk() is manager.disk("local")

    def test_disk_is_memoized(self, manager):
        first = manager.disk("public")
        second = manager.disk("public")

        assert first is second

    def test_distinct_names_get_distinct_instances(self, manager):
        assert manager.disk("local") is not manager.disk("public")

    def test_unknown_disk_raises(self, manager):
        with pytest.raises(InvalidDiskError) as exc_info:
            manager.disk("nonexistent")

        assert exc_info.value.name == "nonexistent"

    def test_empty_name_is_not_the_default(self, manager):
        with pytest.raises(InvalidDiskError) as exc_info:
            manager.disk("")

        assert exc_info.value.name == ""

    def test_unknown_disk_fails_every_time(self, manager):
        for _ in range(2):
            with pytest.raises(InvalidDiskError):
                manager.disk("nonexistent")

    def test_unsupported_driver_raises(self, manager):
        with pytest.raises(InvalidDiskError, match="ftp"):
            manager.disk("ftp")

    def test_unknown_disk_constructs_no_driver(self, manager):
        with patch("diskstore.filesystem.manager.LocalDriver") as driver_cls:
            with pytest.raises(InvalidDiskError):
                manager.disk("nonexistent")

        driver_cls.assert_not_called()

    def test_concurrent_resolution_builds_one_instance(self, manager):
        results = []
        barrier = threading.Barrier(8)

        def resolve():
            barrier.wait()
            results.append(manager.disk("public"))

        threads = [threading.Thread(target=resolve) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(result is results[0] for result in results)


class TestLocalDisks:
    """Test local driver construction."""

    def test_configured_root(self, manager, tmp_path):
        disk = manager.disk("local")

        assert isinstance(disk.driver, LocalDriver)
        assert disk.path("a.txt") == f"{tmp_path / 'local'}/a.txt"
        assert disk.url("a.txt") == "a.txt"

    def test_configured_url(self, manager):
        assert manager.disk("public").url("a/b.txt") == "https://cdn.example.com/a/b.txt"

    def test_driver_defaults_to_local_and_root_to_injected_default(self, manager, tmp_path):
        disk = manager.disk("bare")

        assert isinstance(disk.driver, LocalDriver)
        assert disk.path("a.txt") == f"{tmp_path / 'default'}/a.txt"

    def test_root_falls_back_to_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = Settings(filesystems={"disks": {"local": {"driver": "local"}}})

        disk = FilesystemManager(settings).disk()

        expected = os.path.join(os.getcwd(), "storage", "app")
        assert disk.path("a.txt") == f"{expected}/a.txt"

    def test_scenario_put_then_path(self, tmp_path):
        root = str(tmp_path / "store")
        settings = Settings(filesystems={
            "default": "local",
            "disks": {"local": {"driver": "local", "root": root}},
        })
        disk = FilesystemManager(settings).disk("local")

        disk.put("reports/x.txt", "hello")

        assert disk.path("reports/x.txt") == f"{root}/reports/x.txt"
        assert disk.get("reports/x.txt") == b"hello"


class TestS3Disks:
    """Test S3 driver construction."""

    def test_s3_disk(self, manager):
        client = MagicMock()
        with patch("diskstore.filesystem.drivers.s3.build_s3_client", return_value=client) as build:
            disk = manager.disk("s3")

        config = build.call_args[0][0]
        assert config["key"] == "AKIAEXAMPLE"
        assert disk.driver.client is client
        assert disk.driver.bucket == "assets"
        assert disk.driver.prefix == "uploads"
        assert disk.path("a.txt") == "a.txt"
        assert disk.url("a.txt") == "https://assets.s3.amazonaws.com/uploads/a.txt"

    def test_s3_disk_configured_url(self, tmp_path):
        settings = Settings(filesystems={"disks": {"s3": {
            "driver": "s3", "bucket": "assets", "url": "https://files.example.com",
        }}})
        with patch("diskstore.filesystem.drivers.s3.build_s3_client", return_value=MagicMock()):
            disk = FilesystemManager(settings).disk("s3")

        assert disk.url("a.txt") == "https://files.example.com/a.txt"

    def test_s3_disk_default_url_without_prefix(self, tmp_path):
        settings = Settings(filesystems={"disks": {"s3": {"driver": "s3", "bucket": "assets"}}})
        with patch("diskstore.filesystem.drivers.s3.build_s3_client", return_value=MagicMock()):
            disk = FilesystemManager(settings).disk("s3")

        assert disk.url("a.txt") == "https://assets.s3.amazonaws.com/a.txt"

    def test_missing_boto3_raises_driver_not_available(self, manager, monkeypatch):
        real_import = builtins.__import__

        def fake_import(name, *args, **kwargs):
            if name == "diskstore.filesystem.drivers.s3":
                raise ImportError("No module named 'boto3'")
            return real_import(name, *args, **kwargs)

        monkeypatch.setattr(builtins, "__import__", fake_import)

        with pytest.raises(DriverNotAvailableError, match="boto3"):
            manager.disk("s3")

    def test_failed_resolution_is_not_cached(self, manager, monkeypatch):
        real_import = builtins.__import__

        def fake_import(name, *args, **kwargs):
            if name == "diskstore.filesystem.drivers.s3":
                raise ImportError("No module named 'boto3'")
            return real_import(name, *args, **kwargs)

        monkeypatch.setattr(builtins, "__import__", fake_import)
        with pytest.raises(DriverNotAvailableError):
            manager.disk("s3")
        monkeypatch.setattr(builtins, "__import__", real_import)

        with patch("diskstore.filesystem.drivers.s3.build_s3_client", return_value=MagicMock()):
            assert isinstance(manager.disk("s3"), Filesystem)


class TestExtend:
    """Test custom driver registration."""

    def test_custom_driver(self, tmp_path):
        settings = Settings(filesystems={"disks": {"memory": {"driver": "memory"}}})
        manager = FilesystemManager(settings)
        custom = Filesystem(MagicMock())
        creator = MagicMock(return_value=custom)

        manager.extend("memory", creator)

        assert manager.disk("memory") is custom
        creator.assert_called_once_with({"driver": "memory"})

    def test_builtin_driver_cannot_be_overridden(self, manager):
        with pytest.raises(ValueError):
            manager.extend("local", MagicMock())


class TestDefaultDiskDelegation:
    """Test manager methods forwarding to the default disk."""

    def test_put_get_exists(self, manager):
        assert manager.put("a.txt", b"hello") is True
        assert manager.get("a.txt") == b"hello"
        assert manager.exists("a.txt") is True
        assert manager.disk("local").get("a.txt") == b"hello"

    def test_append_and_size(self, manager):
        manager.put("a.txt", b"ab")
        manager.append("a.txt", b"c")
        manager.prepend("a.txt", b"_")

        assert manager.get("a.txt") == b"_abc"
        assert manager.size("a.txt") == 4

    def test_copy_move_delete(self, manager):
        manager.put("a.txt", b"x")

        assert manager.copy("a.txt", "b.txt") is True
        assert manager.move("b.txt", "c.txt") is True
        assert sorted(manager.files()) == ["a.txt", "c.txt"]
        assert manager.delete(["a.txt", "c.txt"]) is True
        assert manager.files() == []

    def test_directories(self, manager):
        assert manager.make_directory("d/e") is True
        assert manager.directories() == ["d"]
        assert manager.directories(recursive=True) == ["d", "d/e"]
        assert manager.delete_directory("d") is True

    def test_url_and_path(self, manager, tmp_path):
        assert manager.url("a.txt") == "a.txt"
        assert manager.path("a.txt") == f"{tmp_path / 'local'}/a.txt"

    def test_delegation_follows_configured_default(self, test_settings, tmp_path):
        test_settings.filesystems.default = "public"
        manager = FilesystemManager(test_settings)

        assert manager.url("a.txt") == "https://cdn.example.com/a.txt"


class TestFactory:
    """Test explicit manager construction."""

    def test_create_from_settings(self, test_settings, tmp_path):
        manager = create_filesystem_manager(test_settings)

        assert isinstance(manager, FilesystemManager)
        assert manager.config is test_settings
        assert manager.default_local_root == os.path.join(str(tmp_path / "storage"), "app")

    def test_create_uses_loaded_settings(self, test_settings):
        with patch("diskstore.filesystem.factory.get_settings", return_value=test_settings):
            manager = create_filesystem_manager()

        assert manager.config is test_settings

    def test_each_call_builds_a_new_manager(self, test_settings):
        assert create_filesystem_manager(test_settings) is not create_filesystem_manager(test_settings)

    def test_create_configures_logging_from_settings(self, test_settings):
        test_settings.log_level = "DEBUG"
        test_settings.log_json = False

        with patch("diskstore.filesystem.factory.setup_logging") as setup:
            create_filesystem_manager(test_settings)

        setup.assert_called_once_with("DEBUG", False)

    def test_create_can_skip_logging_setup(self, test_settings):
        with patch("diskstore.filesystem.factory.setup_logging") as setup:
            create_filesystem_manager(test_settings, configure_logging=False)

        setup.assert_not_called()
