# Test configuration

import pytest
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def test_settings(tmp_path):
    """Settings with a local default disk, a public disk and an S3 disk"""
    from diskstore.config.settings import Settings
    return Settings(
        storage_path=str(tmp_path / "storage"),
        filesystems={
            "default": "local",
            "disks": {
                "local": {"driver": "local", "root": str(tmp_path / "local")},
                "public": {
                    "driver": "local",
                    "root": str(tmp_path / "public"),
                    "url": "https://cdn.example.com/",
                },
                "bare": {},
                "s3": {
                    "driver": "s3",
                    "key": "AKIAEXAMPLE",
                    "secret": "secret",
                    "bucket": "assets",
                    "prefix": "uploads",
                },
                "ftp": {"driver": "ftp"},
            },
        },
    )


@pytest.fixture
def local_driver(tmp_path):
    """Local driver rooted in a temporary directory"""
    from diskstore.filesystem.drivers.local import LocalDriver
    return LocalDriver(str(tmp_path / "disk"))


@pytest.fixture
def filesystem(local_driver):
    """Filesystem facade over the temporary local driver"""
    from diskstore.filesystem.filesystem import Filesystem
    return Filesystem(local_driver, str(local_driver.base_path))
