# Configuration management

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings  # type: ignore
from functools import lru_cache
from typing import Any, Dict


def _default_disks() -> Dict[str, Dict[str, Any]]:
    return {
        "local": {"driver": "local"},
        "public": {
            "driver": "local",
            "root": "./storage/app/public",
            "url": "/storage",
        },
    }


class FilesystemsSettings(BaseModel):
    default: str = "local"
    # Disk name -> driver configuration (driver, root, url, key, secret,
    # token, region, bucket, prefix, endpoint)
    disks: Dict[str, Dict[str, Any]] = Field(default_factory=_default_disks)


class Settings(BaseSettings):
    # Filesystems
    filesystems: FilesystemsSettings = Field(default_factory=FilesystemsSettings)
    storage_path: str = "./storage"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        env_file = ".env"
        env_nested_delimiter = "__"
        case_sensitive = False

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a value by dotted key, e.g. 'filesystems.disks.local'."""
        value: Any = self.model_dump()
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value


@lru_cache()
def get_settings() -> Settings:
    return Settings()
