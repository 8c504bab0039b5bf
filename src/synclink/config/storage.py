"""Where synclink keeps its registry database and HTTP cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "synclink"
DEFAULT_DB_FILENAME: Final[str] = "synclink.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


def _platform_data_home() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Files under one data directory; the directory is created on first use."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    http_cache_filename: str = HTTP_CACHE_FILENAME

    @classmethod
    def from_environment(cls) -> StorageConfig:
        override = os.getenv("SYNCLINK_DATA_DIR")
        data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
        return cls(data_dir=data_dir)

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def _file(self, filename: str, *, ensure: bool) -> Path:
        directory = self.resolve_data_dir()
        if ensure:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / filename

    def database_path(self, *, ensure: bool = True) -> Path:
        return self._file(self.database_filename, ensure=ensure)

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._file(self.http_cache_filename, ensure=ensure)

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    return StorageConfig.from_environment()


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""
    override = os.getenv("DATABASE_URI")
    if override:
        return DatabaseConfig(uri=override)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())


def get_http_cache_path() -> Path:
    return get_storage_config().http_cache_path()
