"""Locations of the local record database and the preferences file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "arkive"
DEFAULT_DB_FILENAME: Final[str] = "arkive.db"
PREFERENCES_FILENAME: Final[str] = "preferences.json"


def platform_data_home() -> Path:
    """Return the per-user data root of the current platform.

    ``%LOCALAPPDATA%`` on Windows and ``$XDG_DATA_HOME`` elsewhere, each with
    the usual fallback below the home directory.
    """

    if os.name == "nt":
        configured, fallback = os.getenv("LOCALAPPDATA"), Path.home() / "AppData" / "Local"
    else:
        configured, fallback = os.getenv("XDG_DATA_HOME"), Path.home() / ".local" / "share"
    return Path(configured) if configured else fallback


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """One data directory holding the SQLite database and ``preferences.json``."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    preferences_filename: str = PREFERENCES_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def _file(self, filename: str, *, ensure: bool) -> Path:
        directory = self.resolve_data_dir()
        if ensure:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / filename

    def database_path(self, *, ensure: bool = True) -> Path:
        return self._file(self.database_filename, ensure=ensure)

    def preferences_path(self, *, ensure: bool = True) -> Path:
        return self._file(self.preferences_filename, ensure=ensure)

    def sqlite_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    """``ARKIVE_DATA_DIR`` when set, else ``arkive`` below the platform data root."""

    configured = optional_env_var("ARKIVE_DATA_DIR")
    data_dir = Path(configured) if configured else platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` overrides the SQLite file in the data directory."""

    uri = optional_env_var("DATABASE_URI") or (storage or get_storage_config()).sqlite_uri()
    return DatabaseConfig(uri=uri)
