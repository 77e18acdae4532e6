"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_number(name: str, default: float, cast=float):
    """Read a positive number from the environment, rejecting garbage early."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "PocketFocus"
    DB_FILENAME = "pocketfocus.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self, data_dir: Path | str | None = None) -> None:
        self.DATA_DIR = self._resolve_data_dir(data_dir)
        self.DEV_MODE = _env_bool("POCKETFOCUS_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("POCKETFOCUS_DATABASE_URL", self._build_sqlite_url())
        self.USERNAME = os.getenv("POCKETFOCUS_USERNAME", "local")
        self.STREAK_CACHE_TTL = _env_number("POCKETFOCUS_STREAK_CACHE_TTL", 3.0)
        self.QUOTE_REMINDER_COUNT = _env_number("POCKETFOCUS_QUOTE_REMINDER_COUNT", 12, int)
        self.QUOTE_REMINDER_HOURS = _env_number("POCKETFOCUS_QUOTE_REMINDER_HOURS", 2.0)

    def _resolve_data_dir(self, data_dir: Path | str | None = None) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = data_dir or os.getenv("POCKETFOCUS_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to user-local storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            # Timer jobs run on APScheduler worker threads.
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for tests; points at a throwaway database in DATA_DIR."""

    DEBUG = False
    TESTING = True

    def __init__(self, data_dir: Path | str | None = None) -> None:
        super().__init__(data_dir)
        self.DEV_MODE = True
        self.DATABASE_URL = self._build_sqlite_url()
        self.STREAK_CACHE_TTL = 3.0
