"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from decimal import Decimal
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


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "FinHigh"
    DB_FILENAME = "finhigh.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self, data_dir: Path | None = None) -> None:
        self.DATA_DIR = self._resolve_data_dir(data_dir)
        self.DEV_MODE = _env_bool("FINHIGH_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("FINHIGH_DATABASE_URL", self._build_sqlite_url())
        self.SAVINGS_CARVE_OUT = Decimal(os.getenv("FINHIGH_SAVINGS_CARVE_OUT", "100.00"))
        self.RECENT_LIMIT = _env_int("FINHIGH_RECENT_LIMIT", 20)
        self.MAX_RETRIES = _env_int("FINHIGH_MAX_RETRIES", 5)
        self.LOCK_TIMEOUT = _env_int("FINHIGH_LOCK_TIMEOUT", 30)
        if self.SAVINGS_CARVE_OUT < 0:
            raise ValueError("FINHIGH_SAVINGS_CARVE_OUT must not be negative.")
        if self.MAX_RETRIES < 1:
            raise ValueError("FINHIGH_MAX_RETRIES must be at least 1.")

    def _resolve_data_dir(self, data_dir: Path | None = None) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = data_dir or os.getenv("FINHIGH_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.is_sqlite:
            engine_options["connect_args"] = {
                "check_same_thread": False,
                "timeout": self.LOCK_TIMEOUT,
            }
        else:
            engine_options["pool_pre_ping"] = True
        return engine_options


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration pointed at an explicit database, used by the test-suite."""

    __test__ = False
    TESTING = True

    def __init__(self, data_dir: Path, **overrides: Any) -> None:
        super().__init__(data_dir)
        self.DATABASE_URL = f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"
        for key, value in overrides.items():
            setattr(self, key, value)
