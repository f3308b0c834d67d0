# notehub/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

# Load .env when running outside Docker (safe if missing)
load_dotenv()

STORAGE_MEMORY = "memory"
STORAGE_SQL = "sql"

# "postgres" is the name operators use; both select the SQLAlchemy backend
_STORAGE_ALIASES = {
    "memory": STORAGE_MEMORY,
    "inmemory": STORAGE_MEMORY,
    "postgres": STORAGE_SQL,
    "postgresql": STORAGE_SQL,
    "sql": STORAGE_SQL,
}

DEFAULT_CORS_ORIGINS = [
    "http://localhost:8000",
    "http://127.0.0.1:8000",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def normalize_storage_type(value: str) -> Optional[str]:
    """Map a STORAGE_TYPE value to a known backend name, or None if unknown."""
    return _STORAGE_ALIASES.get(value.strip().lower())


def _database_url_from_parts() -> str:
    # Mirrors the DB_* variables of the original deployment; DATABASE_URL wins.
    url = URL.create(
        "postgresql+psycopg2",
        username=os.getenv("DB_USER", "postgres"),
        password=os.getenv("DB_PASSWORD", "postgres"),
        host=os.getenv("DB_HOST", "localhost"),
        port=_env_int("DB_PORT", 5432),
        database=os.getenv("DB_NAME", "notes_db"),
        query={"sslmode": "require"} if _env_bool("DB_USE_SSL") else {},
    )
    return url.render_as_string(hide_password=False)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read from the environment."""

    storage_type: str = STORAGE_MEMORY
    database_url: str = "postgresql://postgres:postgres@db:5432/postgres"
    db_pool_size: int = 10
    db_echo: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_format: str = "console"
    app_version: str = "0.1.0"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @classmethod
    def from_env(cls) -> "Settings":
        cors = os.getenv("CORS_ORIGINS")
        return cls(
            storage_type=os.getenv("STORAGE_TYPE", STORAGE_MEMORY),
            database_url=os.getenv("DATABASE_URL") or _database_url_from_parts(),
            db_pool_size=_env_int("DB_POOL_SIZE", _env_int("DB_MAX_CONNECTIONS", 10)),
            db_echo=_env_bool("DB_ECHO"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8000),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "console").lower(),
            app_version=os.getenv("APP_VERSION", "0.1.0"),
            cors_origins=(
                [o.strip() for o in cors.split(",") if o.strip()]
                if cors
                else list(DEFAULT_CORS_ORIGINS)
            ),
        )

    def describe(self) -> dict:
        """Loggable view of the settings with the database password masked."""
        try:
            db = make_url(self.database_url).render_as_string(hide_password=True)
        except ArgumentError:
            db = "<unparseable>"
        return {
            "storage_type": self.storage_type,
            "database_url": db,
            "db_pool_size": self.db_pool_size,
            "host": self.host,
            "port": self.port,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "app_version": self.app_version,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
