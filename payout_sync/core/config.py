from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings loaded from environment variables and .env file.

    This uses pydantic-settings so that we get type validation and defaults.
    Tunables of the sync pipeline itself live in ``payout_sync.transactions.config``
    and are derived from these values.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Environment mode: selects the log renderer."""

    DEBUG: bool = False
    """Enable debug-level logging."""

    # DB
    DATABASE_URL: Optional[str] = None
    """Database connection URL. If None, uses a local SQLite file."""

    # Gate panel
    GATE_BASE_URL: str = "https://panel.gate.cx"
    """Base URL of the payout platform."""

    GATE_REQUEST_TIMEOUT: float = 30.0
    """HTTP timeout in seconds for platform requests."""

    # Poll loop
    POLL_INTERVAL_SECONDS: float = 10.0
    """Seconds between two checks for pending sync orders."""

    SHUTDOWN_GRACE_SECONDS: float = 1.0
    """How long in-flight work may run after a stop signal."""

    # Pagination
    DEFAULT_PAGES_TO_FETCH: int = 10
    """Pages fetched per cabinet when an order names no page counts."""

    PAGE_DELAY_SECONDS: float = 1.0
    """Pause between two page requests."""

    # Model config
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    def get_database_url(self) -> str:
        return self.DATABASE_URL or "sqlite+aiosqlite:///./payout_sync.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly."""
    return Settings()
