"""Centralized settings management for casinoscrape."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """
    Runtime settings powered by pydantic-settings.

    Every field can be overridden through a ``CASINOSCRAPE_``-prefixed
    environment variable or a ``.env`` file in the working directory.
    """

    # -------------------------------------------------------------------------
    # ENVIRONMENT
    # -------------------------------------------------------------------------
    ENV: str = "development"

    # -------------------------------------------------------------------------
    # BROWSER
    # -------------------------------------------------------------------------
    HEADLESS: bool = True
    BROWSER_NAME: str = "chromium"
    NAV_TIMEOUT_S: float = Field(30.0, gt=0)

    # -------------------------------------------------------------------------
    # RETRIES
    # -------------------------------------------------------------------------
    MAX_ATTEMPTS: int = Field(3, ge=1)
    RETRY_DELAY_MIN_S: float = Field(5.0, ge=0)
    RETRY_DELAY_MAX_S: float = Field(10.0, ge=0)

    # -------------------------------------------------------------------------
    # SCHEDULING
    # -------------------------------------------------------------------------
    SCHEDULE: str = "* * * * *"
    TIMEZONE: str = "UTC"
    RUN_ON_INIT: bool = False
    # Per-scraper watchdog; None disables it
    SCRAPE_TIMEOUT_S: float | None = None

    # -------------------------------------------------------------------------
    # PATHS
    # -------------------------------------------------------------------------
    GAMES_CONFIG_PATH: Path = PACKAGE_DIR / "config" / "games.yaml"
    # JSON record store; in-memory store when unset
    STORE_PATH: Path | None = None

    # -------------------------------------------------------------------------
    # LOGGING
    # -------------------------------------------------------------------------
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False
    LOG_FILE: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="CASINOSCRAPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_delay_range(self) -> "Settings":
        if self.RETRY_DELAY_MAX_S < self.RETRY_DELAY_MIN_S:
            raise ValueError("RETRY_DELAY_MAX_S must be >= RETRY_DELAY_MIN_S")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
