"""Settings for the back-office client.

Values come from the process environment first, then a `.env` file at the
repository root, then the defaults below. Background polling stays off
unless ENABLE_PRESENCE_POLLING is set.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Repository root (src/emlak_office/core -> root)
PROJECT_ROOT = Path(__file__).resolve().parents[3]
ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_API_BASE_URL = "https://emlakapi.onrender.com/api"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


class Settings(BaseSettings):
    """Connection, cache, polling and logging settings for one process."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Back-office API
    # -------------------------------------------------------------------------
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        alias="API_BASE_URL",
        description="Base URL of the back-office REST API.",
    )
    api_token: Optional[str] = Field(default=None, alias="API_TOKEN")
    api_timeout_seconds: float = Field(default=10.0, alias="API_TIMEOUT_SECONDS", gt=0)
    api_max_retries: int = Field(default=3, alias="API_MAX_RETRIES", ge=1)
    api_retry_backoff_seconds: float = Field(
        default=1.0,
        alias="API_RETRY_BACKOFF_SECONDS",
        ge=0,
        description="Multiplier for exponential backoff between GET retries.",
    )

    # -------------------------------------------------------------------------
    # Listings & cache
    # -------------------------------------------------------------------------
    default_page_size: int = Field(default=10, alias="DEFAULT_PAGE_SIZE", ge=1)
    cache_ttl_seconds: Optional[float] = Field(
        default=None,
        alias="CACHE_TTL_SECONDS",
        gt=0,
        description="Optional expiry for cached collections; unset keeps them for the session.",
    )

    # -------------------------------------------------------------------------
    # Presence polling
    # -------------------------------------------------------------------------
    enable_presence_polling: bool = Field(
        default=False,
        alias="ENABLE_PRESENCE_POLLING",
        description="Re-poll online users in the background",
    )
    presence_poll_seconds: int = Field(default=30, alias="PRESENCE_POLL_SECONDS", ge=1)

    # -------------------------------------------------------------------------
    # Logging & environment
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="text", alias="LOG_FORMAT")
    environment: str = Field(default="local", alias="ENVIRONMENT")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.strip().lower()
        if fmt not in LOG_FORMATS:
            raise ValueError(f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}")
        return fmt

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_production_token(self) -> "Settings":
        """Production sessions must carry a bearer token."""
        if self.environment == "production" and not self.api_token:
            raise ValueError("API_TOKEN required in production mode")
        return self

    def is_presence_polling_enabled(self) -> bool:
        """Check if the online-user poller should run."""
        return self.enable_presence_polling


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once; see `reload_settings`."""
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment again."""
    get_settings.cache_clear()
    return get_settings()
