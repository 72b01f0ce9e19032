"""
HTTP Analyzer Configuration Module

Centralized configuration management using pydantic-settings.
Loads settings from environment variables and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Find the project root (where .env is located)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # ==========================================================================
    # Capture Configuration
    # ==========================================================================
    max_items: int = Field(
        default=50,
        description="Maximum number of exchanges held by the correlation store",
    )
    ignored_url_prefixes: list[str] = Field(
        default_factory=lambda: ["chrome-extension://", "chrome://"],
        description="Request URLs starting with any of these are never recorded",
    )
    disabled_rules: list[str] = Field(
        default_factory=list,
        description="Rule ids excluded from the tagging catalog",
    )

    # ==========================================================================
    # Rate-Limit Tracking
    # ==========================================================================
    rate_limit_window_seconds: float = Field(
        default=5 * 60,  # 5 minutes
        description="Trailing window for counting 429 responses (seconds)",
    )
    sweep_interval_seconds: float = Field(
        default=60,
        description="Interval of the periodic rate-limit cleanup (seconds)",
    )

    # ==========================================================================
    # Export
    # ==========================================================================
    export_filename: str = Field(
        default="http_analyzer_export.json",
        description="Suggested filename for exported captures",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log output format",
    )

    @field_validator("max_items")
    @classmethod
    def ensure_positive_size(cls, v: int) -> int:
        """Reject store sizes that could never hold an exchange."""
        if v < 1:
            raise ValueError("max_items must be at least 1")
        return v

    @field_validator("rate_limit_window_seconds", "sweep_interval_seconds")
    @classmethod
    def ensure_positive_interval(cls, v: float) -> float:
        """Reject zero or negative time intervals."""
        if v <= 0:
            raise ValueError("intervals must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience alias
settings = get_settings()
