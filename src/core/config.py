"""Configuration management for the toll-free migration tool.

All configuration is loaded from environment variables and/or .env file.
Destructive behaviour is opt-in: DRY_RUN defaults to True.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root detection
PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Runtime configuration powered by environment variables and .env overrides.

    All settings can be configured via:
    1. Environment variables (highest priority)
    2. .env file in project root (loaded automatically)
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # Twilio (parent account)
    # -------------------------------------------------------------------------
    twilio_account_sid: Optional[str] = Field(default=None, alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: Optional[str] = Field(default=None, alias="TWILIO_AUTH_TOKEN")
    twilio_timeout_seconds: float = Field(
        default=30.0,
        alias="TWILIO_TIMEOUT_SECONDS",
        gt=0,
        description="Per-request HTTP timeout for every Twilio API call",
    )
    subaccount_status: str = Field(
        default="active",
        alias="SUBACCOUNT_STATUS",
        description="Status filter used when listing sub-accounts",
    )

    # -------------------------------------------------------------------------
    # Migration policy
    # -------------------------------------------------------------------------
    toll_free_country: str = Field(
        default="US",
        alias="TOLL_FREE_COUNTRY",
        min_length=2,
        max_length=2,
        description="ISO country searched when purchasing toll-free numbers",
    )
    error_window_days: int = Field(default=7, alias="ERROR_WINDOW_DAYS", ge=1)
    delivery_error_codes: List[int] = Field(
        default_factory=lambda: [30034, 30035],
        alias="DELIVERY_ERROR_CODES",
        description="Message error codes that mark a long code for migration",
    )
    verification_workers: int = Field(default=4, alias="VERIFICATION_WORKERS", ge=1)

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    dry_run: bool = Field(default=True, alias="DRY_RUN")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="text", alias="LOG_FORMAT")  # "text" or "json"
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    environment: str = Field(default="local", alias="ENVIRONMENT")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Ensure log format is valid."""
        lower = v.lower()
        if lower not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return lower

    @field_validator("delivery_error_codes")
    @classmethod
    def validate_error_codes(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("delivery_error_codes must list at least one code")
        return sorted(set(v))

    @field_validator("toll_free_country")
    @classmethod
    def validate_country(cls, v: str) -> str:
        return v.upper()

    def is_twilio_enabled(self) -> bool:
        """Check if parent account credentials are configured."""
        return bool(self.twilio_account_sid and self.twilio_auth_token)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and cached. To reload settings,
    call `get_settings.cache_clear()` first.

    Returns:
        Settings object with all configuration.
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Clear settings cache and reload from environment.

    Useful for testing or after modifying .env file.
    """
    get_settings.cache_clear()
    return get_settings()
