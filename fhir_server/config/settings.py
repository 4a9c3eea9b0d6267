"""
Application settings using pydantic-settings.

Environment variables are prefixed with FHIR_SERVER_.
"""

from datetime import tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FHIR_SERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("onset_timezone")
    @classmethod
    def validate_onset_timezone(cls, value: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone '{value}' for FHIR_SERVER_ONSET_TIMEZONE")
        return value

    @field_validator("base_path")
    @classmethod
    def normalize_base_path(cls, value: str) -> str:
        """Base path is either empty or starts with '/' and has no trailing slash."""
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @model_validator(mode="after")
    def validate_paging(self) -> "Settings":
        """Default page size must fit under the maximum."""
        if self.default_count > self.max_count:
            raise ValueError(
                f"FHIR_SERVER_DEFAULT_COUNT ({self.default_count}) must not exceed "
                f"FHIR_SERVER_MAX_COUNT ({self.max_count})"
            )
        return self

    @property
    def onset_zone(self) -> tzinfo:
        """Zone used to promote date-only onsets to instants."""
        return ZoneInfo(self.onset_timezone)

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    base_path: str = "/fhir/R4"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Data settings
    onset_timezone: str = "UTC"  # Zone applied to date-only onset values
    seed_data_path: str | None = None  # JSON array of Condition resources loaded at startup

    # Search paging
    default_count: int = 50
    max_count: int = 500

    # CORS settings
    cors_origins: str = "*"

    # Request limits
    max_request_body_size: int = 1024 * 1024  # 1 MB default


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings() -> None:
    """Clear the cached settings (for testing)."""
    get_settings.cache_clear()
