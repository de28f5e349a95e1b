"""Configuration management using Pydantic Settings.

Features:
- Environment variable loading
- Type validation
- Default values
- Computed properties
"""

from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskgram.utils.constants import (
    DEFAULT_BITRIX_TIMEOUT_SECONDS,
    DEFAULT_DESCRIPTION_MAX_LENGTH,
    DEFAULT_LOG_LEVEL,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Bitrix24 settings
    bx24_domain: Optional[str] = Field(
        None, description="Bitrix24 portal URL (https://example.bitrix24.ru)"
    )
    bx24_incoming_user: Optional[str] = Field(
        None, description="Bitrix24 user ID that owns the incoming webhook"
    )
    bx24_incoming_token: Optional[SecretStr] = Field(
        None, description="Bitrix24 incoming webhook token"
    )
    bitrix_timeout_seconds: float = Field(
        DEFAULT_BITRIX_TIMEOUT_SECONDS,
        description="Timeout for a single Bitrix24 REST call",
        gt=0,
    )

    # Message formatting
    description_max_length: int = Field(
        DEFAULT_DESCRIPTION_MAX_LENGTH,
        description="Visible characters kept from task descriptions and comments",
        ge=1,
    )

    # Monitoring
    log_level: str = Field(DEFAULT_LOG_LEVEL, description="Logging level")

    # Development
    debug: bool = Field(False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("bx24_domain", mode="before")
    @classmethod
    def normalize_domain(cls, v: Any) -> Optional[str]:
        """Strip whitespace and trailing slashes from the portal URL."""
        if v is None:
            return None
        if isinstance(v, str):
            value = v.strip().rstrip("/")
            if not value:
                return None
            if not value.startswith(("http://", "https://")):
                raise ValueError(
                    f"bx24_domain must start with http:// or https://: {value}"
                )
            return value
        return v  # type: ignore[no-any-return]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()  # type: ignore[no-any-return]

    @property
    def bitrix_configured(self) -> bool:
        """Check if all Bitrix24 webhook credentials are present."""
        return bool(
            self.bx24_domain and self.bx24_incoming_user and self.bx24_incoming_token
        )

    @property
    def bx24_incoming_token_str(self) -> Optional[str]:
        """Get Bitrix24 webhook token as string."""
        if self.bx24_incoming_token:
            return self.bx24_incoming_token.get_secret_value()
        return None

    @property
    def bitrix_rest_url(self) -> Optional[str]:
        """Base URL for Bitrix24 REST calls, with a trailing slash."""
        if not self.bitrix_configured:
            return None
        return (
            f"{self.bx24_domain}/rest/{self.bx24_incoming_user}/"
            f"{self.bx24_incoming_token_str}/"
        )
