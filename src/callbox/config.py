"""
Application configuration with environment-driven settings.

Deployment values (service URL, fallback number, credentials, apartment)
have no defaults and must come from the environment or .env.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "keyway-callbox"
    app_env: Literal["dev", "qa", "uat", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"

    # Keyway access-control service
    keyway_service_url: str = Field(
        ...,
        description="Base URL of the Keyway authentication service",
    )
    keyway_api_key: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("keyway_api_key", "api_key"),
        description="Value sent in the x-ad-access header",
    )
    keyway_fallback_number: str = Field(
        ...,
        description="Number dialed when the Keyway service cannot be used",
    )
    keyway_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=14,
        description="Outbound request timeout; must stay under Twilio's 15s webhook deadline.",
    )

    # Error reporting
    sentry_dsn: str | None = Field(
        default=None,
        description="Sentry DSN; reporting is disabled when unset",
    )
    sentry_flush_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        le=2.0,
        description="Upper bound on waiting for a report to be delivered",
    )

    # Twilio
    twilio_account_sid: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("twilio_account_sid", "account_sid"),
    )
    twilio_auth_token: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("twilio_auth_token", "auth_token"),
    )
    twilio_validate_signature: bool = Field(
        default=True,
        description="Reject webhook requests without a valid X-Twilio-Signature",
    )
    public_base_url: str = Field(
        default="",
        description="Public base URL Twilio uses to reach this service (signature validation).",
    )

    # Callbox
    callbox_unit: str = Field(..., description="Apartment number announced to visitors")
    callbox_floor: str = Field(..., description="Floor of the apartment")
    entry_path: str = Field(
        default="/index",
        description="Webhook path the call is redirected to after a denied code",
    )
    unlock_digits: str = Field(
        default="9",
        description="DTMF tone(s) that open the door",
    )
    unlock_pause_seconds: int = Field(default=1, ge=0, le=10)

    @field_validator("keyway_service_url", "public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("unlock_digits")
    @classmethod
    def validate_unlock_digits(cls, v: str) -> str:
        if not v or any(c not in "0123456789*#wW" for c in v):
            raise ValueError("unlock_digits must be DTMF digits (0-9, *, #, w)")
        return v


@lru_cache(maxsize=1)
def _get_settings_cached() -> Settings:
    return Settings()


def get_settings() -> Settings:
    # Under pytest the environment changes between tests; never hand out a
    # frozen instance there.
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return Settings()
    return _get_settings_cached()


@dataclass(frozen=True)
class CallboxConfig:
    """Immutable configuration injected into the call router and Keyway client."""

    service_url: str
    api_key: str
    fallback_number: str
    unit: str
    floor: str
    entry_path: str = "/index"
    unlock_digits: str = "9"
    unlock_pause_seconds: int = 1
    request_timeout_seconds: float = 10.0

    @property
    def spoken_unit(self) -> str:
        """Unit number read digit by digit, e.g. "507" -> "5-0-7"."""
        return "-".join(self.unit)

    def get_service_url(self, path: str) -> str:
        return f"{self.service_url.rstrip('/')}{path}"


def config_from_settings(settings: Settings) -> CallboxConfig:
    """Build CallboxConfig from environment settings."""
    return CallboxConfig(
        service_url=settings.keyway_service_url,
        api_key=settings.keyway_api_key,
        fallback_number=settings.keyway_fallback_number,
        unit=settings.callbox_unit,
        floor=settings.callbox_floor,
        entry_path=settings.entry_path,
        unlock_digits=settings.unlock_digits,
        unlock_pause_seconds=settings.unlock_pause_seconds,
        request_timeout_seconds=settings.keyway_timeout_seconds,
    )
