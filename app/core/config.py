"""
Application configuration models and helpers.

Centralizes settings management so both the FastAPI app and the queue
consumer share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


def _split_csv(value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
    if isinstance(value, tuple):
        return value
    if isinstance(value, list):
        return tuple(value)
    return tuple(item.strip() for item in value.split(",") if item.strip())


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")


class GoogleSettings(_EnvSettings):
    """Configuration required for interacting with Google APIs."""

    client_id: str = Field(..., validation_alias="GOOGLE_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="GOOGLE_REDIRECT_URI")
    application_name: str = Field("Feen", validation_alias="GOOGLE_APPLICATION_NAME")
    service_account_email: Optional[str] = Field(
        None,
        validation_alias="GOOGLE_SERVICE_ACCOUNT_EMAIL",
        description=(
            "Delegated service account that newly created calendars are shared "
            "with when the creator belongs to the origin domain."
        ),
    )
    origin_domain: Optional[str] = Field(
        None,
        validation_alias="ORIGIN_DOMAIN",
        description="Email domain treated as internal to the platform.",
    )


class AWSSettings(_EnvSettings):
    """Settings for AWS services used by the platform."""

    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    event_queue_url: Optional[str] = Field(
        None,
        validation_alias="EVENT_QUEUE_URL",
        description="SQS queue receiving domain events. SQLite queue when omitted.",
    )


class SecuritySettings(_EnvSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    previous_token_encryption_secrets: Annotated[tuple[str, ...], NoDecode] = Field(
        (),
        validation_alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Retired secrets still accepted for decryption (comma separated).",
    )

    @field_validator("previous_token_encryption_secrets", mode="before")
    @classmethod
    def _split_secrets(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        return _split_csv(value)


class SlackSettings(_EnvSettings):
    """Incoming webhook used for operational error reports."""

    webhook_url: Optional[HttpUrl] = Field(None, validation_alias="SLACK_WEBHOOK_URL")
    timeout_seconds: float = Field(5.0, validation_alias="SLACK_TIMEOUT_SECONDS")


class OAuthSettings(_EnvSettings):
    """OAuth flow configuration."""

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    refresh_margin_seconds: int = Field(
        300,
        validation_alias="OAUTH_REFRESH_MARGIN_SECONDS",
        description="Access tokens expiring within this window are refreshed early.",
    )
    calendar_scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "https://www.googleapis.com/auth/calendar",
            "https://www.googleapis.com/auth/userinfo.email",
            "openid",
        ),
        validation_alias="OAUTH_CALENDAR_SCOPES",
    )
    youtube_scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "https://www.googleapis.com/auth/youtube",
            "https://www.googleapis.com/auth/youtube.force-ssl",
        ),
        validation_alias="OAUTH_YOUTUBE_SCOPES",
    )

    @field_validator("calendar_scopes", "youtube_scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        return _split_csv(value)


class AppSettings(_EnvSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    database_path: str = Field("data/feen.db", validation_alias="DATABASE_PATH")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        validation_alias="FRONTEND_BASE_URL",
        description="Optional URL for redirecting users back to the front-end.",
    )
    event_publisher_max_workers: int = Field(
        4, validation_alias="EVENT_PUBLISHER_MAX_WORKERS"
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "AWSSettings",
    "GoogleSettings",
    "OAuthSettings",
    "SecuritySettings",
    "SlackSettings",
    "get_settings",
]
