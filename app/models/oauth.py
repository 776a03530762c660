"""
Domain models for OAuth2 authorization persistence.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Oauth2ServiceType(str, Enum):
    """External services a member can authorize the platform against."""

    GOOGLE_CALENDAR = "GOOGLE_CALENDAR"
    YOUTUBE = "YOUTUBE"


class Oauth2Authorization(BaseModel):
    """The stored credential pair for one (member, service type)."""

    member_id: int
    service_type: Oauth2ServiceType
    access_token: str
    refresh_token: str
    expiry_time: datetime
    scope: Optional[str] = None
    token_type: Optional[str] = Field(None, description="Usually 'Bearer'.")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def needs_refresh(self, *, now: datetime, margin: timedelta) -> bool:
        """True once ``now`` has reached the expiry minus the safety margin."""
        expiry = self.expiry_time
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return now >= expiry - margin

    def with_refreshed_tokens(
        self,
        *,
        access_token: str,
        expires_in: int,
        refreshed_at: datetime,
        refresh_token: Optional[str] = None,
        scope: Optional[str] = None,
        token_type: Optional[str] = None,
    ) -> "Oauth2Authorization":
        """Return a copy carrying a new access token and expiry together."""
        return self.model_copy(
            update={
                "access_token": access_token,
                "refresh_token": refresh_token or self.refresh_token,
                "expiry_time": refreshed_at + timedelta(seconds=expires_in),
                "scope": scope or self.scope,
                "token_type": token_type or self.token_type,
                "updated_at": refreshed_at,
            }
        )


__all__ = ["Oauth2Authorization", "Oauth2ServiceType"]
