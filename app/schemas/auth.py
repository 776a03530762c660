"""Schemas related to OAuth flows."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.oauth import Oauth2ServiceType


class OAuthCallbackPayload(BaseModel):
    """Payload sent to complete the OAuth callback exchange."""

    code: str = Field(..., description="Authorization code returned by Google OAuth.")
    state: str = Field(..., description="Opaque state token issued when starting OAuth.")


class OAuthConnectionResponse(BaseModel):
    """Result of a completed authorization."""

    status: str = "connected"
    member_id: int
    service_type: Oauth2ServiceType
    redirect_to: str | None = None


__all__ = ["OAuthCallbackPayload", "OAuthConnectionResponse"]
