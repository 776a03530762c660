"""
Google OAuth utilities.

These helpers manage the consent redirect, the authorization-code grant and
the refresh-token grant.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
from dataclasses import dataclass
from hashlib import sha256
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlencode

import httpx

from fastapi import HTTPException, status

from app.core.config import GoogleSettings


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Malformed OAuth state.",
            ) from exc
        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid OAuth state signature.",
            )
        return json.loads(serialized)


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint rejects a grant or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code

    @property
    def grant_rejected(self) -> bool:
        """True when Google refused the grant itself (revoked or expired token).

        ``invalid_client`` and similar errors point at our own configuration and
        are not something the member can fix by consenting again.
        """
        return self.error_code == "invalid_grant"


@dataclass(frozen=True)
class TokenGrant:
    """Token endpoint response, normalised."""

    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None


class GoogleOAuthClient:
    """Build Google authorization URLs and talk to the token endpoint."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(self, google_settings: GoogleSettings, *, timeout: float = 10.0) -> None:
        self._google = google_settings
        self._timeout = timeout

    def build_authorization_url(
        self, state: str, scopes: Iterable[str], access_type: str = "offline"
    ) -> str:
        """Construct the Google OAuth consent URL."""
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": str(self._google.redirect_uri),
            "response_type": "code",
            "scope": " ".join(scopes),
            "access_type": access_type,
            "include_granted_scopes": "true",
            "prompt": "consent",
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for tokens."""
        return await self._request_token(
            {
                "code": code,
                "client_id": self._google.client_id,
                "client_secret": self._google.client_secret,
                "redirect_uri": str(self._google.redirect_uri),
                "grant_type": "authorization_code",
            }
        )

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Refresh the access token using a stored refresh token."""
        return await self._request_token(
            {
                "client_id": self._google.client_id,
                "client_secret": self._google.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )

    async def _request_token(self, payload: Dict[str, str]) -> TokenGrant:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            error_code = None
            try:
                error_code = response.json().get("error")
            except ValueError:
                pass
            raise OAuthTokenExchangeError(
                response.text,
                status_code=response.status_code,
                error_code=error_code,
            )

        token_payload = response.json()
        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise OAuthTokenExchangeError("Incomplete token payload returned from Google.")

        return TokenGrant(
            access_token=access_token,
            expires_in=int(expires_in),
            refresh_token=token_payload.get("refresh_token"),
            scope=token_payload.get("scope"),
            token_type=token_payload.get("token_type"),
        )


__all__ = [
    "GoogleOAuthClient",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
    "TokenGrant",
]
