"""
Hands out valid OAuth2 tokens, refreshing them shortly before they expire.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, TYPE_CHECKING

from google.oauth2.credentials import Credentials

from app.clients.google_auth import GoogleOAuthClient, OAuthTokenExchangeError
from app.core.config import OAuthSettings
from app.core.errors import (
    AuthorizationRequiredError,
    ExternalServiceError,
    ReauthorizationRequiredError,
)
from app.models.oauth import Oauth2Authorization, Oauth2ServiceType

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from app.repositories.authorizations import AuthorizationStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenRefresher:
    """Manages access to persisted OAuth2 authorizations.

    Concurrent callers for the same member may both refresh; the last write
    wins. A caller whose refresh token was already rotated away gets a
    ``ReauthorizationRequiredError`` from the provider rejection and is not
    retried.
    """

    def __init__(
        self,
        store: "AuthorizationStore",
        oauth_client: GoogleOAuthClient,
        oauth_settings: OAuthSettings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._oauth_settings = oauth_settings
        self._margin = timedelta(seconds=oauth_settings.refresh_margin_seconds)
        self._clock = clock

    def scopes_for(self, service_type: Oauth2ServiceType) -> tuple[str, ...]:
        if service_type == Oauth2ServiceType.YOUTUBE:
            return self._oauth_settings.youtube_scopes
        return self._oauth_settings.calendar_scopes

    async def get_valid_token(
        self, member_id: int, service_type: Oauth2ServiceType
    ) -> Oauth2Authorization:
        """Return the member's authorization, refreshed if it is about to expire."""
        authorization = self._store.find(member_id, service_type)
        if authorization is None:
            raise AuthorizationRequiredError(member_id, service_type)

        now = self._clock()
        if not authorization.needs_refresh(now=now, margin=self._margin):
            return authorization

        logger.info(
            "Refreshing access token",
            extra={"member_id": member_id, "service_type": service_type.value},
        )
        try:
            grant = await self._oauth.refresh_token(authorization.refresh_token)
        except OAuthTokenExchangeError as exc:
            if exc.grant_rejected:
                logger.warning(
                    "Refresh token rejected; member must re-authorize",
                    extra={"member_id": member_id, "error_code": exc.error_code},
                )
                raise ReauthorizationRequiredError(
                    member_id, service_type, reason=exc.error_code
                ) from exc
            raise ExternalServiceError(
                "Unable to refresh access token.",
                provider_status=exc.status_code,
                provider_code=exc.error_code,
            ) from exc

        refreshed = authorization.with_refreshed_tokens(
            access_token=grant.access_token,
            expires_in=grant.expires_in,
            refreshed_at=self._clock(),
            refresh_token=grant.refresh_token,
            scope=grant.scope,
            token_type=grant.token_type,
        )
        return self._store.save(refreshed)

    async def get_credentials(
        self, member_id: int, service_type: Oauth2ServiceType
    ) -> Credentials:
        """Build access-only google-auth credentials from a valid authorization.

        No refresh token or client secret is handed over, so google-auth cannot
        refresh behind our back; every refresh goes through ``get_valid_token``
        and is persisted.
        """
        authorization = await self.get_valid_token(member_id, service_type)
        expiry = authorization.expiry_time
        if expiry.tzinfo is not None:
            # google-auth compares against naive UTC.
            expiry = expiry.astimezone(timezone.utc).replace(tzinfo=None)
        return Credentials(
            token=authorization.access_token,
            expiry=expiry,
            scopes=list(self.scopes_for(service_type)),
        )

    async def complete_authorization(
        self, member_id: int, service_type: Oauth2ServiceType, code: str
    ) -> Oauth2Authorization:
        """Exchange an authorization code and store the result for the member."""
        try:
            grant = await self._oauth.exchange_authorization_code(code)
        except OAuthTokenExchangeError as exc:
            raise ExternalServiceError(
                "Failed to exchange authorization code.",
                provider_status=exc.status_code,
                provider_code=exc.error_code,
            ) from exc

        existing = self._store.find(member_id, service_type)
        refresh_token = grant.refresh_token or (existing.refresh_token if existing else None)
        if not refresh_token:
            raise ExternalServiceError(
                "Google did not return a refresh token; consent must be granted again.",
                provider_code="missing_refresh_token",
            )

        now = self._clock()
        authorization = Oauth2Authorization(
            member_id=member_id,
            service_type=service_type,
            access_token=grant.access_token,
            refresh_token=refresh_token,
            expiry_time=now + timedelta(seconds=grant.expires_in),
            scope=grant.scope,
            token_type=grant.token_type,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        logger.info(
            "Stored OAuth2 authorization",
            extra={"member_id": member_id, "service_type": service_type.value},
        )
        return self._store.save(authorization)


__all__ = ["TokenRefresher"]
