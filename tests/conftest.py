"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.clients.sqlite_store import SQLiteDatabase
from app.core.config import GoogleSettings, OAuthSettings
from app.services.token_cipher import TokenCipherService


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def database(tmp_path) -> SQLiteDatabase:
    return SQLiteDatabase(str(tmp_path / "feen.db"))


@pytest.fixture
def cipher() -> TokenCipherService:
    return TokenCipherService(secret="secret-key")


@pytest.fixture
def google_settings() -> GoogleSettings:
    return GoogleSettings(
        GOOGLE_CLIENT_ID="client",
        GOOGLE_CLIENT_SECRET="secret",
        GOOGLE_REDIRECT_URI="https://example.com/callback",
        GOOGLE_SERVICE_ACCOUNT_EMAIL="sync@feen-platform.iam.gserviceaccount.com",
        ORIGIN_DOMAIN="feen.com",
    )


@pytest.fixture
def oauth_settings() -> OAuthSettings:
    return OAuthSettings(OAUTH_REFRESH_MARGIN_SECONDS=300)
