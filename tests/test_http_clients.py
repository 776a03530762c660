from __future__ import annotations

import httpx
import pytest
from fastapi import HTTPException

from app.clients import google_auth, slack
from app.clients.google_auth import GoogleOAuthClient, OAuthStateEncoder, OAuthTokenExchangeError
from app.clients.slack import SlackReporter


def _patch_transport(monkeypatch, module, handler) -> list[httpx.Request]:
    seen: list[httpx.Request] = []
    real_client = httpx.AsyncClient

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    monkeypatch.setattr(
        module.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(_record), **kwargs),
    )
    return seen


@pytest.mark.anyio
async def test_refresh_token_returns_grant(monkeypatch, google_settings) -> None:
    seen = _patch_transport(
        monkeypatch,
        google_auth,
        lambda request: httpx.Response(
            200, json={"access_token": "new-access", "expires_in": 3599, "token_type": "Bearer"}
        ),
    )

    grant = await GoogleOAuthClient(google_settings).refresh_token("refresh-1")

    assert grant.access_token == "new-access"
    assert grant.expires_in == 3599
    assert grant.refresh_token is None
    assert b"grant_type=refresh_token" in seen[0].content


@pytest.mark.anyio
async def test_refresh_token_rejection_is_flagged(monkeypatch, google_settings) -> None:
    _patch_transport(
        monkeypatch,
        google_auth,
        lambda request: httpx.Response(400, json={"error": "invalid_grant"}),
    )

    with pytest.raises(OAuthTokenExchangeError) as exc_info:
        await GoogleOAuthClient(google_settings).refresh_token("revoked")

    assert exc_info.value.grant_rejected
    assert exc_info.value.error_code == "invalid_grant"


@pytest.mark.anyio
async def test_server_error_is_not_a_rejection(monkeypatch, google_settings) -> None:
    _patch_transport(
        monkeypatch, google_auth, lambda request: httpx.Response(503, text="unavailable")
    )

    with pytest.raises(OAuthTokenExchangeError) as exc_info:
        await GoogleOAuthClient(google_settings).refresh_token("refresh-1")

    assert exc_info.value.status_code == 503
    assert not exc_info.value.grant_rejected


@pytest.mark.anyio
async def test_invalid_client_is_not_a_rejection(monkeypatch, google_settings) -> None:
    _patch_transport(
        monkeypatch,
        google_auth,
        lambda request: httpx.Response(401, json={"error": "invalid_client"}),
    )

    with pytest.raises(OAuthTokenExchangeError) as exc_info:
        await GoogleOAuthClient(google_settings).refresh_token("refresh-1")

    assert exc_info.value.status_code == 401
    assert exc_info.value.error_code == "invalid_client"
    assert not exc_info.value.grant_rejected


def test_authorization_url_carries_scopes_and_offline_access(google_settings) -> None:
    url = GoogleOAuthClient(google_settings).build_authorization_url(
        "state-1", ["scope-a", "scope-b"]
    )

    assert url.startswith(GoogleOAuthClient.AUTH_BASE_URL)
    assert "access_type=offline" in url
    assert "scope=scope-a+scope-b" in url


def test_state_encoder_detects_tampering() -> None:
    encoder = OAuthStateEncoder("secret")
    state = encoder.encode({"member_id": 1})

    assert encoder.decode(state) == {"member_id": 1}
    with pytest.raises(HTTPException):
        OAuthStateEncoder("other-secret").decode(state)
    with pytest.raises(HTTPException):
        encoder.decode("%%%not-base64")


@pytest.mark.anyio
async def test_slack_reporter_posts_payload(monkeypatch) -> None:
    seen = _patch_transport(monkeypatch, slack, lambda request: httpx.Response(200, text="ok"))
    reporter = SlackReporter("https://hooks.slack.com/services/T/B/X")

    sent = await reporter.send_message("Calendar insert failed", "calendar-sync", {"status": 403})

    assert sent is True
    assert b"[Feen] calendar-sync: Calendar insert failed" in seen[0].content


@pytest.mark.anyio
async def test_slack_reporter_never_raises(monkeypatch, caplog) -> None:
    _patch_transport(monkeypatch, slack, lambda request: httpx.Response(500))
    reporter = SlackReporter("https://hooks.slack.com/services/T/B/X")

    assert await reporter.send_message("boom", "calendar-sync") is False
    assert "Error sending message to Slack" in caplog.text


@pytest.mark.anyio
async def test_slack_reporter_without_webhook_logs_only(caplog) -> None:
    reporter = SlackReporter(None)

    assert await reporter.send_message("boom", "calendar-sync") is False
    assert "boom" in caplog.text
