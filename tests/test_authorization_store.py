from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.models.oauth import Oauth2Authorization, Oauth2ServiceType
from app.repositories.authorizations import AuthorizationStore


def _authorization(member_id: int = 7, **overrides) -> Oauth2Authorization:
    values = {
        "member_id": member_id,
        "service_type": Oauth2ServiceType.GOOGLE_CALENDAR,
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expiry_time": datetime.now(timezone.utc) + timedelta(hours=1),
        "token_type": "Bearer",
    }
    values.update(overrides)
    return Oauth2Authorization(**values)


def test_save_encrypts_tokens_at_rest(database, cipher) -> None:
    store = AuthorizationStore(database, cipher)
    store.save(_authorization())

    with database.transaction() as conn:
        row = conn.execute("SELECT * FROM oauth2_authorization").fetchone()

    assert row["access_token_encrypted"] != "access-1"
    assert cipher.decrypt(row["access_token_encrypted"]) == "access-1"
    assert cipher.decrypt(row["refresh_token_encrypted"]) == "refresh-1"


def test_save_keeps_one_record_per_member_and_service(database, cipher) -> None:
    store = AuthorizationStore(database, cipher)
    first = _authorization()
    store.save(first)
    store.save(_authorization(access_token="access-2", created_at=first.created_at))
    store.save(_authorization(service_type=Oauth2ServiceType.YOUTUBE))

    assert store.count(7, Oauth2ServiceType.GOOGLE_CALENDAR) == 1
    assert store.count(7, Oauth2ServiceType.YOUTUBE) == 1

    stored = store.find(7, Oauth2ServiceType.GOOGLE_CALENDAR)
    assert stored is not None
    assert stored.access_token == "access-2"
    assert stored.token_type == "Bearer"


def test_find_returns_none_for_unknown_member(database, cipher) -> None:
    store = AuthorizationStore(database, cipher)

    assert store.find(404, Oauth2ServiceType.GOOGLE_CALENDAR) is None
