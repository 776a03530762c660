"""
Persistence for OAuth2 authorizations.

One row per (member, service type); tokens are encrypted before they reach
the table.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from app.clients.sqlite_store import SQLiteDatabase
from app.models.oauth import Oauth2Authorization, Oauth2ServiceType

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from app.services.token_cipher import TokenCipherService

_SCHEMA = """
CREATE TABLE IF NOT EXISTS oauth2_authorization (
    member_id INTEGER NOT NULL,
    service_type TEXT NOT NULL,
    access_token_encrypted TEXT NOT NULL,
    refresh_token_encrypted TEXT NOT NULL,
    expiry_time TEXT NOT NULL,
    scope TEXT,
    token_type TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (member_id, service_type)
)
"""


class AuthorizationStore:
    """Look up and upsert authorization records."""

    def __init__(self, database: SQLiteDatabase, cipher: "TokenCipherService") -> None:
        self._db = database
        self._cipher = cipher
        self._db.ensure_schema(_SCHEMA)

    def find(
        self, member_id: int, service_type: Oauth2ServiceType
    ) -> Optional[Oauth2Authorization]:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM oauth2_authorization WHERE member_id = ? AND service_type = ?",
                (member_id, Oauth2ServiceType(service_type).value),
            ).fetchone()
        if row is None:
            return None
        return self._to_model(row)

    def save(self, authorization: Oauth2Authorization) -> Oauth2Authorization:
        """Insert or replace the record for the authorization's key in one statement."""
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO oauth2_authorization (
                    member_id, service_type, access_token_encrypted,
                    refresh_token_encrypted, expiry_time, scope, token_type,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(member_id, service_type) DO UPDATE SET
                    access_token_encrypted = excluded.access_token_encrypted,
                    refresh_token_encrypted = excluded.refresh_token_encrypted,
                    expiry_time = excluded.expiry_time,
                    scope = excluded.scope,
                    token_type = excluded.token_type,
                    updated_at = excluded.updated_at
                """,
                (
                    authorization.member_id,
                    authorization.service_type.value,
                    self._cipher.encrypt(authorization.access_token),
                    self._cipher.encrypt(authorization.refresh_token),
                    authorization.expiry_time.isoformat(),
                    authorization.scope,
                    authorization.token_type,
                    authorization.created_at.isoformat(),
                    authorization.updated_at.isoformat(),
                ),
            )
        return authorization

    def count(self, member_id: int, service_type: Oauth2ServiceType) -> int:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM oauth2_authorization WHERE member_id = ? AND service_type = ?",
                (member_id, Oauth2ServiceType(service_type).value),
            ).fetchone()
        return int(row[0])

    def _to_model(self, row: sqlite3.Row) -> Oauth2Authorization:
        return Oauth2Authorization(
            member_id=row["member_id"],
            service_type=Oauth2ServiceType(row["service_type"]),
            access_token=self._cipher.decrypt(row["access_token_encrypted"]),
            refresh_token=self._cipher.decrypt(row["refresh_token_encrypted"]),
            expiry_time=datetime.fromisoformat(row["expiry_time"]),
            scope=row["scope"],
            token_type=row["token_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


__all__ = ["AuthorizationStore"]
