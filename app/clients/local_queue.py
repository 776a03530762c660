"""SQLite-backed event queue used in place of AWS SQS during development."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple

from app.clients.sqlite_store import SQLiteDatabase

_SCHEMA = """
CREATE TABLE IF NOT EXISTS event_queue (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    message_type TEXT NOT NULL,
    payload TEXT NOT NULL,
    receive_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
)
"""

MAX_RECEIVE_COUNT = 5


class QueuedMessage(NamedTuple):
    receipt: int
    body: Dict[str, Any]


class SQLiteQueueClient:
    """Persist event envelopes in a SQLite table for later processing.

    A received message stays in the table until ``delete_message`` is called,
    so a consumer that fails leaves it for redelivery. After
    ``max_receive_count`` failed attempts the row is parked and no longer
    handed out, the way an SQS redrive policy would move it aside.
    """

    def __init__(self, database: SQLiteDatabase, max_receive_count: int = MAX_RECEIVE_COUNT) -> None:
        self._db = database
        self._max_receive_count = max_receive_count
        self._db.ensure_schema(_SCHEMA)

    def send_message(self, message: Dict[str, Any]) -> str:
        created_at = datetime.now(timezone.utc).isoformat()
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO event_queue (message_type, payload, created_at) VALUES (?, ?, ?)",
                (str(message.get("message_type", "")), json.dumps(message), created_at),
            )
        return str(cursor.lastrowid)

    def receive_message(self) -> QueuedMessage | None:
        """Return the oldest deliverable message without removing it."""
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT id, payload FROM event_queue WHERE receive_count < ? ORDER BY id LIMIT 1",
                (self._max_receive_count,),
            ).fetchone()
            if not row:
                return None
            conn.execute(
                "UPDATE event_queue SET receive_count = receive_count + 1 WHERE id = ?",
                (row["id"],),
            )
        return QueuedMessage(receipt=row["id"], body=json.loads(row["payload"]))

    def delete_message(self, receipt: int) -> None:
        """Acknowledge a message once it has been handled."""
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM event_queue WHERE id = ?", (receipt,))


__all__ = ["MAX_RECEIVE_COUNT", "QueuedMessage", "SQLiteQueueClient"]
