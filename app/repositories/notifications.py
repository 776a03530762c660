"""Persistence for in-app notifications."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Optional

from app.clients.sqlite_store import SQLiteDatabase
from app.models.notification import (
    NewNotification,
    Notification,
    NotificationStatus,
    NotificationType,
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS notification (
    notification_id INTEGER PRIMARY KEY AUTOINCREMENT,
    receiver_id INTEGER NOT NULL,
    notification_type TEXT NOT NULL,
    message_key TEXT NOT NULL,
    status TEXT NOT NULL,
    payload TEXT NOT NULL,
    event_id TEXT UNIQUE,
    created_on TEXT NOT NULL,
    read_on TEXT
)
"""

_RECEIVER_INDEX = """
CREATE INDEX IF NOT EXISTS ix_notification_receiver_status
ON notification (receiver_id, status)
"""


class NotificationStore:
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database
        self._db.ensure_schema(_SCHEMA, _RECEIVER_INDEX)

    def insert(self, notification: NewNotification, *, created_on: datetime) -> tuple[Notification, bool]:
        """Insert unless the event was already recorded.

        Returns the stored notification and whether this call created it.
        """
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO notification (
                    receiver_id, notification_type, message_key, status,
                    payload, event_id, created_on
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(event_id) DO NOTHING
                """,
                (
                    notification.receiver_id,
                    notification.notification_type.name,
                    notification.notification_type.value,
                    NotificationStatus.UNREAD.value,
                    json.dumps(notification.payload),
                    notification.event_id,
                    created_on.isoformat(),
                ),
            )
            if cursor.rowcount:
                row = conn.execute(
                    "SELECT * FROM notification WHERE notification_id = ?",
                    (cursor.lastrowid,),
                ).fetchone()
                return _to_model(row), True

            row = conn.execute(
                "SELECT * FROM notification WHERE event_id = ?",
                (notification.event_id,),
            ).fetchone()
        return _to_model(row), False

    def latest_id(self, receiver_id: int) -> int:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT COALESCE(MAX(notification_id), 0) FROM notification WHERE receiver_id = ?",
                (receiver_id,),
            ).fetchone()
        return int(row[0])

    def list_after(self, receiver_id: int, after_id: int, *, limit: int = 100) -> list[Notification]:
        """Rows for the receiver newer than ``after_id``, oldest first."""
        with self._db.transaction() as conn:
            rows = conn.execute(
                """
                SELECT * FROM notification
                WHERE receiver_id = ? AND notification_id > ?
                ORDER BY notification_id LIMIT ?
                """,
                (receiver_id, after_id, limit),
            ).fetchall()
        return [_to_model(row) for row in rows]

    def mark_read(
        self, notification_id: int, receiver_id: int, *, read_on: datetime
    ) -> Optional[Notification]:
        """Flip one owned UNREAD row to READ; READ rows are left as they are."""
        with self._db.transaction() as conn:
            conn.execute(
                """
                UPDATE notification SET status = ?, read_on = ?
                WHERE notification_id = ? AND receiver_id = ? AND status = ?
                """,
                (
                    NotificationStatus.READ.value,
                    read_on.isoformat(),
                    notification_id,
                    receiver_id,
                    NotificationStatus.UNREAD.value,
                ),
            )
            row = conn.execute(
                "SELECT * FROM notification WHERE notification_id = ? AND receiver_id = ?",
                (notification_id, receiver_id),
            ).fetchone()
        return _to_model(row) if row else None

    def mark_all_read(self, receiver_id: int, *, read_on: datetime) -> int:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE notification SET status = ?, read_on = ?
                WHERE receiver_id = ? AND status = ?
                """,
                (
                    NotificationStatus.READ.value,
                    read_on.isoformat(),
                    receiver_id,
                    NotificationStatus.UNREAD.value,
                ),
            )
            return cursor.rowcount

    def list_for_receiver(
        self,
        receiver_id: int,
        *,
        status: Optional[NotificationStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Notification]:
        query = "SELECT * FROM notification WHERE receiver_id = ?"
        params: list[object] = [receiver_id]
        if status is not None:
            query += " AND status = ?"
            params.append(NotificationStatus(status).value)
        query += " ORDER BY notification_id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        with self._db.transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_to_model(row) for row in rows]

    def count_unread(self, receiver_id: int) -> int:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM notification WHERE receiver_id = ? AND status = ?",
                (receiver_id, NotificationStatus.UNREAD.value),
            ).fetchone()
        return int(row[0])


def _to_model(row: sqlite3.Row) -> Notification:
    return Notification(
        notification_id=row["notification_id"],
        receiver_id=row["receiver_id"],
        notification_type=NotificationType[row["notification_type"]],
        message_key=row["message_key"],
        status=NotificationStatus(row["status"]),
        payload=json.loads(row["payload"]),
        event_id=row["event_id"],
        created_on=datetime.fromisoformat(row["created_on"]),
        read_on=datetime.fromisoformat(row["read_on"]) if row["read_on"] else None,
    )


__all__ = ["NotificationStore"]
