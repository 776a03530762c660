"""Persistence for locally mirrored calendars."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Optional

from app.clients.sqlite_store import SQLiteDatabase
from app.models.calendar import Calendar, CalendarStatus

_SCHEMA = """
CREATE TABLE IF NOT EXISTS calendar (
    calendar_id INTEGER PRIMARY KEY AUTOINCREMENT,
    external_id TEXT,
    title TEXT NOT NULL,
    description TEXT,
    code TEXT NOT NULL UNIQUE COLLATE NOCASE,
    timezone TEXT NOT NULL,
    status TEXT NOT NULL,
    created_by INTEGER,
    created_on TEXT NOT NULL,
    updated_on TEXT NOT NULL
)
"""


class CalendarStore:
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database
        self._db.ensure_schema(_SCHEMA)

    def find_by_id(self, calendar_id: int) -> Optional[Calendar]:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM calendar WHERE calendar_id = ?", (calendar_id,)
            ).fetchone()
        return _to_model(row) if row else None

    def find_by_code(self, code: str) -> Optional[Calendar]:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM calendar WHERE code = ? COLLATE NOCASE", (code,)
            ).fetchone()
        return _to_model(row) if row else None

    def save(self, calendar: Calendar) -> Calendar:
        """Insert a new calendar or update an existing one; returns the stored copy."""
        now = datetime.now(timezone.utc)
        with self._db.transaction() as conn:
            if calendar.calendar_id is None:
                cursor = conn.execute(
                    """
                    INSERT INTO calendar (
                        external_id, title, description, code, timezone,
                        status, created_by, created_on, updated_on
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        calendar.external_id,
                        calendar.title,
                        calendar.description,
                        calendar.code,
                        calendar.timezone,
                        calendar.status.value,
                        calendar.created_by,
                        calendar.created_on.isoformat(),
                        now.isoformat(),
                    ),
                )
                return calendar.model_copy(
                    update={"calendar_id": cursor.lastrowid, "updated_on": now}
                )

            conn.execute(
                """
                UPDATE calendar
                SET external_id = ?, title = ?, description = ?, timezone = ?,
                    status = ?, updated_on = ?
                WHERE calendar_id = ?
                """,
                (
                    calendar.external_id,
                    calendar.title,
                    calendar.description,
                    calendar.timezone,
                    calendar.status.value,
                    now.isoformat(),
                    calendar.calendar_id,
                ),
            )
        return calendar.model_copy(update={"updated_on": now})

    def search(
        self,
        *,
        status: Optional[CalendarStatus] = None,
        title: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Calendar]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(CalendarStatus(status).value)
        if title:
            clauses.append("title LIKE ?")
            params.append(f"%{title}%")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.extend([limit, offset])
        with self._db.transaction() as conn:
            rows = conn.execute(
                f"SELECT * FROM calendar {where} ORDER BY calendar_id DESC LIMIT ? OFFSET ?",
                params,
            ).fetchall()
        return [_to_model(row) for row in rows]


def _to_model(row: sqlite3.Row) -> Calendar:
    return Calendar(
        calendar_id=row["calendar_id"],
        external_id=row["external_id"],
        title=row["title"],
        description=row["description"],
        code=row["code"],
        timezone=row["timezone"],
        status=CalendarStatus(row["status"]),
        created_by=row["created_by"],
        created_on=datetime.fromisoformat(row["created_on"]),
        updated_on=datetime.fromisoformat(row["updated_on"]),
    )


__all__ = ["CalendarStore"]
