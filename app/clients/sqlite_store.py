"""Thin SQLite wrapper shared by the repositories and the local event queue."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class SQLiteDatabase:
    """Open short-lived connections against one database file.

    Each ``transaction()`` block commits on success and rolls back on error,
    so every logical write is a single local transaction.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def ensure_schema(self, *statements: str) -> None:
        with self.transaction() as conn:
            for statement in statements:
                conn.execute(statement)


__all__ = ["SQLiteDatabase"]
