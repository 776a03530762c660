"""
Data models shared across the event consumer package.
"""

from __future__ import annotations

from typing import Any, Dict, TypedDict


class EventEnvelope(TypedDict, total=False):
    """Message body delivered via SQS or the SQLite queue."""

    message_type: str
    payload: Dict[str, Any]
    event_id: str
    published_at: str


__all__ = ["EventEnvelope"]
