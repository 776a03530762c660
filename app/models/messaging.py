"""Envelope for domain events sent through the event queue."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, Field


class MessageType(str, Enum):
    NOTIFICATION_REQUESTED = "NOTIFICATION_REQUESTED"
    CALENDAR_CREATED = "CALENDAR_CREATED"
    CALENDAR_SHARED = "CALENDAR_SHARED"
    CALENDAR_ATTENDEES_ADDED = "CALENDAR_ATTENDEES_ADDED"
    CALENDAR_DEACTIVATED = "CALENDAR_DEACTIVATED"


class PublishMessageRequest(BaseModel):
    """Ephemeral message handed to the publisher; never stored by it."""

    message_type: MessageType
    payload: Dict[str, Any] = Field(default_factory=dict)
    event_id: str = Field(default_factory=lambda: uuid4().hex)
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> Dict[str, Any]:
        """JSON-safe representation placed on the queue."""
        return self.model_dump(mode="json")


__all__ = ["MessageType", "PublishMessageRequest"]
