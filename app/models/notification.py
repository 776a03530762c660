"""
In-app notification model.

Status only ever moves UNREAD -> READ; there is no way back.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class NotificationStatus(str, Enum):
    READ = "READ"
    UNREAD = "UNREAD"


class NotificationType(str, Enum):
    """Kinds of notification; the value doubles as the message key."""

    CALENDAR_CREATED = "calendar.created"
    CALENDAR_SHARED = "calendar.shared"
    CALENDAR_ATTENDEES_ADDED = "calendar.attendees.added"
    CALENDAR_DEACTIVATED = "calendar.deactivated"
    REQUEST_TO_JOIN_CHAT_SPACE_APPROVED = "request.to.join.chat.space.approved"
    REQUEST_TO_JOIN_CHAT_SPACE_DISAPPROVED = "request.to.join.chat.space.disapproved"
    REQUEST_TO_JOIN_CHAT_SPACE_RECEIVED = "request.to.join.chat.space.received"
    REQUEST_TO_JOIN_EVENT_APPROVED = "request.to.join.event.approved"
    REQUEST_TO_JOIN_EVENT_DISAPPROVED = "request.to.join.event.disapproved"
    REQUEST_TO_JOIN_EVENT_RECEIVED = "request.to.join.event.received"
    SHARE_CONTACT_REQUEST_RECEIVED = "share.contact.request.received"
    USER_FOLLOWING = "user.following"


class NewNotification(BaseModel):
    """Notification as handed over by a producer, before it is stored."""

    receiver_id: int
    notification_type: NotificationType
    payload: Dict[str, Any] = Field(default_factory=dict)
    event_id: Optional[str] = Field(
        None,
        description="Identifier of the triggering event; repeated deliveries are ignored.",
    )


class Notification(BaseModel):
    """A stored notification."""

    notification_id: int
    receiver_id: int
    notification_type: NotificationType
    message_key: str
    status: NotificationStatus = NotificationStatus.UNREAD
    payload: Dict[str, Any] = Field(default_factory=dict)
    event_id: Optional[str] = None
    created_on: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    read_on: Optional[datetime] = None


__all__ = ["NewNotification", "Notification", "NotificationStatus", "NotificationType"]
