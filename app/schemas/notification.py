"""Response models for notification endpoints."""

from typing import List

from pydantic import BaseModel

from app.models.notification import Notification


class NotificationListResponse(BaseModel):
    receiver_id: int
    unread_count: int
    notifications: List[Notification]


class UnreadCountResponse(BaseModel):
    receiver_id: int
    unread_count: int


class MarkAllReadResponse(BaseModel):
    receiver_id: int
    updated: int


__all__ = ["MarkAllReadResponse", "NotificationListResponse", "UnreadCountResponse"]
