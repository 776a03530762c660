"""
Records in-app notifications and applies read-state transitions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from app.core.errors import NotificationNotFoundError
from app.models.notification import NewNotification, Notification, NotificationStatus

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from app.repositories.notifications import NotificationStore
    from app.services.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification"


class NotificationWriter:
    """Notification persistence plus live delivery to open connections."""

    def __init__(
        self,
        store: "NotificationStore",
        registry: Optional["ConnectionRegistry"] = None,
    ) -> None:
        self._store = store
        self._registry = registry

    def record(self, notification: NewNotification) -> Notification:
        """Store a notification; a repeated ``event_id`` returns the earlier row."""
        stored, created = self._store.insert(
            notification, created_on=datetime.now(timezone.utc)
        )
        if not created:
            logger.info(
                "Duplicate notification delivery ignored",
                extra={"event_id": notification.event_id},
            )
            return stored

        if self._registry is not None:
            self._registry.push(
                stored.receiver_id, NOTIFICATION_EVENT, stored.model_dump(mode="json")
            )
        return stored

    def mark_read(self, notification_id: int, receiver_id: int) -> Notification:
        updated = self._store.mark_read(
            notification_id, receiver_id, read_on=datetime.now(timezone.utc)
        )
        if updated is None:
            raise NotificationNotFoundError(notification_id)
        return updated

    def mark_all_read(self, receiver_id: int) -> int:
        count = self._store.mark_all_read(receiver_id, read_on=datetime.now(timezone.utc))
        logger.info(
            "Marked notifications as read",
            extra={"receiver_id": receiver_id, "count": count},
        )
        return count

    def find_notifications(
        self,
        receiver_id: int,
        *,
        status: Optional[NotificationStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Notification]:
        return self._store.list_for_receiver(
            receiver_id, status=status, limit=limit, offset=offset
        )

    def count_unread(self, receiver_id: int) -> int:
        return self._store.count_unread(receiver_id)

    def latest_notification_id(self, receiver_id: int) -> int:
        return self._store.latest_id(receiver_id)

    def find_since(self, receiver_id: int, after_id: int) -> list[Notification]:
        """Notifications recorded after ``after_id``, by any process sharing the store."""
        return self._store.list_after(receiver_id, after_id)


__all__ = ["NOTIFICATION_EVENT", "NotificationWriter"]
