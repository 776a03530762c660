"""Service layer exports."""

from .calendar_sync import CalendarSyncService
from .connection_registry import Connection, ConnectionRegistry
from .event_publisher import EventPublisher, QueueClient
from .notifications import NOTIFICATION_EVENT, NotificationWriter
from .token_cipher import TokenCipherService
from .token_refresher import TokenRefresher

__all__ = [
    "CalendarSyncService",
    "Connection",
    "ConnectionRegistry",
    "EventPublisher",
    "NOTIFICATION_EVENT",
    "NotificationWriter",
    "QueueClient",
    "TokenCipherService",
    "TokenRefresher",
]
