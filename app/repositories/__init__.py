"""Repository exports."""

from .authorizations import AuthorizationStore
from .calendars import CalendarStore
from .notifications import NotificationStore

__all__ = ["AuthorizationStore", "CalendarStore", "NotificationStore"]
