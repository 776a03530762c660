"""Public schema exports."""

from .auth import OAuthCallbackPayload, OAuthConnectionResponse
from .calendar import (
    AddAttendeesRequest,
    AddAttendeesResult,
    CalendarResponse,
    CreateCalendarRequest,
    ReactivateCalendarRequest,
    ShareCalendarRequest,
    ShareCalendarResponse,
    UpdateCalendarRequest,
)
from .notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    UnreadCountResponse,
)

__all__ = [
    "AddAttendeesRequest",
    "AddAttendeesResult",
    "CalendarResponse",
    "CreateCalendarRequest",
    "MarkAllReadResponse",
    "NotificationListResponse",
    "OAuthCallbackPayload",
    "OAuthConnectionResponse",
    "ReactivateCalendarRequest",
    "ShareCalendarRequest",
    "ShareCalendarResponse",
    "UnreadCountResponse",
    "UpdateCalendarRequest",
]
