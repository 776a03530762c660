"""Calendar domain model."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CalendarStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Calendar(BaseModel):
    """A calendar mirrored on the external provider."""

    calendar_id: Optional[int] = None
    external_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    code: str
    timezone: str
    status: CalendarStatus = CalendarStatus.ACTIVE
    created_by: Optional[int] = None
    created_on: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_on: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return self.status == CalendarStatus.ACTIVE


class EventAttendee(BaseModel):
    """Guest to add to a provider calendar event."""

    email: str
    display_name: Optional[str] = None
    organizer: bool = False
    comment: Optional[str] = None

    def to_google(self) -> dict:
        body: dict = {"email": self.email}
        if self.display_name:
            body["displayName"] = self.display_name
        if self.comment:
            body["comment"] = self.comment
        if self.organizer:
            body["organizer"] = True
            body["responseStatus"] = "accepted"
        return body


class AttendeeOutcome(BaseModel):
    """Result of adding one attendee."""

    email: str
    succeeded: bool
    error: Optional[str] = None


__all__ = ["AttendeeOutcome", "Calendar", "CalendarStatus", "EventAttendee"]
