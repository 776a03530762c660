"""
Request and response models for calendar operations.
"""

from datetime import datetime
from typing import List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from app.models.calendar import AttendeeOutcome, Calendar, CalendarStatus, EventAttendee

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _validate_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {value}") from exc
    return value


class CreateCalendarRequest(BaseModel):
    """Payload for creating a calendar on the member's Google account."""

    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=3000)
    timezone: str = Field(..., description="IANA timezone, e.g. 'Africa/Lagos'.")
    code: str = Field(
        ...,
        min_length=2,
        max_length=30,
        description="Unique calendar code, typically a country code.",
    )
    creator_email: str = Field(
        ..., pattern=_EMAIL_PATTERN, description="Email of the member creating the calendar."
    )

    _check_timezone = field_validator("timezone")(_validate_timezone)


class UpdateCalendarRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=3000)
    timezone: str

    _check_timezone = field_validator("timezone")(_validate_timezone)


class ReactivateCalendarRequest(BaseModel):
    creator_email: str = Field(..., pattern=_EMAIL_PATTERN)


class ShareCalendarRequest(BaseModel):
    email: str = Field(..., pattern=_EMAIL_PATTERN)
    role: Literal["freeBusyReader", "reader", "writer", "owner"] = "reader"


class AddAttendeesRequest(BaseModel):
    attendees: List[EventAttendee] = Field(..., min_length=1)


class CalendarResponse(BaseModel):
    """Flat calendar view returned by the API."""

    calendar_id: int
    external_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    code: str
    timezone: str
    status: CalendarStatus
    created_on: datetime
    updated_on: datetime

    @classmethod
    def from_calendar(cls, calendar: Calendar) -> "CalendarResponse":
        return cls.model_validate(calendar.model_dump())


class ShareCalendarResponse(BaseModel):
    calendar_id: int
    shared_with: str
    role: str
    calendar: CalendarResponse


class AddAttendeesResult(BaseModel):
    calendar_id: int
    event_id: str
    succeeded: List[AttendeeOutcome] = Field(default_factory=list)
    failed: List[AttendeeOutcome] = Field(default_factory=list)


__all__ = [
    "AddAttendeesRequest",
    "AddAttendeesResult",
    "CalendarResponse",
    "CreateCalendarRequest",
    "ReactivateCalendarRequest",
    "ShareCalendarRequest",
    "ShareCalendarResponse",
    "UpdateCalendarRequest",
]
