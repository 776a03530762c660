"""Google Calendar client wrapper."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.models.calendar import AttendeeOutcome, EventAttendee

_CONFERENCE_SOLUTION_TYPES = ["hangoutsMeet"]


class GoogleCalendarError(Exception):
    """Raised when a Calendar API call fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    @classmethod
    def from_http_error(cls, action: str, exc: HttpError) -> "GoogleCalendarError":
        status_code = getattr(exc.resp, "status", None)
        reason = _http_error_reason(exc)
        return cls(
            f"Error occurred while {action}. Reason: {reason}",
            status_code=int(status_code) if status_code is not None else None,
            reason=reason,
        )


def _http_error_reason(exc: HttpError) -> str:
    return getattr(exc, "reason", None) or str(exc)


class GoogleCalendarClient:
    """Create, patch, share and delete calendars and manage event attendees."""

    def _service(self, credentials: Credentials):
        return build("calendar", "v3", credentials=credentials, cache_discovery=False)

    async def insert_calendar(
        self,
        credentials: Credentials,
        *,
        title: str,
        description: Optional[str],
        timezone: str,
    ) -> Dict[str, Any]:
        """Create a secondary calendar and return the provider resource."""

        def _execute_insert() -> Dict[str, Any]:
            body = {
                "summary": title,
                "description": description,
                "timeZone": timezone,
                "conferenceProperties": {
                    "allowedConferenceSolutionTypes": _CONFERENCE_SOLUTION_TYPES,
                },
            }
            try:
                return self._service(credentials).calendars().insert(body=body).execute()
            except HttpError as exc:
                raise GoogleCalendarError.from_http_error("creating calendar", exc) from exc

        return await asyncio.to_thread(_execute_insert)

    async def patch_calendar(
        self,
        credentials: Credentials,
        external_id: str,
        *,
        title: str,
        description: Optional[str],
        timezone: str,
    ) -> Dict[str, Any]:
        def _execute_patch() -> Dict[str, Any]:
            body = {"summary": title, "description": description, "timeZone": timezone}
            try:
                return (
                    self._service(credentials)
                    .calendars()
                    .patch(calendarId=external_id, body=body)
                    .execute()
                )
            except HttpError as exc:
                raise GoogleCalendarError.from_http_error("patching calendar", exc) from exc

        return await asyncio.to_thread(_execute_patch)

    async def delete_calendar(self, credentials: Credentials, external_id: str) -> None:
        def _execute_delete() -> None:
            try:
                self._service(credentials).calendars().delete(calendarId=external_id).execute()
            except HttpError as exc:
                raise GoogleCalendarError.from_http_error("deleting calendar", exc) from exc

        await asyncio.to_thread(_execute_delete)

    async def share_calendar(
        self,
        credentials: Credentials,
        external_id: str,
        *,
        email: str,
        role: str = "reader",
        scope_type: str = "user",
    ) -> Dict[str, Any]:
        """Insert an ACL rule granting ``role`` to ``email``."""

        def _execute_share() -> Dict[str, Any]:
            rule = {"scope": {"type": scope_type, "value": email}, "role": role}
            try:
                return (
                    self._service(credentials)
                    .acl()
                    .insert(calendarId=external_id, body=rule)
                    .execute()
                )
            except HttpError as exc:
                raise GoogleCalendarError.from_http_error("sharing calendar", exc) from exc

        return await asyncio.to_thread(_execute_share)

    async def add_attendees(
        self,
        credentials: Credentials,
        external_id: str,
        event_id: str,
        attendees: List[EventAttendee],
    ) -> List[AttendeeOutcome]:
        """Add attendees one at a time and report each outcome.

        A failure to load the event fails the whole call; a rejected attendee
        only fails that attendee.
        """

        def _execute_add() -> List[AttendeeOutcome]:
            service = self._service(credentials)
            try:
                event = service.events().get(calendarId=external_id, eventId=event_id).execute()
            except HttpError as exc:
                raise GoogleCalendarError.from_http_error("loading event", exc) from exc

            current: List[Dict[str, Any]] = list(event.get("attendees") or [])
            known = {item.get("email", "").lower() for item in current}
            outcomes: List[AttendeeOutcome] = []
            for attendee in attendees:
                if attendee.email.lower() in known:
                    outcomes.append(AttendeeOutcome(email=attendee.email, succeeded=True))
                    continue
                candidate = [*current, attendee.to_google()]
                try:
                    updated = (
                        service.events()
                        .patch(
                            calendarId=external_id,
                            eventId=event_id,
                            body={"attendees": candidate},
                            sendUpdates="all",
                        )
                        .execute()
                    )
                except HttpError as exc:
                    outcomes.append(
                        AttendeeOutcome(
                            email=attendee.email,
                            succeeded=False,
                            error=_http_error_reason(exc),
                        )
                    )
                    continue
                current = list(updated.get("attendees") or candidate)
                known.add(attendee.email.lower())
                outcomes.append(AttendeeOutcome(email=attendee.email, succeeded=True))
            return outcomes

        return await asyncio.to_thread(_execute_add)


__all__ = ["GoogleCalendarClient", "GoogleCalendarError"]
