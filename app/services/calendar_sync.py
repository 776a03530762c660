"""
Keeps locally mirrored calendars in step with the member's Google Calendar.

Every provider call is made with a token obtained from ``TokenRefresher``, so
a member without a stored authorization fails before the provider is
contacted. Provider failures are reported to Slack and surface as
``ExternalServiceError``; nothing is retried.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Awaitable, Dict, List, Optional, TypeVar, TYPE_CHECKING

from app.clients.google_calendar import GoogleCalendarClient, GoogleCalendarError
from app.clients.slack import SlackReporter
from app.core.errors import (
    CalendarAlreadyActiveError,
    CalendarAlreadyExistsError,
    CalendarNotFoundError,
    ExternalServiceError,
    PartialFailureError,
)
from app.models.calendar import Calendar, CalendarStatus, EventAttendee
from app.models.messaging import MessageType, PublishMessageRequest
from app.models.oauth import Oauth2ServiceType
from app.schemas.calendar import (
    AddAttendeesResult,
    CreateCalendarRequest,
    UpdateCalendarRequest,
)

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from app.repositories.calendars import CalendarStore
    from app.services.event_publisher import EventPublisher
    from app.services.token_refresher import TokenRefresher

logger = logging.getLogger(__name__)

T = TypeVar("T")

SLACK_CHANNEL = "calendar-sync"
SERVICE_ACCOUNT_ROLE = "writer"


class CalendarSyncService:
    """Create, share and maintain calendars on behalf of members."""

    def __init__(
        self,
        store: "CalendarStore",
        token_refresher: "TokenRefresher",
        calendar_client: GoogleCalendarClient,
        publisher: "EventPublisher",
        reporter: SlackReporter,
        *,
        service_account_email: Optional[str] = None,
        origin_domain: Optional[str] = None,
    ) -> None:
        self._store = store
        self._tokens = token_refresher
        self._calendar = calendar_client
        self._publisher = publisher
        self._reporter = reporter
        self._service_account_email = service_account_email
        self._origin_domain = origin_domain

    async def create_calendar(
        self, member_id: int, creator_email: str, request: CreateCalendarRequest
    ) -> Calendar:
        if self._store.find_by_code(request.code) is not None:
            raise CalendarAlreadyExistsError(request.code)

        credentials = await self._tokens.get_credentials(
            member_id, Oauth2ServiceType.GOOGLE_CALENDAR
        )
        created = await self._call_provider(
            "creating calendar",
            self._calendar.insert_calendar(
                credentials,
                title=request.title,
                description=request.description,
                timezone=request.timezone,
            ),
            member_id=member_id,
            code=request.code,
        )

        calendar = self._persist(
            Calendar(
                external_id=created.get("id"),
                title=request.title,
                description=request.description,
                code=request.code,
                timezone=request.timezone,
                created_by=member_id,
            )
        )
        logger.info(
            "Created calendar",
            extra={"calendar_id": calendar.calendar_id, "member_id": member_id},
        )
        self._publish(
            MessageType.CALENDAR_CREATED,
            calendar,
            member_id=member_id,
            creator_email=creator_email,
        )
        return calendar

    async def update_calendar(
        self, calendar_id: int, member_id: int, request: UpdateCalendarRequest
    ) -> Calendar:
        calendar = self._require_active(calendar_id)
        credentials = await self._tokens.get_credentials(
            member_id, Oauth2ServiceType.GOOGLE_CALENDAR
        )
        await self._call_provider(
            "updating calendar",
            self._calendar.patch_calendar(
                credentials,
                calendar.external_id,
                title=request.title,
                description=request.description,
                timezone=request.timezone,
            ),
            calendar_id=calendar_id,
            member_id=member_id,
        )
        return self._persist(
            calendar.model_copy(
                update={
                    "title": request.title,
                    "description": request.description,
                    "timezone": request.timezone,
                }
            )
        )

    async def share_calendar(
        self,
        calendar_id: int,
        member_id: int,
        target_email: str,
        role: str = "reader",
    ) -> Calendar:
        calendar = self._require_active(calendar_id)
        await self._share(calendar, member_id, target_email, role)
        self._publish(
            MessageType.CALENDAR_SHARED,
            calendar,
            member_id=member_id,
            shared_with=target_email,
            role=role,
        )
        return calendar

    async def add_attendees(
        self,
        calendar_id: int,
        member_id: int,
        event_id: str,
        attendees: List[EventAttendee],
    ) -> AddAttendeesResult:
        """Add attendees to a provider event.

        Attendees are added independently. When any of them is rejected a
        ``PartialFailureError`` is raised carrying both outcome lists; the
        attendees that did succeed stay on the event.
        """
        calendar = self._require_active(calendar_id)
        credentials = await self._tokens.get_credentials(
            member_id, Oauth2ServiceType.GOOGLE_CALENDAR
        )
        outcomes = await self._call_provider(
            "adding attendees",
            self._calendar.add_attendees(
                credentials, calendar.external_id, event_id, attendees
            ),
            calendar_id=calendar_id,
            event_id=event_id,
        )
        succeeded = [outcome for outcome in outcomes if outcome.succeeded]
        failed = [outcome for outcome in outcomes if not outcome.succeeded]

        if succeeded:
            self._publish(
                MessageType.CALENDAR_ATTENDEES_ADDED,
                calendar,
                member_id=member_id,
                event_id=event_id,
                attendees=[outcome.email for outcome in succeeded],
            )

        if failed:
            logger.warning(
                "Some attendees could not be added",
                extra={
                    "calendar_id": calendar_id,
                    "event_id": event_id,
                    "failed": [outcome.email for outcome in failed],
                },
            )
            raise PartialFailureError(
                f"{len(failed)} of {len(outcomes)} attendees could not be added.",
                succeeded=succeeded,
                failed=failed,
            )

        return AddAttendeesResult(
            calendar_id=calendar_id, event_id=event_id, succeeded=succeeded
        )

    async def deactivate_calendar(self, calendar_id: int, member_id: int) -> Calendar:
        calendar = self._require(calendar_id)
        if not calendar.is_active:
            return calendar

        credentials = await self._tokens.get_credentials(
            member_id, Oauth2ServiceType.GOOGLE_CALENDAR
        )
        await self._call_provider(
            "deleting calendar",
            self._calendar.delete_calendar(credentials, calendar.external_id),
            calendar_id=calendar_id,
            member_id=member_id,
        )
        deactivated = self._persist(
            calendar.model_copy(
                update={"status": CalendarStatus.INACTIVE, "external_id": None}
            )
        )
        self._publish(MessageType.CALENDAR_DEACTIVATED, deactivated, member_id=member_id)
        return deactivated

    async def reactivate_calendar(
        self, calendar_id: int, member_id: int, creator_email: str
    ) -> Calendar:
        """Recreate an inactive calendar on the provider under a new external id."""
        calendar = self._require(calendar_id)
        if calendar.is_active:
            raise CalendarAlreadyActiveError(calendar_id)

        credentials = await self._tokens.get_credentials(
            member_id, Oauth2ServiceType.GOOGLE_CALENDAR
        )
        created = await self._call_provider(
            "reactivating calendar",
            self._calendar.insert_calendar(
                credentials,
                title=calendar.title,
                description=calendar.description,
                timezone=calendar.timezone,
            ),
            calendar_id=calendar_id,
            member_id=member_id,
        )
        reactivated = self._persist(
            calendar.model_copy(
                update={"status": CalendarStatus.ACTIVE, "external_id": created.get("id")}
            )
        )
        self._publish(
            MessageType.CALENDAR_CREATED,
            reactivated,
            member_id=member_id,
            creator_email=creator_email,
            reactivated=True,
        )
        return reactivated

    def find_calendar(self, calendar_id: int) -> Calendar:
        return self._require(calendar_id)

    def search_calendars(
        self,
        *,
        status: Optional[CalendarStatus] = None,
        title: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Calendar]:
        return self._store.search(status=status, title=title, limit=limit, offset=offset)

    async def share_with_service_account(
        self, calendar_id: int, member_id: int, creator_email: str
    ) -> Optional[Calendar]:
        """Give the platform service account write access to a member's calendar.

        Only calendars created by members of the origin domain are shared.
        Returns ``None`` when nothing was shared.
        """
        if not self._service_account_email or not self._is_origin_member(creator_email):
            logger.info(
                "Skipping service account share",
                extra={"calendar_id": calendar_id, "member_id": member_id},
            )
            return None

        calendar = self._require_active(calendar_id)
        await self._share(
            calendar, member_id, self._service_account_email, SERVICE_ACCOUNT_ROLE
        )
        return calendar

    async def _share(
        self, calendar: Calendar, member_id: int, email: str, role: str
    ) -> None:
        credentials = await self._tokens.get_credentials(
            member_id, Oauth2ServiceType.GOOGLE_CALENDAR
        )
        await self._call_provider(
            "sharing calendar",
            self._calendar.share_calendar(
                credentials, calendar.external_id, email=email, role=role
            ),
            calendar_id=calendar.calendar_id,
            member_id=member_id,
        )
        logger.info(
            "Shared calendar",
            extra={"calendar_id": calendar.calendar_id, "role": role},
        )

    def _is_origin_member(self, email: str) -> bool:
        if not self._origin_domain:
            return False
        domain = self._origin_domain.lower().lstrip("@")
        return email.lower().endswith(f"@{domain}")

    def _require(self, calendar_id: int) -> Calendar:
        calendar = self._store.find_by_id(calendar_id)
        if calendar is None:
            raise CalendarNotFoundError(calendar_id)
        return calendar

    def _require_active(self, calendar_id: int) -> Calendar:
        calendar = self._require(calendar_id)
        # Inactive calendars no longer exist on the provider.
        if not calendar.is_active or not calendar.external_id:
            raise CalendarNotFoundError(calendar_id)
        return calendar

    async def _call_provider(self, action: str, call: Awaitable[T], **context: Any) -> T:
        try:
            return await call
        except GoogleCalendarError as exc:
            logger.error(
                "Google Calendar call failed",
                extra={"action": action, "status_code": exc.status_code, **context},
            )
            await self._reporter.send_message(
                f"Error occurred while {action}. Reason: {exc.reason}",
                SLACK_CHANNEL,
                {"status": exc.status_code, **context},
            )
            raise ExternalServiceError(
                str(exc), provider_status=exc.status_code, provider_code=exc.reason
            ) from exc

    def _persist(self, calendar: Calendar) -> Calendar:
        try:
            return self._store.save(calendar)
        except sqlite3.Error:
            logger.exception(
                "Failed to persist calendar after provider call",
                extra={"external_id": calendar.external_id, "code": calendar.code},
            )
            raise

    def _publish(self, message_type: MessageType, calendar: Calendar, **extra: Any) -> None:
        payload: Dict[str, Any] = {
            "calendar_id": calendar.calendar_id,
            "title": calendar.title,
            "code": calendar.code,
        }
        payload.update(extra)
        self._publisher.publish(PublishMessageRequest(message_type=message_type, payload=payload))


__all__ = ["CalendarSyncService", "SERVICE_ACCOUNT_ROLE", "SLACK_CHANNEL"]
