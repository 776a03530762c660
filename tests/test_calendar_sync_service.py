from __future__ import annotations

from typing import Any

import pytest

from app.clients.google_calendar import GoogleCalendarError
from app.core.errors import (
    AuthorizationRequiredError,
    CalendarAlreadyActiveError,
    CalendarAlreadyExistsError,
    CalendarNotFoundError,
    ExternalServiceError,
    PartialFailureError,
)
from app.models.calendar import AttendeeOutcome, Calendar, CalendarStatus, EventAttendee
from app.models.messaging import MessageType
from app.models.oauth import Oauth2ServiceType
from app.repositories.calendars import CalendarStore
from app.schemas.calendar import CreateCalendarRequest, UpdateCalendarRequest
from app.services.calendar_sync import CalendarSyncService


class FakeTokenRefresher:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[int, Oauth2ServiceType]] = []

    async def get_credentials(self, member_id: int, service_type: Oauth2ServiceType) -> str:
        self.calls.append((member_id, service_type))
        if self.error is not None:
            raise self.error
        return f"credentials-{member_id}"


class FakeCalendarClient:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.error: GoogleCalendarError | None = None
        self.rejected: set[str] = set()
        self._counter = 0

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def insert_calendar(self, credentials, *, title, description, timezone):
        self.calls.append(("insert", title))
        self._check()
        self._counter += 1
        return {"id": f"external-{self._counter}@group.calendar.google.com"}

    async def patch_calendar(self, credentials, external_id, *, title, description, timezone):
        self.calls.append(("patch", external_id))
        self._check()
        return {"id": external_id, "summary": title}

    async def delete_calendar(self, credentials, external_id):
        self.calls.append(("delete", external_id))
        self._check()

    async def share_calendar(self, credentials, external_id, *, email, role="reader"):
        self.calls.append(("share", (external_id, email, role)))
        self._check()
        return {"role": role}

    async def add_attendees(self, credentials, external_id, event_id, attendees):
        self.calls.append(("attendees", event_id))
        self._check()
        return [
            AttendeeOutcome(
                email=attendee.email,
                succeeded=attendee.email not in self.rejected,
                error="forbidden" if attendee.email in self.rejected else None,
            )
            for attendee in attendees
        ]


class FakePublisher:
    def __init__(self) -> None:
        self.published = []

    def publish(self, request):
        self.published.append(request)
        return None


class FakeReporter:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    async def send_message(self, text, channel, fields=None) -> bool:
        self.messages.append((text, channel))
        return True


@pytest.fixture
def parts(database):
    store = CalendarStore(database)
    refresher = FakeTokenRefresher()
    client = FakeCalendarClient()
    publisher = FakePublisher()
    reporter = FakeReporter()
    service = CalendarSyncService(
        store=store,
        token_refresher=refresher,
        calendar_client=client,
        publisher=publisher,
        reporter=reporter,
        service_account_email="sync@feen-platform.iam.gserviceaccount.com",
        origin_domain="feen.com",
    )
    return service, store, refresher, client, publisher, reporter


def _request(code: str = "NG") -> CreateCalendarRequest:
    return CreateCalendarRequest(
        title="Nigeria",
        description="Events in Nigeria",
        timezone="Africa/Lagos",
        code=code,
        creator_email="ada@feen.com",
    )


def _seed(store: CalendarStore, **overrides) -> Calendar:
    values = {
        "external_id": "existing@group.calendar.google.com",
        "title": "Ghana",
        "code": "GH",
        "timezone": "Africa/Accra",
        "created_by": 1,
    }
    values.update(overrides)
    return store.save(Calendar(**values))


@pytest.mark.asyncio
async def test_create_calendar_persists_and_publishes(parts) -> None:
    service, store, refresher, client, publisher, _ = parts

    calendar = await service.create_calendar(1, "ada@feen.com", _request())

    assert calendar.calendar_id is not None
    assert calendar.external_id == "external-1@group.calendar.google.com"
    assert calendar.created_by == 1
    assert store.find_by_code("ng").calendar_id == calendar.calendar_id
    assert refresher.calls == [(1, Oauth2ServiceType.GOOGLE_CALENDAR)]

    [event] = publisher.published
    assert event.message_type == MessageType.CALENDAR_CREATED
    assert event.payload["calendar_id"] == calendar.calendar_id
    assert event.payload["creator_email"] == "ada@feen.com"


@pytest.mark.asyncio
async def test_create_calendar_without_token_makes_no_provider_call(parts) -> None:
    service, store, refresher, client, publisher, _ = parts
    refresher.error = AuthorizationRequiredError(1, Oauth2ServiceType.GOOGLE_CALENDAR)

    with pytest.raises(AuthorizationRequiredError):
        await service.create_calendar(1, "ada@feen.com", _request())

    assert client.calls == []
    assert publisher.published == []
    assert store.find_by_code("NG") is None


@pytest.mark.asyncio
async def test_create_calendar_rejects_duplicate_code_before_token_lookup(parts) -> None:
    service, store, refresher, client, _, _ = parts
    _seed(store, code="NG")

    with pytest.raises(CalendarAlreadyExistsError):
        await service.create_calendar(1, "ada@feen.com", _request("ng"))

    assert refresher.calls == []
    assert client.calls == []


@pytest.mark.asyncio
async def test_provider_failure_is_reported_and_nothing_persisted(parts) -> None:
    service, store, _, client, publisher, reporter = parts
    client.error = GoogleCalendarError("quota", status_code=403, reason="rateLimitExceeded")

    with pytest.raises(ExternalServiceError) as exc_info:
        await service.create_calendar(1, "ada@feen.com", _request())

    assert exc_info.value.provider_status == 403
    assert store.find_by_code("NG") is None
    assert publisher.published == []
    assert reporter.messages and reporter.messages[0][1] == "calendar-sync"


@pytest.mark.asyncio
async def test_update_calendar_patches_provider_and_local_row(parts) -> None:
    service, store, _, client, _, _ = parts
    seeded = _seed(store)

    updated = await service.update_calendar(
        seeded.calendar_id,
        1,
        UpdateCalendarRequest(title="Ghana Events", timezone="Africa/Accra"),
    )

    assert client.calls == [("patch", seeded.external_id)]
    assert updated.title == "Ghana Events"
    assert store.find_by_id(seeded.calendar_id).title == "Ghana Events"


@pytest.mark.asyncio
async def test_share_unknown_calendar_fails_before_token_lookup(parts) -> None:
    service, _, refresher, client, _, _ = parts

    with pytest.raises(CalendarNotFoundError):
        await service.share_calendar(999, 1, "guest@example.com")

    assert refresher.calls == []
    assert client.calls == []


@pytest.mark.asyncio
async def test_share_calendar_inserts_acl_and_publishes(parts) -> None:
    service, store, _, client, publisher, _ = parts
    seeded = _seed(store)

    await service.share_calendar(seeded.calendar_id, 1, "guest@example.com", role="writer")

    assert client.calls == [("share", (seeded.external_id, "guest@example.com", "writer"))]
    [event] = publisher.published
    assert event.message_type == MessageType.CALENDAR_SHARED
    assert event.payload["shared_with"] == "guest@example.com"


@pytest.mark.asyncio
async def test_add_attendees_reports_partial_failure(parts) -> None:
    service, store, _, client, publisher, _ = parts
    seeded = _seed(store)
    client.rejected = {"two@example.com"}
    attendees = [
        EventAttendee(email="one@example.com"),
        EventAttendee(email="two@example.com"),
        EventAttendee(email="three@example.com"),
    ]

    with pytest.raises(PartialFailureError) as exc_info:
        await service.add_attendees(seeded.calendar_id, 1, "evt-1", attendees)

    error = exc_info.value
    assert [item.email for item in error.succeeded] == ["one@example.com", "three@example.com"]
    assert [item.email for item in error.failed] == ["two@example.com"]

    [event] = publisher.published
    assert event.message_type == MessageType.CALENDAR_ATTENDEES_ADDED
    assert event.payload["attendees"] == ["one@example.com", "three@example.com"]


@pytest.mark.asyncio
async def test_add_attendees_all_succeed(parts) -> None:
    service, store, _, _, _, _ = parts
    seeded = _seed(store)

    result = await service.add_attendees(
        seeded.calendar_id, 1, "evt-1", [EventAttendee(email="one@example.com")]
    )

    assert result.failed == []
    assert [item.email for item in result.succeeded] == ["one@example.com"]


@pytest.mark.asyncio
async def test_deactivate_then_reactivate(parts) -> None:
    service, store, _, client, publisher, _ = parts
    seeded = _seed(store)

    deactivated = await service.deactivate_calendar(seeded.calendar_id, 1)
    assert deactivated.status == CalendarStatus.INACTIVE
    assert deactivated.external_id is None
    assert publisher.published[-1].message_type == MessageType.CALENDAR_DEACTIVATED

    with pytest.raises(CalendarNotFoundError):
        await service.share_calendar(seeded.calendar_id, 1, "guest@example.com")

    reactivated = await service.reactivate_calendar(seeded.calendar_id, 1, "ada@feen.com")
    assert reactivated.status == CalendarStatus.ACTIVE
    assert reactivated.external_id == "external-1@group.calendar.google.com"
    assert ("delete", seeded.external_id) in client.calls

    with pytest.raises(CalendarAlreadyActiveError):
        await service.reactivate_calendar(seeded.calendar_id, 1, "ada@feen.com")


@pytest.mark.asyncio
async def test_share_with_service_account_only_for_origin_domain(parts) -> None:
    service, store, _, client, publisher, _ = parts
    seeded = _seed(store)

    skipped = await service.share_with_service_account(
        seeded.calendar_id, 1, "someone@gmail.com"
    )
    assert skipped is None
    assert client.calls == []

    shared = await service.share_with_service_account(seeded.calendar_id, 1, "ada@Feen.com")
    assert shared is not None
    assert client.calls == [
        (
            "share",
            (seeded.external_id, "sync@feen-platform.iam.gserviceaccount.com", "writer"),
        )
    ]
    assert publisher.published == []


def test_search_calendars_filters_by_status_and_title(parts) -> None:
    service, store, _, _, _, _ = parts
    _seed(store, code="GH", title="Ghana")
    _seed(store, code="KE", title="Kenya", status=CalendarStatus.INACTIVE)

    assert [c.code for c in service.search_calendars(title="ken")] == ["KE"]
    assert [c.code for c in service.search_calendars(status=CalendarStatus.ACTIVE)] == ["GH"]
    with pytest.raises(CalendarNotFoundError):
        service.find_calendar(12345)
