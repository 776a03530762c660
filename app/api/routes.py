"""
FastAPI routes for OAuth connection, calendar sync and notifications.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse, StreamingResponse

from app.dependencies import (
    AppSettingsDep,
    get_calendar_sync_service,
    get_connection_registry,
    get_google_oauth_client,
    get_notification_writer,
    get_oauth_state_encoder,
    get_token_refresher,
)
from app.models.calendar import CalendarStatus
from app.models.notification import Notification, NotificationStatus
from app.models.oauth import Oauth2ServiceType
from app.schemas import (
    AddAttendeesRequest,
    AddAttendeesResult,
    CalendarResponse,
    CreateCalendarRequest,
    MarkAllReadResponse,
    NotificationListResponse,
    OAuthCallbackPayload,
    OAuthConnectionResponse,
    ReactivateCalendarRequest,
    ShareCalendarRequest,
    ShareCalendarResponse,
    UnreadCountResponse,
    UpdateCalendarRequest,
)
from app.services.connection_registry import ConnectionRegistry
from app.services.notifications import NOTIFICATION_EVENT, NotificationWriter
from app.utils.sse import STREAM_HEADERS, format_sse, format_sse_comment

router = APIRouter()
logger = logging.getLogger(__name__)

STREAM_KEEPALIVE_SECONDS = 15.0
STREAM_POLL_SECONDS = 2.0

MemberId = Annotated[int, Query(ge=1, description="Member acting on the resource.")]


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/google/authorize", status_code=HTTPStatus.OK)
async def start_google_oauth_flow(
    request: Request,
    member_id: MemberId,
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    token_refresher: Annotated[Any, Depends(get_token_refresher)],
    service_type: Oauth2ServiceType = Query(
        default=Oauth2ServiceType.GOOGLE_CALENDAR,
        description="Google service the member is granting access to.",
    ),
    redirect_to: str | None = Query(
        default=None,
        description="Optional URL to redirect back to on successful authentication.",
    ),
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Google consent screen.",
    ),
) -> Any:
    """
    Kick off the OAuth flow by generating a state token and authorization URL.
    """
    state_payload = {
        "nonce": uuid.uuid4().hex,
        "redirect_to": redirect_to,
        "member_id": member_id,
        "service_type": service_type.value,
        "issued_at": datetime.now(timezone.utc).isoformat(),
    }
    state = state_encoder.encode(state_payload)
    authorization_url = oauth_client.build_authorization_url(
        state=state, scopes=token_refresher.scopes_for(service_type)
    )

    accept_header = request.headers.get("accept", "")
    wants_html = "text/html" in accept_header.lower()
    if redirect or wants_html:
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)

    return {"authorization_url": authorization_url, "state": state}


@router.post(
    "/auth/google/callback",
    response_model=OAuthConnectionResponse,
    status_code=HTTPStatus.OK,
)
async def handle_google_oauth_callback(
    payload: OAuthCallbackPayload,
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    token_refresher: Annotated[Any, Depends(get_token_refresher)],
    settings: AppSettingsDep,
) -> OAuthConnectionResponse:
    """Complete the OAuth exchange and store the member's tokens."""
    state_data = state_encoder.decode(payload.state)

    issued_at_raw = state_data.get("issued_at")
    if not issued_at_raw:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Missing issued_at in state token.",
        )

    try:
        issued_at = datetime.fromisoformat(issued_at_raw)
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Invalid issued_at in state token.",
        ) from exc

    if issued_at.tzinfo is None:
        issued_at = issued_at.replace(tzinfo=timezone.utc)

    now = datetime.now(timezone.utc)
    if now - issued_at > timedelta(seconds=settings.oauth.state_ttl_seconds):
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="OAuth state token has expired."
        )

    member_id = state_data.get("member_id")
    if not member_id:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Missing member identifier in state token.",
        )

    try:
        service_type = Oauth2ServiceType(
            state_data.get("service_type", Oauth2ServiceType.GOOGLE_CALENDAR.value)
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Unknown service type in state token.",
        ) from exc

    await token_refresher.complete_authorization(int(member_id), service_type, payload.code)

    return OAuthConnectionResponse(
        member_id=int(member_id),
        service_type=service_type,
        redirect_to=state_data.get("redirect_to"),
    )


@router.get("/auth/google/callback", status_code=HTTPStatus.OK)
async def handle_google_oauth_callback_get(
    request: Request,
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    token_refresher: Annotated[Any, Depends(get_token_refresher)],
    settings: AppSettingsDep,
    state: str = Query(..., description="OAuth state token."),
    code: str = Query(..., description="Authorization code returned by Google."),
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
) -> Response:
    payload = OAuthCallbackPayload(state=state, code=code)
    result = await handle_google_oauth_callback(
        payload=payload,
        state_encoder=state_encoder,
        token_refresher=token_refresher,
        settings=settings,
    )

    accept_header = request.headers.get("accept", "")
    wants_html = "text/html" in accept_header.lower()
    redirect_target = result.redirect_to or settings.frontend_base_url

    if redirect_target and (redirect or wants_html):
        return RedirectResponse(url=str(redirect_target), status_code=HTTPStatus.TEMPORARY_REDIRECT)

    return JSONResponse(content=result.model_dump(mode="json"))


@router.post("/calendars", response_model=CalendarResponse, status_code=HTTPStatus.CREATED)
async def create_calendar(
    payload: CreateCalendarRequest,
    member_id: MemberId,
    service: Annotated[Any, Depends(get_calendar_sync_service)],
) -> CalendarResponse:
    """Create a calendar on the member's Google account and mirror it locally."""
    calendar = await service.create_calendar(member_id, payload.creator_email, payload)
    return CalendarResponse.from_calendar(calendar)


@router.get("/calendars", response_model=list[CalendarResponse], status_code=HTTPStatus.OK)
async def search_calendars(
    service: Annotated[Any, Depends(get_calendar_sync_service)],
    status: Optional[CalendarStatus] = Query(default=None),
    title: Optional[str] = Query(default=None, description="Substring match on the title."),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> list[CalendarResponse]:
    calendars = service.search_calendars(status=status, title=title, limit=limit, offset=offset)
    return [CalendarResponse.from_calendar(calendar) for calendar in calendars]


@router.get(
    "/calendars/{calendar_id}", response_model=CalendarResponse, status_code=HTTPStatus.OK
)
async def get_calendar(
    calendar_id: int,
    service: Annotated[Any, Depends(get_calendar_sync_service)],
) -> CalendarResponse:
    return CalendarResponse.from_calendar(service.find_calendar(calendar_id))


@router.patch(
    "/calendars/{calendar_id}", response_model=CalendarResponse, status_code=HTTPStatus.OK
)
async def update_calendar(
    calendar_id: int,
    payload: UpdateCalendarRequest,
    member_id: MemberId,
    service: Annotated[Any, Depends(get_calendar_sync_service)],
) -> CalendarResponse:
    calendar = await service.update_calendar(calendar_id, member_id, payload)
    return CalendarResponse.from_calendar(calendar)


@router.post(
    "/calendars/{calendar_id}/share",
    response_model=ShareCalendarResponse,
    status_code=HTTPStatus.OK,
)
async def share_calendar(
    calendar_id: int,
    payload: ShareCalendarRequest,
    member_id: MemberId,
    service: Annotated[Any, Depends(get_calendar_sync_service)],
) -> ShareCalendarResponse:
    calendar = await service.share_calendar(
        calendar_id, member_id, payload.email, role=payload.role
    )
    return ShareCalendarResponse(
        calendar_id=calendar_id,
        shared_with=payload.email,
        role=payload.role,
        calendar=CalendarResponse.from_calendar(calendar),
    )


@router.post(
    "/calendars/{calendar_id}/events/{event_id}/attendees",
    response_model=AddAttendeesResult,
    status_code=HTTPStatus.OK,
)
async def add_event_attendees(
    calendar_id: int,
    event_id: str,
    payload: AddAttendeesRequest,
    member_id: MemberId,
    service: Annotated[Any, Depends(get_calendar_sync_service)],
) -> AddAttendeesResult:
    """Add attendees to an event.

    Responds 207 with per-attendee outcomes when only some were added.
    """
    return await service.add_attendees(calendar_id, member_id, event_id, payload.attendees)


@router.delete(
    "/calendars/{calendar_id}", response_model=CalendarResponse, status_code=HTTPStatus.OK
)
async def deactivate_calendar(
    calendar_id: int,
    member_id: MemberId,
    service: Annotated[Any, Depends(get_calendar_sync_service)],
) -> CalendarResponse:
    calendar = await service.deactivate_calendar(calendar_id, member_id)
    return CalendarResponse.from_calendar(calendar)


@router.post(
    "/calendars/{calendar_id}/reactivate",
    response_model=CalendarResponse,
    status_code=HTTPStatus.OK,
)
async def reactivate_calendar(
    calendar_id: int,
    payload: ReactivateCalendarRequest,
    member_id: MemberId,
    service: Annotated[Any, Depends(get_calendar_sync_service)],
) -> CalendarResponse:
    calendar = await service.reactivate_calendar(calendar_id, member_id, payload.creator_email)
    return CalendarResponse.from_calendar(calendar)


@router.get(
    "/notifications", response_model=NotificationListResponse, status_code=HTTPStatus.OK
)
async def list_notifications(
    member_id: MemberId,
    writer: Annotated[Any, Depends(get_notification_writer)],
    status: Optional[NotificationStatus] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> NotificationListResponse:
    notifications = writer.find_notifications(
        member_id, status=status, limit=limit, offset=offset
    )
    return NotificationListResponse(
        receiver_id=member_id,
        unread_count=writer.count_unread(member_id),
        notifications=notifications,
    )


@router.get(
    "/notifications/unread-count",
    response_model=UnreadCountResponse,
    status_code=HTTPStatus.OK,
)
async def unread_notification_count(
    member_id: MemberId,
    writer: Annotated[Any, Depends(get_notification_writer)],
) -> UnreadCountResponse:
    return UnreadCountResponse(receiver_id=member_id, unread_count=writer.count_unread(member_id))


@router.post(
    "/notifications/read-all",
    response_model=MarkAllReadResponse,
    status_code=HTTPStatus.OK,
)
async def mark_all_notifications_read(
    member_id: MemberId,
    writer: Annotated[Any, Depends(get_notification_writer)],
) -> MarkAllReadResponse:
    return MarkAllReadResponse(receiver_id=member_id, updated=writer.mark_all_read(member_id))


@router.post(
    "/notifications/{notification_id}/read",
    response_model=Notification,
    status_code=HTTPStatus.OK,
)
async def mark_notification_read(
    notification_id: int,
    member_id: MemberId,
    writer: Annotated[Any, Depends(get_notification_writer)],
) -> Notification:
    return writer.mark_read(notification_id, member_id)


async def notification_events(
    request: Request,
    registry: ConnectionRegistry,
    writer: NotificationWriter,
    member_id: int,
    *,
    poll_seconds: float = STREAM_POLL_SECONDS,
    keepalive_seconds: float = STREAM_KEEPALIVE_SECONDS,
) -> AsyncGenerator[str, None]:
    """Yield SSE-formatted notifications until the client disconnects.

    Notifications are read back from the store, so rows recorded by the event
    consumer in another process reach the stream as well. A push through the
    registry only wakes the loop early; other event types are forwarded as is.
    """
    loop = asyncio.get_running_loop()
    last_id = writer.latest_notification_id(member_id)
    connection = registry.open(member_id)
    try:
        yield format_sse("connected", {"member_id": member_id})
        last_sent = loop.time()
        while not await request.is_disconnected():
            for notification in writer.find_since(member_id, last_id):
                last_id = notification.notification_id
                last_sent = loop.time()
                yield format_sse(NOTIFICATION_EVENT, notification.model_dump(mode="json"))

            message = await connection.next_message(timeout=poll_seconds)
            if message is not None:
                event, data = message
                if event != NOTIFICATION_EVENT:
                    last_sent = loop.time()
                    yield format_sse(event, data)
                continue
            if loop.time() - last_sent >= keepalive_seconds:
                last_sent = loop.time()
                yield format_sse_comment()
    finally:
        registry.close(connection)
        logger.debug("Notification stream closed", extra={"member_id": member_id})


@router.get("/notifications/stream")
async def stream_notifications(
    request: Request,
    member_id: MemberId,
    registry: Annotated[ConnectionRegistry, Depends(get_connection_registry)],
    writer: Annotated[NotificationWriter, Depends(get_notification_writer)],
) -> StreamingResponse:
    """Server-sent events stream of new notifications for the member."""
    return StreamingResponse(
        notification_events(request, registry, writer, member_id),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


__all__ = ["notification_events", "router"]
