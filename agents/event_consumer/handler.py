"""
AWS Lambda entrypoint and dispatcher for domain events.
"""

from __future__ import annotations

import asyncio
import json
import logging
from functools import lru_cache
from typing import Any, Dict, List

from pydantic import ValidationError

from agents.event_consumer.models import EventEnvelope
from app.core.config import get_settings
from app.core.errors import FeenError
from app.core.logging import configure_logging
from app.models.messaging import MessageType
from app.models.notification import NewNotification, NotificationType
from app.services import CalendarSyncService, NotificationWriter

logger = logging.getLogger(__name__)

_CALENDAR_NOTIFICATIONS = {
    MessageType.CALENDAR_CREATED: NotificationType.CALENDAR_CREATED,
    MessageType.CALENDAR_SHARED: NotificationType.CALENDAR_SHARED,
    MessageType.CALENDAR_ATTENDEES_ADDED: NotificationType.CALENDAR_ATTENDEES_ADDED,
    MessageType.CALENDAR_DEACTIVATED: NotificationType.CALENDAR_DEACTIVATED,
}


class EventHandler:
    """Dispatch one event envelope by its ``message_type``.

    Deliveries are at-least-once; notifications are keyed by the event id so
    a repeated envelope does not produce a second notification.
    """

    def __init__(self, writer: NotificationWriter, calendar_sync: CalendarSyncService) -> None:
        self._writer = writer
        self._calendar_sync = calendar_sync

    async def handle(self, message: EventEnvelope) -> bool:
        """Process ``message``; returns False when it was skipped."""
        event_id = message.get("event_id")
        try:
            message_type = MessageType(message.get("message_type"))
        except ValueError:
            logger.warning(
                "Skipping unknown event type",
                extra={"message_type": message.get("message_type"), "event_id": event_id},
            )
            return False

        payload: Dict[str, Any] = message.get("payload") or {}
        logger.info(
            "Handling event",
            extra={"message_type": message_type.value, "event_id": event_id},
        )

        if message_type == MessageType.NOTIFICATION_REQUESTED:
            return self._record_requested(payload, event_id)

        if payload.get("member_id") is None:
            logger.error("Skipping calendar event without member", extra={"event_id": event_id})
            return False

        self._record_calendar_notification(message_type, payload, event_id)
        if message_type == MessageType.CALENDAR_CREATED:
            await self._share_with_service_account(payload, event_id)
        return True

    def _record_requested(self, payload: Dict[str, Any], event_id: str | None) -> bool:
        try:
            notification = NewNotification.model_validate(
                {**payload, "event_id": payload.get("event_id") or event_id}
            )
        except ValidationError:
            logger.error(
                "Skipping malformed notification request", extra={"event_id": event_id}
            )
            return False
        self._writer.record(notification)
        return True

    def _record_calendar_notification(
        self, message_type: MessageType, payload: Dict[str, Any], event_id: str | None
    ) -> None:
        self._writer.record(
            NewNotification(
                receiver_id=int(payload["member_id"]),
                notification_type=_CALENDAR_NOTIFICATIONS[message_type],
                payload=payload,
                event_id=event_id,
            )
        )

    async def _share_with_service_account(
        self, payload: Dict[str, Any], event_id: str | None
    ) -> None:
        creator_email = payload.get("creator_email")
        if not creator_email:
            return
        try:
            await self._calendar_sync.share_with_service_account(
                int(payload["calendar_id"]), int(payload["member_id"]), creator_email
            )
        except FeenError as exc:
            # Provider failures were already reported by the sync service.
            logger.error(
                "Service account share failed",
                extra={"event_id": event_id, "error": exc.error_code},
            )


@lru_cache()
def get_event_handler() -> EventHandler:
    """Initialize shared singletons for the consumer runtime."""
    from app.dependencies import get_calendar_sync_service, get_notification_writer

    settings = get_settings()
    configure_logging(settings.log_level)
    return EventHandler(get_notification_writer(), get_calendar_sync_service())


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    AWS Lambda handler invoked by SQS.

    Records are processed sequentially; an unexpected error fails the batch so
    SQS redelivers it.
    """
    records: List[Dict[str, Any]] = event.get("Records", [])
    if not records:
        logger.warning("No records found in event payload.")
        return {"statusCode": 200, "processed": 0}

    messages: List[EventEnvelope] = []
    for record in records:
        body = record.get("body")
        if body is None:
            logger.error("Skipping record without body: %s", record.get("messageId"))
            continue
        try:
            messages.append(json.loads(body))
        except json.JSONDecodeError:
            logger.error("Skipping record with malformed body: %s", record.get("messageId"))

    if not messages:
        return {"statusCode": 200, "processed": 0}

    handler = get_event_handler()

    async def _process_all() -> int:
        processed = 0
        for message in messages:
            if await handler.handle(message):
                processed += 1
        return processed

    processed = asyncio.run(_process_all())
    return {"statusCode": 200, "processed": processed}


__all__ = ["EventHandler", "get_event_handler", "lambda_handler"]
