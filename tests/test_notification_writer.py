from __future__ import annotations

import pytest

from app.core.errors import NotificationNotFoundError
from app.models.notification import NewNotification, NotificationStatus, NotificationType
from app.repositories.notifications import NotificationStore
from app.services.connection_registry import ConnectionRegistry
from app.services.notifications import NOTIFICATION_EVENT, NotificationWriter


def _notification(receiver_id: int = 7, event_id: str | None = None) -> NewNotification:
    return NewNotification(
        receiver_id=receiver_id,
        notification_type=NotificationType.CALENDAR_SHARED,
        payload={"calendar_id": 3},
        event_id=event_id,
    )


@pytest.fixture
def writer(database) -> NotificationWriter:
    return NotificationWriter(NotificationStore(database))


def test_record_stores_unread_notification_with_message_key(writer) -> None:
    stored = writer.record(_notification())

    assert stored.status == NotificationStatus.UNREAD
    assert stored.message_key == "calendar.shared"
    assert stored.notification_type == NotificationType.CALENDAR_SHARED
    assert writer.count_unread(7) == 1


def test_duplicate_event_is_recorded_once(writer) -> None:
    first = writer.record(_notification(event_id="evt-1"))
    second = writer.record(_notification(event_id="evt-1"))

    assert first.notification_id == second.notification_id
    assert len(writer.find_notifications(7)) == 1


def test_mark_read_is_idempotent(writer) -> None:
    stored = writer.record(_notification())

    first = writer.mark_read(stored.notification_id, 7)
    second = writer.mark_read(stored.notification_id, 7)

    assert first.status == NotificationStatus.READ
    assert second.status == NotificationStatus.READ
    assert second.read_on == first.read_on
    assert writer.count_unread(7) == 0


def test_mark_read_rejects_other_receivers(writer) -> None:
    stored = writer.record(_notification(receiver_id=7))

    with pytest.raises(NotificationNotFoundError):
        writer.mark_read(stored.notification_id, 8)

    assert writer.count_unread(7) == 1


def test_mark_all_read_leaves_other_receivers_untouched(writer) -> None:
    writer.record(_notification(receiver_id=7))
    writer.record(_notification(receiver_id=7))
    writer.record(_notification(receiver_id=8))

    assert writer.mark_all_read(7) == 2
    assert writer.count_unread(7) == 0
    assert writer.count_unread(8) == 1
    assert writer.mark_all_read(7) == 0


def test_find_notifications_filters_by_status(writer) -> None:
    read = writer.record(_notification())
    writer.record(_notification())
    writer.mark_read(read.notification_id, 7)

    unread = writer.find_notifications(7, status=NotificationStatus.UNREAD)
    assert len(unread) == 1
    assert unread[0].notification_id != read.notification_id


@pytest.mark.asyncio
async def test_new_notification_is_pushed_to_open_connections(database) -> None:
    registry = ConnectionRegistry()
    writer = NotificationWriter(NotificationStore(database), registry)
    connection = registry.open(7)

    stored = writer.record(_notification(event_id="evt-9"))
    writer.record(_notification(event_id="evt-9"))

    event, data = await connection.next_message(timeout=1)
    assert event == NOTIFICATION_EVENT
    assert data["notification_id"] == stored.notification_id
    assert await connection.next_message(timeout=0.05) is None
    registry.close(connection)
