"""Local worker that processes queued events from SQLite."""

from __future__ import annotations

import asyncio
import logging

from agents.event_consumer.handler import EventHandler, get_event_handler
from app.clients.local_queue import SQLiteQueueClient
from app.dependencies import get_database

logger = logging.getLogger(__name__)


class EventQueueWorker:
    """Poll the SQLite queue and dispatch events to the handler."""

    def __init__(
        self,
        queue_client: SQLiteQueueClient,
        handler: EventHandler,
        poll_interval_seconds: float = 1.0,
    ) -> None:
        self._queue = queue_client
        self._handler = handler
        self._poll_interval = poll_interval_seconds

    async def run_forever(self) -> None:
        while True:
            if not await self.process_next():
                await asyncio.sleep(self._poll_interval)

    async def process_next(self) -> bool:
        """Handle one queued message.

        Returns False when the queue was empty or handling failed, so the
        polling loop backs off before the message is offered again.
        """
        queued = self._queue.receive_message()
        if queued is None:
            return False

        event_id = queued.body.get("event_id")
        logger.info("Dequeued event", extra={"event_id": event_id})
        try:
            await self._handler.handle(queued.body)
        except Exception:
            # Left in the queue; the receive count bounds redelivery.
            logger.exception("Failed processing event", extra={"event_id": event_id})
            return False
        self._queue.delete_message(queued.receipt)
        return True


async def main(poll_interval_seconds: float = 1.0) -> None:
    worker = EventQueueWorker(
        queue_client=SQLiteQueueClient(get_database()),
        handler=get_event_handler(),
        poll_interval_seconds=poll_interval_seconds,
    )
    await worker.run_forever()


if __name__ == "__main__":  # pragma: no cover - manual execution path
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Event queue worker stopped")
