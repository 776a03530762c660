"""
Fire-and-forget publication of domain events.

``publish`` only submits a delivery task to a worker pool; the caller never
waits for the queue. Delivery failures are logged and dropped, so they never
reach the request that triggered them.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional, Protocol

from app.models.messaging import PublishMessageRequest

logger = logging.getLogger(__name__)


class QueueClient(Protocol):
    def send_message(self, message: Dict[str, Any]) -> str: ...


class EventPublisher:
    """Submit event envelopes to a background pool that delivers them to a queue."""

    def __init__(
        self,
        queue_client: QueueClient,
        *,
        max_workers: int = 4,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._queue = queue_client
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="event-publisher"
        )

    def publish(self, request: PublishMessageRequest) -> Optional[Future]:
        """Schedule delivery and return immediately.

        The returned future resolves to the queue message id, or ``None`` when
        delivery failed. ``None`` is returned instead of a future when the pool
        no longer accepts work.
        """
        try:
            return self._executor.submit(self._deliver, request)
        except RuntimeError:
            logger.error(
                "Publisher is shut down; dropping event",
                extra={"event_id": request.event_id, "message_type": request.message_type.value},
            )
            return None

    def _deliver(self, request: PublishMessageRequest) -> Optional[str]:
        try:
            message_id = self._queue.send_message(request.to_message())
        except Exception:
            logger.exception(
                "Failed to publish event",
                extra={"event_id": request.event_id, "message_type": request.message_type.value},
            )
            return None
        logger.info(
            "Published event",
            extra={
                "event_id": request.event_id,
                "message_type": request.message_type.value,
                "message_id": message_id,
            },
        )
        return message_id

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["EventPublisher", "QueueClient"]
