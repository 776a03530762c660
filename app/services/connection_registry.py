"""
Registry of live client connections (server-sent event streams) per member.

Connections are opened when a stream starts and closed when it ends. Pushes
may arrive from worker threads, so each message is handed to the owning
event loop with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

_connection_ids = itertools.count(1)


@dataclass(eq=False)
class Connection:
    """Handle for one open stream."""

    member_id: int
    loop: asyncio.AbstractEventLoop
    queue: "asyncio.Queue[tuple[str, Dict[str, Any]]]" = field(default_factory=asyncio.Queue)
    connection_id: int = field(default_factory=lambda: next(_connection_ids))

    def deliver(self, event: str, data: Dict[str, Any]) -> None:
        self.loop.call_soon_threadsafe(self.queue.put_nowait, (event, data))

    async def next_message(self, timeout: float) -> tuple[str, Dict[str, Any]] | None:
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: Dict[int, List[Connection]] = {}
        self._lock = threading.Lock()

    def open(self, member_id: int) -> Connection:
        """Register a stream for ``member_id``; must be called on the stream's loop."""
        connection = Connection(member_id=member_id, loop=asyncio.get_running_loop())
        with self._lock:
            self._connections.setdefault(member_id, []).append(connection)
        logger.debug(
            "Opened connection",
            extra={"member_id": member_id, "connection_id": connection.connection_id},
        )
        return connection

    def close(self, connection: Connection) -> None:
        with self._lock:
            active = self._connections.get(connection.member_id, [])
            if connection in active:
                active.remove(connection)
            if not active:
                self._connections.pop(connection.member_id, None)

    def connections(self, member_id: int) -> List[Connection]:
        with self._lock:
            return list(self._connections.get(member_id, []))

    def push(self, member_id: int, event: str, data: Dict[str, Any]) -> int:
        """Send to every open connection of the member; returns how many were reached."""
        delivered = 0
        for connection in self.connections(member_id):
            try:
                connection.deliver(event, data)
            except RuntimeError:
                # Event loop already closed; the stream is gone.
                self.close(connection)
                continue
            delivered += 1
        return delivered

    def total_connections(self) -> int:
        with self._lock:
            return sum(len(items) for items in self._connections.values())


__all__ = ["Connection", "ConnectionRegistry"]
