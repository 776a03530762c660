from __future__ import annotations

import asyncio
import threading

import pytest

from app.services.connection_registry import ConnectionRegistry


@pytest.mark.anyio
async def test_push_reaches_every_connection_of_member() -> None:
    registry = ConnectionRegistry()
    first = registry.open(1)
    second = registry.open(1)
    other = registry.open(2)

    delivered = registry.push(1, "notification", {"id": 10})

    assert delivered == 2
    assert await first.next_message(timeout=1) == ("notification", {"id": 10})
    assert await second.next_message(timeout=1) == ("notification", {"id": 10})
    assert await other.next_message(timeout=0.05) is None


@pytest.mark.anyio
async def test_push_from_worker_thread_is_marshalled_to_loop() -> None:
    registry = ConnectionRegistry()
    connection = registry.open(5)

    thread = threading.Thread(target=registry.push, args=(5, "notification", {"id": 1}))
    thread.start()
    await asyncio.to_thread(thread.join)

    assert await connection.next_message(timeout=1) == ("notification", {"id": 1})


@pytest.mark.anyio
async def test_close_removes_connection() -> None:
    registry = ConnectionRegistry()
    connection = registry.open(3)
    registry.close(connection)
    registry.close(connection)

    assert registry.connections(3) == []
    assert registry.total_connections() == 0
    assert registry.push(3, "notification", {}) == 0
