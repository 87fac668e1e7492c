"""
Pytest configuration and shared fixtures for relaywatch tests.

Provides:
- FakeRelayNetwork: in-memory ConnectionFactory recording opens, queries
  and closes in one ordered log
- Event factory fixture
- Controller fixture wired to the fake network
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from relaywatch.models import FeedEvent, StructuredFilter
from relaywatch.services.feed import FeedConfig, FeedController


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Fake Relay Network
# ============================================================================


class FakeConnection:
    """RelayConnection double bound to a FakeRelayNetwork."""

    def __init__(self, url: str, network: FakeRelayNetwork) -> None:
        self.url = url
        self.network = network
        self.queries: list[tuple[StructuredFilter, float]] = []
        self.close_calls = 0

    async def query(self, relay_filter: StructuredFilter, timeout: float) -> list[FeedEvent]:  # noqa: ASYNC109
        self.queries.append((relay_filter, timeout))
        self.network.log.append(("query", self.url))
        if self.network.gate is not None:
            await self.network.gate.wait()
        if self.network.error is not None:
            raise self.network.error
        return list(self.network.events)

    async def close(self) -> None:
        self.close_calls += 1
        self.network.log.append(("close", self.url))
        if self.network.close_hang:
            await asyncio.Event().wait()
        if self.network.close_error is not None:
            raise self.network.close_error


class FakeRelayNetwork:
    """ConnectionFactory returning FakeConnection objects.

    Attributes:
        events: Events every query returns.
        error: Raised by every query when set.
        gate: When set, queries block until the gate is opened.
        close_error: Raised by every close when set.
        close_hang: When True, close never returns.
        log: Ordered ``(action, url)`` records of open, query and close.
    """

    def __init__(self) -> None:
        self.events: list[FeedEvent] = []
        self.error: BaseException | None = None
        self.gate: asyncio.Event | None = None
        self.close_error: BaseException | None = None
        self.close_hang = False
        self.log: list[tuple[str, str]] = []
        self.connections: list[FakeConnection] = []

    def __call__(self, url: str) -> FakeConnection:
        connection = FakeConnection(url, self)
        self.connections.append(connection)
        self.log.append(("open", url))
        return connection

    def hold(self) -> None:
        """Make queries block until release()."""
        self.gate = asyncio.Event()

    def release(self) -> None:
        if self.gate is not None:
            self.gate.set()

    @property
    def query_count(self) -> int:
        return sum(len(connection.queries) for connection in self.connections)

    async def wait_for_queries(self, count: int) -> None:
        """Yield to the loop until *count* queries have been issued."""
        async with asyncio.timeout(1.0):
            while self.query_count < count:
                await asyncio.sleep(0)


@pytest.fixture
def network() -> FakeRelayNetwork:
    return FakeRelayNetwork()


@pytest.fixture
def make_event() -> Callable[..., FeedEvent]:
    """Factory building FeedEvent objects with sensible defaults."""

    def factory(event_id: str, created_at: int, **overrides: Any) -> FeedEvent:
        data: dict[str, Any] = {
            "id": event_id,
            "pubkey": "a" * 64,
            "created_at": created_at,
            "kind": 1,
            "content": f"content {event_id}",
        }
        data.update(overrides)
        return FeedEvent(**data)

    return factory


@pytest.fixture
def feed_config() -> FeedConfig:
    return FeedConfig(query_timeout=0.2, close_timeout=0.2)


@pytest.fixture
async def controller(
    feed_config: FeedConfig, network: FakeRelayNetwork
) -> AsyncIterator[FeedController]:
    feed = FeedController(feed_config, connection_factory=network)
    yield feed
    network.release()
    await feed.close()
