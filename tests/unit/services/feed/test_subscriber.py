"""
Unit tests for services.feed.subscriber module.
"""

import asyncio

import pytest

from relaywatch.core.exceptions import ActivationCancelled, StreamFailedError
from relaywatch.models import StructuredFilter
from relaywatch.services.feed import FeedConfig
from relaywatch.services.feed.session import ConnectionSession
from relaywatch.services.feed.subscriber import StreamSubscriber


@pytest.fixture
def subscriber():
    return StreamSubscriber(FeedConfig(stream_timeout=30.0))


@pytest.fixture
def session(network):
    return ConnectionSession("relay.example.com", network)


class TestSubscribe:
    async def test_sorted_batch(self, subscriber, session, network, make_event):
        network.events = [make_event("a", 150), make_event("b", 300), make_event("c", 150)]
        events = await subscriber.subscribe(session, StructuredFilter(limit=50))
        assert [e.id for e in events] == ["b", "a", "c"]

    async def test_connection_left_open(self, subscriber, session, network):
        await subscriber.subscribe(session, StructuredFilter(limit=50))
        assert network.connections[0].close_calls == 0
        assert session.closed is False

    async def test_uses_stream_timeout(self, subscriber, session, network):
        await subscriber.subscribe(session, StructuredFilter(limit=50))
        assert network.connections[0].queries[0][1] == 30.0

    async def test_failure_closes_and_raises(self, subscriber, session, network):
        network.error = OSError("reset by peer")
        with pytest.raises(StreamFailedError, match=r"^Streaming failed: reset by peer$"):
            await subscriber.subscribe(session, StructuredFilter(limit=50))
        assert network.connections[0].close_calls == 1

    async def test_cancelled(self, subscriber, session, network):
        network.hold()
        task = asyncio.create_task(subscriber.subscribe(session, StructuredFilter(limit=50)))
        await network.wait_for_queries(1)

        session.token.cancel()
        with pytest.raises(ActivationCancelled):
            await asyncio.wait_for(task, timeout=1.0)
