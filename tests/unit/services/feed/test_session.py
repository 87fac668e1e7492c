"""
Unit tests for services.feed.session module.

Tests:
- CancellationToken
- ConnectionSession construction, open(), guard(), close()
"""

import asyncio
import logging

import pytest

from relaywatch.core.exceptions import ActivationCancelled, InvalidAddressError
from relaywatch.models import StructuredFilter
from relaywatch.services.feed.session import CancellationToken, ConnectionSession


class TestCancellationToken:
    def test_initially_not_cancelled(self):
        assert CancellationToken().cancelled is False

    async def test_cancel_releases_waiters(self):
        token = CancellationToken()
        waiter = asyncio.create_task(token.wait())
        await asyncio.sleep(0)
        token.cancel()
        await asyncio.wait_for(waiter, timeout=1.0)
        assert token.cancelled is True


class TestConstruction:
    def test_normalizes_address(self, network):
        session = ConnectionSession("relay.example.com", network)
        assert session.address == "wss://relay.example.com"

    def test_invalid_address_raises(self, network):
        with pytest.raises(InvalidAddressError):
            ConnectionSession("http://relay.example.com", network)
        assert network.connections == []

    def test_uses_given_token(self, network):
        token = CancellationToken()
        assert ConnectionSession("relay.example.com", network, token=token).token is token


class TestOpen:
    def test_builds_connection_once(self, network):
        session = ConnectionSession("relay.example.com", network)
        assert session.open() is session.open()
        assert len(network.connections) == 1
        assert network.connections[0].url == "wss://relay.example.com"

    def test_cancelled_session_does_not_open(self, network):
        session = ConnectionSession("relay.example.com", network)
        session.token.cancel()
        with pytest.raises(ActivationCancelled):
            session.open()
        assert network.connections == []

    async def test_closed_session_does_not_open(self, network):
        session = ConnectionSession("relay.example.com", network)
        await session.close()
        with pytest.raises(ActivationCancelled):
            session.open()


class TestGuard:
    async def test_returns_result(self, network, make_event):
        network.events = [make_event("a", 1)]
        session = ConnectionSession("relay.example.com", network)
        events = await session.guard(session.open().query(StructuredFilter(), 1.0))
        assert [e.id for e in events] == ["a"]

    async def test_propagates_query_error(self, network):
        network.error = OSError("refused")
        session = ConnectionSession("relay.example.com", network)
        with pytest.raises(OSError, match="refused"):
            await session.guard(session.open().query(StructuredFilter(), 1.0))

    async def test_cancel_abandons_pending_query(self, network):
        network.hold()
        session = ConnectionSession("relay.example.com", network)
        guarded = asyncio.create_task(session.guard(session.open().query(StructuredFilter(), 1.0)))
        await network.wait_for_queries(1)

        session.token.cancel()
        with pytest.raises(ActivationCancelled):
            await asyncio.wait_for(guarded, timeout=1.0)

    async def test_already_cancelled_token_wins(self, network, make_event):
        network.events = [make_event("a", 1)]
        session = ConnectionSession("relay.example.com", network)
        connection = session.open()
        session.token.cancel()
        with pytest.raises(ActivationCancelled):
            await session.guard(connection.query(StructuredFilter(), 1.0))


class TestClose:
    async def test_closes_exactly_once(self, network):
        session = ConnectionSession("relay.example.com", network)
        session.open()

        await session.close()
        await session.close()

        assert network.connections[0].close_calls == 1
        assert session.closed is True

    async def test_close_without_open(self, network):
        session = ConnectionSession("relay.example.com", network)
        await session.close()
        assert network.connections == []

    async def test_close_does_not_cancel_token(self, network):
        session = ConnectionSession("relay.example.com", network)
        await session.close()
        assert session.cancelled is False

    async def test_close_error_swallowed_and_logged(self, network, caplog):
        network.close_error = RuntimeError("close exploded")
        session = ConnectionSession("relay.example.com", network)
        session.open()

        with caplog.at_level(logging.WARNING):
            await session.close()

        assert network.connections[0].close_calls == 1
        assert any(r.getMessage() == "session_close_failed" for r in caplog.records)

    async def test_close_timeout_swallowed(self, network):
        network.close_hang = True
        session = ConnectionSession("relay.example.com", network, close_timeout=0.05)
        session.open()
        await asyncio.wait_for(session.close(), timeout=1.0)
        assert session.closed is True
