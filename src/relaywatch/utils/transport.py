"""Relay transport over nostr-sdk.

The feed controller talks to a relay only through the narrow
[RelayConnection][relaywatch.utils.transport.RelayConnection] protocol:
one async ``query`` returning a finite list of events, and an idempotent
``close``. [NostrRelayConnection][relaywatch.utils.transport.NostrRelayConnection]
implements it with a ``nostr_sdk.Client`` bound to a single relay. Tests
inject their own [ConnectionFactory][relaywatch.utils.transport.ConnectionFactory].

Note:
    The client is created and connected lazily on the first ``query`` so a
    connection object can be handed out before any I/O happens, and so an
    activation cancelled early never opens a socket.

See Also:
    [ConnectionSession][relaywatch.services.feed.session.ConnectionSession]:
        Owns one connection per activation and guarantees a single close.

Examples:
    ```python
    connection = NostrRelayConnection("wss://relay.damus.io")
    try:
        events = await connection.query(StructuredFilter(kinds=(1,), limit=5), timeout=10.0)
    finally:
        await connection.close()
    ```
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING, Final, Protocol

from nostr_sdk import Client, ClientBuilder, Filter, RelayUrl

from relaywatch.models.event import FeedEvent


if TYPE_CHECKING:
    from relaywatch.models.filter import StructuredFilter


DEFAULT_CONNECT_TIMEOUT: Final[float] = 10.0

logger = logging.getLogger("utils.transport")

# nostr-sdk logs its own connection noise; errors are reported by our code
logging.getLogger("nostr_sdk").setLevel(logging.CRITICAL)


class RelayConnection(Protocol):
    """What the feed needs from a relay connection."""

    async def query(self, relay_filter: StructuredFilter, timeout: float) -> list[FeedEvent]:  # noqa: ASYNC109
        """Send one request and return the events delivered before end-of-stored-events."""
        ...

    async def close(self) -> None:
        """Release the connection. Must be safe to call more than once."""
        ...


ConnectionFactory = Callable[[str], RelayConnection]


def to_nostr_filter(relay_filter: StructuredFilter) -> Filter:
    """Build a ``nostr_sdk.Filter`` from the wire form of *relay_filter*.

    Raises:
        nostr_sdk.NostrSdkError: If a value is rejected by nostr-sdk (for
            instance an author that is neither hex nor decodable).
    """
    return Filter.from_json(json.dumps(relay_filter.to_wire()))


class NostrRelayConnection:
    """[RelayConnection][relaywatch.utils.transport.RelayConnection] backed by ``nostr_sdk.Client``.

    Args:
        url: Normalized ``ws://``/``wss://`` relay URL.
        connect_timeout: Seconds allowed for the WebSocket handshake.
    """

    def __init__(self, url: str, *, connect_timeout: float = DEFAULT_CONNECT_TIMEOUT) -> None:
        self.url = url
        self._connect_timeout = connect_timeout
        self._client: Client | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _connect(self) -> Client:
        if self._closed:
            raise OSError(f"Connection already closed: {self.url}")
        if self._client is not None:
            return self._client

        relay_url = RelayUrl.parse(self.url)
        client = ClientBuilder().build()
        self._client = client
        await client.add_relay(relay_url)

        logger.debug("relay_connecting relay=%s", self.url)
        output = await client.try_connect(timedelta(seconds=self._connect_timeout))
        if relay_url not in output.success:
            error_message = output.failed.get(relay_url, "Unknown error")
            logger.debug("relay_connect_failed relay=%s error=%s", self.url, error_message)
            raise OSError(f"Connection failed: {self.url} ({error_message})")

        logger.debug("relay_connected relay=%s", self.url)
        return client

    async def query(self, relay_filter: StructuredFilter, timeout: float) -> list[FeedEvent]:  # noqa: ASYNC109
        """Connect if needed, send one request and collect the stored events.

        Events that cannot be represented as
        [FeedEvent][relaywatch.models.event.FeedEvent] are skipped.

        Raises:
            OSError: If the relay cannot be reached.
            nostr_sdk.NostrSdkError: On filter or protocol errors.
        """
        client = await self._connect()
        nostr_filter = to_nostr_filter(relay_filter)

        events = await client.fetch_events(nostr_filter, timedelta(seconds=timeout))

        results: list[FeedEvent] = []
        for event in events.to_vec():
            try:
                results.append(FeedEvent.from_nostr(event))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("event_parse_error relay=%s error=%s", self.url, e)

        logger.debug("relay_query_done relay=%s events=%s", self.url, len(results))
        return results

    async def close(self) -> None:
        """Shut the client down. Idempotent."""
        if self._closed:
            return
        self._closed = True

        client, self._client = self._client, None
        if client is not None:
            await client.shutdown()
            logger.debug("relay_closed relay=%s", self.url)


def nostr_connection_factory(connect_timeout: float = DEFAULT_CONNECT_TIMEOUT) -> ConnectionFactory:
    """Return a factory building [NostrRelayConnection][relaywatch.utils.transport.NostrRelayConnection] objects."""

    def factory(url: str) -> RelayConnection:
        return NostrRelayConnection(url, connect_timeout=connect_timeout)

    return factory
