"""Connection ownership and cooperative cancellation for one activation.

A [ConnectionSession][relaywatch.services.feed.session.ConnectionSession]
wraps at most one [RelayConnection][relaywatch.utils.transport.RelayConnection]
and a [CancellationToken][relaywatch.services.feed.session.CancellationToken].
Every pending network call goes through
[guard()][relaywatch.services.feed.session.ConnectionSession.guard], which
races it against the token so a stop or key change abandons the call
immediately, whether or not the relay ever answers.

Lifecycle:

1. The controller creates a session and a token per activation.
2. The executor or subscriber calls ``open()`` once, then ``guard(query)``.
3. Deactivation cancels the token and calls ``close()``. The executor also
   closes in its ``finally`` block; the connection is closed exactly once.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, TypeVar

from relaywatch.core.exceptions import ActivationCancelled, InvalidAddressError
from relaywatch.core.logger import Logger
from relaywatch.models.relay import RelayAddress


if TYPE_CHECKING:
    from collections.abc import Awaitable

    from relaywatch.utils.transport import ConnectionFactory, RelayConnection


T = TypeVar("T")

DEFAULT_CLOSE_TIMEOUT = 5.0


class CancellationToken:
    """One-shot cancellation signal shared by an activation and its session."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


def _consume_result(task: asyncio.Future[Any]) -> None:
    # Retrieve the outcome of an abandoned query so asyncio does not report
    # "exception was never retrieved" for it.
    if not task.cancelled():
        task.exception()


class ConnectionSession:
    """Owns at most one relay connection for one activation.

    Args:
        address: Relay address; normalized before use.
        factory: Builds the connection on ``open()``.
        token: Activation token. A fresh one is created when omitted.
        close_timeout: Seconds allowed for the connection's ``close()``.
        logger: Logger for close failures.

    Raises:
        InvalidAddressError: If *address* is not an acceptable relay URL.
    """

    def __init__(
        self,
        address: str,
        factory: ConnectionFactory,
        *,
        token: CancellationToken | None = None,
        close_timeout: float = DEFAULT_CLOSE_TIMEOUT,
        logger: Logger | None = None,
    ) -> None:
        relay = RelayAddress(address)
        if not relay.acceptable:
            raise InvalidAddressError(address)

        self.address = relay.url
        self.token = token if token is not None else CancellationToken()
        self._factory = factory
        self._close_timeout = close_timeout
        self._logger = logger or Logger("feed.session")
        self._connection: RelayConnection | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def open(self) -> RelayConnection:
        """Return the session's connection, building it on first use.

        Raises:
            ActivationCancelled: If the token fired or the session is closed.
        """
        if self.token.cancelled or self._closed:
            raise ActivationCancelled(self.address)
        if self._connection is None:
            self._connection = self._factory(self.address)
        return self._connection

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the token fires first.

        The losing side is cancelled. An abandoned query is not awaited;
        closing the connection is what releases its resources.

        Raises:
            ActivationCancelled: If the token fired before (or together
                with) the result.
        """
        query = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.token.wait())
        try:
            await asyncio.wait({query, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if query.done():
                _consume_result(query)
            else:
                query.cancel()
                query.add_done_callback(_consume_result)

        if self.token.cancelled:
            raise ActivationCancelled(self.address)
        return query.result()

    async def close(self) -> None:
        """Close the connection exactly once. Close errors are logged, not raised."""
        if self._closed:
            return
        self._closed = True

        connection, self._connection = self._connection, None
        if connection is None:
            return

        try:
            await asyncio.wait_for(connection.close(), timeout=self._close_timeout)
        except Exception as e:  # noqa: BLE001
            self._logger.warning(
                "session_close_failed",
                relay=self.address,
                error=str(e) or type(e).__name__,
            )
        else:
            self._logger.debug("session_closed", relay=self.address)
