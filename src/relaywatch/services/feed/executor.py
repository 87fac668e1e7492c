"""Bounded fetch: one connection, one timed request, one close.

The request is raced against both a hard time ceiling
(``FeedConfig.query_timeout``, 10 seconds by default) and the activation's
cancellation token. Whatever the outcome, the session is closed exactly
once before the executor returns or raises.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from relaywatch.core.exceptions import ActivationCancelled, ConnectionTimeoutError, QueryFailedError
from relaywatch.core.logger import Logger

from .aggregator import sort_events
from .configs import FeedConfig


if TYPE_CHECKING:
    from relaywatch.models.event import FeedEvent
    from relaywatch.models.filter import StructuredFilter

    from .session import ConnectionSession


def describe_error(error: BaseException) -> str:
    """Return the error text, falling back to the exception class name."""
    return str(error) or type(error).__name__


class QueryExecutor:
    """Runs one bounded query over a [ConnectionSession][relaywatch.services.feed.session.ConnectionSession]."""

    def __init__(self, config: FeedConfig | None = None, logger: Logger | None = None) -> None:
        self._config = config or FeedConfig()
        self._logger = logger or Logger("feed.executor")

    async def fetch(self, session: ConnectionSession, relay_filter: StructuredFilter) -> list[FeedEvent]:
        """Fetch the events matching *relay_filter*, newest first.

        Raises:
            ConnectionTimeoutError: If the relay did not answer within
                ``query_timeout`` seconds.
            QueryFailedError: On any other transport or protocol error.
            ActivationCancelled: If the activation was cancelled meanwhile.
        """
        timeout = self._config.query_timeout
        try:
            connection = session.open()
            self._logger.debug("fetch_started", relay=session.address, timeout=timeout)
            async with asyncio.timeout(timeout):
                events = await session.guard(connection.query(relay_filter, timeout))
        except ActivationCancelled:
            raise
        except TimeoutError as e:
            raise ConnectionTimeoutError(session.address, timeout) from e
        except Exception as e:
            raise QueryFailedError(session.address, describe_error(e)) from e
        finally:
            await session.close()

        self._logger.debug("fetch_completed", relay=session.address, events=len(events))
        return sort_events(events)
