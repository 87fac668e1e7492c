"""Open-ended subscription: one request resolving with one batch.

The relay contract modelled here delivers a single batch per activation
(the stored events up to end-of-stored-events). The connection is left
open afterwards and is released when the controller deactivates the run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relaywatch.core.exceptions import ActivationCancelled, StreamFailedError
from relaywatch.core.logger import Logger

from .aggregator import sort_events
from .configs import FeedConfig
from .executor import describe_error


if TYPE_CHECKING:
    from relaywatch.models.event import FeedEvent
    from relaywatch.models.filter import StructuredFilter

    from .session import ConnectionSession


class StreamSubscriber:
    """Runs one subscription over a [ConnectionSession][relaywatch.services.feed.session.ConnectionSession]."""

    def __init__(self, config: FeedConfig | None = None, logger: Logger | None = None) -> None:
        self._config = config or FeedConfig()
        self._logger = logger or Logger("feed.subscriber")

    async def subscribe(
        self, session: ConnectionSession, relay_filter: StructuredFilter
    ) -> list[FeedEvent]:
        """Return the subscription's batch, newest first.

        Raises:
            StreamFailedError: If the request failed. The session is closed.
            ActivationCancelled: If the activation was cancelled meanwhile.
        """
        try:
            connection = session.open()
            self._logger.debug("subscription_started", relay=session.address)
            events = await session.guard(
                connection.query(relay_filter, self._config.stream_timeout)
            )
        except ActivationCancelled:
            raise
        except Exception as e:
            await session.close()
            raise StreamFailedError(session.address, describe_error(e)) from e

        self._logger.debug("subscription_batch", relay=session.address, events=len(events))
        return sort_events(events)
