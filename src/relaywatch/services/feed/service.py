"""Event feed controller: the mode state machine over fetch and stream runs.

[FeedController][relaywatch.services.feed.service.FeedController] turns
filter form input into at most one running activation and exposes the
result as a single immutable [FeedState][relaywatch.services.feed.service.FeedState].

Mode selection:

* Unacceptable address: any run is cancelled and the feed is ``idle``.
  No connection is attempted.
* Limit present: a bounded fetch, started only by
  [submit()][relaywatch.services.feed.service.FeedController.submit].
  Editing the form while a subscription runs stops it.
* Limit absent: a subscription starts automatically whenever the
  [ActivationKey][relaywatch.models.filter.ActivationKey] changes. Input
  that leaves the key unchanged (a malformed kind, blank tags) does not
  restart it, and after an explicit ``stop()`` the same key stays stopped.

Every activation owns a fresh
[ConnectionSession][relaywatch.services.feed.session.ConnectionSession] and
cancellation token. Starting a run first cancels the token of the previous
one, closes its connection and awaits its task. The token is checked before
every state mutation, so a late result from a cancelled run is never shown.

Examples:
    ```python
    async with FeedController.from_yaml("config/feed.yaml") as feed:
        await feed.update(RawFilterInput(address="relay.damus.io", kind="1"))
        await feed.wait()
        for event in feed.state.events:
            print(event.to_json())
    ```
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from relaywatch.core.exceptions import ActivationCancelled, ConnectivityError
from relaywatch.core.logger import Logger
from relaywatch.core.metrics import (
    FEED_ACTIVATIONS,
    FEED_EVENTS,
    FEED_FAILURES,
    QUERY_DURATION_SECONDS,
)
from relaywatch.core.yaml import load_yaml
from relaywatch.models.constants import FeedMode
from relaywatch.models.filter import ActivationKey, RawFilterInput, StructuredFilter
from relaywatch.models.relay import RelayAddress
from relaywatch.utils.transport import nostr_connection_factory

from .aggregator import ResultAggregator
from .configs import FeedConfig
from .executor import QueryExecutor
from .filters import build_filter
from .session import CancellationToken, ConnectionSession
from .subscriber import StreamSubscriber


if TYPE_CHECKING:
    from collections.abc import Coroutine

    from relaywatch.models.event import FeedEvent
    from relaywatch.utils.transport import ConnectionFactory


@dataclass(frozen=True, slots=True)
class FeedState:
    """Snapshot of the feed.

    Attributes:
        mode: Current [FeedMode][relaywatch.models.constants.FeedMode].
        events: Events to display, newest first.
        error: Human-readable failure of the last run, if it failed.
        address: Normalized relay address of the form input.
        key: Key of the last started activation.
        active_filters: Number of non-blank constraint fields.
        is_loading: Whether a request is in flight.
    """

    mode: FeedMode
    events: tuple[FeedEvent, ...] = ()
    error: str | None = None
    address: str = ""
    key: ActivationKey | None = None
    active_filters: int = 0
    is_loading: bool = False


class FeedController:
    """Owns the feed mode, the running activation and the aggregated results.

    Args:
        config: Feed configuration; defaults apply when omitted.
        connection_factory: Builds relay connections. Defaults to
            [nostr_connection_factory()][relaywatch.utils.transport.nostr_connection_factory].
    """

    SERVICE_NAME = "feed"

    def __init__(
        self,
        config: FeedConfig | None = None,
        *,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        self._config = config or FeedConfig()
        self._factory = connection_factory or nostr_connection_factory(
            self._config.connect_timeout
        )
        self._logger = Logger(self.SERVICE_NAME)
        self._executor = QueryExecutor(self._config, self._logger)
        self._subscriber = StreamSubscriber(self._config, self._logger)
        self._aggregator = ResultAggregator()

        self._raw = RawFilterInput()
        self._mode = FeedMode.IDLE
        self._error: str | None = None
        self._loading = False
        # (key, mode) of the last started run; stop() keeps it so the same
        # key is not restarted automatically
        self._run: tuple[ActivationKey, FeedMode] | None = None
        self._session: ConnectionSession | None = None
        self._task: asyncio.Task[None] | None = None

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, **kwargs: Any) -> FeedController:
        """Create a controller from a YAML configuration file."""
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> FeedController:
        """Create a controller from a configuration mapping."""
        return cls(config=FeedConfig(**data), **kwargs)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> FeedConfig:
        return self._config

    @property
    def mode(self) -> FeedMode:
        return self._mode

    @property
    def state(self) -> FeedState:
        """Current [FeedState][relaywatch.services.feed.service.FeedState] snapshot."""
        return FeedState(
            mode=self._mode,
            events=tuple(self._aggregator.display(self._mode)),
            error=self._error,
            address=RelayAddress(self._raw.address).url,
            key=self._run[0] if self._run else None,
            active_filters=self._raw.active_filter_count(),
            is_loading=self._loading,
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def update(self, raw: RawFilterInput) -> FeedState:
        """Apply new form input and start, keep or stop the run accordingly."""
        self._raw = raw
        address = RelayAddress(raw.address)

        if not address.acceptable:
            if self._task is not None or self._mode is not FeedMode.IDLE:
                self._logger.debug("feed_idle", reason="invalid_address", address=raw.address)
            await self._deactivate()
            self._run = None
            self._set_idle()
            return self.state

        if raw.has_limit():
            # bounded mode waits for submit()
            if self._mode is FeedMode.STREAMING:
                await self._deactivate()
                self._run = None
                self._set_idle()
            elif self._mode is FeedMode.FETCHING and self._run is not None:
                key = ActivationKey.of(address.url, self._wire_filter(build_filter(raw)))
                if key != self._run[0]:
                    self._logger.debug("feed_idle", reason="key_changed", relay=address.url)
                    await self._deactivate()
                    self._run = None
                    self._set_idle()
            return self.state

        relay_filter = self._wire_filter(build_filter(raw))
        key = ActivationKey.of(address.url, relay_filter)
        if self._run != (key, FeedMode.STREAMING):
            await self._start(address.url, relay_filter, FeedMode.STREAMING)
        return self.state

    async def submit(self) -> FeedState:
        """Start a fresh activation for the current input, replacing any run.

        A bounded fetch when a limit is present, a subscription otherwise.
        """
        address = RelayAddress(self._raw.address)
        if not address.acceptable:
            await self._deactivate()
            self._run = None
            self._set_idle()
            return self.state

        mode = FeedMode.FETCHING if self._raw.has_limit() else FeedMode.STREAMING
        await self._start(address.url, self._wire_filter(build_filter(self._raw)), mode)
        return self.state

    async def stop(self) -> FeedState:
        """Cancel the running activation. Results stay visible."""
        if self._task is not None:
            self._logger.info("activation_stopped", relay=self._session_address())
        await self._deactivate()
        self._set_idle()
        return self.state

    async def wait(self) -> FeedState:
        """Wait for the running request to settle and return the state."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.shield(task)
        return self.state

    async def close(self) -> None:
        """Cancel the running activation and release its connection."""
        await self._deactivate()
        self._set_idle()

    async def __aenter__(self) -> FeedController:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Activation
    # -------------------------------------------------------------------------

    def _wire_filter(self, relay_filter: StructuredFilter) -> StructuredFilter:
        if relay_filter.limit is None:
            return relay_filter.with_limit(self._config.default_limit)
        return relay_filter

    def _session_address(self) -> str | None:
        return self._session.address if self._session is not None else None

    def _set_idle(self) -> None:
        self._mode = FeedMode.IDLE
        self._error = None
        self._loading = False
        self._record_displayed()

    async def _deactivate(self) -> None:
        task, self._task = self._task, None
        session, self._session = self._session, None
        if session is not None:
            session.token.cancel()
            await session.close()
        if task is not None and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)
        self._loading = False

    async def _start(self, address: str, relay_filter: StructuredFilter, mode: FeedMode) -> None:
        await self._deactivate()

        key = ActivationKey.of(address, relay_filter)
        token = CancellationToken()
        session = ConnectionSession(
            address,
            self._factory,
            token=token,
            close_timeout=self._config.close_timeout,
            logger=self._logger,
        )

        self._aggregator.begin(key)
        self._session = session
        self._run = (key, mode)
        self._mode = mode
        self._error = None
        self._loading = True

        self._logger.info("activation_started", mode=mode, relay=address, filter=key.filter_json)
        if self._config.metrics.enabled:
            FEED_ACTIVATIONS.labels(mode=mode.value).inc()

        runner: Coroutine[Any, Any, None]
        if mode is FeedMode.FETCHING:
            runner = self._run_fetch(session, relay_filter, token)
        else:
            runner = self._run_stream(session, relay_filter, token)
        self._task = asyncio.create_task(runner)

    async def _run_fetch(
        self, session: ConnectionSession, relay_filter: StructuredFilter, token: CancellationToken
    ) -> None:
        started = time.monotonic()
        try:
            events = await self._executor.fetch(session, relay_filter)
        except ActivationCancelled:
            return
        except ConnectivityError as e:
            if not token.cancelled:
                self._fail("fetch_failed", e)
            return

        if token.cancelled:
            return
        self._commit(events, FeedMode.FETCHING, started)
        self._mode = FeedMode.IDLE
        self._record_displayed()

    async def _run_stream(
        self, session: ConnectionSession, relay_filter: StructuredFilter, token: CancellationToken
    ) -> None:
        started = time.monotonic()
        try:
            events = await self._subscriber.subscribe(session, relay_filter)
        except ActivationCancelled:
            return
        except ConnectivityError as e:
            if not token.cancelled:
                self._fail("stream_failed", e)
            return

        if token.cancelled:
            return
        self._commit(events, FeedMode.STREAMING, started)
        self._record_displayed()

    def _commit(self, events: list[FeedEvent], mode: FeedMode, started: float) -> None:
        merged = self._aggregator.merge(events)
        self._loading = False
        self._logger.info(
            "activation_results",
            mode=mode,
            relay=self._session_address(),
            received=len(events),
            displayed=len(merged),
        )
        if self._config.metrics.enabled:
            QUERY_DURATION_SECONDS.labels(mode=mode.value).observe(time.monotonic() - started)

    def _fail(self, event: str, error: ConnectivityError) -> None:
        self._mode = FeedMode.FAILED
        self._error = str(error)
        self._loading = False
        self._logger.warning(event, relay=error.address, error=self._error)
        if self._config.metrics.enabled:
            FEED_FAILURES.labels(error=type(error).__name__).inc()
        self._record_displayed()

    def _record_displayed(self) -> None:
        if self._config.metrics.enabled:
            FEED_EVENTS.set(len(self._aggregator.display(self._mode)))
