"""
Prometheus metrics for the event feed and their HTTP exposition.

Module-level metric objects are process-wide singletons.
[FeedController][relaywatch.services.feed.service.FeedController] records
activations, failures and the displayed event count when
``MetricsConfig.enabled`` is set; ``MetricsServer`` serves them over aiohttp
while the command-line runner follows a relay.

Metrics:
    FEED_ACTIVATIONS:   Counter of started activations, labelled by mode.
    FEED_FAILURES:      Counter of failed runs, labelled by error type.
    FEED_EVENTS:        Gauge of events currently displayed.
    QUERY_DURATION_SECONDS: Histogram of completed query round-trips.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Configuration for metrics recording and the ``/metrics`` endpoint.

    Set ``host`` to ``"0.0.0.0"`` in containers to allow external scraping.
    """

    enabled: bool = Field(default=False, description="Record and expose metrics")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


FEED_ACTIVATIONS = Counter(
    "feed_activations",
    "Feed activations started",
    ["mode"],
)

FEED_FAILURES = Counter(
    "feed_failures",
    "Feed runs that ended with an error",
    ["error"],
)

FEED_EVENTS = Gauge(
    "feed_displayed_events",
    "Number of events currently displayed",
)

QUERY_DURATION_SECONDS = Histogram(
    "feed_query_duration_seconds",
    "Duration of a relay query from request to result",
    ["mode"],
    buckets=(0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60),
)


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... feed runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Bind the endpoint. No-op when metrics are disabled.

        Raises:
            OSError: If the port is already in use.
        """
        if not self._config.enabled:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()

    async def stop(self) -> None:
        """Release the port. Safe to call when never started."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create and start a [MetricsServer][relaywatch.core.metrics.MetricsServer]."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
