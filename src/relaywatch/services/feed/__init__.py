"""Event feed controller: filter building, mode selection and result aggregation.

Attributes:
    FeedController: Mode state machine owning at most one running activation.
    FeedState: Immutable snapshot of mode, events, error and loading flag.
    FeedConfig: Pydantic configuration (default limit, timeouts, metrics).
    build_filter: Raw form text to
        [StructuredFilter][relaywatch.models.filter.StructuredFilter].
    ConnectionSession: One connection plus cancellation token per activation.
    QueryExecutor: Bounded, timed fetch.
    StreamSubscriber: Open-ended subscription resolving with one batch.
    ResultAggregator: Sorting, deduplication and the last-good fallback.
"""

from .aggregator import ResultAggregator, dedupe_events, sort_events
from .configs import FeedConfig
from .executor import QueryExecutor
from .filters import TagParse, build_filter, parse_tag_expression
from .service import FeedController, FeedState
from .session import CancellationToken, ConnectionSession
from .subscriber import StreamSubscriber


__all__ = [
    "CancellationToken",
    "ConnectionSession",
    "FeedConfig",
    "FeedController",
    "FeedState",
    "QueryExecutor",
    "ResultAggregator",
    "StreamSubscriber",
    "TagParse",
    "build_filter",
    "dedupe_events",
    "parse_tag_expression",
    "sort_events",
]
