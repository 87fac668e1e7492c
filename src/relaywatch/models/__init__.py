"""Pure frozen dataclasses with zero I/O for relay addresses, filters, and events.

The models layer is the bottom of the dependency graph: it imports nothing
from the other relaywatch packages. All validation happens at construction
so invalid instances never escape.

Attributes:
    RawFilterInput: Filter form text as entered by the operator.
    StructuredFilter: Well-formed query filter with omitted keys left out.
    ActivationKey: Equality token (address + serialized filter) that decides
        whether a running activation must restart.
    FeedEvent: Immutable event with ``id`` and ``created_at`` used for
        deduplication and ordering.
    RelayAddress: Normalized relay address with an acceptability verdict.
    FeedMode: ``idle | fetching | streaming | failed``.

See Also:
    [relaywatch.services.feed][]: The controller built on these models.
"""

from .constants import DEFAULT_LIMIT, EVENT_KIND_MAX, QUERY_TIMEOUT, FeedMode
from .event import FeedEvent
from .filter import ActivationKey, RawFilterInput, StructuredFilter
from .relay import RelayAddress, is_acceptable, normalize_address


__all__ = [
    "DEFAULT_LIMIT",
    "EVENT_KIND_MAX",
    "QUERY_TIMEOUT",
    "ActivationKey",
    "FeedEvent",
    "FeedMode",
    "RawFilterInput",
    "RelayAddress",
    "StructuredFilter",
    "is_acceptable",
    "normalize_address",
]
