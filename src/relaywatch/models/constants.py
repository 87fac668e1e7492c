"""Shared constants for the models layer.

Enumerations and numeric defaults used by more than one module. Kept here so
the models, utils and services layers can agree on them without importing
each other.

See Also:
    [relaywatch.services.feed.service][]: The controller that moves between
        [FeedMode][relaywatch.models.constants.FeedMode] values.
    [relaywatch.models.relay][]: Uses
        [SECURE_SCHEME][relaywatch.models.constants.SECURE_SCHEME] when
        normalizing bare hostnames.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class FeedMode(StrEnum):
    """Mode of the event feed.

    Exactly one mode is active at a time. Transitions are made only by
    [FeedController][relaywatch.services.feed.service.FeedController].

    Attributes:
        IDLE: Nothing running. Results of the last run stay visible.
        FETCHING: One bounded query is in flight (the user gave a limit).
        STREAMING: An open-ended subscription is active (no limit given).
        FAILED: The last run ended with a timeout or query error. Does not
            block the next activation.
    """

    IDLE = "idle"
    FETCHING = "fetching"
    STREAMING = "streaming"
    FAILED = "failed"


EVENT_KIND_MAX: Final[int] = 65_535

DEFAULT_LIMIT: Final[int] = 50
"""Limit injected into the wire filter when the user supplied none."""

QUERY_TIMEOUT: Final[float] = 10.0
"""Hard ceiling in seconds for a bounded fetch, measured from request issue."""

SECURE_SCHEME: Final[str] = "wss"

ONE_DAY_SECONDS: Final[int] = 86_400
