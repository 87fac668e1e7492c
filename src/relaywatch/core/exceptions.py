"""relaywatch exception hierarchy.

Typed exceptions let the controller tell a slow relay from a broken one and
let ``CancelledError`` propagate untouched.

Exception hierarchy:

```text
RelayWatchError (base -- never raised directly)
├── ConfigurationError          -- bad YAML, invalid config values
├── FeedError                   -- controller-internal conditions
│   ├── InvalidAddressError     -- address not usable, no connection attempted
│   └── ActivationCancelled     -- run abandoned by stop or key change
└── ConnectivityError           -- relay-side failures surfaced to FeedState
    ├── ConnectionTimeoutError  -- bounded fetch exceeded its time ceiling
    └── QueryFailedError        -- any other transport/protocol error
        └── StreamFailedError   -- subscription request failed
```

Malformed author or tag text is **not** an exception: it degrades to a
tagged value ([AuthorDecode][relaywatch.utils.keys.AuthorDecode],
[TagParse][relaywatch.services.feed.filters.TagParse]).

See Also:
    [FeedController][relaywatch.services.feed.service.FeedController]:
        Turns [ConnectivityError][relaywatch.core.exceptions.ConnectivityError]
        into the human-readable ``FeedState.error``.
"""

from __future__ import annotations


class RelayWatchError(Exception):
    """Base exception for all relaywatch errors. Never raised directly."""


class ConfigurationError(RelayWatchError):
    """Invalid or missing configuration (YAML file, config values, CLI flags)."""


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------


class FeedError(RelayWatchError):
    """Base for conditions handled inside the feed controller."""


class InvalidAddressError(FeedError, ValueError):
    """The relay address is not an acceptable ``ws``/``wss`` URL.

    Raised before any connection is attempted. The controller checks
    acceptability itself, so this never reaches the feed state.
    """

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid relay address: {address!r}")
        self.address = address


class ActivationCancelled(FeedError):
    """The activation was cancelled (stop, address or filter change).

    Raised out of a pending query so its result is never committed.
    """


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(RelayWatchError):
    """Base for relay failures that end a run.

    Attributes:
        address: Relay the run was talking to.
    """

    def __init__(self, message: str, address: str) -> None:
        super().__init__(message)
        self.address = address


class ConnectionTimeoutError(ConnectivityError):
    """The bounded fetch did not complete within its time ceiling."""

    def __init__(self, address: str, timeout: float) -> None:
        super().__init__(
            f"Connection timed out after {timeout:g} seconds. "
            f"Relay {address} might be slow to respond.",
            address,
        )
        self.timeout = timeout


class QueryFailedError(ConnectivityError):
    """Transport or protocol error other than a timeout.

    Attributes:
        error: Text of the underlying error.
    """

    def __init__(self, address: str, error: str, *, prefix: str = "Failed to connect to relay") -> None:
        super().__init__(f"{prefix}: {error}. Check if relay is running on {address}", address)
        self.error = error


class StreamFailedError(QueryFailedError):
    """The subscription request failed before delivering its batch."""

    def __init__(self, address: str, error: str) -> None:
        ConnectivityError.__init__(self, f"Streaming failed: {error}", address)
        self.error = error
