"""Result ordering, deduplication and the "last good" display fallback."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relaywatch.models.constants import FeedMode


if TYPE_CHECKING:
    from collections.abc import Iterable

    from relaywatch.models.event import FeedEvent
    from relaywatch.models.filter import ActivationKey


_LOADING_MODES = frozenset({FeedMode.FETCHING, FeedMode.STREAMING})


def sort_events(events: Iterable[FeedEvent]) -> list[FeedEvent]:
    """Newest first by ``created_at``. Ties keep their arrival order."""
    return sorted(events, key=lambda event: event.created_at, reverse=True)


def dedupe_events(events: Iterable[FeedEvent]) -> list[FeedEvent]:
    """Drop events whose ``id`` was already seen. The first arrival wins."""
    seen: set[str] = set()
    unique: list[FeedEvent] = []
    for event in events:
        if event.id in seen:
            continue
        seen.add(event.id)
        unique.append(event)
    return unique


class ResultAggregator:
    """Holds the results of the active run and the last non-empty result set.

    ``last_good`` is only shown for the same scope (relay address plus
    filter without its limit), so a bounded fetch can warm up the view of
    the subscription that follows it while a change to the relay or the
    criteria always starts from an empty list.

    Attributes:
        current: Results of the active run, newest first.
        last_good: Most recent non-empty result set of any run.
    """

    def __init__(self) -> None:
        self.current: list[FeedEvent] = []
        self.last_good: list[FeedEvent] = []
        self._key: ActivationKey | None = None
        self._good_scope: ActivationKey | None = None

    @property
    def key(self) -> ActivationKey | None:
        return self._key

    def begin(self, key: ActivationKey) -> None:
        """Start collecting for a new activation; ``current`` becomes empty."""
        self._key = key
        self.current = []

    def merge(self, events: Iterable[FeedEvent]) -> list[FeedEvent]:
        """Add *events* to ``current`` and return the merged, sorted list."""
        self.current = sort_events(dedupe_events([*self.current, *events]))
        if self.current and self._key is not None:
            self.last_good = list(self.current)
            self._good_scope = self._key.scope()
        return list(self.current)

    def display(self, mode: FeedMode) -> list[FeedEvent]:
        """Events to show for *mode*."""
        if self.current:
            return list(self.current)
        if (
            mode in _LOADING_MODES
            and self.last_good
            and self._key is not None
            and self._good_scope == self._key.scope()
        ):
            return list(self.last_good)
        return []
