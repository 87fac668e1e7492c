"""
Filter input and query filter models.

[RawFilterInput][relaywatch.models.filter.RawFilterInput] holds the text the
operator typed, field for field. [StructuredFilter][relaywatch.models.filter.StructuredFilter]
is the well-formed query derived from it by
[build_filter()][relaywatch.services.feed.filters.build_filter], and
[ActivationKey][relaywatch.models.filter.ActivationKey] is the equality token
the controller uses to decide whether a running subscription must restart.

A raw field that is blank produces **no** key in the structured filter (not
``None``, not zero), so the relay query is never over-constrained.

See Also:
    [relaywatch.services.feed.filters][]: Parsing rules from raw text.
    [relaywatch.utils.transport][]: Converts the wire form into a
        ``nostr_sdk.Filter``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, NamedTuple

from .constants import ONE_DAY_SECONDS


@dataclass(frozen=True, slots=True)
class RawFilterInput:
    """Text fields of the filter form, exactly as entered.

    Only ``address`` is required for anything to happen; every other field
    may be blank.

    Attributes:
        address: Relay host or ``ws://``/``wss://`` URL.
        kind: Event kind number.
        limit: Maximum number of events. Its presence selects a bounded fetch.
        author: ``npub1...`` or hex public key.
        since: Unix timestamp lower bound.
        until: Unix timestamp upper bound.
        tags: Tag expression such as ``"t:bitcoin,p:abc123"``.

    Examples:
        ```python
        raw = RawFilterInput(address="relay.damus.io", kind="1", tags="t:nostr")
        raw.has_limit()            # False -> streaming
        raw.active_filter_count()  # 2
        ```
    """

    address: str = ""
    kind: str = ""
    limit: str = ""
    author: str = ""
    since: str = ""
    until: str = ""
    tags: str = ""

    def has_limit(self) -> bool:
        """Whether the operator provided a limit (non-blank text)."""
        return bool(self.limit.strip())

    def active_filter_count(self) -> int:
        """Count the non-blank constraint fields (kind, author, since, until, tags)."""
        fields = (self.kind, self.author, self.since, self.until, self.tags)
        return sum(1 for value in fields if value.strip())

    def cleared(self) -> RawFilterInput:
        """Return a copy with every field blank except the relay address."""
        return RawFilterInput(address=self.address)

    def with_since_last_day(self, now: int) -> RawFilterInput:
        """Return a copy whose ``since`` is 24 hours before *now*."""
        return replace(self, since=str(now - ONE_DAY_SECONDS))

    def with_until_now(self, now: int) -> RawFilterInput:
        """Return a copy whose ``until`` is *now*."""
        return replace(self, until=str(now))


@dataclass(frozen=True, slots=True)
class StructuredFilter:
    """Well-formed relay query filter.

    ``None`` means "key omitted" for every scalar/sequence field, and an
    empty ``tag_filters`` mapping means no tag constraint. Values inside
    ``tag_filters`` keep insertion order and may repeat.

    Attributes:
        kinds: Event kinds to match.
        authors: Hex public keys (or the literal text when decoding failed).
        since: Inclusive lower bound on ``created_at``.
        until: Inclusive upper bound on ``created_at``.
        limit: Maximum number of events requested.
        tag_filters: Tag name to accepted values, e.g. ``{"t": ("bitcoin",)}``.
    """

    kinds: tuple[int, ...] | None = None
    authors: tuple[str, ...] | None = None
    since: int | None = None
    until: int | None = None
    limit: int | None = None
    tag_filters: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def with_limit(self, limit: int) -> StructuredFilter:
        """Return a copy carrying *limit*."""
        return replace(self, limit=limit)

    def scope(self) -> StructuredFilter:
        """Return a copy without a limit (what is asked for, not how many)."""
        return replace(self, limit=None)

    def to_wire(self) -> dict[str, Any]:
        """Build the JSON-like object sent to the relay.

        Returns:
            ``{kinds?, authors?, since?, until?, limit?, "#<name>"?}`` with
            omitted keys absent.
        """
        wire: dict[str, Any] = {}
        if self.kinds is not None:
            wire["kinds"] = list(self.kinds)
        if self.authors is not None:
            wire["authors"] = list(self.authors)
        if self.since is not None:
            wire["since"] = self.since
        if self.until is not None:
            wire["until"] = self.until
        if self.limit is not None:
            wire["limit"] = self.limit
        for name, values in self.tag_filters.items():
            wire[f"#{name}"] = list(values)
        return wire


class ActivationKey(NamedTuple):
    """Identity of one activation: normalized address plus serialized filter.

    Two keys compare equal exactly when a restart would send the same request
    to the same relay.
    """

    address: str
    filter_json: str

    @classmethod
    def of(cls, address: str, relay_filter: StructuredFilter) -> ActivationKey:
        """Build the key for *relay_filter* sent to *address*."""
        return cls(address, json.dumps(relay_filter.to_wire(), sort_keys=True))

    def scope(self) -> ActivationKey:
        """Return the key with any ``limit`` dropped from the filter."""
        wire = json.loads(self.filter_json)
        wire.pop("limit", None)
        return ActivationKey(self.address, json.dumps(wire, sort_keys=True))
