"""
Immutable Nostr event as seen by the feed.

The controller only relies on two keys of an event: ``id`` for
deduplication and ``created_at`` for ordering. Everything else is carried
through untouched for display.

See Also:
    [relaywatch.services.feed.aggregator][]: Sorts and deduplicates
        [FeedEvent][relaywatch.models.event.FeedEvent] instances.
    [relaywatch.utils.transport][]: Builds events from ``nostr_sdk.Event``
        objects via [FeedEvent.from_nostr()][relaywatch.models.event.FeedEvent.from_nostr].
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._validation import validate_instance, validate_non_negative_int, validate_str


if TYPE_CHECKING:
    from nostr_sdk import Event as NostrEvent


@dataclass(frozen=True, slots=True)
class FeedEvent:
    """One event returned by a relay.

    Attributes:
        id: Unique event identifier (hex).
        pubkey: Author public key (hex).
        created_at: Unix timestamp in seconds, used for ordering.
        kind: Integer event kind.
        tags: Tag arrays, each a tuple of strings.
        content: Raw content string.
        sig: Signature (hex). May be empty for unsigned payloads.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If ``id`` is empty or a number is negative.

    Examples:
        ```python
        event = FeedEvent.from_dict(
            {"id": "ab12", "pubkey": "cd34", "created_at": 1700000000, "kind": 1}
        )
        print(event.to_json())
        ```
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: tuple[tuple[str, ...], ...] = ()
    content: str = ""
    sig: str = ""

    def __post_init__(self) -> None:
        validate_str(self.id, "id", allow_empty=False)
        validate_str(self.pubkey, "pubkey")
        validate_non_negative_int(self.created_at, "created_at")
        validate_non_negative_int(self.kind, "kind")
        validate_instance(self.tags, tuple, "tags")
        validate_str(self.content, "content")
        validate_str(self.sig, "sig")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeedEvent:
        """Build an event from its NIP-01 JSON object.

        Raises:
            KeyError: If ``id``, ``pubkey``, ``created_at`` or ``kind`` is missing.
            TypeError: If a field has the wrong type.
            ValueError: If a field has an invalid value.
        """
        tags = tuple(tuple(str(value) for value in tag) for tag in data.get("tags", ()))
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            created_at=data["created_at"],
            kind=data["kind"],
            tags=tags,
            content=data.get("content", ""),
            sig=data.get("sig", ""),
        )

    @classmethod
    def from_nostr(cls, event: NostrEvent) -> FeedEvent:
        """Build an event from a ``nostr_sdk.Event`` through its JSON form."""
        return cls.from_dict(json.loads(event.as_json()))

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 JSON object for this event."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }

    def to_json(self, indent: int | None = 2) -> str:
        """Pretty-print the event as JSON."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
