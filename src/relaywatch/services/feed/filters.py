"""Filter builder: raw form text to [StructuredFilter][relaywatch.models.filter.StructuredFilter].

Best-effort and pure. Malformed fields are omitted, never reported as
errors, so the operator can keep typing while the feed follows along.

Rules:

* ``kind``: integer in ``0..65535``, otherwise omitted.
* ``author``: decoded by [decode_author()][relaywatch.utils.keys.decode_author];
  undecodable text is used literally.
* ``since`` / ``until``: integers, otherwise omitted.
* ``limit``: non-negative integer if given. No default is injected here so
  "limit provided by the operator" stays observable to the controller.
* ``tags``: ``"name:value,name:value"``; each segment is split on the first
  ``:`` and dropped when either side is empty.
"""

from __future__ import annotations

from typing import NamedTuple

from relaywatch.models.constants import EVENT_KIND_MAX
from relaywatch.models.filter import RawFilterInput, StructuredFilter
from relaywatch.utils.keys import decode_author


class TagParse(NamedTuple):
    """Result of [parse_tag_expression()][relaywatch.services.feed.filters.parse_tag_expression].

    Attributes:
        filters: Tag name to values, in insertion order.
        skipped: Non-blank segments dropped as malformed.
    """

    filters: dict[str, tuple[str, ...]]
    skipped: tuple[str, ...]


def _parse_int(text: str, *, non_negative: bool = False, maximum: int | None = None) -> int | None:
    text = text.strip()
    if not text:
        return None
    try:
        value = int(text)
    except ValueError:
        return None
    if non_negative and value < 0:
        return None
    if maximum is not None and value > maximum:
        return None
    return value


def parse_tag_expression(expression: str) -> TagParse:
    """Parse ``"t:bitcoin,p:abc123"`` into ``{"t": ("bitcoin",), "p": ("abc123",)}``.

    Examples:
        ```python
        parse_tag_expression("badsegment,t:")
        # TagParse(filters={}, skipped=('badsegment', 't:'))
        ```
    """
    accumulated: dict[str, list[str]] = {}
    skipped: list[str] = []

    for segment in expression.split(","):
        segment = segment.strip()
        if not segment:
            continue
        name, _, value = segment.partition(":")
        name, value = name.strip(), value.strip()
        if not name or not value:
            skipped.append(segment)
            continue
        accumulated.setdefault(name, []).append(value)

    return TagParse(
        filters={name: tuple(values) for name, values in accumulated.items()},
        skipped=tuple(skipped),
    )


def build_filter(raw: RawFilterInput) -> StructuredFilter:
    """Derive the structured filter from the raw form input. Never raises."""
    kind = _parse_int(raw.kind, non_negative=True, maximum=EVENT_KIND_MAX)

    author = raw.author.strip()
    authors = (decode_author(author).value,) if author else None

    return StructuredFilter(
        kinds=(kind,) if kind is not None else None,
        authors=authors,
        since=_parse_int(raw.since),
        until=_parse_int(raw.until),
        limit=_parse_int(raw.limit, non_negative=True),
        tag_filters=parse_tag_expression(raw.tags).filters,
    )
