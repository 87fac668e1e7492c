"""
Unit tests for models.filter module.

Tests:
- RawFilterInput helpers (limit presence, active filter count, clear, shortcuts)
- StructuredFilter wire form with omitted keys
- ActivationKey equality and scope
"""

import json

import pytest

from relaywatch.models import ActivationKey, RawFilterInput, StructuredFilter


class TestRawFilterInput:
    """Form input helpers."""

    def test_defaults_are_blank(self):
        raw = RawFilterInput()
        assert raw.address == ""
        assert raw.kind == raw.limit == raw.author == raw.since == raw.until == raw.tags == ""

    @pytest.mark.parametrize(("limit", "expected"), [("", False), ("   ", False), ("10", True), ("abc", True)])
    def test_has_limit(self, limit, expected):
        assert RawFilterInput(address="relay.example.com", limit=limit).has_limit() is expected

    def test_active_filter_count_ignores_address_and_limit(self):
        raw = RawFilterInput(address="relay.example.com", limit="5", kind="1", tags="t:x", since=" ")
        assert raw.active_filter_count() == 2

    def test_cleared_keeps_address(self):
        raw = RawFilterInput(address="relay.example.com", kind="1", limit="5", author="abc", tags="t:x")
        assert raw.cleared() == RawFilterInput(address="relay.example.com")

    def test_since_last_day(self):
        raw = RawFilterInput(address="relay.example.com").with_since_last_day(1_700_000_000)
        assert raw.since == str(1_700_000_000 - 86_400)

    def test_until_now(self):
        raw = RawFilterInput(address="relay.example.com").with_until_now(1_700_000_000)
        assert raw.until == "1700000000"

    def test_frozen(self):
        raw = RawFilterInput()
        with pytest.raises(AttributeError):
            raw.kind = "1"  # type: ignore[misc]


class TestStructuredFilterWire:
    """to_wire() omits absent keys entirely."""

    def test_empty_filter_has_no_keys(self):
        assert StructuredFilter().to_wire() == {}

    def test_all_keys(self):
        f = StructuredFilter(
            kinds=(1,),
            authors=("ab" * 32,),
            since=100,
            until=200,
            limit=10,
            tag_filters={"t": ("bitcoin", "nostr"), "p": ("abc123",)},
        )
        assert f.to_wire() == {
            "kinds": [1],
            "authors": ["ab" * 32],
            "since": 100,
            "until": 200,
            "limit": 10,
            "#t": ["bitcoin", "nostr"],
            "#p": ["abc123"],
        }

    def test_zero_values_are_kept(self):
        wire = StructuredFilter(kinds=(0,), since=0).to_wire()
        assert wire == {"kinds": [0], "since": 0}

    def test_with_limit_and_scope(self):
        f = StructuredFilter(kinds=(1,))
        assert f.with_limit(50).limit == 50
        assert f.with_limit(50).scope() == f


class TestActivationKey:
    """Equality token for restarts."""

    def test_equal_for_same_request(self):
        f = StructuredFilter(kinds=(1,), limit=50)
        assert ActivationKey.of("wss://a", f) == ActivationKey.of("wss://a", f)

    def test_differs_by_address(self):
        f = StructuredFilter(kinds=(1,))
        assert ActivationKey.of("wss://a", f) != ActivationKey.of("wss://b", f)

    def test_differs_by_filter(self):
        assert ActivationKey.of("wss://a", StructuredFilter(kinds=(1,))) != ActivationKey.of(
            "wss://a", StructuredFilter(kinds=(2,))
        )

    def test_serialized_with_sorted_keys(self):
        key = ActivationKey.of("wss://a", StructuredFilter(kinds=(1,), since=5, limit=3))
        assert key.filter_json == json.dumps({"kinds": [1], "limit": 3, "since": 5}, sort_keys=True)

    def test_scope_drops_limit(self):
        fetched = ActivationKey.of("wss://a", StructuredFilter(kinds=(1,), limit=10))
        streamed = ActivationKey.of("wss://a", StructuredFilter(kinds=(1,), limit=50))
        assert fetched != streamed
        assert fetched.scope() == streamed.scope()
