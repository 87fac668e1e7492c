"""
Unit tests for models.relay module.

Tests:
- normalize_address() scheme defaulting and pass-through
- is_acceptable() scheme and host checks
- RelayAddress computed fields
"""

import pytest

from relaywatch.models import RelayAddress, is_acceptable, normalize_address


class TestNormalizeAddress:
    """Secure scheme defaulting."""

    def test_bare_host_gets_wss(self):
        assert normalize_address("relay.example.com") == "wss://relay.example.com"

    def test_bare_host_with_port(self):
        assert normalize_address("localhost:7777") == "wss://localhost:7777"

    @pytest.mark.parametrize(
        "address",
        ["wss://relay.example.com", "ws://localhost:7777", "http://relay.example.com", "wss://relay.example.com/path"],
    )
    def test_existing_scheme_unchanged(self, address):
        assert normalize_address(address) == address

    def test_strips_whitespace(self):
        assert normalize_address("  relay.example.com \n") == "wss://relay.example.com"

    def test_empty(self):
        assert normalize_address("") == ""
        assert normalize_address("   ") == ""


class TestIsAcceptable:
    """ws/wss URLs with a host."""

    @pytest.mark.parametrize(
        "address",
        [
            "relay.example.com",
            "wss://relay.example.com",
            "ws://localhost:7777",
            "ws://127.0.0.1:8080/nostr",
            " relay.example.com ",
        ],
    )
    def test_acceptable(self, address):
        assert is_acceptable(address) is True

    @pytest.mark.parametrize(
        "address",
        ["", "   ", "http://relay.example.com", "https://relay.example.com", "wss://", "ftp://x", "wss://relay\x00.com"],
    )
    def test_not_acceptable(self, address):
        assert is_acceptable(address) is False


class TestRelayAddress:
    """Computed url and acceptable fields."""

    def test_fields(self):
        relay = RelayAddress("relay.example.com")
        assert relay.raw == "relay.example.com"
        assert relay.url == "wss://relay.example.com"
        assert relay.acceptable is True

    def test_unacceptable(self):
        relay = RelayAddress("http://relay.example.com")
        assert relay.url == "http://relay.example.com"
        assert relay.acceptable is False

    def test_equality(self):
        assert RelayAddress("relay.example.com") == RelayAddress("relay.example.com")
