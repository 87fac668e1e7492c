"""
Unit tests for utils.keys module.

Tests:
- decode_author() bech32 decoding
- Pass-through of hex and undecodable input (skipped, never raises)
"""

import pytest
from nostr_sdk import Keys

from relaywatch.utils.keys import AuthorDecode, decode_author


VALID_HEX_KEY = "6b911fd37cdf5c81d4c0adb1ab7fa822ed253ab0ad9aa18d77257c88b29b718e"


@pytest.fixture
def public_key():
    return Keys.parse(VALID_HEX_KEY).public_key()


class TestDecodeAuthor:
    """npub to hex with a tagged result."""

    def test_npub_decoded_to_hex(self, public_key):
        result = decode_author(public_key.to_bech32())
        assert result == AuthorDecode(public_key.to_hex(), decoded=True)
        assert result.skipped is False

    def test_hex_passes_through(self, public_key):
        hex_key = public_key.to_hex()
        result = decode_author(hex_key)
        assert result.value == hex_key
        assert result.decoded is False
        assert result.skipped is True

    @pytest.mark.parametrize("text", ["npub1invalid", "npub", "npub1" + "q" * 10])
    def test_malformed_npub_returned_unchanged(self, text):
        result = decode_author(text)
        assert result.value == text
        assert result.skipped is True

    def test_arbitrary_text_returned_unchanged(self):
        assert decode_author("not a key").value == "not a key"

    def test_nsec_is_not_decoded(self):
        nsec = Keys.parse(VALID_HEX_KEY).secret_key().to_bech32()
        result = decode_author(nsec)
        assert result.value == nsec
        assert result.skipped is True

    def test_npub_with_hex_body_is_not_decoded(self, public_key):
        text = "npub" + public_key.to_hex()
        assert decode_author(text) == AuthorDecode(text, decoded=False)
