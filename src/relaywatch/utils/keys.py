"""Author identifier decoding.

Authors can be typed as ``npub1...`` (NIP-19 bech32) or as 64-character
hex. Decoding is best-effort: a malformed ``npub`` is used literally instead
of raising, and the result says which path was taken so callers and tests
can tell a decoded key from a pass-through.

Examples:
    ```python
    result = decode_author("npub1...")
    result.value     # hex public key
    result.decoded   # True

    decode_author("npub1broken").skipped   # True, value is the input
    ```
"""

from __future__ import annotations

from typing import NamedTuple

from nostr_sdk import NostrSdkError, PublicKey


NPUB_PREFIX = "npub"


class AuthorDecode(NamedTuple):
    """Tagged result of [decode_author()][relaywatch.utils.keys.decode_author].

    Attributes:
        value: Hex public key, or the input unchanged when not decoded.
        decoded: ``True`` when a bech32 ``npub`` was decoded.
    """

    value: str
    decoded: bool

    @property
    def skipped(self) -> bool:
        """Whether decoding was skipped or failed and the input is used literally."""
        return not self.decoded


def decode_author(identifier: str) -> AuthorDecode:
    """Convert an author identifier to a hex public key.

    Never raises. Input without the ``npub`` prefix is assumed to be hex
    already and returned unchanged, as is an ``npub`` string that fails to
    decode.
    """
    if not identifier.startswith(NPUB_PREFIX):
        return AuthorDecode(identifier, decoded=False)

    try:
        public_key = PublicKey.parse(identifier)
    except NostrSdkError:
        return AuthorDecode(identifier, decoded=False)

    return AuthorDecode(public_key.to_hex(), decoded=True)
