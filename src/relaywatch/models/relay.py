"""
Relay address normalization and acceptability check.

Operators type anything from ``relay.damus.io`` to
``ws://localhost:7777/path``. A bare host is given the secure scheme; a
string that already contains a scheme separator is left exactly as typed so
mistakes stay visible instead of being silently rewritten.

An address is **acceptable** when its normalized form is a valid RFC 3986
URI with scheme ``ws`` or ``wss`` and a non-empty host. Unlike an archiving
crawler, a monitor must be able to watch local and private relays, so no
network classification is applied here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rfc3986 import uri_reference
from rfc3986.exceptions import ValidationError
from rfc3986.validators import Validator

from .constants import SECURE_SCHEME


_SCHEME_SEPARATOR = "://"


def normalize_address(raw: str) -> str:
    """Return the canonical form of a user-entered relay address.

    Surrounding whitespace is stripped. Without a scheme separator the
    address is prefixed with ``wss://``; otherwise it is returned as-is.

    Examples:
        ```python
        normalize_address("relay.example.com")   # 'wss://relay.example.com'
        normalize_address("ws://localhost:7777")  # 'ws://localhost:7777'
        ```
    """
    address = raw.strip()
    if not address or _SCHEME_SEPARATOR in address:
        return address
    return f"{SECURE_SCHEME}{_SCHEME_SEPARATOR}{address}"


def is_acceptable(raw: str) -> bool:
    """Whether *raw*, once normalized, is a usable ``ws``/``wss`` URL with a host."""
    address = normalize_address(raw)
    if not address or "\x00" in address:
        return False

    uri = uri_reference(address).normalize()
    validator = (
        Validator()
        .require_presence_of("scheme", "host")
        .allow_schemes("ws", "wss")
        .check_validity_of("scheme", "host", "port", "path")
    )
    try:
        validator.validate(uri)
    except ValidationError:
        return False
    return bool(uri.host)


@dataclass(frozen=True, slots=True)
class RelayAddress:
    """A relay address as typed, with its normalized URL and verdict.

    Attributes:
        raw: Text entered by the operator.
        url: Normalized address (see
            [normalize_address()][relaywatch.models.relay.normalize_address]).
        acceptable: Whether a connection may be attempted.

    Examples:
        ```python
        RelayAddress("relay.example.com").url         # 'wss://relay.example.com'
        RelayAddress("").acceptable                   # False
        RelayAddress("http://relay.example.com").acceptable  # False
        ```
    """

    raw: str
    url: str = field(init=False)
    acceptable: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", normalize_address(self.raw))
        object.__setattr__(self, "acceptable", is_acceptable(self.raw))
