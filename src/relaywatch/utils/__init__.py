"""Author key decoding and relay transport.

Sits between [relaywatch.models][relaywatch.models] and
[relaywatch.services][relaywatch.services] and has no imports from
``relaywatch.core`` or ``relaywatch.services``.

Attributes:
    keys: NIP-19 ``npub`` decoding with a tagged, never-raising result.
    transport: [RelayConnection][relaywatch.utils.transport.RelayConnection]
        protocol and its nostr-sdk implementation.
"""
