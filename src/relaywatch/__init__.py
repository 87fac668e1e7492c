r"""relaywatch -- Watch the events of a Nostr relay, live or as a bounded fetch.

Point the feed at a relay, describe the events you are interested in, and
the controller either subscribes automatically or runs a single bounded
fetch, keeping exactly one connection open per activation.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services         Feed controller (mode state machine)
             /        \
          core        utils    Logging, errors, config, metrics / keys, transport
             \        /
              models           Pure frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from relaywatch import FeedController``) use lazy
    loading and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("relaywatch")

__all__ = [
    "FeedConfig",
    "FeedController",
    "FeedEvent",
    "FeedMode",
    "FeedState",
    "Logger",
    "RawFilterInput",
    "RelayAddress",
    "StructuredFilter",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Logger": ("relaywatch.core", "Logger"),
    "FeedEvent": ("relaywatch.models", "FeedEvent"),
    "FeedMode": ("relaywatch.models", "FeedMode"),
    "RawFilterInput": ("relaywatch.models", "RawFilterInput"),
    "RelayAddress": ("relaywatch.models", "RelayAddress"),
    "StructuredFilter": ("relaywatch.models", "StructuredFilter"),
    "FeedConfig": ("relaywatch.services", "FeedConfig"),
    "FeedController": ("relaywatch.services", "FeedController"),
    "FeedState": ("relaywatch.services", "FeedState"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'relaywatch' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
