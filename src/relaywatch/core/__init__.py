"""Core layer: logging, exceptions, configuration loading, and metrics.

Depends on nothing else in relaywatch and is used by
[relaywatch.services][relaywatch.services].

Attributes:
    Logger: Structured logger supporting key=value and JSON output.
    StructuredFormatter: Root-handler formatter unifying plain ``logging``
        calls with ``Logger`` output.
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
    MetricsConfig, MetricsServer: Prometheus metrics and their aiohttp endpoint.
    RelayWatchError: Root of the exception hierarchy in
        [relaywatch.core.exceptions][relaywatch.core.exceptions].
"""

from .exceptions import (
    ActivationCancelled,
    ConfigurationError,
    ConnectionTimeoutError,
    ConnectivityError,
    FeedError,
    InvalidAddressError,
    QueryFailedError,
    RelayWatchError,
    StreamFailedError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import MetricsConfig, MetricsServer, start_metrics_server
from .yaml import load_yaml


__all__ = [
    "ActivationCancelled",
    "ConfigurationError",
    "ConnectionTimeoutError",
    "ConnectivityError",
    "FeedError",
    "InvalidAddressError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "QueryFailedError",
    "RelayWatchError",
    "StreamFailedError",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
