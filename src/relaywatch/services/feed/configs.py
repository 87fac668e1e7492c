"""Feed controller configuration models.

See Also:
    [FeedController][relaywatch.services.feed.service.FeedController]: The
        controller that consumes this configuration.
    [load_yaml()][relaywatch.core.yaml.load_yaml]: Loads the YAML mapping
        validated by [FeedConfig][relaywatch.services.feed.configs.FeedConfig].
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from relaywatch.core.metrics import MetricsConfig
from relaywatch.models.constants import DEFAULT_LIMIT, QUERY_TIMEOUT


class FeedConfig(BaseModel):
    """Feed controller configuration.

    Example YAML:

    ```yaml
    default_limit: 50
    query_timeout: 10.0
    stream_timeout: 60.0
    metrics:
      enabled: true
      port: 8001
    ```
    """

    default_limit: int = Field(
        default=DEFAULT_LIMIT,
        ge=1,
        le=5000,
        description="Limit sent when the operator gave none",
    )
    query_timeout: float = Field(
        default=QUERY_TIMEOUT,
        gt=0.0,
        le=QUERY_TIMEOUT,
        description="Hard ceiling in seconds for a bounded fetch",
    )
    stream_timeout: float = Field(
        default=60.0,
        gt=0.0,
        le=600.0,
        description="Seconds a subscription waits for end-of-stored-events",
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Seconds allowed for the WebSocket handshake",
    )
    close_timeout: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Seconds allowed for closing a relay connection",
    )
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
