"""YAML configuration loading.

Uses ``yaml.safe_load`` so a config file can only produce plain data
(strings, numbers, lists, dicts). Consumed by
[FeedController.from_yaml()][relaywatch.services.feed.service.FeedController.from_yaml]
and the command-line runner.

Examples:
    ```python
    from relaywatch.core.yaml import load_yaml

    config = load_yaml("config/feed.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


def load_yaml(config_path: str) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        The parsed mapping, or an empty dict for an empty file.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ConfigurationError: If the document is not a mapping.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_path}")
    return data
