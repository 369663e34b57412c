"""Configuration getter functions."""

import os
from typing import Any

from .env_loader import load_global_config

DEFAULT_TIMEOUT = 10.0
DEFAULT_TIER = "free"
DEFAULT_CONCURRENCY = 5


def get_config(key: str, default: Any = None) -> Any:
    """
    Get configuration value with priority:
    1. Environment variable
    2. Global config file
    3. Default value

    Global config keys may be written either as the environment variable name
    (``SITEPROBE_TIMEOUT``) or as its lower-case short form (``timeout``).
    """
    env_value = os.environ.get(key)
    if env_value:
        return env_value

    global_config = load_global_config()
    if key in global_config:
        return global_config[key]
    short_key = key.lower().removeprefix("siteprobe_")
    if short_key in global_config:
        return global_config[short_key]

    return default


def get_timeout() -> float:
    """Get the per-probe timeout in seconds (default: 10)."""
    value = float(get_config("SITEPROBE_TIMEOUT", default=DEFAULT_TIMEOUT))
    if value <= 0:
        raise ValueError(f"SITEPROBE_TIMEOUT must be positive, got {value}")
    return value


def get_tier() -> str:
    """Get the scan tier (default: free)."""
    return str(get_config("SITEPROBE_TIER", default=DEFAULT_TIER)).lower()


def get_concurrency() -> int:
    """Get the exposed-path batch size (default: 5)."""
    value = int(get_config("SITEPROBE_CONCURRENCY", default=DEFAULT_CONCURRENCY))
    if value < 1:
        raise ValueError(f"SITEPROBE_CONCURRENCY must be at least 1, got {value}")
    return value


def get_user_agent() -> str | None:
    """Get a custom User-Agent string."""
    return get_config("SITEPROBE_USER_AGENT")
