"""
Configuration management for siteprobe.

Supports multiple configuration sources in order of priority:
1. Explicit command-line options (handled by the CLI)
2. Environment variables
3. Global config file (~/.siteprobe/config.yml)
4. Default values (lowest priority)
"""

from .env_loader import get_global_config_dir, load_global_config
from .getters import (
    DEFAULT_CONCURRENCY,
    DEFAULT_TIER,
    DEFAULT_TIMEOUT,
    get_concurrency,
    get_config,
    get_tier,
    get_timeout,
    get_user_agent,
)

__all__ = [
    # env_loader
    "get_global_config_dir",
    "load_global_config",
    # getters
    "DEFAULT_CONCURRENCY",
    "DEFAULT_TIER",
    "DEFAULT_TIMEOUT",
    "get_concurrency",
    "get_config",
    "get_tier",
    "get_timeout",
    "get_user_agent",
]
