"""Configuration file loading."""

from pathlib import Path
from typing import Any

import yaml


def get_global_config_dir() -> Path:
    """Return the global ~/.siteprobe config directory."""
    return Path.home() / ".siteprobe"


def load_global_config() -> dict[str, Any]:
    """Load global configuration from ~/.siteprobe/config.yml."""
    config_path = get_global_config_dir() / "config.yml"
    if config_path.exists():
        with open(config_path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{config_path} must contain a mapping, got {type(loaded).__name__}")
        return loaded
    return {}
