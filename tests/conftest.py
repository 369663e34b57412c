"""Test configuration and fixtures for siteprobe."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from siteprobe.modules.scan import ScanOptions, Target


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_config(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at an empty directory and clear SITEPROBE_* variables."""
    monkeypatch.setenv("HOME", str(temp_dir))
    for key in ("SITEPROBE_TIMEOUT", "SITEPROBE_TIER", "SITEPROBE_CONCURRENCY", "SITEPROBE_USER_AGENT"):
        monkeypatch.delenv(key, raising=False)
    return temp_dir


@pytest.fixture
def target() -> Target:
    return Target.from_url("https://example.com")


@pytest.fixture
def options() -> ScanOptions:
    """Pro-tier options with a short timeout."""
    return ScanOptions(timeout=5.0, tier="pro")
