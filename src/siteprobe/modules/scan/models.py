"""Data models for probes, findings and scan reports."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from siteprobe import config
from siteprobe.tools.http import DEFAULT_USER_AGENT


class Status(StrEnum):
    """Outcome of a single check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Target:
    """Normalized scan target, built once per scan."""

    url: str
    hostname: str
    scheme: str
    port: int

    @classmethod
    def from_url(cls, raw: str) -> "Target":
        """Normalize a user-supplied URL, defaulting the scheme to https."""
        candidate = raw.strip()
        if not candidate.lower().startswith(("http://", "https://")):
            candidate = f"https://{candidate}"

        parts = urlsplit(candidate)
        hostname = parts.hostname
        if not hostname:
            raise ValueError(f"Invalid target URL: {raw!r}")
        scheme = parts.scheme.lower()
        explicit_port = parts.port
        port = explicit_port or (443 if scheme == "https" else 80)

        netloc = f"[{hostname}]" if ":" in hostname else hostname
        if explicit_port:
            netloc = f"{netloc}:{explicit_port}"
        url = urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))
        return cls(url=url, hostname=hostname, scheme=scheme, port=port)

    @property
    def is_https(self) -> bool:
        return self.scheme == "https"

    @property
    def origin(self) -> str:
        netloc = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        if self.port != (443 if self.is_https else 80):
            netloc = f"{netloc}:{self.port}"
        return f"{self.scheme}://{netloc}"


@dataclass(frozen=True)
class ProbeDescriptor:
    """Static identity of a probe: name, weight and timeout cap in seconds."""

    name: str
    weight: float
    timeout: float


@dataclass(frozen=True)
class Finding:
    """Smallest reported unit of a probe."""

    name: str
    status: Status
    message: str
    value: str | None = None
    recommendation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "status": str(self.status),
            "message": self.message,
        }
        if self.value is not None:
            data["value"] = self.value
        if self.recommendation is not None:
            data["recommendation"] = self.recommendation
        return data


@dataclass
class ProbeResult:
    """Raw output of one probe run, on the probe's own point scale."""

    score: float
    max_score: float
    findings: list[Finding] = field(default_factory=list)

    @classmethod
    def failed(cls, probe_name: str, weight: float, reason: str) -> "ProbeResult":
        """Result standing in for a probe that raised or timed out."""
        return cls(
            score=0.0,
            max_score=weight,
            findings=[Finding(f"{probe_name} scan", Status.ERROR, reason)],
        )


@dataclass
class ScanOptions:
    """Runtime settings shared by every probe of one scan."""

    timeout: float = config.DEFAULT_TIMEOUT
    tier: str = config.DEFAULT_TIER
    full: bool = False
    concurrency: int = config.DEFAULT_CONCURRENCY
    max_redirect_tests: int = 10
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_config(cls, **overrides: Any) -> "ScanOptions":
        """Build options from environment/global config, then apply overrides.

        Overrides whose value is ``None`` are ignored so CLI flags that were
        not given fall through to the configured values.
        """
        options = cls(
            timeout=config.get_timeout(),
            tier=config.get_tier(),
            concurrency=config.get_concurrency(),
            user_agent=config.get_user_agent() or DEFAULT_USER_AGENT,
        )
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(options, key):
                raise TypeError(f"Unknown scan option: {key}")
            setattr(options, key, value)
        return options


def display_score(value: float, cap: float) -> float:
    """Round half-up to one decimal, never above ``cap``."""
    return min(math.floor(value * 10 + 0.5) / 10, cap)


@dataclass
class Section:
    """One probe's contribution to the report, normalized to its weight."""

    score: float
    weight: float
    grade: str
    findings: list[Finding]

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": display_score(self.score, self.weight),
            "maxScore": self.weight,
            "grade": self.grade,
            "checks": [finding.to_dict() for finding in self.findings],
        }


@dataclass
class Summary:
    """Finding counts by status across all sections."""

    passed: int = 0
    warnings: int = 0
    failed: int = 0
    info: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "passed": self.passed,
            "warnings": self.warnings,
            "failed": self.failed,
            "info": self.info,
        }


@dataclass
class Report:
    """Finished scan. Renderers read it; nothing in the engine mutates it later."""

    target: Target
    tier: str
    sections: dict[str, Section]
    score: float
    max_score: float
    grade: str
    summary: Summary
    scanned_at: datetime
    duration: float

    @property
    def percentage(self) -> int:
        if self.max_score <= 0:
            return 0
        return round(self.score / self.max_score * 100)

    def to_dict(self) -> dict[str, Any]:
        """Return the stable JSON-facing shape of the report."""
        return {
            "url": self.target.url,
            "hostname": self.target.hostname,
            "scannedAt": self.scanned_at.isoformat().replace("+00:00", "Z"),
            "scanDuration": round(self.duration * 1000),
            "grade": self.grade,
            "score": display_score(self.score, self.max_score),
            "maxScore": self.max_score,
            "sections": {name: section.to_dict() for name, section in self.sections.items()},
            "summary": self.summary.to_dict(),
            "tier": self.tier,
        }
