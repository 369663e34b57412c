"""Plain-HTTP resources referenced from an HTTPS page."""

import re

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target
from .page import fetch_page

MAX_POINTS = 2.0
ACTIVE_SHOWN = 5
PASSIVE_SHOWN = 3

# Blocked by browsers outright.
ACTIVE_PATTERNS = (
    (re.compile(r"""<script[^>]+src\s*=\s*["'](http://[^"']+)["']""", re.IGNORECASE), "script"),
    (re.compile(r"""<iframe[^>]+src\s*=\s*["'](http://[^"']+)["']""", re.IGNORECASE), "iframe"),
    (
        re.compile(r"""<link[^>]+href\s*=\s*["'](http://[^"']+)["'][^>]*rel\s*=\s*["']stylesheet["']""", re.IGNORECASE),
        "stylesheet",
    ),
    (re.compile(r"""<object[^>]+data\s*=\s*["'](http://[^"']+)["']""", re.IGNORECASE), "object"),
)

# Loaded with a warning.
PASSIVE_PATTERNS = (
    (re.compile(r"""<img[^>]+src\s*=\s*["'](http://[^"']+)["']""", re.IGNORECASE), "image"),
    (re.compile(r"""<video[^>]+src\s*=\s*["'](http://[^"']+)["']""", re.IGNORECASE), "video"),
    (re.compile(r"""<audio[^>]+src\s*=\s*["'](http://[^"']+)["']""", re.IGNORECASE), "audio"),
    (re.compile(r"""<source[^>]+src\s*=\s*["'](http://[^"']+)["']""", re.IGNORECASE), "media source"),
    (re.compile(r"""url\(\s*["']?(http://[^"')]+)["']?\s*\)""", re.IGNORECASE), "css-url"),
)


def _collect(html: str, patterns) -> list[tuple[str, str]]:
    return [(kind, match.group(1)) for pattern, kind in patterns for match in pattern.finditer(html)]


def evaluate_mixed_content(html: str) -> ProbeResult:
    active = _collect(html, ACTIVE_PATTERNS)
    passive = _collect(html, PASSIVE_PATTERNS)

    if not active and not passive:
        return ProbeResult(
            score=MAX_POINTS,
            max_score=MAX_POINTS,
            findings=[Finding("Mixed Content", Status.PASS, "No HTTP resources detected on HTTPS page")],
        )

    score = 0.0
    findings: list[Finding] = []
    if active:
        findings.append(
            Finding(
                "Active Mixed Content",
                Status.FAIL,
                f"{len(active)} active HTTP resource(s): scripts/styles loaded over HTTP on HTTPS page. "
                "Blocked by modern browsers.",
                recommendation="Change all resource URLs from http:// to https:// or use protocol-relative URLs (//)",
            )
        )
        findings.extend(
            Finding(f"HTTP {kind}", Status.FAIL, url[:100], value=url) for kind, url in active[:ACTIVE_SHOWN]
        )
        if len(active) > ACTIVE_SHOWN:
            findings.append(
                Finding("Active Mixed Content", Status.INFO, f"...and {len(active) - ACTIVE_SHOWN} more")
            )
    else:
        score += 1.0

    if passive:
        findings.append(
            Finding(
                "Passive Mixed Content",
                Status.WARN,
                f"{len(passive)} passive HTTP resource(s): images/media loaded over HTTP. "
                "May show browser warnings.",
                recommendation="Update resource URLs to HTTPS",
            )
        )
        findings.extend(
            Finding(f"HTTP {kind}", Status.WARN, url[:100], value=url) for kind, url in passive[:PASSIVE_SHOWN]
        )
        score += 0.5
    else:
        score += 1.0

    return ProbeResult(score=score, max_score=MAX_POINTS, findings=findings)


class MixedContentProbe(Probe):
    name = "mixedContent"
    weight = 5.0
    timeout = 30.0

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        if not target.is_https:
            return ProbeResult(
                score=0.0,
                max_score=0.0,
                findings=[
                    Finding(
                        "Mixed Content",
                        Status.INFO,
                        "Site served over HTTP, mixed content check not applicable",
                    )
                ],
            )

        html = await fetch_page(target, options, self.budget(options))
        if not html:
            return ProbeResult(
                score=0.0,
                max_score=MAX_POINTS,
                findings=[Finding("Mixed Content", Status.ERROR, "Could not fetch page HTML")],
            )
        return evaluate_mixed_content(html)
