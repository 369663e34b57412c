"""Subresource Integrity on externally hosted scripts and stylesheets."""

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target
from .page import fetch_page

MAX_DOMAINS_SHOWN = 10

_SCRIPT = re.compile(r"""<script[^>]+src\s*=\s*["']([^"']+)["'][^>]*>""", re.IGNORECASE)
_STYLESHEET = re.compile(
    r"""<link[^>]+href\s*=\s*["']([^"']+)["'][^>]*rel\s*=\s*["']stylesheet["'][^>]*>"""
    r"""|<link[^>]*rel\s*=\s*["']stylesheet["'][^>]*href\s*=\s*["']([^"']+)["'][^>]*>""",
    re.IGNORECASE,
)
_INTEGRITY = re.compile(r"""integrity\s*=\s*["']""", re.IGNORECASE)


def _absolute(url: str) -> str:
    return f"https:{url}" if url.startswith("//") else url


def external_host(url: str, hostname: str) -> str | None:
    """Host serving ``url`` when it is not ``hostname``. Relative URLs are same-origin."""
    url = _absolute(url)
    if not url.startswith(("http://", "https://")):
        return None
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    if not host or host == hostname:
        return None
    return host


@dataclass
class ExternalResource:
    url: str
    host: str
    script: bool
    has_integrity: bool


@dataclass
class _DomainCounts:
    scripts: int = 0
    styles: int = 0
    with_sri: int = 0
    without_sri: int = 0


def find_external_resources(html: str, hostname: str) -> list[ExternalResource]:
    resources = []
    for match in _SCRIPT.finditer(html):
        host = external_host(match.group(1), hostname)
        if host:
            resources.append(ExternalResource(match.group(1), host, True, bool(_INTEGRITY.search(match.group(0)))))
    for match in _STYLESHEET.finditer(html):
        href = match.group(1) or match.group(2)
        host = external_host(href, hostname) if href else None
        if host:
            resources.append(ExternalResource(href, host, False, bool(_INTEGRITY.search(match.group(0)))))
    return resources


def evaluate_sri(resources: list[ExternalResource]) -> ProbeResult:
    if not resources:
        return ProbeResult(
            score=1.0,
            max_score=1.0,
            findings=[
                Finding(
                    "Subresource Integrity",
                    Status.PASS,
                    "No external scripts or stylesheets found (self-hosted resources)",
                )
            ],
        )

    score = 0.0
    by_domain: dict[str, _DomainCounts] = {}
    for resource in resources:
        counts = by_domain.setdefault(resource.host, _DomainCounts())
        if resource.script:
            counts.scripts += 1
        else:
            counts.styles += 1
        if resource.has_integrity:
            counts.with_sri += 1
            score += 1.0
        else:
            counts.without_sri += 1
            if not resource.script:
                score += 0.25

    findings: list[Finding] = []
    domains = sorted(by_domain.items(), key=lambda item: -item[1].without_sri)
    for domain, counts in domains[:MAX_DOMAINS_SHOWN]:
        total = counts.with_sri + counts.without_sri
        if counts.without_sri == 0:
            findings.append(
                Finding(f"SRI: {domain}", Status.PASS, f"All {total} resources have integrity attributes")
            )
        elif counts.scripts:
            findings.append(
                Finding(
                    f"SRI: {domain}",
                    Status.FAIL,
                    f"{counts.without_sri} of {total} resources missing integrity ({counts.scripts} scripts)",
                    recommendation=(
                        'Add integrity="sha384-..." and crossorigin="anonymous" to external script/link tags'
                    ),
                )
            )
        else:
            findings.append(
                Finding(
                    f"SRI: {domain}",
                    Status.WARN,
                    f"{counts.without_sri} of {total} stylesheets missing integrity",
                    recommendation='Add integrity="sha384-..." attribute',
                )
            )
    if len(domains) > MAX_DOMAINS_SHOWN:
        findings.append(
            Finding("SRI", Status.INFO, f"...and {len(domains) - MAX_DOMAINS_SHOWN} more external domains")
        )

    with_sri = sum(counts.with_sri for counts in by_domain.values())
    without_sri = sum(counts.without_sri for counts in by_domain.values())
    if without_sri == 0:
        summary = Finding(
            "Subresource Integrity",
            Status.PASS,
            f"All {len(resources)} external resources have integrity attributes",
        )
    else:
        summary = Finding(
            "Subresource Integrity",
            Status.FAIL if without_sri > with_sri else Status.WARN,
            f"{without_sri} of {len(resources)} external resources missing integrity ({len(by_domain)} domains)",
        )
    findings.insert(0, summary)
    return ProbeResult(score=score, max_score=float(len(resources)), findings=findings)


class SubresourceIntegrityProbe(Probe):
    name = "sri"
    weight = 5.0
    timeout = 30.0

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        html = await fetch_page(target, options, self.budget(options))
        if not html:
            return ProbeResult(
                score=0.0,
                max_score=1.0,
                findings=[Finding("Subresource Integrity", Status.ERROR, "Could not fetch page HTML")],
            )
        return evaluate_sri(find_external_resources(html, target.hostname))
