"""Security response header scoring."""

import logging
import re

from siteprobe.tools.http import HTTPClient

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target

logger = logging.getLogger(__name__)

ONE_YEAR = 31536000
MAX_REDIRECTS = 5

GOOD_REFERRER_POLICIES = (
    "no-referrer",
    "strict-origin-when-cross-origin",
    "strict-origin",
    "same-origin",
    "no-referrer-when-downgrade",
)

_MAX_AGE = re.compile(r"max-age=(\d+)", re.IGNORECASE)


def _clip(value: str, limit: int = 200) -> str:
    return value if len(value) <= limit else f"{value[:limit]}..."


def _check_hsts(headers: dict[str, str]) -> tuple[float, Finding]:
    hsts = headers.get("strict-transport-security")
    if not hsts:
        return 0.0, Finding(
            "Strict-Transport-Security",
            Status.FAIL,
            "Missing. Allows downgrade attacks to HTTP.",
            recommendation="Add: Strict-Transport-Security: max-age=31536000; includeSubDomains; preload",
        )

    match = _MAX_AGE.search(hsts)
    max_age = int(match.group(1)) if match else 0
    subdomains = "includesubdomains" in hsts.lower()
    preload = "preload" in hsts.lower()

    if max_age >= ONE_YEAR and subdomains and preload:
        return 4.0, Finding(
            "Strict-Transport-Security",
            Status.PASS,
            f"Excellent. max-age={max_age}, includeSubDomains, preload",
            value=hsts,
        )
    if max_age >= ONE_YEAR:
        extras = "".join(
            label for label, on in ((", includeSubDomains", subdomains), (", preload", preload)) if on
        )
        return 3.0, Finding(
            "Strict-Transport-Security", Status.PASS, f"Good. max-age={max_age}{extras}", value=hsts
        )
    if max_age > 0:
        return 1.0, Finding(
            "Strict-Transport-Security",
            Status.WARN,
            f"max-age={max_age} is low. Recommend >= {ONE_YEAR} (1 year)",
            value=hsts,
        )
    return 0.0, Finding(
        "Strict-Transport-Security",
        Status.FAIL,
        "Present but max-age is 0 or missing, which disables HSTS.",
        value=hsts,
        recommendation=f"Set max-age to at least {ONE_YEAR}",
    )


def _check_content_type_options(headers: dict[str, str]) -> tuple[float, Finding]:
    xcto = headers.get("x-content-type-options")
    if xcto and xcto.strip().lower() == "nosniff":
        return 3.0, Finding(
            "X-Content-Type-Options", Status.PASS, "nosniff, prevents MIME-type sniffing", value=xcto
        )
    return 0.0, Finding(
        "X-Content-Type-Options",
        Status.FAIL,
        "Missing or incorrect. Browsers may MIME-sniff responses.",
        recommendation="Add: X-Content-Type-Options: nosniff",
    )


def _check_frame_options(headers: dict[str, str]) -> tuple[float, Finding]:
    xfo = headers.get("x-frame-options")
    csp = headers.get("content-security-policy", "")
    if xfo:
        value = xfo.strip().upper()
        if value in ("DENY", "SAMEORIGIN"):
            return 2.0, Finding("X-Frame-Options", Status.PASS, f"{value}, prevents clickjacking", value=xfo)
        return 1.0, Finding("X-Frame-Options", Status.WARN, f"Unusual value: {xfo}", value=xfo)
    if re.search(r"frame-ancestors", csp, re.IGNORECASE):
        return 2.0, Finding(
            "X-Frame-Options",
            Status.PASS,
            "Not set, but CSP frame-ancestors provides equivalent protection",
            value="via CSP",
        )
    return 0.0, Finding(
        "X-Frame-Options",
        Status.FAIL,
        "Missing. Page can be embedded in iframes (clickjacking risk).",
        recommendation="Add: X-Frame-Options: DENY (or SAMEORIGIN)",
    )


def _check_referrer_policy(headers: dict[str, str]) -> tuple[float, Finding]:
    policy = headers.get("referrer-policy")
    if not policy:
        return 0.0, Finding(
            "Referrer-Policy",
            Status.FAIL,
            "Missing. Browser defaults may leak URL paths in referrer.",
            recommendation="Add: Referrer-Policy: strict-origin-when-cross-origin",
        )
    if any(good in policy.lower() for good in GOOD_REFERRER_POLICIES):
        return 2.0, Finding("Referrer-Policy", Status.PASS, policy, value=policy)
    return 1.0, Finding(
        "Referrer-Policy", Status.WARN, f'Set to "{policy}", may leak referrer data', value=policy
    )


def _check_csp(headers: dict[str, str]) -> tuple[float, Finding]:
    csp = headers.get("content-security-policy")
    if not csp:
        # absence is a warning with no deduction
        return 0.0, Finding(
            "Content-Security-Policy",
            Status.WARN,
            "Missing. Consider adding to protect against XSS and data injection.",
            recommendation="Add: Content-Security-Policy: default-src 'self'; script-src 'self'; style-src 'self'",
        )

    lowered = csp.lower()
    unsafe = [directive for directive in ("unsafe-inline", "unsafe-eval") if directive in lowered]
    if "default-src" not in lowered:
        return 1.0, Finding(
            "Content-Security-Policy",
            Status.WARN,
            "Present but missing default-src directive",
            value=csp[:200],
        )
    if unsafe:
        return 1.0, Finding(
            "Content-Security-Policy",
            Status.WARN,
            f"Present but uses {', '.join(unsafe)}",
            value=csp[:200],
        )
    return 2.0, Finding(
        "Content-Security-Policy", Status.PASS, "Strong policy without unsafe directives", value=_clip(csp)
    )


def _check_permissions_policy(headers: dict[str, str]) -> tuple[float, Finding]:
    policy = headers.get("permissions-policy") or headers.get("feature-policy")
    if policy:
        return 1.0, Finding(
            "Permissions-Policy", Status.PASS, "Controls browser feature access", value=policy[:200]
        )
    return 0.0, Finding(
        "Permissions-Policy",
        Status.WARN,
        "Missing. Browser features (camera, mic, geolocation) unrestricted.",
        recommendation="Add: Permissions-Policy: camera=(), microphone=(), geolocation=()",
    )


def _check_cross_origin(headers: dict[str, str], header: str, hint: str) -> tuple[float, Finding]:
    name = "-".join(part.capitalize() for part in header.split("-"))
    value = headers.get(header)
    if value:
        return 0.5, Finding(name, Status.PASS, value, value=value)
    return 0.0, Finding(name, Status.INFO, f"Not set. Consider adding {hint}.")


def _disclosure_findings(headers: dict[str, str]) -> list[Finding]:
    findings = []
    xxss = headers.get("x-xss-protection")
    if xxss and xxss.strip() != "0":
        findings.append(
            Finding(
                "X-XSS-Protection",
                Status.INFO,
                f'Set to "{xxss}". This header is deprecated; CSP is the modern replacement.',
                value=xxss,
            )
        )
    server = headers.get("server")
    if server and re.search(r"\d", server):
        findings.append(
            Finding(
                "Server Header",
                Status.INFO,
                f'Leaks version info: "{server}". Remove version numbers.',
                value=server,
            )
        )
    powered = headers.get("x-powered-by")
    if powered:
        findings.append(
            Finding(
                "X-Powered-By",
                Status.INFO,
                f'Leaks technology: "{powered}". Remove this header.',
                value=powered,
            )
        )
    return findings


def evaluate_headers(headers: dict[str, str]) -> ProbeResult:
    """Score a set of lower-cased response headers out of 15."""
    checks = [
        (4.0, _check_hsts(headers)),
        (3.0, _check_content_type_options(headers)),
        (2.0, _check_frame_options(headers)),
        (2.0, _check_referrer_policy(headers)),
        (2.0, _check_csp(headers)),
        (1.0, _check_permissions_policy(headers)),
        (0.5, _check_cross_origin(headers, "cross-origin-opener-policy", "for cross-origin isolation")),
        (0.5, _check_cross_origin(headers, "cross-origin-resource-policy", "to control resource sharing")),
    ]
    result = ProbeResult(score=0.0, max_score=0.0)
    for weight, (earned, finding) in checks:
        result.max_score += weight
        result.score += earned
        result.findings.append(finding)
    result.findings.extend(_disclosure_findings(headers))
    return result


class HeaderPolicyEvaluator(Probe):
    """Grade the security headers of the final response after redirects."""

    name = "headers"
    weight = 15.0
    timeout = 30.0

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        # TooManyRedirects and transport errors propagate to the orchestrator
        async with HTTPClient(
            timeout=self.budget(options),
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            user_agent=options.user_agent,
        ) as client:
            response = await client.head(target.url)

        logger.debug("Headers from %s (HTTP %d)", response.url, response.status_code)
        return evaluate_headers(response.headers)
