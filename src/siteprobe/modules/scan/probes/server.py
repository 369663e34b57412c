"""Server-level configuration: HTTPS redirect, CORS and allowed methods."""

import logging
from urllib.parse import urlsplit, urlunsplit

import httpx

from siteprobe.tools.http import HTTPClient, HTTPResponse

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target

logger = logging.getLogger(__name__)

FOREIGN_ORIGIN = "https://evil.example.com"
DANGEROUS_METHODS = ("PUT", "DELETE", "TRACE", "TRACK")
MAX_REQUEST_TIMEOUT = 5.0

_NETWORK_ERRORS = (httpx.HTTPError, OSError)


def plain_http_url(url: str) -> str:
    parts = urlsplit(url)
    netloc = parts.hostname or ""
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if parts.port and parts.port != 443:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit(("http", netloc, parts.path, parts.query, ""))


async def _head_then_get(client: HTTPClient, url: str, headers: dict[str, str] | None = None) -> HTTPResponse:
    """HEAD first; servers that reject HEAD get a GET."""
    response = await client.head(url, headers=headers)
    if response.status_code >= 400:
        response = await client.get(url, headers=headers, max_body=0)
    return response


class ServerConfigProbe(Probe):
    """Check HTTP to HTTPS redirection, CORS exposure and enabled HTTP methods."""

    name = "server"
    weight = 8.0
    timeout = 30.0

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        result = ProbeResult(score=0.0, max_score=4.0)
        timeout = min(MAX_REQUEST_TIMEOUT, self.budget(options))

        async with HTTPClient(timeout=timeout, user_agent=options.user_agent) as client:
            if target.is_https:
                await self._check_https_redirect(client, target, result)
            else:
                result.findings.append(
                    Finding("HTTPS", Status.FAIL, "Site served over HTTP. All traffic is unencrypted.")
                )
            await self._check_cors(client, target, result)
            await self._check_methods(client, target, result)

        return result

    async def _check_https_redirect(self, client: HTTPClient, target: Target, result: ProbeResult) -> None:
        name = "HTTP -> HTTPS Redirect"
        try:
            response = await _head_then_get(client, plain_http_url(target.url))
        except _NETWORK_ERRORS as exc:
            logger.debug("Plain HTTP check on %s failed: %s", target.hostname, exc)
            result.findings.append(
                Finding(name, Status.INFO, "Could not test HTTP redirect (port 80 may be closed)")
            )
            result.score += 1.0
            return

        if response.is_redirect and response.location.startswith("https://"):
            result.findings.append(Finding(name, Status.PASS, "HTTP requests redirect to HTTPS"))
            result.score += 2.0
        else:
            result.findings.append(
                Finding(
                    name,
                    Status.WARN,
                    "HTTP does not redirect to HTTPS. Users can access insecure version.",
                    recommendation="Configure server to redirect all HTTP traffic to HTTPS (301 redirect)",
                )
            )

    async def _check_cors(self, client: HTTPClient, target: Target, result: ProbeResult) -> None:
        try:
            response = await _head_then_get(client, target.url, headers={"Origin": FOREIGN_ORIGIN})
        except _NETWORK_ERRORS as exc:
            logger.debug("CORS check on %s failed: %s", target.hostname, exc)
            result.findings.append(Finding("CORS Policy", Status.INFO, "Could not test CORS configuration"))
            return

        allowed = response.headers.get("access-control-allow-origin")
        if not allowed:
            result.findings.append(
                Finding(
                    "CORS Policy",
                    Status.PASS,
                    "No Access-Control-Allow-Origin header (default same-origin policy)",
                )
            )
            result.score += 1.0
        elif allowed.strip() == "*":
            result.findings.append(
                Finding(
                    "CORS Policy",
                    Status.WARN,
                    "Access-Control-Allow-Origin: * allows any origin to read responses",
                    value=allowed,
                )
            )
            result.score += 0.25
        else:
            result.findings.append(
                Finding("CORS Policy", Status.PASS, f"CORS restricted to: {allowed}", value=allowed)
            )
            result.score += 1.0

    async def _check_methods(self, client: HTTPClient, target: Target, result: ProbeResult) -> None:
        try:
            response = await client.options(target.url)
        except _NETWORK_ERRORS as exc:
            logger.debug("OPTIONS on %s failed: %s", target.hostname, exc)
            result.findings.append(Finding("HTTP Methods", Status.INFO, "Could not determine allowed methods"))
            result.score += 0.5
            return

        allow = response.headers.get("allow", "")
        methods = [method.strip().upper() for method in allow.split(",") if method.strip()]
        if not methods:
            result.findings.append(
                Finding(
                    "HTTP Methods",
                    Status.INFO,
                    "Server did not disclose allowed methods (OPTIONS returned no Allow header)",
                )
            )
            result.score += 0.5
            return

        listed = ", ".join(methods)
        dangerous = [method for method in methods if method in DANGEROUS_METHODS]
        if dangerous:
            result.findings.append(
                Finding(
                    "HTTP Methods",
                    Status.WARN,
                    f"Potentially dangerous methods enabled: {', '.join(dangerous)}",
                    value=listed,
                )
            )
            result.score += 0.5
        else:
            result.findings.append(Finding("HTTP Methods", Status.PASS, f"Allowed: {listed}", value=listed))
            result.score += 1.0
