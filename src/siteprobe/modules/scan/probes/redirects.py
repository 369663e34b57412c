"""Open redirect detection through common redirect parameters."""

import asyncio
import logging
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import httpx

from siteprobe.tools.http import HTTPClient

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target

logger = logging.getLogger(__name__)

REDIRECT_PARAMS = (
    "url",
    "redirect",
    "redirect_url",
    "redirect_uri",
    "return",
    "return_url",
    "returnTo",
    "return_to",
    "next",
    "goto",
    "dest",
    "destination",
    "redir",
    "out",
    "continue",
    "target",
    "path",
    "callback",
    "cb",
    "ref",
)

MARKER_URL = "https://evil.example.com"
MARKER_HOST = "evil.example.com"
MAX_REQUEST_TIMEOUT = 5.0


def with_param(url: str, name: str, value: str) -> str:
    """Return ``url`` with query parameter ``name`` set (replaced) to ``value``."""
    parts = urlsplit(url)
    query = [(key, val) for key, val in parse_qsl(parts.query, keep_blank_values=True) if key != name]
    query.append((name, value))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def _browser_location(location: str, request_url: str) -> str:
    """Clean a Location value the way browsers do before resolving it.

    Tabs and newlines are dropped, and on http(s) a backslash counts as a slash.
    """
    location = location.strip().replace("\t", "").replace("\r", "").replace("\n", "")
    if urlsplit(request_url).scheme in ("http", "https"):
        location = location.replace("\\", "/")
    return location


def redirects_to_marker(status: int, location: str, request_url: str) -> bool:
    """True when a response sends the client to the marker host."""
    if not 300 <= status < 400 or not location:
        return False
    try:
        resolved = urljoin(request_url, _browser_location(location, request_url))
        return urlsplit(resolved).hostname == MARKER_HOST
    except ValueError:
        return False


class OpenRedirectProbe(Probe):
    """Append a foreign URL to redirect-style parameters and watch where we get sent."""

    name = "redirects"
    weight = 5.0
    timeout = 30.0

    def __init__(self, params: tuple[str, ...] = REDIRECT_PARAMS):
        self.params = params

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        tested = list(self.params[: min(len(self.params), options.max_redirect_tests)])
        timeout = min(MAX_REQUEST_TIMEOUT, self.budget(options))

        async with HTTPClient(timeout=timeout, user_agent=options.user_agent) as client:
            outcomes = await asyncio.gather(
                *(self._test_param(client, target, param, timeout) for param in tested)
            )

        vulnerable = [(param, location) for param, location in zip(tested, outcomes) if location]
        findings: list[Finding] = []
        if not vulnerable:
            findings.append(
                Finding(
                    "Open Redirects",
                    Status.PASS,
                    f"Tested {len(tested)} common redirect parameters, none vulnerable",
                )
            )
        else:
            findings.append(
                Finding(
                    "Open Redirects",
                    Status.FAIL,
                    f"{len(vulnerable)} open redirect(s) found! Attackers can craft phishing URLs using your domain.",
                    recommendation=(
                        "Validate redirect destinations against an allowlist of trusted domains. "
                        "Never redirect to user-supplied URLs without validation."
                    ),
                )
            )
            findings.extend(
                Finding(
                    f"Redirect: ?{param}=",
                    Status.FAIL,
                    f'Redirects to external domain via "{param}" parameter',
                    value=location,
                )
                for param, location in vulnerable
            )

        return ProbeResult(
            score=float(len(tested) - len(vulnerable)),
            max_score=float(len(tested)),
            findings=findings,
        )

    async def _test_param(
        self, client: HTTPClient, target: Target, param: str, timeout: float
    ) -> str | None:
        """Return the offending Location, or None when the parameter is safe."""
        url = with_param(target.url, param, MARKER_URL)
        try:
            response = await asyncio.wait_for(client.get(url, max_body=0), timeout=timeout)
        except (httpx.HTTPError, OSError, TimeoutError) as exc:
            logger.debug("Redirect test ?%s= failed: %s", param, exc)
            return None
        if redirects_to_marker(response.status_code, response.location, url):
            return response.location
        return None
