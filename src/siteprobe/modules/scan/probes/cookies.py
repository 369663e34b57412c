"""Cookie flag checks on the landing page."""

import logging
import re
from dataclasses import dataclass

import httpx

from siteprobe.tools.http import HTTPClient

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5
SESSION_LIKE = re.compile(r"session|sid|token|auth|jwt|csrf", re.IGNORECASE)


@dataclass
class Cookie:
    name: str
    secure: bool = False
    http_only: bool = False
    same_site: str | None = None

    @classmethod
    def parse(cls, header: str) -> "Cookie":
        name_value, *attributes = [part.strip() for part in header.split(";")]
        cookie = cls(name=name_value.split("=", 1)[0].strip() or "unnamed")
        for attribute in attributes:
            key, _, value = attribute.partition("=")
            key = key.strip().lower()
            if key == "secure":
                cookie.secure = True
            elif key == "httponly":
                cookie.http_only = True
            elif key == "samesite":
                cookie.same_site = value.strip() or "Lax"
        return cookie

    @property
    def session_like(self) -> bool:
        return bool(SESSION_LIKE.search(self.name))


def evaluate_cookies(cookies: list[Cookie], https: bool) -> ProbeResult:
    if not cookies:
        return ProbeResult(
            score=1.0,
            max_score=1.0,
            findings=[Finding("Cookies", Status.INFO, "No cookies set on initial page load")],
        )

    result = ProbeResult(
        score=0.0,
        max_score=0.0,
        findings=[Finding("Cookie Count", Status.INFO, f"{len(cookies)} cookie(s) found", value=str(len(cookies)))],
    )
    for cookie in cookies:
        weight = 2.0 if cookie.session_like else 1.0
        missing = Status.FAIL if cookie.session_like else Status.WARN

        result.max_score += weight
        if cookie.secure:
            result.findings.append(Finding(f"{cookie.name}: Secure", Status.PASS, "Cookie sent only over HTTPS"))
            result.score += weight
        elif https:
            result.findings.append(
                Finding(
                    f"{cookie.name}: Secure",
                    missing,
                    "Missing Secure flag, cookie can be sent over HTTP",
                    recommendation="Add Secure flag to Set-Cookie header",
                )
            )
            if not cookie.session_like:
                result.score += weight * 0.5

        result.max_score += weight
        if cookie.http_only:
            result.findings.append(
                Finding(f"{cookie.name}: HttpOnly", Status.PASS, "Cookie inaccessible to JavaScript")
            )
            result.score += weight
        else:
            result.findings.append(
                Finding(
                    f"{cookie.name}: HttpOnly",
                    missing,
                    "Missing HttpOnly, cookie accessible via document.cookie (XSS risk)",
                    recommendation="Add HttpOnly flag to prevent JavaScript access",
                )
            )
            if not cookie.session_like:
                result.score += weight * 0.25

        result.max_score += weight * 0.5
        same_site = (cookie.same_site or "").lower()
        if same_site in ("strict", "lax"):
            result.findings.append(
                Finding(
                    f"{cookie.name}: SameSite",
                    Status.PASS,
                    f"SameSite={cookie.same_site}",
                    value=cookie.same_site,
                )
            )
            result.score += weight * 0.5
        elif same_site == "none":
            result.findings.append(
                Finding(
                    f"{cookie.name}: SameSite",
                    Status.WARN,
                    "SameSite=None, cookie sent on all cross-site requests",
                )
            )
            result.score += weight * 0.25
        elif not same_site:
            result.findings.append(
                Finding(
                    f"{cookie.name}: SameSite",
                    Status.WARN,
                    "Missing SameSite attribute",
                    recommendation="Add SameSite=Lax or SameSite=Strict",
                )
            )
    return result


class CookieProbe(Probe):
    """Check Secure, HttpOnly and SameSite on cookies set by the landing page."""

    name = "cookies"
    weight = 10.0
    timeout = 30.0

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        async with HTTPClient(
            timeout=self.budget(options),
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            user_agent=options.user_agent,
        ) as client:
            try:
                response = await client.get(target.url, max_body=0)
            except httpx.TooManyRedirects:
                logger.debug("Too many redirects collecting cookies from %s", target.url)
                return evaluate_cookies([], target.is_https)

        cookies = [Cookie.parse(header) for header in response.set_cookies]
        return evaluate_cookies(cookies, target.is_https)
