"""Landing page fetch shared by the HTML-inspecting probes."""

import logging

import httpx

from siteprobe.tools.http import HTTPClient

from ..models import ScanOptions, Target

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500_000
MAX_REDIRECTS = 5


async def fetch_page(target: Target, options: ScanOptions, timeout: float) -> str:
    """Return the landing page HTML, or an empty string when it cannot be fetched."""
    async with HTTPClient(
        timeout=timeout,
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
        user_agent=options.user_agent,
    ) as client:
        try:
            response = await client.get(target.url, headers={"Accept": "text/html"}, max_body=MAX_PAGE_SIZE)
        except (httpx.HTTPError, OSError) as exc:
            logger.debug("Could not fetch %s: %s", target.url, exc)
            return ""
    return response.body
