"""HTTP client implementation for probing targets."""

import time
from dataclasses import dataclass, field
from typing import Any

import httpx

DEFAULT_USER_AGENT = "siteprobe/0.1 Security Scanner"


@dataclass
class HTTPResponse:
    """Represents an HTTP response.

    Header names are lower-cased. ``set_cookies`` keeps every ``Set-Cookie``
    line separately because merging them would corrupt cookie attributes.
    """

    url: str
    status_code: int
    headers: dict[str, str]
    body: str
    response_time: float
    set_cookies: list[str] = field(default_factory=list)

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def location(self) -> str:
        return self.headers.get("location", "")


class HTTPClient:
    """Async HTTP client for probe traffic.

    Certificate validation is off because the TLS probe grades certificates
    separately; a broken certificate must not hide every other finding.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        follow_redirects: bool = False,
        verify_ssl: bool = False,
        max_redirects: int = 5,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.verify_ssl = verify_ssl
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
            verify=self.verify_ssl,
            headers={"User-Agent": self.user_agent},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        max_body: int | None = None,
    ) -> HTTPResponse:
        """Make an HTTP request.

        When ``max_body`` is set, reading stops once that many characters of
        the body have arrived and the connection is released.
        """
        if not self.client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        start = time.time()

        async with self.client.stream(method, url, headers=headers, params=params) as response:
            body = await _read_text(response, max_body)

        elapsed = time.time() - start

        return HTTPResponse(
            url=str(response.url),
            status_code=response.status_code,
            headers={key.lower(): value for key, value in response.headers.items()},
            body=body,
            response_time=elapsed,
            set_cookies=response.headers.get_list("set-cookie"),
        )

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        max_body: int | None = None,
    ) -> HTTPResponse:
        """Make a GET request."""
        return await self.request("GET", url, headers=headers, params=params, max_body=max_body)

    async def head(self, url: str, headers: dict[str, str] | None = None) -> HTTPResponse:
        """Make a HEAD request."""
        return await self.request("HEAD", url, headers=headers)

    async def options(self, url: str, headers: dict[str, str] | None = None) -> HTTPResponse:
        """Make an OPTIONS request."""
        return await self.request("OPTIONS", url, headers=headers, max_body=0)


async def _read_text(response: httpx.Response, max_body: int | None) -> str:
    if max_body == 0:
        return ""
    chunks: list[str] = []
    size = 0
    async for chunk in response.aiter_text():
        chunks.append(chunk)
        size += len(chunk)
        if max_body is not None and size >= max_body:
            break
    return "".join(chunks)
