"""Tests for HTTP tools module."""

import httpx
import pytest
import respx
from httpx import Response

from siteprobe.tools.http import HTTPClient


class TestHTTPClient:
    """Test HTTPClient functionality."""

    @respx.mock
    async def test_get_request(self):
        """Test basic GET request."""
        respx.get("https://example.com").mock(return_value=Response(200, text="Hello World"))

        async with HTTPClient() as client:
            response = await client.get("https://example.com")

        assert response.status_code == 200
        assert response.body == "Hello World"
        assert response.url == "https://example.com"

    @respx.mock
    async def test_response_headers(self):
        """Test that response headers are captured lower-cased."""
        respx.get("https://example.com").mock(
            return_value=Response(
                200,
                text="OK",
                headers={
                    "Content-Type": "text/html",
                    "Server": "nginx/1.18.0",
                    "X-Frame-Options": "SAMEORIGIN",
                },
            )
        )

        async with HTTPClient() as client:
            response = await client.get("https://example.com")

        assert response.headers["x-frame-options"] == "SAMEORIGIN"
        assert response.headers["content-type"] == "text/html"
        assert response.headers["server"] == "nginx/1.18.0"

    @respx.mock
    async def test_every_set_cookie_kept(self):
        """Test that repeated Set-Cookie headers are not merged."""
        respx.get("https://example.com").mock(
            return_value=Response(
                200,
                headers=[("Set-Cookie", "a=1; Secure"), ("Set-Cookie", "b=2; HttpOnly")],
            )
        )

        async with HTTPClient() as client:
            response = await client.get("https://example.com")

        assert response.set_cookies == ["a=1; Secure", "b=2; HttpOnly"]

    @respx.mock
    async def test_body_is_truncated(self):
        """Test that max_body stops reading early."""
        respx.get("https://example.com").mock(return_value=Response(200, text="x" * 10_000))

        async with HTTPClient() as client:
            response = await client.get("https://example.com", max_body=0)

        assert response.body == ""

    @respx.mock
    async def test_redirects_not_followed_by_default(self):
        """Test that redirects are reported, not followed."""
        respx.head("https://example.com").mock(
            return_value=Response(301, headers={"Location": "https://www.example.com/"})
        )

        async with HTTPClient() as client:
            response = await client.head("https://example.com")

        assert response.is_redirect
        assert response.location == "https://www.example.com/"

    @respx.mock
    async def test_redirects_followed_when_enabled(self):
        """Test that follow_redirects lands on the final response."""
        respx.get("https://example.com/").mock(
            return_value=Response(302, headers={"Location": "https://example.com/home"})
        )
        respx.get("https://example.com/home").mock(return_value=Response(200, text="home"))

        async with HTTPClient(follow_redirects=True) as client:
            response = await client.get("https://example.com/")

        assert response.status_code == 200
        assert response.url == "https://example.com/home"

    @respx.mock
    async def test_user_agent_sent(self):
        """Test that the configured User-Agent is sent."""
        route = respx.options("https://example.com").mock(return_value=Response(204))

        async with HTTPClient(user_agent="probe-test/1.0") as client:
            await client.options("https://example.com")

        assert route.calls.last.request.headers["User-Agent"] == "probe-test/1.0"

    @respx.mock
    async def test_transport_errors_propagate(self):
        """Test that connection failures reach the caller."""
        respx.get("https://example.com").mock(side_effect=httpx.ConnectError("Connection refused"))

        async with HTTPClient() as client:
            with pytest.raises(httpx.ConnectError):
                await client.get("https://example.com")

    async def test_requires_context_manager(self):
        """Test that requests fail outside the async context."""
        with pytest.raises(RuntimeError):
            await HTTPClient().get("https://example.com")
