"""Tests for the server configuration probe."""

import httpx
import respx
from httpx import Response

from siteprobe.modules.scan import Status, Target
from siteprobe.modules.scan.probes.server import ServerConfigProbe, plain_http_url


def _finding(result, name):
    return next(f for f in result.findings if f.name == name)


class TestPlainHttpUrl:
    """Test the HTTPS to HTTP URL rewrite."""

    def test_default_port(self):
        assert plain_http_url("https://example.com/") == "http://example.com/"

    def test_custom_port_kept(self):
        assert plain_http_url("https://example.com:8443/a?b=1") == "http://example.com:8443/a?b=1"


class TestServerConfigProbe:
    """Test the probe against mocked hosts."""

    @respx.mock
    async def test_well_configured(self, target, options):
        respx.head("http://example.com/").mock(
            return_value=Response(301, headers={"Location": "https://example.com/"})
        )
        respx.head("https://example.com/").mock(return_value=Response(200))
        respx.options("https://example.com/").mock(return_value=Response(204, headers={"Allow": "GET, HEAD, OPTIONS"}))

        result = await ServerConfigProbe().run(target, options)

        assert result.score == result.max_score == 4.0
        assert _finding(result, "HTTP -> HTTPS Redirect").status == Status.PASS

    @respx.mock
    async def test_weak_configuration(self, target, options):
        respx.head("http://example.com/").mock(return_value=Response(405))
        respx.get("http://example.com/").mock(return_value=Response(200))
        respx.head("https://example.com/").mock(
            return_value=Response(200, headers={"Access-Control-Allow-Origin": "*"})
        )
        respx.options("https://example.com/").mock(
            return_value=Response(200, headers={"Allow": "GET, PUT, delete, TRACE"})
        )

        result = await ServerConfigProbe().run(target, options)

        assert _finding(result, "HTTP -> HTTPS Redirect").status == Status.WARN
        assert _finding(result, "CORS Policy").status == Status.WARN
        methods = _finding(result, "HTTP Methods")
        assert methods.status == Status.WARN
        assert "PUT, DELETE, TRACE" in methods.message
        assert result.score == 0.75

    @respx.mock
    async def test_closed_port_80_gets_benefit_of_doubt(self, target, options):
        respx.head("http://example.com/").mock(side_effect=httpx.ConnectError("Connection refused"))
        respx.head("https://example.com/").mock(return_value=Response(200))
        respx.options("https://example.com/").mock(return_value=Response(200))

        result = await ServerConfigProbe().run(target, options)

        assert _finding(result, "HTTP -> HTTPS Redirect").status == Status.INFO
        assert _finding(result, "HTTP Methods").status == Status.INFO
        assert result.score == 2.5

    @respx.mock
    async def test_plain_http_site(self, options):
        respx.head("http://example.com/").mock(return_value=Response(200))
        respx.options("http://example.com/").mock(side_effect=httpx.ConnectError("Connection reset"))

        result = await ServerConfigProbe().run(Target.from_url("http://example.com"), options)

        assert result.findings[0].name == "HTTPS"
        assert result.findings[0].status == Status.FAIL
        assert result.score == 1.5
