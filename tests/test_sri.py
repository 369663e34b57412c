"""Tests for the Subresource Integrity probe."""

import httpx
import respx
from httpx import Response

from siteprobe.modules.scan import Status
from siteprobe.modules.scan.probes.sri import (
    SubresourceIntegrityProbe,
    evaluate_sri,
    external_host,
    find_external_resources,
)

PAGE = """
<html><head>
<script src="/static/app.js"></script>
<script src="https://cdn.example.net/lib.js" integrity="sha384-abc" crossorigin="anonymous"></script>
<script src="//widgets.example.org/w.js"></script>
<link rel="stylesheet" href="https://fonts.example.net/css">
<link href="/site.css" rel="stylesheet">
</head><body></body></html>
"""


class TestExternalHost:
    """Test same-origin detection."""

    def test_relative_is_same_origin(self):
        assert external_host("/app.js", "example.com") is None

    def test_same_host(self):
        assert external_host("https://example.com/app.js", "example.com") is None

    def test_protocol_relative(self):
        assert external_host("//cdn.example.net/a.js", "example.com") == "cdn.example.net"


class TestFindExternalResources:
    """Test resource extraction from HTML."""

    def test_extracts_external_only(self):
        resources = find_external_resources(PAGE, "example.com")

        assert [(r.host, r.script, r.has_integrity) for r in resources] == [
            ("cdn.example.net", True, True),
            ("widgets.example.org", True, False),
            ("fonts.example.net", False, False),
        ]


class TestEvaluateSri:
    """Test SRI scoring."""

    def test_no_external_resources(self):
        result = evaluate_sri([])

        assert (result.score, result.max_score) == (1.0, 1.0)
        assert result.findings[0].status == Status.PASS

    def test_mixed_page(self):
        result = evaluate_sri(find_external_resources(PAGE, "example.com"))

        assert result.max_score == 3.0
        assert result.score == 1.25
        assert result.findings[0].name == "Subresource Integrity"
        assert result.findings[0].status == Status.FAIL
        statuses = {f.name: f.status for f in result.findings[1:]}
        assert statuses == {
            "SRI: widgets.example.org": Status.FAIL,
            "SRI: fonts.example.net": Status.WARN,
            "SRI: cdn.example.net": Status.PASS,
        }


class TestSubresourceIntegrityProbe:
    """Test the probe against mocked pages."""

    @respx.mock
    async def test_scores_fetched_page(self, target, options):
        respx.get("https://example.com/").mock(return_value=Response(200, text=PAGE))

        result = await SubresourceIntegrityProbe().run(target, options)

        assert result.score == 1.25

    @respx.mock
    async def test_unreachable_page_is_an_error(self, target, options):
        respx.get("https://example.com/").mock(side_effect=httpx.ConnectError("Connection refused"))

        result = await SubresourceIntegrityProbe().run(target, options)

        assert (result.score, result.max_score) == (0.0, 1.0)
        assert result.findings[0].status == Status.ERROR
