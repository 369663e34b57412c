"""Tests for the exposed sensitive path probe."""

import httpx
import pytest
import respx
from httpx import Response

from siteprobe.modules.scan import ScanOptions, Status
from siteprobe.modules.scan.probes.exposed_paths import (
    SENSITIVE_PATHS,
    ExposedPathProbe,
    PathCheck,
    Severity,
    score_path_checks,
)

SCORED = [entry for entry in SENSITIVE_PATHS if entry.scored]


def _entry(path):
    return next(entry for entry in SENSITIVE_PATHS if entry.path == path)


def _all_not_found():
    return [PathCheck(entry, 404) for entry in SENSITIVE_PATHS]


class TestCatalog:
    """Test the sensitive path catalog."""

    def test_catalog_size(self):
        assert len(SENSITIVE_PATHS) == 36
        assert len({entry.path for entry in SENSITIVE_PATHS}) == 36

    def test_scored_share(self):
        assert len(SCORED) == 28
        assert all(entry.severity in (Severity.LOW, Severity.INFO) for entry in SENSITIVE_PATHS if not entry.scored)


class TestScorePathChecks:
    """Test scoring of per-path results."""

    def test_clean_site(self):
        result = score_path_checks(_all_not_found())

        assert result.score == result.max_score == 28.0
        assert result.findings[0].name == "Sensitive Files"
        assert result.findings[0].status == Status.PASS

    def test_critical_exposure(self):
        checks = _all_not_found()
        checks[0] = PathCheck(_entry("/.env"), 200)

        result = score_path_checks(checks)

        assert result.score == 27.0
        assert result.findings[0].status == Status.FAIL
        assert "1 critical, 0 high" in result.findings[0].message
        env = next(f for f in result.findings if f.name == ".env file")
        assert env.status == Status.FAIL
        assert env.value == "/.env"

    def test_medium_exposure_half_credit(self):
        checks = [PathCheck(e, 200 if e.path == "/package.json" else 404) for e in SENSITIVE_PATHS]

        result = score_path_checks(checks)

        assert result.score == 27.5
        assert result.findings[0].status == Status.PASS
        assert any(f.name == "package.json" and f.status == Status.WARN for f in result.findings)

    def test_low_and_info_are_reported_not_scored(self):
        checks = [PathCheck(e, 200 if e.path in ("/robots.txt", "/.DS_Store") else 404) for e in SENSITIVE_PATHS]

        result = score_path_checks(checks)

        assert result.score == 28.0
        info = [f.name for f in result.findings if f.status == Status.INFO]
        assert info == [".DS_Store", "robots.txt"]

    def test_connection_failures_earn_nothing(self):
        checks = [PathCheck(e, 0 if e.path == "/.env" else 404) for e in SENSITIVE_PATHS]

        result = score_path_checks(checks)

        assert result.score == 27.0
        assert result.findings[0].status == Status.PASS

    def test_high_severity_exposure(self):
        checks = [PathCheck(e, 200 if e.path == "/Dockerfile" else 404) for e in SENSITIVE_PATHS]

        result = score_path_checks(checks)

        assert result.score == 27.0
        assert result.findings[0].status == Status.FAIL
        assert result.findings[0].message == "0 critical, 1 high-severity files exposed!"
        assert any(f.name == "Dockerfile" and f.status == Status.FAIL for f in result.findings)

    @pytest.mark.parametrize(("failures", "unreliable"), [(22, False), (23, True)])
    def test_unreliable_threshold(self, failures, unreliable):
        failing = {entry.path for entry in SCORED[:failures]}
        checks = [PathCheck(e, 0 if e.path in failing else 404) for e in SENSITIVE_PATHS]

        result = score_path_checks(checks)

        assert any(f.name == "Exposed Files" for f in result.findings) is unreliable
        assert result.findings[0].name == "Sensitive Files"

    def test_unreliable_when_most_checks_fail(self):
        result = score_path_checks([PathCheck(entry, 0) for entry in SENSITIVE_PATHS])

        assert result.findings[0].name == "Sensitive Files"
        assert result.findings[1].status == Status.ERROR
        assert result.findings[1].name == "Exposed Files"
        assert result.score == 0.0


class TestExposedPathProbe:
    """Test the probe against a mocked host."""

    @respx.mock
    async def test_catch_all_server_is_not_flagged(self, target, options):
        shell = "<!DOCTYPE html><html><head><title>Shop</title></head><body>hi</body></html>"
        respx.get(host="example.com").mock(return_value=Response(200, text=shell))

        result = await ExposedPathProbe().run(target, options)

        flagged = {f.name for f in result.findings if f.status in (Status.FAIL, Status.WARN)}
        for name in (".env file", ".git config", "SQL Backup", "phpMyAdmin", "WordPress Admin", "ELMAH Log"):
            assert name not in flagged

    @respx.mock
    async def test_real_env_file_is_flagged(self, target, options):
        respx.get("https://example.com/.env").mock(return_value=Response(200, text="FOO=bar\nBAZ=qux"))
        respx.get("https://example.com/robots.txt").mock(return_value=Response(200, text="User-agent: *\nDisallow:"))
        respx.get(host="example.com").mock(return_value=Response(404, text="nope"))

        result = await ExposedPathProbe().run(target, options)

        assert result.score == 27.0
        assert result.max_score == 28.0
        assert any(f.name == ".env file" and f.status == Status.FAIL for f in result.findings)
        assert any(f.name == "robots.txt" and f.status == Status.INFO for f in result.findings)

    @respx.mock
    async def test_soft_404_page_is_not_flagged(self, target, options):
        respx.get(host="example.com").mock(return_value=Response(200, text="<title>404 Not Found</title>"))

        result = await ExposedPathProbe().run(target, options)

        assert result.score == 28.0
        assert result.findings[0].status == Status.PASS

    @respx.mock
    async def test_unreachable_host_is_unreliable(self, target, options):
        respx.get(host="example.com").mock(side_effect=httpx.ConnectError("Connection refused"))

        result = await ExposedPathProbe().run(target, options)

        assert result.findings[1].status == Status.ERROR
        assert result.score == 0.0

    @respx.mock
    async def test_requests_are_batched_by_concurrency(self, target):
        route = respx.get(host="example.com").mock(return_value=Response(404))

        await ExposedPathProbe().run(target, ScanOptions(timeout=5.0, concurrency=7))

        assert route.call_count == 36

    def test_request_timeout_is_bounded(self):
        probe = ExposedPathProbe()

        assert probe.request_timeout(ScanOptions(timeout=10.0, concurrency=5)) == 1.25
        assert probe.request_timeout(ScanOptions(timeout=60.0, concurrency=36)) == 5.0
        assert probe.request_timeout(ScanOptions(timeout=0.5, concurrency=5)) == 1.0
