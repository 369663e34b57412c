"""Tests for the probe orchestrator."""

import asyncio

import pytest

from siteprobe.modules.scan import (
    SCANNER_TIERS,
    Finding,
    Probe,
    ProbeResult,
    ScanOptions,
    ScanOrchestrator,
    Status,
    create_default_probes,
    resolve_tier,
)


class StaticProbe(Probe):
    timeout = 30.0

    def __init__(self, name: str, weight: float, score: float = 1.0, max_score: float = 1.0, delay: float = 0.0):
        self.name = name
        self.weight = weight
        self._score = score
        self._max = max_score
        self._delay = delay

    async def run(self, target, options):
        if self._delay:
            await asyncio.sleep(self._delay)
        return ProbeResult(
            score=self._score,
            max_score=self._max,
            findings=[Finding(f"{self.name} check", Status.PASS, "fine")],
        )


class RaisingProbe(Probe):
    timeout = 30.0

    def __init__(self, name: str, weight: float):
        self.name = name
        self.weight = weight

    async def run(self, target, options):
        raise RuntimeError("socket exploded")


class HangingProbe(Probe):
    def __init__(self, name: str, weight: float, timeout: float):
        self.name = name
        self.weight = weight
        self.timeout = timeout

    async def run(self, target, options):
        await asyncio.sleep(3600)


@pytest.fixture
def short_grace(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("siteprobe.modules.scan.orchestrator.GRACE_PERIOD", 0.05)


class TestTiers:
    """Test tier resolution."""

    def test_free_tier(self):
        assert resolve_tier("free") == {"headers", "ssl", "server"}

    def test_full_selects_pro(self):
        assert resolve_tier("free", full=True) == SCANNER_TIERS["pro"]

    def test_unknown_tier_falls_back_to_free(self):
        assert resolve_tier("enterprise") == SCANNER_TIERS["free"]

    def test_default_probes_cover_pro_tier(self):
        names = [probe.name for probe in create_default_probes()]
        assert set(names) == SCANNER_TIERS["pro"]
        assert sum(probe.weight for probe in create_default_probes()) == 85.0


class TestScanOrchestrator:
    """Test concurrent probe execution and failure isolation."""

    def test_enabled_probes_keep_registration_order(self):
        orchestrator = ScanOrchestrator(
            [StaticProbe("server", 8), StaticProbe("ssl", 20), StaticProbe("headers", 15), StaticProbe("dns", 7)]
        )

        names = [probe.name for probe in orchestrator.enabled_probes("free")]

        assert names == ["server", "ssl", "headers"]

    async def test_sections_follow_canonical_order_not_completion(self, target):
        orchestrator = ScanOrchestrator(
            [
                StaticProbe("headers", 15, delay=0.05),
                StaticProbe("ssl", 20),
                StaticProbe("server", 8, delay=0.02),
            ]
        )

        report = await orchestrator.run(target, ScanOptions(timeout=5.0, tier="free"))

        assert list(report.sections) == ["headers", "ssl", "server"]
        assert report.max_score == 43.0
        assert report.grade == "A+"

    async def test_raising_probe_is_isolated(self, target):
        orchestrator = ScanOrchestrator(
            [StaticProbe("headers", 15), RaisingProbe("ssl", 20), StaticProbe("server", 8)]
        )

        report = await orchestrator.run(target, ScanOptions(timeout=5.0, tier="free"))

        section = report.sections["ssl"]
        assert section.score == 0.0
        assert section.weight == 20.0
        assert len(section.findings) == 1
        assert section.findings[0].name == "ssl scan"
        assert section.findings[0].status == Status.ERROR
        assert "socket exploded" in section.findings[0].message
        assert report.sections["headers"].score == 15.0
        assert report.sections["server"].score == 8.0

    async def test_hanging_probe_times_out(self, target, short_grace):
        orchestrator = ScanOrchestrator(
            [StaticProbe("headers", 15), HangingProbe("ssl", 20, timeout=0.05), StaticProbe("server", 8)]
        )

        report = await asyncio.wait_for(orchestrator.run(target, ScanOptions(timeout=5.0, tier="free")), 5)

        finding = report.sections["ssl"].findings[0]
        assert finding.status == Status.ERROR
        assert finding.message.startswith("Timed out")
        assert report.sections["headers"].score == 15.0
        assert report.sections["server"].score == 8.0
        assert report.max_score == 43.0

    async def test_user_timeout_caps_probe_budget(self, target, short_grace):
        orchestrator = ScanOrchestrator([HangingProbe("headers", 15, timeout=3600)])

        report = await asyncio.wait_for(orchestrator.run(target, ScanOptions(timeout=0.05, tier="free")), 5)

        assert report.sections["headers"].findings[0].status == Status.ERROR

    async def test_progress_messages(self, target):
        messages: list[str] = []
        orchestrator = ScanOrchestrator([StaticProbe("headers", 15), RaisingProbe("ssl", 20)])

        await orchestrator.run(target, ScanOptions(timeout=5.0, tier="free"), progress=messages.append)

        assert any("[headers] completed" in message for message in messages)
        assert any("[ssl] failed" in message for message in messages)

    async def test_preflight_runs_first(self, target):
        calls: list[str] = []

        class RecordingPreflight:
            async def check(self, target, timeout):
                calls.append("preflight")

        orchestrator = ScanOrchestrator([StaticProbe("headers", 15)], preflight=RecordingPreflight())

        await orchestrator.run(target, ScanOptions(timeout=5.0, tier="free"))

        assert calls == ["preflight"]

    async def test_full_overrides_free_tier(self, target):
        orchestrator = ScanOrchestrator([StaticProbe("headers", 15), StaticProbe("dns", 7)])

        report = await orchestrator.run(target, ScanOptions(timeout=5.0, tier="free", full=True))

        assert list(report.sections) == ["headers", "dns"]
