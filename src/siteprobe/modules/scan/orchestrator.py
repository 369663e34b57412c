"""Coordinator that fans out probes and folds their results into a report."""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from .base import Probe
from .models import ProbeResult, Report, ScanOptions, Target
from .preflight import ConnectivityPreflight
from .scoring import aggregate
from .tiers import resolve_tier

logger = logging.getLogger(__name__)

GRACE_PERIOD = 2.0


class ScanOrchestrator:
    """Run the probes enabled for a tier concurrently and build a Report."""

    def __init__(
        self,
        probes: Iterable[Probe],
        preflight: ConnectivityPreflight | None = None,
    ):
        self._probes: dict[str, Probe] = {}
        for probe in probes:
            self.register(probe)
        self._preflight = preflight

    def register(self, probe: Probe) -> None:
        """Register or replace a probe by name. First registration fixes its order."""
        self._probes[probe.name] = probe

    def available_probes(self) -> list[str]:
        """Return probe names in canonical order."""
        return list(self._probes)

    def enabled_probes(self, tier: str, full: bool = False) -> list[Probe]:
        """Registered probes allowed for the tier, in canonical order."""
        allowed = resolve_tier(tier, full)
        return [probe for name, probe in self._probes.items() if name in allowed]

    async def run(
        self,
        target: Target,
        options: ScanOptions,
        progress: Callable[[str], None] | None = None,
    ) -> Report:
        """Scan a target. Only the preflight may raise; probe failures are isolated."""
        started = time.perf_counter()
        scanned_at = datetime.now(UTC)

        if self._preflight is not None:
            await self._preflight.check(target, options.timeout)

        selected = self.enabled_probes(options.tier, options.full)
        logger.debug("Running %d probe(s) against %s", len(selected), target.url)
        results = await asyncio.gather(
            *(self._run_isolated(probe, target, options, progress) for probe in selected)
        )

        return aggregate(
            target=target,
            tier=options.tier,
            results=[(probe.descriptor, result) for probe, result in zip(selected, results)],
            scanned_at=scanned_at,
            duration=time.perf_counter() - started,
        )

    async def _run_isolated(
        self,
        probe: Probe,
        target: Target,
        options: ScanOptions,
        progress: Callable[[str], None] | None,
    ) -> ProbeResult:
        deadline = probe.budget(options) + GRACE_PERIOD
        started = time.perf_counter()
        if progress:
            progress(f"● [{probe.name}] started")
        try:
            result = await asyncio.wait_for(probe.run(target, options), timeout=deadline)
        except TimeoutError:
            logger.warning("Probe %s timed out after %.1fs", probe.name, deadline)
            reason = f"Timed out after {deadline:.1f}s"
        except Exception as exc:
            logger.warning("Probe %s failed: %s", probe.name, exc, exc_info=True)
            reason = str(exc) or type(exc).__name__
        else:
            elapsed = time.perf_counter() - started
            if progress:
                progress(f"✓ [{probe.name}] completed: {len(result.findings)} checks ({elapsed:.1f}s)")
            logger.debug("Probe %s finished in %.2fs", probe.name, elapsed)
            return result

        if progress:
            elapsed = time.perf_counter() - started
            progress(f"! [{probe.name}] failed after {elapsed:.1f}s: {reason}")
        return ProbeResult.failed(probe.name, probe.weight, reason)
