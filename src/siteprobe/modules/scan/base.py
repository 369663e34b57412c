"""Base contract for scan probes."""

from abc import ABC, abstractmethod

from .models import ProbeDescriptor, ProbeResult, ScanOptions, Target


class Probe(ABC):
    """One independent network-based security check.

    Subclasses set ``name``, ``weight`` (share of the composite score) and
    ``timeout`` (hard cap in seconds, applied on top of the user timeout).
    """

    name: str
    weight: float
    timeout: float = 30.0

    @property
    def descriptor(self) -> ProbeDescriptor:
        return ProbeDescriptor(name=self.name, weight=self.weight, timeout=self.timeout)

    def budget(self, options: ScanOptions) -> float:
        """Seconds this probe may spend, before the orchestrator's grace window."""
        return min(options.timeout, self.timeout)

    @abstractmethod
    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        """Run the probe against one target."""
