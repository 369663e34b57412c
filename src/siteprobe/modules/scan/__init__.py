"""Probe orchestration, scoring and the built-in probes."""

from .base import Probe
from .factory import create_default_probes
from .main import scan_url
from .models import (
    Finding,
    ProbeDescriptor,
    ProbeResult,
    Report,
    ScanOptions,
    Section,
    Status,
    Summary,
    Target,
)
from .orchestrator import GRACE_PERIOD, ScanOrchestrator
from .preflight import ConnectivityPreflight, classify_connection_error
from .scoring import aggregate, calculate_grade, normalize
from .tiers import SCANNER_TIERS, resolve_tier

__all__ = [
    "GRACE_PERIOD",
    "SCANNER_TIERS",
    "ConnectivityPreflight",
    "Finding",
    "Probe",
    "ProbeDescriptor",
    "ProbeResult",
    "Report",
    "ScanOptions",
    "ScanOrchestrator",
    "Section",
    "Status",
    "Summary",
    "Target",
    "aggregate",
    "calculate_grade",
    "classify_connection_error",
    "create_default_probes",
    "normalize",
    "resolve_tier",
    "scan_url",
]
