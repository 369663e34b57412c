"""Probe factory helpers."""

from .base import Probe
from .probes import (
    CookieProbe,
    DnsProbe,
    ExposedPathProbe,
    HeaderPolicyEvaluator,
    MixedContentProbe,
    OpenRedirectProbe,
    ServerConfigProbe,
    SubresourceIntegrityProbe,
    TLSInspector,
)


def create_default_probes() -> list[Probe]:
    """Return every built-in probe in canonical report order."""
    return [
        HeaderPolicyEvaluator(),
        TLSInspector(),
        CookieProbe(),
        ServerConfigProbe(),
        ExposedPathProbe(),
        DnsProbe(),
        SubresourceIntegrityProbe(),
        MixedContentProbe(),
        OpenRedirectProbe(),
    ]
