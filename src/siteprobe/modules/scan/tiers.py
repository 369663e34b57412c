"""Tier gating: which probes each tier may run."""

SCANNER_TIERS: dict[str, frozenset[str]] = {
    "free": frozenset({"headers", "ssl", "server"}),
    "pro": frozenset(
        {
            "headers",
            "ssl",
            "cookies",
            "server",
            "exposedFiles",
            "dns",
            "sri",
            "mixedContent",
            "redirects",
        }
    ),
}


def resolve_tier(tier: str, full: bool = False) -> frozenset[str]:
    """Probe names enabled for a tier. ``full`` selects the pro set; unknown tiers get free."""
    if full:
        return SCANNER_TIERS["pro"]
    return SCANNER_TIERS.get(tier, SCANNER_TIERS["free"])
