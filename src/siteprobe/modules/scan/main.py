"""Top-level scan entry point."""

import logging
from collections.abc import Callable

from siteprobe.errors import NetworkError, ScanError
from siteprobe.modules.usage import UsageGate

from .factory import create_default_probes
from .models import Report, ScanOptions, Target
from .orchestrator import ScanOrchestrator
from .preflight import ConnectivityPreflight

logger = logging.getLogger(__name__)


async def scan_url(
    url: str,
    options: ScanOptions | None = None,
    *,
    orchestrator: ScanOrchestrator | None = None,
    usage: UsageGate | None = None,
    progress: Callable[[str], None] | None = None,
) -> Report:
    """Scan a URL and return its graded report.

    Raises ``ValueError`` for an unusable URL, ``UsageLimitError`` when the
    usage gate refuses, ``NetworkError`` when the host is unreachable and
    ``ScanError`` for anything else that goes wrong outside the probes.
    """
    options = options or ScanOptions.from_config()
    target = Target.from_url(url)
    if usage is not None:
        usage.check(options.tier)

    if orchestrator is None:
        orchestrator = ScanOrchestrator(
            create_default_probes(),
            preflight=ConnectivityPreflight(user_agent=options.user_agent),
        )

    try:
        report = await orchestrator.run(target, options, progress=progress)
    except NetworkError:
        raise
    except Exception as exc:
        logger.exception("Scan of %s failed", target.url)
        raise ScanError(f"Scan of {target.url} failed: {exc}") from exc

    if usage is not None:
        usage.record()
    return report
