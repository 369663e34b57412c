"""Exception hierarchy shared by the scan engine and its callers."""


class SiteProbeError(Exception):
    """Base class for every error raised by siteprobe."""


class NetworkError(SiteProbeError):
    """The target could not be reached at all; the scan was aborted.

    ``code`` is one of ``ENOTFOUND``, ``ECONNREFUSED``, ``ECONNRESET``,
    ``ETIMEDOUT``, ``EHOSTUNREACH`` or ``ENETUNREACH``.
    """

    def __init__(self, message: str, code: str, url: str | None = None):
        super().__init__(message)
        self.code = code
        self.url = url


class ScanError(SiteProbeError):
    """Any other failure that escaped the orchestrator."""


class UsageLimitError(SiteProbeError):
    """The daily scan allowance for the current tier is exhausted."""

    def __init__(self, message: str, limit: int):
        super().__init__(message)
        self.limit = limit
