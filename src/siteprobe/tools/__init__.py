"""Network tooling shared by siteprobe probes."""

from siteprobe.tools.http import DEFAULT_USER_AGENT, HTTPClient, HTTPResponse

__all__ = [
    "DEFAULT_USER_AGENT",
    "HTTPClient",
    "HTTPResponse",
]
