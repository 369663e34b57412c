"""Connectivity preflight run once before any weighted probe."""

import errno
import logging
import re
import socket
import ssl
from collections.abc import Iterator

import httpx

from siteprobe.errors import NetworkError
from siteprobe.tools.http import DEFAULT_USER_AGENT, HTTPClient

from .models import Target

logger = logging.getLogger(__name__)

_FATAL_ERRNOS: dict[int, str] = {
    errno.ECONNREFUSED: "ECONNREFUSED",
    errno.ECONNRESET: "ECONNRESET",
    errno.ETIMEDOUT: "ETIMEDOUT",
    errno.EHOSTUNREACH: "EHOSTUNREACH",
    errno.ENETUNREACH: "ENETUNREACH",
}

_MESSAGE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(
            r"name or service not known|nodename nor servname|getaddrinfo failed"
            r"|temporary failure in name resolution|no address associated",
            re.IGNORECASE,
        ),
        "ENOTFOUND",
    ),
    (re.compile(r"connection refused|all connection attempts failed", re.IGNORECASE), "ECONNREFUSED"),
    (re.compile(r"connection reset", re.IGNORECASE), "ECONNRESET"),
    (re.compile(r"timed out|timeout", re.IGNORECASE), "ETIMEDOUT"),
    (re.compile(r"no route to host|host is unreachable", re.IGNORECASE), "EHOSTUNREACH"),
    (re.compile(r"network is unreachable", re.IGNORECASE), "ENETUNREACH"),
)

_FRIENDLY: dict[str, str] = {
    "ENOTFOUND": "could not resolve host",
    "ECONNREFUSED": "connection refused",
    "ECONNRESET": "connection reset by peer",
    "ETIMEDOUT": "connection timed out",
    "EHOSTUNREACH": "host unreachable",
    "ENETUNREACH": "network unreachable",
}


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield exc, its causes/contexts and exception-group members, once each."""
    pending: list[BaseException] = [exc]
    seen: set[int] = set()
    while pending:
        current = pending.pop(0)
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        if isinstance(current, BaseExceptionGroup):
            pending.extend(current.exceptions)
        if current.__cause__ is not None:
            pending.append(current.__cause__)
        if current.__context__ is not None:
            pending.append(current.__context__)


def classify_connection_error(exc: BaseException) -> str | None:
    """Return a fatal error code for low-level connection failures, else None.

    TLS failures are never fatal: the host answered, so the rest of the probe
    set still has something to report.
    """
    if isinstance(exc, httpx.TimeoutException):
        return "ETIMEDOUT"
    chain = list(_exception_chain(exc))
    if any(isinstance(item, ssl.SSLError) for item in chain):
        return None
    for item in chain:
        if isinstance(item, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(item, ConnectionRefusedError):
            return "ECONNREFUSED"
        if isinstance(item, ConnectionResetError):
            return "ECONNRESET"
        if isinstance(item, TimeoutError):
            return "ETIMEDOUT"
        if isinstance(item, OSError) and item.errno in _FATAL_ERRNOS:
            return _FATAL_ERRNOS[item.errno]
    if not isinstance(exc, (httpx.TransportError, OSError)):
        return None
    message = " ".join(str(item) for item in chain)
    if re.search(r"ssl|certificate|handshake", message, re.IGNORECASE):
        return None
    for pattern, code in _MESSAGE_PATTERNS:
        if pattern.search(message):
            return code
    return None


class ConnectivityPreflight:
    """One lightweight HEAD request that decides whether scanning is pointless."""

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT):
        self.user_agent = user_agent

    async def check(self, target: Target, timeout: float) -> None:
        """Raise NetworkError if the target is unreachable; otherwise return."""
        try:
            async with HTTPClient(timeout=timeout, user_agent=self.user_agent) as client:
                response = await client.head(target.url)
        except (httpx.HTTPError, OSError) as exc:
            code = classify_connection_error(exc)
            if code is None:
                logger.warning("Preflight for %s failed non-fatally: %s", target.url, exc)
                return
            raise NetworkError(
                f"Cannot reach {target.hostname}: {_FRIENDLY[code]}",
                code=code,
                url=target.url,
            ) from exc
        logger.debug("Preflight for %s answered %s", target.url, response.status_code)
