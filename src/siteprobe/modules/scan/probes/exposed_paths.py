"""Probe for sensitive files and panels that should not be public."""

import asyncio
import logging
import math
from dataclasses import dataclass
from enum import StrEnum

import httpx

from siteprobe.tools.http import HTTPClient

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target
from .soft404 import classify_response

logger = logging.getLogger(__name__)

BODY_LIMIT = 2000
UNRELIABLE_RATIO = 0.8
# Extra time on top of the socket timeout before a path check is abandoned.
HARD_TIMEOUT_SLACK = 2.0


class Severity(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


SCORED_SEVERITIES = frozenset({Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM})


@dataclass(frozen=True)
class SensitivePath:
    path: str
    name: str
    severity: Severity
    description: str

    @property
    def scored(self) -> bool:
        return self.severity in SCORED_SEVERITIES


def _entry(path: str, name: str, severity: str, description: str) -> SensitivePath:
    return SensitivePath(path, name, Severity(severity), description)


SENSITIVE_PATHS: tuple[SensitivePath, ...] = (
    _entry("/.env", ".env file", "critical", "Environment variables (may contain secrets, API keys, passwords)"),
    _entry("/.git/HEAD", ".git directory", "critical", "Git repository exposed, full source code and history accessible"),
    _entry("/.git/config", ".git config", "critical", "Git configuration with potential remote URLs and credentials"),
    _entry("/.svn/entries", ".svn directory", "high", "Subversion repository exposed"),
    _entry("/.htaccess", ".htaccess", "medium", "Apache configuration file, reveals server setup"),
    _entry("/wp-admin/", "WordPress Admin", "medium", "WordPress admin panel exposed"),
    _entry("/wp-login.php", "WordPress Login", "low", "WordPress login page"),
    _entry("/phpinfo.php", "PHP Info", "high", "PHP configuration disclosure"),
    _entry("/server-status", "Server Status", "high", "Apache server status page"),
    _entry("/elmah.axd", "ELMAH Log", "high", ".NET error log viewer"),
    _entry("/backup.sql", "SQL Backup", "critical", "Database backup file"),
    _entry("/dump.sql", "SQL Dump", "critical", "Database dump file"),
    _entry("/db.sql", "Database File", "critical", "Database file"),
    _entry("/.DS_Store", ".DS_Store", "low", "macOS directory metadata, reveals file/folder names"),
    _entry("/crossdomain.xml", "crossdomain.xml", "low", "Flash cross-domain policy (may be overly permissive)"),
    _entry("/composer.json", "composer.json", "high", "PHP dependency manifest, reveals packages and versions"),
    _entry("/package.json", "package.json", "medium", "Node.js dependency manifest, reveals packages and versions"),
    _entry("/Gruntfile.js", "Gruntfile.js", "medium", "Build tool configuration exposed"),
    _entry("/Dockerfile", "Dockerfile", "high", "Docker configuration, reveals infrastructure details"),
    _entry("/docker-compose.yml", "docker-compose.yml", "critical", "Docker Compose, may contain service passwords and configs"),
    _entry("/.dockerenv", ".dockerenv", "medium", "Running inside Docker container"),
    _entry("/web.config", "web.config", "high", "IIS configuration, reveals server setup and potential credentials"),
    _entry("/config.php", "config.php", "critical", "PHP configuration file, likely contains database credentials"),
    _entry("/wp-config.php.bak", "wp-config.php.bak", "critical", "WordPress config backup, contains database credentials in plaintext"),
    _entry("/.npmrc", ".npmrc", "critical", "npm config, may contain auth tokens"),
    _entry("/.aws/credentials", "AWS credentials", "critical", "AWS credential file exposed"),
    _entry("/debug.log", "debug.log", "high", "Debug log, may contain stack traces and sensitive data"),
    _entry("/error.log", "error.log", "high", "Error log, may contain stack traces and paths"),
    _entry("/access.log", "access.log", "medium", "Access log, reveals visitor IPs and paths"),
    _entry("/.vscode/settings.json", "VS Code settings", "low", "IDE settings exposed, reveals development environment"),
    _entry("/adminer.php", "Adminer", "critical", "Database admin tool exposed to the internet"),
    _entry("/phpmyadmin/", "phpMyAdmin", "critical", "Database admin panel exposed to the internet"),
    _entry("/.well-known/security.txt", "security.txt", "info", "Security contact information"),
    _entry("/robots.txt", "robots.txt", "info", "Robots exclusion, may reveal hidden paths"),
    _entry("/sitemap.xml", "sitemap.xml", "info", "Site map, reveals site structure"),
    _entry("/humans.txt", "humans.txt", "info", "Team information file"),
)


@dataclass
class PathCheck:
    """Effective status of one catalog entry; 0 means the request failed."""

    entry: SensitivePath
    status: int

    @property
    def exposed(self) -> bool:
        return 200 <= self.status < 300


def score_path_checks(checks: list[PathCheck]) -> ProbeResult:
    """Turn per-path statuses into findings and a score.

    Only critical, high and medium entries are scored, one point each.
    """
    findings: list[Finding] = []
    score = 0.0
    exposed_critical = 0
    exposed_high = 0

    for check in checks:
        entry = check.entry
        if not entry.scored:
            if check.exposed:
                findings.append(
                    Finding(entry.name, Status.INFO, f"Found ({check.status}): {entry.description}", value=entry.path)
                )
            continue

        if not check.exposed:
            if check.status > 0:
                score += 1.0
            continue

        if entry.severity is Severity.MEDIUM:
            findings.append(
                Finding(
                    entry.name, Status.WARN, f"Accessible ({check.status}): {entry.description}", value=entry.path
                )
            )
            score += 0.5
            continue

        if entry.severity is Severity.CRITICAL:
            exposed_critical += 1
        else:
            exposed_high += 1
        findings.append(
            Finding(
                entry.name,
                Status.FAIL,
                f"EXPOSED ({check.status}): {entry.description}",
                value=entry.path,
                recommendation=f"Block public access to {entry.path}",
            )
        )

    if exposed_critical or exposed_high:
        summary = Finding(
            "Sensitive Files",
            Status.FAIL,
            f"{exposed_critical} critical, {exposed_high} high-severity files exposed!",
        )
    else:
        summary = Finding("Sensitive Files", Status.PASS, "No critical or high-severity files exposed")

    scored = [check for check in checks if check.entry.scored]
    failures = sum(1 for check in scored if check.status == 0)
    if scored and failures > len(scored) * UNRELIABLE_RATIO:
        findings.insert(
            0,
            Finding(
                "Exposed Files",
                Status.ERROR,
                "Most path checks failed to connect, results may be unreliable",
            ),
        )
    findings.insert(0, summary)

    max_score = float(sum(1 for check in checks if check.entry.scored))
    return ProbeResult(score=score, max_score=max_score, findings=findings)


class ExposedPathProbe(Probe):
    """Request a catalog of sensitive paths and flag the ones really served."""

    name = "exposedFiles"
    weight = 10.0
    timeout = 60.0

    def __init__(self, paths: tuple[SensitivePath, ...] = SENSITIVE_PATHS):
        self.paths = paths

    def request_timeout(self, options: ScanOptions) -> float:
        batches = max(1, math.ceil(len(self.paths) / max(1, options.concurrency)))
        return max(1.0, min(5.0, self.budget(options) / batches))

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        batch_size = max(1, options.concurrency)
        timeout = self.request_timeout(options)
        checks: list[PathCheck] = []

        async with HTTPClient(timeout=timeout, user_agent=options.user_agent) as client:
            for start in range(0, len(self.paths), batch_size):
                batch = self.paths[start : start + batch_size]
                statuses = await asyncio.gather(
                    *(self._check_path(client, target, entry, timeout) for entry in batch)
                )
                checks.extend(PathCheck(entry, status) for entry, status in zip(batch, statuses))

        return score_path_checks(checks)

    async def _check_path(
        self, client: HTTPClient, target: Target, entry: SensitivePath, timeout: float
    ) -> int:
        url = f"{target.origin}{entry.path}"
        try:
            response = await asyncio.wait_for(
                client.get(url, max_body=BODY_LIMIT), timeout=timeout + HARD_TIMEOUT_SLACK
            )
        except (httpx.HTTPError, OSError, TimeoutError) as exc:
            logger.debug("Path check %s failed: %s", url, exc)
            return 0
        return classify_response(response.status_code, response.body, entry.path)
