"""TLS handshake and certificate evaluation."""

import asyncio
import contextlib
import logging
import math
import re
import ssl
from dataclasses import dataclass, field
from datetime import UTC, datetime

from cryptography import x509
from cryptography.x509.oid import NameOID

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target

logger = logging.getLogger(__name__)

# Sub-check weights; they sum to the probe's raw max score.
VALIDITY_POINTS = 2.0
ISSUER_POINTS = 0.5
HOSTNAME_POINTS = 1.0
PROTOCOL_POINTS = 1.5
CIPHER_POINTS = 1.0
MAX_POINTS = VALIDITY_POINTS + ISSUER_POINTS + HOSTNAME_POINTS + PROTOCOL_POINTS + CIPHER_POINTS
# Raw max reported when no handshake could be graded; the score is 0 either way.
UNGRADED_MAX = 5.0

STRONG_CIPHER = re.compile(r"AES.*(256|GCM)|CHACHA20", re.IGNORECASE)


def _first_attribute(name: x509.Name, oid: x509.ObjectIdentifier) -> str | None:
    attributes = name.get_attributes_for_oid(oid)
    return str(attributes[0].value) if attributes else None


@dataclass
class CertificateInfo:
    """The parts of a peer certificate the probe grades."""

    subject_cn: str | None
    issuer_cn: str | None
    issuer_org: str | None
    not_before: datetime
    not_after: datetime
    san_dns: list[str] = field(default_factory=list)

    @classmethod
    def from_der(cls, der: bytes) -> "CertificateInfo":
        cert = x509.load_der_x509_certificate(der)
        try:
            san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
            san_dns = san.value.get_values_for_type(x509.DNSName)
        except x509.ExtensionNotFound:
            san_dns = []
        return cls(
            subject_cn=_first_attribute(cert.subject, NameOID.COMMON_NAME),
            issuer_cn=_first_attribute(cert.issuer, NameOID.COMMON_NAME),
            issuer_org=_first_attribute(cert.issuer, NameOID.ORGANIZATION_NAME),
            not_before=cert.not_valid_before_utc,
            not_after=cert.not_valid_after_utc,
            san_dns=list(san_dns),
        )

    @property
    def is_self_signed(self) -> bool:
        return self.issuer_cn == self.subject_cn and not self.issuer_org


@dataclass
class HandshakeInfo:
    """What one TLS handshake revealed."""

    certificate: CertificateInfo
    protocol: str | None
    cipher: str | None


def matches_domain(pattern: str, hostname: str) -> bool:
    """Match a certificate name against a hostname.

    ``*.example.com`` covers exactly one extra label: ``www.example.com`` but
    neither ``example.com`` nor ``a.b.example.com``.
    """
    if not pattern:
        return False
    pattern = pattern.lower().rstrip(".")
    hostname = hostname.lower().rstrip(".")
    if pattern == hostname:
        return True
    if pattern.startswith("*."):
        suffix = pattern[2:]
        if not hostname.endswith(f".{suffix}"):
            return False
        return hostname.count(".") == pattern.count(".")
    return False


def evaluate_handshake(info: HandshakeInfo, hostname: str, now: datetime) -> ProbeResult:
    """Grade a completed handshake. Pure; no network."""
    cert = info.certificate
    findings: list[Finding] = []
    score = 0.0

    expiry = cert.not_after.date().isoformat()
    days_remaining = math.floor((cert.not_after - now).total_seconds() / 86400)
    if days_remaining < 0:
        findings.append(
            Finding(
                "Certificate Validity",
                Status.FAIL,
                f"EXPIRED {abs(days_remaining)} days ago",
                value=expiry,
                recommendation="Renew the certificate immediately",
            )
        )
    elif days_remaining < 7:
        findings.append(
            Finding(
                "Certificate Validity",
                Status.FAIL,
                f"Expires in {days_remaining} days!",
                value=expiry,
                recommendation="Renew the certificate now and automate renewal",
            )
        )
        score += 0.5
    elif days_remaining < 30:
        findings.append(
            Finding("Certificate Validity", Status.WARN, f"Expires in {days_remaining} days", value=expiry)
        )
        score += 1.0
    else:
        findings.append(
            Finding(
                "Certificate Validity",
                Status.PASS,
                f"Valid for {days_remaining} more days (expires {expiry})",
                value=f"{days_remaining} days",
            )
        )
        score += VALIDITY_POINTS

    issuer = cert.issuer_org or cert.issuer_cn or "Unknown"
    if cert.is_self_signed:
        findings.append(
            Finding(
                "Certificate Issuer",
                Status.WARN,
                f"Self-signed certificate ({issuer})",
                value=issuer,
                recommendation="Use a certificate from a trusted CA (e.g. Let's Encrypt)",
            )
        )
    else:
        findings.append(Finding("Certificate Issuer", Status.PASS, f"Issued by {issuer}", value=issuer))
        score += ISSUER_POINTS

    names = ", ".join(cert.san_dns[:5])
    covered = any(matches_domain(name, hostname) for name in cert.san_dns) or matches_domain(
        cert.subject_cn or "", hostname
    )
    if covered:
        findings.append(Finding("Hostname Match", Status.PASS, f"Certificate covers {hostname}", value=names))
        score += HOSTNAME_POINTS
    else:
        findings.append(
            Finding(
                "Hostname Match",
                Status.FAIL,
                f"Certificate does NOT match {hostname}. Subject: {cert.subject_cn or ''}",
                value=names,
            )
        )

    if info.protocol == "TLSv1.3":
        findings.append(
            Finding("TLS Version", Status.PASS, "TLS 1.3, latest and most secure", value=info.protocol)
        )
        score += PROTOCOL_POINTS
    elif info.protocol == "TLSv1.2":
        findings.append(Finding("TLS Version", Status.PASS, "TLS 1.2, acceptable", value=info.protocol))
        score += 1.0
    else:
        findings.append(
            Finding(
                "TLS Version",
                Status.FAIL,
                f"{info.protocol or 'Unknown'} is outdated and insecure",
                value=info.protocol,
                recommendation="Disable TLS 1.1 and below; enable TLS 1.2 and 1.3",
            )
        )

    # no negotiated cipher: nothing to grade, no credit
    if info.cipher and STRONG_CIPHER.search(info.cipher):
        findings.append(Finding("Cipher Suite", Status.PASS, info.cipher, value=info.cipher))
        score += CIPHER_POINTS
    elif info.cipher:
        findings.append(
            Finding("Cipher Suite", Status.WARN, f"{info.cipher}: consider a stronger cipher", value=info.cipher)
        )
        score += CIPHER_POINTS / 2

    return ProbeResult(score=score, max_score=MAX_POINTS, findings=findings)


class TLSInspector(Probe):
    """Inspect the negotiated TLS session and the peer certificate."""

    name = "ssl"
    weight = 20.0
    timeout = 30.0

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        if not target.is_https:
            return ProbeResult(
                score=0.0,
                max_score=UNGRADED_MAX,
                findings=[
                    Finding(
                        "HTTPS",
                        Status.FAIL,
                        "Site does not use HTTPS. All data transmitted in cleartext.",
                        recommendation="Serve the site over HTTPS with a valid certificate",
                    )
                ],
            )

        try:
            info = await self.handshake(target.hostname, target.port, self.budget(options))
        except (OSError, TimeoutError, ValueError) as exc:
            logger.debug("TLS handshake with %s failed: %s", target.hostname, exc)
            reason = str(exc) or type(exc).__name__
            return ProbeResult(
                score=0.0,
                max_score=UNGRADED_MAX,
                findings=[Finding("SSL/TLS Connection", Status.ERROR, f"Failed: {reason}")],
            )

        return evaluate_handshake(info, target.hostname, datetime.now(UTC))

    async def handshake(self, hostname: str, port: int, timeout: float) -> HandshakeInfo:
        """Complete one handshake with validation off and capture the session."""
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        context.minimum_version = ssl.TLSVersion.MINIMUM_SUPPORTED

        _, writer = await asyncio.wait_for(
            asyncio.open_connection(
                hostname,
                port,
                ssl=context,
                server_hostname=hostname,
                ssl_handshake_timeout=timeout,
            ),
            timeout=timeout,
        )
        try:
            ssl_object = writer.get_extra_info("ssl_object")
            der = ssl_object.getpeercert(binary_form=True) if ssl_object else None
            if not der:
                raise ssl.SSLError("Server presented no certificate")
            cipher = ssl_object.cipher()
            return HandshakeInfo(
                certificate=CertificateInfo.from_der(der),
                protocol=ssl_object.version(),
                cipher=cipher[0] if cipher else None,
            )
        finally:
            writer.close()
            with contextlib.suppress(OSError, TimeoutError):
                await asyncio.wait_for(writer.wait_closed(), timeout=1.0)
