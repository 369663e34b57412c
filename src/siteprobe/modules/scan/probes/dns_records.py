"""Email and certificate authority DNS records for the registrable domain."""

import logging
import re

import dns.asyncresolver
import dns.exception
import dns.resolver

from ..base import Probe
from ..models import Finding, ProbeResult, ScanOptions, Status, Target

logger = logging.getLogger(__name__)

NAMESERVERS = ["8.8.8.8", "1.1.1.1"]
RESOLVER_TIMEOUT = 5.0

_MISSING = (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer)


def root_domain(hostname: str) -> str:
    """Last two labels of a hostname. No public-suffix awareness."""
    labels = hostname.rstrip(".").split(".")
    return ".".join(labels[-2:]) if len(labels) > 2 else hostname


def _query_error(exc: dns.exception.DNSException) -> str:
    return type(exc).__name__ if not str(exc) else str(exc)


class DnsProbe(Probe):
    """SPF, DMARC and CAA on the root domain; MX for information."""

    name = "dns"
    weight = 7.0
    timeout = 20.0

    def __init__(self, nameservers: list[str] | None = None):
        self.nameservers = nameservers or NAMESERVERS

    async def run(self, target: Target, options: ScanOptions) -> ProbeResult:
        domain = root_domain(target.hostname)
        resolver = self._make_resolver(self.budget(options))
        result = ProbeResult(score=0.0, max_score=2.5)

        await self._check_spf(resolver, domain, result)
        await self._check_dmarc(resolver, domain, result)
        await self._check_caa(resolver, domain, result)
        await self._check_mx(resolver, domain, result)
        return result

    def _make_resolver(self, lifetime: float) -> dns.asyncresolver.Resolver:
        resolver = dns.asyncresolver.Resolver(configure=False)
        resolver.nameservers = list(self.nameservers)
        resolver.timeout = min(RESOLVER_TIMEOUT, lifetime)
        resolver.lifetime = lifetime
        return resolver

    async def lookup_txt(self, resolver: dns.asyncresolver.Resolver, name: str) -> list[str]:
        try:
            answer = await resolver.resolve(name, "TXT")
        except _MISSING:
            return []
        return [b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answer]

    async def lookup_caa(self, resolver: dns.asyncresolver.Resolver, name: str) -> list[tuple[str, str]]:
        try:
            answer = await resolver.resolve(name, "CAA")
        except _MISSING:
            return []
        return [
            (rdata.tag.decode("ascii", errors="replace"), rdata.value.decode("utf-8", errors="replace"))
            for rdata in answer
        ]

    async def lookup_mx(self, resolver: dns.asyncresolver.Resolver, name: str) -> list[tuple[int, str]]:
        try:
            answer = await resolver.resolve(name, "MX")
        except _MISSING:
            return []
        return [(rdata.preference, rdata.exchange.to_text(omit_final_dot=True)) for rdata in answer]

    async def _check_spf(
        self, resolver: dns.asyncresolver.Resolver, domain: str, result: ProbeResult
    ) -> None:
        try:
            records = await self.lookup_txt(resolver, domain)
        except dns.exception.DNSException as exc:
            result.findings.append(
                Finding("SPF Record", Status.INFO, f"Could not query TXT records: {_query_error(exc)}")
            )
            return

        spf = next((record for record in records if record.startswith("v=spf1")), None)
        if spf is None:
            result.findings.append(
                Finding(
                    "SPF Record",
                    Status.FAIL,
                    "No SPF record found. Domain vulnerable to email spoofing.",
                    recommendation="Add TXT record: v=spf1 include:_spf.google.com -all (adjust for your email provider)",
                )
            )
        elif "-all" in spf:
            result.findings.append(
                Finding(
                    "SPF Record", Status.PASS, "Strict SPF (-all) rejects unauthorized senders", value=spf[:150]
                )
            )
            result.score += 1.0
        elif re.search(r"[~?+]all", spf):
            result.findings.append(
                Finding(
                    "SPF Record",
                    Status.WARN,
                    "SPF present but uses soft fail (~all). Consider -all",
                    value=spf[:150],
                )
            )
            result.score += 0.5
        else:
            result.findings.append(
                Finding(
                    "SPF Record",
                    Status.WARN,
                    "SPF present but may not reject unauthorized senders",
                    value=spf[:150],
                )
            )
            result.score += 0.5

    async def _check_dmarc(
        self, resolver: dns.asyncresolver.Resolver, domain: str, result: ProbeResult
    ) -> None:
        try:
            records = await self.lookup_txt(resolver, f"_dmarc.{domain}")
        except dns.exception.DNSException as exc:
            result.findings.append(
                Finding("DMARC Record", Status.INFO, f"Could not query DMARC: {_query_error(exc)}")
            )
            return

        dmarc = next((record for record in records if record.startswith("v=DMARC1")), None)
        if dmarc is None:
            result.findings.append(
                Finding(
                    "DMARC Record",
                    Status.FAIL,
                    "No DMARC record. Email spoofing protection incomplete.",
                    recommendation=(
                        "Add TXT record at _dmarc.yourdomain.com: "
                        "v=DMARC1; p=quarantine; rua=mailto:dmarc@yourdomain.com"
                    ),
                )
            )
            return

        match = re.search(r"p=(\w+)", dmarc)
        policy = match.group(1) if match else "none"
        if policy == "reject":
            result.findings.append(
                Finding("DMARC Record", Status.PASS, "DMARC policy=reject, strongest protection", value=dmarc[:150])
            )
            result.score += 1.0
        elif policy == "quarantine":
            result.findings.append(
                Finding("DMARC Record", Status.PASS, "DMARC policy=quarantine, good protection", value=dmarc[:150])
            )
            result.score += 0.75
        else:
            result.findings.append(
                Finding(
                    "DMARC Record",
                    Status.WARN,
                    f"DMARC policy={policy}, monitoring only, not enforcing",
                    value=dmarc[:150],
                )
            )
            result.score += 0.25

    async def _check_caa(
        self, resolver: dns.asyncresolver.Resolver, domain: str, result: ProbeResult
    ) -> None:
        try:
            records = await self.lookup_caa(resolver, domain)
        except dns.exception.DNSException as exc:
            result.findings.append(
                Finding("CAA Records", Status.INFO, f"Could not query CAA: {_query_error(exc)}")
            )
            return

        if not records:
            result.findings.append(
                Finding(
                    "CAA Records",
                    Status.WARN,
                    "No CAA records. Any CA can issue certificates for this domain.",
                    recommendation="Add CAA records to restrict which CAs can issue certificates",
                )
            )
            return

        issuers = ", ".join(value for tag, value in records if tag == "issue")
        result.findings.append(
            Finding("CAA Records", Status.PASS, f"Restricts certificate issuance to: {issuers}", value=issuers)
        )
        result.score += 0.5

    async def _check_mx(
        self, resolver: dns.asyncresolver.Resolver, domain: str, result: ProbeResult
    ) -> None:
        try:
            records = await self.lookup_mx(resolver, domain)
        except dns.exception.DNSException as exc:
            logger.debug("MX lookup for %s failed: %s", domain, exc)
            return
        if records:
            servers = ", ".join(f"{exchange} ({priority})" for priority, exchange in sorted(records))
            result.findings.append(Finding("MX Records", Status.INFO, f"Mail servers: {servers}", value=servers))
