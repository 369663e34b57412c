"""Score normalization, grading and report assembly."""

from collections.abc import Iterable, Sequence
from datetime import datetime

from .models import (
    Finding,
    ProbeDescriptor,
    ProbeResult,
    Report,
    Section,
    Status,
    Summary,
    Target,
)

GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (0.95, "A+"),
    (0.85, "A"),
    (0.70, "B"),
    (0.55, "C"),
    (0.40, "D"),
)


def calculate_grade(ratio: float) -> str:
    """Map a score ratio in [0, 1] to a letter grade."""
    for threshold, grade in GRADE_THRESHOLDS:
        if ratio >= threshold:
            return grade
    return "F"


def grade_for(score: float, max_score: float) -> str:
    if max_score <= 0:
        return "F"
    return calculate_grade(score / max_score)


def normalize(result: ProbeResult, weight: float) -> float:
    """Rescale a probe's raw score onto its weight, clamped to [0, weight]."""
    if result.max_score <= 0:
        return 0.0
    normalized = (result.score / result.max_score) * weight
    return max(0.0, min(normalized, weight))


def build_section(result: ProbeResult, weight: float) -> Section:
    normalized = normalize(result, weight)
    return Section(
        score=normalized,
        weight=weight,
        grade=grade_for(normalized, weight),
        findings=list(result.findings),
    )


def summarize(findings: Iterable[Finding]) -> Summary:
    """Count findings by status. Error findings are not counted."""
    summary = Summary()
    for finding in findings:
        if finding.status == Status.PASS:
            summary.passed += 1
        elif finding.status == Status.WARN:
            summary.warnings += 1
        elif finding.status == Status.FAIL:
            summary.failed += 1
        elif finding.status == Status.INFO:
            summary.info += 1
    return summary


def aggregate(
    target: Target,
    tier: str,
    results: Sequence[tuple[ProbeDescriptor, ProbeResult]],
    scanned_at: datetime,
    duration: float,
) -> Report:
    """Fold per-probe results, in the given order, into a Report."""
    sections: dict[str, Section] = {}
    total_score = 0.0
    total_max = 0.0
    for descriptor, result in results:
        if descriptor.name in sections:
            raise ValueError(f"Duplicate probe result for {descriptor.name!r}")
        section = build_section(result, descriptor.weight)
        sections[descriptor.name] = section
        total_score += section.score
        total_max += descriptor.weight

    return Report(
        target=target,
        tier=tier,
        sections=sections,
        score=total_score,
        max_score=total_max,
        grade=grade_for(total_score, total_max),
        summary=summarize(f for section in sections.values() for f in section.findings),
        scanned_at=scanned_at,
        duration=duration,
    )
