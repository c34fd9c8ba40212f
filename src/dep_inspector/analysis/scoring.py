"""Report assembly: issue counts, letter grade and license histogram."""

from collections import Counter
from collections.abc import Sequence
from typing import Optional

from dep_inspector.models import (
    UNKNOWN_LICENSE,
    AdvisorySource,
    IssueLevel,
    LicenseCount,
    PackageResult,
    Report,
    Score,
)


def count_levels(results: Sequence[PackageResult]) -> dict[IssueLevel, int]:
    counts = {level: 0 for level in IssueLevel}
    for r in results:
        for issue in r.issues:
            counts[issue.level] += 1
    return counts


def grade(counts: dict[IssueLevel, int]) -> Score:
    """C on any critical issue, B on any warning, A otherwise."""
    if counts.get(IssueLevel.critical, 0):
        return "C"
    if counts.get(IssueLevel.warning, 0):
        return "B"
    return "A"


def top_licenses(results: Sequence[PackageResult], limit: int = 10) -> list[LicenseCount]:
    """Most common known licenses; ties keep first-seen order."""
    tally = Counter(r.license for r in results if r.license and r.license != UNKNOWN_LICENSE)
    # Counter keeps insertion order and sorted() is stable.
    ranked = sorted(tally.items(), key=lambda item: -item[1])[:limit]
    return [LicenseCount(license=lic, count=n) for lic, n in ranked]


def build_report(
    results: list[PackageResult],
    *,
    total_input_count: int,
    is_limited: bool,
    project_license: Optional[str] = None,
    advisory_source: AdvisorySource = "none",
) -> Report:
    counts = count_levels(results)
    return Report(
        score=grade(counts),
        analyzed_count=len(results),
        total_input_count=total_input_count,
        is_limited=is_limited,
        critical_count=counts[IssueLevel.critical],
        warning_count=counts[IssueLevel.warning],
        info_count=counts[IssueLevel.info],
        project_license=project_license,
        top_licenses=top_licenses(results),
        results=results,
        advisory_source=advisory_source,
    )
