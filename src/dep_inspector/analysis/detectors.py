"""Per-package risk detectors, applied in a fixed order."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from dep_inspector.analysis.licenses import check_license_conflict
from dep_inspector.analysis.typosquat import find_typosquat_target
from dep_inspector.models import (
    Advisory,
    Dependency,
    EnrichedInfo,
    Issue,
    IssueKind,
    IssueLevel,
    PackageResult,
)
from dep_inspector.versions import parse_version, satisfies, version_diff


@dataclass(frozen=True)
class DetectionContext:
    """Everything known about one dependency when detectors run."""

    dependency: Dependency
    info: EnrichedInfo
    latest_version: Optional[str] = None
    advisories: list[Advisory] = field(default_factory=list)
    project_license: Optional[str] = None


def detect_deprecated(ctx: DetectionContext) -> list[Issue]:
    if not ctx.info.deprecated:
        return []
    return [Issue(level=IssueLevel.warning, kind=IssueKind.deprecated, message="Package deprecated")]


def detect_install_scripts(ctx: DetectionContext) -> list[Issue]:
    # Lifecycle hooks run arbitrary code at install time.
    if not ctx.info.has_install_scripts:
        return []
    hooks = ", ".join(ctx.info.install_scripts)
    return [Issue(level=IssueLevel.warning, kind=IssueKind.scripts, message=f"Has {hooks} script(s)")]


def detect_license_conflict(ctx: DetectionContext) -> list[Issue]:
    conflict = check_license_conflict(ctx.project_license, ctx.info.license)
    if conflict is None:
        return []
    level, reason = conflict
    return [Issue(level=level, kind=IssueKind.license, message=reason)]


def detect_vulnerabilities(ctx: DetectionContext) -> list[Issue]:
    name = ctx.dependency.name
    return [
        Issue(
            level=adv.level,
            kind=IssueKind.vuln,
            message=adv.describe(),
            fix=f"{name}@{adv.fixed_version}" if adv.fixed_version else None,
        )
        for adv in ctx.advisories
    ]


def detect_typosquat(ctx: DetectionContext) -> list[Issue]:
    target = find_typosquat_target(ctx.dependency.name)
    if target is None:
        return []
    return [Issue(level=IssueLevel.warning, kind=IssueKind.typosquat, message=f'Similar to "{target}"')]


def detect_safe_update(ctx: DetectionContext) -> list[Issue]:
    """Suggest a patch/minor upgrade the manifest's own range still accepts."""
    dep, latest = ctx.dependency, ctx.latest_version
    if not latest or latest == dep.version:
        return []
    current, newest = parse_version(dep.version), parse_version(latest)
    if current is None or newest is None:
        return []

    diff = version_diff(current, newest)
    if diff not in ("patch", "minor"):
        return []

    if dep.requested_range:
        try:
            allowed = satisfies(latest, dep.requested_range)
        except ValueError:
            allowed = True
        if not allowed:
            return []

    return [
        Issue(
            level=IssueLevel.info,
            kind=IssueKind.update,
            message=f"{diff} update to {latest}",
            fix=f"{dep.name}@{latest}",
        )
    ]


Detector = Callable[[DetectionContext], list[Issue]]

DETECTORS: tuple[Detector, ...] = (
    detect_deprecated,
    detect_install_scripts,
    detect_license_conflict,
    detect_vulnerabilities,
    detect_typosquat,
    detect_safe_update,
)


def run_detectors(ctx: DetectionContext) -> list[Issue]:
    issues: list[Issue] = []
    for detector in DETECTORS:
        issues.extend(detector(ctx))
    return issues


def build_result(ctx: DetectionContext) -> PackageResult:
    """Run the pipeline for one dependency.

    A dependency whose metadata could not be fetched only gets a single
    ``meta`` note.
    """
    dep = ctx.dependency
    result = PackageResult(
        name=dep.name,
        version=dep.version,
        requested_range=dep.requested_range,
        license=ctx.info.license,
        latest_version=ctx.latest_version,
    )
    if ctx.info.fetch_failed:
        result.issues.append(
            Issue(level=IssueLevel.info, kind=IssueKind.meta, message="Could not fetch metadata")
        )
        return result
    result.issues.extend(run_detectors(ctx))
    return result
