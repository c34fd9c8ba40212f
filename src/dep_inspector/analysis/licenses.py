"""License normalization and project/dependency conflict rules."""

import json
from typing import Any, Optional

from dep_inspector.models import UNKNOWN_LICENSE, IssueLevel

PERMISSIVE_MARKERS = ("MIT", "BSD", "APACHE")


def normalize_license(raw: Any) -> str:
    """Collapse a registry ``license`` field into one string.

    The field is either a plain string, a ``{"type": ...}`` object, or a
    list of either (the old ``licenses`` array shape).
    """
    match raw:
        case str():
            return raw.strip() or UNKNOWN_LICENSE
        case {"type": str() as kind} if kind.strip():
            return kind.strip()
        case list() | tuple():
            parts = [normalize_license(item) for item in raw]
            parts = [p for p in parts if p != UNKNOWN_LICENSE]
            return ", ".join(parts) if parts else UNKNOWN_LICENSE
        case dict() if raw:
            return json.dumps(raw, sort_keys=True, separators=(",", ":"))
        case _:
            return UNKNOWN_LICENSE


def check_license_conflict(
    project_license: Optional[str], package_license: Optional[str]
) -> Optional[tuple[IssueLevel, str]]:
    """Return ``(level, reason)`` when *package_license* clashes with the project's."""
    if not project_license or not package_license:
        return None
    project = project_license.upper()
    pkg = package_license.upper()
    if UNKNOWN_LICENSE in (project, pkg):
        return None

    if any(marker in project for marker in PERMISSIVE_MARKERS):
        if "GPL" in pkg and "LGPL" not in pkg and "AGPL" not in pkg:
            return (
                IssueLevel.warning,
                f"{package_license} requires derivatives to be open source, "
                f"conflicts with {project_license}",
            )
        if "AGPL" in pkg:
            return (
                IssueLevel.warning,
                f"{package_license} requires network use to trigger copyleft, "
                f"conflicts with {project_license}",
            )

    if "MIT" in project and "LGPL" in pkg:
        return (
            IssueLevel.info,
            f"{package_license} is compatible but may require attribution",
        )
    return None
