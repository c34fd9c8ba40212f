"""Semantic version helpers: parsing, diffs, npm range checks and range risk."""

import re
from dataclasses import dataclass
from typing import Optional

import nodesemver

_SEMVER_RE = re.compile(
    r"^[v=]?\s*"
    r"(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


@dataclass(frozen=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{'.'.join(self.prerelease)}" if self.prerelease else core

    def sort_key(self) -> tuple:
        # A release sorts after any of its prereleases.
        pre = tuple(
            (0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease
        )
        return (self.major, self.minor, self.patch, not self.prerelease, pre)


def parse_version(text: Optional[str]) -> Optional[SemVer]:
    """Parse a strict semantic version, or return None."""
    if not text:
        return None
    match = _SEMVER_RE.match(text.strip())
    if not match:
        return None
    major, minor, patch, pre = match.groups()
    return SemVer(
        int(major), int(minor), int(patch), tuple(pre.split(".")) if pre else ()
    )


def version_diff(current: SemVer, other: SemVer) -> Optional[str]:
    """Name the most significant component that differs.

    Returns ``major``/``minor``/``patch`` (``pre``-prefixed when either side
    is a prerelease), ``prerelease`` when only the prerelease differs, or
    None for equal versions.
    """
    if current == other:
        return None
    prefix = "pre" if current.prerelease or other.prerelease else ""
    if current.major != other.major:
        return f"{prefix}major"
    if current.minor != other.minor:
        return f"{prefix}minor"
    if current.patch != other.patch:
        return f"{prefix}patch"
    return "prerelease"


def satisfies(version: str, range_: str) -> bool:
    """npm range check (``^1.2.0``, ``~1.2``, ``>=1 <2``, ``1 - 2``, ``a || b``).

    Raises ``ValueError`` when *version* is not a valid version or *range_*
    is not a valid npm range.
    """
    if parse_version(version) is None:
        raise ValueError(f"invalid version: {version!r}")
    try:
        rng = nodesemver.make_range(range_, loose=False)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid range: {range_!r}") from exc
    return bool(rng.test(version))


# ── Requested-range classification ─────────────────────────────────────

@dataclass(frozen=True)
class RangeInfo:
    symbol: str
    kind: str
    description: str
    risk: str  # very-low, low, medium, high, very-high


_EXACT_RE = re.compile(r"^\d+\.\d+\.\d+$")


def describe_range(requested: str) -> RangeInfo:
    """Explain how much drift a manifest range lets in."""
    text = requested.strip()
    if text.startswith("^"):
        return RangeInfo("^", "caret", "Minor and patch updates allowed", "low")
    if text.startswith("~"):
        return RangeInfo("~", "tilde", "Patch updates only", "very-low")
    if text.startswith(">="):
        return RangeInfo(">=", "gte", "Any version at or above the bound", "high")
    if text.startswith(">"):
        return RangeInfo(">", "gt", "Any version above the bound", "high")
    if " - " in text:
        return RangeInfo("-", "range", "Inclusive version range", "medium")
    if "||" in text:
        return RangeInfo("||", "or", "Any of several ranges", "medium")
    if text == "latest":
        return RangeInfo("latest", "latest", "Always the newest release", "very-high")
    if text in ("*", "x", ""):
        return RangeInfo("*", "any", "Any version ever published", "very-high")
    if _EXACT_RE.match(text):
        return RangeInfo("exact", "exact", "Pinned to exactly this version", "very-low")
    return RangeInfo("?", "complex", "Custom or complex version pattern", "medium")
