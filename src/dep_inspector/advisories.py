"""Vulnerability lookup: OSV batch queries with a bundled fallback table.

The live service is asked in small sequential batches.  A batch that fails
simply contributes nothing.  Only when *no* batch comes back at all is the
service treated as down, and the small table of well-known npm advisories
below is consulted instead.
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
import structlog

from dep_inspector.models import Advisory, AdvisorySource, Dependency, IssueLevel
from dep_inspector.versions import SemVer, parse_version, satisfies

log = structlog.get_logger("dep_inspector.advisories")

ECOSYSTEM = "npm"


# ── Fallback table ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class KnownAdvisory:
    id: str
    range: str
    fixed_version: str
    message: str


KNOWN_ADVISORIES: dict[str, list[KnownAdvisory]] = {
    "minimist": [
        KnownAdvisory(
            "CVE-2020-7598", "<1.2.6", "1.2.8",
            "Prototype pollution (CVE-2020-7598). Upgrade recommended.",
        ),
    ],
    "tar": [
        KnownAdvisory(
            "CVE-2021-32804", "<4.4.19", "4.4.19",
            "Path traversal vulnerability (CVE-2021-32804). Upgrade recommended.",
        ),
    ],
    "ua-parser-js": [
        KnownAdvisory(
            "CVE-2020-36313", "<0.7.24", "0.7.24",
            "Regular Expression Denial of Service (CVE-2020-36313). Upgrade recommended.",
        ),
    ],
    "ansi-regex": [
        KnownAdvisory(
            "CVE-2021-3807", "<5.0.1", "5.0.1",
            "Regular Expression Denial of Service (CVE-2021-3807). Upgrade recommended.",
        ),
    ],
    "node-forge": [
        KnownAdvisory(
            "CVE-2022-24773", "<1.3.1", "1.3.1",
            "Prototype pollution vulnerability (CVE-2022-24773). Upgrade recommended.",
        ),
    ],
}


def fallback_advisories(dep: Dependency) -> list[Advisory]:
    """Bundled advisories whose range covers ``dep.version``."""
    matched: list[Advisory] = []
    for known in KNOWN_ADVISORIES.get(dep.name, []):
        try:
            hit = satisfies(dep.version, known.range)
        except ValueError:
            hit = False
        if hit:
            matched.append(
                Advisory(
                    id=known.id,
                    summary=known.message,
                    level=IssueLevel.critical,
                    fixed_version=known.fixed_version,
                )
            )
    return matched


# ── OSV record interpretation ─────────────────────────────────────────────

def _cvss_score(vuln: dict[str, Any]) -> Optional[float]:
    for entry in vuln.get("severity") or []:
        if not isinstance(entry, dict) or entry.get("type") != "CVSS_V3":
            continue
        try:
            return float(entry.get("score"))
        except (TypeError, ValueError):
            continue  # vector string, not a number
    return None


def _textual_severity(vuln: dict[str, Any]) -> Optional[str]:
    for section in ("database_specific", "ecosystem_specific"):
        data = vuln.get(section)
        if isinstance(data, dict) and isinstance(data.get("severity"), str):
            return data["severity"].lower()
    for affected in vuln.get("affected") or []:
        data = affected.get("ecosystem_specific") if isinstance(affected, dict) else None
        if isinstance(data, dict) and isinstance(data.get("severity"), str):
            return data["severity"].lower()
    return None


def severity_level(vuln: dict[str, Any]) -> IssueLevel:
    """Map an OSV record to an issue level."""
    score = _cvss_score(vuln)
    if score is not None:
        if score >= 7.0:
            return IssueLevel.critical
        if score >= 4.0:
            return IssueLevel.warning
        return IssueLevel.info

    text = _textual_severity(vuln)
    if text is None:
        return IssueLevel.warning
    if text in ("critical", "high"):
        return IssueLevel.critical
    if text in ("medium", "moderate"):
        return IssueLevel.warning
    return IssueLevel.info


def fixed_version(vuln: dict[str, Any], name: str, current: str) -> Optional[str]:
    """Lowest fix above *current* from the record's ranges for *name*.

    Falls back to the lowest fix overall when none is above *current*.
    """
    fixes: list[tuple[SemVer, str]] = []
    for affected in vuln.get("affected") or []:
        if not isinstance(affected, dict):
            continue
        package = affected.get("package")
        if isinstance(package, dict) and package.get("name") not in (None, name):
            continue
        for rng in affected.get("ranges") or []:
            if not isinstance(rng, dict):
                continue
            for event in rng.get("events") or []:
                raw = event.get("fixed") if isinstance(event, dict) else None
                parsed = parse_version(raw) if isinstance(raw, str) else None
                if parsed is not None:
                    fixes.append((parsed, raw))
    if not fixes:
        return None

    fixes.sort(key=lambda f: f[0].sort_key())
    now = parse_version(current)
    if now is not None:
        for parsed, raw in fixes:
            if parsed.sort_key() > now.sort_key():
                return raw
    return fixes[0][1]


def to_advisory(vuln: dict[str, Any], dep: Dependency) -> Advisory:
    summary = vuln.get("summary") or vuln.get("details") or ""
    return Advisory(
        id=str(vuln.get("id") or "UNKNOWN"),
        summary=" ".join(str(summary).split()),
        level=severity_level(vuln),
        fixed_version=fixed_version(vuln, dep.name, dep.version),
    )


def _convert_records(vulns: Any, dep: Dependency) -> list[Advisory]:
    """Advisories from one result entry; malformed records are skipped."""
    if not isinstance(vulns, list):
        return []
    advisories: list[Advisory] = []
    for vuln in vulns:
        if not isinstance(vuln, dict):
            continue
        try:
            advisories.append(to_advisory(vuln, dep))
        except (AttributeError, TypeError, ValueError) as exc:
            log.warning(
                "advisories.record_skipped",
                package=dep.key,
                id=repr(vuln.get("id")),
                error=repr(exc),
            )
    return advisories


# ── Resolver ──────────────────────────────────────────────────────────────

@dataclass
class AdvisoryLookup:
    """Advisories per ``name@version`` and which tier supplied them."""

    advisories: dict[str, list[Advisory]] = field(default_factory=dict)
    source: AdvisorySource = "none"

    def for_dependency(self, dep: Dependency) -> list[Advisory]:
        return self.advisories.get(dep.key, [])


class VulnerabilityResolver:
    """Queries an OSV-compatible ``querybatch`` endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = "https://api.osv.dev/v1/querybatch",
        batch_size: int = 10,
        timeout: float = 10.0,
        batch_delay: float = 0.1,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._client = client
        self.url = url
        self.batch_size = batch_size
        self.timeout = timeout
        self.batch_delay = batch_delay

    async def _query_batch(
        self, batch: Sequence[Dependency]
    ) -> Optional[list[list[Advisory]]]:
        """Advisories per item of *batch*, or None if the batch failed."""
        body = {
            "queries": [
                {"package": {"name": d.name, "ecosystem": ECOSYSTEM}, "version": d.version}
                for d in batch
            ]
        }
        try:
            resp = await asyncio.wait_for(
                self._client.post(self.url, json=body, timeout=self.timeout),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            results = resp.json().get("results")
        except asyncio.TimeoutError:
            log.warning("advisories.batch_timeout", size=len(batch))
            return None
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            log.warning("advisories.batch_failed", size=len(batch), error=repr(exc))
            return None

        if not isinstance(results, list) or len(results) != len(batch):
            log.warning(
                "advisories.batch_misaligned",
                expected=len(batch),
                got=len(results) if isinstance(results, list) else None,
            )
            return None

        per_item: list[list[Advisory]] = []
        for dep, entry in zip(batch, results):
            vulns = entry.get("vulns") if isinstance(entry, dict) else None
            per_item.append(_convert_records(vulns, dep))
        return per_item

    async def resolve(
        self,
        deps: Sequence[Dependency],
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> AdvisoryLookup:
        """Look up advisories for every dependency.

        The map only holds entries for batches the service answered.  When
        it ends up empty for a non-empty input, the service is considered
        unreachable and the bundled table is used for the whole analysis.
        """
        if not deps:
            return AdvisoryLookup()

        found: dict[str, list[Advisory]] = {}
        for start in range(0, len(deps), self.batch_size):
            if start and self.batch_delay:
                await asyncio.sleep(self.batch_delay)
            batch = deps[start:start + self.batch_size]
            per_item = await self._query_batch(batch)
            if on_progress is not None:
                on_progress(start + len(batch), len(deps))
            if per_item is None:
                continue
            for dep, advisories in zip(batch, per_item):
                found[dep.key] = advisories

        if found:
            return AdvisoryLookup(advisories=found, source="osv")

        log.warning("advisories.fallback_engaged", packages=len(deps))
        fallback = {d.key: fallback_advisories(d) for d in deps}
        return AdvisoryLookup(advisories=fallback, source="fallback")
