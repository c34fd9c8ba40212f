"""Dependency risk analysis engine.

Orchestrates registry lookups, vulnerability resolution and the detector
pipeline to produce a complete Report.
"""

import asyncio
from collections.abc import Iterable
from typing import Callable, Optional

import httpx
import structlog

from dep_inspector import __version__
from dep_inspector.advisories import AdvisoryLookup, VulnerabilityResolver
from dep_inspector.analysis.dependencies import dedupe_and_cap
from dep_inspector.analysis.detectors import DetectionContext, build_result
from dep_inspector.analysis.scoring import build_report
from dep_inspector.batching import Ok, Outcome, run_in_windows
from dep_inspector.config import AnalyzerSettings
from dep_inspector.models import Dependency, EnrichedInfo, Report
from dep_inspector.registry import NpmRegistryClient, RegistryCache

log = structlog.get_logger("dep_inspector.analyzer")

STAGE_DIST_TAGS = "dist-tags"
STAGE_METADATA = "metadata"
STAGE_ADVISORIES = "advisories"
STAGES = (STAGE_DIST_TAGS, STAGE_METADATA, STAGE_ADVISORIES)

# (stage, done, total)
ProgressCallback = Callable[[str, int, int], None]


class Analyzer:
    """End-to-end dependency risk analysis against npm and OSV."""

    def __init__(
        self,
        settings: Optional[AnalyzerSettings] = None,
        cache: Optional[RegistryCache] = None,
        on_status: Optional[Callable[[str], None]] = None,
        client: Optional[httpx.AsyncClient] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.settings = settings or AnalyzerSettings()
        self._on_status = on_status or (lambda _: None)
        self._on_progress = on_progress or (lambda *_: None)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": f"dep-inspector/{__version__}"},
            timeout=max(self.settings.request_timeout, self.settings.advisory_timeout),
            follow_redirects=True,
        )
        self.registry = NpmRegistryClient(
            self._client,
            base_url=self.settings.registry_url,
            timeout=self.settings.request_timeout,
            cache=cache,
        )
        self.resolver = VulnerabilityResolver(
            self._client,
            url=self.settings.advisory_url,
            batch_size=self.settings.advisory_batch_size,
            timeout=self.settings.advisory_timeout,
            batch_delay=self.settings.advisory_batch_delay,
        )

    # ── Status helper ─────────────────────────────────────────────────────

    def _status(self, msg: str) -> None:
        self._on_status(msg)

    def _progress(self, stage: str) -> Callable[[int, int], None]:
        return lambda done, total: self._on_progress(stage, done, total)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "Analyzer":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Enrichment stages ─────────────────────────────────────────────────

    async def _fetch_latest_versions(self, names: list[str]) -> dict[str, str]:
        async def worker(name: str) -> Outcome[tuple[str, Optional[str]]]:
            outcome = await self.registry.latest_version(name)
            if isinstance(outcome, Ok):
                return Ok((name, outcome.value))
            return outcome

        pairs = await run_in_windows(
            names, self.settings.dist_tag_concurrency, worker, self._progress(STAGE_DIST_TAGS)
        )
        return {name: latest for name, latest in pairs if latest}

    async def _fetch_version_info(self, deps: list[Dependency]) -> dict[str, EnrichedInfo]:
        async def worker(dep: Dependency) -> Outcome[EnrichedInfo]:
            outcome = await self.registry.version_info(dep.name, dep.version)
            if isinstance(outcome, Ok):
                return outcome
            return Ok(EnrichedInfo.failed(dep.name, dep.version))

        infos = await run_in_windows(
            deps, self.settings.metadata_concurrency, worker, self._progress(STAGE_METADATA)
        )
        return {info.key: info for info in infos}

    # ── Full analysis ─────────────────────────────────────────────────────

    async def analyze(
        self,
        deps: Iterable[Dependency],
        project_license: Optional[str] = None,
    ) -> Report:
        """Run the entire analysis pipeline.

        Cancelling the awaiting task aborts every in-flight request; no
        partial report is produced.
        """
        deps = list(deps)
        to_analyze, is_limited = dedupe_and_cap(deps, self.settings.max_packages)
        if not to_analyze:
            return Report.empty(project_license)

        names = list(dict.fromkeys(d.name for d in to_analyze))
        log.info(
            "analyzer.start",
            inputs=len(deps),
            packages=len(to_analyze),
            names=len(names),
            limited=is_limited,
        )

        self._status(f"Looking up {len(to_analyze)} packages …")
        self._on_progress(STAGE_DIST_TAGS, 0, len(names))
        self._on_progress(STAGE_METADATA, 0, len(to_analyze))
        self._on_progress(STAGE_ADVISORIES, 0, len(to_analyze))
        latest, infos, lookup = await asyncio.gather(
            self._fetch_latest_versions(names),
            self._fetch_version_info(to_analyze),
            self.resolver.resolve(to_analyze, self._progress(STAGE_ADVISORIES)),
        )
        self._report_enrichment(to_analyze, infos, lookup)

        self._status("Running detectors …")
        results = [
            build_result(
                DetectionContext(
                    dependency=d,
                    info=infos.get(d.key) or EnrichedInfo.failed(d.name, d.version),
                    latest_version=latest.get(d.name),
                    advisories=lookup.for_dependency(d),
                    project_license=project_license,
                )
            )
            for d in to_analyze
        ]

        report = build_report(
            results,
            total_input_count=len(deps),
            is_limited=is_limited,
            project_license=project_license,
            advisory_source=lookup.source,
        )
        log.info(
            "analyzer.done",
            score=report.score,
            critical=report.critical_count,
            warning=report.warning_count,
            info=report.info_count,
        )
        self._status("Complete!")
        return report

    def _report_enrichment(
        self,
        deps: list[Dependency],
        infos: dict[str, EnrichedInfo],
        lookup: AdvisoryLookup,
    ) -> None:
        failed = sum(1 for d in deps if d.key not in infos or infos[d.key].fetch_failed)
        if failed:
            log.warning("analyzer.metadata_missing", failed=failed, total=len(deps))
        if lookup.source == "fallback":
            self._status("Advisory service unreachable: using bundled advisories")
