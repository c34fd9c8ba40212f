"""npm registry lookups via the public REST API."""

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx
import structlog

from dep_inspector.analysis.licenses import normalize_license
from dep_inspector.batching import Failed, Ok, Outcome
from dep_inspector.models import EnrichedInfo

log = structlog.get_logger("dep_inspector.registry")

INSTALL_SCRIPT_HOOKS = ("preinstall", "postinstall", "install")


# ── Lookup cache ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CacheStats:
    size: int
    hits: int
    misses: int


class RegistryCache:
    """``name@version`` → :class:`EnrichedInfo`, shared across analyses.

    Owned by the caller and handed to each client that should use it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, EnrichedInfo] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[EnrichedInfo]:
        with self._lock:
            info = self._entries.get(key)
            if info is None:
                self._misses += 1
            else:
                self._hits += 1
            return info

    def put(self, info: EnrichedInfo) -> None:
        if info.fetch_failed:
            return
        with self._lock:
            self._entries[info.key] = info

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(len(self._entries), self._hits, self._misses)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ── Client ────────────────────────────────────────────────────────────────

def extract_version_info(payload: Any, name: str, version: str) -> EnrichedInfo:
    """Keep only the fields the detectors need from a version document."""
    if not isinstance(payload, dict):
        payload = {}
    scripts = payload.get("scripts")
    if not isinstance(scripts, dict):
        scripts = {}
    return EnrichedInfo(
        name=name,
        version=version,
        license=normalize_license(payload.get("license")),
        deprecated=bool(payload.get("deprecated")),
        install_scripts=tuple(h for h in INSTALL_SCRIPT_HOOKS if scripts.get(h)),
    )


class NpmRegistryClient:
    """Fetches dist-tags and per-version metadata from an npm registry.

    Every call is bounded by *timeout* seconds; a timed-out request is
    cancelled.  Lookups never raise for network trouble, they return
    ``Failed`` instead.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://registry.npmjs.org",
        timeout: float = 5.0,
        cache: Optional[RegistryCache] = None,
    ) -> None:
        self._client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    def _url(self, *segments: str) -> str:
        return "/".join([self.base_url, *(quote(s, safe="") for s in segments)])

    async def _get_json(self, url: str) -> Any:
        resp = await asyncio.wait_for(
            self._client.get(
                url, headers={"Accept": "application/json"}, timeout=self.timeout
            ),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    async def _lookup(self, url: str, **context: str) -> Outcome[Any]:
        try:
            return Ok(await self._get_json(url))
        except asyncio.TimeoutError:
            log.debug("registry.lookup_timeout", url=url, **context)
            return Failed("timeout")
        except httpx.HTTPStatusError as exc:
            log.debug(
                "registry.lookup_status", url=url, status=exc.response.status_code, **context
            )
            return Failed(f"HTTP {exc.response.status_code}")
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("registry.lookup_failed", url=url, error=repr(exc), **context)
            return Failed(type(exc).__name__)

    # ── Lookups ───────────────────────────────────────────────────────────

    async def latest_version(self, name: str) -> Outcome[Optional[str]]:
        """The ``latest`` dist-tag of *name*."""
        outcome = await self._lookup(self._url("-", "package", name, "dist-tags"), package=name)
        if isinstance(outcome, Failed):
            return outcome
        tags = outcome.value
        latest = tags.get("latest") if isinstance(tags, dict) else None
        return Ok(latest if isinstance(latest, str) and latest else None)

    async def version_info(self, name: str, version: str) -> Outcome[EnrichedInfo]:
        """License, deprecation and install-script data for ``name@version``."""
        key = f"{name}@{version}"
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return Ok(cached)

        outcome = await self._lookup(self._url(name, version), package=key)
        if isinstance(outcome, Failed):
            return outcome
        info = extract_version_info(outcome.value, name, version)
        if self.cache is not None:
            self.cache.put(info)
        return Ok(info)
