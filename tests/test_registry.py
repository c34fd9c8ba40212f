"""Tests for the npm registry client and its cache."""

import asyncio

import httpx
import pytest
import pytest_asyncio
import respx

from dep_inspector.batching import Failed, Ok
from dep_inspector.models import EnrichedInfo
from dep_inspector.registry import NpmRegistryClient, RegistryCache, extract_version_info

REGISTRY = "https://registry.test"


@pytest_asyncio.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


class TestExtractVersionInfo:
    def test_full_payload(self):
        payload = {
            "name": "pkg",
            "version": "1.0.0",
            "license": {"type": "MIT"},
            "deprecated": "use other-pkg instead",
            "scripts": {"postinstall": "node setup.js", "install": "node-gyp rebuild", "test": "jest"},
            "readme": "x" * 10_000,
        }
        info = extract_version_info(payload, "pkg", "1.0.0")
        assert info.license == "MIT"
        assert info.deprecated is True
        assert info.install_scripts == ("postinstall", "install")
        assert info.fetch_failed is False

    def test_sparse_payload(self):
        info = extract_version_info({}, "pkg", "1.0.0")
        assert info.license == "UNKNOWN"
        assert info.deprecated is False
        assert info.install_scripts == ()

    def test_non_dict_payload(self):
        info = extract_version_info(["weird"], "pkg", "1.0.0")
        assert info.license == "UNKNOWN"

    def test_preinstall_order(self):
        payload = {"scripts": {"install": "x", "preinstall": "y"}}
        assert extract_version_info(payload, "p", "1").install_scripts == ("preinstall", "install")


class TestRegistryCache:
    def test_get_put_and_stats(self):
        cache = RegistryCache()
        assert cache.get("a@1.0.0") is None
        info = EnrichedInfo(name="a", version="1.0.0", license="MIT")
        cache.put(info)
        assert cache.get("a@1.0.0") == info
        stats = cache.stats()
        assert (stats.size, stats.hits, stats.misses) == (1, 1, 1)

    def test_failed_lookups_not_cached(self):
        cache = RegistryCache()
        cache.put(EnrichedInfo.failed("a", "1.0.0"))
        assert len(cache) == 0

    def test_clear(self):
        cache = RegistryCache()
        cache.put(EnrichedInfo(name="a", version="1.0.0"))
        cache.get("a@1.0.0")
        cache.clear()
        assert cache.stats().size == 0
        assert cache.stats().hits == 0


class TestNpmRegistryClient:
    @pytest.mark.asyncio
    @respx.mock
    async def test_latest_version(self, http_client):
        respx.get(f"{REGISTRY}/-/package/lodash/dist-tags").mock(
            return_value=httpx.Response(200, json={"latest": "4.17.21", "next": "5.0.0-rc"})
        )
        registry = NpmRegistryClient(http_client, base_url=REGISTRY)
        assert await registry.latest_version("lodash") == Ok("4.17.21")

    @pytest.mark.asyncio
    @respx.mock
    async def test_latest_version_missing_tag(self, http_client):
        respx.get(f"{REGISTRY}/-/package/lodash/dist-tags").mock(
            return_value=httpx.Response(200, json={"beta": "1.0.0-beta"})
        )
        registry = NpmRegistryClient(http_client, base_url=REGISTRY)
        assert await registry.latest_version("lodash") == Ok(None)

    @pytest.mark.asyncio
    @respx.mock
    async def test_latest_version_not_found(self, http_client):
        respx.get(f"{REGISTRY}/-/package/nope/dist-tags").mock(
            return_value=httpx.Response(404, json={"error": "Not found"})
        )
        registry = NpmRegistryClient(http_client, base_url=REGISTRY)
        outcome = await registry.latest_version("nope")
        assert isinstance(outcome, Failed)
        assert "404" in outcome.reason

    @pytest.mark.asyncio
    @respx.mock
    async def test_version_info(self, http_client):
        respx.get(f"{REGISTRY}/left-pad/1.3.0").mock(
            return_value=httpx.Response(
                200, json={"license": "WTFPL", "deprecated": "use String.prototype.padStart()"}
            )
        )
        registry = NpmRegistryClient(http_client, base_url=REGISTRY)
        outcome = await registry.version_info("left-pad", "1.3.0")
        assert isinstance(outcome, Ok)
        assert outcome.value.license == "WTFPL"
        assert outcome.value.deprecated is True

    @pytest.mark.asyncio
    async def test_scoped_name_is_encoded(self):
        seen: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path)
            return httpx.Response(200, json={"license": "MIT"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            registry = NpmRegistryClient(client, base_url=REGISTRY)
            outcome = await registry.version_info("@types/node", "20.0.0")
        assert seen == [b"/%40types%2Fnode/20.0.0"]
        assert outcome.value.license == "MIT"

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_is_failed(self, http_client):
        respx.get(f"{REGISTRY}/pkg/1.0.0").mock(side_effect=httpx.ConnectError)
        registry = NpmRegistryClient(http_client, base_url=REGISTRY)
        assert isinstance(await registry.version_info("pkg", "1.0.0"), Failed)

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_json_is_failed(self, http_client):
        respx.get(f"{REGISTRY}/pkg/1.0.0").mock(return_value=httpx.Response(200, text="<html>"))
        registry = NpmRegistryClient(http_client, base_url=REGISTRY)
        assert isinstance(await registry.version_info("pkg", "1.0.0"), Failed)

    @pytest.mark.asyncio
    async def test_timeout_cancels_request(self):
        cancelled = asyncio.Event()

        async def hang(request: httpx.Request) -> httpx.Response:
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return httpx.Response(200, json={})

        async with httpx.AsyncClient(transport=httpx.MockTransport(hang)) as client:
            registry = NpmRegistryClient(client, base_url=REGISTRY, timeout=0.05)
            outcome = await asyncio.wait_for(registry.version_info("slow", "1.0.0"), timeout=2)
        assert outcome == Failed("timeout")
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_configured_timeout_reaches_transport(self):
        timeouts: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            timeouts.append(request.extensions["timeout"])
            return httpx.Response(200, json={"latest": "1.0.0"})

        # client default stays at httpx's 5 s
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            registry = NpmRegistryClient(client, base_url=REGISTRY, timeout=8.0)
            await registry.latest_version("pkg")
        assert timeouts[0]["read"] == 8.0
        assert timeouts[0]["connect"] == 8.0

    @pytest.mark.asyncio
    @respx.mock
    async def test_cache_hit_skips_request(self, http_client):
        route = respx.get(f"{REGISTRY}/pkg/1.0.0").mock(
            return_value=httpx.Response(200, json={"license": "ISC"})
        )
        cache = RegistryCache()
        registry = NpmRegistryClient(http_client, base_url=REGISTRY, cache=cache)
        first = await registry.version_info("pkg", "1.0.0")
        second = await registry.version_info("pkg", "1.0.0")
        assert first == second
        assert route.call_count == 1
        assert cache.stats().hits == 1
