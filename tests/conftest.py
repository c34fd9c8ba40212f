"""Pytest configuration and fixtures."""

import json

import pytest

from dep_inspector.config import AnalyzerSettings

REGISTRY = "https://registry.test"
OSV_URL = "https://osv.test/v1/querybatch"


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


@pytest.fixture
def settings():
    """Settings pointing at mock hosts, with no pacing delay."""
    return AnalyzerSettings(
        registry_url=REGISTRY,
        advisory_url=OSV_URL,
        advisory_batch_delay=0,
        request_timeout=0.5,
        advisory_timeout=0.5,
    )


@pytest.fixture
def sample_package_json():
    return json.dumps({
        "name": "demo",
        "license": "MIT",
        "dependencies": {"express": "^4.18.2", "lodash": "~4.17.21"},
        "devDependencies": {"jest": "29.7.0"},
    })


@pytest.fixture
def sample_npm_lock():
    return json.dumps({
        "name": "demo",
        "lockfileVersion": 3,
        "packages": {
            "": {"name": "demo", "version": "1.0.0"},
            "node_modules/express": {"version": "4.18.2"},
            "node_modules/@babel/core": {"version": "7.23.0"},
            "node_modules/express/node_modules/debug": {"version": "2.6.9"},
            "node_modules/debug": {"version": "2.6.9"},
            "packages/local": {"name": "local", "version": "0.0.1"},
            "node_modules/local": {"resolved": "packages/local", "link": True},
        },
    })
