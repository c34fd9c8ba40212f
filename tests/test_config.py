"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from dep_inspector.config import AnalyzerSettings


class TestAnalyzerSettings:
    def test_defaults(self):
        s = AnalyzerSettings()
        assert s.max_packages == 600
        assert s.dist_tag_concurrency == 8
        assert s.metadata_concurrency == 6
        assert s.request_timeout == 5.0
        assert s.advisory_batch_size == 10
        assert s.advisory_timeout == 10.0
        assert s.log_format == "console"

    def test_registry_trailing_slash_stripped(self):
        assert AnalyzerSettings(registry_url="https://r.test/").registry_url == "https://r.test"

    def test_log_level_uppercased(self):
        assert AnalyzerSettings(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("field", ["max_packages", "metadata_concurrency", "advisory_batch_size"])
    def test_zero_rejected(self, field):
        with pytest.raises(ValidationError):
            AnalyzerSettings(**{field: 0})


class TestFromEnv:
    def test_reads_prefixed_variables(self):
        s = AnalyzerSettings.from_env(
            {
                "DEP_INSPECTOR_MAX_PACKAGES": "50",
                "DEP_INSPECTOR_REQUEST_TIMEOUT": "2.5",
                "DEP_INSPECTOR_LOG_FORMAT": "json",
                "DEP_INSPECTOR_REGISTRY_URL": "https://mirror.test/",
                "MAX_PACKAGES": "1",
            }
        )
        assert s.max_packages == 50
        assert s.request_timeout == 2.5
        assert s.log_format == "json"
        assert s.registry_url == "https://mirror.test"

    def test_empty_values_ignored(self):
        assert AnalyzerSettings.from_env({"DEP_INSPECTOR_MAX_PACKAGES": ""}).max_packages == 600

    def test_invalid_value_raises(self):
        with pytest.raises(ValidationError):
            AnalyzerSettings.from_env({"DEP_INSPECTOR_LOG_FORMAT": "xml"})

    def test_uses_process_environment(self, monkeypatch):
        monkeypatch.setenv("DEP_INSPECTOR_METADATA_CONCURRENCY", "3")
        assert AnalyzerSettings.from_env().metadata_concurrency == 3
