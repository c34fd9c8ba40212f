"""Runtime settings, read from ``DEP_INSPECTOR_*`` environment variables."""

import os
from collections.abc import Mapping
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "DEP_INSPECTOR_"


class AnalyzerSettings(BaseModel):
    """Tunables for the analysis engine and its logging."""

    registry_url: str = "https://registry.npmjs.org"
    advisory_url: str = "https://api.osv.dev/v1/querybatch"

    max_packages: int = Field(default=600, ge=1)
    dist_tag_concurrency: int = Field(default=8, ge=1)
    metadata_concurrency: int = Field(default=6, ge=1)
    request_timeout: float = Field(default=5.0, gt=0)

    advisory_batch_size: int = Field(default=10, ge=1)
    advisory_timeout: float = Field(default=10.0, gt=0)
    advisory_batch_delay: float = Field(default=0.1, ge=0)

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_file: Optional[str] = None

    @field_validator("registry_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AnalyzerSettings":
        """Build settings from ``DEP_INSPECTOR_<FIELD>`` variables.

        Unset variables keep their defaults; bad values raise
        ``pydantic.ValidationError``.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field_name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{field_name.upper()}")
            if raw is not None and raw != "":
                values[field_name] = raw
        return cls.model_validate(values)
