"""Data models for dep-inspector."""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_LICENSE = "UNKNOWN"
MAX_MESSAGE_LENGTH = 120


# ── Input ──────────────────────────────────────────────────────────────────

class Dependency(BaseModel):
    """A resolved dependency as supplied by the manifest parser."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: str
    requested_range: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.name}@{self.version}"


# ── Registry enrichment ────────────────────────────────────────────────────

class EnrichedInfo(BaseModel):
    """Normalized registry metadata for one ``name@version``."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    license: str = UNKNOWN_LICENSE
    deprecated: bool = False
    install_scripts: tuple[str, ...] = ()  # subset of preinstall/postinstall/install
    fetch_failed: bool = False

    @property
    def key(self) -> str:
        return f"{self.name}@{self.version}"

    @property
    def has_install_scripts(self) -> bool:
        return bool(self.install_scripts)

    @classmethod
    def failed(cls, name: str, version: str) -> "EnrichedInfo":
        """Marker for a metadata lookup that did not succeed."""
        return cls(name=name, version=version, fetch_failed=True)


# ── Issues ─────────────────────────────────────────────────────────────────

class IssueLevel(str, Enum):
    """How serious an issue is."""

    critical = "critical"
    warning = "warning"
    info = "info"

    @property
    def icon(self) -> str:
        return {
            IssueLevel.critical: "🔴",
            IssueLevel.warning: "🟡",
            IssueLevel.info: "🔵",
        }[self]


class IssueKind(str, Enum):
    """Which detector produced an issue."""

    vuln = "vuln"
    deprecated = "deprecated"
    scripts = "scripts"
    license = "license"
    typosquat = "typosquat"
    update = "update"
    meta = "meta"


class Advisory(BaseModel):
    """A known vulnerability affecting one ``name@version``.

    Built either from the live advisory service or from the bundled
    fallback table; nothing downstream cares which.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    summary: str = ""
    level: IssueLevel = IssueLevel.warning
    fixed_version: Optional[str] = None

    def describe(self) -> str:
        if not self.summary:
            return self.id
        if self.id in self.summary:
            return self.summary
        return f"{self.id}: {self.summary}"


class Issue(BaseModel):
    """A single finding attached to a package."""

    level: IssueLevel
    kind: IssueKind
    message: str
    fix: Optional[str] = None  # "name@version" to upgrade to

    @field_validator("message")
    @classmethod
    def _truncate(cls, value: str) -> str:
        return value[:MAX_MESSAGE_LENGTH]

    @property
    def display(self) -> str:
        return f"{self.level.icon} {self.level.value.upper()} [{self.kind.value}] {self.message}"


# ── Results ────────────────────────────────────────────────────────────────

class PackageResult(BaseModel):
    """Analysis outcome for one dependency."""

    name: str
    version: str
    requested_range: Optional[str] = None
    license: str = UNKNOWN_LICENSE
    latest_version: Optional[str] = None
    issues: list[Issue] = Field(default_factory=list)

    @property
    def spec(self) -> str:
        return f"{self.name}@{self.version}"

    def count(self, level: IssueLevel) -> int:
        return sum(1 for i in self.issues if i.level == level)


class LicenseCount(BaseModel):
    """One row of the license histogram."""

    license: str
    count: int


Score = Literal["A", "B", "C"]
AdvisorySource = Literal["osv", "fallback", "none"]


class Report(BaseModel):
    """Full dependency risk report."""

    score: Score = "A"
    analyzed_count: int = 0
    total_input_count: int = 0
    is_limited: bool = False
    critical_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    project_license: Optional[str] = None
    top_licenses: list[LicenseCount] = Field(default_factory=list)
    results: list[PackageResult] = Field(default_factory=list)
    advisory_source: AdvisorySource = "none"

    @classmethod
    def empty(cls, project_license: Optional[str] = None) -> "Report":
        return cls(project_license=project_license)

    def fixes(self) -> list[str]:
        """Every suggested ``name@version`` in report order."""
        return [i.fix for r in self.results for i in r.issues if i.fix]

    def all_fixes(self) -> str:
        """Fix specs joined for a single ``npm install`` line."""
        return " ".join(self.fixes())
