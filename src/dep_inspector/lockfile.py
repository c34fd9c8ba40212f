"""Manifest and lockfile parsing into flat dependency lists."""

import json
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Optional

import yaml

from dep_inspector.models import Dependency


class LockfileError(ValueError):
    """The manifest text could not be parsed."""


@dataclass
class ParsedManifest:
    deps: list[Dependency] = field(default_factory=list)
    project_license: Optional[str] = None


def detect_file_kind(filename: str) -> str:
    name = PurePosixPath(filename.replace("\\", "/")).name
    if name == "package-lock.json" or name == "npm-shrinkwrap.json":
        return "npm-lock"
    if name in ("pnpm-lock.yaml", "pnpm-lock.yml"):
        return "pnpm-lock"
    if name == "package.json":
        return "pkg-json"
    return "unknown"


def _load_json(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LockfileError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise LockfileError("expected a JSON object at the top level")
    return data


def _unique(deps: list[Dependency]) -> list[Dependency]:
    seen: dict[str, Dependency] = {}
    for d in deps:
        seen.setdefault(d.key, d)
    return list(seen.values())


# ── package.json ──────────────────────────────────────────────────────

_LEADING_NON_DIGITS = re.compile(r"^[^\d]*")


def parse_package_json(text: str) -> ParsedManifest:
    """Direct dependencies; the version is the range minus its operator."""
    pkg = _load_json(text)
    deps: list[Dependency] = []
    for section in ("dependencies", "devDependencies"):
        entries = pkg.get(section) or {}
        if not isinstance(entries, dict):
            continue
        for name, requested in entries.items():
            if not name or not isinstance(requested, str):
                continue
            deps.append(
                Dependency(
                    name=name,
                    version=_LEADING_NON_DIGITS.sub("", requested),
                    requested_range=requested,
                )
            )
    license_field = pkg.get("license")
    return ParsedManifest(
        deps=deps,
        project_license=license_field if isinstance(license_field, str) else None,
    )


# ── package-lock.json ─────────────────────────────────────────────────

def parse_npm_lock(text: str) -> list[Dependency]:
    """Resolved packages from a v1, v2 or v3 npm lockfile."""
    lock = _load_json(text)
    deps: list[Dependency] = []

    for path, meta in (lock.get("packages") or {}).items():
        if not path or not isinstance(meta, dict) or meta.get("link"):
            continue  # "" is the root project
        name = meta.get("name")
        if not name and "node_modules/" in path:
            name = path.rsplit("node_modules/", 1)[-1]
        version = meta.get("version")
        if name and isinstance(version, str) and version:
            deps.append(Dependency(name=name, version=version))

    if not deps and isinstance(lock.get("dependencies"), dict):
        def walk(tree: dict[str, Any]) -> None:
            for name, meta in tree.items():
                if not isinstance(meta, dict):
                    continue
                if isinstance(meta.get("version"), str):
                    deps.append(Dependency(name=name, version=meta["version"]))
                if isinstance(meta.get("dependencies"), dict):
                    walk(meta["dependencies"])

        walk(lock["dependencies"])

    return _unique(deps)


# ── pnpm-lock.yaml ────────────────────────────────────────────────────

_PNPM_KEY = re.compile(r"^/?((?:@[^/@]+/)?[^/@]+)@([^(]+)")
_PNPM_LEGACY_KEY = re.compile(r"^/((?:@[^/]+/)?[^/]+)/([^/(_]+)")
_NPM_ALIAS = re.compile(r"^npm:((?:@[^/@]+/)?[^@]+)@?(.*)$")


def _split_pnpm_key(key: str) -> Optional[tuple[str, str]]:
    match = _PNPM_KEY.match(key) or _PNPM_LEGACY_KEY.match(key)
    if not match:
        return None
    return match.group(1), match.group(2)


def parse_pnpm_lock(text: str) -> list[Dependency]:
    """Resolved packages from a pnpm lockfile (v5 through v9 key formats)."""
    try:
        lock = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise LockfileError(f"invalid YAML: {exc}") from exc
    if not isinstance(lock, dict):
        raise LockfileError("expected a YAML mapping at the top level")

    deps: list[Dependency] = []
    for key, meta in (lock.get("packages") or {}).items():
        parts = _split_pnpm_key(str(key))
        if parts is None:
            continue
        name, version = parts
        resolution = (meta or {}).get("resolution") if isinstance(meta, dict) else None
        if isinstance(resolution, dict) and isinstance(resolution.get("version"), str):
            version = resolution["version"]
        alias = _NPM_ALIAS.match(name)
        if alias:
            name = alias.group(1)
        if name and version:
            deps.append(Dependency(name=name, version=version))
    return _unique(deps)


# ── Dispatch ──────────────────────────────────────────────────────────

def parse_manifest(filename: str, text: str) -> ParsedManifest:
    """Parse *text* according to *filename*; unknown names parse as package.json."""
    kind = detect_file_kind(filename)
    if kind == "npm-lock":
        return ParsedManifest(deps=parse_npm_lock(text))
    if kind == "pnpm-lock":
        return ParsedManifest(deps=parse_pnpm_lock(text))
    return parse_package_json(text)


def parse_pasted(text: str) -> ParsedManifest:
    """Guess the format of pasted manifest text."""
    stripped = text.lstrip()
    if not stripped.startswith("{"):
        return ParsedManifest(deps=parse_pnpm_lock(text))
    data = _load_json(text)
    if "lockfileVersion" in data:
        return ParsedManifest(deps=parse_npm_lock(text))
    return parse_package_json(text)
