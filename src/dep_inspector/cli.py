"""CLI entry point for dep-inspector."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from pydantic import ValidationError

from dep_inspector.lockfile import LockfileError, parse_manifest

if TYPE_CHECKING:
    from dep_inspector.config import AnalyzerSettings
    from dep_inspector.models import Report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dep-inspector",
        description="Assess the security and maintenance risk of npm dependencies.",
    )
    parser.add_argument(
        "file",
        nargs="?",
        help="package.json, package-lock.json or pnpm-lock.yaml to analyze",
    )
    parser.add_argument(
        "--license",
        dest="project_license",
        help="project license (defaults to the manifest's license field)",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json", action="store_true", help="print the report as JSON instead of opening the TUI"
    )
    output.add_argument(
        "--fixes", action="store_true", help="print only the suggested fix specs"
    )
    return parser


async def _analyze_file(
    path: Path, project_license: Optional[str], settings: "AnalyzerSettings"
) -> "Report":
    from dep_inspector.analyzer import Analyzer

    manifest = parse_manifest(path.name, path.read_text(encoding="utf-8"))
    async with Analyzer(settings) as analyzer:
        return await analyzer.analyze(
            manifest.deps, project_license or manifest.project_license
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run headless with --json/--fixes, otherwise launch the TUI."""
    from dotenv import load_dotenv

    load_dotenv()  # Load .env file (e.g. DEP_INSPECTOR_LOG_LEVEL)

    from dep_inspector.config import AnalyzerSettings
    from dep_inspector.logging_config import setup_logging

    args = build_parser().parse_args(argv)
    try:
        settings = AnalyzerSettings.from_env()
    except ValidationError as e:
        print(f"dep-inspector: invalid configuration:\n{e}", file=sys.stderr)
        return 2

    headless = args.json or args.fixes
    setup_logging(settings, tui=not headless)

    if not headless:
        from dep_inspector.app import DepInspectorApp

        app = DepInspectorApp(settings, initial_path=args.file or "")
        app.run()
        return 0

    if not args.file:
        print("dep-inspector: a manifest file is required with --json/--fixes", file=sys.stderr)
        return 2

    try:
        report = asyncio.run(_analyze_file(Path(args.file), args.project_license, settings))
    except (OSError, LockfileError) as e:
        print(f"dep-inspector: {e}", file=sys.stderr)
        return 2

    if args.fixes:
        print(report.all_fixes())
    else:
        print(report.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
