"""Results screen: score banner, license summary, package table and issue details."""

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Label,
    Markdown,
    Static,
    TabbedContent,
    TabPane,
)

from dep_inspector.models import IssueLevel, PackageResult, Report
from dep_inspector.versions import describe_range

SCORE_BLURBS = {
    "A": "No warnings or critical issues found.",
    "B": "Warnings found. Review before shipping.",
    "C": "Critical issues found. Upgrade affected packages.",
}


class ResultsScreen(Screen):
    """Report display with Overview / Packages / Licenses tabs."""

    CSS = """
    ResultsScreen {
        layout: vertical;
    }
    #results-header {
        height: 3;
        background: $primary;
        color: $text;
        text-align: center;
        padding: 1 2;
        text-style: bold;
    }
    #results-header.score-B {
        background: $warning;
    }
    #results-header.score-C {
        background: $error;
    }
    .section-title {
        text-style: bold;
        margin: 1 0;
        color: $secondary;
    }
    .notice {
        color: $warning;
        margin: 0 0 1 0;
    }
    #packages-table {
        height: auto;
        max-height: 20;
        margin: 1 0;
    }
    .issue-card {
        border: round $warning;
        padding: 0 2;
        margin: 1 0;
        background: $surface;
        height: auto;
    }
    .issue-card.critical {
        border: round $error;
    }
    #fix-btn-row {
        height: 4;
        margin: 1 0;
        align: center middle;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("b", "go_back", "Back"),
        ("c", "copy_fixes", "Copy fixes"),
    ]

    def __init__(self, report: Report, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.report = report

    def compose(self) -> ComposeResult:
        r = self.report
        yield Header(show_clock=True)
        yield Static(
            f"  Score {r.score}  ·  {r.analyzed_count} packages  ·  {SCORE_BLURBS[r.score]}  ",
            id="results-header",
            classes=f"score-{r.score}",
        )
        with TabbedContent("📊 Overview", "📦 Packages", "📜 Licenses"):
            with TabPane("📊 Overview"):
                yield from self._compose_overview()
            with TabPane("📦 Packages"):
                yield from self._compose_packages()
            with TabPane("📜 Licenses"):
                yield from self._compose_licenses()
        yield Footer()

    # ── Overview tab ──────────────────────────────────────────────────────

    def _compose_overview(self) -> ComposeResult:
        r = self.report
        with VerticalScroll():
            yield Static("SUMMARY", classes="section-title")
            yield Label(
                f"🔴 Critical: {r.critical_count}  ·  "
                f"🟡 Warnings: {r.warning_count}  ·  "
                f"🔵 Info: {r.info_count}"
            )
            yield Label(f"Analyzed {r.analyzed_count} of {r.total_input_count} input entries")
            if r.is_limited:
                yield Label(
                    "⚠ Large input: only the first unique packages were analyzed.",
                    classes="notice",
                )
            if r.advisory_source == "fallback":
                yield Label(
                    "⚠ Advisory service unreachable: vulnerabilities come from the "
                    "bundled advisory list only.",
                    classes="notice",
                )

            flagged = [p for p in r.results if p.count(IssueLevel.critical) or p.count(IssueLevel.warning)]
            yield Static("NEEDS ATTENTION", classes="section-title")
            if not flagged:
                yield Markdown("> _Nothing above info level._")
            for pkg in flagged:
                yield from self._compose_package_card(pkg)

            if r.fixes():
                with Horizontal(id="fix-btn-row"):
                    yield Button(
                        f"📋  Copy {len(r.fixes())} fixes",
                        id="copy-fixes-btn",
                        variant="primary",
                    )

    def _compose_package_card(self, pkg: PackageResult) -> ComposeResult:
        worst = "critical" if pkg.count(IssueLevel.critical) else ""
        md = f"**{pkg.spec}**  ·  {pkg.license}"
        if pkg.latest_version and pkg.latest_version != pkg.version:
            md += f"  ·  latest `{pkg.latest_version}`"
        if pkg.requested_range:
            info = describe_range(pkg.requested_range)
            md += f"\n\nRange `{pkg.requested_range}`: {info.description} (risk: {info.risk})"
        for issue in pkg.issues:
            md += f"\n\n{issue.display}"
            if issue.fix:
                md += f"  ✅ `{issue.fix}`"
        with Vertical(classes=f"issue-card {worst}".strip()):
            yield Markdown(md)

    # ── Packages tab ──────────────────────────────────────────────────────

    def _compose_packages(self) -> ComposeResult:
        with VerticalScroll():
            yield Static("ALL PACKAGES", classes="section-title")
            if not self.report.results:
                yield Markdown("> _No packages analyzed._")
                return
            table = DataTable(id="packages-table")
            table.add_columns("Package", "Version", "Latest", "License", "Crit", "Warn", "Info")
            for pkg in self.report.results:
                table.add_row(
                    pkg.name,
                    pkg.version,
                    pkg.latest_version or "—",
                    pkg.license,
                    str(pkg.count(IssueLevel.critical)),
                    str(pkg.count(IssueLevel.warning)),
                    str(pkg.count(IssueLevel.info)),
                )
            yield table

    # ── Licenses tab ──────────────────────────────────────────────────────

    def _compose_licenses(self) -> ComposeResult:
        r = self.report
        with VerticalScroll():
            title = "LICENSE SUMMARY"
            if r.project_license:
                title += f" (project: {r.project_license})"
            yield Static(title, classes="section-title")
            if not r.top_licenses:
                yield Markdown("> _No license data available._")
                return
            table = DataTable()
            table.add_columns("License", "Packages")
            for row in r.top_licenses:
                table.add_row(row.license, str(row.count))
            yield table

    # ── Actions ───────────────────────────────────────────────────────────

    def action_go_back(self) -> None:
        self.app.pop_screen()

    def action_copy_fixes(self) -> None:
        fixes = self.report.all_fixes()
        if not fixes:
            self.notify("No fixes to copy.", severity="warning")
            return
        self.app.copy_to_clipboard(fixes)
        self.notify(f"Copied {len(self.report.fixes())} fixes to the clipboard.")

    @on(Button.Pressed, "#copy-fixes-btn")
    def on_copy_fixes_btn(self) -> None:
        self.action_copy_fixes()
