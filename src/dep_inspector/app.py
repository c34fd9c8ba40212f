"""Main Textual TUI application for dep-inspector."""

from typing import Optional

import structlog
from textual.app import App
from textual.worker import Worker

from dep_inspector.analyzer import Analyzer
from dep_inspector.config import AnalyzerSettings
from dep_inspector.models import Dependency, Report
from dep_inspector.registry import RegistryCache
from dep_inspector.screens.home import HomeScreen
from dep_inspector.screens.loading import LoadingScreen
from dep_inspector.screens.results import ResultsScreen

log = structlog.get_logger("dep_inspector.app")


class DepInspectorApp(App):
    """TUI application for npm dependency risk analysis."""

    TITLE = "Dep Inspector"
    SUB_TITLE = "Vulnerabilities · Licenses · Typosquats · Updates"

    CSS = """
    Screen {
        background: $background;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        settings: Optional[AnalyzerSettings] = None,
        initial_path: str = "",
    ) -> None:
        super().__init__()
        self.settings = settings or AnalyzerSettings()
        self.cache = RegistryCache()  # reused across analyses in this session
        self._initial_path = initial_path
        self._worker: Optional[Worker] = None

    def on_mount(self) -> None:
        self.push_screen(HomeScreen(initial_path=self._initial_path))

    def run_analysis(
        self, deps: list[Dependency], project_license: Optional[str]
    ) -> None:
        """Kick off the analysis; called from HomeScreen."""
        loading = LoadingScreen(package_count=len(deps))
        self.push_screen(loading)

        async def _do_work() -> None:
            async with Analyzer(
                self.settings,
                cache=self.cache,
                on_status=loading.update_status,
                on_progress=loading.update_stage,
            ) as analyzer:
                try:
                    report = await analyzer.analyze(deps, project_license)
                except Exception as e:
                    log.error("app.analysis_failed", exc_info=True)
                    loading.show_error(f"Unexpected error: {e}")
                    return
            loading.update_status("Complete!")
            self._show_results(report)

        self._worker = self.run_worker(_do_work(), exclusive=True, group="analysis")

    def cancel_analysis(self) -> None:
        """Abort the in-flight analysis, if any."""
        if self._worker is not None and not self._worker.is_finished:
            self._worker.cancel()
        self._worker = None

    def _show_results(self, report: Report) -> None:
        """Replace loading screen with results."""
        if isinstance(self.screen, LoadingScreen):
            self.pop_screen()
        self.push_screen(ResultsScreen(report))
