"""Loading screen: per-stage progress of the enrichment lookups."""

from textual.app import ComposeResult
from textual.containers import Center, Horizontal, Vertical
from textual.css.query import NoMatches
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, ProgressBar, Static

from dep_inspector.analyzer import STAGE_ADVISORIES, STAGE_DIST_TAGS, STAGE_METADATA, STAGES

STAGE_TITLES = {
    STAGE_DIST_TAGS: "Latest versions",
    STAGE_METADATA: "Package metadata",
    STAGE_ADVISORIES: "Advisory batches",
}


class LoadingScreen(Screen):
    """Shows how far each lookup stage has got while the analysis runs."""

    BINDINGS = [
        ("b", "go_back", "Cancel"),
    ]

    CSS = """
    LoadingScreen {
        align: center middle;
    }
    #loading-container {
        width: 76;
        height: auto;
        padding: 1 3;
        border: round $primary;
        background: $surface;
    }
    #loading-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    .stage-row {
        height: 1;
        margin: 1 0 0 0;
    }
    .stage-name {
        width: 20;
    }
    .stage-count {
        width: 10;
        text-align: right;
    }
    #status-label {
        margin-top: 2;
        color: $text-muted;
    }
    #hint-label {
        color: $warning;
    }
    """

    def __init__(self, package_count: int = 0, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.package_count = package_count
        self.stages: dict[str, tuple[int, int]] = {}

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="loading-container"):
                yield Static(
                    f"📦  Checking {self.package_count} dependency entries …", id="loading-title"
                )
                for stage in STAGES:
                    with Horizontal(classes="stage-row"):
                        yield Label(STAGE_TITLES[stage], classes="stage-name")
                        yield ProgressBar(
                            total=None,
                            show_eta=False,
                            show_percentage=False,
                            id=f"bar-{stage}",
                        )
                        yield Label("", id=f"count-{stage}", classes="stage-count")
                yield Label("Starting lookups …", id="status-label")
                yield Label("", id="hint-label")
        yield Footer()

    def on_mount(self) -> None:
        # Stages reported before the widgets existed.
        for stage in self.stages:
            self._render_stage(stage)

    @property
    def overall(self) -> float:
        """Fraction of all known lookups that have finished."""
        total = sum(t for _, t in self.stages.values())
        if not total:
            return 0.0
        return sum(d for d, _ in self.stages.values()) / total

    def update_stage(self, stage: str, done: int, total: int) -> None:
        self.stages[stage] = (done, total)
        self._render_stage(stage)

    def _render_stage(self, stage: str) -> None:
        done, total = self.stages[stage]
        try:
            self.query_one(f"#bar-{stage}", ProgressBar).update(total=max(total, 1), progress=done)
            self.query_one(f"#count-{stage}", Label).update(f"{done}/{total}")
        except NoMatches:
            pass  # not mounted yet, or already dismissed

    def update_status(self, message: str) -> None:
        try:
            self.query_one("#status-label", Label).update(message)
        except NoMatches:
            pass

    def show_error(self, message: str) -> None:
        self.update_status(f"❌ {message}")
        try:
            self.query_one("#hint-label", Label).update(
                "Press [b]  b  [/b] to go back and try again."
            )
        except NoMatches:
            pass

    def action_go_back(self) -> None:
        """Cancel the running analysis and return to the home screen."""
        self.app.cancel_analysis()  # type: ignore[attr-defined]
        self.app.pop_screen()
