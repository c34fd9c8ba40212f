"""Home screen: manifest input and project license."""

from pathlib import Path

from textual import on
from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, Static, TextArea

from dep_inspector.lockfile import LockfileError, ParsedManifest, parse_manifest, parse_pasted


class HomeScreen(Screen):
    """Initial screen to collect a manifest and the project license."""

    CSS = """
    HomeScreen {
        align: center middle;
    }
    #home-container {
        width: 80;
        height: auto;
        padding: 1 4;
        border: round $primary;
        background: $surface;
    }
    #title-art {
        text-align: center;
        color: $accent;
    }
    #subtitle {
        text-align: center;
        color: $text-muted;
        margin-bottom: 1;
    }
    .field-label {
        margin-top: 1;
        color: $text;
    }
    #manifest-text {
        height: 10;
    }
    #start-btn {
        margin-top: 2;
        width: 100%;
    }
    #error-label {
        color: $error;
        text-align: center;
        margin-top: 1;
    }
    """

    TITLE_ART = """
  ╭──────────────────────────────────────────────────╮
  │                                                  │
  │          📦  D E P   I N S P E C T O R          │
  │                                                  │
  │       Risk-check your npm dependency set         │
  ╰──────────────────────────────────────────────────╯
"""

    def __init__(self, initial_path: str = "", **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self._initial_path = initial_path

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="home-container"):
                yield Static(self.TITLE_ART, id="title-art")
                yield Static(
                    "Vulnerabilities · Licenses · Typosquats · Updates",
                    id="subtitle",
                )
                yield Label(
                    "Manifest file (package.json, package-lock.json, pnpm-lock.yaml):",
                    classes="field-label",
                )
                yield Input(
                    value=self._initial_path,
                    placeholder="e.g. ./package-lock.json",
                    id="path-input",
                )
                yield Label("… or paste its contents:", classes="field-label")
                yield TextArea(id="manifest-text")
                yield Label("Project license (optional):", classes="field-label")
                yield Input(placeholder="e.g. MIT", id="license-input")
                yield Button("▶  Analyze", id="start-btn", variant="primary")
                yield Label("", id="error-label")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#path-input", Input).focus()

    def _read_manifest(self) -> ParsedManifest:
        path_value = self.query_one("#path-input", Input).value.strip()
        if path_value:
            path = Path(path_value).expanduser()
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise LockfileError(f"cannot read {path}: {exc.strerror}") from exc
            return parse_manifest(path.name, text)

        pasted = self.query_one("#manifest-text", TextArea).text
        if not pasted.strip():
            raise LockfileError("Enter a manifest path or paste its contents")
        return parse_pasted(pasted)

    @on(Button.Pressed, "#start-btn")
    def start_analysis(self) -> None:
        error_label = self.query_one("#error-label", Label)
        try:
            manifest = self._read_manifest()
        except LockfileError as exc:
            error_label.update(f"⚠  {exc}")
            return

        if not manifest.deps:
            error_label.update("⚠  No dependencies found in that manifest")
            return

        error_label.update("")
        license_value = self.query_one("#license-input", Input).value.strip()
        project_license = license_value or manifest.project_license
        self.app.run_analysis(manifest.deps, project_license)  # type: ignore[attr-defined]

    @on(Input.Submitted, "#path-input")
    def submit_on_enter(self) -> None:
        self.start_analysis()
