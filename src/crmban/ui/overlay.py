"""Side-by-side record overlay and the external editor wait screen."""

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from crmban.host import FormSpec, record_url
from crmban.models import Record

CLOSE = "close"
CLOSE_AND_REFRESH = "close-refresh"
OPEN_IN_WINDOW = "open-window"


def record_lines(record: Record) -> list[str]:
    """Plain attribute lines for the overlay, skipping OData annotations."""
    lines = []
    for key in sorted(record.attributes):
        if "@" in key or (key.startswith("_") and key.endswith("_value")):
            continue
        lines.append(f"{key}: {record.formatted(key)}")
    return lines


class SideBySideScreen(ModalScreen[str]):
    """Overlay showing the selected record beside the board.

    Dismisses with the id of the pressed button; the board screen turns
    that into the matching overlay controller call.
    """

    DEFAULT_CSS = """
    SideBySideScreen {
        align: right middle;
        background: rgba(0, 0, 0, 0.4);
    }
    #overlay-container {
        width: 60%;
        height: 100%;
        background: $surface;
        border-left: thick $primary;
    }
    #overlay-title {
        width: 100%;
        height: 1;
        background: $primary;
        padding: 0 1;
        text-style: bold;
    }
    #overlay-url {
        color: $text-muted;
        padding: 0 1;
    }
    #overlay-fields {
        height: 1fr;
        padding: 1;
    }
    #overlay-buttons {
        height: 3;
        align: center middle;
    }
    #overlay-buttons Button {
        margin: 0 1;
    }
    """

    BINDINGS = [
        ("escape", "close", "Close"),
        ("ctrl+r", "close_and_refresh", "Close and refresh"),
    ]

    def __init__(self, record: Record, org_url: str = "", app_id: str = "") -> None:
        super().__init__()
        self.record = record
        self.url = record_url(org_url, FormSpec.for_record(record), app_id) if org_url else ""

    def compose(self) -> ComposeResult:
        with Vertical(id="overlay-container"):
            yield Static(f"{self.record.entity_type}: {self.record.name or self.record.id}", id="overlay-title")
            yield Static(self.url, id="overlay-url")
            with VerticalScroll(id="overlay-fields"):
                yield Static("\n".join(record_lines(self.record)))
            with Horizontal(id="overlay-buttons"):
                yield Button("Close", id=CLOSE)
                yield Button("Close and refresh", id=CLOSE_AND_REFRESH, variant="primary")
                yield Button("Open in new window", id=OPEN_IN_WINDOW)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(event.button.id)

    def action_close(self) -> None:
        self.dismiss(CLOSE)

    def action_close_and_refresh(self) -> None:
        self.dismiss(CLOSE_AND_REFRESH)


class EditorPendingScreen(ModalScreen[None]):
    """Waits while the user works in the external editor."""

    DEFAULT_CSS = """
    EditorPendingScreen {
        align: center middle;
    }
    #dialog {
        width: 70;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    #message {
        text-align: center;
        margin-bottom: 1;
    }
    #buttons {
        width: 100%;
        height: 3;
        align: center middle;
    }
    """

    BINDINGS = [("escape", "done", "Done")]

    def __init__(self, url: str) -> None:
        super().__init__()
        self.url = url

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static(f"The record editor was opened at\n{self.url}\nPress Done when you have saved.", id="message")
            with Horizontal(id="buttons"):
                yield Button("Done", id="done", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(None)

    def action_done(self) -> None:
        self.dismiss(None)
