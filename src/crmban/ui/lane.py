"""Lane and card widgets for the crmban board."""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.message import Message
from textual.widgets import Rule, Static

from crmban.models import BoardLane, CardForm, Record

MAX_CARD_FIELDS = 4


def build_card_text(record: Record, fields: list[str]) -> Text:
    """Card body: record name, then the form's fields that have values."""
    text = Text(record.name or record.id, style="bold")
    shown = 0
    for field in fields:
        if shown >= MAX_CARD_FIELDS:
            break
        value = record.formatted(field)
        if not value or value == record.name:
            continue
        text.append("\n")
        text.append(f"{field}: ", style="dim")
        text.append(value)
        shown += 1
    return text


class CardWidget(Static, can_focus=True):
    """One record on the board."""

    BINDINGS = [
        ("enter", "open_card"),
        ("space", "open_card"),
    ]

    class Opened(Message):
        """Posted when the card's record should open in the overlay."""

        def __init__(self, record: Record) -> None:
            super().__init__()
            self.record = record

    DEFAULT_CSS = """
    CardWidget {
        width: 100%;
        height: auto;
        padding: 0 1;
        margin-bottom: 1;
        background: $surface;
    }
    CardWidget:focus {
        background: $primary;
    }
    """

    def __init__(self, record: Record, fields: list[str]) -> None:
        super().__init__(build_card_text(record, fields))
        self.record = record

    def action_open_card(self) -> None:
        self.post_message(self.Opened(self.record))

    def on_click(self, event) -> None:
        event.stop()
        self.action_open_card()


class LaneWidget(VerticalScroll):
    """A single lane of cards."""

    DEFAULT_CSS = """
    LaneWidget {
        width: 1fr;
        height: 100%;
        min-width: 25;
        max-width: 32;
        padding: 0 1;
        border-right: tall $surface-lighten-1;
    }
    LaneWidget > .lane-title {
        width: 100%;
        text-align: center;
        text-style: bold;
    }
    LaneWidget > Rule.-horizontal {
        margin: 0;
    }
    """

    def __init__(self, lane: BoardLane, form: CardForm | None = None) -> None:
        super().__init__(id=f"lane-{lane.key}")
        self.lane = lane
        self.fields = form.card_fields() if form else []

    def compose(self) -> ComposeResult:
        yield Static(f"{self.lane.title} ({len(self.lane.records)})", classes="lane-title")
        yield Rule()
        for record in self.lane.records:
            yield CardWidget(record, self.fields)
