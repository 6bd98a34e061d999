"""Tests for card text and lane widgets."""

import pytest
from textual.app import App

from crmban.models import BoardLane, CardForm, Option, Record
from crmban.ui.lane import MAX_CARD_FIELDS, CardWidget, LaneWidget, build_card_text

from tests.conftest import FORM_XML


def _record(**attributes):
    return Record("r1", "incident", "Printer on fire", attributes)


def test_card_text_uses_formatted_values():
    record = _record(
        title="Printer on fire",
        prioritycode=1,
        **{"prioritycode@OData.Community.Display.V1.FormattedValue": "High"},
    )

    text = build_card_text(record, ["title", "prioritycode"])

    assert text.plain == "Printer on fire\nprioritycode: High"


def test_card_text_skips_empty_fields():
    text = build_card_text(_record(description=None), ["description", "missing"])
    assert text.plain == "Printer on fire"


def test_card_text_limits_field_count():
    fields = [f"f{i}" for i in range(MAX_CARD_FIELDS + 3)]
    text = build_card_text(_record(**{f: "x" for f in fields}), fields)
    assert len(text.plain.splitlines()) == MAX_CARD_FIELDS + 1


def test_card_text_falls_back_to_id():
    assert build_card_text(Record("r9", "incident"), []).plain == "r9"


class LaneApp(App):
    def __init__(self, lane):
        super().__init__()
        self.lane = lane
        self.opened = []

    def compose(self):
        yield LaneWidget(self.lane, CardForm("form-1", "Case Card", FORM_XML))

    def on_card_widget_opened(self, event: CardWidget.Opened) -> None:
        self.opened.append(event.record)


@pytest.mark.asyncio
async def test_lane_widget_shows_cards():
    lane = BoardLane(Option(1, "New"), (_record(), Record("r2", "incident", "Login broken")))
    app = LaneApp(lane)
    async with app.run_test():
        widget = app.query_one(LaneWidget)
        assert widget.id == "lane-1"
        assert widget.fields == ["title", "prioritycode"]
        assert len(app.query(CardWidget)) == 2


@pytest.mark.asyncio
async def test_enter_opens_card():
    lane = BoardLane(None, (_record(),))
    app = LaneApp(lane)
    async with app.run_test() as pilot:
        app.query_one("#lane-fallback", LaneWidget)
        app.query_one(CardWidget).focus()
        await pilot.press("enter")
        await pilot.pause()
        assert [r.id for r in app.opened] == ["r1"]
