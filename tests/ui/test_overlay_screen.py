"""Tests for the side-by-side record overlay."""

import pytest
from textual.app import App

from crmban.models import Record
from crmban.ui.overlay import CLOSE, CLOSE_AND_REFRESH, OPEN_IN_WINDOW, SideBySideScreen, record_lines

RECORD = Record(
    "r1",
    "incident",
    "Printer on fire",
    {
        "title": "Printer on fire",
        "prioritycode": 1,
        "prioritycode@OData.Community.Display.V1.FormattedValue": "High",
        "_customerid_value": "c1",
        "@odata.etag": 'W/"1"',
    },
)


def test_record_lines_skip_annotations_and_lookups():
    assert record_lines(RECORD) == ["prioritycode: High", "title: Printer on fire"]


class OverlayApp(App):
    def __init__(self):
        super().__init__()
        self.results = []

    def on_mount(self):
        self.push_screen(SideBySideScreen(RECORD, "https://org.example.com", "app-1"), self.results.append)


def test_overlay_url_points_at_record():
    screen = SideBySideScreen(RECORD, "https://org.example.com", "app-1")
    assert screen.url.startswith("https://org.example.com/main.aspx?app=app-1&")
    assert "id=r1" in screen.url
    assert SideBySideScreen(RECORD).url == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "key, expected",
    [("escape", CLOSE), ("ctrl+r", CLOSE_AND_REFRESH)],
)
async def test_keys_dismiss(key, expected):
    app = OverlayApp()
    async with app.run_test() as pilot:
        await pilot.press(key)
        await pilot.pause()
        assert app.results == [expected]


@pytest.mark.asyncio
@pytest.mark.parametrize("button", [CLOSE, CLOSE_AND_REFRESH, OPEN_IN_WINDOW])
async def test_buttons_dismiss_with_their_id(button):
    app = OverlayApp()
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.click(f"#{button}")
        await pilot.pause()
        assert app.results == [button]
