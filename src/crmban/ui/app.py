"""Main Textual application for crmban."""

from __future__ import annotations

from typing import Any

from textual.app import App

from crmban.host import Host
from crmban.overlay import OverlayController
from crmban.settings import api_base_url
from crmban.store import BoardStore
from crmban.ui.board import BoardScreen
from crmban.ui.host import TerminalHost
from crmban.webapi import WebApiClient


class CrmbanApp(App):
    """Kanban board TUI over Dataverse records."""

    CSS = """
    Tooltip {
        padding: 0 1;
        margin: 0;
    }
    """

    TITLE = "crmban"
    BINDINGS = [("ctrl+q", "quit", "Quit")]

    def __init__(
        self,
        settings: dict[str, Any],
        client: WebApiClient | None = None,
        host: Host | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings
        self.store = BoardStore()
        self.client = client or WebApiClient(
            api_base_url(settings),
            token=settings.get("token", ""),
            timeout=settings.get("timeout", 30.0),
        )
        self.host = host or TerminalHost(self, self.store, self.client, settings["url"], settings.get("user_id", ""))
        self.overlay = OverlayController(self.store, self.client, self.host)

    def on_mount(self) -> None:
        self.push_screen(BoardScreen(self.store, self.overlay, org_url=self.settings.get("url", "")))

    async def action_quit(self) -> None:
        """Close the HTTP session and quit."""
        await self.client.aclose()
        self.exit()
