"""Host capabilities for the terminal front end."""

from __future__ import annotations

import asyncio
import logging
import webbrowser

from textual.app import App

from crmban.host import FormSpec, record_url
from crmban.store import BoardStore
from crmban.ui.overlay import EditorPendingScreen
from crmban.webapi import WebApiClient

logger = logging.getLogger(__name__)


class TerminalHost:
    """Opens records in the system browser and identifies the user.

    The user id comes from settings when given, otherwise from WhoAmI.
    """

    def __init__(self, app: App, store: BoardStore, client: WebApiClient, org_url: str, user_id: str = "") -> None:
        self.app = app
        self.store = store
        self.client = client
        self.org_url = org_url
        self.user_id = user_id

    async def get_current_user_id(self) -> str:
        if self.user_id:
            return self.user_id
        return await self.client.who_am_i()

    async def open_form(self, spec: FormSpec) -> None:
        config = self.store.state.config
        url = record_url(self.org_url, spec, config.app_id if config else "", navbar=spec.display_mode == "window")
        logger.info("opening editor %s", url)
        opened = await asyncio.to_thread(webbrowser.open, url)
        if not opened:
            self.app.notify(f"Open {url} in a browser", timeout=10)
        if not spec.create_mode:
            return

        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def _finished(result: None) -> None:
            if not done.done():
                done.set_result(None)

        self.app.push_screen(EditorPendingScreen(url), _finished)
        await done
