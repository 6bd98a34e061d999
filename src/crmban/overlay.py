"""Side-by-side record editor lifecycle."""

from __future__ import annotations

from crmban.board import refresh
from crmban.host import FormSpec, Host
from crmban.models import BoardLane, Record
from crmban.store import Action, BoardStore
from crmban.webapi import WebApiClient


class OverlayController:
    """Opens and closes the external editor over the board.

    The board never reads the editor's state. Edits become visible only
    through a refresh after the editor closes.
    """

    def __init__(self, store: BoardStore, client: WebApiClient, host: Host) -> None:
        self.store = store
        self.client = client
        self.host = host

    @property
    def is_open(self) -> bool:
        return self.store.state.selected_record is not None

    def open_record(self, record: Record) -> None:
        self.store.dispatch(Action("setSelectedRecord", record))

    def close_overlay(self) -> None:
        self.store.dispatch(Action("setSelectedRecord", None))

    async def close_and_refresh(self) -> list[BoardLane]:
        """Close the overlay, then re-aggregate with the selected view."""
        self.close_overlay()
        return await refresh(self.store, self.client)

    async def create_record(self) -> list[BoardLane]:
        """Open the editor in create mode and refresh once it is done."""
        config = self.store.state.config
        if config is None:
            raise RuntimeError("board is not initialized")
        await self.host.open_form(FormSpec.for_create(config.entity_name))
        return await refresh(self.store, self.client)

    async def open_in_new_window(self) -> None:
        """Open the selected record in a separate editor window."""
        record = self.store.state.selected_record
        if record is None:
            return
        await self.host.open_form(FormSpec.for_record(record, display_mode="window"))
