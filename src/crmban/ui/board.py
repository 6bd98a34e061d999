"""Board screen showing lanes of records."""

from __future__ import annotations

import logging
from typing import Awaitable

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import Click
from textual.screen import ModalScreen, Screen
from textual.widgets import Button, Footer, OptionList, Select, Static
from textual.widgets.option_list import Option as ListOption

from crmban.board import initialize_board, refresh, select_form, select_view, toggle_state_filter, visible_lanes
from crmban.errors import CrmbanError
from crmban.overlay import OverlayController
from crmban.store import BoardState, BoardStore
from crmban.ui.lane import CardWidget, LaneWidget
from crmban.ui.overlay import CLOSE_AND_REFRESH, OPEN_IN_WINDOW, SideBySideScreen
from crmban.ui.progress import ProgressWidget
from crmban.ui.watcher import StoreWatcherMixin

logger = logging.getLogger(__name__)

ICON_REFRESH = "⟳"
ALL_STATES = "All states"


def state_filter_title(state: BoardState) -> str:
    if not state.state_filters:
        return ALL_STATES
    return "|".join(o.label for o in state.state_filters)


class StateFilterMenu(ModalScreen[int | None]):
    """Pick a state option to toggle in the filter."""

    DEFAULT_CSS = """
    StateFilterMenu {
        align: center middle;
    }
    StateFilterMenu > OptionList {
        width: 40;
        height: auto;
        max-height: 80%;
        border: thick $primary;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, state: BoardState) -> None:
        super().__init__()
        self.board_state = state

    def compose(self) -> ComposeResult:
        selected = {o.value for o in self.board_state.state_filters}
        options = self.board_state.state_metadata.option_set if self.board_state.state_metadata else ()
        yield OptionList(
            *(
                ListOption(f"{'☑' if o.value in selected else '☐'} {o.label}", id=str(o.value))
                for o in options or ()
            )
        )

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.dismiss(int(event.option.id))

    def action_cancel(self) -> None:
        self.dismiss(None)


class BoardScreen(StoreWatcherMixin, Screen):
    """Main board screen: selectors in the header, lanes below."""

    DEFAULT_CSS = """
    #board-header {
        height: 3;
        width: 100%;
    }
    #board-header Select {
        width: 30;
    }
    #state-filter {
        width: auto;
        height: 3;
        padding: 1 1;
    }
    #state-filter:hover {
        background: $primary-darken-2;
    }
    #board-header Button {
        margin-left: 1;
        min-width: 5;
    }
    #lanes {
        height: 1fr;
        overflow-x: auto;
    }
    """

    BINDINGS = [
        ("ctrl+r", "refresh", "Refresh"),
        ("ctrl+n", "create", "Create"),
        ("ctrl+f", "state_filter", "States"),
    ]

    def __init__(self, store: BoardStore, overlay: OverlayController, org_url: str = "") -> None:
        self._init_watcher()
        super().__init__()
        self.store = store
        self.overlay = overlay
        self.org_url = org_url
        self._overlay_screen: SideBySideScreen | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="board-header"):
            yield Select([], prompt="Select view", id="view-select")
            yield Select([], prompt="Select form", id="form-select")
            yield Static(ALL_STATES, id="state-filter")
            yield ProgressWidget(self.store, id="progress")
            yield Button("Create New", id="create")
            yield Button(ICON_REFRESH, id="refresh")
        yield Horizontal(id="lanes")
        yield Footer()

    def on_mount(self) -> None:
        for key in ("views", "selected_view"):
            self.store_watch(self.store, key, self._on_views_changed)
        for key in ("forms", "selected_form"):
            self.store_watch(self.store, key, self._on_forms_changed)
        for key in ("board_data", "state_filters", "selected_form"):
            self.store_watch(self.store, key, self._on_lanes_changed)
        self.store_watch(self.store, "config", self._on_config_changed)
        self.store_watch(self.store, "selected_record", self._on_selected_record_changed)
        state = self.store.state
        self._on_config_changed(self.store, "config", None, state.config)
        self._on_views_changed(self.store, "views", None, state.views)
        self._on_forms_changed(self.store, "forms", None, state.forms)
        self._on_lanes_changed(self.store, "board_data", None, state.board_data)
        if state.config is None:
            self._run(initialize_board(self.store, self.overlay.client, self.overlay.host))

    # -- background work --

    def _run(self, work: Awaitable) -> None:
        self.run_worker(self._guarded(work), group="board")

    async def _guarded(self, work: Awaitable) -> None:
        try:
            await work
        except CrmbanError as exc:
            # Superseded refreshes fail quietly; only flash what the store surfaced
            if self.store.state.error == exc.display:
                self.notify(exc.display, severity="error", timeout=8)

    # -- store → widgets --

    def _on_config_changed(self, store, key, old, new) -> None:
        config = self.store.state.config
        self.query_one("#create", Button).display = bool(config and config.show_create_button)
        self.query_one("#state-filter", Static).display = bool(config and config.swim_lane_source == "statuscode")

    def _on_views_changed(self, store, key, old, new) -> None:
        state = self.store.state
        select = self.query_one("#view-select", Select)
        select.set_options((v.name, v.id) for v in state.views)
        if state.selected_view is not None:
            select.value = state.selected_view.id

    def _on_forms_changed(self, store, key, old, new) -> None:
        state = self.store.state
        select = self.query_one("#form-select", Select)
        select.set_options((f.name, f.id) for f in state.forms)
        if state.selected_form is not None:
            select.value = state.selected_form.id

    def _on_lanes_changed(self, store, key, old, new) -> None:
        self.query_one("#state-filter", Static).update(state_filter_title(self.store.state))
        self.call_later(self._rebuild_lanes)

    async def _rebuild_lanes(self) -> None:
        state = self.store.state
        container = self.query_one("#lanes", Horizontal)
        await container.remove_children()
        await container.mount_all(LaneWidget(lane, state.selected_form) for lane in visible_lanes(state))

    def _on_selected_record_changed(self, store, key, old, new) -> None:
        screen, self._overlay_screen = self._overlay_screen, None
        if screen is not None and screen.is_current:
            self.app.pop_screen()
        if new is not None:
            config = self.store.state.config
            self._overlay_screen = SideBySideScreen(new, self.org_url, config.app_id if config else "")
            self.app.push_screen(self._overlay_screen, self._on_overlay_closed)

    def _on_overlay_closed(self, choice: str | None) -> None:
        self._overlay_screen = None
        if choice == OPEN_IN_WINDOW:
            self._run(self._open_in_window())
        elif choice == CLOSE_AND_REFRESH:
            self._run(self.overlay.close_and_refresh())
        else:
            self.overlay.close_overlay()

    async def _open_in_window(self) -> None:
        await self.overlay.open_in_new_window()
        self.overlay.close_overlay()

    # -- widgets → store --

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        if not isinstance(event.value, str):
            return
        state = self.store.state
        if event.select.id == "view-select":
            if state.selected_view is None or state.selected_view.id != event.value:
                self._run(select_view(self.store, self.overlay.client, event.value))
        elif event.select.id == "form-select":
            if state.selected_form is None or state.selected_form.id != event.value:
                select_form(self.store, event.value)

    def on_card_widget_opened(self, event: CardWidget.Opened) -> None:
        event.stop()
        self.overlay.open_record(event.record)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "refresh":
            self.action_refresh()
        elif event.button.id == "create":
            self.action_create()

    def on_click(self, event: Click) -> None:
        state_filter = self.query_one("#state-filter", Static)
        if state_filter.display and state_filter.region.contains(event.screen_x, event.screen_y):
            event.stop()
            self.action_state_filter()

    def action_refresh(self) -> None:
        if self.store.state.config is None:
            self._run(initialize_board(self.store, self.overlay.client, self.overlay.host))
        else:
            self._run(refresh(self.store, self.overlay.client))

    def action_create(self) -> None:
        config = self.store.state.config
        if config and config.show_create_button:
            self._run(self.overlay.create_record())

    def action_state_filter(self) -> None:
        if self.store.state.state_metadata is None:
            return
        self.app.push_screen(StateFilterMenu(self.store.state), self._on_state_filter_chosen)

    def _on_state_filter_chosen(self, value: int | None) -> None:
        if value is not None:
            toggle_state_filter(self.store, value)
