"""Board orchestration: load, refresh and re-derive the board.

Each operation dispatches a progress message before awaiting remote work
and clears it afterwards. Failures are dispatched as a named error and
re-raised; lane data is only ever replaced by a completed aggregation.
"""

from __future__ import annotations

import logging
from typing import Any

from crmban.aggregate import aggregate
from crmban.catalog import list_forms, list_views
from crmban.configuration import load_board_configuration
from crmban.errors import CrmbanError
from crmban.guid import format_guid
from crmban.host import Host
from crmban.metadata import STATE_ATTRIBUTE, fetch_entity_metadata, resolve_attribute_metadata
from crmban.models import BoardLane, Record
from crmban.store import Action, BoardState, BoardStore
from crmban.webapi import WebApiClient

logger = logging.getLogger(__name__)


def _surface(store: BoardStore, exc: CrmbanError, generation: int | None = None) -> None:
    """Replace the progress indicator with a named failure message.

    Failures of superseded refreshes are only logged.
    """
    if not store.is_current(generation):
        logger.info("ignoring failure of superseded refresh %s: %s", generation, exc.display)
        return
    logger.warning("%s", exc.display)
    store.dispatch(Action("setError", exc.display))
    store.dispatch(Action("setProgressText", None))


async def initialize_board(store: BoardStore, client: WebApiClient, host: Host) -> None:
    """Run the full load sequence: user → config → metadata → views → forms → records.

    Stages run strictly in order since each needs the previous one's output.
    Nothing is dispatched to the store until every stage has succeeded, so a
    failure leaves the previous board (or none) in place.
    """
    try:
        store.dispatch(Action("setProgressText", "Retrieving user settings"))
        user_id = format_guid(await host.get_current_user_id())

        store.dispatch(Action("setProgressText", "Fetching configuration"))
        config = await load_board_configuration(client, user_id)

        store.dispatch(Action("setProgressText", "Fetching meta data"))
        metadata = await fetch_entity_metadata(client, config.entity_name)
        separator = await resolve_attribute_metadata(client, config.entity_name, config.swim_lane_source, metadata)
        state_metadata = await resolve_attribute_metadata(client, config.entity_name, STATE_ATTRIBUTE, metadata)

        store.dispatch(Action("setProgressText", "Fetching views"))
        views = await list_views(client, config.entity_name)

        store.dispatch(Action("setProgressText", "Fetching forms"))
        forms = await list_forms(client, config.entity_name)
    except CrmbanError as exc:
        _surface(store, exc)
        raise

    store.dispatch(Action("setConfig", config))
    store.dispatch(Action("setMetadata", metadata))
    store.dispatch(Action("setSeparatorMetadata", separator))
    store.dispatch(Action("setStateMetadata", state_metadata))
    store.dispatch(Action("setViews", views))
    store.dispatch(Action("setForms", forms))

    await refresh(store, client)


async def refresh(store: BoardStore, client: WebApiClient, fetch_query: str | None = None) -> list[BoardLane]:
    """Re-run the aggregation for fetch_query, or for the selected view.

    Returns the computed lanes. If another refresh was issued meanwhile,
    the lanes are returned but not dispatched.
    """
    state = store.state
    if state.config is None or state.separator_metadata is None:
        raise RuntimeError("board is not initialized")

    generation = store.next_generation()
    if fetch_query is None and state.selected_view is not None:
        fetch_query = state.selected_view.fetch_query
    if not fetch_query:
        # No view to query: the board is valid but empty
        store.dispatch(Action("setBoardData", [], generation=generation))
        store.dispatch(Action("setProgressText", None))
        return []

    store.dispatch(Action("setProgressText", "Fetching data"))
    try:
        lanes = await aggregate(client, fetch_query, state.config, state.separator_metadata, state.metadata)
    except CrmbanError as exc:
        _surface(store, exc, generation)
        raise

    if store.dispatch(Action("setBoardData", lanes, generation=generation)):
        store.dispatch(Action("setProgressText", None))
    return lanes


async def select_view(store: BoardStore, client: WebApiClient, view_id: str) -> list[BoardLane]:
    """Select a saved view and reload the lanes with its query.

    If the reload fails the previous view is selected again, so the
    selector keeps matching the lanes on screen.
    """
    view = next((v for v in store.state.views if v.id == view_id), None)
    if view is None:
        raise ValueError(f"unknown view {view_id}")
    previous = store.state.selected_view
    store.dispatch(Action("setSelectedView", view))
    try:
        return await refresh(store, client, view.fetch_query)
    except CrmbanError:
        if store.state.selected_view is view and previous in store.state.views:
            store.dispatch(Action("setSelectedView", previous))
        raise


def select_form(store: BoardStore, form_id: str) -> None:
    """Select the card form. Only card rendering changes; no data is fetched."""
    form = next((f for f in store.state.forms if f.id == form_id), None)
    if form is None:
        raise ValueError(f"unknown form {form_id}")
    store.dispatch(Action("setSelectedForm", form))


def toggle_state_filter(store: BoardStore, value: int) -> None:
    store.dispatch(Action("toggleStateFilter", value))


def clear_state_filters(store: BoardStore) -> None:
    store.dispatch(Action("clearStateFilters"))


def record_state(record: Record, lane: BoardLane) -> Any:
    """State value of a record, falling back to its status lane's state."""
    value = record.get(STATE_ATTRIBUTE)
    if value is None and lane.option is not None:
        return lane.option.state
    return value


def visible_lanes(state: BoardState) -> list[BoardLane]:
    """Lanes as rendered under the current state filters.

    Filtering never touches the stored lanes; every lane stays, possibly empty.
    """
    lanes = list(state.board_data or ())
    if not state.state_filters:
        return lanes
    wanted = {o.value for o in state.state_filters}
    return [
        BoardLane(
            option=lane.option,
            records=tuple(r for r in lane.records if record_state(r, lane) in wanted),
        )
        for lane in lanes
    ]
