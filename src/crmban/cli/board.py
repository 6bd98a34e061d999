"""Handlers for 'crmban lanes' and 'crmban views' commands."""

import asyncio

from crmban.board import initialize_board, select_view, toggle_state_filter, visible_lanes
from crmban.catalog import list_forms, list_views
from crmban.cli._common import HeadlessHost, error, load_settings_or_die, make_client, output_json
from crmban.configuration import load_board_configuration
from crmban.errors import CrmbanError
from crmban.guid import format_guid
from crmban.models import BoardLane
from crmban.store import BoardStore
from crmban.webapi import WebApiClient


def lane_summary(lane: BoardLane) -> dict:
    return {
        "key": lane.key,
        "label": lane.title,
        "records": [{"id": r.id, "name": r.name} for r in lane.records],
    }


async def _load_board(args, settings: dict, client: WebApiClient) -> BoardStore:
    store = BoardStore()
    async with client:
        host = HeadlessHost(client, settings["user_id"])
        await initialize_board(store, client, host)
        if args.view:
            view = next((v for v in store.state.views if v.name == args.view or v.id == args.view), None)
            if view is None:
                names = ", ".join(v.name for v in store.state.views)
                raise ValueError(f"View '{args.view}' not found. Available: {names}")
            await select_view(store, client, view.id)
    for value in args.state or []:
        toggle_state_filter(store, value)
    return store


def lanes(args, client: WebApiClient | None = None) -> int:
    """Load the user's board and print its lanes."""
    settings = load_settings_or_die(args)
    try:
        store = asyncio.run(_load_board(args, settings, client or make_client(settings)))
    except (CrmbanError, ValueError) as e:
        error(e.display if isinstance(e, CrmbanError) else str(e), args.json)

    state = store.state
    shown = visible_lanes(state)
    if args.json:
        output_json(
            {
                "entity": state.config.entity_name,
                "view": state.selected_view.name if state.selected_view else None,
                "states": [o.value for o in state.state_filters],
                "lanes": [lane_summary(lane) for lane in shown],
            }
        )
    else:
        view = state.selected_view.name if state.selected_view else "(no view)"
        print(f"{state.config.entity_name} / {view}")
        for lane in shown:
            count = len(lane.records)
            records = "record" if count == 1 else "records"
            print(f"  {str(lane.key):<10} {lane.title:<20} {count} {records}")
            for record in lane.records:
                print(f"    {record.id}  {record.name}")
    return 0


async def _load_catalog(settings: dict, client: WebApiClient) -> tuple:
    async with client:
        host = HeadlessHost(client, settings["user_id"])
        user_id = format_guid(await host.get_current_user_id())
        config = await load_board_configuration(client, user_id)
        return config, await list_views(client, config.entity_name), await list_forms(client, config.entity_name)


def views(args, client: WebApiClient | None = None) -> int:
    """List the saved views and card forms of the user's board entity."""
    settings = load_settings_or_die(args)
    try:
        config, view_list, form_list = asyncio.run(_load_catalog(settings, client or make_client(settings)))
    except CrmbanError as e:
        error(e.display, args.json)

    if args.json:
        output_json(
            {
                "entity": config.entity_name,
                "views": [{"id": v.id, "name": v.name} for v in view_list],
                "forms": [{"id": f.id, "name": f.name} for f in form_list],
            }
        )
    else:
        print(f"{config.entity_name}")
        print("views:")
        for v in view_list:
            print(f"  {v.id}  {v.name}")
        print("forms:")
        for f in form_list:
            print(f"  {f.id}  {f.name}")
    return 0
