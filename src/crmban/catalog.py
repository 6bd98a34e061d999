"""Saved views and card forms available for an entity."""

from crmban.models import CardForm, SavedView
from crmban.webapi import WebApiClient

PUBLIC_VIEW_QUERY_TYPE = 0
CARD_FORM_TYPE = 11


async def list_views(client: WebApiClient, entity_name: str) -> list[SavedView]:
    """Public saved views returning entity_name, in service order."""
    rows = await client.retrieve_multiple(
        "savedqueries",
        {
            "$select": "layoutxml,fetchxml,savedqueryid,name",
            "$filter": f"returnedtypecode eq '{entity_name}' and querytype eq {PUBLIC_VIEW_QUERY_TYPE}",
        },
    )
    return [
        SavedView(
            id=row["savedqueryid"],
            name=row.get("name") or "",
            fetch_query=row.get("fetchxml") or "",
            layout=row.get("layoutxml") or "",
        )
        for row in rows
    ]


async def list_forms(client: WebApiClient, entity_name: str) -> list[CardForm]:
    """Card forms of entity_name, in service order."""
    rows = await client.retrieve_multiple(
        "systemforms",
        {
            "$select": "formxml,name,formid",
            "$filter": f"objecttypecode eq '{entity_name}' and type eq {CARD_FORM_TYPE}",
        },
    )
    return [
        CardForm(id=row["formid"], name=row.get("name") or "", form_definition=row.get("formxml") or "")
        for row in rows
    ]
