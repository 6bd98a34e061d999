"""Shared fixtures: an in-memory Dataverse behind httpx.MockTransport."""

import base64
import json
import re

import httpx
import pytest

from crmban.host import FormSpec
from crmban.webapi import WebApiClient

BASE_URL = "https://org.example.com/api/data/v9.2/"
USER_ID = "6f1c2b9e-0d4a-4e3b-9a51-8c2d7e4f1a00"
CONFIG_ID = "0b7e4c55-3c1d-4f7a-8f2e-5a9d1c3e7b11"

CONFIG = {
    "entityName": "incident",
    "swimLaneSource": "statuscode",
    "showCreateButton": True,
    "appId": "app-1",
}

ATTRIBUTES = [
    {"LogicalName": "incidentid", "AttributeType": "Uniqueidentifier"},
    {"LogicalName": "title", "AttributeType": "String"},
    {"LogicalName": "statuscode", "AttributeType": "Status"},
    {"LogicalName": "statecode", "AttributeType": "State"},
    {"LogicalName": "prioritycode", "AttributeType": "Picklist"},
    {"LogicalName": "isescalated", "AttributeType": "Boolean"},
]


def _label(text):
    return {"UserLocalizedLabel": {"Label": text}, "LocalizedLabels": [{"Label": text}]}


OPTION_SETS = {
    "statuscode": {
        "Options": [
            {"Value": 1, "State": 0, "Label": _label("New")},
            {"Value": 2, "State": 0, "Label": _label("In Progress")},
        ]
    },
    "statecode": {
        "Options": [
            {"Value": 0, "Label": _label("Active")},
            {"Value": 1, "Label": _label("Resolved")},
            {"Value": 2, "Label": _label("Cancelled")},
        ]
    },
    "prioritycode": {
        "Options": [
            {"Value": 1, "Label": _label("High")},
            {"Value": 2, "Label": _label("Normal")},
            {"Value": 3, "Label": _label("Low")},
        ]
    },
    "isescalated": {
        "TrueOption": {"Value": 1, "Label": _label("Yes")},
        "FalseOption": {"Value": 0, "Label": _label("No")},
    },
}

VIEW_QUERY = '<fetch><entity name="incident"><attribute name="title" /></entity></fetch>'
OTHER_QUERY = '<fetch><entity name="incident"><attribute name="title" /><order attribute="title" /></entity></fetch>'
BAD_QUERY = "<fetch><entity"

FORM_XML = (
    '<form><tabs><tab><columns><column><sections><section><rows>'
    '<row><cell><control id="title" datafieldname="title" /></cell></row>'
    '<row><cell><control id="prio" datafieldname="prioritycode" /></cell></row>'
    "</rows></section></sections></column></columns></tab></tabs></form>"
)


def make_row(record_id, title, statuscode, statecode=0, **extra):
    row = {
        "incidentid": record_id,
        "title": title,
        "statuscode": statuscode,
        "statecode": statecode,
    }
    row.update(extra)
    return row


class FakeDataverse:
    """Routes Web API requests to in-memory tables and logs every request."""

    def __init__(self):
        self.default_board = CONFIG_ID
        self.config_content = base64.b64encode(json.dumps(CONFIG).encode()).decode()
        self.views = [
            {"savedqueryid": "view-1", "name": "Active Cases", "fetchxml": VIEW_QUERY, "layoutxml": "<grid />"},
            {"savedqueryid": "view-2", "name": "All Cases", "fetchxml": OTHER_QUERY, "layoutxml": "<grid />"},
        ]
        self.forms = [
            {"formid": "form-1", "name": "Case Card", "formxml": FORM_XML},
            {"formid": "form-2", "name": "Compact Card", "formxml": "<form />"},
        ]
        self.rows = {
            VIEW_QUERY: [
                make_row("r1", "Printer on fire", 1),
                make_row("r2", "Login broken", 2),
                make_row("r3", "Coffee machine", 1),
            ],
            OTHER_QUERY: [
                make_row("r4", "Archived ticket", 5, statecode=1),
                make_row("r1", "Printer on fire", 1),
            ],
        }
        self.rejected = {BAD_QUERY}
        self.unavailable = False
        self.failing: set[str] = set()
        self.requests: list[httpx.Request] = []

    @property
    def fetch_queries(self) -> list[str]:
        """FetchXML of every record query received, in order."""
        return [r.url.params["fetchXml"] for r in self.requests if "fetchXml" in r.url.params]

    def _resource(self, request: httpx.Request) -> str:
        return request.url.path.split("/api/data/v9.2/", 1)[1]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unavailable:
            return httpx.Response(503, json={"error": {"message": "Service Unavailable"}})
        resource = self._resource(request)
        if resource.split("(", 1)[0] in self.failing:
            return httpx.Response(503, json={"error": {"message": "Service Unavailable"}})

        if resource == "WhoAmI":
            return httpx.Response(200, json={"UserId": USER_ID})

        if m := re.fullmatch(r"systemusers\((.+)\)", resource):
            if m.group(1) != USER_ID:
                return httpx.Response(404, json={"error": {"message": "systemuser not found"}})
            body = {"systemuserid": USER_ID}
            if self.default_board:
                body["oss_defaultboardid"] = self.default_board
            return httpx.Response(200, json=body)

        if m := re.fullmatch(r"webresourceset\((.+)\)", resource):
            return httpx.Response(200, json={"content": self.config_content})

        if m := re.fullmatch(r"EntityDefinitions\(LogicalName='(\w+)'\)", resource):
            return httpx.Response(
                200,
                json={
                    "LogicalName": m.group(1),
                    "EntitySetName": "incidents",
                    "PrimaryIdAttribute": "incidentid",
                    "PrimaryNameAttribute": "title",
                    "Attributes": ATTRIBUTES,
                },
            )

        if m := re.fullmatch(r"EntityDefinitions\(LogicalName='\w+'\)/Attributes\(LogicalName='(\w+)'\)/(.+)", resource):
            return httpx.Response(200, json={"LogicalName": m.group(1), "OptionSet": OPTION_SETS[m.group(1)]})

        if resource == "savedqueries":
            return httpx.Response(200, json={"value": self.views})

        if resource == "systemforms":
            return httpx.Response(200, json={"value": self.forms})

        if resource == "incidents":
            query = request.url.params["fetchXml"]
            if query in self.rejected:
                return httpx.Response(400, json={"error": {"message": "Invalid XML."}})
            return httpx.Response(200, json={"value": self.rows.get(query, [])})

        return httpx.Response(404, json={"error": {"message": f"no route for {resource}"}})


class FakeHost:
    """Host that records opened forms instead of showing them."""

    def __init__(self, user_id="{" + USER_ID.upper() + "}"):
        self.user_id = user_id
        self.opened: list[FormSpec] = []

    async def get_current_user_id(self) -> str:
        return self.user_id

    async def open_form(self, spec: FormSpec) -> None:
        self.opened.append(spec)


@pytest.fixture
def dataverse():
    return FakeDataverse()


@pytest.fixture
def client(dataverse):
    return WebApiClient(BASE_URL, token="t0ken", transport=httpx.MockTransport(dataverse.handler))


@pytest.fixture
def host():
    return FakeHost()
