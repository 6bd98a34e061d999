"""Shared helpers for CLI command handlers."""

import json
import sys
from typing import Any

from crmban.guid import format_guid, is_guid
from crmban.host import FormSpec
from crmban.settings import SettingsError, api_base_url, read_settings
from crmban.webapi import WebApiClient


class HeadlessHost:
    """Host for commands that never show an editor."""

    def __init__(self, client: WebApiClient, user_id: str = "") -> None:
        self.client = client
        self.user_id = user_id

    async def get_current_user_id(self) -> str:
        if self.user_id:
            return self.user_id
        return await self.client.who_am_i()

    async def open_form(self, spec: FormSpec) -> None:
        raise RuntimeError(f"cannot open a {spec.entity_type} form without a UI")


def load_settings_or_die(args) -> dict[str, Any]:
    """Read settings, apply --url/--token overrides. Exit 1 if unusable."""
    try:
        settings = read_settings(getattr(args, "settings", None))
    except SettingsError as e:
        error(str(e), args.json)
    if getattr(args, "url", None):
        settings["url"] = args.url
    if getattr(args, "token", None):
        settings["token"] = args.token
    if not settings["url"]:
        error("no organisation url; pass --url or set 'url' in the settings file", args.json)
    if settings["user_id"] and not is_guid(format_guid(settings["user_id"])):
        error(f"user-id is not a GUID: {settings['user_id']}", args.json)
    return settings


def make_client(settings: dict[str, Any]) -> WebApiClient:
    return WebApiClient(api_base_url(settings), token=settings["token"], timeout=settings["timeout"])


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2))


def error(message: str, json_mode: bool) -> None:
    """Print error to stderr and exit 1."""
    if json_mode:
        print(json.dumps({"error": message}), file=sys.stderr)
    else:
        print(f"error: {message}", file=sys.stderr)
    sys.exit(1)
