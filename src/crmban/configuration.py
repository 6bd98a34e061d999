"""Load the current user's board configuration."""

import base64
import binascii
import json
from typing import Any

from crmban.errors import ConfigurationMissingError, ConfigurationParseError
from crmban.models import BoardConfiguration
from crmban.webapi import WebApiClient

DEFAULT_BOARD_FIELD = "oss_defaultboardid"


def _default_board_reference(user: dict[str, Any]) -> str | None:
    """Read the default board id, as a plain column or as a lookup value."""
    return user.get(DEFAULT_BOARD_FIELD) or user.get(f"_{DEFAULT_BOARD_FIELD}_value")


def decode_configuration(content: str) -> BoardConfiguration:
    """Decode a base64 JSON blob into a BoardConfiguration.

    Raises ConfigurationParseError for bad base64, bad JSON, or a payload
    that does not match the expected schema.
    """
    try:
        # Stored blobs may be wrapped across lines
        raw = base64.b64decode("".join(content.split()), validate=True)
        data = json.loads(raw)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationParseError(f"board configuration is not valid base64 JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationParseError("board configuration must be a JSON object")

    entity_name = data.get("entityName")
    swim_lane_source = data.get("swimLaneSource")
    for key, value in (("entityName", entity_name), ("swimLaneSource", swim_lane_source)):
        if not isinstance(value, str) or not value:
            raise ConfigurationParseError(f"board configuration needs a non-empty string '{key}'")

    show_create_button = data.get("showCreateButton", False)
    if not isinstance(show_create_button, bool):
        raise ConfigurationParseError("'showCreateButton' must be a boolean")

    app_id = data.get("appId") or ""
    if not isinstance(app_id, str):
        raise ConfigurationParseError("'appId' must be a string")

    return BoardConfiguration(
        entity_name=entity_name,
        swim_lane_source=swim_lane_source,
        show_create_button=show_create_button,
        app_id=app_id,
    )


async def fetch_configuration(client: WebApiClient, config_id: str) -> BoardConfiguration:
    """Fetch a stored configuration web resource and decode it."""
    resource = await client.retrieve(f"webresourceset({config_id})", {"$select": "content"})
    content = resource.get("content")
    if not content:
        raise ConfigurationParseError(f"board configuration {config_id} is empty")
    return decode_configuration(content)


async def load_board_configuration(client: WebApiClient, user_id: str) -> BoardConfiguration:
    """Resolve the user's default board into its configuration."""
    user = await client.retrieve(f"systemusers({user_id})", {"$select": DEFAULT_BOARD_FIELD})
    config_id = _default_board_reference(user)
    if not config_id:
        raise ConfigurationMissingError(f"user {user_id} has no default board")
    return await fetch_configuration(client, config_id)
