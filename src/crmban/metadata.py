"""Entity and attribute metadata resolution."""

from __future__ import annotations

from typing import Any

from crmban.errors import AttributeNotFoundError, RemoteUnavailableError, UnsupportedSeparatorTypeError
from crmban.models import AttributeMetadata, EntityMetadata, Option, OptionSet
from crmban.webapi import WebApiClient

STATE_ATTRIBUTE = "statecode"

SEPARATOR_TYPE_CASTS = {
    "Picklist": "Microsoft.Dynamics.CRM.PicklistAttributeMetadata",
    "Status": "Microsoft.Dynamics.CRM.StatusAttributeMetadata",
    "State": "Microsoft.Dynamics.CRM.StateAttributeMetadata",
    "Boolean": "Microsoft.Dynamics.CRM.BooleanAttributeMetadata",
}


def determine_attribute_cast(attribute: AttributeMetadata) -> str:
    """Map an attribute type to its metadata sub-resource cast.

    Only choice-like types can separate records into lanes.
    """
    cast = SEPARATOR_TYPE_CASTS.get(attribute.attribute_type)
    if cast is None:
        raise UnsupportedSeparatorTypeError(
            f"Type {attribute.attribute_type} of {attribute.logical_name} is not allowed as swim lane separator."
        )
    return cast


def _label_text(label: dict[str, Any] | None, fallback: str) -> str:
    """Pick the user-localized label, then the first localized one."""
    if not label:
        return fallback
    user = label.get("UserLocalizedLabel")
    if user and user.get("Label"):
        return user["Label"]
    for localized in label.get("LocalizedLabels") or []:
        if localized.get("Label"):
            return localized["Label"]
    return fallback


def _parse_option(data: dict[str, Any]) -> Option:
    value = int(data["Value"])
    state = data.get("State")
    return Option(
        value=value,
        label=_label_text(data.get("Label"), str(value)),
        state=int(state) if state is not None else None,
    )


def parse_option_set(data: dict[str, Any] | None) -> OptionSet:
    """Decode an OptionSet payload.

    Boolean option sets carry FalseOption/TrueOption instead of Options.
    """
    if not data:
        return OptionSet()
    if "Options" in data and data["Options"] is not None:
        return OptionSet(tuple(_parse_option(o) for o in data["Options"]))
    options = []
    for key in ("FalseOption", "TrueOption"):
        if data.get(key):
            options.append(_parse_option(data[key]))
    return OptionSet(tuple(options))


def parse_entity_metadata(entity: str, data: dict[str, Any]) -> EntityMetadata:
    try:
        attributes = tuple(
            AttributeMetadata(logical_name=a["LogicalName"], attribute_type=a.get("AttributeType") or "")
            for a in data.get("Attributes") or []
        )
    except (KeyError, TypeError) as exc:
        raise RemoteUnavailableError(f"malformed attribute metadata for {entity}") from exc
    return EntityMetadata(
        entity_name=data.get("LogicalName") or entity,
        attributes=attributes,
        entity_set_name=data.get("EntitySetName") or "",
        primary_id_attribute=data.get("PrimaryIdAttribute") or f"{entity}id",
        primary_name_attribute=data.get("PrimaryNameAttribute") or "",
    )


async def fetch_entity_metadata(client: WebApiClient, entity: str) -> EntityMetadata:
    """Retrieve an entity definition with its attributes expanded."""
    data = await client.retrieve(f"EntityDefinitions(LogicalName='{entity}')", {"$expand": "Attributes"})
    return parse_entity_metadata(entity, data)


async def resolve_attribute_metadata(
    client: WebApiClient,
    entity: str,
    attribute_logical_name: str,
    entity_metadata: EntityMetadata,
) -> AttributeMetadata:
    """Resolve a separator attribute, including its option set."""
    attribute = entity_metadata.find_attribute(attribute_logical_name)
    if attribute is None:
        raise AttributeNotFoundError(f"{entity} has no attribute {attribute_logical_name}")
    cast = determine_attribute_cast(attribute)

    data = await client.retrieve(
        f"EntityDefinitions(LogicalName='{entity}')/Attributes(LogicalName='{attribute.logical_name}')/{cast}",
        {"$expand": "OptionSet"},
    )
    try:
        option_set = parse_option_set(data.get("OptionSet"))
    except (KeyError, TypeError, ValueError) as exc:
        raise RemoteUnavailableError(f"malformed option set for {attribute.logical_name}") from exc
    return AttributeMetadata(
        logical_name=attribute.logical_name,
        attribute_type=attribute.attribute_type,
        option_set=option_set,
    )
