"""Execute a view query and partition its records into lanes."""

from __future__ import annotations

from typing import Any, Iterable

from crmban.models import AttributeMetadata, BoardConfiguration, BoardLane, EntityMetadata, OptionSet, Record
from crmban.webapi import WebApiClient


def entity_set_name(entity_name: str) -> str:
    """Guess the entity set (collection) name from a logical name.

    Used only when entity metadata does not supply EntitySetName.
    """
    if entity_name.endswith("y") and entity_name[-2:-1] not in "aeiou":
        return entity_name[:-1] + "ies"
    if entity_name.endswith(("s", "x", "ch", "sh")):
        return entity_name + "es"
    return entity_name + "s"


def parse_record(row: dict[str, Any], entity_name: str, metadata: EntityMetadata | None = None) -> Record:
    """Wrap one result row as a Record keyed by its primary id."""
    id_attribute = (metadata and metadata.primary_id_attribute) or f"{entity_name}id"
    name_attribute = (metadata and metadata.primary_name_attribute) or ""
    name = row.get(name_attribute) if name_attribute else None
    if name is None:
        name = row.get("name") or row.get("title") or ""
    return Record(
        id=str(row.get(id_attribute) or ""),
        entity_type=entity_name,
        name=str(name),
        attributes=dict(row),
    )


def build_lanes(records: Iterable[Record], attribute: str, option_set: OptionSet) -> list[BoardLane]:
    """Partition records into one lane per option plus a trailing fallback lane.

    Lane order follows the option set; record order within a lane follows
    the input order.
    """
    buckets: dict[int, list[Record]] = {option.value: [] for option in option_set}
    fallback: list[Record] = []
    for record in records:
        option = option_set.find(record.get(attribute))
        if option is None:
            fallback.append(record)
        else:
            buckets[option.value].append(record)

    lanes = [BoardLane(option=option, records=tuple(buckets[option.value])) for option in option_set]
    lanes.append(BoardLane(option=None, records=tuple(fallback)))
    return lanes


async def fetch_records(
    client: WebApiClient,
    fetch_query: str,
    config: BoardConfiguration,
    entity_metadata: EntityMetadata | None = None,
) -> list[Record]:
    """Run a FetchXML query against the configured entity."""
    entity_set = (entity_metadata and entity_metadata.entity_set_name) or entity_set_name(config.entity_name)
    rows = await client.fetch(entity_set, fetch_query)
    return [parse_record(row, config.entity_name, entity_metadata) for row in rows]


async def aggregate(
    client: WebApiClient,
    fetch_query: str,
    config: BoardConfiguration,
    separator_metadata: AttributeMetadata,
    entity_metadata: EntityMetadata | None = None,
) -> list[BoardLane]:
    """Fetch records and recompute the full lane collection.

    Raises QueryExecutionError if the service rejects the query.
    """
    records = await fetch_records(client, fetch_query, config, entity_metadata)
    return build_lanes(records, separator_metadata.logical_name, separator_metadata.option_set or OptionSet())
