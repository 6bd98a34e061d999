"""Tests for record aggregation into lanes."""

import pytest

from crmban.aggregate import aggregate, build_lanes, entity_set_name, parse_record
from crmban.errors import QueryExecutionError
from crmban.models import AttributeMetadata, BoardConfiguration, EntityMetadata, Option, OptionSet, Record

from tests.conftest import BAD_QUERY, VIEW_QUERY, make_row

CONFIG = BoardConfiguration("incident", "statuscode", True, "app-1")
STATUS = AttributeMetadata(
    "statuscode",
    "Status",
    OptionSet((Option(1, "New", 0), Option(2, "In Progress", 0))),
)


def _record(record_id, **attributes):
    return Record(id=record_id, entity_type="incident", name=record_id, attributes=attributes)


def test_scenario_three_records_two_options():
    r1, r2, r3 = _record("r1", statuscode=1), _record("r2", statuscode=2), _record("r3", statuscode=1)

    lanes = build_lanes([r1, r2, r3], "statuscode", STATUS.option_set)

    assert [lane.key for lane in lanes] == [1, 2, "fallback"]
    assert [[r.id for r in lane.records] for lane in lanes] == [["r1", "r3"], ["r2"], []]


@pytest.mark.parametrize("count", [0, 1, 3, 7])
def test_lane_count_is_options_plus_fallback(count):
    options = OptionSet(tuple(Option(i, f"Option {i}") for i in range(count)))
    records = [_record(f"r{i}", code=i % (count or 1)) for i in range(10)]

    lanes = build_lanes(records, "code", options)

    assert len(lanes) == count + 1
    assert lanes[-1].option is None
    for lane in lanes[:-1]:
        assert all(r.get("code") == lane.option.value for r in lane.records)


def test_unmatched_values_go_to_fallback():
    records = [_record("a", statuscode=99), _record("b"), _record("c", statuscode="2"), _record("d", statuscode=1)]

    lanes = build_lanes(records, "statuscode", STATUS.option_set)

    assert [r.id for r in lanes[-1].records] == ["a", "b"]
    assert [r.id for r in lanes[1].records] == ["c"]


def test_boolean_values_match_zero_and_one():
    options = OptionSet((Option(0, "No"), Option(1, "Yes")))
    records = [_record("t", isescalated=True), _record("f", isescalated=False)]

    lanes = build_lanes(records, "isescalated", options)

    assert [[r.id for r in lane.records] for lane in lanes] == [["f"], ["t"], []]


def test_build_lanes_is_idempotent():
    records = [_record("r1", statuscode=2), _record("r2", statuscode=1), _record("r3", statuscode=2)]

    first = build_lanes(records, "statuscode", STATUS.option_set)
    second = build_lanes(records, "statuscode", STATUS.option_set)

    assert first == second
    assert [lane.key for lane in first] == [lane.key for lane in second]


def test_parse_record_uses_primary_attributes():
    metadata = EntityMetadata("incident", primary_id_attribute="incidentid", primary_name_attribute="title")
    record = parse_record(make_row("r1", "Printer on fire", 1), "incident", metadata)

    assert record.id == "r1"
    assert record.name == "Printer on fire"
    assert record.entity_type == "incident"
    assert record.get("statuscode") == 1


def test_parse_record_without_metadata():
    record = parse_record({"accountid": "a1", "name": "Contoso"}, "account")
    assert (record.id, record.name) == ("a1", "Contoso")


@pytest.mark.parametrize(
    "entity, expected",
    [("incident", "incidents"), ("opportunity", "opportunities"), ("address", "addresses"), ("survey", "surveys")],
)
def test_entity_set_name(entity, expected):
    assert entity_set_name(entity) == expected


@pytest.mark.asyncio
async def test_aggregate_queries_configured_entity(client, dataverse):
    lanes = await aggregate(client, VIEW_QUERY, CONFIG, STATUS)

    assert [[r.id for r in lane.records] for lane in lanes] == [["r1", "r3"], ["r2"], []]
    assert dataverse.fetch_queries == [VIEW_QUERY]
    assert dataverse.requests[-1].url.path.endswith("/incidents")


@pytest.mark.asyncio
async def test_aggregate_twice_gives_same_lanes(client):
    first = await aggregate(client, VIEW_QUERY, CONFIG, STATUS)
    second = await aggregate(client, VIEW_QUERY, CONFIG, STATUS)
    assert first == second


@pytest.mark.asyncio
async def test_aggregate_rejected_query(client):
    with pytest.raises(QueryExecutionError, match="Invalid XML"):
        await aggregate(client, BAD_QUERY, CONFIG, STATUS)
