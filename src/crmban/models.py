"""Data models for crmban boards."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any

FALLBACK_KEY = "fallback"


@dataclass(frozen=True)
class BoardConfiguration:
    """Board settings decoded from the user's stored blob."""

    entity_name: str
    swim_lane_source: str
    show_create_button: bool = False
    app_id: str = ""


@dataclass(frozen=True)
class Option:
    """One value/label pair of an option set.

    ``state`` is set for status options and names the state they belong to.
    """

    value: int
    label: str
    state: int | None = None


@dataclass(frozen=True)
class OptionSet:
    options: tuple[Option, ...] = ()

    def __iter__(self):
        return iter(self.options)

    def __len__(self) -> int:
        return len(self.options)

    def find(self, value: Any) -> Option | None:
        """Return the option whose value equals value, or None."""
        for option in self.options:
            if _same_value(option.value, value):
                return option
        return None


@dataclass(frozen=True)
class AttributeMetadata:
    logical_name: str
    attribute_type: str
    option_set: OptionSet | None = None


@dataclass(frozen=True)
class EntityMetadata:
    """Entity definition with its attributes, fetched once per session."""

    entity_name: str
    attributes: tuple[AttributeMetadata, ...] = ()
    entity_set_name: str = ""
    primary_id_attribute: str = ""
    primary_name_attribute: str = ""

    def find_attribute(self, logical_name: str) -> AttributeMetadata | None:
        """Case-insensitive attribute lookup."""
        wanted = logical_name.lower()
        return next((a for a in self.attributes if a.logical_name.lower() == wanted), None)


@dataclass(frozen=True)
class SavedView:
    id: str
    name: str
    fetch_query: str
    layout: str = ""


@dataclass(frozen=True)
class CardForm:
    id: str
    name: str
    form_definition: str = ""

    def card_fields(self) -> list[str]:
        """Data field names referenced by the form's controls, in order."""
        if not self.form_definition:
            return []
        try:
            root = ET.fromstring(self.form_definition)
        except ET.ParseError:
            return []
        fields: list[str] = []
        for control in root.iter("control"):
            name = control.get("datafieldname")
            if name and name not in fields:
                fields.append(name)
        return fields


@dataclass(frozen=True)
class Record:
    """An entity instance returned by a view query."""

    id: str
    entity_type: str
    name: str = ""
    attributes: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def formatted(self, key: str) -> str:
        """Display text for an attribute, preferring the service's formatted value."""
        pretty = self.attributes.get(f"{key}@OData.Community.Display.V1.FormattedValue")
        if pretty is not None:
            return str(pretty)
        raw = self.attributes.get(key)
        return "" if raw is None else str(raw)


@dataclass(frozen=True)
class BoardLane:
    """Records sharing one option value. ``option`` is None for the fallback lane."""

    option: Option | None
    records: tuple[Record, ...] = ()

    @property
    def key(self) -> int | str:
        return FALLBACK_KEY if self.option is None else self.option.value

    @property
    def title(self) -> str:
        return "Other" if self.option is None else self.option.label


def _same_value(option_value: int, raw: Any) -> bool:
    """Compare an option value with a raw attribute value.

    Booleans come back from the service as true/false and match options 1/0.
    """
    if raw is None:
        return False
    if isinstance(raw, bool):
        return option_value == int(raw)
    if isinstance(raw, int):
        return option_value == raw
    try:
        return option_value == int(raw)
    except (TypeError, ValueError):
        return False
