"""Capabilities supplied by the embedding environment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlencode

from crmban.models import Record


@dataclass(frozen=True)
class FormSpec:
    """What the external record editor should show.

    ``display_mode`` is ``"inline"`` for the side-by-side surface,
    ``"window"`` for a separate window and ``"quick"`` for quick create.
    """

    entity_type: str
    entity_id: str | None = None
    create_mode: bool = False
    display_mode: str = "inline"

    @classmethod
    def for_record(cls, record: Record, display_mode: str = "inline") -> FormSpec:
        return cls(entity_type=record.entity_type, entity_id=record.id, display_mode=display_mode)

    @classmethod
    def for_create(cls, entity_type: str) -> FormSpec:
        return cls(entity_type=entity_type, create_mode=True, display_mode="quick")


class Host(Protocol):
    """Navigation and identity calls provided by the environment."""

    async def open_form(self, spec: FormSpec) -> None:
        """Show the editor. Returns once the editor is done with the spec."""
        ...

    async def get_current_user_id(self) -> str: ...


def record_url(org_url: str, spec: FormSpec, app_id: str = "", navbar: bool = False) -> str:
    """Build the main.aspx URL that opens the editor for spec."""
    params: dict[str, str] = {}
    if app_id:
        params["app"] = app_id
    params["pagetype"] = "entityrecord"
    if not navbar:
        params["navbar"] = "off"
    params["etn"] = spec.entity_type
    if spec.entity_id and not spec.create_mode:
        params["id"] = spec.entity_id
    return f"{org_url.rstrip('/')}/main.aspx?{urlencode(params)}"
