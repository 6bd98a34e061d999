"""Board state container with named transition actions.

All changes to board state go through ``BoardStore.dispatch``. Each action
is reduced into a new immutable ``BoardState``; watchers registered for a
state field fire after the field changes, in dispatch order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable

from crmban.models import (
    AttributeMetadata,
    BoardConfiguration,
    BoardLane,
    CardForm,
    EntityMetadata,
    Option,
    OptionSet,
    Record,
    SavedView,
)

logger = logging.getLogger(__name__)

Callback = Callable[["BoardStore", str, Any, Any], None]


@dataclass(frozen=True)
class Action:
    """A named state transition.

    ``generation`` is only meaningful for ``setBoardData``: results tagged
    with anything but the latest issued generation are dropped.
    """

    type: str
    payload: Any = None
    generation: int | None = None


@dataclass(frozen=True)
class BoardState:
    config: BoardConfiguration | None = None
    metadata: EntityMetadata | None = None
    separator_metadata: AttributeMetadata | None = None
    state_metadata: AttributeMetadata | None = None
    views: tuple[SavedView, ...] = ()
    forms: tuple[CardForm, ...] = ()
    selected_view: SavedView | None = None
    selected_form: CardForm | None = None
    board_data: tuple[BoardLane, ...] | None = None
    state_filters: tuple[Option, ...] = ()
    selected_record: Record | None = None
    progress_text: str | None = None
    error: str | None = None

    @property
    def loading(self) -> bool:
        """True while an operation has a progress message up."""
        return self.progress_text is not None


def _state_options(state: BoardState) -> OptionSet:
    if state.state_metadata is None or state.state_metadata.option_set is None:
        return OptionSet()
    return state.state_metadata.option_set


def _set_progress_text(state: BoardState, payload: str | None) -> BoardState:
    if payload:
        return replace(state, progress_text=payload, error=None)
    return replace(state, progress_text=None)


def _set_error(state: BoardState, payload: str | None) -> BoardState:
    return replace(state, error=payload or None)


def _set_config(state: BoardState, payload: BoardConfiguration) -> BoardState:
    # A new configuration is a full reload; nothing derived from the old one survives
    return BoardState(config=payload, progress_text=state.progress_text)


def _set_metadata(state: BoardState, payload: EntityMetadata) -> BoardState:
    return replace(state, metadata=payload)


def _set_separator_metadata(state: BoardState, payload: AttributeMetadata) -> BoardState:
    return replace(state, separator_metadata=payload)


def _set_state_metadata(state: BoardState, payload: AttributeMetadata) -> BoardState:
    new_state = replace(state, state_metadata=payload)
    options = _state_options(new_state)
    kept = tuple(o for o in state.state_filters if options.find(o.value) is not None)
    return replace(new_state, state_filters=kept)


def _set_views(state: BoardState, payload) -> BoardState:
    views = tuple(payload or ())
    selected = state.selected_view if state.selected_view in views else (views[0] if views else None)
    return replace(state, views=views, selected_view=selected)


def _set_forms(state: BoardState, payload) -> BoardState:
    forms = tuple(payload or ())
    selected = state.selected_form if state.selected_form in forms else (forms[0] if forms else None)
    return replace(state, forms=forms, selected_form=selected)


def _set_selected_view(state: BoardState, payload: SavedView | None) -> BoardState:
    if payload is None and state.views:
        raise ValueError("a view must stay selected while views exist")
    if payload is not None and state.views and payload not in state.views:
        raise ValueError(f"view {payload.id} is not in the catalog")
    return replace(state, selected_view=payload)


def _set_selected_form(state: BoardState, payload: CardForm | None) -> BoardState:
    if payload is None and state.forms:
        raise ValueError("a form must stay selected while forms exist")
    if payload is not None and state.forms and payload not in state.forms:
        raise ValueError(f"form {payload.id} is not in the catalog")
    return replace(state, selected_form=payload)


def _set_board_data(state: BoardState, payload) -> BoardState:
    return replace(state, board_data=None if payload is None else tuple(payload))


def _toggle_state_filter(state: BoardState, payload: Option | int) -> BoardState:
    value = payload.value if isinstance(payload, Option) else payload
    option = _state_options(state).find(value)
    if option is None:
        raise ValueError(f"{value!r} is not a state option")
    if any(o.value == option.value for o in state.state_filters):
        filters = tuple(o for o in state.state_filters if o.value != option.value)
    else:
        filters = state.state_filters + (option,)
    return replace(state, state_filters=filters)


def _clear_state_filters(state: BoardState, payload: Any) -> BoardState:
    return replace(state, state_filters=())


def _set_selected_record(state: BoardState, payload: Record | None) -> BoardState:
    if payload is not None:
        entity = state.config.entity_name if state.config else None
        if payload.entity_type != entity:
            raise ValueError(f"cannot open {payload.entity_type} record on a {entity} board")
    return replace(state, selected_record=payload)


REDUCERS: dict[str, Callable[[BoardState, Any], BoardState]] = {
    "setProgressText": _set_progress_text,
    "setError": _set_error,
    "setConfig": _set_config,
    "setMetadata": _set_metadata,
    "setSeparatorMetadata": _set_separator_metadata,
    "setStateMetadata": _set_state_metadata,
    "setViews": _set_views,
    "setForms": _set_forms,
    "setSelectedView": _set_selected_view,
    "setSelectedForm": _set_selected_form,
    "setBoardData": _set_board_data,
    "toggleStateFilter": _toggle_state_filter,
    "clearStateFilters": _clear_state_filters,
    "setSelectedRecord": _set_selected_record,
}

STATE_KEYS = tuple(f.name for f in fields(BoardState))


class BoardStore:
    """Single owned board state plus its watchers."""

    def __init__(self, state: BoardState | None = None) -> None:
        self._state = state or BoardState()
        self._watchers: dict[str, list[Callback]] = {}
        self._generation = 0

    def get_state(self) -> BoardState:
        return self._state

    @property
    def state(self) -> BoardState:
        return self._state

    @property
    def generation(self) -> int:
        """Latest issued aggregation generation."""
        return self._generation

    def next_generation(self) -> int:
        """Issue a new aggregation generation, superseding older ones."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int | None) -> bool:
        return generation is None or generation == self._generation

    def dispatch(self, action: Action) -> bool:
        """Apply action. Returns False if a stale ``setBoardData`` was dropped."""
        reducer = REDUCERS.get(action.type)
        if reducer is None:
            raise ValueError(f"unknown action {action.type!r}")
        if action.type == "setBoardData" and not self.is_current(action.generation):
            logger.info("dropping stale board data (generation %s, latest %s)", action.generation, self._generation)
            return False

        old = self._state
        new = reducer(old, action.payload)
        self._state = new

        changed = [key for key in STATE_KEYS if getattr(old, key) is not getattr(new, key)]
        for key in changed:
            self._emit(key, getattr(old, key), getattr(new, key))
        if changed:
            self._emit("*", old, new)
        return True

    def watch(self, key: str, callback: Callback) -> Callable[[], None]:
        """Watch a state field (or ``"*"`` for any change). Returns an unwatch callable."""
        if key != "*" and key not in STATE_KEYS:
            raise ValueError(f"unknown state key {key!r}")
        self._watchers.setdefault(key, []).append(callback)
        return lambda: callback in self._watchers.get(key, []) and self._watchers[key].remove(callback)

    def _emit(self, key: str, old: Any, new: Any) -> None:
        for cb in list(self._watchers.get(key, ())):
            cb(self, key, old, new)
