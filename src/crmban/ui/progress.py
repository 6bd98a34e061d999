"""Progress and failure indicator for the board header."""

from __future__ import annotations

from textual.widgets import Static

from crmban.store import BoardState, BoardStore
from crmban.ui.watcher import StoreWatcherMixin

ICON_LOADING = "⏳"
ICON_ERROR = "⚠"


def _status_text(state: BoardState) -> str:
    """Error wins over progress; an idle board shows nothing."""
    if state.error:
        return f"{ICON_ERROR} {state.error}"
    if state.progress_text:
        return f"{ICON_LOADING} {state.progress_text}"
    return ""


class ProgressWidget(StoreWatcherMixin, Static):
    """Shows the store's progress text, or the last surfaced failure."""

    DEFAULT_CSS = """
    ProgressWidget {
        width: 1fr;
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    ProgressWidget.-error {
        color: $error;
        text-style: bold;
    }
    """

    def __init__(self, store: BoardStore, **kwargs) -> None:
        self._init_watcher()
        super().__init__(_status_text(store.state), **kwargs)
        self.store = store

    def on_mount(self) -> None:
        self.store_watch(self.store, "progress_text", self._on_status_changed)
        self.store_watch(self.store, "error", self._on_status_changed)
        self._update_display()

    def _on_status_changed(self, store, key, old, new) -> None:
        self.call_later(self._update_display)

    def _update_display(self) -> None:
        state = self.store.state
        self.update(_status_text(state))
        self.set_class(bool(state.error), "-error")
