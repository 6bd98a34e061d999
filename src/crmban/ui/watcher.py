"""Mixin that manages store watches with auto-cleanup."""

from __future__ import annotations

from typing import Callable

from crmban.store import BoardStore, Callback


class StoreWatcherMixin:
    """Mixin for widgets and screens that watch board state fields.

    Subclasses should:
    - Call ``_init_watcher()`` in ``__init__``
    - Use ``self.store_watch(store, key, callback)`` instead of ``store.watch(...)``
    - Skip writing ``on_unmount`` -- the mixin handles cleanup
    """

    def _init_watcher(self) -> None:
        self._watches: list[Callable[[], None]] = []

    def store_watch(self, store: BoardStore, key: str, callback: Callback) -> None:
        """Register a watch that is removed when the widget unmounts."""
        self._watches.append(store.watch(key, callback))

    def on_unmount(self) -> None:
        for unwatch in self._watches:
            unwatch()
        self._watches.clear()
