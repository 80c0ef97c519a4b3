"""Resource store — cached server collection with refetch/invalidate.

One store per invalidation domain (cards, board config). The store is
the only owner of its collection; coordinators replace it through
set_data() and ask for a refetch through invalidate().

A refetch whose result arrives after cancel_refetch() (or after a newer
refetch was started) is discarded.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from PyQt6.QtCore import QObject, pyqtSignal

from mfgboard.workers.request_worker import RequestHandle, RequestRunner

logger = logging.getLogger(__name__)


class ResourceStore(QObject):
    """Cached copy of one server resource.

    Signals:
        changed(object): New collection (after set_data or a refetch).
        fetch_failed(object): Exception raised by the fetch call.
        loading_changed(bool): A refetch started / finished.
    """

    changed = pyqtSignal(object)
    fetch_failed = pyqtSignal(object)
    loading_changed = pyqtSignal(bool)

    def __init__(
        self,
        fetch: Callable[[], Any],
        runner: RequestRunner,
        initial: Any = None,
        name: str = "resource",
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._fetch = fetch
        self._runner = runner
        self._data = initial
        self._name = name
        self._handle: RequestHandle | None = None
        self._overlay: Callable[[Any], Any] | None = None
        self._loading = False
        self._loaded = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def data(self) -> Any:
        return self._data

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def loaded(self) -> bool:
        """True once a fetch has succeeded at least once."""
        return self._loaded

    def set_overlay(self, overlay: Callable[[Any], Any] | None) -> None:
        """Transform applied to every fetched collection before storing.

        Used to keep in-flight optimistic changes visible across a
        refetch that does not include them yet.
        """
        self._overlay = overlay

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_data(self, data: Any) -> None:
        """Replace the cached collection."""
        self._data = data
        self.changed.emit(data)

    def refetch(self) -> None:
        """Start a fetch, superseding any fetch still in flight."""
        if self._handle is not None and self._handle.active:
            self._handle.cancel()
        self._set_loading(True)
        handle = self._runner.submit(
            self._fetch, self._on_fetched, self._on_fetch_failed,
            label=f"refetch {self._name}",
        )
        # The immediate runner has already settled the handle here
        self._handle = handle if handle.active else None

    def cancel_refetch(self) -> bool:
        """Discard the result of the in-flight fetch, if any.

        Returns:
            True if a fetch was cancelled.
        """
        if self._handle is None or not self._handle.active:
            return False
        self._handle.cancel()
        self._handle = None
        self._set_loading(False)
        logger.debug("Cancelled in-flight %s refetch", self._name)
        return True

    def invalidate(self) -> None:
        """Mark the cache stale and refetch."""
        self.refetch()

    # ------------------------------------------------------------------
    # Fetch outcome
    # ------------------------------------------------------------------

    def _on_fetched(self, data: Any) -> None:
        self._handle = None
        self._loaded = True
        if self._overlay is not None:
            data = self._overlay(data)
        self._set_loading(False)
        self.set_data(data)

    def _on_fetch_failed(self, error: BaseException) -> None:
        self._handle = None
        self._set_loading(False)
        logger.warning("Failed to fetch %s: %s", self._name, error)
        self.fetch_failed.emit(error)

    def _set_loading(self, loading: bool) -> None:
        if loading != self._loading:
            self._loading = loading
            self.loading_changed.emit(loading)
