"""Column config autosave — debounced persistence of structural edits.

Column edits (add, rename, delete, reorder) change the working config
immediately and renumber positions to 0..n-1 in display order. In edit
mode each edit restarts a quiet-period timer; when it fires the whole
column list is written with a single PUT. Leaving edit mode stops the
timer but keeps the edits. A failed write leaves the edits unsaved, so
the next flush() sends them again.

sync_from_config() accepts configs coming from the server. A config
identical to the last one this component wrote or accepted is ignored,
which keeps a save → refetch round trip from re-entering the editor.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from mfgboard.api.client import KanbanApiClient
from mfgboard.api.errors import ValidationError, failure_message
from mfgboard.constants import COLUMN_AUTOSAVE_DELAY_MS, NEW_COLUMN_TITLE
from mfgboard.core.card_validation import validate_title
from mfgboard.core.i18n import t
from mfgboard.core.serializers import columns_fingerprint
from mfgboard.models.board import BoardConfig, Column, default_board_config, renumber
from mfgboard.models.mutation import Notification, NotificationLevel
from mfgboard.workers.request_worker import RequestRunner

logger = logging.getLogger(__name__)


class Debouncer(Protocol):
    def schedule(self) -> None: ...
    def cancel(self) -> None: ...
    @property
    def is_pending(self) -> bool: ...


class DebounceTimer(QObject):
    """Restartable single-shot QTimer: fires ``callback`` once per quiet period."""

    def __init__(self, callback: Callable[[], None], delay_ms: int, parent: QObject | None = None):
        super().__init__(parent)
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms)
        self._timer.timeout.connect(callback)

    def schedule(self) -> None:
        """(Re)start the quiet period."""
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()

    @property
    def is_pending(self) -> bool:
        return self._timer.isActive()


TimerFactory = Callable[[Callable[[], None], int], Debouncer]


class ColumnConfigAutosave(QObject):
    """Working copy of the board config plus its debounced persistence.

    Signals:
        columns_changed(object): Working BoardConfig changed.
        save_started(object): BoardConfig being written.
        saved(object): BoardConfig returned by the server.
        save_failed(object): Exception raised by the write.
        notification(object): Notification for the user.
    """

    columns_changed = pyqtSignal(object)
    save_started = pyqtSignal(object)
    saved = pyqtSignal(object)
    save_failed = pyqtSignal(object)
    notification = pyqtSignal(object)

    def __init__(
        self,
        api: KanbanApiClient,
        runner: RequestRunner,
        timer_factory: TimerFactory | None = None,
        delay_ms: int = COLUMN_AUTOSAVE_DELAY_MS,
        initial: BoardConfig | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._api = api
        self._runner = runner
        self._config = initial or default_board_config()
        self._last_synced = columns_fingerprint(self._config.columns)
        self._edit_mode = False
        self._saves_in_flight = 0
        if timer_factory is None:
            self._timer: Debouncer = DebounceTimer(self._on_timeout, delay_ms, self)
        else:
            self._timer = timer_factory(self._on_timeout, delay_ms)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> BoardConfig:
        return self._config

    @property
    def edit_mode(self) -> bool:
        return self._edit_mode

    @property
    def is_save_pending(self) -> bool:
        """True while the quiet-period timer is running."""
        return self._timer.is_pending

    @property
    def is_saving(self) -> bool:
        return self._saves_in_flight > 0

    @property
    def has_unsaved_changes(self) -> bool:
        return columns_fingerprint(renumber(self._config.columns)) != self._last_synced

    def set_edit_mode(self, enabled: bool) -> None:
        """Enter or leave edit mode. Leaving cancels a scheduled save."""
        if enabled == self._edit_mode:
            return
        self._edit_mode = enabled
        if not enabled and self._timer.is_pending:
            self._timer.cancel()
            logger.debug("Edit mode left; pending column save cancelled")

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def add_column(self, title: str = NEW_COLUMN_TITLE) -> Column:
        """Append a column with a fresh ``column-<ms>`` id."""
        column_id = f"column-{int(time.time() * 1000)}"
        existing = set(self._config.column_ids)
        suffix = 1
        base_id = column_id
        while column_id in existing:
            column_id = f"{base_id}-{suffix}"
            suffix += 1
        column = Column(id=column_id, title=title, position=len(self._config.columns))
        self._edit(self._config.columns + (column,))
        return column

    def rename_column(self, column_id: str, title: str) -> bool:
        """Rename a column; blank titles are rejected.

        Returns:
            False if the title was rejected or the column is unknown.
        """
        try:
            clean = validate_title(title)
        except ValidationError as e:
            self.notification.emit(Notification(
                NotificationLevel.ERROR,
                t("notifications.rename_failed", "Column title is required"),
                e.message,
            ))
            return False
        if self._config.get(column_id) is None:
            return False
        self._edit(tuple(
            Column(c.id, clean, c.position) if c.id == column_id else c
            for c in self._config.columns
        ))
        return True

    def delete_column(self, column_id: str) -> bool:
        if self._config.get(column_id) is None:
            return False
        self._edit(tuple(c for c in self._config.columns if c.id != column_id))
        return True

    def move_column(self, column_id: str, target_index: int) -> bool:
        """Move a column to ``target_index`` in display order.

        Returns:
            False if the column is unknown or already at that index.
        """
        columns = list(self._config.columns)
        old_index = self._config.index_of(column_id)
        if old_index < 0:
            return False
        target_index = max(0, min(target_index, len(columns) - 1))
        if target_index == old_index:
            return False
        col = columns.pop(old_index)
        columns.insert(target_index, col)
        self._edit(tuple(columns))
        return True

    def _edit(self, columns: tuple[Column, ...]) -> None:
        self._config = BoardConfig(columns=renumber(columns))
        self.columns_changed.emit(self._config)
        if self._edit_mode:
            self._timer.schedule()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def flush(self) -> bool:
        """Persist immediately, cancelling any scheduled save.

        Returns:
            False if there was nothing to write.
        """
        self._timer.cancel()
        if not self.has_unsaved_changes:
            return False
        self._persist()
        return True

    def persist(self, config: BoardConfig | None = None) -> None:
        """Write ``config`` (default: the working config) unconditionally."""
        self._timer.cancel()
        if config is not None:
            self._config = config
            self.columns_changed.emit(config)
        self._persist()

    def _on_timeout(self) -> None:
        if self._edit_mode:
            self._persist()

    def _persist(self) -> None:
        config = self._config.renumbered()
        if config != self._config:
            self._config = config
            self.columns_changed.emit(config)
        previous = self._last_synced
        written = columns_fingerprint(config.columns)
        self._last_synced = written
        self._saves_in_flight += 1
        self.save_started.emit(config)
        self._runner.submit(
            lambda: self._api.save_config(config),
            self._on_saved,
            lambda error: self._on_save_failed(error, written, previous),
            label="save board config",
        )

    def _on_saved(self, config: BoardConfig) -> None:
        self._saves_in_flight -= 1
        self.saved.emit(config)

    def _on_save_failed(self, error: BaseException, written: str, previous: str) -> None:
        self._saves_in_flight -= 1
        # The server still holds the previous config; keep the edits unsaved
        if self._last_synced == written:
            self._last_synced = previous
        message = failure_message(error)
        logger.warning("Saving board config failed: %s", message)
        self.save_failed.emit(error)
        self.notification.emit(Notification(
            NotificationLevel.ERROR,
            t("notifications.save_failed", "Failed to save configuration"),
            message,
        ))

    # ------------------------------------------------------------------
    # External updates
    # ------------------------------------------------------------------

    def sync_from_config(self, config: BoardConfig) -> bool:
        """Adopt a config from the server unless it is the one last synced.

        Ignored while a debounced save is scheduled or a write is in flight.

        Returns:
            True if the working config was replaced.
        """
        fingerprint = columns_fingerprint(config.columns)
        if fingerprint == self._last_synced:
            return False
        if self._timer.is_pending or self._saves_in_flight:
            # Local edits are about to be written; they win
            logger.debug("Ignoring server config while a column save is pending")
            return False
        self._last_synced = fingerprint
        self._config = config
        self.columns_changed.emit(config)
        logger.debug("Board config synced from server (%d columns)", len(config.columns))
        return True
