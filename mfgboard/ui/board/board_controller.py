"""Board controller — central mediator between board state and widgets.

Owns the card and config stores, the selection, the drag state machine
and the three coordinators. Widgets call into the controller and
redraw from its signals; they never talk to the API directly.

All state lives on the UI thread; only the blocking API calls run in
worker threads (see mfgboard.workers.request_worker).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from PyQt6.QtCore import QObject, pyqtSignal

from mfgboard.api.client import KanbanApiClient
from mfgboard.api.errors import failure_message
from mfgboard.core.board_views import BoardView, build_board_view, done_cards
from mfgboard.core.drag_controller import DragContext, DragController
from mfgboard.core.i18n import t
from mfgboard.core.selection_model import SelectionModel
from mfgboard.core.serializers import columns_fingerprint
from mfgboard.models.board import BoardConfig, default_board_config, renumber
from mfgboard.models.card import Card
from mfgboard.models.interaction import (
    DragSource,
    DropTarget,
    MoveCard,
    MoveCardGroup,
    MoveColumn,
    MoveIntent,
    SelectionState,
)
from mfgboard.models.mutation import BulkField, Notification, NotificationLevel
from mfgboard.ui.board.bulk_edit import BulkEditCoordinator
from mfgboard.ui.board.column_autosave import ColumnConfigAutosave, TimerFactory
from mfgboard.ui.board.mutation_coordinator import OptimisticMutationCoordinator
from mfgboard.ui.board.resource_store import ResourceStore
from mfgboard.workers.request_worker import QtRequestRunner, RequestRunner

logger = logging.getLogger(__name__)


class BoardController(QObject):
    """Mediator for one kanban board.

    Signals:
        board_changed(): Cards, columns or sorting changed; re-read board_view.
        selection_changed(object): New SelectionState.
        drag_changed(object): DragSource being dragged, or None.
        edit_mode_changed(bool): Edit mode entered / left.
        notification(object): Notification for the user.
        loading_changed(bool): Card refetch started / finished.
        lookups_changed(): Users / equipment lists reloaded.
    """

    board_changed = pyqtSignal()
    selection_changed = pyqtSignal(object)
    drag_changed = pyqtSignal(object)
    edit_mode_changed = pyqtSignal(bool)
    notification = pyqtSignal(object)
    loading_changed = pyqtSignal(bool)
    lookups_changed = pyqtSignal()

    def __init__(
        self,
        api: KanbanApiClient,
        runner: RequestRunner | None = None,
        timer_factory: TimerFactory | None = None,
        now: Callable[[], datetime] | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._api = api
        self._runner = runner if runner is not None else QtRequestRunner(self)
        self._now = now or (lambda: datetime.now(timezone.utc))

        self.card_store = ResourceStore(api.list_cards, self._runner, (), "cards", self)
        self.config_store = ResourceStore(
            api.get_config, self._runner, default_board_config(), "config", self,
        )
        self.user_store = ResourceStore(api.list_users, self._runner, [], "users", self)
        self.equipment_store = ResourceStore(
            api.list_equipment, self._runner, [], "equipment", self,
        )
        self.process_store = ResourceStore(
            api.list_processes, self._runner, [], "processes", self,
        )

        self.selection = SelectionModel()
        self.drag = DragController()
        self.mutations = OptimisticMutationCoordinator(api, self.card_store, self._runner, self)
        self.bulk = BulkEditCoordinator(api, self.card_store, self._runner, self)
        self.columns = ColumnConfigAutosave(
            api, self._runner, timer_factory,
            initial=self.config_store.data, parent=self,
        )

        self._sort_by_user = False
        self._group_by_process = False
        self._original_config: BoardConfig | None = None
        self._view = self._build_view()

        self._connect_signals()

    def _connect_signals(self) -> None:
        self.card_store.changed.connect(self._on_cards_changed)
        self.card_store.fetch_failed.connect(
            lambda e: self._notify_error(t("notifications.load_failed", "Failed to load cards"), e)
        )
        self.card_store.loading_changed.connect(self.loading_changed.emit)
        self.config_store.changed.connect(self.columns.sync_from_config)
        self.config_store.fetch_failed.connect(
            lambda e: self._notify_error(
                t("notifications.config_load_failed", "Failed to load board configuration"), e,
            )
        )
        self.user_store.changed.connect(lambda _data: self._on_lookups_changed())
        self.equipment_store.changed.connect(lambda _data: self._on_lookups_changed())
        self.process_store.changed.connect(lambda _data: self._on_lookups_changed())

        self.columns.columns_changed.connect(lambda _config: self._rebuild())
        self.columns.saved.connect(lambda _config: self.config_store.invalidate())

        self.mutations.notification.connect(self.notification.emit)
        self.bulk.notification.connect(self.notification.emit)
        self.bulk.clear_selection_requested.connect(self.clear_selection)
        self.columns.notification.connect(self.notification.emit)

        self.drag.add_listener(self.drag_changed.emit)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Fetch cards, board config and the lookups (users, equipment, processes)."""
        logger.info("Loading board from %s", self._api.base_url)
        self.config_store.refetch()
        self.card_store.refetch()
        self.user_store.refetch()
        self.equipment_store.refetch()
        self.process_store.refetch()

    def refresh(self) -> None:
        self.card_store.invalidate()
        self.config_store.invalidate()

    def shutdown(self) -> None:
        """Write pending column edits and wait for running requests."""
        if self.edit_mode:
            self.save_edit_mode()
        if isinstance(self._runner, QtRequestRunner):
            self._runner.wait_all()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def cards(self) -> tuple[Card, ...]:
        return tuple(self.card_store.data or ())

    @property
    def config(self) -> BoardConfig:
        return self.columns.config

    @property
    def board_view(self) -> BoardView:
        return self._view

    @property
    def edit_mode(self) -> bool:
        return self.columns.edit_mode

    @property
    def sort_by_user(self) -> bool:
        return self._sort_by_user

    @property
    def group_by_process(self) -> bool:
        return self._group_by_process

    @property
    def user_names(self) -> dict[str, str]:
        names = {}
        for user in self.user_store.data or []:
            uid = user.get("id")
            if uid is not None:
                names[str(uid)] = str(user.get("name") or user.get("email") or uid)
        return names

    @property
    def machine_names(self) -> list[str]:
        return [
            str(e.get("name")) for e in self.equipment_store.data or [] if e.get("name")
        ]

    @property
    def process_names(self) -> dict[str, str]:
        """Process id → name, for grouping cards by process."""
        return {
            str(p["id"]): str(p.get("name") or p["id"])
            for p in self.process_store.data or [] if p.get("id") is not None
        }

    def set_sort_by_user(self, enabled: bool) -> None:
        if enabled != self._sort_by_user:
            self._sort_by_user = enabled
            self._rebuild()

    def set_group_by_process(self, enabled: bool) -> None:
        if enabled != self._group_by_process:
            self._group_by_process = enabled
            self._rebuild()

    def done_cards(self) -> list[Card]:
        """Every card in the terminal column, newest first."""
        return done_cards(self.cards, self.config)

    def _build_view(self) -> BoardView:
        return build_board_view(
            self.cards,
            self.config,
            sort_by_user=self._sort_by_user,
            group_by_process=self._group_by_process,
            process_names=self.process_names,
            user_names=self.user_names,
            now=self._now(),
        )

    def _rebuild(self) -> None:
        self._view = self._build_view()
        self.board_changed.emit()

    def _on_cards_changed(self, cards: Any) -> None:
        if self.selection.retain_column({c.id: c.column_id for c in cards or ()}):
            self.selection_changed.emit(self.selection.state)
        self._rebuild()

    def _on_lookups_changed(self) -> None:
        self.lookups_changed.emit()
        self._rebuild()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def click_card(self, card_id: str, *, shift: bool = False, toggle: bool = False) -> SelectionState:
        """Selection click on a displayed card."""
        for column in self._view.columns:
            ids = column.card_ids
            if card_id in ids:
                state = self.selection.click(
                    card_id, column.column_id, ids.index(card_id), ids,
                    shift=shift, toggle=toggle,
                )
                self.selection_changed.emit(state)
                return state
        return self.selection.state

    def clear_selection(self) -> None:
        if self.selection.is_empty:
            return
        self.selection.clear()
        self.selection_changed.emit(self.selection.state)

    def selected_card_ids(self) -> list[str]:
        """Selected ids in display order."""
        anchor = self.selection.anchor_column_id
        ordered = self.selection.ordered(self._view.visible_ids(anchor)) if anchor else []
        rest = [
            c.id for c in self.cards
            if self.selection.is_selected(c.id) and c.id not in ordered
        ]
        return ordered + rest

    # ------------------------------------------------------------------
    # Drag & drop
    # ------------------------------------------------------------------

    def drag_context(self) -> DragContext:
        anchor = self.selection.anchor_column_id
        return DragContext(
            card_columns={c.id: c.column_id for c in self.cards},
            column_ids=self.config.column_ids,
            selection=self.selection.state,
            selection_order=self._view.visible_ids(anchor) if anchor else [],
            edit_mode=self.edit_mode,
        )

    def press(self, source: DragSource, x: float, y: float) -> None:
        self.drag.press(source, x, y)

    def drag_move(self, x: float, y: float) -> bool:
        return self.drag.move(x, y)

    def drop(self, target: DropTarget | None) -> MoveIntent | None:
        """Finish the gesture and dispatch the resulting intent."""
        intent = self.drag.release(target, self.drag_context())
        if intent is not None:
            self.dispatch(intent)
        return intent

    def cancel_drag(self) -> None:
        self.drag.cancel()

    def dispatch(self, intent: MoveIntent) -> None:
        """Route a move intent to the component that owns it."""
        if isinstance(intent, MoveColumn):
            self.columns.move_column(intent.column_id, intent.target_index)
        elif isinstance(intent, MoveCardGroup):
            self.clear_selection()
            self.mutations.move_cards(intent.card_ids, intent.target_column_id)
        elif isinstance(intent, MoveCard):
            self.mutations.move_card(intent.card_id, intent.target_column_id)
        else:
            raise TypeError(f"Unknown move intent: {intent!r}")

    # ------------------------------------------------------------------
    # Edit mode
    # ------------------------------------------------------------------

    def enter_edit_mode(self) -> None:
        if self.edit_mode:
            return
        self._original_config = self.columns.config
        self.columns.set_edit_mode(True)
        self.edit_mode_changed.emit(True)

    def save_edit_mode(self) -> None:
        """Write pending column edits now and leave edit mode."""
        if not self.edit_mode:
            return
        self.columns.flush()
        self.columns.set_edit_mode(False)
        self._original_config = None
        self.edit_mode_changed.emit(False)

    def cancel_edit_mode(self) -> None:
        """Leave edit mode and put back the columns as they were on entry."""
        if not self.edit_mode:
            return
        original = self._original_config
        self._original_config = None
        self.columns.set_edit_mode(False)
        if original is not None and (
            columns_fingerprint(renumber(original.columns))
            != columns_fingerprint(renumber(self.columns.config.columns))
            or self.columns.has_unsaved_changes
        ):
            logger.info("Edit mode cancelled; restoring %d columns", len(original.columns))
            self.columns.persist(original)
        self.edit_mode_changed.emit(False)

    # ------------------------------------------------------------------
    # Column edits
    # ------------------------------------------------------------------

    def add_column(self) -> str:
        return self.columns.add_column().id

    def rename_column(self, column_id: str, title: str) -> bool:
        return self.columns.rename_column(column_id, title)

    def delete_column(self, column_id: str) -> bool:
        return self.columns.delete_column(column_id)

    # ------------------------------------------------------------------
    # Card edits
    # ------------------------------------------------------------------

    def create_card(self, fields: dict) -> bool:
        return self.mutations.create_card(fields)

    def delete_card(self, card_id: str) -> str | None:
        return self.mutations.delete_card(card_id)

    def bulk_edit(self, field: BulkField, value: Any) -> bool:
        """Apply one field change to every selected card."""
        ids = self.selected_card_ids()
        if not ids:
            return False
        return self.bulk.apply(field, value, ids)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _notify_error(self, title: str, error: BaseException) -> None:
        self.notification.emit(Notification(
            NotificationLevel.ERROR, title, failure_message(error),
        ))
