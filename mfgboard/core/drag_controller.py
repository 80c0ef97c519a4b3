"""Drag controller — turns drag gestures into board move intents.

Pure Python state machine (no Qt dependency); the board widgets feed it
press/move/release positions and the item under the pointer.

States:
  IDLE      nothing pressed
  PENDING   pressed, pointer has not yet travelled the activation distance
  DRAGGING  drag active; ``active_source`` is the item being dragged

Release always returns to IDLE (and notifies listeners) before the
resulting intent is handed back, so the dragged item never stays
visually lifted while a request is in flight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Sequence

from mfgboard.constants import DRAG_ACTIVATION_DISTANCE_PX
from mfgboard.models.interaction import (
    DragItemKind,
    DragSource,
    DropTarget,
    MoveCard,
    MoveCardGroup,
    MoveColumn,
    MoveIntent,
    SelectionState,
)

logger = logging.getLogger(__name__)


class DragPhase(Enum):
    IDLE = "idle"
    PENDING = "pending"
    DRAGGING = "dragging"


@dataclass
class DragContext:
    """Board facts needed to classify a drop.

    Attributes:
        card_columns: Card id → id of the column currently holding it.
        column_ids: Column ids in display order.
        selection: Current selection state.
        selection_order: Selected card ids in display order.
        edit_mode: Whether structural (column) edits are allowed.
    """
    card_columns: Mapping[str, str]
    column_ids: Sequence[str]
    selection: SelectionState = field(default_factory=SelectionState)
    selection_order: Sequence[str] = field(default_factory=list)
    edit_mode: bool = False


def resolve_target_column(target: DropTarget | None, context: DragContext) -> str | None:
    """Column a drop lands in: the column itself, or the column of the card hit."""
    if target is None:
        return None
    if target.kind is DragItemKind.COLUMN:
        return target.item_id if target.item_id in context.column_ids else None
    return context.card_columns.get(target.item_id)


def resolve_intent(
    source: DragSource,
    target: DropTarget | None,
    context: DragContext,
) -> MoveIntent | None:
    """Classify a completed drag into a move intent.

    Returns:
        MoveColumn, MoveCard or MoveCardGroup; None when the drop
        resolves to nothing, to the source position, or to a column
        reorder outside edit mode.
    """
    target_column = resolve_target_column(target, context)
    if target_column is None:
        return None

    if source.kind is DragItemKind.COLUMN:
        column_ids = list(context.column_ids)
        if source.item_id not in column_ids:
            return None
        if not context.edit_mode:
            logger.debug("Column drag ignored outside edit mode: %s", source.item_id)
            return None
        old_index = column_ids.index(source.item_id)
        new_index = column_ids.index(target_column)
        if old_index == new_index:
            return None
        return MoveColumn(column_id=source.item_id, target_index=new_index)

    card_column = context.card_columns.get(source.item_id)
    if card_column is None or card_column == target_column:
        return None

    selection = context.selection
    if (
        source.item_id in selection.selected_card_ids
        and selection.anchor_column_id == card_column
        and selection.count > 1
    ):
        group = tuple(
            cid for cid in context.selection_order
            if cid in selection.selected_card_ids
        )
        return MoveCardGroup(card_ids=group, target_column_id=target_column)

    return MoveCard(card_id=source.item_id, target_column_id=target_column)


class DragController:
    """Gesture state machine with activation threshold.

    Usage::

        drag = DragController()
        drag.add_listener(view.set_dragging_item)
        drag.press(DragSource(DragItemKind.CARD, "c1"), x, y)
        drag.move(x + 12, y)          # → DRAGGING
        intent = drag.release(DropTarget(DragItemKind.COLUMN, "done"), ctx)
    """

    def __init__(self, activation_distance: int = DRAG_ACTIVATION_DISTANCE_PX) -> None:
        self._activation_distance = activation_distance
        self._phase = DragPhase.IDLE
        self._source: DragSource | None = None
        self._origin: tuple[float, float] = (0.0, 0.0)
        self._listeners: list[Callable[[DragSource | None], None]] = []

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def is_dragging(self) -> bool:
        return self._phase is DragPhase.DRAGGING

    @property
    def active_source(self) -> DragSource | None:
        """Item currently being dragged (None unless DRAGGING)."""
        return self._source if self._phase is DragPhase.DRAGGING else None

    def add_listener(self, callback: Callable[[DragSource | None], None]) -> None:
        """Register fn(active_source) called whenever the dragged item changes."""
        self._listeners.append(callback)

    # ------------------------------------------------------------------
    # Gesture input
    # ------------------------------------------------------------------

    def press(self, source: DragSource, x: float, y: float) -> None:
        """Pointer pressed on a draggable item."""
        if self._phase is DragPhase.DRAGGING:
            self.cancel()
        self._source = source
        self._origin = (x, y)
        self._phase = DragPhase.PENDING

    def move(self, x: float, y: float) -> bool:
        """Pointer moved. Returns True when this move activated the drag."""
        if self._phase is not DragPhase.PENDING:
            return False
        dx = abs(x - self._origin[0])
        dy = abs(y - self._origin[1])
        if dx + dy < self._activation_distance:
            return False
        self._phase = DragPhase.DRAGGING
        logger.debug("Drag started: %s", self._source)
        self._notify()
        return True

    def start_keyboard_drag(self, source: DragSource) -> None:
        """Keyboard pick-up: active immediately, no distance threshold."""
        if self._phase is DragPhase.DRAGGING:
            self.cancel()
        self._source = source
        self._phase = DragPhase.DRAGGING
        self._notify()

    def release(
        self,
        target: DropTarget | None,
        context: DragContext,
    ) -> MoveIntent | None:
        """Pointer released / keyboard drop.

        The dragging state is cleared first; the intent (if any) is
        returned afterwards for the caller to dispatch.
        """
        was_dragging = self._phase is DragPhase.DRAGGING
        source = self._source
        self._reset()
        if not was_dragging or source is None:
            return None
        intent = resolve_intent(source, target, context)
        logger.debug("Drop %s on %s → %s", source, target, intent)
        return intent

    def cancel(self) -> None:
        """Abort the gesture (Escape, focus loss)."""
        self._reset()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        was_dragging = self._phase is DragPhase.DRAGGING
        self._phase = DragPhase.IDLE
        self._source = None
        if was_dragging:
            self._notify()

    def _notify(self) -> None:
        active = self.active_source
        for cb in self._listeners:
            cb(active)
