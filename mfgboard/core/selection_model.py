"""Selection model — which cards are selected, confined to one column.

Pure Python class (no Qt dependency). Callers pass the column's current
visible card order with every click so that range selection follows
what the user sees (after sorting and the Done filter).

Click semantics:
  - click in another column than the anchor → start over with that card
  - shift-click with an anchor in the same column → add the range
    between the range pivot and the clicked card
  - plain or ctrl/cmd click → toggle the clicked card
"""

from __future__ import annotations

from typing import Mapping, Sequence

from mfgboard.models.interaction import SelectionState


class SelectionModel:
    """Tracks the card selection and its anchor.

    A run of consecutive shift-clicks extends from the same pivot (the
    last non-shift click) and replaces the range added by the previous
    shift-click of the run, so shift-clicking closer to the pivot
    narrows the range again. Cards selected before the run started are
    kept.

    Usage::

        sel = SelectionModel()
        sel.click("c1", "backlog", 0, column_ids)
        sel.click("c4", "backlog", 3, column_ids, shift=True)
        sel.state.selected_card_ids  # c1..c4
    """

    def __init__(self) -> None:
        self._state = SelectionState()
        # Selection that existed before the current shift-click run
        self._range_base: frozenset[str] = frozenset()
        self._range_pivot: int | None = None

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def selected_ids(self) -> frozenset[str]:
        return self._state.selected_card_ids

    @property
    def anchor_column_id(self) -> str | None:
        return self._state.anchor_column_id

    @property
    def count(self) -> int:
        return self._state.count

    @property
    def is_empty(self) -> bool:
        return self._state.is_empty

    def is_selected(self, card_id: str) -> bool:
        return card_id in self._state.selected_card_ids

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def click(
        self,
        card_id: str,
        column_id: str,
        index: int,
        column_card_ids: Sequence[str],
        *,
        shift: bool = False,
        toggle: bool = False,
    ) -> SelectionState:
        """Apply a click on ``card_id`` at ``index`` within ``column_id``.

        Args:
            card_id: Clicked card.
            column_id: Column the card is displayed in.
            index: Card index within the column's visible order.
            column_card_ids: The column's visible card order.
            shift: Shift modifier held (range selection).
            toggle: Ctrl/Cmd modifier held. Treated like a plain click.

        Returns:
            The new selection state.
        """
        prev = self._state

        if prev.anchor_column_id is not None and prev.anchor_column_id != column_id:
            self._set(frozenset({card_id}), column_id, index)
            self._start_run(index)
            return self._state

        if shift and prev.anchor_index is not None and prev.anchor_column_id == column_id:
            pivot = self._range_pivot if self._range_pivot is not None else prev.anchor_index
            lo, hi = min(pivot, index), max(pivot, index)
            span = {cid for cid in column_card_ids[lo:hi + 1]}
            self._state = SelectionState(
                selected_card_ids=self._range_base | span,
                anchor_column_id=column_id,
                anchor_index=index,
            )
            self._range_pivot = pivot
            return self._state

        # Plain / ctrl / cmd click: toggle the single card
        selected = set(prev.selected_card_ids)
        if card_id in selected:
            selected.discard(card_id)
        else:
            selected.add(card_id)

        if not selected:
            self.clear()
            return self._state

        self._set(frozenset(selected), column_id, index)
        self._start_run(index)
        return self._state

    def clear(self) -> None:
        """Drop every selected card and the anchor."""
        self._state = SelectionState()
        self._range_base = frozenset()
        self._range_pivot = None

    def retain_column(self, card_columns: Mapping[str, str]) -> bool:
        """Forget selected cards that are gone or have left the anchor column.

        Args:
            card_columns: Current card id → column id for every card.

        Returns:
            True if the selection changed.
        """
        anchor = self._state.anchor_column_id
        kept = frozenset(
            cid for cid in self._state.selected_card_ids
            if card_columns.get(cid) == anchor
        )
        if kept == self._state.selected_card_ids:
            return False
        if not kept:
            self.clear()
            return True
        self._state = SelectionState(
            selected_card_ids=kept,
            anchor_column_id=anchor,
            anchor_index=self._state.anchor_index,
        )
        self._range_base = self._range_base & kept
        return True

    def ordered(self, column_card_ids: Sequence[str]) -> list[str]:
        """Selected ids in the column's display order."""
        selected = self._state.selected_card_ids
        return [cid for cid in column_card_ids if cid in selected]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _set(self, ids: frozenset[str], column_id: str, index: int) -> None:
        self._state = SelectionState(
            selected_card_ids=ids,
            anchor_column_id=column_id,
            anchor_index=index,
        )

    def _start_run(self, pivot: int) -> None:
        self._range_base = self._state.selected_card_ids
        self._range_pivot = pivot
