"""Interaction state models — selection, drag sources/targets, move intents.

Move intents are a tagged variant resolved once by DragController:

    MoveIntent = MoveColumn | MoveCard | MoveCardGroup
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class DragItemKind(Enum):
    """What a drag started on, or what it was dropped on."""
    CARD = "card"
    COLUMN = "column"


@dataclass(frozen=True)
class DragSource:
    """The item picked up by a drag gesture."""
    kind: DragItemKind
    item_id: str


@dataclass(frozen=True)
class DropTarget:
    """The item under the pointer when the gesture ended."""
    kind: DragItemKind
    item_id: str


@dataclass(frozen=True)
class MoveColumn:
    """Reorder a column to a new display index."""
    column_id: str
    target_index: int


@dataclass(frozen=True)
class MoveCard:
    """Move a single card into another column."""
    card_id: str
    target_column_id: str


@dataclass(frozen=True)
class MoveCardGroup:
    """Move every selected card (in column order) into another column."""
    card_ids: tuple[str, ...]
    target_column_id: str


MoveIntent = Union[MoveColumn, MoveCard, MoveCardGroup]


@dataclass(frozen=True)
class SelectionState:
    """Selected cards, all from the anchor column.

    Invariant: whenever ``anchor_column_id`` is set, every selected card
    lives in that column. Empty selection ⇔ no anchor.
    """
    selected_card_ids: frozenset[str] = field(default_factory=frozenset)
    anchor_column_id: str | None = None
    anchor_index: int | None = None

    @property
    def is_empty(self) -> bool:
        return not self.selected_card_ids

    @property
    def count(self) -> int:
        return len(self.selected_card_ids)

    def __contains__(self, card_id: str) -> bool:
        return card_id in self.selected_card_ids
