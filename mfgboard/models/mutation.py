"""Mutation, bulk-edit and notification models.

A CardMutation is a pure description of a local change to the card
collection; OptimisticMutationCoordinator applies it speculatively and
pairs it with the network request that makes it durable.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from mfgboard.models.card import Card


class MutationKind(Enum):
    """Kind of optimistic card mutation."""
    MOVE = "move"
    UPDATE = "update"
    ASSIGN = "assign"
    DUE_DATE = "due_date"
    DELETE = "delete"


@dataclass(frozen=True)
class CardMutation:
    """Local effect of one card mutation.

    Attributes:
        kind: Mutation kind (for logging / notifications).
        card_ids: Cards affected.
        changes: Field → value patch (Card attribute names). Ignored
            for DELETE.
        id: Unique mutation id.
    """
    kind: MutationKind
    card_ids: tuple[str, ...]
    changes: Mapping[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def apply(self, cards: tuple[Card, ...]) -> tuple[Card, ...]:
        """Return the collection with this mutation applied."""
        targets = set(self.card_ids)
        if self.kind is MutationKind.DELETE:
            return tuple(c for c in cards if c.id not in targets)
        return tuple(
            c.with_changes(**dict(self.changes)) if c.id in targets else c
            for c in cards
        )


@dataclass(frozen=True)
class MutationSnapshot:
    """Card collection as it was immediately before a mutation."""
    mutation_id: str
    cards: tuple[Card, ...]


class BulkField(Enum):
    """Fields the bulk edit bar can set on a selection."""
    ASSIGNEE = "assignee"
    MACHINE = "machine"
    COLUMN = "column"


@dataclass
class BulkEditResult:
    """Outcome of one fanned-out bulk edit."""
    field: BulkField
    value: Any
    total: int = 0
    failed_card_ids: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def failed(self) -> int:
        return len(self.failed_card_ids)

    @property
    def succeeded(self) -> int:
        return self.total - self.failed

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def summary(self) -> str:
        if self.ok:
            noun = "card" if self.total == 1 else "cards"
            return f"Updated {self.total} {noun}"
        return f"{self.failed} of {self.total} cards failed"


class NotificationLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    """Dismissible user-facing message."""
    level: NotificationLevel
    title: str
    description: str = ""
