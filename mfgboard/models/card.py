"""Card data model — one manufacturing work item on the board.

Cards reference their column by id only; per-column groupings are
derived on demand (see mfgboard.core.board_views).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class Card:
    """Immutable manufacturing card.

    Attributes:
        id: Unique card identifier.
        column_id: Id of the column (workflow stage) holding the card.
        title: Part / work item name.
        assignee: User id of the assigned machinist, if any.
        machine: Equipment name the part is scheduled on, if any.
        due_date: ISO 8601 due date, if any.
        process_ids: Manufacturing process ids attached to the card.
        quantity_per_robot: Parts needed per robot.
        quantity_to_make: Total parts to make.
        content: Markdown notes.
        created_by: Display name of the creator.
        created_at: ISO 8601 creation timestamp (server-assigned).
        updated_at: ISO 8601 last-update timestamp (server-assigned).
    """
    id: str
    column_id: str
    title: str = ""
    assignee: str | None = None
    machine: str | None = None
    due_date: str | None = None
    process_ids: tuple[str, ...] = field(default_factory=tuple)
    quantity_per_robot: int | None = None
    quantity_to_make: int | None = None
    content: str | None = None
    created_by: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def with_changes(self, **changes: Any) -> Card:
        """Return a copy with the given fields replaced."""
        if "process_ids" in changes and changes["process_ids"] is not None:
            changes["process_ids"] = tuple(changes["process_ids"])
        return replace(self, **changes)

    @property
    def updated_at_dt(self) -> datetime | None:
        return parse_timestamp(self.updated_at)

    @property
    def created_at_dt(self) -> datetime | None:
        return parse_timestamp(self.created_at)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
