"""Derived board views — per-column card groupings.

Cards are grouped by ``column_id`` in collection order, optionally
re-sorted by process and/or assignee (stable, so equal keys keep the
collection order). The terminal column only shows cards updated within
the visible window; older ones are counted for the "older cards" link
and listed by done_cards().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping

from mfgboard.constants import (
    DONE_VISIBLE_WINDOW_HOURS,
    MULTIPLE_PROCESS_SORT_KEY,
    UNASSIGNED_PROCESS_SORT_KEY,
    UNASSIGNED_USER_SORT_KEY,
)
from mfgboard.models.board import BoardConfig
from mfgboard.models.card import Card


@dataclass
class ColumnView:
    """One column as displayed."""
    column_id: str
    title: str
    cards: list[Card] = field(default_factory=list)
    is_last_column: bool = False
    older_cards_count: int = 0

    @property
    def card_ids(self) -> list[str]:
        return [c.id for c in self.cards]


@dataclass
class BoardView:
    """Whole board as displayed, columns in display order."""
    columns: list[ColumnView] = field(default_factory=list)
    total_cards: int = 0

    def column(self, column_id: str) -> ColumnView | None:
        for col in self.columns:
            if col.column_id == column_id:
                return col
        return None

    def visible_ids(self, column_id: str) -> list[str]:
        col = self.column(column_id)
        return col.card_ids if col else []


def process_sort_key(card: Card, process_names: Mapping[str, str]) -> str:
    if not card.process_ids:
        return UNASSIGNED_PROCESS_SORT_KEY
    if len(card.process_ids) > 1:
        return MULTIPLE_PROCESS_SORT_KEY
    pid = card.process_ids[0]
    return process_names.get(pid, pid)


def assignee_sort_key(card: Card, user_names: Mapping[str, str] | None = None) -> str:
    if not card.assignee:
        return UNASSIGNED_USER_SORT_KEY
    if user_names:
        return user_names.get(card.assignee, card.assignee)
    return card.assignee


def is_recent(card: Card, now: datetime, window: timedelta) -> bool:
    """True if the card was updated within ``window`` of ``now``.

    Cards without a parseable timestamp count as recent.
    """
    updated = card.updated_at_dt
    if updated is None:
        return True
    return now - updated <= window


def sort_cards(
    cards: list[Card],
    *,
    sort_by_user: bool = False,
    group_by_process: bool = False,
    process_names: Mapping[str, str] | None = None,
    user_names: Mapping[str, str] | None = None,
) -> list[Card]:
    """Stable sort by process name, then assignee (each optional)."""
    if not (sort_by_user or group_by_process):
        return list(cards)
    names = process_names or {}

    def key(card: Card) -> tuple:
        parts = []
        if group_by_process:
            parts.append(process_sort_key(card, names).casefold())
        if sort_by_user:
            parts.append(assignee_sort_key(card, user_names).casefold())
        return tuple(parts)

    return sorted(cards, key=key)


def build_board_view(
    cards: Iterable[Card],
    config: BoardConfig,
    *,
    sort_by_user: bool = False,
    group_by_process: bool = False,
    process_names: Mapping[str, str] | None = None,
    user_names: Mapping[str, str] | None = None,
    now: datetime | None = None,
    done_window: timedelta = timedelta(hours=DONE_VISIBLE_WINDOW_HOURS),
) -> BoardView:
    """Group cards into display columns.

    Args:
        cards: Card collection in server order.
        config: Board config (column order).
        sort_by_user: Sort each column by assignee.
        group_by_process: Sort each column by process name first.
        process_names: Process id → display name.
        user_names: User id → display name.
        now: Reference time for the Done filter (defaults to now, UTC).
        done_window: How long a card stays visible in the last column.

    Returns:
        BoardView with one ColumnView per configured column. Cards whose
        column is not configured are not displayed.
    """
    now = now or datetime.now(timezone.utc)
    grouped: dict[str, list[Card]] = {cid: [] for cid in config.column_ids}
    total = 0
    for card in cards:
        total += 1
        if card.column_id in grouped:
            grouped[card.column_id].append(card)

    view = BoardView(total_cards=total)
    n = len(config.columns)
    for i, col in enumerate(config.columns):
        column_cards = grouped[col.id]
        is_last = i == n - 1
        older = 0
        if is_last:
            recent = [c for c in column_cards if is_recent(c, now, done_window)]
            older = len(column_cards) - len(recent)
            column_cards = recent
        view.columns.append(ColumnView(
            column_id=col.id,
            title=config.display_title(col.id),
            cards=sort_cards(
                column_cards,
                sort_by_user=sort_by_user,
                group_by_process=group_by_process,
                process_names=process_names,
                user_names=user_names,
            ),
            is_last_column=is_last,
            older_cards_count=older,
        ))
    return view


def done_cards(cards: Iterable[Card], config: BoardConfig) -> list[Card]:
    """Every card in the terminal column, most recently updated first."""
    last = config.last_column
    if last is None:
        return []
    in_done = [c for c in cards if c.column_id == last.id]
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(in_done, key=lambda c: c.updated_at_dt or epoch, reverse=True)
