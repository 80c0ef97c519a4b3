"""Board structure models — columns and the persisted board config.

Column order is the list order; ``position`` mirrors it as a dense
0..n-1 index once the config has been renumbered.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from mfgboard.constants import DEFAULT_COLUMNS, DONE_COLUMN_TITLE


@dataclass(frozen=True)
class Column:
    """One workflow stage."""
    id: str
    title: str
    position: int = 0


@dataclass(frozen=True)
class BoardConfig:
    """Ordered column list — the single structural document on the server."""
    columns: tuple[Column, ...] = field(default_factory=tuple)

    @property
    def column_ids(self) -> list[str]:
        return [c.id for c in self.columns]

    def index_of(self, column_id: str) -> int:
        """Display index of a column, -1 if absent."""
        for i, col in enumerate(self.columns):
            if col.id == column_id:
                return i
        return -1

    def get(self, column_id: str) -> Column | None:
        for col in self.columns:
            if col.id == column_id:
                return col
        return None

    @property
    def last_column(self) -> Column | None:
        return self.columns[-1] if self.columns else None

    def is_last_column(self, column_id: str) -> bool:
        last = self.last_column
        return last is not None and last.id == column_id

    def display_title(self, column_id: str) -> str:
        """Title shown in the UI; the terminal column always reads "Done"."""
        if self.is_last_column(column_id):
            return DONE_COLUMN_TITLE
        col = self.get(column_id)
        return col.title if col else ""

    def renumbered(self) -> BoardConfig:
        """Copy with positions set to the dense display index."""
        return BoardConfig(columns=renumber(self.columns))


def renumber(columns) -> tuple[Column, ...]:
    """Assign positions 0..n-1 following the given order."""
    return tuple(
        col if col.position == i else replace(col, position=i)
        for i, col in enumerate(columns)
    )


def default_board_config() -> BoardConfig:
    """Board used when the server has no stored config."""
    return BoardConfig(columns=tuple(
        Column(id=cid, title=title, position=i)
        for i, (cid, title) in enumerate(DEFAULT_COLUMNS)
    ))
