"""Serialization utilities — model ↔ JSON-safe dict conversion.

Wire format is camelCase (``columnId``, ``createdAt``...). Card rows
coming straight from the database use snake_case and the legacy
``date_created`` / ``date_updated`` names; both are accepted on input.
"""

from __future__ import annotations

import json
from typing import Any

from mfgboard.models.board import BoardConfig, Column
from mfgboard.models.card import Card

# Card attribute → wire key
_CARD_WIRE_KEYS = {
    "id": "id",
    "column_id": "columnId",
    "title": "title",
    "assignee": "assignee",
    "machine": "machine",
    "due_date": "dueDate",
    "process_ids": "processIds",
    "quantity_per_robot": "quantityPerRobot",
    "quantity_to_make": "quantityToMake",
    "content": "content",
    "created_by": "createdBy",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

# Extra input aliases accepted per attribute
_CARD_ALIASES = {
    "created_at": ("date_created", "dateCreated"),
    "updated_at": ("date_updated", "dateUpdated"),
}


def _pick(data: dict, attr: str) -> Any:
    """Look up an attribute under its wire key, snake_case name or alias."""
    for key in (_CARD_WIRE_KEYS[attr], attr, *_CARD_ALIASES.get(attr, ())):
        if key in data:
            return data[key]
    return None


def _optional_int(val: Any) -> int | None:
    if val is None or val == "":
        return None
    return int(val)


# =====================================================================
# Cards
# =====================================================================


def card_to_dict(card: Card) -> dict:
    """Serialize a Card to its camelCase wire dict."""
    d = {}
    for attr, key in _CARD_WIRE_KEYS.items():
        val = getattr(card, attr)
        if attr == "process_ids":
            val = list(val)
        d[key] = val
    return d


def dict_to_card(data: dict) -> Card:
    """Deserialize a wire dict (or raw database row) to a Card.

    Raises:
        ValueError: If the dict has no ``id`` or no column reference.
    """
    card_id = _pick(data, "id")
    column_id = _pick(data, "column_id")
    if not card_id or not column_id:
        raise ValueError(f"Card payload missing id/columnId: {data!r}")

    process_ids = _pick(data, "process_ids")
    if process_ids is None and isinstance(data.get("processes"), list):
        # Expanded rows embed process objects instead of ids
        process_ids = [p.get("id") for p in data["processes"] if isinstance(p, dict)]

    return Card(
        id=str(card_id),
        column_id=str(column_id),
        title=_pick(data, "title") or "",
        assignee=_pick(data, "assignee"),
        machine=_pick(data, "machine"),
        due_date=_pick(data, "due_date"),
        process_ids=tuple(str(p) for p in (process_ids or ()) if p is not None),
        quantity_per_robot=_optional_int(_pick(data, "quantity_per_robot")),
        quantity_to_make=_optional_int(_pick(data, "quantity_to_make")),
        content=_pick(data, "content"),
        created_by=_pick(data, "created_by"),
        created_at=_pick(data, "created_at") or "",
        updated_at=_pick(data, "updated_at") or "",
    )


def cards_from_payload(payload: dict) -> tuple[Card, ...]:
    """Deserialize a ``{"cards": [...]}`` response body."""
    return tuple(dict_to_card(row) for row in payload.get("cards") or [])


def changes_to_wire(changes: dict) -> dict:
    """Translate a Card attribute patch into camelCase wire keys."""
    out = {}
    for attr, val in changes.items():
        key = _CARD_WIRE_KEYS.get(attr, attr)
        if attr == "process_ids" and val is not None:
            val = list(val)
        out[key] = val
    return out


# =====================================================================
# Board config
# =====================================================================


def column_to_dict(column: Column) -> dict:
    return {"id": column.id, "title": column.title, "position": column.position}


def dict_to_column(data: dict, fallback_position: int = 0) -> Column:
    position = data.get("position")
    return Column(
        id=str(data["id"]),
        title=str(data.get("title", "")),
        position=int(position) if position is not None else fallback_position,
    )


def config_to_dict(config: BoardConfig) -> dict:
    """Serialize a BoardConfig to the ``{"columns": [...]}`` document."""
    return {"columns": [column_to_dict(c) for c in config.columns]}


def dict_to_config(data: dict) -> BoardConfig:
    """Deserialize a board config document.

    Columns are ordered by their stored ``position``; ties keep the
    document order.
    """
    columns = [
        dict_to_column(c, fallback_position=i)
        for i, c in enumerate(data.get("columns") or [])
    ]
    columns.sort(key=lambda c: c.position)
    return BoardConfig(columns=tuple(columns))


def columns_fingerprint(columns) -> str:
    """Stable serialization used to tell configs apart."""
    return json.dumps([column_to_dict(c) for c in columns], sort_keys=True)
