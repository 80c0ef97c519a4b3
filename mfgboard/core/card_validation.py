"""Input checks for card and column edits, run before any request is sent."""

from __future__ import annotations

from typing import Any

from mfgboard.api.errors import ValidationError

_QUANTITY_FIELDS = ("quantity_per_robot", "quantity_to_make")


def _whole_number(val: Any) -> int | None:
    if isinstance(val, bool):
        return None
    if isinstance(val, int):
        return val
    if isinstance(val, float):
        return int(val) if val.is_integer() else None
    if isinstance(val, str):
        try:
            return int(val.strip())
        except ValueError:
            return None
    return None


def validate_title(title: Any, field: str = "title") -> str:
    """Return the stripped title; raise ValidationError if it is blank."""
    text = title.strip() if isinstance(title, str) else ""
    if not text:
        raise ValidationError("Title is required", field=field)
    return text


def validate_new_card(fields: dict) -> dict:
    """Normalise the attributes of a card about to be created.

    Args:
        fields: Card attributes (snake_case). ``title`` is required;
            quantities must be non-negative integers when given.

    Returns:
        A copy with the title stripped and blank optional strings
        dropped.

    Raises:
        ValidationError: On the first invalid field.
    """
    out = dict(fields)
    out["title"] = validate_title(fields.get("title"))

    for name in _QUANTITY_FIELDS:
        val = out.get(name)
        if val is None or val == "":
            out.pop(name, None)
            continue
        num = _whole_number(val)
        if num is None:
            raise ValidationError(f"{name} must be a whole number", field=name)
        if num < 0:
            raise ValidationError(f"{name} must not be negative", field=name)
        out[name] = num

    for name in ("assignee", "machine", "due_date", "content"):
        val = out.get(name)
        if isinstance(val, str) and not val.strip():
            out.pop(name)
    return out
