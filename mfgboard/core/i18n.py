"""Internationalization — JSON string tables with English as the base layer.

Strings live in translations/{lang}.json as nested objects and are
looked up by dot-path ("board.add_column"). The English table is always
loaded first; a non-English language only overrides the keys it
defines, so a partial translation never shows blank labels.

Usage:
    from mfgboard.core.i18n import t, TranslationManager

    TranslationManager.init("en")
    label.setText(t("board.add_column", "Add Column"))
    msg = t("bulk.failed", "{failed} of {total} cards failed", failed=2, total=5)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

BASE_LANGUAGE = "en"
_TRANSLATIONS_DIR = Path(__file__).parent.parent.parent / "translations"


class TranslationManager:
    """Process-wide string table.

    One instance is active at a time (``instance()``); widgets that
    cache labels register with ``on_language_changed`` to relabel
    themselves after ``set_language``.
    """

    _instance: TranslationManager | None = None
    _listeners: list[Callable[[], None]] = []

    def __init__(self, lang: str = BASE_LANGUAGE, directory: Path | None = None):
        self.lang = lang
        self._dir = directory or _TRANSLATIONS_DIR
        self._strings: dict[str, str] = {}
        self._load(lang)

    def _read(self, lang: str) -> dict[str, str]:
        path = self._dir / f"{lang}.json"
        if not path.exists():
            return {}
        try:
            return _flatten(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            logger.warning("Could not read translations %s: %s", path, e)
            return {}

    def _load(self, lang: str) -> None:
        strings = self._read(BASE_LANGUAGE)
        if lang != BASE_LANGUAGE:
            overlay = self._read(lang)
            if not overlay:
                logger.debug("No translation table for %r; English only", lang)
            strings.update(overlay)
        self._strings = strings

    def get(self, key: str, default: str = "") -> str:
        """String for ``key``, or ``default`` when no table has it."""
        return self._strings.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._strings

    def set_language(self, lang: str) -> None:
        """Switch language and notify all listeners."""
        self.lang = lang
        self._load(lang)
        for cb in list(self._listeners):
            cb()

    def available_languages(self) -> list[str]:
        """Language codes with a table in the translations directory."""
        if not self._dir.is_dir():
            return [BASE_LANGUAGE]
        return sorted(p.stem for p in self._dir.glob("*.json"))

    @classmethod
    def instance(cls) -> TranslationManager:
        if cls._instance is None:
            cls._instance = cls(BASE_LANGUAGE)
        return cls._instance

    @classmethod
    def init(cls, lang: str = BASE_LANGUAGE) -> TranslationManager:
        """Replace the active table with one for ``lang``."""
        cls._instance = cls(lang)
        logger.info("UI language: %s", lang)
        return cls._instance

    @classmethod
    def on_language_changed(cls, callback: Callable[[], None]) -> None:
        cls._listeners.append(callback)

    @classmethod
    def reset(cls) -> None:
        """Drop the active table and listeners (tests)."""
        cls._instance = None
        cls._listeners.clear()


def _flatten(tree: dict, prefix: str = "") -> dict[str, str]:
    """{"board": {"add_column": "Add"}} -> {"board.add_column": "Add"}"""
    flat: dict[str, str] = {}
    stack = [(prefix, tree)]
    while stack:
        base, node = stack.pop()
        for name, value in node.items():
            path = f"{base}.{name}" if base else str(name)
            if isinstance(value, dict):
                stack.append((path, value))
            else:
                flat[path] = str(value)
    return flat


def t(key: str, default: str = "", **fmt: Any) -> str:
    """Translate ``key``; keyword arguments fill ``{placeholders}``.

    A table entry whose placeholders do not match ``fmt`` falls back to
    the formatted ``default`` rather than raising inside a paint path.
    """
    text = TranslationManager.instance().get(key, default)
    if not fmt:
        return text
    try:
        return text.format(**fmt)
    except (KeyError, IndexError, ValueError):
        logger.warning("Bad placeholders in translation %r", key)
        return default.format(**fmt)
