"""Dialogs — modal dialog windows (card form, done cards)."""

from mfgboard.ui.dialogs.card_dialog import CardDialog
from mfgboard.ui.dialogs.done_cards_dialog import DoneCardsDialog

__all__ = [
    "CardDialog",
    "DoneCardsDialog",
]
