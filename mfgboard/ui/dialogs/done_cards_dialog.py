"""Done cards dialog — every card in the terminal column, newest first."""

from PyQt6.QtWidgets import (
    QDialog, QDialogButtonBox, QLabel, QTableWidget, QTableWidgetItem, QVBoxLayout,
    QHeaderView,
)

from mfgboard.core.i18n import t
from mfgboard.models.card import Card


class DoneCardsDialog(QDialog):
    """Read-only table of completed cards."""

    def __init__(self, cards: list[Card], user_names: dict[str, str] | None = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle(t("dialogs.done_title", "Done Cards"))
        self.resize(640, 480)
        names = user_names or {}

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel(
            t("dialogs.done_count", "{n} completed cards", n=len(cards))
        ))

        table = QTableWidget(len(cards), 4)
        table.setHorizontalHeaderLabels([
            t("dialogs.done_col_title", "Title"),
            t("dialogs.done_col_assignee", "Assignee"),
            t("dialogs.done_col_machine", "Machine"),
            t("dialogs.done_col_updated", "Completed"),
        ])
        table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        for row, card in enumerate(cards):
            assignee = names.get(card.assignee, card.assignee) if card.assignee else ""
            updated = card.updated_at_dt
            values = (
                card.title,
                assignee,
                card.machine or "",
                updated.strftime("%Y-%m-%d %H:%M") if updated else "",
            )
            for col, text in enumerate(values):
                table.setItem(row, col, QTableWidgetItem(text))
        layout.addWidget(table)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)
