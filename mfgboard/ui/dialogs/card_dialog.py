"""Card dialog — create a card or edit an existing one.

Input is checked with validate_new_card() before the dialog accepts, so
nothing invalid ever reaches the API.
"""

from PyQt6.QtWidgets import (
    QDialog, QDialogButtonBox, QFormLayout, QLabel, QLineEdit, QTextEdit,
)

from mfgboard.api.errors import ValidationError
from mfgboard.core.card_validation import validate_new_card
from mfgboard.core.i18n import t
from mfgboard.models.card import Card
from mfgboard.ui.styles.colors import ERROR

_EDITABLE_FIELDS = (
    "title", "assignee", "machine", "due_date",
    "quantity_per_robot", "quantity_to_make", "content",
)


class CardDialog(QDialog):
    """Form for the editable card fields."""

    def __init__(self, card: Card | None = None, parent=None):
        super().__init__(parent)
        self._card = card
        self._values: dict = {}
        self.setWindowTitle(
            t("dialogs.edit_card_title", "Edit Card") if card
            else t("dialogs.new_card_title", "New Card")
        )
        self.setMinimumWidth(420)

        layout = QFormLayout(self)

        self._title_edit = QLineEdit()
        layout.addRow(t("dialogs.card_title", "Title:"), self._title_edit)

        self._assignee_edit = QLineEdit()
        layout.addRow(t("dialogs.card_assignee", "Assignee:"), self._assignee_edit)

        self._machine_edit = QLineEdit()
        layout.addRow(t("dialogs.card_machine", "Machine:"), self._machine_edit)

        self._due_edit = QLineEdit()
        self._due_edit.setPlaceholderText("YYYY-MM-DD")
        layout.addRow(t("dialogs.card_due", "Due date:"), self._due_edit)

        self._qty_robot_edit = QLineEdit()
        layout.addRow(t("dialogs.card_qty_robot", "Qty per robot:"), self._qty_robot_edit)

        self._qty_make_edit = QLineEdit()
        layout.addRow(t("dialogs.card_qty_make", "Qty to make:"), self._qty_make_edit)

        self._content_edit = QTextEdit()
        self._content_edit.setMaximumHeight(100)
        layout.addRow(t("dialogs.card_notes", "Notes:"), self._content_edit)

        self._error_label = QLabel()
        self._error_label.setStyleSheet(f"color: {ERROR};")
        self._error_label.setWordWrap(True)
        self._error_label.hide()
        layout.addRow(self._error_label)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok
            | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

        if card is not None:
            self._fill(card)

    def _fill(self, card: Card) -> None:
        self._title_edit.setText(card.title)
        self._assignee_edit.setText(card.assignee or "")
        self._machine_edit.setText(card.machine or "")
        self._due_edit.setText((card.due_date or "")[:10])
        if card.quantity_per_robot is not None:
            self._qty_robot_edit.setText(str(card.quantity_per_robot))
        if card.quantity_to_make is not None:
            self._qty_make_edit.setText(str(card.quantity_to_make))
        self._content_edit.setPlainText(card.content or "")

    def _raw_values(self) -> dict:
        return {
            "title": self._title_edit.text(),
            "assignee": self._assignee_edit.text(),
            "machine": self._machine_edit.text(),
            "due_date": self._due_edit.text().strip(),
            "quantity_per_robot": self._qty_robot_edit.text().strip(),
            "quantity_to_make": self._qty_make_edit.text().strip(),
            "content": self._content_edit.toPlainText(),
        }

    def _on_accept(self) -> None:
        try:
            self._values = validate_new_card(self._raw_values())
        except ValidationError as e:
            self._error_label.setText(e.message)
            self._error_label.show()
            return
        self.accept()

    def get_values(self) -> dict:
        """Validated fields (new card)."""
        return dict(self._values)

    def get_changes(self) -> dict:
        """Fields that differ from the edited card; cleared fields become None."""
        if self._card is None:
            return self.get_values()
        changes = {}
        for name in _EDITABLE_FIELDS:
            new = self._values.get(name)
            old = getattr(self._card, name)
            if name == "due_date" and old:
                old = old[:10]
            if new != old:
                changes[name] = new
        return changes
