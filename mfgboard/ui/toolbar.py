"""Main toolbar — card creation, refresh, sorting toggles, column edit mode."""

from PyQt6.QtWidgets import QToolBar, QToolButton, QCheckBox, QLabel
from PyQt6.QtCore import pyqtSignal, QSignalBlocker

from mfgboard.core.i18n import t


class MainToolBar(QToolBar):
    """Application toolbar.

    The Edit / Save / Cancel buttons swap visibility with edit mode.
    """

    new_card_requested = pyqtSignal()
    refresh_requested = pyqtSignal()
    done_cards_requested = pyqtSignal()
    sort_by_user_toggled = pyqtSignal(bool)
    group_by_process_toggled = pyqtSignal(bool)
    edit_requested = pyqtSignal()
    save_requested = pyqtSignal()
    cancel_requested = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__("Main Toolbar", parent)
        self.setMovable(False)
        self._build_ui()
        self.set_edit_mode(False)

    def _build_ui(self):
        self._btn_new = self._tool_button(
            t("toolbar.new_card", "New Card"), self.new_card_requested.emit)
        self._btn_refresh = self._tool_button(
            t("toolbar.refresh", "Refresh"), self.refresh_requested.emit)
        self._btn_done = self._tool_button(
            t("toolbar.done_cards", "Done Cards"), self.done_cards_requested.emit)
        self.addSeparator()

        self._chk_user = QCheckBox(t("toolbar.sort_by_user", "Sort by user"))
        self._chk_user.toggled.connect(self.sort_by_user_toggled.emit)
        self.addWidget(self._chk_user)
        self._chk_process = QCheckBox(t("toolbar.group_by_process", "Group by process"))
        self._chk_process.toggled.connect(self.group_by_process_toggled.emit)
        self.addWidget(self._chk_process)
        self.addSeparator()

        self._edit_label = QLabel(t("toolbar.editing", "Editing columns"))
        self._edit_label_action = self.addWidget(self._edit_label)
        self._btn_edit = self._tool_button(
            t("toolbar.edit_columns", "Edit Columns"), self.edit_requested.emit)
        self._btn_save = self._tool_button(
            t("toolbar.save", "Save"), self.save_requested.emit)
        self._btn_cancel = self._tool_button(
            t("toolbar.cancel", "Cancel"), self.cancel_requested.emit)

    def _tool_button(self, text: str, slot):
        btn = QToolButton()
        btn.setText(text)
        btn.clicked.connect(slot)
        return self.addWidget(btn)

    def set_edit_mode(self, enabled: bool) -> None:
        self._btn_edit.setVisible(not enabled)
        self._btn_save.setVisible(enabled)
        self._btn_cancel.setVisible(enabled)
        self._edit_label_action.setVisible(enabled)

    def set_sorting(self, sort_by_user: bool, group_by_process: bool) -> None:
        """Set the toggles without emitting (state restore)."""
        with QSignalBlocker(self._chk_user):
            self._chk_user.setChecked(sort_by_user)
        with QSignalBlocker(self._chk_process):
            self._chk_process.setChecked(group_by_process)
