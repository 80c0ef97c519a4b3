"""Bulk edit bar — shown while cards are selected.

Offers assignee, machine and column changes for the whole selection.
Each "Apply" starts one BulkEditCoordinator batch.
"""

from PyQt6.QtWidgets import QFrame, QHBoxLayout, QLabel, QComboBox, QPushButton, QWidget

from mfgboard.core.i18n import t
from mfgboard.models.interaction import SelectionState
from mfgboard.models.mutation import BulkEditResult, BulkField
from mfgboard.ui.board.board_controller import BoardController
from mfgboard.ui.styles.colors import ACCENT, PANEL_BG


class BulkEditBar(QFrame):
    """Horizontal toolbar acting on the current selection."""

    def __init__(self, controller: BoardController, parent: QWidget | None = None):
        super().__init__(parent)
        self._ctrl = controller
        self.setStyleSheet(f"""
            BulkEditBar {{
                background: {PANEL_BG};
                border: 1px solid {ACCENT};
                border-radius: 6px;
            }}
        """)

        row = QHBoxLayout(self)
        row.setContentsMargins(8, 4, 8, 4)

        self._count_label = QLabel()
        row.addWidget(self._count_label)
        row.addSpacing(12)

        self._assignee_combo = QComboBox()
        self._machine_combo = QComboBox()
        self._column_combo = QComboBox()
        for label_key, label_default, combo, field in (
            ("bulk.assignee", "Assignee", self._assignee_combo, BulkField.ASSIGNEE),
            ("bulk.machine", "Machine", self._machine_combo, BulkField.MACHINE),
            ("bulk.column", "Move to", self._column_combo, BulkField.COLUMN),
        ):
            row.addWidget(QLabel(t(label_key, label_default)))
            combo.setMinimumWidth(120)
            row.addWidget(combo)
            btn = QPushButton(t("bulk.apply", "Apply"))
            btn.clicked.connect(lambda _checked=False, f=field, c=combo: self._apply(f, c))
            row.addWidget(btn)
            row.addSpacing(8)

        row.addStretch()
        self._btn_clear = QPushButton(t("bulk.clear", "Clear selection"))
        self._btn_clear.clicked.connect(controller.clear_selection)
        row.addWidget(self._btn_clear)

        controller.selection_changed.connect(self._on_selection_changed)
        controller.lookups_changed.connect(self._populate)
        controller.board_changed.connect(self._populate_columns)
        controller.bulk.started.connect(lambda _n: self.setEnabled(False))
        controller.bulk.finished.connect(self._on_finished)

        self._populate()
        self._on_selection_changed(controller.selection.state)

    def _populate(self) -> None:
        self._assignee_combo.clear()
        self._assignee_combo.addItem(t("card.unassigned", "Unassigned"), None)
        for uid, name in sorted(self._ctrl.user_names.items(), key=lambda kv: kv[1].casefold()):
            self._assignee_combo.addItem(name, uid)

        self._machine_combo.clear()
        self._machine_combo.addItem(t("bulk.no_machine", "None"), None)
        for name in self._ctrl.machine_names:
            self._machine_combo.addItem(name, name)
        self._populate_columns()

    def _populate_columns(self) -> None:
        current = self._column_combo.currentData()
        self._column_combo.clear()
        config = self._ctrl.config
        for col in config.columns:
            self._column_combo.addItem(config.display_title(col.id), col.id)
        idx = self._column_combo.findData(current)
        if idx >= 0:
            self._column_combo.setCurrentIndex(idx)

    def _apply(self, field: BulkField, combo: QComboBox) -> None:
        value = combo.currentData()
        if field is BulkField.COLUMN and value is None:
            return
        self._ctrl.bulk_edit(field, value)

    def _on_selection_changed(self, state: SelectionState) -> None:
        self._count_label.setText(
            t("bulk.selected", "{n} selected", n=state.count)
        )
        self.setVisible(not state.is_empty)

    def _on_finished(self, _result: BulkEditResult) -> None:
        self.setEnabled(True)
