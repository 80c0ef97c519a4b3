"""Board widget — horizontal strip of column widgets.

Rebuilds its columns from BoardController.board_view whenever the
controller reports a change. Rebuilds are deferred to the next event
loop turn and coalesced, since a drop handler may still be running on a
widget that a rebuild would replace.
"""

from PyQt6.QtWidgets import QFrame, QHBoxLayout, QPushButton, QScrollArea, QWidget
from PyQt6.QtCore import QTimer, pyqtSignal

from mfgboard.core.i18n import t
from mfgboard.models.interaction import DragItemKind, DragSource, SelectionState
from mfgboard.ui.board.board_controller import BoardController
from mfgboard.ui.board.column_widget import ColumnWidget
from mfgboard.ui.styles.colors import BACKGROUND


class BoardWidget(QScrollArea):
    """Scrollable board.

    Signals:
        older_cards_requested(): Done column's "older cards" link clicked.
        card_edit_requested(str): Card id double-clicked.
    """

    older_cards_requested = pyqtSignal()
    card_edit_requested = pyqtSignal(str)

    def __init__(self, controller: BoardController, parent: QWidget | None = None):
        super().__init__(parent)
        self._ctrl = controller
        self._columns: list[ColumnWidget] = []
        self._rebuild_scheduled = False
        self.setWidgetResizable(True)
        self.setFrameShape(QFrame.Shape.NoFrame)
        self.setStyleSheet(f"background: {BACKGROUND};")

        self._body = QWidget()
        self._layout = QHBoxLayout(self._body)
        self._layout.setContentsMargins(8, 8, 8, 8)
        self._layout.setSpacing(8)
        self.setWidget(self._body)

        controller.board_changed.connect(self._schedule_rebuild)
        controller.edit_mode_changed.connect(lambda _on: self._schedule_rebuild())
        controller.selection_changed.connect(self._on_selection_changed)
        controller.drag_changed.connect(self._on_drag_changed)

        self._rebuild()

    def _schedule_rebuild(self) -> None:
        if self._rebuild_scheduled:
            return
        self._rebuild_scheduled = True
        QTimer.singleShot(0, self._rebuild)

    def _rebuild(self) -> None:
        self._rebuild_scheduled = False
        while self._layout.count():
            item = self._layout.takeAt(0)
            w = item.widget()
            if w is not None:
                w.deleteLater()
        self._columns.clear()

        for view in self._ctrl.board_view.columns:
            col = ColumnWidget(view, self._ctrl)
            col.older_cards_requested.connect(self.older_cards_requested.emit)
            col.card_edit_requested.connect(self.card_edit_requested.emit)
            self._columns.append(col)
            self._layout.addWidget(col)

        if self._ctrl.edit_mode:
            btn_add = QPushButton(t("board.add_column", "+ Add column"))
            btn_add.setFixedWidth(140)
            btn_add.clicked.connect(self._ctrl.add_column)
            self._layout.addWidget(btn_add)
        self._layout.addStretch()

        self._on_drag_changed(self._ctrl.drag.active_source)

    def _on_selection_changed(self, state: SelectionState) -> None:
        for col in self._columns:
            col.set_selected_ids(state.selected_card_ids)

    def _on_drag_changed(self, source: DragSource | None) -> None:
        card_id = source.item_id if source and source.kind is DragItemKind.CARD else None
        for col in self._columns:
            col.set_lifted(card_id)
