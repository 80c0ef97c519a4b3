"""Column widget — header plus a scrollable stack of card tiles.

In edit mode the header becomes editable (rename, delete) and the
header can be dragged to reorder columns. The terminal column shows a
"View N older cards" link when cards are hidden by the Done filter.
"""

from PyQt6.QtWidgets import (
    QFrame, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QPushButton,
    QScrollArea, QWidget,
)
from PyQt6.QtCore import Qt, QMimeData, pyqtSignal
from PyQt6.QtGui import QDrag

from mfgboard.constants import CARD_MIME_TYPE, COLUMN_MIME_TYPE, COLUMN_WIDTH
from mfgboard.core.board_views import ColumnView
from mfgboard.core.i18n import t
from mfgboard.models.interaction import DragItemKind, DragSource, DropTarget
from mfgboard.ui.board.board_controller import BoardController
from mfgboard.ui.board.card_widget import CardWidget
from mfgboard.ui.styles.colors import BORDER, COLUMN_BG, DROP_HIGHLIGHT, TEXT_SECONDARY

_ACCEPTED_MIME = (CARD_MIME_TYPE, COLUMN_MIME_TYPE)


class _ColumnHeader(QFrame):
    """Title row; drag handle for column reordering in edit mode."""

    def __init__(self, column_id: str, controller: BoardController, parent=None):
        super().__init__(parent)
        self._column_id = column_id
        self._ctrl = controller
        self._press_pos = None

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self._ctrl.edit_mode:
            self._press_pos = event.position()
            self._ctrl.press(
                DragSource(DragItemKind.COLUMN, self._column_id),
                event.position().x(), event.position().y(),
            )
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if not (event.buttons() & Qt.MouseButton.LeftButton) or self._press_pos is None:
            return
        if not self._ctrl.drag_move(event.position().x(), event.position().y()):
            return
        self._press_pos = None
        drag = QDrag(self)
        mime = QMimeData()
        mime.setData(COLUMN_MIME_TYPE, self._column_id.encode())
        drag.setMimeData(mime)
        drag.exec(Qt.DropAction.MoveAction)
        if self._ctrl.drag.is_dragging:
            self._ctrl.drop(None)

    def mouseReleaseEvent(self, event):
        if self._press_pos is not None:
            self._ctrl.cancel_drag()
        self._press_pos = None
        super().mouseReleaseEvent(event)


class ColumnWidget(QFrame):
    """One board column.

    Signals:
        older_cards_requested(): "View older cards" link clicked.
        card_edit_requested(str): Card id double-clicked.
    """

    older_cards_requested = pyqtSignal()
    card_edit_requested = pyqtSignal(str)

    def __init__(
        self,
        view: ColumnView,
        controller: BoardController,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)
        self._view = view
        self._ctrl = controller
        self._card_widgets: dict[str, CardWidget] = {}
        self.setAcceptDrops(True)
        self.setFixedWidth(COLUMN_WIDTH)
        self._apply_style()

        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(6)

        layout.addWidget(self._build_header())

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)
        body = QWidget()
        self._cards_layout = QVBoxLayout(body)
        self._cards_layout.setContentsMargins(0, 0, 0, 0)
        self._cards_layout.setSpacing(4)
        user_names = controller.user_names
        for card in view.cards:
            w = CardWidget(card, controller, user_names)
            w.set_selected(controller.selection.is_selected(card.id))
            w.edit_requested.connect(self.card_edit_requested.emit)
            self._card_widgets[card.id] = w
            self._cards_layout.addWidget(w)
        self._cards_layout.addStretch()
        scroll.setWidget(body)
        layout.addWidget(scroll, 1)

        if view.is_last_column and view.older_cards_count > 0:
            link = QPushButton(
                t("board.view_older", "View {n} older cards", n=view.older_cards_count)
            )
            link.setFlat(True)
            link.setCursor(Qt.CursorShape.PointingHandCursor)
            link.setStyleSheet(f"color: {TEXT_SECONDARY}; text-decoration: underline;")
            link.clicked.connect(self.older_cards_requested.emit)
            layout.addWidget(link)

    @property
    def column_id(self) -> str:
        return self._view.column_id

    def _build_header(self) -> QWidget:
        header = _ColumnHeader(self._view.column_id, self._ctrl)
        row = QHBoxLayout(header)
        row.setContentsMargins(2, 2, 2, 2)

        if self._ctrl.edit_mode and not self._view.is_last_column:
            self._title_edit = QLineEdit(self._ctrl.config.display_title(self._view.column_id))
            self._title_edit.editingFinished.connect(self._on_title_edited)
            row.addWidget(self._title_edit, 1)
        else:
            title = QLabel(self._view.title)
            title.setStyleSheet("font-weight: bold; font-size: 11pt;")
            row.addWidget(title, 1)

        count = QLabel(str(len(self._view.cards)))
        count.setStyleSheet(f"color: {TEXT_SECONDARY};")
        row.addWidget(count)

        if self._ctrl.edit_mode:
            btn_delete = QPushButton("✕")
            btn_delete.setFixedWidth(24)
            btn_delete.setToolTip(t("board.delete_column", "Delete column"))
            btn_delete.clicked.connect(
                lambda: self._ctrl.delete_column(self._view.column_id)
            )
            row.addWidget(btn_delete)
        return header

    def _on_title_edited(self) -> None:
        text = self._title_edit.text()
        current = self._ctrl.config.display_title(self._view.column_id)
        if text.strip() == current:
            return
        if not self._ctrl.rename_column(self._view.column_id, text):
            self._title_edit.setText(current)

    def set_selected_ids(self, selected) -> None:
        for cid, w in self._card_widgets.items():
            w.set_selected(cid in selected)

    def set_lifted(self, card_id: str | None) -> None:
        for cid, w in self._card_widgets.items():
            w.set_lifted(cid == card_id)

    # ------------------------------------------------------------------
    # Drop target
    # ------------------------------------------------------------------

    def _apply_style(self, highlight: bool = False) -> None:
        border = DROP_HIGHLIGHT if highlight else BORDER
        self.setStyleSheet(f"""
            ColumnWidget {{
                background: {COLUMN_BG};
                border: 1px solid {border};
                border-radius: 6px;
            }}
        """)

    def dragEnterEvent(self, event):
        md = event.mimeData()
        if any(md.hasFormat(m) for m in _ACCEPTED_MIME):
            event.acceptProposedAction()
            self._apply_style(highlight=True)
        else:
            event.ignore()

    def dragLeaveEvent(self, event):
        self._apply_style()
        super().dragLeaveEvent(event)

    def dragMoveEvent(self, event):
        event.acceptProposedAction()

    def dropEvent(self, event):
        self._apply_style()
        md = event.mimeData()
        if any(md.hasFormat(m) for m in _ACCEPTED_MIME):
            event.acceptProposedAction()
            self._ctrl.drop(DropTarget(DragItemKind.COLUMN, self._view.column_id))
        else:
            event.ignore()
