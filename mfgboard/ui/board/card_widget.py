"""Card widget — one card tile inside a column.

Mouse presses feed the controller's drag state machine; once the drag
activates a QDrag carrying the card id is started. Clicks that never
turn into a drag are selection clicks.
"""

from datetime import date

from PyQt6.QtWidgets import QFrame, QVBoxLayout, QHBoxLayout, QLabel, QMenu, QWidget
from PyQt6.QtCore import Qt, QMimeData, pyqtSignal
from PyQt6.QtGui import QDrag

from mfgboard.constants import CARD_MIME_TYPE, CARD_MIN_HEIGHT
from mfgboard.core.i18n import t
from mfgboard.models.card import Card
from mfgboard.models.interaction import DragItemKind, DragSource, DropTarget
from mfgboard.ui.board.board_controller import BoardController
from mfgboard.ui.styles.colors import (
    BORDER, CARD_OVERDUE, CARD_SELECTED_BORDER, DROP_HIGHLIGHT,
    PANEL_BG, TEXT_SECONDARY,
)


class CardWidget(QFrame):
    """Single card tile.

    Signals:
        edit_requested(str): Card id, on double click.
    """

    edit_requested = pyqtSignal(str)

    def __init__(
        self,
        card: Card,
        controller: BoardController,
        user_names: dict[str, str] | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)
        self._card = card
        self._ctrl = controller
        self._press_pos = None
        self._dragged = False
        self._selected = False
        self._lifted = False
        self.setAcceptDrops(True)
        self.setMinimumHeight(CARD_MIN_HEIGHT)
        self.setCursor(Qt.CursorShape.OpenHandCursor)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(2)

        title = QLabel(card.title or card.id)
        title.setWordWrap(True)
        title.setStyleSheet("font-weight: bold;")
        layout.addWidget(title)

        meta = QHBoxLayout()
        meta.setSpacing(6)
        names = user_names or {}
        assignee = names.get(card.assignee, card.assignee) if card.assignee else t(
            "card.unassigned", "Unassigned")
        meta.addWidget(self._meta_label(assignee))
        if card.machine:
            meta.addWidget(self._meta_label(card.machine))
        meta.addStretch()
        if card.due_date:
            due = self._meta_label(card.due_date[:10])
            if self._is_overdue(card.due_date):
                due.setStyleSheet(f"color: {CARD_OVERDUE}; font-size: 8pt;")
            meta.addWidget(due)
        layout.addLayout(meta)

        if card.quantity_to_make is not None:
            layout.addWidget(self._meta_label(
                t("card.quantity", "Qty: {qty}", qty=card.quantity_to_make)
            ))

        self._apply_style()

    @property
    def card_id(self) -> str:
        return self._card.id

    @property
    def column_id(self) -> str:
        return self._card.column_id

    @staticmethod
    def _meta_label(text: str) -> QLabel:
        label = QLabel(text)
        label.setStyleSheet(f"color: {TEXT_SECONDARY}; font-size: 8pt;")
        return label

    @staticmethod
    def _is_overdue(due: str) -> bool:
        try:
            return date.fromisoformat(due[:10]) < date.today()
        except ValueError:
            return False

    # ------------------------------------------------------------------
    # Visual state
    # ------------------------------------------------------------------

    def set_selected(self, selected: bool) -> None:
        if selected != self._selected:
            self._selected = selected
            self._apply_style()

    def set_lifted(self, lifted: bool) -> None:
        """Dim the tile while it is the item being dragged."""
        if lifted != self._lifted:
            self._lifted = lifted
            self._apply_style()

    def _apply_style(self, highlight: bool = False) -> None:
        border = CARD_SELECTED_BORDER if self._selected else BORDER
        if highlight:
            border = DROP_HIGHLIGHT
        width = 2 if (self._selected or highlight) else 1
        opacity_bg = "#111827" if self._lifted else PANEL_BG
        self.setStyleSheet(f"""
            CardWidget {{
                background: {opacity_bg};
                border: {width}px solid {border};
                border-radius: 4px;
            }}
        """)

    # ------------------------------------------------------------------
    # Mouse / keyboard
    # ------------------------------------------------------------------

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self._press_pos = event.position()
            self._dragged = False
            self._ctrl.press(
                DragSource(DragItemKind.CARD, self._card.id),
                event.position().x(), event.position().y(),
            )
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if not (event.buttons() & Qt.MouseButton.LeftButton) or self._press_pos is None:
            return
        if not self._ctrl.drag_move(event.position().x(), event.position().y()):
            return
        self._dragged = True
        self._press_pos = None
        drag = QDrag(self)
        mime = QMimeData()
        mime.setData(CARD_MIME_TYPE, self._card.id.encode())
        drag.setMimeData(mime)
        pixmap = self.grab()
        pixmap.setDevicePixelRatio(1.0)
        drag.setPixmap(pixmap.scaledToWidth(min(pixmap.width(), 240)))
        drag.exec(Qt.DropAction.MoveAction)
        # Dropped outside any column
        if self._ctrl.drag.is_dragging:
            self._ctrl.drop(None)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and not self._dragged:
            self._ctrl.cancel_drag()
            mods = event.modifiers()
            self._ctrl.click_card(
                self._card.id,
                shift=bool(mods & Qt.KeyboardModifier.ShiftModifier),
                toggle=bool(mods & (
                    Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.MetaModifier
                )),
            )
        self._press_pos = None
        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event):
        self.edit_requested.emit(self._card.id)
        super().mouseDoubleClickEvent(event)

    def keyPressEvent(self, event):
        key = event.key()
        if key == Qt.Key.Key_Space:
            if self._ctrl.drag.is_dragging:
                self._ctrl.drop(None)
            else:
                self._ctrl.drag.start_keyboard_drag(DragSource(DragItemKind.CARD, self._card.id))
            return
        if key == Qt.Key.Key_Escape and self._ctrl.drag.is_dragging:
            self._ctrl.cancel_drag()
            return
        if key in (Qt.Key.Key_Left, Qt.Key.Key_Right) and self._ctrl.drag.is_dragging:
            self._keyboard_drop(-1 if key == Qt.Key.Key_Left else 1)
            return
        super().keyPressEvent(event)

    def _keyboard_drop(self, step: int) -> None:
        ids = self._ctrl.config.column_ids
        if self._card.column_id not in ids:
            self._ctrl.cancel_drag()
            return
        idx = ids.index(self._card.column_id) + step
        if 0 <= idx < len(ids):
            self._ctrl.drop(DropTarget(DragItemKind.COLUMN, ids[idx]))
        else:
            self._ctrl.cancel_drag()

    def contextMenuEvent(self, event):
        menu = QMenu(self)
        act_delete = menu.addAction(t("card.delete", "Delete card"))
        chosen = menu.exec(event.globalPos())
        if chosen is act_delete:
            self._ctrl.delete_card(self._card.id)

    # ------------------------------------------------------------------
    # Drop target (a drop on a card lands in the card's column)
    # ------------------------------------------------------------------

    def dragEnterEvent(self, event):
        if event.mimeData().hasFormat(CARD_MIME_TYPE):
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
        if event.mimeData().hasFormat(CARD_MIME_TYPE):
            event.acceptProposedAction()
            self._ctrl.drop(DropTarget(DragItemKind.CARD, self._card.id))
        else:
            event.ignore()
