"""Main window — QMainWindow with toolbar, bulk edit bar, board, status bar.

Layout:
  Top:    MainToolBar
  Center: notification banner, BulkEditBar, BoardWidget
  Footer: QStatusBar
"""

import logging

from PyQt6.QtWidgets import QMainWindow, QWidget, QLabel, QVBoxLayout
from PyQt6.QtCore import QSettings, QTimer
from PyQt6.QtGui import QKeySequence, QShortcut

from mfgboard.api.client import KanbanApiClient
from mfgboard.application import ApiSettings
from mfgboard.constants import APP_NAME, APP_VERSION, MIN_WINDOW_WIDTH, MIN_WINDOW_HEIGHT
from mfgboard.core.i18n import t
from mfgboard.models.mutation import Notification, NotificationLevel
from mfgboard.ui.board.board_controller import BoardController
from mfgboard.ui.board.board_widget import BoardWidget
from mfgboard.ui.board.bulk_edit_bar import BulkEditBar
from mfgboard.ui.dialogs.card_dialog import CardDialog
from mfgboard.ui.dialogs.done_cards_dialog import DoneCardsDialog
from mfgboard.ui.styles.colors import NOTIFICATION_COLORS
from mfgboard.ui.toolbar import MainToolBar

logger = logging.getLogger(__name__)

_NOTIFICATION_TIMEOUT_MS = 6000


class MainWindow(QMainWindow):
    """Application main window hosting one board."""

    def __init__(self, api_settings: ApiSettings | None = None):
        super().__init__()
        self.setWindowTitle(f"{APP_NAME} v{APP_VERSION}")
        self.setMinimumSize(MIN_WINDOW_WIDTH, MIN_WINDOW_HEIGHT)

        settings = api_settings or ApiSettings()
        self._api = KanbanApiClient(settings.base_url, timeout=settings.timeout_s)
        self._controller = BoardController(self._api, parent=self)

        self._toolbar = MainToolBar(self)
        self.addToolBar(self._toolbar)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(6)

        self._banner = QLabel()
        self._banner.setWordWrap(True)
        self._banner.hide()
        layout.addWidget(self._banner)
        self._banner_timer = QTimer(self)
        self._banner_timer.setSingleShot(True)
        self._banner_timer.timeout.connect(self._banner.hide)

        self._bulk_bar = BulkEditBar(self._controller)
        layout.addWidget(self._bulk_bar)

        self._board = BoardWidget(self._controller)
        layout.addWidget(self._board, 1)
        self.setCentralWidget(central)

        self._connect_signals()
        self._setup_shortcuts()
        self._restore_state()

        self.statusBar().showMessage(
            t("status.connecting", "Loading board from {url}...", url=self._api.base_url)
        )
        self._controller.load()

    @property
    def controller(self) -> BoardController:
        return self._controller

    def _connect_signals(self) -> None:
        tb = self._toolbar
        ctrl = self._controller
        tb.new_card_requested.connect(self._on_new_card)
        tb.refresh_requested.connect(ctrl.refresh)
        tb.done_cards_requested.connect(self._on_done_cards)
        tb.sort_by_user_toggled.connect(ctrl.set_sort_by_user)
        tb.group_by_process_toggled.connect(ctrl.set_group_by_process)
        tb.edit_requested.connect(ctrl.enter_edit_mode)
        tb.save_requested.connect(ctrl.save_edit_mode)
        tb.cancel_requested.connect(ctrl.cancel_edit_mode)

        ctrl.edit_mode_changed.connect(tb.set_edit_mode)
        ctrl.notification.connect(self._show_notification)
        ctrl.loading_changed.connect(self._on_loading_changed)
        ctrl.columns.save_started.connect(
            lambda _cfg: self.statusBar().showMessage(t("status.saving", "Saving columns..."))
        )
        ctrl.columns.saved.connect(
            lambda _cfg: self.statusBar().showMessage(t("status.saved", "Columns saved"), 3000)
        )

        self._board.older_cards_requested.connect(self._on_done_cards)
        self._board.card_edit_requested.connect(self._on_edit_card)

    def _setup_shortcuts(self) -> None:
        QShortcut(QKeySequence("Ctrl+N"), self).activated.connect(self._on_new_card)
        QShortcut(QKeySequence("F5"), self).activated.connect(self._controller.refresh)
        QShortcut(QKeySequence("Escape"), self).activated.connect(self._on_escape)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def _on_escape(self) -> None:
        if self._controller.drag.is_dragging:
            self._controller.cancel_drag()
        else:
            self._controller.clear_selection()

    def _on_loading_changed(self, loading: bool) -> None:
        if loading:
            self.statusBar().showMessage(t("status.loading", "Loading..."))
        else:
            self.statusBar().showMessage(
                t("status.cards_loaded", "{n} cards", n=len(self._controller.cards))
            )

    def _on_new_card(self) -> None:
        dlg = CardDialog(parent=self)
        if dlg.exec():
            self._controller.create_card(dlg.get_values())

    def _on_edit_card(self, card_id: str) -> None:
        card = self._controller.mutations.find_card(card_id)
        if card is None:
            return
        dlg = CardDialog(card, parent=self)
        if not dlg.exec():
            return
        changes = dlg.get_changes()
        if "due_date" in changes:
            self._controller.mutations.update_due_date(card_id, changes.pop("due_date"))
        if changes:
            self._controller.mutations.update_card(card_id, changes)

    def _on_done_cards(self) -> None:
        dlg = DoneCardsDialog(
            self._controller.done_cards(), self._controller.user_names, parent=self,
        )
        dlg.exec()

    def _show_notification(self, note: Notification) -> None:
        text = f"{note.title}: {note.description}" if note.description else note.title
        if note.level is NotificationLevel.ERROR:
            self._banner.setText(text)
            self._banner.setStyleSheet(
                f"background: {NOTIFICATION_COLORS['error']}; padding: 6px; border-radius: 4px;"
            )
            self._banner.show()
            self._banner_timer.start(_NOTIFICATION_TIMEOUT_MS)
        else:
            self.statusBar().showMessage(text, _NOTIFICATION_TIMEOUT_MS)

    # ------------------------------------------------------------------
    # Window state
    # ------------------------------------------------------------------

    def closeEvent(self, event):
        self._save_state()
        self._controller.shutdown()
        self._api.close()
        super().closeEvent(event)

    def _save_state(self):
        settings = QSettings()
        settings.setValue("mainwindow/geometry", self.saveGeometry())
        settings.setValue("board/sort_by_user", self._controller.sort_by_user)
        settings.setValue("board/group_by_process", self._controller.group_by_process)

    def _restore_state(self):
        settings = QSettings()
        geometry = settings.value("mainwindow/geometry")
        if geometry:
            self.restoreGeometry(geometry)
        sort_by_user = settings.value("board/sort_by_user", False, type=bool)
        group_by_process = settings.value("board/group_by_process", False, type=bool)
        self._toolbar.set_sorting(sort_by_user, group_by_process)
        self._controller.set_sort_by_user(sort_by_user)
        self._controller.set_group_by_process(group_by_process)
