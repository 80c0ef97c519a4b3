"""Bulk edit coordinator — one field change fanned out over a selection.

Sends one request per card, all at once, and waits for every one of
them to settle. Successes are kept even when others fail; the outcome
is summarised as a BulkEditResult ("2 of 5 cards failed"). The card
cache is invalidated once the whole batch has settled.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from PyQt6.QtCore import QObject, pyqtSignal

from mfgboard.api.client import KanbanApiClient
from mfgboard.api.errors import failure_message
from mfgboard.core.i18n import t
from mfgboard.models.mutation import (
    BulkEditResult,
    BulkField,
    Notification,
    NotificationLevel,
)
from mfgboard.ui.board.resource_store import ResourceStore
from mfgboard.workers.request_worker import RequestRunner

logger = logging.getLogger(__name__)


class BulkEditCoordinator(QObject):
    """Runs one bulk edit batch at a time.

    Signals:
        started(int): Number of requests in the batch.
        finished(object): BulkEditResult once every request settled.
        notification(object): Summary Notification.
        clear_selection_requested(): A column move fully succeeded.
    """

    started = pyqtSignal(int)
    finished = pyqtSignal(object)
    notification = pyqtSignal(object)
    clear_selection_requested = pyqtSignal()

    def __init__(
        self,
        api: KanbanApiClient,
        store: ResourceStore,
        runner: RequestRunner,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._api = api
        self._store = store
        self._runner = runner
        self._result: BulkEditResult | None = None
        self._outstanding = 0

    @property
    def busy(self) -> bool:
        return self._result is not None

    def apply(self, field: BulkField, value: Any, card_ids: Sequence[str]) -> bool:
        """Start a batch setting ``field`` to ``value`` on every card.

        For column moves, cards already in the target column are
        skipped. A batch with nothing to send completes immediately.

        Returns:
            False if another batch is still running.
        """
        if self.busy:
            logger.info("Bulk edit ignored: a batch is already running")
            return False

        ids = list(dict.fromkeys(card_ids))
        if field is BulkField.COLUMN:
            columns = {c.id: c.column_id for c in (self._store.data or ())}
            ids = [cid for cid in ids if columns.get(cid) != value]

        self._result = BulkEditResult(field=field, value=value, total=len(ids))
        self._outstanding = len(ids)
        self.started.emit(len(ids))
        logger.info("Bulk %s → %r on %d card(s)", field.value, value, len(ids))

        if not ids:
            self._finish()
            return True

        for card_id in ids:
            self._runner.submit(
                self._request_for(field, value, card_id),
                lambda _result, cid=card_id: self._on_settled(cid, None),
                lambda error, cid=card_id: self._on_settled(cid, error),
                label=f"bulk {field.value} {card_id}",
            )
        return True

    def _request_for(self, field: BulkField, value: Any, card_id: str) -> Callable[[], Any]:
        if field is BulkField.COLUMN:
            return lambda: self._api.move_card(card_id, value)
        if field is BulkField.ASSIGNEE:
            return lambda: self._api.update_card(card_id, {"assignee": value})
        return lambda: self._api.update_card(card_id, {"machine": value})

    def _on_settled(self, card_id: str, error: BaseException | None) -> None:
        result = self._result
        if result is None:
            return
        if error is not None:
            result.failed_card_ids.append(card_id)
            result.errors[card_id] = failure_message(error)
            logger.warning("Bulk %s failed for %s: %s", result.field.value, card_id, error)
        self._outstanding -= 1
        if self._outstanding <= 0:
            self._finish()

    def _finish(self) -> None:
        result = self._result
        self._result = None
        self._outstanding = 0
        if result is None:
            return

        if result.ok:
            level = NotificationLevel.SUCCESS
            title = t("notifications.bulk_updated", "Cards updated")
        else:
            level = NotificationLevel.ERROR
            title = t("notifications.bulk_partial", "Some updates failed")
        self.notification.emit(Notification(level, title, result.summary))
        self.finished.emit(result)

        if result.ok and result.field is BulkField.COLUMN:
            self.clear_selection_requested.emit()
        self._store.invalidate()
