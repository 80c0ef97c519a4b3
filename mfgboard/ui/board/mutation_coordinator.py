"""Optimistic mutation coordinator — apply locally, confirm remotely.

Every card change goes through mutate():

  1. cancel the in-flight card refetch (its result would be stale)
  2. snapshot the card collection
  3. apply the change to the cached collection
  4. send the request on a worker thread
  5. on failure restore the snapshot, replaying later in-flight
     mutations on top, and post an error notification
  6. on settle (success or failure) invalidate the card cache

While mutations are in flight every refetch result is overlaid with
them, so one mutation settling never clobbers another's visible state.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from PyQt6.QtCore import QObject, pyqtSignal

from mfgboard.api.client import KanbanApiClient
from mfgboard.api.errors import ValidationError, failure_message
from mfgboard.core.card_validation import validate_new_card
from mfgboard.core.i18n import t
from mfgboard.core.snapshot_ledger import SnapshotLedger
from mfgboard.models.card import Card
from mfgboard.models.mutation import (
    CardMutation,
    MutationKind,
    Notification,
    NotificationLevel,
)
from mfgboard.ui.board.resource_store import ResourceStore
from mfgboard.workers.request_worker import RequestRunner

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class OptimisticMutationCoordinator(QObject):
    """Runs card mutations optimistically against the card store.

    Signals:
        notification(object): Notification for the user.
        mutation_failed(str, object): Mutation id and the exception.
        mutation_settled(str): Mutation id, after success or failure.
        pending_changed(int): Number of mutations in flight.
        card_created(object): Card returned by the server.
    """

    notification = pyqtSignal(object)
    mutation_failed = pyqtSignal(str, object)
    mutation_settled = pyqtSignal(str)
    pending_changed = pyqtSignal(int)
    card_created = pyqtSignal(object)

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
        self._ledger = SnapshotLedger()
        store.set_overlay(self._ledger.rebase)

    @property
    def pending_count(self) -> int:
        return self._ledger.pending_count

    @property
    def cards(self) -> tuple[Card, ...]:
        return tuple(self._store.data or ())

    def find_card(self, card_id: str) -> Card | None:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    # ------------------------------------------------------------------
    # Core flow
    # ------------------------------------------------------------------

    def mutate(
        self,
        mutation: CardMutation,
        request: Callable[[], Any],
        failure_title: str = "",
    ) -> str | None:
        """Apply ``mutation`` locally and send ``request``.

        Args:
            mutation: Local effect of the change.
            request: Blocking call that makes the change durable.
            failure_title: Notification title used if the request fails.

        Returns:
            The mutation id, or None if the mutation touches no card.
        """
        if not mutation.card_ids:
            return None

        self._store.cancel_refetch()
        current = self.cards
        self._ledger.push(mutation, current)
        self._store.set_data(mutation.apply(current))
        self.pending_changed.emit(self._ledger.pending_count)
        logger.debug("Applied %s %s to %s", mutation.kind.value, mutation.id, mutation.card_ids)

        title = failure_title or t("notifications.update_failed", "Failed to update card")
        self._runner.submit(
            request,
            lambda _result: self._on_success(mutation),
            lambda error: self._on_failure(mutation, error, title),
            label=f"{mutation.kind.value} {','.join(mutation.card_ids)}",
        )
        return mutation.id

    def _on_success(self, mutation: CardMutation) -> None:
        self._ledger.discard(mutation.id)
        self._settle(mutation)

    def _on_failure(self, mutation: CardMutation, error: BaseException, title: str) -> None:
        restored = self._ledger.rollback(mutation.id)
        if restored is not None:
            self._store.set_data(restored)
        message = failure_message(error)
        logger.warning(
            "%s of %s failed, rolled back: %s",
            mutation.kind.value, ", ".join(mutation.card_ids), message,
        )
        self.mutation_failed.emit(mutation.id, error)
        self.notification.emit(Notification(NotificationLevel.ERROR, title, message))
        self._settle(mutation)

    def _settle(self, mutation: CardMutation) -> None:
        self.pending_changed.emit(self._ledger.pending_count)
        self.mutation_settled.emit(mutation.id)
        self._store.invalidate()

    # ------------------------------------------------------------------
    # Card operations
    # ------------------------------------------------------------------

    def move_card(self, card_id: str, column_id: str) -> str | None:
        """Move one card to ``column_id``. No-op if it is already there."""
        card = self.find_card(card_id)
        if card is None or card.column_id == column_id:
            return None
        mutation = CardMutation(
            MutationKind.MOVE, (card_id,),
            {"column_id": column_id, "updated_at": _now_iso()},
        )
        return self.mutate(
            mutation,
            lambda: self._api.move_card(card_id, column_id),
            t("notifications.move_failed", "Failed to move card"),
        )

    def move_cards(self, card_ids: Iterable[str], column_id: str) -> list[str]:
        """Move a group of cards, one mutation per card.

        Each card's visible state follows its own request outcome.

        Returns:
            Ids of the mutations issued (cards already in the column are
            skipped).
        """
        issued = []
        for card_id in card_ids:
            mutation_id = self.move_card(card_id, column_id)
            if mutation_id is not None:
                issued.append(mutation_id)
        return issued

    def update_card(self, card_id: str, changes: dict) -> str | None:
        """Patch card fields (Card attribute names)."""
        card = self.find_card(card_id)
        if card is None or not changes:
            return None
        if all(getattr(card, k, None) == v for k, v in changes.items()):
            return None
        mutation = CardMutation(MutationKind.UPDATE, (card_id,), dict(changes))
        return self.mutate(
            mutation,
            lambda: self._api.update_card(card_id, changes),
            t("notifications.update_failed", "Failed to update card"),
        )

    def assign_card(self, card_id: str, assignee: str | None) -> str | None:
        card = self.find_card(card_id)
        if card is None or card.assignee == assignee:
            return None
        mutation = CardMutation(MutationKind.ASSIGN, (card_id,), {"assignee": assignee})
        return self.mutate(
            mutation,
            lambda: self._api.assign_card(card_id, assignee),
            t("notifications.assign_failed", "Failed to assign card"),
        )

    def update_due_date(self, card_id: str, due_date: str | None) -> str | None:
        card = self.find_card(card_id)
        if card is None or card.due_date == due_date:
            return None
        mutation = CardMutation(MutationKind.DUE_DATE, (card_id,), {"due_date": due_date})
        return self.mutate(
            mutation,
            lambda: self._api.update_due_date(card_id, due_date),
            t("notifications.due_date_failed", "Failed to update due date"),
        )

    def delete_card(self, card_id: str) -> str | None:
        if self.find_card(card_id) is None:
            return None
        mutation = CardMutation(MutationKind.DELETE, (card_id,))
        return self.mutate(
            mutation,
            lambda: self._api.delete_card(card_id),
            t("notifications.delete_failed", "Failed to delete card"),
        )

    def create_card(self, fields: dict) -> bool:
        """Validate and create a card; not optimistic (the id is server-assigned).

        Returns:
            False if validation rejected the input (no request sent).
        """
        try:
            clean = validate_new_card(fields)
        except ValidationError as e:
            logger.info("Card creation rejected: %s", e.message)
            self.notification.emit(Notification(
                NotificationLevel.ERROR,
                t("notifications.create_failed", "Failed to create card"),
                e.message,
            ))
            return False

        self._store.cancel_refetch()
        self._runner.submit(
            lambda: self._api.create_card(clean),
            self._on_created,
            self._on_create_failed,
            label="create card",
        )
        return True

    def _on_created(self, card: Card) -> None:
        logger.info("Created card %s", card.id)
        self.card_created.emit(card)
        self.notification.emit(Notification(
            NotificationLevel.SUCCESS,
            t("notifications.card_created", "Card created"),
            card.title,
        ))
        self._store.invalidate()

    def _on_create_failed(self, error: BaseException) -> None:
        message = failure_message(error)
        logger.warning("Card creation failed: %s", message)
        self.notification.emit(Notification(
            NotificationLevel.ERROR,
            t("notifications.create_failed", "Failed to create card"),
            message,
        ))
        self._store.invalidate()
