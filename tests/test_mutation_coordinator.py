"""Tests for OptimisticMutationCoordinator.

Covers:
- local apply before the request settles
- exact rollback on failure, with error notification
- disjoint concurrent mutations rolling back independently
- stale refetch discarded when a mutation starts
- settle → card cache invalidation
- no-op moves and card creation validation
"""

import sys
from unittest.mock import MagicMock

import pytest
from PyQt6.QtWidgets import QApplication

from fakes import make_card
from mfgboard.api.errors import RequestFailedError, UnexpectedResponseError
from mfgboard.models.mutation import NotificationLevel
from mfgboard.ui.board.mutation_coordinator import OptimisticMutationCoordinator
from mfgboard.ui.board.resource_store import ResourceStore

# QApplication instance needed for QObject / signals
_app = QApplication.instance() or QApplication(sys.argv)


def _columns(cards):
    return {c.id: c.column_id for c in cards}


@pytest.fixture
def store(api, runner, board_cards):
    api.list_cards.return_value = board_cards
    return ResourceStore(api.list_cards, runner, initial=board_cards, name="cards")


@pytest.fixture
def coord(api, store, runner):
    return OptimisticMutationCoordinator(api, store, runner)


class TestOptimisticApply:
    def test_move_applies_immediately(self, coord, store, runner):
        coord.move_card("c0", "done")
        assert _columns(store.data)["c0"] == "done"
        assert runner.count("move c0") == 1
        assert coord.pending_count == 1

    def test_success_keeps_change_and_refetches(self, coord, store, runner, api):
        coord.move_card("c0", "done")
        runner.take("move").run()
        api.move_card.assert_called_once_with("c0", "done")
        assert coord.pending_count == 0
        assert runner.count("refetch cards") == 1
        assert _columns(store.data)["c0"] == "done"

    def test_noop_move_sends_nothing(self, coord, runner, store):
        before = store.data
        assert coord.move_card("c0", "backlog") is None
        assert coord.move_card("missing", "done") is None
        assert runner.pending == []
        assert store.data is before

    def test_update_card_patch(self, coord, store, runner, api):
        coord.update_card("c1", {"machine": "Haas VF2"})
        assert coord.find_card("c1").machine == "Haas VF2"
        runner.take("update").run()
        api.update_card.assert_called_once_with("c1", {"machine": "Haas VF2"})

    def test_unchanged_update_is_noop(self, coord, runner):
        assert coord.update_card("c1", {"machine": None}) is None
        assert runner.pending == []

    def test_delete_removes_locally(self, coord, store):
        coord.delete_card("c2")
        assert "c2" not in _columns(store.data)

    def test_due_date_uses_action(self, coord, runner, api):
        coord.update_due_date("c1", "2024-09-01")
        runner.take("due_date").run()
        api.update_due_date.assert_called_once_with("c1", "2024-09-01")


class TestRollback:
    def test_failure_restores_snapshot_exactly(self, coord, store, runner, api, board_cards):
        api.move_card.side_effect = RequestFailedError("Card is locked", status=409)
        notes = MagicMock()
        coord.notification.connect(notes)

        coord.move_card("c0", "done")
        runner.take("move").run()

        assert store.data == board_cards
        note = notes.call_args.args[0]
        assert note.level is NotificationLevel.ERROR
        assert note.description == "Card is locked"
        assert coord.pending_count == 0

    def test_non_json_failure_rolls_back(self, coord, store, runner, api, board_cards):
        api.delete_card.side_effect = UnexpectedResponseError(200, "text/html", "<html>")
        coord.delete_card("c3")
        runner.take("delete").run()
        assert store.data == board_cards

    def test_generic_message_when_none_given(self, coord, runner, api):
        api.move_card.side_effect = RequestFailedError("")
        notes = MagicMock()
        coord.notification.connect(notes)
        coord.move_card("c0", "done")
        runner.take("move").run()
        assert notes.call_args.args[0].description == "Unknown error"

    def test_failure_still_invalidates(self, coord, runner, api):
        api.move_card.side_effect = RequestFailedError("nope")
        coord.move_card("c0", "done")
        runner.take("move").run()
        assert runner.count("refetch cards") == 1

    def test_disjoint_mutations_roll_back_independently(self, coord, store, runner, api):
        coord.move_card("c0", "done")
        coord.move_card("c1", "review")
        first = runner.take("move c0")
        second = runner.take("move c1")

        first.fail(RequestFailedError("boom"))
        cols = _columns(store.data)
        assert cols["c0"] == "backlog"
        assert cols["c1"] == "review"

        second.succeed()
        assert _columns(store.data)["c1"] == "review"

    def test_both_fail_in_reverse_order(self, coord, store, runner, board_cards):
        coord.move_card("c0", "done")
        coord.move_card("c1", "review")
        first = runner.take("move c0")
        second = runner.take("move c1")
        second.fail(RequestFailedError("x"))
        first.fail(RequestFailedError("y"))
        assert store.data == board_cards


class TestRefetchInteraction:
    def test_mutation_cancels_inflight_refetch(self, coord, store, runner, board_cards):
        store.refetch()
        stale_fetch = runner.take("refetch cards")
        coord.move_card("c0", "done")
        stale_fetch.succeed(board_cards)
        assert _columns(store.data)["c0"] == "done"

    def test_refetch_overlays_pending_mutations(self, coord, store, runner, board_cards):
        coord.move_card("c0", "done")
        coord.move_card("c1", "review")
        runner.take("move c0").succeed()
        # Server already knows about c0 but not yet about c1
        server = tuple(
            c.with_changes(column_id="done") if c.id == "c0" else c for c in board_cards
        )
        runner.take("refetch cards").succeed(server)
        cols = _columns(store.data)
        assert cols["c0"] == "done"
        assert cols["c1"] == "review"


class TestGroupMove:
    def test_one_request_per_card(self, coord, store, runner):
        issued = coord.move_cards(["c0", "c1", "c2"], "review")
        assert len(issued) == 3
        assert runner.count("move") == 3
        cols = _columns(store.data)
        assert all(cols[c] == "review" for c in ("c0", "c1", "c2"))

    def test_partial_failure_reverts_only_failed_cards(self, coord, store, runner):
        coord.move_cards(["c0", "c1", "c2"], "review")
        runner.take("move c0").succeed()
        runner.take("move c1").fail(RequestFailedError("locked"))
        runner.take("move c2").succeed()
        cols = _columns(store.data)
        assert cols["c0"] == "review"
        assert cols["c1"] == "backlog"
        assert cols["c2"] == "review"

    def test_cards_already_in_target_skipped(self, coord, runner):
        assert len(coord.move_cards(["c0", "p0"], "in-progress")) == 1


class TestCreateCard:
    def test_validation_blocks_request(self, coord, runner):
        notes = MagicMock()
        coord.notification.connect(notes)
        assert not coord.create_card({"title": "  "})
        assert runner.pending == []
        assert notes.call_args.args[0].level is NotificationLevel.ERROR

    def test_create_then_invalidate(self, coord, runner, api):
        api.create_card.return_value = make_card("new", "backlog", title="Bracket")
        created = MagicMock()
        coord.card_created.connect(created)
        assert coord.create_card({"title": " Bracket ", "quantity_to_make": "4"})
        runner.take("create card").run()
        api.create_card.assert_called_once_with({"title": "Bracket", "quantity_to_make": 4})
        created.assert_called_once()
        assert runner.count("refetch cards") == 1
