"""Tests for BoardController — wiring of stores, selection, drag and edit mode."""

import sys
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from PyQt6.QtWidgets import QApplication

from fakes import make_card
from mfgboard.api.errors import RequestFailedError
from mfgboard.models.board import BoardConfig, Column
from mfgboard.models.interaction import (
    DragItemKind,
    DragSource,
    DropTarget,
    MoveCard,
    MoveCardGroup,
    MoveColumn,
)
from mfgboard.models.mutation import BulkField, NotificationLevel
from mfgboard.ui.board.board_controller import BoardController

# QApplication instance needed for QObject / signals
_app = QApplication.instance() or QApplication(sys.argv)

CARD = DragItemKind.CARD
COLUMN = DragItemKind.COLUMN


def _columns(cards):
    return {c.id: c.column_id for c in cards}


@pytest.fixture
def ctrl(api, runner, timers, board_cards):
    api.list_cards.return_value = board_cards
    api.list_users.return_value = [{"id": "u1", "name": "Ann"}]
    controller = BoardController(api, runner, timers)
    controller.load()
    runner.run_all()
    return controller


class TestLoading:
    def test_load_fills_view(self, ctrl):
        view = ctrl.board_view
        assert view.visible_ids("backlog") == ["c0", "c1", "c2", "c3", "c4"]
        assert view.visible_ids("done") == ["d0"]

    def test_user_names(self, ctrl):
        assert ctrl.user_names == {"u1": "Ann"}

    def test_load_failure_notifies(self, api, runner, timers):
        api.list_cards.side_effect = RequestFailedError("Server down", status=502)
        controller = BoardController(api, runner, timers)
        notes = MagicMock()
        controller.notification.connect(notes)
        controller.load()
        runner.run_all()
        levels = [c.args[0].level for c in notes.call_args_list]
        assert NotificationLevel.ERROR in levels

    def test_server_config_reaches_columns(self, api, runner, timers):
        api.get_config.return_value = BoardConfig(columns=(
            Column("todo", "Todo", 0), Column("shipped", "Shipped", 1),
        ))
        controller = BoardController(api, runner, timers)
        controller.load()
        runner.run_all()
        assert controller.config.column_ids == ["todo", "shipped"]
        assert controller.board_view.columns[-1].is_last_column


class TestSelection:
    def test_click_and_shift_range(self, ctrl):
        ctrl.click_card("c0")
        state = ctrl.click_card("c3", shift=True)
        assert state.selected_card_ids == {"c0", "c1", "c2", "c3"}
        state = ctrl.click_card("c1", shift=True)
        assert state.selected_card_ids == {"c0", "c1"}

    def test_click_in_other_column_resets(self, ctrl):
        ctrl.click_card("c0")
        ctrl.click_card("c1", toggle=True)
        state = ctrl.click_card("p0")
        assert state.selected_card_ids == {"p0"}
        assert state.anchor_column_id == "in-progress"

    def test_selection_pruned_when_card_disappears(self, ctrl, runner, api, board_cards):
        ctrl.click_card("c0")
        spy = MagicMock()
        ctrl.selection_changed.connect(spy)
        api.list_cards.return_value = tuple(c for c in board_cards if c.id != "c0")
        ctrl.refresh()
        runner.run_all()
        assert ctrl.selection.is_empty
        spy.assert_called()

    def test_card_dragged_out_leaves_selection(self, ctrl, runner):
        ctrl.click_card("c1")
        ctrl.press(DragSource(CARD, "c1"), 0, 0)
        ctrl.drag_move(10, 0)
        assert ctrl.drop(DropTarget(COLUMN, "in-progress")) == MoveCard("c1", "in-progress")
        runner.run_all()
        assert ctrl.selection.is_empty
        assert ctrl.selection.anchor_column_id is None

    def test_partial_bulk_move_keeps_only_cards_left_behind(self, ctrl, runner, api, board_cards):
        def move(card_id, column_id):
            if card_id == "c1":
                raise RequestFailedError("Card locked", status=409)
            return {"success": True}

        api.move_card.side_effect = move
        api.list_cards.return_value = tuple(
            c.with_changes(column_id="in-progress") if c.id == "c0" else c for c in board_cards
        )
        ctrl.click_card("c0")
        ctrl.click_card("c1", toggle=True)
        ctrl.bulk_edit(BulkField.COLUMN, "in-progress")
        runner.run_all()

        state = ctrl.selection.state
        assert state.selected_card_ids == {"c1"}
        assert state.anchor_column_id == "backlog"
        cols = _columns(ctrl.cards)
        assert all(cols[cid] == state.anchor_column_id for cid in state.selected_card_ids)


class TestDragDispatch:
    def test_single_card_drag(self, ctrl, runner):
        ctrl.press(DragSource(CARD, "c0"), 0, 0)
        assert ctrl.drag_move(10, 0)
        intent = ctrl.drop(DropTarget(COLUMN, "review"))
        assert intent == MoveCard("c0", "review")
        assert _columns(ctrl.cards)["c0"] == "review"
        assert runner.count("move c0") == 1
        assert not ctrl.drag.is_dragging

    def test_drag_clears_before_dispatch(self, ctrl):
        order = []
        ctrl.drag_changed.connect(lambda src: order.append(("drag", src)))
        ctrl.board_changed.connect(lambda: order.append(("board", None)))
        ctrl.press(DragSource(CARD, "c0"), 0, 0)
        ctrl.drag_move(10, 0)
        ctrl.drop(DropTarget(COLUMN, "review"))
        first_board = order.index(("board", None))
        assert ("drag", None) in order[:first_board]

    def test_group_drag_moves_selection_and_clears_it(self, ctrl, runner):
        ctrl.click_card("c0")
        ctrl.click_card("c2", shift=True)
        ctrl.press(DragSource(CARD, "c1"), 0, 0)
        ctrl.drag_move(0, 10)
        intent = ctrl.drop(DropTarget(COLUMN, "done"))
        assert intent == MoveCardGroup(("c0", "c1", "c2"), "done")
        cols = _columns(ctrl.cards)
        assert [cols[c] for c in ("c0", "c1", "c2")] == ["done"] * 3
        assert runner.count("move") == 3
        assert ctrl.selection.is_empty

    def test_group_move_partial_failure(self, ctrl, runner):
        ctrl.click_card("c0")
        ctrl.click_card("c1", toggle=True)
        ctrl.dispatch(MoveCardGroup(("c0", "c1"), "done"))
        runner.take("move c0").succeed()
        runner.take("move c1").fail(RequestFailedError("locked"))
        cols = _columns(ctrl.cards)
        assert cols["c0"] == "done"
        assert cols["c1"] == "backlog"

    def test_drop_on_same_column_does_nothing(self, ctrl, runner):
        ctrl.press(DragSource(CARD, "c0"), 0, 0)
        ctrl.drag_move(10, 0)
        assert ctrl.drop(DropTarget(CARD, "c3")) is None
        assert runner.pending == []

    def test_column_drag_only_in_edit_mode(self, ctrl):
        ctrl.drag.start_keyboard_drag(DragSource(COLUMN, "done"))
        assert ctrl.drop(DropTarget(COLUMN, "backlog")) is None
        ctrl.enter_edit_mode()
        ctrl.drag.start_keyboard_drag(DragSource(COLUMN, "done"))
        assert ctrl.drop(DropTarget(COLUMN, "backlog")) == MoveColumn("done", 0)
        assert ctrl.config.column_ids[0] == "done"


class TestEditMode:
    def test_save_flushes_and_leaves(self, ctrl, runner, api, timers):
        spy = MagicMock()
        ctrl.edit_mode_changed.connect(spy)
        ctrl.enter_edit_mode()
        ctrl.rename_column("review", "Inspection")
        ctrl.save_edit_mode()
        assert not ctrl.edit_mode
        runner.run_matching("save board config")
        assert api.save_config.call_args.args[0].get("review").title == "Inspection"
        assert [c.args[0] for c in spy.call_args_list] == [True, False]

    def test_cancel_restores_and_persists_original(self, ctrl, runner, api, timers):
        ctrl.enter_edit_mode()
        ctrl.rename_column("review", "Inspection")
        timers.last.fire()
        runner.run_matching("save board config")
        ctrl.delete_column("backlog")
        ctrl.cancel_edit_mode()
        assert ctrl.config.column_ids == ["backlog", "in-progress", "review", "done"]
        assert ctrl.config.get("review").title == "Review"
        runner.run_matching("save board config")
        assert api.save_config.call_args.args[0].get("review").title == "Review"

    def test_cancel_without_changes_writes_nothing(self, ctrl, runner, api):
        ctrl.enter_edit_mode()
        ctrl.cancel_edit_mode()
        assert runner.count("save board config") == 0

    def test_saved_config_refetched_without_loop(self, ctrl, runner, api):
        ctrl.enter_edit_mode()
        ctrl.rename_column("review", "Inspection")
        ctrl.save_edit_mode()
        api.get_config.side_effect = lambda: api.save_config.call_args.args[0]
        spy = MagicMock()
        ctrl.columns.columns_changed.connect(spy)
        runner.run_all()
        spy.assert_not_called()
        assert api.save_config.call_count == 1


class TestBulkAndSorting:
    def test_bulk_column_move_clears_selection(self, ctrl, runner, api):
        ctrl.click_card("c0")
        ctrl.click_card("c1", toggle=True)
        assert ctrl.bulk_edit(BulkField.COLUMN, "review")
        runner.run_matching("bulk")
        assert ctrl.selection.is_empty
        assert api.move_card.call_count == 2

    def test_bulk_without_selection(self, ctrl):
        assert not ctrl.bulk_edit(BulkField.ASSIGNEE, "u1")

    def test_sort_by_user(self, api, runner, timers):
        api.list_cards.return_value = (
            make_card("x", "backlog", assignee="zed"),
            make_card("y", "backlog", assignee="amy"),
        )
        controller = BoardController(api, runner, timers)
        controller.load()
        runner.run_all()
        controller.set_sort_by_user(True)
        assert controller.board_view.visible_ids("backlog") == ["y", "x"]

    def test_done_filter_uses_clock(self, api, runner, timers):
        api.list_cards.return_value = (
            make_card("old", "done", updated_at="2024-01-01T00:00:00Z"),
        )
        controller = BoardController(
            api, runner, timers, now=lambda: datetime(2024, 1, 3, tzinfo=timezone.utc),
        )
        controller.load()
        runner.run_all()
        done = controller.board_view.column("done")
        assert done.cards == []
        assert done.older_cards_count == 1
        assert [c.id for c in controller.done_cards()] == ["old"]

    def test_group_by_process_uses_process_names(self, api, runner, timers):
        api.list_cards.return_value = (
            make_card("x", "backlog", process_ids=("p1",)),
            make_card("y", "backlog", process_ids=("p2",)),
        )
        api.list_processes.return_value = [
            {"id": "p1", "name": "Milling"},
            {"id": "p2", "name": "Lathe"},
        ]
        controller = BoardController(api, runner, timers)
        controller.load()
        runner.run_all()
        assert controller.process_names == {"p1": "Milling", "p2": "Lathe"}
        controller.set_group_by_process(True)
        assert controller.board_view.visible_ids("backlog") == ["y", "x"]
