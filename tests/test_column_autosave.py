"""Tests for ColumnConfigAutosave — debounced writes, positions, sync guard."""

import sys
from unittest.mock import MagicMock

import pytest
from PyQt6.QtWidgets import QApplication
from PyQt6.QtTest import QTest

from mfgboard.models.board import BoardConfig, Column, default_board_config
from mfgboard.models.mutation import NotificationLevel
from mfgboard.api.errors import RequestFailedError
from mfgboard.ui.board.column_autosave import ColumnConfigAutosave
from mfgboard.workers.request_worker import ImmediateRequestRunner

# QApplication instance needed for QObject / signals
_app = QApplication.instance() or QApplication(sys.argv)


@pytest.fixture
def autosave(api, runner, timers):
    saver = ColumnConfigAutosave(api, runner, timers)
    saver.set_edit_mode(True)
    return saver


def _saved_configs(api):
    return [c.args[0] for c in api.save_config.call_args_list]


class TestEdits:
    def test_add_column(self, autosave):
        col = autosave.add_column()
        assert col.title == "New Column"
        assert col.id.startswith("column-")
        assert autosave.config.column_ids[-1] == col.id

    def test_added_ids_unique(self, autosave):
        a = autosave.add_column()
        b = autosave.add_column()
        assert a.id != b.id

    def test_rename_trims(self, autosave):
        assert autosave.rename_column("review", "  QA  ")
        assert autosave.config.get("review").title == "QA"

    def test_blank_rename_rejected(self, autosave, timers):
        notes = MagicMock()
        autosave.notification.connect(notes)
        assert not autosave.rename_column("review", "   ")
        assert autosave.config.get("review").title == "Review"
        assert notes.call_args.args[0].level is NotificationLevel.ERROR
        assert not timers.last.is_pending

    def test_delete(self, autosave):
        assert autosave.delete_column("review")
        assert "review" not in autosave.config.column_ids
        assert not autosave.delete_column("review")

    def test_move_column(self, autosave):
        assert autosave.move_column("done", 0)
        assert autosave.config.column_ids == ["done", "backlog", "in-progress", "review"]
        assert not autosave.move_column("done", 0)

    def test_edit_emits_columns_changed(self, autosave):
        spy = MagicMock()
        autosave.columns_changed.connect(spy)
        autosave.rename_column("backlog", "Queue")
        spy.assert_called_once()

    def test_positions_dense_after_each_edit(self, autosave):
        def positions():
            return [c.position for c in autosave.config.columns]

        autosave.delete_column("backlog")
        assert positions() == [0, 1, 2]
        autosave.add_column("Deburr")
        assert positions() == [0, 1, 2, 3]
        autosave.move_column("done", 0)
        assert positions() == [0, 1, 2, 3]
        assert autosave.config.column_ids[0] == "done"

    def test_positions_dense_outside_edit_mode(self, api, runner, timers):
        saver = ColumnConfigAutosave(api, runner, timers)
        saver.delete_column("in-progress")
        assert [c.position for c in saver.config.columns] == [0, 1, 2]


class TestDebounce:
    def test_three_renames_one_write(self, autosave, timers, runner, api):
        autosave.rename_column("backlog", "A")
        autosave.rename_column("backlog", "AB")
        autosave.rename_column("backlog", "ABC")
        assert timers.last.schedule_count == 3
        assert runner.count("save board config") == 0

        timers.last.fire()
        runner.run_all()
        saved = _saved_configs(api)
        assert len(saved) == 1
        assert saved[0].get("backlog").title == "ABC"

    def test_positions_dense_after_save(self, autosave, timers, runner, api):
        autosave.delete_column("in-progress")
        autosave.add_column("Deburr")
        autosave.move_column("done", 1)
        timers.last.fire()
        runner.run_all()
        saved = _saved_configs(api)[-1]
        assert [c.position for c in saved.columns] == list(range(len(saved.columns)))
        assert saved.column_ids[1] == "done"

    def test_leaving_edit_mode_cancels_pending_save(self, autosave, timers, runner):
        autosave.rename_column("backlog", "Queue")
        autosave.set_edit_mode(False)
        assert not timers.last.is_pending
        timers.last.fire()
        assert runner.count("save board config") == 0
        # Edits are kept
        assert autosave.config.get("backlog").title == "Queue"

    def test_edits_outside_edit_mode_not_scheduled(self, api, runner, timers):
        saver = ColumnConfigAutosave(api, runner, timers)
        saver.rename_column("backlog", "Queue")
        assert not timers.last.is_pending

    def test_flush_writes_immediately(self, autosave, timers, runner, api):
        autosave.rename_column("backlog", "Queue")
        assert autosave.flush()
        assert not timers.last.is_pending
        runner.run_all()
        assert api.save_config.call_count == 1

    def test_flush_without_changes(self, autosave, runner):
        assert not autosave.flush()
        assert runner.pending == []

    def test_save_failure_notifies(self, autosave, timers, runner, api):
        api.save_config.side_effect = RequestFailedError("Database is read-only", status=503)
        failed, notes = MagicMock(), MagicMock()
        autosave.save_failed.connect(failed)
        autosave.notification.connect(notes)
        autosave.rename_column("backlog", "Queue")
        timers.last.fire()
        runner.run_all()
        failed.assert_called_once()
        assert notes.call_args.args[0].description == "Database is read-only"
        assert not autosave.is_saving

    def test_failed_save_is_retried_by_flush(self, autosave, timers, runner, api):
        api.save_config.side_effect = RequestFailedError("Database is read-only", status=503)
        autosave.rename_column("backlog", "Queue")
        timers.last.fire()
        runner.run_all()
        assert autosave.has_unsaved_changes

        api.save_config.side_effect = lambda config: config
        assert autosave.flush()
        runner.run_all()
        assert api.save_config.call_count == 2
        assert api.save_config.call_args.args[0].get("backlog").title == "Queue"
        assert not autosave.has_unsaved_changes

    def test_failed_save_keeps_edits_against_refetch(self, autosave, timers, runner, api):
        api.save_config.side_effect = RequestFailedError("offline")
        autosave.rename_column("backlog", "Queue")
        timers.last.fire()
        runner.run_all()
        assert not autosave.sync_from_config(default_board_config())
        assert autosave.config.get("backlog").title == "Queue"


class TestSyncFromConfig:
    def test_identical_config_ignored(self, autosave):
        spy = MagicMock()
        autosave.columns_changed.connect(spy)
        assert not autosave.sync_from_config(default_board_config())
        spy.assert_not_called()

    def test_different_config_adopted(self, autosave):
        config = BoardConfig(columns=(Column("x", "X", 0), Column("y", "Y", 1)))
        assert autosave.sync_from_config(config)
        assert autosave.config.column_ids == ["x", "y"]
        # Same config again: loop guard
        assert not autosave.sync_from_config(config)

    def test_own_save_echo_ignored(self, autosave, timers, runner):
        autosave.rename_column("backlog", "Queue")
        timers.last.fire()
        runner.run_all()
        echoed = autosave.config
        assert not autosave.sync_from_config(echoed)

    def test_server_config_ignored_while_save_scheduled(self, autosave):
        autosave.rename_column("backlog", "Queue")
        other = BoardConfig(columns=(Column("x", "X", 0),))
        assert not autosave.sync_from_config(other)
        assert autosave.config.get("backlog").title == "Queue"

    def test_server_config_ignored_while_write_in_flight(self, autosave, timers, runner):
        autosave.rename_column("backlog", "Queue")
        timers.last.fire()
        assert autosave.is_saving
        assert not autosave.sync_from_config(default_board_config())
        runner.run_all()
        assert autosave.config.get("backlog").title == "Queue"


class TestRealTimer:
    def test_qtimer_debounce(self, api):
        saver = ColumnConfigAutosave(api, ImmediateRequestRunner(), delay_ms=50)
        saver.set_edit_mode(True)
        saver.rename_column("backlog", "One")
        QTest.qWait(20)
        saver.rename_column("backlog", "Two")
        assert saver.is_save_pending
        QTest.qWait(200)
        assert api.save_config.call_count == 1
        assert api.save_config.call_args.args[0].get("backlog").title == "Two"
