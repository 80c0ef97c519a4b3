"""Board — controller, coordinators and widgets for the kanban board."""

from mfgboard.ui.board.board_controller import BoardController
from mfgboard.ui.board.bulk_edit import BulkEditCoordinator
from mfgboard.ui.board.column_autosave import ColumnConfigAutosave, DebounceTimer
from mfgboard.ui.board.mutation_coordinator import OptimisticMutationCoordinator
from mfgboard.ui.board.resource_store import ResourceStore

__all__ = [
    "BoardController",
    "BulkEditCoordinator",
    "ColumnConfigAutosave",
    "DebounceTimer",
    "OptimisticMutationCoordinator",
    "ResourceStore",
]
