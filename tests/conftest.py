"""Shared fixtures: headless Qt, fake runner/timer, canned board data."""

import os

# Widgets and timers run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from unittest.mock import MagicMock

import pytest

from fakes import FakeRunner, FakeTimerFactory, make_card
from mfgboard.api.client import KanbanApiClient
from mfgboard.core.i18n import TranslationManager
from mfgboard.models.board import default_board_config


@pytest.fixture(autouse=True)
def reset_translations():
    """Tests see the built-in English defaults."""
    TranslationManager.reset()
    yield
    TranslationManager.reset()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def api():
    """KanbanApiClient spy; every call succeeds unless a test says otherwise."""
    client = MagicMock(spec=KanbanApiClient)
    client.base_url = "http://test/api"
    client.list_cards.return_value = ()
    client.get_config.return_value = default_board_config()
    client.list_users.return_value = []
    client.list_equipment.return_value = []
    client.list_processes.return_value = []
    client.save_config.side_effect = lambda config: config
    return client


@pytest.fixture
def board_cards():
    """Five backlog cards, two in progress, one done."""
    return (
        make_card("c0", "backlog"),
        make_card("c1", "backlog"),
        make_card("c2", "backlog"),
        make_card("c3", "backlog"),
        make_card("c4", "backlog"),
        make_card("p0", "in-progress"),
        make_card("p1", "in-progress"),
        make_card("d0", "done"),
    )
