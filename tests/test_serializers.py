"""Tests for mfgboard.core.serializers — wire dicts ↔ models.

Covers:
  - camelCase wire keys, snake_case rows and legacy date aliases
  - embedded process objects
  - config ordering by position, fingerprint stability
"""

import pytest

from fakes import make_card
from mfgboard.core.serializers import (
    card_to_dict,
    cards_from_payload,
    changes_to_wire,
    columns_fingerprint,
    config_to_dict,
    dict_to_card,
    dict_to_config,
)
from mfgboard.models.board import BoardConfig, Column


class TestCardDicts:
    def test_card_to_dict_uses_camel_case(self):
        card = make_card("c1", "review", due_date="2024-05-01", process_ids=("mill",))
        d = card_to_dict(card)
        assert d["columnId"] == "review"
        assert d["dueDate"] == "2024-05-01"
        assert d["processIds"] == ["mill"]

    def test_dict_to_card_wire_format(self):
        card = dict_to_card({
            "id": "c1", "columnId": "backlog", "title": "Bracket",
            "quantityToMake": "12", "updatedAt": "2024-01-01T00:00:00Z",
        })
        assert card.column_id == "backlog"
        assert card.quantity_to_make == 12
        assert card.updated_at == "2024-01-01T00:00:00Z"

    def test_dict_to_card_database_row(self):
        card = dict_to_card({
            "id": 7, "column_id": "done", "date_created": "2024-01-01",
            "date_updated": "2024-01-02",
        })
        assert card.id == "7"
        assert card.created_at == "2024-01-01"
        assert card.updated_at == "2024-01-02"

    def test_embedded_processes(self):
        card = dict_to_card({
            "id": "c1", "columnId": "a",
            "processes": [{"id": "p1", "name": "Mill"}, {"id": "p2"}],
        })
        assert card.process_ids == ("p1", "p2")

    def test_missing_column_raises(self):
        with pytest.raises(ValueError):
            dict_to_card({"id": "c1"})

    def test_cards_from_payload(self):
        cards = cards_from_payload({"cards": [
            {"id": "a", "columnId": "x"}, {"id": "b", "columnId": "y"},
        ]})
        assert [c.id for c in cards] == ["a", "b"]

    def test_cards_from_empty_payload(self):
        assert cards_from_payload({}) == ()

    def test_changes_to_wire(self):
        assert changes_to_wire({"column_id": "done", "assignee": None}) == {
            "columnId": "done", "assignee": None,
        }


class TestConfigDicts:
    def test_config_to_dict(self):
        config = BoardConfig(columns=(Column("a", "A", 0), Column("b", "B", 1)))
        assert config_to_dict(config) == {"columns": [
            {"id": "a", "title": "A", "position": 0},
            {"id": "b", "title": "B", "position": 1},
        ]}

    def test_dict_to_config_sorts_by_position(self):
        config = dict_to_config({"columns": [
            {"id": "b", "title": "B", "position": 1},
            {"id": "a", "title": "A", "position": 0},
        ]})
        assert config.column_ids == ["a", "b"]

    def test_missing_positions_keep_document_order(self):
        config = dict_to_config({"columns": [
            {"id": "x", "title": "X"}, {"id": "y", "title": "Y"},
        ]})
        assert config.column_ids == ["x", "y"]
        assert [c.position for c in config.columns] == [0, 1]

    def test_fingerprint_detects_changes(self):
        a = (Column("a", "A", 0),)
        b = (Column("a", "Renamed", 0),)
        assert columns_fingerprint(a) == columns_fingerprint((Column("a", "A", 0),))
        assert columns_fingerprint(a) != columns_fingerprint(b)
