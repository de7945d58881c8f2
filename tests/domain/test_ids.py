"""Tests for identifier generation, edge keys, and the status lifecycle."""

from __future__ import annotations

import uuid

import pytest

from notegraph.domain.errors import ValidationError
from notegraph.domain.ids import make_edge_key, new_id, parse_edge_key
from notegraph.domain.lifecycle import is_valid_transition
from notegraph.domain.types import NodeStatus


class TestIds:
    def test_new_id_is_uuid4(self) -> None:
        value = new_id()
        assert uuid.UUID(value).version == 4
        assert value != new_id()

    def test_edge_key_format(self) -> None:
        assert make_edge_key("a", "b") == "a->b"

    def test_parse_round_trip(self) -> None:
        source, target = str(uuid.uuid4()), str(uuid.uuid4())
        assert parse_edge_key(make_edge_key(source, target)) == (source, target)

    @pytest.mark.parametrize("key", ["", "a", "a->", "->b", "a-b"])
    def test_parse_malformed(self, key: str) -> None:
        with pytest.raises(ValidationError):
            parse_edge_key(key)


class TestLifecycle:
    @pytest.mark.parametrize(
        ("current", "target", "expected"),
        [
            (NodeStatus.DRAFT, NodeStatus.PUBLISHED, True),
            (NodeStatus.DRAFT, NodeStatus.ARCHIVED, True),
            (NodeStatus.PUBLISHED, NodeStatus.DRAFT, True),
            (NodeStatus.PUBLISHED, NodeStatus.ARCHIVED, True),
            (NodeStatus.ARCHIVED, NodeStatus.DRAFT, False),
            (NodeStatus.ARCHIVED, NodeStatus.ARCHIVED, False),
            (NodeStatus.DRAFT, NodeStatus.DRAFT, False),
        ],
    )
    def test_transitions(self, current: str, target: str, expected: bool) -> None:
        assert is_valid_transition(current, target) is expected

    def test_unknown_status(self) -> None:
        assert is_valid_transition("deleted", NodeStatus.DRAFT) is False
