"""Tests for the Node entity: lifecycle, connections, tags, metadata, events."""

from __future__ import annotations

import pytest

from notegraph.domain.errors import (
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from notegraph.domain.types import EdgeType, NodeStatus
from tests.conftest import make_node


class TestCreate:
    def test_defaults(self) -> None:
        node = make_node("Graph theory", "Vertices and edges")
        assert node.status == NodeStatus.DRAFT
        assert node.version == 1
        assert node.graph_id is None
        assert node.connections == []
        assert node.position.z == 0.0

    def test_requires_user(self) -> None:
        with pytest.raises(ValidationError):
            make_node("Orphan", user="")

    def test_records_created_event(self) -> None:
        node = make_node("Graph theory", node_id="n1")
        events = node.uncommitted_events()
        assert [e.event_type for e in events] == ["node.created"]
        assert events[0].payload()["title"] == "Graph theory"

    def test_tags_deduplicated_case_insensitively(self) -> None:
        node = make_node("Tagged", tags=["Math", "math", " CS "])
        assert node.tags == ["Math", "CS"]


class TestLifecycle:
    def test_publish(self) -> None:
        node = make_node("Draft")
        node.publish()
        assert node.is_published
        assert node.uncommitted_events()[-1].event_type == "node.published"

    def test_archive_drops_connections(self) -> None:
        node = make_node("Hub", node_id="hub")
        node.connect_to("other")
        node.archive()
        assert node.is_archived
        assert node.connections == []

    def test_archive_twice_rejected(self) -> None:
        node = make_node("Once")
        node.archive()
        with pytest.raises(ValidationError):
            node.archive()

    def test_archived_cannot_publish(self) -> None:
        node = make_node("Gone")
        node.archive()
        with pytest.raises(ValidationError):
            node.publish()

    def test_transition_bumps_version(self) -> None:
        node = make_node("Draft")
        node.publish()
        assert node.version == 2


class TestConnections:
    def test_connect_records_reference(self) -> None:
        node = make_node("Source", node_id="s")
        ref = node.connect_to("t", EdgeType.STRONG)
        assert ref.target_id == "t"
        assert ref.edge_type == "strong"
        assert node.has_connection_to("t")

    def test_connect_emits_no_event(self) -> None:
        node = make_node("Source", node_id="s")
        node.mark_events_committed()
        node.connect_to("t")
        assert node.uncommitted_events() == []

    def test_self_connection_rejected(self) -> None:
        node = make_node("Self", node_id="s")
        with pytest.raises(ValidationError):
            node.connect_to("s")

    def test_duplicate_connection_conflict(self) -> None:
        node = make_node("Source", node_id="s")
        node.connect_to("t")
        with pytest.raises(ConflictError):
            node.connect_to("t")

    def test_same_target_other_type_allowed(self) -> None:
        node = make_node("Source", node_id="s")
        node.connect_to("t", EdgeType.NORMAL)
        node.connect_to("t", EdgeType.REFERENCE)
        assert len(node.connections) == 2

    def test_max_connections(self) -> None:
        node = make_node("Source", node_id="s")
        node.connect_to("a", max_connections=1)
        with pytest.raises(QuotaExceededError):
            node.connect_to("b", max_connections=1)

    def test_check_can_connect_does_not_mutate(self) -> None:
        node = make_node("Source", node_id="s")
        node.check_can_connect("t")
        assert node.connections == []

    def test_disconnect(self) -> None:
        node = make_node("Source", node_id="s")
        node.connect_to("t")
        node.disconnect("t")
        assert not node.has_connection_to("t")
        with pytest.raises(NotFoundError):
            node.disconnect("t")


class TestTagsAndMetadata:
    def test_add_tag_idempotent(self) -> None:
        node = make_node("Tagged", tags=["math"])
        node.add_tag("MATH")
        assert node.tags == ["math"]

    def test_empty_tag_rejected(self) -> None:
        node = make_node("Tagged")
        with pytest.raises(ValidationError):
            node.add_tag("   ")

    def test_tag_quota(self) -> None:
        node = make_node("Tagged", tags=["a", "b"])
        with pytest.raises(QuotaExceededError):
            node.add_tag("c", max_tags=2)

    def test_remove_tag(self) -> None:
        node = make_node("Tagged", tags=["Math", "cs"])
        node.remove_tag("math")
        assert node.tags == ["cs"]
        assert not node.has_tag("MATH")
        with pytest.raises(NotFoundError):
            node.remove_tag("math")

    def test_metadata(self) -> None:
        node = make_node("Meta", metadata={"source": "book"})
        node.set_metadata("page", 12)
        assert node.get_metadata("source") == "book"
        assert node.get_metadata("page") == 12
        assert node.get_metadata("missing", "dflt") == "dflt"
