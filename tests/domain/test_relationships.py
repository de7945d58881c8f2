"""Tests for NodeRelationshipService: eligibility, similarity, suggestions."""

from __future__ import annotations

import pytest

from notegraph.domain.edge import Edge
from notegraph.domain.errors import NotFoundError, ValidationError
from notegraph.domain.graph import Graph
from notegraph.domain.relationships import (
    NodeRelationshipService,
    connection_reason,
    metadata_similarity,
    node_importance,
    suggest_edge_type,
    tag_similarity,
)
from notegraph.domain.rules import DomainConfig
from notegraph.domain.types import EdgeType
from tests.conftest import USER, make_graph, make_node


@pytest.fixture
def service() -> NodeRelationshipService:
    return NodeRelationshipService()


class TestSimilarity:
    def test_identical_nodes_score_one(self, service: NodeRelationshipService) -> None:
        first = make_node("Graph theory", "vertices and edges", tags=["x", "y"])
        second = make_node("Graph theory", "vertices and edges", tags=["x", "y"])
        assert service.calculate_similarity(first, second) == pytest.approx(1.0)

    def test_unrelated_node_below_threshold(self, service: NodeRelationshipService) -> None:
        first = make_node("Graph theory", "vertices and edges", tags=["x", "y"])
        second = make_node("Graph theory", "vertices and edges", tags=["x", "y"])
        third = make_node("Sourdough", "flour water salt", x=5000, y=5000, tags=["bread"])
        threshold = DomainConfig().min_similarity_threshold
        assert service.calculate_similarity(first, third) < threshold
        assert service.calculate_similarity(second, third) < threshold

    def test_self_similarity(self, service: NodeRelationshipService) -> None:
        node = make_node("Graph theory", "vertices", tags=["math"], metadata={"k": "v"})
        assert service.calculate_similarity(node, node) == pytest.approx(1.0)

    def test_bounds(self, service: NodeRelationshipService) -> None:
        nodes = [
            make_node("Alpha beta", tags=["a"]),
            make_node("Gamma", "delta", x=30, tags=["b", "a"], metadata={"m": 1}),
            make_node("Epsilon", x=2000, metadata={"m": "1"}),
        ]
        for first in nodes:
            for second in nodes:
                assert 0.0 <= service.calculate_similarity(first, second) <= 1.0

    def test_none_scores_zero(self, service: NodeRelationshipService) -> None:
        assert service.calculate_similarity(make_node("x"), None) == 0.0

    def test_tag_similarity_edges(self) -> None:
        assert tag_similarity([], []) == 1.0
        assert tag_similarity(["a"], []) == 0.0
        assert tag_similarity(["A", "b"], ["a", "c"]) == pytest.approx(1 / 3)

    def test_metadata_similarity(self) -> None:
        assert metadata_similarity({}, {}) == 1.0
        assert metadata_similarity({"a": 1}, {}) == 0.0
        assert metadata_similarity({"a": 1, "b": 2}, {"a": "1", "c": 3}) == pytest.approx(1 / 3)


class TestEdgeWeight:
    def test_importance(self) -> None:
        saturated = make_node("x", "x" * 999, tags=[f"t{i}" for i in range(10)])
        assert node_importance(saturated) == 1.0
        assert node_importance(make_node("x" * 100)) == pytest.approx(0.05)

    def test_weight_is_clamped_blend(self, service: NodeRelationshipService) -> None:
        first = make_node("Graph", tags=["x"])
        second = make_node("Graph", tags=["x"])
        similarity = service.calculate_similarity(first, second)
        importance = (node_importance(first) + node_importance(second)) / 2
        expected = 0.6 * similarity + 0.4 * importance
        assert service.determine_edge_weight(first, second) == pytest.approx(expected)


class TestCanConnect:
    def test_eligible(self, service: NodeRelationshipService) -> None:
        assert service.can_connect(make_graph("A", "B"), "A", "B") is True

    def test_missing_node_raises(self, service: NodeRelationshipService) -> None:
        with pytest.raises(ValidationError):
            service.can_connect(make_graph("A"), "A", "ghost")

    def test_soft_failures(self) -> None:
        service = NodeRelationshipService(DomainConfig(max_connections_per_node=1))
        graph = make_graph("A", "B", "C")
        graph.connect_nodes("A", "B")
        assert service.can_connect(graph, "A", "A") is False
        assert service.can_connect(graph, "A", "B") is False
        assert service.can_connect(graph, "A", "C") is False

    def test_edge_quota_soft_fail(self) -> None:
        service = NodeRelationshipService(DomainConfig(max_edges_per_graph=1))
        graph = make_graph("A", "B", "C")
        graph.connect_nodes("A", "B")
        assert service.can_connect(graph, "C", "B") is False


class TestValidateEdge:
    def test_valid(self, service: NodeRelationshipService) -> None:
        service.validate_edge(Edge(source_id="a", target_id="b", weight=0.5))

    @pytest.mark.parametrize(
        "edge",
        [
            None,
            Edge(source_id="a", target_id="b", weight=2.0),
            Edge(source_id="a", target_id="b", edge_type="cousin"),
            Edge(source_id="a", target_id="a"),
        ],
    )
    def test_invalid(self, service: NodeRelationshipService, edge: Edge | None) -> None:
        with pytest.raises(ValidationError):
            service.validate_edge(edge)


class TestSuggestions:
    def _graph(self) -> Graph:
        graph = Graph.create(USER)
        graph.add_node(make_node("Graph theory", "vertices edges", tags=["math"], node_id="src"))
        graph.add_node(make_node("Graph theory", "vertices edges", tags=["math"], node_id="twin"))
        graph.add_node(
            make_node("Graph algorithms", "vertices search", tags=["math", "cs"], node_id="kin")
        )
        graph.add_node(make_node("Sourdough", "flour", x=5000, tags=["food"], node_id="far"))
        return graph

    def test_ranked_and_filtered(self, service: NodeRelationshipService) -> None:
        suggestions = service.suggest_connections(self._graph(), "src")
        assert [s.target_id for s in suggestions] == ["twin", "kin"]
        assert suggestions[0].similarity >= suggestions[1].similarity
        assert suggestions[0].edge_type == EdgeType.STRONG
        assert "shared tags: math" in suggestions[0].reason

    def test_skips_connected_nodes_either_direction(
        self, service: NodeRelationshipService
    ) -> None:
        graph = self._graph()
        graph.connect_nodes("twin", "src")
        assert [s.target_id for s in service.suggest_connections(graph, "src")] == ["kin"]

    def test_limit(self, service: NodeRelationshipService) -> None:
        suggestions = service.suggest_connections(self._graph(), "src", limit=1)
        assert [s.target_id for s in suggestions] == ["twin"]

    def test_ties_keep_node_order(self, service: NodeRelationshipService) -> None:
        graph = make_graph("A", "B", "C")
        suggestions = service.suggest_connections(graph, "A")
        assert [s.target_id for s in suggestions] == ["B", "C"]

    def test_missing_node(self, service: NodeRelationshipService) -> None:
        with pytest.raises(NotFoundError):
            service.suggest_connections(make_graph("A"), "ghost")


class TestReasonsAndTypes:
    @pytest.mark.parametrize(
        ("similarity", "expected"),
        [
            (0.9, EdgeType.STRONG),
            (0.81, EdgeType.STRONG),
            (0.8, EdgeType.NORMAL),
            (0.6, EdgeType.NORMAL),
            (0.5, EdgeType.WEAK),
            (0.1, EdgeType.WEAK),
        ],
    )
    def test_suggest_edge_type(self, similarity: float, expected: EdgeType) -> None:
        assert suggest_edge_type(similarity) == expected

    def test_reason_fallback(self) -> None:
        first = make_node("a", x=0)
        second = make_node("b", x=500)
        assert connection_reason(first, second, 0.1) == "potential connection"

    def test_reason_parts(self) -> None:
        first = make_node("a", tags=["Math"])
        second = make_node("b", x=10, tags=["math"])
        reason = connection_reason(first, second, 0.5)
        assert reason == "shared tags: math; related content; nearby position"
