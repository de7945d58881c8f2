"""Tests for the BFS/DFS traversal primitives."""

from __future__ import annotations

from notegraph.domain.traversal import build_adjacency, clusters, shortest_path, within_depth


class TestBuildAdjacency:
    def test_directed_and_bidirectional(self) -> None:
        adjacency = build_adjacency([("a", "b", False), ("b", "c", True)])
        assert adjacency == {"a": ["b"], "b": ["c"], "c": ["b"]}


class TestShortestPath:
    def test_same_node(self) -> None:
        assert shortest_path({}, "a", "a") == ["a"]

    def test_prefers_fewest_hops(self) -> None:
        adjacency = build_adjacency(
            [("a", "b", False), ("b", "c", False), ("c", "d", False), ("a", "d", False)]
        )
        assert shortest_path(adjacency, "a", "d") == ["a", "d"]

    def test_ties_follow_link_order(self) -> None:
        adjacency = build_adjacency(
            [("a", "b", False), ("a", "c", False), ("b", "d", False), ("c", "d", False)]
        )
        assert shortest_path(adjacency, "a", "d") == ["a", "b", "d"]

    def test_unreachable(self) -> None:
        adjacency = build_adjacency([("a", "b", False)])
        assert shortest_path(adjacency, "b", "a") is None

    def test_cycle_terminates(self) -> None:
        adjacency = build_adjacency([("a", "b", False), ("b", "a", False)])
        assert shortest_path(adjacency, "a", "z") is None


class TestClusters:
    def test_preorder_membership(self) -> None:
        adjacency = build_adjacency([("a", "b", False), ("a", "c", False), ("b", "d", False)])
        assert clusters(["a", "b", "c", "d", "e"], adjacency) == [["a", "b", "d", "c"], ["e"]]

    def test_direction_matters_for_seeding(self) -> None:
        adjacency = build_adjacency([("b", "a", False)])
        # "a" seeds first and cannot reach "b"; "b" then finds "a" already visited.
        assert clusters(["a", "b"], adjacency) == [["a"], ["b"]]

    def test_empty(self) -> None:
        assert clusters([], {}) == []


class TestWithinDepth:
    def test_bounded_by_depth(self) -> None:
        adjacency = build_adjacency([("a", "b", False), ("b", "c", False), ("c", "d", False)])
        assert within_depth(adjacency, "a", 1) == ["b"]
        assert within_depth(adjacency, "a", 2) == ["b", "c"]
        assert within_depth(adjacency, "a", 10) == ["b", "c", "d"]

    def test_non_positive_depth(self) -> None:
        adjacency = build_adjacency([("a", "b", False)])
        assert within_depth(adjacency, "a", 0) == []
        assert within_depth(adjacency, "a", -1) == []

    def test_excludes_start_on_cycle(self) -> None:
        adjacency = build_adjacency([("a", "b", True)])
        assert within_depth(adjacency, "a", 3) == ["b"]
