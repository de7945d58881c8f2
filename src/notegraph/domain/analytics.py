"""GraphAnalyticsService — stateless algorithms over a loaded graph.

Works on the aggregate's node IDs and links only, so it runs unchanged
against eager and lazy graphs. Nothing here mutates the graph. Empty or
disconnected graphs yield empty results; "no path" is a NotFoundError.
"""

from __future__ import annotations

from typing import NamedTuple

from notegraph.domain import traversal
from notegraph.domain.errors import NotFoundError
from notegraph.domain.graph import Graph


class Degree(NamedTuple):
    in_degree: int
    out_degree: int


class GraphAnalyticsService:
    """Path finding, clustering, degree, reachability, and centrality."""

    def find_path(self, graph: Graph, start_id: str, end_id: str) -> list[str]:
        self._require_node(graph, start_id, "start node")
        self._require_node(graph, end_id, "end node")
        adjacency = traversal.build_adjacency(graph.links())
        path = traversal.shortest_path(adjacency, start_id, end_id)
        if path is None:
            raise NotFoundError(f"no path between '{start_id}' and '{end_id}'")
        return path

    def clusters(self, graph: Graph) -> list[list[str]]:
        return traversal.clusters(graph.node_ids(), traversal.build_adjacency(graph.links()))

    def node_degree(self, graph: Graph, node_id: str) -> Degree:
        """In/out degree; a bidirectional edge counts in both directions for both ends."""
        self._require_node(graph, node_id, "node")
        in_degree = out_degree = 0
        for source, target, bidirectional in graph.links():
            if source == node_id:
                out_degree += 1
                if bidirectional:
                    in_degree += 1
            if target == node_id:
                in_degree += 1
                if bidirectional:
                    out_degree += 1
        return Degree(in_degree, out_degree)

    def connected_nodes(self, graph: Graph, node_id: str, max_depth: int) -> list[str]:
        """Nodes within *max_depth* hops of *node_id*, excluding itself."""
        self._require_node(graph, node_id, "node")
        adjacency = traversal.build_adjacency(graph.links())
        return traversal.within_depth(adjacency, node_id, max_depth)

    def orphaned_nodes(self, graph: Graph) -> list[str]:
        touched: set[str] = set()
        for source, target, _ in graph.links():
            touched.add(source)
            touched.add(target)
        return [node_id for node_id in graph.node_ids() if node_id not in touched]

    def centrality(self, graph: Graph) -> dict[str, float]:
        """Approximate betweenness centrality, normalized to ``[0, 1]``.

        For every ordered pair ``i < j`` (node order), take the single BFS
        shortest path ``i -> j`` and credit each intermediate node with 1.
        This undercounts true betweenness, which averages over *all*
        shortest paths; the approximation is intentional. O(N^2 * path cost),
        so meant for small and medium graphs.
        """
        node_ids = graph.node_ids()
        adjacency = traversal.build_adjacency(graph.links())
        scores = {node_id: 0.0 for node_id in node_ids}

        for i, source in enumerate(node_ids):
            for target in node_ids[i + 1 :]:
                path = traversal.shortest_path(adjacency, source, target)
                if path is None:
                    continue
                for intermediate in path[1:-1]:
                    scores[intermediate] += 1.0

        highest = max(scores.values(), default=0.0)
        if highest > 0:
            scores = {node_id: score / highest for node_id, score in scores.items()}
        return scores

    @staticmethod
    def _require_node(graph: Graph, node_id: str, label: str) -> None:
        if not graph.has_node(node_id):
            raise NotFoundError(f"{label} '{node_id}' not found")
