"""GraphView — a NetworkX DiGraph projected from a Graph aggregate.

Built on demand from the aggregate's node IDs and links, never cached
across invocations. Bidirectional edges become a pair of arcs. The view is
read-only; mutations go through the aggregate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import networkx as nx

if TYPE_CHECKING:
    from notegraph.domain.graph import Graph

type _Graph = nx.DiGraph


class GraphView:
    """Lazy NetworkX view over one aggregate."""

    def __init__(self, graph: Graph) -> None:
        self._source = graph
        self._graph: _Graph | None = None

    @property
    def graph(self) -> _Graph:
        """Return the DiGraph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def invalidate(self) -> None:
        """Drop the projection so the next access rebuilds it."""
        self._graph = None

    def max_depth(self) -> int:
        """Longest shortest-path length (in hops) between any reachable pair."""
        longest = 0
        for _, lengths in nx.all_pairs_shortest_path_length(self.graph):
            longest = max(longest, max(lengths.values(), default=0))
        return longest

    def weakly_connected_count(self) -> int:
        if self.graph.number_of_nodes() == 0:
            return 0
        return nx.number_weakly_connected_components(self.graph)

    def _build(self) -> _Graph:
        # Add every node first so isolated nodes are visible to algorithms.
        g: _Graph = nx.DiGraph()
        g.add_nodes_from(self._source.node_ids())
        for source, target, bidirectional in self._source.links():
            g.add_edge(source, target)
            if bidirectional:
                g.add_edge(target, source)
        return g
