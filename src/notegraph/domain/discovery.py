"""EdgeDiscoveryService — propose, rank, and cap candidate edges for a node."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from pydantic import BaseModel

from notegraph.domain.graph import Graph
from notegraph.domain.node import Node
from notegraph.domain.rules import DiscoveryConfig
from notegraph.domain.similarity import SimilarityCalculator
from notegraph.domain.types import EdgeType

_TYPE_PRIORITY: dict[EdgeType, int] = {
    EdgeType.STRONG: 3,
    EdgeType.WEAK: 2,
    EdgeType.REFERENCE: 1,
}


class BatchScorer(Protocol):
    def calculate_batch(self, source: Node | None, candidates: Iterable[Node]) -> dict[str, float]:
        ...


class EdgeCandidate(BaseModel):
    """A proposed directed edge with the score that produced it."""

    model_config = {"frozen": True}

    source_id: str
    target_id: str
    similarity: float
    edge_type: EdgeType
    reason: str


class EdgeDiscoveryService:
    def __init__(
        self,
        calculator: BatchScorer | None = None,
        config: DiscoveryConfig | None = None,
    ) -> None:
        self.calculator = calculator or SimilarityCalculator()
        self.config = config or DiscoveryConfig()

    def discover_potential_edges(
        self, node: Node | None, graph: Graph | None
    ) -> list[EdgeCandidate]:
        """Score *node* against every other node in *graph*.

        Graphs with one node or fewer yield nothing. Strong candidates also
        produce the reverse edge when ``consider_bidirectional`` is set.
        """
        if node is None or graph is None or graph.node_count <= 1:
            return []

        existing = [graph.get_node(node_id) for node_id in graph.node_ids()]
        scores = self.calculator.calculate_batch(node, existing)

        candidates: list[EdgeCandidate] = []
        for target in existing:
            if target.id == node.id:
                continue
            similarity = scores.get(target.id)
            if similarity is None or similarity < self.config.min_similarity:
                continue

            edge_type = self.classify_edge_type(similarity)
            candidates.append(
                EdgeCandidate(
                    source_id=node.id,
                    target_id=target.id,
                    similarity=similarity,
                    edge_type=edge_type,
                    reason=self._reason(similarity),
                )
            )
            if self.config.consider_bidirectional and edge_type == EdgeType.STRONG:
                candidates.append(
                    EdgeCandidate(
                        source_id=target.id,
                        target_id=node.id,
                        similarity=similarity,
                        edge_type=edge_type,
                        reason="Bidirectional strong connection",
                    )
                )
        return candidates

    def rank_edges(self, candidates: list[EdgeCandidate]) -> list[EdgeCandidate]:
        """Similarity descending, then type priority; returns a new list."""
        return sorted(
            candidates,
            key=lambda c: (c.similarity, _TYPE_PRIORITY.get(c.edge_type, 0)),
            reverse=True,
        )

    def filter_edges(
        self,
        candidates: list[EdgeCandidate],
        max_edges: int = 0,
        min_similarity: float = 0.0,
    ) -> list[EdgeCandidate]:
        """Drop weak scores and cap candidates per source node, keeping order.

        Non-positive arguments fall back to the configured values.
        """
        if max_edges <= 0:
            max_edges = self.config.max_edges_per_node
        if min_similarity <= 0:
            min_similarity = self.config.min_similarity

        per_source: dict[str, int] = {}
        kept: list[EdgeCandidate] = []
        for candidate in candidates:
            if candidate.similarity < min_similarity:
                continue
            if per_source.get(candidate.source_id, 0) >= max_edges:
                continue
            kept.append(candidate)
            per_source[candidate.source_id] = per_source.get(candidate.source_id, 0) + 1
        return kept

    def classify_edge_type(self, similarity: float) -> EdgeType:
        if similarity >= self.config.strong_edge_threshold:
            return EdgeType.STRONG
        return EdgeType.WEAK

    def _reason(self, similarity: float) -> str:
        if similarity >= 0.9:
            return "Very high content similarity"
        if similarity >= self.config.strong_edge_threshold:
            return "Strong content relationship"
        if similarity >= 0.5:
            return "Moderate content similarity"
        return "Related content"
