"""NodeRelationshipService — connection eligibility, similarity, and suggestions.

The similarity used here is a four-part weighted blend, distinct from the
keyword/tag :class:`SimilarityCalculator` used by edge discovery:

- content (40%): Jaccard over lowercase, punctuation-trimmed words (> 2 chars)
- tags (30%): case-insensitive Jaccard
- position (20%): ``exp(-distance / 100)``, zero at distance >= 1000
- metadata (10%): fraction of keys whose values match exactly

For content, tags, and metadata, two empty inputs score 1.0 and a single
empty input scores 0.0.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel

from notegraph.domain.edge import Edge
from notegraph.domain.errors import NotFoundError, ValidationError
from notegraph.domain.graph import Graph
from notegraph.domain.node import Node
from notegraph.domain.rules import DomainConfig
from notegraph.domain.types import EdgeType

CONTENT_WEIGHT = 0.4
TAG_WEIGHT = 0.3
POSITION_WEIGHT = 0.2
METADATA_WEIGHT = 0.1

POSITION_DECAY = 100.0
MAX_POSITION_DISTANCE = 1000.0
NEARBY_DISTANCE = 100.0

_TRIM_CHARS = ".,!?;:\"'()[]{}#@$%^&*+=<>/\\|`~"


class ConnectionSuggestion(BaseModel):
    """A candidate edge from the source node, with a readable reason."""

    model_config = {"frozen": True}

    target_id: str
    similarity: float
    reason: str
    edge_type: EdgeType


class NodeRelationshipService:
    """Rules for whether and how two nodes should be connected."""

    def __init__(self, config: DomainConfig | None = None) -> None:
        self.config = config or DomainConfig()

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def can_connect(self, graph: Graph, source_id: str, target_id: str) -> bool:
        """Soft eligibility check; raises only when either node is missing."""
        if not graph.has_node(source_id) or not graph.has_node(target_id):
            raise ValidationError("both nodes must exist in graph")
        if source_id == target_id:
            return False
        if graph.has_edge(source_id, target_id):
            return False
        if graph.node_connectivity(source_id) >= self.config.max_connections_per_node:
            return False
        if not self.are_compatible(graph.get_node(source_id), graph.get_node(target_id)):
            return False
        return graph.edge_count < self.config.max_edges_per_graph

    def are_compatible(self, source: Node, target: Node) -> bool:
        """Type-compatibility hook; every pair is currently compatible."""
        return True

    def validate_edge(self, edge: Edge | None) -> None:
        if edge is None:
            raise ValidationError("edge cannot be None")
        if not 0.0 <= edge.weight <= 1.0:
            raise ValidationError("edge weight must be between 0 and 1")
        if edge.edge_type not in set(EdgeType):
            raise ValidationError(f"invalid edge type: {edge.edge_type}")
        if edge.is_self_loop:
            raise ValidationError("self-loops are not allowed")

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def calculate_similarity(self, first: Node | None, second: Node | None) -> float:
        if first is None or second is None:
            return 0.0
        parts = (
            (content_similarity(first, second), CONTENT_WEIGHT),
            (tag_similarity(first.tags, second.tags), TAG_WEIGHT),
            (position_proximity(first, second), POSITION_WEIGHT),
            (metadata_similarity(first.metadata, second.metadata), METADATA_WEIGHT),
        )
        total_weight = math.fsum(weight for _, weight in parts)
        score = math.fsum(value * weight for value, weight in parts) / total_weight
        return max(0.0, min(1.0, score))

    def determine_edge_weight(self, source: Node, target: Node) -> float:
        """``0.6 * similarity + 0.4 * mean importance``, clamped to ``[0, 1]``."""
        similarity = self.calculate_similarity(source, target)
        importance = (node_importance(source) + node_importance(target)) / 2
        return max(0.0, min(1.0, similarity * 0.6 + importance * 0.4))

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def suggest_connections(
        self, graph: Graph, node_id: str, limit: int = 0
    ) -> list[ConnectionSuggestion]:
        """Rank unconnected nodes by similarity to *node_id*.

        Candidates below ``min_similarity_threshold`` are dropped. The sort
        is stable and descending by similarity, so ties keep node order.
        ``limit <= 0`` returns every candidate.
        """
        if not graph.has_node(node_id):
            raise NotFoundError(f"Node '{node_id}' not found in graph")
        source = graph.get_node(node_id)
        linked = _linked_ids(graph, node_id)

        suggestions: list[ConnectionSuggestion] = []
        for target_id in graph.node_ids():
            if target_id == node_id or target_id in linked:
                continue
            target = graph.get_node(target_id)
            similarity = self.calculate_similarity(source, target)
            if similarity < self.config.min_similarity_threshold:
                continue
            suggestions.append(
                ConnectionSuggestion(
                    target_id=target_id,
                    similarity=similarity,
                    reason=connection_reason(source, target, similarity),
                    edge_type=suggest_edge_type(similarity),
                )
            )

        suggestions.sort(key=lambda s: s.similarity, reverse=True)
        if limit > 0:
            suggestions = suggestions[:limit]
        return suggestions


# ---------------------------------------------------------------------------
# Scoring components
# ---------------------------------------------------------------------------


def content_words(node: Node) -> list[str]:
    words = (w.strip(_TRIM_CHARS) for w in node.content.text.lower().split())
    return [w for w in words if len(w) > 2]


def content_similarity(first: Node, second: Node) -> float:
    # Word lists, not sets: repeated words inflate the union.
    words1 = content_words(first)
    words2 = content_words(second)
    if not words1 and not words2:
        return 1.0
    if not words1 or not words2:
        return 0.0
    vocabulary = set(words1)
    intersection = sum(1 for w in words2 if w in vocabulary)
    union = len(words1) + len(words2) - intersection
    return intersection / union if union > 0 else 0.0


def tag_similarity(tags1: list[str], tags2: list[str]) -> float:
    if not tags1 and not tags2:
        return 1.0
    if not tags1 or not tags2:
        return 0.0
    lowered = {t.lower() for t in tags1}
    intersection = sum(1 for t in tags2 if t.lower() in lowered)
    union = len(tags1) + len(tags2) - intersection
    return intersection / union if union > 0 else 0.0


def position_proximity(first: Node, second: Node) -> float:
    distance = first.position.distance_to(second.position)
    if distance >= MAX_POSITION_DISTANCE:
        return 0.0
    return math.exp(-distance / POSITION_DECAY)


def metadata_similarity(meta1: dict[str, Any], meta2: dict[str, Any]) -> float:
    if not meta1 and not meta2:
        return 1.0
    if not meta1 or not meta2:
        return 0.0
    keys = meta1.keys() | meta2.keys()
    matches = sum(1 for k in meta1 if k in meta2 and str(meta1[k]) == str(meta2[k]))
    return matches / len(keys)


def node_importance(node: Node) -> float:
    """Half from content length (saturating at 1000 chars), half from tags (at 10)."""
    importance = 0.0
    length = len(node.content.title) + len(node.content.body)
    if length > 0:
        importance += min(length / 1000.0, 1.0) * 0.5
    if node.tags:
        importance += min(len(node.tags) / 10.0, 1.0) * 0.5
    return importance


def common_tags(tags1: list[str], tags2: list[str]) -> list[str]:
    lowered = {t.lower() for t in tags1}
    return [t for t in tags2 if t.lower() in lowered]


def connection_reason(source: Node, target: Node, similarity: float) -> str:
    reasons: list[str] = []
    shared = common_tags(source.tags, target.tags)
    if shared:
        reasons.append(f"shared tags: {', '.join(shared)}")
    if similarity > 0.7:
        reasons.append("highly similar content")
    elif similarity > 0.4:
        reasons.append("related content")
    if source.position.distance_to(target.position) < NEARBY_DISTANCE:
        reasons.append("nearby position")
    return "; ".join(reasons) if reasons else "potential connection"


def suggest_edge_type(similarity: float) -> EdgeType:
    if similarity > 0.8:
        return EdgeType.STRONG
    if similarity > 0.5:
        return EdgeType.NORMAL
    return EdgeType.WEAK


def _linked_ids(graph: Graph, node_id: str) -> set[str]:
    """Nodes sharing an edge with *node_id* in either direction."""
    linked: set[str] = set()
    for source, target, _ in graph.links():
        if source == node_id:
            linked.add(target)
        elif target == node_id:
            linked.add(source)
    return linked
