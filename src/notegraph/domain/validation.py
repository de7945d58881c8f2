"""GraphValidationService — whole-graph and pre-mutation validation passes.

Each method raises the first violation as a :class:`DomainError` and
returns ``None`` when everything holds. Checks that need full node objects
are skipped for lazy graphs, matching what the aggregate can answer from
identifiers alone.
"""

from __future__ import annotations

from notegraph.domain.edge import Edge
from notegraph.domain.errors import (
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from notegraph.domain.graph import Graph
from notegraph.domain.ids import make_edge_key
from notegraph.domain.node import Node
from notegraph.domain.rules import DomainConfig
from notegraph.domain.specifications import (
    EdgeTypeSpec,
    NodeContentFormatSpec,
    archived_node_spec,
)
from notegraph.domain.traversal import Link
from notegraph.domain.types import ContentFormat, EdgeType

BULK_ADD_NODES = "add_nodes"
BULK_ADD_EDGES = "add_edges"
BULK_REMOVE_NODES = "remove_nodes"
BULK_REMOVE_EDGES = "remove_edges"


class GraphValidationService:
    def __init__(self, config: DomainConfig | None = None) -> None:
        self.config = config or DomainConfig()
        self._known_type = EdgeTypeSpec(*EdgeType)
        self._known_format = NodeContentFormatSpec(*ContentFormat)
        self._archived = archived_node_spec()

    # ------------------------------------------------------------------
    # Whole graph
    # ------------------------------------------------------------------

    def validate_graph(self, graph: Graph | None) -> None:
        """Metadata, nodes, edges, counters, then referential consistency."""
        if graph is None:
            raise ValidationError("graph cannot be None")
        self._validate_metadata(graph)
        if not graph.is_lazy:
            for node in graph.nodes():
                try:
                    self.validate_node(node)
                except ValidationError as exc:
                    raise ValidationError(f"invalid node {node.id}: {exc.message}") from exc
            for edge in graph.edges():
                try:
                    self.validate_edge(edge, graph)
                except ValidationError as exc:
                    raise ValidationError(f"invalid edge {edge.id}: {exc.message}") from exc
        self._validate_counts(graph)
        self._validate_consistency(graph)

    def validate_node(self, node: Node) -> None:
        if not node.id:
            raise ValidationError("node must have valid ID")
        self._validate_content(node)
        self._validate_position(node)
        if len(node.tags) > self.config.max_tags_per_node:
            raise QuotaExceededError(
                f"node has too many tags: {len(node.tags)} > {self.config.max_tags_per_node}"
            )

    def validate_edge(self, edge: Edge, graph: Graph | None = None) -> None:
        """Weight, type and, when *graph* is given, endpoint existence."""
        if not 0.0 <= edge.weight <= 1.0:
            raise ValidationError(f"edge weight must be between 0 and 1: {edge.weight}")
        if not self._known_type.is_satisfied_by(edge):
            raise ValidationError(f"invalid edge type: {edge.edge_type}")
        if graph is not None:
            if not graph.has_node(edge.source_id):
                raise ValidationError("edge references non-existent source node")
            if not graph.has_node(edge.target_id):
                raise ValidationError("edge references non-existent target node")

    # ------------------------------------------------------------------
    # Pre-mutation checks
    # ------------------------------------------------------------------

    def validate_node_addition(self, graph: Graph, node: Node) -> None:
        if graph.has_node(node.id):
            raise ConflictError("node already exists in graph")
        if graph.node_count >= self.config.max_nodes_per_graph:
            raise QuotaExceededError(f"maximum nodes reached: {self.config.max_nodes_per_graph}")
        self._validate_content(node)
        self._validate_position(node)
        if len(node.tags) > self.config.max_tags_per_node:
            raise QuotaExceededError(
                f"node has too many tags: {len(node.tags)} > {self.config.max_tags_per_node}"
            )

    def validate_edge_addition(
        self,
        graph: Graph,
        source_id: str,
        target_id: str,
        edge_type: str = EdgeType.NORMAL,
        *,
        bidirectional: bool = False,
    ) -> None:
        if not graph.has_node(source_id):
            raise ValidationError("source node does not exist")
        if not graph.has_node(target_id):
            raise ValidationError("target node does not exist")
        if source_id == target_id:
            raise ValidationError("cannot connect node to itself")
        if graph.has_edge(source_id, target_id):
            raise ConflictError(f"edge already exists: {make_edge_key(source_id, target_id)}")
        if graph.covers_pair(source_id, target_id, bidirectional=bidirectional):
            reverse = make_edge_key(target_id, source_id)
            raise ConflictError(f"edge already exists in reverse: {reverse}")
        if graph.edge_count >= self.config.max_edges_per_graph:
            raise QuotaExceededError(f"maximum edges reached: {self.config.max_edges_per_graph}")

        links = graph.links()
        for label, node_id in (("source", source_id), ("target", target_id)):
            if _touching(links, node_id) >= self.config.max_connections_per_node:
                raise QuotaExceededError(
                    f"{label} node: node has reached maximum connections: "
                    f"{self.config.max_connections_per_node}"
                )

        if edge_type not in self._known_type.allowed:
            raise ValidationError(f"invalid edge type: {edge_type}")
        if edge_type == EdgeType.HIERARCHICAL and would_create_cycle(
            _typed_edges(graph), source_id, target_id
        ):
            raise ValidationError("edge would create a cycle in hierarchy")
        if not self.are_compatible(graph, source_id, target_id, edge_type):
            raise ValidationError(f"nodes are not compatible for edge type: {edge_type}")

    def validate_node_removal(self, graph: Graph, node_id: str) -> None:
        if not graph.has_node(node_id):
            raise NotFoundError(f"Node '{node_id}' not found in graph")
        if self._archived.is_satisfied_by(graph.get_node(node_id)):
            raise ValidationError("node is already archived")
        critical = [
            edge
            for edge in _typed_edges(graph)
            if edge.edge_type == EdgeType.HIERARCHICAL and edge.target_id == node_id
        ]
        if critical:
            raise ValidationError(
                f"node has {len(critical)} critical connections that must be removed first"
            )

    def validate_bulk_operation(self, graph: Graph, operation: str, count: int) -> None:
        if operation == BULK_ADD_NODES:
            current = graph.node_count
            limit = self.config.max_nodes_per_graph
            if current + count > limit:
                raise QuotaExceededError(
                    f"bulk operation would exceed max nodes: {current} + {count} > {limit}"
                )
        elif operation == BULK_ADD_EDGES:
            current = graph.edge_count
            limit = self.config.max_edges_per_graph
            if current + count > limit:
                raise QuotaExceededError(
                    f"bulk operation would exceed max edges: {current} + {count} > {limit}"
                )
        elif operation not in (BULK_REMOVE_NODES, BULK_REMOVE_EDGES):
            raise ValidationError(f"unknown operation: {operation}")

        if count > self.config.max_bulk_operation_size:
            raise QuotaExceededError(
                f"bulk operation size exceeds limit: "
                f"{count} > {self.config.max_bulk_operation_size}"
            )

    def are_compatible(self, graph: Graph, source_id: str, target_id: str, edge_type: str) -> bool:
        """Per-type compatibility hook; every pair is currently compatible."""
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_metadata(self, graph: Graph) -> None:
        if not graph.name:
            raise ValidationError("graph name is required")
        if len(graph.name) > self.config.max_graph_name_length:
            raise ValidationError("graph name exceeds maximum length")
        if not graph.user_id:
            raise ValidationError("graph must have an owner")

    def _validate_content(self, node: Node) -> None:
        if len(node.content.title) > self.config.max_title_length:
            raise ValidationError("node title exceeds maximum length")
        if len(node.content.body) > self.config.max_body_length:
            raise ValidationError("node content exceeds maximum length")
        if not self._known_format.is_satisfied_by(node):
            raise ValidationError(f"invalid content format: {node.content.format}")

    def _validate_position(self, node: Node) -> None:
        bound = self.config.max_coordinate
        pos = node.position
        for axis, value in (("X", pos.x), ("Y", pos.y), ("Z", pos.z)):
            if not -bound <= value <= bound:
                raise ValidationError(f"node {axis} position out of bounds: {value:f}")

    @staticmethod
    def _validate_counts(graph: Graph) -> None:
        actual_nodes = len(graph.node_ids())
        if actual_nodes != graph.node_count:
            raise ValidationError(
                f"node count mismatch: actual={actual_nodes}, metadata={graph.node_count}"
            )
        actual_edges = len(graph.edge_keys())
        if actual_edges != graph.edge_count:
            raise ValidationError(
                f"edge count mismatch: actual={actual_edges}, metadata={graph.edge_count}"
            )

    @staticmethod
    def _validate_consistency(graph: Graph) -> None:
        for source, target, bidirectional in graph.links():
            key = make_edge_key(source, target)
            if not graph.has_node(source):
                raise ValidationError(f"edge {key} references non-existent source node")
            if not graph.has_node(target):
                raise ValidationError(f"edge {key} references non-existent target node")
            if graph.covers_pair(source, target, bidirectional=bidirectional):
                raise ValidationError(f"edge {key} duplicates a bidirectional pair")


def would_create_cycle(edges: list[Edge], source_id: str, target_id: str) -> bool:
    """Whether a hierarchical ``source -> target`` edge would close a loop.

    Walks hierarchical edges depth-first from the new child looking for the
    new parent. Other edge types never form hierarchy cycles.
    """
    children: dict[str, list[str]] = {}
    for edge in edges:
        if edge.edge_type == EdgeType.HIERARCHICAL:
            children.setdefault(edge.source_id, []).append(edge.target_id)

    stack = [target_id]
    visited: set[str] = set()
    while stack:
        current = stack.pop()
        if current == source_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(c for c in children.get(current, ()) if c not in visited)
    return False


def _touching(links: list[Link], node_id: str) -> int:
    return sum(1 for source, target, _ in links if node_id in (source, target))


def _typed_edges(graph: Graph) -> list[Edge]:
    if not graph.is_lazy:
        return graph.edges()
    return [graph.get_edge(source, target) for source, target, _ in graph.links()]
