"""GraphService — graph lifecycle, node and edge commands, and analysis.

Every mutation follows one sequence: load the aggregate, run the
pre-mutation validator, apply the command, validate the whole graph, save
with an optimistic version check, then publish the buffered events. Read
operations load the lazy aggregate, which resolves nodes and edges from the
database only when asked.

Graphs are scoped to the acting user. A graph owned by someone else is
readable only while it is public and is never writable; otherwise it is
reported as not found.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from notegraph.domain.analytics import GraphAnalyticsService
from notegraph.domain.content import NodeContent, Position
from notegraph.domain.discovery import EdgeDiscoveryService
from notegraph.domain.edge import DEFAULT_EDGE_WEIGHT
from notegraph.domain.errors import DomainError, NotFoundError
from notegraph.domain.graph import MAX_PAGE_SIZE, Graph
from notegraph.domain.node import Node
from notegraph.domain.relationships import NodeRelationshipService
from notegraph.domain.similarity import SimilarityCalculator
from notegraph.domain.types import ContentFormat, EdgeType
from notegraph.domain.validation import GraphValidationService
from notegraph.infrastructure.graph.engine import GraphView
from notegraph.infrastructure.repositories.graph import StaleGraphError
from notegraph.services._helpers import edge_dict, graph_summary, node_dict, statistics_dict
from notegraph.services.base import BaseService
from notegraph.services.result import NO_PATH, VERSION_CONFLICT, ServiceResult, failure

if TYPE_CHECKING:
    from notegraph.infrastructure.workspace import Workspace


class GraphService(BaseService):
    """Handles graph commands, queries, and analysis for the acting user."""

    def __init__(self, workspace: Workspace) -> None:
        super().__init__(workspace)
        settings = workspace.settings
        self._config = settings.graph
        self._validator = GraphValidationService(self._config)
        self._analytics = GraphAnalyticsService()
        self._relationships = NodeRelationshipService(self._config)
        self._calculator = SimilarityCalculator(settings.similarity)
        self._discovery = EdgeDiscoveryService(self._calculator, settings.discovery)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _load(self, graph_id: str, *, lazy: bool = False, write: bool = False) -> Graph:
        repo = self._workspace.graphs
        graph = repo.get_lazy(graph_id) if lazy else repo.get(graph_id)
        if graph.user_id != self.user and (write or not graph.metadata.is_public):
            raise NotFoundError(f"Graph '{graph_id}' not found")
        return graph

    def _commit(
        self,
        op: str,
        graph: Graph,
        expected_version: int,
        data: dict[str, Any],
    ) -> ServiceResult:
        """Validate, save, then publish the aggregate's events (its nodes' included)."""
        self._validator.validate_graph(graph)
        self._workspace.graphs.save(graph, expected_version)
        warnings: list[str] = []
        self._publish_events(graph, warnings)
        return ServiceResult(
            ok=True, op=op, data=data, warnings=warnings, meta={"version": graph.version}
        )

    @staticmethod
    def _fail(op: str, exc: DomainError) -> ServiceResult:
        if isinstance(exc, StaleGraphError):
            return failure(op, exc, code=VERSION_CONFLICT)
        return failure(op, exc)

    # ------------------------------------------------------------------
    # Graph lifecycle
    # ------------------------------------------------------------------

    def create_graph(self, name: str = "", *, description: str | None = None) -> ServiceResult:
        """Create an empty graph owned by the acting user."""
        op = "create_graph"
        try:
            graph = Graph.create(self.user, name, config=self._config, description=description)
            self._validator.validate_graph(graph)
            self._workspace.graphs.add(graph)
        except DomainError as exc:
            return self._fail(op, exc)

        warnings: list[str] = []
        self._publish_events(graph, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data=graph_summary(graph),
            warnings=warnings,
            meta={"version": graph.version},
        )

    def list_graphs(self) -> ServiceResult:
        summaries = self._workspace.graphs.list_for_user(self.user)
        items = [s.model_dump(mode="json") for s in summaries]
        return ServiceResult(ok=True, op="list_graphs", data={"count": len(items), "items": items})

    def show(self, graph_id: str) -> ServiceResult:
        op = "show"
        try:
            graph = self._load(graph_id, lazy=True)
        except DomainError as exc:
            return self._fail(op, exc)
        data = graph_summary(graph)
        data["is_default"] = graph.is_default
        return ServiceResult(ok=True, op=op, data=data, meta={"version": graph.version})

    def rename(self, graph_id: str, name: str) -> ServiceResult:
        op = "rename"
        try:
            graph = self._load(graph_id, lazy=True, write=True)
            expected = graph.version
            old_name = graph.name
            graph.rename(name)
            return self._commit(
                op, graph, expected, {"id": graph.id, "old_name": old_name, "name": graph.name}
            )
        except DomainError as exc:
            return self._fail(op, exc)

    def set_public(self, graph_id: str, is_public: bool) -> ServiceResult:
        op = "set_public"
        try:
            graph = self._load(graph_id, lazy=True, write=True)
            expected = graph.version
            graph.set_public(is_public)
            return self._commit(op, graph, expected, {"id": graph.id, "is_public": is_public})
        except DomainError as exc:
            return self._fail(op, exc)

    # ------------------------------------------------------------------
    # Node and edge commands
    # ------------------------------------------------------------------

    def add_node(
        self,
        graph_id: str,
        title: str,
        body: str = "",
        *,
        content_format: str = ContentFormat.MARKDOWN,
        x: float = 0.0,
        y: float = 0.0,
        z: float = 0.0,
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Create a draft node and add it to the graph."""
        op = "add_node"
        try:
            graph = self._load(graph_id, write=True)
            expected = graph.version
            node = Node.create(
                self.user,
                NodeContent.create(title, body, content_format),
                Position.create(x, y, z),
                tags=tags,
                metadata=metadata,
                max_tags=self._config.max_tags_per_node,
            )
            self._validator.validate_node_addition(graph, node)
            graph.add_node(node)
            return self._commit(op, graph, expected, node_dict(node))
        except DomainError as exc:
            return self._fail(op, exc)

    def connect(
        self,
        graph_id: str,
        source_id: str,
        target_id: str,
        edge_type: str = EdgeType.NORMAL,
        *,
        weight: float = DEFAULT_EDGE_WEIGHT,
        bidirectional: bool = False,
    ) -> ServiceResult:
        op = "connect"
        try:
            graph = self._load(graph_id, write=True)
            expected = graph.version
            self._validator.validate_edge_addition(
                graph, source_id, target_id, edge_type, bidirectional=bidirectional
            )
            edge = graph.connect_nodes(
                source_id, target_id, edge_type, weight=weight, bidirectional=bidirectional
            )
            return self._commit(op, graph, expected, edge_dict(edge))
        except DomainError as exc:
            return self._fail(op, exc)

    def remove_node(self, graph_id: str, node_id: str) -> ServiceResult:
        """Archive the node and drop it, with every edge touching it."""
        op = "remove_node"
        try:
            graph = self._load(graph_id, write=True)
            expected = graph.version
            self._validator.validate_node_removal(graph, node_id)
            edges_before = graph.edge_count
            graph.remove_node(node_id)
            data = {"id": node_id, "edges_removed": edges_before - graph.edge_count}
            return self._commit(op, graph, expected, data)
        except DomainError as exc:
            return self._fail(op, exc)

    # ------------------------------------------------------------------
    # Paginated listings
    # ------------------------------------------------------------------

    def list_nodes(
        self, graph_id: str, *, limit: int = MAX_PAGE_SIZE, offset: int = 0
    ) -> ServiceResult:
        op = "list_nodes"
        try:
            graph = self._load(graph_id, lazy=True)
            page, has_more = graph.nodes_page(limit, offset)
        except DomainError as exc:
            return self._fail(op, exc)
        items = [node_dict(n) for n in page]
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(items), "items": items},
            meta={"total": graph.node_count, "offset": offset, "has_more": has_more},
        )

    def list_edges(
        self, graph_id: str, *, limit: int = MAX_PAGE_SIZE, offset: int = 0
    ) -> ServiceResult:
        op = "list_edges"
        try:
            graph = self._load(graph_id, lazy=True)
            page, has_more = graph.edges_page(limit, offset)
        except DomainError as exc:
            return self._fail(op, exc)
        items = [edge_dict(e) for e in page]
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(items), "items": items},
            meta={"total": graph.edge_count, "offset": offset, "has_more": has_more},
        )

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def path(self, graph_id: str, source_id: str, target_id: str) -> ServiceResult:
        """Shortest hop-count path; a missing route is ``NO_PATH``, not ``NOT_FOUND``."""
        op = "path"
        try:
            graph = self._load(graph_id, lazy=True)
            for label, node_id in (("source", source_id), ("target", target_id)):
                if not graph.has_node(node_id):
                    raise NotFoundError(f"{label} node '{node_id}' not found")
        except DomainError as exc:
            return self._fail(op, exc)

        try:
            steps = self._analytics.find_path(graph, source_id, target_id)
        except NotFoundError as exc:
            return failure(op, exc, code=NO_PATH)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "source_id": source_id,
                "target_id": target_id,
                "length": len(steps) - 1,
                "path": steps,
            },
        )

    def clusters(self, graph_id: str) -> ServiceResult:
        op = "clusters"
        try:
            graph = self._load(graph_id, lazy=True)
        except DomainError as exc:
            return self._fail(op, exc)
        groups = self._analytics.clusters(graph)
        items = [{"size": len(g), "node_ids": g} for g in groups]
        return ServiceResult(ok=True, op=op, data={"count": len(items), "items": items})

    def degree(self, graph_id: str, node_id: str) -> ServiceResult:
        op = "degree"
        try:
            graph = self._load(graph_id, lazy=True)
            result = self._analytics.node_degree(graph, node_id)
        except DomainError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "node_id": node_id,
                "in_degree": result.in_degree,
                "out_degree": result.out_degree,
                "total": result.in_degree + result.out_degree,
            },
        )

    def neighbors(self, graph_id: str, node_id: str, *, depth: int = 1) -> ServiceResult:
        """Nodes reachable within *depth* hops along edges; bidirectional edges run both ways."""
        op = "neighbors"
        try:
            graph = self._load(graph_id, lazy=True)
            found = self._analytics.connected_nodes(graph, node_id, depth)
        except DomainError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"node_id": node_id, "depth": depth, "count": len(found), "items": found},
        )

    def orphans(self, graph_id: str) -> ServiceResult:
        op = "orphans"
        try:
            graph = self._load(graph_id, lazy=True)
        except DomainError as exc:
            return self._fail(op, exc)
        found = self._analytics.orphaned_nodes(graph)
        return ServiceResult(ok=True, op=op, data={"count": len(found), "items": found})

    def centrality(self, graph_id: str, *, top: int = 20) -> ServiceResult:
        op = "centrality"
        try:
            graph = self._load(graph_id, lazy=True)
        except DomainError as exc:
            return self._fail(op, exc)
        scores = self._analytics.centrality(graph)
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        if top > 0:
            ranked = ranked[:top]
        items = [{"node_id": node_id, "score": round(score, 4)} for node_id, score in ranked]
        return ServiceResult(ok=True, op=op, data={"count": len(items), "items": items})

    def stats(self, graph_id: str) -> ServiceResult:
        op = "stats"
        try:
            graph = self._load(graph_id, lazy=True)
        except DomainError as exc:
            return self._fail(op, exc)
        data = statistics_dict(graph.statistics())
        data["max_depth"] = GraphView(graph).max_depth()
        return ServiceResult(ok=True, op=op, data=data, meta={"version": graph.version})

    def validate(self, graph_id: str) -> ServiceResult:
        """Run the aggregate invariants and the full validation pass."""
        op = "validate"
        try:
            graph = self._load(graph_id)
            graph.validate()
            self._validator.validate_graph(graph)
        except DomainError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": graph.id,
                "valid": True,
                "node_count": graph.node_count,
                "edge_count": graph.edge_count,
            },
        )

    # ------------------------------------------------------------------
    # Relationships and discovery
    # ------------------------------------------------------------------

    def suggest(self, graph_id: str, node_id: str, *, limit: int = 10) -> ServiceResult:
        """Unconnected nodes ranked by the four-part relationship score."""
        op = "suggest"
        try:
            graph = self._load(graph_id)
            suggestions = self._relationships.suggest_connections(graph, node_id, limit)
        except DomainError as exc:
            return self._fail(op, exc)
        items = [s.model_dump(mode="json") for s in suggestions]
        return ServiceResult(
            ok=True, op=op, data={"node_id": node_id, "count": len(items), "items": items}
        )

    def discover(
        self,
        graph_id: str,
        node_id: str,
        *,
        max_edges: int = 0,
        min_similarity: float = 0.0,
    ) -> ServiceResult:
        """Ranked, capped edge candidates from keyword/tag similarity."""
        op = "discover"
        try:
            graph = self._load(graph_id)
            node = graph.get_node(node_id)
        except DomainError as exc:
            return self._fail(op, exc)
        candidates = self._discovery.discover_potential_edges(node, graph)
        ranked = self._discovery.rank_edges(candidates)
        kept = self._discovery.filter_edges(ranked, max_edges, min_similarity)
        items = [c.model_dump(mode="json") for c in kept]
        return ServiceResult(
            ok=True, op=op, data={"node_id": node_id, "count": len(items), "items": items}
        )

    def similarity(self, graph_id: str, first_id: str, second_id: str) -> ServiceResult:
        """Both similarity measures for one pair of nodes."""
        op = "similarity"
        try:
            graph = self._load(graph_id, lazy=True)
            first = graph.get_node(first_id)
            second = graph.get_node(second_id)
        except DomainError as exc:
            return self._fail(op, exc)
        content = self._calculator.calculate(first, second)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "first_id": first_id,
                "second_id": second_id,
                "relationship": round(self._relationships.calculate_similarity(first, second), 4),
                "content": round(content, 4),
                "suggested_edge_type": str(self._discovery.classify_edge_type(content)),
            },
        )
