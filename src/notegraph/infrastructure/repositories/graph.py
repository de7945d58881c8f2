"""SqlGraphRepository — persist and hydrate Graph aggregates in SQLite.

Hydration goes through the aggregate's trusted ``load_*`` path, so stored
graphs come back without events or version bumps. Saves are optimistic:
the ``graphs`` row is updated only if its stored version still equals the
version the caller loaded, otherwise :class:`StaleGraphError` is raised.

Eager graphs are saved by rewriting their node and edge rows. Lazy graphs
only hold identifiers, so saving one writes the graph row and prunes rows
for nodes and edges that are no longer part of the graph.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from notegraph.domain.content import NodeContent, Position
from notegraph.domain.edge import Edge
from notegraph.domain.errors import ConflictError, InternalError, NotFoundError
from notegraph.domain.graph import Graph, GraphMetadata, ViewSettings
from notegraph.domain.ids import parse_edge_key
from notegraph.domain.node import Node
from notegraph.domain.rules import DomainConfig
from notegraph.infrastructure.database.schema import edges, graphs, nodes

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class StaleGraphError(ConflictError):
    """The stored graph version moved on since the caller loaded it."""


class GraphSummary(BaseModel):
    """Row-level view of a graph for listings; no nodes or edges."""

    model_config = {"frozen": True}

    id: str
    name: str
    description: str
    node_count: int
    edge_count: int
    is_public: bool
    version: int
    updated_at: datetime


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str, sort_keys=True)


def _node_from_row(row: Row[Any]) -> Node:
    return Node(
        id=row.id,
        user_id=row.user_id,
        content=NodeContent(title=row.title, body=row.body, format=row.format),
        position=Position(x=row.x, y=row.y, z=row.z),
        tags=json.loads(row.tags or "[]"),
        metadata=json.loads(row.metadata or "{}"),
        status=row.status,
        version=row.version,
        graph_id=row.graph_id,
        created_at=datetime.fromisoformat(row.created_at),
        updated_at=datetime.fromisoformat(row.updated_at),
    )


def _node_values(graph_id: str, seq: int, node: Node) -> dict[str, Any]:
    return {
        "id": node.id,
        "graph_id": graph_id,
        "user_id": node.user_id,
        "seq": seq,
        "title": node.content.title,
        "body": node.content.body,
        "format": str(node.content.format),
        "x": node.position.x,
        "y": node.position.y,
        "z": node.position.z,
        "tags": _dumps(node.tags),
        "metadata": _dumps(node.metadata),
        "status": str(node.status),
        "version": node.version,
        "created_at": node.created_at.isoformat(),
        "updated_at": node.updated_at.isoformat(),
    }


def _edge_from_row(row: Row[Any]) -> Edge:
    return Edge(
        source_id=row.source_id,
        target_id=row.target_id,
        edge_type=row.edge_type,
        weight=row.weight,
        bidirectional=bool(row.bidirectional),
        metadata=json.loads(row.metadata or "{}"),
        id=row.id,
        created_at=datetime.fromisoformat(row.created_at),
    )


def _edge_values(graph_id: str, seq: int, edge: Edge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "graph_id": graph_id,
        "edge_key": edge.key,
        "seq": seq,
        "source_id": edge.source_id,
        "target_id": edge.target_id,
        "edge_type": str(edge.edge_type),
        "weight": edge.weight,
        "bidirectional": int(edge.bidirectional),
        "metadata": _dumps(edge.metadata),
        "created_at": edge.created_at.isoformat(),
    }


def _graph_values(graph: Graph) -> dict[str, Any]:
    meta = graph.metadata
    return {
        "user_id": graph.user_id,
        "name": graph.name,
        "description": graph.description,
        "is_public": int(meta.is_public),
        "tags": _dumps(meta.tags),
        "view_settings": meta.view_settings.model_dump_json(),
        "max_depth": meta.max_depth,
        "node_count": graph.node_count,
        "edge_count": graph.edge_count,
        "version": graph.version,
        "created_at": graph.created_at.isoformat(),
        "updated_at": graph.updated_at.isoformat(),
    }


def _metadata_from_row(row: Row[Any]) -> GraphMetadata:
    view = ViewSettings.model_validate_json(row.view_settings) if row.view_settings else None
    return GraphMetadata(
        max_depth=row.max_depth,
        is_public=bool(row.is_public),
        tags=json.loads(row.tags or "[]"),
        view_settings=view or ViewSettings(),
    )


# ---------------------------------------------------------------------------
# Loaders: lazy-mode collaborators
# ---------------------------------------------------------------------------


class SqlNodeLoader:
    """Resolve nodes of one graph by ID."""

    def __init__(self, engine: Engine, graph_id: str) -> None:
        self._engine = engine
        self._graph_id = graph_id

    def load_node(self, node_id: str) -> Node:
        return self.load_nodes([node_id])[0]

    def load_nodes(self, node_ids: Sequence[str]) -> list[Node]:
        """Nodes in the order requested; any missing ID is NotFound."""
        stmt = select(nodes).where(nodes.c.graph_id == self._graph_id, nodes.c.id.in_(node_ids))
        try:
            with self._engine.connect() as conn:
                found = {row.id: _node_from_row(row) for row in conn.execute(stmt)}
        except SQLAlchemyError as exc:
            raise InternalError(f"failed to load nodes: {exc}") from exc
        missing = [i for i in node_ids if i not in found]
        if missing:
            raise NotFoundError(f"Node '{missing[0]}' not found", detail={"missing": missing})
        return [found[i] for i in node_ids]


class SqlEdgeLoader:
    """Resolve edges of one graph by canonical key or endpoint."""

    def __init__(self, engine: Engine, graph_id: str) -> None:
        self._engine = engine
        self._graph_id = graph_id

    def load_edge(self, edge_key: str) -> Edge:
        return self.load_edges([edge_key])[0]

    def load_edges(self, edge_keys: Sequence[str]) -> list[Edge]:
        for key in edge_keys:
            parse_edge_key(key)
        stmt = select(edges).where(
            edges.c.graph_id == self._graph_id, edges.c.edge_key.in_(edge_keys)
        )
        found = {row.edge_key: _edge_from_row(row) for row in self._fetch(stmt)}
        missing = [k for k in edge_keys if k not in found]
        if missing:
            raise NotFoundError(f"Edge '{missing[0]}' not found", detail={"missing": missing})
        return [found[k] for k in edge_keys]

    def load_edges_by_node_id(self, node_id: str) -> list[Edge]:
        """Every edge touching *node_id*, in insertion order."""
        stmt = (
            select(edges)
            .where(
                edges.c.graph_id == self._graph_id,
                (edges.c.source_id == node_id) | (edges.c.target_id == node_id),
            )
            .order_by(edges.c.seq)
        )
        return [_edge_from_row(row) for row in self._fetch(stmt)]

    def _fetch(self, stmt: Any) -> list[Row[Any]]:
        try:
            with self._engine.connect() as conn:
                return list(conn.execute(stmt))
        except SQLAlchemyError as exc:
            raise InternalError(f"failed to load edges: {exc}") from exc


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SqlGraphRepository:
    """Graph aggregate persistence over SQLAlchemy Core."""

    def __init__(self, engine: Engine, config: DomainConfig | None = None) -> None:
        self._engine = engine
        self._config = config or DomainConfig()

    def add(self, graph: Graph) -> None:
        """Insert a new graph with its current nodes and edges."""
        with self._engine.begin() as conn:
            exists = conn.execute(select(graphs.c.id).where(graphs.c.id == graph.id)).first()
            if exists is not None:
                raise ConflictError(f"Graph '{graph.id}' already exists")
            conn.execute(insert(graphs).values(id=graph.id, **_graph_values(graph)))
            if not graph.is_lazy:
                self._write_contents(conn, graph)
        logger.debug("Added graph %s (version %d)", graph.id, graph.version)

    def get(self, graph_id: str) -> Graph:
        """Fully hydrated (eager) graph."""
        with self._engine.connect() as conn:
            row = self._graph_row(conn, graph_id)
            graph = Graph.reconstruct(
                row.id,
                row.user_id,
                row.name,
                row.description,
                metadata=_metadata_from_row(row),
                version=row.version,
                created_at=datetime.fromisoformat(row.created_at),
                updated_at=datetime.fromisoformat(row.updated_at),
                config=self._config,
            )
            loaded = [
                _node_from_row(r)
                for r in conn.execute(
                    select(nodes).where(nodes.c.graph_id == graph_id).order_by(nodes.c.seq)
                )
            ]
            edge_rows = list(
                conn.execute(
                    select(edges).where(edges.c.graph_id == graph_id).order_by(edges.c.seq)
                )
            )

        stamps = {node.id: node.updated_at for node in loaded}
        for node in loaded:
            graph.load_node(node)
        for edge_row in edge_rows:
            graph.load_edge(_edge_from_row(edge_row))
        # Rebuilding adjacency touches updated_at; hydration must not.
        for node in loaded:
            node.updated_at = stamps[node.id]
        logger.debug(
            "Loaded graph %s: %d nodes, %d edges", graph_id, graph.node_count, graph.edge_count
        )
        return graph

    def get_lazy(self, graph_id: str) -> Graph:
        """Identifier-only graph wired to SQL loaders."""
        with self._engine.connect() as conn:
            row = self._graph_row(conn, graph_id)
            graph = Graph.reconstruct_lazy(
                row.id,
                row.user_id,
                row.name,
                row.description,
                metadata=_metadata_from_row(row),
                version=row.version,
                created_at=datetime.fromisoformat(row.created_at),
                updated_at=datetime.fromisoformat(row.updated_at),
                config=self._config,
            )
            node_ids = conn.execute(
                select(nodes.c.id).where(nodes.c.graph_id == graph_id).order_by(nodes.c.seq)
            ).scalars()
            for node_id in node_ids:
                graph.load_node_id(node_id)
            for edge_row in conn.execute(
                select(edges).where(edges.c.graph_id == graph_id).order_by(edges.c.seq)
            ):
                graph.load_edge(_edge_from_row(edge_row))

        graph.set_loaders(
            SqlNodeLoader(self._engine, graph_id), SqlEdgeLoader(self._engine, graph_id)
        )
        logger.debug("Loaded lazy graph %s: %d node ids", graph_id, graph.node_count)
        return graph

    def save(self, graph: Graph, expected_version: int) -> None:
        """Persist *graph* if the stored version still equals *expected_version*."""
        with self._engine.begin() as conn:
            result = conn.execute(
                update(graphs)
                .where(graphs.c.id == graph.id, graphs.c.version == expected_version)
                .values(**_graph_values(graph))
            )
            if result.rowcount == 0:
                current = self._graph_row(conn, graph.id).version
                raise StaleGraphError(
                    f"Graph '{graph.id}' was modified concurrently",
                    detail={"expected_version": expected_version, "actual_version": current},
                )
            if graph.is_lazy:
                self._prune(conn, graph)
            else:
                conn.execute(delete(edges).where(edges.c.graph_id == graph.id))
                conn.execute(delete(nodes).where(nodes.c.graph_id == graph.id))
                self._write_contents(conn, graph)
        logger.debug(
            "Saved graph %s: version %d -> %d", graph.id, expected_version, graph.version
        )

    def list_for_user(self, user_id: str) -> list[GraphSummary]:
        stmt = select(graphs).where(graphs.c.user_id == user_id).order_by(graphs.c.created_at)
        with self._engine.connect() as conn:
            return [
                GraphSummary(
                    id=row.id,
                    name=row.name,
                    description=row.description,
                    node_count=row.node_count,
                    edge_count=row.edge_count,
                    is_public=bool(row.is_public),
                    version=row.version,
                    updated_at=datetime.fromisoformat(row.updated_at),
                )
                for row in conn.execute(stmt)
            ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _graph_row(conn: Connection, graph_id: str) -> Row[Any]:
        row = conn.execute(select(graphs).where(graphs.c.id == graph_id)).first()
        if row is None:
            raise NotFoundError(f"Graph '{graph_id}' not found")
        return row

    @staticmethod
    def _write_contents(conn: Connection, graph: Graph) -> None:
        node_rows = [_node_values(graph.id, i, n) for i, n in enumerate(graph.nodes())]
        edge_rows = [_edge_values(graph.id, i, e) for i, e in enumerate(graph.edges())]
        if node_rows:
            conn.execute(insert(nodes), node_rows)
        if edge_rows:
            conn.execute(insert(edges), edge_rows)

    @staticmethod
    def _prune(conn: Connection, graph: Graph) -> None:
        keep_edges = set(graph.edge_keys())
        keep_nodes = set(graph.node_ids())
        stored_edges = set(
            conn.execute(select(edges.c.edge_key).where(edges.c.graph_id == graph.id)).scalars()
        )
        stored_nodes = set(
            conn.execute(select(nodes.c.id).where(nodes.c.graph_id == graph.id)).scalars()
        )
        unsaved = (keep_nodes - stored_nodes) | (keep_edges - stored_edges)
        if unsaved:
            raise InternalError(
                "lazy graph references rows that were never stored",
                detail={"unsaved": sorted(unsaved)},
            )
        gone_edges = stored_edges - keep_edges
        gone_nodes = stored_nodes - keep_nodes
        if gone_edges:
            conn.execute(
                delete(edges).where(edges.c.graph_id == graph.id, edges.c.edge_key.in_(gone_edges))
            )
        if gone_nodes:
            conn.execute(delete(nodes).where(nodes.c.id.in_(gone_nodes)))
