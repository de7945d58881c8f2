"""Graph aggregate — the consistency boundary for one knowledge graph.

A single aggregate class serves both access patterns:

- **Eager** storage holds full :class:`Node` and :class:`Edge` objects.
- **Lazy** storage holds only node IDs and edge keys (plus each edge's
  bidirectional flag, which traversal needs). Full objects are resolved on
  demand through injected :class:`NodeLoader` / :class:`EdgeLoader`
  collaborators, whose errors propagate unchanged.

Every command validates first and records its effects in a
:class:`_ChangeSet`; the change set is applied only once every check has
passed, so a failing command leaves the aggregate untouched. Applying a
change set updates the denormalized counters, bumps ``version``, refreshes
``updated_at``, and appends domain events.

INVARIANTS (checked by :meth:`Graph.validate`):
- ``metadata.node_count`` / ``metadata.edge_count`` match the stored sets.
- Every edge endpoint exists in the graph; no edge is a self-loop.
- A bidirectional edge owns its node pair: no edge runs the other way.
- Node, edge, and per-node fan-out counts stay within the configured quotas.

The aggregate is not thread-safe. Use one instance per unit of work:
load, mutate, validate, save with a version check, discard.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from pydantic import BaseModel, Field

from notegraph.domain import traversal
from notegraph.domain.edge import DEFAULT_EDGE_WEIGHT, Edge
from notegraph.domain.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from notegraph.domain.events import (
    DomainEvent,
    GraphCreated,
    GraphRenamed,
    GraphVisibilityChanged,
    NodeAddedToGraph,
    NodeRemovedFromGraph,
    NodesConnected,
    utcnow,
)
from notegraph.domain.ids import make_edge_key, new_id
from notegraph.domain.node import Node
from notegraph.domain.rules import DomainConfig
from notegraph.domain.traversal import Link
from notegraph.domain.types import EdgeType, LayoutType

MAX_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Loader collaborators (lazy mode)
# ---------------------------------------------------------------------------


class NodeLoader(Protocol):
    """Resolves full nodes by ID. Raises NotFoundError / InternalError."""

    def load_node(self, node_id: str) -> Node: ...

    def load_nodes(self, node_ids: Sequence[str]) -> list[Node]: ...


class EdgeLoader(Protocol):
    """Resolves full edges by canonical key or by touching node."""

    def load_edge(self, edge_key: str) -> Edge: ...

    def load_edges(self, edge_keys: Sequence[str]) -> list[Edge]: ...

    def load_edges_by_node_id(self, node_id: str) -> list[Edge]: ...


# ---------------------------------------------------------------------------
# Metadata value types
# ---------------------------------------------------------------------------


class ViewSettings(BaseModel):
    """Display preferences for graph viewers."""

    model_config = {"frozen": True}

    layout: LayoutType = LayoutType.FORCE_DIRECTED
    theme: str = "light"
    node_size: str = "medium"
    edge_style: str = "solid"
    show_labels: bool = True


@dataclass
class GraphMetadata:
    """Denormalized graph facts kept alongside the node/edge storage."""

    node_count: int = 0
    edge_count: int = 0
    max_depth: int = 0
    is_public: bool = False
    tags: list[str] = field(default_factory=list)
    view_settings: ViewSettings = field(default_factory=ViewSettings)


class GraphStatistics(BaseModel):
    """Point-in-time structural summary of a graph."""

    model_config = {"frozen": True}

    node_count: int
    edge_count: int
    orphaned_node_count: int
    average_connections: float
    max_connections: int
    cluster_count: int
    density: float
    last_analyzed_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Storage strategies
# ---------------------------------------------------------------------------


class _Storage:
    """Shared link-level queries over either storage form."""

    lazy: bool = False

    def node_ids(self) -> list[str]:
        raise NotImplementedError

    def has_node(self, node_id: str) -> bool:
        raise NotImplementedError

    def links_by_key(self) -> dict[str, Link]:
        raise NotImplementedError

    def links(self) -> list[Link]:
        return list(self.links_by_key().values())

    def has_edge(self, key: str) -> bool:
        return key in self.links_by_key()

    def keys_touching(self, node_id: str) -> list[str]:
        return [
            key
            for key, (source, target, _) in self.links_by_key().items()
            if node_id in (source, target)
        ]

    def outgoing_count(self, node_id: str) -> int:
        return sum(1 for source, _, _ in self.links() if source == node_id)


class EagerStorage(_Storage):
    """Full node and edge objects, insertion-ordered."""

    lazy = False

    def __init__(self) -> None:
        self.nodes: dict[str, Node] = {}
        self.edges: dict[str, Edge] = {}

    def node_ids(self) -> list[str]:
        return list(self.nodes)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def links_by_key(self) -> dict[str, Link]:
        return {key: edge.link() for key, edge in self.edges.items()}

    def has_edge(self, key: str) -> bool:
        return key in self.edges


class LazyStorage(_Storage):
    """Identifiers only: an ordered node-ID set and edge key -> link map."""

    lazy = True

    def __init__(self) -> None:
        self.ids: dict[str, None] = {}
        self.edge_links: dict[str, Link] = {}

    def node_ids(self) -> list[str]:
        return list(self.ids)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.ids

    def links_by_key(self) -> dict[str, Link]:
        return self.edge_links


# ---------------------------------------------------------------------------
# Staged changes
# ---------------------------------------------------------------------------


@dataclass
class _ChangeSet:
    """Effects of one command, applied atomically by :meth:`Graph._apply`."""

    add_nodes: list[tuple[str, Node | None]] = field(default_factory=list)
    remove_nodes: list[str] = field(default_factory=list)
    add_edges: list[tuple[str, Edge | None, Link]] = field(default_factory=list)
    remove_edges: list[str] = field(default_factory=list)
    node_effects: list[Callable[[], None]] = field(default_factory=list)
    events: list[DomainEvent] = field(default_factory=list)
    bump_version: bool = True


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


class Graph:
    """Aggregate root owning the nodes and edges of one knowledge graph."""

    def __init__(
        self,
        *,
        graph_id: str,
        user_id: str,
        name: str,
        description: str = "",
        config: DomainConfig | None = None,
        metadata: GraphMetadata | None = None,
        version: int = 1,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        lazy: bool = False,
    ) -> None:
        now = utcnow()
        self.id = graph_id
        self.user_id = user_id
        self.name = name
        self.description = description
        self.config = config or DomainConfig()
        self.metadata = metadata or GraphMetadata()
        self.version = version
        self.created_at = created_at or now
        self.updated_at = updated_at or now
        self._storage: EagerStorage | LazyStorage = LazyStorage() if lazy else EagerStorage()
        self._events: list[DomainEvent] = []
        self._node_loader: NodeLoader | None = None
        self._edge_loader: EdgeLoader | None = None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        user_id: str,
        name: str = "",
        *,
        config: DomainConfig | None = None,
        description: str | None = None,
        graph_id: str | None = None,
        lazy: bool = False,
    ) -> Graph:
        """Create an empty graph (version 1) and record ``graph.created``."""
        if not user_id or not user_id.strip():
            raise ValidationError("user_id is required")
        cfg = config or DomainConfig()
        name = name.strip() or cfg.default_graph_name
        if len(name) > cfg.max_graph_name_length:
            raise ValidationError(
                f"graph name exceeds maximum length of {cfg.max_graph_name_length}"
            )
        graph = cls(
            graph_id=graph_id or new_id(),
            user_id=user_id,
            name=name,
            description=description if description is not None else f"Knowledge graph for {name}",
            config=cfg,
            lazy=lazy,
        )
        graph._events.append(
            GraphCreated(
                aggregate_id=graph.id,
                timestamp=graph.created_at,
                graph_id=graph.id,
                user_id=user_id,
                name=name,
            )
        )
        return graph

    @classmethod
    def create_lazy(
        cls,
        user_id: str,
        name: str = "",
        *,
        config: DomainConfig | None = None,
        graph_id: str | None = None,
    ) -> Graph:
        return cls.create(user_id, name, config=config, graph_id=graph_id, lazy=True)

    @classmethod
    def reconstruct(
        cls,
        graph_id: str,
        user_id: str,
        name: str,
        description: str = "",
        *,
        metadata: GraphMetadata | None = None,
        version: int = 1,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        config: DomainConfig | None = None,
        lazy: bool = False,
    ) -> Graph:
        """Rebuild a graph shell from storage; no events are recorded.

        Counters start at zero and are recomputed as nodes and edges are
        hydrated through :meth:`load_node` / :meth:`load_edge`.
        """
        if not graph_id or not user_id or not name:
            raise ValidationError("required fields missing for graph reconstruction")
        meta = metadata or GraphMetadata()
        meta.node_count = 0
        meta.edge_count = 0
        return cls(
            graph_id=graph_id,
            user_id=user_id,
            name=name,
            description=description,
            config=config,
            metadata=meta,
            version=version,
            created_at=created_at,
            updated_at=updated_at,
            lazy=lazy,
        )

    @classmethod
    def reconstruct_lazy(
        cls,
        graph_id: str,
        user_id: str,
        name: str,
        description: str = "",
        *,
        metadata: GraphMetadata | None = None,
        version: int = 1,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        config: DomainConfig | None = None,
    ) -> Graph:
        return cls.reconstruct(
            graph_id,
            user_id,
            name,
            description,
            metadata=metadata,
            version=version,
            created_at=created_at,
            updated_at=updated_at,
            config=config,
            lazy=True,
        )

    def set_loaders(self, node_loader: NodeLoader, edge_loader: EdgeLoader) -> None:
        """Inject the collaborators used to resolve full objects lazily."""
        self._node_loader = node_loader
        self._edge_loader = edge_loader

    # ------------------------------------------------------------------
    # Simple accessors
    # ------------------------------------------------------------------

    @property
    def is_lazy(self) -> bool:
        return self._storage.lazy

    @property
    def node_count(self) -> int:
        return self.metadata.node_count

    @property
    def edge_count(self) -> int:
        return self.metadata.edge_count

    @property
    def is_default(self) -> bool:
        return self.name == self.config.default_graph_name

    def has_node(self, node_id: str) -> bool:
        return self._storage.has_node(node_id)

    def has_edge(self, source_id: str, target_id: str) -> bool:
        return self._storage.has_edge(make_edge_key(source_id, target_id))

    def covers_pair(self, source_id: str, target_id: str, *, bidirectional: bool = False) -> bool:
        """Whether a stored ``target -> source`` edge already covers this pair.

        A bidirectional edge owns its unordered pair, so the reverse edge
        collides when either the stored edge or the new one is bidirectional.
        """
        reverse = self._storage.links_by_key().get(make_edge_key(target_id, source_id))
        return reverse is not None and (bidirectional or reverse[2])

    def node_ids(self) -> list[str]:
        return self._storage.node_ids()

    def edge_keys(self) -> list[str]:
        return list(self._storage.links_by_key())

    def links(self) -> list[Link]:
        """``(source, target, bidirectional)`` for every edge, in insertion order."""
        return self._storage.links()

    def nodes(self) -> list[Node]:
        return list(self._eager("nodes()").nodes.values())

    def edges(self) -> list[Edge]:
        return list(self._eager("edges()").edges.values())

    def _eager(self, op: str) -> EagerStorage:
        if isinstance(self._storage, LazyStorage):
            raise ValidationError(f"{op} requires an eagerly loaded graph")
        return self._storage

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_node(self, node: Node) -> None:
        """Add *node*; fails Conflict on duplicate ID, QuotaExceeded at the limit."""
        self._check_node_insert(node.id)

        change = _ChangeSet()
        change.add_nodes.append((node.id, None if self.is_lazy else node))
        if self.is_lazy:
            change.events.extend(node.uncommitted_events())
            change.node_effects.append(node.mark_events_committed)
        change.node_effects.append(lambda: setattr(node, "graph_id", self.id))
        change.events.append(self._node_added(node.id))
        self._apply(change)

    def register_node_id(self, node_id: str) -> None:
        """Lazy-mode analogue of :meth:`add_node` taking only the ID."""
        if not self.is_lazy:
            raise ValidationError("register_node_id requires a lazy graph; use add_node")
        self._check_node_insert(node_id)
        change = _ChangeSet(add_nodes=[(node_id, None)], events=[self._node_added(node_id)])
        self._apply(change)

    def connect_nodes(
        self,
        source_id: str,
        target_id: str,
        edge_type: str = EdgeType.NORMAL,
        *,
        weight: float = DEFAULT_EDGE_WEIGHT,
        bidirectional: bool = False,
    ) -> Edge:
        """Create the edge ``source -> target`` and record ``graph.nodes_connected``."""
        if not self.has_node(source_id) or not self.has_node(target_id):
            raise ValidationError("both nodes must exist in graph")
        if source_id == target_id:
            raise ValidationError("cannot connect node to itself")
        if edge_type not in set(EdgeType):
            raise ValidationError(f"invalid edge type: {edge_type!r}")
        if not 0.0 <= weight <= 1.0:
            raise ValidationError("edge weight must be between 0 and 1")

        key = make_edge_key(source_id, target_id)
        if self._storage.has_edge(key):
            raise ConflictError(f"edge {key} already exists")
        if self.covers_pair(source_id, target_id, bidirectional=bidirectional):
            raise ConflictError(f"bidirectional edge already connects {source_id} and {target_id}")
        self._check_edge_quota()

        edge = Edge(
            source_id=source_id,
            target_id=target_id,
            edge_type=EdgeType(edge_type),
            weight=weight,
            bidirectional=bidirectional,
        )
        change = _ChangeSet()
        self._stage_edge(change, edge)
        change.events.append(
            NodesConnected(
                aggregate_id=self.id,
                graph_id=self.id,
                source_id=source_id,
                target_id=target_id,
                edge_type=str(edge.edge_type),
            )
        )
        self._apply(change)
        return edge

    def register_edge_key(
        self, source_id: str, target_id: str, *, bidirectional: bool = False
    ) -> None:
        """Lazy-mode analogue of :meth:`connect_nodes`; records no event."""
        if not self.is_lazy:
            raise ValidationError("register_edge_key requires a lazy graph; use connect_nodes")
        if not self.has_node(source_id) or not self.has_node(target_id):
            raise ValidationError("both nodes must exist in graph")
        if source_id == target_id:
            raise ValidationError("cannot connect node to itself")
        key = make_edge_key(source_id, target_id)
        if self._storage.has_edge(key):
            raise ConflictError(f"edge {key} already exists")
        if self.covers_pair(source_id, target_id, bidirectional=bidirectional):
            raise ConflictError(f"bidirectional edge already connects {source_id} and {target_id}")
        self._check_edge_quota()
        self._check_fan_out(source_id)
        link = (source_id, target_id, bidirectional)
        self._apply(_ChangeSet(add_edges=[(key, None, link)]))

    def remove_node(self, node_id: str) -> None:
        """Archive and remove *node_id*, cascading to every edge touching it."""
        if not self.has_node(node_id):
            raise NotFoundError(f"Node '{node_id}' not found in graph")

        change = _ChangeSet()
        touching = self._storage.keys_touching(node_id)
        change.remove_edges.extend(touching)
        change.remove_nodes.append(node_id)

        if isinstance(self._storage, EagerStorage):
            node = self._storage.nodes[node_id]
            if node.is_archived:
                raise ValidationError(f"Node '{node_id}' is already archived")
            change.node_effects.append(node.archive)
            # The node leaves the aggregate, so its buffered events move to ours.
            change.node_effects.append(lambda: self._adopt_events(node))
            for key in touching:
                edge = self._storage.edges[key]
                if edge.target_id == node_id:
                    source = self._storage.nodes[edge.source_id]
                    change.node_effects.append(_forget(source, node_id))

        change.events.append(
            NodeRemovedFromGraph(aggregate_id=self.id, graph_id=self.id, node_id=node_id)
        )
        self._apply(change)

    # ------------------------------------------------------------------
    # Trusted hydration (no duplicate checks, no events, no version bump)
    # ------------------------------------------------------------------

    def load_node(self, node: Node) -> None:
        """Hydrate a stored node. Only the node quota is enforced."""
        self._check_node_quota()
        entry = None if self.is_lazy else node
        self._apply(_ChangeSet(add_nodes=[(node.id, entry)], bump_version=False))

    def load_node_id(self, node_id: str) -> None:
        self._check_node_quota()
        self._apply(_ChangeSet(add_nodes=[(node_id, None)], bump_version=False))

    def load_edge(self, edge: Edge) -> None:
        """Hydrate a stored edge and record it on the source node's adjacency.

        Both endpoints must already be loaded. Re-loading an existing key is
        a no-op. If the source node rejects the connection, nothing changes.
        """
        if not self.has_node(edge.source_id):
            raise ValidationError(f"source node {edge.source_id} not found for edge {edge.id}")
        if not self.has_node(edge.target_id):
            raise ValidationError(f"target node {edge.target_id} not found for edge {edge.id}")
        if self._storage.has_edge(edge.key):
            return
        self._check_edge_quota()
        change = _ChangeSet(bump_version=False)
        self._stage_edge(change, edge)
        self._apply(change)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> Node:
        """Return the node, resolving it through the loader in lazy mode."""
        if not self.has_node(node_id):
            raise NotFoundError(f"Node '{node_id}' not found in graph")
        if isinstance(self._storage, EagerStorage):
            return self._storage.nodes[node_id]
        return self._require_node_loader().load_node(node_id)

    def get_edge(self, source_id: str, target_id: str) -> Edge:
        key = make_edge_key(source_id, target_id)
        if not self._storage.has_edge(key):
            raise NotFoundError(f"Edge '{key}' not found in graph")
        if isinstance(self._storage, EagerStorage):
            return self._storage.edges[key]
        return self._require_edge_loader().load_edge(key)

    def nodes_page(self, limit: int = MAX_PAGE_SIZE, offset: int = 0) -> tuple[list[Node], bool]:
        """Return up to *limit* nodes starting at *offset*, plus a has-more flag."""
        ids, has_more = _page(self.node_ids(), limit, offset)
        if isinstance(self._storage, EagerStorage):
            return [self._storage.nodes[i] for i in ids], has_more
        if not ids:
            return [], has_more
        return self._require_node_loader().load_nodes(ids), has_more

    def edges_page(self, limit: int = MAX_PAGE_SIZE, offset: int = 0) -> tuple[list[Edge], bool]:
        keys, has_more = _page(self.edge_keys(), limit, offset)
        if isinstance(self._storage, EagerStorage):
            return [self._storage.edges[k] for k in keys], has_more
        if not keys:
            return [], has_more
        return self._require_edge_loader().load_edges(keys), has_more

    def node_connectivity(self, node_id: str) -> int:
        """Number of edges touching *node_id* (either endpoint)."""
        return len(self._storage.keys_touching(node_id))

    def find_path(self, start_id: str, end_id: str) -> list[str]:
        """Shortest path by hop count; see :func:`traversal.shortest_path`."""
        if not self.has_node(start_id):
            raise NotFoundError(f"start node '{start_id}' not found")
        if not self.has_node(end_id):
            raise NotFoundError(f"end node '{end_id}' not found")
        path = traversal.shortest_path(traversal.build_adjacency(self.links()), start_id, end_id)
        if path is None:
            raise NotFoundError(f"no path between '{start_id}' and '{end_id}'")
        return path

    def clusters(self) -> list[list[str]]:
        return traversal.clusters(self.node_ids(), traversal.build_adjacency(self.links()))

    def statistics(self) -> GraphStatistics:
        node_ids = self.node_ids()
        links = self.links()
        degree = {node_id: 0 for node_id in node_ids}
        for source, target, _ in links:
            degree[source] = degree.get(source, 0) + 1
            degree[target] = degree.get(target, 0) + 1

        n = len(node_ids)
        possible = n * (n - 1)
        return GraphStatistics(
            node_count=n,
            edge_count=len(links),
            orphaned_node_count=sum(1 for node_id in node_ids if degree[node_id] == 0),
            average_connections=(sum(degree.values()) / n) if n else 0.0,
            max_connections=max(degree.values(), default=0),
            cluster_count=len(self.clusters()),
            density=(len(links) / possible) if possible else 0.0,
        )

    def validate(self) -> None:
        """Raise the first invariant violation found; return None when sound."""
        node_ids = set(self.node_ids())
        for source, target, _ in self.links():
            if source not in node_ids:
                raise ValidationError("edge references non-existent source node")
            if target not in node_ids:
                raise ValidationError("edge references non-existent target node")
            if source == target:
                raise ValidationError("edge is a self-loop")

        for key, (source, target, bidirectional) in self._storage.links_by_key().items():
            if self.covers_pair(source, target, bidirectional=bidirectional):
                raise ValidationError(f"edge {key} duplicates a bidirectional pair")

        if len(node_ids) != self.metadata.node_count:
            raise ValidationError("node count mismatch")
        if len(self._storage.links_by_key()) != self.metadata.edge_count:
            raise ValidationError("edge count mismatch")

        if self.metadata.node_count > self.config.max_nodes_per_graph:
            raise QuotaExceededError(f"maximum nodes exceeded: {self.config.max_nodes_per_graph}")
        if self.metadata.edge_count > self.config.max_edges_per_graph:
            raise QuotaExceededError(f"maximum edges exceeded: {self.config.max_edges_per_graph}")
        limit = self.config.max_connections_per_node
        for node_id in node_ids:
            if self._storage.outgoing_count(node_id) > limit:
                raise QuotaExceededError(f"node '{node_id}' exceeds {limit} connections")

    # ------------------------------------------------------------------
    # Metadata commands
    # ------------------------------------------------------------------

    def rename(self, name: str) -> None:
        name = name.strip()
        if not name:
            raise ValidationError("name cannot be empty")
        if len(name) > self.config.max_graph_name_length:
            raise ValidationError(
                f"graph name exceeds maximum length of {self.config.max_graph_name_length}"
            )
        old_name = self.name
        event = GraphRenamed(
            aggregate_id=self.id, graph_id=self.id, old_name=old_name, new_name=name
        )
        self._apply(
            _ChangeSet(node_effects=[lambda: setattr(self, "name", name)], events=[event])
        )

    def update_description(self, description: str) -> None:
        self._apply(_ChangeSet(node_effects=[lambda: setattr(self, "description", description)]))

    def update_view_settings(self, settings: ViewSettings) -> None:
        self._apply(
            _ChangeSet(node_effects=[lambda: setattr(self.metadata, "view_settings", settings)])
        )

    def update_tags(self, tags: list[str]) -> None:
        cleaned = list(dict.fromkeys(t.strip() for t in tags if t.strip()))
        if len(cleaned) > self.config.max_graph_tags:
            raise ValidationError(f"too many tags (max {self.config.max_graph_tags})")
        self._apply(_ChangeSet(node_effects=[lambda: setattr(self.metadata, "tags", cleaned)]))

    def set_public(self, is_public: bool) -> None:
        event = GraphVisibilityChanged(aggregate_id=self.id, graph_id=self.id, is_public=is_public)
        self._apply(
            _ChangeSet(
                node_effects=[lambda: setattr(self.metadata, "is_public", is_public)],
                events=[event],
            )
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def uncommitted_events(self) -> list[DomainEvent]:
        """Events recorded by the aggregate followed by those of its nodes."""
        collected = list(self._events)
        if isinstance(self._storage, EagerStorage):
            for node in self._storage.nodes.values():
                collected.extend(node.uncommitted_events())
        return collected

    def mark_events_committed(self) -> None:
        self._events.clear()
        if isinstance(self._storage, EagerStorage):
            for node in self._storage.nodes.values():
                node.mark_events_committed()

    def _adopt_events(self, node: Node) -> None:
        self._events.extend(node.uncommitted_events())
        node.mark_events_committed()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_node_insert(self, node_id: str) -> None:
        if self.has_node(node_id):
            raise ConflictError(f"Node '{node_id}' already exists in graph")
        self._check_node_quota()

    def _check_node_quota(self) -> None:
        limit = self.config.max_nodes_per_graph
        if len(self._storage.node_ids()) >= limit:
            raise QuotaExceededError(f"maximum nodes reached: {limit}")

    def _check_edge_quota(self) -> None:
        limit = self.config.max_edges_per_graph
        if len(self._storage.links_by_key()) >= limit:
            raise QuotaExceededError(f"maximum edges reached: {limit}")

    def _check_fan_out(self, source_id: str) -> None:
        limit = self.config.max_connections_per_node
        if self._storage.outgoing_count(source_id) >= limit:
            raise QuotaExceededError(f"maximum connections reached: {limit}")

    def _stage_edge(self, change: _ChangeSet, edge: Edge) -> None:
        """Stage *edge* plus the source node's adjacency update."""
        if isinstance(self._storage, EagerStorage):
            source = self._storage.nodes[edge.source_id]
            limit = self.config.max_connections_per_node
            source.check_can_connect(edge.target_id, edge.edge_type, max_connections=limit)
            change.add_edges.append((edge.key, edge, edge.link()))
            change.node_effects.append(
                lambda: source.connect_to(edge.target_id, edge.edge_type, max_connections=limit)
            )
        else:
            self._check_fan_out(edge.source_id)
            change.add_edges.append((edge.key, None, edge.link()))

    def _node_added(self, node_id: str) -> NodeAddedToGraph:
        return NodeAddedToGraph(aggregate_id=self.id, graph_id=self.id, node_id=node_id)

    def _apply(self, change: _ChangeSet) -> None:
        storage = self._storage
        for effect in change.node_effects:
            effect()
        for key in change.remove_edges:
            if isinstance(storage, EagerStorage):
                storage.edges.pop(key, None)
            else:
                storage.edge_links.pop(key, None)
        for node_id in change.remove_nodes:
            if isinstance(storage, EagerStorage):
                storage.nodes.pop(node_id, None)
            else:
                storage.ids.pop(node_id, None)
        for node_id, node in change.add_nodes:
            if isinstance(storage, EagerStorage):
                assert node is not None
                storage.nodes[node_id] = node
            else:
                storage.ids[node_id] = None
        for key, edge, link in change.add_edges:
            if isinstance(storage, EagerStorage):
                assert edge is not None
                storage.edges[key] = edge
            else:
                storage.edge_links[key] = link

        self.metadata.node_count = len(storage.node_ids())
        self.metadata.edge_count = len(storage.links_by_key())
        if change.bump_version:
            self.version += 1
            self.updated_at = utcnow()
        self._events.extend(change.events)

    def _require_node_loader(self) -> NodeLoader:
        if self._node_loader is None:
            raise InternalError("node loader not configured")
        return self._node_loader

    def _require_edge_loader(self) -> EdgeLoader:
        if self._edge_loader is None:
            raise InternalError("edge loader not configured")
        return self._edge_loader


def _page[T](items: list[T], limit: int, offset: int) -> tuple[list[T], bool]:
    if limit <= 0 or limit > MAX_PAGE_SIZE:
        limit = MAX_PAGE_SIZE
    offset = max(offset, 0)
    window = items[offset : offset + limit]
    return window, offset + limit < len(items)


def _forget(node: Node, target_id: str) -> Callable[[], None]:
    """Effect dropping *node*'s recorded connection to a removed target."""

    def effect() -> None:
        if node.has_connection_to(target_id):
            node.disconnect(target_id)

    return effect
