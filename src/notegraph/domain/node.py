"""Node entity — a single note inside a knowledge graph.

The graph aggregate is the only caller that mutates a node's connections
(via :meth:`Node.connect_to`); everything else treats nodes by value.
Each node owns its own uncommitted-event buffer, which the aggregate drains
together with its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from notegraph.domain.content import NodeContent, Position
from notegraph.domain.errors import (
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from notegraph.domain.events import DomainEvent, NodeArchived, NodeCreated, NodePublished, utcnow
from notegraph.domain.ids import new_id
from notegraph.domain.lifecycle import is_valid_transition
from notegraph.domain.types import EdgeType, NodeStatus

DEFAULT_MAX_CONNECTIONS = 100
DEFAULT_MAX_TAGS = 20


@dataclass(frozen=True)
class EdgeReference:
    """Outgoing connection recorded on the source node."""

    target_id: str
    edge_type: str
    edge_id: str = field(default_factory=new_id)


@dataclass(eq=False)
class Node:
    """A note with content, tags, position, and outgoing connections."""

    id: str
    user_id: str
    content: NodeContent
    position: Position = field(default_factory=Position)
    tags: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    status: str = NodeStatus.DRAFT
    version: int = 1
    graph_id: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    connections: list[EdgeReference] = field(default_factory=list)
    _events: list[DomainEvent] = field(default_factory=list, repr=False)

    @classmethod
    def create(
        cls,
        user_id: str,
        content: NodeContent,
        position: Position | None = None,
        *,
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
        node_id: str | None = None,
        max_tags: int = DEFAULT_MAX_TAGS,
    ) -> Node:
        """Create a new draft node and record ``node.created``."""
        if not user_id:
            raise ValidationError("user_id is required")
        node = cls(
            id=node_id or new_id(),
            user_id=user_id,
            content=content,
            position=position or Position(),
            metadata=dict(metadata or {}),
        )
        for tag in tags or []:
            node.add_tag(tag, max_tags=max_tags)
        node._events.append(
            NodeCreated(
                aggregate_id=node.id,
                timestamp=node.created_at,
                node_id=node.id,
                user_id=user_id,
                title=content.title,
            )
        )
        return node

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def is_archived(self) -> bool:
        return self.status == NodeStatus.ARCHIVED

    @property
    def is_published(self) -> bool:
        return self.status == NodeStatus.PUBLISHED

    def publish(self) -> None:
        self._transition(NodeStatus.PUBLISHED)
        self._events.append(
            NodePublished(aggregate_id=self.id, timestamp=self.updated_at, node_id=self.id)
        )

    def archive(self) -> None:
        """Archive the node and drop all of its outgoing connections.

        Raises ValidationError if the node is already archived.
        """
        if self.is_archived:
            raise ValidationError(f"Node '{self.id}' is already archived")
        self._transition(NodeStatus.ARCHIVED)
        self.connections = []
        self._events.append(
            NodeArchived(aggregate_id=self.id, timestamp=self.updated_at, node_id=self.id)
        )

    def _transition(self, target: NodeStatus) -> None:
        if not is_valid_transition(self.status, target):
            raise ValidationError(f"Cannot transition node from '{self.status}' to '{target}'")
        self.status = target
        self._touch()

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def connect_to(
        self,
        target_id: str,
        edge_type: str = EdgeType.NORMAL,
        *,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
    ) -> EdgeReference:
        """Record an outgoing connection to *target_id*."""
        self.check_can_connect(target_id, edge_type, max_connections=max_connections)
        ref = EdgeReference(target_id=target_id, edge_type=str(edge_type))
        self.connections.append(ref)
        self.updated_at = utcnow()
        return ref

    def check_can_connect(
        self,
        target_id: str,
        edge_type: str = EdgeType.NORMAL,
        *,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
    ) -> None:
        """Raise if :meth:`connect_to` would fail; never mutates."""
        if target_id == self.id:
            raise ValidationError("cannot connect node to itself")
        for ref in self.connections:
            if ref.target_id == target_id and ref.edge_type == edge_type:
                raise ConflictError(f"Connection {self.id} -> {target_id} ({edge_type}) exists")
        if len(self.connections) >= max_connections:
            raise QuotaExceededError(f"maximum connections reached: {max_connections}")

    def disconnect(self, target_id: str) -> None:
        remaining = [ref for ref in self.connections if ref.target_id != target_id]
        if len(remaining) == len(self.connections):
            raise NotFoundError(f"No connection from '{self.id}' to '{target_id}'")
        self.connections = remaining
        self._touch()

    def has_connection_to(self, target_id: str) -> bool:
        return any(ref.target_id == target_id for ref in self.connections)

    # ------------------------------------------------------------------
    # Tags and metadata
    # ------------------------------------------------------------------

    def add_tag(self, tag: str, *, max_tags: int = DEFAULT_MAX_TAGS) -> None:
        tag = tag.strip()
        if not tag:
            raise ValidationError("tag cannot be empty")
        if self.has_tag(tag):
            return
        if len(self.tags) >= max_tags:
            raise QuotaExceededError(f"maximum tags reached: {max_tags}")
        self.tags.append(tag)
        self._touch()

    def remove_tag(self, tag: str) -> None:
        wanted = tag.strip().lower()
        remaining = [t for t in self.tags if t.lower() != wanted]
        if len(remaining) == len(self.tags):
            raise NotFoundError(f"Tag '{tag}' not found on node '{self.id}'")
        self.tags = remaining
        self._touch()

    def has_tag(self, tag: str) -> bool:
        wanted = tag.strip().lower()
        return any(t.lower() == wanted for t in self.tags)

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value
        self.updated_at = utcnow()

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def uncommitted_events(self) -> list[DomainEvent]:
        return list(self._events)

    def mark_events_committed(self) -> None:
        self._events.clear()

    def _touch(self) -> None:
        self.updated_at = utcnow()
        self.version += 1
