"""Domain events recorded by the graph aggregate and node entities.

Events are immutable facts appended to an aggregate's uncommitted buffer
and drained by the service layer after a successful save. Delivery is the
event bus's job; nothing here knows about transport.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, Field

_ENVELOPE_FIELDS = frozenset({"aggregate_id", "timestamp", "version"})


def utcnow() -> datetime:
    """Timezone-aware current time used for all domain timestamps."""
    return datetime.now(UTC)


class DomainEvent(BaseModel):
    """Envelope shared by every event: aggregate, type, time, schema version."""

    model_config = {"frozen": True}

    event_type: ClassVar[str] = "domain.event"

    aggregate_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    version: int = 1

    def payload(self) -> dict[str, Any]:
        """Event-specific fields, JSON-compatible."""
        return self.model_dump(mode="json", exclude=set(_ENVELOPE_FIELDS))

    def to_record(self) -> dict[str, Any]:
        """Flatten into the envelope + payload dict used by the outbox."""
        return {
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "payload": self.payload(),
        }


# --- Graph events ---


class GraphCreated(DomainEvent):
    event_type: ClassVar[str] = "graph.created"

    graph_id: str
    user_id: str
    name: str


class NodeAddedToGraph(DomainEvent):
    event_type: ClassVar[str] = "graph.node_added"

    graph_id: str
    node_id: str


class NodeRemovedFromGraph(DomainEvent):
    event_type: ClassVar[str] = "graph.node_removed"

    graph_id: str
    node_id: str


class NodesConnected(DomainEvent):
    event_type: ClassVar[str] = "graph.nodes_connected"

    graph_id: str
    source_id: str
    target_id: str
    edge_type: str


class GraphRenamed(DomainEvent):
    event_type: ClassVar[str] = "graph.name_updated"

    graph_id: str
    old_name: str
    new_name: str


class GraphVisibilityChanged(DomainEvent):
    event_type: ClassVar[str] = "graph.visibility_changed"

    graph_id: str
    is_public: bool


# --- Node events ---


class NodeCreated(DomainEvent):
    event_type: ClassVar[str] = "node.created"

    node_id: str
    user_id: str
    title: str


class NodePublished(DomainEvent):
    event_type: ClassVar[str] = "node.published"

    node_id: str


class NodeArchived(DomainEvent):
    event_type: ClassVar[str] = "node.archived"

    node_id: str
