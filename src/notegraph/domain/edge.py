"""Edge value type — a typed, weighted relationship between two nodes.

The dataclass accepts any values; range and type checks live in the edge
specifications and the validation service, so stored data that violates
them can still be loaded and reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from notegraph.domain.events import utcnow
from notegraph.domain.ids import make_edge_key, new_id
from notegraph.domain.types import EdgeType

DEFAULT_EDGE_WEIGHT = 1.0


@dataclass
class Edge:
    """Directed edge ``source -> target``; traversable both ways if bidirectional."""

    source_id: str
    target_id: str
    edge_type: str = EdgeType.NORMAL
    weight: float = DEFAULT_EDGE_WEIGHT
    bidirectional: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> str:
        """Canonical ``"{source}->{target}"`` storage key."""
        return make_edge_key(self.source_id, self.target_id)

    @property
    def is_self_loop(self) -> bool:
        return self.source_id == self.target_id

    def involves(self, node_id: str) -> bool:
        return node_id in (self.source_id, self.target_id)

    def link(self) -> tuple[str, str, bool]:
        """The ``(source, target, bidirectional)`` triple used by traversal."""
        return self.source_id, self.target_id, self.bidirectional
