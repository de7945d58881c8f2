"""SQLAlchemy Core table definitions for the notegraph database.

``seq`` columns record insertion order so that a reloaded aggregate
iterates nodes and edges exactly as it did before it was saved. JSON-typed
data (tags, metadata, view settings, event payloads) is stored as text.
"""

from __future__ import annotations

from sqlalchemy import (
    REAL,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

graphs = Table(
    "graphs",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("description", Text, nullable=False, default="", server_default=""),
    Column("is_public", Integer, default=0, server_default="0"),
    Column("tags", Text),  # JSON array
    Column("view_settings", Text),  # JSON object
    Column("max_depth", Integer, default=0, server_default="0"),
    Column("node_count", Integer, default=0, server_default="0"),
    Column("edge_count", Integer, default=0, server_default="0"),
    Column("version", Integer, nullable=False, default=1, server_default="1"),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

nodes = Table(
    "nodes",
    metadata,
    Column("id", Text, primary_key=True),
    Column("graph_id", Text, ForeignKey("graphs.id"), nullable=False),
    Column("user_id", Text, nullable=False),
    Column("seq", Integer, nullable=False),
    Column("title", Text, nullable=False),
    Column("body", Text, nullable=False, default="", server_default=""),
    Column("format", Text, nullable=False),
    Column("x", REAL, default=0.0, server_default="0.0"),
    Column("y", REAL, default=0.0, server_default="0.0"),
    Column("z", REAL, default=0.0, server_default="0.0"),
    Column("tags", Text),  # JSON array
    Column("metadata", Text),  # JSON object
    Column("status", Text, nullable=False),
    Column("version", Integer, nullable=False, default=1, server_default="1"),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

edges = Table(
    "edges",
    metadata,
    Column("id", Text, primary_key=True),
    Column("graph_id", Text, ForeignKey("graphs.id"), nullable=False),
    Column("edge_key", Text, nullable=False),
    Column("seq", Integer, nullable=False),
    Column("source_id", Text, ForeignKey("nodes.id"), nullable=False),
    Column("target_id", Text, ForeignKey("nodes.id"), nullable=False),
    Column("edge_type", Text, nullable=False, default="normal", server_default="normal"),
    Column("weight", REAL, default=1.0, server_default="1.0"),
    Column("bidirectional", Integer, default=0, server_default="0"),
    Column("metadata", Text),  # JSON object
    Column("created_at", Text, nullable=False),
    UniqueConstraint("graph_id", "edge_key"),
)

event_outbox = Table(
    "event_outbox",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_type", Text, nullable=False),
    Column("aggregate_id", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_graphs_user", graphs.c.user_id)
Index("ix_nodes_graph", nodes.c.graph_id, nodes.c.seq)
Index("ix_edges_graph", edges.c.graph_id, edges.c.seq)
Index("ix_edges_source", edges.c.source_id)
Index("ix_edges_target", edges.c.target_id)
Index("ix_outbox_status", event_outbox.c.status)
