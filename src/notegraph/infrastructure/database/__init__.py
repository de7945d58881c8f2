"""SQLite database engine and schema via SQLAlchemy Core."""

from notegraph.infrastructure.database.engine import create_db_engine, init_database
from notegraph.infrastructure.database.schema import (
    edges,
    event_outbox,
    graphs,
    metadata,
    nodes,
)

__all__ = [
    "create_db_engine",
    "edges",
    "event_outbox",
    "graphs",
    "init_database",
    "metadata",
    "nodes",
]
