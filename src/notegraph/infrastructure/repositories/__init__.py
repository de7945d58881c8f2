"""Aggregate repositories backed by SQLAlchemy Core."""

from notegraph.infrastructure.repositories.graph import (
    GraphSummary,
    SqlEdgeLoader,
    SqlGraphRepository,
    SqlNodeLoader,
    StaleGraphError,
)

__all__ = [
    "GraphSummary",
    "SqlEdgeLoader",
    "SqlGraphRepository",
    "SqlNodeLoader",
    "StaleGraphError",
]
