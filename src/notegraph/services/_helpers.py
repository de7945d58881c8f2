"""Shared service-layer helper functions.

Turn aggregate objects into the plain, JSON-compatible dicts carried in
``ServiceResult.data``.
"""

from __future__ import annotations

from typing import Any

from notegraph.domain.edge import Edge
from notegraph.domain.graph import Graph, GraphStatistics
from notegraph.domain.node import Node


def graph_summary(graph: Graph) -> dict[str, Any]:
    meta = graph.metadata
    return {
        "id": graph.id,
        "name": graph.name,
        "description": graph.description,
        "owner": graph.user_id,
        "node_count": graph.node_count,
        "edge_count": graph.edge_count,
        "is_public": meta.is_public,
        "tags": list(meta.tags),
        "layout": str(meta.view_settings.layout),
        "version": graph.version,
        "created_at": graph.created_at.isoformat(),
        "updated_at": graph.updated_at.isoformat(),
    }


def node_dict(node: Node) -> dict[str, Any]:
    pos = node.position
    return {
        "id": node.id,
        "title": node.content.title,
        "body": node.content.body,
        "format": str(node.content.format),
        "position": {"x": pos.x, "y": pos.y, "z": pos.z},
        "tags": list(node.tags),
        "metadata": dict(node.metadata),
        "status": str(node.status),
        "version": node.version,
        "created_at": node.created_at.isoformat(),
        "updated_at": node.updated_at.isoformat(),
    }


def edge_dict(edge: Edge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "key": edge.key,
        "source_id": edge.source_id,
        "target_id": edge.target_id,
        "edge_type": str(edge.edge_type),
        "weight": edge.weight,
        "bidirectional": edge.bidirectional,
        "metadata": dict(edge.metadata),
    }


def statistics_dict(stats: GraphStatistics) -> dict[str, Any]:
    data = stats.model_dump(mode="json")
    data["average_connections"] = round(stats.average_connections, 4)
    data["density"] = round(stats.density, 4)
    return data
