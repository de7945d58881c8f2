"""Pluggy hook specifications for notegraph domain events.

Each committed domain event is delivered twice: to the typed hook for its
event type (when one exists) and to the catch-all :meth:`on_domain_event`.
Plugins implement whichever they need with :data:`hookimpl`.
"""

from __future__ import annotations

from typing import Any

import pluggy

PROJECT_NAME = "notegraph"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class NotegraphHookSpec:
    """Hook specifications for the notegraph plugin system."""

    @hookspec
    def post_graph_created(self, graph_id: str, user_id: str, name: str) -> None:
        """Called after a graph is created and saved."""

    @hookspec
    def post_node_added(self, graph_id: str, node_id: str) -> None:
        """Called after a node joins a graph."""

    @hookspec
    def post_node_removed(self, graph_id: str, node_id: str) -> None:
        """Called after a node is archived and removed from a graph."""

    @hookspec
    def post_nodes_connected(
        self,
        graph_id: str,
        source_id: str,
        target_id: str,
        edge_type: str,
    ) -> None:
        """Called after an edge is created."""

    @hookspec
    def on_domain_event(
        self,
        event_type: str,
        aggregate_id: str,
        payload: dict[str, Any],
    ) -> None:
        """Called for every committed domain event, typed hook or not."""


# Event type -> typed hook name. Payload fields match the hook arguments.
TYPED_HOOKS: dict[str, str] = {
    "graph.created": "post_graph_created",
    "graph.node_added": "post_node_added",
    "graph.node_removed": "post_node_removed",
    "graph.nodes_connected": "post_nodes_connected",
}
