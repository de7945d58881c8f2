"""Integration workflow tests — multi-step scenarios across reloads.

These tests exercise interactions that unit tests cannot catch: analysis
results tracking structural edits, discovery feeding back into connections,
state surviving a fresh workspace, and TOML quotas reaching the services.
"""

from __future__ import annotations

from pathlib import Path

from notegraph.config.settings import NotegraphSettings
from notegraph.infrastructure.workspace import Workspace
from notegraph.services.graph import GraphService
from notegraph.services.result import VALIDATION
from tests.conftest import USER, add_node, connect, create_graph


class TestBuildAnalyzeEdit:
    """Build a star, analyze it, remove the hub, and re-analyze."""

    def test_removing_hub_splits_graph(self, workspace: Workspace) -> None:
        service = GraphService(workspace)
        graph_id = create_graph(workspace, "Star")["id"]
        hub = add_node(workspace, graph_id, "Hub")["id"]
        spokes = [add_node(workspace, graph_id, f"Spoke {i}")["id"] for i in range(3)]
        for spoke in spokes:
            connect(workspace, graph_id, hub, spoke)

        before = service.stats(graph_id).data
        assert before["cluster_count"] == 1
        assert before["max_connections"] == 3
        assert service.orphans(graph_id).data["items"] == []

        removed = service.remove_node(graph_id, hub)
        assert removed.data["edges_removed"] == 3

        after = service.stats(graph_id).data
        assert after["node_count"] == 3
        assert after["edge_count"] == 0
        assert after["cluster_count"] == 3
        assert service.orphans(graph_id).data["items"] == spokes
        assert service.validate(graph_id).ok

    def test_path_follows_new_edges(self, workspace: Workspace) -> None:
        service = GraphService(workspace)
        graph_id = create_graph(workspace)["id"]
        a, b, c = (add_node(workspace, graph_id, t)["id"] for t in ("A", "B", "C"))
        connect(workspace, graph_id, a, b)
        assert service.path(graph_id, a, c).error is not None

        connect(workspace, graph_id, b, c)
        assert service.path(graph_id, a, c).data["path"] == [a, b, c]

        connect(workspace, graph_id, a, c)
        assert service.path(graph_id, a, c).data["path"] == [a, c]


class TestDiscoverThenConnect:
    """Accepting a discovered edge removes it from later suggestions."""

    def test_accepted_candidate_no_longer_suggested(self, workspace: Workspace) -> None:
        service = GraphService(workspace)
        graph_id = create_graph(workspace)["id"]
        src = add_node(workspace, graph_id, "Graph theory", body="vertices edges", tags=["math"])
        twin = add_node(workspace, graph_id, "Graph theory", body="vertices edges", tags=["math"])

        candidates = service.discover(graph_id, src["id"]).data["items"]
        top = candidates[0]
        assert top["target_id"] == twin["id"]

        edge = connect(
            workspace, graph_id, top["source_id"], top["target_id"], edge_type=top["edge_type"]
        )
        assert edge["edge_type"] == "strong"

        assert service.suggest(graph_id, src["id"]).data["items"] == []
        assert service.degree(graph_id, src["id"]).data["out_degree"] == 1


class TestReopenWorkspace:
    """State written through one workspace is visible through a fresh one."""

    def test_metadata_and_structure_survive(
        self, workspace: Workspace, settings: NotegraphSettings
    ) -> None:
        graph_id = create_graph(workspace, "Draft name")["id"]
        a = add_node(workspace, graph_id, "A", tags=["x"], metadata={"k": "v"})["id"]
        b = add_node(workspace, graph_id, "B")["id"]
        connect(workspace, graph_id, a, b, weight=0.25, bidirectional=True)
        service = GraphService(workspace)
        assert service.rename(graph_id, "Final name").ok
        assert service.set_public(graph_id, True).ok

        fresh = Workspace(settings)
        try:
            reloaded = GraphService(fresh)
            shown = reloaded.show(graph_id).data
            assert shown["name"] == "Final name"
            assert shown["is_public"] is True
            assert (shown["node_count"], shown["edge_count"]) == (2, 1)

            nodes = reloaded.list_nodes(graph_id).data["items"]
            assert nodes[0]["tags"] == ["x"]
            assert nodes[0]["metadata"] == {"k": "v"}
            (edge,) = reloaded.list_edges(graph_id).data["items"]
            assert (edge["weight"], edge["bidirectional"]) == (0.25, True)
            assert reloaded.neighbors(graph_id, b).data["items"] == [a]
        finally:
            fresh.close()


class TestConfiguredQuota:
    """A ``[graph]`` quota in notegraph.toml caps node additions."""

    def test_toml_quota_enforced(self, tmp_path: Path) -> None:
        (tmp_path / "notegraph.toml").write_text("[graph]\nmax_nodes_per_graph = 2\n")
        settings = NotegraphSettings.from_cli(workspace_root=tmp_path, user=USER, sync=True)
        assert settings.graph.max_nodes_per_graph == 2

        ws = Workspace(settings)
        try:
            graph_id = create_graph(ws)["id"]
            add_node(ws, graph_id, "One")
            add_node(ws, graph_id, "Two")
            result = GraphService(ws).add_node(graph_id, "Three")
            assert result.error is not None
            assert result.error.code == VALIDATION
            assert GraphService(ws).show(graph_id).data["node_count"] == 2
        finally:
            ws.close()
