"""Tests for node CLI commands."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from notegraph.cli import cli


def _ok(runner: CliRunner, *args: str, **kwargs: Any) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", *args], **kwargs)
    assert result.exit_code == 0, result.output
    data: dict[str, Any] = json.loads(result.stdout)
    return data


def _err(runner: CliRunner, *args: str) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 1
    data: dict[str, Any] = json.loads(result.stderr)
    return data


@pytest.fixture
def graph_id(cli_runner: CliRunner, _isolated_workspace: None) -> str:
    gid: str = _ok(cli_runner, "graph", "create", "Notes")["data"]["id"]
    return gid


def _add(runner: CliRunner, graph_id: str, title: str, *args: str) -> str:
    node_id: str = _ok(runner, "node", "add", "-g", graph_id, title, *args)["data"]["id"]
    return node_id


class TestAdd:
    def test_add_with_options(self, cli_runner: CliRunner, graph_id: str) -> None:
        out = _ok(
            cli_runner,
            "node", "add", "-g", graph_id, "  Graph theory  ",
            "--body", "Vertices and edges",
            "--format", "plain",
            "--x", "10", "--y=-5",
            "--tag", "math", "--tag", "cs",
            "--meta", "source=book", "--meta", "page=42",
        )
        data = out["data"]
        assert out["op"] == "add_node"
        assert data["title"] == "Graph theory"
        assert data["body"] == "Vertices and edges"
        assert data["format"] == "plain"
        assert data["position"] == {"x": 10.0, "y": -5.0, "z": 0.0}
        assert data["tags"] == ["math", "cs"]
        assert data["metadata"] == {"source": "book", "page": "42"}
        assert data["status"] == "draft"

    def test_add_bumps_graph_version(self, cli_runner: CliRunner, graph_id: str) -> None:
        out = _ok(cli_runner, "node", "add", "-g", graph_id, "First")
        assert out["meta"]["version"] == 2
        assert _ok(cli_runner, "graph", "show", graph_id)["data"]["node_count"] == 1

    def test_graph_from_envvar(self, cli_runner: CliRunner, graph_id: str) -> None:
        out = _ok(cli_runner, "node", "add", "Env", env={"NOTEGRAPH_GRAPH_ID": graph_id})
        assert out["data"]["title"] == "Env"

    def test_graph_required(self, cli_runner: CliRunner, _isolated_workspace: None) -> None:
        result = cli_runner.invoke(cli, ["node", "add", "Orphan"], env={"NOTEGRAPH_GRAPH_ID": ""})
        assert result.exit_code == 2
        assert "--graph" in result.output

    def test_malformed_meta(self, cli_runner: CliRunner, graph_id: str) -> None:
        result = cli_runner.invoke(cli, ["node", "add", "-g", graph_id, "T", "--meta", "novalue"])
        assert result.exit_code == 2
        assert "expected KEY=VALUE" in result.output

    def test_blank_title_rejected(self, cli_runner: CliRunner, graph_id: str) -> None:
        out = _err(cli_runner, "node", "add", "-g", graph_id, "   ")
        assert out["error"]["code"] == "VALIDATION"

    def test_unknown_graph(self, cli_runner: CliRunner, _isolated_workspace: None) -> None:
        out = _err(cli_runner, "node", "add", "-g", "nope", "Title")
        assert out["error"]["code"] == "NOT_FOUND"


class TestConnect:
    def test_connect(self, cli_runner: CliRunner, graph_id: str) -> None:
        a = _add(cli_runner, graph_id, "A")
        b = _add(cli_runner, graph_id, "B")
        out = _ok(
            cli_runner,
            "node", "connect", "-g", graph_id, a, b,
            "--type", "strong", "--weight", "0.8", "--bidirectional",
        )
        data = out["data"]
        assert data["key"] == f"{a}->{b}"
        assert data["edge_type"] == "strong"
        assert data["weight"] == 0.8
        assert data["bidirectional"] is True

    def test_duplicate_edge(self, cli_runner: CliRunner, graph_id: str) -> None:
        a = _add(cli_runner, graph_id, "A")
        b = _add(cli_runner, graph_id, "B")
        _ok(cli_runner, "node", "connect", "-g", graph_id, a, b)
        out = _err(cli_runner, "node", "connect", "-g", graph_id, a, b)
        assert out["error"]["code"] == "CONFLICT"

    def test_self_loop(self, cli_runner: CliRunner, graph_id: str) -> None:
        a = _add(cli_runner, graph_id, "A")
        out = _err(cli_runner, "node", "connect", "-g", graph_id, a, a)
        assert out["error"]["code"] == "VALIDATION"
        assert "itself" in out["error"]["message"]

    def test_weight_out_of_range(self, cli_runner: CliRunner, graph_id: str) -> None:
        a = _add(cli_runner, graph_id, "A")
        b = _add(cli_runner, graph_id, "B")
        out = _err(cli_runner, "node", "connect", "-g", graph_id, a, b, "--weight", "1.5")
        assert out["error"]["code"] == "VALIDATION"

    def test_invalid_type_choice(self, cli_runner: CliRunner, graph_id: str) -> None:
        args = ["node", "connect", "-g", graph_id, "a", "b", "--type", "x"]
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 2


class TestRemove:
    def test_remove_drops_edges(self, cli_runner: CliRunner, graph_id: str) -> None:
        a = _add(cli_runner, graph_id, "A")
        b = _add(cli_runner, graph_id, "B")
        _ok(cli_runner, "node", "connect", "-g", graph_id, a, b)

        out = _ok(cli_runner, "node", "remove", "-g", graph_id, b)
        assert out["data"] == {"id": b, "edges_removed": 1}
        shown = _ok(cli_runner, "graph", "show", graph_id)["data"]
        assert (shown["node_count"], shown["edge_count"]) == (1, 0)
        assert _ok(cli_runner, "node", "degree", "-g", graph_id, a)["data"]["total"] == 0

    def test_remove_missing(self, cli_runner: CliRunner, graph_id: str) -> None:
        out = _err(cli_runner, "node", "remove", "-g", graph_id, "ghost")
        assert out["error"]["code"] == "NOT_FOUND"


class TestQueries:
    def test_degree_and_neighbors(self, cli_runner: CliRunner, graph_id: str) -> None:
        a = _add(cli_runner, graph_id, "A")
        b = _add(cli_runner, graph_id, "B")
        c = _add(cli_runner, graph_id, "C")
        _ok(cli_runner, "node", "connect", "-g", graph_id, a, b)
        _ok(cli_runner, "node", "connect", "-g", graph_id, b, c)

        degree = _ok(cli_runner, "node", "degree", "-g", graph_id, b)["data"]
        assert (degree["in_degree"], degree["out_degree"]) == (1, 1)

        near = _ok(cli_runner, "node", "neighbors", "-g", graph_id, a)["data"]
        assert near["items"] == [b]
        far = _ok(cli_runner, "node", "neighbors", "-g", graph_id, a, "--depth", "2")["data"]
        assert far["items"] == [b, c]


class TestRelationships:
    def _seed(self, runner: CliRunner, graph_id: str) -> dict[str, str]:
        return {
            "src": _add(
                runner, graph_id, "Graph theory", "--body", "vertices edges", "--tag", "math"
            ),
            "twin": _add(
                runner, graph_id, "Graph theory", "--body", "vertices edges", "--tag", "math"
            ),
            "far": _add(
                runner, graph_id, "Sourdough", "--body", "flour water", "--x", "5000",
                "--tag", "food",
            ),
        }

    def test_suggest(self, cli_runner: CliRunner, graph_id: str) -> None:
        ids = self._seed(cli_runner, graph_id)
        items = _ok(cli_runner, "node", "suggest", "-g", graph_id, ids["src"])["data"]["items"]
        assert [s["target_id"] for s in items] == [ids["twin"]]

    def test_discover(self, cli_runner: CliRunner, graph_id: str) -> None:
        ids = self._seed(cli_runner, graph_id)
        out = _ok(cli_runner, "node", "discover", "-g", graph_id, ids["src"], "--max-edges", "1")
        items = out["data"]["items"]
        assert len(items) == 1
        assert items[0]["target_id"] == ids["twin"]
        assert items[0]["edge_type"] == "strong"

    def test_similarity(self, cli_runner: CliRunner, graph_id: str) -> None:
        ids = self._seed(cli_runner, graph_id)
        data = _ok(cli_runner, "node", "similarity", "-g", graph_id, ids["src"], ids["far"])[
            "data"
        ]
        assert data["content"] == 0.0
        assert data["suggested_edge_type"] == "weak"

    def test_discover_missing_node(self, cli_runner: CliRunner, graph_id: str) -> None:
        out = _err(cli_runner, "node", "discover", "-g", graph_id, "ghost")
        assert out["error"]["code"] == "NOT_FOUND"
