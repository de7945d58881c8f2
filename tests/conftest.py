"""Shared pytest fixtures and test helpers for notegraph tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from notegraph.config.settings import NotegraphSettings
from notegraph.domain.content import NodeContent, Position
from notegraph.domain.graph import Graph
from notegraph.domain.node import Node
from notegraph.domain.rules import DomainConfig
from notegraph.infrastructure.database.engine import init_database
from notegraph.infrastructure.workspace import Workspace

USER = "alice"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "notegraph.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Temporary workspace directory; the database lands under ``.notegraph/``."""
    return tmp_path


@pytest.fixture
def settings(workspace_root: Path) -> NotegraphSettings:
    return NotegraphSettings.from_cli(workspace_root=workspace_root, user=USER, sync=True)


@pytest.fixture
def workspace(settings: NotegraphSettings) -> Iterator[Workspace]:
    """Workspace with an initialized database and no event bus.

    Tests that need plugin delivery call ``init_event_bus(sync=True)``.
    """
    ws = Workspace(settings)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def _isolated_workspace(workspace_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp workspace so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.delenv("NOTEGRAPH_CONFIG", raising=False)
    monkeypatch.chdir(workspace_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_node(
    title: str,
    body: str = "",
    *,
    x: float = 0.0,
    y: float = 0.0,
    tags: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
    node_id: str | None = None,
    user: str = USER,
) -> Node:
    """Build a draft node without touching any graph."""
    return Node.create(
        user,
        NodeContent.create(title, body),
        Position.create(x, y),
        tags=tags,
        metadata=metadata,
        node_id=node_id,
    )


def make_graph(*titles: str, config: DomainConfig | None = None, lazy: bool = False) -> Graph:
    """Graph holding one node per title; node IDs equal their titles."""
    graph = Graph.create(USER, "Test", config=config, lazy=lazy)
    for title in titles:
        graph.add_node(make_node(title, node_id=title))
    return graph


def create_graph(workspace: Workspace, name: str = "Test", **kwargs: Any) -> dict[str, Any]:
    """Create a graph via GraphService, asserting success."""
    from notegraph.services.graph import GraphService

    result = GraphService(workspace).create_graph(name, **kwargs)
    assert result.ok, result.error
    return result.data


def add_node(workspace: Workspace, graph_id: str, title: str, **kwargs: Any) -> dict[str, Any]:
    """Add a node via GraphService, asserting success."""
    from notegraph.services.graph import GraphService

    result = GraphService(workspace).add_node(graph_id, title, **kwargs)
    assert result.ok, result.error
    return result.data


def connect(
    workspace: Workspace, graph_id: str, source_id: str, target_id: str, **kwargs: Any
) -> dict[str, Any]:
    """Connect two nodes via GraphService, asserting success."""
    from notegraph.services.graph import GraphService

    result = GraphService(workspace).connect(graph_id, source_id, target_id, **kwargs)
    assert result.ok, result.error
    return result.data
