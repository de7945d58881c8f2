"""Command group: graph lifecycle, listings, and analysis."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from notegraph.commands._base import NotegraphGroup
from notegraph.services.graph import GraphService

if TYPE_CHECKING:
    from notegraph.commands._context import AppContext

_GRAPH_EXAMPLES = """\
  notegraph graph create "Reading notes"
  notegraph graph list
  notegraph graph show 3f2a...
  notegraph graph path 3f2a... NODE_A NODE_B
  notegraph graph centrality 3f2a... --top 5
  notegraph --json graph stats 3f2a..."""


@click.group(cls=NotegraphGroup, examples=_GRAPH_EXAMPLES)
@click.pass_obj
def graph(app: AppContext) -> None:
    """Create, inspect, and analyze knowledge graphs."""


# ------------------------------------------------------------------
# Lifecycle
# ------------------------------------------------------------------


@graph.command(
    examples="""\
  notegraph graph create "Reading notes"
  notegraph graph create "Reading notes" --description "Books from 2026"
  notegraph graph create"""
)
@click.argument("name", default="")
@click.option("--description", default=None, help="Free-text description.")
@click.pass_obj
def create(app: AppContext, name: str, description: str | None) -> None:
    """Create an empty graph (default name when NAME is omitted)."""
    app.emit(GraphService(app.workspace).create_graph(name, description=description))


@graph.command("list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List graphs owned by the acting user."""
    app.emit(GraphService(app.workspace).list_graphs())


@graph.command()
@click.argument("graph_id")
@click.pass_obj
def show(app: AppContext, graph_id: str) -> None:
    """Show one graph's metadata."""
    app.emit(GraphService(app.workspace).show(graph_id))


@graph.command()
@click.argument("graph_id")
@click.argument("name")
@click.pass_obj
def rename(app: AppContext, graph_id: str, name: str) -> None:
    """Rename a graph."""
    app.emit(GraphService(app.workspace).rename(graph_id, name))


@graph.command(
    examples="""\
  notegraph graph publish 3f2a...
  notegraph graph publish 3f2a... --private"""
)
@click.argument("graph_id")
@click.option("--public/--private", "is_public", default=True, help="Visibility to set.")
@click.pass_obj
def publish(app: AppContext, graph_id: str, is_public: bool) -> None:
    """Make a graph public (or private again)."""
    app.emit(GraphService(app.workspace).set_public(graph_id, is_public))


# ------------------------------------------------------------------
# Listings
# ------------------------------------------------------------------


@graph.command(
    examples="""\
  notegraph graph nodes 3f2a...
  notegraph graph nodes 3f2a... --limit 20 --offset 40"""
)
@click.argument("graph_id")
@click.option("--limit", default=100, type=int, help="Page size (1-100).")
@click.option("--offset", default=0, type=int, help="Items to skip.")
@click.pass_obj
def nodes(app: AppContext, graph_id: str, limit: int, offset: int) -> None:
    """List nodes one page at a time."""
    app.emit(GraphService(app.workspace).list_nodes(graph_id, limit=limit, offset=offset))


@graph.command()
@click.argument("graph_id")
@click.option("--limit", default=100, type=int, help="Page size (1-100).")
@click.option("--offset", default=0, type=int, help="Items to skip.")
@click.pass_obj
def edges(app: AppContext, graph_id: str, limit: int, offset: int) -> None:
    """List edges one page at a time."""
    app.emit(GraphService(app.workspace).list_edges(graph_id, limit=limit, offset=offset))


# ------------------------------------------------------------------
# Analysis
# ------------------------------------------------------------------


@graph.command()
@click.argument("graph_id")
@click.argument("source_id")
@click.argument("target_id")
@click.pass_obj
def path(app: AppContext, graph_id: str, source_id: str, target_id: str) -> None:
    """Find the shortest path between two nodes."""
    app.emit(GraphService(app.workspace).path(graph_id, source_id, target_id))


@graph.command()
@click.argument("graph_id")
@click.pass_obj
def clusters(app: AppContext, graph_id: str) -> None:
    """Group nodes into connected clusters."""
    app.emit(GraphService(app.workspace).clusters(graph_id))


@graph.command()
@click.argument("graph_id")
@click.option("--top", default=20, type=int, help="Max results (0 for all).")
@click.pass_obj
def centrality(app: AppContext, graph_id: str, top: int) -> None:
    """Rank nodes by approximate betweenness centrality."""
    app.emit(GraphService(app.workspace).centrality(graph_id, top=top))


@graph.command()
@click.argument("graph_id")
@click.pass_obj
def orphans(app: AppContext, graph_id: str) -> None:
    """List nodes with no edges."""
    app.emit(GraphService(app.workspace).orphans(graph_id))


@graph.command()
@click.argument("graph_id")
@click.pass_obj
def stats(app: AppContext, graph_id: str) -> None:
    """Summarize graph structure."""
    app.emit(GraphService(app.workspace).stats(graph_id))


@graph.command()
@click.argument("graph_id")
@click.pass_obj
def validate(app: AppContext, graph_id: str) -> None:
    """Check every graph invariant; exits 1 on the first violation."""
    app.emit(GraphService(app.workspace).validate(graph_id))
