"""Command group: node and edge commands, relationships, and discovery."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from notegraph.commands._base import NotegraphGroup
from notegraph.domain.types import ContentFormat, EdgeType
from notegraph.services.graph import GraphService

if TYPE_CHECKING:
    from notegraph.commands._context import AppContext

_NODE_EXAMPLES = """\
  notegraph node add -g 3f2a... "Graph theory" --body "Vertices, edges" --tag math
  notegraph node connect -g 3f2a... NODE_A NODE_B --type strong --weight 0.8
  notegraph node suggest -g 3f2a... NODE_A --limit 5
  notegraph node discover -g 3f2a... NODE_A
  notegraph node remove -g 3f2a... NODE_A"""

_graph_option = click.option(
    "-g", "--graph", "graph_id", required=True, envvar="NOTEGRAPH_GRAPH_ID", help="Graph ID."
)


def _parse_metadata(_ctx: click.Context, _param: click.Parameter, value: tuple[str, ...]) -> Any:
    metadata: dict[str, str] = {}
    for pair in value:
        key, sep, val = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}")
        metadata[key] = val
    return metadata


@click.group(cls=NotegraphGroup, examples=_NODE_EXAMPLES)
@click.pass_obj
def node(app: AppContext) -> None:
    """Add, connect, and relate nodes within a graph."""


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------


@node.command(
    examples="""\
  notegraph node add -g 3f2a... "Graph theory"
  notegraph node add -g 3f2a... "Graph theory" --body "..." --tag math --tag cs
  notegraph node add -g 3f2a... "Origin" --x 0 --y 0 --meta source=book"""
)
@_graph_option
@click.argument("title")
@click.option("--body", default="", help="Note body.")
@click.option(
    "--format",
    "content_format",
    type=click.Choice([f.value for f in ContentFormat]),
    default=ContentFormat.MARKDOWN.value,
    help="Body markup format.",
)
@click.option("--x", default=0.0, type=float, help="Canvas X coordinate.")
@click.option("--y", default=0.0, type=float, help="Canvas Y coordinate.")
@click.option("--z", default=0.0, type=float, help="Canvas Z coordinate.")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.option(
    "--meta", "metadata", multiple=True, callback=_parse_metadata, help="KEY=VALUE (repeatable)."
)
@click.pass_obj
def add(
    app: AppContext,
    graph_id: str,
    title: str,
    body: str,
    content_format: str,
    x: float,
    y: float,
    z: float,
    tags: tuple[str, ...],
    metadata: dict[str, str],
) -> None:
    """Add a draft node to a graph."""
    app.emit(
        GraphService(app.workspace).add_node(
            graph_id,
            title,
            body,
            content_format=content_format,
            x=x,
            y=y,
            z=z,
            tags=list(tags),
            metadata=metadata,
        )
    )


@node.command()
@_graph_option
@click.argument("source_id")
@click.argument("target_id")
@click.option(
    "--type",
    "edge_type",
    type=click.Choice([t.value for t in EdgeType]),
    default=EdgeType.NORMAL.value,
    help="Edge type.",
)
@click.option("--weight", default=1.0, type=float, help="Edge weight in [0, 1].")
@click.option("--bidirectional", is_flag=True, help="Traversable in both directions.")
@click.pass_obj
def connect(
    app: AppContext,
    graph_id: str,
    source_id: str,
    target_id: str,
    edge_type: str,
    weight: float,
    bidirectional: bool,
) -> None:
    """Connect SOURCE_ID to TARGET_ID."""
    app.emit(
        GraphService(app.workspace).connect(
            graph_id, source_id, target_id, edge_type, weight=weight, bidirectional=bidirectional
        )
    )


@node.command()
@_graph_option
@click.argument("node_id")
@click.pass_obj
def remove(app: AppContext, graph_id: str, node_id: str) -> None:
    """Archive a node and remove it with all its edges."""
    app.emit(GraphService(app.workspace).remove_node(graph_id, node_id))


# ------------------------------------------------------------------
# Queries
# ------------------------------------------------------------------


@node.command()
@_graph_option
@click.argument("node_id")
@click.pass_obj
def degree(app: AppContext, graph_id: str, node_id: str) -> None:
    """Show a node's in and out degree."""
    app.emit(GraphService(app.workspace).degree(graph_id, node_id))


@node.command()
@_graph_option
@click.argument("node_id")
@click.option("--depth", default=1, type=int, help="Maximum hops.")
@click.pass_obj
def neighbors(app: AppContext, graph_id: str, node_id: str, depth: int) -> None:
    """List nodes within DEPTH hops."""
    app.emit(GraphService(app.workspace).neighbors(graph_id, node_id, depth=depth))


@node.command()
@_graph_option
@click.argument("node_id")
@click.option("--limit", default=10, type=int, help="Max suggestions (0 for all).")
@click.pass_obj
def suggest(app: AppContext, graph_id: str, node_id: str, limit: int) -> None:
    """Suggest unconnected nodes worth linking to."""
    app.emit(GraphService(app.workspace).suggest(graph_id, node_id, limit=limit))


@node.command(
    examples="""\
  notegraph node discover -g 3f2a... NODE_A
  notegraph node discover -g 3f2a... NODE_A --max-edges 5 --min-similarity 0.5"""
)
@_graph_option
@click.argument("node_id")
@click.option("--max-edges", default=0, type=int, help="Cap per source node (0: configured).")
@click.option(
    "--min-similarity", default=0.0, type=float, help="Score floor (0: configured)."
)
@click.pass_obj
def discover(
    app: AppContext, graph_id: str, node_id: str, max_edges: int, min_similarity: float
) -> None:
    """Propose edges from keyword and tag similarity."""
    app.emit(
        GraphService(app.workspace).discover(
            graph_id, node_id, max_edges=max_edges, min_similarity=min_similarity
        )
    )


@node.command()
@_graph_option
@click.argument("first_id")
@click.argument("second_id")
@click.pass_obj
def similarity(app: AppContext, graph_id: str, first_id: str, second_id: str) -> None:
    """Score two nodes against each other."""
    app.emit(GraphService(app.workspace).similarity(graph_id, first_id, second_id))
