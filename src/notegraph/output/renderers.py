"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from notegraph.output.console import create_console, get_output, style_for_edge, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from notegraph.services.result import ServiceResult

type Renderer = Callable[..., None]


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: IDs only for listings."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items") or result.data.get("path")
    if items and isinstance(items, list):
        return "\n".join(ident for item in items if (ident := _extract_id(item)))

    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        for key in ("id", "node_id", "target_id"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="ng.ok")
    op = Text(f"  {result.op}", style="ng.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="ng.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="ng.id")
    elif key in ("title", "name"):
        v = Text(str(value), style="ng.title")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v)


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


def _footer(console: Console, result: ServiceResult, noun: str) -> None:
    count = result.data.get("count", 0)
    line = f"\n{count} {noun}"
    meta = result.meta or {}
    if meta.get("has_more"):
        line += f" (offset {meta.get('offset', 0)} of {meta.get('total', '?')}, more available)"
    console.print(line)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    label = Text("ERROR", style="ng.error")
    op = Text(f"  {result.op}{code}", style="ng.op")
    console.print(label, op, Text(" — "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create_graph/rename/set_public/remove_node results."""
    _status_line(console, result)
    for key in ("id", "name", "old_name", "is_public", "edges_removed"):
        if key in result.data:
            _field(console, key, result.data[key])
    if result.meta and "version" in result.meta:
        _field(console, "version", result.meta["version"])
    if verbose:
        _render_meta(console, result)


def _render_node(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single node as a panel."""
    d = result.data
    lines: list[str] = [f"status: {d.get('status', '')}", f"format: {d.get('format', '')}"]
    pos = d.get("position") or {}
    lines.append(f"position: ({pos.get('x', 0)}, {pos.get('y', 0)}, {pos.get('z', 0)})")
    tags = d.get("tags", [])
    if tags:
        lines.append(f"tags: {', '.join(tags)}")
    if d.get("metadata"):
        lines.append(f"metadata: {json.dumps(d['metadata'], separators=(',', ':'))}")

    content = "\n".join(lines)
    body = d.get("body", "")
    if body:
        content += f"\n\n{body.strip()}"

    title = f"{d.get('id', '?')} — {d.get('title', 'Untitled')}"
    style = style_for_status(str(d.get("status", "")))
    console.print(Panel(content, title=title, border_style=style or "dim", expand=False))
    if verbose:
        _render_meta(console, result)


def _render_edge(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    edge_type = str(d.get("edge_type", ""))
    arrow = "<->" if d.get("bidirectional") else "->"
    style = style_for_edge(edge_type) or "default"
    console.print(
        f"  [ng.id]{d.get('source_id')}[/ng.id] {arrow} [ng.id]{d.get('target_id')}[/ng.id]"
        f"  [{style}]{edge_type}[/{style}] (weight {d.get('weight')})"
    )
    if verbose:
        _render_meta(console, result)


# ── Graph renderers ───────────────────────────────────────────────────


def _render_graph_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, pad_edge=False)
    table.add_column("ID", style="ng.id", no_wrap=True)
    table.add_column("Name", style="ng.title")
    table.add_column("Nodes", justify="right")
    table.add_column("Edges", justify="right")
    table.add_column("Public")
    if verbose:
        table.add_column("Version", justify="right")
        table.add_column("Updated", style="dim")
    for item in result.data.get("items", []):
        row = [
            str(item.get("id", "")),
            str(item.get("name", "")),
            str(item.get("node_count", 0)),
            str(item.get("edge_count", 0)),
            "yes" if item.get("is_public") else "no",
        ]
        if verbose:
            row.extend([str(item.get("version", "")), str(item.get("updated_at", ""))])
        table.add_row(*row)
    console.print(table)
    _footer(console, result, "graphs")


def _render_graph(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    lines = [
        d.get("description", ""),
        "",
        f"owner: {d.get('owner', '')}",
        f"nodes: {d.get('node_count', 0)}  edges: {d.get('edge_count', 0)}",
        f"public: {'yes' if d.get('is_public') else 'no'}",
        f"layout: {d.get('layout', '')}",
        f"version: {d.get('version', '')}",
    ]
    if d.get("tags"):
        lines.append(f"tags: {', '.join(d['tags'])}")
    if verbose:
        lines.append(f"created: {d.get('created_at', '')}")
        lines.append(f"updated: {d.get('updated_at', '')}")
    title = f"{d.get('id', '?')} — {d.get('name', '')}"
    console.print(Panel("\n".join(lines), title=title, border_style="dim", expand=False))


def _render_node_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, pad_edge=False)
    table.add_column("ID", style="ng.id", no_wrap=True)
    table.add_column("Title", style="ng.title")
    table.add_column("Status")
    table.add_column("Tags")
    if verbose:
        table.add_column("Updated", style="dim")
    for item in result.data.get("items", []):
        status = str(item.get("status", ""))
        row = [
            str(item.get("id", "")),
            str(item.get("title", "")),
            Text(status, style=style_for_status(status)),
            ", ".join(item.get("tags", [])),
        ]
        if verbose:
            row.append(str(item.get("updated_at", "")))
        table.add_row(*row)
    console.print(table)
    _footer(console, result, "nodes")


def _render_edge_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, pad_edge=False)
    table.add_column("Source", style="ng.id", no_wrap=True)
    table.add_column("Target", style="ng.id", no_wrap=True)
    table.add_column("Type")
    table.add_column("Weight", justify="right")
    table.add_column("Both ways")
    for item in result.data.get("items", []):
        edge_type = str(item.get("edge_type", ""))
        table.add_row(
            str(item.get("source_id", "")),
            str(item.get("target_id", "")),
            Text(edge_type, style=style_for_edge(edge_type)),
            f"{float(item.get('weight', 0.0)):.2f}",
            "yes" if item.get("bidirectional") else "no",
        )
    console.print(table)
    _footer(console, result, "edges")


def _render_path(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render shortest path as a chain."""
    steps = result.data.get("path", [])
    if not steps:
        console.print("No path found.")
        return
    console.print(" → ".join(f"[ng.id]{step}[/ng.id]" for step in steps))
    console.print(f"\nPath length: {result.data.get('length', len(steps) - 1)}")


def _render_clusters(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    clusters = result.data.get("items", [])
    console.print(f"[bold]{result.data.get('count', len(clusters))} clusters[/bold]")
    for index, cluster in enumerate(clusters, start=1):
        console.print(f"\n[bold]Cluster {index}[/bold] ({cluster.get('size', 0)} nodes)")
        for node_id in cluster.get("node_ids", []):
            console.print(f"  [ng.id]{node_id}[/ng.id]")


def _render_id_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render neighbors and orphans."""
    _status_line(console, result)
    if "node_id" in result.data:
        _field(console, "node_id", result.data["node_id"])
    for node_id in result.data.get("items", []):
        console.print(f"  [ng.id]{node_id}[/ng.id]")
    _footer(console, result, "nodes")


def _render_scored_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render centrality, suggest, and discover as scored tables."""
    items = result.data.get("items", [])
    target_key = "node_id" if result.op == "centrality" else "target_id"
    score_key = "score" if result.op == "centrality" else "similarity"

    table = Table(show_header=True, pad_edge=False)
    table.add_column("Node", style="ng.id", no_wrap=True)
    table.add_column(score_key.title(), style="ng.score", justify="right")
    if result.op != "centrality":
        table.add_column("Type")
        table.add_column("Reason")
    for item in items:
        row: list[Any] = [str(item.get(target_key, "")), f"{float(item.get(score_key, 0)):.4f}"]
        if result.op != "centrality":
            edge_type = str(item.get("edge_type", ""))
            row.append(Text(edge_type, style=style_for_edge(edge_type)))
            row.append(str(item.get("reason", "")))
        table.add_row(*row)
    console.print(table)

    source = result.data.get("node_id")
    if source:
        console.print(f"\nSource: [ng.id]{source}[/ng.id]")
    console.print(f"{result.data.get('count', len(items))} results")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Renderer] = {
    # Graph lifecycle
    "create_graph": _render_mutation,
    "rename": _render_mutation,
    "set_public": _render_mutation,
    "list_graphs": _render_graph_table,
    "show": _render_graph,
    # Node and edge commands
    "add_node": _render_node,
    "connect": _render_edge,
    "remove_node": _render_mutation,
    "list_nodes": _render_node_table,
    "list_edges": _render_edge_table,
    # Analysis
    "path": _render_path,
    "clusters": _render_clusters,
    "neighbors": _render_id_list,
    "orphans": _render_id_list,
    "centrality": _render_scored_table,
    "degree": _render_generic,
    "stats": _render_generic,
    "validate": _render_generic,
    # Relationships
    "suggest": _render_scored_table,
    "discover": _render_scored_table,
    "similarity": _render_generic,
}
