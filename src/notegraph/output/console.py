"""Rich Console factory and theme for notegraph output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

NOTEGRAPH_THEME = Theme(
    {
        "ng.ok": "bold green",
        "ng.error": "bold red",
        "ng.warning": "bold yellow",
        "ng.op": "bold cyan",
        "ng.key": "dim",
        "ng.id": "bold blue",
        "ng.title": "bold",
        "ng.score": "magenta",
        "ng.edge.strong": "bold green",
        "ng.edge.weak": "dim",
        "ng.edge.hierarchical": "yellow",
        "ng.edge.reference": "blue",
        "ng.status.archived": "dim",
        "ng.status.published": "green",
    }
)

_EDGE_STYLES: dict[str, str] = {
    "strong": "ng.edge.strong",
    "weak": "ng.edge.weak",
    "hierarchical": "ng.edge.hierarchical",
    "reference": "ng.edge.reference",
}

_STATUS_STYLES: dict[str, str] = {
    "archived": "ng.status.archived",
    "published": "ng.status.published",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=NOTEGRAPH_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_edge(edge_type: str) -> str:
    return _EDGE_STYLES.get(edge_type, "")


def style_for_status(status: str) -> str:
    return _STATUS_STYLES.get(status, "")
