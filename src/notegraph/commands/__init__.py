"""Subcommand modules for notegraph.

Provides register_commands() which uses deferred imports to keep
``notegraph --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``graph`` and ``node`` command groups on the root CLI group."""
    from notegraph.commands.graph import graph
    from notegraph.commands.node import node

    cli.add_command(graph)
    cli.add_command(node)
