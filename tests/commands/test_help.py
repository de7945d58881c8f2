"""Parametrized help tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from notegraph.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    # -- graph group --
    (["graph", "--help"], ["create", "list", "show", "rename", "publish", "validate"]),
    (["graph", "--help"], ["nodes", "edges", "path", "clusters", "centrality", "orphans"]),
    (["graph", "create", "--help"], ["NAME", "--description"]),
    (["graph", "list", "--help"], []),
    (["graph", "show", "--help"], ["GRAPH_ID"]),
    (["graph", "rename", "--help"], ["GRAPH_ID", "NAME"]),
    (["graph", "publish", "--help"], ["--public", "--private"]),
    (["graph", "nodes", "--help"], ["--limit", "--offset"]),
    (["graph", "edges", "--help"], ["--limit", "--offset"]),
    (["graph", "path", "--help"], ["SOURCE_ID", "TARGET_ID"]),
    (["graph", "clusters", "--help"], ["GRAPH_ID"]),
    (["graph", "centrality", "--help"], ["--top"]),
    (["graph", "orphans", "--help"], ["GRAPH_ID"]),
    (["graph", "stats", "--help"], ["GRAPH_ID"]),
    (["graph", "validate", "--help"], ["GRAPH_ID"]),
    # -- node group --
    (["node", "--help"], ["add", "connect", "remove", "degree", "neighbors"]),
    (["node", "--help"], ["suggest", "discover", "similarity"]),
    (["node", "add", "--help"], ["TITLE", "--body", "--format", "--tag", "--meta", "--graph"]),
    (["node", "connect", "--help"], ["--type", "--weight", "--bidirectional"]),
    (["node", "remove", "--help"], ["NODE_ID"]),
    (["node", "degree", "--help"], ["NODE_ID"]),
    (["node", "neighbors", "--help"], ["--depth"]),
    (["node", "suggest", "--help"], ["--limit"]),
    (["node", "discover", "--help"], ["--max-edges", "--min-similarity"]),
    (["node", "similarity", "--help"], ["FIRST_ID", "SECOND_ID"]),
]


def _help_id(args_keywords: tuple[list[str], list[str]]) -> str:
    """Generate a readable test ID from args."""
    args, _ = args_keywords
    return "_".join(a for a in args if a != "--help")


@pytest.mark.parametrize(
    "args,expected_keywords",
    HELP_COMMANDS,
    ids=[_help_id(item) for item in HELP_COMMANDS],
)
def test_command_help(
    cli_runner: CliRunner, args: list[str], expected_keywords: list[str]
) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in help output for {args}"


EXAMPLE_COMMANDS: list[tuple[list[str], str]] = [
    (["graph", "--examples"], "notegraph graph create"),
    (["graph", "create", "--examples"], "--description"),
    (["graph", "publish", "--examples"], "--private"),
    (["graph", "nodes", "--examples"], "--offset"),
    (["node", "--examples"], "notegraph node connect"),
    (["node", "add", "--examples"], "--meta source=book"),
    (["node", "discover", "--examples"], "--min-similarity"),
]


@pytest.mark.parametrize(
    "args,expected",
    EXAMPLE_COMMANDS,
    ids=["_".join(a for a in args if a != "--examples") for args, _ in EXAMPLE_COMMANDS],
)
def test_command_examples(cli_runner: CliRunner, args: list[str], expected: str) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    assert expected in result.output


def test_examples_flag_hidden_without_examples(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["graph", "list", "--help"])
    assert "--examples" not in result.output
