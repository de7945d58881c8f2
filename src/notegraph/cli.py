"""Root CLI group for notegraph with global flags and command registration."""

from __future__ import annotations

import click

from notegraph import __version__
from notegraph.commands import register_commands
from notegraph.commands._context import AppContext
from notegraph.config.settings import NotegraphSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="notegraph")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--sync", is_flag=True, help="Force synchronous event dispatch.")
@click.option("--user", default=None, help="Acting user ID (default: 'local').")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    sync: bool,
    user: str | None,
) -> None:
    """notegraph — knowledge graphs of short notes."""
    settings = NotegraphSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        sync=sync,
        user=user,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
