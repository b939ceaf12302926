"""Root CLI group for supplyctl with global flags and command registration."""

from __future__ import annotations

import click

from supplyctl import __version__
from supplyctl.commands import register_commands
from supplyctl.commands._context import AppContext
from supplyctl.config.settings import SupplySettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="supplyctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--sync", is_flag=True, help="Deliver notifications synchronously.")
@click.option(
    "--as",
    "caller",
    default=None,
    envvar="SUPPLYCTL_CALLER",
    metavar="IDENTITY",
    help="Identity to act as.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    sync: bool,
    caller: str | None,
) -> None:
    """supplyctl — supply-chain item registry with escrowed settlement."""
    ctx.ensure_object(dict)
    settings = SupplySettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        sync=sync,
        caller=caller,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
