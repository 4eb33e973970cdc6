"""Root CLI group for bibgraph with global flags and command registration."""

from __future__ import annotations

import click

from bibgraph import __version__
from bibgraph.commands import register_commands
from bibgraph.commands._base import BibGroup
from bibgraph.commands._context import AppContext
from bibgraph.config.settings import BibgraphSettings

_EXAMPLES = """\
  bibgraph info citations.json
  bibgraph communities citations.json --algorithm leiden
  bibgraph path citations.json W1 W9 --weight-property score --invert
  bibgraph --json kcore collaboration.json
  bibgraph -v -c analysis.toml triangles collaboration.json"""


@click.group(cls=BibGroup, invoke_without_command=True, examples=_EXAMPLES)
@click.version_option(version=__version__, prog_name="bibgraph")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and per-phase timings.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """bibgraph — graph analytics for citation and collaboration networks."""
    settings = BibgraphSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
