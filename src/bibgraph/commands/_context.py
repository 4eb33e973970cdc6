"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Loads graph documents and centralizes result
emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from bibgraph.config.logging import configure_logging
from bibgraph.graph.loader import load_graph
from bibgraph.output.formatters import format_result

if TYPE_CHECKING:
    from bibgraph.config.settings import BibgraphSettings
    from bibgraph.domain.result import Result
    from bibgraph.graph.loader import BibGraph

logger = logging.getLogger(__name__)


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: BibgraphSettings) -> None:
        self.settings = settings

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        # Enable telemetry context var when verbose
        if settings.verbose:
            from bibgraph.algorithms.telemetry import enable_telemetry

            enable_telemetry()

    def load(self, path: Path) -> BibGraph:
        """Load the graph at *path*, emitting the failure and exiting on error."""
        result = load_graph(path)
        if not result.ok:
            self.emit(result)
        graph = result.unwrap()
        logger.debug("Loaded %r from %s", graph, path)
        if not self.settings.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
        return graph

    def emit(self, result: Result[Any]) -> None:
        """Format and output a Result with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        output = format_result(
            result, json_output=self.settings.json_output, quiet=self.settings.quiet
        )
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not self.settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
