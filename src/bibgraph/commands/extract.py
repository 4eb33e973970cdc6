"""Command: ego-network extraction.

The extracted subgraph is printed as a graph document, so
``bibgraph --json ego ...`` output can feed other commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from bibgraph.algorithms.extraction import extract_ego_network
from bibgraph.commands._base import BibCommand, graph_file

if TYPE_CHECKING:
    from bibgraph.commands._context import AppContext


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph ego citations.json W1
  bibgraph ego citations.json W1 W2 --radius 2
  bibgraph --json ego citations.json W1 --radius 2 --no-internal""",
)
@graph_file
@click.argument("seeds", nargs=-1, required=True)
@click.option("--radius", "-r", type=int, default=1, show_default=True, help="Maximum hops.")
@click.option(
    "--internal/--no-internal",
    default=True,
    show_default=True,
    help="Keep edges among nodes at the same hop distance.",
)
@click.pass_obj
def ego(
    app: AppContext, graph_path: Path, seeds: tuple[str, ...], radius: int, internal: bool
) -> None:
    """Nodes within --radius hops of any SEED, with the edges among them."""
    app.emit(
        extract_ego_network(
            app.load(graph_path), list(seeds), radius, include_internal_edges=internal
        )
    )
