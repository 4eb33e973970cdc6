"""Commands: structural decomposition."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from bibgraph.algorithms.decomposition import (
    biconnected_components,
    core_periphery,
    extract_k_core,
    extract_k_truss,
    k_core_decomposition,
)
from bibgraph.commands._base import BibCommand, graph_file

if TYPE_CHECKING:
    from bibgraph.commands._context import AppContext


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph kcore citations.json
  bibgraph kcore citations.json --k 3""",
)
@graph_file
@click.option("--k", "k", type=int, default=None, help="Extract the k-core subgraph.")
@click.pass_obj
def kcore(app: AppContext, graph_path: Path, k: int | None) -> None:
    """Per-node coreness, or the k-core itself with --k."""
    graph = app.load(graph_path)
    if k is None:
        app.emit(k_core_decomposition(graph))
    else:
        app.emit(extract_k_core(graph, k))


@click.command(
    name="core-periphery",
    cls=BibCommand,
    examples="""\
  bibgraph core-periphery collaboration.json
  bibgraph --json core-periphery collaboration.json""",
)
@graph_file
@click.option("--max-iterations", type=int, default=None, help="Power-iteration cap.")
@click.pass_obj
def core_periphery_cmd(app: AppContext, graph_path: Path, max_iterations: int | None) -> None:
    """Split nodes into a dense core and a sparse periphery."""
    cfg = app.settings.decomposition
    app.emit(
        core_periphery(
            app.load(graph_path),
            max_iterations=cfg.max_iterations if max_iterations is None else max_iterations,
        )
    )


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph biconnected collaboration.json""",
)
@graph_file
@click.pass_obj
def biconnected(app: AppContext, graph_path: Path) -> None:
    """Biconnected components, bridges, and articulation points."""
    app.emit(biconnected_components(app.load(graph_path)))


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph truss collaboration.json
  bibgraph truss collaboration.json 4""",
)
@graph_file
@click.argument("k", type=int, required=False)
@click.pass_obj
def truss(app: AppContext, graph_path: Path, k: int | None) -> None:
    """Extract the K-truss (every edge in at least K-2 triangles)."""
    graph = app.load(graph_path)
    app.emit(extract_k_truss(graph, app.settings.decomposition.truss_k if k is None else k))
