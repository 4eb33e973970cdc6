"""Command: community detection."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from bibgraph.algorithms.clustering import (
    hierarchical_clustering,
    infomap,
    label_propagation,
    leiden,
    louvain,
    spectral_partition,
)
from bibgraph.commands._base import BibCommand, graph_file
from bibgraph.domain.types import Linkage

if TYPE_CHECKING:
    from bibgraph.commands._context import AppContext
    from bibgraph.graph.loader import BibGraph

ALGORITHMS = ("louvain", "leiden", "label-propagation", "infomap", "spectral", "hierarchical")


def _hierarchical(
    app: AppContext,
    graph: BibGraph,
    linkage: str | None,
    clusters: int | None,
    distance: str,
) -> None:
    cfg = app.settings.hierarchical
    result = hierarchical_clustering(
        graph, linkage=linkage or cfg.linkage, distance=distance, max_nodes=cfg.max_nodes
    )
    if not result.ok:
        app.emit(result)
    dendrogram = result.unwrap()
    wanted = cfg.clusters if clusters is None else clusters
    cut = dendrogram.cut_at_k(min(wanted, len(dendrogram.leaves)))
    if not cut.ok:
        app.emit(cut)
    app.emit(
        result.model_copy(
            update={
                "value": {
                    "linkage": dendrogram.linkage,
                    "distance": dendrogram.distance,
                    "heights": dendrogram.heights,
                    "clusters": cut.unwrap(),
                }
            }
        )
    )


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph communities citations.json
  bibgraph communities citations.json --algorithm leiden --resolution 1.5
  bibgraph communities citations.json --algorithm spectral --k 4 --seed 7
  bibgraph communities citations.json --algorithm hierarchical --linkage single --clusters 3
  bibgraph --json communities citations.json --algorithm infomap""",
)
@graph_file
@click.option(
    "--algorithm",
    "-a",
    type=click.Choice(ALGORITHMS),
    default="louvain",
    show_default=True,
    help="Community detection algorithm.",
)
@click.option("--resolution", type=float, default=None, help="Modularity resolution (γ).")
@click.option("--max-iterations", type=int, default=None, help="Cap on outer iterations.")
@click.option("--seed", type=int, default=None, help="Random seed (label propagation, spectral).")
@click.option("--k", "k", type=int, default=None, help="Partition count for spectral.")
@click.option(
    "--linkage",
    type=click.Choice([lk.value for lk in Linkage]),
    default=None,
    help="Hierarchical linkage.",
)
@click.option("--clusters", type=int, default=None, help="Flat cut size for hierarchical.")
@click.option(
    "--distance",
    type=click.Choice(["shortest_path", "jaccard"]),
    default="shortest_path",
    show_default=True,
    help="Graph-induced distance for hierarchical.",
)
@click.pass_obj
def communities(
    app: AppContext,
    graph_path: Path,
    algorithm: str,
    resolution: float | None,
    max_iterations: int | None,
    seed: int | None,
    k: int | None,
    linkage: str | None,
    clusters: int | None,
    distance: str,
) -> None:
    """Detect communities in GRAPH."""
    graph = app.load(graph_path)
    cfg = app.settings.clustering
    iterations = cfg.max_iterations if max_iterations is None else max_iterations

    if algorithm == "louvain":
        app.emit(
            louvain(
                graph,
                resolution=cfg.resolution if resolution is None else resolution,
                max_iterations=iterations,
                min_improvement=cfg.min_improvement,
            )
        )
    elif algorithm == "leiden":
        app.emit(
            leiden(
                graph,
                resolution=cfg.resolution if resolution is None else resolution,
                max_iterations=iterations,
                min_improvement=cfg.min_improvement,
            )
        )
    elif algorithm == "label-propagation":
        app.emit(
            label_propagation(
                graph,
                max_iterations=iterations,
                min_improvement=cfg.min_improvement,
                seed=seed if seed is not None else cfg.seed,
            )
        )
    elif algorithm == "infomap":
        app.emit(infomap(graph, max_iterations=iterations))
    elif algorithm == "spectral":
        spectral = app.settings.spectral
        app.emit(
            spectral_partition(
                graph,
                k=spectral.k if k is None else k,
                max_iterations=(
                    spectral.max_iterations if max_iterations is None else max_iterations
                ),
                min_improvement=spectral.min_improvement,
                n_init=spectral.n_init,
                seed=seed if seed is not None else spectral.seed,
                max_nodes=spectral.max_nodes,
            )
        )
    else:
        _hierarchical(app, graph, linkage, clusters, distance)
