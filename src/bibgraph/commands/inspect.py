"""Commands: graph summary, traversal, and pathfinding."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import click

from bibgraph.algorithms.pathfinding import dijkstra, shortest_path_unweighted
from bibgraph.algorithms.traversal import (
    connected_components,
    detect_cycle,
    strongly_connected_components,
    topological_sort,
)
from bibgraph.commands._base import BibCommand, graph_file
from bibgraph.domain.entities import edge_property
from bibgraph.domain.result import success

if TYPE_CHECKING:
    from bibgraph.commands._context import AppContext


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph info citations.json
  bibgraph --json info citations.json""",
)
@graph_file
@click.pass_obj
def info(app: AppContext, graph_path: Path) -> None:
    """Summarize node and edge counts by type."""
    graph = app.load(graph_path)
    app.emit(
        success(
            "info",
            {
                "directed": graph.is_directed(),
                "nodes": graph.get_node_count(),
                "edges": graph.get_edge_count(),
                "node_types": dict(Counter(n.type for n in graph.get_all_nodes())),
                "edge_types": dict(Counter(e.type for e in graph.get_all_edges())),
            },
        )
    )


def _min_score(threshold: float) -> Callable[[object], bool]:
    def passes(edge: object) -> bool:
        score = edge_property(edge, "score")
        return score is not None and float(score) >= threshold

    return passes


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph path citations.json W1 W9
  bibgraph path citations.json W1 W9 --weight-property score --invert
  bibgraph path citations.json W1 W9 --node-type work --min-score 0.5
  bibgraph path citations.json W1 W9 --unweighted""",
)
@graph_file
@click.argument("source")
@click.argument("target")
@click.option("--weight-property", default=None, help="Edge field to use as weight.")
@click.option("--invert", is_flag=True, help="Use 1/value so higher is shorter.")
@click.option("--node-type", "node_types", multiple=True, help="Only traverse these node types.")
@click.option("--min-score", type=float, default=None, help="Skip edges scoring below this.")
@click.option("--unweighted", is_flag=True, help="Fewest hops (BFS) instead of Dijkstra.")
@click.pass_obj
def path(
    app: AppContext,
    graph_path: Path,
    source: str,
    target: str,
    weight_property: str | None,
    invert: bool,
    node_types: tuple[str, ...],
    min_score: float | None,
    unweighted: bool,
) -> None:
    """Find the shortest path between SOURCE and TARGET."""
    graph = app.load(graph_path)
    if unweighted:
        app.emit(shortest_path_unweighted(graph, source, target))
        return

    cfg = app.settings.pathfinding
    predicate = _min_score(min_score) if min_score is not None else None
    app.emit(
        dijkstra(
            graph,
            source,
            target,
            weight_property=weight_property or cfg.weight_property,
            invert=invert or cfg.invert,
            epsilon=cfg.epsilon,
            default_weight=cfg.default_weight,
            node_types=node_types or None,
            edge_predicate=predicate,
        )
    )


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph components citations.json
  bibgraph components citations.json --strong""",
)
@graph_file
@click.option("--strong", is_flag=True, help="Strongly connected components (directed graphs).")
@click.pass_obj
def components(app: AppContext, graph_path: Path, strong: bool) -> None:
    """Partition nodes into connected components."""
    graph = app.load(graph_path)
    if strong:
        app.emit(strongly_connected_components(graph))
    else:
        app.emit(connected_components(graph))


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph cycles citations.json""",
)
@graph_file
@click.pass_obj
def cycles(app: AppContext, graph_path: Path) -> None:
    """Report whether the graph has a cycle, and one if so."""
    app.emit(detect_cycle(app.load(graph_path)))


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph toposort citations.json
  bibgraph --json toposort citations.json""",
)
@graph_file
@click.pass_obj
def toposort(app: AppContext, graph_path: Path) -> None:
    """Order nodes so every edge points forward (fails on cycles)."""
    app.emit(topological_sort(app.load(graph_path)))
