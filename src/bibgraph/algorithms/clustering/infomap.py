"""Infomap — two-level map equation minimized with the Louvain scaffold.

Flow is modelled as an undirected random walk (visit rate proportional
to weighted degree), so directed citation graphs are symmetrized first.
The returned communities are Infomap "modules"; ``codelength`` is the
description length in bits of the final partition.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

from bibgraph.algorithms._common import (
    Adjacency,
    CancelToken,
    WeightFn,
    edge_weight,
    parse_options,
    require_nodes,
    symmetric_adjacency,
)
from bibgraph.algorithms.clustering._base import (
    ClusteringResult,
    Level,
    MapEquationObjective,
    build_result,
    convergence_warning,
    multilevel,
    plogp,
)
from bibgraph.algorithms.telemetry import trace_span, traced
from bibgraph.domain.result import Result, success
from bibgraph.graph.core import Graph


class InfomapOptions(BaseModel):
    model_config = {"frozen": True}

    max_iterations: int = Field(default=100, ge=1)
    min_improvement: float = Field(default=1e-10, ge=0)


def codelength(adjacency: Adjacency, groups: Sequence[Sequence[str]]) -> float:
    """Two-level map-equation codelength (bits) of *groups* on *adjacency*."""
    degree = {u: sum(nbrs.values()) for u, nbrs in adjacency.items()}
    m2 = sum(degree.values())
    if m2 == 0:
        return 0.0
    module_of = {nid: i for i, members in enumerate(groups) for nid in members}
    exits: list[float] = []
    flows: list[float] = []
    for i, members in enumerate(groups):
        volume = sum(degree[nid] for nid in members)
        cut = sum(
            w for nid in members for v, w in adjacency[nid].items() if module_of.get(v) != i
        )
        exits.append(cut / m2)
        flows.append(volume / m2)
    return (
        plogp(sum(exits))
        - 2 * sum(plogp(q) for q in exits)
        + sum(plogp(q + p) for q, p in zip(exits, flows, strict=True))
        - sum(plogp(d / m2) for d in degree.values())
    )


@traced
def infomap(
    graph: Graph[Any, Any],
    *,
    max_iterations: int = 100,
    min_improvement: float = 1e-10,
    weight_fn: WeightFn | None = None,
    cancel: CancelToken | None = None,
) -> Result[ClusteringResult]:
    """Find modules minimizing the expected description length of a random walk."""
    opts = parse_options(
        InfomapOptions, "infomap", max_iterations=max_iterations, min_improvement=min_improvement
    )
    if isinstance(opts, Result):
        return opts
    if (err := require_nodes(graph, "infomap")) is not None:
        return err

    adjacency = symmetric_adjacency(graph, weight_fn or edge_weight)
    level = Level.from_adjacency(adjacency)
    groups = level.members
    iterations, converged, levels = 0, True, 1

    if level.total_weight > 0:
        with trace_span("optimize") as span:
            outcome = multilevel(
                level,
                MapEquationObjective(),
                op="infomap",
                min_improvement=opts.min_improvement,
                max_iterations=opts.max_iterations,
                cancel=cancel,
            )
            if isinstance(outcome, Result):
                return outcome
            groups = outcome.groups
            iterations, converged, levels = outcome.iterations, outcome.converged, outcome.levels
            if span:
                span.annotate("levels", levels)

    result = build_result(
        graph,
        adjacency,
        groups,
        algorithm="infomap",
        quality=None,
        iterations=iterations,
        converged=converged,
        levels=levels,
        parameters=opts.model_dump(),
        codelength=codelength(adjacency, groups),
    )
    partial = None if converged else convergence_warning("infomap", iterations)
    return success("infomap", result, partial=partial)
