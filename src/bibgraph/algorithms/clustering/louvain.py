"""Louvain — two-phase greedy modularity optimization.

Phase 1 moves each node, in insertion order, into the neighboring
community with the largest ΔQ; phase 2 collapses communities into
super-nodes and repeats. Communities report their density.
"""

from __future__ import annotations

from typing import Any

from bibgraph.algorithms._common import (
    CancelToken,
    WeightFn,
    edge_weight,
    parse_options,
    require_nodes,
    symmetric_adjacency,
)
from bibgraph.algorithms.clustering._base import (
    ClusteringResult,
    CommunityOptions,
    Level,
    ModularityObjective,
    build_result,
    convergence_warning,
    multilevel,
)
from bibgraph.algorithms.telemetry import trace_span, traced
from bibgraph.domain.result import Result, success
from bibgraph.graph.core import Graph


@traced
def louvain(
    graph: Graph[Any, Any],
    *,
    resolution: float = 1.0,
    max_iterations: int = 100,
    min_improvement: float = 1e-7,
    weight_fn: WeightFn | None = None,
    cancel: CancelToken | None = None,
) -> Result[ClusteringResult]:
    """Detect communities by maximizing modularity.

    Args:
        graph: Graph to partition; directed graphs are symmetrized.
        resolution: γ in the null-model penalty; higher values favour
            smaller communities.
        max_iterations: Cap on local-moving passes per level.
        min_improvement: Smallest ΔQ that counts as an improving move.
        weight_fn: Edge weight; defaults to the edge's ``weight`` field.
        cancel: Checked between passes.
    """
    opts = parse_options(
        CommunityOptions,
        "louvain",
        resolution=resolution,
        max_iterations=max_iterations,
        min_improvement=min_improvement,
    )
    if isinstance(opts, Result):
        return opts
    if (err := require_nodes(graph, "louvain")) is not None:
        return err

    adjacency = symmetric_adjacency(graph, weight_fn or edge_weight)
    level = Level.from_adjacency(adjacency)
    parameters = opts.model_dump()

    if level.total_weight == 0:
        return success(
            "louvain",
            build_result(
                graph,
                adjacency,
                level.members,
                algorithm="louvain",
                quality="density",
                iterations=0,
                converged=True,
                resolution=opts.resolution,
                parameters=parameters,
            ),
        )

    with trace_span("optimize") as span:
        outcome = multilevel(
            level,
            ModularityObjective(opts.resolution),
            op="louvain",
            min_improvement=opts.min_improvement,
            max_iterations=opts.max_iterations,
            cancel=cancel,
        )
        if isinstance(outcome, Result):
            return outcome
        if span:
            span.annotate("levels", outcome.levels)
            span.annotate("iterations", outcome.iterations)

    result = build_result(
        graph,
        adjacency,
        outcome.groups,
        algorithm="louvain",
        quality="density",
        iterations=outcome.iterations,
        converged=outcome.converged,
        resolution=opts.resolution,
        levels=outcome.levels,
        parameters=parameters,
    )
    partial = None if outcome.converged else convergence_warning("louvain", outcome.iterations)
    return success("louvain", result, partial=partial)
