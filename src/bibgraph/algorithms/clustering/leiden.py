"""Leiden — Louvain with a refinement phase.

Each level runs local moving, then refines every community by greedily
merging singletons into connected sub-communities of the same community.
The graph is aggregated on the refined partition while the unrefined
partition seeds the next level. Any community that still ends up
disconnected is split into its connected pieces, so every returned
community induces a connected subgraph. Communities report conductance.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

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
    CommunityOptions,
    Level,
    ModularityObjective,
    aggregate,
    build_result,
    convergence_warning,
    local_moving,
    relabel,
)
from bibgraph.algorithms.telemetry import trace_span, traced
from bibgraph.domain.result import Result, success
from bibgraph.graph.core import Graph


def _refine(level: Level, membership: Sequence[int], resolution: float) -> list[int]:
    """Merge singleton nodes into the best adjacent sub-community of their community."""
    m2 = level.total_weight
    refined = list(range(level.size))
    tot = list(level.degree)
    size = [1] * level.size
    for v in range(level.size):
        if size[refined[v]] != 1:
            continue
        links: dict[int, float] = {}
        for u, w in level.adj[v].items():
            if membership[u] == membership[v]:
                links[refined[u]] = links.get(refined[u], 0.0) + w
        best, best_gain = -1, 0.0
        for cluster, weight in links.items():
            if cluster == refined[v]:
                continue
            gain = 2 * weight / m2 - 2 * resolution * tot[cluster] * level.degree[v] / m2**2
            if gain > best_gain:
                best, best_gain = cluster, gain
        if best >= 0:
            tot[refined[v]] -= level.degree[v]
            size[refined[v]] -= 1
            refined[v] = best
            tot[best] += level.degree[v]
            size[best] += 1
    return refined


def _split_disconnected(adjacency: Adjacency, groups: list[list[str]]) -> list[list[str]]:
    pieces: list[list[str]] = []
    for members in groups:
        remaining = dict.fromkeys(members)
        while remaining:
            start = next(iter(remaining))
            del remaining[start]
            piece = [start]
            stack = [start]
            while stack:
                node = stack.pop()
                for neighbor in adjacency[node]:
                    if neighbor in remaining:
                        del remaining[neighbor]
                        piece.append(neighbor)
                        stack.append(neighbor)
            pieces.append(piece)
    return pieces


@traced
def leiden(
    graph: Graph[Any, Any],
    *,
    resolution: float = 1.0,
    max_iterations: int = 100,
    min_improvement: float = 1e-7,
    weight_fn: WeightFn | None = None,
    cancel: CancelToken | None = None,
) -> Result[ClusteringResult]:
    """Detect well-connected communities by modularity optimization.

    Accepts the same options as :func:`~bibgraph.algorithms.clustering.louvain.louvain`.
    """
    opts = parse_options(
        CommunityOptions,
        "leiden",
        resolution=resolution,
        max_iterations=max_iterations,
        min_improvement=min_improvement,
    )
    if isinstance(opts, Result):
        return opts
    if (err := require_nodes(graph, "leiden")) is not None:
        return err

    adjacency = symmetric_adjacency(graph, weight_fn or edge_weight)
    level = Level.from_adjacency(adjacency)
    objective = ModularityObjective(opts.resolution)
    membership = list(range(level.size))
    iterations = 0
    converged = True
    levels = 0

    with trace_span("optimize") as span:
        while level.total_weight > 0:
            stats = local_moving(
                level,
                membership,
                objective,
                op="leiden",
                min_improvement=opts.min_improvement,
                max_passes=opts.max_iterations,
                cancel=cancel,
                iterations_done=iterations,
            )
            if isinstance(stats, Result):
                return stats
            iterations += stats.passes
            converged = converged and stats.converged
            levels += 1

            refined = _refine(level, membership, opts.resolution)
            labels = relabel(refined)
            if max(labels) + 1 == level.size:
                break
            seeded = [0] * (max(labels) + 1)
            for v, label in enumerate(labels):
                seeded[label] = membership[v]
            level = aggregate(level, refined)
            membership = relabel(seeded)
        if span:
            span.annotate("levels", levels)
            span.annotate("iterations", iterations)

    grouped: dict[int, list[str]] = {}
    for v, community in enumerate(membership):
        grouped.setdefault(community, []).extend(level.members[v])
    groups = _split_disconnected(adjacency, list(grouped.values()))

    result = build_result(
        graph,
        adjacency,
        groups,
        algorithm="leiden",
        quality="conductance",
        iterations=iterations,
        converged=converged,
        resolution=opts.resolution,
        levels=max(levels, 1),
        parameters=opts.model_dump(),
    )
    partial = None if converged else convergence_warning("leiden", iterations)
    return success("leiden", result, partial=partial)
