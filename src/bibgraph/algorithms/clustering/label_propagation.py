"""Label propagation — asynchronous majority-label updates.

Nodes are visited in insertion order, or in a seeded shuffle when a
``seed`` is given. A node keeps its label when that label is among the
heaviest; otherwise ties go to the lowest label id. No density objective
is optimized, so communities carry no quality field.

A run stops once the fraction of nodes that changed label in a sweep is
at most ``min_improvement``; the default of 0 waits for a sweep with no
changes at all.
"""

from __future__ import annotations

import random
from typing import Any

from pydantic import BaseModel, Field

from bibgraph.algorithms._common import (
    CancelToken,
    WeightFn,
    cancelled,
    edge_weight,
    parse_options,
    require_nodes,
    symmetric_adjacency,
)
from bibgraph.algorithms.clustering._base import (
    ClusteringResult,
    build_result,
    convergence_warning,
)
from bibgraph.algorithms.telemetry import traced
from bibgraph.domain.result import Result, success
from bibgraph.graph.core import Graph


class LabelPropagationOptions(BaseModel):
    model_config = {"frozen": True}

    max_iterations: int = Field(default=100, ge=1)
    min_improvement: float = Field(default=0.0, ge=0, le=1)
    seed: int | None = None


def _pick_label(weights: dict[str, float], current: str) -> str:
    """Keep *current* if it is among the heaviest, else the lowest heaviest label."""
    heaviest = max(weights.values())
    if weights.get(current) == heaviest:
        return current
    return min(label for label, w in weights.items() if w == heaviest)


@traced
def label_propagation(
    graph: Graph[Any, Any],
    *,
    max_iterations: int = 100,
    min_improvement: float = 0.0,
    seed: int | None = None,
    weight_fn: WeightFn | None = None,
    cancel: CancelToken | None = None,
) -> Result[ClusteringResult]:
    """Iterate until labels settle or *max_iterations* sweeps have run."""
    opts = parse_options(
        LabelPropagationOptions,
        "label_propagation",
        max_iterations=max_iterations,
        min_improvement=min_improvement,
        seed=seed,
    )
    if isinstance(opts, Result):
        return opts
    if (err := require_nodes(graph, "label_propagation")) is not None:
        return err

    adjacency = symmetric_adjacency(graph, weight_fn or edge_weight)
    labels = {nid: nid for nid in adjacency}
    order = list(adjacency)
    rng = random.Random(opts.seed) if opts.seed is not None else None

    iterations = 0
    converged = False
    while iterations < opts.max_iterations:
        if (err := cancelled("label_propagation", cancel, iterations)) is not None:
            return err
        iterations += 1
        if rng is not None:
            rng.shuffle(order)
        changes = 0
        for node in order:
            weights: dict[str, float] = {}
            for neighbor, w in adjacency[node].items():
                weights[labels[neighbor]] = weights.get(labels[neighbor], 0.0) + w
            if not weights:
                continue
            label = _pick_label(weights, labels[node])
            if label != labels[node]:
                labels[node] = label
                changes += 1
        if changes / len(order) <= opts.min_improvement:
            converged = True
            break

    grouped: dict[str, list[str]] = {}
    for node, label in labels.items():
        grouped.setdefault(label, []).append(node)

    result = build_result(
        graph,
        adjacency,
        list(grouped.values()),
        algorithm="label_propagation",
        quality=None,
        iterations=iterations,
        converged=converged,
        parameters=opts.model_dump(),
    )
    partial = None if converged else convergence_warning("label_propagation", iterations)
    return success("label_propagation", result, partial=partial)
