"""Spectral partitioning — normalized Laplacian embedding plus k-means.

The rows of the k smallest non-trivial eigenvectors of
L = I − D^{-1/2} A D^{-1/2} are row-normalized and clustered with
seeded k-means++ / Lloyd iterations. Eigenvector signs are fixed so the
largest-magnitude entry of each vector is positive, which keeps the
embedding, and hence the partition, reproducible.

Lloyd's algorithm only finds a local optimum, so it is restarted
``n_init`` times from fresh k-means++ seeds drawn from one generator;
the run with the lowest inertia wins (the first one on ties).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from pydantic import BaseModel, Field

from bibgraph.algorithms._common import (
    CancelToken,
    WeightFn,
    cancelled,
    edge_weight,
    limit_nodes,
    parse_options,
    require_nodes,
    symmetric_adjacency,
)
from bibgraph.algorithms.clustering._base import (
    ClusteringResult,
    build_result,
    convergence_warning,
)
from bibgraph.algorithms.telemetry import trace_span, traced
from bibgraph.domain.result import Result, success
from bibgraph.graph.core import Graph


class SpectralOptions(BaseModel):
    model_config = {"frozen": True}

    k: int = Field(default=2, ge=2)
    max_iterations: int = Field(default=100, ge=1)
    min_improvement: float = Field(default=1e-9, ge=0)
    n_init: int = Field(default=10, ge=1)
    seed: int = 42
    max_nodes: int | None = Field(default=5000, ge=1)


@dataclass
class _Run:
    labels: np.ndarray
    inertia: float
    iterations: int
    converged: bool


def _embedding(matrix: np.ndarray, k: int) -> np.ndarray:
    degree = matrix.sum(axis=1)
    inv_sqrt = np.zeros_like(degree)
    nonzero = degree > 0
    inv_sqrt[nonzero] = 1.0 / np.sqrt(degree[nonzero])
    laplacian = np.eye(len(degree)) - inv_sqrt[:, None] * matrix * inv_sqrt[None, :]
    _, vectors = np.linalg.eigh(laplacian)
    embedding = vectors[:, 1 : k + 1].copy()
    for col in range(embedding.shape[1]):
        pivot = np.argmax(np.abs(embedding[:, col]))
        if embedding[pivot, col] < 0:
            embedding[:, col] *= -1
    norms = np.linalg.norm(embedding, axis=1)
    norms[norms == 0] = 1.0
    return embedding / norms[:, None]


def _kmeans_plus_plus(points: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    n = len(points)
    chosen = [int(rng.integers(n))]
    for _ in range(1, k):
        sq = np.min(((points[:, None, :] - points[chosen][None, :, :]) ** 2).sum(axis=2), axis=1)
        total = sq.sum()
        if total <= 0:
            chosen.append(next(i for i in range(n) if i not in chosen))
        else:
            chosen.append(int(rng.choice(n, p=sq / total)))
    return points[chosen].copy()


def _assign(points: np.ndarray, centers: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    distances = ((points[:, None, :] - centers[None, :, :]) ** 2).sum(axis=2)
    labels = np.argmin(distances, axis=1)
    return labels, distances[np.arange(len(points)), labels]


def _lloyd(
    points: np.ndarray,
    centers: np.ndarray,
    opts: SpectralOptions,
    cancel: CancelToken | None,
    iterations_done: int,
) -> _Run | Result[Any]:
    labels = np.full(len(points), -1)
    inertia = np.inf
    iterations = 0
    while iterations < opts.max_iterations:
        err = cancelled("spectral_partition", cancel, iterations_done + iterations)
        if err is not None:
            return err
        iterations += 1
        new_labels, distances = _assign(points, centers)
        new_inertia = float(distances.sum())
        if np.array_equal(new_labels, labels) or inertia - new_inertia < opts.min_improvement:
            return _Run(new_labels, new_inertia, iterations, converged=True)
        labels, inertia = new_labels, new_inertia
        for cluster in range(opts.k):
            mask = labels == cluster
            if mask.any():
                centers[cluster] = points[mask].mean(axis=0)
            else:
                centers[cluster] = points[int(np.argmax(distances))]
    return _Run(labels, inertia, iterations, converged=False)


@traced
def spectral_partition(
    graph: Graph[Any, Any],
    *,
    k: int = 2,
    max_iterations: int = 100,
    min_improvement: float = 1e-9,
    n_init: int = 10,
    seed: int = 42,
    max_nodes: int | None = 5000,
    weight_fn: WeightFn | None = None,
    cancel: CancelToken | None = None,
) -> Result[ClusteringResult]:
    """Split the graph into at most *k* partitions.

    Fails with ``INSUFFICIENT_NODES`` when the graph has fewer than *k*
    nodes. Each community reports its ``edge_cut`` (edges leaving it);
    ``balance`` is smallest size over largest size. ``max_iterations``
    and ``min_improvement`` bound each Lloyd run. The embedding is dense,
    so graphs above *max_nodes* fail with ``GRAPH_TOO_LARGE`` (None lifts
    the limit).
    """
    opts = parse_options(
        SpectralOptions,
        "spectral_partition",
        k=k,
        max_iterations=max_iterations,
        min_improvement=min_improvement,
        n_init=n_init,
        seed=seed,
        max_nodes=max_nodes,
    )
    if isinstance(opts, Result):
        return opts
    if (err := require_nodes(graph, "spectral_partition", minimum=opts.k)) is not None:
        return err
    if (err := limit_nodes(graph, "spectral_partition", opts.max_nodes)) is not None:
        return err

    adjacency = symmetric_adjacency(graph, weight_fn or edge_weight)
    ids = list(adjacency)
    n = len(ids)
    index = {nid: i for i, nid in enumerate(ids)}

    if n == opts.k:
        best = _Run(np.arange(n), 0.0, 0, converged=True)
    else:
        matrix = np.zeros((n, n))
        for u, nbrs in adjacency.items():
            for v, w in nbrs.items():
                matrix[index[u], index[v]] = w

        with trace_span("embed"):
            points = _embedding(matrix, opts.k)

        rng = np.random.default_rng(opts.seed)
        best = None
        total_iterations = 0
        with trace_span("kmeans") as span:
            for _ in range(opts.n_init):
                run = _lloyd(
                    points, _kmeans_plus_plus(points, opts.k, rng), opts, cancel, total_iterations
                )
                if isinstance(run, Result):
                    return run
                total_iterations += run.iterations
                if best is None or run.inertia < best.inertia:
                    best = run
            if span:
                span.annotate("iterations", total_iterations)
                span.annotate("inertia", best.inertia)  # type: ignore[union-attr]
        assert best is not None

    grouped: dict[int, list[str]] = {}
    for nid, label in zip(ids, best.labels.tolist(), strict=True):
        grouped.setdefault(label, []).append(nid)
    sizes = [len(g) for g in grouped.values()]

    result = build_result(
        graph,
        adjacency,
        list(grouped.values()),
        algorithm="spectral",
        quality="edge_cut",
        iterations=best.iterations,
        converged=best.converged,
        parameters=opts.model_dump(),
        balance=min(sizes) / max(sizes),
    )
    partial = (
        None if best.converged else convergence_warning("spectral_partition", best.iterations)
    )
    return success("spectral_partition", result, partial=partial)
