"""Agglomerative hierarchical clustering over a graph-induced distance.

Distances come from the undirected view of the graph:

* ``shortest_path`` — hop distance; disconnected pairs sit at distance
  ``n`` so every node still merges into a single root.
* ``jaccard`` — 1 − |N(u) ∩ N(v)| / |N(u) ∪ N(v)| over neighbor sets.

Merges follow the Lance–Williams updates for single, complete and
average linkage. Leaves are numbered 0..n-1 in insertion order; the
cluster formed by merge *i* gets id ``n + i``.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Literal, TypeAlias

import numpy as np
from pydantic import BaseModel, Field

from bibgraph.algorithms._common import (
    Adjacency,
    limit_nodes,
    parse_options,
    require_nodes,
    symmetric_adjacency,
)
from bibgraph.algorithms.telemetry import trace_span, traced
from bibgraph.domain.result import Result, failure, success
from bibgraph.domain.types import ErrorCode, Linkage
from bibgraph.graph.core import Graph

DistanceKind: TypeAlias = Literal["shortest_path", "jaccard"]


class Merge(BaseModel):
    model_config = {"frozen": True}

    cluster1: int
    cluster2: int
    distance: float
    size: int


class Dendrogram(BaseModel):
    """Merge tree over ``leaves``; supports flat cuts by height or cluster count."""

    model_config = {"frozen": True}

    leaves: list[str]
    merges: list[Merge]
    linkage: Linkage
    distance: str

    @property
    def heights(self) -> list[float]:
        return [m.distance for m in self.merges]

    def _partition(self, merge_count: int) -> list[list[str]]:
        n = len(self.leaves)
        parent = list(range(n + merge_count))

        def find(x: int) -> int:
            while parent[x] != x:
                parent[x] = parent[parent[x]]
                x = parent[x]
            return x

        for i, merge in enumerate(self.merges[:merge_count]):
            parent[find(merge.cluster1)] = n + i
            parent[find(merge.cluster2)] = n + i
        grouped: dict[int, list[str]] = {}
        for leaf, nid in enumerate(self.leaves):
            grouped.setdefault(find(leaf), []).append(nid)
        return list(grouped.values())

    def cut_at_height(self, height: float) -> list[list[str]]:
        """Clusters formed by every merge at distance <= *height*."""
        count = 0
        for merge in self.merges:
            if merge.distance > height:
                break
            count += 1
        return self._partition(count)

    def cut_at_k(self, k: int) -> Result[list[list[str]]]:
        """Exactly *k* clusters; ``INVALID_INPUT`` unless 1 <= k <= len(leaves)."""
        n = len(self.leaves)
        if not 1 <= k <= n:
            return failure(
                "cut_at_k", ErrorCode.INVALID_INPUT, f"k must be in [1, {n}], got {k}", k=k
            )
        return success("cut_at_k", self._partition(n - k))


class HierarchicalOptions(BaseModel):
    model_config = {"frozen": True}

    linkage: Linkage = Linkage.AVERAGE
    distance: DistanceKind = "shortest_path"
    max_nodes: int | None = Field(default=5000, ge=1)


def _hop_distances(adjacency: Adjacency, ids: list[str]) -> np.ndarray:
    n = len(ids)
    index = {nid: i for i, nid in enumerate(ids)}
    matrix = np.full((n, n), float(n))
    for source in ids:
        row = index[source]
        matrix[row, row] = 0.0
        seen = {source: 0}
        queue: deque[str] = deque([source])
        while queue:
            node = queue.popleft()
            for neighbor in adjacency[node]:
                if neighbor not in seen:
                    seen[neighbor] = seen[node] + 1
                    matrix[row, index[neighbor]] = seen[neighbor]
                    queue.append(neighbor)
    return matrix


def _jaccard_distances(adjacency: Adjacency, ids: list[str]) -> np.ndarray:
    n = len(ids)
    neighbors = [set(adjacency[nid]) for nid in ids]
    matrix = np.zeros((n, n))
    for i in range(n):
        for j in range(i + 1, n):
            union = len(neighbors[i] | neighbors[j])
            shared = len(neighbors[i] & neighbors[j])
            matrix[i, j] = matrix[j, i] = 1.0 - shared / union if union else 1.0
    return matrix


@traced
def hierarchical_clustering(
    graph: Graph[Any, Any],
    *,
    linkage: Linkage | str = Linkage.AVERAGE,
    distance: DistanceKind = "shortest_path",
    max_nodes: int | None = 5000,
) -> Result[Dendrogram]:
    """Build the full agglomerative dendrogram.

    Ties between equally close pairs resolve to the lowest (row, column)
    active-cluster pair. Graphs above *max_nodes* fail with
    ``GRAPH_TOO_LARGE`` before the distance matrix is allocated.
    """
    opts = parse_options(
        HierarchicalOptions,
        "hierarchical_clustering",
        linkage=linkage,
        distance=distance,
        max_nodes=max_nodes,
    )
    if isinstance(opts, Result):
        return opts
    if (err := require_nodes(graph, "hierarchical_clustering")) is not None:
        return err
    if (err := limit_nodes(graph, "hierarchical_clustering", opts.max_nodes)) is not None:
        return err

    adjacency = symmetric_adjacency(graph)
    ids = list(adjacency)
    n = len(ids)
    with trace_span("distances"):
        if opts.distance == "jaccard":
            dist = _jaccard_distances(adjacency, ids)
        else:
            dist = _hop_distances(adjacency, ids)

    np.fill_diagonal(dist, np.inf)
    cluster_id = list(range(n))
    sizes = [1] * n
    active = np.ones(n, dtype=bool)
    merges: list[Merge] = []

    with trace_span("merge"):
        for step in range(n - 1):
            masked = np.where(active[:, None] & active[None, :], dist, np.inf)
            flat = int(np.argmin(masked))
            i, j = divmod(flat, n)
            if i > j:
                i, j = j, i
            d_ij = float(dist[i, j])
            size_i, size_j = sizes[i], sizes[j]
            merges.append(
                Merge(
                    cluster1=cluster_id[i],
                    cluster2=cluster_id[j],
                    distance=d_ij,
                    size=size_i + size_j,
                )
            )
            if opts.linkage == Linkage.SINGLE:
                row = np.minimum(dist[i], dist[j])
            elif opts.linkage == Linkage.COMPLETE:
                row = np.maximum(dist[i], dist[j])
            else:
                row = (size_i * dist[i] + size_j * dist[j]) / (size_i + size_j)
            dist[i, :] = row
            dist[:, i] = row
            dist[i, i] = np.inf
            active[j] = False
            sizes[i] = size_i + size_j
            cluster_id[i] = n + step

    return success(
        "hierarchical_clustering",
        Dendrogram(leaves=ids, merges=merges, linkage=opts.linkage, distance=opts.distance),
    )
