"""Partition quality metrics — modularity, conductance, density, coverage.

Pure, side-effect-free functions over a Graph plus node sets. Directed
graphs are scored on their symmetric (undirected) weighted view. The
``_``-prefixed kernels work on a prebuilt adjacency and are shared with
the clustering algorithms.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from bibgraph.algorithms._common import Adjacency, WeightFn, symmetric_adjacency
from bibgraph.algorithms.telemetry import traced
from bibgraph.domain.result import Result, failure, success
from bibgraph.domain.types import ErrorCode
from bibgraph.graph.core import Graph


class ClusterMetrics(BaseModel):
    """Aggregate quality of a whole partition."""

    model_config = {"frozen": True}

    modularity: float
    coverage: float
    average_conductance: float
    average_density: float
    community_count: int


# ------------------------------------------------------------------
# Kernels
# ------------------------------------------------------------------


def _membership(partition: Sequence[Iterable[str]]) -> dict[str, int]:
    membership: dict[str, int] = {}
    for index, members in enumerate(partition):
        for node_id in members:
            membership[node_id] = index
    return membership


def _modularity(adjacency: Adjacency, membership: dict[str, int], resolution: float) -> float:
    """Q = Σ_c [L_c / m − γ (d_c / 2m)²]; nodes without a label are singletons."""
    two_m = sum(sum(nbrs.values()) for nbrs in adjacency.values())
    if two_m == 0:
        return 0.0
    internal: dict[Any, float] = {}
    degree_sum: dict[Any, float] = {}
    for u, nbrs in adjacency.items():
        cu = membership.get(u, ("singleton", u))
        degree_sum[cu] = degree_sum.get(cu, 0.0) + sum(nbrs.values())
        for v, w in nbrs.items():
            if membership.get(v, ("singleton", v)) == cu:
                internal[cu] = internal.get(cu, 0.0) + w
    q = 0.0
    for c, d in degree_sum.items():
        q += internal.get(c, 0.0) / two_m - resolution * (d / two_m) ** 2
    return q


def _conductance(adjacency: Adjacency, members: set[str]) -> float:
    cut = 0.0
    volume = 0.0
    total = 0.0
    for u, nbrs in adjacency.items():
        degree = sum(nbrs.values())
        total += degree
        if u in members:
            volume += degree
            cut += sum(w for v, w in nbrs.items() if v not in members)
    denominator = min(volume, total - volume)
    if denominator <= 0:
        return 0.0
    return cut / denominator


def _density(adjacency: Adjacency, members: set[str]) -> float:
    size = len(members)
    if size < 2:
        return 0.0
    pairs = sum(1 for u in members for v in adjacency.get(u, {}) if v in members) / 2
    return 2 * pairs / (size * (size - 1))


@dataclass
class PartStats:
    """Per-community tallies gathered in one pass over edges and adjacency.

    ``pairs`` counts ordered adjacency entries with both ends inside, so
    each undirected neighbor pair is seen twice.
    """

    size: int = 0
    internal_edges: int = 0
    external_edges: int = 0
    cut: float = 0.0
    volume: float = 0.0
    pairs: int = 0

    def conductance(self, total_volume: float) -> float:
        denominator = min(self.volume, total_volume - self.volume)
        if denominator <= 0:
            return 0.0
        return self.cut / denominator

    def density(self) -> float:
        if self.size < 2:
            return 0.0
        return self.pairs / (self.size * (self.size - 1))


def _part_stats(
    graph: Graph[Any, Any], adjacency: Adjacency, membership: dict[str, int], count: int
) -> tuple[list[PartStats], float]:
    """Tally every community at once; returns the stats and the total volume."""
    stats = [PartStats() for _ in range(count)]
    for index in membership.values():
        stats[index].size += 1
    for edge in graph.get_all_edges():
        source = membership.get(edge.source)
        target = membership.get(edge.target)
        if source is not None and source == target:
            stats[source].internal_edges += 1
            continue
        if source is not None:
            stats[source].external_edges += 1
        if target is not None:
            stats[target].external_edges += 1
    total = 0.0
    for u, nbrs in adjacency.items():
        degree = sum(nbrs.values())
        total += degree
        index = membership.get(u)
        if index is None:
            continue
        part = stats[index]
        part.volume += degree
        for v, w in nbrs.items():
            if membership.get(v) == index:
                part.pairs += 1
            else:
                part.cut += w
    return stats, total


def _validate_partition(
    graph: Graph[Any, Any], partition: Sequence[Iterable[str]], op: str
) -> Result[Any] | None:
    seen: set[str] = set()
    for members in partition:
        for node_id in members:
            if node_id not in graph:
                return failure(
                    op,
                    ErrorCode.INVALID_INPUT,
                    f"Partition references unknown node '{node_id}'",
                    node_id=node_id,
                )
            if node_id in seen:
                return failure(
                    op,
                    ErrorCode.INVALID_INPUT,
                    f"Node '{node_id}' appears in more than one community",
                    node_id=node_id,
                )
            seen.add(node_id)
    return None


# ------------------------------------------------------------------
# Public metrics
# ------------------------------------------------------------------


@traced
def modularity(
    graph: Graph[Any, Any],
    communities: Sequence[Iterable[str]],
    *,
    resolution: float = 1.0,
    weight_fn: WeightFn | None = None,
) -> Result[float]:
    """Newman modularity of *communities* with resolution γ.

    Nodes absent from every community count as singletons.
    """
    partition = [list(c) for c in communities]
    if (err := _validate_partition(graph, partition, "modularity")) is not None:
        return err
    if resolution <= 0:
        return failure("modularity", ErrorCode.INVALID_INPUT, "resolution must be positive")
    adjacency = symmetric_adjacency(graph, weight_fn)
    return success("modularity", _modularity(adjacency, _membership(partition), resolution))


@traced
def conductance(
    graph: Graph[Any, Any],
    members: Iterable[str],
    *,
    weight_fn: WeightFn | None = None,
) -> Result[float]:
    """cut(S) / min(vol(S), vol(V \\ S)); 0 when either side has no volume."""
    node_set = set(members)
    if (err := _validate_partition(graph, [node_set], "conductance")) is not None:
        return err
    return success("conductance", _conductance(symmetric_adjacency(graph, weight_fn), node_set))


@traced
def density(graph: Graph[Any, Any], members: Iterable[str]) -> Result[float]:
    """2|E_S| / (|S|(|S|−1)) over distinct node pairs; 0 for |S| < 2."""
    node_set = set(members)
    if (err := _validate_partition(graph, [node_set], "density")) is not None:
        return err
    return success("density", _density(symmetric_adjacency(graph), node_set))


@traced
def coverage_ratio(graph: Graph[Any, Any], partition: Sequence[Iterable[str]]) -> Result[float]:
    """Fraction of edges whose endpoints share a part (0 for an edgeless graph)."""
    parts = [list(p) for p in partition]
    if (err := _validate_partition(graph, parts, "coverage_ratio")) is not None:
        return err
    edges = graph.get_all_edges()
    if not edges:
        return success("coverage_ratio", 0.0)
    membership = _membership(parts)
    covered = sum(
        1
        for edge in edges
        if edge.source in membership and membership.get(edge.target) == membership[edge.source]
    )
    return success("coverage_ratio", covered / len(edges))


def _summarize(
    graph: Graph[Any, Any],
    adjacency: Adjacency,
    membership: dict[str, int],
    stats: Sequence[PartStats],
    total_volume: float,
) -> ClusterMetrics:
    edge_count = graph.get_edge_count()
    covered = sum(part.internal_edges for part in stats)
    count = len(stats) or 1
    return ClusterMetrics(
        modularity=_modularity(adjacency, membership, 1.0),
        coverage=covered / edge_count if edge_count else 0.0,
        average_conductance=sum(p.conductance(total_volume) for p in stats) / count,
        average_density=sum(p.density() for p in stats) / count,
        community_count=len(stats),
    )


def _cluster_metrics(
    graph: Graph[Any, Any], adjacency: Adjacency, partition: Sequence[Iterable[str]]
) -> ClusterMetrics:
    parts = [list(p) for p in partition]
    membership = _membership(parts)
    stats, total = _part_stats(graph, adjacency, membership, len(parts))
    return _summarize(graph, adjacency, membership, stats, total)


@traced
def cluster_metrics(
    graph: Graph[Any, Any],
    partition: Sequence[Iterable[str]],
    *,
    weight_fn: WeightFn | None = None,
) -> Result[ClusterMetrics]:
    """Modularity, coverage, and mean conductance/density of a partition."""
    parts = [list(p) for p in partition]
    if (err := _validate_partition(graph, parts, "cluster_metrics")) is not None:
        return err
    adjacency = symmetric_adjacency(graph, weight_fn)
    return success("cluster_metrics", _cluster_metrics(graph, adjacency, parts))
