"""Motif detection — triangles, stars, co-citation, bibliographic coupling.

Triangles and stars work on any graph (triangles on the undirected view).
Co-citation and coupling are citation-graph motifs and need a directed
graph, where an edge ``u -> v`` means "u references v".
"""

from __future__ import annotations

from collections.abc import Collection
from itertools import combinations
from typing import Any

from pydantic import BaseModel, Field

from bibgraph.algorithms._common import require_nodes, symmetric_adjacency
from bibgraph.algorithms.telemetry import traced
from bibgraph.domain.result import Result, failure, success
from bibgraph.domain.types import Direction, ErrorCode, StarType
from bibgraph.graph.core import Graph


class Triangle(BaseModel):
    """Three mutually adjacent nodes, ids sorted for a canonical form."""

    model_config = {"frozen": True}

    nodes: tuple[str, str, str]
    edges: tuple[str, str, str]


class TriangleResult(BaseModel):
    model_config = {"frozen": True}

    triangles: list[Triangle]
    connected_triples: int
    clustering_coefficient: float

    @property
    def count(self) -> int:
        return len(self.triangles)


class StarPattern(BaseModel):
    model_config = {"frozen": True}

    hub: str
    leaves: list[str]
    star_type: StarType

    @property
    def degree(self) -> int:
        return len(self.leaves)


class NodePair(BaseModel):
    """A co-cited or bibliographically coupled pair.

    ``shared`` holds the common citers (co-citation) or the common
    references (coupling); ``strength`` is its length.
    """

    model_config = {"frozen": True}

    pair: tuple[str, str]
    strength: int
    shared: list[str] = Field(default_factory=list)


# ------------------------------------------------------------------
# Triangles
# ------------------------------------------------------------------


def _ranked_neighbors(graph: Graph[Any, Any]) -> tuple[dict[str, int], dict[str, list[str]]]:
    rank = {nid: i for i, nid in enumerate(graph.node_ids())}
    adjacency = symmetric_adjacency(graph)
    return rank, {u: sorted(nbrs, key=rank.__getitem__) for u, nbrs in adjacency.items()}


def _intersect_sorted(a: list[str], b: list[str], rank: dict[str, int]) -> list[str]:
    """Two-pointer intersection of rank-sorted neighbor lists."""
    out: list[str] = []
    i = j = 0
    while i < len(a) and j < len(b):
        ra, rb = rank[a[i]], rank[b[j]]
        if ra == rb:
            out.append(a[i])
            i += 1
            j += 1
        elif ra < rb:
            i += 1
        else:
            j += 1
    return out


def _pair_edges(graph: Graph[Any, Any]) -> dict[tuple[str, str], str]:
    """First edge id (insertion order) for each unordered node pair."""
    first: dict[tuple[str, str], str] = {}
    for edge in graph.get_all_edges():
        if edge.source != edge.target:
            first.setdefault(_key(edge.source, edge.target), edge.id)
    return first


def _key(u: str, v: str) -> tuple[str, str]:
    return (u, v) if u <= v else (v, u)


def _enumerate_triangles(
    rank: dict[str, int], neighbors: dict[str, list[str]]
) -> list[tuple[str, str, str]]:
    found: list[tuple[str, str, str]] = []
    for u, nbrs in neighbors.items():
        higher_u = [v for v in nbrs if rank[v] > rank[u]]
        for v in higher_u:
            higher_v = [w for w in neighbors[v] if rank[w] > rank[v]]
            for w in _intersect_sorted(higher_u, higher_v, rank):
                found.append((u, v, w))
    return found


@traced
def get_triangles(graph: Graph[Any, Any]) -> Result[TriangleResult]:
    """Enumerate triangles and derive the global clustering coefficient.

    Coefficient = 3 * triangles / connected triples, clamped to [0, 1].
    """
    if (err := require_nodes(graph, "get_triangles")) is not None:
        return err
    rank, neighbors = _ranked_neighbors(graph)
    pair_edges = _pair_edges(graph)
    triangles: list[Triangle] = []
    for u, v, w in _enumerate_triangles(rank, neighbors):
        a, b, c = sorted((u, v, w))
        triangles.append(
            Triangle(
                nodes=(a, b, c),
                edges=(pair_edges[_key(a, b)], pair_edges[_key(b, c)], pair_edges[_key(a, c)]),
            )
        )

    triples = sum(len(n) * (len(n) - 1) // 2 for n in neighbors.values())
    coefficient = 0.0 if triples == 0 else min(1.0, max(0.0, 3 * len(triangles) / triples))
    return success(
        "get_triangles",
        TriangleResult(
            triangles=triangles,
            connected_triples=triples,
            clustering_coefficient=coefficient,
        ),
    )


def compute_triangle_support(graph: Graph[Any, Any]) -> dict[str, int]:
    """Number of triangles each edge participates in (parallel edges share a count)."""
    rank, neighbors = _ranked_neighbors(graph)
    support: dict[tuple[str, str], int] = {}
    for u, v, w in _enumerate_triangles(rank, neighbors):
        for pair in (_key(u, v), _key(v, w), _key(u, w)):
            support[pair] = support.get(pair, 0) + 1
    return {
        edge.id: support.get(_key(edge.source, edge.target), 0)
        for edge in graph.get_all_edges()
        if edge.source != edge.target
    }


# ------------------------------------------------------------------
# Stars
# ------------------------------------------------------------------


_STAR_DIRECTION = {
    StarType.IN: Direction.IN,
    StarType.OUT: Direction.OUT,
    StarType.UNDIRECTED: Direction.BOTH,
}


@traced
def detect_star_patterns(
    graph: Graph[Any, Any],
    *,
    min_degree: int = 3,
    star_type: StarType | None = None,
) -> Result[list[StarPattern]]:
    """Hubs with at least *min_degree* distinct neighbors in *star_type* direction.

    *star_type* defaults to ``IN`` (highly cited works) on directed graphs
    and ``UNDIRECTED`` otherwise. Stars are ordered by degree, largest first.
    """
    if (err := require_nodes(graph, "detect_star_patterns")) is not None:
        return err
    if min_degree < 1:
        return failure(
            "detect_star_patterns",
            ErrorCode.INVALID_INPUT,
            f"min_degree must be >= 1, got {min_degree}",
        )
    if star_type is None:
        star_type = StarType.IN if graph.is_directed() else StarType.UNDIRECTED
    if not graph.is_directed():
        star_type = StarType.UNDIRECTED

    direction = _STAR_DIRECTION[star_type]
    stars: list[StarPattern] = []
    for hub in graph.node_ids():
        leaves = [n for n in graph.get_neighbors(hub, direction) if n != hub]
        if len(leaves) >= min_degree:
            stars.append(StarPattern(hub=hub, leaves=leaves, star_type=star_type))
    stars.sort(key=lambda s: -s.degree)
    return success("detect_star_patterns", stars)


# ------------------------------------------------------------------
# Co-citation / bibliographic coupling
# ------------------------------------------------------------------


def _pair_counts(
    graph: Graph[Any, Any],
    direction: Direction,
    edge_types: Collection[str] | None,
) -> dict[tuple[str, str], list[str]]:
    """For every node, pair up its distinct neighbors in *direction*."""
    rank = {nid: i for i, nid in enumerate(graph.node_ids())}
    shared: dict[tuple[str, str], list[str]] = {}
    for pivot in graph.node_ids():
        related: dict[str, None] = {}
        for neighbor, edge in graph.adjacent(pivot, direction):
            if neighbor == pivot:
                continue
            if edge_types is not None and getattr(edge, "type", None) not in edge_types:
                continue
            related.setdefault(neighbor, None)
        ordered = sorted(related, key=rank.__getitem__)
        for a, b in combinations(ordered, 2):
            shared.setdefault((a, b), []).append(pivot)
    return shared


def _ranked_pairs(
    shared: dict[tuple[str, str], list[str]], minimum: int
) -> list[NodePair]:
    pairs = [
        NodePair(pair=pair, strength=len(pivots), shared=pivots)
        for pair, pivots in shared.items()
        if len(pivots) >= minimum
    ]
    pairs.sort(key=lambda p: -p.strength)
    return pairs


def _require_directed(graph: Graph[Any, Any], op: str) -> Result[Any] | None:
    if not graph.is_directed():
        return failure(op, ErrorCode.INVALID_INPUT, f"{op} requires a directed citation graph")
    return None


@traced
def detect_co_citations(
    graph: Graph[Any, Any],
    *,
    min_count: int = 1,
    edge_types: Collection[str] | None = None,
) -> Result[list[NodePair]]:
    """Pairs referenced together by at least *min_count* common citing nodes."""
    if (err := require_nodes(graph, "detect_co_citations")) is not None:
        return err
    if (err := _require_directed(graph, "detect_co_citations")) is not None:
        return err
    if min_count < 1:
        return failure(
            "detect_co_citations",
            ErrorCode.INVALID_INPUT,
            f"min_count must be >= 1, got {min_count}",
        )
    shared = _pair_counts(graph, Direction.OUT, edge_types)
    return success("detect_co_citations", _ranked_pairs(shared, min_count))


@traced
def detect_bibliographic_coupling(
    graph: Graph[Any, Any],
    *,
    min_shared: int = 1,
    edge_types: Collection[str] | None = None,
) -> Result[list[NodePair]]:
    """Pairs that both reference at least *min_shared* common targets."""
    if (err := require_nodes(graph, "detect_bibliographic_coupling")) is not None:
        return err
    if (err := _require_directed(graph, "detect_bibliographic_coupling")) is not None:
        return err
    if min_shared < 1:
        return failure(
            "detect_bibliographic_coupling",
            ErrorCode.INVALID_INPUT,
            f"min_shared must be >= 1, got {min_shared}",
        )
    shared = _pair_counts(graph, Direction.IN, edge_types)
    return success("detect_bibliographic_coupling", _ranked_pairs(shared, min_shared))
