"""Structural decomposition — k-core, core-periphery, biconnectivity, k-truss.

All four operate on the undirected simple view of the graph: direction is
ignored, parallel edges collapse to one adjacency, self-loops are dropped.
Biconnectivity is the exception and keeps parallel edges, since two
parallel edges between the same pair are not a bridge.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field

from bibgraph.algorithms._common import (
    CancelToken,
    cancelled,
    parse_options,
    require_nodes,
    symmetric_adjacency,
)
from bibgraph.algorithms.motifs import compute_triangle_support
from bibgraph.algorithms.telemetry import trace_span, traced
from bibgraph.domain.result import AlgorithmError, Result, failure, success
from bibgraph.domain.types import Direction, ErrorCode
from bibgraph.graph.core import Graph

# ------------------------------------------------------------------
# k-core
# ------------------------------------------------------------------


class KCoreResult(BaseModel):
    """Per-node coreness; ``core(k)`` yields the nested k-cores for k = 0..degeneracy."""

    model_config = {"frozen": True}

    coreness: dict[str, int]
    degeneracy: int

    def core(self, k: int) -> list[str]:
        """Nodes of the k-core, in graph insertion order."""
        return [nid for nid, c in self.coreness.items() if c >= k]


@traced
def k_core_decomposition(graph: Graph[Any, Any]) -> Result[KCoreResult]:
    """Iterative peeling for ascending k.

    At level k, nodes whose remaining degree is below k are removed
    repeatedly; a node removed at level k has coreness k - 1.
    """
    if (err := require_nodes(graph, "k_core_decomposition")) is not None:
        return err

    adjacency = symmetric_adjacency(graph)
    remaining = {nid: len(nbrs) for nid, nbrs in adjacency.items()}
    coreness: dict[str, int] = {}
    k = 0
    while remaining:
        k += 1
        queue = [nid for nid, degree in remaining.items() if degree < k]
        queued = set(queue)
        while queue:
            node = queue.pop()
            del remaining[node]
            coreness[node] = k - 1
            for neighbor in adjacency[node]:
                if neighbor in remaining:
                    remaining[neighbor] -= 1
                    if remaining[neighbor] < k and neighbor not in queued:
                        queued.add(neighbor)
                        queue.append(neighbor)

    ordered = {nid: coreness[nid] for nid in graph.node_ids()}
    return success(
        "k_core_decomposition",
        KCoreResult(coreness=ordered, degeneracy=max(ordered.values())),
    )


@traced
def extract_k_core(graph: Graph[Any, Any], k: int) -> Result[Graph[Any, Any]]:
    """Induced subgraph on the nodes with coreness >= *k*."""
    if k < 0:
        return failure("extract_k_core", ErrorCode.INVALID_INPUT, f"k must be >= 0, got {k}", k=k)
    decomposition = k_core_decomposition(graph)
    if not decomposition.ok:
        return failure(
            "extract_k_core",
            decomposition.error.code,  # type: ignore[union-attr]
            decomposition.error.message,  # type: ignore[union-attr]
        )
    return success("extract_k_core", graph.derive(decomposition.unwrap().core(k)))


# ------------------------------------------------------------------
# Core-periphery
# ------------------------------------------------------------------


class CorePeripheryOptions(BaseModel):
    model_config = {"frozen": True}

    max_iterations: int = Field(default=200, ge=1)
    min_improvement: float = Field(default=1e-8, ge=0)


class CorePeripheryResult(BaseModel):
    """Continuous coreness in [0, 1], binary split, and fit quality.

    ``fit`` is the correlation between the observed adjacency and the
    ideal pattern (core–core linked, periphery–periphery not); 0 means no
    discernible structure.
    """

    model_config = {"frozen": True}

    coreness: dict[str, float]
    core: list[str]
    periphery: list[str]
    fit: float
    iterations: int
    converged: bool


def _coreness_scores(
    adjacency: dict[str, dict[str, float]],
    opts: CorePeripheryOptions,
    cancel: CancelToken | None,
) -> tuple[dict[str, float], int, bool] | Result[Any]:
    """Leading eigenvector of (A + I) by power iteration, scaled to max 1.

    The identity shift keeps the iteration from oscillating on bipartite
    components.
    """
    scores = {u: float(len(nbrs)) + 1.0 for u, nbrs in adjacency.items()}
    iterations = 0
    converged = False
    while iterations < opts.max_iterations:
        if (err := cancelled("core_periphery", cancel, iterations)) is not None:
            return err
        iterations += 1
        updated = {u: scores[u] + sum(scores[v] for v in nbrs) for u, nbrs in adjacency.items()}
        top = max(updated.values())
        updated = {u: s / top for u, s in updated.items()}
        delta = max(abs(updated[u] - scores[u]) for u in updated)
        scores = updated
        if delta < opts.min_improvement:
            converged = True
            break
    return scores, iterations, converged


def _best_split(adjacency: dict[str, dict[str, float]], ordered: list[str]) -> tuple[int, float]:
    """Core size maximizing the core/periphery correlation, in O(n + m)."""
    n = len(ordered)
    total_edges = sum(len(nbrs) for nbrs in adjacency.values()) // 2
    in_core: set[str] = set()
    core_edges = 0
    periphery_edges = total_edges
    best_size, best_fit = 0, 0.0
    for size, node in enumerate(ordered[:-1], start=1):
        to_core = sum(1 for v in adjacency[node] if v in in_core)
        core_edges += to_core
        periphery_edges -= len(adjacency[node]) - to_core
        in_core.add(node)

        core_pairs = size * (size - 1) // 2
        pairs = core_pairs + (n - size) * (n - size - 1) // 2
        linked = core_edges + periphery_edges
        variance = core_pairs * (pairs - core_pairs) * linked * (pairs - linked)
        if variance <= 0:
            continue
        r = (pairs * core_edges - core_pairs * linked) / math.sqrt(variance)
        if r > best_fit:
            best_size, best_fit = size, r
    return best_size, best_fit


@traced
def core_periphery(
    graph: Graph[Any, Any],
    *,
    max_iterations: int = 200,
    min_improvement: float = 1e-8,
    cancel: CancelToken | None = None,
) -> Result[CorePeripheryResult]:
    """Score coreness and pick the core/periphery split with the best fit."""
    opts = parse_options(
        CorePeripheryOptions,
        "core_periphery",
        max_iterations=max_iterations,
        min_improvement=min_improvement,
    )
    if isinstance(opts, Result):
        return opts
    if (err := require_nodes(graph, "core_periphery", minimum=3)) is not None:
        return err

    adjacency = symmetric_adjacency(graph)
    scored = _coreness_scores(adjacency, opts, cancel)
    if isinstance(scored, Result):
        return scored
    scores, iterations, converged = scored

    rank = {nid: i for i, nid in enumerate(graph.node_ids())}
    ordered = sorted(scores, key=lambda nid: (-scores[nid], rank[nid]))
    with trace_span("best_split"):
        size, fit = _best_split(adjacency, ordered)

    core = set(ordered[:size])
    value = CorePeripheryResult(
        coreness={nid: scores[nid] for nid in graph.node_ids()},
        core=[nid for nid in graph.node_ids() if nid in core],
        periphery=[nid for nid in graph.node_ids() if nid not in core],
        fit=fit,
        iterations=iterations,
        converged=converged,
    )
    partial = None
    if not converged:
        partial = AlgorithmError(
            code=ErrorCode.CONVERGENCE_FAILURE,
            message=f"Coreness scores did not converge within {iterations} iterations",
            detail={"iterations": iterations},
        )
    return success("core_periphery", value, partial=partial)


# ------------------------------------------------------------------
# Biconnected components
# ------------------------------------------------------------------


class BiconnectedComponent(BaseModel):
    model_config = {"frozen": True}

    id: int
    nodes: list[str]
    edges: list[str]
    is_bridge: bool


class BiconnectedResult(BaseModel):
    model_config = {"frozen": True}

    components: list[BiconnectedComponent]
    articulation_points: list[str]

    @property
    def bridges(self) -> list[str]:
        return [c.edges[0] for c in self.components if c.is_bridge]


@traced
def biconnected_components(graph: Graph[Any, Any]) -> Result[BiconnectedResult]:
    """Hopcroft–Tarjan with discovery times and low-links (iterative).

    A component made of exactly one edge is a bridge. Isolated nodes
    belong to no component.
    """
    if (err := require_nodes(graph, "biconnected_components")) is not None:
        return err

    rank = {nid: i for i, nid in enumerate(graph.node_ids())}
    disc: dict[str, int] = {}
    low: dict[str, int] = {}
    articulation: set[str] = set()
    raw_components: list[list[tuple[str, str, str]]] = []
    clock = 0

    for root in graph.node_ids():
        if root in disc:
            continue
        disc[root] = low[root] = clock
        clock += 1
        root_children = 0
        edge_stack: list[tuple[str, str, str]] = []
        stack = [(root, None, iter(list(graph.adjacent(root, Direction.BOTH))))]

        while stack:
            node, parent_edge, neighbors = stack[-1]
            descended = False
            for neighbor, edge in neighbors:
                if edge.id == parent_edge or neighbor == node:
                    continue
                if neighbor not in disc:
                    edge_stack.append((edge.id, node, neighbor))
                    disc[neighbor] = low[neighbor] = clock
                    clock += 1
                    stack.append(
                        (neighbor, edge.id, iter(list(graph.adjacent(neighbor, Direction.BOTH))))
                    )
                    descended = True
                    break
                if disc[neighbor] < disc[node]:
                    edge_stack.append((edge.id, node, neighbor))
                    low[node] = min(low[node], disc[neighbor])
            if descended:
                continue

            stack.pop()
            if not stack:
                break
            parent = stack[-1][0]
            low[parent] = min(low[parent], low[node])
            if low[node] >= disc[parent]:
                component: list[tuple[str, str, str]] = []
                while True:
                    entry = edge_stack.pop()
                    component.append(entry)
                    if entry[0] == parent_edge:
                        break
                raw_components.append(component)
                if parent == root:
                    root_children += 1
                else:
                    articulation.add(parent)

        if root_children > 1:
            articulation.add(root)

    components: list[BiconnectedComponent] = []
    for index, entries in enumerate(raw_components):
        members = {u for _, u, _ in entries} | {v for _, _, v in entries}
        components.append(
            BiconnectedComponent(
                id=index,
                nodes=sorted(members, key=rank.__getitem__),
                edges=[eid for eid, _, _ in reversed(entries)],
                is_bridge=len(entries) == 1,
            )
        )
    return success(
        "biconnected_components",
        BiconnectedResult(
            components=components,
            articulation_points=sorted(articulation, key=rank.__getitem__),
        ),
    )


# ------------------------------------------------------------------
# k-truss
# ------------------------------------------------------------------


class KTrussResult(BaseModel):
    """Edge-induced k-truss plus per-edge triangle support and truss number."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    k: int
    subgraph: Graph
    edge_support: dict[str, int]
    truss_number: dict[str, int]


def _truss_numbers(adjacency: dict[str, dict[str, float]]) -> dict[tuple[str, str], int]:
    """Peel pairs level by level; a pair removed at level k has truss number k - 1."""
    nbrs = {u: set(vs) for u, vs in adjacency.items()}
    support: dict[tuple[str, str], int] = {}
    for u in adjacency:
        for v in adjacency[u]:
            if u < v:
                support[(u, v)] = len(nbrs[u] & nbrs[v])

    truss: dict[tuple[str, str], int] = {}
    k = 2
    while support:
        k += 1
        queue = sorted(pair for pair, s in support.items() if s < k - 2)
        queued = set(queue)
        while queue:
            u, v = queue.pop()
            del support[(u, v)]
            truss[(u, v)] = k - 1
            for w in sorted(nbrs[u] & nbrs[v]):
                for pair in ((u, w) if u < w else (w, u), (v, w) if v < w else (w, v)):
                    if pair in support:
                        support[pair] -= 1
                        if support[pair] < k - 2 and pair not in queued:
                            queued.add(pair)
                            queue.append(pair)
            nbrs[u].discard(v)
            nbrs[v].discard(u)
    return truss


@traced
def extract_k_truss(graph: Graph[Any, Any], k: int) -> Result[KTrussResult]:
    """Keep edges in at least (k - 2) triangles, iterating until stable.

    The result is edge-induced: only endpoints of surviving edges remain.
    """
    if k < 2:
        return failure("extract_k_truss", ErrorCode.INVALID_INPUT, f"k must be >= 2, got {k}", k=k)
    if (err := require_nodes(graph, "extract_k_truss")) is not None:
        return err

    with trace_span("triangle_support"):
        support = compute_triangle_support(graph)
    truss_pairs = _truss_numbers(symmetric_adjacency(graph))

    truss_number: dict[str, int] = {}
    for edge in graph.get_all_edges():
        if edge.source == edge.target:
            continue
        u, v = sorted((edge.source, edge.target))
        truss_number[edge.id] = truss_pairs[(u, v)]

    kept = {eid for eid, t in truss_number.items() if t >= k}
    endpoints: set[str] = set()
    for eid in kept:
        edge = graph.get_edge(eid)
        endpoints.update((edge.source, edge.target))
    subgraph = graph.derive(endpoints, edge_filter=lambda e: e.id in kept)

    return success(
        "extract_k_truss",
        KTrussResult(k=k, subgraph=subgraph, edge_support=support, truss_number=truss_number),
    )
