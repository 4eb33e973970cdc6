"""Shared clustering scaffold — result models, option models, and the
local-moving / aggregation kernel used by Louvain, Leiden, and Infomap.

The kernel works on an integer-indexed level graph. ``loops[i]`` holds
the ordered-pair internal weight of super-node *i* (twice the weight of
the edges it swallowed), so ``degree[i] = sum(adj[i]) + loops[i]`` and
modularity on every level equals modularity on the original graph.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, Field

from bibgraph.algorithms._common import Adjacency, CancelToken, cancelled
from bibgraph.algorithms.metrics import (
    ClusterMetrics,
    _membership,
    _modularity,
    _part_stats,
    _summarize,
)
from bibgraph.domain.result import AlgorithmError, Result
from bibgraph.domain.types import ErrorCode
from bibgraph.graph.core import Graph

# ------------------------------------------------------------------
# Models
# ------------------------------------------------------------------


class Community(BaseModel):
    """One detected community.

    ``density`` is reported by Louvain, ``conductance`` by Leiden; label
    propagation leaves both unset. ``edge_cut`` is set by spectral
    partitioning.
    """

    model_config = {"frozen": True}

    id: int
    members: list[str]
    internal_edges: int = 0
    external_edges: int = 0
    density: float | None = None
    conductance: float | None = None
    is_connected: bool | None = None
    edge_cut: int | None = None

    @property
    def size(self) -> int:
        return len(self.members)


class ClusteringResult(BaseModel):
    model_config = {"frozen": True}

    algorithm: str
    communities: list[Community]
    modularity: float
    iterations: int
    converged: bool
    levels: int = 1
    metrics: ClusterMetrics
    codelength: float | None = None
    balance: float | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)

    def partition(self) -> list[list[str]]:
        return [c.members for c in self.communities]


class CommunityOptions(BaseModel):
    """Options shared by the modularity-style algorithms."""

    model_config = {"frozen": True}

    resolution: float = Field(default=1.0, gt=0)
    max_iterations: int = Field(default=100, ge=1)
    min_improvement: float = Field(default=1e-7, ge=0)


# ------------------------------------------------------------------
# Level graph
# ------------------------------------------------------------------


@dataclass
class Level:
    adj: list[dict[int, float]]
    loops: list[float]
    members: list[list[str]]
    degree: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.degree:
            self.degree = [sum(a.values()) + lp for a, lp in zip(self.adj, self.loops, strict=True)]

    @property
    def size(self) -> int:
        return len(self.adj)

    @property
    def total_weight(self) -> float:
        """2m — the sum of all node degrees."""
        return sum(self.degree)

    @classmethod
    def from_adjacency(cls, adjacency: Adjacency) -> Level:
        ids = list(adjacency)
        index = {nid: i for i, nid in enumerate(ids)}
        adj = [{index[v]: w for v, w in adjacency[u].items()} for u in ids]
        return cls(adj=adj, loops=[0.0] * len(ids), members=[[nid] for nid in ids])


def relabel(membership: Sequence[int]) -> list[int]:
    """Renumber labels 0..k-1 by first appearance."""
    mapping: dict[int, int] = {}
    return [mapping.setdefault(label, len(mapping)) for label in membership]


def aggregate(level: Level, membership: Sequence[int]) -> Level:
    """Collapse each community of *level* into a super-node."""
    labels = relabel(membership)
    count = max(labels) + 1
    adj: list[dict[int, float]] = [{} for _ in range(count)]
    loops = [0.0] * count
    members: list[list[str]] = [[] for _ in range(count)]
    for v in range(level.size):
        cv = labels[v]
        loops[cv] += level.loops[v]
        members[cv].extend(level.members[v])
        for u, w in level.adj[v].items():
            cu = labels[u]
            if cu == cv:
                loops[cv] += w
            else:
                adj[cv][cu] = adj[cv].get(cu, 0.0) + w
    return Level(adj=adj, loops=loops, members=members)


# ------------------------------------------------------------------
# Objectives
# ------------------------------------------------------------------


class Objective(Protocol):
    """Score for placing a floating node into a community (higher is better)."""

    def reset(self, level: Level, membership: Sequence[int]) -> None: ...

    def remove(self, v: int, community: int, links: float) -> None: ...

    def insert(self, v: int, community: int, links: float) -> None: ...

    def gain(self, v: int, community: int, links: float) -> float: ...


class ModularityObjective:
    """ΔQ of inserting an isolated node: 2k_in/2m − 2γ·Σ_tot·k_v/(2m)²."""

    def __init__(self, resolution: float) -> None:
        self.resolution = resolution
        self.tot: dict[int, float] = {}
        self.degree: list[float] = []
        self.m2 = 0.0

    def reset(self, level: Level, membership: Sequence[int]) -> None:
        self.degree = level.degree
        self.m2 = level.total_weight
        self.tot = {}
        for v, c in enumerate(membership):
            self.tot[c] = self.tot.get(c, 0.0) + self.degree[v]

    def remove(self, v: int, community: int, links: float) -> None:
        self.tot[community] -= self.degree[v]

    def insert(self, v: int, community: int, links: float) -> None:
        self.tot[community] = self.tot.get(community, 0.0) + self.degree[v]

    def gain(self, v: int, community: int, links: float) -> float:
        tot = self.tot.get(community, 0.0)
        return 2 * links / self.m2 - 2 * self.resolution * tot * self.degree[v] / self.m2**2


def plogp(p: float) -> float:
    return p * math.log2(p) if p > 0 else 0.0


class MapEquationObjective:
    """Negative two-level map-equation codelength for undirected flow.

    L = plogp(Σq) − 2Σ plogp(q_i) + Σ plogp(q_i + p_i) − Σ plogp(p_α),
    where q_i is module i's exit flow and p_i its visit rate. The last
    term is constant and left out of comparisons.
    """

    def __init__(self) -> None:
        self.tot: dict[int, float] = {}
        self.inner: dict[int, float] = {}
        self.degree: list[float] = []
        self.loops: list[float] = []
        self.m2 = 0.0
        self.sum_exit = 0.0
        self.sum_plogp_exit = 0.0
        self.sum_plogp_exit_flow = 0.0

    def _terms(self, community: int) -> tuple[float, float, float]:
        tot = self.tot.get(community, 0.0)
        exit_flow = (tot - self.inner.get(community, 0.0)) / self.m2
        return exit_flow, plogp(exit_flow), plogp(exit_flow + tot / self.m2)

    def _apply(self, community: int, sign: float) -> None:
        exit_flow, pe, pf = self._terms(community)
        self.sum_exit += sign * exit_flow
        self.sum_plogp_exit += sign * pe
        self.sum_plogp_exit_flow += sign * pf

    def reset(self, level: Level, membership: Sequence[int]) -> None:
        self.degree = level.degree
        self.loops = level.loops
        self.m2 = level.total_weight
        self.tot, self.inner = {}, {}
        for v, c in enumerate(membership):
            self.tot[c] = self.tot.get(c, 0.0) + self.degree[v]
            self.inner[c] = self.inner.get(c, 0.0) + self.loops[v]
        for v, c in enumerate(membership):
            for u, w in level.adj[v].items():
                if membership[u] == c:
                    self.inner[c] += w
        self.sum_exit = self.sum_plogp_exit = self.sum_plogp_exit_flow = 0.0
        for c in self.tot:
            self._apply(c, 1.0)

    def _shift(self, v: int, community: int, links: float, sign: float) -> None:
        self._apply(community, -1.0)
        self.tot[community] = self.tot.get(community, 0.0) + sign * self.degree[v]
        self.inner[community] = self.inner.get(community, 0.0) + sign * (
            2 * links + self.loops[v]
        )
        self._apply(community, 1.0)

    def remove(self, v: int, community: int, links: float) -> None:
        self._shift(v, community, links, -1.0)

    def insert(self, v: int, community: int, links: float) -> None:
        self._shift(v, community, links, 1.0)

    def codelength(self) -> float:
        return plogp(self.sum_exit) - 2 * self.sum_plogp_exit + self.sum_plogp_exit_flow

    def gain(self, v: int, community: int, links: float) -> float:
        old_exit, old_pe, old_pf = self._terms(community)
        tot = self.tot.get(community, 0.0) + self.degree[v]
        inner = self.inner.get(community, 0.0) + 2 * links + self.loops[v]
        new_exit = (tot - inner) / self.m2
        sum_exit = self.sum_exit - old_exit + new_exit
        sum_pe = self.sum_plogp_exit - old_pe + plogp(new_exit)
        sum_pf = self.sum_plogp_exit_flow - old_pf + plogp(new_exit + tot / self.m2)
        return -(plogp(sum_exit) - 2 * sum_pe + sum_pf)


# ------------------------------------------------------------------
# Local moving
# ------------------------------------------------------------------


@dataclass
class MoveStats:
    passes: int
    converged: bool
    moved: bool


def local_moving(
    level: Level,
    membership: list[int],
    objective: Objective,
    *,
    op: str,
    min_improvement: float,
    max_passes: int,
    cancel: CancelToken | None,
    iterations_done: int = 0,
) -> MoveStats | Result[Any]:
    """Greedy node moves in index order until a pass makes no improving move.

    *membership* is updated in place. Candidates are the communities of a
    node's neighbors in adjacency order; the first strictly best wins.
    """
    objective.reset(level, membership)
    passes = 0
    moved_any = False
    while passes < max_passes:
        if (err := cancelled(op, cancel, iterations_done + passes)) is not None:
            return err
        passes += 1
        moves = 0
        for v in range(level.size):
            old = membership[v]
            links: dict[int, float] = {}
            for u, w in level.adj[v].items():
                links[membership[u]] = links.get(membership[u], 0.0) + w
            objective.remove(v, old, links.get(old, 0.0))
            current = objective.gain(v, old, links.get(old, 0.0))
            best, best_gain = old, current
            for community, weight in links.items():
                if community == old:
                    continue
                candidate = objective.gain(v, community, weight)
                if candidate > best_gain:
                    best, best_gain = community, candidate
            if best != old and best_gain - current > min_improvement:
                membership[v] = best
                moves += 1
            else:
                best = old
            objective.insert(v, best, links.get(best, 0.0))
        if moves == 0:
            return MoveStats(passes=passes, converged=True, moved=moved_any)
        moved_any = True
    return MoveStats(passes=passes, converged=False, moved=moved_any)


@dataclass
class MultilevelOutcome:
    groups: list[list[str]]
    iterations: int
    converged: bool
    levels: int


def multilevel(
    level: Level,
    objective: Objective,
    *,
    op: str,
    min_improvement: float,
    max_iterations: int,
    cancel: CancelToken | None,
) -> MultilevelOutcome | Result[Any]:
    """Alternate local moving and aggregation until a level makes no move.

    *max_iterations* caps the passes of each level's local-moving phase.
    """
    iterations = 0
    converged = True
    levels = 0
    while True:
        membership = list(range(level.size))
        stats = local_moving(
            level,
            membership,
            objective,
            op=op,
            min_improvement=min_improvement,
            max_passes=max_iterations,
            cancel=cancel,
            iterations_done=iterations,
        )
        if isinstance(stats, Result):
            return stats
        iterations += stats.passes
        converged = converged and stats.converged
        if not stats.moved:
            break
        level = aggregate(level, membership)
        levels += 1
    return MultilevelOutcome(
        groups=level.members, iterations=iterations, converged=converged, levels=max(levels, 1)
    )


# ------------------------------------------------------------------
# Result assembly
# ------------------------------------------------------------------


def is_connected_within(adjacency: Adjacency, members: Sequence[str]) -> bool:
    if len(members) <= 1:
        return True
    member_set = set(members)
    seen = {members[0]}
    stack = [members[0]]
    while stack:
        node = stack.pop()
        for neighbor in adjacency[node]:
            if neighbor in member_set and neighbor not in seen:
                seen.add(neighbor)
                stack.append(neighbor)
    return len(seen) == len(member_set)


def order_partition(graph: Graph[Any, Any], groups: Sequence[Sequence[str]]) -> list[list[str]]:
    """Members in insertion order; communities ordered by their first member."""
    rank = {nid: i for i, nid in enumerate(graph.node_ids())}
    ordered = [sorted(g, key=rank.__getitem__) for g in groups if g]
    ordered.sort(key=lambda g: rank[g[0]])
    return ordered


def build_result(
    graph: Graph[Any, Any],
    adjacency: Adjacency,
    groups: Sequence[Sequence[str]],
    *,
    algorithm: str,
    quality: str | None,
    iterations: int,
    converged: bool,
    resolution: float = 1.0,
    levels: int = 1,
    parameters: dict[str, Any] | None = None,
    **extra: Any,
) -> ClusteringResult:
    """Assemble communities with the algorithm's quality field filled in.

    *quality* is ``"density"``, ``"conductance"``, ``"edge_cut"``, or None.
    """
    partition = order_partition(graph, groups)
    membership = _membership(partition)
    stats, total_volume = _part_stats(graph, adjacency, membership, len(partition))
    communities: list[Community] = []
    for index, (members, part) in enumerate(zip(partition, stats, strict=True)):
        fields: dict[str, Any] = {}
        if quality == "density":
            fields["density"] = part.density()
        elif quality == "conductance":
            fields["conductance"] = part.conductance(total_volume)
            fields["is_connected"] = is_connected_within(adjacency, members)
        elif quality == "edge_cut":
            fields["edge_cut"] = part.external_edges
        communities.append(
            Community(
                id=index,
                members=members,
                internal_edges=part.internal_edges,
                external_edges=part.external_edges,
                **fields,
            )
        )
    return ClusteringResult(
        algorithm=algorithm,
        communities=communities,
        modularity=_modularity(adjacency, membership, resolution),
        iterations=iterations,
        converged=converged,
        levels=levels,
        metrics=_summarize(graph, adjacency, membership, stats, total_volume),
        parameters=parameters or {},
        **extra,
    )


def convergence_warning(op: str, iterations: int) -> AlgorithmError:
    return AlgorithmError(
        code=ErrorCode.CONVERGENCE_FAILURE,
        message=f"{op} reached the iteration cap after {iterations} iteration(s); "
        "returning the best partition found",
        detail={"iterations": iterations},
    )
