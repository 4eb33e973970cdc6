"""Pathfinding — Dijkstra with pluggable, filterable weights.

Weight resolution precedence:
  1. Explicit ``weight_fn(edge, source_node, target_node)``
  2. Edge property extraction (``weight_property``), optionally inverted
     as ``1 / max(value, epsilon)`` so higher scores mean shorter paths
  3. Constant ``default_weight`` (1.0)

An unreachable target is a normal outcome (``found=False``), not an error.
"""

from __future__ import annotations

import heapq
import math
from collections import deque
from collections.abc import Callable, Collection
from typing import Any, TypeAlias

from pydantic import BaseModel, Field

from bibgraph.algorithms._common import WeightFn, parse_options
from bibgraph.algorithms.telemetry import trace_span, traced
from bibgraph.domain.entities import edge_property
from bibgraph.domain.result import Result, failure, success
from bibgraph.domain.types import Direction, ErrorCode
from bibgraph.graph.core import Graph

EdgePredicate: TypeAlias = Callable[[Any], bool]


class PathOptions(BaseModel):
    model_config = {"frozen": True}

    weight_property: str | None = None
    invert: bool = False
    epsilon: float = Field(default=1e-9, gt=0)
    default_weight: float = Field(default=1.0, ge=0)


class PathResult(BaseModel):
    """Shortest path between two nodes.

    ``distance`` is ``inf`` and both sequences are empty when no path exists.
    """

    model_config = {"frozen": True}

    source: str
    target: str
    found: bool
    nodes: list[str] = Field(default_factory=list)
    edges: list[str] = Field(default_factory=list)
    distance: float = math.inf

    @property
    def hops(self) -> int:
        return len(self.edges) if self.found else -1


def resolve_weight_fn(
    weight_fn: WeightFn | None,
    options: PathOptions,
) -> WeightFn:
    """Apply the precedence rules to produce a single weight function."""
    if weight_fn is not None:
        return weight_fn

    prop = options.weight_property
    if prop is None:
        default = options.default_weight
        return lambda edge, source, target: default

    def from_property(edge: Any, source: Any, target: Any) -> float:
        raw = edge_property(edge, prop)
        if raw is None:
            return options.default_weight
        value = float(raw)
        if options.invert:
            return 1.0 / max(value, options.epsilon)
        return value

    return from_property


def _unreachable(source: str, target: str) -> PathResult:
    return PathResult(source=source, target=target, found=False)


def _check_endpoints(graph: Graph[Any, Any], op: str, *node_ids: str) -> Result[Any] | None:
    for label, nid in zip(("source", "target"), node_ids, strict=False):
        if nid not in graph:
            return failure(
                op,
                ErrorCode.NODE_NOT_FOUND,
                f"Node '{nid}' ({label}) not found in graph",
                node_id=nid,
            )
    return None


@traced
def dijkstra(
    graph: Graph[Any, Any],
    source: str,
    target: str,
    *,
    weight_fn: WeightFn | None = None,
    weight_property: str | None = None,
    invert: bool = False,
    epsilon: float = 1e-9,
    default_weight: float = 1.0,
    node_types: Collection[str] | None = None,
    edge_predicate: EdgePredicate | None = None,
) -> Result[PathResult]:
    """Find the minimum-weight path from *source* to *target*.

    Args:
        graph: Graph to search; directed graphs follow edge direction.
        source: Start node id.
        target: Destination node id.
        weight_fn: Custom ``(edge, source_node, target_node) -> float``.
        weight_property: Edge field to use as weight (e.g. ``"score"``).
        invert: Use ``1 / max(value, epsilon)`` of the property.
        epsilon: Floor for inversion.
        default_weight: Weight when no function or property applies.
        node_types: Restrict traversal to nodes of these types; an edge is
            traversable only if both endpoints are in the subset.
        edge_predicate: Edges failing this predicate are removed first.
    """
    opts = parse_options(
        PathOptions,
        "dijkstra",
        weight_property=weight_property,
        invert=invert,
        epsilon=epsilon,
        default_weight=default_weight,
    )
    if isinstance(opts, Result):
        return opts
    if (err := _check_endpoints(graph, "dijkstra", source, target)) is not None:
        return err

    def allowed(node_id: str) -> bool:
        if node_types is None:
            return True
        return getattr(graph.get_node(node_id), "type", None) in node_types

    if not (allowed(source) and allowed(target)):
        return success("dijkstra", _unreachable(source, target))
    if source == target:
        return success(
            "dijkstra",
            PathResult(source=source, target=target, found=True, nodes=[source], distance=0.0),
        )

    weigh = resolve_weight_fn(weight_fn, opts)
    dist: dict[str, float] = {source: 0.0}
    prev: dict[str, tuple[str, str]] = {}
    settled: set[str] = set()
    counter = 0
    heap: list[tuple[float, int, str]] = [(0.0, counter, source)]

    with trace_span("relax") as span:
        while heap:
            d, _, node = heapq.heappop(heap)
            if node in settled:
                continue
            settled.add(node)
            if node == target:
                break
            for neighbor, edge in graph.adjacent(node, Direction.OUT):
                if neighbor in settled or not allowed(neighbor):
                    continue
                if edge_predicate is not None and not edge_predicate(edge):
                    continue
                w = float(weigh(edge, graph.get_node(edge.source), graph.get_node(edge.target)))
                if w < 0 or math.isnan(w):
                    return failure(
                        "dijkstra",
                        ErrorCode.INVALID_INPUT,
                        f"Edge '{edge.id}' has invalid weight {w}",
                        edge_id=edge.id,
                    )
                candidate = d + w
                if candidate < dist.get(neighbor, math.inf):
                    dist[neighbor] = candidate
                    prev[neighbor] = (node, edge.id)
                    counter += 1
                    heapq.heappush(heap, (candidate, counter, neighbor))
        if span:
            span.annotate("settled", len(settled))

    if target not in settled:
        return success("dijkstra", _unreachable(source, target))

    nodes = [target]
    edges: list[str] = []
    while nodes[-1] != source:
        parent, edge_id = prev[nodes[-1]]
        edges.append(edge_id)
        nodes.append(parent)
    nodes.reverse()
    edges.reverse()
    return success(
        "dijkstra",
        PathResult(
            source=source,
            target=target,
            found=True,
            nodes=nodes,
            edges=edges,
            distance=dist[target],
        ),
    )


@traced
def shortest_path_unweighted(
    graph: Graph[Any, Any],
    source: str,
    target: str,
) -> Result[PathResult]:
    """Fewest-hops path via BFS; ties break by edge insertion order."""
    if (err := _check_endpoints(graph, "shortest_path_unweighted", source, target)) is not None:
        return err

    prev: dict[str, tuple[str, str] | None] = {source: None}
    queue: deque[str] = deque([source])
    while queue and target not in prev:
        node = queue.popleft()
        for neighbor, edge in graph.adjacent(node, Direction.OUT):
            if neighbor not in prev:
                prev[neighbor] = (node, edge.id)
                queue.append(neighbor)

    if target not in prev:
        return success("shortest_path_unweighted", _unreachable(source, target))

    nodes = [target]
    edges: list[str] = []
    while (step := prev[nodes[-1]]) is not None:
        edges.append(step[1])
        nodes.append(step[0])
    nodes.reverse()
    edges.reverse()
    return success(
        "shortest_path_unweighted",
        PathResult(
            source=source,
            target=target,
            found=True,
            nodes=nodes,
            edges=edges,
            distance=float(len(edges)),
        ),
    )
