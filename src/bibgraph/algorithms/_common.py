"""Shared plumbing for algorithm entry points.

Option validation, cancellation, weight resolution, and the symmetric
weighted adjacency used by the structural algorithms.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeAlias, TypeVar

from pydantic import BaseModel, ValidationError

from bibgraph.domain.result import Result, failure
from bibgraph.domain.types import ErrorCode
from bibgraph.graph.core import Graph

WeightFn: TypeAlias = Callable[[Any, Any, Any], float]
Adjacency: TypeAlias = dict[str, dict[str, float]]

M = TypeVar("M", bound=BaseModel)


class CancelToken:
    """Caller-owned cancellation signal, checked between outer iterations.

    Safe to trip from another thread while an algorithm runs.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def parse_options(model: type[M], op: str, **values: Any) -> M | Result[Any]:  # noqa: UP047
    """Validate keyword options against *model*.

    Returns the model instance, or an ``INVALID_INPUT`` failure whose
    detail carries the pydantic error list.
    """
    try:
        return model(**values)
    except ValidationError as exc:
        first = exc.errors(include_url=False)[0]
        field = ".".join(str(part) for part in first["loc"])
        return failure(
            op,
            ErrorCode.INVALID_INPUT,
            f"Invalid option '{field}': {first['msg']}",
            errors=exc.errors(include_url=False),
        )


def cancelled(op: str, cancel: CancelToken | None, iterations: int) -> Result[Any] | None:
    """Return a ``CANCELLED`` failure when *cancel* has been tripped."""
    if cancel is not None and cancel.cancelled:
        return failure(
            op,
            ErrorCode.CANCELLED,
            f"{op} cancelled after {iterations} iteration(s)",
            iterations=iterations,
        )
    return None


def require_nodes(graph: Graph[Any, Any], op: str, minimum: int = 1) -> Result[Any] | None:
    """Fail fast on empty graphs or graphs below a structural minimum."""
    count = graph.get_node_count()
    if count == 0:
        return failure(op, ErrorCode.EMPTY_GRAPH, f"Cannot run {op} on an empty graph")
    if count < minimum:
        return failure(
            op,
            ErrorCode.INSUFFICIENT_NODES,
            f"{op} requires at least {minimum} nodes, graph has {count}",
            required=minimum,
            actual=count,
        )
    return None


def limit_nodes(graph: Graph[Any, Any], op: str, limit: int | None) -> Result[Any] | None:
    """Refuse graphs above *limit* nodes for algorithms that build dense n x n state."""
    count = graph.get_node_count()
    if limit is not None and count > limit:
        return failure(
            op,
            ErrorCode.GRAPH_TOO_LARGE,
            f"{op} is limited to {limit} nodes, graph has {count}",
            node_count=count,
            limit=limit,
        )
    return None


def unit_weight(edge: Any, source: Any, target: Any) -> float:
    return 1.0


def edge_weight(edge: Any, source: Any, target: Any) -> float:
    """Use the edge's ``weight`` field, defaulting to 1.0."""
    value = getattr(edge, "weight", None)
    return 1.0 if value is None else float(value)


def symmetric_adjacency(graph: Graph[Any, Any], weight_fn: WeightFn | None = None) -> Adjacency:
    """Undirected weighted adjacency in node insertion order.

    Direction is dropped, parallel and reciprocal edges sum their weights,
    and self-loops are ignored.
    """
    weigh = weight_fn or unit_weight
    adjacency: Adjacency = {nid: {} for nid in graph.node_ids()}
    for edge in graph.get_all_edges():
        u, v = edge.source, edge.target
        if u == v:
            continue
        w = float(weigh(edge, graph.get_node(u), graph.get_node(v)))
        adjacency[u][v] = adjacency[u].get(v, 0.0) + w
        adjacency[v][u] = adjacency[v].get(u, 0.0) + w
    return adjacency

