"""Subgraph extraction — ego networks, induced subgraphs, predicate filters.

Every function returns a new Graph with the input's directedness; the
input graph is never modified. Kept nodes and edges preserve the input's
insertion order.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable
from typing import Any, TypeAlias

from pydantic import BaseModel

from bibgraph.algorithms.telemetry import traced
from bibgraph.algorithms.traversal import reachable_from
from bibgraph.domain.result import Result, failure, success
from bibgraph.domain.types import CombineMode, Direction, ErrorCode, ReachDirection
from bibgraph.graph.core import Graph

NodePredicate: TypeAlias = Callable[[Any], bool]
EdgePredicate: TypeAlias = Callable[[Any], bool]


class ReachabilityResult(BaseModel):
    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    graph: Graph
    distances: dict[str, int]


def _missing_seed(op: str, graph: Graph[Any, Any], seeds: list[str]) -> Result[Any] | None:
    if not seeds:
        return failure(op, ErrorCode.INVALID_INPUT, "At least one seed node is required")
    for seed in seeds:
        if seed not in graph:
            return failure(
                op, ErrorCode.NODE_NOT_FOUND, f"Seed node '{seed}' not found in graph", node_id=seed
            )
    return None


@traced
def extract_ego_network(
    graph: Graph[Any, Any],
    seeds: str | Iterable[str],
    radius: int = 1,
    *,
    include_internal_edges: bool = True,
    direction: Direction = Direction.BOTH,
) -> Result[Graph[Any, Any]]:
    """Nodes within *radius* hops of any seed (union of the ego networks).

    With ``include_internal_edges`` (the default) the result is the
    induced subgraph. Without it, only edges joining consecutive hop
    layers are kept, so edges among nodes at the same distance are dropped.
    """
    seed_list = [seeds] if isinstance(seeds, str) else list(seeds)
    if radius < 0:
        return failure(
            "extract_ego_network",
            ErrorCode.INVALID_INPUT,
            f"radius must be >= 0, got {radius}",
            radius=radius,
        )
    if (err := _missing_seed("extract_ego_network", graph, seed_list)) is not None:
        return err

    distances = reachable_from(graph, seed_list, direction=direction, max_depth=radius)
    if include_internal_edges:
        return success("extract_ego_network", graph.derive(distances))

    def between_layers(edge: Any) -> bool:
        return abs(distances[edge.source] - distances[edge.target]) == 1

    return success("extract_ego_network", graph.derive(distances, edge_filter=between_layers))


@traced
def extract_induced_subgraph(
    graph: Graph[Any, Any], node_ids: Iterable[str]
) -> Result[Graph[Any, Any]]:
    """Exactly *node_ids* plus every edge with both endpoints among them.

    Unknown ids fail with ``NODE_NOT_FOUND`` rather than being ignored.
    """
    wanted = list(node_ids)
    for nid in wanted:
        if nid not in graph:
            return failure(
                "extract_induced_subgraph",
                ErrorCode.NODE_NOT_FOUND,
                f"Node '{nid}' not found in graph",
                node_id=nid,
            )
    return success("extract_induced_subgraph", graph.derive(wanted))


@traced
def filter_graph(
    graph: Graph[Any, Any], node_predicate: NodePredicate
) -> Result[Graph[Any, Any]]:
    """Induced subgraph on the nodes passing *node_predicate*."""
    if node_predicate is None:
        return failure("filter_graph", ErrorCode.INVALID_INPUT, "A node predicate is required")
    kept = [node.id for node in graph.get_all_nodes() if node_predicate(node)]
    return success("filter_graph", graph.derive(kept))


@traced
def filter_subgraph(
    graph: Graph[Any, Any],
    *,
    node_predicate: NodePredicate | None = None,
    edge_predicate: EdgePredicate | None = None,
    edge_types: Collection[str] | None = None,
    combine_mode: CombineMode = CombineMode.AND,
) -> Result[Graph[Any, Any]]:
    """Filter by node attributes, edge attributes, and/or relation type.

    *edge_types* narrows the edge predicate to the listed relation types.
    Combination rules:

    * only edge criteria: every node is kept, edges are filtered;
    * ``and``: nodes passing the node predicate, joined by edges that
      pass the edge criteria;
    * ``or``: nodes passing the node predicate plus the endpoints of
      passing edges, joined by the passing edges.
    """
    if node_predicate is None and edge_predicate is None and edge_types is None:
        return failure(
            "filter_subgraph",
            ErrorCode.INVALID_INPUT,
            "Provide at least one of node_predicate, edge_predicate, edge_types",
        )

    has_edge_filter = edge_predicate is not None or edge_types is not None

    def edge_passes(edge: Any) -> bool:
        if edge_types is not None and getattr(edge, "type", None) not in edge_types:
            return False
        return edge_predicate is None or edge_predicate(edge)

    if node_predicate is None:
        return success("filter_subgraph", graph.derive(graph.node_ids(), edge_filter=edge_passes))

    node_pass = {node.id for node in graph.get_all_nodes() if node_predicate(node)}
    if not has_edge_filter or combine_mode == CombineMode.AND:
        edge_filter = edge_passes if has_edge_filter else None
        return success("filter_subgraph", graph.derive(node_pass, edge_filter=edge_filter))

    passing = [edge for edge in graph.get_all_edges() if edge_passes(edge)]
    kept = set(node_pass)
    for edge in passing:
        kept.add(edge.source)
        kept.add(edge.target)
    passing_ids = {edge.id for edge in passing}
    return success(
        "filter_subgraph",
        graph.derive(kept, edge_filter=lambda edge: edge.id in passing_ids),
    )


@traced
def extract_reachability_subgraph(
    graph: Graph[Any, Any],
    sources: str | Iterable[str],
    *,
    direction: ReachDirection = ReachDirection.FORWARD,
    max_depth: int | None = None,
) -> Result[ReachabilityResult]:
    """Everything reachable from *sources* (forward) or reaching them (backward).

    Forward on a citation graph yields everything the sources cite,
    transitively; backward yields everything that cites them.
    """
    source_list = [sources] if isinstance(sources, str) else list(sources)
    if (err := _missing_seed("extract_reachability_subgraph", graph, source_list)) is not None:
        return err
    if max_depth is not None and max_depth < 0:
        return failure(
            "extract_reachability_subgraph",
            ErrorCode.INVALID_INPUT,
            f"max_depth must be >= 0, got {max_depth}",
        )
    walk = Direction.OUT if direction == ReachDirection.FORWARD else Direction.IN
    distances = reachable_from(graph, source_list, direction=walk, max_depth=max_depth)
    return success(
        "extract_reachability_subgraph",
        ReachabilityResult(graph=graph.derive(distances), distances=distances),
    )
