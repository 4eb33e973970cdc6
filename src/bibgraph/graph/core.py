"""Graph — generic adjacency-indexed container.

Built fresh per analysis call from caller-supplied node and edge lists.
Directedness is fixed at construction. Each edge is stored once and
indexed from both endpoints, so undirected graphs are traversed in both
directions without duplicating storage. Algorithms never mutate a graph;
extraction functions return new instances.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any, Generic, TypeVar

from bibgraph.domain.entities import EdgeLike, HasId
from bibgraph.domain.result import Result, failure, success
from bibgraph.domain.types import Direction, ErrorCode

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=HasId)
E = TypeVar("E", bound=EdgeLike)


class Graph(Generic[N, E]):
    """Directed or undirected multigraph keyed by node and edge ids.

    Iteration order everywhere is insertion order, which keeps every
    algorithm built on top of it deterministic.
    """

    def __init__(self, directed: bool = True) -> None:
        self._directed = directed
        self._nodes: dict[str, N] = {}
        self._edges: dict[str, E] = {}
        self._out: dict[str, list[str]] = {}
        self._in: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_entities(
        cls,
        nodes: Iterable[N],
        edges: Iterable[E],
        *,
        directed: bool = True,
    ) -> Result[Graph[N, E]]:
        """Build a graph from entity lists.

        Duplicate node ids fail the build. Edges referencing absent nodes
        are skipped and reported as warnings, since graphs are often
        assembled from partially loaded data.
        """
        graph: Graph[N, E] = cls(directed=directed)
        for node in nodes:
            added = graph.add_node(node)
            if not added.ok:
                return failure(
                    "build_graph",
                    added.error.code,  # type: ignore[union-attr]
                    added.error.message,  # type: ignore[union-attr]
                    **added.error.detail,  # type: ignore[union-attr]
                )

        warnings: list[str] = []
        for edge in edges:
            added = graph.add_edge(edge)
            if not added.ok:
                warnings.append(added.error.message)  # type: ignore[union-attr]
        return success("build_graph", graph, warnings=warnings)

    def add_node(self, node: N) -> Result[None]:
        """Insert *node*. A duplicate id is rejected, never overwritten."""
        if node.id in self._nodes:
            return failure(
                "add_node",
                ErrorCode.DUPLICATE_NODE,
                f"Node '{node.id}' already exists",
                node_id=node.id,
            )
        self._nodes[node.id] = node
        self._out[node.id] = []
        self._in[node.id] = []
        return success("add_node")

    def add_edge(self, edge: E) -> Result[None]:
        """Insert *edge* if both endpoints exist.

        A missing endpoint is a local, non-fatal skip: the edge is not
        stored, a warning is logged, and the failed result tells the
        caller why.
        """
        missing = [nid for nid in (edge.source, edge.target) if nid not in self._nodes]
        if missing:
            logger.warning(
                "graph.edge_skipped: edge %s references missing node(s) %s",
                edge.id,
                ", ".join(missing),
            )
            return failure(
                "add_edge",
                ErrorCode.EDGE_REFERENCES_MISSING_NODE,
                f"Edge '{edge.id}' references missing node(s): {', '.join(missing)}",
                edge_id=edge.id,
                missing=missing,
            )
        if edge.id in self._edges:
            return failure(
                "add_edge",
                ErrorCode.INVALID_INPUT,
                f"Edge '{edge.id}' already exists",
                edge_id=edge.id,
            )
        self._edges[edge.id] = edge
        self._out[edge.source].append(edge.id)
        self._in[edge.target].append(edge.id)
        return success("add_edge")

    def copy_empty(self) -> Graph[N, E]:
        """Return a new, empty graph with the same directedness."""
        return type(self)(directed=self._directed)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def is_directed(self) -> bool:
        return self._directed

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> N | None:
        return self._nodes.get(node_id)

    def get_edge(self, edge_id: str) -> E | None:
        return self._edges.get(edge_id)

    def get_all_nodes(self) -> list[N]:
        return list(self._nodes.values())

    def get_all_edges(self) -> list[E]:
        return list(self._edges.values())

    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def get_node_count(self) -> int:
        return len(self._nodes)

    def get_edge_count(self) -> int:
        return len(self._edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __repr__(self) -> str:
        kind = "directed" if self._directed else "undirected"
        return f"<Graph {kind} nodes={len(self._nodes)} edges={len(self._edges)}>"

    # ------------------------------------------------------------------
    # Adjacency
    # ------------------------------------------------------------------

    def get_outgoing_edges(self, node_id: str) -> list[E]:
        """Edges leaving *node_id* (all incident edges when undirected)."""
        return self.edges_of(node_id, Direction.OUT)

    def get_incoming_edges(self, node_id: str) -> list[E]:
        """Edges entering *node_id* (all incident edges when undirected)."""
        return self.edges_of(node_id, Direction.IN)

    def edges_of(self, node_id: str, direction: Direction = Direction.OUT) -> list[E]:
        """Incident edges of *node_id* in *direction*.

        Undirected graphs ignore *direction*; each incident edge is
        returned once, self-loops included.
        """
        if node_id not in self._nodes:
            return []
        if not self._directed or direction == Direction.BOTH:
            ids = list(self._out[node_id])
            ids.extend(eid for eid in self._in[node_id] if self._edges[eid].source != node_id)
        elif direction == Direction.OUT:
            ids = self._out[node_id]
        else:
            ids = self._in[node_id]
        return [self._edges[eid] for eid in ids]

    def adjacent(
        self, node_id: str, direction: Direction = Direction.OUT
    ) -> Iterator[tuple[str, E]]:
        """Yield ``(neighbor_id, edge)`` pairs, one per incident edge."""
        for edge in self.edges_of(node_id, direction):
            yield (edge.target if edge.source == node_id else edge.source), edge

    def get_neighbors(self, node_id: str, direction: Direction = Direction.OUT) -> list[str]:
        """Distinct neighbor ids in first-seen order."""
        seen: dict[str, None] = {}
        for neighbor, _ in self.adjacent(node_id, direction):
            seen.setdefault(neighbor, None)
        return list(seen)

    def degree(self, node_id: str, direction: Direction = Direction.OUT) -> int:
        return len(self.edges_of(node_id, direction))

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def derive(
        self,
        node_ids: Iterable[str],
        *,
        edge_filter: Any = None,
    ) -> Graph[N, E]:
        """Build a new graph on *node_ids* with every edge whose endpoints survive.

        Nodes keep this graph's insertion order. *edge_filter*, when given,
        is an extra ``edge -> bool`` predicate an edge must pass.
        """
        keep = set(node_ids)
        derived = self.copy_empty()
        for nid, node in self._nodes.items():
            if nid in keep:
                derived.add_node(node)
        for edge in self._edges.values():
            if edge.source in keep and edge.target in keep:
                if edge_filter is None or edge_filter(edge):
                    derived.add_edge(edge)
        return derived
