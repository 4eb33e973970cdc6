"""Traversal and analysis — BFS, DFS, components, cycles, topological order.

All traversals follow node insertion order and edge insertion order, so
visit orders are reproducible. DFS is iterative to stay clear of the
recursion limit on long citation chains.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field

from bibgraph.algorithms._common import require_nodes
from bibgraph.algorithms.telemetry import traced
from bibgraph.domain.result import Result, failure, success
from bibgraph.domain.types import Direction, ErrorCode
from bibgraph.graph.core import Graph


class BFSResult(BaseModel):
    model_config = {"frozen": True}

    order: list[str]
    parents: dict[str, str | None]
    depths: dict[str, int]


class DFSResult(BaseModel):
    """DFS forest with discovery/finish timestamps (one shared clock)."""

    model_config = {"frozen": True}

    order: list[str]
    parents: dict[str, str | None]
    discovery: dict[str, int]
    finish: dict[str, int]


class ComponentsResult(BaseModel):
    model_config = {"frozen": True}

    components: list[list[str]]

    @property
    def count(self) -> int:
        return len(self.components)

    def component_of(self, node_id: str) -> int | None:
        for index, members in enumerate(self.components):
            if node_id in members:
                return index
        return None


class CycleResult(BaseModel):
    """``cycle`` lists the nodes in traversal order; the last links back to the first."""

    model_config = {"frozen": True}

    has_cycle: bool
    cycle: list[str] = Field(default_factory=list)


def _missing(op: str, node_id: str) -> Result[Any]:
    return failure(
        op, ErrorCode.NODE_NOT_FOUND, f"Node '{node_id}' not found in graph", node_id=node_id
    )


# ------------------------------------------------------------------
# bfs / dfs
# ------------------------------------------------------------------


@traced
def bfs(
    graph: Graph[Any, Any],
    start: str,
    *,
    direction: Direction = Direction.OUT,
    max_depth: int | None = None,
) -> Result[BFSResult]:
    """Breadth-first search from *start*.

    Args:
        graph: Graph to traverse.
        start: Source node id.
        direction: Adjacency to follow on directed graphs.
        max_depth: Stop expanding beyond this many hops.
    """
    if start not in graph:
        return _missing("bfs", start)

    parents: dict[str, str | None] = {start: None}
    depths: dict[str, int] = {start: 0}
    order: list[str] = []
    queue: deque[str] = deque([start])
    while queue:
        node = queue.popleft()
        order.append(node)
        if max_depth is not None and depths[node] >= max_depth:
            continue
        for neighbor in graph.get_neighbors(node, direction):
            if neighbor not in parents:
                parents[neighbor] = node
                depths[neighbor] = depths[node] + 1
                queue.append(neighbor)

    return success("bfs", BFSResult(order=order, parents=parents, depths=depths))


def _dfs_visit(
    graph: Graph[Any, Any],
    root: str,
    direction: Direction,
    parents: dict[str, str | None],
    discovery: dict[str, int],
    finish: dict[str, int],
    order: list[str],
    clock: int,
) -> int:
    parents[root] = None
    discovery[root] = clock
    clock += 1
    order.append(root)
    stack: list[tuple[str, list[str], int]] = [(root, graph.get_neighbors(root, direction), 0)]
    while stack:
        node, neighbors, index = stack[-1]
        if index < len(neighbors):
            stack[-1] = (node, neighbors, index + 1)
            child = neighbors[index]
            if child not in discovery:
                parents[child] = node
                discovery[child] = clock
                clock += 1
                order.append(child)
                stack.append((child, graph.get_neighbors(child, direction), 0))
        else:
            stack.pop()
            finish[node] = clock
            clock += 1
    return clock


@traced
def dfs(
    graph: Graph[Any, Any],
    start: str | None = None,
    *,
    direction: Direction = Direction.OUT,
) -> Result[DFSResult]:
    """Depth-first search from *start*, or over every node when *start* is None."""
    if start is not None and start not in graph:
        return _missing("dfs", start)

    parents: dict[str, str | None] = {}
    discovery: dict[str, int] = {}
    finish: dict[str, int] = {}
    order: list[str] = []
    roots = [start] if start is not None else graph.node_ids()
    clock = 0
    for root in roots:
        if root not in discovery:
            clock = _dfs_visit(graph, root, direction, parents, discovery, finish, order, clock)

    return success(
        "dfs",
        DFSResult(order=order, parents=parents, discovery=discovery, finish=finish),
    )


def reachable_from(
    graph: Graph[Any, Any],
    sources: Iterable[str],
    *,
    direction: Direction = Direction.OUT,
    max_depth: int | None = None,
) -> dict[str, int]:
    """Multi-source BFS; maps every reached node to its hop distance."""
    distances: dict[str, int] = {}
    queue: deque[str] = deque()
    for source in sources:
        if source in graph and source not in distances:
            distances[source] = 0
            queue.append(source)
    while queue:
        node = queue.popleft()
        if max_depth is not None and distances[node] >= max_depth:
            continue
        for neighbor in graph.get_neighbors(node, direction):
            if neighbor not in distances:
                distances[neighbor] = distances[node] + 1
                queue.append(neighbor)
    return distances


# ------------------------------------------------------------------
# components
# ------------------------------------------------------------------


@traced
def connected_components(graph: Graph[Any, Any]) -> Result[ComponentsResult]:
    """Partition nodes into (weakly) connected components.

    Directed graphs are treated as undirected. Components are ordered by
    their first node in insertion order.
    """
    if (err := require_nodes(graph, "connected_components")) is not None:
        return err

    seen: set[str] = set()
    components: list[list[str]] = []
    for root in graph.node_ids():
        if root in seen:
            continue
        reached = reachable_from(graph, [root], direction=Direction.BOTH)
        seen.update(reached)
        components.append(list(reached))

    return success("connected_components", ComponentsResult(components=components))


@traced
def strongly_connected_components(graph: Graph[Any, Any]) -> Result[ComponentsResult]:
    """Tarjan's linear-time SCC algorithm (iterative).

    On an undirected graph every connected component is strongly connected.
    """
    if (err := require_nodes(graph, "strongly_connected_components")) is not None:
        return err
    if not graph.is_directed():
        result = connected_components(graph)
        return success("strongly_connected_components", result.value)

    index_of: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[list[str]] = []
    counter = 0

    for root in graph.node_ids():
        if root in index_of:
            continue
        work: list[tuple[str, list[str], int]] = []
        index_of[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work.append((root, graph.get_neighbors(root, Direction.OUT), 0))

        while work:
            node, neighbors, i = work[-1]
            if i < len(neighbors):
                work[-1] = (node, neighbors, i + 1)
                child = neighbors[i]
                if child not in index_of:
                    index_of[child] = lowlink[child] = counter
                    counter += 1
                    stack.append(child)
                    on_stack.add(child)
                    work.append((child, graph.get_neighbors(child, Direction.OUT), 0))
                elif child in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[child])
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])
            if lowlink[node] == index_of[node]:
                component: list[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                component.reverse()
                components.append(component)

    return success("strongly_connected_components", ComponentsResult(components=components))


# ------------------------------------------------------------------
# cycles / topological order
# ------------------------------------------------------------------


def _directed_cycle(graph: Graph[Any, Any]) -> list[str]:
    white, grey, black = 0, 1, 2
    color = dict.fromkeys(graph.node_ids(), white)
    for root in graph.node_ids():
        if color[root] != white:
            continue
        path: list[str] = [root]
        color[root] = grey
        work: list[tuple[str, list[str], int]] = [(root, graph.get_neighbors(root), 0)]
        while work:
            node, neighbors, i = work[-1]
            if i < len(neighbors):
                work[-1] = (node, neighbors, i + 1)
                child = neighbors[i]
                if color[child] == grey:
                    return path[path.index(child) :]
                if color[child] == white:
                    color[child] = grey
                    path.append(child)
                    work.append((child, graph.get_neighbors(child), 0))
            else:
                color[node] = black
                path.pop()
                work.pop()
    return []


def _undirected_cycle(graph: Graph[Any, Any]) -> list[str]:
    parent: dict[str, str | None] = {}
    via: dict[str, str | None] = {}
    for root in graph.node_ids():
        if root in parent:
            continue
        parent[root] = None
        via[root] = None
        stack = [root]
        while stack:
            node = stack.pop()
            for neighbor, edge in graph.adjacent(node):
                if edge.id == via[node]:
                    continue
                if neighbor == node:
                    return [node]
                if neighbor in parent:
                    # Non-tree edge: splice the two tree paths.
                    left = [node]
                    while left[-1] != root:
                        left.append(parent[left[-1]])  # type: ignore[arg-type]
                    right = [neighbor]
                    while right[-1] != root:
                        right.append(parent[right[-1]])  # type: ignore[arg-type]
                    common = set(left) & set(right)
                    left = left[: next(i for i, n in enumerate(left) if n in common) + 1]
                    right = right[: next(i for i, n in enumerate(right) if n in common)]
                    return list(reversed(left)) + right
                parent[neighbor] = node
                via[neighbor] = edge.id
                stack.append(neighbor)
    return []


@traced
def detect_cycle(graph: Graph[Any, Any]) -> Result[CycleResult]:
    """Report whether a cycle exists and, if so, one cycle's node sequence.

    Directed graphs use three-colour DFS. Undirected graphs treat any
    non-tree edge (parallel edges and self-loops included) as a cycle.
    """
    if (err := require_nodes(graph, "detect_cycle")) is not None:
        return err
    cycle = _directed_cycle(graph) if graph.is_directed() else _undirected_cycle(graph)
    return success("detect_cycle", CycleResult(has_cycle=bool(cycle), cycle=cycle))


@traced
def topological_sort(graph: Graph[Any, Any]) -> Result[list[str]]:
    """Kahn's algorithm; ties resolve in node insertion order.

    Fails with ``INVALID_INPUT`` iff the graph has a cycle (or is undirected).
    """
    if (err := require_nodes(graph, "topological_sort")) is not None:
        return err
    if not graph.is_directed():
        return failure(
            "topological_sort",
            ErrorCode.INVALID_INPUT,
            "Topological order is only defined for directed graphs",
        )

    indegree = {nid: graph.degree(nid, Direction.IN) for nid in graph.node_ids()}
    queue: deque[str] = deque(nid for nid, d in indegree.items() if d == 0)
    order: list[str] = []
    while queue:
        node = queue.popleft()
        order.append(node)
        for edge in graph.edges_of(node, Direction.OUT):
            indegree[edge.target] -= 1
            if indegree[edge.target] == 0:
                queue.append(edge.target)

    if len(order) < graph.get_node_count():
        cycle = _directed_cycle(graph)
        return failure(
            "topological_sort",
            ErrorCode.INVALID_INPUT,
            "Graph contains a cycle; no topological order exists",
            cycle=cycle,
        )
    return success("topological_sort", order)
