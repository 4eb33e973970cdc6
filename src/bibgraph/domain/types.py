"""Classification enums shared across the graph and algorithm layers."""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Failure taxonomy for algorithm and graph operations."""

    INVALID_INPUT = "INVALID_INPUT"
    EMPTY_GRAPH = "EMPTY_GRAPH"
    INSUFFICIENT_NODES = "INSUFFICIENT_NODES"
    CONVERGENCE_FAILURE = "CONVERGENCE_FAILURE"
    EDGE_REFERENCES_MISSING_NODE = "EDGE_REFERENCES_MISSING_NODE"
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    DUPLICATE_NODE = "DUPLICATE_NODE"
    CANCELLED = "CANCELLED"
    GRAPH_TOO_LARGE = "GRAPH_TOO_LARGE"


class Direction(StrEnum):
    """Which adjacency to follow from a node."""

    OUT = "out"
    IN = "in"
    BOTH = "both"


class StarType(StrEnum):
    """Orientation of a star motif's spokes relative to its hub."""

    IN = "in"
    OUT = "out"
    UNDIRECTED = "undirected"


class Linkage(StrEnum):
    """Cluster-distance rule for agglomerative clustering."""

    SINGLE = "single"
    COMPLETE = "complete"
    AVERAGE = "average"


class CombineMode(StrEnum):
    """How node and edge predicates combine when filtering a subgraph."""

    AND = "and"
    OR = "or"


class ReachDirection(StrEnum):
    """Traversal direction for reachability extraction."""

    FORWARD = "forward"
    BACKWARD = "backward"
