"""Graph loaders — build a Graph from JSON documents or NetworkX graphs.

Loads all nodes first (so isolated nodes appear in the graph), then adds
edges. Edges referencing absent nodes are skipped and surface as
warnings on the returned Result.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TypeAlias

import networkx as nx
from pydantic import BaseModel, ValidationError

from bibgraph.domain.entities import RelationEdge, WorkNode
from bibgraph.domain.result import Result, failure
from bibgraph.domain.types import ErrorCode
from bibgraph.graph.core import Graph

BibGraph: TypeAlias = Graph[WorkNode, RelationEdge]


def graph_from_mapping(data: Mapping[str, Any]) -> Result[BibGraph]:
    """Build a graph from ``{"directed": bool, "nodes": [...], "edges": [...]}``.

    Edge entries without an ``id`` get ``"<source>-><target>#<index>"``.
    """
    try:
        nodes = [WorkNode.model_validate(raw) for raw in data.get("nodes", [])]
        edges: list[RelationEdge] = []
        for index, raw in enumerate(data.get("edges", [])):
            payload = dict(raw)
            payload.setdefault("id", f"{payload.get('source')}->{payload.get('target')}#{index}")
            edges.append(RelationEdge.model_validate(payload))
    except ValidationError as exc:
        return failure(
            "load_graph",
            ErrorCode.INVALID_INPUT,
            f"Malformed graph document: {exc.error_count()} validation error(s)",
            errors=exc.errors(include_url=False),
        )
    return Graph.from_entities(nodes, edges, directed=bool(data.get("directed", True)))


def load_graph(path: Path) -> Result[BibGraph]:
    """Read a JSON graph document from *path*."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return failure("load_graph", ErrorCode.INVALID_INPUT, f"Graph file not found: {path}")
    except json.JSONDecodeError as exc:
        return failure("load_graph", ErrorCode.INVALID_INPUT, f"Invalid JSON in {path}: {exc}")
    if not isinstance(raw, dict):
        return failure(
            "load_graph", ErrorCode.INVALID_INPUT, "Graph document must be a JSON object"
        )
    return graph_from_mapping(raw)


def graph_from_networkx(g: nx.Graph[Any]) -> Result[BibGraph]:
    """Convert a NetworkX graph; node/edge attributes become payload fields."""
    document: dict[str, Any] = {"directed": g.is_directed(), "nodes": [], "edges": []}
    for node_id, attrs in g.nodes(data=True):
        extra = {k: v for k, v in attrs.items() if k not in {"type", "label"}}
        document["nodes"].append(
            {
                "id": str(node_id),
                "type": attrs.get("type", "work"),
                "label": attrs.get("label", str(node_id)),
                "attributes": extra,
            }
        )
    for index, (u, v, attrs) in enumerate(g.edges(data=True)):
        entry = {"source": str(u), "target": str(v), **attrs}
        entry.setdefault("id", f"e{index}")
        document["edges"].append(entry)
    return graph_from_mapping(document)


def to_networkx(graph: Graph[Any, Any]) -> nx.Graph[str]:
    """Export to a NetworkX ``DiGraph``/``Graph`` (parallel edges collapse, weights sum)."""
    g: nx.Graph[str] = nx.DiGraph() if graph.is_directed() else nx.Graph()
    for node_id in graph.node_ids():
        node = graph.get_node(node_id)
        g.add_node(
            node_id,
            type=getattr(node, "type", ""),
            label=getattr(node, "label", ""),
        )
    for edge in graph.get_all_edges():
        weight = getattr(edge, "weight", None)
        weight = 1.0 if weight is None else float(weight)
        if g.has_edge(edge.source, edge.target):
            g[edge.source][edge.target]["weight"] += weight
        else:
            g.add_edge(
                edge.source,
                edge.target,
                weight=weight,
                edge_type=getattr(edge, "type", ""),
            )
    return g


def graph_to_mapping(graph: Graph[Any, Any]) -> dict[str, Any]:
    """Inverse of :func:`graph_from_mapping` for pydantic payloads.

    Non-pydantic payloads are reduced to their ids and endpoints.
    """

    def dump(item: Any, *keys: str) -> dict[str, Any]:
        if isinstance(item, BaseModel):
            return item.model_dump(mode="json", exclude_none=True)
        return {key: getattr(item, key) for key in keys}

    return {
        "directed": graph.is_directed(),
        "nodes": [dump(node, "id") for node in graph.get_all_nodes()],
        "edges": [dump(edge, "id", "source", "target") for edge in graph.get_all_edges()],
    }
