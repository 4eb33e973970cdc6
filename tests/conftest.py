"""Shared pytest fixtures and test helpers for bibgraph tests."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from bibgraph.domain.entities import RelationEdge, WorkNode
from bibgraph.graph.core import Graph
from bibgraph.graph.loader import BibGraph, graph_from_mapping


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty temp dir so no stray bibgraph.toml is discovered."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BIBGRAPH_CONFIG", raising=False)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def build_graph(
    edges: Iterable[Sequence[Any]],
    *,
    directed: bool = False,
    nodes: Iterable[str] = (),
    node_types: dict[str, str] | None = None,
) -> BibGraph:
    """Graph from ``(source, target)`` or ``(source, target, weight)`` tuples.

    Nodes are added in first-appearance order: *nodes* first, then edge
    endpoints. Edge ids are ``e0``, ``e1``, ...
    """
    edge_list = [tuple(e) for e in edges]
    order: dict[str, None] = dict.fromkeys(nodes)
    for edge in edge_list:
        order.setdefault(edge[0], None)
        order.setdefault(edge[1], None)
    types = node_types or {}
    graph: BibGraph = Graph(directed=directed)
    for nid in order:
        graph.add_node(WorkNode(id=nid, type=types.get(nid, "work"), label=nid)).unwrap()
    for index, edge in enumerate(edge_list):
        weight = float(edge[2]) if len(edge) > 2 else None
        graph.add_edge(
            RelationEdge(id=f"e{index}", source=edge[0], target=edge[1], weight=weight)
        ).unwrap()
    return graph


def write_graph(path: Path, document: dict[str, Any]) -> Path:
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def document(
    edges: Iterable[Sequence[str]], *, directed: bool = True, **edge_fields: Any
) -> dict[str, Any]:
    """Graph JSON document, as read by the CLI, from ``(source, target)`` pairs."""
    edge_list = [tuple(e) for e in edges]
    ids = list(dict.fromkeys(n for e in edge_list for n in e))
    return {
        "directed": directed,
        "nodes": [{"id": nid, "label": nid} for nid in ids],
        "edges": [
            {"id": f"e{i}", "source": s, "target": t, **edge_fields}
            for i, (s, t) in enumerate(edge_list)
        ],
    }


@pytest.fixture
def triangle() -> BibGraph:
    return build_graph([("A", "B"), ("B", "C"), ("C", "A")])


@pytest.fixture
def path4() -> BibGraph:
    return build_graph([("A", "B"), ("B", "C"), ("C", "D")])


@pytest.fixture
def two_triangles() -> BibGraph:
    return build_graph(
        [("A", "B"), ("B", "C"), ("C", "A"), ("D", "E"), ("E", "F"), ("F", "D")]
    )


@pytest.fixture
def barbell() -> BibGraph:
    """Two 4-cliques joined by the single edge D–E."""
    left = [("A", "B"), ("A", "C"), ("A", "D"), ("B", "C"), ("B", "D"), ("C", "D")]
    right = [("E", "F"), ("E", "G"), ("E", "H"), ("F", "G"), ("F", "H"), ("G", "H")]
    return build_graph([*left, ("D", "E"), *right])


@pytest.fixture
def citations() -> BibGraph:
    """Small citation DAG: P1 and P2 both cite R1 and R2; P3 cites R1."""
    return build_graph(
        [("P1", "R1"), ("P1", "R2"), ("P2", "R1"), ("P2", "R2"), ("P3", "R1"), ("R1", "R0")],
        directed=True,
    )


@pytest.fixture
def graph_file(tmp_path: Path) -> Path:
    """Two directed triangles bridged by P3 -> P4, as a JSON document on disk."""
    edges = [
        ("P1", "P2"),
        ("P2", "P3"),
        ("P1", "P3"),
        ("P4", "P5"),
        ("P5", "P6"),
        ("P4", "P6"),
        ("P3", "P4"),
    ]
    return write_graph(tmp_path / "graph.json", document(edges, score=0.5))


def load_document(data: dict[str, Any]) -> BibGraph:
    return graph_from_mapping(data).unwrap()


def clique_ring(count: int, size: int = 4) -> tuple[BibGraph, list[list[str]]]:
    """*count* cliques of *size* nodes, each joined to the next by one edge."""
    groups = [[f"c{i}_{j}" for j in range(size)] for i in range(count)]
    edges: list[tuple[str, str]] = []
    for index, members in enumerate(groups):
        edges.extend(
            (members[a], members[b]) for a in range(size) for b in range(a + 1, size)
        )
        edges.append((members[-1], groups[(index + 1) % count][0]))
    return build_graph(edges), groups
