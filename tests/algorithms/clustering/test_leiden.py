"""Tests for Leiden community detection."""

from __future__ import annotations

import pytest

from bibgraph.algorithms._common import CancelToken, symmetric_adjacency
from bibgraph.algorithms.clustering import leiden, louvain
from bibgraph.algorithms.clustering._base import is_connected_within
from bibgraph.algorithms.clustering.leiden import _split_disconnected
from bibgraph.domain.types import ErrorCode
from bibgraph.graph.core import Graph
from bibgraph.graph.loader import BibGraph
from tests.conftest import build_graph


@pytest.fixture
def ring_of_cliques() -> BibGraph:
    """Four triangles joined in a ring by single edges."""
    edges = []
    for i in range(4):
        a, b, c = f"{i}a", f"{i}b", f"{i}c"
        edges += [(a, b), (b, c), (c, a), (c, f"{(i + 1) % 4}a")]
    return build_graph(edges)


class TestLeiden:
    def test_two_disjoint_triangles(self, two_triangles: BibGraph) -> None:
        result = leiden(two_triangles)
        assert result.ok
        value = result.value
        assert value is not None
        assert value.partition() == [["A", "B", "C"], ["D", "E", "F"]]
        assert value.modularity == pytest.approx(0.5)

    def test_barbell(self, barbell: BibGraph) -> None:
        value = leiden(barbell).unwrap()
        assert value.partition() == [["A", "B", "C", "D"], ["E", "F", "G", "H"]]
        assert value.communities[0].conductance == pytest.approx(1 / 13)

    def test_ring_of_cliques(self, ring_of_cliques: BibGraph) -> None:
        value = leiden(ring_of_cliques).unwrap()
        assert len(value.communities) == 4
        assert all(c.size == 3 for c in value.communities)

    @pytest.mark.parametrize(
        "fixture", ["barbell", "citations", "two_triangles", "ring_of_cliques"]
    )
    def test_communities_are_connected(self, fixture: str, request: pytest.FixtureRequest) -> None:
        graph = request.getfixturevalue(fixture)
        value = leiden(graph).unwrap()
        adjacency = symmetric_adjacency(graph)
        for community in value.communities:
            assert community.is_connected
            assert is_connected_within(adjacency, community.members)

    def test_at_least_as_good_as_louvain_here(self, ring_of_cliques: BibGraph) -> None:
        leiden_q = leiden(ring_of_cliques).unwrap().modularity
        louvain_q = louvain(ring_of_cliques).unwrap().modularity
        assert leiden_q >= louvain_q - 1e-12

    def test_deterministic(self, ring_of_cliques: BibGraph) -> None:
        assert (
            leiden(ring_of_cliques).unwrap().partition()
            == leiden(ring_of_cliques).unwrap().partition()
        )

    def test_edgeless_graph(self) -> None:
        value = leiden(build_graph([], nodes=["A", "B"])).unwrap()
        assert value.partition() == [["A"], ["B"]]


class TestSplitDisconnected:
    def test_splits_into_pieces(self) -> None:
        adjacency = symmetric_adjacency(build_graph([("A", "B"), ("C", "D")]))
        assert _split_disconnected(adjacency, [["A", "B", "C", "D"]]) == [["A", "B"], ["C", "D"]]

    def test_connected_group_is_unchanged(self, triangle: BibGraph) -> None:
        adjacency = symmetric_adjacency(triangle)
        assert _split_disconnected(adjacency, [["A", "B", "C"]]) == [["A", "B", "C"]]


class TestLeidenFailures:
    def test_empty_graph(self) -> None:
        result = leiden(Graph())
        assert result.error is not None
        assert result.error.code == ErrorCode.EMPTY_GRAPH

    def test_invalid_resolution(self, triangle: BibGraph) -> None:
        result = leiden(triangle, resolution=0)
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_INPUT

    def test_iteration_cap_returns_partial(self, barbell: BibGraph) -> None:
        result = leiden(barbell, max_iterations=1)
        assert result.ok
        assert result.partial is not None
        assert result.partial.code == ErrorCode.CONVERGENCE_FAILURE
        assert result.partial.detail["iterations"] >= 1

    def test_cancelled(self, barbell: BibGraph) -> None:
        token = CancelToken()
        token.cancel()
        result = leiden(barbell, cancel=token)
        assert result.error is not None
        assert result.error.code == ErrorCode.CANCELLED
