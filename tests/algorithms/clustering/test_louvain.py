"""Tests for Louvain community detection."""

from __future__ import annotations

import pytest

from bibgraph.algorithms._common import CancelToken
from bibgraph.algorithms.clustering import louvain
from bibgraph.algorithms.metrics import modularity
from bibgraph.domain.types import ErrorCode
from bibgraph.graph.core import Graph
from bibgraph.graph.loader import BibGraph
from tests.conftest import build_graph


class TestLouvain:
    def test_two_disjoint_triangles(self, two_triangles: BibGraph) -> None:
        result = louvain(two_triangles, resolution=1.0)
        assert result.ok
        value = result.value
        assert value is not None
        assert value.partition() == [["A", "B", "C"], ["D", "E", "F"]]
        assert [c.size for c in value.communities] == [3, 3]
        assert value.modularity > 0
        assert value.modularity == pytest.approx(0.5)
        assert value.converged
        assert result.partial is None

    def test_barbell_splits_at_the_bridge(self, barbell: BibGraph) -> None:
        value = louvain(barbell).unwrap()
        assert value.partition() == [["A", "B", "C", "D"], ["E", "F", "G", "H"]]
        assert value.communities[0].internal_edges == 6
        assert value.communities[0].external_edges == 1

    def test_beats_singletons(self, barbell: BibGraph) -> None:
        value = louvain(barbell).unwrap()
        singletons = modularity(barbell, [[nid] for nid in barbell.node_ids()]).unwrap()
        assert value.modularity >= singletons

    def test_modularity_matches_metric(self, barbell: BibGraph) -> None:
        value = louvain(barbell).unwrap()
        assert value.modularity == pytest.approx(modularity(barbell, value.partition()).unwrap())
        assert value.metrics.modularity == pytest.approx(value.modularity)

    def test_communities_report_density(self, two_triangles: BibGraph) -> None:
        value = louvain(two_triangles).unwrap()
        assert all(c.density == 1.0 for c in value.communities)
        assert all(c.conductance is None for c in value.communities)

    def test_partition_covers_every_node_once(self, citations: BibGraph) -> None:
        value = louvain(citations).unwrap()
        members = [nid for part in value.partition() for nid in part]
        assert sorted(members) == sorted(citations.node_ids())

    def test_deterministic(self, barbell: BibGraph) -> None:
        first = louvain(barbell).unwrap()
        second = louvain(barbell).unwrap()
        assert first.partition() == second.partition()
        assert first.modularity == second.modularity

    def test_weights_drive_the_split(self) -> None:
        graph = build_graph([("A", "B", 10), ("B", "C", 1), ("C", "D", 10), ("D", "A", 1)])
        value = louvain(graph).unwrap()
        assert value.partition() == [["A", "B"], ["C", "D"]]

    def test_edgeless_graph_gives_singletons(self) -> None:
        value = louvain(build_graph([], nodes=["A", "B", "C"])).unwrap()
        assert value.partition() == [["A"], ["B"], ["C"]]
        assert value.modularity == 0.0

    def test_parameters_are_recorded(self, triangle: BibGraph) -> None:
        value = louvain(triangle, resolution=0.5).unwrap()
        assert value.parameters["resolution"] == 0.5
        assert value.algorithm == "louvain"


class TestLouvainFailures:
    def test_empty_graph(self) -> None:
        result = louvain(Graph())
        assert result.error is not None
        assert result.error.code == ErrorCode.EMPTY_GRAPH

    @pytest.mark.parametrize(
        "options",
        [{"resolution": 0}, {"resolution": -1.0}, {"max_iterations": 0}, {"min_improvement": -1}],
    )
    def test_invalid_options(self, triangle: BibGraph, options: dict[str, float]) -> None:
        result = louvain(triangle, **options)  # type: ignore[arg-type]
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_INPUT

    def test_iteration_cap_returns_partial(self, barbell: BibGraph) -> None:
        result = louvain(barbell, max_iterations=1)
        assert result.ok
        assert result.partial is not None
        assert result.partial.code == ErrorCode.CONVERGENCE_FAILURE
        assert result.value is not None
        assert not result.value.converged
        assert sum(c.size for c in result.value.communities) == 8

    def test_cancelled(self, barbell: BibGraph) -> None:
        token = CancelToken()
        token.cancel()
        result = louvain(barbell, cancel=token)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.CANCELLED
