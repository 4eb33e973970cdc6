"""Tests for label propagation."""

from __future__ import annotations

import pytest

from bibgraph.algorithms._common import CancelToken
from bibgraph.algorithms.clustering import label_propagation
from bibgraph.algorithms.clustering.label_propagation import _pick_label
from bibgraph.domain.types import ErrorCode
from bibgraph.graph.core import Graph
from bibgraph.graph.loader import BibGraph
from tests.conftest import build_graph


class TestLabelPropagation:
    def test_two_disjoint_triangles(self, two_triangles: BibGraph) -> None:
        result = label_propagation(two_triangles)
        assert result.ok
        value = result.value
        assert value is not None
        assert value.partition() == [["A", "B", "C"], ["D", "E", "F"]]
        assert value.converged
        assert value.iterations == 2

    def test_no_quality_fields(self, two_triangles: BibGraph) -> None:
        value = label_propagation(two_triangles).unwrap()
        for community in value.communities:
            assert community.density is None
            assert community.conductance is None
            assert community.internal_edges == 3

    def test_isolated_nodes_keep_their_own_label(self) -> None:
        value = label_propagation(build_graph([("A", "B")], nodes=["Z"])).unwrap()
        assert value.partition() == [["Z"], ["A", "B"]]

    def test_heavier_label_wins(self) -> None:
        graph = build_graph([("A", "B", 5), ("A", "C", 1), ("C", "D", 5)])
        value = label_propagation(graph).unwrap()
        assert ["C", "D"] in value.partition()

    def test_unseeded_runs_are_identical(self, barbell: BibGraph) -> None:
        assert (
            label_propagation(barbell).unwrap().partition()
            == label_propagation(barbell).unwrap().partition()
        )

    def test_seeded_runs_are_identical(self, barbell: BibGraph) -> None:
        first = label_propagation(barbell, seed=7).unwrap()
        second = label_propagation(barbell, seed=7).unwrap()
        assert first.partition() == second.partition()
        assert first.parameters["seed"] == 7

    def test_partition_covers_every_node(self, citations: BibGraph) -> None:
        value = label_propagation(citations).unwrap()
        assert sorted(n for part in value.partition() for n in part) == sorted(
            citations.node_ids()
        )


    def test_min_improvement_stops_early(self, two_triangles: BibGraph) -> None:
        result = label_propagation(two_triangles, min_improvement=1.0)
        assert result.partial is None
        value = result.unwrap()
        assert value.iterations == 1
        assert value.converged
        assert value.partition() == [["A", "B", "C"], ["D", "E", "F"]]
        assert value.parameters["min_improvement"] == 1.0


class TestTieRule:
    def test_lowest_of_the_heaviest_labels(self) -> None:
        assert _pick_label({"C": 1.0, "B": 1.0, "A": 0.5}, "Z") == "B"

    def test_current_label_kept_on_a_tie(self) -> None:
        assert _pick_label({"A": 2.0, "C": 2.0}, "C") == "C"

    def test_heavier_label_beats_lower_id(self) -> None:
        assert _pick_label({"A": 1.0, "B": 3.0}, "A") == "B"

class TestLabelPropagationFailures:
    def test_empty_graph(self) -> None:
        result = label_propagation(Graph())
        assert result.error is not None
        assert result.error.code == ErrorCode.EMPTY_GRAPH

    def test_invalid_max_iterations(self, triangle: BibGraph) -> None:
        result = label_propagation(triangle, max_iterations=0)
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_INPUT

    def test_iteration_cap_returns_partial(self, two_triangles: BibGraph) -> None:
        result = label_propagation(two_triangles, max_iterations=1)
        assert result.ok
        assert result.partial is not None
        assert result.partial.code == ErrorCode.CONVERGENCE_FAILURE
        assert result.value is not None
        assert result.value.iterations == 1

    def test_cancelled(self, triangle: BibGraph) -> None:
        token = CancelToken()
        token.cancel()
        result = label_propagation(triangle, cancel=token)
        assert result.error is not None
        assert result.error.code == ErrorCode.CANCELLED

    @pytest.mark.parametrize("value", [-0.1, 1.5])
    def test_invalid_min_improvement(self, triangle: BibGraph, value: float) -> None:
        result = label_propagation(triangle, min_improvement=value)
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_INPUT
