"""Tests for spectral partitioning."""

from __future__ import annotations

import numpy as np
import pytest

from bibgraph.algorithms._common import CancelToken
from bibgraph.algorithms.clustering import spectral_partition
from bibgraph.algorithms.clustering.spectral import _embedding
from bibgraph.domain.types import ErrorCode
from bibgraph.graph.core import Graph
from bibgraph.graph.loader import BibGraph


class TestSpectralPartition:
    def test_barbell_bisection(self, barbell: BibGraph) -> None:
        result = spectral_partition(barbell, k=2)
        assert result.ok
        value = result.value
        assert value is not None
        assert value.algorithm == "spectral"
        assert value.partition() == [["A", "B", "C", "D"], ["E", "F", "G", "H"]]
        assert [c.edge_cut for c in value.communities] == [1, 1]
        assert value.balance == 1.0
        assert value.converged

    def test_same_seed_same_partition(self, barbell: BibGraph) -> None:
        first = spectral_partition(barbell, k=3, seed=11).unwrap()
        second = spectral_partition(barbell, k=3, seed=11).unwrap()
        assert first.partition() == second.partition()

    def test_at_most_k_partitions(self, barbell: BibGraph) -> None:
        value = spectral_partition(barbell, k=3).unwrap()
        assert 1 <= len(value.communities) <= 3
        assert sum(c.size for c in value.communities) == 8
        assert 0 < value.balance <= 1  # type: ignore[operator]

    def test_k_equal_to_node_count(self, triangle: BibGraph) -> None:
        value = spectral_partition(triangle, k=3).unwrap()
        assert value.partition() == [["A"], ["B"], ["C"]]
        assert value.iterations == 0

    def test_embedding_rows_are_unit_length(self) -> None:
        matrix = np.ones((4, 4)) - np.eye(4)
        matrix[0, 1] = matrix[1, 0] = 0.0
        points = _embedding(matrix, 2)
        assert points.shape == (4, 2)
        assert np.allclose(np.linalg.norm(points, axis=1), 1.0)


class TestSpectralFailures:
    def test_fewer_nodes_than_k(self, triangle: BibGraph) -> None:
        result = spectral_partition(triangle, k=4)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.INSUFFICIENT_NODES

    def test_empty_graph(self) -> None:
        result = spectral_partition(Graph())
        assert result.error is not None
        assert result.error.code == ErrorCode.EMPTY_GRAPH

    @pytest.mark.parametrize(
        "options", [{"k": 1}, {"max_iterations": 0}, {"n_init": 0}, {"max_nodes": 0}]
    )
    def test_invalid_options(self, barbell: BibGraph, options: dict[str, int]) -> None:
        result = spectral_partition(barbell, **options)  # type: ignore[arg-type]
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_INPUT

    def test_iteration_cap_returns_partial(self, barbell: BibGraph) -> None:
        result = spectral_partition(barbell, max_iterations=1)
        assert result.ok
        assert result.partial is not None
        assert result.partial.code == ErrorCode.CONVERGENCE_FAILURE

    def test_graph_above_max_nodes(self, barbell: BibGraph) -> None:
        result = spectral_partition(barbell, max_nodes=7)
        assert result.error is not None
        assert result.error.code == ErrorCode.GRAPH_TOO_LARGE
        assert result.error.detail == {"node_count": 8, "limit": 7}

    def test_max_nodes_none_lifts_the_limit(self, barbell: BibGraph) -> None:
        assert spectral_partition(barbell, max_nodes=None).ok

    def test_cancelled(self, barbell: BibGraph) -> None:
        token = CancelToken()
        token.cancel()
        result = spectral_partition(barbell, cancel=token)
        assert result.error is not None
        assert result.error.code == ErrorCode.CANCELLED
