"""Tests for Result / AlgorithmError."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from bibgraph.domain.result import AlgorithmError, AlgorithmFailure, Result, failure, success
from bibgraph.domain.types import ErrorCode


class TestResult:
    def test_success(self) -> None:
        result = success("louvain", [1, 2])
        assert result.ok
        assert result.unwrap() == [1, 2]
        assert result.error is None
        assert not result.is_partial

    def test_failure_carries_detail(self) -> None:
        result = failure("spectral_partition", ErrorCode.INSUFFICIENT_NODES, "too few", required=3)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.INSUFFICIENT_NODES
        assert result.error.detail == {"required": 3}

    def test_unwrap_failure_raises(self) -> None:
        result = failure("bfs", ErrorCode.NODE_NOT_FOUND, "no such node")
        with pytest.raises(AlgorithmFailure) as excinfo:
            result.unwrap()
        assert excinfo.value.op == "bfs"
        assert excinfo.value.error.code == ErrorCode.NODE_NOT_FOUND

    def test_partial_success(self) -> None:
        partial = AlgorithmError(code=ErrorCode.CONVERGENCE_FAILURE, message="cap reached")
        result = success("louvain", "best effort", partial=partial)
        assert result.ok
        assert result.is_partial
        assert result.unwrap() == "best effort"

    def test_frozen(self) -> None:
        result = success("op")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_warnings_default_empty(self) -> None:
        assert Result(ok=True, op="x").warnings == []
