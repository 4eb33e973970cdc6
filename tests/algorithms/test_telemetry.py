"""Tests for telemetry primitives: Span, trace_span, @traced."""

from __future__ import annotations

import time
from collections.abc import Generator

import pytest

from bibgraph.algorithms.clustering import louvain
from bibgraph.algorithms.metrics import modularity
from bibgraph.algorithms.telemetry import (
    Span,
    _current_span,
    _verbose_enabled,
    enable_telemetry,
    trace_span,
    traced,
)
from bibgraph.domain.result import Result, success
from bibgraph.graph.loader import BibGraph


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    _verbose_enabled.set(False)
    _current_span.set(None)


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        assert Span(name="test").duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.005)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict_omits_empty_children(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert "children" not in d

    def test_child_is_attached(self) -> None:
        root = Span(name="root")
        phase = root.child("phase")
        phase.end()
        root.end()
        assert root.to_dict()["children"][0]["name"] == "phase"

    def test_annotate(self) -> None:
        span = Span(name="test")
        span.annotate("levels", 2)
        span.end()
        assert span.to_dict()["annotations"] == {"levels": 2}


class TestTraced:
    def test_disabled_is_transparent(self) -> None:
        @traced
        def op() -> Result[int]:
            return success("op", 1)

        result = op()
        assert result.meta is None
        assert _current_span.get() is None

    def test_enabled_injects_meta(self) -> None:
        enable_telemetry()

        @traced
        def op() -> Result[int]:
            with trace_span("phase") as span:
                assert span is not None
            return success("op", 1)

        result = op()
        assert result.meta is not None
        telemetry = result.meta["telemetry"]
        assert telemetry["name"].endswith("op")
        assert telemetry["children"][0]["name"] == "phase"

    def test_nested_traced_calls_become_children(self, two_triangles: BibGraph) -> None:
        enable_telemetry()

        @traced
        def outer() -> Result[float]:
            return modularity(two_triangles, [["A", "B", "C"], ["D", "E", "F"]])

        result = outer()
        assert result.meta is not None
        children = result.meta["telemetry"]["children"]
        assert children[0]["name"] == "modularity"
        assert _current_span.get() is None

    def test_trace_span_without_parent_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("orphan") as span:
            assert span is None

    def test_algorithm_entry_point_reports_phases(self, two_triangles: BibGraph) -> None:
        enable_telemetry()
        result = louvain(two_triangles)
        assert result.meta is not None
        names = [c["name"] for c in result.meta["telemetry"].get("children", [])]
        assert "optimize" in names

    def test_exception_resets_span(self) -> None:
        enable_telemetry()

        @traced
        def boom() -> Result[None]:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            boom()
        assert _current_span.get() is None
