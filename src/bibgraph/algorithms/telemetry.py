"""Per-phase timing for algorithm entry points.

Off by default: every hook costs one ContextVar lookup. ``--verbose``
switches it on for the process; each outermost ``@traced`` call then
records a span tree (phases from ``trace_span``, nested entry points
as children) and attaches it to ``Result.meta["telemetry"]``.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from bibgraph.domain.result import Result

_verbose_enabled: ContextVar[bool] = ContextVar("_verbose_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


@dataclass
class Span:
    """Timing for one algorithm or one phase inside it."""

    name: str
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def child(self, name: str) -> Span:
        span = Span(name=name)
        self.children.append(span)
        return span

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = self.annotations
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


@contextmanager
def _activate(span: Span) -> Generator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Time a phase of the running algorithm.

    Yields None when telemetry is off or no traced call is active.
    """
    parent = _current_span.get() if _verbose_enabled.get() else None
    if parent is None:
        yield None
        return
    with _activate(parent.child(name)) as span:
        yield span


def _log_span(span: Span, *, ok: bool) -> None:
    structlog.get_logger("bibgraph.telemetry").debug(
        "algorithm.timed",
        algorithm=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        phases=[c.name for c in span.children],
    )


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Record a span for each call; the outermost call reports it in Result.meta."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _verbose_enabled.get():
            return func(*args, **kwargs)

        parent = _current_span.get()
        span = Span(name=func.__qualname__) if parent is None else parent.child(func.__qualname__)
        try:
            with _activate(span):
                result = func(*args, **kwargs)
        except Exception:
            _log_span(span, ok=False)
            raise

        if parent is None and isinstance(result, Result):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            result = result.model_copy(update={"meta": meta})  # type: ignore[assignment]
            _log_span(span, ok=result.ok)  # type: ignore[attr-defined]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Turn span recording on (called by AppContext for --verbose)."""
    _verbose_enabled.set(True)
