"""Result and AlgorithmError — the universal algorithm contract.

INVARIANT: Every graph mutation and algorithm entry point returns Result.
Failures travel as values; nothing is collapsed into an empty success.
The CLI and any embedding application consume this type.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from bibgraph.domain.types import ErrorCode

T = TypeVar("T")


class AlgorithmError(BaseModel):
    """Structured error payload within a Result."""

    model_config = {"frozen": True}

    code: ErrorCode
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class AlgorithmFailure(Exception):
    """Raised by :meth:`Result.unwrap` on a failed result."""

    def __init__(self, op: str, error: AlgorithmError) -> None:
        super().__init__(f"{op}: [{error.code}] {error.message}")
        self.op = op
        self.error = error


class Result(BaseModel, Generic[T]):
    """Tagged success/error value returned by every entry point.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"louvain"``).
        value: Operation-specific payload on success.
        error: Structured error if ``ok`` is False.
        partial: Non-fatal failure attached to a successful, best-effort
            value (e.g. the iteration cap was reached).
        warnings: Non-fatal issues encountered during the operation.
        meta: Optional metadata (telemetry, timing).
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    ok: bool
    op: str
    value: T | None = None
    error: AlgorithmError | None = None
    partial: AlgorithmError | None = None
    warnings: list[str] = Field(default_factory=list)
    meta: dict[str, Any] | None = None

    @property
    def is_partial(self) -> bool:
        return self.ok and self.partial is not None

    def unwrap(self) -> T:
        """Return the value, raising :class:`AlgorithmFailure` on error."""
        if not self.ok:
            assert self.error is not None
            raise AlgorithmFailure(self.op, self.error)
        return self.value  # type: ignore[return-value]


def success(
    op: str,
    value: Any = None,
    *,
    warnings: list[str] | None = None,
    partial: AlgorithmError | None = None,
) -> Result[Any]:
    """Build an ok result."""
    return Result(ok=True, op=op, value=value, warnings=warnings or [], partial=partial)


def failure(op: str, code: ErrorCode, message: str, **detail: Any) -> Result[Any]:
    """Build a failed result carrying an :class:`AlgorithmError`."""
    return Result(
        ok=False,
        op=op,
        error=AlgorithmError(code=code, message=message, detail=detail),
    )
