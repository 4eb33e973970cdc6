"""Node and edge payloads.

``Graph`` is generic over any payload that exposes a stable ``id`` (nodes)
or ``id``/``source``/``target`` (edges). The pydantic models here are the
default payloads built from bibliographic entities; callers may use their
own types as long as they satisfy the protocols.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field


@runtime_checkable
class HasId(Protocol):
    """Minimal node capability: a stable identifier."""

    @property
    def id(self) -> str: ...


@runtime_checkable
class EdgeLike(Protocol):
    """Minimal edge capability: identifier plus endpoints."""

    @property
    def id(self) -> str: ...

    @property
    def source(self) -> str: ...

    @property
    def target(self) -> str: ...


class WorkNode(BaseModel):
    """A bibliographic entity (work, author, institution, source, ...)."""

    model_config = {"frozen": True}

    id: str
    type: str = "work"
    label: str = ""
    attributes: dict[str, Any] = Field(default_factory=dict)


class RelationEdge(BaseModel):
    """A typed relation between two entities.

    ``score``, ``author_position``, ``is_corresponding`` and
    ``is_open_access`` are optional fields used as pathfinding weights
    or filter predicates.
    """

    model_config = {"frozen": True}

    id: str
    source: str
    target: str
    type: str = "reference"
    weight: float | None = None
    score: float | None = None
    author_position: str | None = None
    is_corresponding: bool | None = None
    is_open_access: bool | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)


def edge_property(edge: Any, name: str) -> Any:
    """Read *name* from an edge payload (attribute, mapping key, or ``attributes``)."""
    if isinstance(edge, dict):
        return edge.get(name)
    value = getattr(edge, name, None)
    if value is None:
        extra = getattr(edge, "attributes", None)
        if isinstance(extra, dict):
            return extra.get(name)
    return value
