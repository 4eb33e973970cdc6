"""Tests for the default node/edge payloads and enum vocabularies."""

import pytest
from pydantic import ValidationError

from bibgraph.domain.entities import EdgeLike, HasId, RelationEdge, WorkNode, edge_property
from bibgraph.domain.types import Direction, ErrorCode, Linkage, StarType


class TestWorkNode:
    def test_defaults(self) -> None:
        node = WorkNode(id="W1")
        assert node.type == "work"
        assert node.label == ""
        assert node.attributes == {}

    def test_frozen(self) -> None:
        node = WorkNode(id="W1")
        with pytest.raises(ValidationError):
            node.label = "changed"  # type: ignore[misc]

    def test_id_required(self) -> None:
        with pytest.raises(ValidationError):
            WorkNode.model_validate({"label": "orphan"})

    def test_satisfies_protocol(self) -> None:
        assert isinstance(WorkNode(id="A1", type="author"), HasId)


class TestRelationEdge:
    def test_defaults(self) -> None:
        edge = RelationEdge(id="e1", source="W1", target="W2")
        assert edge.type == "reference"
        assert edge.weight is None
        assert edge.is_open_access is None

    def test_satisfies_protocol(self) -> None:
        assert isinstance(RelationEdge(id="e1", source="A", target="B"), EdgeLike)

    def test_authorship_fields(self) -> None:
        edge = RelationEdge.model_validate(
            {
                "id": "a1",
                "source": "A1",
                "target": "W1",
                "type": "authorship",
                "author_position": "first",
                "is_corresponding": True,
            }
        )
        assert edge.author_position == "first"
        assert edge.is_corresponding is True


class TestEdgeProperty:
    def test_declared_field(self) -> None:
        edge = RelationEdge(id="e1", source="A", target="B", score=0.7)
        assert edge_property(edge, "score") == 0.7

    def test_falls_back_to_attributes(self) -> None:
        edge = RelationEdge(id="e1", source="A", target="B", attributes={"year": 2021})
        assert edge_property(edge, "year") == 2021

    def test_mapping_payload(self) -> None:
        assert edge_property({"id": "e1", "score": 3}, "score") == 3

    def test_missing(self) -> None:
        edge = RelationEdge(id="e1", source="A", target="B")
        assert edge_property(edge, "citations") is None


class TestVocabularies:
    def test_values_are_plain_strings(self) -> None:
        assert Direction.BOTH == "both"
        assert StarType("in") is StarType.IN
        assert Linkage("average") is Linkage.AVERAGE
        assert f"{ErrorCode.EMPTY_GRAPH}" == "EMPTY_GRAPH"

    def test_unknown_linkage(self) -> None:
        with pytest.raises(ValueError):
            Linkage("ward")
