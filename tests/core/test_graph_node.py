"""Tests for GraphNode, NodeKind, Position and Edge."""

import pytest

from nodeflow.graph import Edge, GraphNode, NodeKind, Position


class TestNodeKind:
    """Tests for NodeKind.from_type()."""

    @pytest.mark.parametrize(
        "type_name, expected",
        [
            (None, NodeKind.SIMPLE),
            ("defaultNode", NodeKind.SIMPLE),
            ("multiLabelNode", NodeKind.MULTI_LABEL),
            ("multi_label", NodeKind.MULTI_LABEL),
        ],
    )
    def test_known_types(self, type_name, expected):
        assert NodeKind.from_type(type_name) is expected

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown node type"):
            NodeKind.from_type("diamondNode")

    def test_default_fields_are_fresh(self):
        first = NodeKind.MULTI_LABEL.default_fields()
        first["sublabel1"] = "x"

        assert NodeKind.MULTI_LABEL.default_fields()["sublabel1"] == ""


class TestPosition:
    """Tests for Position.coerce()."""

    def test_from_pair(self):
        assert Position.coerce((1, 2)) == Position(1.0, 2.0)

    def test_from_mapping(self):
        assert Position.coerce({"x": 3, "y": 4}) == Position(3.0, 4.0)

    def test_none_is_origin(self):
        assert Position.coerce(None) == Position(0.0, 0.0)

    @pytest.mark.parametrize(
        "value",
        [
            "bad",
            (float("nan"), 0),
            (0, float("inf")),
            {"x": float("-inf"), "y": 0},
            (True, 0),
            (10**400, 0),
        ],
        ids=["string", "nan", "inf", "negative-inf", "bool", "overflow"],
    )
    def test_rejects_non_finite_or_non_numeric(self, value):
        with pytest.raises(ValueError):
            Position.coerce(value)

    def test_rejects_wrong_arity(self):
        with pytest.raises((TypeError, ValueError)):
            Position.coerce((1, 2, 3))

    def test_to_dict(self):
        assert Position(1.5, -2).to_dict() == {"x": 1.5, "y": -2}


class TestGraphNode:
    """Tests for GraphNode."""

    def test_copy_is_independent(self):
        node = GraphNode(id="n1", kind=NodeKind.MULTI_LABEL, label="A", extra_fields={"sublabel1": "s"})

        clone = node.copy()
        clone.set_field("sublabel1", "changed")
        clone.label = "B"

        assert node.get_field("sublabel1") == "s"
        assert node.label == "A"

    def test_str(self):
        assert str(GraphNode(id="0123456789abcdef", label="Start")) == "Start [01234567]"


class TestEdge:
    """Tests for Edge."""

    def test_touches(self):
        edge = Edge(id="e1", source="A", target="B")

        assert edge.touches({"B"})
        assert not edge.touches({"C"})

    def test_self_loop(self):
        assert Edge(id="e1", source="A", target="A").is_self_loop
