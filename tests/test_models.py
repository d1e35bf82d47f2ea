"""Tests for graph models and validation."""

import pytest

from charplot.errors import DanglingReference, DuplicateNode, GraphError
from charplot.models import (
    Direction,
    EdgeKind,
    EdgeRecord,
    GraphModel,
    GroupRecord,
    NodeRecord,
    PositionedNode,
)


class TestDirection:
    """Tests for direction parsing."""

    @pytest.mark.parametrize("token, expected", [
        ("TD", Direction.TD),
        ("TB", Direction.TD),
        ("tb", Direction.TD),
        ("BT", Direction.BT),
        (" lr ", Direction.LR),
        ("RL", Direction.RL),
    ])
    def test_parse(self, token, expected):
        assert Direction.parse(token) is expected

    def test_parse_invalid(self):
        with pytest.raises(ValueError, match="Invalid direction"):
            Direction.parse("XY")

    def test_axis_properties(self):
        assert Direction.LR.is_horizontal and Direction.RL.is_horizontal
        assert not Direction.TD.is_horizontal
        assert Direction.BT.is_reversed and Direction.RL.is_reversed
        assert not Direction.LR.is_reversed


class TestEdgeKind:
    """Tests for edge kind flags."""

    def test_arrows(self):
        arrows = {k for k in EdgeKind if k.has_arrow}
        assert arrows == {EdgeKind.ARROW, EdgeKind.DOTTED_ARROW, EdgeKind.THICK_ARROW}

    def test_line_styles(self):
        assert EdgeKind.DOTTED.is_dotted and EdgeKind.DOTTED_ARROW.is_dotted
        assert EdgeKind.THICK.is_thick and not EdgeKind.ARROW.is_thick
        assert not EdgeKind.INVISIBLE.is_visible


class TestGraphModel:
    """Tests for graph model construction and validation."""

    def test_label_defaults_to_id(self):
        assert NodeRecord("a").text == "a"
        assert NodeRecord("a", "").text == ""

    def test_lists_become_tuples(self):
        graph = GraphModel(nodes=[NodeRecord("a")], edges=[], direction="LR")
        assert isinstance(graph.nodes, tuple)
        assert graph.direction is Direction.LR

    def test_valid_graph(self, make_graph):
        make_graph([("a", "b"), ("b", "c")]).validate()

    def test_duplicate_node(self):
        graph = GraphModel(nodes=(NodeRecord("a"), NodeRecord("a")))
        with pytest.raises(DuplicateNode) as exc:
            graph.validate()
        assert exc.value.node_id == "a"

    def test_dangling_edge(self):
        edge = EdgeRecord("a", "missing")
        graph = GraphModel(nodes=(NodeRecord("a"),), edges=(edge,))
        with pytest.raises(DanglingReference) as exc:
            graph.validate()
        assert exc.value.missing_id == "missing"
        assert exc.value.edge == edge
        assert "missing" in str(exc.value)

    def test_dangling_group_member(self):
        graph = GraphModel(
            nodes=(NodeRecord("a"),),
            groups=(GroupRecord("g", None, ("a", "b")),),
        )
        with pytest.raises(DanglingReference, match="Group 'g'"):
            graph.validate()

    def test_node_in_two_groups(self):
        graph = GraphModel(
            nodes=(NodeRecord("a"),),
            groups=(GroupRecord("g1", None, ("a",)), GroupRecord("g2", None, ("a",))),
        )
        with pytest.raises(GraphError, match="both group"):
            graph.validate()

    def test_graph_errors_are_value_errors(self):
        assert issubclass(DanglingReference, ValueError)


class TestPositionedNode:
    """Tests for positioned node geometry helpers."""

    def test_bounds(self):
        n = PositionedNode("a", x=2, y=3, width=5, height=3)
        assert n.right == 6
        assert n.bottom == 5
        assert n.center == (4, 4)
        assert n.contains(6, 5)
        assert not n.contains(7, 5)

    def test_overlap(self):
        a = PositionedNode("a", 0, 0, 5, 3)
        b = PositionedNode("b", 5, 0, 5, 3)
        c = PositionedNode("c", 4, 2, 5, 3)
        assert not a.overlaps(b)
        assert a.overlaps(c)
