"""Tests for SVG output."""

from charplot.layout import layout_graph
from charplot.models import EdgeKind, GraphModel, GroupRecord, NodeRecord, NodeShape
from charplot.svg import SvgRenderer, Theme, render_svg

from conftest import build_graph


def test_contains_labels(make_graph):
    svg = render_svg(layout_graph(make_graph([("api", "db", EdgeKind.ARROW, "SQL")])))
    assert svg.lstrip().startswith("<")
    assert "<svg" in svg
    for text in (">api<", ">db<", ">SQL<"):
        assert text in svg


def test_dotted_edges_are_dashed(make_graph):
    solid = render_svg(layout_graph(make_graph([("a", "b")])))
    dotted = render_svg(layout_graph(make_graph([("a", "b", EdgeKind.DOTTED_ARROW)])))
    assert "stroke-dasharray" not in solid
    assert "stroke-dasharray" in dotted


def test_invisible_edges_are_skipped(make_graph):
    svg = render_svg(layout_graph(make_graph([("a", "b", EdgeKind.INVISIBLE)])))
    assert "<path" not in svg


def test_scales_grid_to_pixels(make_graph):
    result = layout_graph(make_graph([("a", "b")]))
    drawing = SvgRenderer(cell_width=10, cell_height=20).render(result)
    assert (drawing.width, drawing.height) == (result.width * 10, result.height * 20)


def test_empty_layout():
    svg = render_svg(layout_graph(GraphModel()))
    assert "<svg" in svg


def test_shapes_and_groups():
    graph = build_graph(
        [("s", "q"), ("q", "db")],
        nodes=[
            NodeRecord("s", "Start", NodeShape.TERMINAL),
            NodeRecord("q", "Valid?", NodeShape.DIAMOND),
            NodeRecord("db", "Store", NodeShape.CYLINDER),
        ],
        groups=(GroupRecord("g", "Backend", ("db",)),),
    )
    svg = render_svg(layout_graph(graph), theme=Theme(node_fill="#abcdef"))
    assert "#abcdef" in svg
    assert ">Backend<" in svg
    assert "<polygon" in svg or "<path" in svg


def test_saves_file(tmp_path, make_graph):
    target = tmp_path / "graph"
    render_svg(layout_graph(make_graph([("a", "b")])), str(target))
    assert "<svg" in (tmp_path / "graph.svg").read_text(encoding="utf-8")
