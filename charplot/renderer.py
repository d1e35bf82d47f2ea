"""Text renderer: draws a LayoutResult onto a character canvas."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .canvas import Canvas
from .charset import (
    ARROWS,
    DOWN,
    LEFT,
    RIGHT,
    UP,
    CharacterSet,
    Glyph,
    glyph,
    line_role,
)
from .models import NodeShape
from .routing import path_midpoint
from .text import display_width, fit_text, label_lines

if TYPE_CHECKING:
    from .models import LayoutResult, Point, PositionedEdge, PositionedGroup, PositionedNode

logger = logging.getLogger(__name__)

_ROUND_SHAPES = (NodeShape.ROUNDED, NodeShape.TERMINAL, NodeShape.CIRCLE, NodeShape.CYLINDER)
_SLANTED_SHAPES = (NodeShape.DIAMOND, NodeShape.HEXAGON)


def _direction(a: Point, b: Point) -> int:
    """Connection bit pointing from ``a`` toward ``b`` along one axis."""
    if b[0] > a[0]:
        return RIGHT
    if b[0] < a[0]:
        return LEFT
    if b[1] > a[1]:
        return DOWN
    if b[1] < a[1]:
        return UP
    return 0


def _toward(point: Point, node: PositionedNode) -> int:
    """Connection bit pointing from a cell outside ``node`` to its border."""
    x, y = point
    if y > node.bottom:
        return UP
    if y < node.y:
        return DOWN
    if x > node.right:
        return LEFT
    if x < node.x:
        return RIGHT
    return 0


class TextRenderer:
    """Renders layouts as text in one character set.

    Drawing happens in a fixed order, later steps overwriting earlier ones:
    group boxes, node boxes with labels, edge lines and arrowheads, fan-out
    junctions, then edge labels. Group labels and node cells are protected
    once drawn, so nothing drawn afterwards can obscure them.
    """

    def __init__(self, charset: CharacterSet | str = CharacterSet.UNICODE):
        self.charset = CharacterSet.parse(charset)

    def g(self, role: Glyph) -> str:
        return glyph(role, self.charset)

    def render(self, result: LayoutResult) -> str:
        if result.is_empty:
            return ""

        canvas = Canvas(result.width, result.height)
        nodes = {n.id: n for n in result.nodes}
        visible = [e for e in result.edges if e.kind.is_visible]

        crossed = {
            cell
            for edge in visible
            for a, b in zip(edge.waypoints, edge.waypoints[1:])
            for cell in _segment_cells(a, b)
        }
        for group in result.groups:
            self._render_group(canvas, group, crossed)
        for node in result.nodes:
            self._render_node(canvas, node)
        self._render_edges(canvas, visible, nodes)
        self._render_junctions(canvas, visible)
        for edge in visible:
            if edge.label:
                self._render_edge_label(canvas, edge)

        logger.debug("Rendered %dx%d canvas in %s", canvas.width, canvas.height, self.charset.value)
        return canvas.to_string()

    def _render_group(self, canvas: Canvas, group: PositionedGroup, crossed: set[Point]) -> None:
        x, y = group.x, group.y
        right, bottom = x + group.width - 1, y + group.height - 1
        g = self.g
        for col in range(x + 1, right):
            canvas.put(col, y, g(Glyph.GROUP_HORIZONTAL))
            canvas.put(col, bottom, g(Glyph.GROUP_HORIZONTAL))
        for row in range(y + 1, bottom):
            canvas.put(x, row, g(Glyph.GROUP_VERTICAL))
            canvas.put(right, row, g(Glyph.GROUP_VERTICAL))
        canvas.put(x, y, g(Glyph.GROUP_TOP_LEFT))
        canvas.put(right, y, g(Glyph.GROUP_TOP_RIGHT))
        canvas.put(x, bottom, g(Glyph.GROUP_BOTTOM_LEFT))
        canvas.put(right, bottom, g(Glyph.GROUP_BOTTOM_RIGHT))

        if group.label and group.width > 4:
            label = fit_text(f" {group.label} ", group.width - 4)
            width = display_width(label)
            # Slide the label clear of edges crossing the top border
            start = next(
                (
                    col for col in range(x + 2, right - width)
                    if not any((c, y) in crossed for c in range(col, col + width))
                ),
                x + 2,
            )
            canvas.write(start, y, label)
            canvas.protect(start, y, width, 1)

    def _corners(self, shape: NodeShape) -> tuple[Glyph, Glyph, Glyph, Glyph]:
        if shape in _ROUND_SHAPES:
            return (
                Glyph.ROUND_TOP_LEFT,
                Glyph.ROUND_TOP_RIGHT,
                Glyph.ROUND_BOTTOM_LEFT,
                Glyph.ROUND_BOTTOM_RIGHT,
            )
        if shape in _SLANTED_SHAPES:
            return (
                Glyph.DIAGONAL_RISING,
                Glyph.DIAGONAL_FALLING,
                Glyph.DIAGONAL_FALLING,
                Glyph.DIAGONAL_RISING,
            )
        return Glyph.TOP_LEFT, Glyph.TOP_RIGHT, Glyph.BOTTOM_LEFT, Glyph.BOTTOM_RIGHT

    def _sides(self, shape: NodeShape, row: int, middle: int) -> tuple[Glyph, Glyph]:
        if shape in (NodeShape.TERMINAL, NodeShape.CIRCLE):
            return Glyph.ARC_LEFT, Glyph.ARC_RIGHT
        if shape == NodeShape.DIAMOND and row == middle:
            return Glyph.ANGLE_LEFT, Glyph.ANGLE_RIGHT
        return Glyph.VERTICAL, Glyph.VERTICAL

    def _render_node(self, canvas: Canvas, node: PositionedNode) -> None:
        """Draw a node's border and centered label, then protect its cells."""
        g = self.g
        x, y, right, bottom = node.x, node.y, node.right, node.bottom
        shape = node.shape
        top_left, top_right, bottom_left, bottom_right = self._corners(shape)
        middle = y + node.height // 2

        for row in range(y, bottom + 1):
            for col in range(x, right + 1):
                canvas.put(col, row, " ")
        for col in range(x + 1, right):
            canvas.put(col, y, g(Glyph.HORIZONTAL))
            canvas.put(col, bottom, g(Glyph.HORIZONTAL))
        for row in range(y + 1, bottom):
            left_side, right_side = self._sides(shape, row, middle)
            canvas.put(x, row, g(left_side))
            canvas.put(right, row, g(right_side))
        canvas.put(x, y, g(top_left))
        canvas.put(right, y, g(top_right))
        canvas.put(x, bottom, g(bottom_left))
        canvas.put(right, bottom, g(bottom_right))

        inner_top = y + 1
        if shape == NodeShape.CYLINDER and node.height > 3:
            # Lid
            canvas.put(x, y + 1, g(Glyph.TEE_RIGHT))
            canvas.put(right, y + 1, g(Glyph.TEE_LEFT))
            for col in range(x + 1, right):
                canvas.put(col, y + 1, g(Glyph.HORIZONTAL))
            inner_top += 1
        elif shape == NodeShape.SUBROUTINE and node.width > 4:
            for col in (x + 1, right - 1):
                canvas.put(col, y, g(Glyph.TEE_DOWN))
                canvas.put(col, bottom, g(Glyph.TEE_UP))
                for row in range(y + 1, bottom):
                    canvas.put(col, row, g(Glyph.VERTICAL))

        lines = label_lines(node.label)
        inner_height = bottom - inner_top
        row = inner_top + max((inner_height - len(lines)) // 2, 0)
        for line in lines:
            if row >= bottom:
                break
            width = display_width(line)
            canvas.write(x + max((node.width - width) // 2, 1), row, fit_text(line, node.width - 2))
            row += 1

        canvas.protect(x, y, node.width, node.height)

    def _render_edges(
        self,
        canvas: Canvas,
        edges: list[PositionedEdge],
        nodes: dict[str, PositionedNode],
    ) -> None:
        """Draw edge lines from connection bits, then arrowheads."""
        for edge in edges:
            dotted, thick = edge.kind.is_dotted, edge.kind.is_thick
            points = edge.waypoints
            for a, b in zip(points, points[1:]):
                forward, back = _direction(a, b), _direction(b, a)
                cells = _segment_cells(a, b)
                for i, (cx, cy) in enumerate(cells):
                    bits = 0
                    if i > 0:
                        bits |= back
                    if i < len(cells) - 1:
                        bits |= forward
                    canvas.link(cx, cy, bits, dotted, thick)

            start, end = points[0], points[-1]
            canvas.link(*start, _toward(start, nodes[edge.from_id]), dotted, thick)
            if not edge.kind.has_arrow:
                canvas.link(*end, _toward(end, nodes[edge.to_id]), dotted, thick)

        for i, bits in enumerate(canvas.links):
            if not bits:
                continue
            role = line_role(bits, *canvas.styles[i])
            if role is not None:
                canvas.put(i % canvas.width, i // canvas.width, self.g(role))

        for edge in edges:
            if not edge.kind.has_arrow:
                continue
            points = edge.waypoints
            if len(points) > 1:
                heading = _direction(points[-2], points[-1])
            else:
                heading = _toward(points[-1], nodes[edge.to_id])
            if heading:
                canvas.put(*points[-1], self.g(ARROWS[heading]))

    def _render_junctions(self, canvas: Canvas, edges: list[PositionedEdge]) -> None:
        """Redraw each fan-out junction from the lines meeting there.

        Members of a fan-out head for different first hops, so the lines
        meeting at the junction turn it into a corner, tee or cross. Only
        parallel edges into one target share one straight run, and that
        junction stays a plain line.
        """
        seen: set[Point] = set()
        for edge in edges:
            if edge.junction is None or edge.junction in seen:
                continue
            seen.add(edge.junction)
            role = line_role(canvas.links_at(*edge.junction))
            if role is not None:
                canvas.put(*edge.junction, self.g(role))

    def _render_edge_label(self, canvas: Canvas, edge: PositionedEdge) -> None:
        text = " ".join(label_lines(edge.label or ""))
        width = display_width(text)
        mx, my = path_midpoint(edge.waypoints)
        x = min(max(mx - width // 2, 0), max(canvas.width - width, 0))
        canvas.write(x, my, fit_text(text, canvas.width))


def _segment_cells(a: Point, b: Point) -> list[Point]:
    """All cells of an axis-aligned segment, from ``a`` to ``b`` inclusive."""
    dx = (b[0] > a[0]) - (b[0] < a[0])
    dy = (b[1] > a[1]) - (b[1] < a[1])
    length = abs(b[0] - a[0]) + abs(b[1] - a[1])
    return [(a[0] + dx * i, a[1] + dy * i) for i in range(length + 1)]


def render_text(result: LayoutResult, charset: CharacterSet | str = CharacterSet.UNICODE) -> str:
    """Render a layout to a string using the given character set."""
    return TextRenderer(charset).render(result)
