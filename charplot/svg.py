"""SVG renderer for layout geometry using drawsvg."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import drawsvg as draw

from .models import NodeShape
from .routing import path_midpoint
from .text import display_width, label_lines

if TYPE_CHECKING:
    from .models import LayoutResult, PositionedEdge, PositionedGroup, PositionedNode


class Theme:
    """Color theme for SVG output."""

    def __init__(
        self,
        background: str = "#ffffff",
        node_fill: str = "#f8fafc",
        node_stroke: str = "#64748b",
        group_fill: str = "#f1f5f9",
        group_stroke: str = "#94a3b8",
        text_color: str = "#1e293b",
        text_secondary: str = "#64748b",
        edge_color: str = "#64748b",
        font_family: str = "JetBrains Mono, Consolas, monospace",
    ):
        self.background = background
        self.node_fill = node_fill
        self.node_stroke = node_stroke
        self.group_fill = group_fill
        self.group_stroke = group_stroke
        self.text_color = text_color
        self.text_secondary = text_secondary
        self.edge_color = edge_color
        self.font_family = font_family


DEFAULT_THEME = Theme()


class SvgRenderer:
    """Renders a LayoutResult to SVG, scaling grid cells to pixels."""

    def __init__(
        self,
        theme: Theme | None = None,
        cell_width: float = 9,
        cell_height: float = 18,
    ):
        self.theme = theme or DEFAULT_THEME
        self.cell_width = cell_width
        self.cell_height = cell_height

    def px(self, x: float, y: float) -> tuple[float, float]:
        """Pixel position of the center of cell (x, y)."""
        return (x + 0.5) * self.cell_width, (y + 0.5) * self.cell_height

    def render(self, result: LayoutResult) -> draw.Drawing:
        """Render a layout to a drawsvg Drawing."""
        width = max(result.width, 1) * self.cell_width
        height = max(result.height, 1) * self.cell_height
        d = draw.Drawing(width, height)

        d.append(draw.Rectangle(0, 0, width, height, fill=self.theme.background))

        for group in result.groups:
            self._render_group(d, group)
        for node in result.nodes:
            self._render_node(d, node)

        nodes = {n.id: n for n in result.nodes}
        # Edges on top so arrowheads stay visible
        for edge in result.edges:
            if edge.kind.is_visible:
                self._render_edge(d, edge, nodes)

        return d

    def _render_group(self, d: draw.Drawing, group: PositionedGroup) -> None:
        x, y = self.px(group.x, group.y)
        w = (group.width - 1) * self.cell_width
        h = (group.height - 1) * self.cell_height
        d.append(
            draw.Rectangle(
                x, y, w, h,
                fill=self.theme.group_fill,
                stroke=self.theme.group_stroke,
                stroke_width=1,
                stroke_dasharray="6,3",
                rx=4, ry=4,
            )
        )
        if group.label:
            d.append(
                draw.Text(
                    group.label,
                    11,
                    x + self.cell_width, y + self.cell_height * 0.5,
                    fill=self.theme.text_secondary,
                    font_family=self.theme.font_family,
                )
            )

    def _render_node(self, d: draw.Drawing, node: PositionedNode) -> None:
        """Render a single node."""
        x, y = self.px(node.x, node.y)
        w = (node.width - 1) * self.cell_width
        h = (node.height - 1) * self.cell_height
        style = dict(fill=self.theme.node_fill, stroke=self.theme.node_stroke, stroke_width=1.5)

        if node.shape == NodeShape.DIAMOND:
            d.append(draw.Lines(
                x + w / 2, y,
                x + w, y + h / 2,
                x + w / 2, y + h,
                x, y + h / 2,
                close=True,
                **style,
            ))
        elif node.shape == NodeShape.HEXAGON:
            inset = min(self.cell_width * 1.5, w / 4)
            d.append(draw.Lines(
                x + inset, y,
                x + w - inset, y,
                x + w, y + h / 2,
                x + w - inset, y + h,
                x + inset, y + h,
                x, y + h / 2,
                close=True,
                **style,
            ))
        else:
            radius = 0
            if node.shape in (NodeShape.TERMINAL, NodeShape.CIRCLE):
                radius = h / 2
            elif node.shape in (NodeShape.ROUNDED, NodeShape.CYLINDER):
                radius = 6
            d.append(draw.Rectangle(x, y, w, h, rx=radius, ry=radius, **style))

            if node.shape == NodeShape.CYLINDER:
                d.append(draw.Line(
                    x, y + self.cell_height,
                    x + w, y + self.cell_height,
                    stroke=self.theme.node_stroke,
                    stroke_width=1,
                ))
            elif node.shape == NodeShape.SUBROUTINE:
                for inner in (x + self.cell_width, x + w - self.cell_width):
                    d.append(draw.Line(
                        inner, y, inner, y + h,
                        stroke=self.theme.node_stroke,
                        stroke_width=1,
                    ))

        lines = label_lines(node.label)
        cx = x + w / 2
        first = y + h / 2 - (len(lines) - 1) * self.cell_height / 2
        for i, line in enumerate(lines):
            d.append(
                draw.Text(
                    line,
                    13,
                    cx, first + i * self.cell_height,
                    fill=self.theme.text_color,
                    font_family=self.theme.font_family,
                    text_anchor="middle",
                    dominant_baseline="middle",
                )
            )

    def _render_edge(
        self,
        d: draw.Drawing,
        edge: PositionedEdge,
        nodes: dict[str, PositionedNode],
    ) -> None:
        points = [self.px(*p) for p in edge.waypoints]
        # Extend both ends by half a cell so lines meet the node borders
        start = _step_toward(points[0], self.px(*nodes[edge.from_id].center), self.cell_width / 2, self.cell_height / 2)
        end = _step_toward(points[-1], self.px(*nodes[edge.to_id].center), self.cell_width / 2, self.cell_height / 2)
        if len(edge.waypoints) > 1 and nodes[edge.to_id].shape == NodeShape.CYLINDER:
            end = points[-1]
        points = [start, *points, end]

        kwargs = dict(
            stroke=self.theme.edge_color,
            stroke_width=3 if edge.kind.is_thick else 1.5,
            fill="none",
        )
        if edge.kind.is_dotted:
            kwargs["stroke_dasharray"] = "5,5"
        path = draw.Path(**kwargs)
        path.M(*points[0])
        for px, py in points[1:]:
            path.L(px, py)
        d.append(path)

        if edge.kind.has_arrow:
            (lx, ly), (tx, ty) = points[-2], points[-1]
            if (lx, ly) == (tx, ty) and len(points) > 2:
                lx, ly = points[-3]
            angle = math.atan2(ty - ly, tx - lx)
            self._draw_arrowhead(d, tx, ty, angle, 8)

        if edge.label:
            mx, my = self.px(*path_midpoint(edge.waypoints))
            label_width = display_width(edge.label) * 7 + 12
            d.append(
                draw.Rectangle(
                    mx - label_width / 2, my - 9, label_width, 18,
                    fill=self.theme.background,
                    stroke=self.theme.edge_color,
                    stroke_width=1,
                    rx=4, ry=4,
                )
            )
            d.append(
                draw.Text(
                    edge.label,
                    11,
                    mx, my,
                    fill=self.theme.text_secondary,
                    font_family=self.theme.font_family,
                    text_anchor="middle",
                    dominant_baseline="middle",
                )
            )

    def _draw_arrowhead(
        self,
        d: draw.Drawing,
        x: float,
        y: float,
        angle: float,
        size: float,
    ) -> None:
        """Draw an arrowhead at the given position and angle."""
        p1_x = x - size * math.cos(angle - math.pi / 6)
        p1_y = y - size * math.sin(angle - math.pi / 6)
        p2_x = x - size * math.cos(angle + math.pi / 6)
        p2_y = y - size * math.sin(angle + math.pi / 6)

        d.append(
            draw.Lines(
                x, y,
                p1_x, p1_y,
                p2_x, p2_y,
                x, y,
                fill=self.theme.edge_color,
                stroke="none",
            )
        )


def _step_toward(
    point: tuple[float, float],
    target: tuple[float, float],
    dx: float,
    dy: float,
) -> tuple[float, float]:
    """Move ``point`` one step along the dominant axis toward ``target``."""
    x, y = point
    tx, ty = target
    if abs(tx - x) / max(dx, 1e-9) >= abs(ty - y) / max(dy, 1e-9):
        return (x + math.copysign(dx, tx - x), y)
    return (x, y + math.copysign(dy, ty - y))


def render_svg(
    result: LayoutResult,
    filename: str | None = None,
    theme: Theme | None = None,
) -> str:
    """Render a layout to SVG.

    Args:
        result: The layout to render
        filename: Optional filename to save to (without extension)
        theme: Optional color theme

    Returns:
        SVG content as string
    """
    drawing = SvgRenderer(theme).render(result)

    if filename:
        drawing.save_svg(f"{filename}.svg")

    return drawing.as_svg()
