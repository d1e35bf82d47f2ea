"""Orthogonal edge routing with shared fan-out junctions.

Routing works in the canonical top-down frame: edges leave a node through
the cell just below the center of its bottom border and enter a node
through the cell just above the center of its top border. The layout
transforms the resulting waypoints into the requested direction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .models import NodeShape, PositionedEdge

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import EdgeRecord, Point

logger = logging.getLogger(__name__)

# Shapes that want a gap between the arrowhead and their border
SHAPE_CLEARANCE = {
    NodeShape.CYLINDER: 1,
}


@dataclass(frozen=True)
class Box:
    """Axis-aligned node box in canonical coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def center_x(self) -> int:
        return self.x + self.width // 2

    @property
    def bottom(self) -> int:
        return self.y + self.height - 1

    @property
    def right(self) -> int:
        return self.x + self.width - 1


def exit_point(box: Box) -> Point:
    """Cell just outside the center of the exit (bottom) border."""
    return (box.center_x, box.bottom + 1)


def entry_point(box: Box, shape: NodeShape = NodeShape.RECTANGLE, rank_sep: int = 2) -> Point:
    """Cell where an edge into ``box`` ends, above the entry (top) border.

    Shapes listed in ``SHAPE_CLEARANCE`` are approached with a standoff gap,
    reduced as needed so the entry never climbs past the exit row of the
    previous layer.
    """
    clearance = min(SHAPE_CLEARANCE.get(shape, 0), max(rank_sep - 2, 0))
    return (box.center_x, box.y - 1 - clearance)


def compact_path(points: Sequence[Point]) -> list[Point]:
    """Drop repeated points and the middle point of straight runs."""
    result: list[Point] = []
    for p in points:
        if result and result[-1] == p:
            continue
        if len(result) >= 2:
            a, b = result[-2], result[-1]
            if (a[0] == b[0] == p[0]) or (a[1] == b[1] == p[1]):
                result[-1] = p
                continue
        result.append(p)
    return result


def is_rectilinear(points: Sequence[Point]) -> bool:
    """True if every segment is purely horizontal or vertical."""
    return all(
        (a[0] == b[0]) != (a[1] == b[1])
        for a, b in zip(points, points[1:])
    )


def path_length(points: Sequence[Point]) -> int:
    return sum(
        abs(b[0] - a[0]) + abs(b[1] - a[1])
        for a, b in zip(points, points[1:])
    )


def path_midpoint(points: Sequence[Point]) -> Point:
    """Cell halfway along a rectilinear path, measured by path length.

    Args:
        points: waypoint list

    Returns:
        (x, y) of the middle cell
    """
    if len(points) < 2:
        return points[0] if points else (0, 0)

    target = path_length(points) // 2
    travelled = 0
    for a, b in zip(points, points[1:]):
        segment = abs(b[0] - a[0]) + abs(b[1] - a[1])
        if travelled + segment >= target:
            step = target - travelled
            dx = (b[0] > a[0]) - (b[0] < a[0])
            dy = (b[1] > a[1]) - (b[1] < a[1])
            return (a[0] + dx * step, a[1] + dy * step)
        travelled += segment

    return points[-1]


def _forward_path(
    source: Box,
    target: Box,
    shape: NodeShape,
    rank_sep: int,
    via: Sequence[Box] = (),
) -> list[Point]:
    # Turns happen on exit rows. A long edge drops through the column of
    # each dummy box it passes.
    start = exit_point(source)
    end = entry_point(target, shape, rank_sep)
    points = [start]
    row = start[1]
    for box in via:
        points.append((box.center_x, row))
        row = box.bottom + 1
        points.append((box.center_x, row))
    points.extend([(end[0], row), end])
    return compact_path(points)


def _back_path(
    source: Box,
    target: Box,
    shape: NodeShape,
    rank_sep: int,
    lane: int,
) -> list[Point]:
    # Leave on the exit row, climb the lane past the drawing and come back
    # down into the target from its entry side.
    start = exit_point(source)
    end = entry_point(target, shape, rank_sep)
    approach = end[1] - 1
    return compact_path([
        start,
        (lane, start[1]),
        (lane, approach),
        (end[0], approach),
        end,
    ])


def route_edges(
    edges: Sequence[EdgeRecord],
    boxes: dict[str, Box],
    shapes: dict[str, NodeShape],
    back_edges: dict[int, int],
    rank_sep: int,
    chains: dict[int, list[Box]] | None = None,
) -> list[PositionedEdge]:
    """Route every edge as a rectilinear waypoint path.

    Edges from a source with more than one outgoing edge form a fan-out
    group: every member starts at the same junction just outside the
    source's exit border, and members are numbered by target position
    (cross axis, then flow axis, then target id). Each edge into a target
    ends at that target's entry point on its own. An edge listed in
    ``chains`` runs beside the nodes of every layer it skips, through the
    boxes reserved for it there.

    Args:
        edges: edges in graph order
        boxes: canonical node boxes by node id
        shapes: node shapes by node id
        back_edges: edge index -> lane column, for edges against the flow
        rank_sep: gap between layers (bounds the per-shape clearance)
        chains: edge index -> reserved boxes, one per skipped layer

    Returns:
        One PositionedEdge per input edge, in input order, in canonical
        coordinates
    """
    chains = chains or {}

    def first_hop(index: int) -> Box:
        via = chains.get(index)
        return via[0] if via else boxes[edges[index].target]

    outgoing: dict[str, list[int]] = {}
    for index, e in enumerate(edges):
        outgoing.setdefault(e.source, []).append(index)

    slot: dict[int, tuple[int, int]] = {}
    for source, indices in outgoing.items():
        if len(indices) < 2:
            continue
        ranked = sorted(
            indices,
            key=lambda i: (
                first_hop(i).center_x,
                boxes[edges[i].target].y,
                edges[i].target,
                i,
            ),
        )
        for position, index in enumerate(ranked):
            slot[index] = (position, len(ranked))
        logger.debug("Fan-out of %d edges from '%s'", len(ranked), source)

    routed = []
    for index, e in enumerate(edges):
        source, target = boxes[e.source], boxes[e.target]
        shape = shapes.get(e.target, NodeShape.RECTANGLE)
        if index in back_edges:
            waypoints = _back_path(source, target, shape, rank_sep, back_edges[index])
        else:
            waypoints = _forward_path(source, target, shape, rank_sep, chains.get(index, ()))

        group_index, group_size = slot.get(index, (None, None))
        routed.append(PositionedEdge(
            from_id=e.source,
            to_id=e.target,
            waypoints=tuple(waypoints),
            kind=e.kind,
            label=e.label,
            junction=exit_point(source) if group_size else None,
            group_index=group_index,
            group_size=group_size,
        ))

    return routed
