"""Layered layout: sizing, coordinate assignment and direction transform."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .layering import Dummy, assign_layers, split_long_edges
from .models import (
    Direction,
    LayoutResult,
    NodeShape,
    PositionedEdge,
    PositionedGroup,
    PositionedNode,
)
from .ordering import group_owners, order_layers
from .routing import SHAPE_CLEARANCE, Box, route_edges
from .text import display_width, label_lines

if TYPE_CHECKING:
    from collections.abc import Hashable

    from .models import GraphModel, GroupRecord, NodeRecord, Point

logger = logging.getLogger(__name__)

# Horizontal padding between the border and the label, per side
SHAPE_PADDING = {
    NodeShape.RECTANGLE: 1,
    NodeShape.ROUNDED: 1,
    NodeShape.CIRCLE: 1,
    NodeShape.CYLINDER: 1,
    NodeShape.TERMINAL: 2,
    NodeShape.DIAMOND: 2,
    NodeShape.HEXAGON: 2,
    NodeShape.SUBROUTINE: 2,
}

# Rows a shape needs beyond its label and two borders
SHAPE_EXTRA_ROWS = {
    NodeShape.CYLINDER: 1,
}

# Rows reserved before the first and after the last layer for back edges
BACK_EDGE_MARGIN = 3
# Columns taken by each back-edge lane
LANE_WIDTH = 2

# Columns from a group border to its members, border included
GROUP_INSET = 2
# Rows a layer gap grows by for each group border that runs through it
GROUP_ROWS = 2


@dataclass
class LayoutConfig:
    """Configuration for layout calculations (grid cells)."""

    node_sep: int = 2  # Gap between nodes of one layer
    rank_sep: int = 3  # Gap between layers
    min_node_width: int = 5
    min_node_height: int = 3
    padding: int = 1  # Margin around the whole drawing
    ordering_passes: int = 8

    def __post_init__(self) -> None:
        if self.rank_sep < 2:
            raise ValueError(f"rank_sep must be at least 2, got {self.rank_sep}")
        if self.node_sep < 0 or self.padding < 0:
            raise ValueError("node_sep and padding must not be negative")
        if self.min_node_width < 1 or self.min_node_height < 1:
            raise ValueError("Minimum node size must be at least 1x1")
        if self.ordering_passes < 0:
            raise ValueError(f"ordering_passes must not be negative, got {self.ordering_passes}")


def measure_node(node: NodeRecord, config: LayoutConfig) -> tuple[int, int]:
    """Calculate the intrinsic size of a node box.

    Width is the widest label line in display cells, plus the shape's
    padding on both sides, plus two border cells. Height is the number of
    label lines plus the shape's extra rows plus two border rows.

    Returns:
        (width, height) tuple
    """
    lines = label_lines(node.text)
    padding = SHAPE_PADDING.get(node.shape, 1)
    width = max(display_width(line) for line in lines) + 2 * padding + 2
    height = len(lines) + SHAPE_EXTRA_ROWS.get(node.shape, 0) + 2
    return max(width, config.min_node_width), max(height, config.min_node_height)


def normalize_layers(
    order: list[list[str]],
    sizes: dict[str, tuple[int, int]],
    direction: Direction,
) -> dict[str, tuple[int, int]]:
    """Stretch nodes so every layer shares one size along the flow axis.

    Top-down and bottom-up layers get equal heights; left-right and
    right-left layers get equal widths. The other dimension is untouched.
    """
    result = dict(sizes)
    axis = 0 if direction.is_horizontal else 1
    for layer in order:
        if not layer:
            continue
        depth = max(sizes[node_id][axis] for node_id in layer)
        for node_id in layer:
            w, h = sizes[node_id]
            result[node_id] = (depth, h) if axis == 0 else (w, depth)
    return result


class _Transform:
    """Maps canonical top-down coordinates into a flow direction."""

    # direction -> (swap axes, reflect flow axis)
    TABLE = {
        Direction.TD: (False, False),
        Direction.BT: (False, True),
        Direction.LR: (True, False),
        Direction.RL: (True, True),
    }

    def __init__(self, direction: Direction, width: int, height: int):
        self.swap, self.reflect = self.TABLE[direction]
        self.flow_extent = height
        self.width, self.height = (height, width) if self.swap else (width, height)

    def point(self, p: Point) -> Point:
        x, y = p
        if self.reflect:
            y = self.flow_extent - 1 - y
        return (y, x) if self.swap else (x, y)

    def box(self, box: Box) -> tuple[int, int, int, int]:
        x, y, w, h = box.x, box.y, box.width, box.height
        if self.reflect:
            y = self.flow_extent - y - h
        return (y, x, h, w) if self.swap else (x, y, w, h)


@dataclass(eq=False)
class _Band:
    """Cross-axis strip reserved for one group over its layers."""

    group: GroupRecord
    first: int
    last: int
    position: float
    x: int = 0
    inner: int = 0

    @property
    def label(self) -> str:
        return self.group.label if self.group.label is not None else self.group.id

    @property
    def outer(self) -> int:
        return self.inner + 2 * GROUP_INSET

    def spans(self, layer: int) -> bool:
        return self.first <= layer <= self.last


def _bands(
    graph: GraphModel,
    layers: dict[Hashable, int],
    order: list[list[Hashable]],
) -> list[_Band]:
    # Groups are ranked by the mean relative position of their members
    index = {
        node_id: (i + 0.5) / len(layer)
        for layer in order
        for i, node_id in enumerate(layer)
    }
    bands = []
    for g in graph.groups:
        if not g.node_ids:
            continue
        member_layers = [layers[node_id] for node_id in g.node_ids]
        position = sum(index[node_id] for node_id in g.node_ids) / len(g.node_ids)
        bands.append(_Band(g, min(member_layers), max(member_layers), position))
    bands.sort(key=lambda b: b.position)
    return bands


def _span(items: list[Hashable], extents: dict[Hashable, tuple[int, int]], node_sep: int) -> int:
    if not items:
        return 0
    return sum(extents[n][0] for n in items) + node_sep * (len(items) - 1)


def _arrange(
    order: list[list[Hashable]],
    extents: dict[Hashable, tuple[int, int]],
    owner: dict[Hashable, str],
    bands: list[_Band],
    node_sep: int,
) -> tuple[dict[Hashable, int], int]:
    """Assign cross-axis offsets so that every group gets a band of its own.

    A band covers the same columns in every layer its group spans, and only
    the group's members are placed inside it. Other nodes of those layers
    fill the free runs between bands. Layers no group spans are centered
    on the widest layer as usual. Sets ``x`` and ``inner`` on each band.

    Returns:
        (offset by layer member, content width)
    """
    splits = []
    for k, layer in enumerate(order):
        spanning = [b for b in bands if b.spans(k)]
        anchors = []
        for b in spanning:
            hits = [i for i, n in enumerate(layer) if owner.get(n) == b.group.id]
            anchors.append(sum(hits) / len(hits) if hits else b.position * len(layer))
        inside: dict[str, list[Hashable]] = {b.group.id: [] for b in spanning}
        free: list[list[Hashable]] = [[] for _ in range(len(spanning) + 1)]
        for i, node_id in enumerate(layer):
            group = owner.get(node_id)
            if group in inside:
                inside[group].append(node_id)
            else:
                free[sum(1 for anchor in anchors if anchor < i)].append(node_id)
        splits.append((spanning, inside, free))

    for b in bands:
        widths = [
            _span(inside[b.group.id], extents, node_sep)
            for _, inside, _ in splits
            if b.group.id in inside
        ]
        b.inner = max(widths + [display_width(b.label) + 2])

    def run_start(spanning: list[_Band], j: int) -> int:
        if j == 0:
            return 0
        before = spanning[j - 1]
        return before.x + before.outer + node_sep

    # Bands are sorted, so every band left of b is placed before b
    for b in bands:
        for spanning, _, free in splits:
            if b in spanning:
                j = spanning.index(b)
                width = _span(free[j], extents, node_sep)
                b.x = max(b.x, run_start(spanning, j) + (width + node_sep if width else 0))

    content = 0
    for layer, (spanning, _, free) in zip(order, splits):
        if spanning:
            end = spanning[-1].x + spanning[-1].outer
            tail = _span(free[-1], extents, node_sep)
            content = max(content, end + node_sep + tail if tail else end)
        else:
            content = max(content, _span(layer, extents, node_sep))

    offsets: dict[Hashable, int] = {}

    def place(items: list[Hashable], x: int) -> None:
        for node_id in items:
            offsets[node_id] = x
            x += extents[node_id][0] + node_sep

    for layer, (spanning, inside, free) in zip(order, splits):
        if not spanning:
            place(layer, (content - _span(layer, extents, node_sep)) // 2)
            continue
        for j, items in enumerate(free):
            if not items:
                continue
            left = run_start(spanning, j)
            right = spanning[j].x - node_sep if j < len(spanning) else content
            place(items, left + (right - left - _span(items, extents, node_sep)) // 2)
        for b in spanning:
            items = inside[b.group.id]
            place(items, b.x + GROUP_INSET + (b.inner - _span(items, extents, node_sep)) // 2)

    return offsets, content


def layout_graph(graph: GraphModel, config: LayoutConfig | None = None) -> LayoutResult:
    """Calculate positions for all nodes and routes for all edges.

    The graph is validated first; nothing is computed for an invalid graph.
    Layout happens in a canonical top-down frame and is transformed to the
    graph's direction at the end. Edges spanning several layers pass beside
    the nodes of the layers in between. Each group gets a band of columns
    no other node enters, and extra rows keep group borders off the rows
    edges run along.

    Args:
        graph: graph model to lay out
        config: layout configuration (defaults to LayoutConfig())

    Returns:
        LayoutResult with one PositionedNode per node and one
        PositionedEdge per edge, in graph order
    """
    if config is None:
        config = LayoutConfig()

    graph.validate()
    direction = graph.direction
    if not graph.nodes:
        return LayoutResult(direction=direction)

    assignment = split_long_edges(graph, assign_layers(graph))
    order = order_layers(graph, assignment, config.ordering_passes)
    real = [[n for n in layer if not isinstance(n, Dummy)] for layer in order]

    intrinsic = {n.id: measure_node(n, config) for n in graph.nodes}
    sizes = normalize_layers(real, intrinsic, direction)
    # (cross, flow) extents in the canonical frame
    extents: dict[Hashable, tuple[int, int]] = {
        node_id: (h, w) if direction.is_horizontal else (w, h)
        for node_id, (w, h) in sizes.items()
    }
    for chain in assignment.chains.values():
        extents.update((dummy, (1, 0)) for dummy in chain)
    depths = [max(extents[n][1] for n in layer) for layer in real]

    back = assignment.back_edges
    margin = BACK_EDGE_MARGIN if back else 0
    bands = _bands(graph, assignment.layers, order)
    starts = {b.first for b in bands}
    ends = {b.last for b in bands}
    # Rows from a group's top border down to its first layer
    clearance = min(max(SHAPE_CLEARANCE.values()), config.rank_sep - 2)
    lead = GROUP_ROWS + 1 + clearance

    tops = []
    y = config.padding + margin + (lead if 0 in starts else 0)
    for k, depth in enumerate(depths):
        tops.append(y)
        y += depth + config.rank_sep
        if k in ends:
            y += GROUP_ROWS
        if k + 1 in starts:
            y += GROUP_ROWS
    content_end = y - config.rank_sep

    offsets, content_cross = _arrange(
        order, extents, group_owners(graph, assignment), bands, config.node_sep
    )
    boxes: dict[Hashable, Box] = {}
    for layer, top, depth in zip(order, tops, depths):
        for node_id in layer:
            cross = extents[node_id][0]
            boxes[node_id] = Box(config.padding + offsets[node_id], top, cross, depth)

    lanes = {
        index: config.padding + content_cross + 1 + LANE_WIDTH * k
        for k, index in enumerate(sorted(back))
    }
    canvas_cross = 2 * config.padding + content_cross + LANE_WIDTH * len(lanes)
    canvas_flow = content_end + margin + config.padding

    routed = route_edges(
        graph.edges,
        boxes,
        {n.id: n.shape for n in graph.nodes},
        lanes,
        config.rank_sep,
        {index: [boxes[d] for d in chain] for index, chain in assignment.chains.items()},
    )

    transform = _Transform(direction, canvas_cross, canvas_flow)
    layer_of = assignment.layers
    positioned: dict[str, PositionedNode] = {}
    for n in graph.nodes:
        x, y, w, h = transform.box(boxes[n.id])
        positioned[n.id] = PositionedNode(
            id=n.id,
            x=x,
            y=y,
            width=w,
            height=h,
            label=n.text,
            shape=n.shape,
            layer=layer_of[n.id],
        )

    edges = [
        PositionedEdge(
            from_id=e.from_id,
            to_id=e.to_id,
            waypoints=tuple(transform.point(p) for p in e.waypoints),
            kind=e.kind,
            label=e.label,
            junction=transform.point(e.junction) if e.junction is not None else None,
            group_index=e.group_index,
            group_size=e.group_size,
        )
        for e in routed
    ]

    groups = []
    for b in bands:
        top = tops[b.first] - lead
        bottom = tops[b.last] + depths[b.last] + 1
        x, y, w, h = transform.box(Box(config.padding + b.x, top, b.outer, bottom - top + 1))
        groups.append(PositionedGroup(id=b.group.id, x=x, y=y, width=w, height=h, label=b.label))
    # Keep declaration order
    declared = {g.id: i for i, g in enumerate(graph.groups)}
    groups.sort(key=lambda g: declared[g.id])

    result = LayoutResult(
        nodes=list(positioned.values()),
        edges=edges,
        width=transform.width,
        height=transform.height,
        direction=direction,
        groups=groups,
        excluded=list(assignment.excluded),
    )
    logger.debug(
        "Layout %s: %d nodes, %d edges, %d groups on a %dx%d grid",
        direction.value,
        len(result.nodes),
        len(result.edges),
        len(result.groups),
        result.width,
        result.height,
    )
    return result
