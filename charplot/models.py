"""Data models for charplot graphs and layouts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .errors import DanglingReference, DuplicateNode, GraphError

if TYPE_CHECKING:
    from .errors import CycleExcluded

Point = tuple[int, int]


class Direction(Enum):
    """Flow direction of a layered diagram."""

    TD = "TD"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        """Parse a direction token such as ``TD``, ``TB`` or ``lr``."""
        if isinstance(value, Direction):
            return value
        token = value.strip().upper()
        if token == "TB":
            token = "TD"
        try:
            return cls(token)
        except ValueError:
            raise ValueError(
                f"Invalid direction '{value}', must be one of TD, TB, BT, LR, RL"
            ) from None

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LR, Direction.RL)

    @property
    def is_reversed(self) -> bool:
        return self in (Direction.BT, Direction.RL)


class NodeShape(Enum):
    """Box shapes a node can be drawn with."""

    RECTANGLE = "rectangle"
    ROUNDED = "rounded"
    DIAMOND = "diamond"
    CIRCLE = "circle"
    CYLINDER = "cylinder"
    TERMINAL = "terminal"
    HEXAGON = "hexagon"
    SUBROUTINE = "subroutine"


class EdgeKind(Enum):
    """Edge line styles."""

    ARROW = "arrow"
    LINE = "line"
    DOTTED_ARROW = "dotted_arrow"
    DOTTED = "dotted"
    THICK_ARROW = "thick_arrow"
    THICK = "thick"
    INVISIBLE = "invisible"

    @property
    def has_arrow(self) -> bool:
        return self in (EdgeKind.ARROW, EdgeKind.DOTTED_ARROW, EdgeKind.THICK_ARROW)

    @property
    def is_dotted(self) -> bool:
        return self in (EdgeKind.DOTTED, EdgeKind.DOTTED_ARROW)

    @property
    def is_thick(self) -> bool:
        return self in (EdgeKind.THICK, EdgeKind.THICK_ARROW)

    @property
    def is_visible(self) -> bool:
        return self is not EdgeKind.INVISIBLE


@dataclass(frozen=True)
class NodeRecord:
    """A node of the input graph."""

    id: str
    label: str | None = None
    shape: NodeShape = NodeShape.RECTANGLE

    @property
    def text(self) -> str:
        """Label to display; falls back to the node id."""
        return self.id if self.label is None else self.label


@dataclass(frozen=True)
class EdgeRecord:
    """A directed edge of the input graph."""

    source: str
    target: str
    kind: EdgeKind = EdgeKind.ARROW
    label: str | None = None


@dataclass(frozen=True)
class GroupRecord:
    """A single-level group of nodes drawn inside one boundary box."""

    id: str
    label: str | None = None
    node_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class GraphModel:
    """Immutable view of the nodes, edges and groups to lay out.

    Node order is insertion order and is significant: it breaks ties
    during ordering so that layouts are reproducible.
    """

    nodes: tuple[NodeRecord, ...] = ()
    edges: tuple[EdgeRecord, ...] = ()
    direction: Direction = Direction.TD
    groups: tuple[GroupRecord, ...] = ()
    kind: str = "flowchart"

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        object.__setattr__(self, "groups", tuple(self.groups))
        object.__setattr__(self, "direction", Direction.parse(self.direction))

    def validate(self) -> None:
        """Check the structural invariants layout relies on.

        Raises:
            DuplicateNode: two nodes share an id
            DanglingReference: an edge or group names an unknown node
            GraphError: a node belongs to more than one group
        """
        seen: set[str] = set()
        for n in self.nodes:
            if n.id in seen:
                raise DuplicateNode(n.id)
            seen.add(n.id)

        for e in self.edges:
            for endpoint in (e.source, e.target):
                if endpoint not in seen:
                    raise DanglingReference(endpoint, edge=e)

        owner: dict[str, str] = {}
        for g in self.groups:
            for node_id in g.node_ids:
                if node_id not in seen:
                    raise DanglingReference(node_id, group=g.id)
                if node_id in owner:
                    raise GraphError(
                        f"Node '{node_id}' is in both group '{owner[node_id]}' and '{g.id}'"
                    )
                owner[node_id] = g.id

    def node(self, node_id: str) -> NodeRecord:
        for n in self.nodes:
            if n.id == node_id:
                return n
        raise KeyError(node_id)


@dataclass(frozen=True)
class PositionedNode:
    """A node box placed on the character grid (top-left origin)."""

    id: str
    x: int
    y: int
    width: int
    height: int
    label: str = ""
    shape: NodeShape = NodeShape.RECTANGLE
    layer: int = 0

    @property
    def right(self) -> int:
        """Last column covered by the box."""
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        """Last row covered by the box."""
        return self.y + self.height - 1

    @property
    def center(self) -> Point:
        return (self.x + self.width // 2, self.y + self.height // 2)

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def overlaps(self, other: PositionedNode) -> bool:
        return not (
            self.right < other.x
            or other.right < self.x
            or self.bottom < other.y
            or other.bottom < self.y
        )


@dataclass(frozen=True)
class PositionedEdge:
    """A routed edge: a rectilinear waypoint path between two nodes."""

    from_id: str
    to_id: str
    waypoints: tuple[Point, ...]
    kind: EdgeKind = EdgeKind.ARROW
    label: str | None = None
    junction: Point | None = None
    group_index: int | None = None
    group_size: int | None = None


@dataclass(frozen=True)
class PositionedGroup:
    """Boundary box of a group."""

    id: str
    x: int
    y: int
    width: int
    height: int
    label: str | None = None

    @property
    def right(self) -> int:
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        return self.y + self.height - 1

    def overlaps(self, other: PositionedGroup | PositionedNode) -> bool:
        """True if the two boxes share at least one cell."""
        return not (
            self.right < other.x
            or other.right < self.x
            or self.bottom < other.y
            or other.bottom < self.y
        )


@dataclass
class LayoutResult:
    """Geometry handed from layout to a renderer."""

    nodes: list[PositionedNode] = field(default_factory=list)
    edges: list[PositionedEdge] = field(default_factory=list)
    width: int = 0
    height: int = 0
    direction: Direction = Direction.TD
    groups: list[PositionedGroup] = field(default_factory=list)
    excluded: list[CycleExcluded] = field(default_factory=list)

    def node(self, node_id: str) -> PositionedNode:
        for n in self.nodes:
            if n.id == node_id:
                return n
        raise KeyError(node_id)

    @property
    def is_empty(self) -> bool:
        return not self.nodes
