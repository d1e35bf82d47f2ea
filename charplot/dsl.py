"""Python DSL for building diagrams."""

from __future__ import annotations

import dataclasses
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from .charset import CharacterSet
from .engines import get_engine
from .errors import CharplotError
from .models import (
    Direction,
    EdgeKind,
    EdgeRecord,
    GraphModel,
    GroupRecord,
    NodeRecord,
    NodeShape,
)

if TYPE_CHECKING:
    from collections.abc import Generator

    from .layout import LayoutConfig
    from .models import LayoutResult

logger = logging.getLogger(__name__)

# Context stack for nested diagram and group creation
_diagram_stack: list[Diagram] = []


def _current_diagram() -> Diagram:
    """Get the current diagram context."""
    if not _diagram_stack:
        raise CharplotError("node() and group() must be used inside a diagram() block")
    return _diagram_stack[-1]


class Diagram:
    """Mutable collection of nodes and edges built inside ``diagram()``.

    After the ``with`` block ends, ``graph`` holds the frozen GraphModel,
    ``result`` its layout and ``text`` the rendering.
    """

    def __init__(
        self,
        direction: Direction | str = Direction.TD,
        style: CharacterSet | str = CharacterSet.UNICODE,
        kind: str = "flowchart",
        config: LayoutConfig | None = None,
    ):
        self.direction = Direction.parse(direction)
        self.style = CharacterSet.parse(style)
        self.kind = kind
        self.config = config
        self.nodes: list[NodeRecord] = []
        self.edges: list[EdgeRecord] = []
        self.groups: list[GroupRecord] = []
        self._group: GroupRecord | None = None
        self.graph: GraphModel | None = None
        self.result: LayoutResult | None = None
        self.text: str = ""

    def add_node(self, record: NodeRecord) -> None:
        self.nodes.append(record)
        if self._group is not None:
            self._group = dataclasses.replace(
                self._group, node_ids=self._group.node_ids + (record.id,)
            )

    def add_edge(self, record: EdgeRecord) -> int:
        self.edges.append(record)
        return len(self.edges) - 1

    def freeze(self) -> GraphModel:
        return GraphModel(
            nodes=tuple(self.nodes),
            edges=tuple(self.edges),
            direction=self.direction,
            groups=tuple(self.groups),
            kind=self.kind,
        )

    def finish(self) -> str:
        """Freeze the graph, lay it out and render it."""
        self.graph = self.freeze()
        engine = get_engine(self.kind)
        self.result = engine.layout(self.graph, config=self.config)
        self.text = engine.render(self.result, self.style)
        return self.text


@contextmanager
def diagram(
        direction: Direction | str = "TD",
        style: CharacterSet | str = "unicode",
        filename: str | None = None,
        kind: str = "flowchart",
        config: LayoutConfig | None = None,
        svg: bool = False,
) -> Generator[Diagram]:
    """Create a diagram context.

    Usage:
        with diagram(direction="LR") as d:
            api = node("api", "API")
            db = node("db", "Database", shape="cylinder")
            api >> db | "SQL"
        print(d.text)

    Args:
        direction: Flow direction ("TD", "BT", "LR" or "RL")
        style: Character set for the text rendering
        filename: Write ``<filename>.txt`` (and ``.svg`` with ``svg=True``)
        kind: Diagram kind, selects the engine
        config: Layout configuration
        svg: Also write an SVG file when a filename is given

    Yields:
        The Diagram being built; rendered when the block exits cleanly
    """
    d = Diagram(direction=direction, style=style, kind=kind, config=config)
    _diagram_stack.append(d)
    try:
        yield d
    finally:
        _diagram_stack.pop()

    d.finish()
    if filename:
        Path(f"{filename}.txt").write_text(d.text + "\n", encoding="utf-8")
        logger.info("Wrote %s.txt", filename)
        if svg:
            from .svg import render_svg

            render_svg(d.result, filename)
            logger.info("Wrote %s.svg", filename)


def _endpoint(other: object) -> str:
    """Node id on the right-hand side of an edge operator.

    ``a >> b - c`` groups as ``a >> (b - c)``, so the operand can be the
    edge that was just built. The new edge then attaches to that edge's
    source node.
    """
    if isinstance(other, NodeHandle):
        return other.id
    if isinstance(other, EdgeHandle):
        return other.record.source
    raise CharplotError(f"Cannot connect a node to {type(other).__name__}")


class NodeHandle:
    """Reference to a node that supports edge operators.

    Usage:
        a >> b            # arrow
        a - b             # plain line
        a >> b >> c       # chain
        (a >> b) | "yes"  # labeled
    """

    def __init__(self, diagram: Diagram, node_id: str):
        self._diagram = diagram
        self.id = node_id

    def _connect(self, other: NodeHandle | EdgeHandle, kind: EdgeKind) -> EdgeHandle:
        index = self._diagram.add_edge(EdgeRecord(self.id, _endpoint(other), kind))
        return EdgeHandle(self._diagram, index)

    def __rshift__(self, other: NodeHandle | EdgeHandle) -> EdgeHandle:
        """Create an arrow from this node to another (->)."""
        return self._connect(other, EdgeKind.ARROW)

    def __lshift__(self, other: NodeHandle | EdgeHandle) -> EdgeHandle:
        """Create an arrow to this node from another (<-)."""
        index = self._diagram.add_edge(EdgeRecord(_endpoint(other), self.id, EdgeKind.ARROW))
        return EdgeHandle(self._diagram, index)

    def __sub__(self, other: NodeHandle | EdgeHandle) -> EdgeHandle:
        """Create an undirected line (--)."""
        return self._connect(other, EdgeKind.LINE)

    def __repr__(self) -> str:
        return f"NodeHandle({self.id!r})"


class EdgeHandle:
    """Reference to an edge that was just added."""

    def __init__(self, diagram: Diagram, index: int):
        self._diagram = diagram
        self._index = index

    @property
    def record(self) -> EdgeRecord:
        return self._diagram.edges[self._index]

    def __or__(self, label: str) -> EdgeHandle:
        """Add a label to the edge using | operator."""
        edges = self._diagram.edges
        edges[self._index] = dataclasses.replace(edges[self._index], label=label)
        return self

    def __rshift__(self, other: NodeHandle | EdgeHandle) -> EdgeHandle:
        """Chain edges: a >> b >> c."""
        record = self.record
        index = self._diagram.add_edge(EdgeRecord(record.target, _endpoint(other), record.kind))
        return EdgeHandle(self._diagram, index)

    def __sub__(self, other: NodeHandle | EdgeHandle) -> EdgeHandle:
        target = _endpoint(other)
        index = self._diagram.add_edge(EdgeRecord(self.record.target, target, EdgeKind.LINE))
        return EdgeHandle(self._diagram, index)


def node(
        node_id: str,
        label: str | None = None,
        shape: NodeShape | str = NodeShape.RECTANGLE,
) -> NodeHandle:
    """Create a node in the current diagram (and group, if any).

    Args:
        node_id: Unique node id
        label: Display text; defaults to the id. Use "\\n" for line breaks
        shape: NodeShape or its value, e.g. "rounded" or "cylinder"

    Returns:
        NodeHandle usable with >>, << and -
    """
    d = _current_diagram()
    d.add_node(NodeRecord(node_id, label, NodeShape(shape)))
    return NodeHandle(d, node_id)


@contextmanager
def group(group_id: str, label: str | None = None) -> Generator[None]:
    """Put the nodes created inside the block into one group.

    Groups cannot be nested.
    """
    d = _current_diagram()
    if d._group is not None:
        raise CharplotError(f"Group '{group_id}' cannot be nested in '{d._group.id}'")
    d._group = GroupRecord(group_id, label)
    try:
        yield
    finally:
        d.groups.append(d._group)
        d._group = None


_EDGE_STYLES = {
    "->": EdgeKind.ARROW,
    "--": EdgeKind.LINE,
    "..>": EdgeKind.DOTTED_ARROW,
    "..": EdgeKind.DOTTED,
    "=>": EdgeKind.THICK_ARROW,
    "==": EdgeKind.THICK,
    "~~": EdgeKind.INVISIBLE,
}


def edge(
        source: NodeHandle,
        target: NodeHandle,
        style: EdgeKind | str = EdgeKind.ARROW,
        label: str | None = None,
) -> EdgeHandle:
    """Create an edge between two nodes.

    Usage:
        edge(user, web, style="->", label="HTTP")
        edge(api, db, style="..")  # dotted, no arrow

    Args:
        source: Source node
        target: Target node
        style: EdgeKind, its value, or one of "->", "--", "..>", "..", "=>", "==", "~~"
        label: Optional edge label

    Returns:
        The EdgeHandle
    """
    if isinstance(style, str):
        style = _EDGE_STYLES[style] if style in _EDGE_STYLES else EdgeKind(style)
    d = _current_diagram()
    index = d.add_edge(EdgeRecord(source.id, target.id, style, label))
    return EdgeHandle(d, index)
