"""Diagram engines selected by diagram kind.

Every kind of diagram implements the same two calls, ``layout`` and
``render``; callers pick the implementation through :data:`ENGINES` using
the graph's ``kind`` tag.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Protocol

from .charset import CharacterSet
from .errors import UnknownDiagramKind
from .layout import LayoutConfig, layout_graph
from .models import Direction, NodeRecord, NodeShape
from .renderer import render_text

if TYPE_CHECKING:
    from .models import GraphModel, LayoutResult

# Id prefix of start/end pseudo-states in state diagrams
PSEUDO_STATE = "[*]"


class DiagramEngine(Protocol):
    """Layout and rendering for one kind of diagram."""

    def layout(
        self,
        graph: GraphModel,
        direction: Direction | str | None = None,
        config: LayoutConfig | None = None,
    ) -> LayoutResult: ...

    def render(self, result: LayoutResult, charset: CharacterSet | str = CharacterSet.UNICODE) -> str: ...


def _with_direction(graph: GraphModel, direction: Direction | str | None) -> GraphModel:
    if direction is None:
        return graph
    return dataclasses.replace(graph, direction=Direction.parse(direction))


class FlowchartEngine:
    """Flowcharts: the graph is laid out as given."""

    kind = "flowchart"

    def layout(
        self,
        graph: GraphModel,
        direction: Direction | str | None = None,
        config: LayoutConfig | None = None,
    ) -> LayoutResult:
        return layout_graph(_with_direction(graph, direction), config)

    def render(self, result: LayoutResult, charset: CharacterSet | str = CharacterSet.UNICODE) -> str:
        return render_text(result, charset)


class StateEngine:
    """State diagrams.

    States are drawn as rounded boxes and the ``[*]`` start/end
    pseudo-states as small unlabeled circles.
    """

    kind = "state"

    def prepare(self, graph: GraphModel) -> GraphModel:
        nodes = []
        for n in graph.nodes:
            if n.id.startswith(PSEUDO_STATE):
                nodes.append(NodeRecord(n.id, "", NodeShape.CIRCLE))
            elif n.shape == NodeShape.RECTANGLE:
                nodes.append(dataclasses.replace(n, shape=NodeShape.ROUNDED))
            else:
                nodes.append(n)
        return dataclasses.replace(graph, nodes=tuple(nodes))

    def layout(
        self,
        graph: GraphModel,
        direction: Direction | str | None = None,
        config: LayoutConfig | None = None,
    ) -> LayoutResult:
        return layout_graph(self.prepare(_with_direction(graph, direction)), config)

    def render(self, result: LayoutResult, charset: CharacterSet | str = CharacterSet.UNICODE) -> str:
        return render_text(result, charset)


class ClassEngine:
    """Class diagrams.

    Every class is a rectangle; its label already stacks the name over the
    members, one per line.
    """

    kind = "class"

    def prepare(self, graph: GraphModel) -> GraphModel:
        nodes = tuple(dataclasses.replace(n, shape=NodeShape.RECTANGLE) for n in graph.nodes)
        return dataclasses.replace(graph, nodes=nodes)

    def layout(
        self,
        graph: GraphModel,
        direction: Direction | str | None = None,
        config: LayoutConfig | None = None,
    ) -> LayoutResult:
        return layout_graph(self.prepare(_with_direction(graph, direction)), config)

    def render(self, result: LayoutResult, charset: CharacterSet | str = CharacterSet.UNICODE) -> str:
        return render_text(result, charset)


class GitGraphEngine:
    """Git history: commits drawn as circles unless a shape was chosen."""

    kind = "gitgraph"

    def prepare(self, graph: GraphModel) -> GraphModel:
        nodes = tuple(
            dataclasses.replace(n, shape=NodeShape.CIRCLE) if n.shape == NodeShape.RECTANGLE else n
            for n in graph.nodes
        )
        return dataclasses.replace(graph, nodes=nodes)

    def layout(
        self,
        graph: GraphModel,
        direction: Direction | str | None = None,
        config: LayoutConfig | None = None,
    ) -> LayoutResult:
        return layout_graph(self.prepare(_with_direction(graph, direction)), config)

    def render(self, result: LayoutResult, charset: CharacterSet | str = CharacterSet.UNICODE) -> str:
        return render_text(result, charset)


ENGINES: dict[str, DiagramEngine] = {
    FlowchartEngine.kind: FlowchartEngine(),
    StateEngine.kind: StateEngine(),
    ClassEngine.kind: ClassEngine(),
    GitGraphEngine.kind: GitGraphEngine(),
}


def get_engine(kind: str) -> DiagramEngine:
    """Return the engine registered for a diagram kind.

    Raises:
        UnknownDiagramKind: no engine handles ``kind``
    """
    try:
        return ENGINES[kind]
    except KeyError:
        raise UnknownDiagramKind(kind) from None


def layout(
    graph: GraphModel,
    direction: Direction | str | None = None,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """Lay out a graph with the engine for its kind."""
    return get_engine(graph.kind).layout(graph, direction, config)


def render(
    graph: GraphModel,
    style: CharacterSet | str = CharacterSet.UNICODE,
    direction: Direction | str | None = None,
    config: LayoutConfig | None = None,
) -> str:
    """Lay out and render a graph as text.

    The character set is checked before any layout work is done.

    Args:
        graph: graph to draw
        style: character set name or value
        direction: overrides the graph's own direction when given
        config: layout configuration

    Returns:
        The rendered diagram; empty string for an empty graph
    """
    charset = CharacterSet.parse(style)
    engine = get_engine(graph.kind)
    return engine.render(engine.layout(graph, direction, config), charset)
