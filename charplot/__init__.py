"""charplot - Layered graph layout rendered on a character grid.

Example usage:
    from charplot import diagram, node

    with diagram(direction="TD") as d:
        start = node("start", "Start", shape="rounded")
        check = node("check", "Valid?", shape="diamond")
        ok = node("ok", "Save")
        err = node("err", "Reject")

        start >> check
        check >> ok | "yes"
        check >> err | "no"

    print(d.text)

Or from markup:
    from charplot import parse, render

    print(render(parse("graph LR\\n  A --> B"), style="ascii"))
"""

from .charset import (
    CHARACTER_SETS,
    CharacterSet,
    Glyph,
    glyph,
)
from .dsl import (
    Diagram,
    EdgeHandle,
    NodeHandle,
    diagram,
    edge,
    group,
    node,
)
from .engines import (
    ENGINES,
    ClassEngine,
    DiagramEngine,
    FlowchartEngine,
    GitGraphEngine,
    StateEngine,
    get_engine,
    layout,
    render,
)
from .errors import (
    CharplotError,
    CycleExcluded,
    DanglingReference,
    DuplicateNode,
    GlyphUnmapped,
    GraphError,
    ParseError,
    UnknownDiagramKind,
)
from .layout import (
    LayoutConfig,
    layout_graph,
)
from .models import (
    Direction,
    EdgeKind,
    EdgeRecord,
    GraphModel,
    GroupRecord,
    LayoutResult,
    NodeRecord,
    NodeShape,
    PositionedEdge,
    PositionedGroup,
    PositionedNode,
)
from .parser import (
    detect_kind,
    parse,
)
from .renderer import (
    TextRenderer,
    render_text,
)
from .svg import (
    DEFAULT_THEME,
    SvgRenderer,
    Theme,
    render_svg,
)

__version__ = "0.1.0"

__all__ = [
    # DSL functions
    "diagram",
    "node",
    "edge",
    "group",
    "Diagram",
    "NodeHandle",
    "EdgeHandle",
    # Models
    "GraphModel",
    "NodeRecord",
    "EdgeRecord",
    "GroupRecord",
    "Direction",
    "NodeShape",
    "EdgeKind",
    "LayoutResult",
    "PositionedNode",
    "PositionedEdge",
    "PositionedGroup",
    # Layout
    "LayoutConfig",
    "layout_graph",
    # Engines
    "DiagramEngine",
    "FlowchartEngine",
    "StateEngine",
    "ClassEngine",
    "GitGraphEngine",
    "ENGINES",
    "get_engine",
    "layout",
    "render",
    # Markup
    "parse",
    "detect_kind",
    # Rendering
    "CharacterSet",
    "Glyph",
    "CHARACTER_SETS",
    "glyph",
    "TextRenderer",
    "render_text",
    "render_svg",
    "SvgRenderer",
    "Theme",
    "DEFAULT_THEME",
    # Errors
    "CharplotError",
    "GraphError",
    "DanglingReference",
    "DuplicateNode",
    "GlyphUnmapped",
    "ParseError",
    "UnknownDiagramKind",
    "CycleExcluded",
    # Version
    "__version__",
]
