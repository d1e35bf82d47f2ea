"""Error types raised by charplot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import EdgeRecord


class CharplotError(Exception):
    """Base class for all charplot errors."""


class GraphError(CharplotError, ValueError):
    """The graph model violates a structural invariant."""


class DuplicateNode(GraphError):
    """Two nodes share the same id."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Duplicate node id '{node_id}'")


class DanglingReference(GraphError):
    """An edge or group names a node id that is not part of the graph."""

    def __init__(self, missing_id: str, edge: EdgeRecord | None = None, group: str | None = None):
        self.missing_id = missing_id
        self.edge = edge
        self.group = group
        if edge is not None:
            message = (
                f"Edge '{edge.source}' -> '{edge.target}' references "
                f"unknown node '{missing_id}'"
            )
        else:
            message = f"Group '{group}' references unknown node '{missing_id}'"
        super().__init__(message)


class GlyphUnmapped(CharplotError, LookupError):
    """A character set has no glyph for a role the renderer needs."""

    def __init__(self, role: object, style: object):
        self.role = role
        self.style = style
        super().__init__(f"No glyph for role {role!s} in character set {style!s}")


class ParseError(CharplotError, ValueError):
    """Diagram markup could not be parsed."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class UnknownDiagramKind(CharplotError, KeyError):
    """No engine is registered for a diagram kind."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(kind)

    def __str__(self) -> str:
        return f"Unknown diagram kind '{self.kind}'"


@dataclass(frozen=True)
class CycleExcluded:
    """Notice that an edge was left out of layer assignment to break a cycle.

    The edge is still routed and drawn; it just does not constrain ranks.
    """

    index: int
    source: str
    target: str

    def __str__(self) -> str:
        return f"edge {self.source} -> {self.target} excluded from layering (cycle)"
