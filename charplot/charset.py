"""Glyph roles and the character sets that map them to characters."""

from __future__ import annotations

from enum import Enum

from .errors import GlyphUnmapped


class CharacterSet(Enum):
    """Named glyph styles."""

    ASCII = "ascii"
    UNICODE = "unicode"
    UNICODE_MATH = "unicode-math"
    COMPACT = "compact"

    @classmethod
    def parse(cls, value: str | CharacterSet) -> CharacterSet:
        if isinstance(value, CharacterSet):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            names = ", ".join(s.value for s in cls)
            raise ValueError(f"Invalid character set '{value}', must be one of {names}") from None


class Glyph(Enum):
    """Semantic roles a drawn character can play."""

    # Box borders (also used for edge corners)
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    # Rounded boxes
    ROUND_TOP_LEFT = "round_top_left"
    ROUND_TOP_RIGHT = "round_top_right"
    ROUND_BOTTOM_LEFT = "round_bottom_left"
    ROUND_BOTTOM_RIGHT = "round_bottom_right"
    # Group boundaries
    GROUP_TOP_LEFT = "group_top_left"
    GROUP_TOP_RIGHT = "group_top_right"
    GROUP_BOTTOM_LEFT = "group_bottom_left"
    GROUP_BOTTOM_RIGHT = "group_bottom_right"
    GROUP_HORIZONTAL = "group_horizontal"
    GROUP_VERTICAL = "group_vertical"
    # Slanted shapes
    DIAGONAL_RISING = "diagonal_rising"
    DIAGONAL_FALLING = "diagonal_falling"
    ANGLE_LEFT = "angle_left"
    ANGLE_RIGHT = "angle_right"
    ARC_LEFT = "arc_left"
    ARC_RIGHT = "arc_right"
    # Junctions
    TEE_DOWN = "tee_down"
    TEE_UP = "tee_up"
    TEE_RIGHT = "tee_right"
    TEE_LEFT = "tee_left"
    CROSS = "cross"
    # Edge lines
    LINE_HORIZONTAL = "line_horizontal"
    LINE_VERTICAL = "line_vertical"
    DOTTED_HORIZONTAL = "dotted_horizontal"
    DOTTED_VERTICAL = "dotted_vertical"
    THICK_HORIZONTAL = "thick_horizontal"
    THICK_VERTICAL = "thick_vertical"
    # Arrowheads
    ARROW_UP = "arrow_up"
    ARROW_DOWN = "arrow_down"
    ARROW_LEFT = "arrow_left"
    ARROW_RIGHT = "arrow_right"


_ASCII_BOX = {
    Glyph.TOP_LEFT: "+",
    Glyph.TOP_RIGHT: "+",
    Glyph.BOTTOM_LEFT: "+",
    Glyph.BOTTOM_RIGHT: "+",
    Glyph.HORIZONTAL: "-",
    Glyph.VERTICAL: "|",
    Glyph.ROUND_TOP_LEFT: ".",
    Glyph.ROUND_TOP_RIGHT: ".",
    Glyph.ROUND_BOTTOM_LEFT: "'",
    Glyph.ROUND_BOTTOM_RIGHT: "'",
    Glyph.GROUP_TOP_LEFT: "+",
    Glyph.GROUP_TOP_RIGHT: "+",
    Glyph.GROUP_BOTTOM_LEFT: "+",
    Glyph.GROUP_BOTTOM_RIGHT: "+",
    Glyph.GROUP_HORIZONTAL: "=",
    Glyph.GROUP_VERTICAL: ":",
    Glyph.DIAGONAL_RISING: "/",
    Glyph.DIAGONAL_FALLING: "\\",
    Glyph.ANGLE_LEFT: "<",
    Glyph.ANGLE_RIGHT: ">",
    Glyph.ARC_LEFT: "(",
    Glyph.ARC_RIGHT: ")",
}

_ASCII_EDGES = {
    Glyph.TEE_DOWN: "+",
    Glyph.TEE_UP: "+",
    Glyph.TEE_RIGHT: "+",
    Glyph.TEE_LEFT: "+",
    Glyph.CROSS: "+",
    Glyph.LINE_HORIZONTAL: "-",
    Glyph.LINE_VERTICAL: "|",
    Glyph.DOTTED_HORIZONTAL: ".",
    Glyph.DOTTED_VERTICAL: ":",
    Glyph.THICK_HORIZONTAL: "=",
    Glyph.THICK_VERTICAL: "H",
    Glyph.ARROW_UP: "^",
    Glyph.ARROW_DOWN: "v",
    Glyph.ARROW_LEFT: "<",
    Glyph.ARROW_RIGHT: ">",
}

_UNICODE_BOX = {
    Glyph.TOP_LEFT: "┌",
    Glyph.TOP_RIGHT: "┐",
    Glyph.BOTTOM_LEFT: "└",
    Glyph.BOTTOM_RIGHT: "┘",
    Glyph.HORIZONTAL: "─",
    Glyph.VERTICAL: "│",
    Glyph.ROUND_TOP_LEFT: "╭",
    Glyph.ROUND_TOP_RIGHT: "╮",
    Glyph.ROUND_BOTTOM_LEFT: "╰",
    Glyph.ROUND_BOTTOM_RIGHT: "╯",
    Glyph.GROUP_TOP_LEFT: "╔",
    Glyph.GROUP_TOP_RIGHT: "╗",
    Glyph.GROUP_BOTTOM_LEFT: "╚",
    Glyph.GROUP_BOTTOM_RIGHT: "╝",
    Glyph.GROUP_HORIZONTAL: "═",
    Glyph.GROUP_VERTICAL: "║",
    Glyph.DIAGONAL_RISING: "╱",
    Glyph.DIAGONAL_FALLING: "╲",
    Glyph.ANGLE_LEFT: "<",
    Glyph.ANGLE_RIGHT: ">",
    Glyph.ARC_LEFT: "(",
    Glyph.ARC_RIGHT: ")",
}

_UNICODE_EDGES = {
    Glyph.TEE_DOWN: "┬",
    Glyph.TEE_UP: "┴",
    Glyph.TEE_RIGHT: "├",
    Glyph.TEE_LEFT: "┤",
    Glyph.CROSS: "┼",
    Glyph.LINE_HORIZONTAL: "─",
    Glyph.LINE_VERTICAL: "│",
    Glyph.DOTTED_HORIZONTAL: "┄",
    Glyph.DOTTED_VERTICAL: "┆",
    Glyph.THICK_HORIZONTAL: "━",
    Glyph.THICK_VERTICAL: "┃",
    Glyph.ARROW_UP: "▲",
    Glyph.ARROW_DOWN: "▼",
    Glyph.ARROW_LEFT: "◀",
    Glyph.ARROW_RIGHT: "▶",
}

CHARACTER_SETS: dict[tuple[Glyph, CharacterSet], str] = {}


def _register(style: CharacterSet, *tables: dict[Glyph, str]) -> None:
    for table in tables:
        for role, ch in table.items():
            CHARACTER_SETS[(role, style)] = ch


_register(CharacterSet.ASCII, _ASCII_BOX, _ASCII_EDGES)
_register(CharacterSet.UNICODE, _UNICODE_BOX, _UNICODE_EDGES)
_register(
    CharacterSet.UNICODE_MATH,
    _UNICODE_BOX,
    _UNICODE_EDGES,
    {
        Glyph.DIAGONAL_RISING: "⟋",
        Glyph.DIAGONAL_FALLING: "⟍",
        Glyph.DOTTED_HORIZONTAL: "⋯",
        Glyph.DOTTED_VERTICAL: "⋮",
        Glyph.ARROW_UP: "↑",
        Glyph.ARROW_DOWN: "↓",
        Glyph.ARROW_LEFT: "←",
        Glyph.ARROW_RIGHT: "→",
    },
)
# Compact resolves to the ASCII table in full
_register(CharacterSet.COMPACT, _ASCII_BOX, _ASCII_EDGES)


def glyph(role: Glyph, style: CharacterSet) -> str:
    """Look up the character drawn for ``role`` in ``style``.

    Raises:
        GlyphUnmapped: the style has no entry for the role
    """
    try:
        return CHARACTER_SETS[(role, style)]
    except KeyError:
        raise GlyphUnmapped(role, style) from None


# Connection bits of a grid cell
UP = 1
DOWN = 2
LEFT = 4
RIGHT = 8

_JUNCTIONS = {
    DOWN | RIGHT: Glyph.TOP_LEFT,
    DOWN | LEFT: Glyph.TOP_RIGHT,
    UP | RIGHT: Glyph.BOTTOM_LEFT,
    UP | LEFT: Glyph.BOTTOM_RIGHT,
    DOWN | LEFT | RIGHT: Glyph.TEE_DOWN,
    UP | LEFT | RIGHT: Glyph.TEE_UP,
    UP | DOWN | RIGHT: Glyph.TEE_RIGHT,
    UP | DOWN | LEFT: Glyph.TEE_LEFT,
    UP | DOWN | LEFT | RIGHT: Glyph.CROSS,
}


def line_role(bits: int, dotted: bool = False, thick: bool = False) -> Glyph | None:
    """Role for a cell whose line segments leave in the ``bits`` directions.

    Straight cells take the dotted or thick variant; corners, tees and
    crossings are always solid. Returns None for an empty cell.
    """
    if bits in _JUNCTIONS:
        return _JUNCTIONS[bits]
    if bits & (LEFT | RIGHT):
        if dotted:
            return Glyph.DOTTED_HORIZONTAL
        return Glyph.THICK_HORIZONTAL if thick else Glyph.LINE_HORIZONTAL
    if bits & (UP | DOWN):
        if dotted:
            return Glyph.DOTTED_VERTICAL
        return Glyph.THICK_VERTICAL if thick else Glyph.LINE_VERTICAL
    return None


ARROWS = {
    UP: Glyph.ARROW_UP,
    DOWN: Glyph.ARROW_DOWN,
    LEFT: Glyph.ARROW_LEFT,
    RIGHT: Glyph.ARROW_RIGHT,
}
