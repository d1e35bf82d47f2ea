"""Tests for glyph roles and character sets."""

import pytest

from charplot.charset import (
    CHARACTER_SETS,
    DOWN,
    LEFT,
    RIGHT,
    UP,
    CharacterSet,
    Glyph,
    glyph,
    line_role,
)
from charplot.errors import GlyphUnmapped
from charplot.text import display_width


@pytest.mark.parametrize("style", list(CharacterSet))
def test_every_role_maps_to_one_character(style):
    for role in Glyph:
        ch = glyph(role, style)
        assert len(ch) == 1
        assert display_width(ch) == 1


def test_table_is_total():
    assert len(CHARACTER_SETS) == len(Glyph) * len(CharacterSet)


def test_ascii_is_seven_bit():
    assert all(ord(glyph(role, CharacterSet.ASCII)) < 128 for role in Glyph)


def test_compact_matches_ascii():
    for role in Glyph:
        assert glyph(role, CharacterSet.COMPACT) == glyph(role, CharacterSet.ASCII)
    assert glyph(Glyph.LINE_VERTICAL, CharacterSet.COMPACT) == "|"
    assert glyph(Glyph.ARROW_DOWN, CharacterSet.COMPACT) == "v"


def test_math_variant():
    assert glyph(Glyph.DIAGONAL_RISING, CharacterSet.UNICODE_MATH) == "⟋"
    assert glyph(Glyph.TOP_LEFT, CharacterSet.UNICODE_MATH) == "┌"


def test_missing_entry_raises(monkeypatch):
    monkeypatch.delitem(CHARACTER_SETS, (Glyph.CROSS, CharacterSet.ASCII))
    with pytest.raises(GlyphUnmapped) as exc:
        glyph(Glyph.CROSS, CharacterSet.ASCII)
    assert exc.value.role is Glyph.CROSS
    assert isinstance(exc.value, LookupError)


@pytest.mark.parametrize("name, expected", [
    ("unicode", CharacterSet.UNICODE),
    ("ASCII", CharacterSet.ASCII),
    ("unicode-math", CharacterSet.UNICODE_MATH),
    (CharacterSet.COMPACT, CharacterSet.COMPACT),
])
def test_parse(name, expected):
    assert CharacterSet.parse(name) is expected


def test_parse_invalid():
    with pytest.raises(ValueError, match="Invalid character set"):
        CharacterSet.parse("emoji")


class TestLineRole:
    """Tests for resolving connection bits to roles."""

    def test_straight(self):
        assert line_role(UP | DOWN) is Glyph.LINE_VERTICAL
        assert line_role(LEFT) is Glyph.LINE_HORIZONTAL

    def test_styles_apply_to_straight_cells_only(self):
        assert line_role(UP | DOWN, dotted=True) is Glyph.DOTTED_VERTICAL
        assert line_role(LEFT | RIGHT, thick=True) is Glyph.THICK_HORIZONTAL
        assert line_role(DOWN | RIGHT, dotted=True) is Glyph.TOP_LEFT

    def test_junctions(self):
        assert line_role(UP | LEFT | RIGHT) is Glyph.TEE_UP
        assert line_role(DOWN | LEFT | RIGHT) is Glyph.TEE_DOWN
        assert line_role(UP | DOWN | RIGHT) is Glyph.TEE_RIGHT
        assert line_role(UP | DOWN | LEFT) is Glyph.TEE_LEFT
        assert line_role(UP | DOWN | LEFT | RIGHT) is Glyph.CROSS

    def test_empty(self):
        assert line_role(0) is None
