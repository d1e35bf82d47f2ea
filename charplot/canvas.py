"""Character-grid canvas stored as a flat row-major buffer."""

from __future__ import annotations

from .text import char_width

BLANK = " "
# Placeholder for the right half of a double-width character
WIDE_TAIL = ""


class Canvas:
    """A ``width`` x ``height`` grid of character cells.

    Cells live in flat lists indexed by ``y * width + x``. Besides the
    character each cell tracks whether it is protected (part of a node box,
    so edge drawing must leave it alone) and which directions edge lines
    leave it in.
    """

    def __init__(self, width: int, height: int, fill: str = BLANK):
        if width < 0 or height < 0:
            raise ValueError(f"Canvas size must be non-negative, got {width}x{height}")
        self.width = width
        self.height = height
        size = width * height
        self.cells = [fill] * size
        self.protected = [False] * size
        self.links = [0] * size
        self.styles: list[tuple[bool, bool]] = [(False, False)] * size

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> str:
        return self.cells[self.index(x, y)]

    def is_protected(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self.protected[self.index(x, y)]

    def put(self, x: int, y: int, ch: str, force: bool = False) -> bool:
        """Write one character; returns False if the cell was skipped.

        Protected or out-of-bounds cells are skipped unless ``force`` is set
        (bounds are always enforced). A double-width character also claims
        the cell to its right.
        """
        if not self.in_bounds(x, y):
            return False
        i = self.index(x, y)
        if self.protected[i] and not force:
            return False
        if self.cells[i] == WIDE_TAIL and x > 0:
            self.cells[i - 1] = BLANK
        elif char_width(self.cells[i]) == 2 and x + 1 < self.width:
            self.cells[i + 1] = BLANK
        if char_width(ch) == 2:
            if x + 1 >= self.width:
                return False
            self.cells[i + 1] = WIDE_TAIL
        self.cells[i] = ch
        return True

    def write(self, x: int, y: int, text: str, force: bool = False) -> None:
        """Write ``text`` left to right starting at (x, y)."""
        for ch in text:
            w = char_width(ch)
            if w == 0:
                continue
            self.put(x, y, ch, force=force)
            x += w

    def protect(self, x: int, y: int, width: int, height: int) -> None:
        for row in range(max(y, 0), min(y + height, self.height)):
            for col in range(max(x, 0), min(x + width, self.width)):
                self.protected[self.index(col, row)] = True

    def link(self, x: int, y: int, bits: int, dotted: bool = False, thick: bool = False) -> None:
        """Record that a line leaves cell (x, y) in the ``bits`` directions."""
        if not self.in_bounds(x, y):
            return
        i = self.index(x, y)
        if self.protected[i]:
            return
        self.links[i] |= bits
        self.styles[i] = (dotted, thick)

    def links_at(self, x: int, y: int) -> int:
        return self.links[self.index(x, y)] if self.in_bounds(x, y) else 0

    def rows(self) -> list[str]:
        w = self.width
        return ["".join(self.cells[r * w:(r + 1) * w]) for r in range(self.height)]

    def to_string(self) -> str:
        """Serialize the grid.

        Rows are joined with a single newline, trailing spaces are stripped
        from every row and trailing blank rows are dropped. There is no
        trailing newline. Leading blank rows are kept so line ``i`` of the
        output is row ``i`` of the canvas.
        """
        lines = [row.rstrip() for row in self.rows()]
        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()
