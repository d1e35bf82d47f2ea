"""Display-width helpers for laying out text on a character grid."""

from __future__ import annotations

from wcwidth import wcswidth, wcwidth


def char_width(ch: str) -> int:
    """Number of grid cells a single character occupies (0, 1 or 2)."""
    if not ch:
        return 0
    w = wcwidth(ch)
    return w if w > 0 else 0


def display_width(text: str) -> int:
    """Number of grid cells ``text`` occupies when printed.

    Non-printable characters make ``wcswidth`` return -1, in which case the
    width is summed per character, counting unprintable ones as zero.
    """
    w = wcswidth(text)
    if w >= 0:
        return w
    return sum(char_width(ch) for ch in text)


def label_lines(label: str) -> list[str]:
    """Split a label on explicit line breaks. No wrapping is applied."""
    return label.split("\n") if label else [""]


def fit_text(text: str, width: int) -> str:
    """Cut ``text`` so that it occupies at most ``width`` cells."""
    if display_width(text) <= width:
        return text
    out = []
    used = 0
    for ch in text:
        w = char_width(ch)
        if used + w > width:
            break
        out.append(ch)
        used += w
    return "".join(out)
