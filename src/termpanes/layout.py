"""Pane geometry and the line-wrapping layout pass.

Everything here is pure: rectangles in, rectangles out; styled rows in,
display rows out. Drawing happens in :mod:`termpanes.pane`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, NamedTuple, Sequence

from termpanes.colors import Color, StyledSpan
from termpanes.utils import grapheme_width, graphemes

Axis = Literal["vertical", "horizontal"]
AXES: tuple[Axis, ...] = ("vertical", "horizontal")


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    def contains(self, x: int, y: int) -> bool:
        """Half-open hit test: ``[x, x+width) x [y, y+height)``."""
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height


# ---------------------------------------------------------------------------
# Split geometry
# ---------------------------------------------------------------------------


def extent(rect: Rect, axis: Axis) -> int:
    """The length a split along *axis* divides: width for vertical splits."""
    return rect.width if axis == "vertical" else rect.height


def normalize_offset(offset: int, length: int) -> int | None:
    """Resolve a signed split offset against *length*.

    Negative offsets count from the far edge. Returns ``None`` when the
    resolved offset falls outside ``(0, length)``.
    """
    absolute = offset + length if offset < 0 else offset
    if absolute <= 0 or absolute >= length:
        return None
    return absolute


def split_rects(rect: Rect, axis: Axis, offset: int) -> tuple[Rect, Rect]:
    """Rectangles of the two children of *rect* split at absolute *offset*.

    One row or column at *offset* is left between them for the divider.
    """
    x, y, width, height = rect
    if axis == "vertical":
        return (
            Rect(x, y, offset, height),
            Rect(x + offset + 1, y, max(width - offset - 1, 0), height),
        )
    return (
        Rect(x, y, width, offset),
        Rect(x, y + offset + 1, width, max(height - offset - 1, 0)),
    )


def divider_cells(rect: Rect, axis: Axis, offset: int) -> Iterable[tuple[int, int]]:
    """Cells of the divider between the children of a split."""
    if axis == "vertical":
        return ((rect.x + offset, row) for row in range(rect.y, rect.y + rect.height))
    return ((col, rect.y + offset) for col in range(rect.x, rect.x + rect.width))


def clamp_offset(offset: int, length: int) -> int:
    """Resolve *offset* against a *length* it may no longer fit.

    Used when a terminal resize shrinks a split; the result keeps both
    children at least one cell wide whenever *length* allows it.
    """
    absolute = offset + length if offset < 0 else offset
    upper = max(length - 2, 1)
    return min(max(absolute, 1), upper)


# ---------------------------------------------------------------------------
# Line wrapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Glyph:
    char: str
    fg: Color = Color.DEFAULT
    bg: Color = Color.DEFAULT

    @property
    def width(self) -> int:
        return grapheme_width(self.char) if self.char[:1].isprintable() else 0


DisplayRow = list[Glyph]


def wrap_rows(rows: Iterable[Sequence[StyledSpan]], width: int) -> list[DisplayRow]:
    """Lay content rows out as display rows at most *width* cells wide.

    Each content row starts a new display row, and each grapheme cluster
    becomes one glyph. A printable glyph that does not fit in what is left
    of the current row starts the next one, and a newline starts the next
    one without producing a glyph. Non-printable and zero-width glyphs never
    cause a wrap.
    """
    out: list[DisplayRow] = []
    for row in rows:
        current: DisplayRow = []
        out.append(current)
        column = 0
        for span in row:
            for char in graphemes(span.text):
                if "\n" in char:
                    current = []
                    out.append(current)
                    column = 0
                    continue
                glyph = Glyph(char, span.fg, span.bg)
                cells = glyph.width
                if cells and column + cells > width and column > 0:
                    current = []
                    out.append(current)
                    column = 0
                current.append(glyph)
                column += cells
    return out


def visible_rows(rows: Sequence[DisplayRow], height: int) -> Sequence[DisplayRow]:
    """Keep only the most recent *height* display rows."""
    start = max(0, len(rows) - height)
    return rows[start:]
