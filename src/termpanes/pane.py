"""Pane - one rectangle of the screen, either a leaf or a split.

A leaf owns content rows (and optionally a line editor); a split owns two
child panes tiling its rectangle around a one-cell divider. Splitting moves
a leaf's state into its first child, so a pane's identity survives the split
while its content moves down the tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Union

from termpanes.colors import RowLike, StyledSpan, to_spans
from termpanes.layout import (
    AXES,
    Axis,
    Glyph,
    Rect,
    clamp_offset,
    divider_cells,
    extent,
    normalize_offset,
    split_rects,
    visible_rows,
    wrap_rows,
)
from termpanes.line_editor import LineEditor
from termpanes.surface import Display, Surface

logger = logging.getLogger(__name__)


@dataclass
class Leaf:
    content: list[list[StyledSpan]] = field(default_factory=list)
    editor: LineEditor | None = None
    focused: bool = False


@dataclass
class Split:
    axis: Axis
    # Signed, as given to split(); negative counts from the far edge
    offset: int
    first: Pane
    second: Pane


Node = Union[Leaf, Split]


class Pane:
    """A node of the pane tree."""

    def __init__(self, display: Display, x: int, y: int, width: int, height: int) -> None:
        self._display = display
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.node: Node = Leaf()

    def __repr__(self) -> str:
        kind = "Split" if self.is_split else "Leaf"
        return f"<Pane {kind} x={self.x} y={self.y} w={self.width} h={self.height}>"

    # -- shape --------------------------------------------------------------

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def is_leaf(self) -> bool:
        return isinstance(self.node, Leaf)

    @property
    def is_split(self) -> bool:
        return isinstance(self.node, Split)

    @property
    def first(self) -> Pane | None:
        return self.node.first if isinstance(self.node, Split) else None

    @property
    def second(self) -> Pane | None:
        return self.node.second if isinstance(self.node, Split) else None

    @property
    def focused(self) -> bool:
        return isinstance(self.node, Leaf) and self.node.focused

    @property
    def content(self) -> list[list[StyledSpan]]:
        """Content rows of this leaf; empty for splits."""
        return list(self.node.content) if isinstance(self.node, Leaf) else []

    @property
    def editor(self) -> LineEditor | None:
        return self.node.editor if isinstance(self.node, Leaf) else None

    def leaves(self) -> Iterator[Pane]:
        """Yield every leaf below this pane, first child first."""
        if isinstance(self.node, Split):
            yield from self.node.first.leaves()
            yield from self.node.second.leaves()
        else:
            yield self

    def walk(self) -> Iterator[Pane]:
        yield self
        if isinstance(self.node, Split):
            yield from self.node.first.walk()
            yield from self.node.second.walk()

    def leftmost_leaf(self) -> Pane:
        pane = self
        while isinstance(pane.node, Split):
            pane = pane.node.first
        return pane

    def find_leaf_at(self, x: int, y: int) -> Pane | None:
        if not self.rect.contains(x, y):
            return None
        if isinstance(self.node, Leaf):
            return self
        return self.node.first.find_leaf_at(x, y) or self.node.second.find_leaf_at(x, y)

    # -- splitting ------------------------------------------------------------

    def split(self, axis: Axis, offset: int) -> bool:
        """Split this leaf in two along *axis* at *offset*.

        A vertical split places the children side by side, a horizontal one
        stacks them. Negative offsets count from the right or bottom edge.
        Returns ``False`` without changing anything when this pane is
        already split or the offset leaves no room for the first child or
        the divider.
        """
        if axis not in AXES:
            raise ValueError(f"unknown split axis {axis!r}")
        if not isinstance(self.node, Leaf):
            logger.debug("refusing to split %r: already split", self)
            return False

        absolute = normalize_offset(offset, extent(self.rect, axis))
        if absolute is None:
            logger.debug("refusing %s split of %r at %d", axis, self, offset)
            return False

        first_rect, second_rect = split_rects(self.rect, axis, absolute)
        first = Pane(self._display, *first_rect)
        first.node = self.node
        if first.node.editor is not None:
            first.node.editor.anchor(first_rect)
        second = Pane(self._display, *second_rect)
        self.node = Split(axis, offset, first, second)
        return True

    def vsplit(self, offset: int) -> bool:
        return self.split("vertical", offset)

    def hsplit(self, offset: int) -> bool:
        return self.split("horizontal", offset)

    def replace_child(self, old: Pane, new: Pane) -> None:
        """Put *new* in the slot *old* occupies and fit it to that slot."""
        if not isinstance(self.node, Split):
            raise ValueError(f"{self!r} has no children")
        if old is self.node.first:
            self.node.first = new
        elif old is self.node.second:
            self.node.second = new
        else:
            raise ValueError(f"{old!r} is not a child of {self!r}")
        new._adopt(self._display)
        new.resize(old.rect)

    def _adopt(self, display: Display) -> None:
        for pane in self.walk():
            pane._display = display

    def resize(self, rect: Rect) -> None:
        """Move this pane to *rect*, re-deriving every split below it."""
        self.x, self.y, self.width, self.height = rect
        node = self.node
        if isinstance(node, Leaf):
            if node.editor is not None:
                node.editor.anchor(rect)
            return
        first_rect, second_rect = split_rects(rect, node.axis, self._absolute_offset(node))
        node.first.resize(first_rect)
        node.second.resize(second_rect)

    def _absolute_offset(self, node: Split) -> int:
        """Resolve the stored signed offset against the current extent."""
        length = extent(self.rect, node.axis)
        absolute = normalize_offset(node.offset, length)
        if absolute is None:
            absolute = clamp_offset(node.offset, length)
        return absolute

    # -- content --------------------------------------------------------------

    def add_line(self, row: RowLike) -> None:
        """Append *row* to the leftmost leaf below this pane."""
        leaf = self.leftmost_leaf().node
        leaf.content.append(to_spans(row))

    def clear(self) -> None:
        self.leftmost_leaf().node.content.clear()

    # -- editing --------------------------------------------------------------

    def make_editable(self, prompt: RowLike | None = None) -> bool:
        """Turn this leaf into a line editor. Existing content is dropped."""
        node = self.node
        if not isinstance(node, Leaf):
            return False
        node.content.clear()
        node.editor = LineEditor(self._display, self.rect, prompt)
        if node.focused:
            node.editor.focus()
        return True

    def is_editable(self) -> bool:
        return self.editor is not None

    def is_alive(self) -> bool:
        """False only for an editable pane whose editor was killed."""
        editor = self.editor
        return editor is None or editor.alive()

    async def get_line(self) -> str | None:
        """Next line submitted in this pane's editor.

        Returns ``""`` for panes that are not editable and ``None`` once the
        editor has been killed.
        """
        editor = self.editor
        if editor is None:
            return ""
        line = await editor.get_line()
        if line is None:
            return None
        return line.decode("utf-8", errors="replace")

    def change_prompt(self, prompt: RowLike) -> None:
        editor = self.editor
        if editor is not None:
            editor.change_prompt(prompt)

    def describe(self) -> str:
        """Readable outline of the subtree rooted here."""
        return "\n".join(self._describe_lines(0))

    def _describe_lines(self, depth: int) -> list[str]:
        indent = "  " * depth
        where = f"at ({self.x}, {self.y}) size {self.width}x{self.height}"
        node = self.node
        if isinstance(node, Split):
            lines = [f"{indent}{node.axis} split at {node.offset} {where}"]
            lines += node.first._describe_lines(depth + 1)
            lines += node.second._describe_lines(depth + 1)
            return lines
        kind = "editable leaf" if node.editor is not None else "leaf"
        flags = ", focused" if node.focused else ""
        return [f"{indent}{kind} {where}, {len(node.content)} rows{flags}"]

    # -- focus (driven by PaneUI) -------------------------------------------

    def _focus(self, surface: Surface) -> None:
        node = self.node
        assert isinstance(node, Leaf)
        node.focused = True
        if node.editor is not None:
            node.editor.focus()
            node.editor.draw(surface)
            surface.set_cursor(node.editor.cursor_x(), self.y)
        else:
            surface.set_cursor(self.x, self.y)

    def _unfocus(self, surface: Surface) -> None:
        node = self.node
        assert isinstance(node, Leaf)
        was_focused = node.focused
        node.focused = False
        if node.editor is not None:
            node.editor.unfocus()
            if was_focused:
                node.editor.draw(surface)

    # -- rendering ------------------------------------------------------------

    def refresh(self) -> None:
        """Redraw this subtree as one frame."""
        with self._display.frame() as surface:
            self.draw(surface)

    def draw(self, surface: Surface) -> None:
        node = self.node
        if isinstance(node, Split):
            node.first.draw(surface)
            self._draw_divider(surface, node)
            node.second.draw(surface)
        elif node.editor is not None:
            node.editor.draw(surface)
            if node.focused:
                surface.set_cursor(node.editor.cursor_x(), self.y)
        else:
            self._draw_content(surface, node)
            if node.focused:
                surface.set_cursor(self.x, self.y)

    def _draw_divider(self, surface: Surface, node: Split) -> None:
        settings = self._display.settings
        glyph = (
            settings.vertical_divider
            if node.axis == "vertical"
            else settings.horizontal_divider
        )
        for x, y in divider_cells(self.rect, node.axis, self._absolute_offset(node)):
            surface.set_cell(x, y, glyph, settings.divider_fg, settings.divider_bg)

    def _draw_content(self, surface: Surface, node: Leaf) -> None:
        if self.width <= 0 or self.height <= 0:
            return
        rows = visible_rows(wrap_rows(node.content, self.width), self.height)
        self._display.fill(self.x, self.y, self.width, self.height)
        for offset, row in enumerate(rows):
            y = self.y + offset
            column = 0
            last: Glyph | None = None
            last_x = self.x
            for glyph in row:
                cells = glyph.width
                if not cells:
                    # Zero-width marks combine with the glyph drawn before them.
                    if last is not None and glyph.char[:1].isprintable():
                        last = Glyph(last.char + glyph.char, last.fg, last.bg)
                        surface.set_cell(last_x, y, last.char, last.fg, last.bg)
                    continue
                if column + cells > self.width:
                    break
                last, last_x = glyph, self.x + column
                surface.set_cell(last_x, y, glyph.char, glyph.fg, glyph.bg)
                column += cells
