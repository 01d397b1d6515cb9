"""Tests for termpanes.pane -- splitting, content routing and rendering.

Uses the VirtualSurface to capture cells and verify what each pane draws.
"""

from __future__ import annotations

import pytest

from termpanes.colors import Color, StyledSpan
from termpanes.config import PaneSettings
from termpanes.layout import Rect
from termpanes.pane import Leaf, Pane, Split
from termpanes.surface import Display

from .virtual_surface import VirtualSurface


def make_pane(width: int = 21, height: int = 5) -> tuple[Pane, VirtualSurface]:
    surface = VirtualSurface(width, height)
    display = Display(surface, PaneSettings())
    return Pane(display, 0, 0, width, height), surface


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


class TestSplit:
    """split / vsplit / hsplit geometry and rejection."""

    def test_vertical_split_21_wide_at_10(self) -> None:
        pane, _ = make_pane(21, 5)
        assert pane.vsplit(10)
        assert pane.first.rect == Rect(0, 0, 10, 5)
        assert pane.second.rect == Rect(11, 0, 10, 5)

    def test_vertical_split_10_wide_at_minus_3(self) -> None:
        pane, _ = make_pane(10, 4)
        assert pane.vsplit(-3)
        assert pane.first.width == 7
        assert pane.second.rect == Rect(8, 0, 2, 4)

    def test_split_stores_the_signed_offset(self) -> None:
        pane, _ = make_pane(10, 4)
        pane.vsplit(-3)
        assert isinstance(pane.node, Split)
        assert pane.node.axis == "vertical"
        assert pane.node.offset == -3

    def test_horizontal_split(self) -> None:
        pane, _ = make_pane(8, 10)
        assert pane.hsplit(4)
        assert pane.first.rect == Rect(0, 0, 8, 4)
        assert pane.second.rect == Rect(0, 5, 8, 5)

    @pytest.mark.parametrize("offset", [0, 10, 11, -10, -11])
    def test_invalid_offsets_leave_pane_untouched(self, offset: int) -> None:
        pane, _ = make_pane(10, 4)
        pane.add_line("keep")
        leaf = pane.node
        assert pane.vsplit(offset) is False
        assert pane.node is leaf
        assert pane.is_leaf
        assert pane.content == [[StyledSpan("keep")]]

    def test_splitting_a_split_is_rejected(self) -> None:
        pane, _ = make_pane()
        pane.vsplit(10)
        node = pane.node
        assert pane.hsplit(2) is False
        assert pane.node is node

    def test_unknown_axis_raises(self) -> None:
        pane, _ = make_pane()
        with pytest.raises(ValueError):
            pane.split("diagonal", 3)  # type: ignore[arg-type]

    def test_first_child_inherits_content(self) -> None:
        pane, _ = make_pane()
        pane.add_line("hello")
        pane.vsplit(10)
        assert pane.first.content == [[StyledSpan("hello")]]
        assert pane.second.content == []
        assert pane.content == []

    def test_first_child_inherits_focus_flag(self) -> None:
        pane, _ = make_pane()
        assert isinstance(pane.node, Leaf)
        pane.node.focused = True
        pane.vsplit(10)
        assert pane.first.focused
        assert not pane.second.focused

    def test_editor_is_reanchored_to_first_child(self) -> None:
        pane, _ = make_pane(21, 5)
        pane.make_editable("> ")
        pane.vsplit(5)
        assert pane.first.is_editable()
        assert pane.first.editor.rect == Rect(0, 0, 5, 5)
        assert not pane.second.is_editable()

    def test_leaves_in_tree_order(self) -> None:
        pane, _ = make_pane(21, 11)
        pane.vsplit(10)
        pane.second.hsplit(5)
        assert list(pane.leaves()) == [pane.first, pane.second.first, pane.second.second]


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class TestContent:
    """add_line / clear route to the leftmost leaf."""

    def test_add_line_after_split_goes_to_first_child(self) -> None:
        pane, _ = make_pane()
        pane.vsplit(10)
        pane.add_line("out")
        assert pane.first.content == [[StyledSpan("out")]]

    def test_add_line_follows_nested_first_children(self) -> None:
        pane, _ = make_pane(21, 11)
        pane.vsplit(10)
        pane.first.hsplit(5)
        pane.add_line("deep")
        assert pane.first.first.content == [[StyledSpan("deep")]]

    def test_add_line_on_a_second_child(self) -> None:
        pane, _ = make_pane()
        pane.vsplit(10)
        pane.second.add_line("right")
        assert pane.second.content == [[StyledSpan("right")]]

    def test_add_line_accepts_spans(self) -> None:
        pane, _ = make_pane()
        row = [StyledSpan("a", Color.RED), StyledSpan("b")]
        pane.add_line(row)
        assert pane.content == [row]

    def test_clear(self) -> None:
        pane, _ = make_pane()
        pane.add_line("a")
        pane.add_line("b")
        pane.clear()
        assert pane.content == []


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRefresh:
    """Layout and blit passes drawn into the surface."""

    def test_wraps_into_width(self) -> None:
        pane, surface = make_pane(10, 5)
        pane.add_line("abcdefghijkl")
        pane.refresh()
        assert surface.get_viewport() == [
            "abcdefghij",
            "kl        ",
            "          ",
            "          ",
            "          ",
        ]

    def test_shows_most_recent_rows(self) -> None:
        pane, surface = make_pane(4, 3)
        for i in range(7):
            pane.add_line(f"r{i}")
        pane.refresh()
        assert surface.get_viewport() == ["r4  ", "r5  ", "r6  "]

    def test_pads_stale_cells_with_blanks(self) -> None:
        pane, surface = make_pane(4, 2)
        for x in range(4):
            for y in range(2):
                surface.set_cell(x, y, "x", Color.RED, Color.RED)
        pane.add_line("ab")
        pane.refresh()
        assert surface.get_viewport() == ["ab  ", "    "]
        assert surface.colors(3, 1) == (Color.DEFAULT, Color.DEFAULT)

    def test_keeps_span_colors(self) -> None:
        pane, surface = make_pane(10, 2)
        pane.add_line([StyledSpan("hi", Color.RED, Color.BLUE)])
        pane.refresh()
        assert surface.colors(0, 0) == (Color.RED, Color.BLUE)
        assert surface.colors(2, 0) == (Color.DEFAULT, Color.DEFAULT)

    def test_combining_mark_stays_on_its_base(self) -> None:
        pane, surface = make_pane(5, 1)
        pane.add_line("e\u0301x")
        pane.refresh()
        assert surface.glyph(0, 0) == "e\u0301"
        assert surface.glyph(1, 0) == "x"

    def test_mark_in_its_own_span_joins_previous_cell(self) -> None:
        pane, surface = make_pane(5, 1)
        pane.add_line([StyledSpan("e", Color.RED), StyledSpan("\u0301x")])
        pane.refresh()
        assert surface.glyph(0, 0) == "e\u0301"
        assert surface.colors(0, 0) == (Color.RED, Color.DEFAULT)
        assert surface.glyph(1, 0) == "x"

    def test_vertical_divider(self) -> None:
        pane, surface = make_pane(21, 5)
        pane.vsplit(10)
        pane.refresh()
        assert [surface.glyph(10, y) for y in range(5)] == ["│"] * 5
        assert surface.colors(10, 0) == (Color.WHITE, Color.DEFAULT)

    def test_horizontal_divider(self) -> None:
        pane, surface = make_pane(8, 5)
        pane.hsplit(2)
        pane.refresh()
        assert surface.row_text(2) == "─" * 8

    def test_children_draw_in_their_own_rectangles(self) -> None:
        pane, surface = make_pane(21, 3)
        pane.vsplit(10)
        pane.first.add_line("left")
        pane.second.add_line("right")
        pane.refresh()
        assert surface.row_text(0) == "left      │right     "

    def test_one_flush_per_refresh(self) -> None:
        pane, surface = make_pane(21, 11)
        pane.vsplit(10)
        pane.second.hsplit(5)
        pane.refresh()
        assert surface.flush_count == 1

    def test_editable_leaf_draws_only_its_editor(self) -> None:
        pane, surface = make_pane(10, 3)
        pane.add_line("gone")
        pane.make_editable("> ")
        pane.refresh()
        assert surface.get_viewport() == ["> " + " " * 8, " " * 10, " " * 10]


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------


class TestEditable:
    """make_editable and the editor-facing pane operations."""

    def test_make_editable_clears_content(self) -> None:
        pane, _ = make_pane()
        pane.add_line("old")
        assert pane.make_editable()
        assert pane.is_editable()
        assert pane.content == []

    def test_split_panes_cannot_be_made_editable(self) -> None:
        pane, _ = make_pane()
        pane.vsplit(10)
        assert pane.make_editable() is False

    def test_plain_pane_is_alive(self) -> None:
        pane, _ = make_pane()
        assert pane.is_alive()
        assert not pane.is_editable()

    def test_killed_editor_is_not_alive(self) -> None:
        pane, _ = make_pane()
        pane.make_editable()
        pane.editor.kill()
        assert not pane.is_alive()

    @pytest.mark.asyncio
    async def test_get_line_on_plain_pane_is_empty(self) -> None:
        pane, _ = make_pane()
        assert await pane.get_line() == ""

    @pytest.mark.asyncio
    async def test_get_line_after_kill_is_none(self) -> None:
        pane, _ = make_pane()
        pane.make_editable()
        pane.editor.kill()
        assert await pane.get_line() is None

    def test_change_prompt(self) -> None:
        pane, surface = make_pane(10, 1)
        pane.make_editable("> ")
        pane.change_prompt([StyledSpan("$ ", Color.GREEN)])
        assert surface.row_text(0) == "$ " + " " * 8
        assert surface.colors(0, 0)[0] is Color.GREEN

    def test_change_prompt_on_plain_pane_is_ignored(self) -> None:
        pane, surface = make_pane(10, 1)
        pane.change_prompt("$ ")
        assert surface.flush_count == 0


# ---------------------------------------------------------------------------
# Tree surgery and resize
# ---------------------------------------------------------------------------


class TestReplaceAndResize:
    """replace_child and resize re-derive geometry from stored offsets."""

    def test_replace_child_fits_new_subtree_to_slot(self) -> None:
        pane, _ = make_pane(21, 5)
        pane.vsplit(10)
        new, _ = make_pane(40, 10)
        new.hsplit(-3)
        old = pane.second
        pane.replace_child(old, new)
        assert pane.second is new
        assert new.rect == Rect(11, 0, 10, 5)
        assert new.first.rect == Rect(11, 0, 10, 2)
        assert new.second.rect == Rect(11, 3, 10, 2)

    def test_replace_child_rejects_strangers(self) -> None:
        pane, _ = make_pane()
        pane.vsplit(10)
        stranger, _ = make_pane()
        with pytest.raises(ValueError):
            pane.replace_child(stranger, stranger)

    def test_replace_child_on_leaf_raises(self) -> None:
        pane, _ = make_pane()
        other, _ = make_pane()
        with pytest.raises(ValueError):
            pane.replace_child(other, other)

    def test_resize_keeps_negative_offset_from_far_edge(self) -> None:
        pane, _ = make_pane(21, 5)
        pane.vsplit(-5)
        pane.resize(Rect(0, 0, 41, 5))
        assert pane.first.width == 36
        assert pane.second.rect == Rect(37, 0, 4, 5)

    def test_resize_clamps_offsets_that_no_longer_fit(self) -> None:
        pane, _ = make_pane(21, 5)
        pane.vsplit(15)
        pane.resize(Rect(0, 0, 10, 5))
        assert pane.first.width == 8
        assert pane.second.rect == Rect(9, 0, 1, 5)

    def test_resize_reanchors_editor(self) -> None:
        pane, _ = make_pane(21, 5)
        pane.make_editable()
        pane.resize(Rect(0, 0, 30, 6))
        assert pane.editor.rect == Rect(0, 0, 30, 6)

    def test_describe(self) -> None:
        pane, _ = make_pane(21, 5)
        pane.vsplit(10)
        pane.second.make_editable()
        lines = pane.describe().splitlines()
        assert lines[0] == "vertical split at 10 at (0, 0) size 21x5"
        assert lines[1] == "  leaf at (0, 0) size 10x5, 0 rows"
        assert lines[2] == "  editable leaf at (11, 0) size 10x5, 0 rows"
