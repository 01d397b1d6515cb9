"""LineEditor - single-line editing over a UTF-8 byte buffer.

The cursor is one authoritative byte offset into the buffer; its codepoint
and visual (cell) offsets are derived by rescanning the buffer, so the three
can never disagree. Drawing keeps the cursor inside a horizontally scrolled
window of the pane's first row.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Iterator

from termpanes.colors import Color, RowLike, StyledSpan, to_spans
from termpanes.events import KeyEvent
from termpanes.keybindings import get_keybindings
from termpanes.layout import Rect
from termpanes.surface import Display, Surface
from termpanes.utils import (
    advance,
    cursor_offsets,
    decode_last_rune,
    decode_rune,
    graphemes,
    iter_runes,
)

logger = logging.getLogger(__name__)


async def _first_of(*aws: Awaitable[object]) -> None:
    """Wait until any of *aws* finishes, cancelling the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()


class LineEditor:
    """Editable single line with history, drawn inside one pane."""

    def __init__(
        self,
        display: Display,
        rect: Rect,
        prompt: RowLike | None = None,
    ) -> None:
        self._display = display
        self._rect = rect
        self._prompt: list[StyledSpan] = to_spans(prompt) if prompt is not None else []

        self._text: bytes = b""
        self._cursor_boffset: int = 0
        # Horizontal scroll anchor, in cells of the buffer
        self.line_voffset: int = 0

        self._history: list[bytes] = []
        self._history_offset: int = 0
        self._draft: bytes = b""

        # Focusable interface
        self.focused: bool = False
        self._killed: bool = False

        # Committed lines are handed to one waiting get_line() at a time
        self._lines: asyncio.Queue[bytes] = asyncio.Queue(maxsize=1)
        self._submit_lock = asyncio.Lock()
        self._kill_event = asyncio.Event()

    # -- state ------------------------------------------------------------

    @property
    def text(self) -> bytes:
        return self._text

    @property
    def value(self) -> str:
        return self._text.decode("utf-8", errors="replace")

    @property
    def cursor_boffset(self) -> int:
        return self._cursor_boffset

    @property
    def cursor_voffset(self) -> int:
        return cursor_offsets(self._text, self._cursor_boffset, self.tab_width)[0]

    @property
    def cursor_coffset(self) -> int:
        return cursor_offsets(self._text, self._cursor_boffset, self.tab_width)[1]

    @property
    def tab_width(self) -> int:
        return self._display.settings.tab_width

    @property
    def history(self) -> tuple[bytes, ...]:
        return tuple(self._history)

    @property
    def history_offset(self) -> int:
        return self._history_offset

    @property
    def prompt(self) -> list[StyledSpan]:
        return list(self._prompt)

    @property
    def rect(self) -> Rect:
        return self._rect

    @property
    def killed(self) -> bool:
        return self._killed

    def alive(self) -> bool:
        return not self._killed

    def anchor(self, rect: Rect) -> None:
        """Move the editor to a new pane rectangle."""
        self._rect = rect

    # -- cursor -----------------------------------------------------------

    def move_cursor_to(self, boffset: int) -> None:
        if not 0 <= boffset <= len(self._text):
            raise ValueError(f"byte offset {boffset} outside buffer")
        if boffset < len(self._text) and self._text[boffset] & 0xC0 == 0x80:
            raise ValueError(f"byte offset {boffset} splits a UTF-8 sequence")
        self._cursor_boffset = boffset

    def rune_under_cursor(self) -> tuple[str, int]:
        return decode_rune(self._text, self._cursor_boffset)

    def rune_before_cursor(self) -> tuple[str, int]:
        return decode_last_rune(self._text, self._cursor_boffset)

    def move_left(self) -> None:
        if self._killed or self._cursor_boffset == 0:
            return
        _, size = self.rune_before_cursor()
        self._cursor_boffset -= size

    def move_right(self) -> None:
        if self._killed or self._cursor_boffset == len(self._text):
            return
        _, size = self.rune_under_cursor()
        self._cursor_boffset += size

    def move_to_start(self) -> None:
        if self._killed:
            return
        self._cursor_boffset = 0

    def move_to_end(self) -> None:
        if self._killed:
            return
        self._cursor_boffset = len(self._text)

    # -- editing ----------------------------------------------------------

    def delete_rune_backward(self) -> None:
        if self._killed or self._cursor_boffset == 0:
            return
        _, size = self.rune_before_cursor()
        end = self._cursor_boffset
        self._text = self._text[: end - size] + self._text[end:]
        self._cursor_boffset = end - size

    def delete_rune_forward(self) -> None:
        if self._killed or self._cursor_boffset == len(self._text):
            return
        _, size = self.rune_under_cursor()
        start = self._cursor_boffset
        self._text = self._text[:start] + self._text[start + size :]

    def delete_to_end(self) -> None:
        if self._killed:
            return
        self._text = self._text[: self._cursor_boffset]

    def insert_rune(self, rune: str) -> None:
        """Insert one codepoint at the cursor and step past it."""
        if len(rune) != 1:
            raise ValueError(f"expected a single codepoint, got {rune!r}")
        if self._killed:
            return
        encoded = rune.encode("utf-8", errors="replace")
        pos = self._cursor_boffset
        self._text = self._text[:pos] + encoded + self._text[pos:]
        self._cursor_boffset = pos + len(encoded)

    def insert_text(self, text: str) -> None:
        for rune in text:
            self.insert_rune(rune)

    def _set_text(self, text: bytes) -> None:
        self._text = text
        self._cursor_boffset = len(text)

    # -- history ------------------------------------------------------------

    def history_up(self) -> None:
        """Replace the buffer with the next older history entry."""
        if self._killed or self._history_offset >= len(self._history):
            return
        if self._history_offset == 0:
            self._draft = self._text
        self._history_offset += 1
        self._set_text(self._history[-self._history_offset])

    def history_down(self) -> None:
        """Replace the buffer with the next newer entry, or the draft."""
        if self._killed:
            return
        if self._history_offset == 0:
            self._set_text(b"")
        elif self._history_offset == 1:
            self._history_offset = 0
            self._set_text(self._draft)
            self._draft = b""
        else:
            self._history_offset -= 1
            self._set_text(self._history[-self._history_offset])

    # -- committed lines --------------------------------------------------

    async def submit(self) -> None:
        """Commit the buffer and wait until a reader takes it.

        Returns early if the editor is killed while waiting.
        """
        if self._killed:
            return
        async with self._submit_lock:
            line = self._text
            self._history.append(line)
            await self._lines.put(line)
            await _first_of(self._lines.join(), self._kill_event.wait())
            self._text = b""
            self._cursor_boffset = 0
            self._history_offset = 0
            self._draft = b""

    async def get_line(self) -> bytes | None:
        """Wait for the next committed line; ``None`` once the editor is killed."""
        if self._killed:
            return None
        if not self._lines.empty():
            line = self._lines.get_nowait()
            self._lines.task_done()
            return line

        getter = asyncio.ensure_future(self._lines.get())
        await _first_of(getter, self._kill_event.wait())
        # Killed first: the getter is still unwinding its cancellation
        if not getter.done() or getter.cancelled():
            return None
        self._lines.task_done()
        return getter.result()

    def kill(self) -> None:
        """Stop accepting input and wake every pending ``get_line``."""
        if self._killed:
            return
        self._killed = True
        self._kill_event.set()
        logger.debug("line editor killed with %d history entries", len(self._history))

    # -- prompt and focus -------------------------------------------------

    def change_prompt(self, prompt: RowLike) -> None:
        self._prompt = to_spans(prompt)
        self.refresh()

    def _prompt_glyphs(self) -> Iterator[tuple[int, int, str, StyledSpan]]:
        """Yield ``(column, cells, cluster, span)`` for each prompt glyph."""
        column = 0
        for span in self._prompt:
            for cluster in graphemes(span.text):
                cells = advance(cluster, column, self.tab_width)
                yield column, cells, cluster, span
                column += cells

    def prompt_width(self) -> int:
        return sum(cells for _, cells, _, _ in self._prompt_glyphs())

    def focus(self) -> None:
        self.focused = True

    def unfocus(self) -> None:
        self.focused = False

    # -- drawing ------------------------------------------------------------

    def adjust_voffset(self, width: int) -> None:
        """Scroll the window so the cursor stays clear of both edges."""
        threshold = min(self._display.settings.scroll_threshold, (width - 1) // 2)
        cursor = self.cursor_voffset

        limit = width - 1 if self.line_voffset == 0 else width - threshold
        if cursor - self.line_voffset >= limit:
            self.line_voffset = cursor + threshold - width + 1

        if self.line_voffset != 0 and cursor - self.line_voffset < threshold:
            self.line_voffset = max(0, cursor - threshold)

    def cursor_x(self) -> int:
        """Screen column of the cursor; valid after :meth:`draw`."""
        x, _, width, _ = self._rect
        column = self.prompt_width() + self.cursor_voffset - self.line_voffset
        return x + min(max(column, 0), max(width - 1, 0))

    def draw(self, surface: Surface) -> None:
        x, y, width, height = self._rect
        if width <= 0 or height <= 0:
            return
        settings = self._display.settings
        self._display.fill(x, y, width, height)

        column = self._draw_prompt(surface, width)
        text_width = width - column
        if text_width <= 0:
            return
        self.adjust_voffset(text_width)
        left = x + column
        fg = bg = Color.DEFAULT

        lx = 0
        for rune, _size in iter_runes(self._text):
            cells = advance(rune, lx, self.tab_width)
            rx = lx - self.line_voffset
            if rx + cells > text_width:
                surface.set_cell(x + width - 1, y, settings.scroll_right_glyph, fg, bg)
                break
            if rx >= 0 and rune != "\t" and cells:
                surface.set_cell(left + rx, y, rune, fg, bg)
            lx += cells

        if self.line_voffset != 0:
            surface.set_cell(left, y, settings.scroll_left_glyph, fg, bg)

    def _draw_prompt(self, surface: Surface, width: int) -> int:
        """Draw the prompt on the first row and return the columns used."""
        x, y = self._rect.x, self._rect.y
        used = 0
        for column, cells, cluster, span in self._prompt_glyphs():
            if column + cells > width:
                break
            if cluster != "\t" and cells:
                surface.set_cell(x + column, y, cluster, span.fg, span.bg)
            used = column + cells
        return used

    def refresh(self) -> None:
        """Redraw the editor and, when focused, place the hardware cursor."""
        with self._display.frame() as surface:
            self.draw(surface)
            if self.focused:
                surface.set_cursor(self.cursor_x(), self._rect.y)

    # -- input ------------------------------------------------------------

    async def handle_event(self, event: KeyEvent) -> None:
        if self._killed:
            return
        kb = get_keybindings()
        data = event.data

        if kb.matches(data, "cancel"):
            self.kill()
            return

        if kb.matches(data, "cursorLeft"):
            self.move_left()
        elif kb.matches(data, "cursorRight"):
            self.move_right()
        elif kb.matches(data, "cursorLineStart"):
            self.move_to_start()
        elif kb.matches(data, "cursorLineEnd"):
            self.move_to_end()
        elif kb.matches(data, "deleteCharBackward"):
            self.delete_rune_backward()
        elif kb.matches(data, "deleteCharForward"):
            self.delete_rune_forward()
        elif kb.matches(data, "deleteToLineEnd"):
            self.delete_to_end()
        elif kb.matches(data, "submit"):
            await self.submit()
        elif kb.matches(data, "historyUp"):
            self.history_up()
        elif kb.matches(data, "historyDown"):
            self.history_down()
        elif kb.matches(data, "tab"):
            self.insert_rune("\t")
        elif kb.matches(data, "space"):
            self.insert_rune(" ")
        elif event.char:
            self.insert_rune(event.char)

        self.refresh()
