"""Virtual surface for testing -- implements the Surface protocol in-memory.

This module provides a ``VirtualSurface`` class that satisfies the
``termpanes.surface.Surface`` protocol without touching a real terminal.
Cells, the cursor and the number of flushes are kept for assertions, and
events are fed in by the test.
"""

from __future__ import annotations

import asyncio

from termpanes.colors import Color
from termpanes.events import ErrorEvent, Event, KeyEvent, ResizeEvent, decode_event


class VirtualSurface:
    """In-memory cell grid.

    Parameters
    ----------
    width:
        Number of columns.
    height:
        Number of rows.
    """

    def __init__(self, width: int = 80, height: int = 24) -> None:
        self._width = width
        self._height = height
        self.cells: dict[tuple[int, int], tuple[str, Color, Color]] = {}
        self.cursor: tuple[int, int] | None = None
        self.flush_count = 0
        self.initialized = False
        self.closed = False
        self._events: asyncio.Queue[Event] = asyncio.Queue()

    # -- Surface protocol ---------------------------------------------------

    def init(self) -> None:
        self.initialized = True

    def close(self) -> None:
        self.closed = True

    def size(self) -> tuple[int, int]:
        return self._width, self._height

    def set_cell(self, x: int, y: int, glyph: str, fg: Color, bg: Color) -> None:
        if 0 <= x < self._width and 0 <= y < self._height:
            self.cells[(x, y)] = (glyph, fg, bg)

    def set_cursor(self, x: int, y: int) -> None:
        self.cursor = (x, y)

    def hide_cursor(self) -> None:
        self.cursor = None

    def flush(self) -> None:
        self.flush_count += 1

    async def poll_event(self) -> Event:
        return await self._events.get()

    # -- Test helpers -------------------------------------------------------

    def feed_event(self, event: Event) -> None:
        self._events.put_nowait(event)

    def feed_key(self, data: str) -> None:
        """Queue the event a terminal would produce for *data*."""
        event = decode_event(data)
        assert event is not None
        self._events.put_nowait(event)

    def feed_error(self, error: BaseException) -> None:
        self._events.put_nowait(ErrorEvent(error))

    def resize(self, width: int, height: int) -> None:
        self._width = width
        self._height = height
        self._events.put_nowait(ResizeEvent(width, height))

    def glyph(self, x: int, y: int) -> str:
        return self.cells.get((x, y), (" ", Color.DEFAULT, Color.DEFAULT))[0]

    def colors(self, x: int, y: int) -> tuple[Color, Color]:
        _, fg, bg = self.cells.get((x, y), (" ", Color.DEFAULT, Color.DEFAULT))
        return fg, bg

    def row_text(self, y: int, x: int = 0, width: int | None = None) -> str:
        """Glyphs of row *y* from column *x*, *width* cells long."""
        end = self._width if width is None else x + width
        return "".join(self.glyph(col, y) for col in range(x, end))

    def get_viewport(self) -> list[str]:
        return [self.row_text(y) for y in range(self._height)]


def key(data: str) -> KeyEvent:
    event = decode_event(data)
    assert isinstance(event, KeyEvent)
    return event
