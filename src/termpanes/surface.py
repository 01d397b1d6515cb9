"""Cell-grid terminal surfaces.

Provides the ``Surface`` protocol panes draw on, the ``Display`` that pairs
a surface with the lock serializing whole frames, and ``TerminalSurface``, a
surface over the process's own tty that keeps a cell back buffer and writes
only changed cells as ANSI escape sequences.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
import termios
import threading
import tty
from contextlib import contextmanager
from typing import Iterator, NamedTuple, Protocol, TextIO

from termpanes.colors import Color
from termpanes.config import PaneSettings
from termpanes.events import ErrorEvent, Event, ResizeEvent, decode_event
from termpanes.input_buffer import InputBuffer
from termpanes.utils import grapheme_width

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"
_MOUSE_ENABLE = "\x1b[?1000h\x1b[?1006h"
_MOUSE_DISABLE = "\x1b[?1006l\x1b[?1000l"
_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"
_RESET_SGR = "\x1b[0m"
_MOVE_FMT = "\x1b[{};{}H"


# ---------------------------------------------------------------------------
# Surface protocol
# ---------------------------------------------------------------------------


class Surface(Protocol):
    """Interface for a cell-grid terminal."""

    def init(self) -> None: ...

    def close(self) -> None: ...

    def size(self) -> tuple[int, int]: ...

    def set_cell(self, x: int, y: int, glyph: str, fg: Color, bg: Color) -> None: ...

    def set_cursor(self, x: int, y: int) -> None: ...

    def hide_cursor(self) -> None: ...

    def flush(self) -> None: ...

    async def poll_event(self) -> Event: ...


class Display:
    """A surface, the settings it is drawn with, and its frame lock.

    Every render pass draws inside :meth:`frame`, which holds the lock for the
    pass's cell writes and flushes exactly once at the end, so frames started
    from different tasks or threads never interleave on screen. Nested frames
    join the outermost one.
    """

    def __init__(self, surface: Surface, settings: PaneSettings | None = None) -> None:
        self.surface = surface
        self.settings = settings or PaneSettings()
        self._lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def frame(self) -> Iterator[Surface]:
        with self._lock:
            self._depth += 1
            try:
                yield self.surface
            finally:
                self._depth -= 1
            if self._depth == 0:
                self.surface.flush()

    def fill(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        glyph: str = " ",
        fg: Color = Color.DEFAULT,
        bg: Color = Color.DEFAULT,
    ) -> None:
        for row in range(y, y + height):
            for col in range(x, x + width):
                self.surface.set_cell(col, row, glyph, fg, bg)


# ---------------------------------------------------------------------------
# TerminalSurface implementation
# ---------------------------------------------------------------------------


class Cell(NamedTuple):
    glyph: str
    fg: Color
    bg: Color


BLANK = Cell(" ", Color.DEFAULT, Color.DEFAULT)
# Right half of a wide glyph; never written out.
CONTINUATION = Cell("", Color.DEFAULT, Color.DEFAULT)


def _color_code(color: Color, base: int) -> list[str]:
    if color is Color.DEFAULT:
        return [str(base + 9)]
    if color is Color.DARK_GRAY:
        # bold black foreground, bright black background
        return ["1", str(base)] if base == 30 else ["100"]
    return [str(base + color.value - 1)]


def sgr(fg: Color, bg: Color) -> str:
    """Return the SGR sequence selecting *fg* on *bg* from a reset state."""
    codes = ["0"] + _color_code(Color(fg), 30) + _color_code(Color(bg), 40)
    return f"\x1b[{';'.join(codes)}m"


class TerminalSurface:
    """Surface backed by ``sys.stdin``/``sys.stdout``.

    Manages raw mode via :mod:`tty` and :mod:`termios`, the alternate screen,
    SGR mouse reporting, and SIGWINCH-based resize detection. Input is read
    through the running asyncio loop and queued as events. Escape sequences
    go to *output* when given, otherwise to whatever ``sys.stdout`` is at
    write time.
    """

    def __init__(self, *, write_log_path: str = "", output: TextIO | None = None) -> None:
        self._width: int = 0
        self._height: int = 0
        self._back: list[list[Cell]] = []
        self._front: list[list[Cell | None]] = []
        self._cursor: tuple[int, int] | None = None
        self._events: asyncio.Queue[Event] = asyncio.Queue()
        self._input = InputBuffer()
        self._input.on_sequence(self._on_sequence)
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._original_termios: list | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._active: bool = False
        self._write_log_path = write_log_path
        self._output = output

    # -- init / close -------------------------------------------------------

    def init(self) -> None:
        """Enter raw mode and the alternate screen."""
        if self._active:
            return
        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)
        self._active = True
        self._raw_write(_ALT_SCREEN_ENABLE + _MOUSE_ENABLE + _CLEAR_SCREEN)
        self._resize_buffers()
        logger.debug("terminal surface initialized at %dx%d", self._width, self._height)

        try:
            self._start_reader(asyncio.get_running_loop())
        except RuntimeError:
            # No running loop yet; poll_event() starts the reader.
            pass

    def close(self) -> None:
        """Restore the terminal. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        self._stop_reader()
        self._input.clear()
        self._raw_write(_RESET_SGR + _MOUSE_DISABLE + _SHOW_CURSOR + _ALT_SCREEN_DISABLE)
        if self._original_termios is not None:
            termios.tcsetattr(
                sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios
            )
            self._original_termios = None
        logger.debug("terminal surface closed")

    def __enter__(self) -> TerminalSurface:
        self.init()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- geometry -----------------------------------------------------------

    def size(self) -> tuple[int, int]:
        if not self._active:
            return self._query_size()
        return self._width, self._height

    @staticmethod
    def _query_size() -> tuple[int, int]:
        try:
            size = os.get_terminal_size(sys.stdout.fileno())
            return size.columns, size.lines
        except (ValueError, OSError):
            return 80, 24

    def _resize_buffers(self) -> None:
        self._width, self._height = self._query_size()
        self._back = [[BLANK] * self._width for _ in range(self._height)]
        # Unknown front buffer: the next flush repaints every cell.
        self._front = [[None] * self._width for _ in range(self._height)]
        self._raw_write(_CLEAR_SCREEN)

    # -- drawing ------------------------------------------------------------

    def set_cell(self, x: int, y: int, glyph: str, fg: Color, bg: Color) -> None:
        if not (0 <= x < self._width and 0 <= y < self._height):
            return
        self._back[y][x] = Cell(glyph, fg, bg)
        if grapheme_width(glyph) == 2 and x + 1 < self._width:
            self._back[y][x + 1] = CONTINUATION

    def set_cursor(self, x: int, y: int) -> None:
        self._cursor = (x, y)

    def hide_cursor(self) -> None:
        self._cursor = None

    def flush(self) -> None:
        """Write every cell that changed since the last flush."""
        out: list[str] = []
        style: tuple[Color, Color] | None = None
        position: tuple[int, int] | None = None

        for y, row in enumerate(self._back):
            front_row = self._front[y]
            for x, cell in enumerate(row):
                if front_row[x] == cell:
                    continue
                front_row[x] = cell
                if cell is CONTINUATION or not cell.glyph:
                    continue
                if position != (x, y):
                    out.append(_MOVE_FMT.format(y + 1, x + 1))
                if style != (cell.fg, cell.bg):
                    style = (cell.fg, cell.bg)
                    out.append(sgr(cell.fg, cell.bg))
                out.append(cell.glyph)
                position = (x + max(grapheme_width(cell.glyph), 1), y)

        if style is not None:
            out.append(_RESET_SGR)
        if self._cursor is None:
            out.append(_HIDE_CURSOR)
        else:
            x, y = self._cursor
            out.append(_MOVE_FMT.format(y + 1, x + 1) + _SHOW_CURSOR)
        self._raw_write("".join(out))

    # -- input --------------------------------------------------------------

    async def poll_event(self) -> Event:
        """Wait for the next input event."""
        if self._loop is None:
            self._start_reader(asyncio.get_running_loop())
        return await self._events.get()

    def _start_reader(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        loop.add_reader(sys.stdin.fileno(), self._on_stdin_readable)
        loop.add_signal_handler(signal.SIGWINCH, self._on_sigwinch)

    def _stop_reader(self) -> None:
        if self._loop is None:
            return
        try:
            self._loop.remove_reader(sys.stdin.fileno())
            self._loop.remove_signal_handler(signal.SIGWINCH)
        except (RuntimeError, ValueError):
            pass
        self._loop = None

    def _on_stdin_readable(self) -> None:
        try:
            raw = os.read(sys.stdin.fileno(), 4096)
        except OSError as exc:
            self._events.put_nowait(ErrorEvent(exc))
            return
        if not raw:
            self._stop_reader()
            self._events.put_nowait(ErrorEvent(EOFError("terminal input closed")))
            return
        self._input.process(self._decoder.decode(raw))

    def _on_sequence(self, data: str) -> None:
        event = decode_event(data)
        if event is not None:
            self._events.put_nowait(event)

    def _on_sigwinch(self) -> None:
        self._resize_buffers()
        self._events.put_nowait(ResizeEvent(self._width, self._height))

    # -- raw write ------------------------------------------------------------

    def _raw_write(self, data: str) -> None:
        """Write directly to the output stream, bypassing buffering."""
        if not data:
            return
        out = self._output or sys.stdout
        try:
            out.write(data)
            out.flush()
        except OSError:
            pass

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError:
                pass
