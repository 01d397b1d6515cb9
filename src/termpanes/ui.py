"""PaneUI - owns the pane tree, the display, and the input loop.

Focus is a property of the whole tree (at most one focused leaf), so every
focus change goes through :meth:`PaneUI.focus_pane`. Input is consumed by a
single asyncio task running :meth:`PaneUI.listen`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

from termpanes.config import PaneSettings
from termpanes.errors import SurfaceError
from termpanes.events import ErrorEvent, Event, KeyEvent, MouseEvent, ResizeEvent
from termpanes.keybindings import get_keybindings
from termpanes.layout import Rect
from termpanes.pane import Pane
from termpanes.surface import Display, Surface

logger = logging.getLogger(__name__)

Direction = Literal["up", "down", "left", "right"]
DIRECTIONS: tuple[Direction, ...] = ("up", "down", "left", "right")


def _beyond(current: Rect, other: Rect, direction: Direction) -> int | None:
    """Gap between *current* and *other* along *direction*.

    ``None`` unless *other* lies entirely past *current*'s edge in that
    direction and overlaps it on the perpendicular axis.
    """
    if direction in ("left", "right"):
        if not (other.y < current.y + current.height and current.y < other.y + other.height):
            return None
        if direction == "right":
            gap = other.x - (current.x + current.width)
        else:
            gap = current.x - (other.x + other.width)
    else:
        if not (other.x < current.x + current.width and current.x < other.x + other.width):
            return None
        if direction == "down":
            gap = other.y - (current.y + current.height)
        else:
            gap = current.y - (other.y + other.height)
    return gap if gap >= 0 else None


def _center_distance(current: Rect, other: Rect, direction: Direction) -> int:
    # Doubled coordinates keep centers integral
    if direction in ("left", "right"):
        return abs((2 * other.y + other.height) - (2 * current.y + current.height))
    return abs((2 * other.x + other.width) - (2 * current.x + current.width))


class PaneUI:
    """Controller for one screen of panes.

    Usage::

        ui = PaneUI(TerminalSurface())
        ui.open()
        ui.root.vsplit(-30)
        ui.root.second.make_editable("> ")
        ui.focus_pane(ui.root.second)
        task = ui.start()
    """

    def __init__(self, surface: Surface, settings: PaneSettings | None = None) -> None:
        self.surface = surface
        self.display = Display(surface, settings or PaneSettings.from_env())
        width, height = surface.size()
        self.root = Pane(self.display, 0, 0, width, height)
        self._task: asyncio.Task[None] | None = None
        self._open = False

    # -- lifecycle ------------------------------------------------------------

    def open(self) -> None:
        """Initialize the surface, fit the root to it, and draw.

        The surface is closed again if anything after ``init()`` fails.
        """
        if self._open:
            return
        self.surface.init()
        self._open = True
        try:
            width, height = self.surface.size()
            if (width, height) != (self.root.width, self.root.height):
                self.root.resize(Rect(0, 0, width, height))
            self.refresh()
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        """Stop listening and restore the surface."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        if self._open:
            self._open = False
            self.surface.close()

    async def __aenter__(self) -> PaneUI:
        self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # -- focus --------------------------------------------------------------

    def focus_pane(self, target: Pane) -> bool:
        """Focus *target* and unfocus every other leaf.

        A split target focuses its leftmost leaf. Panes that are not part of
        this UI's tree are rejected with ``False``.
        """
        if not any(pane is target for pane in self.root.walk()):
            logger.debug("refusing to focus %r: not in the pane tree", target)
            return False
        target = target.leftmost_leaf()
        with self.display.frame() as surface:
            for leaf in self.root.leaves():
                if leaf is not target:
                    leaf._unfocus(surface)
            target._focus(surface)
        logger.debug("focused %r", target)
        return True

    def get_focused_pane(self) -> Pane | None:
        for leaf in self.root.leaves():
            if leaf.focused:
                return leaf
        return None

    def find_leaf_at(self, x: int, y: int) -> Pane | None:
        return self.root.find_leaf_at(x, y)

    def move_focus(self, direction: Direction) -> bool:
        """Focus the nearest leaf in *direction* from the focused one."""
        if direction not in DIRECTIONS:
            raise ValueError(f"unknown direction {direction!r}")
        current = self.get_focused_pane()
        if current is None:
            return False

        best: tuple[int, int, int] | None = None
        best_leaf: Pane | None = None
        for index, leaf in enumerate(self.root.leaves()):
            if leaf is current or leaf.width <= 0 or leaf.height <= 0:
                continue
            gap = _beyond(current.rect, leaf.rect, direction)
            if gap is None:
                continue
            key = (gap, _center_distance(current.rect, leaf.rect, direction), index)
            if best is None or key < best:
                best, best_leaf = key, leaf

        if best_leaf is None:
            return False
        return self.focus_pane(best_leaf)

    def focus_next(self) -> bool:
        return self._cycle_focus(1)

    def focus_previous(self) -> bool:
        return self._cycle_focus(-1)

    def _cycle_focus(self, step: int) -> bool:
        leaves = list(self.root.leaves())
        current = self.get_focused_pane()
        if current is None:
            index = 0 if step > 0 else len(leaves) - 1
        else:
            index = (leaves.index(current) + step) % len(leaves)
        return self.focus_pane(leaves[index])

    # -- rendering ------------------------------------------------------------

    def refresh(self) -> None:
        """Redraw the whole tree as one frame."""
        with self.display.frame() as surface:
            self.root.draw(surface)
            if self.get_focused_pane() is None:
                surface.hide_cursor()

    def resize(self, width: int, height: int) -> None:
        self.root.resize(Rect(0, 0, width, height))
        self.refresh()

    # -- input ----------------------------------------------------------------

    async def dispatch(self, event: Event) -> None:
        """Apply one input event to the tree."""
        if isinstance(event, ErrorEvent):
            logger.error("terminal surface failed: %s", event.error)
            raise SurfaceError("terminal surface failed") from event.error

        if isinstance(event, ResizeEvent):
            self.resize(event.width, event.height)
        elif isinstance(event, MouseEvent):
            if event.pressed:
                leaf = self.find_leaf_at(event.x, event.y)
                if leaf is not None:
                    self.focus_pane(leaf)
        elif isinstance(event, KeyEvent):
            target = self.get_focused_pane()
            if target is None:
                return
            editor = target.editor
            if editor is not None and editor.alive():
                await editor.handle_event(event)
            else:
                self._navigate(event)

    def _navigate(self, event: KeyEvent) -> None:
        kb = get_keybindings()
        data = event.data
        if kb.matches(data, "focusUp"):
            self.move_focus("up")
        elif kb.matches(data, "focusDown"):
            self.move_focus("down")
        elif kb.matches(data, "focusLeft"):
            self.move_focus("left")
        elif kb.matches(data, "focusRight"):
            self.move_focus("right")
        elif kb.matches(data, "focusNext"):
            self.focus_next()
        elif kb.matches(data, "focusPrevious"):
            self.focus_previous()

    async def listen(self) -> None:
        """Route surface events until the surface fails or the task is cancelled."""
        while True:
            event = await self.surface.poll_event()
            await self.dispatch(event)

    def start(self) -> asyncio.Task[None]:
        """Run :meth:`listen` as a task on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.listen())
        return self._task
