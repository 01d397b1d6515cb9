"""Display settings shared by every pane of one UI."""

from __future__ import annotations

import os
from dataclasses import dataclass

from termpanes.colors import Color

DEFAULT_TAB_WIDTH = 8
DEFAULT_SCROLL_THRESHOLD = 5


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass
class PaneSettings:
    """Glyphs, colors and editor constants used while rendering.

    ``scroll_threshold`` is the preferred distance, in cells, kept between
    the editor cursor and either edge of the visible window.
    """

    tab_width: int = DEFAULT_TAB_WIDTH
    scroll_threshold: int = DEFAULT_SCROLL_THRESHOLD
    vertical_divider: str = "│"
    horizontal_divider: str = "─"
    divider_fg: Color = Color.WHITE
    divider_bg: Color = Color.DEFAULT
    scroll_left_glyph: str = "←"
    scroll_right_glyph: str = "→"
    write_log_path: str = ""

    @classmethod
    def from_env(cls) -> PaneSettings:
        """Build settings from ``TERMPANES_*`` environment variables."""
        return cls(
            tab_width=_env_int("TERMPANES_TAB_WIDTH", DEFAULT_TAB_WIDTH),
            scroll_threshold=_env_int(
                "TERMPANES_SCROLL_THRESHOLD", DEFAULT_SCROLL_THRESHOLD
            ),
            write_log_path=os.environ.get("TERMPANES_WRITE_LOG", ""),
        )
