"""termpanes: split a terminal into a tree of panes, with a line-editor pane."""

# Colors and styled text
from termpanes.colors import Color, RowLike, StyledSpan

# Settings
from termpanes.config import PaneSettings

# Errors
from termpanes.errors import SurfaceError

# Input events
from termpanes.events import ErrorEvent, Event, KeyEvent, MouseEvent, ResizeEvent, decode_event

# Keybindings
from termpanes.keybindings import (
    DEFAULT_KEYBINDINGS,
    Action,
    KeybindingsManager,
    get_keybindings,
    set_keybindings,
)

# Keyboard input handling
from termpanes.keys import Key, KeyId, matches_key, parse_key

# Geometry and layout
from termpanes.layout import Axis, Glyph, Rect, wrap_rows

# Line editor
from termpanes.line_editor import LineEditor

# Pane tree
from termpanes.pane import Leaf, Pane, Split

# Surfaces
from termpanes.surface import Display, Surface, TerminalSurface

# Controller
from termpanes.ui import Direction, PaneUI

__all__ = [
    # Colors
    "Color",
    "RowLike",
    "StyledSpan",
    # Settings
    "PaneSettings",
    # Errors
    "SurfaceError",
    # Events
    "ErrorEvent",
    "Event",
    "KeyEvent",
    "MouseEvent",
    "ResizeEvent",
    "decode_event",
    # Keybindings
    "DEFAULT_KEYBINDINGS",
    "Action",
    "KeybindingsManager",
    "get_keybindings",
    "set_keybindings",
    # Keys
    "Key",
    "KeyId",
    "matches_key",
    "parse_key",
    # Layout
    "Axis",
    "Glyph",
    "Rect",
    "wrap_rows",
    # Line editor
    "LineEditor",
    # Panes
    "Leaf",
    "Pane",
    "Split",
    # Surfaces
    "Display",
    "Surface",
    "TerminalSurface",
    # Controller
    "Direction",
    "PaneUI",
]
