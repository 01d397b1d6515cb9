"""Key bindings for the line editor and pane navigation."""

from __future__ import annotations

from typing import Literal

from termpanes.keys import Key, KeyId, matches_key

Action = Literal[
    # Line editor: cursor movement
    "cursorLeft",
    "cursorRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Line editor: deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteToLineEnd",
    # Line editor: text input
    "submit",
    "tab",
    "space",
    # Line editor: history
    "historyUp",
    "historyDown",
    # Line editor: terminate
    "cancel",
    # Pane navigation
    "focusUp",
    "focusDown",
    "focusLeft",
    "focusRight",
    "focusNext",
    "focusPrevious",
]

KeybindingsConfig = dict[Action, KeyId | list[KeyId]]

DEFAULT_KEYBINDINGS: dict[Action, KeyId | list[KeyId]] = {
    # Cursor movement
    "cursorLeft": [Key.left, Key.ctrl("b")],
    "cursorRight": [Key.right, Key.ctrl("f")],
    "cursorLineStart": [Key.home, Key.ctrl("a")],
    "cursorLineEnd": [Key.end, Key.ctrl("e")],
    # Deletion
    "deleteCharBackward": Key.backspace,
    "deleteCharForward": [Key.delete, Key.ctrl("d")],
    "deleteToLineEnd": Key.ctrl("k"),
    # Text input
    "submit": Key.enter,
    "tab": Key.tab,
    "space": Key.space,
    # History
    "historyUp": Key.up,
    "historyDown": Key.down,
    # Terminate
    "cancel": Key.escape,
    # Pane navigation
    "focusUp": Key.up,
    "focusDown": Key.down,
    "focusLeft": Key.left,
    "focusRight": Key.right,
    "focusNext": Key.tab,
    "focusPrevious": Key.shift(Key.tab),
}


class KeybindingsManager:
    """Maps actions to the keys that trigger them."""

    def __init__(self, config: KeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[Action, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: KeybindingsConfig) -> None:
        self._action_to_keys.clear()

        # Start with defaults
        for action, keys in DEFAULT_KEYBINDINGS.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

        # Override with user config
        for action, keys in config.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

    def matches(self, data: str, action: Action) -> bool:
        """Check if input matches a specific action."""
        keys = self._action_to_keys.get(action)
        if not keys:
            return False
        return any(matches_key(data, key) for key in keys)

    def get_keys(self, action: Action) -> list[KeyId]:
        """Get keys bound to an action."""
        return self._action_to_keys.get(action, [])

    def set_config(self, config: KeybindingsConfig) -> None:
        """Replace any user overrides with *config*."""
        self._build_maps(config)


_global_keybindings: KeybindingsManager | None = None


def get_keybindings() -> KeybindingsManager:
    global _global_keybindings
    if _global_keybindings is None:
        _global_keybindings = KeybindingsManager()
    return _global_keybindings


def set_keybindings(manager: KeybindingsManager) -> None:
    global _global_keybindings
    _global_keybindings = manager
