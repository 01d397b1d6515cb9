"""Keyboard input parsing and matching for terminal applications.

Decodes the legacy (xterm-style) sequences terminals send for arrows,
editing keys, function keys and ctrl/alt/shift combinations into key
identifiers such as ``"left"``, ``"ctrl+a"`` or ``"alt+backspace"``, and
checks raw input against those identifiers.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Canonical modifier order used by parse_key
MODIFIER_ORDER: tuple[str, ...] = ("ctrl", "shift", "alt")

KEY_ALIASES: dict[str, str] = {
    "esc": "escape",
    "return": "enter",
}

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[15~": "f5",
    "\x1b[17~": "f6",
    "\x1b[18~": "f7",
    "\x1b[19~": "f8",
    "\x1b[20~": "f9",
    "\x1b[21~": "f10",
    "\x1b[23~": "f11",
    "\x1b[24~": "f12",
}

# xterm encodes modifiers as "1 + bitmask" in the second CSI parameter.
_XTERM_MODIFIER_PREFIXES: dict[str, str] = {
    "2": "shift+",
    "3": "alt+",
    "4": "shift+alt+",
    "5": "ctrl+",
    "6": "ctrl+shift+",
    "7": "ctrl+alt+",
    "8": "ctrl+shift+alt+",
}

_CSI_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

_CSI_TILDE_KEYS: dict[str, str] = {
    "2": "insert",
    "3": "delete",
    "5": "pageUp",
    "6": "pageDown",
    "15": "f5",
    "17": "f6",
    "18": "f7",
    "19": "f8",
    "20": "f9",
    "21": "f10",
    "23": "f11",
    "24": "f12",
}


def _build_modified_sequences() -> dict[str, str]:
    """Return ``{sequence: key_id}`` for every modified legacy sequence."""
    table: dict[str, str] = {}
    for mod, prefix in _XTERM_MODIFIER_PREFIXES.items():
        for letter, name in _CSI_LETTER_KEYS.items():
            table[f"\x1b[1;{mod}{letter}"] = prefix + name
        for code, name in _CSI_TILDE_KEYS.items():
            table[f"\x1b[{code};{mod}~"] = prefix + name
    table["\x1b[Z"] = "shift+tab"
    return table


MODIFIED_KEY_SEQUENCES: dict[str, str] = _build_modified_sequences()


# ---------------------------------------------------------------------------
# Key ID parsing
# ---------------------------------------------------------------------------


def parse_key_id(key_id: str) -> tuple[frozenset[str], str] | None:
    """Split a key identifier like ``"ctrl+shift+a"`` into its components.

    Returns ``(modifiers, key)`` or ``None`` if *key_id* names no key.
    A literal ``"+"`` key is written as ``"+"`` or ``"ctrl++"``.
    """
    if not key_id:
        return None
    if key_id == "+":
        return frozenset(), "+"

    parts = key_id.split("+")
    if key_id.endswith("++"):
        parts = parts[:-2] + ["+"]

    modifiers: set[str] = set()
    key_parts: list[str] = []
    for part in parts:
        lower = part.lower()
        if lower in MODIFIER_ORDER:
            modifiers.add(lower)
        else:
            key_parts.append(part)

    if len(key_parts) != 1 or not key_parts[0]:
        return None
    key = KEY_ALIASES.get(key_parts[0].lower(), key_parts[0])
    if len(key) == 1:
        key = key.lower()
    return frozenset(modifiers), key


def normalize_key_id(key_id: str) -> str | None:
    """Return *key_id* with modifiers in canonical ``ctrl+shift+alt`` order."""
    parsed = parse_key_id(key_id)
    if parsed is None:
        return None
    modifiers, key = parsed
    prefix = "".join(f"{m}+" for m in MODIFIER_ORDER if m in modifiers)
    return prefix + key


# ---------------------------------------------------------------------------
# parse_key — determine what key was pressed from raw input
# ---------------------------------------------------------------------------


def parse_key(data: str) -> str | None:  # noqa: C901
    """Parse raw terminal input and return the key identifier, or ``None``.

    The returned string uses the same format ``matches_key`` expects:
    e.g. ``"a"``, ``"A"``, ``"ctrl+a"``, ``"shift+up"``, ``"f5"``.
    """
    if not data:
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]
    if data in MODIFIED_KEY_SEQUENCES:
        return MODIFIED_KEY_SEQUENCES[data]

    # --- Simple single-byte keys ---
    if data == "\x1b":
        return "escape"
    if data == "\r" or data == "\n":
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data == "\x7f" or data == "\x08":
        return "backspace"
    if data == "\x00":
        return "ctrl+space"

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)
    if data == "\x1c":
        return "ctrl+\\"
    if data == "\x1d":
        return "ctrl+]"
    if data == "\x1f":
        return "ctrl+-"

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == "\x1b":
        ch = data[1]
        if ch == "\x1b":
            return "alt+escape"
        if ch == "\r" or ch == "\n":
            return "alt+enter"
        if ch == "\t":
            return "alt+tab"
        if ch == " ":
            return "alt+space"
        if ch == "\x7f" or ch == "\x08":
            return "alt+backspace"
        if 1 <= ord(ch) <= 26:
            return "ctrl+alt+" + chr(ord(ch) + ord("a") - 1)
        if ch.isupper():
            return "shift+alt+" + ch.lower()
        if ch.isprintable():
            return "alt+" + ch.lower()

    # --- Plain printable character ---
    if len(data) == 1 and data.isprintable():
        return data

    return None


# ---------------------------------------------------------------------------
# matches_key
# ---------------------------------------------------------------------------


def matches_key(data: str, key_id: str) -> bool:
    """Return ``True`` if *data* (raw terminal input) matches the named *key_id*.

    *key_id* examples: ``"a"``, ``"ctrl+a"``, ``"shift+tab"``, ``"alt+left"``.
    """
    expected = normalize_key_id(key_id)
    if expected is None:
        return False
    actual = parse_key(data)
    if actual is None:
        return False
    if actual == expected:
        return True

    # Uppercase letters arrive bare; accept them for "shift+<letter>".
    if len(actual) == 1 and actual.isalpha() and actual.isupper():
        return expected == "shift+" + actual.lower()
    return False
