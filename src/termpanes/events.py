"""Input events delivered by a surface's ``poll_event``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from termpanes.keys import parse_key

_SGR_MOUSE_RE = re.compile(r"^\x1b\[<(\d+);(\d+);(\d+)([Mm])$")

# Button numbers in SGR reports; motion and wheel events set higher bits.
_MOTION_FLAG = 32
_WHEEL_FLAG = 64


@dataclass(frozen=True)
class KeyEvent:
    """A key press.

    ``data`` is the raw sequence, ``key`` its identifier (see
    :func:`termpanes.keys.parse_key`) and ``char`` the text it inserts,
    if any.
    """

    data: str
    key: str | None = None
    char: str | None = None


@dataclass(frozen=True)
class MouseEvent:
    """A mouse button report, with 0-based cell coordinates."""

    x: int
    y: int
    button: int = 0
    pressed: bool = True


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


@dataclass(frozen=True)
class ErrorEvent:
    """The surface failed; ``error`` is the underlying exception."""

    error: BaseException


Event = Union[KeyEvent, MouseEvent, ResizeEvent, ErrorEvent]


def _inserted_char(data: str) -> str | None:
    if len(data) != 1:
        return None
    if data == " ":
        return data
    return data if data.isprintable() else None


def decode_event(data: str) -> KeyEvent | MouseEvent | None:
    """Turn one complete input sequence into an event.

    Returns ``None`` for mouse motion/wheel reports and other input that
    carries nothing the panes react to.
    """
    match = _SGR_MOUSE_RE.match(data)
    if match:
        code = int(match.group(1))
        if code & (_MOTION_FLAG | _WHEEL_FLAG):
            return None
        return MouseEvent(
            x=int(match.group(2)) - 1,
            y=int(match.group(3)) - 1,
            button=code & 0b11,
            pressed=match.group(4) == "M",
        )

    if data.startswith("\x1b[<"):
        return None

    return KeyEvent(data=data, key=parse_key(data), char=_inserted_char(data))
