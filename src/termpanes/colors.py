"""Colors and styled text runs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence, Union


class Color(IntEnum):
    """Cell colors understood by every surface.

    ``DARK_GRAY`` is bold black on terminals with only eight base colors.
    """

    DEFAULT = 0
    BLACK = 1
    RED = 2
    GREEN = 3
    YELLOW = 4
    BLUE = 5
    MAGENTA = 6
    CYAN = 7
    WHITE = 8
    DARK_GRAY = 9


@dataclass(frozen=True)
class StyledSpan:
    """A run of text drawn with one foreground/background pair."""

    text: str
    fg: Color = Color.DEFAULT
    bg: Color = Color.DEFAULT


# A content row: either ready-made spans or a plain string in default colors.
RowLike = Union[str, StyledSpan, Sequence[StyledSpan]]


def to_spans(row: RowLike) -> list[StyledSpan]:
    """Normalize *row* into a list of spans."""
    if isinstance(row, str):
        return [StyledSpan(row)]
    if isinstance(row, StyledSpan):
        return [row]
    return list(row)
