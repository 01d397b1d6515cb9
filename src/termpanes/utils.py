"""Cell-width measurement and UTF-8 rune helpers.

Widths come from ``wcwidth`` per codepoint and from grapheme clusters (via
``grapheme``) for anything drawn as a glyph: pane content and prompts are
laid out one cluster per cell, so a base letter with combining marks or an
emoji ZWJ sequence occupies a single glyph. The rune helpers decode one
UTF-8 sequence at a time from a byte buffer, the unit the line editor moves
and deletes by.
"""

from __future__ import annotations

import unicodedata
from typing import Iterator

import grapheme
import wcwidth as _wcwidth

RUNE_ERROR = "\ufffd"

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Codepoint and grapheme widths
# ---------------------------------------------------------------------------


def rune_width(ch: str) -> int:
    """Return the number of cells a single codepoint occupies.

    Control characters, combining marks and other zero-width codepoints
    report 0; East Asian wide characters report 2.
    """
    cp = ord(ch)
    if cp < 0x20 or 0x7F <= cp <= 0x9F:
        return 0
    return max(_wcwidth.wcwidth(ch), 0)


def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster."""
    if not g:
        return 0
    if len(g) == 1:
        return rune_width(g)

    cached = _width_cache.get(g)
    if cached is not None:
        return cached

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ sequences, skin tone modifiers, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return _cache_width(g, 2)

    first = g[0]
    if ord(first) >= 0x1F000:
        return _cache_width(g, 2)
    cat = unicodedata.category(first)
    if cat.startswith("M") or cat == "Cf":
        return _cache_width(g, 0)
    return _cache_width(g, rune_width(first))


def graphemes(text: str) -> Iterator[str]:
    """Yield the grapheme clusters of *text*."""
    return grapheme.graphemes(text)


def advance(ch: str, column: int, tab_width: int) -> int:
    """Return how many columns *ch* moves the cursor when drawn at *column*.

    *ch* is a single codepoint or a whole grapheme cluster. A tab moves to
    the next multiple of *tab_width*, so always by at least one.
    """
    if ch == "\t":
        return tab_width - column % tab_width
    return grapheme_width(ch)


# ---------------------------------------------------------------------------
# UTF-8 runes
# ---------------------------------------------------------------------------


def _sequence_length(lead: int) -> int:
    if lead < 0x80:
        return 1
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0


def decode_rune(buf: bytes, pos: int = 0) -> tuple[str, int]:
    """Decode the rune starting at byte *pos*.

    Returns ``(char, size)``. Invalid bytes decode as U+FFFD with size 1,
    and an empty remainder returns ``("", 0)``.
    """
    if pos >= len(buf):
        return "", 0
    size = _sequence_length(buf[pos])
    if size == 0 or pos + size > len(buf):
        return RUNE_ERROR, 1
    try:
        return bytes(buf[pos : pos + size]).decode("utf-8"), size
    except UnicodeDecodeError:
        return RUNE_ERROR, 1


def decode_last_rune(buf: bytes, end: int | None = None) -> tuple[str, int]:
    """Decode the rune that ends at byte *end* (default: end of *buf*)."""
    if end is None:
        end = len(buf)
    if end <= 0:
        return "", 0
    start = end - 1
    limit = max(0, end - 4)
    while start > limit and buf[start] & 0xC0 == 0x80:
        start -= 1
    ch, size = decode_rune(buf, start)
    if start + size != end:
        return RUNE_ERROR, 1
    return ch, size


def iter_runes(buf: bytes):
    """Yield ``(char, size)`` for each rune in *buf*."""
    pos = 0
    while pos < len(buf):
        ch, size = decode_rune(buf, pos)
        yield ch, size
        pos += size


def cursor_offsets(text: bytes, boffset: int, tab_width: int) -> tuple[int, int]:
    """Return ``(visual_offset, codepoint_offset)`` of byte offset *boffset*.

    Rescans *text* from the start, so the result depends only on the buffer
    contents and the byte offset.
    """
    voffset = 0
    coffset = 0
    for ch, _size in iter_runes(text[:boffset]):
        coffset += 1
        voffset += advance(ch, voffset, tab_width)
    return voffset, coffset
