"""InputBuffer splits raw terminal input into complete key sequences.

Reads from a tty arrive in arbitrary chunks, so an escape sequence such as
an arrow key or a mouse report can be split across two reads. The buffer
holds a partial sequence until the rest arrives, or until a short timeout
decides that a lone ESC really was the escape key.
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable

ESC = "\x1b"

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def sequence_status(data: str) -> str:
    """Classify *data* as ``"complete"``, ``"incomplete"`` or ``"not-escape"``."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI sequences: ESC [
    if after_esc.startswith("["):
        # X10 mouse: ESC [ M b x y
        if after_esc.startswith("[M"):
            return "complete" if len(data) >= 6 else "incomplete"
        return _csi_status(data)

    # OSC sequences: ESC ] ... BEL | ESC \
    if after_esc.startswith("]"):
        if data.endswith(f"{ESC}\\") or data.endswith("\x07"):
            return "complete"
        return "incomplete"

    # SS3 sequences: ESC O <final>
    if after_esc.startswith("O"):
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # Meta key sequences: ESC followed by a single character
    return "complete"


def _csi_status(data: str) -> str:
    if len(data) < 3:
        return "incomplete"

    payload = data[2:]
    if not 0x40 <= ord(payload[-1]) <= 0x7E:
        return "incomplete"

    # SGR mouse reports end in M/m, but so does nothing else starting with "<"
    if payload.startswith("<"):
        return "complete" if _SGR_MOUSE_RE.match(payload) else "incomplete"
    return "complete"


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences.

    Returns ``(sequences, remainder)`` where *remainder* is an unfinished
    escape sequence at the end of the buffer.
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            if sequence_status(remaining[:seq_end]) == "incomplete":
                seq_end += 1
                continue
            sequences.append(remaining[:seq_end])
            pos += seq_end
            break
        else:
            return sequences, remaining

    return sequences, ""


class InputBuffer:
    """Buffers terminal input and emits complete sequences.

    ``timeout`` is in seconds. Without a running event loop a partial
    sequence is flushed immediately instead of waiting.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._timeout: float = timeout
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._on_sequence: Callable[[str], None] | None = None

    def on_sequence(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete sequences."""
        self._on_sequence = callback

    def _emit(self, data: str) -> None:
        if self._on_sequence:
            self._on_sequence(data)

    def process(self, data: str) -> None:
        """Feed input data into the buffer."""
        self._cancel_timeout()

        self._buffer += data
        sequences, self._buffer = split_sequences(self._buffer)
        for sequence in sequences:
            self._emit(sequence)

        if not self._buffer:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            for sequence in self.flush():
                self._emit(sequence)
            return
        self._timeout_handle = loop.call_later(self._timeout, self._flush_timeout)

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit(sequence)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def flush(self) -> list[str]:
        """Return whatever is buffered as a single sequence and empty the buffer."""
        self._cancel_timeout()
        if not self._buffer:
            return []
        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""

    def get_buffer(self) -> str:
        return self._buffer
