"""Exceptions raised by termpanes."""

from __future__ import annotations


class SurfaceError(RuntimeError):
    """The terminal surface reported an error while polling for input.

    The surface is not usable afterwards; the event loop stops.
    """
