"""Exception hierarchy shared by every decoder."""

from __future__ import annotations


class DecodeError(ValueError):
    """Base class for decoder failures."""


class BoundsError(DecodeError):
    """A read would run past the end of the buffer."""


class FormatError(DecodeError):
    """The bytes are readable but structurally invalid."""


__all__ = ["DecodeError", "BoundsError", "FormatError"]
