"""Error taxonomy for SketchNet."""

from __future__ import annotations


class SketchNetError(Exception):
    """Base class for every error raised by SketchNet."""


class ShapeMismatch(SketchNetError, ValueError):
    """Raised when a vector does not match the size the topology expects."""


class SizeMismatch(ShapeMismatch):
    """Raised when a flat parameter vector does not fit the topology."""


class UnsupportedOperation(SketchNetError, NotImplementedError):
    """Raised when an activation has no derivative defined."""


class CorruptData(SketchNetError, ValueError):
    """Raised when a weight or sample file cannot be decoded."""


class EmptyStore(SketchNetError, LookupError):
    """Raised when reading a sample from an empty store."""


__all__ = [
    "CorruptData",
    "EmptyStore",
    "ShapeMismatch",
    "SizeMismatch",
    "SketchNetError",
    "UnsupportedOperation",
]
