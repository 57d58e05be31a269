"""Training sample storage for SketchNet."""

from .samples import SampleStore

__all__ = ["SampleStore"]
