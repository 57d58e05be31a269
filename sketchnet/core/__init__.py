"""Core numerical primitives for SketchNet."""

from . import activations, engine, errors, topology, types

__all__ = ["activations", "engine", "errors", "topology", "types"]
