"""Command line interface for SketchNet."""
