"""SketchNet public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.activations import Activation
from .core.errors import (
    CorruptData,
    EmptyStore,
    ShapeMismatch,
    SizeMismatch,
    SketchNetError,
    UnsupportedOperation,
)
from .core.topology import LayerSpec, TopologyConfig
from .core.types import TrainingSample
from .data.samples import SampleStore
from .network import Network
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer
from .training.worker import TrainingWorker

__all__ = [
    "Activation",
    "CorruptData",
    "EmptyStore",
    "LayerSpec",
    "Network",
    "SampleStore",
    "ShapeMismatch",
    "SizeMismatch",
    "SketchNetError",
    "TopologyConfig",
    "Trainer",
    "TrainingSample",
    "TrainingWorker",
    "UnsupportedOperation",
    "activations",
    "load_preset",
    "presets",
    "run_pipeline",
    "types",
]
