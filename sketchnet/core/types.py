"""Core typing contracts for SketchNet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np

Array = np.ndarray


@dataclass(frozen=True, eq=False)
class TrainingSample:
    """A labelled feature vector."""

    features: Array
    label: int

    def __post_init__(self) -> None:
        features = np.array(self.features, dtype=np.float64).reshape(-1)
        features.setflags(write=False)
        object.__setattr__(self, "features", features)
        object.__setattr__(self, "label", int(self.label))


@dataclass(frozen=True)
class StepResult:
    """Summary returned by :meth:`sketchnet.training.trainer.Trainer.train_step`."""

    step: int
    label: int
    loss: float
    average_loss: float


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`sketchnet.training.pipelines.run_pipeline`."""

    steps: int
    average_loss: float
    weights_path: str
    metrics_path: str
    manifest_path: str


@dataclass
class NetworkState:
    """Live numeric buffers of one network, allocated once per topology."""

    activations: List[Array]
    pre_activation: List[Array]
    weights: List[Array]
    biases: List[Array]
    bias_applies_to: tuple = field(default=())
