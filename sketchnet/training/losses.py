"""Loss functions and the loss registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from ..core.types import Array

LossFn = Callable[[Array, Array], float]


@dataclass(frozen=True)
class Loss:
    """Named scalar loss over a prediction and a target vector."""

    name: str
    fn: LossFn

    def __call__(self, predictions: Array, targets: Array) -> float:
        return self.fn(predictions, targets)


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, fn: LossFn) -> None:
        self._registry[name] = Loss(name, fn)

    def get(self, name: str) -> Loss:
        try:
            return self._registry[name]
        except KeyError as exc:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}") from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


def mean_squared_error(prediction: Array, target: Array) -> float:
    diff = np.asarray(prediction, dtype=np.float64) - np.asarray(target, dtype=np.float64)
    return float(np.mean(np.square(diff)))


def cross_entropy_sum(prediction: Array, target: Array) -> float:
    """Sum of ``-t * ln(p)`` over all classes."""

    prediction = np.asarray(prediction, dtype=np.float64)
    target = np.asarray(target, dtype=np.float64)
    return float(np.sum(-target * np.log(prediction)))


def cross_entropy(prediction: float, target: float) -> float:
    return float(-target * np.log(prediction))


def categorical_cross_entropy(prediction: float) -> float:
    """Loss of the predicted probability for the true class."""

    return float(-np.log(prediction))


def categorical_cross_entropy_derivative(prediction: float, target: float) -> float:
    return float(-target / prediction)


REGISTRY = LossRegistry()
REGISTRY.register("mse", mean_squared_error)
REGISTRY.register("ce", cross_entropy_sum)

__all__ = [
    "Loss",
    "LossRegistry",
    "REGISTRY",
    "categorical_cross_entropy",
    "categorical_cross_entropy_derivative",
    "cross_entropy",
    "cross_entropy_sum",
    "mean_squared_error",
]
