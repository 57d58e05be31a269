"""Activation functions, their derivatives and softmax."""

from __future__ import annotations

import enum
from typing import Callable, Dict

import numpy as np

from .errors import UnsupportedOperation
from .types import Array

LEAKY_SLOPE = 0.01


class Activation(enum.Enum):
    """Closed set of per-layer activation functions."""

    IDENTITY = "identity"
    SIGMOID = "sigmoid"
    RELU = "relu"
    LEAKY_RELU = "leaky_relu"

    @classmethod
    def parse(cls, value: "Activation | str") -> "Activation":
        if isinstance(value, Activation):
            return value
        key = str(value).strip().lower().replace("-", "_")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown activation {value!r}. Available: {choices}") from exc


_ALIASES = {"none": "identity", "linear": "identity", "leakyrelu": "leaky_relu"}


def identity(x: Array) -> Array:
    return x


def sigmoid(x: Array) -> Array:
    """Return the logistic sigmoid ``1 / (1 + e^-x)``."""

    return 1.0 / (1.0 + np.exp(-x))


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def leaky_relu(x: Array) -> Array:
    return np.where(x > 0.0, x, LEAKY_SLOPE * x)


def sigmoid_deriv(x: Array) -> Array:
    s = sigmoid(x)
    return s * (1.0 - s)


_FUNCTIONS: Dict[Activation, Callable[[Array], Array]] = {
    Activation.IDENTITY: identity,
    Activation.SIGMOID: sigmoid,
    Activation.RELU: relu,
    Activation.LEAKY_RELU: leaky_relu,
}

# ``None`` marks an activation the trainer cannot propagate through.
_DERIVATIVES: Dict[Activation, Callable[[Array], Array] | None] = {
    Activation.IDENTITY: None,
    Activation.SIGMOID: sigmoid_deriv,
    Activation.RELU: None,
    Activation.LEAKY_RELU: None,
}

for _table in (_FUNCTIONS, _DERIVATIVES):
    _missing = set(Activation) - set(_table)
    if _missing:  # pragma: no cover - guardrail
        names = ", ".join(sorted(member.value for member in _missing))
        raise RuntimeError(f"Activation dispatch table is missing: {names}")


def apply(activation: Activation | str, x: Array) -> Array:
    """Apply ``activation`` elementwise to ``x``."""

    return _FUNCTIONS[Activation.parse(activation)](x)


def has_derivative(activation: Activation | str) -> bool:
    return _DERIVATIVES[Activation.parse(activation)] is not None


def derivative(activation: Activation | str, x: Array) -> Array:
    """Return ``d activation / dx`` evaluated at ``x``."""

    activation = Activation.parse(activation)
    fn = _DERIVATIVES[activation]
    if fn is None:
        raise UnsupportedOperation(
            f"No derivative is defined for the {activation.value!r} activation"
        )
    return fn(x)


def softmax(z: Array) -> Array:
    """Plain softmax; inputs are expected to be small so no max shift is applied."""

    e = np.exp(np.asarray(z, dtype=np.float64))
    return e / e.sum()


def softmax_derivative(z: Array, output_index: int, respect_index: int) -> float:
    """Partial derivative of softmax output ``output_index`` w.r.t. input ``respect_index``."""

    s = softmax(z)
    if output_index == respect_index:
        return float(s[output_index] * (1.0 - s[output_index]))
    return float(-s[output_index] * s[respect_index])


def softmax_jacobian(z: Array) -> Array:
    s = softmax(z)
    return np.diag(s) - np.outer(s, s)


__all__ = [
    "Activation",
    "apply",
    "derivative",
    "has_derivative",
    "identity",
    "leaky_relu",
    "relu",
    "sigmoid",
    "sigmoid_deriv",
    "softmax",
    "softmax_derivative",
    "softmax_jacobian",
]
