"""Online (single-sample) backpropagation for :class:`sketchnet.network.Network`."""

from __future__ import annotations

import math
import threading
from typing import List, Mapping, Protocol, Sequence, Tuple

import numpy as np

from ..core.activations import derivative
from ..core.types import Array, StepResult
from ..network import Network
from .losses import REGISTRY as LOSS_REGISTRY

DEFAULT_LEARNING_RATE = 0.001
# The rolling error accumulator is folded back into its average at this count.
ERROR_WINDOW = 100


class SampleSource(Protocol):
    """Anything that can feed labelled samples to a :class:`Trainer`.

    ``expected_result`` and ``expected_label`` describe the sample most
    recently returned by ``next_sample``.
    """

    def next_sample(self) -> Tuple[Array, int]: ...

    def expected_result(self) -> Array: ...

    def expected_label(self) -> int: ...


class Trainer:
    """Run one backpropagation step per call against a sample source.

    ``train_bias`` selects what happens to bias gradients. When true they are
    applied to the live bias vectors the forward pass uses. When false they
    accumulate in :attr:`bias_scratch` only, so the biases keep their initial
    values.
    """

    def __init__(
        self,
        network: Network,
        source: SampleSource,
        learning_rate: float = DEFAULT_LEARNING_RATE,
        train_bias: bool = True,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        network.topology.validate_for_training()
        self.network = network
        self.source = source
        self.learning_rate = float(learning_rate)
        self.train_bias = bool(train_bias)
        self.callbacks = list(callbacks or [])
        self.loss_fn = LOSS_REGISTRY.get("mse")
        self.bias_scratch: List[Array] = network.topology.make_bias_vectors()
        self.steps = 0
        self._total_error = 0.0
        self._error_count = 0

    # ------------------------------------------------------------------
    # Training

    def train_step(self) -> StepResult:
        features, _ = self.source.next_sample()
        expected = np.asarray(self.source.expected_result(), dtype=np.float64)
        label = int(self.source.expected_label())

        with self.network.lock:
            engine = self.network.engine
            output = engine.compute_output(features).copy()
            loss = self.loss_fn(output, expected)
            self._add_error(loss)
            self._backward(output - expected)

        self.steps += 1
        result = StepResult(
            step=self.steps,
            label=label,
            loss=loss,
            average_loss=self.get_average_error(),
        )
        self._emit_step(
            result.step,
            {"label": result.label, "loss": result.loss, "average_loss": result.average_loss},
        )
        return result

    def _backward(self, delta: Array) -> None:
        state = self.network.engine.state
        layers = self.network.topology.layers
        lr = self.learning_rate
        last = len(layers) - 1
        if last < 1:
            return

        state.weights[last - 1] -= lr * np.outer(state.activations[last - 1], delta)
        self._update_bias(last - 1, delta)

        # Hidden deltas use weights already updated earlier in this step.
        for l in range(last - 1, 0, -1):
            deriv = derivative(layers[l].activation, state.pre_activation[l])
            delta = deriv * (state.weights[l] @ delta)
            state.weights[l - 1] -= lr * np.outer(state.activations[l - 1], delta)
            self._update_bias(l - 1, delta)

    def _update_bias(self, connection: int, delta: Array) -> None:
        step = self.learning_rate * delta
        state = self.network.engine.state
        if self.train_bias and state.bias_applies_to[connection + 1]:
            state.biases[connection] -= step
        else:
            self.bias_scratch[connection] -= step

    def run(
        self,
        max_steps: int | None = None,
        stop_event: threading.Event | None = None,
    ) -> int:
        """Train until ``max_steps`` steps ran or ``stop_event`` is set.

        The event is checked between steps; a step in progress always completes.
        """

        if max_steps is None and stop_event is None:
            raise ValueError("run() needs max_steps, stop_event or both")
        executed = 0
        while max_steps is None or executed < max_steps:
            if stop_event is not None and stop_event.is_set():
                break
            self.train_step()
            executed += 1
        return executed

    # ------------------------------------------------------------------
    # Error tracking

    def _add_error(self, error: float) -> None:
        self._error_count += 1
        self._total_error += error
        if self._error_count >= ERROR_WINDOW:
            self._total_error = self.get_average_error()
            self._error_count = 1

    def get_average_error(self) -> float:
        """Rolling average loss, ``nan`` before the first step."""

        if self._error_count == 0:
            return math.nan
        return self._total_error / self._error_count

    # ------------------------------------------------------------------
    # Internal helpers

    def _emit_step(self, step: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_step"):
                callback.on_step(step, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(step, metrics)

    def close(self) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "close"):
                callback.close()  # type: ignore[attr-defined]


__all__ = ["DEFAULT_LEARNING_RATE", "ERROR_WINDOW", "SampleSource", "Trainer"]
