"""Forward propagation over a mutable, preallocated network state."""

from __future__ import annotations

import numpy as np

from . import activations
from .errors import ShapeMismatch, SizeMismatch
from .topology import TopologyConfig
from .types import Array, NetworkState


class ForwardEngine:
    """Owns the live buffers of one network and computes forward inference.

    All buffers are allocated at construction and reused by every call.
    :meth:`compute_output` returns the last activation buffer itself, so the
    next forward pass overwrites it; copy it to keep a stable snapshot.
    """

    def __init__(
        self,
        topology: TopologyConfig,
        random_init: bool = True,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        self.topology = topology
        generator = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        pre_activation = topology.make_node_vectors()
        pre_activation[0] = np.zeros(0, dtype=np.float64)
        self.state = NetworkState(
            activations=topology.make_node_vectors(),
            pre_activation=pre_activation,
            weights=topology.make_weight_matrices(random_init, generator),
            biases=topology.make_bias_vectors(random_init, generator),
            bias_applies_to=topology.bias_applies_to,
        )

    @property
    def activations(self):
        return self.state.activations

    @property
    def pre_activation(self):
        return self.state.pre_activation

    @property
    def weights(self):
        return self.state.weights

    @property
    def biases(self):
        return self.state.biases

    def compute_output(self, inputs: Array) -> Array:
        state = self.state
        x = np.asarray(inputs, dtype=np.float64).reshape(-1)
        if x.shape[0] != state.activations[0].shape[0]:
            raise ShapeMismatch(
                f"Input should consist of {state.activations[0].shape[0]} values, got {x.shape[0]}"
            )
        state.activations[0][:] = x
        layers = self.topology.layers
        for l, W in enumerate(state.weights):
            z = state.pre_activation[l + 1]
            np.matmul(W.T, state.activations[l], out=z)
            if state.bias_applies_to[l + 1]:
                z += state.biases[l]
            state.activations[l + 1][:] = activations.apply(layers[l + 1].activation, z)
        return state.activations[-1]

    def layer_nodes(self, layer: int) -> Array:
        return self.state.activations[layer].copy()

    def flatten_parameters(self) -> Array:
        """Serialise weights and biases: per output node, its weight column then its bias."""

        chunks = []
        for W, b in zip(self.state.weights, self.state.biases):
            # column o of W followed by b[o], for every output node o
            chunks.append(np.hstack([W.T, b[:, None]]).reshape(-1))
        if not chunks:
            return np.zeros(0, dtype=np.float64)
        return np.concatenate(chunks)

    def load_parameters(self, flat: Array) -> None:
        flat = np.asarray(flat, dtype=np.float64).reshape(-1)
        expected = self.topology.parameter_count()
        if flat.shape[0] != expected:
            raise SizeMismatch(
                f"Expected {expected} parameters for layers {self.topology.layer_sizes}, "
                f"got {flat.shape[0]}"
            )
        offset = 0
        for W, b in zip(self.state.weights, self.state.biases):
            n_in, n_out = W.shape
            size = n_out * (n_in + 1)
            block = flat[offset : offset + size].reshape(n_out, n_in + 1)
            W[:, :] = block[:, :n_in].T
            b[:] = block[:, n_in]
            offset += size


__all__ = ["ForwardEngine"]
