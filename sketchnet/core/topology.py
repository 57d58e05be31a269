"""Network topology description and state-container factories."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

import numpy as np

from .activations import Activation, has_derivative
from .errors import UnsupportedOperation
from .types import Array

BIAS_INDEXING = ("output", "input")


def _as_rng(rng: np.random.Generator | int | None) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


@dataclass(frozen=True)
class LayerSpec:
    """One layer of nodes: its width, bias flag and activation."""

    nodes: int
    has_bias: bool = True
    activation: Activation = Activation.IDENTITY

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", int(self.nodes))
        object.__setattr__(self, "has_bias", bool(self.has_bias))
        object.__setattr__(self, "activation", Activation.parse(self.activation))

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "LayerSpec":
        return cls(
            nodes=int(cfg["nodes"]),
            has_bias=bool(cfg.get("bias", True)),
            activation=Activation.parse(cfg.get("activation", "identity")),
        )

    def to_mapping(self) -> Dict[str, Any]:
        return {"nodes": self.nodes, "bias": self.has_bias, "activation": self.activation.value}


@dataclass(frozen=True)
class TopologyConfig:
    """Ordered layer specs plus output post-processing options.

    The first layer is the input layer; its bias flag and activation are
    ignored by the forward pass. ``bias_indexing`` selects which layer's
    ``has_bias`` flag decides whether a connection adds its bias vector:
    ``"output"`` uses the layer the connection feeds into, ``"input"`` the
    layer it reads from.
    """

    layers: Sequence[LayerSpec]
    softmax_output: bool = False
    bias_indexing: str = "output"
    bias_applies_to: tuple = field(init=False, repr=False)

    def __post_init__(self) -> None:
        layers = tuple(
            layer if isinstance(layer, LayerSpec) else LayerSpec.from_mapping(layer)
            for layer in self.layers
        )
        if not layers:
            raise ValueError("A topology needs at least one layer")
        if self.bias_indexing not in BIAS_INDEXING:
            raise ValueError(f"bias_indexing must be one of {BIAS_INDEXING}")
        object.__setattr__(self, "layers", layers)
        object.__setattr__(self, "bias_applies_to", self._bias_mask(layers))

    def _bias_mask(self, layers: Sequence[LayerSpec]) -> tuple:
        mask = [False]
        for k in range(1, len(layers)):
            source = layers[k] if self.bias_indexing == "output" else layers[k - 1]
            mask.append(source.has_bias)
        return tuple(mask)

    # ------------------------------------------------------------------
    # Shape queries

    @property
    def layer_sizes(self) -> List[int]:
        return [layer.nodes for layer in self.layers]

    @property
    def depth(self) -> int:
        return len(self.layers)

    @property
    def connection_count(self) -> int:
        return max(0, len(self.layers) - 1)

    def parameter_count(self) -> int:
        sizes = self.layer_sizes
        return int(sum(n_in * n_out + n_out for n_in, n_out in zip(sizes[:-1], sizes[1:])))

    def validate_for_training(self) -> None:
        """Fail fast if backpropagation would need a missing derivative."""

        for idx in range(1, len(self.layers) - 1):
            activation = self.layers[idx].activation
            if not has_derivative(activation):
                raise UnsupportedOperation(
                    f"Hidden layer {idx} uses {activation.value!r}, which has no derivative"
                )

    # ------------------------------------------------------------------
    # Container factories

    def make_node_vectors(self) -> List[Array]:
        return [np.zeros(layer.nodes, dtype=np.float64) for layer in self.layers]

    def make_weight_matrices(
        self, random_init: bool = False, rng: np.random.Generator | int | None = None
    ) -> List[Array]:
        sizes = self.layer_sizes
        generator = _as_rng(rng) if random_init else None
        matrices: List[Array] = []
        for n_in, n_out in zip(sizes[:-1], sizes[1:]):
            if generator is not None:
                W = generator.standard_normal((n_in, n_out)) * np.sqrt(1.0 / n_in)
            else:
                W = np.zeros((n_in, n_out), dtype=np.float64)
            matrices.append(W)
        return matrices

    def make_bias_vectors(
        self, random_init: bool = False, rng: np.random.Generator | int | None = None
    ) -> List[Array]:
        generator = _as_rng(rng) if random_init else None
        vectors: List[Array] = []
        for layer in self.layers[1:]:
            if generator is not None:
                b = generator.standard_normal(layer.nodes)
            else:
                b = np.zeros(layer.nodes, dtype=np.float64)
            vectors.append(b)
        return vectors

    # ------------------------------------------------------------------
    # Config round trip

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "TopologyConfig":
        if "layers" not in cfg:
            raise KeyError("network config is missing 'layers'")
        return cls(
            layers=[LayerSpec.from_mapping(layer) for layer in cfg["layers"]],
            softmax_output=bool(cfg.get("softmax_output", False)),
            bias_indexing=str(cfg.get("bias_indexing", "output")),
        )

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "layers": [layer.to_mapping() for layer in self.layers],
            "softmax_output": self.softmax_output,
            "bias_indexing": self.bias_indexing,
        }


__all__ = ["LayerSpec", "TopologyConfig"]
