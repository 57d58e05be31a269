"""Public network facade: inference, softmax post-processing and weight files."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Tuple

import numpy as np

from .core.activations import softmax
from .core.engine import ForwardEngine
from .core.errors import CorruptData
from .core.topology import TopologyConfig
from .core.types import Array

logger = logging.getLogger(__name__)

# Weight files are raw little-endian IEEE-754 doubles without a header.
WEIGHT_DTYPE = np.dtype("<f8")


class Network:
    """A feed-forward network built from a :class:`TopologyConfig`."""

    def __init__(
        self,
        topology: TopologyConfig,
        random_init: bool = True,
        seed: int | np.random.Generator | None = None,
    ) -> None:
        self.topology = topology
        self.engine = ForwardEngine(topology, random_init=random_init, rng=seed)
        # Held by inference and by every training step.
        self.lock = threading.RLock()

    def compute_output(self, inputs: Array) -> Array:
        with self.lock:
            output = self.engine.compute_output(inputs)
            if self.topology.softmax_output:
                return softmax(output)
            return output.copy()

    def classify(self, inputs: Array) -> List[Tuple[int, float]]:
        """Return ``(label, percent)`` pairs, most likely label first."""

        scores = self.compute_output(inputs) * 100.0
        order = np.argsort(-scores, kind="stable")
        return [(int(idx), float(scores[idx])) for idx in order]

    def layer_nodes(self, layer: int) -> Array:
        with self.lock:
            return self.engine.layer_nodes(layer)

    def save_weights(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with self.lock:
            flat = self.engine.flatten_parameters()
        with path.open("wb") as handle:
            handle.write(flat.astype(WEIGHT_DTYPE).tobytes())
        logger.info("Saved %d parameters to %s", flat.shape[0], path)

    def load_weights(self, path: str | Path) -> bool:
        """Load a weight file; a missing file leaves the weights untouched."""

        path = Path(path)
        if not path.exists():
            logger.info("No weight file at %s, keeping current weights", path)
            return False
        with path.open("rb") as handle:
            payload = handle.read()
        if len(payload) % WEIGHT_DTYPE.itemsize:
            raise CorruptData(
                f"{path} holds {len(payload)} bytes, not a whole number of doubles"
            )
        flat = np.frombuffer(payload, dtype=WEIGHT_DTYPE).astype(np.float64)
        with self.lock:
            self.engine.load_parameters(flat)
        logger.info("Loaded %d parameters from %s", flat.shape[0], path)
        return True


__all__ = ["Network", "WEIGHT_DTYPE"]
