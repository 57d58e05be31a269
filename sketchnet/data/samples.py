"""In-memory training sample store with epoch-cyclic reads."""

from __future__ import annotations

import logging
import time
from operator import attrgetter
from pathlib import Path
from typing import Iterator, List, Tuple

import numpy as np

from ..core.errors import EmptyStore
from ..core.types import Array, TrainingSample
from . import codec

logger = logging.getLogger(__name__)

DEFAULT_NUM_CLASSES = 10


class SampleStore:
    """Ordered collection of labelled samples with a wrapping read cursor."""

    def __init__(self, num_classes: int = DEFAULT_NUM_CLASSES) -> None:
        self.num_classes = int(num_classes)
        self._samples: List[TrainingSample] = []
        self._cursor = 0
        self._current: TrainingSample | None = None
        self._epoch = 0
        self._epoch_started: float | None = None

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[TrainingSample]:
        return iter(list(self._samples))

    @property
    def samples(self) -> List[TrainingSample]:
        return list(self._samples)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def epoch(self) -> int:
        """Number of completed passes over the store."""

        return self._epoch

    def add_sample(self, sample: TrainingSample) -> None:
        self._samples.append(sample)

    def count_by_label(self, label: int) -> int:
        return sum(1 for sample in self._samples if sample.label == label)

    # ------------------------------------------------------------------
    # Sample source

    def next_sample(self) -> Tuple[Array, int]:
        if not self._samples:
            raise EmptyStore("The sample store holds no samples")
        if self._cursor >= len(self._samples):
            self._cursor = 0
        if self._cursor == 0:
            self._epoch_started = time.perf_counter()
        sample = self._samples[self._cursor]
        self._current = sample
        self._cursor += 1
        if self._cursor >= len(self._samples):
            self._cursor = 0
            self._finish_epoch()
        return sample.features, sample.label

    def _finish_epoch(self) -> None:
        self._epoch += 1
        if self._epoch_started is not None:
            elapsed_ms = (time.perf_counter() - self._epoch_started) * 1000.0
            logger.info("Epoch %d finished: %.0f ms", self._epoch, elapsed_ms)

    def _current_sample(self) -> TrainingSample:
        if not self._samples:
            raise EmptyStore("The sample store holds no samples")
        if self._current is not None:
            return self._current
        return self._samples[min(self._cursor, len(self._samples) - 1)]

    def expected_result(self) -> Array:
        """One-hot target of the most recently returned sample."""

        label = self._current_sample().label
        if not 0 <= label < self.num_classes:
            raise ValueError(f"Label {label} outside 0..{self.num_classes - 1}")
        expected = np.zeros(self.num_classes, dtype=np.float64)
        expected[label] = 1.0
        return expected

    def expected_label(self) -> int:
        return self._current_sample().label

    # ------------------------------------------------------------------
    # Persistence

    def save(self, path: str | Path) -> int:
        """Sort by label (stable) and rewrite ``path`` with every sample.

        Reading resumes after the most recently returned sample at its sorted
        position.
        """

        self._samples.sort(key=attrgetter("label"))
        if self._current is not None:
            position = next(i for i, s in enumerate(self._samples) if s is self._current)
            self._cursor = (position + 1) % len(self._samples)
        count = codec.write_samples(path, self._samples)
        logger.info("Saved %d samples to %s", count, path)
        return count

    def load(self, path: str | Path) -> int:
        """Append the samples stored at ``path``; a missing file adds nothing."""

        path = Path(path)
        if not path.exists():
            logger.info("No sample file at %s", path)
            return 0
        loaded = codec.read_samples(path)
        self._samples.extend(loaded)
        logger.info("Loaded %d samples from %s", len(loaded), path)
        return len(loaded)


__all__ = ["DEFAULT_NUM_CLASSES", "SampleStore"]
