"""Sparse hex encoding of training samples as an XML document.

Each sample becomes one element::

    <TrainingData Expected="3" Size="16">6:F0;7:3F;</TrainingData>

``Size`` is the byte length of the feature vector as little-endian doubles;
the body lists ``index:HEX;`` for every non-zero byte in ascending order.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, Tuple

import numpy as np

from ..core.errors import CorruptData
from ..core.types import Array, TrainingSample

ROOT_TAG = "TrainingSet"
SAMPLE_TAG = "TrainingData"
LABEL_ATTR = "Expected"
SIZE_ATTR = "Size"
FEATURE_DTYPE = np.dtype("<f8")
MAX_SAMPLE_BYTES = 1 << 24

_ENTRY = re.compile(r"([0-9]+):([0-9A-Fa-f]{2})")


def encode_features(features: Array) -> Tuple[str, int]:
    """Return ``(body, byte_length)`` for a feature vector."""

    raw = np.asarray(features, dtype=np.float64).astype(FEATURE_DTYPE).tobytes()
    data = np.frombuffer(raw, dtype=np.uint8)
    body = "".join(f"{idx}:{int(data[idx]):02X};" for idx in np.flatnonzero(data))
    return body, len(raw)


def decode_features(body: str | None, size: int) -> Array:
    if size < 0 or size % FEATURE_DTYPE.itemsize:
        raise CorruptData(f"Sample size {size} is not a whole number of doubles")
    if size > MAX_SAMPLE_BYTES:
        raise CorruptData(f"Sample size {size} exceeds the {MAX_SAMPLE_BYTES}-byte limit")
    buffer = bytearray(size)
    for entry in (body or "").split(";"):
        entry = entry.strip()
        if not entry:
            continue
        match = _ENTRY.fullmatch(entry)
        if match is None:
            raise CorruptData(f"Malformed byte entry {entry!r}")
        index = int(match.group(1))
        if index >= size:
            raise CorruptData(f"Byte index {index} outside a {size}-byte sample")
        buffer[index] = int(match.group(2), 16)
    return np.frombuffer(bytes(buffer), dtype=FEATURE_DTYPE).astype(np.float64)


def encode_sample(sample: TrainingSample) -> ET.Element:
    body, size = encode_features(sample.features)
    element = ET.Element(SAMPLE_TAG, {LABEL_ATTR: str(sample.label), SIZE_ATTR: str(size)})
    element.text = body
    return element


def _int_attr(element: ET.Element, name: str) -> int:
    raw = element.get(name)
    if raw is None:
        raise CorruptData(f"<{element.tag}> is missing the {name!r} attribute")
    try:
        return int(raw)
    except ValueError as exc:
        raise CorruptData(f"Attribute {name}={raw!r} is not an integer") from exc


def decode_sample(element: ET.Element) -> TrainingSample:
    label = _int_attr(element, LABEL_ATTR)
    size = _int_attr(element, SIZE_ATTR)
    return TrainingSample(features=decode_features(element.text, size), label=label)


def write_samples(path: str | Path, samples: Iterable[TrainingSample]) -> int:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    root = ET.Element(ROOT_TAG)
    count = 0
    for sample in samples:
        root.append(encode_sample(sample))
        count += 1
    tree = ET.ElementTree(root)
    ET.indent(tree)
    with path.open("wb") as handle:
        tree.write(handle, encoding="utf-8", xml_declaration=True)
    return count


def read_samples(path: str | Path) -> List[TrainingSample]:
    path = Path(path)
    try:
        with path.open("rb") as handle:
            root = ET.parse(handle).getroot()
    except ET.ParseError as exc:
        raise CorruptData(f"{path} is not a valid sample file: {exc}") from exc
    return [decode_sample(element) for element in root.iter(SAMPLE_TAG)]


__all__ = [
    "decode_features",
    "decode_sample",
    "encode_features",
    "encode_sample",
    "read_samples",
    "write_samples",
]
