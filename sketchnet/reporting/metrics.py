"""Per-step training observers that persist metrics."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Mapping

FIELDS = ("step", "label", "loss", "average_loss")


def _row(step: int, metrics: Mapping[str, float]) -> dict:
    row = {"step": int(step)}
    for key, value in metrics.items():
        if key == "label":
            row[key] = int(value)
        elif isinstance(value, (int, float)):
            row[key] = float(value)
    return row


class JsonlSink:
    """Append-only JSONL writer for training steps."""

    def __init__(self, path: str | Path, *, every: int = 1) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.every = max(1, int(every))

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        if step % self.every:
            return
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(_row(step, metrics)) + "\n")

    __call__ = on_step


class CsvSink:
    """Write training steps to CSV with a stable column order."""

    def __init__(self, path: str | Path, *, every: int = 1) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.every = max(1, int(every))

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        if step % self.every:
            return
        row = _row(step, metrics)
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=FIELDS, extrasaction="ignore")
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_step


__all__ = ["CsvSink", "JsonlSink"]
