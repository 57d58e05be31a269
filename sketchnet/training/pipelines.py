"""Preset configs and the end-to-end training pipeline."""

from __future__ import annotations

import json
import logging
import math
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping

import yaml

from ..core.topology import TopologyConfig
from ..core.types import RunResult
from ..data.samples import SampleStore
from ..network import Network
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .trainer import DEFAULT_LEARNING_RATE, Trainer

logger = logging.getLogger(__name__)

_PRESETS: Dict[str, Mapping[str, object]] = {
    "digits-sigmoid": {
        "network": {
            "layers": [
                {"nodes": 784, "bias": True, "activation": "identity"},
                {"nodes": 14, "bias": True, "activation": "sigmoid"},
                {"nodes": 10, "bias": True, "activation": "sigmoid"},
            ],
            "softmax_output": False,
            "bias_indexing": "output",
            "seed": None,
        },
        "data": {"samples": "nn/training_data.xml", "num_classes": 10},
        "train": {
            "steps": 10000,
            "learning_rate": DEFAULT_LEARNING_RATE,
            "train_bias": True,
            "weights": "nn/weights.wab",
            "run_dir": "runs/digits-sigmoid",
            "log_every": 1,
            "enable_plots": False,
            "save_samples": False,
        },
    },
    "tiny-sigmoid": {
        "network": {
            "layers": [
                {"nodes": 4, "bias": True, "activation": "identity"},
                {"nodes": 6, "bias": True, "activation": "sigmoid"},
                {"nodes": 3, "bias": True, "activation": "sigmoid"},
            ],
            "softmax_output": True,
            "bias_indexing": "output",
            "seed": 0,
        },
        "data": {"samples": "nn/tiny_samples.xml", "num_classes": 3},
        "train": {
            "steps": 200,
            "learning_rate": 0.1,
            "train_bias": True,
            "weights": "nn/tiny_weights.wab",
            "run_dir": "runs/tiny-sigmoid",
            "log_every": 1,
            "enable_plots": False,
            "save_samples": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None
REQUIRED_SECTIONS = frozenset({"network", "data", "train"})


def load_config(path: str | Path) -> Mapping[str, object]:
    """Read a YAML or JSON config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> dict:
    merged = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = load_config(file)
                missing = REQUIRED_SECTIONS - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def build_network(network_cfg: Mapping[str, object]) -> Network:
    topology = TopologyConfig.from_mapping(network_cfg)
    seed = network_cfg.get("seed")
    return Network(topology, random_init=True, seed=None if seed is None else int(seed))


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Build, train and persist one network as described by ``config``."""

    missing = REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    network_cfg = dict(config["network"])  # type: ignore[arg-type]
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    network = build_network(network_cfg)
    weights_path = Path(str(train_cfg.get("weights", "nn/weights.wab")))
    network.load_weights(weights_path)

    store = SampleStore(num_classes=int(data_cfg.get("num_classes", 10)))
    samples_path = data_cfg.get("samples")
    if samples_path:
        store.load(str(samples_path))

    run_dir = Path(str(train_cfg.get("run_dir", "runs/default")))
    run_dir.mkdir(parents=True, exist_ok=True)
    log_every = int(train_cfg.get("log_every", 1))
    metrics_path = run_dir / "metrics.jsonl"
    callbacks = [
        JsonlSink(metrics_path, every=log_every),
        CsvSink(run_dir / "metrics.csv", every=log_every),
        PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False))),
    ]

    trainer = Trainer(
        network,
        store,
        learning_rate=float(train_cfg.get("learning_rate", DEFAULT_LEARNING_RATE)),
        train_bias=bool(train_cfg.get("train_bias", True)),
        callbacks=callbacks,
    )
    steps = int(train_cfg.get("steps", 0))
    if len(store) == 0:
        logger.warning("No training samples available, skipping training")
        steps = 0
    logger.info("Training %s for %d steps on %d samples", network.topology.layer_sizes, steps, len(store))
    executed = trainer.run(max_steps=steps)
    trainer.close()

    network.save_weights(weights_path)
    if samples_path and train_cfg.get("save_samples", False):
        store.save(str(samples_path))

    average = trainer.get_average_error()
    summary = {
        "steps": executed,
        "epochs": store.epoch,
        "samples": len(store),
        "average_loss": None if math.isnan(average) else average,
    }
    manifest_path = write_manifest(run_dir / "manifest.json", config=config, summary=summary)
    logger.info("Finished after %d steps, average loss %s", executed, summary["average_loss"])
    return RunResult(
        steps=executed,
        average_loss=average,
        weights_path=str(weights_path),
        metrics_path=str(metrics_path),
        manifest_path=manifest_path,
    )


__all__ = ["build_network", "load_config", "load_preset", "merge_config", "presets", "run_pipeline"]
