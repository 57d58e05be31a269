import json
from pathlib import Path

import numpy as np
import pytest
import yaml

from sketchnet.core.types import TrainingSample
from sketchnet.data.samples import SampleStore
from sketchnet.training import pipelines


def _write_samples(path: Path, num_classes: int = 3, width: int = 4) -> None:
    store = SampleStore(num_classes=num_classes)
    rng = np.random.default_rng(0)
    for label in range(num_classes):
        for _ in range(3):
            features = np.zeros(width)
            features[label] = 1.0
            features += 0.01 * rng.standard_normal(width)
            store.add_sample(TrainingSample(features=features, label=label))
    store.save(path)


def _tiny_config(tmp_path: Path) -> dict:
    config = pipelines.load_preset("tiny-sigmoid")
    config["data"]["samples"] = str(tmp_path / "nn" / "samples.xml")
    config["train"].update(
        {
            "steps": 45,
            "weights": str(tmp_path / "nn" / "weights.wab"),
            "run_dir": str(tmp_path / "run"),
        }
    )
    return config


def test_pipeline_trains_and_persists(tmp_path):
    config = _tiny_config(tmp_path)
    _write_samples(Path(config["data"]["samples"]))

    result = pipelines.run_pipeline(config)

    assert result.steps == 45
    assert np.isfinite(result.average_loss)
    weights = Path(result.weights_path)
    assert weights.stat().st_size == (4 * 6 + 6 + 6 * 3 + 3) * 8
    lines = Path(result.metrics_path).read_text().splitlines()
    assert len(lines) == 45
    first = json.loads(lines[0])
    assert set(first) == {"step", "label", "loss", "average_loss"}
    assert (tmp_path / "run" / "metrics.csv").exists()
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["summary"]["epochs"] == 5
    assert manifest["config"]["train"]["steps"] == 45


def test_pipeline_resumes_from_saved_weights(tmp_path):
    config = _tiny_config(tmp_path)
    _write_samples(Path(config["data"]["samples"]))
    pipelines.run_pipeline(config)
    saved = np.fromfile(config["train"]["weights"], dtype="<f8")

    config["train"]["steps"] = 0
    network = pipelines.build_network(config["network"])
    network.load_weights(config["train"]["weights"])
    assert np.array_equal(network.engine.flatten_parameters(), saved)


def test_pipeline_without_samples_skips_training(tmp_path):
    config = _tiny_config(tmp_path)
    result = pipelines.run_pipeline(config)
    assert result.steps == 0
    assert np.isnan(result.average_loss)
    assert Path(result.weights_path).exists()


def test_presets_and_config_files(tmp_path):
    names = pipelines.presets()
    assert {"digits-sigmoid", "tiny-sigmoid", "digits-leaky-input-bias"} <= set(names)
    file_preset = pipelines.load_preset("digits-leaky-input-bias")
    assert file_preset["network"]["bias_indexing"] == "input"

    override = tmp_path / "override.yaml"
    override.write_text(yaml.safe_dump({"train": {"steps": 3}}))
    merged = pipelines.merge_config(pipelines.load_preset("tiny-sigmoid"), pipelines.load_config(override))
    assert merged["train"]["steps"] == 3
    assert merged["train"]["learning_rate"] == 0.1

    with pytest.raises(KeyError):
        pipelines.load_preset("missing")
    with pytest.raises(KeyError):
        pipelines.run_pipeline({"network": {}})
