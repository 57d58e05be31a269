import json
from pathlib import Path

import numpy as np
import pytest

from cli.main import main
from sketchnet.core.types import TrainingSample
from sketchnet.data.samples import SampleStore


def _seed_samples(path: Path) -> None:
    store = SampleStore(num_classes=3)
    for label in (0, 1, 2, 1):
        features = np.zeros(4)
        features[label] = 1.0
        store.add_sample(TrainingSample(features=features, label=label))
    store.save(path)


def test_cli_tiny_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _seed_samples(Path("nn/tiny_samples.xml"))
    main(["--preset", "tiny-sigmoid", "--steps", "12", "--dump-config", "resolved.json"])

    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["steps"] == 12
    assert Path("nn/tiny_weights.wab").exists()
    assert (Path("runs/tiny-sigmoid") / "metrics.jsonl").exists()
    assert (Path("runs/tiny-sigmoid") / "manifest.json").exists()
    resolved = json.loads(Path("resolved.json").read_text())
    assert resolved["train"]["steps"] == 12


def test_cli_overrides(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _seed_samples(tmp_path / "custom.xml")
    main(
        [
            "--preset",
            "tiny-sigmoid",
            "--samples",
            str(tmp_path / "custom.xml"),
            "--weights",
            str(tmp_path / "w.wab"),
            "--run-dir",
            str(tmp_path / "out"),
            "--steps",
            "5",
            "--seed",
            "3",
            "--no-train-bias",
        ]
    )
    assert (tmp_path / "w.wab").exists()
    lines = (tmp_path / "out" / "metrics.jsonl").read_text().splitlines()
    assert len(lines) == 5


def test_cli_lists_presets(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list-presets"])
    assert excinfo.value.code == 0
    assert "tiny-sigmoid" in capsys.readouterr().out.split()
