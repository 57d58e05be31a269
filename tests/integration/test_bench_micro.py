import subprocess
import sys
from pathlib import Path

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "bench_micro.py"


def test_bench_micro_runs_quickly(tmp_path):
    out = tmp_path / "bench"
    out.mkdir(parents=True, exist_ok=True)
    subprocess.check_call(
        [sys.executable, str(SCRIPT), "--seeds", "123", "--steps", "16", "--out", str(out)]
    )
    md = (out / "bench_micro.md").read_text(encoding="utf-8")
    assert "| LIVE |" in md and "| SCRATCH |" in md and "| INPUT-FLAG |" in md
    assert (out / "bench_micro.csv").exists()
