"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple


class PlotAdapter:
    """Collect step losses and optionally emit a matplotlib figure on close."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_step(self, step: int, metrics):
        if not self.enable_plots:
            return
        loss = float(metrics.get("loss", 0.0))
        average = float(metrics.get("average_loss", loss))
        self._history.append((step, loss, average))

    def close(self) -> None:
        if not self.enable_plots or not self._history:
            return
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        steps, losses, averages = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(steps, losses, linewidth=0.5, alpha=0.4, label="step loss")
        ax.plot(steps, averages, label="rolling average")
        ax.set_xlabel("Step")
        ax.set_ylabel("MSE")
        ax.set_title("Training Curve")
        ax.legend()
        fig.savefig(self.run_dir / "loss.png")
        plt.close(fig)

    __call__ = on_step
