"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple


class PlotAdapter:
    """Collect the loss curve and optionally save it as ``loss.png``."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float]] = []
        self._phase_marks: List[int] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_step(self, step: int, metrics):
        if not self.enable_plots:
            return
        self._history.append((step, float(metrics.get("loss", 0.0))))

    def mark_phase(self, step: int) -> None:
        if self.enable_plots:
            self._phase_marks.append(step)

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        steps, losses = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(steps, losses)
        for mark in self._phase_marks:
            ax.axvline(mark, color="grey", linestyle="--", linewidth=0.8)
        ax.set_yscale("log")
        ax.set_xlabel("Iteration")
        ax.set_ylabel("MSE")
        ax.set_title("Logic gate training")
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_step
