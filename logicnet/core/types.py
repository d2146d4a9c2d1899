"""Core typing contracts for logicnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

Array = np.ndarray

RandomSource = Callable[[], float]
"""Zero-argument callable returning a fresh uniform draw in ``[0, 1)``."""

Parameters = Dict[str, Array]

PARAMETER_ORDER = ("weights_hidden", "biases_hidden", "weights_output", "biases_output")


@dataclass(frozen=True)
class Shape:
    """Topology of a two-layer network."""

    n_inputs: int
    n_hidden: int
    n_outputs: int

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.n_inputs, self.n_hidden, self.n_outputs)

    def parameter_shapes(self) -> Dict[str, tuple[int, ...]]:
        """Return buffer shapes keyed by name, in checkpoint order."""

        return {
            "weights_hidden": (self.n_inputs, self.n_hidden),
            "biases_hidden": (self.n_hidden,),
            "weights_output": (self.n_hidden, self.n_outputs),
            "biases_output": (self.n_outputs,),
        }

    def parameter_count(self) -> int:
        return int(sum(int(np.prod(s)) for s in self.parameter_shapes().values()))


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`logicnet.training.pipelines.run_pipeline`."""

    steps: int
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    checkpoint_path: str = ""
    resumed: bool = False
    final_loss: float = 0.0
