"""Plain-text tables for predictions and parameters."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..core.network import Network
from ..core.types import Array


def predict_table(network: Network, inputs: Array) -> Array:
    """Return a copy of ``network.output`` for every row of ``inputs``."""

    rows = [network.predict(row).copy() for row in np.asarray(inputs, dtype=np.float64)]
    return np.vstack(rows)


def format_predictions(
    inputs: Array,
    predictions: Array,
    gate_names: Sequence[str],
    title: str,
) -> str:
    lines = [title, f" Input -> ({', '.join(gate_names)})"]
    for row, preds in zip(inputs, predictions):
        bits = ", ".join(f"{v:.0f}" for v in row)
        values = " ".join(f"{p:.3f}" for p in preds)
        lines.append(f"{bits} = {values}")
    return "\n".join(lines)


def _matrix_lines(matrix: Array) -> list[str]:
    return [" ".join(f"{v:9.6f}" for v in row) for row in np.atleast_2d(matrix)]


def format_parameters(network: Network) -> str:
    """Render weights and biases, one matrix row per line."""

    lines = ["Weights (Input -> Hidden):"]
    lines += _matrix_lines(network.weights_hidden)
    lines.append("Biases (Hidden):")
    lines += _matrix_lines(network.biases_hidden)
    lines.append("Weights (Hidden -> Output):")
    lines += _matrix_lines(network.weights_output)
    lines.append("Biases (Output):")
    lines += _matrix_lines(network.biases_output)
    return "\n".join(lines)


__all__ = ["format_parameters", "format_predictions", "predict_table"]
