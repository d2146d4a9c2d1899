"""Two-layer sigmoid network with an in-place forward-pass cache."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Sequence

import numpy as np

from .activations import sigmoid
from .errors import ShapeError
from .types import PARAMETER_ORDER, Array, Parameters, RandomSource, Shape


def allocate(shape: tuple[int, ...], owner: str) -> Array:
    """Return a zero-filled ``float64`` buffer.

    Running out of memory here is not recoverable: the process exits with a
    diagnostic naming ``owner`` instead of surfacing a ``MemoryError``.
    """

    try:
        return np.zeros(shape, dtype=np.float64)
    except MemoryError as exc:
        raise SystemExit(f"Memory allocation failed in {owner}") from exc


def as_vector(values: Sequence[float] | Array, length: int, what: str) -> Array:
    """Return a private 1-D ``float64`` copy of ``values`` with ``length`` items."""

    vec = np.array(values, dtype=np.float64)
    if vec.shape != (length,):
        raise ShapeError(f"{what} must have shape ({length},), got {vec.shape}")
    return vec


def xavier_limit(fan_in: int, fan_out: int) -> float:
    return math.sqrt(6.0 / (fan_in + fan_out))


@dataclass(eq=False)
class Network:
    """Single-hidden-layer feed-forward network with sigmoid units.

    The network owns six buffers: the four parameters and the ``hidden`` and
    ``output`` activations of the most recent :meth:`predict` call. Each
    call to :meth:`predict` overwrites the activation cache, so a value read
    from ``output`` is only valid until the next forward pass. Instances are
    not safe for concurrent use; callers must not run ``predict`` or a
    training step on the same network from more than one thread.
    """

    n_inputs: int
    n_hidden: int
    n_outputs: int
    rand: RandomSource = field(repr=False)
    weights_hidden: Array = field(init=False, repr=False)
    biases_hidden: Array = field(init=False, repr=False)
    weights_output: Array = field(init=False, repr=False)
    biases_output: Array = field(init=False, repr=False)
    hidden: Array = field(init=False, repr=False)
    output: Array = field(init=False, repr=False)

    def __post_init__(self) -> None:
        for name in ("n_inputs", "n_hidden", "n_outputs"):
            value = getattr(self, name)
            if int(value) != value or value <= 0:
                raise ShapeError(f"{name} must be a positive integer, got {value!r}")
            setattr(self, name, int(value))

        self.weights_hidden = allocate((self.n_inputs, self.n_hidden), "network_init")
        self.biases_hidden = allocate((self.n_hidden,), "network_init")
        self.weights_output = allocate((self.n_hidden, self.n_outputs), "network_init")
        self.biases_output = allocate((self.n_outputs,), "network_init")
        self.hidden = allocate((self.n_hidden,), "network_init")
        self.output = allocate((self.n_outputs,), "network_init")

        self._fill_uniform(self.weights_hidden, xavier_limit(self.n_inputs, self.n_hidden))
        self._fill_uniform(self.weights_output, xavier_limit(self.n_hidden, self.n_outputs))

    def _fill_uniform(self, buffer: Array, limit: float) -> None:
        # One draw per weight, consumed in row-major order.
        flat = buffer.reshape(-1)
        for idx in range(flat.size):
            flat[idx] = (float(self.rand()) * 2.0 - 1.0) * limit

    @property
    def shape(self) -> Shape:
        return Shape(self.n_inputs, self.n_hidden, self.n_outputs)

    def predict(self, inputs: Sequence[float] | Array) -> Array:
        """Run a forward pass and return the (cached) ``output`` buffer."""

        x = as_vector(inputs, self.n_inputs, "input")
        self.hidden[...] = sigmoid(x @ self.weights_hidden + self.biases_hidden)
        self.output[...] = sigmoid(self.hidden @ self.weights_output + self.biases_output)
        return self.output

    def parameters(self) -> Parameters:
        """Return the live parameter buffers in checkpoint order."""

        return {name: getattr(self, name) for name in PARAMETER_ORDER}

    def copy_parameters(self) -> Parameters:
        return {name: buf.copy() for name, buf in self.parameters().items()}

    def load_parameters(self, state: Dict[str, Array]) -> None:
        """Overwrite parameter buffers in place from ``state``.

        Every entry is validated before any buffer is written.
        """

        expected = self.shape.parameter_shapes()
        staged: Dict[str, Array] = {}
        for name in PARAMETER_ORDER:
            if name not in state:
                raise KeyError(f"Missing parameter {name} in state dict")
            value = np.asarray(state[name], dtype=np.float64)
            if value.shape != expected[name]:
                raise ShapeError(
                    f"{name} must have shape {expected[name]}, got {value.shape}"
                )
            staged[name] = value
        for name, value in staged.items():
            getattr(self, name)[...] = value

    def parameter_count(self) -> int:
        return self.shape.parameter_count()


__all__ = ["Network", "allocate", "as_vector", "xavier_limit"]
