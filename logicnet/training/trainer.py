"""Online backpropagation with momentum for :class:`~logicnet.core.network.Network`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Sequence

import numpy as np

from ..checkpoint import save_checkpoint
from ..core.activations import sigmoid_prime
from ..core.errors import CheckpointWriteError, ShapeError
from ..core.network import Network, allocate, as_vector
from ..core.types import Array, Shape

logger = logging.getLogger(__name__)


class Trainer:
    """Gradient and momentum state bound to one network shape.

    ``grad_hidden``/``grad_output`` are overwritten on every step. The
    velocity buffers accumulate across the whole run and are only cleared
    by :meth:`reset`. Biases are updated without momentum.
    """

    def __init__(self, network: Network, callbacks: Sequence[object] | None = None) -> None:
        self.network = network
        self.shape: Shape = network.shape
        n_in, n_hid, n_out = self.shape.as_tuple()
        self.grad_hidden = allocate((n_hid,), "trainer_init")
        self.grad_output = allocate((n_out,), "trainer_init")
        self.velocity_hidden = allocate((n_in, n_hid), "trainer_init")
        self.velocity_output = allocate((n_hid, n_out), "trainer_init")
        self.callbacks = list(callbacks or [])

    def reset(self) -> None:
        for buf in (self.grad_hidden, self.grad_output, self.velocity_hidden, self.velocity_output):
            buf.fill(0.0)

    def train(
        self,
        network: Network,
        inputs: Sequence[float] | Array,
        target: Sequence[float] | Array,
        lr: float,
        momentum: float,
    ) -> float:
        """Apply one backpropagation step for a single example.

        Returns the mean squared error of the forward pass the step was
        computed from.
        """

        if network.shape != self.shape:
            raise ShapeError(
                f"Trainer was built for {self.shape.as_tuple()}, "
                f"got network {network.shape.as_tuple()}"
            )
        x = as_vector(inputs, network.n_inputs, "input")
        y = as_vector(target, network.n_outputs, "target")

        network.predict(x)
        hidden = network.hidden
        output = network.output

        self.grad_output[...] = (output - y) * sigmoid_prime(output)
        # Backpropagate through the output weights before they are updated.
        self.grad_hidden[...] = (network.weights_output @ self.grad_output) * sigmoid_prime(hidden)

        delta = np.outer(hidden, lr * self.grad_output)
        self.velocity_output *= momentum
        self.velocity_output += delta
        network.weights_output -= self.velocity_output
        network.biases_output -= lr * self.grad_output

        delta = np.outer(x, lr * self.grad_hidden)
        self.velocity_hidden *= momentum
        self.velocity_hidden += delta
        network.weights_hidden -= self.velocity_hidden
        network.biases_hidden -= lr * self.grad_hidden

        return float(np.mean(np.square(output - y)))

    def run(
        self,
        examples: Iterable[tuple[Array, Array]],
        iterations: int,
        *,
        lr: float,
        momentum: float,
        log_every: int = 0,
        checkpoint_path: str | Path | None = None,
        checkpoint_interval: int = 0,
        step_offset: int = 0,
    ) -> float:
        """Train for ``iterations`` steps drawn from ``examples``.

        ``examples`` is consumed lazily and must yield at least ``iterations``
        pairs. A checkpoint is written whenever ``i % checkpoint_interval == 0``
        for the zero-based step index ``i`` of this run; a failed periodic
        save is logged and training continues. Every ``log_every``
        steps the mean loss of the window is sent to ``on_step`` callbacks as
        ``step_offset + i + 1``. Returns the mean loss over the last window.
        """

        iterator: Iterator[tuple[Array, Array]] = iter(examples)
        window: list[float] = []
        last_mean = 0.0
        for i in range(iterations):
            try:
                inputs, target = next(iterator)
            except StopIteration:
                raise ValueError(f"examples exhausted after {i} of {iterations} steps") from None
            window.append(self.train(self.network, inputs, target, lr, momentum))
            if checkpoint_path is not None and checkpoint_interval > 0 and i % checkpoint_interval == 0:
                try:
                    save_checkpoint(self.network, checkpoint_path)
                except CheckpointWriteError as exc:
                    logger.error(f"Skipping checkpoint at step {step_offset + i}: {exc}")
            if log_every > 0 and (i + 1) % log_every == 0:
                last_mean = float(np.mean(window))
                self._emit_step(step_offset + i + 1, {"loss": last_mean})
                window.clear()
        if window:
            last_mean = float(np.mean(window))
            if log_every > 0:
                self._emit_step(step_offset + iterations, {"loss": last_mean})
        logger.debug(f"Finished {iterations} steps, last window loss {last_mean:.6f}")
        return last_mean

    def _emit_step(self, step: int, metrics: dict[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_step"):
                callback.on_step(step, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(step, metrics)


__all__ = ["Trainer"]
