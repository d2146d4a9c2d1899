"""Activation utilities for logicnet."""

from __future__ import annotations

import numpy as np

from .types import Array


def sigmoid(x: Array) -> Array:
    """Return the logistic sigmoid ``1 / (1 + e^-x)``.

    No clamping is applied; large-magnitude inputs saturate to exactly
    ``0.0`` or ``1.0``.
    """

    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-x))


def sigmoid_prime(f: Array) -> Array:
    """Derivative of the sigmoid expressed through its output ``f``."""

    return f * (1.0 - f)
