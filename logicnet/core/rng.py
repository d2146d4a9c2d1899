"""Random sources for network initialisation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .types import RandomSource

MODULUS = 2147483647
MULTIPLIER = 16807


@dataclass
class MinStdRandom:
    """Park-Miller "minimal standard" linear congruential generator.

    Each instance owns its state, so independent runs never share a stream.
    Calling the instance advances the state and returns ``state / MODULUS``.
    """

    seed: int = 1

    def __post_init__(self) -> None:
        if not 1 <= int(self.seed) <= MODULUS - 1:
            raise ValueError(f"seed must be in [1, {MODULUS - 1}], got {self.seed}")
        self.state = int(self.seed)

    def __call__(self) -> float:
        self.state = (self.state * MULTIPLIER) % MODULUS
        return self.state / MODULUS

    def reset(self) -> None:
        self.state = int(self.seed)


def numpy_source(rng: np.random.Generator) -> RandomSource:
    """Adapt a numpy ``Generator`` into a zero-argument random source."""

    def draw() -> float:
        return float(rng.random())

    return draw


__all__ = ["MinStdRandom", "numpy_source", "MODULUS", "MULTIPLIER"]
