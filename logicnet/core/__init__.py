"""Core numerical primitives for logicnet."""

from . import activations, errors, network, rng, types

__all__ = ["activations", "errors", "network", "rng", "types"]
