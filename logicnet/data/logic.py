"""Truth tables for two-input logic gates."""

from __future__ import annotations

from itertools import cycle
from typing import Callable, Dict, Iterator, Sequence

import numpy as np

from ..core.types import Array

GateFn = Callable[[int, int], int]


def xor_op(i: int, j: int) -> int:
    return i ^ j


def xnor_op(i: int, j: int) -> int:
    return 1 - (i ^ j)


def or_op(i: int, j: int) -> int:
    return i | j


def and_op(i: int, j: int) -> int:
    return i & j


def nor_op(i: int, j: int) -> int:
    return 1 - (i | j)


def nand_op(i: int, j: int) -> int:
    return 1 - (i & j)


GATES: Dict[str, GateFn] = {
    "XOR": xor_op,
    "XNOR": xnor_op,
    "OR": or_op,
    "AND": and_op,
    "NOR": nor_op,
    "NAND": nand_op,
}

GATE_NAMES = tuple(GATES)

INPUT_BITS = ((0, 0), (0, 1), (1, 0), (1, 1))


def resolve_gates(gates: Sequence[str]) -> list[str]:
    names = [str(g).upper() for g in gates]
    unknown = [g for g in names if g not in GATES]
    if unknown:
        raise KeyError(f"Unknown gate(s) {unknown}. Available gates: {', '.join(GATE_NAMES)}")
    if not names:
        raise ValueError("At least one gate is required")
    return names


def truth_table(gates: Sequence[str] = GATE_NAMES) -> tuple[Array, Array]:
    """Return ``(inputs, targets)`` for every 2-bit input.

    ``inputs`` has shape ``(4, 2)`` and ``targets`` ``(4, len(gates))``; column
    ``k`` of ``targets`` holds gate ``gates[k]``.
    """

    names = resolve_gates(gates)
    inputs = np.array(INPUT_BITS, dtype=np.float64)
    targets = np.array(
        [[float(GATES[name](i, j)) for name in names] for i, j in INPUT_BITS],
        dtype=np.float64,
    )
    return inputs, targets


def cycle_examples(inputs: Array, targets: Array) -> Iterator[tuple[Array, Array]]:
    """Yield ``(input, target)`` rows round-robin, forever.

    Step ``i`` yields row ``i % len(inputs)``.
    """

    if inputs.shape[0] != targets.shape[0]:
        raise ValueError(
            f"inputs and targets disagree on example count: {inputs.shape[0]} vs {targets.shape[0]}"
        )
    if inputs.shape[0] == 0:
        raise ValueError("Cannot cycle over an empty dataset")
    return cycle(zip(inputs, targets))


def provenance(gates: Sequence[str]) -> Dict[str, object]:
    return {"type": "logic_gates", "gates": resolve_gates(gates), "examples": len(INPUT_BITS)}


__all__ = [
    "GATES",
    "GATE_NAMES",
    "INPUT_BITS",
    "cycle_examples",
    "provenance",
    "resolve_gates",
    "truth_table",
]
