"""Datasets for logicnet."""

from .logic import GATE_NAMES, GATES, cycle_examples, truth_table

__all__ = ["GATE_NAMES", "GATES", "cycle_examples", "truth_table"]
