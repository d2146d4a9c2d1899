"""logicnet public API."""

from .checkpoint import load_checkpoint, read_checkpoint_shape, save_checkpoint
from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.errors import (
    CheckpointCorruptError,
    CheckpointError,
    CheckpointNotFoundError,
    CheckpointWriteError,
    LogicNetError,
    ShapeError,
    ShapeMismatchError,
)
from .core.network import Network
from .core.rng import MinStdRandom, numpy_source
from .core.types import Shape
from .data.logic import GATE_NAMES, cycle_examples, truth_table
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "CheckpointCorruptError",
    "CheckpointError",
    "CheckpointNotFoundError",
    "CheckpointWriteError",
    "GATE_NAMES",
    "LogicNetError",
    "MinStdRandom",
    "Network",
    "Shape",
    "ShapeError",
    "ShapeMismatchError",
    "Trainer",
    "activations",
    "cycle_examples",
    "load_checkpoint",
    "load_preset",
    "numpy_source",
    "presets",
    "read_checkpoint_shape",
    "run_pipeline",
    "save_checkpoint",
    "truth_table",
    "types",
]
