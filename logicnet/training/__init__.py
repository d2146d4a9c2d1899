"""Training loops and run pipelines for logicnet."""

from .pipelines import load_preset, presets, run_pipeline
from .trainer import Trainer

__all__ = ["Trainer", "load_preset", "presets", "run_pipeline"]
