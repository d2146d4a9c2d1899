"""Reporting utilities for logicnet."""

from .artifacts import write_manifest, write_predictions
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .summary import write_summary
from .tables import format_parameters, format_predictions, predict_table

__all__ = [
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "format_parameters",
    "format_predictions",
    "predict_table",
    "write_manifest",
    "write_predictions",
    "write_summary",
]
