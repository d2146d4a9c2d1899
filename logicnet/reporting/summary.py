"""Deterministic run summarisation helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import numpy as np


def compute_auc(points: Sequence[float]) -> float:
    """Return the area under ``points`` along an implicit unit step axis."""

    if len(points) < 2:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    return float(np.sum((y[1:] + y[:-1]) * 0.5))


def read_records(path: str | Path) -> list[dict]:
    path = Path(path)
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


def _series(records: Iterable[Mapping[str, object]]) -> dict[str, list[float]]:
    series: dict[str, list[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in {"step", "seed"} or isinstance(value, bool):
                continue
            if isinstance(value, (int, float)):
                series.setdefault(key, []).append(float(value))
    return series


def write_summary(
    metrics_jsonl: str | Path,
    out_summary_json: str | Path,
    *,
    tail: int = 32,
    extra: Mapping[str, object] | None = None,
) -> str:
    """Summarise ``metrics_jsonl`` into ``out_summary_json``.

    Each numeric series gets ``min``/``max``/``mean``/``last`` plus the area
    under its last ``tail`` points. ``extra`` is stored verbatim under
    ``"final"``.
    """

    records = read_records(metrics_jsonl)
    tail_window = min(tail, len(records))
    metrics: dict[str, Mapping[str, float]] = {}
    for name, values in _series(records).items():
        arr = np.asarray(values, dtype=np.float64)
        metrics[name] = {
            "min": float(arr.min()),
            "max": float(arr.max()),
            "mean": float(arr.mean()),
            "last": float(arr[-1]),
            "tail_auc": compute_auc(arr[-tail_window:].tolist()) if tail_window else 0.0,
        }

    summary = {
        "version": 1,
        "records": len(records),
        "tail_window": tail_window,
        "metrics": metrics,
        "final": dict(extra or {}),
    }
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["compute_auc", "read_records", "write_summary"]
