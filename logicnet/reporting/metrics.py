"""Step-indexed metric sinks fed by :class:`~logicnet.training.trainer.Trainer`.

Both sinks truncate their file on construction, so one sink covers one run.
Non-numeric metric values are dropped.
"""

from __future__ import annotations

import csv
import json
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping


def git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):
        return "unknown"
    return out.decode().strip()


class _StepSink:
    def __init__(self, path: str | Path, phase: str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.phase = phase

    def _record(self, step: int, metrics: Mapping[str, float]) -> Dict[str, object]:
        record: Dict[str, object] = {"step": int(step), "phase": self.phase}
        for key, value in metrics.items():
            if isinstance(value, (int, float)):
                record[key] = float(value)
        return record

    def _append(self, record: Dict[str, object]) -> None:
        raise NotImplementedError

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        self._append(self._record(step, metrics))

    __call__ = on_step


class JsonlSink(_StepSink):
    """One JSON object per line, tagged with the run seed and git revision."""

    def __init__(
        self,
        path: str | Path,
        *,
        phase: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        super().__init__(path, phase)
        self.seed = seed
        self.sha = sha or git_sha()

    def _record(self, step: int, metrics: Mapping[str, float]) -> Dict[str, object]:
        record = super()._record(step, metrics)
        record["seed"] = self.seed
        record["sha"] = self.sha
        return record

    def _append(self, record: Dict[str, object]) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")


class CsvSink(_StepSink):
    """CSV rows whose columns are fixed by the first record written."""

    def __init__(self, path: str | Path, *, phase: str = "train") -> None:
        super().__init__(path, phase)
        self.fieldnames: List[str] | None = None

    def _append(self, record: Dict[str, object]) -> None:
        first = self.fieldnames is None
        if first:
            self.fieldnames = ["step", "phase"] + sorted(k for k in record if k not in ("step", "phase"))
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self.fieldnames, extrasaction="ignore")
            if first:
                writer.writeheader()
            writer.writerow(record)


__all__ = ["CsvSink", "JsonlSink", "git_sha"]
