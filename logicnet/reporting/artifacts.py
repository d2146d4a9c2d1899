"""Run artifact helpers."""

from __future__ import annotations

import json
import platform
import sys
import time
from pathlib import Path
from typing import Mapping

import numpy as np

from .metrics import git_sha


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    network: Mapping[str, object],
) -> str:
    """Write a manifest JSON file capturing reproducibility metadata."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "git_sha": git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "dataset": dict(dataset_provenance),
        "network": dict(network),
        "environment": {
            "python": platform.python_version(),
            "numpy": np.__version__,
            "byteorder": sys.byteorder,
        },
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


def write_predictions(
    path: str | Path,
    snapshots: Mapping[str, Mapping[str, object]],
) -> str:
    """Write the prediction tables recorded during a run."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshots, indent=2, sort_keys=True))
    return str(path)


__all__ = ["write_manifest", "write_predictions"]
