"""Pipeline assembly for logic-gate training runs."""

from __future__ import annotations

import json
import logging
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..checkpoint import load_checkpoint, save_checkpoint
from ..core.errors import CheckpointCorruptError, CheckpointNotFoundError, ShapeMismatchError
from ..core.network import Network
from ..core.rng import MinStdRandom
from ..core.types import Array, RunResult
from ..data.logic import GATE_NAMES, cycle_examples, provenance, resolve_gates, truth_table
from ..reporting.artifacts import write_manifest, write_predictions
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from ..reporting.tables import format_parameters, format_predictions, predict_table
from .trainer import Trainer

logger = logging.getLogger(__name__)

_PRESETS: Dict[str, Mapping[str, object]] = {
    "logic-gates": {
        "model": {"n_hidden": 10, "seed": 1},
        "data": {"gates": list(GATE_NAMES)},
        "train": {
            "lr": 0.1,
            "momentum": 0.9,
            "phases": [4000, 16000],
            "checkpoint_interval": 1000,
            "resume": True,
            "log_every": 200,
            "run_dir": "runs/logic-gates",
            "enable_plots": False,
        },
    },
    "logic-gates-full": {
        "model": {"n_hidden": 10, "seed": 1},
        "data": {"gates": list(GATE_NAMES)},
        "train": {
            "lr": 0.1,
            "momentum": 0.9,
            "phases": [40000, 5000000],
            "checkpoint_interval": 100000,
            "resume": True,
            "log_every": 10000,
            "run_dir": "runs/logic-gates-full",
            "enable_plots": False,
            "show_params": True,
        },
    },
    "logic-gates-smoke": {
        "model": {"n_hidden": 10, "seed": 1},
        "data": {"gates": list(GATE_NAMES)},
        "train": {
            "lr": 0.1,
            "momentum": 0.9,
            "phases": [200, 200],
            "checkpoint_interval": 100,
            "resume": False,
            "log_every": 50,
            "run_dir": "runs/logic-gates-smoke",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_preset_file(file)
                missing = {"model", "data", "train"} - set(data)
                if missing:
                    raise KeyError(
                        f"Preset {file.name} is missing required sections: "
                        f"{', '.join(sorted(missing))}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train a network as described by ``config`` and write run artifacts.

    The run follows the classic driver: build a network from a seeded
    generator, resume from the checkpoint when one is compatible, then run
    each training phase over the truth table, checkpointing as it goes.
    """

    model_cfg = dict(config.get("model", {}))
    data_cfg = dict(config.get("data", {}))
    train_cfg = dict(config.get("train", {}))

    gates = resolve_gates(data_cfg.get("gates", GATE_NAMES))
    inputs, targets = truth_table(gates)

    seed = int(model_cfg.get("seed", 1))
    n_hidden = int(model_cfg.get("n_hidden", 10))
    lr = float(train_cfg.get("lr", 0.1))
    momentum = float(train_cfg.get("momentum", 0.9))
    phases = _resolve_phases(train_cfg)
    checkpoint_interval = int(train_cfg.get("checkpoint_interval", 0))
    log_every = int(train_cfg.get("log_every", 0))
    verbose = bool(train_cfg.get("verbose", True))

    run_dir = _resolve_run_dir(train_cfg)
    run_dir.mkdir(parents=True, exist_ok=True)
    checkpoint_path = Path(train_cfg.get("checkpoint_path") or run_dir / "checkpoint.dat")

    network = Network(inputs.shape[1], n_hidden, targets.shape[1], MinStdRandom(seed))
    resumed = False
    if train_cfg.get("resume", True):
        resumed = _try_resume(network, checkpoint_path, verbose)

    jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    trainer = Trainer(network, callbacks=[jsonl, csv_sink, plots])

    if verbose:
        _print_startup_summary(
            gates=gates,
            network=network,
            lr=lr,
            momentum=momentum,
            phases=phases,
            checkpoint=checkpoint_path,
        )

    snapshots: Dict[str, Mapping[str, object]] = {}
    _snapshot(snapshots, "initial", network, inputs, targets, gates, "Initial results:", verbose)

    total = 0
    for idx, iterations in enumerate(phases):
        trainer.run(
            cycle_examples(inputs, targets),
            iterations,
            lr=lr,
            momentum=momentum,
            log_every=log_every,
            checkpoint_path=checkpoint_path,
            checkpoint_interval=checkpoint_interval,
            step_offset=total,
        )
        total += iterations
        plots.mark_phase(total)
        _snapshot(
            snapshots,
            f"phase_{idx + 1}",
            network,
            inputs,
            targets,
            gates,
            f"\nResults after {iterations} iterations:",
            verbose,
        )

    save_checkpoint(network, checkpoint_path)
    if verbose and train_cfg.get("show_params", False):
        print(format_parameters(network))
    plots.close()

    final = snapshots[f"phase_{len(phases)}"] if phases else snapshots["initial"]
    predictions_path = write_predictions(run_dir / "predictions.json", snapshots)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=json.loads(json.dumps(config)),
        dataset_provenance=provenance(gates),
        network={
            "shape": list(network.shape.as_tuple()),
            "parameters": network.parameter_count(),
            "checkpoint": str(checkpoint_path),
            "resumed": resumed,
        },
    )
    summary_path = write_summary(
        jsonl.path,
        run_dir / "summary.json",
        tail=int(train_cfg.get("summary_tail", 32)),
        extra={
            "mse": final["mse"],
            "accuracy": final["accuracy"],
            "steps": total,
            "predictions": predictions_path,
        },
    )
    logger.info(f"Run finished after {total} steps, final MSE {final['mse']:.6f}")

    return RunResult(
        steps=total,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        checkpoint_path=str(checkpoint_path),
        resumed=resumed,
        final_loss=float(final["mse"]),
    )


def _try_resume(network: Network, path: Path, verbose: bool) -> bool:
    try:
        load_checkpoint(network, path)
    except CheckpointNotFoundError:
        message = "No checkpoint found, starting fresh training."
        resumed = False
    except (ShapeMismatchError, CheckpointCorruptError) as exc:
        logger.warning(f"Ignoring checkpoint {path}: {exc}")
        message = "Checkpoint incompatible, starting fresh training."
        resumed = False
    else:
        message = "Resumed from checkpoint."
        resumed = True
    if verbose:
        print(message)
    return resumed


def _snapshot(
    snapshots: Dict[str, Mapping[str, object]],
    key: str,
    network: Network,
    inputs: Array,
    targets: Array,
    gates: Sequence[str],
    title: str,
    verbose: bool,
) -> None:
    preds = predict_table(network, inputs)
    if verbose:
        print(format_predictions(inputs, preds, gates, title))
    correct = (np.round(preds) == targets).mean(axis=0)
    snapshots[key] = {
        "predictions": preds.tolist(),
        "mse": float(np.mean(np.square(preds - targets))),
        "accuracy": {gate: float(acc) for gate, acc in zip(gates, correct)},
    }


def _resolve_phases(train_cfg: Mapping[str, object]) -> List[int]:
    raw = train_cfg.get("phases")
    if raw is None:
        raw = [train_cfg.get("iterations", 0)]
    if isinstance(raw, (int, float)):
        raw = [raw]
    phases = [int(p) for p in raw]  # type: ignore[union-attr]
    if any(p < 0 for p in phases):
        raise ValueError(f"Phase iteration counts must be non-negative, got {phases}")
    return phases


def _resolve_run_dir(train_cfg: Mapping[str, object]) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp


def _print_startup_summary(
    *,
    gates: Sequence[str],
    network: Network,
    lr: float,
    momentum: float,
    phases: Sequence[int],
    checkpoint: Path,
) -> None:
    print("=== logicnet run ===")
    print(f"Gates         : {', '.join(gates)}")
    print(f"Shape         : {list(network.shape.as_tuple())}")
    print(f"Learning rate : {lr}")
    print(f"Momentum      : {momentum}")
    print(f"Phases        : {list(phases)}")
    print(f"Checkpoint    : {checkpoint}")
    print(f"Parameters    : {network.parameter_count()}")
    print("====================")


__all__ = ["run_pipeline", "load_preset", "presets"]
