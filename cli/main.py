"""Command line entry point for logicnet training runs."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from logicnet.training import pipelines


def _format_result(result) -> str:
    payload = {
        "steps": result.steps,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "summary": result.summary_path,
        "checkpoint": result.checkpoint_path,
        "resumed": result.resumed,
        "final_loss": round(result.final_loss, 6),
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        default="logic-gates",
        help="Preset configuration to execute (see --list-presets)",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument("--checkpoint", type=Path, help="Checkpoint file to resume from and save to")
    parser.add_argument("--run-dir", type=Path, help="Directory for run artifacts")
    parser.add_argument(
        "--iterations",
        type=int,
        nargs="+",
        help="Iteration count of each training phase",
    )
    parser.add_argument("--hidden", type=int, help="Number of hidden units")
    parser.add_argument("--seed", type=int, help="Seed of the weight initialisation generator")
    parser.add_argument("--lr", type=float, help="Learning rate")
    parser.add_argument("--momentum", type=float, help="Momentum coefficient")
    parser.add_argument(
        "--gates",
        nargs="+",
        help="Logic gates to learn, in output order",
    )
    parser.add_argument(
        "--fresh", action="store_true", help="Ignore any existing checkpoint"
    )
    parser.add_argument(
        "--show-params", action="store_true", help="Print the final weights and biases"
    )
    parser.add_argument(
        "--enable-plots", action="store_true", help="Save the loss curve as loss.png"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Only print the JSON result line"
    )
    parser.add_argument(
        "--log-level", default="WARNING", help="Python logging level for diagnostics"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        import yaml

        return yaml.safe_load(text) or {}
    return json.loads(text)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _apply_args(config: dict, args: argparse.Namespace) -> dict:
    model = config.setdefault("model", {})
    data = config.setdefault("data", {})
    train = config.setdefault("train", {})
    if args.hidden is not None:
        model["n_hidden"] = int(args.hidden)
    if args.seed is not None:
        model["seed"] = int(args.seed)
    if args.gates:
        data["gates"] = [g.upper() for g in args.gates]
    if args.iterations:
        train["phases"] = [int(n) for n in args.iterations]
    if args.lr is not None:
        train["lr"] = float(args.lr)
    if args.momentum is not None:
        train["momentum"] = float(args.momentum)
    if args.checkpoint is not None:
        train["checkpoint_path"] = str(args.checkpoint)
    if args.run_dir is not None:
        train["run_dir"] = str(args.run_dir)
    if args.fresh:
        train["resume"] = False
    if args.show_params:
        train["show_params"] = True
    if args.enable_plots:
        train["enable_plots"] = True
    if args.quiet:
        train["verbose"] = False
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    try:
        config = pipelines.load_preset(args.preset)
    except KeyError as exc:
        raise SystemExit(str(exc.args[0])) from None
    config = json.loads(json.dumps(config))

    if args.config:
        override = _load_override(args.config)
        if {"model", "data", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = _merge(config, override)

    config = _apply_args(config, args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
