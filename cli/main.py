"""Command line entry point for MLPNets training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from mlpnets.training import pipelines


def _format_result(result) -> str:
    payload = {
        "converged": result.converged,
        "epochs": result.epochs,
        "global_error": result.global_error,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "summary": result.summary_path,
    }
    if result.message:
        payload["message"] = result.message
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="and-gate",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument("--seed", type=int, help="Seed for weight initialisation and shuffling")
    parser.add_argument("--learning-rate", type=float, help="Override the learning rate")
    parser.add_argument("--max-epochs", type=int, help="Override the epoch bound")
    parser.add_argument("--threshold", type=float, help="Acceptance threshold for accuracy")
    parser.add_argument("--hidden-layers", type=int, help="Number of hidden layers")
    parser.add_argument("--units-per-layer", type=int, help="Units in each hidden layer")
    parser.add_argument(
        "--max-global-error", type=float, help="Override the target global error"
    )
    parser.add_argument("--run-dir", type=Path, help="Directory receiving run artifacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Plot the global error curve"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = json.loads(json.dumps(pipelines.read_config_file(args.config)))
        if {"data", "model", "train"} <= set(override.keys()):
            config = override
        else:
            config = _merge(config, override)

    model_cfg = config.setdefault("model", {})
    if args.hidden_layers is not None:
        model_cfg["hidden_layers"] = int(args.hidden_layers)
    if args.units_per_layer is not None:
        model_cfg["units_per_layer"] = int(args.units_per_layer)

    train_cfg = config.setdefault("train", {})
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.learning_rate is not None:
        train_cfg["learning_rate"] = float(args.learning_rate)
    if args.max_epochs is not None:
        train_cfg["max_epochs"] = int(args.max_epochs)
    if args.threshold is not None:
        train_cfg["threshold"] = float(args.threshold)
    if args.max_global_error is not None:
        train_cfg["max_global_error"] = float(args.max_global_error)
    if args.run_dir is not None:
        train_cfg["run_dir"] = str(args.run_dir)
    if args.enable_plots:
        train_cfg["enable_plots"] = True

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))
    if not result.converged:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
