"""Pipeline assembly: config -> dataset -> network -> trained run artifacts."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping, Sequence

from ..core.errors import DimensionMismatchError, UnsolvableProblemError
from ..core.network import Network
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .trainer import DEFAULT_MAX_EPOCHS, Trainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "and-gate": {
        "data": {"name": "truth_table", "options": {"gate": "and"}},
        "model": {"hidden_layers": 1, "units_per_layer": 2, "bias": True, "init_scale": 0.5},
        "train": {
            "learning_rate": 0.5,
            "threshold": 0.3,
            "max_global_error": 0.05,
            "max_epochs": 10000,
            "seed": 0,
            "run_dir": "runs/and-gate",
            "enable_plots": False,
        },
    },
    "or-gate": {
        "data": {"name": "truth_table", "options": {"gate": "or"}},
        "model": {"hidden_layers": 1, "units_per_layer": 2, "bias": True, "init_scale": 0.5},
        "train": {
            "learning_rate": 0.5,
            "threshold": 0.3,
            "max_global_error": 0.05,
            "max_epochs": 10000,
            "seed": 0,
            "run_dir": "runs/or-gate",
            "enable_plots": False,
        },
    },
    "xor-gate": {
        "data": {"name": "truth_table", "options": {"gate": "xor"}},
        "model": {"hidden_layers": 1, "units_per_layer": 4, "bias": True, "init_scale": 1.0},
        "train": {
            "learning_rate": 0.5,
            "threshold": 0.3,
            "max_global_error": 0.02,
            "max_epochs": 20000,
            "patience": 2000,
            "min_delta": 1e-7,
            "seed": 1,
            "run_dir": "runs/xor-gate",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None
_REQUIRED_SECTIONS = {"data", "model", "train"}


def read_config_file(path: Path) -> Mapping[str, object]:
    """Decode a JSON or YAML config file into a mapping."""

    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        presets: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = _REQUIRED_SECTIONS - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                presets[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = presets
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
    """Train one network as described by ``config`` and write its artifacts.

    Non-convergence is reported through ``RunResult.converged`` and
    ``RunResult.message``; configuration and dimension errors propagate.
    """

    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])
    model_cfg = dict(config["model"])
    train_cfg = dict(config["train"])

    dataset = registry.get_dataset(data_cfg["name"], **data_cfg.get("options", {}))
    data_spec = dataset.data_spec
    d_in = int(model_cfg.get("inputs", data_spec.d_in))
    d_out = int(model_cfg.get("outputs", data_spec.d_out))
    if d_in != data_spec.d_in:
        raise DimensionMismatchError("configured inputs", data_spec.d_in, d_in)
    if d_out != data_spec.d_out:
        raise DimensionMismatchError("configured outputs", data_spec.d_out, d_out)

    seed = int(train_cfg.get("seed", 0))
    network = Network(
        d_in,
        int(model_cfg.get("hidden_layers", 1)),
        int(model_cfg.get("units_per_layer", 4)),
        d_out,
        bias=bool(model_cfg.get("bias", True)),
        init_scale=float(model_cfg.get("init_scale", 0.5)),
        seed=seed,
    )

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)
    learning_rate = float(train_cfg.get("learning_rate", 0.25))
    threshold = float(train_cfg.get("threshold", 0.5))
    max_global_error = float(train_cfg.get("max_global_error", 0.05))
    max_epochs = int(train_cfg.get("max_epochs", DEFAULT_MAX_EPOCHS))
    patience = train_cfg.get("patience")
    patience = int(patience) if patience is not None else None

    _print_startup_summary(
        dataset_name=dataset.name,
        dims=network.layer_sizes,
        bias=network.bias,
        learning_rate=learning_rate,
        max_global_error=max_global_error,
        max_epochs=max_epochs,
        param_count=network.parameter_count(),
    )

    train_jsonl = JsonlSink(run_dir / "metrics_train.jsonl", split="train", seed=seed)
    train_csv = CsvSink(run_dir / "metrics_train.csv", split="train")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    trainer = Trainer(network, callbacks=[train_jsonl, train_csv, plots])
    metric_names = train_cfg.get("metrics")
    if isinstance(metric_names, str):
        metric_names = [m.strip() for m in metric_names.split(",") if m.strip()]

    try:
        result = trainer.train(
            dataset.train,
            learning_rate=learning_rate,
            max_global_error=max_global_error,
            threshold=threshold,
            max_epochs=max_epochs,
            patience=patience,
            min_delta=float(train_cfg.get("min_delta", 1e-9)),
            shuffle=bool(train_cfg.get("shuffle", False)),
            seed=seed,
            stop_on_threshold=bool(train_cfg.get("stop_on_threshold", False)),
            metric_names=metric_names,
        )
        epochs, global_error, converged, message = result.epochs, result.global_error, True, ""
    except UnsolvableProblemError as exc:
        epochs, global_error, converged, message = exc.epochs, exc.global_error, False, str(exc)
    plots.close(target=max_global_error)

    eval_examples = dataset.test or dataset.train
    eval_metrics = trainer.evaluate(eval_examples, threshold=threshold, metric_names=metric_names)
    (run_dir / "metrics_test.json").write_text(json.dumps(eval_metrics, indent=2))

    outcome = {
        "converged": converged,
        "epochs": epochs,
        "global_error": global_error,
        "message": message,
        "test": dict(eval_metrics),
    }
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=_safe_config(config),
        topology={
            "layer_dims": network.layer_sizes,
            "bias": network.bias,
            "links": network.num_links,
        },
        dataset_provenance=dataset.provenance,
        outcome=outcome,
    )
    summary_path = write_summary(
        train_jsonl.path,
        run_dir / "summary.json",
        tail=int(train_cfg.get("summary_tail", 32)),
        target=max_global_error,
    )
    (run_dir / "config.json").write_text(json.dumps(_safe_config(config), indent=2))

    return RunResult(
        epochs=epochs,
        converged=converged,
        global_error=global_error,
        metrics_path=str(train_jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        message=message,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset.replace(":", "-")


def _safe_config(config: Mapping[str, object]) -> Mapping[str, object]:
    return json.loads(json.dumps(config))


def _print_startup_summary(
    *,
    dataset_name: str,
    dims: Sequence[int],
    bias: bool,
    learning_rate: float,
    max_global_error: float,
    max_epochs: int,
    param_count: int,
) -> None:
    print("=== MLPNets run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Layers        : {list(dims)}")
    print(f"Bias links    : {'yes' if bias else 'no'}")
    print(f"Learning rate : {learning_rate}")
    print(f"Target error  : {max_global_error}")
    print(f"Max epochs    : {max_epochs}")
    print(f"Parameters    : {param_count}")
    print("===================")


__all__ = ["run_pipeline", "load_preset", "presets", "read_config_file"]
