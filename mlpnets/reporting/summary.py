"""Deterministic summaries of a run's per-epoch metrics."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

_NON_METRIC_KEYS = frozenset({"epoch", "seed"})


def _area(y: np.ndarray, x: np.ndarray) -> float:
    trapezoid = getattr(np, "trapezoid", None)
    if callable(trapezoid):
        return float(trapezoid(y, x))
    return float(np.trapz(y, x))


def compute_auc(points: Sequence[float]) -> float:
    """Return the area-under-curve of ``points`` along an implicit epoch axis."""

    if not points:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    return _area(y, np.arange(y.size, dtype=np.float64))


def read_records(metrics_jsonl: str | Path) -> List[Dict[str, object]]:
    path = Path(metrics_jsonl)
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


def _columns(records: Sequence[Mapping[str, object]]) -> Dict[str, np.ndarray]:
    columns: Dict[str, List[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in _NON_METRIC_KEYS or isinstance(value, bool):
                continue
            if isinstance(value, (int, float)):
                columns.setdefault(key, []).append(float(value))
    return {name: np.asarray(values) for name, values in columns.items()}


def _describe(values: np.ndarray, tail_window: int) -> Dict[str, float]:
    tail = values[-tail_window:] if tail_window else values[:0]
    return {
        "first": float(values[0]),
        "last": float(values[-1]),
        "min": float(values.min()),
        "max": float(values.max()),
        "mean": float(values.mean()),
        "tail_auc": compute_auc(tail.tolist()),
    }


def summarise(
    records: Sequence[Mapping[str, object]],
    *,
    tail: int = 32,
    target: float | None = None,
) -> Dict[str, object]:
    """Reduce per-epoch records to curve statistics.

    ``best_epoch`` is the epoch with the lowest ``global_error``.  When
    ``target`` is given, ``epochs_to_target`` is the first epoch whose global
    error is at or below it (``None`` if it never was).
    """

    tail_window = min(tail, len(records))
    summary: Dict[str, object] = {
        "version": 1,
        "epochs": len(records),
        "tail_window": tail_window,
        "metrics": {
            name: _describe(values, tail_window)
            for name, values in sorted(_columns(records).items())
        },
    }

    curve = [(int(r["epoch"]), float(r["global_error"])) for r in records if "global_error" in r]
    if curve:
        summary["best_epoch"] = min(curve, key=lambda point: point[1])[0]
    if target is not None:
        summary["target"] = float(target)
        summary["epochs_to_target"] = next(
            (epoch for epoch, error in curve if error <= target), None
        )
    return summary


def write_summary(
    metrics_jsonl: str | Path,
    out_summary_json: str | Path,
    *,
    tail: int = 32,
    target: float | None = None,
) -> str:
    """Write a deterministic summary for ``metrics_jsonl``."""

    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    summary = summarise(read_records(metrics_jsonl), tail=tail, target=target)
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["compute_auc", "read_records", "summarise", "write_summary"]
