"""Metric helpers for the trainer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

import numpy as np

from ..core.types import Array


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


def default_metrics() -> List[str]:
    return ["mae", "max_error", "accuracy"]


def squared_errors(predictions: Array, targets: Array) -> Array:
    """Per (example, output) squared residuals ``(target - activation)^2``."""

    return np.square(targets - predictions)


def within_threshold(predictions: Array, targets: Array, threshold: float) -> Array:
    """Boolean mask of examples whose every output is within ``threshold``."""

    return np.all(np.abs(predictions - targets) < threshold, axis=-1)


def compute_metric(
    name: str,
    predictions: Array,
    targets: Array,
    *,
    threshold: float = 0.5,
) -> MetricResult:
    key = name.lower()
    preds = np.atleast_2d(predictions)
    targs = np.atleast_2d(targets)
    if key == "mse":
        value = float(np.mean(squared_errors(preds, targs)))
    elif key == "rmse":
        value = float(np.sqrt(np.mean(squared_errors(preds, targs))))
    elif key == "mae":
        value = float(np.mean(np.abs(preds - targs)))
    elif key == "max_error":
        value = float(np.max(np.abs(preds - targs)))
    elif key == "accuracy":
        value = float(np.mean(within_threshold(preds, targs, threshold)))
    else:
        raise KeyError(f"Unknown metric: {name}")
    return MetricResult(name=key, value=value)


def compute_metrics(
    names: Iterable[str],
    predictions: Array,
    targets: Array,
    *,
    threshold: float = 0.5,
) -> Mapping[str, float]:
    results: Dict[str, float] = {}
    for name in names:
        metric = compute_metric(name, predictions, targets, threshold=threshold)
        results[metric.name] = metric.value
    return results


__all__ = [
    "MetricResult",
    "compute_metric",
    "compute_metrics",
    "default_metrics",
    "squared_errors",
    "within_threshold",
]
