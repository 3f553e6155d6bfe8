"""Utility helpers for dataset loaders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

import numpy as np

from ..core.types import Array, Example


@dataclass(frozen=True)
class SplitIndices:
    """Indices for train/test partitions."""

    train: np.ndarray
    test: np.ndarray

    @property
    def sizes(self) -> Mapping[str, int]:
        return {"train": int(self.train.size), "test": int(self.test.size)}


def deterministic_split(
    n_samples: int,
    *,
    test_split: float = 0.0,
    seed: int = 0,
) -> SplitIndices:
    """Return deterministic indices for the requested hold-out ratio.

    With ``test_split == 0`` every sample is kept for training, in order.
    """

    if not 0 <= test_split < 1:
        raise ValueError("test_split must be in [0, 1)")
    indices = np.arange(n_samples)
    if test_split == 0:
        return SplitIndices(train=indices, test=indices[:0])

    rng = np.random.default_rng(seed)
    rng.shuffle(indices)
    test_size = min(max(int(round(n_samples * test_split)), 1), n_samples)
    if n_samples - test_size <= 0:
        raise ValueError("Not enough samples for the requested split")
    return SplitIndices(train=np.sort(indices[test_size:]), test=np.sort(indices[:test_size]))


def min_max_scale(
    array: Array,
    *,
    minimum: Array | None = None,
    span: Array | None = None,
) -> tuple[Array, Array, Array]:
    """Scale columns into ``[0, 1]`` returning the scaled array and parameters."""

    array = np.asarray(array, dtype=np.float64)
    if minimum is None or span is None:
        minimum = array.min(axis=0, keepdims=True)
        span = array.max(axis=0, keepdims=True) - minimum
        span = np.where(span == 0, 1.0, span)
    return (array - minimum) / span, minimum, span


def one_hot(labels: Array, num_classes: int) -> Array:
    indices = np.asarray(labels).reshape(-1).astype(int)
    return np.eye(num_classes, dtype=np.float64)[indices]


def to_examples(features: Array, targets: Array, indices: Array | None = None) -> Tuple[Example, ...]:
    """Pair the rows of ``features`` and ``targets`` into examples."""

    features = np.asarray(features, dtype=np.float64)
    targets = np.asarray(targets, dtype=np.float64).reshape(features.shape[0], -1)
    rows = range(features.shape[0]) if indices is None else indices
    return tuple(Example(features[i], targets[i]) for i in rows)


__all__ = ["SplitIndices", "deterministic_split", "min_max_scale", "one_hot", "to_examples"]
