"""Fisher's Iris measurements, as bundled with scikit-learn."""

from __future__ import annotations

import numpy as np
from sklearn.datasets import load_iris

from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, min_max_scale, one_hot, to_examples


@register_dataset("iris")
def build_iris_dataset(
    *,
    one_hot_targets: bool = True,
    test_split: float = 0.0,
    seed: int = 0,
    **_: object,
) -> DatasetSpec:
    """Return the 150 Iris flowers scaled into the sigmoid's range.

    Inputs are min-max scaled per feature.  Targets are one-hot over the
    three species or, with ``one_hot_targets=False``, a single output holding
    the class index scaled to ``{0, 0.5, 1}``.
    """

    bunch = load_iris()
    features, f_min, f_span = min_max_scale(bunch.data)
    labels = bunch.target.astype(int)
    num_classes = len(bunch.target_names)
    if one_hot_targets:
        targets = one_hot(labels, num_classes)
    else:
        targets = (labels / (num_classes - 1)).reshape(-1, 1).astype(np.float64)

    splits = deterministic_split(features.shape[0], test_split=test_split, seed=seed)
    data_spec = DataSpec(
        d_in=int(features.shape[1]),
        d_out=int(targets.shape[1]),
        task_type="multiclass",
        num_classes=num_classes,
        normalization={
            "inputs": {"min": f_min.flatten().tolist(), "span": f_span.flatten().tolist()}
        },
    )
    return DatasetSpec(
        name="iris",
        train=to_examples(features, targets, splits.train),
        test=to_examples(features, targets, splits.test),
        data_spec=data_spec,
        provenance={
            "type": "iris",
            "source": "sklearn.datasets.load_iris",
            "one_hot_targets": one_hot_targets,
            "test_split": test_split,
            "seed": seed,
        },
    )


__all__ = ["build_iris_dataset"]
