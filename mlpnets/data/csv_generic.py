"""Generic CSV loader for regression and classification tasks."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder

from .registry import DatasetSpec, DataSpec, register_dataset
from .utils import deterministic_split, min_max_scale, one_hot, to_examples


def _load_csv(path: Path, target_col: str) -> tuple[np.ndarray, np.ndarray]:
    df = pd.read_csv(path)
    if target_col not in df.columns:
        raise KeyError(f"Target column {target_col!r} not found in CSV")
    y = df.pop(target_col).to_numpy()
    X = df.to_numpy(dtype=np.float64)
    return X, y


@register_dataset("csv")
def load_csv_dataset(
    *,
    csv_path: str | Path | None = None,
    target_col: str = "target",
    task: str = "classification",
    test_split: float = 0.0,
    seed: int = 0,
    scale_inputs: bool = True,
    **_: object,
) -> DatasetSpec:
    """Load a numeric CSV file.

    Classification labels are encoded with :class:`LabelEncoder` and one-hot
    expanded (a single 0/1 output for two classes); regression targets are
    min-max scaled into ``[0, 1]`` so the sigmoid outputs can reach them.
    """

    if csv_path is None:
        raise ValueError("The csv dataset requires `csv_path`")
    path = Path(csv_path)
    X, y_raw = _load_csv(path, target_col)

    normalization: dict[str, object] = {}
    if scale_inputs:
        X, x_min, x_span = min_max_scale(X)
        normalization["inputs"] = {"min": x_min.flatten().tolist(), "span": x_span.flatten().tolist()}

    num_classes: int | None = None
    if task == "classification":
        encoder = LabelEncoder()
        labels = encoder.fit_transform(y_raw)
        num_classes = int(len(encoder.classes_))
        if num_classes == 2:
            y = labels.reshape(-1, 1).astype(np.float64)
            task_type = "binary"
        else:
            y = one_hot(labels, num_classes)
            task_type = "multiclass"
        normalization["classes"] = [str(c) for c in encoder.classes_]
    elif task == "regression":
        y, t_min, t_span = min_max_scale(np.asarray(y_raw, dtype=np.float64).reshape(-1, 1))
        normalization["targets"] = {"min": t_min.flatten().tolist(), "span": t_span.flatten().tolist()}
        task_type = "regression"
    else:
        raise ValueError(f"Unknown csv task: {task}")

    splits = deterministic_split(X.shape[0], test_split=test_split, seed=seed)
    data_spec = DataSpec(
        d_in=int(X.shape[1]),
        d_out=int(y.shape[1]),
        task_type=task_type,
        num_classes=num_classes if task_type == "multiclass" else None,
        normalization=normalization,
    )
    return DatasetSpec(
        name=f"csv:{path.stem}",
        train=to_examples(X, y, splits.train),
        test=to_examples(X, y, splits.test),
        data_spec=data_spec,
        provenance={
            "type": "csv",
            "path": str(path),
            "target_col": target_col,
            "task": task,
            "rows": int(X.shape[0]),
            "test_split": test_split,
            "seed": seed,
        },
    )


__all__ = ["load_csv_dataset"]
