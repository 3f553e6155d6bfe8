"""Boolean gate truth tables."""

from __future__ import annotations

import itertools
from typing import Callable, Dict, Sequence

import numpy as np

from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import to_examples

GATES: Dict[str, Callable[[Sequence[int]], bool]] = {
    "and": all,
    "or": any,
    "nand": lambda bits: not all(bits),
    "nor": lambda bits: not any(bits),
    "xor": lambda bits: sum(bits) % 2 == 1,
    "xnor": lambda bits: sum(bits) % 2 == 0,
}


def truth_table(gate: str, arity: int = 2) -> tuple[np.ndarray, np.ndarray]:
    """Return every input combination (in binary counting order) and its label."""

    try:
        fn = GATES[gate.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(GATES))
        raise KeyError(f"Unknown gate {gate!r}. Available gates: {available}") from exc
    if arity < 1:
        raise ValueError("arity must be >= 1")
    rows = list(itertools.product((0, 1), repeat=arity))
    inputs = np.array(rows, dtype=np.float64)
    targets = np.array([[1.0 if fn(row) else 0.0] for row in rows])
    return inputs, targets


@register_dataset("truth_table")
def build_truth_table(*, gate: str = "and", arity: int = 2, **_: object) -> DatasetSpec:
    inputs, targets = truth_table(gate, arity)
    examples = to_examples(inputs, targets)
    return DatasetSpec(
        name=f"truth_table:{gate.lower()}",
        train=examples,
        test=examples,
        data_spec=DataSpec(d_in=arity, d_out=1, task_type="binary"),
        provenance={"type": "truth_table", "gate": gate.lower(), "arity": arity},
    )


__all__ = ["GATES", "truth_table", "build_truth_table"]
