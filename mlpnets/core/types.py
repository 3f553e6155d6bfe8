"""Core typing contracts for MLPNets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

import numpy as np

Array = np.ndarray


def _frozen_vector(values) -> Array:
    array = np.array(values, dtype=np.float64).reshape(-1)
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class Example:
    """A single labelled example.

    ``inputs`` holds one value per input unit and ``targets`` one value per
    output unit.  Both are stored as read-only ``float64`` vectors so the
    network can never mutate caller data.  ``targets`` may be ``None`` when
    the example is only used for inference.
    """

    inputs: Array
    targets: Array | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", _frozen_vector(self.inputs))
        if self.targets is not None:
            object.__setattr__(self, "targets", _frozen_vector(self.targets))


@dataclass(frozen=True)
class ModelDescription:
    """Description of the layered network topology."""

    layer_dims: List[int]
    bias: bool = True


EpochMetrics = Mapping[str, float]


@dataclass
class TrainResult:
    """Summary returned by :meth:`mlpnets.training.trainer.Trainer.train`."""

    epochs: int
    global_error: float
    accuracy: float
    converged: bool = True
    history: List[Tuple[int, Dict[str, float]]] = field(default_factory=list, repr=False)


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`mlpnets.training.pipelines.run_pipeline`."""

    epochs: int
    converged: bool
    global_error: float
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    message: str = ""
