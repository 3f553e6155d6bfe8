"""MLPNets public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.errors import (
    ConfigurationError,
    DimensionMismatchError,
    NetworkError,
    NotComputedError,
    UnsolvableProblemError,
)
from .core.network import Network
from .core.types import Example
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer, train

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "Example",
    "Network",
    "NetworkError",
    "NotComputedError",
    "Trainer",
    "UnsolvableProblemError",
    "activations",
    "load_preset",
    "presets",
    "run_pipeline",
    "train",
    "types",
]
