"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping, Tuple

from ..core.types import Example

TASK_TYPES = frozenset({"regression", "binary", "multiclass"})


@dataclass(frozen=True)
class DataSpec:
    """Structural information about a dataset.

    Attributes
    ----------
    d_in:
        Number of input values per example.
    d_out:
        Number of target values per example.
    task_type:
        One of ``{"regression", "binary", "multiclass"}``.
    num_classes:
        Number of discrete classes for ``"multiclass"`` datasets.
    normalization:
        Scaling applied to inputs or targets, kept for reproducibility.
    """

    d_in: int
    d_out: int
    task_type: str
    num_classes: int | None = None
    normalization: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DatasetSpec:
    """A dataset registered in the system, already split into examples."""

    name: str
    train: Tuple[Example, ...]
    test: Tuple[Example, ...]
    data_spec: DataSpec
    provenance: Dict[str, Any]

    @property
    def splits(self) -> Dict[str, int]:
        return {"train": len(self.train), "test": len(self.test)}


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("iris")
        def make_iris(**kwargs):
            ...

    or directly::

        register_dataset("iris", make_iris)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str | None = None, /, **options: Any) -> DatasetSpec:
    """Return the :class:`DatasetSpec` for ``dataset``."""

    if dataset is None:
        if "name" in options:
            dataset = str(options.pop("name"))
        else:
            raise TypeError("Dataset name must be provided")

    if dataset not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown dataset {dataset!r}. Available datasets: {available}")

    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    data_spec = spec.data_spec
    if data_spec.task_type not in TASK_TYPES:
        raise ValueError(f"Invalid task type: {data_spec.task_type}")
    if data_spec.task_type == "multiclass" and data_spec.num_classes is None:
        raise ValueError("Multiclass datasets must define num_classes")
    if not spec.train:
        raise ValueError(f"Dataset {spec.name!r} has no training examples")
    for example in spec.train + spec.test:
        if example.inputs.size != data_spec.d_in or example.targets is None:
            raise ValueError(f"Dataset {spec.name!r} has an example that disagrees with d_in")
        if example.targets.size != data_spec.d_out:
            raise ValueError(f"Dataset {spec.name!r} has an example that disagrees with d_out")


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
