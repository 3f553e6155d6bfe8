"""Layers and the unit views exposed by :class:`mlpnets.core.network.Network`."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Tuple

import numpy as np

from .errors import NotComputedError
from .types import Array


class UnitKind(str, Enum):
    INPUT = "input"
    HIDDEN = "hidden"
    OUTPUT = "output"


@dataclass
class Layer:
    """Per-layer state: activations, error signals and (outputs only) targets.

    ``NaN`` marks a value that has not been set or computed for the current
    example.
    """

    index: int
    kind: UnitKind
    width: int
    activations: Array = field(init=False, repr=False)
    errors: Array = field(init=False, repr=False)
    targets: Array = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.activations = np.full(self.width, np.nan, dtype=np.float64)
        self.errors = np.full(self.width, np.nan, dtype=np.float64)
        self.targets = np.full(self.width, np.nan, dtype=np.float64)

    @property
    def computed(self) -> bool:
        return not bool(np.isnan(self.activations).any())

    def invalidate(self) -> None:
        if self.kind is not UnitKind.INPUT:
            self.activations.fill(np.nan)
        self.errors.fill(np.nan)


def _optional(value: float) -> float | None:
    return None if math.isnan(value) else float(value)


@dataclass(frozen=True)
class Unit:
    """Read-only snapshot of one unit of the network."""

    kind: ClassVar[UnitKind]

    layer: int
    position: int
    uid: int
    activation: float | None
    incoming: Tuple[int, ...]
    outgoing: Tuple[int, ...]

    def get_activation(self) -> float:
        if self.activation is None:
            raise NotComputedError(
                f"{self.kind.value} unit {self.position} of layer {self.layer} "
                "has no activation yet"
            )
        return self.activation


@dataclass(frozen=True)
class InputUnit(Unit):
    kind: ClassVar[UnitKind] = UnitKind.INPUT


@dataclass(frozen=True)
class HiddenUnit(Unit):
    kind: ClassVar[UnitKind] = UnitKind.HIDDEN

    error: float | None = None

    def get_error(self) -> float:
        if self.error is None:
            raise NotComputedError(
                f"hidden unit {self.position} of layer {self.layer} has no error signal yet"
            )
        return self.error


@dataclass(frozen=True)
class OutputUnit(Unit):
    kind: ClassVar[UnitKind] = UnitKind.OUTPUT

    error: float | None = None
    target: float | None = None

    def get_error(self) -> float:
        if self.error is None:
            raise NotComputedError(f"output unit {self.position} has no error signal yet")
        return self.error


def make_unit(
    layer: Layer, position: int, uid: int, incoming: Tuple[int, ...], outgoing: Tuple[int, ...]
) -> Unit:
    """Build the unit view matching ``layer.kind``."""

    common = dict(
        layer=layer.index,
        position=position,
        uid=uid,
        activation=_optional(layer.activations[position]),
    )
    if layer.kind is UnitKind.INPUT:
        return InputUnit(incoming=(), outgoing=outgoing, **common)
    if layer.kind is UnitKind.HIDDEN:
        return HiddenUnit(
            incoming=incoming,
            outgoing=outgoing,
            error=_optional(layer.errors[position]),
            **common,
        )
    return OutputUnit(
        incoming=incoming,
        outgoing=(),
        error=_optional(layer.errors[position]),
        target=_optional(layer.targets[position]),
        **common,
    )


__all__ = ["UnitKind", "Layer", "Unit", "InputUnit", "HiddenUnit", "OutputUnit", "make_unit"]
