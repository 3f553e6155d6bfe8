"""Fully-connected layered network of sigmoid units."""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Integral
from typing import Dict, List, Mapping, Sequence

import numpy as np

from . import backprop
from .activations import sigmoid
from .errors import ConfigurationError, DimensionMismatchError, NotComputedError
from .links import LinkArena
from .types import Array, Example, ModelDescription
from .units import Layer, Unit, UnitKind, make_unit

_IDLE = "idle"
_LOADED = "loaded"
_FORWARDED = "forwarded"
_BACKPROPAGATED = "backpropagated"
_APPLIED = "applied"


def _check_count(name: str, value: object, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return int(value)


@dataclass
class Network:
    """Input layer, ``num_hidden_layers`` hidden layers and an output layer.

    Every unit of layer ``k`` is linked to every unit of layer ``k + 1``.
    The topology is fixed at construction; only link weights change.

    A training step is ``load_example -> forward -> backpropagate ->
    apply_updates``.  Calling the steps out of order raises
    :class:`~mlpnets.core.errors.NotComputedError`.
    """

    num_inputs: int
    num_hidden_layers: int
    units_per_hidden_layer: int
    num_outputs: int
    bias: bool = True
    init_scale: float = 0.5
    seed: int = 0
    layers: List[Layer] = field(init=False, repr=False)
    links: LinkArena = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.num_inputs = _check_count("num_inputs", self.num_inputs, 1)
        self.num_hidden_layers = _check_count("num_hidden_layers", self.num_hidden_layers, 0)
        self.num_outputs = _check_count("num_outputs", self.num_outputs, 1)
        self.units_per_hidden_layer = _check_count(
            "units_per_hidden_layer",
            self.units_per_hidden_layer,
            1 if self.num_hidden_layers else 0,
        )
        if not self.init_scale > 0:
            raise ConfigurationError(f"init_scale must be > 0, got {self.init_scale}")

        self.layers = [Layer(0, UnitKind.INPUT, self.num_inputs)]
        for idx in range(1, self.num_hidden_layers + 1):
            self.layers.append(Layer(idx, UnitKind.HIDDEN, self.units_per_hidden_layer))
        self.layers.append(Layer(len(self.layers), UnitKind.OUTPUT, self.num_outputs))
        self.links = LinkArena(self.layer_sizes, bias=self.bias)
        self.reset(self.seed)

    # ------------------------------------------------------------------
    # Topology

    @property
    def layer_sizes(self) -> List[int]:
        return [layer.width for layer in self.layers]

    @property
    def num_links(self) -> int:
        return len(self.links)

    def describe(self) -> ModelDescription:
        return ModelDescription(layer_dims=self.layer_sizes, bias=self.bias)

    def links_between(self, layer: int) -> int:
        return self.links.links_between(layer)

    def parameter_count(self) -> int:
        return len(self.links)

    def unit(self, layer: int, position: int) -> Unit:
        state = self.layers[layer]
        if not 0 <= position < state.width:
            raise IndexError(f"layer {layer} has {state.width} units, got position {position}")
        uid = self.links.unit_id(layer, position)
        return make_unit(
            state,
            position,
            uid,
            incoming=self.links.incoming(uid),
            outgoing=self.links.outgoing(uid),
        )

    def units(self, layer: int) -> List[Unit]:
        return [self.unit(layer, pos) for pos in range(self.layers[layer].width)]

    # ------------------------------------------------------------------
    # Evaluation

    def reset(self, seed: int) -> None:
        """Re-draw the weights from ``seed`` and forget the current example."""

        self.seed = seed
        self.links.initialise(np.random.default_rng(seed), self.init_scale)
        for layer in self.layers:
            layer.activations.fill(np.nan)
            layer.errors.fill(np.nan)
            layer.targets.fill(np.nan)
        self._phase = _IDLE

    def load_example(self, example: Example) -> None:
        inputs = example.inputs
        if inputs.size != self.num_inputs:
            raise DimensionMismatchError("input vector", self.num_inputs, int(inputs.size))
        targets = example.targets
        if targets is not None and targets.size != self.num_outputs:
            raise DimensionMismatchError("target vector", self.num_outputs, int(targets.size))

        for layer in self.layers:
            layer.invalidate()
        self.layers[0].activations[:] = inputs
        self.layers[-1].targets[:] = np.nan if targets is None else targets
        self.links.clear_pending()
        self._phase = _LOADED

    def forward(self) -> Array:
        """Propagate the loaded inputs and return the output activations."""

        if self._phase == _IDLE:
            raise NotComputedError("load an example before calling forward()")
        upstream = self.layers[0]
        for layer in self.layers[1:]:
            z = upstream.activations @ self.links.matrix(upstream.index)
            bias = self.links.bias_vector(layer.index)
            if bias is not None:
                z = z + bias
            layer.activations[:] = sigmoid(z)
            layer.errors.fill(np.nan)
            upstream = layer
        self._phase = _FORWARDED
        return self.output_activations()

    def output_activations(self) -> Array:
        output = self.layers[-1]
        if not output.computed:
            raise NotComputedError("call forward() before reading output activations")
        return output.activations.copy()

    def predict(self, inputs: Sequence[float] | Array) -> Array:
        self.load_example(Example(inputs))
        return self.forward()

    # ------------------------------------------------------------------
    # Learning

    def backpropagate(self, learning_rate: float) -> None:
        """Compute error signals and stage the pending link adjustments."""

        if self._phase != _FORWARDED:
            raise NotComputedError(
                f"backpropagate() needs a fresh forward() pass (current step: {self._phase})"
            )
        if not learning_rate > 0:
            raise ConfigurationError(f"learning_rate must be > 0, got {learning_rate}")
        backprop.backpropagate(self.layers, self.links, float(learning_rate))
        self._phase = _BACKPROPAGATED

    def apply_updates(self) -> None:
        if self._phase != _BACKPROPAGATED:
            raise NotComputedError(
                f"apply_updates() must follow backpropagate() (current step: {self._phase})"
            )
        self.links.apply()
        self._phase = _APPLIED

    # ------------------------------------------------------------------
    # In-memory weight snapshots

    def state_dict(self) -> Mapping[str, Array]:
        state: Dict[str, Array] = {}
        for idx in range(len(self.layers) - 1):
            state[f"W{idx}"] = self.links.matrix(idx).copy()
        for idx in range(1, len(self.layers)):
            bias = self.links.bias_vector(idx)
            if bias is not None:
                state[f"b{idx}"] = bias.copy()
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        current = self.state_dict()
        for key, expected in current.items():
            if key not in state:
                raise KeyError(f"Missing weight {key} in state dict")
            value = np.asarray(state[key], dtype=np.float64)
            if value.shape != expected.shape:
                raise DimensionMismatchError(f"weights {key}", expected.size, value.size)
        for key in current:
            value = np.asarray(state[key], dtype=np.float64)
            if key.startswith("W"):
                self.links.matrix(int(key[1:]))[...] = value
            else:
                self.links.bias_vector(int(key[1:]))[...] = value
        self.links.clear_pending()
        for layer in self.layers:
            layer.invalidate()
        if self._phase != _IDLE:
            self._phase = _LOADED


__all__ = ["Network"]
