"""Error back-propagation for layered sigmoid networks.

One training step runs, strictly in this order:

1. output error ``(target - a) * a * (1 - a)``;
2. pending adjustments of the links entering the output layer;
3. hidden errors, last hidden layer first, from the finalised errors of the
   layer above;
4. pending adjustments of the links entering each hidden layer.

Only pending adjustments are written here; weights change when the caller
applies them with :meth:`mlpnets.core.links.LinkArena.apply`.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .activations import sigmoid_prime
from .errors import NotComputedError
from .links import LinkArena
from .types import Array
from .units import Layer


def output_errors(layer: Layer) -> Array:
    if np.isnan(layer.targets).any():
        raise NotComputedError("output targets are not set; load an example with targets")
    if not layer.computed:
        raise NotComputedError("output activations are not computed; call forward() first")
    a = layer.activations
    layer.errors[:] = (layer.targets - a) * sigmoid_prime(a)
    return layer.errors


def hidden_errors(layer: Layer, downstream: Layer, weights: Array) -> Array:
    """Compute the error of ``layer`` from ``downstream`` through ``weights``.

    ``weights`` is the ``(layer.width, downstream.width)`` matrix of links
    leaving ``layer``.
    """

    if np.isnan(downstream.errors).any():
        raise NotComputedError(
            f"layer {downstream.index} errors must be finalised before layer {layer.index}"
        )
    layer.errors[:] = (weights @ downstream.errors) * sigmoid_prime(layer.activations)
    return layer.errors


def stage_deltas(
    links: LinkArena,
    upstream: Layer,
    layer: Layer,
    learning_rate: float,
) -> None:
    """Write ``learning_rate * error * upstream_activation`` into pending slots."""

    pending = links.pending_matrix(upstream.index)
    pending[...] = learning_rate * np.outer(upstream.activations, layer.errors)
    pending_bias = links.pending_bias(layer.index)
    if pending_bias is not None:
        pending_bias[...] = learning_rate * layer.errors


def backpropagate(layers: Sequence[Layer], links: LinkArena, learning_rate: float) -> None:
    """Run steps 1-4 over ``layers`` (input layer first, output layer last)."""

    last = len(layers) - 1
    output_errors(layers[last])
    stage_deltas(links, layers[last - 1], layers[last], learning_rate)
    for idx in range(last - 1, 0, -1):
        hidden_errors(layers[idx], layers[idx + 1], links.matrix(idx))
        stage_deltas(links, layers[idx - 1], layers[idx], learning_rate)


__all__ = ["output_errors", "hidden_errors", "stage_deltas", "backpropagate"]
