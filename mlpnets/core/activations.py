"""Activation utilities for MLPNets."""

from __future__ import annotations

import numpy as np

from .types import Array


def sigmoid(x: Array) -> Array:
    """Return the logistic squashing function ``1 / (1 + e^-x)``."""

    return 1.0 / (1.0 + np.exp(-x))


def sigmoid_prime(activation: Array) -> Array:
    """Derivative of :func:`sigmoid` expressed on its output ``a``: ``a(1-a)``."""

    return activation * (1.0 - activation)
