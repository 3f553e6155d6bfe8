"""Core numerical primitives for MLPNets."""

from . import activations, backprop, errors, links, network, types, units

__all__ = ["activations", "backprop", "errors", "links", "network", "types", "units"]
