"""Arena holding every weighted link of a layered network.

Links are addressed by integer id.  The links joining layer ``k`` to layer
``k + 1`` occupy one contiguous block laid out row-major by
``(upstream position, downstream position)``, which lets the forward and
backward passes treat a block as a weight matrix view without copying.
Bias links, when enabled, follow all layer blocks: one block per
non-input layer, sourced from the virtual unit :data:`BIAS_SOURCE`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from .errors import NotComputedError
from .types import Array

BIAS_SOURCE = -1
"""Unit id of the always-on bias source (activation ``1.0``)."""


@dataclass
class LinkArena:
    """Flat storage for link weights and their pending adjustments."""

    layer_sizes: Sequence[int]
    bias: bool = True
    weights: Array = field(init=False, repr=False)
    pending: Array = field(init=False, repr=False)
    source: Array = field(init=False, repr=False)
    target: Array = field(init=False, repr=False)

    def __post_init__(self) -> None:
        sizes = [int(size) for size in self.layer_sizes]
        self.layer_sizes = sizes
        self._offsets = [0]
        for size in sizes[:-1]:
            self._offsets.append(self._offsets[-1] + size)

        sources: List[Array] = []
        targets: List[Array] = []
        self._blocks: List[slice] = []
        start = 0
        for idx, (n_up, n_down) in enumerate(zip(sizes[:-1], sizes[1:])):
            upstream = self._offsets[idx] + np.arange(n_up)
            downstream = self._offsets[idx + 1] + np.arange(n_down)
            sources.append(np.repeat(upstream, n_down))
            targets.append(np.tile(downstream, n_up))
            self._blocks.append(slice(start, start + n_up * n_down))
            start += n_up * n_down

        # Indexed by the downstream layer; the input layer has no bias.
        self._bias_blocks: List[slice | None] = [None]
        for idx in range(1, len(sizes)):
            if not self.bias:
                self._bias_blocks.append(None)
                continue
            sources.append(np.full(sizes[idx], BIAS_SOURCE))
            targets.append(self._offsets[idx] + np.arange(sizes[idx]))
            self._bias_blocks.append(slice(start, start + sizes[idx]))
            start += sizes[idx]

        self.source = np.concatenate(sources).astype(np.int64)
        self.target = np.concatenate(targets).astype(np.int64)
        self.weights = np.zeros(start, dtype=np.float64)
        self.pending = np.full(start, np.nan, dtype=np.float64)

    def __len__(self) -> int:
        return int(self.weights.size)

    def initialise(self, rng: np.random.Generator, init_scale: float) -> None:
        """Draw layer weights from ``U[-init_scale, init_scale)``; zero the biases."""

        self.weights.fill(0.0)
        for block in self._blocks:
            size = block.stop - block.start
            self.weights[block] = rng.uniform(-init_scale, init_scale, size=size)
        self.pending.fill(np.nan)

    # ------------------------------------------------------------------
    # Addressing

    def unit_id(self, layer: int, position: int) -> int:
        return self._offsets[layer] + position

    def links_between(self, layer: int) -> int:
        """Number of links joining ``layer`` to ``layer + 1`` (bias excluded)."""

        block = self._blocks[layer]
        return block.stop - block.start

    def incoming(self, uid: int) -> Tuple[int, ...]:
        return tuple(int(i) for i in np.flatnonzero(self.target == uid))

    def outgoing(self, uid: int) -> Tuple[int, ...]:
        return tuple(int(i) for i in np.flatnonzero(self.source == uid))

    # ------------------------------------------------------------------
    # Matrix views

    def _shape(self, layer: int) -> Tuple[int, int]:
        return self.layer_sizes[layer], self.layer_sizes[layer + 1]

    def matrix(self, layer: int) -> Array:
        """Weights from ``layer`` to ``layer + 1`` as a writable view."""

        return self.weights[self._blocks[layer]].reshape(self._shape(layer))

    def pending_matrix(self, layer: int) -> Array:
        return self.pending[self._blocks[layer]].reshape(self._shape(layer))

    def bias_vector(self, layer: int) -> Array | None:
        """Bias weights feeding ``layer`` or ``None`` when biases are disabled."""

        block = self._bias_blocks[layer]
        return None if block is None else self.weights[block]

    def pending_bias(self, layer: int) -> Array | None:
        block = self._bias_blocks[layer]
        return None if block is None else self.pending[block]

    # ------------------------------------------------------------------
    # Updates

    def clear_pending(self) -> None:
        """Mark every pending adjustment as absent."""

        self.pending.fill(np.nan)

    def apply(self) -> None:
        """Add each pending adjustment to its weight and reset it to zero."""

        missing = int(np.count_nonzero(np.isnan(self.pending)))
        if missing:
            raise NotComputedError(
                f"{missing} link(s) have no pending adjustment; run backpropagation first"
            )
        self.weights += self.pending
        self.pending.fill(0.0)


__all__ = ["BIAS_SOURCE", "LinkArena"]
