"""Online back-propagation training loop."""

from __future__ import annotations

import math
from typing import Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from ..core.errors import ConfigurationError, DimensionMismatchError, UnsolvableProblemError
from ..core.network import Network
from ..core.types import Example, TrainResult
from .metrics import compute_metrics, default_metrics, squared_errors

DEFAULT_MAX_EPOCHS = 10_000


def _as_example(item: Example | Tuple[Sequence[float], Sequence[float]]) -> Example:
    if isinstance(item, Example):
        return item
    inputs, targets = item
    return Example(inputs, targets)


class Trainer:
    """Drive epochs of per-example forward, backward and update steps.

    Every example gets its own forward pass, back-propagation and weight
    update before the next one is loaded (online learning).  The epoch's
    global error is the mean squared output error over every
    ``(example, output)`` pair, measured before each example's update.
    """

    def __init__(self, network: Network, callbacks: Sequence[object] | None = None) -> None:
        self.network = network
        self.callbacks = list(callbacks or [])

    def train(
        self,
        examples: Iterable[Example],
        *,
        learning_rate: float,
        max_global_error: float,
        threshold: float = 0.5,
        max_epochs: int = DEFAULT_MAX_EPOCHS,
        patience: int | None = None,
        min_delta: float = 1e-9,
        shuffle: bool = False,
        seed: int = 0,
        stop_on_threshold: bool = False,
        metric_names: Sequence[str] | None = None,
    ) -> TrainResult:
        """Train until the global error drops to ``max_global_error``.

        Raises :class:`UnsolvableProblemError` when ``max_epochs`` epochs pass,
        or ``patience`` consecutive epochs improve the best global error by
        less than ``min_delta``, without reaching the target.  ``threshold``
        only feeds the ``accuracy`` diagnostic unless ``stop_on_threshold``
        is set, in which case an epoch where every example is accepted also
        ends training.  With ``shuffle`` the example order is re-drawn each
        epoch from a generator seeded with ``seed``; otherwise the given order
        is used for every epoch.
        """

        if not 0 < learning_rate <= 1:
            raise ConfigurationError(f"learning_rate must be in (0, 1], got {learning_rate}")
        if threshold < 0:
            raise ConfigurationError(f"threshold must be >= 0, got {threshold}")
        if max_global_error < 0:
            raise ConfigurationError(f"max_global_error must be >= 0, got {max_global_error}")
        if max_epochs < 1:
            raise ConfigurationError(f"max_epochs must be >= 1, got {max_epochs}")
        if patience is not None and patience < 1:
            raise ConfigurationError(f"patience must be >= 1, got {patience}")
        dataset = self._prepare(examples)
        names = list(metric_names or default_metrics())

        rng = np.random.default_rng(seed)
        order = np.arange(len(dataset))
        history: List[Tuple[int, dict]] = []
        best_error = math.inf
        best_seen = math.inf
        epochs_no_improve = 0
        global_error = math.inf

        for epoch in range(1, max_epochs + 1):
            if shuffle:
                order = rng.permutation(len(dataset))
            metrics = self._run_epoch(
                [dataset[i] for i in order], learning_rate, threshold, names
            )
            history.append((epoch, metrics))
            self._emit_epoch(epoch, metrics)

            global_error = metrics["global_error"]
            best_seen = min(best_seen, global_error)
            accepted_all = stop_on_threshold and metrics["accuracy"] >= 1.0
            if global_error <= max_global_error or accepted_all:
                return TrainResult(
                    epochs=epoch,
                    global_error=global_error,
                    accuracy=metrics["accuracy"],
                    converged=True,
                    history=history,
                )

            if global_error < best_error - min_delta:
                best_error = global_error
                epochs_no_improve = 0
            else:
                epochs_no_improve += 1
                if patience and epochs_no_improve >= patience:
                    raise UnsolvableProblemError(
                        f"Training stalled: no improvement larger than {min_delta:g} "
                        f"for {epochs_no_improve} epochs (global error {global_error:.6f}, "
                        f"target {max_global_error:g}). Try a larger error margin.",
                        epochs=epoch,
                        global_error=global_error,
                        best_error=best_seen,
                        max_global_error=max_global_error,
                    )

        raise UnsolvableProblemError(
            f"Cannot reach a global error of {max_global_error:g} within {max_epochs} "
            f"epochs (last {global_error:.6f}, best {best_seen:.6f}). "
            "Try a larger error margin.",
            epochs=max_epochs,
            global_error=global_error,
            best_error=best_seen,
            max_global_error=max_global_error,
        )

    def evaluate(
        self,
        examples: Iterable[Example],
        *,
        threshold: float = 0.5,
        metric_names: Sequence[str] | None = None,
    ) -> Mapping[str, float]:
        """Score ``examples`` without touching the weights."""

        dataset = self._prepare(examples)
        names = list(metric_names or default_metrics())
        predictions = np.stack([self.network.predict(ex.inputs) for ex in dataset])
        targets = np.stack([ex.targets for ex in dataset])
        metrics = {"global_error": float(np.mean(squared_errors(predictions, targets)))}
        metrics.update(compute_metrics(names, predictions, targets, threshold=threshold))
        return metrics

    # ------------------------------------------------------------------
    # Internal helpers

    def _prepare(self, examples: Iterable[Example]) -> List[Example]:
        dataset = [_as_example(item) for item in examples]
        if not dataset:
            raise ConfigurationError("the example set is empty")
        n_in, n_out = self.network.num_inputs, self.network.num_outputs
        for idx, example in enumerate(dataset):
            if example.targets is None:
                raise ConfigurationError(f"example {idx} has no target vector")
            if example.inputs.size != n_in:
                raise DimensionMismatchError(
                    f"example {idx} input vector", n_in, int(example.inputs.size)
                )
            if example.targets.size != n_out:
                raise DimensionMismatchError(
                    f"example {idx} target vector", n_out, int(example.targets.size)
                )
        return dataset

    def _run_epoch(
        self,
        examples: Sequence[Example],
        learning_rate: float,
        threshold: float,
        metric_names: Sequence[str],
    ) -> dict:
        network = self.network
        predictions = np.empty((len(examples), network.num_outputs), dtype=np.float64)
        targets = np.empty_like(predictions)
        total = 0.0
        for row, example in enumerate(examples):
            network.load_example(example)
            outputs = network.forward()
            predictions[row] = outputs
            targets[row] = example.targets
            total += float(np.sum(squared_errors(outputs, example.targets)))
            network.backpropagate(learning_rate)
            network.apply_updates()
        metrics = {"global_error": total / predictions.size}
        metrics.update(compute_metrics(metric_names, predictions, targets, threshold=threshold))
        if "accuracy" not in metrics:
            metrics.update(compute_metrics(["accuracy"], predictions, targets, threshold=threshold))
        return metrics

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


def train(
    network: Network,
    examples: Iterable[Example],
    learning_rate: float,
    threshold: float,
    max_global_error: float,
    **options,
) -> TrainResult:
    """Functional form of :meth:`Trainer.train`."""

    callbacks = options.pop("callbacks", None)
    return Trainer(network, callbacks=callbacks).train(
        examples,
        learning_rate=learning_rate,
        threshold=threshold,
        max_global_error=max_global_error,
        **options,
    )


__all__ = ["DEFAULT_MAX_EPOCHS", "Trainer", "train"]
