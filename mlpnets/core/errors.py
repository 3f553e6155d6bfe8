"""Exception taxonomy raised by the network and the trainer."""

from __future__ import annotations


class NetworkError(Exception):
    """Base class for every error raised by MLPNets."""


class ConfigurationError(NetworkError, ValueError):
    """Invalid structural or training parameters."""


class DimensionMismatchError(NetworkError, ValueError):
    """An example's vector length disagrees with the network's width."""

    def __init__(self, what: str, expected: int, actual: int) -> None:
        super().__init__(f"{what} has length {actual}, expected {expected}")
        self.what = what
        self.expected = expected
        self.actual = actual


class NotComputedError(NetworkError, RuntimeError):
    """A value was read, or a step was run, before its inputs were computed."""


class UnsolvableProblemError(NetworkError):
    """Training stopped before the global error reached the requested target."""

    def __init__(
        self,
        message: str,
        *,
        epochs: int,
        global_error: float,
        best_error: float,
        max_global_error: float,
    ) -> None:
        super().__init__(message)
        self.epochs = epochs
        self.global_error = global_error
        self.best_error = best_error
        self.max_global_error = max_global_error


__all__ = [
    "NetworkError",
    "ConfigurationError",
    "DimensionMismatchError",
    "NotComputedError",
    "UnsolvableProblemError",
]
