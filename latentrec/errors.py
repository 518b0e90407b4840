"""Typed errors raised by the training and evaluation core."""

from __future__ import annotations


class RecommenderError(Exception):
    """Base class for errors raised by `latentrec`."""


class InvalidArgumentError(RecommenderError, ValueError):
    """A caller passed a malformed value (recoverable)."""


class LengthMismatchError(InvalidArgumentError):
    """Parallel sequences that must be aligned differ in length."""

    def __init__(self, what: str, lengths: tuple[int, ...]) -> None:
        self.lengths = lengths
        super().__init__(f"{what} must be the same length, got lengths {list(lengths)}")


class ConfigurationError(RecommenderError):
    """A setup or internal invariant problem that should abort the run."""
