"""Rating-prediction error metrics."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..errors import InvalidArgumentError, LengthMismatchError


def _paired(predicted: Sequence[float], actual: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    pred = np.asarray(predicted, dtype=np.float64).reshape(-1)
    act = np.asarray(actual, dtype=np.float64).reshape(-1)
    if pred.shape[0] != act.shape[0]:
        raise LengthMismatchError("predicted and actual", (pred.shape[0], act.shape[0]))
    if pred.shape[0] == 0:
        raise InvalidArgumentError("cannot score empty prediction vectors")
    return pred, act


def rmse(predicted: Sequence[float], actual: Sequence[float]) -> float:
    """Root Mean Squared Error: sqrt(mean((pred - actual)^2))."""
    pred, act = _paired(predicted, actual)
    return float(np.sqrt(np.mean((pred - act) ** 2)))


def mae(predicted: Sequence[float], actual: Sequence[float]) -> float:
    """Mean Absolute Error."""
    pred, act = _paired(predicted, actual)
    return float(np.mean(np.abs(pred - act)))
