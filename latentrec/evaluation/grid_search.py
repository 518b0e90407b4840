"""Exhaustive hyperparameter search for SVD scored by held-out RMSE."""

from __future__ import annotations

import dataclasses
import itertools
import logging
import math
import numbers
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..dataset import Dataset
from ..errors import ConfigurationError
from ..models import FactorModel, SVDConfig, new_svd
from .metrics import rmse


logger = logging.getLogger(__name__)

# Nesting order of the search, outermost first.
GRID_FIELDS = ("num_epochs", "num_factors", "reg", "lr", "init_std_dev")


def _valid_grid_value(name: str, value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    if name in ("num_epochs", "num_factors") and not isinstance(value, numbers.Integral):
        return False
    return math.isfinite(value) and value >= 0


@dataclass(frozen=True)
class GridSearchParams:
    num_epochs: Sequence[int]
    num_factors: Sequence[int]
    reg: Sequence[float]
    lr: Sequence[float]
    init_std_dev: Sequence[float]

    def __post_init__(self) -> None:
        for name in GRID_FIELDS:
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def validate(self) -> None:
        empty = [name for name in GRID_FIELDS if len(getattr(self, name)) == 0]
        if empty:
            raise ConfigurationError(
                f"grid search: all parameters must have at least one test value (empty: {empty})"
            )

        bad = [
            f"{name}={value!r}"
            for name in GRID_FIELDS
            for value in getattr(self, name)
            if not _valid_grid_value(name, value)
        ]
        if bad:
            raise ConfigurationError(
                f"grid search: epochs/factors must be non-negative integers and reg/lr/init_std_dev "
                f"non-negative finite numbers (invalid: {bad})"
            )

    def __len__(self) -> int:
        n = 1
        for name in GRID_FIELDS:
            n *= len(getattr(self, name))
        return n

    def combinations(self) -> Iterator["GridCombination"]:
        for values in itertools.product(*(getattr(self, name) for name in GRID_FIELDS)):
            yield GridCombination(*values)


@dataclass(frozen=True)
class GridCombination:
    num_epochs: int
    num_factors: int
    reg: float
    lr: float
    init_std_dev: float

    def config(self) -> SVDConfig:
        return SVDConfig(
            num_factors=int(self.num_factors),
            init_std_dev=float(self.init_std_dev),
            lr=float(self.lr),
            reg=float(self.reg),
            num_epochs=int(self.num_epochs),
        )


@dataclass(frozen=True)
class GridSearchTestResult:
    num_epochs: int
    num_factors: int
    reg: float
    lr: float
    init_std_dev: float
    loss: float
    runtime: float  # wall-clock seconds for fit + scoring


def evaluate_model(model: FactorModel, testset: Dataset) -> float:
    """RMSE of `model` on `testset`.

    The two datasets have unrelated id spaces, so test ids are decoded back to
    their identifiers and the model re-encodes them with its own index.
    """
    predicted: List[float] = []
    actual: List[float] = []
    for uid, iid, r in zip(testset.users, testset.items, testset.ratings):
        try:
            user = testset.user_label(uid)
        except KeyError as exc:
            raise ConfigurationError(f"user id {uid} not found in test dataset reverse lookup") from exc
        try:
            item = testset.item_label(iid)
        except KeyError as exc:
            raise ConfigurationError(f"item id {iid} not found in test dataset reverse lookup") from exc
        predicted.append(model.predict(user, item))
        actual.append(r)
    return rmse(predicted, actual)


def _run_combination(
    trainset: Dataset,
    testset: Dataset,
    combo: GridCombination,
    rng: np.random.Generator,
) -> GridSearchTestResult:
    start = time.perf_counter()
    model = new_svd(trainset, combo.config(), rng)
    model.fit(combo.num_epochs)
    loss = evaluate_model(model, testset)
    runtime = time.perf_counter() - start
    return GridSearchTestResult(
        num_epochs=combo.num_epochs,
        num_factors=combo.num_factors,
        reg=combo.reg,
        lr=combo.lr,
        init_std_dev=combo.init_std_dev,
        loss=loss,
        runtime=runtime,
    )


def grid_search(
    trainset: Dataset,
    testset: Dataset,
    params: GridSearchParams,
    *,
    seed: Optional[int] = None,
    n_jobs: int = 1,
    cancel_event: Optional[threading.Event] = None,
) -> List[GridSearchTestResult]:
    """Train and score a fresh SVD model for every parameter combination.

    Parameters
    ----------
    seed:
        Root seed. Each combination gets its own generator spawned from it, so
        results do not depend on `n_jobs` or on completion order.
    n_jobs:
        Worker threads; values <= 0 mean one per CPU.
    cancel_event:
        Checked before each combination starts. When set, the combinations
        that already finished are returned.

    Returns
    -------
    List[GridSearchTestResult]
        One result per completed combination, in grid order.
    """
    params.validate()
    if len(testset) == 0:
        raise ConfigurationError("grid search: test dataset is empty")

    combos = list(params.combinations())
    total = len(combos)
    rngs = [np.random.default_rng(s) for s in np.random.SeedSequence(seed).spawn(total)]
    results: List[Optional[GridSearchTestResult]] = [None] * total
    stop = threading.Event()

    def _task(k: int) -> Optional[GridSearchTestResult]:
        if stop.is_set() or (cancel_event is not None and cancel_event.is_set()):
            return None
        logger.info("running grid search test %d / %d", k + 1, total)
        return _run_combination(trainset, testset, combos[k], rngs[k])

    workers = n_jobs if n_jobs > 0 else (os.cpu_count() or 1)
    if workers == 1:
        for k in range(total):
            results[k] = _task(k)
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(_task, k): k for k in range(total)}
            for fut in as_completed(futures):
                try:
                    results[futures[fut]] = fut.result()
                except Exception:
                    stop.set()
                    raise

    done = [r for r in results if r is not None]
    if len(done) < total:
        logger.warning("grid search cancelled: %d / %d tests completed", len(done), total)
    return done


def results_frame(results: Sequence[GridSearchTestResult]) -> pd.DataFrame:
    """Tabular view of grid-search results for reporting."""
    columns = [f.name for f in dataclasses.fields(GridSearchTestResult)]
    return pd.DataFrame([dataclasses.asdict(r) for r in results], columns=columns)


def best_result(results: Sequence[GridSearchTestResult]) -> GridSearchTestResult:
    if not results:
        raise ValueError("no grid search results to choose from")
    return min(results, key=lambda r: r.loss)
