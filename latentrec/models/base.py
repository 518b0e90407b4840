from __future__ import annotations

import abc
import dataclasses
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from ..dataset import Dataset
from ..errors import ConfigurationError, InvalidArgumentError
from ..linalg import Matrix, zeros_vector
from ..utils import SeedLike, make_rng


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SVDConfig:
    """Hyperparameters shared by both factor models.

    A zero-valued field means "use the default", so a partially filled config
    (e.g. from a grid-search combination) is always usable.
    """

    num_factors: int = 50
    init_mean: float = 0.0
    init_std_dev: float = 0.1
    lr: float = 0.005
    reg: float = 0.02
    num_epochs: int = 20
    verbose: bool = False

    def with_defaults(self) -> "SVDConfig":
        defaults = SVDConfig()
        changes = {}
        for f in dataclasses.fields(self):
            if f.name == "verbose":
                continue
            if getattr(self, f.name) == 0:
                changes[f.name] = getattr(defaults, f.name)
        return dataclasses.replace(self, **changes) if changes else self


class FactorModel(abc.ABC):
    """Biased matrix factorization state shared by the SVD variants.

    Prediction is ``global_mean + bu[u] + bi[i] + interaction(u, i)``. Unknown
    identifiers are a cold-start fallback, not an error: an unknown user or
    item drops its bias and the interaction term.
    """

    name = "factor-model"

    def __init__(self, dataset: Dataset, config: Optional[SVDConfig] = None, rng: SeedLike = None) -> None:
        if len(dataset) == 0:
            raise InvalidArgumentError(f"cannot build a {self.name} model from an empty dataset")

        self.config = (config or SVDConfig()).with_defaults()
        rng = make_rng(rng)
        self._dataset = dataset
        self._num_users = dataset.num_users
        self._num_items = dataset.num_items
        self._num_ratings = len(dataset)

        cfg = self.config
        self.pu = Matrix.random_normal(
            self._num_users, cfg.num_factors, mean=cfg.init_mean, std=cfg.init_std_dev, rng=rng
        )
        self.qi = Matrix.random_normal(
            self._num_items, cfg.num_factors, mean=cfg.init_mean, std=cfg.init_std_dev, rng=rng
        )
        self.bu = zeros_vector(self._num_users)
        self.bi = zeros_vector(self._num_items)
        self.global_mean = dataset.global_mean()
        self._init_extra(rng)

    def _init_extra(self, rng: np.random.Generator) -> None:
        """Hook for variant-specific parameters, drawn after PU and QI."""

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    def _check_dataset_unchanged(self) -> None:
        ds = self._dataset
        now = (ds.num_users, ds.num_items, len(ds))
        then = (self._num_users, self._num_items, self._num_ratings)
        if now != then:
            raise ConfigurationError(
                f"{self.name}: dataset changed after model construction "
                f"(users/items/ratings {then} -> {now})"
            )

    def fit(self, num_epochs: Optional[int] = None) -> "FactorModel":
        """Run `num_epochs` SGD passes over the ratings in stored order.

        Defaults to ``config.num_epochs``. No loss is tracked here; evaluate
        periodically if you need convergence monitoring.
        """
        epochs = self.config.num_epochs if num_epochs is None else int(num_epochs)
        if epochs < 0:
            raise InvalidArgumentError(f"num_epochs must be >= 0, got {num_epochs}")
        self._check_dataset_unchanged()

        log = logger.info if self.config.verbose else logger.debug
        for epoch in range(epochs):
            log("%s: running epoch %d", self.name, epoch)
            self._run_epoch()
        return self

    @abc.abstractmethod
    def _run_epoch(self) -> None:
        ...

    @abc.abstractmethod
    def _interaction(self, uid: int, iid: int) -> float:
        ...

    def predict(self, user: str, item: str) -> float:
        self._check_dataset_unchanged()
        uid = self._dataset.user_index.get(user)
        iid = self._dataset.item_index.get(item)

        p = self.global_mean
        if uid is not None:
            p += self.bu[uid]
        if iid is not None:
            p += self.bi[iid]
        if uid is not None and iid is not None:
            p += self._interaction(uid, iid)
        return float(p)

    def predict_many(self, pairs: Iterable[Tuple[str, str]]) -> np.ndarray:
        return np.array([self.predict(u, i) for u, i in pairs], dtype=np.float64)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(users={self._num_users}, items={self._num_items}, "
            f"factors={self.config.num_factors})"
        )
