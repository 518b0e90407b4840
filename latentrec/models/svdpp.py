"""SVD++: biased MF plus an implicit-feedback term from each user's history.

    r_hat(u, i) = mu + b_u + b_i + q_i . (p_u + |N(u)|^-1/2 * sum_{j in N(u)} y_j)

N(u) is the set of distinct items user u rated in the training dataset. Every
SGD step on a rating by u also updates y_j for every j in N(u), so an epoch
costs O(sum over ratings of |N(u)| * factors).
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..dataset import Dataset
from ..errors import ConfigurationError
from ..linalg import Matrix, dot
from ..utils import SeedLike
from .base import FactorModel, SVDConfig


logger = logging.getLogger(__name__)


class SVDpp(FactorModel):
    name = "svdpp"

    def _init_extra(self, rng: np.random.Generator) -> None:
        cfg = self.config
        self.yj = Matrix.random_normal(
            self._num_items, cfg.num_factors, mean=cfg.init_mean, std=cfg.init_std_dev, rng=rng
        )
        if cfg.verbose:
            logger.info("svdpp: caching user rating histories")
        self._build_history()

    def _build_history(self) -> None:
        """Flatten N(u) into one item array indexed by per-user (offset, length).

        Items appear once per user, in the order the user first rated them.
        """
        ds = self._dataset
        users = np.asarray(ds.users, dtype=np.int64)
        items = np.asarray(ds.items, dtype=np.int64)

        # First occurrence of each (user, item) pair, kept in observation order.
        _, first = np.unique(users * self._num_items + items, return_index=True)
        first.sort()
        pair_users = users[first]
        pair_items = items[first]

        order = np.argsort(pair_users, kind="stable")
        self.history_items = pair_items[order]
        self.history_lengths = np.bincount(pair_users, minlength=self._num_users)
        self.history_offsets = np.zeros(self._num_users, dtype=np.int64)
        if self._num_users > 1:
            np.cumsum(self.history_lengths[:-1], out=self.history_offsets[1:])

        empty = np.flatnonzero(self.history_lengths == 0)
        if empty.size:
            raise ConfigurationError(
                f"svdpp: user id {int(empty[0])} ({ds.user_label(int(empty[0]))!r}) has no rated items"
            )
        self._sqrt_counts = np.sqrt(self.history_lengths.astype(np.float64))

    def user_history(self, uid: int) -> np.ndarray:
        """Items rated by user `uid` (read-only view into the flat array)."""
        off = self.history_offsets[uid]
        return self.history_items[off : off + self.history_lengths[uid]]

    def _implicit(self, uid: int, history: np.ndarray) -> np.ndarray:
        return self.yj.data[history].sum(axis=0) / self._sqrt_counts[uid]

    def _run_epoch(self) -> None:
        ds = self._dataset
        pu = self.pu.data
        qi = self.qi.data
        yj = self.yj.data
        bu = self.bu
        bi = self.bi
        sqrt_counts = self._sqrt_counts
        mu = self.global_mean
        lr = self.config.lr
        reg = self.config.reg

        for u, i, r in zip(ds.users, ds.items, ds.ratings):
            history = self.user_history(u)
            sqrt_u = sqrt_counts[u]
            implicit = yj[history].sum(axis=0) / sqrt_u

            p_u = pu[u]
            q_i = qi[i]
            err = r - (mu + bu[u] + bi[i] + float((p_u + implicit) @ q_i))

            bu[u] += lr * (err - reg * bu[u])
            bi[i] += lr * (err - reg * bi[i])

            p_old = p_u.copy()
            q_old = q_i.copy()
            p_u += lr * (err * q_old - reg * p_u)
            q_i += lr * (err * (p_old + implicit) - reg * q_i)
            # history holds distinct ids, so the fancy-indexed update is safe
            yj[history] += lr * (err * q_old / sqrt_u - reg * yj[history])

    def _interaction(self, uid: int, iid: int) -> float:
        implicit = self._implicit(uid, self.user_history(uid))
        return dot(self.pu.row(uid), self.qi.row(iid) + implicit)


def new_svdpp(dataset: Dataset, config: Optional[SVDConfig] = None, rng: SeedLike = None) -> SVDpp:
    return SVDpp(dataset, config, rng)
