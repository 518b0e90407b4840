"""Biased matrix factorization (Funk SVD) trained with plain SGD."""

from __future__ import annotations

from typing import Optional

from ..dataset import Dataset
from ..linalg import dot
from ..utils import SeedLike
from .base import FactorModel, SVDConfig


class SVD(FactorModel):
    """r_hat(u, i) = mu + b_u + b_i + p_u . q_i"""

    name = "svd"

    def _run_epoch(self) -> None:
        ds = self._dataset
        pu = self.pu.data
        qi = self.qi.data
        bu = self.bu
        bi = self.bi
        mu = self.global_mean
        lr = self.config.lr
        reg = self.config.reg

        for u, i, r in zip(ds.users, ds.items, ds.ratings):
            p_u = pu[u]
            q_i = qi[i]
            err = r - (mu + bu[u] + bi[i] + float(p_u @ q_i))

            bu[u] += lr * (err - reg * bu[u])
            bi[i] += lr * (err - reg * bi[i])

            # Both factor updates read the pre-update rows.
            p_old = p_u.copy()
            p_u += lr * (err * q_i - reg * p_u)
            q_i += lr * (err * p_old - reg * q_i)

    def _interaction(self, uid: int, iid: int) -> float:
        return dot(self.pu.row(uid), self.qi.row(iid))


def new_svd(dataset: Dataset, config: Optional[SVDConfig] = None, rng: SeedLike = None) -> SVD:
    return SVD(dataset, config, rng)
