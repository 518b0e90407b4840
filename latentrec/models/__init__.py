"""Latent-factor models: SVD (biased MF) and SVD++ (with implicit feedback)."""

from .base import FactorModel, SVDConfig
from .svd import SVD, new_svd
from .svdpp import SVDpp, new_svdpp

__all__ = ["FactorModel", "SVD", "SVDConfig", "SVDpp", "new_svd", "new_svdpp"]
