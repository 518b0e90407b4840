from __future__ import annotations

import logging
from typing import Union

import numpy as np


SeedLike = Union[int, np.random.Generator, np.random.SeedSequence, None]


def setup_logging(level: int | str = "INFO") -> None:
    """Configure stdlib logging with a consistent, project-wide format."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        # Called again (CLI + tests): only adjust the level.
        root_logger.setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def make_rng(seed: SeedLike = None) -> np.random.Generator:
    """Return an explicit random generator.

    Nothing in the package touches process-wide random state; every
    initializer and split takes a generator built here. Passing an existing
    Generator returns it unchanged so callers can share one stream.
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)
