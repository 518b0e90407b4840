from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .dataset import Dataset


logger = logging.getLogger(__name__)

RATING_COLUMNS = ("user", "item", "rating")


def read_ratings_frame(
    path: Path,
    *,
    has_header: bool = False,
    sep: str = ",",
    columns: Sequence[int] = (0, 1, 2),
) -> pd.DataFrame:
    """Read a delimited ratings file into a (user, item, rating) frame.

    Notes
    -----
    User and item ids are read as strings: they are opaque identifiers
    (leading zeros or non-numeric ids must survive untouched).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"ratings file not found: {path}")

    df = pd.read_csv(
        path,
        sep=sep,
        header=0 if has_header else None,
        usecols=list(columns),
        dtype=str,
        keep_default_na=False,
        na_values=[""],
    )
    # usecols keeps file order; reorder to the requested (user, item, rating) order.
    df = df[[df.columns[sorted(columns).index(c)] for c in columns]]
    df.columns = list(RATING_COLUMNS)
    df["rating"] = pd.to_numeric(df["rating"], errors="coerce").astype("float64")

    validate_ratings_frame(df)
    return df


def validate_ratings_frame(df: pd.DataFrame) -> None:
    """Validate the (user, item, rating) contract."""
    missing = [c for c in RATING_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"ratings missing required columns: {missing}")

    if df[list(RATING_COLUMNS)].isna().any().any():
        bad = int(df[list(RATING_COLUMNS)].isna().any(axis=1).sum())
        raise ValueError(f"ratings contain {bad} rows with missing or non-numeric values")

    if not np.isfinite(df["rating"].to_numpy(dtype=np.float64)).all():
        raise ValueError("ratings contain non-finite values")


def load_ratings_csv(
    path: Path,
    dataset: Optional[Dataset] = None,
    *,
    has_header: bool = False,
    sep: str = ",",
    columns: Sequence[int] = (0, 1, 2),
) -> Dataset:
    """Append every rating in a delimited file to `dataset` (or a new one), in file order."""
    df = read_ratings_frame(path, has_header=has_header, sep=sep, columns=columns)
    out = Dataset.from_frame(df, dataset=dataset)
    logger.info(
        "Loaded %d ratings from %s (dataset now: users=%d items=%d ratings=%d)",
        len(df),
        path,
        out.num_users,
        out.num_items,
        len(out),
    )
    return out
