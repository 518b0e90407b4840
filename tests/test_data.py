from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from latentrec.data import load_ratings_csv, read_ratings_frame, validate_ratings_frame
from latentrec.dataset import Dataset


def test_load_ratings_csv_appends_in_file_order(tmp_path: Path) -> None:
    path = tmp_path / "ratings.csv"
    path.write_text("007,film-1,4.5\n42,film-2,3\n007,film-2,1.0\n")

    ds = load_ratings_csv(path)

    # ids are opaque strings: leading zeros survive
    assert ds.user_index == {"007": 0, "42": 1}
    assert ds.item_index == {"film-1": 0, "film-2": 1}
    assert ds.ratings == [4.5, 3.0, 1.0]


def test_load_ratings_csv_with_header_reordered_columns_and_existing_dataset(tmp_path: Path) -> None:
    path = tmp_path / "ratings.tsv"
    path.write_text("rating\tmovie\tuser\tts\n5\tm1\tu1\t100\n2\tm2\tu2\t101\n")

    ds = Dataset()
    ds.append("u0", "m0", 1.0)
    out = load_ratings_csv(path, ds, has_header=True, sep="\t", columns=(2, 1, 0))

    assert out is ds
    assert list(ds.triples()) == [("u0", "m0", 1.0), ("u1", "m1", 5.0), ("u2", "m2", 2.0)]


def test_non_numeric_rating_rejected(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("u1,m1,great\n")
    with pytest.raises(ValueError):
        read_ratings_frame(path)


def test_missing_file() -> None:
    with pytest.raises(FileNotFoundError):
        load_ratings_csv(Path("/nonexistent/ratings.csv"))


def test_validate_ratings_frame_checks_columns_and_values() -> None:
    with pytest.raises(ValueError):
        validate_ratings_frame(pd.DataFrame({"user": ["a"], "item": ["b"]}))
    with pytest.raises(ValueError):
        validate_ratings_frame(pd.DataFrame({"user": ["a"], "item": ["b"], "rating": [float("inf")]}))
    validate_ratings_frame(pd.DataFrame({"user": ["a"], "item": ["b"], "rating": [3.0]}))
