from __future__ import annotations

import numpy as np
import pytest

from latentrec.dataset import Dataset, datasets_from_slices, new_dataset
from latentrec.errors import InvalidArgumentError, LengthMismatchError


def test_append_assigns_ids_in_first_seen_order() -> None:
    ds = new_dataset()
    ds.append("u-b", "i-x", 1.0)
    ds.append("u-a", "i-y", 2.0)
    ds.append("u-b", "i-z", 3.0)
    ds.append("u-c", "i-x", 4.0)

    assert ds.user_index == {"u-b": 0, "u-a": 1, "u-c": 2}
    assert ds.item_index == {"i-x": 0, "i-y": 1, "i-z": 2}
    assert ds.users == [0, 1, 0, 2]
    assert ds.items == [0, 1, 2, 0]
    assert ds.ratings == [1.0, 2.0, 3.0, 4.0]
    assert len(ds) == len(ds.users) == len(ds.items) == 4


def test_reverse_lookups_follow_encoding(small_dataset: Dataset) -> None:
    ds = small_dataset
    for label, uid in ds.user_index.items():
        assert ds.user_label(uid) == label
    for label, iid in ds.item_index.items():
        assert ds.item_label(iid) == label
    assert ds.user_labels() == ["alice", "bob", "carol", "dave", "erin"]
    with pytest.raises(KeyError):
        ds.user_label(ds.num_users)
    with pytest.raises(KeyError):
        ds.item_label(-1)


def test_triples_decode_back_to_identifiers(small_dataset: Dataset, small_ratings: list) -> None:
    assert list(small_dataset.triples()) == small_ratings


def test_global_mean(small_dataset: Dataset) -> None:
    expected = sum(small_dataset.ratings) / len(small_dataset)
    assert small_dataset.global_mean() == pytest.approx(expected)
    with pytest.raises(InvalidArgumentError):
        Dataset().global_mean()


def test_split_sizes() -> None:
    users = ["a", "b", "c", "d", "e"]
    items = ["x", "y", "z", "x", "y"]
    ratings = [1.0, 2.0, 3.0, 4.0, 5.0]

    train, test = datasets_from_slices(users, items, ratings, 0.4, rng=0)

    assert len(train) + len(test) == 5
    assert len(test) == 2


def test_split_preserves_observations_with_independent_id_spaces() -> None:
    users = [f"u{k % 7}" for k in range(40)]
    items = [f"i{k % 11}" for k in range(40)]
    ratings = [float(k % 5 + 1) for k in range(40)]

    train, test = datasets_from_slices(users, items, ratings, 0.25, rng=np.random.default_rng(3))

    assert len(test) == 10
    seen = sorted(list(train.triples()) + list(test.triples()))
    assert seen == sorted(zip(users, items, ratings))
    # Each side encodes from scratch: ids are dense within that side.
    for ds in (train, test):
        assert sorted(ds.user_index.values()) == list(range(ds.num_users))
        assert max(ds.items) < ds.num_items


def test_split_is_reproducible_with_same_seed(small_dataset: Dataset) -> None:
    a_train, a_test = small_dataset.split(0.5, rng=11)
    b_train, b_test = small_dataset.split(0.5, rng=11)
    assert list(a_train.triples()) == list(b_train.triples())
    assert list(a_test.triples()) == list(b_test.triples())


@pytest.mark.parametrize("fraction,expected_test", [(0.0, 0), (1.0, 12), (0.5, 6)])
def test_split_fraction_edges(small_dataset: Dataset, fraction: float, expected_test: int) -> None:
    train, test = small_dataset.split(fraction, rng=1)
    assert len(test) == expected_test
    assert len(train) == len(small_dataset) - expected_test


def test_split_length_mismatch() -> None:
    with pytest.raises(LengthMismatchError):
        datasets_from_slices(["a", "b", "c"], ["x", "y"], [1.0, 2.0, 3.0], 0.5)


@pytest.mark.parametrize("fraction", [1.5, -0.1, float("nan")])
def test_split_invalid_fraction(fraction: float) -> None:
    with pytest.raises(InvalidArgumentError):
        datasets_from_slices(["a"], ["x"], [1.0], fraction)


def test_from_frame_appends_in_row_order() -> None:
    import pandas as pd

    df = pd.DataFrame({"user": [10, 20, 10], "item": ["a", "a", "b"], "rating": [1, 2, 3]})
    ds = Dataset.from_frame(df)
    assert ds.user_index == {"10": 0, "20": 1}
    assert ds.ratings == [1.0, 2.0, 3.0]

    with pytest.raises(ValueError):
        Dataset.from_frame(df.drop(columns=["rating"]))
