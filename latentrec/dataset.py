"""Rating observations with dense integer encoding of user/item identifiers."""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import InvalidArgumentError, LengthMismatchError
from .utils import SeedLike, make_rng


logger = logging.getLogger(__name__)


class Dataset:
    """Parallel (user, item, rating) arrays plus first-seen identifier encoding.

    Ids are assigned in first-seen order starting at 0 and are never reassigned.
    Two datasets built independently have unrelated id spaces: compare them
    through the original string identifiers only.
    """

    def __init__(self) -> None:
        self.user_index: Dict[str, int] = {}
        self.item_index: Dict[str, int] = {}
        self.users: List[int] = []
        self.items: List[int] = []
        self.ratings: List[float] = []
        # id -> identifier, kept in step with the indexes above
        self._user_labels: List[str] = []
        self._item_labels: List[str] = []

    def append(self, user: str, item: str, rating: float) -> None:
        """Record one observation, encoding unseen identifiers on the way."""
        uid = self.user_index.get(user)
        if uid is None:
            uid = len(self.user_index)
            self.user_index[user] = uid
            self._user_labels.append(user)
        iid = self.item_index.get(item)
        if iid is None:
            iid = len(self.item_index)
            self.item_index[item] = iid
            self._item_labels.append(item)
        self.users.append(uid)
        self.items.append(iid)
        self.ratings.append(float(rating))

    def __len__(self) -> int:
        return len(self.ratings)

    def __repr__(self) -> str:
        return f"Dataset(ratings={len(self)}, users={self.num_users}, items={self.num_items})"

    @property
    def num_users(self) -> int:
        return len(self.user_index)

    @property
    def num_items(self) -> int:
        return len(self.item_index)

    def user_label(self, uid: int) -> str:
        if not 0 <= uid < len(self._user_labels):
            raise KeyError(f"Unknown user id: {uid}")
        return self._user_labels[uid]

    def item_label(self, iid: int) -> str:
        if not 0 <= iid < len(self._item_labels):
            raise KeyError(f"Unknown item id: {iid}")
        return self._item_labels[iid]

    def user_labels(self) -> List[str]:
        """User identifiers ordered by encoded id."""
        return list(self._user_labels)

    def item_labels(self) -> List[str]:
        """Item identifiers ordered by encoded id."""
        return list(self._item_labels)

    def triples(self) -> Iterator[Tuple[str, str, float]]:
        """Observations decoded back to their original identifiers, in order."""
        for uid, iid, r in zip(self.users, self.items, self.ratings):
            yield self._user_labels[uid], self._item_labels[iid], r

    def global_mean(self) -> float:
        if not self.ratings:
            raise InvalidArgumentError("global mean of an empty dataset is undefined")
        return float(np.mean(np.asarray(self.ratings, dtype=np.float64)))

    def split(self, fraction: float, rng: SeedLike = None) -> Tuple["Dataset", "Dataset"]:
        """Randomly split into (train, test) datasets with fresh id spaces."""
        users = [self._user_labels[u] for u in self.users]
        items = [self._item_labels[i] for i in self.items]
        return datasets_from_slices(users, items, self.ratings, fraction, rng=rng)

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        *,
        user_col: str = "user",
        item_col: str = "item",
        rating_col: str = "rating",
        dataset: "Dataset | None" = None,
    ) -> "Dataset":
        """Append every row of `df` in row order (to `dataset` if given)."""
        missing = [c for c in (user_col, item_col, rating_col) if c not in df.columns]
        if missing:
            raise ValueError(f"ratings frame missing columns: {missing}")

        out = dataset if dataset is not None else cls()
        users = df[user_col].astype(str).tolist()
        items = df[item_col].astype(str).tolist()
        ratings = df[rating_col].astype("float64").tolist()
        for u, i, r in zip(users, items, ratings):
            out.append(u, i, r)
        return out


def new_dataset() -> Dataset:
    return Dataset()


def _round_half_away(x: float) -> int:
    return int(math.floor(x + 0.5))


def datasets_from_slices(
    users: Sequence[str],
    items: Sequence[str],
    ratings: Sequence[float],
    test_fraction: float,
    *,
    rng: SeedLike = None,
) -> Tuple[Dataset, Dataset]:
    """Build (train, test) datasets from aligned identifier/rating sequences.

    Observation indices are shuffled with a uniform random permutation; the
    last ``round(n * test_fraction)`` permuted observations go to test and the
    rest to train. Each dataset encodes identifiers independently.

    Raises
    ------
    LengthMismatchError
        If the three sequences differ in length.
    InvalidArgumentError
        If `test_fraction` is outside [0, 1].
    """
    n = len(users)
    if n != len(items) or n != len(ratings):
        raise LengthMismatchError("users, items and ratings", (n, len(items), len(ratings)))
    fraction = float(test_fraction)
    if not 0.0 <= fraction <= 1.0:
        raise InvalidArgumentError(f"test_fraction must be between 0 and 1, got {test_fraction!r}")

    perm = make_rng(rng).permutation(n)
    n_train = n - _round_half_away(n * fraction)

    trainset = Dataset()
    for j in perm[:n_train]:
        trainset.append(users[j], items[j], ratings[j])
    testset = Dataset()
    for j in perm[n_train:]:
        testset.append(users[j], items[j], ratings[j])

    logger.debug("Split %d ratings into train=%d test=%d", n, len(trainset), len(testset))
    return trainset, testset
