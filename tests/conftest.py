from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure `import latentrec` works without an editable install.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from latentrec.dataset import Dataset  # noqa: E402


SMALL_RATINGS = [
    ("alice", "matrix", 5.0),
    ("alice", "heat", 3.0),
    ("alice", "toy-story", 4.0),
    ("bob", "matrix", 4.0),
    ("bob", "jumanji", 2.0),
    ("carol", "heat", 4.5),
    ("carol", "toy-story", 1.0),
    ("carol", "jumanji", 3.5),
    ("dave", "matrix", 2.0),
    ("dave", "heat", 5.0),
    ("erin", "toy-story", 4.0),
    ("erin", "matrix", 3.0),
]


@pytest.fixture()
def small_ratings() -> list:
    return list(SMALL_RATINGS)


@pytest.fixture()
def small_dataset() -> Dataset:
    ds = Dataset()
    for u, i, r in SMALL_RATINGS:
        ds.append(u, i, r)
    return ds
