"""Top-N ranking of items by predicted score for one user."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from .models import FactorModel


def top_n(
    model: FactorModel,
    user: str,
    *,
    n: int = 50,
    items: Optional[Iterable[str]] = None,
    exclude_rated: bool = False,
) -> List[Tuple[str, float]]:
    """Rank candidate items for `user`, highest predicted score first.

    Candidates default to every item in the model's dataset. Ties are broken
    by item identifier so the output is deterministic.
    """
    ds = model.dataset
    candidates = list(items) if items is not None else ds.item_labels()

    if exclude_rated and user in ds.user_index:
        uid = ds.user_index[user]
        rated = {ds.item_label(i) for u, i in zip(ds.users, ds.items) if u == uid}
        candidates = [c for c in candidates if c not in rated]

    scored = [(item, model.predict(user, item)) for item in candidates]
    scored.sort(key=lambda x: (-x[1], x[0]))
    return scored[: max(0, int(n))]
