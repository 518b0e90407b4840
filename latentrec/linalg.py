"""Dense row-major matrix/vector primitives used by the factor models.

Thin owned wrappers over C-contiguous float64 numpy buffers: O(1) element
access, row views without copies, and a dot product. The models touch one or
two rows per SGD step, so rows are the unit of work here.
"""

from __future__ import annotations

import numpy as np


class Matrix:
    """A `rows x cols` float64 matrix stored contiguously in row-major order."""

    __slots__ = ("_data",)

    def __init__(self, rows: int, cols: int, data: np.ndarray | None = None) -> None:
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix dimensions must be non-negative, got {rows}x{cols}")
        if data is None:
            data = np.zeros((rows, cols), dtype=np.float64)
        else:
            data = np.ascontiguousarray(data, dtype=np.float64)
            if data.size != rows * cols:
                raise ValueError(f"Expected {rows * cols} values for a {rows}x{cols} matrix, got {data.size}")
            data = data.reshape(rows, cols)
        self._data = data

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "Matrix":
        return cls(rows, cols)

    @classmethod
    def random_normal(
        cls,
        rows: int,
        cols: int,
        *,
        mean: float,
        std: float,
        rng: np.random.Generator,
    ) -> "Matrix":
        """Fill with independent N(mean, std^2) draws from `rng`."""
        return cls(rows, cols, rng.normal(loc=mean, scale=std, size=(rows, cols)))

    @property
    def rows(self) -> int:
        return int(self._data.shape[0])

    @property
    def cols(self) -> int:
        return int(self._data.shape[1])

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    @property
    def data(self) -> np.ndarray:
        """The underlying 2D buffer (shared, not copied)."""
        return self._data

    def at(self, r: int, c: int) -> float:
        return float(self._data[r, c])

    def set(self, r: int, c: int, value: float) -> None:
        self._data[r, c] = value

    def row(self, r: int) -> np.ndarray:
        """Writable view of row `r`; writes go straight into the matrix."""
        return self._data[r]

    def fill(self, value: float) -> None:
        self._data.fill(value)

    def __repr__(self) -> str:
        return f"Matrix(rows={self.rows}, cols={self.cols})"


def zeros_vector(n: int) -> np.ndarray:
    return np.zeros(int(n), dtype=np.float64)


def dot(a: np.ndarray, b: np.ndarray) -> float:
    if a.shape != b.shape:
        raise ValueError(f"dot: shape mismatch {a.shape} vs {b.shape}")
    return float(np.dot(a, b))
