"""Sparse Jacobian rows built in column order, and the matrix they form."""

from __future__ import annotations

from typing import Dict, Iterable, List

import numpy as np
from scipy import sparse


class OrderedJacobianRow:
    """One Jacobian row whose entries must be appended in increasing column order."""

    def __init__(self, non_zeros: int):
        if non_zeros < 0:
            raise ValueError("a row cannot hold a negative number of entries")
        self.max_non_zero = non_zeros
        self._indices: List[int] = []
        self._values: List[float] = []
        self._slots: Dict[int, int] = {}

    def append(self, index: int, value: float) -> None:
        """Add an entry in a column to the right of every existing one."""
        if len(self._indices) >= self.max_non_zero:
            raise ValueError(f"row is full: it holds at most {self.max_non_zero} entries")
        if self._indices and index <= self._indices[-1]:
            raise ValueError(
                f"column {index} is not after the last appended column {self._indices[-1]}"
            )
        self._slots[index] = len(self._indices)
        self._indices.append(index)
        self._values.append(float(value))

    def add_to(self, index: int, value: float, weight: float) -> None:
        """Add an unweighted ``value`` to an existing entry stored with ``weight`` applied."""
        try:
            slot = self._slots[index]
        except KeyError:
            raise KeyError(f"column {index} has no entry in this row") from None
        current = self._values[slot]
        self._values[slot] = (current / weight + value) * weight

    @property
    def non_zeros(self) -> int:
        return len(self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    @property
    def indices(self) -> np.ndarray:
        return np.array(self._indices, dtype=np.int64)

    @property
    def values(self) -> np.ndarray:
        return np.array(self._values, dtype=np.float64)


class Jacobian:
    """A sparse matrix made of ordered rows."""

    def __init__(self):
        self.rows: List[OrderedJacobianRow] = []
        self.columns = 0

    def assign(self, rows: Iterable[OrderedJacobianRow], columns: int) -> None:
        """Replace the rows and the column count."""
        if columns < 0:
            raise ValueError("column count must not be negative")
        self.rows = list(rows)
        self.columns = columns

    @property
    def cols(self) -> int:
        return self.columns

    def non_zero(self) -> int:
        """Total number of stored entries."""
        return sum(row.non_zeros for row in self.rows)

    def to_csr(self) -> sparse.csr_matrix:
        """The matrix in compressed sparse row form."""
        counts = [row.non_zeros for row in self.rows]
        indptr = np.concatenate(([0], np.cumsum(counts, dtype=np.int64)))
        if self.rows:
            indices = np.concatenate([row.indices for row in self.rows])
            data = np.concatenate([row.values for row in self.rows])
        else:
            indices = np.zeros(0, dtype=np.int64)
            data = np.zeros(0, dtype=np.float64)
        if indices.size and (indices.min() < 0 or indices.max() >= self.columns):
            raise ValueError("a row holds a column outside the matrix")
        return sparse.csr_matrix((data, indices, indptr), shape=(len(self.rows), self.columns))