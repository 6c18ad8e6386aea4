"""Sparse normal-equation solver with a reusable fill-reducing ordering."""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy import sparse
from scipy.sparse.csgraph import reverse_cuthill_mckee
from scipy.sparse.linalg import splu

from .jacobian import Jacobian


def _as_csr(jacobian) -> sparse.csr_matrix:
    if isinstance(jacobian, Jacobian):
        return jacobian.to_csr()
    if sparse.issparse(jacobian):
        return sparse.csr_matrix(jacobian, dtype=np.float64)
    return sparse.csr_matrix(np.asarray(jacobian, dtype=np.float64))


class CholeskyDecomp:
    """Solves ``J^T J x = J^T r``, analysing the sparsity on the first run only."""

    def __init__(self):
        self._perm: Optional[np.ndarray] = None

    @property
    def has_factor(self) -> bool:
        return self._perm is not None

    def free_factor(self) -> None:
        """Discard the stored analysis."""
        if self._perm is None:
            raise RuntimeError("there is no factor to free")
        self._perm = None

    def solve(self, jacobian, residual, first_run: bool) -> np.ndarray:
        """Least-squares step for ``jacobian`` and ``residual``.

        With ``first_run`` the ordering is computed and kept; later calls reuse
        it until :meth:`free_factor` is called.
        """
        matrix = _as_csr(jacobian)
        rhs_vector = np.asarray(residual, dtype=np.float64).ravel()
        if rhs_vector.size != matrix.shape[0]:
            raise ValueError(
                f"residual has {rhs_vector.size} entries, jacobian has {matrix.shape[0]} rows"
            )

        normal = (matrix.T @ matrix).tocsc()
        size = normal.shape[0]

        if first_run:
            if self._perm is not None:
                raise RuntimeError("a factor already exists; free it before a first run")
            if size:
                self._perm = np.asarray(
                    reverse_cuthill_mckee(normal, symmetric_mode=True), dtype=np.int64
                )
            else:
                self._perm = np.zeros(0, dtype=np.int64)
        elif self._perm is None:
            raise RuntimeError("no analysis available; call with first_run=True first")

        perm = self._perm
        if perm.size != size:
            raise ValueError("the jacobian's column count changed since the analysis")

        rhs = matrix.T @ rhs_vector
        delta = np.zeros(size, dtype=np.float64)
        if size == 0:
            return delta

        permuted = normal[perm][:, perm].tocsc()
        factor = splu(
            permuted,
            permc_spec="NATURAL",
            diag_pivot_thresh=0.0,
            options={"SymmetricMode": True},
        )
        delta[perm] = factor.solve(rhs[perm])
        return delta