"""
Sparse linear system assembly and solver traits (A * X = B).
"""

from __future__ import annotations

import logging
import warnings
from typing import Tuple

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import LinearOperator, MatrixRankWarning, bicgstab, splu, spsolve

_LOGGER = logging.getLogger(__name__)


class SparseLinearSystem:
    """
    Square sparse matrix with one right-hand side per planar axis.

    Coefficients are accumulated as COO triplets; duplicates are summed
    when the matrix is materialized.
    """

    def __init__(self, size: int, n_rhs: int = 2):
        self.size = int(size)
        self._rows: list[int] = []
        self._cols: list[int] = []
        self._vals: list[float] = []
        self.rhs = np.zeros((self.size, int(n_rhs)), dtype=np.float64)

    def add_coef(self, i: int, j: int, value: float) -> None:
        """A[i, j] += value"""
        self._rows.append(int(i))
        self._cols.append(int(j))
        self._vals.append(float(value))

    def set_rhs(self, i: int, values) -> None:
        self.rhs[int(i)] = np.asarray(values, dtype=np.float64).reshape(-1)

    @property
    def n_entries(self) -> int:
        return len(self._vals)

    def matrix(self) -> sparse.csr_matrix:
        coo = sparse.coo_matrix(
            (self._vals, (self._rows, self._cols)),
            shape=(self.size, self.size),
        )
        return sparse.csr_matrix(coo)


def _relative_residual(A, x: np.ndarray, b: np.ndarray) -> float:
    r = A @ x - b
    scale = max(1.0, float(np.linalg.norm(b)))
    return float(np.linalg.norm(r)) / scale


class DirectSolver:
    """
    Sparse LU (SuperLU) solver. Falls back to ``spsolve`` when the
    factorization fails, and rejects non-finite or inaccurate solutions.
    """

    name = "direct"

    def __init__(self, residual_tolerance: float = 1e-6):
        self.residual_tolerance = float(residual_tolerance)

    def solve(self, A, b) -> Tuple[np.ndarray, bool]:
        A = sparse.csc_matrix(A)
        b = np.asarray(b, dtype=np.float64).reshape(-1)
        if A.shape[0] != A.shape[1] or A.shape[0] != b.shape[0]:
            _LOGGER.debug("DirectSolver: shape mismatch A=%s b=%s", A.shape, b.shape)
            return np.zeros_like(b), False

        try:
            x = splu(A).solve(b)
        except RuntimeError:
            _LOGGER.debug("LU factorization failed; falling back to spsolve", exc_info=True)
            try:
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore", MatrixRankWarning)
                    x = spsolve(A, b)
            except (RuntimeError, ValueError, ArithmeticError):
                _LOGGER.debug("spsolve failed", exc_info=True)
                return np.zeros_like(b), False

        x = np.asarray(x, dtype=np.float64).ravel()
        if not np.isfinite(x).all():
            return x, False
        residual = _relative_residual(A, x, b)
        if residual > self.residual_tolerance:
            _LOGGER.debug("DirectSolver: residual too large (%.3e)", residual)
            return x, False
        return x, True


class BiCGStabSolver:
    """Jacobi-preconditioned BiCGSTAB."""

    name = "bicgstab"

    def __init__(self, tolerance: float = 1e-10, max_iterations: int = 5000):
        self.tolerance = float(tolerance)
        self.max_iterations = int(max_iterations)

    def solve(self, A, b) -> Tuple[np.ndarray, bool]:
        A = sparse.csr_matrix(A)
        b = np.asarray(b, dtype=np.float64).reshape(-1)
        if A.shape[0] != A.shape[1] or A.shape[0] != b.shape[0]:
            _LOGGER.debug("BiCGStabSolver: shape mismatch A=%s b=%s", A.shape, b.shape)
            return np.zeros_like(b), False

        diag = A.diagonal()
        M = None
        if np.all(diag != 0) and np.isfinite(diag).all():
            inv_diag = 1.0 / diag
            M = LinearOperator(A.shape, matvec=lambda v: inv_diag * np.ravel(v), dtype=np.float64)

        try:
            # x0 = b: with x0 = 0 the shadow residual is zero on interior rows and
            # the iteration breaks down once the identity rows are satisfied
            x, info = bicgstab(
                A, b, x0=b.copy(), rtol=self.tolerance, atol=0.0, maxiter=self.max_iterations, M=M,
            )
        except (ValueError, ArithmeticError):
            _LOGGER.debug("bicgstab failed", exc_info=True)
            return np.zeros_like(b), False

        x = np.asarray(x, dtype=np.float64).ravel()
        if info != 0:
            _LOGGER.debug("bicgstab did not converge (info=%d)", info)
            return x, False
        return x, bool(np.isfinite(x).all())


def make_solver(name: str = "direct", *, tolerance: float = 1e-10, max_iterations: int = 5000):
    s = str(name or "direct").strip().lower()
    if s in {"direct", "lu", "splu", "superlu"}:
        return DirectSolver()
    if s in {"bicgstab", "iterative", "bicg"}:
        return BiCGStabSolver(tolerance=tolerance, max_iterations=max_iterations)
    raise ValueError(f"Unsupported solver: {name}")
