"""
Two-Phase Tableau Simplex

Dense simplex solver used as the LP relaxation inside branch-and-bound.

Solves

    maximize    c @ x
    subject to  A @ x <= b
                x >= 0

Every constraint row gets a slack column. Rows with a negative right-hand
side (the ``x >= k`` rows written as ``-x <= -k``) are negated and given an
artificial column, and phase 1 drives the artificials to zero before phase 2
optimizes ``c``. Bland's rule is used throughout, so the method cannot cycle.

The returned tableau has the layout described in :mod:`ipbb.solvers.tableau`;
artificial columns are always removed before returning.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import autograd.numpy as np

from ..constants import DEFAULT_LP_ITER_FACTOR, DEFAULT_PIVOT_TOL
from .base import ArrayLike, RelaxationResult, SolverStatus, constraint_matrix

logger = logging.getLogger(__name__)

_NO_BASIS = -1


def maximise(
    var_names: Sequence[str],
    c: ArrayLike,
    A: ArrayLike,
    b: ArrayLike,
    max_iter: Optional[int] = None,
    tol: float = DEFAULT_PIVOT_TOL,
) -> RelaxationResult:
    """
    Solve the LP relaxation ``max c @ x, A @ x <= b, x >= 0``.

    Args:
        var_names: Names of the decision variables, one per column of ``A``
        c: Objective coefficients
        A: Constraint matrix (rows x len(c))
        b: Right-hand side, one entry per row of ``A``
        max_iter: Pivot limit over both phases (default: 50 * (rows + cols))
        tol: Pivot / reduced cost tolerance

    Returns:
        RelaxationResult with the termination status and the final tableau
    """
    c = np.asarray(c, dtype=float).ravel()
    b = np.asarray(b, dtype=float).ravel()
    if len(var_names) != len(c):
        raise ValueError(
            f"Got {len(var_names)} variable names for {len(c)} objective coefficients"
        )
    A = constraint_matrix(A, len(b), len(c))

    m, n = A.shape
    T, basis, n_art = _initial_tableau(A, b)
    if max_iter is None:
        max_iter = DEFAULT_LP_ITER_FACTOR * (m + n + n_art)

    iterations = 0
    if n_art > 0:
        status, iterations = _run(T, basis, tol, max_iter, iterations)
        if status == SolverStatus.MAX_ITERATIONS:
            return _finish(status, _drop_artificials(T, n, m), iterations)

        if T[-1, -1] < -tol:
            logger.debug(f"Phase 1 ended at {T[-1, -1]:.6g}: infeasible")
            return _finish(
                SolverStatus.INFEASIBLE, _drop_artificials(T, n, m), iterations
            )

        _drive_out_artificials(T, basis, n + m, tol)
        T = _drop_artificials(T, n, m)

    _set_objective(T, basis, c)
    status, iterations = _run(T, basis, tol, max_iter, iterations)
    return _finish(status, T, iterations)


def _initial_tableau(A: ArrayLike, b: ArrayLike) -> Tuple[ArrayLike, List[int], int]:
    """Slack-basis tableau with artificials on the negative-RHS rows.

    The objective row is set up for phase 1 (maximize minus the artificial
    sum) and already reduced against the artificial basis.
    """
    m, n = A.shape
    negative_rows = np.flatnonzero(b < 0)
    n_art = len(negative_rows)

    T = np.zeros((m + 1, n + m + n_art + 1))
    T[:m, :n] = A
    T[:m, n : n + m] = np.eye(m)
    T[:m, -1] = b

    basis = list(range(n, n + m))
    for k, row in enumerate(negative_rows):
        art = n + m + k
        T[row, :] *= -1.0
        T[row, art] = 1.0
        basis[row] = art
        T[-1, art] = 1.0

    for row in negative_rows:
        T[-1, :] -= T[row, :]

    return T, basis, n_art


def _run(
    T: ArrayLike,
    basis: List[int],
    tol: float,
    max_iter: int,
    iterations: int,
) -> Tuple[SolverStatus, int]:
    while True:
        col = _entering_column(T, tol)
        if col is None:
            return SolverStatus.OPTIMAL, iterations
        if iterations >= max_iter:
            logger.debug(f"Pivot limit reached ({max_iter})")
            return SolverStatus.MAX_ITERATIONS, iterations

        row = _leaving_row(T, basis, col, tol)
        if row is None:
            return SolverStatus.UNBOUNDED, iterations

        _pivot(T, basis, row, col)
        iterations += 1


def _entering_column(T: ArrayLike, tol: float) -> int | None:
    """Lowest-index column with a negative reduced cost (Bland)."""
    candidates = np.flatnonzero(T[-1, :-1] < -tol)
    if len(candidates) == 0:
        return None
    return int(candidates[0])


def _leaving_row(
    T: ArrayLike, basis: List[int], col: int, tol: float
) -> int | None:
    """Minimum ratio row, ties broken by the lowest basic index (Bland)."""
    best_row = None
    best_ratio = float("inf")
    for i in range(T.shape[0] - 1):
        entry = T[i, col]
        if entry <= tol:
            continue
        ratio = max(T[i, -1], 0.0) / entry
        if ratio < best_ratio - tol:
            best_row, best_ratio = i, ratio
        elif ratio <= best_ratio + tol and best_row is not None:
            if basis[i] < basis[best_row]:
                best_row, best_ratio = i, ratio
    return best_row


def _pivot(T: ArrayLike, basis: List[int], row: int, col: int) -> None:
    T[row, :] /= T[row, col]
    factors = T[:, col].copy()
    factors[row] = 0.0
    T -= np.outer(factors, T[row, :])
    basis[row] = col


def _drive_out_artificials(
    T: ArrayLike, basis: List[int], n_real: int, tol: float
) -> None:
    """Pivot zero-level artificials out of the basis.

    A row whose real columns are all zero is redundant; it keeps no basic
    variable and is left in place as an all-zero row.
    """
    for row, var in enumerate(basis):
        if var < n_real:
            continue
        nonzero = np.flatnonzero(np.abs(T[row, :n_real]) > tol)
        if len(nonzero) > 0:
            _pivot(T, basis, row, int(nonzero[0]))
        else:
            basis[row] = _NO_BASIS


def _drop_artificials(T: ArrayLike, n: int, m: int) -> ArrayLike:
    return np.hstack([T[:, : n + m], T[:, -1:]])


def _set_objective(T: ArrayLike, basis: List[int], c: ArrayLike) -> None:
    """Install ``-c`` as the objective row, reduced against the basis."""
    n = len(c)
    T[-1, :] = 0.0
    T[-1, :n] = -c
    for row, var in enumerate(basis):
        if var == _NO_BASIS:
            continue
        cost = T[-1, var]
        if cost != 0.0:
            T[-1, :] -= cost * T[row, :]


def _finish(status: SolverStatus, T: ArrayLike, iterations: int) -> RelaxationResult:
    logger.debug(
        f"Simplex finished: status={status}, z={T[-1, -1]:.6g}, pivots={iterations}"
    )
    return RelaxationResult(status=status, tableau=T, iterations=iterations)
