"""
Tableau Readers

Helpers that read results out of a completed simplex tableau produced by
:func:`ipbb.solvers.simplex.maximise`.

Layout of a tableau with ``m`` constraints and ``n`` decision variables:

- rows ``0 .. m-1`` are constraint rows, the last row is the objective row
- columns ``0 .. n-1`` are the decision variables (in ``var_names`` order),
  followed by one slack column per constraint and the right-hand side
- the bottom-right cell holds the current objective value
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

import autograd.numpy as np

from ..constants import DEFAULT_PIVOT_TOL
from .base import ArrayLike, is_solved

BasisEntry = Tuple[str, int, float]


def objective_value(tableau: ArrayLike) -> float:
    """Objective value of a solved tableau, 0.0 for an unsolved one."""
    if not is_solved(tableau):
        return 0.0
    return float(tableau[-1, -1])


def basic_row(
    tableau: ArrayLike, column: int, tol: float = DEFAULT_PIVOT_TOL
) -> int | None:
    """Row in which ``column`` is basic, or None when it is non-basic.

    A column is basic when it is a unit vector over the constraint rows and
    its reduced cost in the objective row is zero.
    """
    col = tableau[:-1, column]
    if abs(tableau[-1, column]) > tol:
        return None
    ones = np.flatnonzero(np.abs(col - 1.0) <= tol)
    if len(ones) != 1:
        return None
    row = int(ones[0])
    others = np.delete(col, row)
    if np.any(np.abs(others) > tol):
        return None
    return row


def basis_rows(tableau: ArrayLike, tol: float = DEFAULT_PIVOT_TOL) -> Dict[int, int]:
    """Map each basic column of a solved tableau to its row.

    Columns are scanned left to right and each constraint row is claimed by
    the first unit column that points at it. A later column with the same
    unit vector and zero reduced cost describes the same vertex through an
    alternative basis, so it stays non-basic at zero.
    """
    if not is_solved(tableau):
        return {}

    rows: Dict[int, int] = {}
    claimed = set()
    for col in range(tableau.shape[1] - 1):
        row = basic_row(tableau, col, tol)
        if row is not None and row not in claimed:
            claimed.add(row)
            rows[col] = row
    return rows


def extract_basis(
    var_names: Sequence[str],
    tableau: ArrayLike,
    tol: float = DEFAULT_PIVOT_TOL,
) -> List[BasisEntry]:
    """Read ``(name, column, value)`` for every basic named variable.

    Variables are visited in ``var_names`` order, so the result is ordered by
    column. Non-basic variables sit at zero and are not reported.
    """
    rows = basis_rows(tableau, tol)
    return [
        (name, col, float(tableau[rows[col], -1]))
        for col, name in enumerate(var_names)
        if col in rows
    ]


def solution_values(
    var_names: Sequence[str],
    tableau: ArrayLike,
    tol: float = DEFAULT_PIVOT_TOL,
) -> dict[str, float]:
    """Full primal point: basic values from the tableau, zero for the rest."""
    values = {name: 0.0 for name in var_names}
    for name, _, value in extract_basis(var_names, tableau, tol):
        values[name] = value
    return values
