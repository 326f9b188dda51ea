"""
Utility Functions for Branch-and-Bound

Variable classification (which integer-constrained variables are basic and
fractional, or basic and already integral) and constraint injection (append
one bound row to a constraint system).
"""

from __future__ import annotations

import math
from typing import Callable, List, Sequence, Tuple

import autograd.numpy as np

from ...constants import DEFAULT_INT_TOL
from ..base import ArrayLike
from ..tableau import BasisEntry, extract_basis

# (floor, fractional part, ceil) of a basic value
Components = Tuple[float, float, float]
Classified = Tuple[BasisEntry, Components]


def basic_integer_vars(
    int_vars: Sequence[str],
    all_vars: Sequence[str],
    tableau: ArrayLike,
) -> List[BasisEntry]:
    """Basis entries of ``tableau`` restricted to integer-constrained names."""
    wanted = set(int_vars)
    return [entry for entry in extract_basis(all_vars, tableau) if entry[0] in wanted]


def split_value(value: float, tol: float = DEFAULT_INT_TOL) -> Components:
    """Return ``(floor, fractional, ceil)`` for ``value``.

    Values within ``tol`` of an integer are snapped to it first, so the
    fractional part is exactly 0.0 for numerically integral values.
    """
    nearest = round(value)
    if abs(value - nearest) <= tol:
        value = float(nearest)
    floor = float(math.floor(value))
    return floor, value - floor, float(math.ceil(value))


def classify(
    int_vars: Sequence[str],
    all_vars: Sequence[str],
    tableau: ArrayLike,
    keep: Callable[[float], bool],
    tol: float = DEFAULT_INT_TOL,
) -> List[Classified]:
    """Split every basic integer variable into its components and filter.

    ``keep`` is applied to the fractional part. Order follows the basis
    reading order.
    """
    classified = []
    for entry in basic_integer_vars(int_vars, all_vars, tableau):
        components = split_value(entry[2], tol)
        if keep(components[1]):
            classified.append((entry, components))
    return classified


def fractional_candidates(
    int_vars: Sequence[str],
    all_vars: Sequence[str],
    tableau: ArrayLike,
    tol: float = DEFAULT_INT_TOL,
) -> List[Classified]:
    """Integer-constrained basic variables with a fractional component."""
    return classify(int_vars, all_vars, tableau, lambda frac: frac > 0.0, tol)


def integral_candidates(
    int_vars: Sequence[str],
    all_vars: Sequence[str],
    tableau: ArrayLike,
    tol: float = DEFAULT_INT_TOL,
) -> List[Classified]:
    """Integer-constrained basic variables that are already integral."""
    return classify(int_vars, all_vars, tableau, lambda frac: frac == 0.0, tol)


def extend_constraints(
    A: ArrayLike,
    b: ArrayLike,
    column: int,
    coefficient: float,
    bound: float,
) -> Tuple[ArrayLike, ArrayLike]:
    """Append the row ``coefficient * x[column] <= bound``.

    Returns new arrays; ``A`` and ``b`` are left untouched.
    """
    A = np.asarray(A, dtype=float)
    b = np.asarray(b, dtype=float)
    row = np.zeros((1, A.shape[1]))
    row[0, column] = coefficient
    return np.vstack([A, row]), np.append(b, bound)
