from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional, Protocol, Sequence

import autograd.numpy as anp  # type: ignore


ArrayLike = anp.ndarray


class SolverStatus(StrEnum):
    START = "start"
    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    MAX_ITERATIONS = "max_iterations"
    NODE_LIMIT = "node_limit"


@dataclass(frozen=True, eq=False)
class RelaxationResult:
    status: SolverStatus
    tableau: ArrayLike
    iterations: int = 0

    def __iter__(self):
        # Allows ``status, tableau = maximise(...)``
        yield self.status
        yield self.tableau


class RelaxationSolver(Protocol):
    def __call__(
        self,
        var_names: Sequence[str],
        c: ArrayLike,
        A: ArrayLike,
        b: ArrayLike,
        max_iter: Optional[int] = None,
        tol: float = ...,
    ) -> RelaxationResult:
        ...


def empty_tableau() -> ArrayLike:
    """Placeholder tableau for nodes that have not been solved."""
    return anp.zeros((0, 0))


def is_solved(tableau: ArrayLike) -> bool:
    rows, cols = anp.shape(tableau)
    return rows > 0 and cols > 0


def constraint_matrix(A, rows: int, cols: int) -> ArrayLike:
    """``A`` as a float ``rows x cols`` array.

    An empty ``A`` is reshaped so problems without constraints can be passed
    as ``[]``; any other shape mismatch raises ``ValueError``.
    """
    A = anp.asarray(A, dtype=float)
    if A.size == 0:
        return A.reshape(rows, cols)
    A = anp.atleast_2d(A)
    if A.shape != (rows, cols):
        raise ValueError(
            f"Constraint matrix has shape {A.shape}, expected ({rows}, {cols}) "
            f"for {rows} right-hand side entries and {cols} objective coefficients"
        )
    return A
