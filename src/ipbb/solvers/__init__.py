from __future__ import annotations

from .base import (
    RelaxationResult,
    RelaxationSolver,
    SolverStatus,
    empty_tableau,
    is_solved,
)
from .simplex import maximise
from .tableau import extract_basis, objective_value, solution_values


__all__ = [
    "RelaxationResult",
    "RelaxationSolver",
    "SolverStatus",
    "empty_tableau",
    "is_solved",
    "maximise",
    "extract_basis",
    "objective_value",
    "solution_values",
]
