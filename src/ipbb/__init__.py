__all__ = [
    "solve",
    "BranchAndBound",
    "BBStats",
    "SearchNode",
    "SearchTree",
    "Branch",
    "Terminal",
    "BranchOperation",
    "OperationKind",
    "LinearProgram",
    "iter_nodes",
    "iter_branches",
    "terminals",
    "maximise",
    "extract_basis",
    "objective_value",
    "solution_values",
    "SolverStatus",
    "Event",
    "START",
    "OPTIMAL",
    "INFEASIBLE",
    "UNBOUNDED",
]

__version__ = "0.1.0"

from .constants import Event
from .solvers import SolverStatus, maximise, extract_basis, objective_value, solution_values
from .solvers.bnb import (
    BBStats,
    Branch,
    BranchAndBound,
    BranchOperation,
    LinearProgram,
    OperationKind,
    SearchNode,
    SearchTree,
    Terminal,
    iter_branches,
    iter_nodes,
    solve,
    terminals,
)

START = SolverStatus.START
OPTIMAL = SolverStatus.OPTIMAL
INFEASIBLE = SolverStatus.INFEASIBLE
UNBOUNDED = SolverStatus.UNBOUNDED
