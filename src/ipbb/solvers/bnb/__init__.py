"""
Branch-and-Bound Integer Programming

This package implements depth-first branch-and-bound for integer linear
programs on top of the simplex relaxation in :mod:`ipbb.solvers.simplex`.

Modules:
- backend: BranchAndBound search engine and the ``solve`` entry point
- node: Branch operations, search nodes, the search tree and statistics
- utils: Variable classification and constraint injection
"""

from .backend import BranchAndBound, solve
from .node import (
    BBStats,
    Branch,
    BranchOperation,
    LinearProgram,
    OperationKind,
    SearchNode,
    SearchTree,
    Terminal,
    iter_branches,
    iter_nodes,
    terminals,
)
from .utils import (
    basic_integer_vars,
    classify,
    extend_constraints,
    fractional_candidates,
    integral_candidates,
)

__all__ = [
    "BranchAndBound",
    "solve",
    "BBStats",
    "Branch",
    "BranchOperation",
    "LinearProgram",
    "OperationKind",
    "SearchNode",
    "SearchTree",
    "Terminal",
    "iter_branches",
    "iter_nodes",
    "terminals",
    "basic_integer_vars",
    "classify",
    "extend_constraints",
    "fractional_candidates",
    "integral_candidates",
]
