"""
Branch-and-Bound Search Tree Dataclasses

This module contains the data structures produced by the branch-and-bound
search: branching operations, per-state search nodes, the binary search
tree itself and the search statistics.

Nodes and trees are immutable once built. Every branch produces new
constraint arrays, so sibling subtrees never share mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, NamedTuple, Optional, Tuple, Union

import autograd.numpy as np

from ..base import ArrayLike, SolverStatus, constraint_matrix, empty_tableau


class OperationKind(Enum):
    """What a node's branch contributes relative to its parent."""

    LESS_THAN = "less_than"  # Subproblem adds x <= bound
    GREATER_THAN = "greater_than"  # Subproblem adds x >= bound
    SOLUTION = "solution"  # Feasible and integral (or branched on its own state)
    UNSET = "unset"  # Branch contributes no candidate
    START = "start"  # Synthetic root, never solved


@dataclass(frozen=True)
class BranchOperation:
    kind: OperationKind
    bound: Optional[float] = None

    @staticmethod
    def less_than(bound: float) -> "BranchOperation":
        return BranchOperation(OperationKind.LESS_THAN, float(bound))

    @staticmethod
    def greater_than(bound: float) -> "BranchOperation":
        return BranchOperation(OperationKind.GREATER_THAN, float(bound))

    @staticmethod
    def solution() -> "BranchOperation":
        return BranchOperation(OperationKind.SOLUTION)

    @staticmethod
    def unset() -> "BranchOperation":
        return BranchOperation(OperationKind.UNSET)

    @staticmethod
    def start() -> "BranchOperation":
        return BranchOperation(OperationKind.START)

    def __repr__(self) -> str:
        if self.bound is None:
            return self.kind.name
        return f"{self.kind.name}({self.bound:g})"


class LinearProgram(NamedTuple):
    """``max objective @ x  s.t.  constraints @ x <= rhs, x >= 0``."""

    objective: ArrayLike
    constraints: ArrayLike
    rhs: ArrayLike


@dataclass(frozen=True, eq=False)
class SearchNode:
    """
    One state of the branch-and-bound search.

    While a node is waiting to be solved, ``status``, ``tableau`` and
    ``objective_value`` still hold its parent's solved state and ``problem``
    holds the parent's constraints extended by ``origin``. Once solved, they
    describe the node itself, except for nodes pruned in favour of their
    parent, which report the parent's tableau and objective.
    """

    status: SolverStatus
    tableau: ArrayLike
    objective_value: float
    decision_vars: Tuple[str, ...]
    integer_vars: Tuple[str, ...]
    problem: LinearProgram
    split_variable: str = ""
    operation: BranchOperation = field(default_factory=BranchOperation.start)
    origin: BranchOperation = field(default_factory=BranchOperation.start)
    depth: int = 0

    @staticmethod
    def root(
        integer_vars,
        decision_vars,
        C: ArrayLike,
        A: ArrayLike,
        b: ArrayLike,
    ) -> "SearchNode":
        """The synthetic, unsolved root that starts a search."""
        b = np.asarray(b, dtype=float).ravel()
        C = np.asarray(C, dtype=float).ravel()
        return SearchNode(
            status=SolverStatus.START,
            tableau=empty_tableau(),
            objective_value=0.0,
            decision_vars=tuple(decision_vars),
            integer_vars=tuple(integer_vars),
            problem=LinearProgram(
                C, constraint_matrix(A, len(b), len(C)), b
            ),
        )

    @property
    def is_candidate(self) -> bool:
        """Whether this node reports a feasible, integral result."""
        return (
            self.operation.kind == OperationKind.SOLUTION
            and self.status == SolverStatus.OPTIMAL
        )

    def __repr__(self) -> str:
        split = f", split={self.split_variable!r}" if self.split_variable else ""
        return (
            f"SearchNode(depth={self.depth}, status={self.status}, "
            f"z={self.objective_value:g}, op={self.operation!r}, "
            f"origin={self.origin!r}{split})"
        )


@dataclass(frozen=True, eq=False)
class Terminal:
    node: SearchNode


@dataclass(frozen=True, eq=False)
class Branch:
    left: "SearchTree"
    node: SearchNode
    right: "SearchTree"


SearchTree = Union[Branch, Terminal]


def iter_nodes(tree: SearchTree) -> Iterator[SearchNode]:
    """Pre-order walk over every node, left subtree before right."""
    stack = [tree]
    while stack:
        current = stack.pop()
        yield current.node
        if isinstance(current, Branch):
            stack.append(current.right)
            stack.append(current.left)


def iter_branches(tree: SearchTree) -> Iterator[Branch]:
    stack = [tree]
    while stack:
        current = stack.pop()
        if isinstance(current, Branch):
            yield current
            stack.append(current.right)
            stack.append(current.left)


def terminals(tree: SearchTree) -> Iterator[SearchNode]:
    """Leaf nodes, left to right."""
    stack = [tree]
    while stack:
        current = stack.pop()
        if isinstance(current, Terminal):
            yield current.node
        else:
            stack.append(current.right)
            stack.append(current.left)


@dataclass
class BBStats:
    """Statistics from a branch-and-bound search."""

    nodes_explored: int = 0  # Relaxation solves
    nodes_branched: int = 0
    nodes_infeasible: int = 0
    nodes_unbounded: int = 0
    nodes_stalled: int = 0  # Relaxation hit its pivot limit
    nodes_pruned: int = 0
    nodes_cancelled: int = 0  # Not solved because a search limit was hit
    solutions: int = 0
    max_depth: int = 0
    solve_time: float = 0.0
