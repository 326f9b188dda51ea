"""
Branch-and-Bound Integer Programming Backend

Depth-first branch-and-bound over LP relaxations for

    maximize    C @ x
    subject to  A @ x <= b
                x >= 0
                x[j] integer for every j named in integer_vars

Each node solves its relaxation, reads the basic values of the
integer-constrained variables from the resulting tableau and either stops
(infeasible, unbounded, integral, or no better than an already integral
parent) or splits on the first fractional variable into

    left:   x[j] <= floor(v)
    right:  x[j] >= ceil(v)      (stored as -x[j] <= -ceil(v))

The left subtree is finished before the right one starts, and the result is
the full search tree. Picking the best candidate out of the tree is left to
the caller (see :func:`ipbb.terminals`).

The search runs on an explicit work stack, so tree depth is bounded by the
node/depth limits rather than by Python's recursion limit.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from ...constants import DEFAULT_INT_TOL, DEFAULT_MAX_NODES, DEFAULT_PIVOT_TOL, Event
from ..base import ArrayLike, RelaxationSolver, SolverStatus
from ..simplex import maximise
from ..tableau import objective_value
from .node import (
    BBStats,
    Branch,
    BranchOperation,
    LinearProgram,
    SearchNode,
    SearchTree,
    Terminal,
)
from .utils import (
    basic_integer_vars,
    extend_constraints,
    fractional_candidates,
    integral_candidates,
)

logger = logging.getLogger(__name__)

NodeCallback = Callable[[SearchNode, Event], None]


class _Split(NamedTuple):
    current: SearchNode
    left: SearchNode
    right: SearchNode


class BranchAndBound:
    """
    Branch-and-bound search engine for integer linear programs.

    Args:
        solver_options: Search and relaxation options:

            - bb_max_nodes: Maximum relaxation solves, None for no limit
              (default: 10000)
            - bb_max_depth: Maximum node depth, None for no limit (default: None)
            - bb_int_tol: Distance to an integer treated as integral
              (default: 1e-9)
            - lp_max_iter: Pivot limit per relaxation (default: 50 * (rows + cols))
            - lp_tol: Pivot tolerance of the relaxation (default: 1e-9)

        relaxation: LP relaxation solver, called as
            ``relaxation(decision_vars, C, A, b, max_iter=..., tol=...)``
        node_callback: Called with every finished node and the event that
            finished it. Used for tracing only.
    """

    def __init__(
        self,
        solver_options: Optional[Dict[str, object]] = None,
        relaxation: RelaxationSolver = maximise,
        node_callback: Optional[NodeCallback] = None,
    ):
        options = dict(solver_options or {})
        self.max_nodes = _optional_limit(
            options.pop("bb_max_nodes", DEFAULT_MAX_NODES), "bb_max_nodes", 1
        )
        self.max_depth = _optional_limit(
            options.pop("bb_max_depth", None), "bb_max_depth", 0
        )
        self.int_tol = float(options.pop("bb_int_tol", DEFAULT_INT_TOL))
        self.lp_max_iter = _optional_limit(
            options.pop("lp_max_iter", None), "lp_max_iter", 0
        )
        self.lp_tol = float(options.pop("lp_tol", DEFAULT_PIVOT_TOL))
        if options:
            raise ValueError(f"Unknown solver options: {', '.join(sorted(options))}")

        self.relaxation = relaxation
        self.node_callback = node_callback
        self.stats = BBStats()
        self._limit_warned = False

    def search(
        self,
        integer_vars: Sequence[str],
        decision_vars: Sequence[str],
        C: ArrayLike,
        A: ArrayLike,
        b: ArrayLike,
    ) -> SearchTree:
        """Search from the synthetic root of ``max C @ x, A @ x <= b``."""
        return self.run(SearchNode.root(integer_vars, decision_vars, C, A, b))

    def run(self, root: SearchNode) -> SearchTree:
        """Expand ``root`` depth-first and return the assembled tree."""
        start_time = time.time()
        self.stats = BBStats()
        self._limit_warned = False

        # (assemble, node): visit pending nodes, assemble branches once both
        # subtrees sit on top of ``results``
        stack: List[Tuple[bool, SearchNode]] = [(False, root)]
        results: List[SearchTree] = []

        while stack:
            assemble, node = stack.pop()
            if assemble:
                right = results.pop()
                left = results.pop()
                results.append(Branch(left, node, right))
                continue

            outcome = self._expand(node)
            if isinstance(outcome, Terminal):
                results.append(outcome)
            else:
                stack.append((True, outcome.current))
                stack.append((False, outcome.right))
                stack.append((False, outcome.left))

        self.stats.solve_time = time.time() - start_time
        logger.info(
            f"Branch-and-bound finished: {self.stats.nodes_explored} relaxations, "
            f"{self.stats.nodes_branched} branches, {self.stats.solutions} solutions, "
            f"{self.stats.nodes_infeasible} infeasible, {self.stats.nodes_pruned} pruned "
            f"({self.stats.solve_time:.3f}s)"
        )
        return results[0]

    def _expand(self, pending: SearchNode) -> Union[Terminal, _Split]:
        if self._limit_reached(pending):
            return self._cancel(pending)

        int_vars, xvars = pending.integer_vars, pending.decision_vars
        C, A, b = pending.problem
        status, tableau = self.relaxation(
            xvars, C, A, b, max_iter=self.lp_max_iter, tol=self.lp_tol
        )
        self.stats.nodes_explored += 1
        self.stats.max_depth = max(self.stats.max_depth, pending.depth)

        z = objective_value(tableau)
        parent_z = objective_value(pending.tableau)

        # Integer variables the parent already had at integral values
        resolved_at_parent = {
            name
            for (name, _, _), _ in integral_candidates(
                int_vars, xvars, pending.tableau, self.int_tol
            )
        }
        parent_basis = [
            name for name, _, _ in basic_integer_vars(int_vars, xvars, pending.tableau)
        ]
        is_fully_resolved = all(name in resolved_at_parent for name in parent_basis)

        choices = fractional_candidates(int_vars, xvars, tableau, self.int_tol)

        logger.debug(
            f"Node depth={pending.depth} origin={pending.origin!r}: status={status}, "
            f"z={z:.6g}, parent z={parent_z:.6g}, fully resolved={is_fully_resolved}, "
            f"fractional={[name for (name, _, _), _ in choices]}"
        )

        solved = replace(pending, status=status, tableau=tableau, objective_value=z)

        if status in (SolverStatus.INFEASIBLE, SolverStatus.UNBOUNDED):
            if status == SolverStatus.INFEASIBLE:
                self.stats.nodes_infeasible += 1
                event = Event.INFEASIBLE
            else:
                self.stats.nodes_unbounded += 1
                event = Event.UNBOUNDED
            return self._terminal(
                replace(solved, operation=BranchOperation.unset()), event
            )

        if status == SolverStatus.MAX_ITERATIONS:
            self.stats.nodes_stalled += 1
            return self._terminal(
                replace(solved, operation=BranchOperation.unset()), Event.STALLED
            )

        if not choices:
            self.stats.solutions += 1
            return self._terminal(
                replace(solved, operation=BranchOperation.solution()), Event.INTEGRAL
            )

        if is_fully_resolved and z <= parent_z:
            # Keep the parent's integral result, this branch cannot improve it
            self.stats.nodes_pruned += 1
            return self._terminal(
                replace(pending, status=status, operation=BranchOperation.solution()),
                Event.PRUNED,
            )

        # Split on the first fractional candidate
        (name, col, value), (floor, _, ceil) = choices[0]
        current = replace(
            solved, operation=BranchOperation.solution(), split_variable=name
        )
        left = self._child(solved, col, 1.0, floor, BranchOperation.less_than(floor))
        right = self._child(
            solved, col, -1.0, -ceil, BranchOperation.greater_than(ceil)
        )

        self.stats.nodes_branched += 1
        logger.debug(
            f"Branching on {name}={value:.6g}: {name} <= {floor:g} | {name} >= {ceil:g}"
        )
        self._notify(current, Event.BRANCHED)
        return _Split(current, left, right)

    def _child(
        self,
        parent: SearchNode,
        col: int,
        coefficient: float,
        bound: float,
        operation: BranchOperation,
    ) -> SearchNode:
        """Pending child: parent's solved state plus one bound row."""
        C, A, b = parent.problem
        A_new, b_new = extend_constraints(A, b, col, coefficient, bound)
        return replace(
            parent,
            problem=LinearProgram(C, A_new, b_new),
            split_variable="",
            operation=operation,
            origin=operation,
            depth=parent.depth + 1,
        )

    def _limit_reached(self, pending: SearchNode) -> bool:
        if self.max_nodes is not None and self.stats.nodes_explored >= self.max_nodes:
            return True
        return self.max_depth is not None and pending.depth > self.max_depth

    def _cancel(self, pending: SearchNode) -> Terminal:
        if not self._limit_warned:
            logger.warning(
                f"Search limit reached (max_nodes={self.max_nodes}, "
                f"max_depth={self.max_depth}); remaining nodes are not solved"
            )
            self._limit_warned = True
        self.stats.nodes_cancelled += 1
        node = replace(
            pending, status=SolverStatus.NODE_LIMIT, operation=BranchOperation.unset()
        )
        return self._terminal(node, Event.CANCELLED)

    def _terminal(self, node: SearchNode, event: Event) -> Terminal:
        self._notify(node, event)
        return Terminal(node)

    def _notify(self, node: SearchNode, event: Event) -> None:
        if self.node_callback is not None:
            self.node_callback(node, event)


def _optional_limit(value: object, name: str, minimum: int) -> Optional[int]:
    if value is None:
        return None
    limit = int(value)  # type: ignore[call-overload]
    if limit < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {limit}")
    return limit


def solve(
    integer_vars: Sequence[str],
    decision_vars: Sequence[str],
    C: ArrayLike,
    A: ArrayLike,
    b: ArrayLike,
    solver_options: Optional[Dict[str, object]] = None,
) -> SearchTree:
    """
    Run branch-and-bound on ``max C @ x, A @ x <= b, x >= 0``.

    Args:
        integer_vars: Names of the integer-constrained variables
        decision_vars: Names of all decision variables, one per column of ``A``
        C: Objective coefficients
        A: Constraint matrix
        b: Right-hand side
        solver_options: See :class:`BranchAndBound`

    Returns:
        The complete search tree. Infeasible and unbounded branches are
        ordinary terminals; inspect each terminal's ``status``.
    """
    return BranchAndBound(solver_options).search(integer_vars, decision_vars, C, A, b)
