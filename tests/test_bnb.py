"""Tests for the branch-and-bound search driver."""
import math

import numpy as np
import pytest
from scipy.optimize import Bounds, LinearConstraint, milp

import ipbb
from ipbb import (
    BranchAndBound,
    Branch,
    Event,
    OperationKind,
    SolverStatus,
    Terminal,
    iter_branches,
    iter_nodes,
    maximise,
    solve,
    terminals,
)
from ipbb.solvers.bnb.utils import basic_integer_vars, fractional_candidates
from ipbb.solvers.tableau import extract_basis, objective_value, solution_values


def reference_optimum(C, A, b, integer_mask):
    """Integer optimum of max C @ x, A @ x <= b, x >= 0 from scipy's MILP solver."""
    res = milp(
        c=-np.asarray(C, dtype=float),
        constraints=LinearConstraint(np.asarray(A, dtype=float), -np.inf, b),
        integrality=np.asarray(integer_mask, dtype=int),
        bounds=Bounds(0, np.inf),
    )
    assert res.success
    return -res.fun


def best_candidate(tree):
    candidates = [n for n in terminals(tree) if n.is_candidate]
    return max(candidates, key=lambda n: n.objective_value)


def assert_tree_invariants(tree):
    for node in iter_nodes(tree):
        A, b = node.problem.constraints, node.problem.rhs
        assert A.shape[0] == len(b)

    for branch in iter_branches(tree):
        parent = branch.node
        A, b = parent.problem.constraints, parent.problem.rhs
        col = list(parent.decision_vars).index(parent.split_variable)
        basis = extract_basis(parent.decision_vars, parent.tableau)
        value = {name: v for name, _, v in basis}[parent.split_variable]

        left = branch.left.node
        assert left.problem.constraints.shape[0] == A.shape[0] + 1
        assert np.array_equal(left.problem.constraints[:-1], A)
        expected_row = np.zeros(A.shape[1])
        expected_row[col] = 1.0
        assert np.array_equal(left.problem.constraints[-1], expected_row)
        assert left.problem.rhs[-1] == math.floor(value)
        assert left.origin.kind == OperationKind.LESS_THAN

        right = branch.right.node
        assert right.problem.constraints.shape[0] == A.shape[0] + 1
        expected_row[col] = -1.0
        assert np.array_equal(right.problem.constraints[-1], expected_row)
        assert right.problem.rhs[-1] == -math.ceil(value)
        assert right.origin.kind == OperationKind.GREATER_THAN

        assert left.depth == right.depth == parent.depth + 1

    for node in terminals(tree):
        if node.status in (SolverStatus.INFEASIBLE, SolverStatus.UNBOUNDED):
            assert node.operation.kind == OperationKind.UNSET
        if node.is_candidate:
            assert not fractional_candidates(
                node.integer_vars, node.decision_vars, node.tableau
            )


def test_scenario_a_reaches_integer_optimum(scenario_a):
    int_vars, xvars, C, A, b = scenario_a
    tree = solve(int_vars, xvars, C, A, b)

    assert isinstance(tree, Branch)
    assert tree.node.split_variable == "x1"
    assert tree.node.operation.kind == OperationKind.SOLUTION
    assert tree.node.objective_value == pytest.approx(10.0 / 3.0)
    assert_tree_invariants(tree)

    best = best_candidate(tree)
    assert best.objective_value == pytest.approx(reference_optimum(C, A, b, [1, 1]))
    for _, _, value in basic_integer_vars(int_vars, xvars, best.tableau):
        assert value == pytest.approx(round(value))

    # The reported objective is what the relaxation gives for that node's problem
    status, tableau = maximise(xvars, *best.problem)
    assert status == SolverStatus.OPTIMAL
    assert objective_value(tableau) == pytest.approx(best.objective_value)


def test_scenario_a_tree_shape(scenario_a):
    tree = solve(*scenario_a)

    assert isinstance(tree.left, Terminal)
    assert isinstance(tree.right, Terminal)
    assert tree.left.node.origin.bound == 2.0
    assert tree.right.node.origin.bound == 3.0
    assert tree.left.node.split_variable == ""
    assert tree.right.node.problem.rhs[-1] == -3.0


def test_scenario_b_infeasible_root(scenario_b):
    tree = solve(*scenario_b)

    assert isinstance(tree, Terminal)
    assert tree.node.status == SolverStatus.INFEASIBLE
    assert tree.node.operation.kind == OperationKind.UNSET
    assert not tree.node.is_candidate


def test_scenario_c_integral_relaxation(scenario_c):
    tree = solve(*scenario_c)

    assert isinstance(tree, Terminal)
    assert tree.node.status == SolverStatus.OPTIMAL
    assert tree.node.operation.kind == OperationKind.SOLUTION
    assert tree.node.objective_value == pytest.approx(5.0)
    assert list(iter_branches(tree)) == []


def test_unbounded_root():
    # maximize x1 with only -x1 + x2 <= 1
    tree = solve(["x1", "x2"], ["x1", "x2"], [1.0, 0.0], [[-1.0, 1.0]], [1.0])

    assert isinstance(tree, Terminal)
    assert tree.node.status == SolverStatus.UNBOUNDED
    assert tree.node.operation.kind == OperationKind.UNSET


def test_prune_keeps_parent_result():
    # Unsolved root counts as fully resolved with objective 0, and the
    # fractional relaxation (x1 = 2.5, z = -2.5) does not beat it
    tree = solve(["x1"], ["x1"], [-1.0], [[-1.0]], [-2.5])

    assert isinstance(tree, Terminal)
    node = tree.node
    assert node.operation.kind == OperationKind.SOLUTION
    assert node.status == SolverStatus.OPTIMAL
    assert node.objective_value == 0.0
    assert node.tableau.size == 0


def test_positive_objective_is_not_pruned_at_root():
    # Same fractional point as above but with a positive objective
    tree = solve(["x1"], ["x1"], [1.0], [[1.0]], [2.5])

    assert isinstance(tree, Branch)
    assert tree.node.split_variable == "x1"
    assert tree.left.node.objective_value == pytest.approx(2.0)
    assert tree.right.node.status == SolverStatus.INFEASIBLE
    assert_tree_invariants(tree)


def test_classic_example_against_milp():
    # LP optimum (3.75, 2.25), integer optimum (5, 0) with value 40
    C = [8.0, 5.0]
    A = [[1.0, 1.0], [9.0, 5.0]]
    b = [6.0, 45.0]
    tree = solve(["x1", "x2"], ["x1", "x2"], C, A, b)

    assert_tree_invariants(tree)
    assert best_candidate(tree).objective_value == pytest.approx(
        reference_optimum(C, A, b, [1, 1])
    )
    statuses = {n.status for n in terminals(tree)}
    assert SolverStatus.INFEASIBLE in statuses


def test_mixed_integer_only_branches_on_integer_vars():
    C = [8.0, 5.0]
    A = [[1.0, 1.0], [9.0, 5.0]]
    b = [6.0, 45.0]
    tree = solve(["x1"], ["x1", "x2"], C, A, b)

    assert_tree_invariants(tree)
    assert {br.node.split_variable for br in iter_branches(tree)} == {"x1"}
    assert best_candidate(tree).objective_value == pytest.approx(
        reference_optimum(C, A, b, [1, 0])
    )


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_random_problems_against_milp(seed):
    rng = np.random.default_rng(seed)
    n, m = 3, 3
    C = rng.integers(1, 10, size=n).astype(float)
    A = rng.integers(1, 10, size=(m, n)).astype(float)
    b = rng.integers(10, 30, size=m).astype(float)
    names = [f"x{i}" for i in range(n)]

    tree = solve(names, names, C, A, b)

    assert_tree_invariants(tree)
    assert best_candidate(tree).objective_value == pytest.approx(
        reference_optimum(C, A, b, [1] * n)
    )


def test_inputs_are_not_modified(scenario_a):
    int_vars, xvars, C, A, b = scenario_a
    A_copy, b_copy = A.copy(), b.copy()
    solve(int_vars, xvars, C, A, b)
    assert np.array_equal(A, A_copy)
    assert np.array_equal(b, b_copy)


def test_decision_and_integer_vars_shared_by_all_nodes(scenario_a):
    tree = solve(*scenario_a)
    for node in iter_nodes(tree):
        assert node.decision_vars == ("x1", "x2")
        assert node.integer_vars == ("x1", "x2")


def test_stats(scenario_a):
    engine = BranchAndBound()
    engine.search(*scenario_a)

    assert engine.stats.nodes_explored == 3
    assert engine.stats.nodes_branched == 1
    assert engine.stats.solutions == 2
    assert engine.stats.max_depth == 1
    assert engine.stats.nodes_cancelled == 0


def test_node_callback_order(scenario_a):
    events = []
    engine = BranchAndBound(node_callback=lambda node, event: events.append(event))
    engine.search(*scenario_a)

    assert events == [Event.BRANCHED, Event.INTEGRAL, Event.INTEGRAL]


def test_node_limit_cancels_remaining_nodes(scenario_a, caplog):
    engine = BranchAndBound({"bb_max_nodes": 1})
    tree = engine.search(*scenario_a)

    assert isinstance(tree, Branch)
    for child in (tree.left.node, tree.right.node):
        assert child.status == SolverStatus.NODE_LIMIT
        assert child.operation.kind == OperationKind.UNSET
    assert engine.stats.nodes_cancelled == 2
    assert engine.stats.nodes_explored == 1
    assert sum("Search limit reached" in r.getMessage() for r in caplog.records) == 1


def test_depth_limit(scenario_a):
    tree = solve(*scenario_a, solver_options={"bb_max_depth": 0})

    assert isinstance(tree, Branch)
    assert tree.left.node.status == SolverStatus.NODE_LIMIT
    assert tree.right.node.status == SolverStatus.NODE_LIMIT


def test_relaxation_pivot_limit(scenario_a):
    tree = solve(*scenario_a, solver_options={"lp_max_iter": 0})

    assert isinstance(tree, Terminal)
    assert tree.node.status == SolverStatus.MAX_ITERATIONS
    assert tree.node.operation.kind == OperationKind.UNSET


def test_injected_relaxation(scenario_a):
    calls = []

    def recording_relaxation(var_names, c, A, b, max_iter=None, tol=1e-9):
        calls.append(A.shape[0])
        return maximise(var_names, c, A, b, max_iter=max_iter, tol=tol)

    engine = BranchAndBound(relaxation=recording_relaxation)
    engine.search(*scenario_a)

    assert calls == [2, 3, 3]


def test_unknown_option():
    with pytest.raises(ValueError, match="Unknown solver options"):
        BranchAndBound({"bb_strategy": "best_first"})


def test_invalid_limit():
    with pytest.raises(ValueError, match="bb_max_nodes"):
        BranchAndBound({"bb_max_nodes": 0})


def test_package_exports():
    assert ipbb.OPTIMAL == SolverStatus.OPTIMAL
    assert ipbb.solve is solve


def test_constraint_shape_mismatch_raises():
    A = [[1.0, 1.0, 1.0], [1.0, 2.0, 3.0]]
    with pytest.raises(ValueError, match="Constraint matrix has shape"):
        solve(["x1", "x2"], ["x1", "x2"], [1.0, 1.0], A, [1.0, 2.0, 3.0])


def test_identical_columns_branch_on_a_feasible_point():
    # x1 + x2 <= 2.5 with identical columns; the relaxation point is (2.5, 0)
    tree = solve(["x1", "x2"], ["x1", "x2"], [1.0, 1.0], [[1.0, 1.0]], [2.5])

    assert isinstance(tree, Branch)
    assert tree.node.split_variable == "x1"
    assert_tree_invariants(tree)
    for node in terminals(tree):
        if node.is_candidate:
            values = solution_values(node.decision_vars, node.tableau)
            assert values["x1"] + values["x2"] <= 2.5 + 1e-9
    assert best_candidate(tree).objective_value == pytest.approx(2.0)
