"""Small integer programs solved with ipbb's branch-and-bound search.

Each example prints the search tree and picks the best integral terminal,
which is the post-pass callers are expected to do themselves.

Run this module directly to execute all examples.
"""

from __future__ import annotations

import logging

import autograd.numpy as np

import ipbb
from ipbb import Branch, BranchAndBound, solution_values, terminals


def print_tree(tree, indent=0):
    node = tree.node
    pad = "  " * indent
    if isinstance(tree, Branch):
        print(f"{pad}{node.origin!r}: z={node.objective_value:.4g}, split on {node.split_variable}")
        print_tree(tree.left, indent + 1)
        print_tree(tree.right, indent + 1)
    else:
        print(f"{pad}{node.origin!r}: {node.status}, {node.operation!r}, z={node.objective_value:.4g}")


def best_solution(tree):
    candidates = [n for n in terminals(tree) if n.is_candidate]
    if not candidates:
        return None
    return max(candidates, key=lambda n: n.objective_value)


# =============================================================================
# Two-variable textbook problem
# =============================================================================

def textbook_problem():
    """
    maximize    x1 + x2
    subject to  x1 + 2 x2 <= 4
                4 x1 + 2 x2 <= 12
                x1, x2 >= 0 and integer

    The relaxation optimum (8/3, 2/3) is fractional; both branches on x1
    end at integral points with objective 3.
    """
    print("=" * 60)
    print("TEXTBOOK PROBLEM")
    print("=" * 60)

    xvars = ["x1", "x2"]
    tree = ipbb.solve(
        integer_vars=xvars,
        decision_vars=xvars,
        C=np.array([1.0, 1.0]),
        A=np.array([[1.0, 2.0], [4.0, 2.0]]),
        b=np.array([4.0, 12.0]),
    )
    print_tree(tree)

    best = best_solution(tree)
    print(f"\nBest objective: {best.objective_value:g}")
    print(f"Point: {solution_values(xvars, best.tableau)}")


# =============================================================================
# Knapsack with general integer items
# =============================================================================

def knapsack_problem():
    """
    maximize    sum(v[i] * x[i])
    subject to  sum(w[i] * x[i]) <= capacity
                x[i] <= 1
                x[i] >= 0 and integer
    """
    print("=" * 60)
    print("0/1 KNAPSACK PROBLEM")
    print("=" * 60)

    items = ["gold", "silver", "diamond", "painting", "watch"]
    values = np.array([10.0, 6.0, 14.0, 7.0, 3.0])
    weights = np.array([5.0, 3.0, 7.0, 4.0, 2.0])
    capacity = 15.0

    n = len(items)
    A = np.vstack([weights, np.eye(n)])
    b = np.concatenate([[capacity], np.ones(n)])

    engine = BranchAndBound({"bb_max_nodes": 500})
    tree = engine.search(items, items, values, A, b)

    best = best_solution(tree)
    chosen = [name for name, v in solution_values(items, best.tableau).items() if v > 0.5]
    print(f"Selected: {', '.join(chosen)}")
    print(f"Total value: {best.objective_value:g}")
    print(f"Relaxations solved: {engine.stats.nodes_explored}, "
          f"branches: {engine.stats.nodes_branched}, "
          f"infeasible: {engine.stats.nodes_infeasible}")


# =============================================================================
# Infeasible problem
# =============================================================================

def infeasible_problem():
    """x1 >= 5 and x1 <= 2 cannot both hold; the root is an infeasible terminal."""
    print("=" * 60)
    print("INFEASIBLE PROBLEM")
    print("=" * 60)

    tree = ipbb.solve(
        ["x1"], ["x1", "x2"], [1.0, 1.0], [[-1.0, 0.0], [1.0, 0.0]], [-5.0, 2.0]
    )
    print_tree(tree)


def run_all_examples():
    textbook_problem()
    print()
    knapsack_problem()
    print()
    infeasible_problem()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_all_examples()
