import logging

import autograd.numpy as np
import pytest


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Run every test with the package's per-node tracing switched on"""
    caplog.set_level(logging.DEBUG, logger="ipbb")
    yield


@pytest.fixture
def scenario_a():
    # maximize x1 + x2  s.t.  x1 + 2 x2 <= 4,  4 x1 + 2 x2 <= 12
    C = np.array([1.0, 1.0])
    A = np.array([[1.0, 2.0], [4.0, 2.0]])
    b = np.array([4.0, 12.0])
    return ("x1", "x2"), ("x1", "x2"), C, A, b


@pytest.fixture
def scenario_b():
    # x1 >= 5 and x1 <= 2
    C = np.array([1.0, 1.0])
    A = np.array([[-1.0, 0.0], [1.0, 0.0]])
    b = np.array([-5.0, 2.0])
    return ("x1", "x2"), ("x1", "x2"), C, A, b


@pytest.fixture
def scenario_c():
    # Relaxation optimum (2, 3) is already integral
    C = np.array([1.0, 1.0])
    A = np.array([[1.0, 0.0], [0.0, 1.0]])
    b = np.array([2.0, 3.0])
    return ("x1", "x2"), ("x1", "x2"), C, A, b
