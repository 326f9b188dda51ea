from enum import Enum, auto


class Event(Enum):
    INFEASIBLE = auto()
    UNBOUNDED = auto()
    STALLED = auto()
    INTEGRAL = auto()
    PRUNED = auto()
    BRANCHED = auto()
    CANCELLED = auto()


DEFAULT_INT_TOL = 1e-9  # Distance to the nearest integer treated as integral
DEFAULT_PIVOT_TOL = 1e-9  # Smallest magnitude accepted as a pivot / reduced cost
DEFAULT_MAX_NODES = 10000
DEFAULT_LP_ITER_FACTOR = 50  # Pivot limit is this times (rows + cols)
