"""Linear solvers used in implicit time-stepping schemes."""

from .protocol import LinearSolverProtocol
from .tridiagonal import Thomas, solve_batched


__all__ = [
    # Protocol
    "LinearSolverProtocol",

    # Direct solvers
    "Thomas",
    "solve_batched",
]
