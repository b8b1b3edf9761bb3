"""Protocol for linear solvers used in implicit time-stepping schemes."""

from typing import Protocol, runtime_checkable

from jax import Array

from ..custom_types import SolveResult


@runtime_checkable
class LinearSolverProtocol(Protocol):
    """
    Protocol for tridiagonal linear solvers.

    Defines the interface for solving
        a_i x_{i-1} + b_i x_i + c_i x_{i+1} = d_i.
    Any class implementing a __call__() method with this signature can be
    used as the linear solver of an implicit stepper.
    """

    def __call__(
        self,
        a: Array,
        b: Array,
        c: Array,
        d: Array
    ) -> SolveResult:
        """
        Solve the tridiagonal system.

        Args:
            a: Sub-diagonal, a[0] is ignored
            b: Main diagonal
            c: Super-diagonal, c[-1] is ignored
            d: Right-hand side

        Returns:
            x: Solution vector, or d unchanged if the solve failed
            ok: 0-dimensional boolean array, False if the solve failed
        """
        ...
