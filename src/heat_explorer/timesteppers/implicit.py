"""
Implicit time-stepping schemes.

Every implicit step reduces to tridiagonal solves with Dirichlet rows,
delegated to the stepper's linear solver (Thomas algorithm by default).
"""

from dataclasses import dataclass, field

from jax import Array
import jax.numpy as jnp

from .base import AbstractStepper, dirichlet_system
from ..custom_types import SolveResult
from ..linsolvers import LinearSolverProtocol, Thomas, solve_batched


@dataclass(frozen=True)
class BackwardEuler(AbstractStepper):
    """
    Backward Euler time-stepping scheme.

    Discretisation (1D):
    $$
    -r u^{n+1}_{i-1} + (1 + 2r) u^{n+1}_i - r u^{n+1}_{i+1} = u^n_i
    $$

    In 2D the operator (1 - dt L) is split as (1 - dt Lx)(1 - dt Ly): one
    implicit sweep along x for every row, then one along y for every column.
    This is cheaper than a simultaneous 2D solve and still unconditionally
    stable, but it carries an O(dt^2) splitting error the fully implicit
    scheme does not have.

    Attributes:
        linsolver: Tridiagonal solver. Default: Thomas.
    """

    title = "Backward Euler"
    order = 1
    ops_per_point = {1: 8, 2: 16}

    linsolver: LinearSolverProtocol = field(default_factory=Thomas)

    def step_1d(self, u: Array, r: float) -> SolveResult:
        """
        Perform a Backward Euler step on the interval.

        Args:
            u: Current field, shape (nx,)
            r: Diffusion number alpha * dt / dx**2

        Returns:
            Solution at the next time level, and the solver's ok flag.
        """
        return self.linsolver(*dirichlet_system(-r, 1.0 + 2.0 * r, -r, u))

    def step_2d(self, u: Array, rx: float, ry: float) -> SolveResult:
        """
        Perform a split Backward Euler step on the square.

        Sweep 1 solves (1 - rx d2x) u* = u^n for every row j,
        sweep 2 solves (1 - ry d2y) u^{n+1} = u* for every column i.
        """
        # Systems along x are the columns of u[i, j]; transpose to rows
        u_star, ok_x = solve_batched(
            self.linsolver, *dirichlet_system(-rx, 1.0 + 2.0 * rx, -rx, u.T)
        )
        u_next, ok_y = solve_batched(
            self.linsolver, *dirichlet_system(-ry, 1.0 + 2.0 * ry, -ry, u_star.T)
        )
        return u_next, ok_x & ok_y
