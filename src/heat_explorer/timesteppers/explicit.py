"""Explicit time-stepping schemes."""

from dataclasses import dataclass

from jax import Array
import jax.numpy as jnp

from .base import AbstractStepper
from ..custom_types import SolveResult
from ..derivatives import d2_dirichlet


@dataclass(frozen=True)
class ForwardEuler(AbstractStepper):
    """
    Forward Euler method (FTCS).

    Discretisation:
    $$
    u^{n+1}_i = u^n_i + r (u^n_{i+1} - 2 u^n_i + u^n_{i-1})
    $$

    Conditionally stable: r <= 1/2 in 1D and rx + ry <= 1/2 in 2D. The
    condition is never enforced; unstable runs are allowed to blow up.
    """

    title = "Forward Euler"
    order = 1
    stability_limit = 0.5
    ops_per_point = {1: 5, 2: 10}

    def step_1d(self, u: Array, r: float) -> SolveResult:
        """
        Perform a single Forward Euler step on the interval.

        Args:
            u: Current field, shape (nx,)
            r: Diffusion number alpha * dt / dx**2

        Returns:
            Field at the next time level and ok=True.
        """
        return u + r * d2_dirichlet(u, axis=0), jnp.array(True)

    def step_2d(self, u: Array, rx: float, ry: float) -> SolveResult:
        """Five-point stencil update on the square."""
        u_next = u + rx * d2_dirichlet(u, axis=0) + ry * d2_dirichlet(u, axis=1)
        return u_next, jnp.array(True)
