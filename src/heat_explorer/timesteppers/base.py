"""Abstract base class for time-stepping schemes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Dict, Optional, Tuple

from jax import Array
import jax.numpy as jnp

from ..custom_types import DiffusionNumber, SolveResult
from ..fields import apply_dirichlet


@dataclass(frozen=True)
class AbstractStepper(ABC):
    """
    Base class for time-stepping schemes of u_t = alpha (u_xx + u_yy).

    One stepper covers both dimensionalities: `step` dispatches on the rank
    of the field to `step_1d` or `step_2d`. Boundary entries of the result
    are always reset to zero.

    Class attributes:
        title: Display name.
        order: Order of accuracy in time.
        stability_limit: Largest stable sum of diffusion numbers, or None if
            the scheme is unconditionally stable.
        ops_per_point: Estimated operations per grid point and step, keyed
            by dimension.
    """

    title: ClassVar[str] = ""
    order: ClassVar[int] = 1
    stability_limit: ClassVar[Optional[float]] = None
    ops_per_point: ClassVar[Dict[int, int]] = {}

    def step(self, u: Array, r: DiffusionNumber) -> SolveResult:
        """
        Advance the field by one time step.

        Args:
            u: Current field, shape (nx,) or (nx, ny).
            r: Diffusion number for 1D, (rx, ry) for 2D.

        Returns:
            u_next: Field at the next time level.
            ok: 0-dimensional boolean array, False if a linear solve failed.
        """
        if u.ndim == 1:
            u_next, ok = self.step_1d(u, r)
        elif u.ndim == 2:
            rx, ry = r
            u_next, ok = self.step_2d(u, rx, ry)
        else:
            raise ValueError(f"Unsupported field rank: {u.ndim}")
        return apply_dirichlet(u_next), ok

    @abstractmethod
    def step_1d(self, u: Array, r: float) -> SolveResult:
        ...

    @abstractmethod
    def step_2d(self, u: Array, rx: float, ry: float) -> SolveResult:
        ...

    def is_stable(self, r_total: float) -> bool:
        """Whether the scheme is stable for the summed diffusion number."""
        return self.stability_limit is None or r_total <= self.stability_limit

    def operation_cost(self, nx: int, ndim: int) -> int:
        """Estimated operation count of one step on an nx**ndim grid."""
        return self.ops_per_point[ndim] * nx ** ndim


def dirichlet_system(
    lower: float,
    diag: float,
    upper: float,
    rhs: Array
) -> Tuple[Array, Array, Array, Array]:
    """
    Assemble constant-coefficient tridiagonal systems with Dirichlet rows.

    Interior rows read lower * x_{i-1} + diag * x_i + upper * x_{i+1} = rhs_i.
    Row 0 and row n-1 are replaced by the identity equation x = 0.

    Args:
        lower, diag, upper: Interior coefficients
        rhs: Right-hand sides, shape (n,) or (m, n) for m independent systems

    Returns:
        a, b, c, d arrays with the shape of rhs
    """
    a = jnp.full(rhs.shape, lower, dtype=rhs.dtype)
    b = jnp.full(rhs.shape, diag, dtype=rhs.dtype)
    c = jnp.full(rhs.shape, upper, dtype=rhs.dtype)

    a = a.at[..., 0].set(0.0).at[..., -1].set(0.0)
    b = b.at[..., 0].set(1.0).at[..., -1].set(1.0)
    c = c.at[..., 0].set(0.0).at[..., -1].set(0.0)
    d = rhs.at[..., 0].set(0.0).at[..., -1].set(0.0)
    return a, b, c, d
