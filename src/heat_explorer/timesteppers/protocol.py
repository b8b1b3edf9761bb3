"""Protocols for time-stepping schemes."""

from typing import Protocol, runtime_checkable

from jax import Array

from ..custom_types import DiffusionNumber, SolveResult


@runtime_checkable
class StepperProtocol(Protocol):
    """
    Protocol for time-stepping schemes of the heat equation.

    Defines the interface for advancing a 1D or 2D field one time step.
    Any class implementing a step() method with this signature can be driven
    by the simulation engine.
    """

    def step(self, u: Array, r: DiffusionNumber) -> SolveResult:
        """
        Take a single time step.

        Args:
            u: Current field, shape (nx,) or (nx, nx).
            r: Diffusion number alpha * dt / dx**2, or (rx, ry) in 2D.

        Returns:
            u_next: Field after one step, boundaries zero.
            ok: False if a linear solve fell back to its right-hand side.
        """
        ...
