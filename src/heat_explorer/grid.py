"""Uniform grids on the closed interval [0, L] with Dirichlet end points."""

from dataclasses import dataclass

import jax.numpy as jnp
from jax import Array

from .config import ConfigurationError


@dataclass(frozen=True)
class Grid:
    """
    Uniform grid for a 1D interval or a square 2D domain.

    Attributes:
        L: Domain length.
        nx: Number of points per axis, boundary points included.
        ndim: Number of space dimensions (1 or 2).
        dx: Grid spacing, L / (nx - 1). The 2D grid uses dy = dx.
        x: Coordinates x_i = i * dx, shape (nx,). In 2D, y uses the same values.
    """

    L: float
    nx: int
    ndim: int
    dx: float
    x: Array

    @property
    def y(self) -> Array:
        return self.x

    @property
    def shape(self) -> tuple:
        return (self.nx,) * self.ndim

    @property
    def num_points(self) -> int:
        return self.nx ** self.ndim

    def mesh(self) -> tuple:
        """Coordinate arrays indexed as u[i, j] <-> (x_i, y_j)."""
        if self.ndim == 1:
            return (self.x,)
        return tuple(jnp.meshgrid(self.x, self.y, indexing="ij"))


def create_uniform_grid(L: float, nx: int, ndim: int = 1) -> Grid:
    """
    Create a uniform grid that includes both boundary points.

    Args:
        L: Domain length
        nx: Number of grid points per axis (at least 3)
        ndim: Number of space dimensions (1 or 2)

    Returns:
        Grid with spacing dx = L / (nx - 1)
    """
    if nx < 3:
        raise ConfigurationError(f"Need at least 3 grid points, got nx={nx}")
    if L <= 0:
        raise ConfigurationError(f"Domain length must be positive, got L={L}")
    if ndim not in (1, 2):
        raise ConfigurationError(f"Unsupported number of dimensions: {ndim}")

    dx = L / (nx - 1)
    x = jnp.arange(nx, dtype=jnp.float64) * dx
    return Grid(L=float(L), nx=int(nx), ndim=int(ndim), dx=dx, x=x)
