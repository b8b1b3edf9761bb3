"""
Initial conditions and closed-form solutions for a single eigenmode.

1D: u(x, 0) = sin(3 pi x / L), an eigenfunction of d2/dx2 on [0, L] with
Dirichlet ends, so u(x, t) = u(x, 0) exp(-alpha (3 pi / L)^2 t).

2D: u(x, y, 0) = sin(2 pi x / L) sin(pi y / L), with
u(x, y, t) = u(x, y, 0) exp(-alpha 5 pi^2 t / L^2). For the unit square this
is sin(2 pi x) sin(pi y) decaying at rate 5 pi^2 alpha.
"""

import jax.numpy as jnp
from jax import Array

from .grid import Grid

# Wavenumbers (in units of pi / L) of the mode along each axis
MODE_1D = (3,)
MODE_2D = (2, 1)


def mode_numbers(ndim: int) -> tuple:
    return MODE_1D if ndim == 1 else MODE_2D


def decay_rate(grid: Grid, alpha: float) -> float:
    """Eigenvalue alpha * lambda of the diffusion operator for the mode."""
    k_sq = sum(m ** 2 for m in mode_numbers(grid.ndim))
    return alpha * k_sq * (jnp.pi / grid.L) ** 2


def initial_condition(grid: Grid) -> Array:
    """
    Evaluate the eigenmode with unit amplitude on the grid.

    sin(m pi) is only zero up to round-off, so boundary entries are set to
    exactly zero.
    """
    modes = mode_numbers(grid.ndim)
    u = jnp.ones(grid.shape, dtype=grid.x.dtype)
    for m, coord in zip(modes, grid.mesh()):
        u = u * jnp.sin(m * jnp.pi * coord / grid.L)
    return apply_dirichlet(u)


def apply_dirichlet(u: Array) -> Array:
    """Set every boundary entry of a 1D or 2D field to zero."""
    u = u.at[0].set(0.0).at[-1].set(0.0)
    if u.ndim == 2:
        u = u.at[:, 0].set(0.0).at[:, -1].set(0.0)
    return u


def analytical_solution(grid: Grid, alpha: float, t: float) -> Array:
    """Exact solution of the continuous problem at time t."""
    return initial_condition(grid) * jnp.exp(-decay_rate(grid, alpha) * t)
