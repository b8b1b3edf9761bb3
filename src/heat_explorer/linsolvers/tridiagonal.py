"""Direct solver for tridiagonal linear systems."""

import jax
from flax import nnx
from jax import Array
import jax.numpy as jnp

from ..custom_types import SolveResult


class Thomas(nnx.Module):
    """
    Thomas algorithm (tridiagonal Gaussian elimination without pivoting).

    Forward elimination:
        cp_i = c_i / (b_i - a_i cp_{i-1}),
        dp_i = (d_i - a_i dp_{i-1}) / (b_i - a_i cp_{i-1}),
    seeded with cp_0 = c_0 / b_0, dp_0 = d_0 / b_0.

    Back substitution:
        x_{n-1} = dp_{n-1},  x_i = dp_i - cp_i x_{i+1}.

    If any pivot b_i - a_i cp_{i-1} (including b_0) has magnitude below
    `pivot_tol`, the right-hand side d is returned unchanged together with
    ok=False. No division by the near-zero pivot takes place.

    Implements: LinearSolverProtocol

    Attributes:
        pivot_tol: Smallest pivot magnitude accepted.
    """

    def __init__(self, pivot_tol: float = 1e-15):
        self.pivot_tol = pivot_tol

    def __call__(self, a: Array, b: Array, c: Array, d: Array) -> SolveResult:
        """
        Solve a_i x_{i-1} + b_i x_i + c_i x_{i+1} = d_i.

        Args:
            a: Sub-diagonal, shape (n,). a[0] is ignored.
            b: Main diagonal, shape (n,)
            c: Super-diagonal, shape (n,). c[n-1] is ignored.
            d: Right-hand side, shape (n,)

        Returns:
            x: Solution, or d if a degenerate pivot was met
            ok: False if a degenerate pivot was met
        """
        a = jnp.asarray(a).at[0].set(0.0)
        c = jnp.asarray(c).at[-1].set(0.0)
        b = jnp.asarray(b)
        d = jnp.asarray(d)

        def eliminate(carry, coeffs):
            cp_prev, dp_prev, ok = carry
            a_i, b_i, c_i, d_i = coeffs
            pivot = b_i - a_i * cp_prev
            usable = jnp.abs(pivot) >= self.pivot_tol
            # Substitute a harmless pivot so that nothing divides by ~0;
            # the result is discarded when ok is False.
            safe = jnp.where(usable, pivot, 1.0)
            cp = c_i / safe
            dp = (d_i - a_i * dp_prev) / safe
            return (cp, dp, ok & usable), (cp, dp)

        zero = jnp.zeros((), dtype=d.dtype)
        init = (zero, zero, jnp.array(True))
        (_, _, ok), (cp, dp) = jax.lax.scan(eliminate, init, (a, b, c, d))

        def substitute(x_next, coeffs):
            cp_i, dp_i = coeffs
            x_i = dp_i - cp_i * x_next
            return x_i, x_i

        # x_{n-1} = dp_{n-1} because cp_{n-1} = 0
        _, x = jax.lax.scan(substitute, zero, (cp, dp), reverse=True)

        return jnp.where(ok, x, d), ok


def solve_batched(
    solver,
    a: Array,
    b: Array,
    c: Array,
    d: Array
) -> SolveResult:
    """
    Solve many independent tridiagonal systems stored as rows.

    Args:
        solver: Linear solver implementing LinearSolverProtocol
        a, b, c, d: Coefficient arrays of shape (m, n), one system per row

    Returns:
        x: Solutions, shape (m, n). Rows whose solve failed hold their d.
        ok: True only if every row was solved
    """
    x, ok = jax.vmap(solver)(a, b, c, d)
    return x, jnp.all(ok)
