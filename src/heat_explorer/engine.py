"""
Simulation engine for the heat equation explorer.

The engine owns one session: parameters, grid, the active stepper and the
field state. A driver (animation loop, script, test) calls `step()` and
reads `diagnostics()`; the engine has no timer of its own.

Session lifecycle:
    Idle (after reset, t = 0) -> Running (after one step) -> Completed
    (t >= t_max). Diverged is a sticky flag on the field state and does not
    stop stepping.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Mapping, Optional, Tuple

import jax
import jax.numpy as jnp
from jax import Array

from .config import ConfigurationError, Dimension, Method, Parameters
from .custom_types import DiffusionNumber
from .fields import analytical_solution, initial_condition
from .grid import Grid, create_uniform_grid
from .timesteppers import AbstractStepper, BackwardEuler, CrankNicolson, ForwardEuler

logger = logging.getLogger(__name__)

# Any |u| above this, or any non-finite value, marks the session diverged
DIVERGENCE_THRESHOLD = 10.0

# Relative error is reported as 0 when max |u_exact| is below this
RELATIVE_ERROR_FLOOR = 1e-9


class SimulationCompleteError(RuntimeError):
    """Raised when stepping a session that has reached t_max."""


def default_steppers() -> Dict[Method, AbstractStepper]:
    """Map every method to its stepper, using the Thomas solver."""
    return {
        Method.FORWARD_EULER: ForwardEuler(),
        Method.BACKWARD_EULER: BackwardEuler(),
        Method.CRANK_NICOLSON: CrankNicolson(),
    }


@dataclass(frozen=True)
class FieldState:
    """
    Numerical and analytical fields plus per-session counters.

    Attributes:
        u: Numerical field, shape (nx,) or (nx, nx). Boundaries are zero.
        u_exact: Analytical field at time t, same shape as u.
        t: Elapsed simulation time.
        step_count: Number of steps taken since reset.
        operation_cost: Cumulative operation-count estimate.
        diverged: Sticky divergence flag.
        solver_failures: Steps on which a linear solve hit a degenerate pivot.
    """

    u: Array
    u_exact: Array
    t: float = 0.0
    step_count: int = 0
    operation_cost: int = 0
    diverged: bool = False
    solver_failures: int = 0


@dataclass(frozen=True)
class Diagnostics:
    """Error and stability measures derived from one field state."""

    l2_error: float
    max_error: float
    max_rel_error: Optional[float]
    diverged: bool
    t: float
    step_count: int
    operation_cost: int
    diffusion_number: DiffusionNumber
    stable: bool
    solver_failures: int = 0

    def as_dict(self) -> dict:
        """Key names used by chart and status-panel collaborators."""
        out = {
            "l2Error": self.l2_error,
            "maxError": self.max_error,
            "diverged": self.diverged,
            "t": self.t,
            "stepCount": self.step_count,
            "operationCostEstimate": self.operation_cost,
            "diffusionNumber": self.diffusion_number,
            "stable": self.stable,
        }
        if self.max_rel_error is not None:
            out["maxRelError"] = self.max_rel_error
        return out


@dataclass(frozen=True)
class MethodInfo:
    """Descriptive information about the active scheme."""

    method: Method
    title: str
    order: int
    stability_limit: Optional[float]

    @property
    def conditionally_stable(self) -> bool:
        return self.stability_limit is not None


@dataclass(frozen=True)
class _Session:
    parameters: Parameters
    grid: Grid
    stepper: AbstractStepper
    advance: Callable
    r: DiffusionNumber
    state: FieldState


def diffusion_number(parameters: Parameters, grid: Grid) -> DiffusionNumber:
    """r = alpha dt / dx**2, or (rx, ry) with rx = ry on the square grid."""
    r = parameters.alpha * parameters.dt / grid.dx ** 2
    return r if grid.ndim == 1 else (r, r)


def is_diverged(u: Array) -> bool:
    """Global-maximum rule: any |u| > 10 or any non-finite entry."""
    max_abs = jnp.max(jnp.abs(u))
    return bool(~jnp.isfinite(max_abs) | (max_abs > DIVERGENCE_THRESHOLD))


def compute_diagnostics(u: Array, u_exact: Array) -> Tuple[float, float, Optional[float]]:
    """
    Error measures between the numerical and the analytical field.

    Non-finite pointwise errors are left out of the sums, but the L2 error
    is still averaged over every grid point.

    Returns:
        l2_error: sqrt(sum |u - u_exact|^2 / n_points)
        max_error: max |u - u_exact|
        max_rel_error: 100 * max_error / max |u_exact| for 2D fields
            (0 when max |u_exact| <= 1e-9), None for 1D fields
    """
    err = jnp.abs(u - u_exact)
    finite = jnp.isfinite(err)
    sq_sum = jnp.sum(jnp.where(finite, err ** 2, 0.0))
    l2_error = float(jnp.sqrt(sq_sum / err.size))
    max_error = float(jnp.max(jnp.where(finite, err, 0.0)))

    max_rel_error = None
    if u.ndim == 2:
        abs_exact = jnp.abs(u_exact)
        max_exact = float(jnp.max(jnp.where(jnp.isfinite(abs_exact), abs_exact, 0.0)))
        max_rel_error = 0.0
        if max_exact > RELATIVE_ERROR_FLOOR:
            max_rel_error = 100.0 * max_error / max_exact
    return l2_error, max_error, max_rel_error


class SimulationEngine:
    """
    Owns and advances one heat-equation session.

    Example usage:
    ```python
    from heat_explorer import SimulationEngine, Parameters

    engine = SimulationEngine(Parameters(method="crank-nicolson", dt=0.01))
    while not engine.completed:
        engine.step()
    print(engine.diagnostics().l2_error)
    ```

    Args:
        parameters: Session parameters. Default: Parameters().
        steppers: Optional overrides of the stepper used for each method.
    """

    def __init__(
        self,
        parameters: Optional[Parameters] = None,
        steppers: Optional[Mapping[Method, AbstractStepper]] = None,
    ):
        self._steppers = default_steppers()
        if steppers is not None:
            self._steppers.update(steppers)
        self._parameters = parameters if parameters is not None else Parameters()
        self._advance: Dict[Method, Callable] = {}
        self._session: Optional[_Session] = None
        self.reset()

    @property
    def parameters(self) -> Parameters:
        """Parameters applied at the next reset."""
        return self._parameters

    def configure(self, parameters: Optional[Parameters] = None, **changes) -> Parameters:
        """
        Set the parameters used by the next `reset()`.

        Either pass a full Parameters value, keyword changes to the current
        parameters, or both (changes are applied on top of `parameters`).
        The running session is left untouched until `reset()`.

        Raises:
            ConfigurationError: If the resulting parameters are invalid.
        """
        base = parameters if parameters is not None else self._parameters
        new = base.replace(**changes) if changes else base
        if new.method not in self._steppers:
            raise ConfigurationError(f"No stepper registered for {new.method.value}")
        self._parameters = new
        return new

    def reset(self, parameters: Optional[Parameters] = None) -> FieldState:
        """
        Rebuild grid and fields from the parameters.

        The new session is assembled completely before it replaces the old
        one, so observers never see a grid paired with a field of another
        size.
        """
        if parameters is not None:
            self.configure(parameters)
        params = self._parameters
        if params.method not in self._steppers:
            raise ConfigurationError(f"No stepper registered for {params.method.value}")

        grid = create_uniform_grid(params.L, params.nx, params.ndim)
        stepper = self._steppers[params.method]
        u0 = initial_condition(grid)
        state = FieldState(u=u0, u_exact=analytical_solution(grid, params.alpha, 0.0))
        r = diffusion_number(params, grid)

        self._session = _Session(
            parameters=params,
            grid=grid,
            stepper=stepper,
            advance=self._advance_fn(params.method),
            r=r,
            state=state,
        )

        logger.info(
            "Reset %s session: method=%s, nx=%d, dt=%g, r=%.4g",
            params.dimension.value, params.method.value, params.nx, params.dt,
            self._r_total(),
        )
        if not stepper.is_stable(self._r_total()):
            logger.warning(
                "%s is unstable for r=%.4g (limit %g); expect divergence",
                stepper.title, self._r_total(), stepper.stability_limit,
            )
        return state

    def step(self) -> FieldState:
        """
        Advance the session by one time step.

        If a linear solve hits a degenerate pivot, the field keeps its
        previous values for this step; time and counters still advance.

        Raises:
            SimulationCompleteError: If t has already reached t_max.
        """
        session = self._session
        params = session.parameters
        state = session.state
        if self.completed:
            raise SimulationCompleteError(
                f"t={state.t:.6g} has reached t_max={params.t_max:g}; reset to continue"
            )

        u_next, ok = session.advance(state.u, session.r)
        failures = state.solver_failures
        if not bool(ok):
            logger.warning(
                "Degenerate pivot in %s at step %d; keeping previous field",
                session.stepper.title, state.step_count + 1,
            )
            u_next = state.u
            failures += 1

        t = state.t + params.dt
        diverged = state.diverged or is_diverged(u_next)
        if diverged and not state.diverged:
            logger.warning(
                "Solution diverged at t=%.6g (step %d)", t, state.step_count + 1
            )

        new_state = replace(
            state,
            u=u_next,
            u_exact=analytical_solution(session.grid, params.alpha, t),
            t=t,
            step_count=state.step_count + 1,
            operation_cost=state.operation_cost
            + session.stepper.operation_cost(session.grid.nx, session.grid.ndim),
            diverged=diverged,
            solver_failures=failures,
        )
        self._session = replace(session, state=new_state)
        return new_state

    def diagnostics(self) -> Diagnostics:
        """Recompute error and stability measures from the current state."""
        session = self._session
        state = session.state
        l2_error, max_error, max_rel_error = compute_diagnostics(state.u, state.u_exact)
        return Diagnostics(
            l2_error=l2_error,
            max_error=max_error,
            max_rel_error=max_rel_error,
            diverged=state.diverged or is_diverged(state.u),
            t=state.t,
            step_count=state.step_count,
            operation_cost=state.operation_cost,
            diffusion_number=session.r,
            stable=session.stepper.is_stable(self._r_total()),
            solver_failures=state.solver_failures,
        )

    @property
    def state(self) -> FieldState:
        return self._session.state

    @property
    def grid(self) -> Grid:
        return self._session.grid

    @property
    def diffusion_number(self) -> DiffusionNumber:
        return self._session.r

    @property
    def completed(self) -> bool:
        session = self._session
        return session.state.t >= session.parameters.t_max

    @property
    def method_info(self) -> MethodInfo:
        session = self._session
        stepper = session.stepper
        title = stepper.title
        if session.parameters.dimension is Dimension.TWO_D and stepper.stability_limit is None:
            title += " (ADI)"
        return MethodInfo(
            method=session.parameters.method,
            title=title,
            order=stepper.order,
            stability_limit=stepper.stability_limit,
        )

    def midline(self) -> Tuple[Array, Array, Array]:
        """
        Profiles along x through the middle of the domain.

        Returns:
            x, u and u_exact at y-index nx // 2 for 2D sessions; the full
            profiles for 1D sessions.
        """
        session = self._session
        state = session.state
        x = session.grid.x
        if session.grid.ndim == 1:
            return x, state.u, state.u_exact
        j_mid = session.grid.nx // 2
        return x, state.u[:, j_mid], state.u_exact[:, j_mid]

    def _advance_fn(self, method: Method) -> Callable:
        # One jitted step per method, reused across resets
        if method not in self._advance:
            stepper = self._steppers[method]
            self._advance[method] = jax.jit(lambda u, r_: stepper.step(u, r_))
        return self._advance[method]

    def _r_total(self) -> float:
        r = self._session.r
        return r if isinstance(r, float) else sum(r)
