"""
Driver helpers that batch engine steps the way an animation loop does.
"""

import logging
import time
from typing import List, Optional, Sequence, Tuple

from jax import Array

from .engine import Diagnostics, SimulationEngine

logger = logging.getLogger(__name__)


def tick(engine: SimulationEngine, speed: Optional[int] = None) -> Diagnostics:
    """
    Perform one driver tick: up to `speed` steps, then one diagnostics read.

    Stepping stops early once the session completes. Batching never changes
    the numbers: n ticks of speed s equal n * s individual `step()` calls.

    Args:
        engine: Session to advance
        speed: Steps per tick. Default: engine.parameters.speed.

    Returns:
        Diagnostics after the batch.
    """
    if speed is None:
        speed = engine.parameters.speed
    if speed < 1:
        raise ValueError(f"speed must be at least 1, got {speed}")

    for _ in range(speed):
        if engine.completed:
            break
        engine.step()
    return engine.diagnostics()


def run(
    engine: SimulationEngine,
    t_eval: Optional[Sequence[float]] = None,
    verbose: bool = False
) -> Tuple[List[float], List[Array], List[Diagnostics]]:
    """
    Step the session until t_max, recording snapshots along the way.

    A snapshot is taken at the start, after the first step whose time
    reaches each entry of `t_eval`, and at the end.

    Args:
        engine: Session to advance (typically straight after a reset)
        t_eval: Times at which to record the solution. Must be sorted.
            If None, records only the initial and final states.
        verbose: Log progress information

    Returns:
        t: Recorded times
        u: Numerical fields at those times
        diagnostics: Diagnostics at those times

    Example usage:
    ```python
    from heat_explorer import SimulationEngine, Parameters
    from heat_explorer.integrate import run

    engine = SimulationEngine(Parameters(method="backward-euler", dt=0.01))
    t, u, diags = run(engine, t_eval=[0.5, 1.0, 1.5])
    ```
    """
    t_eval = [] if t_eval is None else [float(t) for t in t_eval]
    if any(b < a for a, b in zip(t_eval, t_eval[1:])):
        raise ValueError("t_eval must be sorted in increasing order")

    params = engine.parameters
    if verbose:
        logger.info(
            "Solving with %s, t_max=%g, dt=%g",
            engine.method_info.title, params.t_max, params.dt,
        )

    def record():
        state = engine.state
        t_save.append(state.t)
        u_save.append(state.u)
        diag_save.append(engine.diagnostics())

    t_save: List[float] = []
    u_save: List[Array] = []
    diag_save: List[Diagnostics] = []
    record()

    pending = [t for t in t_eval if t > engine.state.t]
    start_wallclock = time.time()
    n_steps = 0

    while not engine.completed:
        engine.step()
        n_steps += 1
        if pending and engine.state.t >= pending[0]:
            record()
            while pending and engine.state.t >= pending[0]:
                pending.pop(0)

    if t_save[-1] != engine.state.t:
        record()

    if verbose:
        elapsed = time.time() - start_wallclock
        logger.info(
            "Completed %d steps in %.3fs (%.1f steps/s)",
            n_steps, elapsed, n_steps / elapsed if elapsed > 0 else float("inf"),
        )
        if engine.state.diverged:
            logger.info("Solution diverged during the run")

    return t_save, u_save, diag_save
