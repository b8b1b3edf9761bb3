"""
Heat Equation Explorer

Finite-difference integration of the heat equation on a 1D interval or a
2D square, compared against a closed-form eigenmode solution.

Main components:
- timesteppers: Forward Euler, Backward Euler and Crank-Nicolson (ADI in 2D)
- linsolvers: Thomas algorithm for tridiagonal systems
- engine: Session state, stepping and diagnostics
"""

import jax

# Double precision throughout; the error measures are compared against
# thresholds well below single-precision round-off.
jax.config.update("jax_enable_x64", True)

from .config import ConfigurationError, Dimension, Method, Parameters
from .grid import Grid, create_uniform_grid
from .fields import analytical_solution, initial_condition
from .linsolvers import Thomas
from .timesteppers import AbstractStepper, ForwardEuler, BackwardEuler, CrankNicolson
from .engine import (
    Diagnostics,
    FieldState,
    MethodInfo,
    SimulationCompleteError,
    SimulationEngine,
)
from .integrate import run, tick
from .logging_config import setup_logging

__all__ = [
    # Configuration
    "Parameters",
    "Method",
    "Dimension",
    "ConfigurationError",

    # Grid and fields
    "Grid",
    "create_uniform_grid",
    "initial_condition",
    "analytical_solution",

    # Solvers and time stepping
    "Thomas",
    "AbstractStepper",
    "ForwardEuler",
    "BackwardEuler",
    "CrankNicolson",

    # Engine
    "SimulationEngine",
    "FieldState",
    "Diagnostics",
    "MethodInfo",
    "SimulationCompleteError",

    # Drivers
    "tick",
    "run",

    # Logging
    "setup_logging",
]
