"""
Compare a finite-difference solution of the heat equation with the exact
eigenmode solution and plot both at the start and the end of the run.

Example:
    python examples/heat_explorer_demo.py --method explicit --dt 0.1 --t_max 5
shows the Forward Euler instability (r = 1.6 > 0.5).
"""

import argparse
import logging

import jax.numpy as jnp
from matplotlib import pyplot as plt

from heat_explorer import Parameters, SimulationEngine, setup_logging, tick


def main():
    parser = argparse.ArgumentParser(description='Heat equation explorer')
    parser.add_argument('--method', type=str, default='forward-euler',
                        help='forward-euler, backward-euler or crank-nicolson (default: forward-euler)')
    parser.add_argument('--dimension', type=str, default='1d', help='1d or 2d (default: 1d)')
    parser.add_argument('--nx', type=int, default=41, help='Grid points per axis (default: 41)')
    parser.add_argument('--dt', type=float, default=1e-3, help='Time step size (default: 1e-3)')
    parser.add_argument('--t_max', type=float, default=2.0, help='Simulation time (default: 2.0)')
    parser.add_argument('--speed', type=int, default=5, help='Steps per tick (default: 5)')
    parser.add_argument('--quiet', action='store_true', help='Only log warnings')
    args = parser.parse_args()

    setup_logging(logging.WARNING if args.quiet else logging.INFO)

    params = Parameters(
        method=args.method,
        dimension=args.dimension,
        nx=args.nx,
        dt=args.dt,
        t_max=args.t_max,
        speed=args.speed,
    )
    engine = SimulationEngine(params)
    x, u0, _ = engine.midline()

    # Report at roughly ten evenly spaced ticks
    n_ticks = 0
    report_every = max(1, int(params.t_max / (params.dt * params.speed)) // 10)
    while not engine.completed:
        diagnostics = tick(engine)
        n_ticks += 1
        if n_ticks % report_every == 0 or engine.completed:
            print(
                f"t={diagnostics.t:.3f}: L2 error = {diagnostics.l2_error:.3e}, "
                f"max error = {diagnostics.max_error:.3e}"
                + (" [DIVERGED]" if diagnostics.diverged else "")
            )

    diagnostics = engine.diagnostics()
    print(f"{engine.method_info.title}: {diagnostics.step_count} steps, "
          f"~{diagnostics.operation_cost:.2e} operations")

    x, u, u_exact = engine.midline()
    # Saturate diverged values so the plot stays readable
    u = jnp.clip(jnp.nan_to_num(u, nan=0.0), -2.0, 2.0)

    label = "" if params.dimension.value == "1d" else ", $y=0.5$"
    fig, ax = plt.subplots()
    ax.plot(x, u0, '--', label=f"Initial{label}")
    ax.plot(x, u_exact, '-', label=f"Analytical, $t={diagnostics.t:.2f}${label}")
    ax.plot(x, u, '-', marker='.', label=f"{engine.method_info.title}, $t={diagnostics.t:.2f}${label}")
    ax.legend()
    ax.set_xlabel('x')
    ax.set_ylabel('u')
    plt.show()


if __name__ == "__main__":
    main()
