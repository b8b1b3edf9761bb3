"""Unit/integration tests for the simulation engine."""

import logging

import pytest
import jax.numpy as jnp

from heat_explorer import (
    BackwardEuler,
    ConfigurationError,
    CrankNicolson,
    Method,
    Parameters,
    SimulationCompleteError,
    SimulationEngine,
)
from heat_explorer.engine import compute_diagnostics, is_diverged
from heat_explorer.fields import initial_condition

METHODS = list(Method)


class FailingSolver:
    """Linear solver that always reports a degenerate pivot."""

    def __call__(self, a, b, c, d):
        return d, jnp.array(False)


def run_steps(engine, n):
    for _ in range(n):
        engine.step()
    return engine.diagnostics()


class TestReset:

    @pytest.mark.parametrize("dimension", ["1d", "2d"])
    def test_initial_state(self, dimension):
        engine = SimulationEngine(Parameters(dimension=dimension, nx=21))
        state = engine.state
        expected = initial_condition(engine.grid)
        assert jnp.array_equal(state.u, expected)
        assert jnp.array_equal(state.u_exact, expected)
        assert state.t == 0.0
        assert state.step_count == 0
        assert state.operation_cost == 0
        assert not state.diverged

        diagnostics = engine.diagnostics()
        assert diagnostics.l2_error == 0.0
        assert diagnostics.max_error == 0.0

    @pytest.mark.parametrize("dimension", ["1d", "2d"])
    def test_reset_is_idempotent(self, dimension):
        engine = SimulationEngine(Parameters(dimension=dimension, nx=15))
        first = engine.reset()
        second = engine.reset()
        assert jnp.array_equal(first.u, second.u)
        assert jnp.array_equal(first.u_exact, second.u_exact)
        assert first.t == second.t and first.step_count == second.step_count

    def test_reset_reuses_compiled_step(self):
        engine = SimulationEngine(Parameters(method="crank-nicolson", nx=15))
        advance = engine._session.advance
        engine.step()
        engine.reset()
        assert engine._session.advance is advance

        engine.configure(method="backward-euler")
        engine.reset()
        other = engine._session.advance
        assert other is not advance
        engine.configure(method="crank-nicolson")
        engine.reset()
        assert engine._session.advance is advance

    def test_reset_clears_progress(self):
        engine = SimulationEngine(Parameters(dt=0.1, t_max=100.0))
        run_steps(engine, 60)
        assert engine.state.diverged

        state = engine.reset()
        assert state.t == 0.0
        assert state.step_count == 0
        assert state.operation_cost == 0
        assert not state.diverged

    def test_configure_applies_at_next_reset(self):
        engine = SimulationEngine(Parameters(nx=21))
        engine.configure(nx=31, method="crank-nicolson")
        assert engine.grid.nx == 21
        assert engine.state.u.shape == (21,)

        engine.reset()
        assert engine.grid.nx == 31
        assert engine.state.u.shape == (31,)
        assert engine.method_info.method is Method.CRANK_NICOLSON

    def test_reset_with_parameters(self):
        engine = SimulationEngine()
        engine.reset(Parameters(dimension="2d", nx=9))
        assert engine.grid.shape == (9, 9)
        assert engine.state.u.shape == (9, 9)


class TestConfigurationErrors:

    @pytest.mark.parametrize("changes", [
        {"nx": 2},
        {"dt": 0.0},
        {"dt": -1e-3},
        {"method": "leapfrog"},
        {"dimension": "3d"},
    ])
    def test_invalid_configuration_rejected(self, changes):
        engine = SimulationEngine(Parameters(nx=21))
        with pytest.raises(ConfigurationError):
            engine.configure(**changes)
        # The running session and the stored parameters are untouched
        assert engine.parameters.nx == 21
        assert engine.state.u.shape == (21,)

    def test_missing_stepper_rejected(self):
        engine = SimulationEngine()
        engine._steppers.pop(Method.CRANK_NICOLSON)
        with pytest.raises(ConfigurationError):
            engine.configure(method="crank-nicolson")


class TestStepping:

    @pytest.mark.parametrize("method", METHODS, ids=lambda m: m.value)
    def test_boundaries_zero_1d(self, method):
        engine = SimulationEngine(Parameters(method=method, nx=21))
        for _ in range(10):
            u = engine.step().u
            assert u[0] == 0.0 and u[-1] == 0.0

    @pytest.mark.parametrize("method", METHODS, ids=lambda m: m.value)
    def test_boundaries_zero_2d(self, method):
        engine = SimulationEngine(Parameters(method=method, dimension="2d", nx=11))
        for _ in range(5):
            u = engine.step().u
            for edge in (u[0, :], u[-1, :], u[:, 0], u[:, -1]):
                assert jnp.all(edge == 0.0)

    def test_time_and_counters_advance(self):
        engine = SimulationEngine(Parameters(dt=0.01))
        state = engine.step()
        assert state.t == pytest.approx(0.01)
        assert state.step_count == 1
        state = engine.step()
        assert state.t == pytest.approx(0.02)
        assert state.step_count == 2
        assert jnp.allclose(
            state.u_exact,
            initial_condition(engine.grid) * jnp.exp(-0.01 * 9 * jnp.pi**2 * state.t),
        )

    def test_diffusion_number(self):
        engine = SimulationEngine(Parameters(L=1.0, alpha=0.01, nx=41, dt=0.001))
        assert engine.diffusion_number == pytest.approx(0.016)

        engine.reset(Parameters(L=1.0, alpha=0.01, nx=41, dt=0.001, dimension="2d"))
        rx, ry = engine.diffusion_number
        assert rx == ry == pytest.approx(0.016)

    def test_completed_session_refuses_steps(self):
        engine = SimulationEngine(Parameters(dt=0.001, t_max=0.005))
        while not engine.completed:
            engine.step()
        assert engine.state.step_count in (5, 6)
        assert engine.state.t >= 0.005
        with pytest.raises(SimulationCompleteError):
            engine.step()

    def test_solver_failure_keeps_previous_field(self, caplog):
        engine = SimulationEngine(
            Parameters(method="backward-euler", nx=21),
            steppers={Method.BACKWARD_EULER: BackwardEuler(linsolver=FailingSolver())},
        )
        before = engine.state.u

        with caplog.at_level(logging.WARNING, logger="heat_explorer"):
            state = engine.step()

        assert jnp.array_equal(state.u, before)
        assert state.step_count == 1
        assert state.t == pytest.approx(engine.parameters.dt)
        assert state.solver_failures == 1
        assert engine.diagnostics().solver_failures == 1
        assert "Degenerate pivot" in caplog.text

    @pytest.mark.parametrize("method, stepper_cls", [
        (Method.BACKWARD_EULER, BackwardEuler),
        (Method.CRANK_NICOLSON, CrankNicolson),
    ])
    def test_solver_failure_2d(self, method, stepper_cls):
        engine = SimulationEngine(
            Parameters(method=method, dimension="2d", nx=9),
            steppers={method: stepper_cls(linsolver=FailingSolver())},
        )
        before = engine.state.u
        state = engine.step()
        assert jnp.array_equal(state.u, before)
        assert state.solver_failures == 1


class TestStability:

    def test_stable_explicit_run(self):
        engine = SimulationEngine(Parameters(L=1.0, alpha=0.01, nx=41, dt=0.001))
        assert engine.diffusion_number == pytest.approx(0.016)
        diagnostics = run_steps(engine, 1000)
        assert not diagnostics.diverged
        assert diagnostics.stable
        assert diagnostics.l2_error < 1e-3

    def test_unstable_explicit_run_diverges(self, caplog):
        engine = SimulationEngine(
            Parameters(L=1.0, alpha=0.01, nx=41, dt=0.1, t_max=100.0)
        )
        assert engine.diffusion_number == pytest.approx(1.6)
        assert not engine.diagnostics().stable

        with caplog.at_level(logging.WARNING, logger="heat_explorer"):
            for _ in range(200):
                engine.step()
                if engine.state.diverged:
                    break

        assert engine.state.diverged
        assert engine.state.step_count < 200
        assert jnp.max(jnp.abs(engine.state.u)) > 10.0
        assert "diverged" in caplog.text

    def test_divergence_is_sticky(self):
        engine = SimulationEngine(Parameters(dt=0.1, t_max=1000.0))
        while not engine.state.diverged:
            engine.step()
        for _ in range(5):
            engine.step()
            assert engine.state.diverged
            assert engine.diagnostics().diverged

    @pytest.mark.parametrize("method", ["backward-euler", "crank-nicolson"])
    @pytest.mark.parametrize("dimension", ["1d", "2d"])
    def test_implicit_large_steps_stay_bounded(self, method, dimension):
        engine = SimulationEngine(
            Parameters(method=method, dimension=dimension, nx=21, dt=0.5, t_max=100.0)
        )
        diagnostics = run_steps(engine, 50)
        assert diagnostics.stable
        assert not diagnostics.diverged
        assert jnp.all(jnp.isfinite(engine.state.u))

    def test_divergence_rule(self):
        assert not is_diverged(jnp.array([0.0, 9.9, -10.0, 0.0]))
        assert is_diverged(jnp.array([0.0, -10.5, 0.0]))
        assert is_diverged(jnp.array([0.0, jnp.nan, 0.0]))
        assert is_diverged(jnp.zeros((3, 3)).at[1, 1].set(jnp.inf))


class TestAccuracy:

    def test_crank_nicolson_beats_backward_euler_1d(self):
        errors = {}
        for method in METHODS:
            engine = SimulationEngine(
                Parameters(method=method, nx=41, dt=0.01, alpha=0.01)
            )
            errors[method] = run_steps(engine, 100).l2_error
        assert errors[Method.CRANK_NICOLSON] <= errors[Method.BACKWARD_EULER]
        assert all(e < 1e-2 for e in errors.values())

    @pytest.mark.parametrize("method", METHODS, ids=lambda m: m.value)
    def test_2d_errors_small(self, method):
        engine = SimulationEngine(
            Parameters(method=method, dimension="2d", nx=21, dt=0.005)
        )
        diagnostics = run_steps(engine, 40)
        assert diagnostics.l2_error < 1e-2
        assert 0.0 < diagnostics.max_rel_error < 5.0


class TestDiagnostics:

    def test_relative_error_only_in_2d(self):
        engine = SimulationEngine(Parameters(nx=21))
        assert engine.diagnostics().max_rel_error is None
        assert "maxRelError" not in engine.diagnostics().as_dict()

        engine.reset(Parameters(nx=21, dimension="2d"))
        assert engine.diagnostics().max_rel_error == 0.0
        assert "maxRelError" in engine.diagnostics().as_dict()

    def test_relative_error_guard(self):
        u = jnp.ones((4, 4))
        _, max_error, max_rel_error = compute_diagnostics(u, jnp.zeros((4, 4)))
        assert max_error == 1.0
        assert max_rel_error == 0.0

    def test_relative_error_value(self):
        exact = jnp.full((3, 3), 2.0)
        u = exact.at[1, 1].set(2.5)
        _, _, max_rel_error = compute_diagnostics(u, exact)
        assert max_rel_error == pytest.approx(25.0)

    def test_non_finite_entries_excluded(self):
        exact = jnp.zeros(4)
        u = jnp.array([0.0, 2.0, jnp.nan, 0.0])
        l2_error, max_error, _ = compute_diagnostics(u, exact)
        assert l2_error == pytest.approx(jnp.sqrt(4.0 / 4))
        assert max_error == 2.0

    def test_as_dict_keys(self):
        engine = SimulationEngine(Parameters(dimension="2d", nx=9))
        engine.step()
        keys = set(engine.diagnostics().as_dict())
        assert {
            "l2Error", "maxError", "maxRelError", "diverged", "t",
            "stepCount", "operationCostEstimate", "diffusionNumber",
        } <= keys


class TestOperationCost:

    @pytest.mark.parametrize("method", METHODS, ids=lambda m: m.value)
    def test_strictly_increasing(self, method):
        engine = SimulationEngine(Parameters(method=method, nx=21))
        previous = engine.state.operation_cost
        for _ in range(5):
            cost = engine.step().operation_cost
            assert cost > previous
            previous = cost

    @pytest.mark.parametrize("method", METHODS, ids=lambda m: m.value)
    def test_scaling_with_grid_size(self, method):
        increments = {}
        for dimension in ("1d", "2d"):
            for nx in (11, 21):
                engine = SimulationEngine(
                    Parameters(method=method, dimension=dimension, nx=nx)
                )
                increments[dimension, nx] = engine.step().operation_cost
        assert increments["1d", 21] * 11 == increments["1d", 11] * 21
        assert increments["2d", 21] * 11**2 == increments["2d", 11] * 21**2


class TestViews:

    def test_method_info(self):
        engine = SimulationEngine(Parameters(method="explicit"))
        info = engine.method_info
        assert info.title == "Forward Euler"
        assert info.conditionally_stable
        assert info.order == 1

        engine.reset(Parameters(method="implicit", dimension="2d", nx=9))
        assert engine.method_info.title == "Backward Euler (ADI)"
        assert not engine.method_info.conditionally_stable

        engine.reset(Parameters(method="crank-nicolson", nx=9))
        assert engine.method_info.title == "Crank-Nicolson"
        assert engine.method_info.order == 2

    def test_midline(self):
        engine = SimulationEngine(Parameters(dimension="2d", nx=11))
        engine.step()
        x, u_mid, exact_mid = engine.midline()
        assert x.shape == u_mid.shape == exact_mid.shape == (11,)
        assert jnp.array_equal(u_mid, engine.state.u[:, 5])
        assert jnp.array_equal(exact_mid, engine.state.u_exact[:, 5])

    def test_midline_1d_returns_profiles(self):
        engine = SimulationEngine(Parameters(nx=11))
        x, u, exact = engine.midline()
        assert jnp.array_equal(u, engine.state.u)
        assert jnp.array_equal(x, engine.grid.x)

    def test_independent_sessions(self):
        a = SimulationEngine(Parameters(nx=21))
        b = SimulationEngine(Parameters(nx=21))
        a.step()
        assert b.state.step_count == 0
        assert jnp.array_equal(b.state.u, initial_condition(b.grid))
