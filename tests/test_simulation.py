"""
Tests for the sheath simulation driver.

Runs use a 20-cell domain with a few hundred particles per species so the
whole cycle (including numba compilation) stays quick.
"""

import logging

import numpy as np
import pytest

from sheathpic.simulation import (
    SimulationConfig,
    SheathSimulation,
    run_sheath_simulation,
)
from sheathpic.output import DiagnosticsWriter, load_snapshots, load_particles
from sheathpic.pic.field_solver import ConvergenceError, RelaxationSolver, SolveResult
from sheathpic.constants import AMU, e, m_e


def small_config(**overrides):
    settings = dict(
        n_cells=20,
        num_ions=500,
        num_electrons=1000,
        n_steps=20,
        diag_interval=5,
        initial_solver="direct",
    )
    settings.update(overrides)
    return SimulationConfig(**settings)


class TestSimulationConfig:
    """Test configuration defaults and validation."""

    def test_reference_defaults(self):
        """Test the defaults reproduce the benchmark run."""
        config = SimulationConfig()

        assert config.plasma_density == 1e16
        assert config.dx == 1e-4
        assert config.dt == 5e-11
        assert config.num_ions == 30000
        assert config.num_electrons == 80000
        assert config.node_count == 401
        assert config.domain_length == pytest.approx(0.04)
        assert config.n_steps == 10000
        assert config.diag_interval == 200

    @pytest.mark.parametrize("field", ["dx", "dt", "plasma_density", "num_ions", "diag_interval"])
    def test_non_positive_rejected(self, field):
        """Test zero sizes and rates are rejected by name."""
        with pytest.raises(ValueError, match=field):
            SimulationConfig(**{field: 0}).validate()

    def test_too_few_cells(self):
        """Test a single-cell domain is rejected."""
        with pytest.raises(ValueError, match="n_cells"):
            SimulationConfig(n_cells=1).validate()

    def test_unknown_solver(self):
        """Test an unknown solver name is rejected."""
        with pytest.raises(ValueError, match="Unknown potential solver"):
            SimulationConfig(solver="fft").validate()

    def test_asdict(self):
        """Test the config converts to a plain dict."""
        values = small_config(seed=3).asdict()

        assert values["n_cells"] == 20
        assert values["seed"] == 3

    def test_resolution_warnings(self, caplog):
        """The reference cells and timestep under-resolve the plasma."""
        with caplog.at_level(logging.WARNING, logger="sheathpic.simulation"):
            lambda_D, omega_dt = SimulationConfig().check_resolution()

        assert lambda_D == pytest.approx(1.05e-4, rel=0.01)
        assert omega_dt > 0.2
        assert "Debye length" in caplog.text
        assert "omega_pe * dt" in caplog.text


class TestInitialization:
    """Test particle loading and the start-up field solve."""

    def test_populations_loaded(self):
        """Test both species are loaded with their own counts."""
        sim = SheathSimulation(small_config())

        result = sim.initialize()

        assert result.converged
        assert sim.grid.ni == 21
        assert sim.ions.n_particles == 500
        assert sim.electrons.n_particles == 1000
        assert sim.ions.mass == pytest.approx(40 * AMU)
        assert sim.ions.charge == e
        assert sim.electrons.mass == m_e
        assert sim.electrons.charge == -e

    def test_weights_match_density(self):
        """Both species represent the same plasma density."""
        sim = SheathSimulation(small_config())
        sim.initialize()

        xl = sim.grid.xl
        assert sim.ions.spwt * 500 == pytest.approx(1e16 * xl)
        assert sim.electrons.spwt * 1000 == pytest.approx(1e16 * xl)

    def test_relaxation_start_up(self):
        """Test the start-up solve with the relaxation solver."""
        sim = SheathSimulation(small_config(initial_solver="relaxation"))

        result = sim.initialize()

        assert result.converged
        assert result.iterations >= 1
        assert sim.grid.phi[0] == 0.0
        assert sim.grid.phi[-1] == 0.0

    def test_step_before_initialize(self):
        """Test stepping an uninitialized simulation raises."""
        sim = SheathSimulation(small_config())

        with pytest.raises(RuntimeError, match="initialize"):
            sim.step()


class TestTimeLoop:
    """Test the PIC cycle and diagnostics cadence."""

    def test_run_history(self):
        """Test steps 0..n_steps run and snapshots land every diag_interval."""
        sim = SheathSimulation(small_config())

        history = sim.run()

        # Steps 0..20 inclusive, recorded at 0, 5, 10, 15, 20
        assert history["ts"] == [0, 5, 10, 15, 20]
        assert sim.ts == 21
        assert sim.time == pytest.approx(21 * 5e-11)
        assert history["time"][1] == pytest.approx(5 * 5e-11)
        assert len(history["delta_phi"]) == 5

    def test_particle_counts_never_increase(self):
        """Test particles are only lost, and every loss is counted."""
        sim = SheathSimulation(small_config())

        history = sim.run()

        assert np.all(np.diff(history["n_ions"]) <= 0)
        assert np.all(np.diff(history["n_electrons"]) <= 0)
        assert sim.electrons.n_particles + sim.electrons.n_absorbed_left + \
            sim.electrons.n_absorbed_right == 1000
        assert sim.ions.n_particles + sim.ions.n_absorbed_left + \
            sim.ions.n_absorbed_right == 500

    def test_particles_stay_in_domain(self):
        """Test survivors always lie inside the grid."""
        sim = SheathSimulation(small_config())
        sim.run()

        for population in sim.populations:
            assert np.all(sim.grid.contains(population.positions))

    def test_step_reports(self):
        """Test one step returns the solve result and absorbed counts."""
        sim = SheathSimulation(small_config())
        sim.initialize()

        diag = sim.step()

        assert isinstance(diag["solve"], SolveResult)
        assert set(diag["absorbed"]) == {"Ar+", "e"}
        assert diag["absorbed"]["e"]["n_absorbed"] >= 0

    def test_walls_stay_grounded(self):
        """Test phi stays zero on both walls with the relaxation solver."""
        sim = SheathSimulation(small_config(solver="relaxation"))
        sim.run(n_steps=5)

        assert sim.grid.phi[0] == 0.0
        assert sim.grid.phi[-1] == 0.0

    def test_electrons_leave_faster(self):
        """Electron loss outpaces ion loss, leaving positive space charge."""
        sim = SheathSimulation(small_config(n_steps=40))
        sim.run()

        lost_e = sim.electrons.n_absorbed_left + sim.electrons.n_absorbed_right
        lost_i = sim.ions.n_absorbed_left + sim.ions.n_absorbed_right
        assert lost_e > lost_i
        assert sim.history["delta_phi"][-1] > 0.0

    def test_seed_reproducible(self):
        """Test the same seed gives the same run."""
        first = SheathSimulation(small_config(seed=4))
        first.run()
        second = SheathSimulation(small_config(seed=4))
        second.run()

        np.testing.assert_array_equal(first.electrons.positions, second.electrons.positions)
        np.testing.assert_array_equal(first.grid.phi, second.grid.phi)
        assert first.history == second.history

    def test_run_continues(self):
        """A second run picks up at the next timestep."""
        sim = SheathSimulation(small_config())
        sim.run(n_steps=9)

        sim.run(n_steps=10)

        assert sim.ts == 21
        assert sim.history["ts"] == [0, 5, 10, 15, 20]

    def test_continued_run_is_inclusive_from_current_step(self):
        """Test run(n) performs n + 1 steps starting at the current ts."""
        sim = SheathSimulation(small_config())
        sim.run(n_steps=9)
        time_before = sim.time

        sim.run(n_steps=4)

        assert sim.ts == 15
        assert sim.time - time_before == pytest.approx(5 * 5e-11)

    def test_run_sheath_simulation(self):
        """Test the one-call runner."""
        sim = run_sheath_simulation(small_config(n_steps=10))

        assert sim.ts == 11
        assert sim.history["ts"] == [0, 5, 10]


class TestSolverFailure:
    """Test how non-converged relaxation solves are handled."""

    def test_failure_logged_and_continues(self, caplog):
        """Test a non-converged solve is logged and the step completes."""
        sim = SheathSimulation(small_config())
        sim.initialize()
        sim.solver = RelaxationSolver(max_iterations=1)
        sim.grid.phi[:] = 0.0

        with caplog.at_level(logging.WARNING, logger="sheathpic.pic.field_solver"):
            diag = sim.step()

        assert not diag["solve"].converged
        assert "failed to converge" in caplog.text

    def test_halt_on_divergence(self):
        """Test the driver raises when configured to halt."""
        sim = SheathSimulation(small_config(halt_on_divergence=True))
        sim.initialize()
        sim.solver = RelaxationSolver(max_iterations=1)
        sim.grid.phi[:] = 0.0

        with pytest.raises(ConvergenceError) as excinfo:
            sim.step()

        assert not excinfo.value.result.converged


class TestWriterIntegration:
    """Test diagnostics written during a run."""

    def test_files_written(self, tmp_path):
        """Test snapshots and kinetic energies match the run history."""
        config = small_config()

        with DiagnosticsWriter(tmp_path / "out") as writer:
            sim = SheathSimulation(config, writer)
            sim.run()

        snapshots = load_snapshots(writer.results_path, config.node_count)
        ke = np.loadtxt(writer.ke_path, ndmin=2)

        assert snapshots.shape == (5, 21, 8)
        assert ke.shape == (5, 3)
        np.testing.assert_allclose(snapshots[-1, :, 0], sim.grid.x, rtol=1e-5)
        np.testing.assert_allclose(snapshots[-1, :, 6], sim.grid.phi, rtol=1e-5, atol=1e-9)
        np.testing.assert_allclose(ke[:, 2], sim.history["ke_electrons"], rtol=1e-5)
        assert not writer.particles_path("e").exists()

    def test_particle_dumps(self, tmp_path):
        """Test phase-space dumps at every particle_interval step."""
        config = small_config(particle_interval=10)

        with DiagnosticsWriter(tmp_path) as writer:
            sim = SheathSimulation(config, writer)
            sim.run()

        electrons = load_particles(writer.particles_path("e"))
        ions = load_particles(writer.particles_path("Ar+"))

        # Dumps at ts 0, 10 and 20 share those steps with the snapshots
        n_e = sim.history["n_electrons"]
        n_i = sim.history["n_ions"]
        assert len(electrons) == n_e[0] + n_e[2] + n_e[4]
        assert len(ions) == n_i[0] + n_i[2] + n_i[4]
        np.testing.assert_allclose(
            electrons[-n_e[4]:, 0], sim.electrons.positions, rtol=1e-5
        )

    def test_negative_particle_interval(self):
        """Test a negative dump interval is rejected."""
        with pytest.raises(ValueError, match="particle_interval"):
            small_config(particle_interval=-1).validate()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
