"""
Sheath Simulation Driver

Sequences the PIC cycle for an argon plasma between two grounded,
absorbing walls:

    scatter densities → scatter velocities → charge density
    → solve potential → electric field → push ions and electrons

Initialization follows the standard leap-frog start: load particles, solve
the field once (relaxation solver by default), then rewind every velocity by
half a step. Diagnostics go to an injected writer every diag_interval steps.
"""

import logging
from dataclasses import dataclass, asdict

import numpy as np
from . import constants
from .constants import AMU, SPECIES, debye_length
from .particles import initialize_population
from .pic.mesh import initialize_grid, check_courant_condition
from .pic.deposition import scatter_density, scatter_velocity, compute_charge_density
from .pic.field_solver import (
    ConvergenceError,
    compute_field,
    get_solver,
)
from .pic.mover import integrate, rewind_half_step
from .pic.diagnostics import compute_kinetic_energy, potential_drop

logger = logging.getLogger(__name__)

ION = "Ar+"
ELECTRON = "e"


# ---------------------- Configuration ----------------------
@dataclass
class SimulationConfig:
    plasma_density: float = constants.PLASMA_DEN   # [m^-3]
    dx: float = constants.DX                       # [m] cell spacing
    dt: float = constants.DT                       # [s] timestep
    electron_temperature: float = constants.ELECTRON_TEMP  # [eV]
    ion_temperature: float = constants.ION_TEMP    # [eV]
    num_ions: int = constants.NUM_IONS
    num_electrons: int = constants.NUM_ELECTRONS
    n_cells: int = constants.NC
    n_steps: int = constants.NUM_TS
    diag_interval: int = constants.DIAG_INTERVAL
    particle_interval: int = 0      # steps between phase-space dumps, 0 disables
    ion_mass_amu: float = 40.0
    solver: str = "direct"          # per-step solver: "direct" or "relaxation"
    initial_solver: str = "relaxation"  # solver for the start-up field
    seed: int = 0
    halt_on_divergence: bool = False
    x0: float = 0.0                 # [m] left wall

    @property
    def node_count(self):
        return self.n_cells + 1

    @property
    def domain_length(self):
        return self.n_cells * self.dx

    def validate(self):
        """Raise ValueError for settings the simulation cannot run with."""
        positive = {
            "plasma_density": self.plasma_density,
            "dx": self.dx,
            "dt": self.dt,
            "num_ions": self.num_ions,
            "num_electrons": self.num_electrons,
            "diag_interval": self.diag_interval,
            "ion_mass_amu": self.ion_mass_amu,
        }
        for key, value in positive.items():
            if value <= 0:
                raise ValueError(f"{key} must be positive, got {value}")

        if self.n_cells < 2:
            raise ValueError(f"n_cells must be at least 2, got {self.n_cells}")
        if self.particle_interval < 0:
            raise ValueError(f"particle_interval must be non-negative, got {self.particle_interval}")
        if self.n_steps < 0:
            raise ValueError(f"n_steps must be non-negative, got {self.n_steps}")

        # Raises on an unknown name
        get_solver(self.solver)
        get_solver(self.initial_solver)

    def check_resolution(self):
        """
        Log warnings when the grid or timestep under-resolve the plasma.

        Returns:
            lambda_D: Electron Debye length [m]
            omega_dt: omega_pe * dt
        """
        lambda_D = debye_length(self.plasma_density, self.electron_temperature)
        if self.dx > 0.5 * lambda_D:
            logger.warning(
                "dx = %.3e m exceeds half a Debye length (lambda_D = %.3e m)",
                self.dx, lambda_D,
            )

        is_stable, _, omega_dt = check_courant_condition(self.dt, self.plasma_density)
        if not is_stable:
            logger.warning("omega_pe * dt = %.3f exceeds 0.2", omega_dt)

        return lambda_D, omega_dt

    def asdict(self):
        return asdict(self)


# ---------------------- Driver ----------------------
class SheathSimulation:
    """
    Runs the sheath benchmark for one configuration.

    Attributes:
        config: SimulationConfig
        writer: Optional DiagnosticsWriter (must already be open)
        grid: Grid instance (after initialize)
        ions, electrons: Population instances (after initialize)
        solver: PotentialSolver used inside the time loop
        ts: Index of the next step to run
        time: Simulation time [s]
        history: Diagnostics collected at every snapshot
    """

    def __init__(self, config=None, writer=None):
        self.config = config if config is not None else SimulationConfig()
        self.config.validate()

        self.writer = writer
        self.solver = get_solver(self.config.solver)
        self.rng = np.random.default_rng(self.config.seed)

        self.grid = None
        self.ions = None
        self.electrons = None

        self.ts = 0
        self.time = 0.0
        self.history = {
            "ts": [],
            "time": [],
            "delta_phi": [],
            "ke_ions": [],
            "ke_electrons": [],
            "n_ions": [],
            "n_electrons": [],
        }

    @property
    def populations(self):
        return [self.ions, self.electrons]

    @property
    def initialized(self):
        return self.grid is not None

    def initialize(self):
        """
        Build grid and species, solve the initial field and rewind velocities.

        Returns:
            result: SolveResult of the start-up solve
        """
        cfg = self.config
        cfg.check_resolution()

        self.grid = initialize_grid(cfg.node_count, cfg.dx, cfg.x0)
        xl = self.grid.xl

        self.ions = initialize_population(
            ION,
            cfg.ion_mass_amu * AMU,
            SPECIES[ION].charge,
            cfg.num_ions,
            cfg.ion_temperature,
            self.grid,
            spwt=cfg.plasma_density * xl / cfg.num_ions,
            rng=self.rng,
        )
        self.electrons = initialize_population(
            ELECTRON,
            SPECIES[ELECTRON].mass,
            SPECIES[ELECTRON].charge,
            cfg.num_electrons,
            cfg.electron_temperature,
            self.grid,
            spwt=cfg.plasma_density * xl / cfg.num_electrons,
            rng=self.rng,
        )

        for population in self.populations:
            logger.info("Loaded %r", population)

        for population in self.populations:
            scatter_density(population, self.grid)
        compute_charge_density(self.grid, self.populations)

        result = get_solver(cfg.initial_solver).solve(self.grid)
        self._check_solve(result)
        compute_field(self.grid)

        for population in self.populations:
            rewind_half_step(population, self.grid, cfg.dt)

        self.ts = 0
        self.time = 0.0
        return result

    def _check_solve(self, result):
        if not result.converged and self.config.halt_on_divergence:
            raise ConvergenceError(result)

    def step(self):
        """
        Advance the whole system by one timestep.

        Returns:
            diagnostics: dict with the solve result and absorbed counts
        """
        if not self.initialized:
            raise RuntimeError("SheathSimulation.initialize() must be called first")

        grid = self.grid

        for population in self.populations:
            scatter_density(population, grid)
        for population in self.populations:
            scatter_velocity(population, grid)

        compute_charge_density(grid, self.populations)

        result = self.solver.solve(grid)
        self._check_solve(result)
        compute_field(grid)

        absorbed = {}
        for population in self.populations:
            absorbed[population.name] = integrate(population, grid, self.config.dt)

        return {"solve": result, "absorbed": absorbed}

    def record(self):
        """Store one diagnostics snapshot and pass it to the writer."""
        delta_phi = potential_drop(self.grid)
        ke_ions = compute_kinetic_energy(self.ions)
        ke_electrons = compute_kinetic_energy(self.electrons)

        self.history["ts"].append(self.ts)
        self.history["time"].append(self.time)
        self.history["delta_phi"].append(delta_phi)
        self.history["ke_ions"].append(ke_ions)
        self.history["ke_electrons"].append(ke_electrons)
        self.history["n_ions"].append(self.ions.n_particles)
        self.history["n_electrons"].append(self.electrons.n_particles)

        logger.info("TS: %i \t delta_phi: %.3g", self.ts, delta_phi)

        if self.writer is not None:
            self.writer.write_kinetic_energy(
                self.time, {ION: ke_ions, ELECTRON: ke_electrons}
            )
            self.writer.write_fields(self.ts, self.grid)

    def _particle_dump_due(self):
        interval = self.config.particle_interval
        return self.writer is not None and interval > 0 and self.ts % interval == 0

    def run(self, n_steps=None):
        """
        Run steps ts..ts+n_steps inclusive, recording every diag_interval steps.

        Each call performs n_steps + 1 steps starting at the current ts, so a
        fresh run covers 0..n_steps and a continued run picks up at the next
        step. Initializes the simulation first if needed.

        Args:
            n_steps: Steps past the current ts to run (default: config.n_steps)

        Returns:
            history: dict of diagnostic series
        """
        if not self.initialized:
            self.initialize()

        if n_steps is None:
            n_steps = self.config.n_steps

        last = self.ts + n_steps
        while self.ts <= last:
            self.step()

            if self.ts % self.config.diag_interval == 0:
                self.record()
            if self._particle_dump_due():
                for population in self.populations:
                    self.writer.write_particles(population)

            self.time += self.config.dt
            self.ts += 1

        logger.info(
            "Finished %d steps: %d ions, %d electrons left",
            self.ts, self.ions.n_particles, self.electrons.n_particles,
        )
        return self.history


def run_sheath_simulation(config=None, writer=None):
    """
    Initialize and run a sheath simulation.

    Args:
        config: SimulationConfig (default: reference benchmark)
        writer: Optional open DiagnosticsWriter

    Returns:
        sim: The finished SheathSimulation
    """
    sim = SheathSimulation(config, writer)
    sim.initialize()
    sim.run()
    return sim

