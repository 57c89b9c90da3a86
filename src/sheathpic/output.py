"""
Diagnostic Output for Sheath Runs

Writes the periodic field snapshots and kinetic energy series as plain text
tables, and renders profile plots with matplotlib. The simulation driver
receives a DiagnosticsWriter from its caller; the PIC modules never touch
files.

File formats (tab separated, %g):
    results.dat: x, nd[species...], rho, vel[species...], phi, ef
                 one row per node, one block per snapshot
    ke.dat:      time, ke[species...]
    particles_<name>.dat: pos, vel
                 one row per particle, one block per dump
"""

import logging
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)

DELIMITER = " \t "


class DiagnosticsWriter:
    """
    Appends grid snapshots and kinetic energies to text files.

    Attributes:
        output_dir: Directory holding the output files
        species: Species names, in column order
        results_path: Path of the field snapshot file
        ke_path: Path of the kinetic energy file
        particles_name: Pattern for the per-species phase-space files
    """

    def __init__(self, output_dir, species=("Ar+", "e"),
                 results_name="results.dat", ke_name="ke.dat",
                 particles_name="particles_{}.dat"):
        self.output_dir = Path(output_dir)
        self.species = tuple(species)
        self.results_path = self.output_dir / results_name
        self.ke_path = self.output_dir / ke_name
        self.particles_name = particles_name

        self._results = None
        self._ke = None
        self._particles = {}

    def open(self):
        """Create the output directory and truncate both files."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._results = open(self.results_path, "w")
        self._ke = open(self.ke_path, "w")
        logger.info("Writing diagnostics to %s", self.output_dir)
        return self

    def close(self):
        for handle in (self._results, self._ke, *self._particles.values()):
            if handle is not None:
                handle.close()
        self._results = None
        self._ke = None
        self._particles = {}

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def is_open(self):
        return self._results is not None

    def _require_open(self):
        if not self.is_open:
            raise RuntimeError("DiagnosticsWriter is not open")

    def write_fields(self, ts, grid):
        """
        Append one snapshot of every node quantity.

        Args:
            ts: Timestep index (logged only)
            grid: Grid instance
        """
        self._require_open()

        columns = [grid.x]
        columns += [grid.density(name) for name in self.species]
        columns.append(grid.rho)
        columns += [grid.velocity(name) for name in self.species]
        columns += [grid.phi, grid.ef]

        np.savetxt(self._results, np.column_stack(columns), fmt="%g", delimiter=DELIMITER)
        self._results.flush()

        logger.debug("Wrote field snapshot for ts=%d", ts)

    def write_kinetic_energy(self, time, ke_by_species):
        """
        Append one row of kinetic energies.

        Args:
            time: Simulation time [s]
            ke_by_species: dict species name -> kinetic energy [eV]
        """
        self._require_open()

        row = [time] + [ke_by_species[name] for name in self.species]
        np.savetxt(self._ke, np.atleast_2d(row), fmt="%g", delimiter=DELIMITER)
        self._ke.flush()

    def particles_path(self, name):
        return self.output_dir / self.particles_name.format(name)

    def write_particles(self, population):
        """
        Append the phase space (pos, vel) of every alive particle.

        The species file is truncated on the first dump after open().

        Args:
            population: Population instance
        """
        self._require_open()

        handle = self._particles.get(population.name)
        if handle is None:
            handle = open(self.particles_path(population.name), "w")
            self._particles[population.name] = handle

        data = np.column_stack([population.positions, population.velocities])
        np.savetxt(handle, data, fmt="%g", delimiter=DELIMITER)
        handle.flush()

        logger.debug("Wrote %d %s particles", population.n_particles, population.name)


def load_snapshots(path, ni):
    """
    Read results.dat back as an array of snapshots.

    Args:
        path: File written by DiagnosticsWriter.write_fields
        ni: Number of grid nodes

    Returns:
        data: Array of shape (n_snapshots, ni, n_columns)
    """
    data = np.loadtxt(path, ndmin=2)
    return data.reshape(-1, ni, data.shape[1])


def load_particles(path):
    """
    Read a phase-space file back as (pos, vel) columns.

    Args:
        path: File written by DiagnosticsWriter.write_particles

    Returns:
        data: Array of shape (n_rows, 2)
    """
    return np.loadtxt(path, ndmin=2).reshape(-1, 2)


def plot_profiles(grid, path, species=("Ar+", "e"), title=None):
    """
    Save a two-panel figure: species densities, and potential with field.

    Args:
        grid: Grid instance
        path: Output image path
        species: Species names to plot
        title: Optional figure title

    Returns:
        path: Path of the saved figure
    """
    path = Path(path)
    x_mm = (grid.x - grid.x0) * 1e3

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8), sharex=True)

    for name in species:
        ax1.plot(x_mm, grid.density(name), label=name)
    ax1.set_ylabel("Number density [m$^{-3}$]")
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    ax2.plot(x_mm, grid.phi, "b-", label="Potential")
    ax2.set_xlabel("Position [mm]")
    ax2.set_ylabel("Potential [V]")
    ax2.grid(True, alpha=0.3)

    ax3 = ax2.twinx()
    ax3.plot(x_mm, grid.ef, "r--", label="Electric field")
    ax3.set_ylabel("Electric Field [V/m]")

    if title:
        ax1.set_title(title)

    plt.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)

    return path
