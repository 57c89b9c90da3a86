"""
1D Node Grid for Electrostatic Sheath Simulations

Implements a uniform 1D grid where every field quantity lives on the nodes:
- Electric potential (phi)
- Electric field (ef)
- Total charge density (rho)
- Per-species number density and velocity moment

Grid layout (ni = 5 example):

    Node:   0     1     2     3     4
            |-----|-----|-----|-----|
            x0                      xmax

Node i sits at x0 + i*dx. The grid is allocated once and never resized.
"""

import logging

import numpy as np
from ..constants import debye_length, plasma_frequency

logger = logging.getLogger(__name__)


class Grid:
    """
    Uniform 1D node grid for PIC simulations.

    Attributes:
        ni: Number of nodes (cells + 1)
        x0: Left boundary [m]
        dx: Cell spacing [m]
        xl: Domain length (ni-1)*dx [m]
        xmax: Right boundary x0 + xl [m]
        x: Node positions [ni] [m]
        phi: Electric potential [ni] [V]
        ef: Electric field [ni] [V/m]
        rho: Charge density [ni] [C/m^3]
        nd: Number density per species name, each [ni] [m^-3]
        vel: Velocity moment per species name, each [ni] [m^-2 s^-1]
    """

    def __init__(self, ni, dx, x0=0.0):
        """
        Allocate a zeroed grid.

        Args:
            ni: Number of nodes
            dx: Cell spacing [m]
            x0: Left boundary [m]

        Raises:
            ValueError: If ni < 3 or dx <= 0
        """
        if ni < 3:
            raise ValueError(f"Grid needs at least 3 nodes, got {ni}")
        if dx <= 0:
            raise ValueError(f"Cell spacing must be positive, got {dx}")

        self.ni = int(ni)
        self.dx = float(dx)
        self.x0 = float(x0)
        self.xl = (self.ni - 1) * self.dx
        self.xmax = self.x0 + self.xl

        self.x = self.x0 + np.arange(self.ni) * self.dx

        self.phi = np.zeros(self.ni, dtype=np.float64)
        self.ef = np.zeros(self.ni, dtype=np.float64)
        self.rho = np.zeros(self.ni, dtype=np.float64)

        self.nd = {}
        self.vel = {}

    def add_species(self, name):
        """
        Allocate the density and velocity arrays of one species.

        Calling it again for a known species keeps the existing arrays.

        Args:
            name: Species label
        """
        if name not in self.nd:
            self.nd[name] = np.zeros(self.ni, dtype=np.float64)
            self.vel[name] = np.zeros(self.ni, dtype=np.float64)

    def density(self, name):
        """Number density array of a species, allocated on first use."""
        self.add_species(name)
        return self.nd[name]

    def velocity(self, name):
        """Velocity moment array of a species, allocated on first use."""
        self.add_species(name)
        return self.vel[name]

    def logical_coordinate(self, pos):
        """
        Convert physical position(s) to fractional node index.

        Args:
            pos: Position(s) [m]

        Returns:
            lc: (pos - x0) / dx
        """
        return (pos - self.x0) / self.dx

    def contains(self, pos):
        """True where x0 <= pos < xmax."""
        return (pos >= self.x0) & (pos < self.xmax)

    def check_debye_resolution(self, n_e, T_e):
        """
        Check if grid satisfies the Debye length resolution requirement.

        PIC stability requires: dx <= 0.5 * lambda_D

        Args:
            n_e: Electron density [m^-3]
            T_e: Electron temperature [eV]

        Returns:
            is_resolved: Boolean, True if dx <= 0.5 * lambda_D
            lambda_D: Debye length [m]
            ratio: dx / lambda_D

        Reference:
            Birdsall & Langdon (2004), Section 4.2
        """
        lambda_D = debye_length(n_e, T_e)

        ratio = self.dx / lambda_D
        is_resolved = ratio <= 0.5

        return is_resolved, lambda_D, ratio

    def __repr__(self):
        return (
            f"Grid(ni={self.ni}, "
            f"dx={self.dx*1e3:.3f} mm, "
            f"domain=[{self.x0*1e3:.1f}, {self.xmax*1e3:.1f}] mm)"
        )


def initialize_grid(node_count, spacing, origin=0.0):
    """
    Create a zeroed grid of node_count nodes starting at origin.

    Args:
        node_count: Number of nodes (cells + 1)
        spacing: Cell spacing [m]
        origin: Left boundary [m]

    Returns:
        grid: Grid instance
    """
    grid = Grid(node_count, spacing, origin)
    logger.debug("Initialized %r", grid)
    return grid


def check_courant_condition(dt, n_e):
    """
    Check plasma Courant condition: omega_pe * dt < 0.2

    This ensures that plasma oscillations are adequately resolved.

    Args:
        dt: Timestep [s]
        n_e: Electron density [m^-3]

    Returns:
        is_stable: Boolean, True if omega_pe * dt < 0.2
        omega_pe: Plasma frequency [rad/s]
        omega_dt: omega_pe * dt (dimensionless)

    Reference:
        Birdsall & Langdon (2004), Section 4.3
    """
    omega_pe = plasma_frequency(n_e)

    omega_dt = omega_pe * dt
    is_stable = omega_dt < 0.2

    return is_stable, omega_pe, omega_dt
