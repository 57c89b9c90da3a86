"""
Linear (Cloud-In-Cell) Weighting Between Particles and Grid Nodes

Implements:
- Scatter: particle quantities → grid (number density, velocity moment)
- Gather: grid field → particle position
- Charge density from the per-species number densities

A particle at logical coordinate lc = (x - x0)/dx with i = floor(lc) and
di = lc - i contributes (1 - di) to node i and di to node i+1. Scatter and
gather share this rule, which conserves the deposited quantity exactly.

Reference:
    Birdsall & Langdon (2004), Section 4.6: first-order weighting
"""

import numpy as np
import numba
from ..constants import e


class ParticleOutOfDomainError(ValueError):
    """A particle or logical coordinate outside the grid reached scatter/gather."""


# ==================== WEIGHTING KERNELS ====================


@numba.njit
def cell_and_offset(lc, ni):
    """
    Split a logical coordinate into node index and fractional offset.

    A coordinate equal to ni-1 (a position a rounding error below xmax)
    is assigned to the last cell with offset 1.

    Args:
        lc: Logical coordinate
        ni: Number of nodes

    Returns:
        i: Left node index (0 to ni-2)
        di: Fractional offset in [0, 1]

    Raises:
        ParticleOutOfDomainError: If lc is outside [0, ni-1]
    """
    if not (lc >= 0.0 and lc <= ni - 1):
        raise ParticleOutOfDomainError("Logical coordinate outside [0, ni-1]")

    i = int(np.floor(lc))
    if i > ni - 2:
        i = ni - 2
    di = lc - i
    return i, di


@numba.njit
def scatter(lc, value, field):
    """
    Add value to the two nodes around logical coordinate lc.

    Args:
        lc: Logical coordinate
        value: Quantity carried by the particle
        field: Node array (modified in-place)
    """
    i, di = cell_and_offset(lc, len(field))
    field[i] += value * (1.0 - di)
    field[i + 1] += value * di


@numba.njit
def gather(lc, field):
    """
    Linearly interpolate a node array at logical coordinate lc.

    Args:
        lc: Logical coordinate
        field: Node array

    Returns:
        value: field[i]*(1-di) + field[i+1]*di
    """
    i, di = cell_and_offset(lc, len(field))
    return field[i] * (1.0 - di) + field[i + 1] * di


@numba.njit
def scatter_species_kernel(x, v, n_particles, spwt, x0, dx, field, with_velocity):
    """
    Deposit a whole population onto a node array.

    The array is zeroed first, then each particle adds spwt (or spwt*v when
    with_velocity is set). The sum is divided by dx, and the two boundary
    nodes are doubled since they only own half a cell.

    Args:
        x: Particle positions [m]
        v: Particle velocities [m/s]
        n_particles: Number of alive particles
        spwt: Statistical weight
        x0: Left boundary [m]
        dx: Cell spacing [m]
        field: Output node array (modified in-place)
        with_velocity: Deposit spwt*v instead of spwt
    """
    ni = len(field)

    for i in range(ni):
        field[i] = 0.0

    for p in range(n_particles):
        lc = (x[p] - x0) / dx
        if with_velocity:
            scatter(lc, spwt * v[p], field)
        else:
            scatter(lc, spwt, field)

    for i in range(ni):
        field[i] /= dx

    field[0] *= 2.0
    field[ni - 1] *= 2.0


# ==================== PRECONDITIONS ====================


def check_in_domain(population, grid):
    """
    Fail fast when an alive particle lies outside [x0, xmax).

    Raises:
        ParticleOutOfDomainError: If any particle is outside the grid
    """
    x = population.positions
    outside = ~grid.contains(x)

    if np.any(outside):
        bad = x[outside]
        raise ParticleOutOfDomainError(
            f"{population.name}: {len(bad)} particle(s) outside "
            f"[{grid.x0}, {grid.xmax}), first at x = {bad[0]}"
        )


def check_logical_coordinate(lc, grid):
    """
    Fail fast when a logical coordinate lies outside [0, ni-1].

    Raises:
        ParticleOutOfDomainError: If lc is outside the grid
    """
    if not 0.0 <= lc <= grid.ni - 1:
        raise ParticleOutOfDomainError(
            f"Logical coordinate {lc} outside [0, {grid.ni - 1}]"
        )


# ==================== GRID MOMENTS ====================


def scatter_density(population, grid):
    """
    Compute the number density of a population on the grid.

    Overwrites grid.nd[population.name] with a fresh snapshot.

    Args:
        population: Population instance
        grid: Grid instance

    Raises:
        ParticleOutOfDomainError: If a particle lies outside the grid
    """
    check_in_domain(population, grid)

    scatter_species_kernel(
        population.x,
        population.v,
        population.n_particles,
        population.spwt,
        grid.x0,
        grid.dx,
        grid.density(population.name),
        False,
    )


def scatter_velocity(population, grid):
    """
    Compute the velocity moment (sum of spwt*v per unit length) on the grid.

    Overwrites grid.vel[population.name] with a fresh snapshot.

    Args:
        population: Population instance
        grid: Grid instance

    Raises:
        ParticleOutOfDomainError: If a particle lies outside the grid
    """
    check_in_domain(population, grid)

    scatter_species_kernel(
        population.x,
        population.v,
        population.n_particles,
        population.spwt,
        grid.x0,
        grid.dx,
        grid.velocity(population.name),
        True,
    )


def gather_at(grid, field, pos):
    """
    Interpolate a node array at a single physical position.

    Args:
        grid: Grid instance
        field: Node array [ni]
        pos: Position [m]

    Returns:
        value: Interpolated value

    Raises:
        ParticleOutOfDomainError: If pos is outside the grid
    """
    lc = grid.logical_coordinate(pos)
    check_logical_coordinate(lc, grid)
    return gather(lc, field)


def compute_charge_density(grid, populations, noise_floor=None):
    """
    Combine the species number densities into the total charge density.

    rho = sum(charge * nd) over the given populations, written to grid.rho.
    Each population must have been scattered onto the grid beforehand.

    Args:
        grid: Grid instance
        populations: Iterable of Population instances
        noise_floor: Optional density [m^-3]; nodes with |rho| below
            noise_floor * e are set to zero

    Returns:
        rho: grid.rho
    """
    grid.rho[:] = 0.0

    for population in populations:
        grid.rho += population.charge * grid.density(population.name)

    if noise_floor is not None:
        grid.rho[np.abs(grid.rho) < noise_floor * e] = 0.0

    return grid.rho
