"""
PIC Particle Mover with Leap-Frog Push and Absorbing Walls

Implements:
- Leap-frog integrator (electrostatic, B=0)
- Linear field interpolation (grid → particles)
- Absorbing walls: particles leaving [x0, xmax) are removed for good
- One-time half-step velocity rewind for time centering

Reference:
    Birdsall & Langdon (2004), "Plasma Physics via Computer Simulation"
    Chapter 4: The Electrostatic Program
"""

import numba
from .deposition import check_in_domain, gather


# ==================== PUSH KERNELS ====================


@numba.njit
def push_species_kernel(x, v, ids, n_particles, ef, x0, dx, xmax, q_over_m, dt):
    """
    Advance a population by one timestep and absorb wall crossings.

    Leap-frog integration:
        v^{n+1/2} = v^{n-1/2} + (q/m) * E(x^n) * dt
        x^{n+1} = x^n + v^{n+1/2} * dt

    A particle ending outside [x0, xmax) is removed by moving the last alive
    particle into its slot. The cursor does not advance after a removal, so
    the moved particle (not yet pushed) is processed next.

    Args:
        x: Particle positions [m] (modified in-place)
        v: Particle velocities [m/s] (modified in-place)
        ids: Particle identities (modified in-place)
        n_particles: Number of alive particles
        ef: Electric field at nodes [ni] [V/m]
        x0: Left boundary [m]
        dx: Cell spacing [m]
        xmax: Right boundary [m]
        q_over_m: Charge-to-mass ratio [C/kg]
        dt: Timestep [s]

    Returns:
        n_alive: Number of particles left
        n_left: Particles absorbed at x0
        n_right: Particles absorbed at xmax
    """
    n_left = 0
    n_right = 0

    p = 0
    n = n_particles

    while p < n:
        part_ef = gather((x[p] - x0) / dx, ef)

        v[p] += dt * q_over_m * part_ef
        x[p] += dt * v[p]

        if x[p] < x0 or x[p] >= xmax:
            if x[p] < x0:
                n_left += 1
            else:
                n_right += 1

            n -= 1
            x[p] = x[n]
            v[p] = v[n]
            ids[p] = ids[n]
            continue

        p += 1

    return n, n_left, n_right


@numba.njit
def rewind_species_kernel(x, v, n_particles, ef, x0, dx, q_over_m, dt):
    """
    Move velocities back by half a timestep: v -= 0.5 * (q/m) * E(x) * dt

    Args:
        x: Particle positions [m]
        v: Particle velocities [m/s] (modified in-place)
        n_particles: Number of alive particles
        ef: Electric field at nodes [ni] [V/m]
        x0: Left boundary [m]
        dx: Cell spacing [m]
        q_over_m: Charge-to-mass ratio [C/kg]
        dt: Timestep [s]
    """
    for p in range(n_particles):
        part_ef = gather((x[p] - x0) / dx, ef)
        v[p] -= 0.5 * dt * q_over_m * part_ef


# ==================== POPULATION-LEVEL OPERATIONS ====================


def integrate(population, grid, dt):
    """
    Push one population through one timestep in grid.ef.

    Particles that leave the domain are removed and counted on the
    population (n_absorbed_left / n_absorbed_right).

    Args:
        population: Population instance (modified in-place)
        grid: Grid instance with an up-to-date ef
        dt: Timestep [s]

    Returns:
        diagnostics: dict with keys:
            - n_absorbed: Number of particles removed this step
            - n_absorbed_left: Removed at x0
            - n_absorbed_right: Removed at xmax
    """
    check_in_domain(population, grid)

    n_alive, n_left, n_right = push_species_kernel(
        population.x,
        population.v,
        population.ids,
        population.n_particles,
        grid.ef,
        grid.x0,
        grid.dx,
        grid.xmax,
        population.q_over_m,
        dt,
    )

    population.n_particles = n_alive
    population.n_absorbed_left += n_left
    population.n_absorbed_right += n_right

    return {
        "n_absorbed": n_left + n_right,
        "n_absorbed_left": n_left,
        "n_absorbed_right": n_right,
    }


def rewind_half_step(population, grid, dt):
    """
    Shift velocities half a step back so they lead positions by dt/2.

    Called once per population after the first field solve, never in the
    main loop.

    Args:
        population: Population instance (modified in-place)
        grid: Grid instance with an up-to-date ef
        dt: Timestep [s]
    """
    check_in_domain(population, grid)

    rewind_species_kernel(
        population.x,
        population.v,
        population.n_particles,
        grid.ef,
        grid.x0,
        grid.dx,
        population.q_over_m,
        dt,
    )
