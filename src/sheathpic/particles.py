"""
Particle Populations for the Sheath PIC Model

Each species owns its macro-particles in Structure-of-Arrays (SoA) layout
(position, velocity and identity stored in separate numpy arrays) so the
Numba kernels in ``sheathpic.pic`` can loop over them directly.

Particles are only added at the tail during initialization and only removed
by the mover, which swap-removes absorbed particles in place.
"""

import numpy as np
from .constants import EV_TO_K, PLASMA_DEN, thermal_velocity

# Shared by every sampler call that does not pass its own generator
_default_rng = np.random.default_rng(0)


class Population:
    """
    One plasma species and its macro-particles.

    Only the first ``n_particles`` entries of ``x``, ``v`` and ``ids`` are
    alive; the rest is spare capacity.

    Attributes:
        name: Species label (diagnostics only)
        mass: Particle mass [kg]
        charge: Signed particle charge [C]
        spwt: Statistical weight (real particles per macro-particle)
        num: Configured initial particle count
        temp: Initial temperature [eV]
        x: Positions [capacity] [m]
        v: Velocities [capacity] [m/s]
        ids: Particle identities [capacity]
        n_particles: Number of alive particles
        n_absorbed_left: Particles absorbed at x0 so far
        n_absorbed_right: Particles absorbed at xmax so far
    """

    def __init__(self, name, mass, charge, spwt, num, temp, capacity=None):
        """
        Create an empty population.

        Args:
            name: Species label
            mass: Particle mass [kg]
            charge: Signed particle charge [C]
            spwt: Statistical weight
            num: Configured initial particle count
            temp: Initial temperature [eV]
            capacity: Initial storage size (default: num)

        Raises:
            ValueError: If mass, weight or particle count is not positive
        """
        if mass <= 0:
            raise ValueError(f"Population mass must be positive, got {mass}")
        if spwt <= 0:
            raise ValueError(f"Statistical weight must be positive, got {spwt}")
        if num < 0:
            raise ValueError(f"Particle count must be non-negative, got {num}")

        self.name = name
        self.mass = float(mass)
        self.charge = float(charge)
        self.spwt = float(spwt)
        self.num = int(num)
        self.temp = float(temp)

        if capacity is None:
            capacity = max(self.num, 1)

        self.x = np.zeros(capacity, dtype=np.float64)
        self.v = np.zeros(capacity, dtype=np.float64)
        self.ids = np.zeros(capacity, dtype=np.int64)
        self.n_particles = 0

        self.n_absorbed_left = 0
        self.n_absorbed_right = 0

        self._next_id = 0

    @property
    def q_over_m(self):
        """Charge-to-mass ratio [C/kg]."""
        return self.charge / self.mass

    @property
    def capacity(self):
        return len(self.x)

    @property
    def positions(self):
        """View of the alive particle positions."""
        return self.x[:self.n_particles]

    @property
    def velocities(self):
        """View of the alive particle velocities."""
        return self.v[:self.n_particles]

    @property
    def identities(self):
        """View of the alive particle identities."""
        return self.ids[:self.n_particles]

    def add_particles(self, x, v):
        """
        Append particles at the tail of the population.

        Storage grows geometrically when the current capacity is exceeded.

        Args:
            x: Positions, scalar or shape (n,) [m]
            v: Velocities, scalar or shape (n,) [m/s]

        Returns:
            ids: Identities assigned to the new particles

        Raises:
            ValueError: If x and v have different lengths
        """
        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        v = np.atleast_1d(np.asarray(v, dtype=np.float64))

        if x.shape != v.shape:
            raise ValueError(
                f"Position and velocity shapes differ: {x.shape} vs {v.shape}"
            )

        n_add = x.shape[0]
        end_idx = self.n_particles + n_add

        if end_idx > self.capacity:
            self._grow(end_idx)

        start_idx = self.n_particles
        new_ids = np.arange(self._next_id, self._next_id + n_add, dtype=np.int64)

        self.x[start_idx:end_idx] = x
        self.v[start_idx:end_idx] = v
        self.ids[start_idx:end_idx] = new_ids

        self.n_particles = end_idx
        self._next_id += n_add

        return new_ids

    def _grow(self, min_capacity):
        new_capacity = max(min_capacity, 2 * self.capacity)

        for attr in ("x", "v", "ids"):
            old = getattr(self, attr)
            new = np.zeros(new_capacity, dtype=old.dtype)
            new[:self.n_particles] = old[:self.n_particles]
            setattr(self, attr, new)

    def __len__(self):
        """Return number of alive particles."""
        return self.n_particles

    def __repr__(self):
        return (f"Population(name={self.name!r}, n_particles={self.n_particles}, "
                f"spwt={self.spwt:.3e}, q/m={self.q_over_m:.3e} C/kg)")


# ==================== SAMPLING ====================

def sample_position(grid, n_samples=1, rng=None):
    """
    Sample positions uniformly over [x0, x0 + (ni-1)*dx).

    Args:
        grid: Grid instance
        n_samples: Number of samples
        rng: numpy Generator (default: module generator seeded once with 0)

    Returns:
        x: Positions, shape (n_samples,) [m]
    """
    if rng is None:
        rng = _default_rng

    return grid.x0 + rng.random(n_samples) * (grid.ni - 1) * grid.dx


def sample_velocity(T, mass, n_samples=1, rng=None):
    """
    Sample 1D velocities from an approximate Maxwellian.

    The normal deviate is replaced by the sum of three uniform draws minus 1.5
    (Irwin-Hall, Birdsall & Langdon). The distribution is bounded at
    +/- 1.5*sqrt(2)*v_th, and its variance is kB*T/mass.

    Args:
        T: Temperature [K]
        mass: Particle mass [kg]
        n_samples: Number of samples
        rng: numpy Generator (default: module generator seeded once with 0)

    Returns:
        v: Velocities, shape (n_samples,) [m/s]
    """
    if rng is None:
        rng = _default_rng

    v_th = thermal_velocity(T, mass)
    u = rng.random((n_samples, 3))

    return v_th * np.sqrt(2) * (u.sum(axis=1) - 1.5)


def initialize_population(name, mass, charge, particle_count, temperature, grid,
                          spwt=None, plasma_density=PLASMA_DEN, rng=None):
    """
    Create a population and load it with sampled particles.

    Positions are uniform over the domain and velocities come from
    sample_velocity() at the population temperature.

    Args:
        name: Species label
        mass: Particle mass [kg]
        charge: Signed particle charge [C]
        particle_count: Number of macro-particles to load
        temperature: Initial temperature [eV]
        grid: Grid the particles are loaded into
        spwt: Statistical weight (default: plasma_density * xl / particle_count)
        plasma_density: Density used to derive spwt [m^-3]
        rng: numpy Generator shared by the whole run

    Returns:
        population: Loaded Population instance

    Raises:
        ValueError: If particle_count is not positive
    """
    if particle_count <= 0:
        raise ValueError(f"Particle count must be positive, got {particle_count}")

    if rng is None:
        rng = _default_rng

    if spwt is None:
        spwt = plasma_density * grid.xl / particle_count

    population = Population(name, mass, charge, spwt, particle_count, temperature)

    x = sample_position(grid, particle_count, rng)
    v = sample_velocity(temperature * EV_TO_K, mass, particle_count, rng)
    population.add_particles(x, v)

    return population
