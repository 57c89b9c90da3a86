"""
Particle-in-Cell (PIC) Module

Implements the electrostatic 1D-1V PIC cycle for sheath formation at
absorbing, grounded walls.

Components:
- mesh: 1D node grid
- deposition: linear scatter/gather weighting, charge density
- field_solver: Poisson solvers (SOR relaxation and Thomas algorithm)
- mover: leap-frog push with absorbing walls
- diagnostics: kinetic energy and grid moments
"""

from .mesh import Grid, initialize_grid, check_courant_condition
from .deposition import (
    ParticleOutOfDomainError,
    scatter,
    gather,
    gather_at,
    scatter_density,
    scatter_velocity,
    compute_charge_density,
)
from .field_solver import (
    SolveResult,
    ConvergenceError,
    PotentialSolver,
    RelaxationSolver,
    DirectSolver,
    get_solver,
    solve_potential,
    solve_potential_direct,
    compute_field,
    solve_fields_1d,
)
from .mover import integrate, rewind_half_step
from .diagnostics import compute_kinetic_energy, potential_drop, mean_velocity, particle_flux

__all__ = [
    # Mesh
    "Grid",
    "initialize_grid",
    "check_courant_condition",
    # Deposition
    "ParticleOutOfDomainError",
    "scatter",
    "gather",
    "gather_at",
    "scatter_density",
    "scatter_velocity",
    "compute_charge_density",
    # Field solver
    "SolveResult",
    "ConvergenceError",
    "PotentialSolver",
    "RelaxationSolver",
    "DirectSolver",
    "get_solver",
    "solve_potential",
    "solve_potential_direct",
    "compute_field",
    "solve_fields_1d",
    # Mover
    "integrate",
    "rewind_half_step",
    # Diagnostics
    "compute_kinetic_energy",
    "potential_drop",
    "mean_velocity",
    "particle_flux",
]
