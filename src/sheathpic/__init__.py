"""
SheathPIC: 1D-1V Electrostatic Particle-in-Cell Plasma Sheath Simulation

Simulates sheath formation at grounded, absorbing walls with ion and
electron macro-particles, linear weighting, SOR or Thomas Poisson solves
and a leap-frog mover.
"""

__version__ = "0.1.0"

# Import key classes for convenient access
from .constants import *
from .particles import Population, initialize_population
from .pic.mesh import Grid, initialize_grid
from .simulation import SimulationConfig, SheathSimulation

__all__ = [
    "Population",
    "initialize_population",
    "Grid",
    "initialize_grid",
    "SimulationConfig",
    "SheathSimulation",
]
