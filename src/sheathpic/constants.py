"""
Physical Constants, Species Presets and Reference Run Parameters

All units in SI unless otherwise noted. Temperatures of the plasma species
are given in eV and converted with EV_TO_K where a Kelvin value is needed.
"""

import numpy as np

# ==================== FUNDAMENTAL CONSTANTS ====================

eps0 = 8.85418782e-12  # Vacuum permittivity [F/m]
kB = 1.38065e-23  # Boltzmann constant [J/K]
m_e = 9.10938215e-31  # Electron mass [kg]
e = 1.602176565e-19  # Elementary charge [C]
AMU = 1.660538921e-27  # Atomic mass unit [kg]
EV_TO_K = 11604.52  # 1 eV expressed in Kelvin
eV = e  # 1 eV in Joules [J]

# ==================== SPECIES PRESETS ====================

class SpeciesData:
    """
    Mass and charge of a plasma species.

    Attributes:
        mass: Particle mass [kg]
        charge: Signed particle charge [C]
    """

    def __init__(self, mass, charge):
        self.mass = mass
        self.charge = charge

    def __repr__(self):
        return f"SpeciesData(mass={self.mass:.4e} kg, charge={self.charge:+.4e} C)"


SPECIES = {
    # Singly charged argon
    'Ar+': SpeciesData(mass=40 * AMU, charge=e),

    # Electrons
    'e': SpeciesData(mass=m_e, charge=-e),
}

# ==================== REFERENCE SHEATH RUN ====================

# Steady-sheath benchmark: argon plasma between two grounded absorbing walls
PLASMA_DEN = 1e16  # Plasma density [m^-3]
DX = 1e-4  # Cell spacing [m]
DT = 5e-11  # Timestep [s]
ELECTRON_TEMP = 2.0  # [eV]
ION_TEMP = 0.1  # [eV]
NUM_IONS = 30000  # Simulation ions
NUM_ELECTRONS = 80000  # Simulation electrons
NC = 400  # Number of cells
NUM_TS = 10000  # Number of timesteps
DIAG_INTERVAL = 200  # Steps between diagnostic snapshots

# Potential solver settings
SOR_OMEGA = 1.4
SOR_MAX_ITERATIONS = 200000
SOR_TOLERANCE = 1e-4
SOR_CHECK_INTERVAL = 25

# ==================== PLASMA PARAMETERS ====================

def debye_length(n_e, T_e):
    """
    Electron Debye length.

    Args:
        n_e: Electron density [m^-3]
        T_e: Electron temperature [eV]

    Returns:
        lambda_D: Debye length [m]
    """
    T_e_J = T_e * eV
    return np.sqrt(eps0 * T_e_J / (n_e * e**2))


def plasma_frequency(n_e):
    """
    Electron plasma frequency.

    Args:
        n_e: Electron density [m^-3]

    Returns:
        omega_pe: Plasma frequency [rad/s]
    """
    return np.sqrt(n_e * e**2 / (m_e * eps0))


def thermal_velocity(T, mass):
    """
    Most probable thermal velocity (Maxwellian).

    Args:
        T: Temperature [K]
        mass: Particle mass [kg]

    Returns:
        v_th: Thermal velocity [m/s]
    """
    return np.sqrt(2 * kB * T / mass)
