"""
Steady Plasma Sheath Benchmark

Argon plasma between two grounded, absorbing walls:
- 30000 Ar+ ions at 0.1 eV, 80000 electrons at 2 eV
- n0 = 1e16 m^-3, 400 cells of 0.1 mm, dt = 50 ps
- 10000 steps with the direct Poisson solver

Physics:
    Electrons are much faster than ions and reach the walls first
    → Plasma charges positive with respect to the walls
    → A potential drop of a few T_e builds up near each wall
    → Electrons are confined, ions are accelerated into the walls
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

import matplotlib.pyplot as plt

from sheathpic.constants import debye_length, plasma_frequency
from sheathpic.logging_config import setup_logging
from sheathpic.output import DiagnosticsWriter, plot_profiles
from sheathpic.simulation import SimulationConfig, SheathSimulation, ION, ELECTRON

# ==================== SIMULATION PARAMETERS ====================

# Phase-space dumps at the first and last step
config = SimulationConfig(particle_interval=10000)
output_dir = os.path.join(os.path.dirname(__file__), "output")

# ==================== SETUP ====================

setup_logging(output_dir)

print("=" * 60)
print("Steady Plasma Sheath Benchmark")
print("=" * 60)
print()
print("Setup:")
print(f"  Domain: {config.domain_length*1e3:.1f} mm ({config.n_cells} cells, dx = {config.dx*1e6:.1f} um)")
print(f"  Density: {config.plasma_density:.1e} m^-3")
print(f"  T_e = {config.electron_temperature:.1f} eV, T_i = {config.ion_temperature:.1f} eV")
print(f"  Debye length: {debye_length(config.plasma_density, config.electron_temperature)*1e6:.1f} um")
print(f"  omega_pe * dt: {plasma_frequency(config.plasma_density)*config.dt:.3f}")
print(f"  Timestep: {config.dt*1e12:.0f} ps, Total time: {config.n_steps*config.dt*1e9:.1f} ns ({config.n_steps} steps)")
print()

# ==================== RUN ====================

with DiagnosticsWriter(output_dir, species=(ION, ELECTRON)) as writer:
    sim = SheathSimulation(config, writer)
    sim.initialize()
    history = sim.run()

# ==================== RESULTS ====================

print()
print("Results:")
print(f"  Final potential drop: {history['delta_phi'][-1]:.2f} V")
print(f"  Ions left: {sim.ions.n_particles} / {config.num_ions}")
print(f"  Electrons left: {sim.electrons.n_particles} / {config.num_electrons}")
print(f"  Ions absorbed (left/right): {sim.ions.n_absorbed_left} / {sim.ions.n_absorbed_right}")
print(f"  Electrons absorbed (left/right): {sim.electrons.n_absorbed_left} / {sim.electrons.n_absorbed_right}")

plot_profiles(sim.grid, os.path.join(output_dir, "sheath_profiles.png"),
              title=f"Sheath profiles after {config.n_steps} steps")

time_ns = [t * 1e9 for t in history["time"]]

fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8), sharex=True)

ax1.plot(time_ns, history["delta_phi"], "b-")
ax1.set_ylabel("Potential drop [V]")
ax1.set_title("Sheath formation")
ax1.grid(True, alpha=0.3)

ax2.plot(time_ns, history["n_ions"], label="Ar+ ions")
ax2.plot(time_ns, history["n_electrons"], label="Electrons")
ax2.set_xlabel("Time [ns]")
ax2.set_ylabel("Macro-particles")
ax2.legend()
ax2.grid(True, alpha=0.3)

plt.tight_layout()
plt.savefig(os.path.join(output_dir, "sheath_history.png"), dpi=150)
print(f"  Saved plots to {output_dir}")
print("=" * 60)
