"""
SheathPIC Test Suite

Tests organized by:
- test_particles.py: Populations and initial sampling
- test_pic_*.py: Grid, weighting, Poisson solvers and mover
- test_diagnostics.py: Energy and grid moments
- test_simulation.py: Full PIC cycle on a small domain
- test_output.py: Text output files and plots
"""
