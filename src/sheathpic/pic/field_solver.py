"""
1D Electrostatic Field Solver for the Sheath Model

Solves Poisson's equation on the grid nodes: ∇²φ = -ρ/ε₀

Discretization at interior node i (0 < i < ni-1):
    -(phi[i-1] - 2*phi[i] + phi[i+1]) / dx^2 = rho[i] / eps0

Boundary Conditions:
- Dirichlet: phi = 0 at both walls (grounded), enforced on every solve

Two solvers share the PotentialSolver interface:
- RelaxationSolver: Successive Over-Relaxation, iterative, may fail to converge
- DirectSolver: Thomas algorithm (O(N) tridiagonal elimination), always succeeds

Reference:
    Birdsall & Langdon (2004), Chapter 4
"""

import logging
from abc import ABC, abstractmethod
from collections import namedtuple

import numpy as np
import numba
from ..constants import (
    eps0,
    SOR_OMEGA,
    SOR_MAX_ITERATIONS,
    SOR_TOLERANCE,
    SOR_CHECK_INTERVAL,
)

logger = logging.getLogger(__name__)


SolveResult = namedtuple("SolveResult", ["converged", "iterations", "residual"])
SolveResult.__doc__ = """\
Outcome of a potential solve.

converged: False only when the relaxation solver ran out of iterations
iterations: Sweeps performed (0 for the direct solver)
residual: Last normalized L2 residual (0.0 for the direct solver)
"""


class ConvergenceError(RuntimeError):
    """Raised by callers that choose to stop on a non-converged relaxation solve."""

    def __init__(self, result):
        self.result = result
        super().__init__(
            f"Potential solver failed to converge after {result.iterations} "
            f"iterations, L2 = {result.residual:.3e}"
        )


# ==================== KERNELS ====================


@numba.njit
def poisson_residual_l2(phi, rho, dx):
    """
    Normalized L2 norm of the discrete Poisson residual.

    R[i] = -rho[i]/eps0 - (phi[i-1] - 2*phi[i] + phi[i+1]) / dx^2
    L2 = sqrt(sum(R[i]^2)) / ni over interior nodes

    Args:
        phi: Potential [ni] [V]
        rho: Charge density [ni] [C/m^3]
        dx: Cell spacing [m]

    Returns:
        L2: Normalized residual norm
    """
    ni = len(phi)
    dx2 = dx * dx
    total = 0.0

    for i in range(1, ni - 1):
        R = -rho[i] / eps0 - (phi[i - 1] - 2.0 * phi[i] + phi[i + 1]) / dx2
        total += R * R

    return np.sqrt(total) / ni


@numba.njit
def solve_poisson_sor(rho, dx, phi, omega, max_iterations, tolerance, check_interval):
    """
    Solve Poisson's equation with Successive Over-Relaxation.

    Each sweep updates interior nodes in place (Gauss-Seidel ordering):
        g = 0.5 * (phi[i-1] + phi[i+1] + dx^2 * rho[i] / eps0)
        phi[i] += omega * (g - phi[i])

    The residual is checked after sweeps 0, check_interval, 2*check_interval,
    ... and the solve stops once it drops below tolerance. The incoming phi
    is used as the initial guess.

    Args:
        rho: Charge density [ni] [C/m^3]
        dx: Cell spacing [m]
        phi: Potential [ni] [V] (modified in-place)
        omega: Relaxation factor
        max_iterations: Sweep budget
        tolerance: Convergence threshold on the normalized L2 residual
        check_interval: Sweeps between residual checks

    Returns:
        converged: True if the residual dropped below tolerance
        iterations: Number of sweeps performed
        L2: Last computed residual norm
    """
    ni = len(phi)
    dx2 = dx * dx

    phi[0] = 0.0
    phi[ni - 1] = 0.0

    L2 = np.inf

    for it in range(max_iterations):
        for i in range(1, ni - 1):
            g = 0.5 * (phi[i - 1] + phi[i + 1] + dx2 * rho[i] / eps0)
            phi[i] = phi[i] + omega * (g - phi[i])

        if it % check_interval == 0:
            L2 = poisson_residual_l2(phi, rho, dx)
            if L2 < tolerance:
                return True, it + 1, L2

    return False, max_iterations, L2


@numba.njit
def solve_poisson_thomas(rho, dx, phi_out):
    """
    Solve Poisson's equation directly with the Thomas algorithm.

    Tridiagonal system over all nodes:
        interior rows:  a=1, b=-2, c=1,  rhs = -rho[i] * dx^2 / eps0
        boundary rows:  a=0, b=1,  c=0,  rhs = 0

    Args:
        rho: Charge density [ni] [C/m^3]
        dx: Cell spacing [m]
        phi_out: Output potential [ni] [V] (modified in-place)

    Reference:
        https://en.wikipedia.org/wiki/Tridiagonal_matrix_algorithm
    """
    ni = len(rho)
    dx2 = dx * dx

    a = np.zeros(ni)
    b = np.zeros(ni)
    c = np.zeros(ni)
    x = phi_out

    for i in range(1, ni - 1):
        a[i] = 1.0
        b[i] = -2.0
        c[i] = 1.0
        x[i] = -rho[i] * dx2 / eps0

    # Dirichlet rows
    b[0] = 1.0
    b[ni - 1] = 1.0
    x[0] = 0.0
    x[ni - 1] = 0.0

    # Forward elimination
    c[0] /= b[0]
    x[0] /= b[0]

    for i in range(1, ni):
        denom = b[i] - c[i - 1] * a[i]
        c[i] /= denom
        x[i] = (x[i] - x[i - 1] * a[i]) / denom

    # Back substitution
    for i in range(ni - 2, -1, -1):
        x[i] = x[i] - c[i] * x[i + 1]


@numba.njit
def compute_electric_field_1d(phi, dx, E_out):
    """
    Compute electric field from potential: E = -∇φ

    Uses 2nd order central difference for interior points:
        E[i] = -(phi[i+1] - phi[i-1]) / (2*dx)

    For boundaries, uses forward/backward difference.

    Args:
        phi: Electric potential at nodes [ni] [V]
        dx: Cell spacing [m]
        E_out: Output electric field at nodes [ni] [V/m] (modified in-place)
    """
    ni = len(phi)

    # Interior points: 2nd order central difference
    for i in range(1, ni - 1):
        E_out[i] = -(phi[i + 1] - phi[i - 1]) / (2.0 * dx)

    # Boundaries: 1st order forward/backward difference
    E_out[0] = -(phi[1] - phi[0]) / dx
    E_out[ni - 1] = -(phi[ni - 1] - phi[ni - 2]) / dx


# ==================== SOLVER INTERFACE ====================


class PotentialSolver(ABC):
    """Computes grid.phi from grid.rho with phi = 0 at both walls."""

    name = None

    @abstractmethod
    def solve(self, grid):
        """
        Update grid.phi in-place.

        Args:
            grid: Grid instance

        Returns:
            result: SolveResult
        """

    def __repr__(self):
        return f"{type(self).__name__}()"


class RelaxationSolver(PotentialSolver):
    """
    Successive Over-Relaxation Poisson solver.

    A failed solve is reported through SolveResult.converged and leaves the
    last iterate in grid.phi.
    """

    name = "relaxation"

    def __init__(self, omega=SOR_OMEGA, max_iterations=SOR_MAX_ITERATIONS,
                 tolerance=SOR_TOLERANCE, check_interval=SOR_CHECK_INTERVAL):
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        if check_interval < 1:
            raise ValueError(f"check_interval must be >= 1, got {check_interval}")

        self.omega = omega
        self.max_iterations = int(max_iterations)
        self.tolerance = tolerance
        self.check_interval = int(check_interval)

    def solve(self, grid):
        converged, iterations, residual = solve_poisson_sor(
            grid.rho,
            grid.dx,
            grid.phi,
            self.omega,
            self.max_iterations,
            self.tolerance,
            self.check_interval,
        )
        result = SolveResult(bool(converged), int(iterations), float(residual))

        if not result.converged:
            logger.warning(
                "Gauss-Seidel solver failed to converge, L2=%g after %d iterations",
                result.residual,
                result.iterations,
            )

        return result

    def __repr__(self):
        return (f"RelaxationSolver(omega={self.omega}, "
                f"max_iterations={self.max_iterations}, tolerance={self.tolerance})")


class DirectSolver(PotentialSolver):
    """Thomas algorithm Poisson solver; never fails on a valid grid."""

    name = "direct"

    def solve(self, grid):
        solve_poisson_thomas(grid.rho, grid.dx, grid.phi)
        return SolveResult(True, 0, 0.0)


SOLVERS = {
    RelaxationSolver.name: RelaxationSolver,
    DirectSolver.name: DirectSolver,
}


def get_solver(name, **kwargs):
    """
    Build a potential solver by name.

    Args:
        name: "direct" or "relaxation"
        **kwargs: Passed to the solver constructor

    Returns:
        solver: PotentialSolver instance

    Raises:
        ValueError: If the name is unknown
    """
    try:
        solver_cls = SOLVERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown potential solver: {name!r} (choose from {sorted(SOLVERS)})"
        ) from None

    return solver_cls(**kwargs)


# ==================== GRID-LEVEL OPERATIONS ====================


def solve_potential(grid, **kwargs):
    """
    Solve for grid.phi with the relaxation solver.

    Args:
        grid: Grid instance
        **kwargs: RelaxationSolver settings

    Returns:
        result: SolveResult (converged=False on an exhausted budget)
    """
    return RelaxationSolver(**kwargs).solve(grid)


def solve_potential_direct(grid):
    """
    Solve for grid.phi with the direct tridiagonal solver.

    Args:
        grid: Grid instance

    Returns:
        result: SolveResult (always converged)
    """
    return DirectSolver().solve(grid)


def compute_field(grid):
    """Update grid.ef from grid.phi."""
    compute_electric_field_1d(grid.phi, grid.dx, grid.ef)


def solve_fields_1d(grid, solver=None):
    """
    Solve Poisson equation and compute electric field for the grid.

    Updates grid.phi and grid.ef in-place.

    Args:
        grid: Grid instance
        solver: PotentialSolver (default: DirectSolver)

    Returns:
        result: SolveResult of the potential solve
    """
    if solver is None:
        solver = DirectSolver()

    result = solver.solve(grid)
    compute_field(grid)

    return result


# ==================== ANALYTICAL SOLUTIONS FOR VALIDATION ====================


def analytical_uniform_charge(x, rho0, eps0=eps0):
    """
    Analytical solution for uniform charge distribution.

    Given: rho(x) = rho0 (constant) on [x[0], x[-1]]
    BC: phi = 0 at both ends

        phi(s) = (rho0 / (2*eps0)) * s * (L - s),   s = x - x[0]
        E(s)   = (rho0 / eps0) * (s - L/2)

    Args:
        x: Position array [m]
        rho0: Uniform charge density [C/m^3]
        eps0: Permittivity [F/m]

    Returns:
        phi: Analytical potential [V] (positive for rho0 > 0)
        E: Analytical electric field [V/m]
    """
    s = x - x[0]
    L = s[-1]
    phi = (rho0 / (2.0 * eps0)) * s * (L - s)
    E = (rho0 / eps0) * (s - L / 2.0)
    return phi, E


def discrete_uniform_charge_solution(ni, dx, rho0, eps0=eps0):
    """
    Exact solution of the discrete Poisson system for constant rho0.

    The second difference of a quadratic is exact, so the discrete solution
    equals the continuous one sampled at the nodes:
        phi[i] = rho0 * dx^2 / (2*eps0) * i * (ni - 1 - i)

    Args:
        ni: Number of nodes
        dx: Cell spacing [m]
        rho0: Uniform charge density [C/m^3]
        eps0: Permittivity [F/m]

    Returns:
        phi: Potential [ni] [V]
    """
    i = np.arange(ni, dtype=np.float64)
    return rho0 * dx**2 / (2.0 * eps0) * i * (ni - 1 - i)
