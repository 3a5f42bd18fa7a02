"""Discretized translational dynamics for the guidance problem.

The vehicle is a point mass with constant mass m under uniform gravity. With
thrust held constant over each step of length h, the exact velocity update and
the trapezoidal position update are

    V[k+1] = V[k] + (h/m) * F[k] - g * h * z_hat
    P[k+1] = P[k] + (h/2) * (V[k] + V[k+1])

Both are affine in (P, V, F), so the constraints they generate keep the
guidance problem a second-order cone program.

The update functions only use +, - and scalar *, so they accept numpy arrays
(for checking a trajectory) and cvxpy expressions (for building constraints)
alike.

Example:
    >>> disc = DynamicsDiscretizer(dt=1.0, mass=2000.0, gravity=3.72)
    >>> P = cp.Variable((K + 1, 3))
    >>> V = cp.Variable((K + 1, 3))
    >>> F = cp.Variable((K, 3))
    >>> constraints = disc.constraints(P, V, F)
"""

from dataclasses import dataclass

import cvxpy as cp
import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from cvxkerb.errors import ConfigurationError
from cvxkerb.scenario import ScenarioConfig
from cvxkerb.trajectory import Trajectory
from cvxkerb.typecheck import NUMERIC_TOWER

# Altitude axis
Z_HAT = np.array([0.0, 0.0, 1.0])


@beartype(conf=NUMERIC_TOWER)
@dataclass(frozen=True)
class DynamicsDiscretizer:
    """Generates per-step dynamics constraints.

    Attributes:
        dt: Step duration h [s]
        mass: Vehicle mass m [kg]
        gravity: Gravitational acceleration g [m/s^2], acting along -z
    """
    dt: float
    mass: float
    gravity: float

    def __post_init__(self) -> None:
        if self.dt <= 0:
            raise ConfigurationError(f"dt must be positive, got {self.dt}")
        if self.mass <= 0:
            raise ConfigurationError(f"mass must be positive, got {self.mass}")

    @classmethod
    def from_scenario(cls, config: ScenarioConfig) -> "DynamicsDiscretizer":
        return cls(dt=config.dt, mass=config.mass, gravity=config.gravity)

    @property
    def gravity_step(self) -> NDArray[np.float64]:
        """Velocity change due to gravity over one step [m/s]."""
        return self.gravity * self.dt * Z_HAT

    def velocity_update(self, v_k, f_k):
        """Velocity at k+1 from velocity and thrust at k."""
        return v_k + (self.dt / self.mass) * f_k - self.gravity_step

    def position_update(self, p_k, v_k, v_next):
        """Position at k+1 by the trapezoidal rule."""
        return p_k + (self.dt / 2.0) * (v_k + v_next)

    def step_constraints(
        self,
        P: cp.Expression,
        V: cp.Expression,
        F: cp.Expression,
        k: int,
    ) -> list[cp.Constraint]:
        """Equality constraints linking sample k to sample k+1."""
        return [
            V[k + 1] == self.velocity_update(V[k], F[k]),
            P[k + 1] == self.position_update(P[k], V[k], V[k + 1]),
        ]

    def constraints(
        self,
        P: cp.Expression,
        V: cp.Expression,
        F: cp.Expression,
    ) -> list[cp.Constraint]:
        """Dynamics constraints for every step k in [0, K)."""
        n_steps = F.shape[0]
        constraints: list[cp.Constraint] = []
        for k in range(n_steps):
            constraints += self.step_constraints(P, V, F, k)
        return constraints

    def residuals(
        self,
        trajectory: Trajectory,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """How far a trajectory is from satisfying the recurrences.

        Returns:
            Tuple of (velocity_residual, position_residual), each shape (K, 3)
        """
        P = np.asarray(trajectory.positions)
        V = np.asarray(trajectory.velocities)
        F = np.asarray(trajectory.thrusts)
        velocity_residual = V[1:] - self.velocity_update(V[:-1], F)
        position_residual = P[1:] - self.position_update(P[:-1], V[:-1], V[1:])
        return velocity_residual, position_residual

    def propagate(
        self,
        p0: NDArray[np.float64],
        v0: NDArray[np.float64],
        thrusts: NDArray[np.float64],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Apply the recurrences forward from an initial state.

        Args:
            p0: Initial position [m]
            v0: Initial velocity [m/s]
            thrusts: Thrust sequence [N], shape (K, 3)

        Returns:
            Tuple of (positions, velocities), each shape (K+1, 3)
        """
        n_steps = thrusts.shape[0]
        P = np.zeros((n_steps + 1, 3))
        V = np.zeros((n_steps + 1, 3))
        P[0] = p0
        V[0] = v0
        for k in range(n_steps):
            V[k + 1] = self.velocity_update(V[k], thrusts[k])
            P[k + 1] = self.position_update(P[k], V[k], V[k + 1])
        return P, V
