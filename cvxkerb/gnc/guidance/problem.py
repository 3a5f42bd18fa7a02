"""Fuel-optimal powered descent as a second-order cone program.

Builds the G-FOLD style landing problem for a fixed time horizon:

    minimize    sum_k ||F[k]||_2
    subject to  P[0] = p0, V[0] = v0, P[K] = p_target, V[K] = 0
                discretized dynamics for k in [0, K)
                P[k]_z >= P_min, V[k]_z <= 0          for k in [0, K]
                F[k]_z >= 0, ||F[k]||_2 <= F_max      for k in [0, K)
                ||P[k]_xy - p_target_xy|| <= tan(alpha) * (P[k]_z - p_target_z)
                                                       (optional glide slope)

Mass is held constant, so the thrust bound is a plain norm ball and no
log-mass change of variables is needed. The objective is the total impulse,
which is proportional to propellant use at constant specific impulse.

Reference:
    Acikmese, B., & Ploen, S. R. (2007). "Convex Programming Approach to
    Powered Descent Guidance for Mars Landing"
"""

import math
from dataclasses import dataclass, field

import cvxpy as cp
import numpy as np
from beartype import beartype

from cvxkerb.dynamics.discretization import DynamicsDiscretizer
from cvxkerb.scenario import ScenarioConfig
from cvxkerb.typecheck import NUMERIC_TOWER

POSITIONS = "positions"
VELOCITIES = "velocities"
THRUSTS = "thrusts"

# Slack for the glide-slope precheck so a start exactly on the cone passes
_CONE_TOL = 1e-9


@dataclass
class ConicProgram:
    """Solver-ready description of one guidance problem.

    Attributes:
        variables: Decision variables by name
        constraints: All constraints, in build order
        objective: Objective to minimize
        groups: Constraints grouped by purpose (boundary, dynamics, ...)
        config: Scenario the program was built from
    """
    variables: dict[str, cp.Variable]
    constraints: list[cp.Constraint]
    objective: cp.Minimize
    config: ScenarioConfig
    groups: dict[str, list[cp.Constraint]] = field(default_factory=dict)

    def to_problem(self) -> cp.Problem:
        """Assemble a fresh cvxpy Problem."""
        return cp.Problem(self.objective, self.constraints)

    def variable_shapes(self) -> dict[str, tuple[int, ...]]:
        """Expected primal shape of each decision variable."""
        return {name: var.shape for name, var in self.variables.items()}


@beartype(conf=NUMERIC_TOWER)
def precheck(config: ScenarioConfig) -> str | None:
    """Find boundary conditions that make the problem infeasible by construction.

    These are caught before the solver runs. The check is conservative: a
    scenario that passes can still be infeasible, for example when thrust is
    too weak to stop in time.

    Returns:
        Human-readable reason, or None if no obvious conflict was found
    """
    p0 = config.p0
    v0 = config.v0
    pt = config.p_target

    if p0[2] < config.min_altitude:
        return (
            f"initial altitude {p0[2]:g} m is below the minimum altitude "
            f"{config.min_altitude:g} m"
        )
    if pt[2] < config.min_altitude:
        return (
            f"target altitude {pt[2]:g} m is below the minimum altitude "
            f"{config.min_altitude:g} m"
        )
    if v0[2] > 0:
        return f"initial vertical velocity {v0[2]:g} m/s is upward but descent must be monotonic"

    if config.glideslope_angle is not None:
        lateral = float(np.linalg.norm(p0[:2] - pt[:2]))
        allowed = math.tan(config.glideslope_angle) * (p0[2] - pt[2])
        if lateral > allowed + _CONE_TOL:
            return (
                f"initial position is outside the glide-slope cone "
                f"(lateral offset {lateral:g} m, allowed {max(allowed, 0.0):g} m)"
            )

    return None


@beartype(conf=NUMERIC_TOWER)
class GuidanceProblemBuilder:
    """Assembles the conic program for a scenario.

    Example:
        >>> builder = GuidanceProblemBuilder(get_scenario("Mars Lander"))
        >>> program = builder.build()
        >>> len(program.groups["dynamics"])
        120
    """

    def __init__(self, config: ScenarioConfig) -> None:
        self.config = config
        self.discretizer = DynamicsDiscretizer.from_scenario(config)

    def build(self) -> ConicProgram:
        """Create variables, constraints and objective."""
        cfg = self.config
        K = cfg.n_steps

        P = cp.Variable((K + 1, 3), name=POSITIONS)
        V = cp.Variable((K + 1, 3), name=VELOCITIES)
        F = cp.Variable((K, 3), name=THRUSTS)

        groups = {
            "boundary": self._boundary(P, V),
            "dynamics": self.discretizer.constraints(P, V, F),
            "operational": self._operational(P, V),
            "thrust": self._thrust(F),
        }
        if cfg.glideslope_angle is not None:
            groups["glideslope"] = self._glideslope(P)

        constraints: list[cp.Constraint] = []
        for group in groups.values():
            constraints += group

        objective = cp.Minimize(cp.sum([cp.norm(F[k]) for k in range(K)]))

        return ConicProgram(
            variables={POSITIONS: P, VELOCITIES: V, THRUSTS: F},
            constraints=constraints,
            objective=objective,
            config=cfg,
            groups=groups,
        )

    def _boundary(self, P: cp.Variable, V: cp.Variable) -> list[cp.Constraint]:
        K = self.config.n_steps
        return [
            P[0] == self.config.p0,
            V[0] == self.config.v0,
            P[K] == self.config.p_target,
            V[K] == np.zeros(3),  # Soft landing
        ]

    def _operational(self, P: cp.Variable, V: cp.Variable) -> list[cp.Constraint]:
        constraints = []
        for k in range(self.config.n_steps + 1):
            constraints += [
                P[k, 2] >= self.config.min_altitude,
                V[k, 2] <= 0.0,  # Never climb
            ]
        return constraints

    def _thrust(self, F: cp.Variable) -> list[cp.Constraint]:
        constraints = []
        for k in range(self.config.n_steps):
            constraints += [
                F[k, 2] >= 0.0,
                # Isotropic bound over the full 3-vector, not per axis
                cp.norm(F[k]) <= self.config.max_thrust,
            ]
        return constraints

    def _glideslope(self, P: cp.Variable) -> list[cp.Constraint]:
        tan_alpha = math.tan(self.config.glideslope_angle)
        pt = self.config.p_target
        constraints = []
        for k in range(self.config.n_steps + 1):
            lateral = P[k, :2] - pt[:2]
            height = P[k, 2] - pt[2]
            constraints += [cp.norm(lateral) <= tan_alpha * height]
        return constraints
