"""Simulation module for landing scenarios.

Provides the freeflight physics integrator and the scenario controller that
drives solving, playback and freeflight runs.

Example:
    >>> from cvxkerb.simulation import FreeflightConfig, FreeflightIntegrator
    >>> from cvxkerb.dynamics import PhysicsState
    >>>
    >>> result = FreeflightIntegrator(FreeflightConfig()).simulate(dt=0.1)
    >>> result.final_state.has_crashed
    True
"""

from cvxkerb.simulation.controller import (
    MAX_TICK,
    ScenarioController,
    SimulationMode,
    SimulationStatus,
)
from cvxkerb.simulation.freeflight import (
    SAFE_LANDING_SPEED,
    FreeflightConfig,
    FreeflightIntegrator,
    FreeflightResult,
    step_physics,
)

__all__ = [
    "FreeflightConfig",
    "FreeflightIntegrator",
    "FreeflightResult",
    "MAX_TICK",
    "SAFE_LANDING_SPEED",
    "ScenarioController",
    "SimulationMode",
    "SimulationStatus",
    "step_physics",
]
