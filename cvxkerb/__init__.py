"""cvxkerb - Powered descent trajectory generation.

This package generates landing trajectories for a rocket vehicle in two
modes that produce the same kind of output for a rendering layer:

- Guidance: fuel-optimal descent posed as a second-order cone program
  (G-FOLD style) and solved with cvxpy
- Freeflight: a fixed vertical burn integrated tick by tick with crash and
  safe-landing detection

Conventions:
    All quantities are SI (m, s, kg, N, rad). Vector index 2 is altitude;
    any remapping to a renderer's up axis happens outside this package.

Example:
    >>> from cvxkerb import GFoldGuidance, SolverHandle, get_scenario, interpolate
    >>>
    >>> guidance = GFoldGuidance(SolverHandle.acquire("CLARABEL"))
    >>> trajectory = guidance.plan(get_scenario("Mars Lander"))
    >>> sample = interpolate(trajectory, 12.5)
    >>> print(f"Altitude at t=12.5 s: {sample.position[2]:.1f} m")
"""

__version__ = "0.1.0"

from cvxkerb.dynamics import DynamicsDiscretizer, PhysicsState
from cvxkerb.errors import (
    ConfigurationError,
    CvxkerbError,
    ExtractionError,
    InfeasibilityError,
    SolveFailure,
    SolveInProgressError,
)
from cvxkerb.gnc.guidance import (
    ConicProgram,
    ConvexSolverAdapter,
    GFoldGuidance,
    GuidanceProblemBuilder,
    SolveResult,
    SolverHandle,
    SolveStatus,
    TrajectoryExtractor,
)
from cvxkerb.playback import (
    PlaybackSample,
    PlaybackVerdict,
    Telemetry,
    interpolate,
    playback_verdict,
    telemetry,
)
from cvxkerb.scenario import SCENARIOS, ScenarioConfig, get_scenario
from cvxkerb.simulation import (
    FreeflightConfig,
    FreeflightIntegrator,
    FreeflightResult,
    ScenarioController,
    SimulationMode,
    SimulationStatus,
    step_physics,
)
from cvxkerb.sources import FreeflightSource, GFoldSource, TrajectorySource
from cvxkerb.trajectory import Trajectory

__all__ = [
    # Version
    "__version__",
    # Configuration
    "SCENARIOS",
    "ScenarioConfig",
    "get_scenario",
    "FreeflightConfig",
    # Errors
    "ConfigurationError",
    "CvxkerbError",
    "ExtractionError",
    "InfeasibilityError",
    "SolveFailure",
    "SolveInProgressError",
    # Data
    "PhysicsState",
    "Trajectory",
    # Guidance
    "ConicProgram",
    "ConvexSolverAdapter",
    "DynamicsDiscretizer",
    "GFoldGuidance",
    "GuidanceProblemBuilder",
    "SolveResult",
    "SolveStatus",
    "SolverHandle",
    "TrajectoryExtractor",
    # Freeflight
    "FreeflightIntegrator",
    "FreeflightResult",
    "step_physics",
    # Playback
    "PlaybackSample",
    "PlaybackVerdict",
    "Telemetry",
    "interpolate",
    "playback_verdict",
    "telemetry",
    # Orchestration
    "FreeflightSource",
    "GFoldSource",
    "ScenarioController",
    "SimulationMode",
    "SimulationStatus",
    "TrajectorySource",
]
