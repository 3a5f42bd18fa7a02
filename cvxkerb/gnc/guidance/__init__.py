"""Powered descent guidance.

Builds the fuel-optimal landing problem as a second-order cone program,
solves it through an explicit solver handle, and recovers the trajectory.

Available pieces:
    GuidanceProblemBuilder: Variables, constraints and objective for a scenario
    ConvexSolverAdapter: cvxpy boundary returning a normalized SolveResult
    TrajectoryExtractor: SolveResult -> Trajectory, or an explicit error
    GFoldGuidance: The three above wired together
"""

from cvxkerb.gnc.guidance.extraction import TrajectoryExtractor
from cvxkerb.gnc.guidance.gfold import GFoldGuidance
from cvxkerb.gnc.guidance.problem import (
    POSITIONS,
    THRUSTS,
    VELOCITIES,
    ConicProgram,
    GuidanceProblemBuilder,
    precheck,
)
from cvxkerb.gnc.guidance.solver import (
    DEFAULT_SOLVER,
    ConvexSolverAdapter,
    SolverHandle,
    SolveResult,
    SolveStatus,
    normalize_status,
)

__all__ = [
    "ConicProgram",
    "ConvexSolverAdapter",
    "DEFAULT_SOLVER",
    "GFoldGuidance",
    "GuidanceProblemBuilder",
    "POSITIONS",
    "SolveResult",
    "SolveStatus",
    "SolverHandle",
    "THRUSTS",
    "TrajectoryExtractor",
    "VELOCITIES",
    "normalize_status",
    "precheck",
]
