"""G-FOLD (Fuel Optimal Large Divert) powered descent guidance.

Ties the guidance pipeline together for a fixed time horizon:

    ScenarioConfig -> GuidanceProblemBuilder -> ConvexSolverAdapter
                   -> TrajectoryExtractor -> Trajectory

There is no retry loop over time horizons. A failed solve is reported once,
with the solver's status, and the caller decides what to change.

Example:
    >>> from cvxkerb.gnc.guidance import GFoldGuidance, SolverHandle
    >>> from cvxkerb.scenario import get_scenario
    >>>
    >>> guidance = GFoldGuidance(SolverHandle.acquire())
    >>> trajectory = guidance.plan(get_scenario("Mars Lander"))
    >>> print(f"Fuel used: {trajectory.fuel_used / 1e3:.0f} kN*s")
"""

import logging
from dataclasses import dataclass

from beartype import beartype

from cvxkerb.gnc.guidance.extraction import TrajectoryExtractor
from cvxkerb.gnc.guidance.problem import ConicProgram, GuidanceProblemBuilder, precheck
from cvxkerb.gnc.guidance.solver import (
    ConvexSolverAdapter,
    SolverHandle,
    SolveResult,
    SolveStatus,
)
from cvxkerb.scenario import ScenarioConfig
from cvxkerb.trajectory import Trajectory
from cvxkerb.typecheck import NUMERIC_TOWER

logger = logging.getLogger(__name__)


@beartype(conf=NUMERIC_TOWER)
@dataclass
class GFoldGuidance:
    """Fuel-optimal landing guidance.

    Attributes:
        handle: Solver to use, acquired once by the caller
        fail_fast: Reject scenarios that are infeasible by construction
            without calling the solver
        zero_fill: Passed to TrajectoryExtractor; leave False outside debugging
    """
    handle: SolverHandle
    fail_fast: bool = True
    zero_fill: bool = False

    def __post_init__(self) -> None:
        self._adapter = ConvexSolverAdapter(self.handle)

    def build(self, config: ScenarioConfig) -> ConicProgram:
        """Assemble the conic program for a scenario."""
        return GuidanceProblemBuilder(config).build()

    def _rejected(self, config: ScenarioConfig) -> SolveResult | None:
        if not self.fail_fast:
            return None
        reason = precheck(config)
        if reason is None:
            return None
        logger.info("Scenario rejected before solving: %s", reason)
        return SolveResult.failed(SolveStatus.INFEASIBLE, f"infeasible by construction: {reason}")

    def solve(self, config: ScenarioConfig) -> SolveResult:
        """Build and solve, returning the raw SolveResult."""
        rejected = self._rejected(config)
        if rejected is not None:
            return rejected
        return self._adapter.solve(self.build(config))

    async def solve_async(self, config: ScenarioConfig) -> SolveResult:
        """Awaitable version of ``solve``; the solver runs in a worker thread."""
        rejected = self._rejected(config)
        if rejected is not None:
            return rejected
        return await self._adapter.solve_async(self.build(config))

    def extract(self, config: ScenarioConfig, result: SolveResult) -> Trajectory:
        return TrajectoryExtractor(config, zero_fill=self.zero_fill).extract(result)

    def plan(self, config: ScenarioConfig) -> Trajectory:
        """Solve a scenario and return its trajectory.

        Raises:
            InfeasibilityError: If no optimal solution was found
            ExtractionError: If the solver output is malformed
        """
        return self.extract(config, self.solve(config))

    async def plan_async(self, config: ScenarioConfig) -> Trajectory:
        """Awaitable version of ``plan``."""
        result = await self.solve_async(config)
        return self.extract(config, result)
