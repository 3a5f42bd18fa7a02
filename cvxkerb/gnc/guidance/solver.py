"""Conic solver boundary.

The guidance core never looks inside the solver. It hands a ConicProgram to
a ConvexSolverAdapter and gets back a SolveResult: a normalized status, the
objective value and the primal values of the decision variables by name.

The solver is chosen through an explicit SolverHandle acquired once at
startup and passed to every adapter that needs it, so there is no hidden
module-level solver state.

Example:
    >>> handle = SolverHandle.acquire("CLARABEL")
    >>> adapter = ConvexSolverAdapter(handle)
    >>> result = adapter.solve(GuidanceProblemBuilder(config).build())
    >>> result.status
    <SolveStatus.OPTIMAL: 'optimal'>
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import cvxpy as cp
import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from cvxkerb.errors import ConfigurationError
from cvxkerb.gnc.guidance.problem import ConicProgram
from cvxkerb.typecheck import NUMERIC_TOWER

logger = logging.getLogger(__name__)

DEFAULT_SOLVER = "CLARABEL"


class SolveStatus(Enum):
    """Normalized solver outcome."""
    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    SOLVER_ERROR = "solver_error"


# cvxpy reports "*_inaccurate" when it stopped at reduced tolerance; the
# inaccurate optimum is still accepted as a solution
_STATUS_MAP = {
    "optimal": SolveStatus.OPTIMAL,
    "optimal_inaccurate": SolveStatus.OPTIMAL,
    "infeasible": SolveStatus.INFEASIBLE,
    "infeasible_inaccurate": SolveStatus.INFEASIBLE,
    "unbounded": SolveStatus.UNBOUNDED,
    "unbounded_inaccurate": SolveStatus.UNBOUNDED,
}


@beartype(conf=NUMERIC_TOWER)
def normalize_status(raw_status: str | None) -> SolveStatus:
    """Map a cvxpy status string onto SolveStatus."""
    if raw_status is None:
        return SolveStatus.SOLVER_ERROR
    return _STATUS_MAP.get(raw_status, SolveStatus.SOLVER_ERROR)


@dataclass
class SolveResult:
    """Outcome of one solve call.

    Attributes:
        status: Normalized status
        raw_status: Status text as reported by the solver (or a reason when
            the solver was never called)
        objective: Optimal objective value, None unless status is OPTIMAL
        primal: Primal values by decision-variable name, empty unless OPTIMAL
        solve_time: Wall-clock time spent in the solver [s]
    """
    status: SolveStatus
    raw_status: str
    objective: float | None = None
    primal: dict[str, NDArray[np.float64]] = field(default_factory=dict)
    solve_time: float = 0.0

    @property
    def is_optimal(self) -> bool:
        return self.status is SolveStatus.OPTIMAL

    @classmethod
    def failed(
        cls,
        status: SolveStatus,
        raw_status: str,
        solve_time: float = 0.0,
    ) -> "SolveResult":
        """Result carrying no solution."""
        if status is SolveStatus.OPTIMAL:
            raise ValueError("A failed result cannot have status OPTIMAL")
        return cls(status=status, raw_status=raw_status, solve_time=solve_time)


@beartype(conf=NUMERIC_TOWER)
@dataclass(frozen=True)
class SolverHandle:
    """An installed conic solver and the options to call it with.

    Create with ``acquire`` once per process and share it; the handle itself
    holds no per-solve state.

    Attributes:
        name: cvxpy solver name (e.g. "CLARABEL", "ECOS", "SCS")
        options: Keyword arguments forwarded to ``cp.Problem.solve``
    """
    name: str
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def acquire(cls, name: str = DEFAULT_SOLVER, **options: Any) -> "SolverHandle":
        """Check that the solver is installed and return a handle to it.

        Raises:
            ConfigurationError: If cvxpy cannot find the solver
        """
        installed = cp.installed_solvers()
        if name not in installed:
            raise ConfigurationError(
                f"Solver {name} is not installed. Available: {', '.join(installed)}"
            )
        options.setdefault("verbose", False)
        logger.debug("Acquired solver %s with options %s", name, options)
        return cls(name=name, options=options)


class ConvexSolverAdapter:
    """Runs a ConicProgram through cvxpy and normalizes the outcome.

    Each call builds a fresh cvxpy Problem, so the adapter can be reused for
    any number of independent scenarios.
    """

    def __init__(self, handle: SolverHandle) -> None:
        self.handle = handle

    def solve(self, program: ConicProgram) -> SolveResult:
        """Solve the program, blocking until the solver returns."""
        problem = program.to_problem()
        logger.debug(
            "Solving guidance problem: %d variables, %d constraints",
            problem.size_metrics.num_scalar_variables,
            len(program.constraints),
        )

        start = time.perf_counter()
        try:
            problem.solve(solver=self.handle.name, **self.handle.options)
        except cp.SolverError as err:
            elapsed = time.perf_counter() - start
            logger.warning("Solver %s raised: %s", self.handle.name, err)
            return SolveResult.failed(SolveStatus.SOLVER_ERROR, str(err), elapsed)
        elapsed = time.perf_counter() - start

        raw_status = problem.status
        status = normalize_status(raw_status)
        logger.info(
            "Solver %s finished with status %s in %.3f s",
            self.handle.name, raw_status, elapsed,
        )

        if status is not SolveStatus.OPTIMAL:
            return SolveResult.failed(status, str(raw_status), elapsed)

        primal = {
            name: np.asarray(var.value, dtype=np.float64)
            for name, var in program.variables.items()
            if var.value is not None
        }
        objective = None if problem.value is None else float(problem.value)

        return SolveResult(
            status=status,
            raw_status=str(raw_status),
            objective=objective,
            primal=primal,
            solve_time=elapsed,
        )

    async def solve_async(self, program: ConicProgram) -> SolveResult:
        """Solve in a worker thread so an event loop stays responsive."""
        return await asyncio.to_thread(self.solve, program)
