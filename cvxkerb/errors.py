"""Exception types for trajectory generation.

Configuration problems, solver failures and extraction faults each get their
own type so a calling controller can tell a physically infeasible scenario
apart from a malfunctioning solver. Crashing in the freeflight simulation is
an outcome, not an error, and is reported through PhysicsState flags instead.
"""


class CvxkerbError(Exception):
    """Base class for all cvxkerb errors."""


class ConfigurationError(CvxkerbError, ValueError):
    """Raised when a scenario or simulation configuration is malformed."""


class InfeasibilityError(CvxkerbError):
    """Raised when the solver returns a non-optimal status.

    Attributes:
        status: Normalized status ("infeasible", "unbounded", "solver_error")
        raw_status: Status text reported by the solver itself
    """

    def __init__(self, status: str, raw_status: str | None = None) -> None:
        self.status = status
        self.raw_status = raw_status or status
        if self.raw_status == status:
            message = f"Solver failed with status: {status}"
        else:
            message = f"Solver failed with status: {status} ({self.raw_status})"
        super().__init__(message)


# Name used by callers that think of this as "the solve failed"
SolveFailure = InfeasibilityError


class ExtractionError(CvxkerbError):
    """Raised when solver output does not match the decision variables."""


class SolveInProgressError(CvxkerbError, RuntimeError):
    """Raised when a solve is requested while another one is in flight."""
