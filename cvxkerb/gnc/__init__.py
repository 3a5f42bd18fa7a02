"""GNC (Guidance, Navigation, Control) module for landing vehicles.

Currently provides fuel-optimal powered descent guidance.

Example:
    >>> from cvxkerb.gnc.guidance import GFoldGuidance, SolverHandle
    >>>
    >>> guidance = GFoldGuidance(SolverHandle.acquire("CLARABEL"))
    >>> trajectory = guidance.plan(config)
"""

from cvxkerb.gnc.guidance import (
    GFoldGuidance,
    GuidanceProblemBuilder,
    SolverHandle,
)

__all__ = [
    "GFoldGuidance",
    "GuidanceProblemBuilder",
    "SolverHandle",
]
