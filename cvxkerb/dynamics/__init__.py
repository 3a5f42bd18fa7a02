"""Vehicle dynamics for trajectory generation.

This module provides the discretized point-mass dynamics used by the
guidance problem and the state snapshot used by the freeflight simulation.

Example:
    >>> from cvxkerb.dynamics import DynamicsDiscretizer, PhysicsState
    >>>
    >>> disc = DynamicsDiscretizer(dt=1.0, mass=25000.0, gravity=9.81)
    >>> P, V = disc.propagate(p0, v0, thrusts)
    >>> state = PhysicsState.initial()
"""

from cvxkerb.dynamics.discretization import Z_HAT, DynamicsDiscretizer
from cvxkerb.dynamics.state import PhysicsState

__all__ = [
    "DynamicsDiscretizer",
    "PhysicsState",
    "Z_HAT",
]
