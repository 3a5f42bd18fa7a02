"""Uniform access to the two trajectory generation modes.

The rendering layer asks a TrajectorySource to ``produce`` something for a
configuration and samples it, without branching on which mode is active.
Guidance produces a complete Trajectory in one shot; freeflight produces a
stream of PhysicsState snapshots, one per tick.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from cvxkerb.dynamics.state import PhysicsState
from cvxkerb.gnc.guidance.gfold import GFoldGuidance
from cvxkerb.scenario import ScenarioConfig
from cvxkerb.simulation.freeflight import FreeflightConfig, FreeflightIntegrator
from cvxkerb.trajectory import Trajectory


@runtime_checkable
class TrajectorySource(Protocol):
    """Anything that turns a configuration into trajectory data."""

    def produce(self, config) -> Trajectory | Iterator[PhysicsState]:
        """Generate a trajectory or a stream of states for ``config``."""
        ...


@dataclass
class GFoldSource:
    """Fuel-optimal guidance as a trajectory source."""
    guidance: GFoldGuidance

    def produce(self, config: ScenarioConfig) -> Trajectory:
        """Solve the scenario; raises on failure like ``GFoldGuidance.plan``."""
        return self.guidance.plan(config)


@dataclass
class FreeflightSource:
    """Freeflight physics as a trajectory source.

    Attributes:
        dt: Tick length [s]
        ground_height: Ground altitude [m]
        max_time: Simulated time cap [s]
        initial_state: State at launch
    """
    dt: float = 0.1
    ground_height: float = 0.0
    max_time: float = 600.0
    initial_state: PhysicsState = field(default_factory=PhysicsState.initial)

    def produce(self, config: FreeflightConfig) -> Iterator[PhysicsState]:
        """Stream states from launch until crash or landing."""
        integrator = FreeflightIntegrator(config, self.ground_height)
        yield self.initial_state
        yield from integrator.run(self.initial_state, self.dt, self.max_time)
