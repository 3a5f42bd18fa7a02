"""Freeflight physics: fixed vertical burn under constant gravity.

The simple alternative to guidance. The engine fires straight up at full
thrust for a configured burn duration, then cuts off, and the vehicle falls
back until it touches the ground. Contact slower than SAFE_LANDING_SPEED is
a safe landing; anything faster is a crash. Both are terminal: once a state
carries either flag, further ticks return it unchanged.

Integration is semi-implicit (symplectic) Euler: velocity is updated first
from the current acceleration, then position from the new velocity.

Example:
    >>> from cvxkerb.simulation import FreeflightConfig, FreeflightIntegrator
    >>> from cvxkerb.dynamics import PhysicsState
    >>>
    >>> integrator = FreeflightIntegrator(FreeflightConfig(burn_duration=8.0))
    >>> for state in integrator.run(PhysicsState.initial(), dt=0.1):
    ...     pass
    >>> print("crashed" if state.has_crashed else "landed")
"""

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np
import polars as pl
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from cvxkerb.dynamics.state import PhysicsState
from cvxkerb.errors import ConfigurationError
from cvxkerb.typecheck import NUMERIC_TOWER, check_config_fields

logger = logging.getLogger(__name__)

SAFE_LANDING_SPEED = 5.0  # m/s

# Kernel outcome codes
_RUNNING = 0
_LANDED = 1
_CRASHED = 2


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class FreeflightConfig:
    """Vehicle and environment for a freeflight run.

    Defaults are a 25 t vehicle with 800 kN of thrust on Mars.

    Attributes:
        gravity: Gravitational acceleration [m/s^2]
        mass: Vehicle mass [kg]
        max_thrust: Engine thrust while burning [N]
        burn_duration: Engine burn time from launch [s]
    """
    gravity: float = 3.72
    mass: float = 25000.0
    max_thrust: float = 800000.0
    burn_duration: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration and store numbers as floats."""
        check_config_fields(self)
        for name in ("gravity", "mass", "max_thrust", "burn_duration"):
            setattr(self, name, float(getattr(self, name)))
        if not math.isfinite(self.gravity):
            raise ConfigurationError(f"gravity must be finite, got {self.gravity}")
        if not math.isfinite(self.mass) or self.mass <= 0:
            raise ConfigurationError(f"mass must be positive, got {self.mass}")
        if not math.isfinite(self.max_thrust) or self.max_thrust < 0:
            raise ConfigurationError(f"max_thrust must be >= 0, got {self.max_thrust}")
        if not math.isfinite(self.burn_duration) or self.burn_duration < 0:
            raise ConfigurationError(f"burn_duration must be >= 0, got {self.burn_duration}")

    @property
    def thrust_to_weight(self) -> float:
        """Thrust-to-weight ratio while burning (inf when gravity is zero)."""
        weight = self.mass * self.gravity
        return self.max_thrust / weight if weight > 0 else math.inf


# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True, fastmath=True)
def _semi_implicit_step(
    px: float, py: float, pz: float,
    vx: float, vy: float, vz: float,
    elapsed: float,
    gravity: float, mass: float, max_thrust: float, burn_duration: float,
    dt: float, ground_height: float, safe_speed: float,
) -> tuple:
    """One semi-implicit Euler step with ground contact classification."""
    t = elapsed + dt
    engine_on = t < burn_duration

    az = -gravity
    fz = 0.0
    if engine_on:
        az += max_thrust / mass
        fz = max_thrust

    # Velocity first, then position from the new velocity
    vz_new = vz + az * dt
    px_new = px + vx * dt
    py_new = py + vy * dt
    pz_new = pz + vz_new * dt

    outcome = _RUNNING
    if pz_new <= ground_height and vz_new < 0.0:
        pz_new = ground_height
        if abs(vz_new) < safe_speed:
            outcome = _LANDED
            vx = 0.0
            vy = 0.0
            vz_new = 0.0
        else:
            outcome = _CRASHED

    return (px_new, py_new, pz_new, vx, vy, vz_new, fz, t, engine_on, outcome)


@beartype(conf=NUMERIC_TOWER)
def step_physics(
    state: PhysicsState,
    config: FreeflightConfig,
    dt: float,
    ground_height: float = 0.0,
) -> PhysicsState:
    """Advance a freeflight state by one tick.

    Args:
        state: State after the previous tick
        config: Vehicle and environment
        dt: Tick length [s]
        ground_height: Altitude of the ground surface [m]

    Returns:
        New state, or ``state`` itself if it is already terminal
    """
    if state.is_terminal:
        return state
    if not dt > 0:
        raise ValueError(f"dt must be positive, got {dt}")

    p = state.position
    v = state.velocity
    (px, py, pz, vx, vy, vz, fz, t, engine_on, outcome) = _semi_implicit_step(
        float(p[0]), float(p[1]), float(p[2]),
        float(v[0]), float(v[1]), float(v[2]),
        float(state.elapsed_time),
        config.gravity, config.mass, config.max_thrust, config.burn_duration,
        float(dt), float(ground_height), SAFE_LANDING_SPEED,
    )

    new_state = PhysicsState(
        position=np.array([px, py, pz]),
        velocity=np.array([vx, vy, vz]),
        thrust=np.array([0.0, 0.0, fz]),
        elapsed_time=float(t),
        engine_on=bool(engine_on),
        has_crashed=outcome == _CRASHED,
        has_landed_safely=outcome == _LANDED,
    )
    if new_state.is_terminal:
        logger.info(
            "Freeflight %s at t=%.2f s (impact speed %.2f m/s)",
            "crashed" if new_state.has_crashed else "landed safely",
            new_state.elapsed_time, abs(vz) if new_state.has_crashed else 0.0,
        )
    return new_state


# =============================================================================
# Integrator
# =============================================================================


@beartype(conf=NUMERIC_TOWER)
@dataclass
class FreeflightIntegrator:
    """Steps freeflight states for one vehicle and ground height.

    Attributes:
        config: Vehicle and environment
        ground_height: Altitude of the ground surface [m]
    """
    config: FreeflightConfig = field(default_factory=FreeflightConfig)
    ground_height: float = 0.0

    def tick(self, state: PhysicsState, dt: float) -> PhysicsState:
        """Advance one tick; terminal states are returned unchanged."""
        return step_physics(state, self.config, dt, self.ground_height)

    def run(
        self,
        state: PhysicsState,
        dt: float = 0.1,
        max_time: float = 600.0,
    ) -> Iterator[PhysicsState]:
        """Yield successive states until a terminal flag is set.

        Stops early once ``max_time`` of simulated time has passed, so a
        vehicle that never comes down cannot loop forever.
        """
        while not state.is_terminal and state.elapsed_time < max_time:
            state = self.tick(state, dt)
            yield state

    def simulate(
        self,
        state: PhysicsState | None = None,
        dt: float = 0.1,
        max_time: float = 600.0,
    ) -> "FreeflightResult":
        """Run to termination and collect the full history."""
        initial = state if state is not None else PhysicsState.initial()
        return FreeflightResult(states=[initial, *self.run(initial, dt, max_time)])


# =============================================================================
# Results
# =============================================================================


@beartype(conf=NUMERIC_TOWER)
@dataclass
class FreeflightResult:
    """History of a freeflight run."""
    states: list[PhysicsState]

    @property
    def final_state(self) -> PhysicsState:
        return self.states[-1]

    @property
    def time(self) -> NDArray[np.float64]:
        """Time array [s]."""
        return np.array([s.elapsed_time for s in self.states])

    @property
    def position(self) -> NDArray[np.float64]:
        """Position history [m], shape (N, 3)."""
        return np.array([s.position for s in self.states])

    @property
    def velocity(self) -> NDArray[np.float64]:
        """Velocity history [m/s], shape (N, 3)."""
        return np.array([s.velocity for s in self.states])

    @property
    def thrust(self) -> NDArray[np.float64]:
        """Thrust history [N], shape (N, 3)."""
        return np.array([s.thrust for s in self.states])

    @property
    def max_altitude(self) -> float:
        return float(self.position[:, 2].max())

    def to_dataframe(self) -> pl.DataFrame:
        """Convert to Polars DataFrame."""
        return pl.DataFrame({
            "time": self.time,
            "x": self.position[:, 0],
            "y": self.position[:, 1],
            "z": self.position[:, 2],
            "vx": self.velocity[:, 0],
            "vy": self.velocity[:, 1],
            "vz": self.velocity[:, 2],
            "thrust": self.thrust[:, 2],
            "engine_on": [s.engine_on for s in self.states],
        })
