"""State of the freeflight physics simulation.

PhysicsState is an immutable snapshot: every integrator tick returns a new
instance, so a state handed to the rendering layer can never change under it.
Index 2 of each vector is the altitude axis.
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from cvxkerb.typecheck import NUMERIC_TOWER


def _readonly(value: NDArray[np.float64], name: str) -> NDArray[np.float64]:
    arr = np.array(value, dtype=np.float64, copy=True)
    if arr.shape != (3,):
        raise ValueError(f"{name} must be shape (3,), got {arr.shape}")
    arr.setflags(write=False)
    return arr


@beartype(conf=NUMERIC_TOWER)
@dataclass(frozen=True)
class PhysicsState:
    """Snapshot of the vehicle in freeflight mode.

    Attributes:
        position: [x, y, z] position [m], z is altitude
        velocity: [vx, vy, vz] velocity [m/s]
        thrust: Thrust vector applied during the last tick [N]
        elapsed_time: Simulated time since launch [s]
        engine_on: Whether the engine fired during the last tick
        has_crashed: Ground contact faster than the safe landing speed
        has_landed_safely: Ground contact slower than the safe landing speed
    """
    position: NDArray[np.float64]
    velocity: NDArray[np.float64]
    thrust: NDArray[np.float64]
    elapsed_time: float = 0.0
    engine_on: bool = True
    has_crashed: bool = False
    has_landed_safely: bool = False

    def __post_init__(self) -> None:
        """Validate shapes and flags."""
        object.__setattr__(self, "position", _readonly(self.position, "Position"))
        object.__setattr__(self, "velocity", _readonly(self.velocity, "Velocity"))
        object.__setattr__(self, "thrust", _readonly(self.thrust, "Thrust"))
        object.__setattr__(self, "elapsed_time", float(self.elapsed_time))
        if self.elapsed_time < 0:
            raise ValueError(f"elapsed_time must be >= 0, got {self.elapsed_time}")
        if self.has_crashed and self.has_landed_safely:
            raise ValueError("A state cannot be both crashed and landed")

    @classmethod
    def initial(
        cls,
        altitude: float = 25.0,
        x: float = 0.0,
        y: float = 0.0,
    ) -> "PhysicsState":
        """Vehicle at rest on the pad with the engine armed.

        The default altitude of 25 m puts the base of a 50 m vehicle,
        positioned by its center, on the ground.
        """
        return cls(
            position=np.array([x, y, altitude], dtype=np.float64),
            velocity=np.zeros(3),
            thrust=np.zeros(3),
        )

    @property
    def is_terminal(self) -> bool:
        """True once the vehicle has crashed or landed."""
        return self.has_crashed or self.has_landed_safely

    @property
    def altitude(self) -> float:
        return float(self.position[2])

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))
