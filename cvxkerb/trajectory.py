"""Discrete descent trajectory.

A Trajectory is the common output of both trajectory sources: K+1 position
and velocity samples and K thrust vectors on a uniform time grid. Thrust F[k]
acts over the interval [t_k, t_k+1), so there is no thrust sample for the
final instant.
"""

from dataclasses import dataclass

import numpy as np
import polars as pl
from beartype import beartype
from numpy.typing import NDArray

from cvxkerb.typecheck import NUMERIC_TOWER


def _frozen(arr: NDArray[np.float64]) -> NDArray[np.float64]:
    out = np.array(arr, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out


@beartype(conf=NUMERIC_TOWER)
@dataclass
class Trajectory:
    """Time-indexed positions, velocities and thrust vectors.

    Attributes:
        positions: Positions P[0..K] [m], shape (K+1, 3)
        velocities: Velocities V[0..K] [m/s], shape (K+1, 3)
        thrusts: Thrust vectors F[0..K-1] [N], shape (K, 3)
        dt: Sample spacing [s]
        fuel_used: Total impulse sum(||F[k]||) [N*s] as reported by the solver
    """
    positions: NDArray[np.float64]
    velocities: NDArray[np.float64]
    thrusts: NDArray[np.float64]
    dt: float = 1.0
    fuel_used: float = 0.0

    def __post_init__(self) -> None:
        """Validate shapes and freeze arrays."""
        self.positions = _frozen(self.positions)
        self.velocities = _frozen(self.velocities)
        self.thrusts = _frozen(self.thrusts)
        self.dt = float(self.dt)
        self.fuel_used = float(self.fuel_used)

        if self.thrusts.ndim != 2 or self.thrusts.shape[1] != 3:
            raise ValueError(f"Thrusts must be shape (K, 3), got {self.thrusts.shape}")
        n = self.thrusts.shape[0]
        if n < 1:
            raise ValueError("Trajectory needs at least one step")
        if self.positions.shape != (n + 1, 3):
            raise ValueError(f"Positions must be shape ({n + 1}, 3), got {self.positions.shape}")
        if self.velocities.shape != (n + 1, 3):
            raise ValueError(f"Velocities must be shape ({n + 1}, 3), got {self.velocities.shape}")
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.fuel_used < 0:
            raise ValueError(f"fuel_used must be non-negative, got {self.fuel_used}")

    @property
    def n_steps(self) -> int:
        """Number of steps K."""
        return int(self.thrusts.shape[0])

    @property
    def times(self) -> NDArray[np.float64]:
        """Sample times [s], shape (K+1,)."""
        return np.arange(self.n_steps + 1, dtype=np.float64) * self.dt

    @property
    def altitude(self) -> NDArray[np.float64]:
        """Altitude history [m]."""
        return np.asarray(self.positions[:, 2])

    @property
    def speed(self) -> NDArray[np.float64]:
        """Speed history [m/s]."""
        return np.linalg.norm(self.velocities, axis=1)

    @property
    def thrust_magnitude(self) -> NDArray[np.float64]:
        """Thrust magnitude per step [N], shape (K,)."""
        return np.linalg.norm(self.thrusts, axis=1)

    @property
    def final_position(self) -> NDArray[np.float64]:
        return np.asarray(self.positions[-1])

    @property
    def final_velocity(self) -> NDArray[np.float64]:
        return np.asarray(self.velocities[-1])

    def thrust_at(self, index: int) -> NDArray[np.float64]:
        """Thrust applied from sample ``index``; zero at and after the last sample."""
        if 0 <= index < self.n_steps:
            return np.asarray(self.thrusts[index])
        return np.zeros(3)

    def to_dataframe(self) -> pl.DataFrame:
        """Convert to a Polars DataFrame with one row per sample."""
        thrusts = np.vstack([self.thrusts, np.zeros((1, 3))])
        return pl.DataFrame({
            "time": self.times,
            "x": self.positions[:, 0],
            "y": self.positions[:, 1],
            "z": self.positions[:, 2],
            "vx": self.velocities[:, 0],
            "vy": self.velocities[:, 1],
            "vz": self.velocities[:, 2],
            "fx": thrusts[:, 0],
            "fy": thrusts[:, 1],
            "fz": thrusts[:, 2],
            "speed": self.speed,
            "thrust": np.linalg.norm(thrusts, axis=1),
        })

    @classmethod
    def from_dataframe(
        cls,
        df: pl.DataFrame,
        dt: float,
        fuel_used: float = 0.0,
    ) -> "Trajectory":
        """Rebuild a trajectory from ``to_dataframe`` output."""
        positions = df.select(["x", "y", "z"]).to_numpy().astype(np.float64)
        velocities = df.select(["vx", "vy", "vz"]).to_numpy().astype(np.float64)
        thrusts = df.select(["fx", "fy", "fz"]).to_numpy().astype(np.float64)[:-1]
        return cls(
            positions=positions,
            velocities=velocities,
            thrusts=thrusts,
            dt=dt,
            fuel_used=fuel_used,
        )
