"""Continuous-time playback of a discrete trajectory.

Playback time is measured in samples: t = 2.5 is halfway between sample 2
and sample 3. Position is linearly interpolated between the bracketing
samples for smooth motion. Velocity and thrust are held at the lower sample,
since at this resolution they are step quantities and blending them would
invent values the solver never produced. Times outside the trajectory clamp
to the first or last sample.

Example:
    >>> sample = interpolate(trajectory, playback_time)
    >>> info = telemetry(sample, max_thrust=config.max_thrust)
    >>> print(f"Alt {info.altitude:.1f} m, {info.thrust_percent:.0f}% thrust")
"""

import math
from enum import Enum
from typing import NamedTuple

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from cvxkerb.trajectory import Trajectory
from cvxkerb.typecheck import NUMERIC_TOWER

# Playback landing classification, checked against the sample being shown
CRASH_SPEED = 10.0  # m/s, faster than this near the ground is a crash
CRASH_CHECK_ALTITUDE = 30.0  # m, only check below this altitude


class PlaybackSample(NamedTuple):
    """Rendered state at one playback instant."""
    position: NDArray[np.float64]  # Interpolated position [m]
    velocity: NDArray[np.float64]  # Velocity at the lower sample [m/s]
    thrust: NDArray[np.float64]    # Thrust at the lower sample [N]
    index: int                     # Lower bracketing sample


class Telemetry(NamedTuple):
    """Readouts for a telemetry panel."""
    altitude: float        # [m]
    speed: float           # [m/s]
    thrust: float          # Thrust magnitude [N]
    thrust_percent: float  # Percent of maximum thrust


class PlaybackVerdict(Enum):
    """Landing outcome as seen during playback."""
    IN_PROGRESS = "in_progress"
    CRASHED = "crashed"
    LANDED = "landed"


@beartype(conf=NUMERIC_TOWER)
def bracket(trajectory: Trajectory, t: float) -> tuple[int, int, float]:
    """Find the bracketing sample indices and blend fraction for time t.

    Returns:
        Tuple of (lower index, upper index, fraction in [0, 1])
    """
    t = float(t)
    last = trajectory.n_steps
    if math.isnan(t) or t <= 0.0:
        return 0, min(1, last), 0.0
    if t >= last:
        return last, last, 0.0
    i = int(math.floor(t))
    return i, i + 1, t - i


@beartype(conf=NUMERIC_TOWER)
def interpolate(trajectory: Trajectory, t: float) -> PlaybackSample:
    """Sample a trajectory at continuous playback time t (in samples).

    At integer t = k the position is exactly P[k].
    """
    i, j, frac = bracket(trajectory, t)
    p1 = np.asarray(trajectory.positions[i])
    if frac == 0.0:
        position = p1.copy()
    else:
        p2 = np.asarray(trajectory.positions[j])
        position = p1 + frac * (p2 - p1)

    return PlaybackSample(
        position=position,
        velocity=np.array(trajectory.velocities[i]),
        thrust=np.array(trajectory.thrust_at(i)),
        index=i,
    )


@beartype(conf=NUMERIC_TOWER)
def telemetry(sample: PlaybackSample, max_thrust: float) -> Telemetry:
    """Derive panel readouts from a playback sample."""
    thrust = float(np.linalg.norm(sample.thrust))
    return Telemetry(
        altitude=float(sample.position[2]),
        speed=float(np.linalg.norm(sample.velocity)),
        thrust=thrust,
        thrust_percent=100.0 * thrust / max_thrust if max_thrust > 0 else 0.0,
    )


@beartype(conf=NUMERIC_TOWER)
def playback_verdict(trajectory: Trajectory, t: float) -> PlaybackVerdict:
    """Classify the landing at playback time t.

    A sample below CRASH_CHECK_ALTITUDE moving faster than CRASH_SPEED is a
    crash. Reaching the final sample is a landing if the final speed is at
    most CRASH_SPEED and a crash otherwise.
    """
    last = trajectory.n_steps
    i, _, _ = bracket(trajectory, t)
    altitude = float(trajectory.positions[i, 2])
    speed = float(np.linalg.norm(trajectory.velocities[i]))
    if altitude < CRASH_CHECK_ALTITUDE and speed > CRASH_SPEED:
        return PlaybackVerdict.CRASHED

    if t >= last:
        final_speed = float(np.linalg.norm(trajectory.velocities[last]))
        return PlaybackVerdict.LANDED if final_speed <= CRASH_SPEED else PlaybackVerdict.CRASHED

    return PlaybackVerdict.IN_PROGRESS
