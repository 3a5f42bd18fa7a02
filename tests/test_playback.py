"""Unit tests for trajectory playback and telemetry."""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from cvxkerb.playback import (
    CRASH_CHECK_ALTITUDE,
    PlaybackVerdict,
    bracket,
    interpolate,
    playback_verdict,
    telemetry,
)
from cvxkerb.trajectory import Trajectory


def make_trajectory(final_vz: float = 0.0) -> Trajectory:
    """Three-step descent from 100 m, ending at the given vertical speed."""
    return Trajectory(
        positions=np.array([
            [30.0, 0.0, 100.0],
            [20.0, 0.0, 60.0],
            [10.0, 0.0, 20.0],
            [0.0, 0.0, 0.0],
        ]),
        velocities=np.array([
            [-10.0, 0.0, -40.0],
            [-10.0, 0.0, -30.0],
            [-5.0, 0.0, -8.0],
            [0.0, 0.0, final_vz],
        ]),
        thrusts=np.array([
            [0.0, 0.0, 100.0],
            [100.0, 0.0, 400.0],
            [0.0, 0.0, 300.0],
        ]),
    )


class TestBracket:
    """Test bracketing index lookup."""

    def test_interior(self):
        i, j, frac = bracket(make_trajectory(), 1.25)
        assert (i, j) == (1, 2)
        assert_allclose(frac, 0.25)

    def test_integer_time(self):
        assert bracket(make_trajectory(), 2) == (2, 3, 0.0)

    @pytest.mark.parametrize("t", [-3.0, 0.0, math.nan])
    def test_clamped_low(self, t):
        assert bracket(make_trajectory(), t) == (0, 1, 0.0)

    @pytest.mark.parametrize("t", [3.0, 7.5, math.inf])
    def test_clamped_high(self, t):
        i, j, frac = bracket(make_trajectory(), t)
        assert (i, j, frac) == (3, 3, 0.0)


class TestInterpolate:
    """Test continuous-time sampling."""

    @pytest.mark.parametrize("k", [0, 1, 2, 3])
    def test_exact_at_samples(self, k):
        """Test that integer times return the stored position exactly."""
        traj = make_trajectory()
        sample = interpolate(traj, k)

        assert np.array_equal(sample.position, traj.positions[k])
        assert sample.index == k

    def test_restartable(self):
        """Test that revisiting a time gives the same sample regardless of history."""
        traj = make_trajectory()

        first = interpolate(traj, 1.7)
        interpolate(traj, 2.3)
        again = interpolate(traj, 1.7)

        assert np.array_equal(first.position, again.position)
        assert np.array_equal(first.velocity, again.velocity)
        assert np.array_equal(first.thrust, again.thrust)
        assert first.index == again.index

    def test_position_linear_between_samples(self):
        sample = interpolate(make_trajectory(), 0.5)
        assert_allclose(sample.position, [25.0, 0.0, 80.0])

    def test_velocity_and_thrust_held(self):
        """Test that velocity and thrust come from the lower sample."""
        traj = make_trajectory()
        sample = interpolate(traj, 1.9)

        assert_allclose(sample.velocity, traj.velocities[1])
        assert_allclose(sample.thrust, traj.thrusts[1])

    def test_no_thrust_at_end(self):
        sample = interpolate(make_trajectory(), 3.0)
        assert_allclose(sample.thrust, [0.0, 0.0, 0.0])

    def test_sample_is_writable_copy(self):
        traj = make_trajectory()
        sample = interpolate(traj, 1.0)
        sample.position[2] = -1.0
        assert traj.positions[1, 2] == 60.0


class TestTelemetry:
    """Test telemetry readouts."""

    def test_readouts(self):
        sample = interpolate(make_trajectory(), 1.0)

        info = telemetry(sample, 1000.0)

        assert_allclose(info.altitude, 60.0)
        assert_allclose(info.speed, math.hypot(10.0, 30.0))
        assert_allclose(info.thrust, math.hypot(100.0, 400.0))
        assert_allclose(info.thrust_percent, 100.0 * math.hypot(100.0, 400.0) / 1000.0)

    def test_integer_max_thrust(self):
        info = telemetry(interpolate(make_trajectory(), 0), 200)
        assert_allclose(info.thrust_percent, 50.0)


class TestPlaybackVerdict:
    """Test landing classification during playback."""

    def test_in_progress(self):
        assert playback_verdict(make_trajectory(), 0.5) is PlaybackVerdict.IN_PROGRESS

    def test_landed_at_end(self):
        assert playback_verdict(make_trajectory(), 3.0) is PlaybackVerdict.LANDED

    def test_integer_time(self):
        assert playback_verdict(make_trajectory(), 3) is PlaybackVerdict.LANDED
        assert playback_verdict(make_trajectory(), 1) is PlaybackVerdict.IN_PROGRESS

    def test_hard_final_contact_is_crash(self):
        assert playback_verdict(make_trajectory(final_vz=-15.0), 3.0) is PlaybackVerdict.CRASHED

    def test_fast_near_ground_is_crash(self):
        """Test the low-altitude speed check before the final sample."""
        traj = Trajectory(
            positions=np.array([[0.0, 0.0, 50.0], [0.0, 0.0, 25.0], [0.0, 0.0, 0.0]]),
            velocities=np.array([[0.0, 0.0, -25.0], [0.0, 0.0, -25.0], [0.0, 0.0, 0.0]]),
            thrusts=np.zeros((2, 3)),
        )
        assert traj.positions[1, 2] < CRASH_CHECK_ALTITUDE

        assert playback_verdict(traj, 0.5) is PlaybackVerdict.IN_PROGRESS
        assert playback_verdict(traj, 1.2) is PlaybackVerdict.CRASHED
