"""Tests for the scenario controller status machine.

Most tests drive the controller with a gated fake planner so the order in
which solves start and finish is under test control.
"""

import asyncio

import numpy as np
import pytest
from numpy.testing import assert_allclose

from cvxkerb.errors import InfeasibilityError, SolveInProgressError
from cvxkerb.gnc.guidance import GFoldGuidance, SolverHandle
from cvxkerb.scenario import ScenarioConfig, get_scenario
from cvxkerb.simulation import (
    MAX_TICK,
    FreeflightConfig,
    ScenarioController,
    SimulationMode,
    SimulationStatus,
)
from cvxkerb.trajectory import Trajectory


def two_step_config() -> ScenarioConfig:
    return ScenarioConfig(
        n_steps=2,
        dt=1.0,
        gravity=0.0,
        mass=1.0,
        max_thrust=10.0,
        min_altitude=0.0,
        initial_position=(0.0, 0.0, 10.0),
        initial_velocity=(0.0, 0.0, -10.0),
    )


def make_trajectory(altitude: float = 10.0) -> Trajectory:
    return Trajectory(
        positions=np.array([[0.0, 0.0, altitude], [0.0, 0.0, altitude / 4], [0.0, 0.0, 0.0]]),
        velocities=np.array([[0.0, 0.0, -10.0], [0.0, 0.0, -5.0], [0.0, 0.0, 0.0]]),
        thrusts=np.array([[0.0, 0.0, 5.0], [0.0, 0.0, 5.0]]),
        fuel_used=10.0,
    )


class GatedPlanner:
    """Fake planner whose solves finish only when released."""

    def __init__(self) -> None:
        self.calls: list[ScenarioConfig] = []
        self._gates: list[asyncio.Event] = []
        self._outcomes: dict[int, Trajectory | Exception] = {}

    async def plan_async(self, config: ScenarioConfig) -> Trajectory:
        index = len(self.calls)
        self.calls.append(config)
        gate = asyncio.Event()
        self._gates.append(gate)
        await gate.wait()
        outcome = self._outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def release(self, index: int, outcome: Trajectory | Exception) -> None:
        self._outcomes[index] = outcome
        self._gates[index].set()


class ImmediatePlanner:
    """Fake planner that returns at once."""

    def __init__(self, outcome: Trajectory | Exception) -> None:
        self.outcome = outcome

    async def plan_async(self, config: ScenarioConfig) -> Trajectory:
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


# =============================================================================
# Solve Lifecycle Tests
# =============================================================================


class TestSolve:
    """Test solving and status transitions."""

    def test_initial_state(self):
        controller = ScenarioController(ImmediatePlanner(make_trajectory()))

        assert controller.status is SimulationStatus.IDLE
        assert controller.mode is SimulationMode.GFOLD
        assert controller.params == get_scenario("Falcon 9 RTLS")
        assert controller.trajectory is None

    def test_success_goes_ready(self):
        traj = make_trajectory()
        controller = ScenarioController(ImmediatePlanner(traj), two_step_config())

        result = asyncio.run(controller.solve())

        assert result is traj
        assert controller.trajectory is traj
        assert controller.status is SimulationStatus.READY
        assert controller.error_message is None

    def test_failure_goes_error(self):
        planner = ImmediatePlanner(InfeasibilityError("infeasible"))
        controller = ScenarioController(planner, two_step_config())

        result = asyncio.run(controller.solve())

        assert result is None
        assert controller.status is SimulationStatus.ERROR
        assert "infeasible" in controller.error_message
        assert controller.trajectory is None
        assert not controller.is_solving

    def test_unexpected_exception_goes_error(self):
        """Test that a planner bug still leaves an explicit error status."""
        controller = ScenarioController(ImmediatePlanner(ValueError("boom")), two_step_config())

        result = asyncio.run(controller.solve())

        assert result is None
        assert controller.status is SimulationStatus.ERROR
        assert controller.error_message == "boom"
        assert not controller.is_solving

    def test_cancelled_solve_returns_to_idle(self):
        async def scenario():
            planner = GatedPlanner()
            controller = ScenarioController(planner, two_step_config())
            task = asyncio.create_task(controller.solve())
            await asyncio.sleep(0)
            assert controller.status is SimulationStatus.SOLVING

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

            assert controller.status is SimulationStatus.IDLE
            assert controller.error_message is None
            assert not controller.is_solving

            # a new solve can start afterwards
            retry = asyncio.create_task(controller.solve())
            await asyncio.sleep(0)
            planner.release(1, make_trajectory())
            assert await retry is not None
            assert controller.status is SimulationStatus.READY

        asyncio.run(scenario())

    def test_status_solving_while_in_flight(self):
        async def scenario():
            planner = GatedPlanner()
            controller = ScenarioController(planner, two_step_config())
            task = asyncio.create_task(controller.solve())
            await asyncio.sleep(0)

            assert controller.status is SimulationStatus.SOLVING
            assert controller.is_solving

            planner.release(0, make_trajectory())
            await task
            assert controller.status is SimulationStatus.READY

        asyncio.run(scenario())

    def test_second_solve_rejected(self):
        """Test that only one solve may be in flight."""

        async def scenario():
            planner = GatedPlanner()
            controller = ScenarioController(planner, two_step_config())
            task = asyncio.create_task(controller.solve())
            await asyncio.sleep(0)

            with pytest.raises(SolveInProgressError):
                await controller.solve()

            planner.release(0, make_trajectory())
            await task
            assert len(planner.calls) == 1

        asyncio.run(scenario())

    def test_superseded_result_dropped(self):
        """Test that a result arriving after reset never replaces newer state."""

        async def scenario():
            planner = GatedPlanner()
            controller = ScenarioController(planner, two_step_config())
            stale, fresh = make_trajectory(10.0), make_trajectory(40.0)

            first = asyncio.create_task(controller.solve())
            await asyncio.sleep(0)
            controller.reset()
            second = asyncio.create_task(controller.solve())
            await asyncio.sleep(0)

            planner.release(1, fresh)
            assert await second is fresh
            planner.release(0, stale)
            assert await first is None

            assert controller.trajectory is fresh
            assert controller.status is SimulationStatus.READY

        asyncio.run(scenario())

    def test_superseded_failure_ignored(self):
        async def scenario():
            planner = GatedPlanner()
            controller = ScenarioController(planner, two_step_config())

            first = asyncio.create_task(controller.solve())
            await asyncio.sleep(0)
            controller.load_scenario(get_scenario("Mars Lander"))
            planner.release(0, InfeasibilityError("infeasible"))
            await first

            assert controller.status is SimulationStatus.IDLE
            assert controller.error_message is None

        asyncio.run(scenario())

    def test_solves_with_real_guidance(self):
        guidance = GFoldGuidance(SolverHandle.acquire("CLARABEL"))
        controller = ScenarioController(guidance, two_step_config())

        traj = asyncio.run(controller.solve())

        assert controller.status is SimulationStatus.READY
        assert_allclose(traj.fuel_used, 10.0, rtol=1e-5)


class TestParameters:
    """Test scenario loading and parameter updates."""

    def test_load_scenario_clears_trajectory(self):
        controller = ScenarioController(ImmediatePlanner(make_trajectory()), two_step_config())
        asyncio.run(controller.solve())

        controller.load_scenario(get_scenario("Lunar Lander"))

        assert controller.trajectory is None
        assert controller.status is SimulationStatus.IDLE
        assert controller.params.gravity == 1.62

    def test_update_params(self):
        controller = ScenarioController(ImmediatePlanner(make_trajectory()), two_step_config())

        assert controller.update_params(mass=3.0)
        assert controller.params.mass == 3.0
        assert controller.status is SimulationStatus.IDLE

    def test_invalid_update_keeps_params(self):
        config = two_step_config()
        controller = ScenarioController(ImmediatePlanner(make_trajectory()), config)

        assert not controller.update_params(dt=-1.0)
        assert controller.params is config
        assert controller.status is SimulationStatus.ERROR
        assert "dt" in controller.error_message


# =============================================================================
# Playback Tests
# =============================================================================


class TestPlayback:
    """Test playback controls and landing detection."""

    def ready_controller(self) -> ScenarioController:
        controller = ScenarioController(ImmediatePlanner(make_trajectory()), two_step_config())
        asyncio.run(controller.solve())
        return controller

    def test_play_requires_trajectory(self):
        controller = ScenarioController(ImmediatePlanner(make_trajectory()))
        with pytest.raises(RuntimeError):
            controller.play()

    def test_play_pause(self):
        controller = self.ready_controller()

        controller.play()
        assert controller.status is SimulationStatus.PLAYING
        controller.pause()
        assert controller.status is SimulationStatus.PAUSED

        sample = controller.advance(1.0)
        assert controller.playback_time == 0.0
        assert_allclose(sample.position, [0.0, 0.0, 10.0])

    def test_advance_interpolates(self):
        controller = self.ready_controller()
        controller.play()

        sample = controller.advance(0.5)

        assert_allclose(sample.position, [0.0, 0.0, 6.25])
        assert controller.status is SimulationStatus.PLAYING

    def test_playback_speed(self):
        controller = self.ready_controller()
        controller.set_playback_speed(2.0)
        controller.play()

        controller.advance(0.5)

        assert controller.playback_time == 1.0
        with pytest.raises(ValueError):
            controller.set_playback_speed(0.0)

    def test_plays_to_landing(self):
        controller = self.ready_controller()
        controller.play()

        for _ in range(10):
            controller.advance(0.5)

        assert controller.status is SimulationStatus.LANDED
        assert controller.playback_time == 2.0

    def test_replay_rewinds(self):
        controller = self.ready_controller()
        controller.play()
        controller.advance(5.0)

        controller.play()

        assert controller.playback_time == 0.0
        assert controller.status is SimulationStatus.PLAYING

    def test_seek_clamped(self):
        controller = self.ready_controller()

        controller.seek(10.0)
        assert controller.playback_time == 2.0
        controller.seek(-1.0)
        assert controller.playback_time == 0.0

    def test_telemetry(self):
        controller = self.ready_controller()

        info = controller.telemetry()

        assert info.altitude == 10.0
        assert info.thrust_percent == 50.0


# =============================================================================
# Freeflight Tests
# =============================================================================


class TestFreeflightMode:
    """Test simple mode through the controller."""

    def test_launch(self):
        controller = ScenarioController(ImmediatePlanner(make_trajectory()))

        controller.launch_freeflight()

        assert controller.mode is SimulationMode.SIMPLE
        assert controller.status is SimulationStatus.SIMPLE_RUNNING
        assert controller.physics.altitude == 25.0

    def test_tick_clamped(self):
        """Test that a long wall-clock gap advances at most MAX_TICK."""
        controller = ScenarioController(ImmediatePlanner(make_trajectory()))
        controller.launch_freeflight()

        state = controller.tick_freeflight(2.0)

        assert_allclose(state.elapsed_time, MAX_TICK)

    def test_runs_to_crash(self):
        controller = ScenarioController(
            ImmediatePlanner(make_trajectory()),
            freeflight=FreeflightConfig(burn_duration=1.0),
        )
        controller.launch_freeflight()

        for _ in range(10000):
            if controller.status is not SimulationStatus.SIMPLE_RUNNING:
                break
            controller.tick_freeflight(0.1)

        assert controller.status is SimulationStatus.CRASHED
        assert controller.physics.has_crashed

    def test_tick_ignored_when_not_running(self):
        controller = ScenarioController(ImmediatePlanner(make_trajectory()))
        before = controller.physics

        assert controller.tick_freeflight(0.1) is before
