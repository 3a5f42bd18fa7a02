"""Scenario controller: the status machine between the UI and the core.

The controller owns one scenario at a time: its parameters, the trajectory
solved for it, playback position, and the freeflight state. Every failure
ends in an explicit status with the underlying reason kept in
``error_message``; nothing is retried.

Only one solve may be in flight. Loading a scenario, changing parameters or
resetting invalidates the in-flight solve, and its result is dropped when it
arrives so a stale trajectory can never replace a newer request's state.

Status transitions:

    IDLE -> SOLVING -> READY | ERROR
    SOLVING -> IDLE (solve task cancelled)
    READY -> PLAYING <-> PAUSED
    PLAYING -> CRASHED | LANDED
    IDLE -> SIMPLE_RUNNING -> CRASHED | LANDED

Example:
    >>> controller = ScenarioController(GFoldGuidance(SolverHandle.acquire()))
    >>> controller.load_scenario(get_scenario("Lunar Lander"))
    >>> asyncio.run(controller.solve())
    >>> controller.play()
    >>> while controller.status is SimulationStatus.PLAYING:
    ...     sample = controller.advance(1 / 60)
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Protocol

from cvxkerb.dynamics.state import PhysicsState
from cvxkerb.errors import ConfigurationError, CvxkerbError, SolveInProgressError
from cvxkerb.playback import (
    PlaybackSample,
    PlaybackVerdict,
    Telemetry,
    interpolate,
    playback_verdict,
    telemetry,
)
from cvxkerb.scenario import DEFAULT_SCENARIO, ScenarioConfig, get_scenario
from cvxkerb.simulation.freeflight import FreeflightConfig, FreeflightIntegrator
from cvxkerb.trajectory import Trajectory

logger = logging.getLogger(__name__)

# Longest freeflight tick accepted from the wall clock [s]
MAX_TICK = 0.1


class SimulationStatus(Enum):
    """Controller status shown to the user."""
    IDLE = "idle"
    SOLVING = "solving"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ERROR = "error"
    SIMPLE_RUNNING = "simple_running"
    CRASHED = "crashed"
    LANDED = "landed"


class SimulationMode(Enum):
    """Which trajectory source drives the vehicle."""
    GFOLD = "gfold"
    SIMPLE = "simple"


class Planner(Protocol):
    """What the controller needs from guidance."""

    async def plan_async(self, config: ScenarioConfig) -> Trajectory:
        ...


class ScenarioController:
    """Owns one scenario's parameters, trajectory and playback.

    Args:
        guidance: Planner used for solves (normally GFoldGuidance)
        params: Initial scenario, defaults to the Falcon 9 RTLS preset
        freeflight: Freeflight configuration for simple mode
        ground_height: Ground altitude for simple mode [m]
    """

    def __init__(
        self,
        guidance: Planner,
        params: ScenarioConfig | None = None,
        freeflight: FreeflightConfig | None = None,
        ground_height: float = 0.0,
    ) -> None:
        self.guidance = guidance
        self.params = params if params is not None else get_scenario(DEFAULT_SCENARIO)
        self.integrator = FreeflightIntegrator(freeflight or FreeflightConfig(), ground_height)

        self.mode = SimulationMode.GFOLD
        self.status = SimulationStatus.IDLE
        self.trajectory: Trajectory | None = None
        self.error_message: str | None = None
        self.playback_time = 0.0
        self.playback_speed = 1.0
        self.physics = PhysicsState.initial()

        self._request = 0
        self._in_flight: int | None = None

    # -------------------------------------------------------------------------
    # Scenario management
    # -------------------------------------------------------------------------

    def _invalidate(self) -> None:
        if self._in_flight is not None:
            logger.info("Discarding in-flight solve request %d", self._in_flight)
        self._request += 1
        self._in_flight = None

    def load_scenario(self, config: ScenarioConfig) -> None:
        """Switch to a new scenario and clear everything derived from the old one."""
        self._invalidate()
        self.params = config
        self.mode = SimulationMode.GFOLD
        self.trajectory = None
        self.error_message = None
        self.status = SimulationStatus.IDLE
        self.playback_time = 0.0

    def update_params(self, **changes: Any) -> bool:
        """Change some scenario parameters.

        Invalid values leave the old parameters in place and put the
        controller in ERROR with the validation message.

        Returns:
            True if the update was applied
        """
        try:
            updated = self.params.with_updates(**changes)
        except ConfigurationError as err:
            self._invalidate()
            self.status = SimulationStatus.ERROR
            self.error_message = str(err)
            return False
        self.load_scenario(updated)
        return True

    def reset(self) -> None:
        """Back to IDLE with no trajectory and the vehicle on the pad."""
        self._invalidate()
        self.trajectory = None
        self.error_message = None
        self.status = SimulationStatus.IDLE
        self.playback_time = 0.0
        self.physics = PhysicsState.initial()

    # -------------------------------------------------------------------------
    # Guidance
    # -------------------------------------------------------------------------

    @property
    def is_solving(self) -> bool:
        return self._in_flight is not None

    async def solve(self) -> Trajectory | None:
        """Solve the current scenario and commit the result.

        Returns:
            The trajectory if this request was still current and succeeded,
            otherwise None (see ``status`` and ``error_message``)

        Raises:
            SolveInProgressError: If a solve is already in flight
            asyncio.CancelledError: If the solve task is cancelled; the
                status returns to IDLE when the request is still current
        """
        if self._in_flight is not None:
            raise SolveInProgressError("A solve is already in progress")

        self._request += 1
        request = self._request
        self._in_flight = request
        config = self.params

        self.mode = SimulationMode.GFOLD
        self.status = SimulationStatus.SOLVING
        self.error_message = None
        self.trajectory = None

        try:
            trajectory = await self.guidance.plan_async(config)
        except CvxkerbError as err:
            if self._is_stale(request):
                return None
            self.status = SimulationStatus.ERROR
            self.error_message = str(err)
            logger.info("Solve request %d failed: %s", request, err)
            return None
        except asyncio.CancelledError:
            if request == self._request:
                self.status = SimulationStatus.IDLE
                logger.info("Solve request %d cancelled", request)
            raise
        except Exception as err:
            if self._is_stale(request):
                return None
            self.status = SimulationStatus.ERROR
            self.error_message = str(err)
            logger.exception("Solve request %d raised an unexpected error", request)
            return None
        finally:
            if self._in_flight == request:
                self._in_flight = None

        if self._is_stale(request):
            return None
        self.trajectory = trajectory
        self.playback_time = 0.0
        self.status = SimulationStatus.READY
        return trajectory

    def _is_stale(self, request: int) -> bool:
        if request != self._request:
            logger.info("Dropping result of superseded solve request %d", request)
            return True
        return False

    # -------------------------------------------------------------------------
    # Playback
    # -------------------------------------------------------------------------

    def play(self) -> None:
        """Start or resume playback, rewinding if playback already finished."""
        if self.trajectory is None:
            raise RuntimeError("No trajectory to play")
        if self.playback_time >= self.trajectory.n_steps or self.status in (
            SimulationStatus.CRASHED, SimulationStatus.LANDED,
        ):
            self.playback_time = 0.0
        self.status = SimulationStatus.PLAYING

    def pause(self) -> None:
        if self.status is SimulationStatus.PLAYING:
            self.status = SimulationStatus.PAUSED

    def seek(self, t: float) -> None:
        """Jump to playback time t, clamped to the trajectory."""
        if self.trajectory is None:
            raise RuntimeError("No trajectory to seek in")
        self.playback_time = min(max(t, 0.0), float(self.trajectory.n_steps))

    def set_playback_speed(self, speed: float) -> None:
        if speed <= 0:
            raise ValueError(f"Playback speed must be positive, got {speed}")
        self.playback_speed = speed

    def advance(self, wall_dt: float) -> PlaybackSample | None:
        """Move playback forward by wall-clock time and check for a verdict."""
        if self.status is SimulationStatus.PLAYING and self.trajectory is not None:
            last = float(self.trajectory.n_steps)
            new_time = self.playback_time + wall_dt * self.playback_speed
            verdict = playback_verdict(self.trajectory, new_time)
            self.playback_time = min(new_time, last)
            if verdict is PlaybackVerdict.CRASHED:
                self.status = SimulationStatus.CRASHED
            elif verdict is PlaybackVerdict.LANDED:
                self.status = SimulationStatus.LANDED
        return self.current_sample()

    def current_sample(self) -> PlaybackSample | None:
        """Interpolated vehicle state at the current playback time."""
        if self.trajectory is None:
            return None
        return interpolate(self.trajectory, self.playback_time)

    def telemetry(self) -> Telemetry | None:
        sample = self.current_sample()
        if sample is None:
            return None
        return telemetry(sample, self.params.max_thrust)

    # -------------------------------------------------------------------------
    # Freeflight
    # -------------------------------------------------------------------------

    def launch_freeflight(self) -> None:
        """Put the vehicle on the pad and start a freeflight run."""
        self._invalidate()
        self.mode = SimulationMode.SIMPLE
        self.error_message = None
        self.physics = PhysicsState.initial()
        self.status = SimulationStatus.SIMPLE_RUNNING

    def tick_freeflight(self, wall_dt: float) -> PhysicsState:
        """Advance freeflight by wall-clock time, at most MAX_TICK per call."""
        if self.status is not SimulationStatus.SIMPLE_RUNNING:
            return self.physics
        dt = min(float(wall_dt), MAX_TICK)
        if dt <= 0:
            return self.physics

        self.physics = self.integrator.tick(self.physics, dt)
        if self.physics.has_crashed:
            self.status = SimulationStatus.CRASHED
        elif self.physics.has_landed_safely:
            self.status = SimulationStatus.LANDED
        return self.physics
