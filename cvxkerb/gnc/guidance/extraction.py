"""Recover a trajectory from solver output.

A non-optimal solve becomes an InfeasibilityError carrying the solver's
status. An optimal solve whose primal values do not match the decision
variables is an internal fault and becomes an ExtractionError; it is never
papered over with default values unless the caller explicitly asks for
zero-filling, and even then every filled gap is logged.
"""

import logging
import math

import numpy as np
from numpy.typing import NDArray

from cvxkerb.errors import ExtractionError, InfeasibilityError
from cvxkerb.gnc.guidance.problem import POSITIONS, THRUSTS, VELOCITIES
from cvxkerb.gnc.guidance.solver import SolveResult
from cvxkerb.scenario import ScenarioConfig
from cvxkerb.trajectory import Trajectory

logger = logging.getLogger(__name__)


class TrajectoryExtractor:
    """Maps primal values back onto positions, velocities and thrusts.

    Attributes:
        config: Scenario the solved program was built from
        zero_fill: Fill missing or short primal entries with zeros instead of
            failing. Each gap is logged as a warning.
    """

    def __init__(self, config: ScenarioConfig, zero_fill: bool = False) -> None:
        self.config = config
        self.zero_fill = zero_fill

    def extract(self, result: SolveResult) -> Trajectory:
        """Convert a SolveResult into a Trajectory.

        Raises:
            InfeasibilityError: If the solve was not optimal
            ExtractionError: If the primal values are missing or malformed
        """
        if not result.is_optimal:
            raise InfeasibilityError(result.status.value, result.raw_status)

        K = self.config.n_steps
        positions = self._read(result, POSITIONS, (K + 1, 3))
        velocities = self._read(result, VELOCITIES, (K + 1, 3))
        thrusts = self._read(result, THRUSTS, (K, 3))

        objective = result.objective
        if objective is None or not math.isfinite(objective):
            self._fail(f"optimal result has no finite objective value (got {objective})")
        # Interior-point solvers can land a hair below zero on a zero-thrust optimum
        fuel_used = max(float(objective), 0.0)

        return Trajectory(
            positions=positions,
            velocities=velocities,
            thrusts=thrusts,
            dt=self.config.dt,
            fuel_used=fuel_used,
        )

    def _read(
        self,
        result: SolveResult,
        name: str,
        shape: tuple[int, int],
    ) -> NDArray[np.float64]:
        value = result.primal.get(name)
        if value is None:
            if not self.zero_fill:
                self._fail(f"primal values for '{name}' are missing")
            logger.warning("Zero-filling missing primal values for '%s' %s", name, shape)
            return np.zeros(shape)

        arr = np.asarray(value, dtype=np.float64)
        if arr.shape != shape:
            # only short entries are padded; a full-size entry in the wrong layout is corrupt
            if not self.zero_fill or arr.size >= shape[0] * shape[1]:
                self._fail(f"primal values for '{name}' have shape {arr.shape}, expected {shape}")
            logger.warning(
                "Zero-filling %d missing components of '%s' (got %d, expected %d)",
                shape[0] * shape[1] - arr.size, name, arr.size, shape[0] * shape[1],
            )
            filled = np.zeros(shape[0] * shape[1])
            filled[:arr.size] = arr.ravel()
            arr = filled.reshape(shape)

        if not np.all(np.isfinite(arr)):
            self._fail(f"primal values for '{name}' contain non-finite entries")
        return arr

    def _fail(self, message: str) -> None:
        logger.error("Trajectory extraction failed: %s", message)
        raise ExtractionError(message)
