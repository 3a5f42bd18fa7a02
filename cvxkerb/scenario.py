"""Landing scenario description.

A ScenarioConfig fixes everything the guidance problem needs: the vehicle,
the environment, the time grid and the boundary conditions. All values are
SI (meters, seconds, kilograms, newtons, radians) and vectors use index 2 as
the altitude axis.

Example:
    >>> from cvxkerb.scenario import ScenarioConfig, get_scenario
    >>>
    >>> config = get_scenario("Mars Lander")
    >>> steeper = config.with_updates(glideslope_angle=np.radians(60.0))
    >>> print(f"Horizon: {steeper.horizon:.0f} s")
"""

import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from cvxkerb.errors import ConfigurationError
from cvxkerb.typecheck import check_config_fields

Vector3 = tuple[float, float, float]

FLOAT_FIELDS = ("dt", "gravity", "mass", "max_thrust", "min_altitude")
VECTOR_FIELDS = ("initial_position", "initial_velocity", "target_position")


def _check_vector(name: str, value: Vector3) -> None:
    if not all(math.isfinite(c) for c in value):
        raise ConfigurationError(f"{name} must be finite, got {value}")


@dataclass(frozen=True)
class ScenarioConfig:
    """Vehicle and boundary conditions for one powered descent.

    Attributes:
        n_steps: Number of discretization steps K (trajectory has K+1 samples)
        dt: Step duration h [s]
        gravity: Gravitational acceleration magnitude g [m/s^2]
        mass: Vehicle mass m [kg], constant over the burn
        max_thrust: Maximum thrust magnitude F_max [N]
        min_altitude: Altitude floor P_min [m]
        initial_position: Starting position p0 [m]
        initial_velocity: Starting velocity v0 [m/s]
        target_position: Landing site p_target [m]
        glideslope_angle: Optional glide-slope half-angle from vertical [rad]
    """
    n_steps: int
    dt: float
    gravity: float
    mass: float
    max_thrust: float
    min_altitude: float
    initial_position: Vector3
    initial_velocity: Vector3
    target_position: Vector3 = (0.0, 0.0, 0.0)
    glideslope_angle: float | None = None

    def __post_init__(self) -> None:
        """Validate scenario parameters and store numbers as floats."""
        check_config_fields(self)
        for name in FLOAT_FIELDS:
            object.__setattr__(self, name, float(getattr(self, name)))
        for name in VECTOR_FIELDS:
            object.__setattr__(self, name, tuple(float(c) for c in getattr(self, name)))
        if self.glideslope_angle is not None:
            object.__setattr__(self, "glideslope_angle", float(self.glideslope_angle))

        if self.n_steps < 1:
            raise ConfigurationError(f"n_steps must be >= 1, got {self.n_steps}")
        for name in ("dt", "mass", "max_thrust"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        for name in ("gravity", "min_altitude"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be finite, got {value}")
        _check_vector("initial_position", self.initial_position)
        _check_vector("initial_velocity", self.initial_velocity)
        _check_vector("target_position", self.target_position)
        if self.glideslope_angle is not None and not 0.0 < self.glideslope_angle < math.pi / 2:
            raise ConfigurationError(
                f"glideslope_angle must be in (0, pi/2) rad, got {self.glideslope_angle}"
            )

    @property
    def horizon(self) -> float:
        """Total time of flight K*h [s]."""
        return self.n_steps * self.dt

    @property
    def p0(self) -> NDArray[np.float64]:
        return np.array(self.initial_position, dtype=np.float64)

    @property
    def v0(self) -> NDArray[np.float64]:
        return np.array(self.initial_velocity, dtype=np.float64)

    @property
    def p_target(self) -> NDArray[np.float64]:
        return np.array(self.target_position, dtype=np.float64)

    def with_updates(self, **changes: Any) -> "ScenarioConfig":
        """Return a copy with some parameters replaced.

        Values are coerced the same way as ``from_dict`` and the result is
        validated again.
        """
        merged = self.to_dict()
        merged.update(changes)
        return ScenarioConfig.from_dict(merged)

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain Python numbers and lists."""
        data = asdict(self)
        for key in VECTOR_FIELDS:
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScenarioConfig":
        """Create a scenario from a mapping of plain numbers.

        Integers are accepted wherever floats are expected, and vectors may be
        any 3-element sequence.

        Raises:
            ConfigurationError: If a field is missing, unknown or malformed
        """
        known = {
            "n_steps", "dt", "gravity", "mass", "max_thrust", "min_altitude",
            "initial_position", "initial_velocity", "target_position",
            "glideslope_angle",
        }
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown scenario fields: {sorted(unknown)}")

        try:
            kwargs: dict[str, Any] = {
                "n_steps": int(data["n_steps"]),
                "dt": float(data["dt"]),
                "gravity": float(data["gravity"]),
                "mass": float(data["mass"]),
                "max_thrust": float(data["max_thrust"]),
                "min_altitude": float(data["min_altitude"]),
                "initial_position": _as_vector(data["initial_position"]),
                "initial_velocity": _as_vector(data["initial_velocity"]),
            }
            if "target_position" in data:
                kwargs["target_position"] = _as_vector(data["target_position"])
            angle = data.get("glideslope_angle")
            kwargs["glideslope_angle"] = None if angle is None else float(angle)
        except KeyError as err:
            raise ConfigurationError(f"Missing scenario field: {err.args[0]}") from err
        except (TypeError, ValueError) as err:
            raise ConfigurationError(f"Malformed scenario field: {err}") from err

        return cls(**kwargs)


def _as_vector(value: Any) -> Vector3:
    components = tuple(float(c) for c in value)
    if len(components) != 3:
        raise ConfigurationError(f"Expected a 3-vector, got {len(components)} components")
    return components  # type: ignore[return-value]


# =============================================================================
# Preset Scenarios
# =============================================================================


SCENARIOS: dict[str, ScenarioConfig] = {
    "Falcon 9 RTLS": ScenarioConfig(
        n_steps=50,
        dt=1.0,
        gravity=9.81,
        mass=25000.0,
        max_thrust=800000.0,
        min_altitude=0.0,
        initial_position=(500.0, 200.0, 1000.0),
        initial_velocity=(-50.0, -20.0, -80.0),
    ),
    "Mars Lander": ScenarioConfig(
        n_steps=60,
        dt=1.0,
        gravity=3.72,
        mass=2000.0,
        max_thrust=30000.0,
        min_altitude=0.0,
        initial_position=(300.0, 100.0, 800.0),
        initial_velocity=(-30.0, -10.0, -50.0),
    ),
    "Lunar Lander": ScenarioConfig(
        n_steps=80,
        dt=1.0,
        gravity=1.62,
        mass=5000.0,
        max_thrust=40000.0,
        min_altitude=0.0,
        initial_position=(200.0, 50.0, 500.0),
        initial_velocity=(-20.0, -5.0, -30.0),
    ),
}

DEFAULT_SCENARIO = "Falcon 9 RTLS"


def get_scenario(name: str) -> ScenarioConfig:
    """Look up a preset scenario by name."""
    try:
        return SCENARIOS[name]
    except KeyError:
        valid = ", ".join(SCENARIOS)
        raise ConfigurationError(f"Unknown scenario: {name}. Valid: {valid}") from None
