"""Runtime type-checking configuration shared across the package.

Numeric hints follow the PEP 484 numeric tower: a plain ``int`` is accepted
wherever ``float`` is annotated, so ``interpolate(trajectory, 3)`` and
``ScenarioConfig(dt=1, ...)`` work as written.

Configuration dataclasses check their own field types with
``check_config_fields`` so that a malformed value surfaces as a
ConfigurationError rather than a beartype violation.
"""

from dataclasses import fields
from typing import Any

from beartype import BeartypeConf
from beartype.door import is_bearable

from cvxkerb.errors import ConfigurationError

NUMERIC_TOWER = BeartypeConf(is_pep484_tower=True)


def check_config_fields(config: Any) -> None:
    """Raise ConfigurationError for the first dataclass field of the wrong type."""
    for f in fields(config):
        value = getattr(config, f.name)
        if not is_bearable(value, f.type, conf=NUMERIC_TOWER):
            hint = getattr(f.type, "__name__", str(f.type))
            raise ConfigurationError(f"{f.name} must be {hint}, got {value!r}")
