"""File-based persistence for scenarios and trajectories.

Scenarios are stored as JSON with a little metadata. Trajectories are stored
as Parquet (one row per sample, see ``Trajectory.to_dataframe``) next to a
JSON sidecar holding the step length and fuel use.

Example:
    >>> from cvxkerb.storage import LocalStorage
    >>>
    >>> storage = LocalStorage("./landings")
    >>> storage.save_scenario("mars_steep", config, description="60 deg cone")
    >>> storage.save_trajectory("mars_steep", trajectory)
    >>>
    >>> config = storage.load_scenario("mars_steep")
    >>> trajectory = storage.load_trajectory("mars_steep")
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import polars as pl
from beartype import beartype

from cvxkerb.scenario import ScenarioConfig
from cvxkerb.trajectory import Trajectory
from cvxkerb.typecheck import NUMERIC_TOWER

# =============================================================================
# Scenario File
# =============================================================================


@beartype(conf=NUMERIC_TOWER)
@dataclass
class ScenarioFile:
    """A serializable scenario.

    Attributes:
        name: Unique name (used as filename)
        parameters: ScenarioConfig fields as plain numbers
        description: Human-readable description
        created_at: When the scenario was first saved
        tags: Optional tags for organization
    """

    name: str
    parameters: dict[str, Any]
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_config(
        cls,
        config: ScenarioConfig,
        name: str,
        description: str = "",
        tags: list[str] | None = None,
    ) -> "ScenarioFile":
        return cls(
            name=name,
            parameters=config.to_dict(),
            description=description,
            tags=tags or [],
        )

    def to_config(self) -> ScenarioConfig:
        """Rebuild and validate the ScenarioConfig."""
        return ScenarioConfig.from_dict(self.parameters)

    def to_json(self) -> str:
        """Serialize to JSON string."""
        data = {
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "tags": self.tags,
            "parameters": self.parameters,
        }
        return json.dumps(data, indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "ScenarioFile":
        """Deserialize from JSON string."""
        data = json.loads(json_str)
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
            tags=data.get("tags", []),
            parameters=data["parameters"],
        )


# =============================================================================
# Local Storage
# =============================================================================


@beartype(conf=NUMERIC_TOWER)
class LocalStorage:
    """File-based storage backend.

    Organizes files under a root directory:

        root/
        ├── scenarios/
        │   └── mars_steep.json
        └── trajectories/
            ├── mars_steep.json       # dt, fuel_used
            └── mars_steep.parquet    # samples
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._scenarios_dir = self.root / "scenarios"
        self._trajectories_dir = self.root / "trajectories"

        self._scenarios_dir.mkdir(parents=True, exist_ok=True)
        self._trajectories_dir.mkdir(parents=True, exist_ok=True)

    def save_scenario(
        self,
        name: str,
        config: ScenarioConfig,
        description: str = "",
        tags: list[str] | None = None,
    ) -> Path:
        """Save a scenario as JSON."""
        path = self._scenarios_dir / f"{name}.json"
        scenario = ScenarioFile.from_config(config, name, description, tags)
        with open(path, "w") as f:
            f.write(scenario.to_json())
        return path

    def load_scenario_file(self, name: str) -> ScenarioFile:
        path = self._scenarios_dir / f"{name}.json"
        if not path.exists():
            raise FileNotFoundError(f"Scenario '{name}' not found at {path}")
        with open(path) as f:
            return ScenarioFile.from_json(f.read())

    def load_scenario(self, name: str) -> ScenarioConfig:
        """Load a scenario by name."""
        return self.load_scenario_file(name).to_config()

    def list_scenarios(self) -> list[str]:
        """List all saved scenarios."""
        return sorted(p.stem for p in self._scenarios_dir.glob("*.json"))

    def save_trajectory(self, name: str, trajectory: Trajectory) -> Path:
        """Save a trajectory as Parquet plus a JSON sidecar.

        Returns:
            Path to the Parquet file
        """
        parquet_path = self._trajectories_dir / f"{name}.parquet"
        trajectory.to_dataframe().write_parquet(parquet_path)

        meta = {
            "dt": trajectory.dt,
            "fuel_used": trajectory.fuel_used,
            "n_steps": trajectory.n_steps,
            "saved_at": datetime.now().isoformat(),
        }
        with open(self._trajectories_dir / f"{name}.json", "w") as f:
            f.write(json.dumps(meta, indent=2))

        return parquet_path

    def load_trajectory(self, name: str) -> Trajectory:
        """Load a trajectory by name."""
        parquet_path = self._trajectories_dir / f"{name}.parquet"
        meta_path = self._trajectories_dir / f"{name}.json"
        if not parquet_path.exists() or not meta_path.exists():
            raise FileNotFoundError(f"Trajectory '{name}' not found in {self._trajectories_dir}")

        with open(meta_path) as f:
            meta = json.load(f)
        return Trajectory.from_dataframe(
            pl.read_parquet(parquet_path),
            dt=float(meta["dt"]),
            fuel_used=float(meta["fuel_used"]),
        )

    def list_trajectories(self) -> list[str]:
        """List all saved trajectories."""
        return sorted(p.stem for p in self._trajectories_dir.glob("*.parquet"))
