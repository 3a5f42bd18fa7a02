"""Tests for file-based scenario and trajectory storage."""

import json

import numpy as np
import pytest
from numpy.testing import assert_allclose

from cvxkerb.errors import ConfigurationError
from cvxkerb.scenario import get_scenario
from cvxkerb.storage import LocalStorage, ScenarioFile
from cvxkerb.trajectory import Trajectory


def make_trajectory() -> Trajectory:
    return Trajectory(
        positions=np.array([[1.0, 2.0, 10.0], [0.5, 1.0, 2.5], [0.0, 0.0, 0.0]]),
        velocities=np.array([[-1.0, -2.0, -10.0], [-0.5, -1.0, -5.0], [0.0, 0.0, 0.0]]),
        thrusts=np.array([[0.5, 1.0, 5.0], [0.5, 1.0, 5.0]]),
        dt=0.5,
        fuel_used=10.5,
    )


class TestScenarioFile:
    """Test scenario serialization."""

    def test_json_roundtrip(self):
        config = get_scenario("Mars Lander").with_updates(glideslope_angle=0.8)
        scenario = ScenarioFile.from_config(config, "steep", "80 deg", ["mars"])

        restored = ScenarioFile.from_json(scenario.to_json())

        assert restored.name == "steep"
        assert restored.tags == ["mars"]
        assert restored.to_config() == config

    def test_invalid_parameters_rejected_on_load(self):
        scenario = ScenarioFile(name="bad", parameters={"n_steps": 10})
        with pytest.raises(ConfigurationError):
            scenario.to_config()


class TestLocalStorage:
    """Test the directory-backed store."""

    def test_creates_directories(self, tmp_path):
        LocalStorage(tmp_path / "store")

        assert (tmp_path / "store" / "scenarios").is_dir()
        assert (tmp_path / "store" / "trajectories").is_dir()

    def test_scenario_roundtrip(self, tmp_path):
        storage = LocalStorage(tmp_path)
        config = get_scenario("Lunar Lander")

        path = storage.save_scenario("moon", config, description="preset")

        assert path.exists()
        assert json.loads(path.read_text())["description"] == "preset"
        assert storage.load_scenario("moon") == config
        assert storage.list_scenarios() == ["moon"]

    def test_trajectory_roundtrip(self, tmp_path):
        storage = LocalStorage(tmp_path)
        traj = make_trajectory()

        storage.save_trajectory("run", traj)
        restored = storage.load_trajectory("run")

        assert restored.dt == 0.5
        assert restored.fuel_used == 10.5
        assert_allclose(restored.positions, traj.positions)
        assert_allclose(restored.velocities, traj.velocities)
        assert_allclose(restored.thrusts, traj.thrusts)
        assert storage.list_trajectories() == ["run"]

    def test_missing_scenario(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="nowhere"):
            LocalStorage(tmp_path).load_scenario("nowhere")

    def test_missing_trajectory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LocalStorage(tmp_path).load_trajectory("nowhere")
