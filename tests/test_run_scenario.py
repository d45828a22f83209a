from __future__ import annotations

import importlib.util
import json
import sys
from pathlib import Path

import pytest

from dispatch import ServiceStatus

ROOT = Path(__file__).resolve().parents[1]
SCENARIO = ROOT / "scenarios" / "morning_rush.json"


@pytest.fixture(scope="module")
def run_scenario_module():
    spec = importlib.util.spec_from_file_location("run_scenario", ROOT / "scripts" / "run_scenario.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestRunScenario:

    def test_replays_events(self, run_scenario_module):
        config = json.loads(SCENARIO.read_text())
        controller = run_scenario_module.build_controller(config)
        trajectory = run_scenario_module.run_scenario(controller, config)

        assert len(trajectory) == config["duration"]
        assert trajectory[-1]["time"] == config["duration"]
        assert controller.pending_requests() == ()
        assert controller.service_status() is ServiceStatus.DEGRADED
        assert controller.car_status(2).mode.value != "out_of_service"

    def test_rejected_events_are_skipped(self, run_scenario_module):
        config = {
            "duration": 3,
            "building": {"num_floors": 5, "car_count": 1},
            "events": [
                {"time": 0, "type": "hall_call", "floor": 40, "direction": "up"},
                {"time": 0, "type": "car_call", "car_id": 3, "floor": 2},
                {"time": 1, "type": "teleport"},
                {"time": 1, "type": "hall_call", "floor": 2, "direction": "up"},
            ],
        }
        controller = run_scenario_module.build_controller(config)
        trajectory = run_scenario_module.run_scenario(controller, config)
        assert [step["cars"][0]["floor"] for step in trajectory] == [0, 1, 2]

    def test_main_writes_results(self, run_scenario_module, tmp_path, monkeypatch, capsys):
        output = tmp_path / "results.json"
        monkeypatch.setattr(sys, "argv", ["run_scenario.py", str(SCENARIO), "--output", str(output)])
        run_scenario_module.main()

        results = json.loads(output.read_text())
        assert results["scenario"] == "morning_rush"
        assert results["scoring"] == "look"
        assert results["final_metrics"]["served"] > 0
        assert "Scenario: morning_rush" in capsys.readouterr().out
