"""
Tests for bench/cli.py and bench/config.py — end to end through JSON files.
"""

import json

import pytest

from bench.cli import main
from bench.config import BenchmarkConfig, build_service
from bench.errors import ConfigError
from bench.request import PlanningRequest

WORLD = {
    "robot": {
        "name": "planar",
        "joint_names": ["x", "y", "theta"],
        "joint_limits": [[-5, 5], [-5, 5], [-3.14159, 3.14159]],
        "planar_joints": ["x", "y", "theta"],
        "groups": {"xy": ["x", "y"]},
    },
    "scene": {
        "name": "cli_room",
        "obstacles": [{"min": [2, 2, -4], "max": [3, 3, 4], "name": "box"}],
    },
}

REQUEST = {
    "problem": {
        "group_name": "xy",
        "start_state": {"joint_names": ["x", "y"], "positions": [0.0, 0.0]},
        "goal": [1.0, 1.0],
        "allowed_planning_time": 0.5,
    },
    "planner_interfaces": [{"name": "linear", "average_count": 2}],
    "default_average_count": 1,
}


@pytest.fixture()
def files(tmp_path):
    cfg = BenchmarkConfig(output_dir=str(tmp_path / "results"),
                          log_level="WARNING", world=WORLD,
                          backends={"linear": {"type": "Linear"}})
    cfg_path = cfg.to_json(tmp_path / "config.json")
    req_path = tmp_path / "request.json"
    req_path.write_text(json.dumps(REQUEST), encoding="utf-8")
    return {"config": cfg_path, "request": str(req_path), "dir": tmp_path}


class TestConfig:
    def test_json_round_trip_ignores_unknown_keys(self, tmp_path):
        cfg = BenchmarkConfig(output_dir="out", world=WORLD)
        path = cfg.to_json(tmp_path / "c.json")
        data = json.loads(open(path, encoding="utf-8").read())
        data["unused"] = 1
        assert BenchmarkConfig.from_dict(data) == cfg

    def test_missing_world(self):
        with pytest.raises(ConfigError):
            build_service(BenchmarkConfig())

    def test_bad_world(self):
        with pytest.raises(ConfigError):
            build_service(BenchmarkConfig(world={"scene": {}}))

    def test_default_backends(self):
        service = build_service(BenchmarkConfig(world=WORLD))
        assert list(service.registry) == ["linear", "rrt_family"]

    def test_bad_request(self):
        with pytest.raises(ConfigError):
            PlanningRequest.from_dict({"planner_interfaces": []})


class TestCli:
    def test_query(self, files, capsys):
        assert main(["query", "--config", files["config"]]) == 0
        assert capsys.readouterr().out.strip() == "linear: Straight"

    def test_run_and_stats(self, files, capsys):
        code = main(["run", "--config", files["config"],
                     "--request", files["request"],
                     "--filename", "bench.log"])
        assert code == 0
        path = capsys.readouterr().out.strip()
        assert path.endswith("bench.log")

        plot = files["dir"] / "time.png"
        assert main(["stats", path, "--plot", "total_time REAL",
                     "--out", str(plot)]) == 0
        out = capsys.readouterr().out
        assert "Experiment cli_room" in out
        assert "linear_Straight" in out
        assert plot.exists()

    def test_run_output_dir_override(self, files, capsys):
        out_dir = files["dir"] / "elsewhere"
        assert main(["run", "--config", files["config"],
                     "--request", files["request"],
                     "--output-dir", str(out_dir)]) == 0
        path = capsys.readouterr().out.strip()
        assert path.startswith(str(out_dir))

    def test_run_unknown_backend_exits_1(self, files, capsys):
        req = dict(REQUEST, planner_interfaces=[{"name": "B"}])
        req_path = files["dir"] / "bad.json"
        req_path.write_text(json.dumps(req), encoding="utf-8")
        assert main(["run", "--config", files["config"],
                     "--request", str(req_path)]) == 1
        assert "ERROR" in capsys.readouterr().err
        assert not (files["dir"] / "results").exists()

    def test_stats_on_garbage(self, tmp_path, capsys):
        bad = tmp_path / "bad.log"
        bad.write_text("nothing here\n", encoding="utf-8")
        assert main(["stats", str(bad)]) == 1
        assert "line 1" in capsys.readouterr().err
