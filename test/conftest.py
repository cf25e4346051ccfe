"""
conftest.py — pytest fixtures shared across the test suite.

Provides a small planar-base world (with and without obstacles), a default
planning problem and a scripted backend double, so that individual test
modules stay short and focused.
"""

import math
import os
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

os.environ.setdefault("MPLBACKEND", "Agg")

from baselines.base import (DetailedResult, MotionPlanRequest,
                            PlannerCapability, RobotTrajectory,
                            TrajectorySegment)
from world import PlanningWorld, RobotModel, RobotState, Scene


# =========================================================================
# World fixtures
# =========================================================================

def _planar_robot() -> RobotModel:
    return RobotModel(
        name="planar",
        joint_names=["x", "y", "theta"],
        joint_limits=[(-5.0, 5.0), (-5.0, 5.0), (-math.pi, math.pi)],
        planar_joints=("x", "y", "theta"),
        default_positions=[0.0, 0.0, 0.0],
        groups={"base": ["x", "y", "theta"], "xy": ["x", "y"]},
    )


@pytest.fixture()
def planar_world() -> PlanningWorld:
    """3-DOF planar base; one box at x, y in [2, 3]; frames odom / rotated."""
    scene = Scene(name="box_room")
    scene.add_obstacle([2.0, 2.0, -4.0], [3.0, 3.0, 4.0], name="box")
    scene.set_transform("odom", 1.0, 0.0, 0.0)
    scene.set_transform("rotated", 0.0, 0.0, math.pi / 2)
    return PlanningWorld(_planar_robot(), scene)


@pytest.fixture()
def empty_world() -> PlanningWorld:
    return PlanningWorld(_planar_robot(), Scene(name="empty"))


@pytest.fixture()
def problem() -> MotionPlanRequest:
    return MotionPlanRequest(
        group_name="xy",
        start_state=RobotState(["x", "y"], [0.0, 0.0]),
        goal=[1.0, 1.0],
        allowed_planning_time=1.0,
    )


# =========================================================================
# Backend doubles
# =========================================================================

class ScriptedBackend:
    """Deterministic backend double.

    Every solve() returns the same ``points`` trajectory in the ``xy``
    group (or an unsolved result when ``solved=False``). ``fail_at`` makes
    the n-th call (0-based, counted over all calls) raise.
    """

    def __init__(self, name, algorithms=("alg1", "alg2", "alg3"),
                 solved=True, refuse=False, fail_at=None, points=None,
                 processing_time=0.0):
        self.name = name
        self.algorithms = list(algorithms)
        self.solved = solved
        self.refuse = refuse
        self.fail_at = set([fail_at] if isinstance(fail_at, int)
                           else (fail_at or ()))
        self.points = np.array(points if points is not None
                               else [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])
        self.processing_time = processing_time
        self.calls = []

    def describe(self):
        return self.name

    def list_algorithms(self):
        return list(self.algorithms)

    def can_service(self, request):
        if self.refuse:
            return False, PlannerCapability(["refused by test"])
        return True, PlannerCapability()

    def solve(self, request, planner_id):
        n = len(self.calls)
        self.calls.append(planner_id)
        if n in self.fail_at:
            raise RuntimeError("boom")
        start = RobotState(["x", "y"], [0.0, 0.0])
        if not self.solved:
            return False, DetailedResult.failure(start)
        traj = RobotTrajectory(joint_names=["x", "y"], points=self.points)
        return True, DetailedResult(
            trajectory_start=start,
            segments=[TrajectorySegment("plan", traj, self.processing_time)],
            metadata={"planner_id": planner_id, "call": n},
        )


@pytest.fixture()
def scripted_backend():
    """The ScriptedBackend class; tests construct their own instances."""
    return ScriptedBackend


@pytest.fixture()
def fixed_clock():
    """Clock factory: ``fixed_clock(step)`` advances by ``step`` per call."""
    def _make(step=0.25):
        state = {"t": 0.0}

        def clock():
            t = state["t"]
            state["t"] += step
            return t
        return clock
    return _make
