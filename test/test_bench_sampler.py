"""
Tests for bench/sampler.py — trajectory → full configuration waypoints.
"""

import math

import numpy as np
import pytest

from baselines.base import DetailedResult, RobotTrajectory, TrajectorySegment
from bench.sampler import TrajectorySampler
from world import RobotState


def _result(traj, start=None, description="plan"):
    return DetailedResult(
        trajectory_start=start or RobotState(["theta"], [0.5]),
        segments=[TrajectorySegment(description, traj, 0.0)])


class TestJointOverlay:
    def test_default_then_start_then_segment(self, planar_world):
        traj = RobotTrajectory(["x", "y"], points=[[0.0, 0.0], [1.0, 2.0]])
        wps = TrajectorySampler(planar_world).sample(_result(traj), 0)
        assert len(wps) == 2
        np.testing.assert_allclose(wps[0], [0.0, 0.0, 0.5])
        np.testing.assert_allclose(wps[1], [1.0, 2.0, 0.5])

    def test_waypoints_are_independent_copies(self, planar_world):
        traj = RobotTrajectory(["x"], points=[[0.0], [1.0]])
        wps = TrajectorySampler(planar_world).sample(_result(traj), 0)
        wps[0][0] = 99.0
        assert wps[1][0] == 1.0

    def test_segment_index_selects_segment(self, planar_world):
        first = TrajectorySegment("a", RobotTrajectory(["x"], [[1.0]]), 0.0)
        second = TrajectorySegment("b", RobotTrajectory(["y"], [[2.0]]), 0.0)
        result = DetailedResult(RobotState(), [first, second])
        wps = TrajectorySampler(planar_world).sample(result, 1)
        np.testing.assert_allclose(wps[0], [0.0, 2.0, 0.0])


class TestPlanarPoses:
    def test_model_frame(self, planar_world):
        traj = RobotTrajectory(planar_points=[[1.0, 2.0, 0.3]])
        wps = TrajectorySampler(planar_world).sample(_result(traj), 0)
        np.testing.assert_allclose(wps[0], [1.0, 2.0, 0.3])

    def test_translated_frame(self, planar_world):
        traj = RobotTrajectory(frame_id="odom",
                               planar_points=[[1.0, 2.0, 0.3]])
        wps = TrajectorySampler(planar_world).sample(_result(traj), 0)
        np.testing.assert_allclose(wps[0], [2.0, 2.0, 0.3])

    def test_rotated_frame(self, planar_world):
        traj = RobotTrajectory(frame_id="rotated",
                               planar_points=[[1.0, 0.0, 0.0]])
        wps = TrajectorySampler(planar_world).sample(_result(traj), 0)
        np.testing.assert_allclose(wps[0], [0.0, 1.0, math.pi / 2],
                                   atol=1e-12)


class TestDegenerate:
    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_index_out_of_range(self, planar_world, index):
        traj = RobotTrajectory(["x"], points=[[1.0]])
        assert TrajectorySampler(planar_world).sample(_result(traj), index) == []

    def test_no_segments(self, planar_world):
        assert TrajectorySampler(planar_world).sample(
            DetailedResult.failure(), 0) == []

    def test_empty_trajectory(self, planar_world):
        traj = RobotTrajectory(["x"])
        assert TrajectorySampler(planar_world).sample(_result(traj), 0) == []

    def test_unknown_joint(self, planar_world):
        traj = RobotTrajectory(["elbow"], points=[[1.0]])
        assert TrajectorySampler(planar_world).sample(_result(traj), 0) == []

    def test_unknown_frame(self, planar_world):
        traj = RobotTrajectory(frame_id="map", planar_points=[[0, 0, 0]])
        assert TrajectorySampler(planar_world).sample(_result(traj), 0) == []

    def test_unresolvable_start_state(self, planar_world):
        traj = RobotTrajectory(["x"], points=[[1.0]])
        result = _result(traj, start=RobotState(["wrist"], [0.0]))
        assert TrajectorySampler(planar_world).sample(result, 0) == []
