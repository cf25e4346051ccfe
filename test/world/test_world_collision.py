"""
Tests for world/ — models, scene serialization, collision and PlanningWorld.
"""

import math

import numpy as np
import pytest

from world import (CollisionChecker, Obstacle, PlanningWorld, RobotModel,
                   RobotState, Scene, load_world)


# ═══════════════════════════════════════════════════════════════════════════
# Models
# ═══════════════════════════════════════════════════════════════════════════

class TestModels:
    def test_default_positions_are_midpoints(self):
        robot = RobotModel("r", ["a", "b"], [(-1, 3), (0, 2)])
        np.testing.assert_allclose(robot.default_positions, [1.0, 1.0])
        assert robot.groups == {"all": ["a", "b"]}

    def test_limits_length_mismatch(self):
        with pytest.raises(ValueError):
            RobotModel("r", ["a", "b"], [(-1, 1)])

    def test_bad_planar_joints(self):
        with pytest.raises(ValueError):
            RobotModel("r", ["a", "b"], [(-1, 1)] * 2,
                       planar_joints=("a", "b", "c"))

    def test_robot_dict_round_trip(self):
        robot = RobotModel("r", ["x", "y", "t"], [(-1, 1)] * 3,
                           planar_joints=("x", "y", "t"),
                           groups={"xy": ["x", "y"]})
        again = RobotModel.from_dict(robot.to_dict())
        assert again.joint_names == robot.joint_names
        assert again.planar_joints == ("x", "y", "t")
        assert again.groups == {"xy": ["x", "y"]}

    def test_robot_state_shape(self):
        with pytest.raises(ValueError):
            RobotState(["a", "b"], [1.0])

    def test_obstacle_distance(self):
        obs = Obstacle([0, 0], [1, 1])
        assert obs.distance_to_point(np.array([0.5, 0.5])) == 0.0
        assert obs.distance_to_point(np.array([4.0, 5.0])) == 5.0
        assert obs.contains_point(np.array([1.05, 0.5]), margin=0.1)
        assert not obs.contains_point(np.array([1.05, 0.5]))


# ═══════════════════════════════════════════════════════════════════════════
# Scene
# ═══════════════════════════════════════════════════════════════════════════

class TestScene:
    def test_auto_names_and_remove(self):
        scene = Scene()
        scene.add_obstacle([0, 0], [1, 1])
        scene.add_obstacle([2, 2], [3, 3], name="b")
        assert [o.name for o in scene.get_obstacles()] == ["obstacle_0", "b"]
        assert scene.remove_obstacle("b")
        assert not scene.remove_obstacle("b")
        assert scene.n_obstacles == 1

    def test_transforms(self):
        scene = Scene()
        scene.set_transform("odom", 1.0, 2.0, 0.5)
        assert scene.get_transform("odom") == (1.0, 2.0, 0.5)
        assert scene.get_transform("") == (0.0, 0.0, 0.0)
        assert scene.get_transform("world") == (0.0, 0.0, 0.0)
        assert scene.get_transform("map") is None
        with pytest.raises(ValueError):
            scene.set_transform("world", 0, 0, 0)

    def test_json_round_trip(self, tmp_path):
        scene = Scene("room")
        scene.add_obstacle([0, 0], [1, 1], name="box")
        scene.set_transform("odom", 1.0, 0.0, 0.0)
        path = tmp_path / "scene.json"
        scene.to_json(str(path))
        again = Scene.from_json(str(path))
        assert again.name == "room"
        assert again.frames == ["odom"]
        np.testing.assert_allclose(again.get_obstacles()[0].max_point, [1, 1])


# ═══════════════════════════════════════════════════════════════════════════
# CollisionChecker
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture()
def checker_2d():
    robot = RobotModel("r", ["a", "b"], [(-5, 5)] * 2)
    scene = Scene()
    scene.add_obstacle([1, -1], [2, 1], name="wall")
    return CollisionChecker(robot, scene, safety_margin=0.2)


class TestCollisionChecker:
    def test_dimension_mismatch(self):
        robot = RobotModel("r", ["a", "b"], [(-5, 5)] * 2)
        scene = Scene()
        scene.add_obstacle([0, 0, 0], [1, 1, 1])
        with pytest.raises(ValueError):
            CollisionChecker(robot, scene)

    def test_padding(self, checker_2d):
        q = np.array([0.9, 0.0])
        assert checker_2d.check_config_collision(q)
        assert not checker_2d.check_config_collision(q, padded=False)

    def test_segment(self, checker_2d):
        assert checker_2d.check_segment_collision(np.array([0.0, 0.0]),
                                                  np.array([3.0, 0.0]))
        assert not checker_2d.check_segment_collision(np.array([0.0, 2.0]),
                                                      np.array([3.0, 2.0]))

    def test_counter(self, checker_2d):
        checker_2d.check_config_collision(np.zeros(2))
        checker_2d.check_config_collision(np.zeros(2))
        assert checker_2d.n_collision_checks == 2
        checker_2d.check_segment_collision(np.array([-1.0, 0.0]),
                                           np.array([0.0, 0.0]), 0.5)
        assert checker_2d.n_collision_checks == 5

    def test_limits(self, checker_2d):
        assert checker_2d.check_config_in_limits(np.array([5.0, -5.0]))
        assert not checker_2d.check_config_in_limits(np.array([5.1, 0.0]))

    def test_distance_ignores_margin(self, checker_2d):
        assert checker_2d.distance_to_collision(np.array([0.0, 0.0])) == 1.0
        assert checker_2d.distance_to_collision(np.array([1.5, 0.0])) == 0.0


# ═══════════════════════════════════════════════════════════════════════════
# PlanningWorld
# ═══════════════════════════════════════════════════════════════════════════

class TestPlanningWorld:
    def test_resolve_state(self, planar_world):
        q = planar_world.resolve_state(RobotState(["y"], [2.0]))
        np.testing.assert_allclose(q, [0.0, 2.0, 0.0])
        np.testing.assert_allclose(planar_world.resolve_state(None), [0, 0, 0])
        with pytest.raises(KeyError):
            planar_world.resolve_state(RobotState(["elbow"], [1.0]))

    def test_group_joints(self, planar_world):
        assert planar_world.group_joints("xy") == ["x", "y"]
        assert planar_world.group_joints("arm") is None

    def test_transform_wraps_angle(self, planar_world):
        pose = planar_world.transform_planar_pose(
            "rotated", np.array([0.0, 0.0, math.pi]))
        assert -math.pi <= pose[2] < math.pi
        assert pose[2] == pytest.approx(-math.pi / 2)

    def test_unknown_frame(self, planar_world):
        assert planar_world.transform_planar_pose("map", np.zeros(3)) is None

    def test_distance_and_collision(self, planar_world):
        assert planar_world.distance(np.zeros(3), np.array([3.0, 4.0, 0.0])) \
            == 5.0
        assert planar_world.is_state_colliding(np.array([2.5, 2.5, 0.0]))
        assert not planar_world.is_state_colliding(np.zeros(3))

    def test_load_world(self):
        world = load_world({
            "robot": {"name": "r", "joint_names": ["a"],
                      "joint_limits": [[-1, 1]]},
            "scene": {"name": "s",
                      "obstacles": [{"min": [0.5], "max": [0.6]}]},
            "safety_margin": 0.1,
        })
        assert world.name == "s"
        assert world.checker.safety_margin == 0.1
        assert world.joint_names == ["a"]
