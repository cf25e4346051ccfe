"""
world/planning_world.py - 基准测试使用的只读世界模型

PlanningWorld 汇总 RobotModel + Scene + CollisionChecker, 对外提供:
- 状态补全 (默认构型 + 部分 RobotState)
- 平面坐标系变换
- 构型间距离 (关节空间 L2)
- 无裕度碰撞查询 / 距碰撞距离

一次基准运行中所有 trial 共享同一个 PlanningWorld, 只读访问.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .collision import CollisionChecker
from .models import RobotModel, RobotState
from .scene import Scene

logger = logging.getLogger(__name__)


class PlanningWorld:
    """机器人 + 场景 + 碰撞检测.

    Args:
        robot: 机器人模型
        scene: 障碍物场景
        safety_margin: 规划器使用的碰撞裕度 (评价指标始终不带裕度)
    """

    def __init__(self, robot: RobotModel, scene: Scene,
                 safety_margin: float = 0.0) -> None:
        self.robot = robot
        self.scene = scene
        self.checker = CollisionChecker(robot, scene,
                                        safety_margin=safety_margin)

    @property
    def name(self) -> str:
        return self.scene.name

    @property
    def joint_names(self) -> List[str]:
        return list(self.robot.joint_names)

    @property
    def joint_limits(self) -> List[Tuple[float, float]]:
        return list(self.robot.joint_limits)

    def default_state(self) -> np.ndarray:
        return self.robot.default_positions.copy()

    def group_joints(self, group_name: str) -> Optional[List[str]]:
        """规划组的关节名; 未知组返回 None"""
        joints = self.robot.groups.get(group_name)
        return list(joints) if joints is not None else None

    def resolve_state(self, state: Optional[RobotState]) -> np.ndarray:
        """默认构型覆盖 state 中给出的关节, 返回完整构型

        Raises:
            KeyError: state 中含未知关节名
        """
        q = self.default_state()
        if state is None:
            return q
        for name, value in zip(state.joint_names, state.positions):
            if name not in self.robot.joint_names:
                raise KeyError(f"未知关节 '{name}'")
            q[self.robot.joint_index(name)] = value
        return q

    def frame_transform(self, frame_id: str
                        ) -> Optional[Tuple[float, float, float]]:
        """frame_id → 模型坐标系的 (x, y, yaw); 未知坐标系返回 None"""
        return self.scene.get_transform(frame_id)

    def transform_planar_pose(self, frame_id: str,
                              pose: np.ndarray) -> Optional[np.ndarray]:
        """将 frame_id 下的平面位姿 (x, y, theta) 变换到模型坐标系"""
        tf = self.frame_transform(frame_id)
        if tf is None:
            return None
        tx, ty, yaw = tf
        c, s = math.cos(yaw), math.sin(yaw)
        x, y, theta = float(pose[0]), float(pose[1]), float(pose[2])
        return np.array([
            tx + c * x - s * y,
            ty + s * x + c * y,
            _wrap_angle(theta + yaw),
        ], dtype=np.float64)

    # ── 度量 / 碰撞 ─────────────────────────────────────────────

    def distance(self, q_a: np.ndarray, q_b: np.ndarray) -> float:
        """关节空间 L2 距离"""
        return float(np.linalg.norm(np.asarray(q_b) - np.asarray(q_a)))

    def is_state_colliding(self, q: np.ndarray) -> bool:
        """无裕度碰撞查询"""
        return self.checker.check_config_collision(q, padded=False)

    def distance_to_collision(self, q: np.ndarray) -> float:
        return self.checker.distance_to_collision(q)


def _wrap_angle(angle: float) -> float:
    """归一化到 [-pi, pi)"""
    return (angle + math.pi) % (2.0 * math.pi) - math.pi


def load_world(cfg: Dict[str, Any]) -> PlanningWorld:
    """从配置字典创建 PlanningWorld.

    cfg 结构::

        {
            "robot": {...},            # RobotModel.from_dict
            "scene": {...},            # Scene.from_dict
            "safety_margin": 0.0
        }
    """
    robot = RobotModel.from_dict(cfg["robot"])
    scene = Scene.from_dict(cfg.get("scene", {}))
    world = PlanningWorld(robot, scene,
                          safety_margin=cfg.get("safety_margin", 0.0))
    logger.info("加载世界模型: robot=%s (%d DOF), scene=%r, %d 个障碍物",
                robot.name, robot.n_joints, scene.name, scene.n_obstacles)
    return world
