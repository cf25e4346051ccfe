"""
world/collision.py - 碰撞检测模块

C-space 点机器人与 AABB 障碍物之间的碰撞检测:
- 单点碰撞检测: 构型是否落入任一 (外扩 safety_margin 的) 障碍物 box
- 线段碰撞检测: 等间隔采样逐点检查
- 距离查询: 构型到最近障碍物的距离

``padded=False`` 的查询忽略 safety_margin, 供评价指标使用;
规划器使用带裕度的查询.
"""

import logging

import numpy as np

from .models import RobotModel
from .scene import Scene

logger = logging.getLogger(__name__)


class CollisionChecker:
    """碰撞检测器

    Args:
        robot: 机器人模型
        scene: 障碍物场景
        safety_margin: 安全裕度, 对障碍物 box 向外扩展

    Example:
        >>> checker = CollisionChecker(robot, scene)
        >>> checker.check_config_collision(q)
        >>> checker.distance_to_collision(q)
    """

    def __init__(self, robot: RobotModel, scene: Scene,
                 safety_margin: float = 0.0) -> None:
        self.robot = robot
        self.scene = scene
        self.safety_margin = float(safety_margin)
        self._n_collision_checks = 0
        for obs in scene.get_obstacles():
            if obs.ndim != robot.n_joints:
                raise ValueError(
                    f"障碍物 '{obs.name}' 维度 {obs.ndim} 与机器人关节数 "
                    f"{robot.n_joints} 不一致")

    @property
    def n_collision_checks(self) -> int:
        """累计碰撞检测调用次数"""
        return self._n_collision_checks

    def check_config_collision(self, joint_values: np.ndarray,
                               padded: bool = True) -> bool:
        """单配置碰撞检测

        Returns:
            True = 存在碰撞, False = 无碰撞
        """
        self._n_collision_checks += 1
        q = np.asarray(joint_values, dtype=np.float64)
        margin = self.safety_margin if padded else 0.0
        for obs in self.scene.get_obstacles():
            if obs.contains_point(q, margin):
                return True
        return False

    def check_segment_collision(self, q_start: np.ndarray, q_end: np.ndarray,
                                resolution: float = 0.05) -> bool:
        """线段碰撞检测

        按 ``resolution`` (关节空间 L2) 等距取点, 两端点都包含在内;
        任一点碰撞即返回 True.
        """
        a = np.asarray(q_start, dtype=np.float64)
        b = np.asarray(q_end, dtype=np.float64)
        length = float(np.linalg.norm(b - a))
        if length < 1e-10:
            return self.check_config_collision(a)
        n_points = max(2, int(np.ceil(length / resolution)) + 1)
        return any(self.check_config_collision(q)
                   for q in np.linspace(a, b, n_points))

    def check_config_in_limits(self, joint_values: np.ndarray,
                               tol: float = 1e-10) -> bool:
        """构型是否落在机器人关节上下限内 (含边界)"""
        q = np.asarray(joint_values, dtype=np.float64)
        lims = np.asarray(self.robot.joint_limits, dtype=np.float64)
        if q.shape != (len(lims),):
            return False
        return bool(np.all((q >= lims[:, 0] - tol) & (q <= lims[:, 1] + tol)))

    def distance_to_collision(self, joint_values: np.ndarray) -> float:
        """构型到最近障碍物的距离 (不含裕度)

        落入障碍物内为 0; 场景无障碍物时为 inf.
        """
        q = np.asarray(joint_values, dtype=np.float64)
        return min((obs.distance_to_point(q)
                    for obs in self.scene.get_obstacles()),
                   default=float('inf'))
