"""
bench/sampler.py — 轨迹采样

把 DetailedResult 中某一段的原始轨迹转成完整构型序列:

    默认构型 ← trajectory_start ← 该段具名关节取值 ← 平面位姿 (坐标变换后)

任何无法解析的情况 (段索引越界 / 空轨迹 / 未知关节 / 未知坐标系)
都返回空列表; 空列表是 MetricsCollector 合法的退化输入.
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np

logger = logging.getLogger(__name__)


class TrajectorySampler:
    """Args:
        world: 提供 ``resolve_state`` / ``transform_planar_pose`` /
            ``robot`` 的世界模型 (``world.PlanningWorld``)
    """

    def __init__(self, world) -> None:
        self.world = world

    def sample(self, result, segment_index: int) -> List[np.ndarray]:
        segments = getattr(result, "segments", None) or []
        if not 0 <= segment_index < len(segments):
            logger.debug("segment index %d out of range (%d segments)",
                         segment_index, len(segments))
            return []
        traj = segments[segment_index].trajectory
        if traj is None or traj.empty:
            return []

        try:
            base = self.world.resolve_state(result.trajectory_start)
        except KeyError as exc:
            logger.warning("trajectory_start not resolvable: %s", exc)
            return []

        robot = self.world.robot
        unknown = [j for j in traj.joint_names if j not in robot.joint_names]
        if unknown:
            logger.warning("segment '%s' names unknown joints %s",
                           segments[segment_index].description, unknown)
            return []
        joint_idx = [robot.joint_index(j) for j in traj.joint_names]

        planar_idx = None
        if traj.planar_points is not None:
            if robot.planar_joints is None:
                logger.warning("segment '%s' carries planar poses but the "
                               "robot has no planar joint",
                               segments[segment_index].description)
                return []
            if self.world.frame_transform(traj.frame_id) is None:
                logger.warning("unknown frame '%s' in segment '%s'",
                               traj.frame_id,
                               segments[segment_index].description)
                return []
            planar_idx = [robot.joint_index(j) for j in robot.planar_joints]

        waypoints = []
        for k in range(traj.n_points):
            q = base.copy()
            if traj.points is not None and k < traj.points.shape[0]:
                q[joint_idx] = traj.points[k]
            if planar_idx is not None and k < traj.planar_points.shape[0]:
                q[planar_idx] = self.world.transform_planar_pose(
                    traj.frame_id, traj.planar_points[k])
            waypoints.append(q)
        return waypoints
