"""
baselines/linear.py — 直线插值后端

起点到目标做关节空间等距插值; 直线段碰撞则判为未解出.
主要用作基准测试的对照基线.
"""

from __future__ import annotations

import time
from typing import List, Tuple

import numpy as np

from world.models import RobotState

from .base import (DetailedResult, MotionPlanRequest, PlannerBackend,
                   PlannerCapability, RobotTrajectory, TrajectorySegment,
                   check_request, group_problem, strip_group_qualifier)

ALGORITHMS = ["Straight"]


class LinearBackend(PlannerBackend):
    """直线插值.

    配置项:
        resolution: 插值步长 (关节空间 L2), 默认 0.1
    """

    def __init__(self, name: str = "linear"):
        self._name = name
        self._world = None
        self._config: dict = {}

    def describe(self) -> str:
        return self._name

    def list_algorithms(self) -> List[str]:
        return list(ALGORITHMS)

    def can_service(self, request: MotionPlanRequest
                    ) -> Tuple[bool, PlannerCapability]:
        return check_request(self._world, request)

    def solve(self, request: MotionPlanRequest,
              planner_id: str) -> Tuple[bool, DetailedResult]:
        algorithm = strip_group_qualifier(planner_id, request.group_name)
        if algorithm not in ALGORITHMS:
            raise ValueError(f"Unknown algorithm: {planner_id}")
        t0 = time.perf_counter()
        world = self._world
        group, group_idx, q_start, q_goal = group_problem(world, request)
        start_state = RobotState(world.joint_names, q_start)

        resolution = float(self._config.get("resolution", 0.1))
        if world.checker.check_segment_collision(q_start, q_goal, resolution):
            return False, DetailedResult.failure(start_state,
                                                 reason="straight line collides")

        dist = float(np.linalg.norm(q_goal - q_start))
        n_points = max(2, int(np.ceil(dist / resolution)) + 1)
        ts = np.linspace(0.0, 1.0, n_points)
        pts = q_start[group_idx] + ts[:, None] * (q_goal[group_idx]
                                                  - q_start[group_idx])
        segment = TrajectorySegment(
            "plan",
            RobotTrajectory(joint_names=list(group), points=pts),
            time.perf_counter() - t0)
        return True, DetailedResult(trajectory_start=start_state,
                                    segments=[segment],
                                    metadata={"algorithm": algorithm})
