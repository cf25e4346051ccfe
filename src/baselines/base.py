"""
baselines/base.py — 统一规划后端接口

PlannerBackend ABC   ：所有规划后端的统一接口 (describe / list_algorithms /
                       can_service / solve)
MotionPlanRequest    ：规划问题描述
DetailedResult       ：带分段轨迹的详细规划结果
check_request        ：各后端共用的 can_service 检查
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from world.models import RobotState


# ═══════════════════════════════════════════════════════════════════════════
# MotionPlanRequest
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class MotionPlanRequest:
    """规划问题: 起始状态 + 目标构型 + 允许规划时间.

    Attributes:
        group_name: 规划组名 (限定 planner id 形如 ``group[RRT]``)
        start_state: 起始状态 (部分关节即可, 其余由默认构型补全)
        goal: 规划组内各关节的目标值, 顺序同组内关节
        allowed_planning_time: 每次 solve 的时间上限提示 (秒), 由后端自行执行
    """

    group_name: str
    start_state: RobotState
    goal: np.ndarray
    allowed_planning_time: float = 5.0

    def __post_init__(self) -> None:
        self.goal = np.asarray(self.goal, dtype=np.float64)
        self.allowed_planning_time = float(self.allowed_planning_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_name": self.group_name,
            "start_state": self.start_state.to_dict(),
            "goal": self.goal.tolist(),
            "allowed_planning_time": self.allowed_planning_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MotionPlanRequest":
        return cls(
            group_name=data.get("group_name", "all"),
            start_state=RobotState.from_dict(data.get("start_state", {})),
            goal=data["goal"],
            allowed_planning_time=data.get("allowed_planning_time", 5.0),
        )


@dataclass
class PlannerCapability:
    """can_service 的附带信息; 拒绝时 reasons 给出原因."""
    reasons: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return "; ".join(self.reasons) if self.reasons else "ok"


# ═══════════════════════════════════════════════════════════════════════════
# DetailedResult
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class RobotTrajectory:
    """原始轨迹表示.

    Attributes:
        joint_names: points 各列对应的关节名
        points: (N, len(joint_names)) 关节取值
        frame_id: planar_points 所在坐标系 (空串 = 模型坐标系)
        planar_points: (N, 3) 平面基座位姿 (x, y, theta), 可选
    """

    joint_names: List[str] = field(default_factory=list)
    points: Optional[np.ndarray] = None
    frame_id: str = ""
    planar_points: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.joint_names = list(self.joint_names)
        if self.points is not None:
            self.points = np.asarray(self.points, dtype=np.float64)
            if self.points.ndim == 1:
                self.points = self.points.reshape(-1, len(self.joint_names))
        if self.planar_points is not None:
            self.planar_points = np.asarray(self.planar_points,
                                            dtype=np.float64).reshape(-1, 3)

    @property
    def n_points(self) -> int:
        n = 0
        if self.points is not None:
            n = max(n, self.points.shape[0])
        if self.planar_points is not None:
            n = max(n, self.planar_points.shape[0])
        return n

    @property
    def empty(self) -> bool:
        return self.n_points == 0


@dataclass
class TrajectorySegment:
    """一段具名轨迹 + 后端报告的该段处理时间 (秒)."""
    description: str
    trajectory: RobotTrajectory
    processing_time: float = 0.0


@dataclass
class DetailedResult:
    """后端 solve() 的详细结果."""

    trajectory_start: RobotState = field(default_factory=RobotState)
    segments: List[TrajectorySegment] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    @staticmethod
    def failure(trajectory_start: Optional[RobotState] = None,
                **metadata) -> "DetailedResult":
        """快捷构造失败结果."""
        return DetailedResult(
            trajectory_start=trajectory_start or RobotState(),
            segments=[], metadata=metadata)


# ═══════════════════════════════════════════════════════════════════════════
# PlannerBackend ABC
# ═══════════════════════════════════════════════════════════════════════════

class PlannerBackend(abc.ABC):
    """所有规划后端的统一接口.

    生命周期::

        backend = SomeBackend()
        backend.setup(world, config)           # 由环境完成
        ok, info = backend.can_service(request)
        solved, result = backend.solve(request, "RRTConnect")

    基准核心只依赖这四个方法 (鸭子类型), 不做 isinstance 检查.
    """

    def setup(self, world, config: dict) -> None:
        """绑定世界模型与后端配置.

        Args:
            world: ``world.PlanningWorld`` 实例
            config: 后端特定配置字典
        """
        self._world = world
        self._config = dict(config)

    @abc.abstractmethod
    def describe(self) -> str:
        """可读的后端描述 (报告中 entry 标签的前缀)."""

    @abc.abstractmethod
    def list_algorithms(self) -> List[str]:
        """该后端声明支持的全部算法 id (有序)."""

    @abc.abstractmethod
    def can_service(self, request: MotionPlanRequest
                    ) -> Tuple[bool, PlannerCapability]:
        """是否能求解该问题."""

    @abc.abstractmethod
    def solve(self, request: MotionPlanRequest,
              planner_id: str) -> Tuple[bool, DetailedResult]:
        """执行一次规划.

        Returns:
            (solved, DetailedResult). 未找到解是正常结果 (solved=False),
            不应抛异常; 抛出的异常被视为后端故障.
        """


def strip_group_qualifier(planner_id: str, group_name: str) -> str:
    """``group[RRT]`` → ``RRT``; 其他形式原样返回."""
    prefix = f"{group_name}["
    if planner_id.startswith(prefix) and planner_id.endswith("]"):
        return planner_id[len(prefix):-1]
    return planner_id


def group_problem(world, request: MotionPlanRequest
                  ) -> Tuple[List[str], List[int], np.ndarray, np.ndarray]:
    """把请求展开为全关节空间的起终点.

    Returns:
        (组内关节名, 组内关节下标, q_start, q_goal); 非组内关节的目标值
        取起始值.
    """
    group = world.group_joints(request.group_name)
    group_idx = [world.robot.joint_index(j) for j in group]
    q_start = world.resolve_state(request.start_state)
    q_goal = q_start.copy()
    q_goal[group_idx] = request.goal
    return group, group_idx, q_start, q_goal


def check_request(world, request: MotionPlanRequest
                  ) -> Tuple[bool, PlannerCapability]:
    """公共的 can_service 检查: 规划组 / 维度 / 起终点合法且无碰撞."""
    info = PlannerCapability()
    if world is None:
        info.reasons.append("backend not set up")
        return False, info

    group = world.group_joints(request.group_name)
    if group is None:
        info.reasons.append(f"unknown group '{request.group_name}'")
        return False, info
    if request.goal.shape != (len(group),):
        info.reasons.append(
            f"goal has {request.goal.size} values, group "
            f"'{request.group_name}' has {len(group)} joints")
        return False, info

    try:
        _, _, q_start, q_goal = group_problem(world, request)
    except KeyError as exc:
        info.reasons.append(f"bad start state: {exc}")
        return False, info

    for label, q in (("start", q_start), ("goal", q_goal)):
        if not world.checker.check_config_in_limits(q):
            info.reasons.append(f"{label} outside joint limits")
        elif world.checker.check_config_collision(q):
            info.reasons.append(f"{label} in collision")
    return not info.reasons, info
