"""
baselines/rrt_family.py — 采样树规划器 (RRT / RRT-Connect / RRT*)

结构:
- _Tree: 按行追加的 numpy 节点表 (构型 / 父节点 / 代价)
- _Search: 单次搜索的共享状态 (采样区间, 随机数, 截止时间, 碰撞计数)
- grow_rrt / grow_rrt_connect / grow_rrt_star: 三种树扩展策略

RRTBackend.solve() 输出两段轨迹: ``plan`` 为树上的原始路径,
``simplify`` 为随机 shortcut 之后的路径, 各自带处理时间.

metadata 中 collision_checks 为线段检测次数, config_checks 为其中单点
检测的总次数 (取自 CollisionChecker 的计数器).
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from world.models import RobotState

from .base import (DetailedResult, MotionPlanRequest, PlannerBackend,
                   PlannerCapability, RobotTrajectory, TrajectorySegment,
                   check_request, group_problem, strip_group_qualifier)

logger = logging.getLogger(__name__)

# 未显式配置 max_iterations 时各算法的迭代上限
_DEFAULT_ITERATIONS = {"RRT": 5000, "RRTConnect": 5000, "RRT*": 1500}


# ═══════════════════════════════════════════════════════════════════════════
# 节点表
# ═══════════════════════════════════════════════════════════════════════════

class _Tree:
    """以根节点为 0 号的树; 存储按容量倍增."""

    def __init__(self, root: np.ndarray, capacity: int = 512):
        dim = root.shape[0]
        self.q = np.zeros((capacity, dim))
        self.parent = np.full(capacity, -1, dtype=np.int64)
        self.cost = np.zeros(capacity)
        self.size = 0
        self.push(root, -1, 0.0)

    def __len__(self) -> int:
        return self.size

    def push(self, q: np.ndarray, parent: int, cost: float) -> int:
        if self.size == len(self.cost):
            grow = len(self.cost)
            self.q = np.vstack([self.q, np.zeros_like(self.q)])
            self.parent = np.concatenate(
                [self.parent, np.full(grow, -1, dtype=np.int64)])
            self.cost = np.concatenate([self.cost, np.zeros(grow)])
        k = self.size
        self.q[k], self.parent[k], self.cost[k] = q, parent, cost
        self.size += 1
        return k

    def _sq_dist(self, q: np.ndarray) -> np.ndarray:
        d = self.q[:self.size] - q
        return np.einsum("ij,ij->i", d, d)

    def closest(self, q: np.ndarray) -> int:
        return int(self._sq_dist(q).argmin())

    def around(self, q: np.ndarray, radius: float) -> np.ndarray:
        return np.flatnonzero(self._sq_dist(q) <= radius ** 2)

    def branch(self, k: int) -> List[np.ndarray]:
        """根到节点 k 的构型序列."""
        chain = []
        while k != -1:
            chain.append(self.q[k].copy())
            k = int(self.parent[k])
        return chain[::-1]


# ═══════════════════════════════════════════════════════════════════════════
# 搜索上下文
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class SearchOutcome:
    """一次树搜索的结果."""

    success: bool
    waypoints: List[np.ndarray] = field(default_factory=list)
    plan_time: float = 0.0
    n_nodes: int = 0
    n_collision_checks: int = 0
    n_config_checks: int = 0
    first_solution_time: float = math.nan


class _Search:
    """采样 / 扩展 / 碰撞检测的公共部分.

    采样区间由 ``limits`` 给出; 上下限相等的关节在搜索中保持不变.
    """

    def __init__(self, checker, limits, *, step_size: float,
                 resolution: float, timeout: float, max_iterations: int,
                 seed: int):
        self.checker = checker
        self.low = np.array([lo for lo, _ in limits], dtype=float)
        self.high = np.array([hi for _, hi in limits], dtype=float)
        self.step_size = step_size
        self.resolution = resolution
        self.max_iterations = max_iterations
        self.rng = np.random.default_rng(seed)
        self.n_checks = 0
        # 检测器的单点计数在各后端间共享, 这里只记本次搜索的增量
        self._configs_at_start = checker.n_collision_checks
        self._timeout = timeout
        self._t0 = time.perf_counter()

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self._t0

    def iterations(self) -> Iterator[int]:
        """迭代计数; 到达上限或超时即停止."""
        for it in range(self.max_iterations):
            if self.elapsed >= self._timeout:
                logger.debug("search timed out after %d iterations", it)
                return
            yield it

    def sample(self, goal: Optional[np.ndarray] = None,
               goal_bias: float = 0.0) -> np.ndarray:
        if goal is not None and self.rng.random() < goal_bias:
            return goal.copy()
        return self.rng.uniform(self.low, self.high)

    def toward(self, q_from: np.ndarray, q_to: np.ndarray) -> np.ndarray:
        """从 q_from 向 q_to 前进至多 step_size."""
        delta = q_to - q_from
        dist = float(np.linalg.norm(delta))
        if dist <= self.step_size:
            return q_to.copy()
        return q_from + delta * (self.step_size / dist)

    @property
    def config_checks(self) -> int:
        return self.checker.n_collision_checks - self._configs_at_start

    def free(self, q_a: np.ndarray, q_b: np.ndarray) -> bool:
        self.n_checks += 1
        return not self.checker.check_segment_collision(q_a, q_b,
                                                        self.resolution)

    def finish(self, success: bool, n_nodes: int,
               waypoints: Optional[List[np.ndarray]] = None,
               first_solution_time: float = math.nan) -> SearchOutcome:
        return SearchOutcome(success=success, waypoints=waypoints or [],
                             plan_time=self.elapsed, n_nodes=n_nodes,
                             n_collision_checks=self.n_checks,
                             n_config_checks=self.config_checks,
                             first_solution_time=first_solution_time)


def _dist(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(a - b))


# ═══════════════════════════════════════════════════════════════════════════
# 树扩展策略
# ═══════════════════════════════════════════════════════════════════════════

def grow_rrt(search: _Search, q_start: np.ndarray, q_goal: np.ndarray, *,
             goal_bias: float = 0.05, goal_tol: float = 0.3) -> SearchOutcome:
    """单树 RRT; 新节点进入 goal_tol 且能直连目标即返回."""
    tree = _Tree(q_start)
    for _ in search.iterations():
        target = search.sample(q_goal, goal_bias)
        k_near = tree.closest(target)
        q_new = search.toward(tree.q[k_near], target)
        if not search.free(tree.q[k_near], q_new):
            continue
        k_new = tree.push(q_new, k_near,
                          tree.cost[k_near] + _dist(q_new, tree.q[k_near]))
        if _dist(q_new, q_goal) >= goal_tol or not search.free(q_new, q_goal):
            continue
        k_goal = tree.push(q_goal, k_new,
                           tree.cost[k_new] + _dist(q_new, q_goal))
        return search.finish(True, len(tree), tree.branch(k_goal),
                             first_solution_time=search.elapsed)
    return search.finish(False, len(tree))


def grow_rrt_connect(search: _Search, q_start: np.ndarray,
                     q_goal: np.ndarray) -> SearchOutcome:
    """双树 RRT-Connect: 一棵树扩展一步, 另一棵树贪心连接, 之后交换."""
    trees = [_Tree(q_start), _Tree(q_goal)]

    def extend(tree: _Tree, target: np.ndarray) -> int:
        k_near = tree.closest(target)
        q_new = search.toward(tree.q[k_near], target)
        if not search.free(tree.q[k_near], q_new):
            return -1
        return tree.push(q_new, k_near,
                         tree.cost[k_near] + _dist(q_new, tree.q[k_near]))

    def connect(tree: _Tree, target: np.ndarray) -> int:
        k = extend(tree, target)
        while k != -1 and _dist(tree.q[k], target) > 1e-9:
            k = extend(tree, target)
        return k

    for it in search.iterations():
        grow, other = (trees[0], trees[1]) if it % 2 == 0 \
            else (trees[1], trees[0])
        k_new = extend(grow, search.sample())
        if k_new == -1:
            continue
        k_meet = connect(other, grow.q[k_new])
        if k_meet == -1:
            continue
        half_a = grow.branch(k_new)
        half_b = other.branch(k_meet)[::-1][1:]
        path = half_a + half_b
        if grow is trees[1]:
            path.reverse()
        return search.finish(True, len(trees[0]) + len(trees[1]), path,
                             first_solution_time=search.elapsed)
    return search.finish(False, len(trees[0]) + len(trees[1]))


def _rewire_radius(dim: int, n: int, step_size: float) -> float:
    """渐近最优 RRT* 的邻域半径, 以 2 × step_size 为上限."""
    if n < 2:
        return 2.0 * step_size
    ball = math.pi ** (dim / 2.0) / math.gamma(dim / 2.0 + 1.0)
    gamma = 4.0 * ((1.0 + 1.0 / dim) / ball) ** (1.0 / dim)
    return min(2.0 * step_size, gamma * (math.log(n) / n) ** (1.0 / dim))


def grow_rrt_star(search: _Search, q_start: np.ndarray, q_goal: np.ndarray,
                  *, goal_bias: float = 0.05,
                  goal_tol: float = 0.3) -> SearchOutcome:
    """RRT*: 选父节点 + 重连; 迭代用尽后返回代价最低的目标节点."""
    tree = _Tree(q_start)
    k_best, cost_best = -1, math.inf
    first_t = math.nan

    for _ in search.iterations():
        target = search.sample(q_goal, goal_bias)
        k_near = tree.closest(target)
        q_new = search.toward(tree.q[k_near], target)
        if not search.free(tree.q[k_near], q_new):
            continue

        hood = tree.around(q_new, _rewire_radius(len(q_new), len(tree),
                                                 search.step_size))
        # 邻域内代价最低且无碰撞的父节点
        parent = k_near
        cost_new = tree.cost[k_near] + _dist(q_new, tree.q[k_near])
        for k in hood:
            via = tree.cost[k] + _dist(q_new, tree.q[k])
            if via < cost_new and search.free(tree.q[k], q_new):
                parent, cost_new = int(k), via
        k_new = tree.push(q_new, parent, cost_new)

        for k in hood:
            if k == parent:
                continue
            via = cost_new + _dist(q_new, tree.q[k])
            if via < tree.cost[k] and search.free(q_new, tree.q[k]):
                tree.parent[k], tree.cost[k] = k_new, via

        to_goal = _dist(q_new, q_goal)
        if to_goal >= goal_tol or cost_new + to_goal >= cost_best:
            continue
        if search.free(q_new, q_goal):
            if k_best == -1:
                first_t = search.elapsed
            cost_best = cost_new + to_goal
            k_best = tree.push(q_goal, k_new, cost_best)

    if k_best == -1:
        return search.finish(False, len(tree))
    return search.finish(True, len(tree), tree.branch(k_best),
                         first_solution_time=first_t)


ALGORITHMS = {
    "RRT": grow_rrt,
    "RRTConnect": grow_rrt_connect,
    "RRT*": grow_rrt_star,
}

_GOAL_BIASED = ("RRT", "RRT*")


# ═══════════════════════════════════════════════════════════════════════════
# 后处理
# ═══════════════════════════════════════════════════════════════════════════

def shortcut(path: Sequence[np.ndarray], is_free, iterations: int,
             rng: np.random.Generator) -> List[np.ndarray]:
    """随机 shortcut: 任取不相邻两点, 直连无碰撞则删去中间点. 端点不变."""
    out = list(path)
    for _ in range(iterations):
        if len(out) < 3:
            break
        i = int(rng.integers(0, len(out) - 2))
        j = int(rng.integers(i + 2, len(out)))
        if is_free(out[i], out[j]):
            del out[i + 1:j]
    return out


def path_length(path: Sequence[np.ndarray]) -> float:
    if len(path) < 2:
        return 0.0
    return float(np.linalg.norm(np.diff(np.asarray(path), axis=0),
                                axis=1).sum())


# ═══════════════════════════════════════════════════════════════════════════
# PlannerBackend 适配器
# ═══════════════════════════════════════════════════════════════════════════

class RRTBackend(PlannerBackend):
    """RRT 系列算法的 PlannerBackend 封装.

    在规划组关节子空间内规划, 非组内关节固定在起始状态.

    配置项 (setup 的 config):
        step_size (0.5), resolution (0.05), goal_bias (0.05), goal_tol (0.3),
        max_iterations (按算法), shortcut_iters (300), seed (42)
    """

    def __init__(self, name: str = "rrt_family"):
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

    def _search(self, algorithm: str, limits, timeout: float) -> _Search:
        cfg = self._config
        return _Search(
            self._world.checker, limits,
            step_size=float(cfg.get("step_size", 0.5)),
            resolution=float(cfg.get("resolution", 0.05)),
            timeout=timeout,
            max_iterations=int(cfg.get("max_iterations",
                                       _DEFAULT_ITERATIONS[algorithm])),
            seed=int(cfg.get("seed", 42)))

    def solve(self, request: MotionPlanRequest,
              planner_id: str) -> Tuple[bool, DetailedResult]:
        algorithm = strip_group_qualifier(planner_id, request.group_name)
        if algorithm not in ALGORITHMS:
            raise ValueError(f"Unknown algorithm: {planner_id}. "
                             f"Choose from {list(ALGORITHMS)}")
        world = self._world
        group, group_idx, q_start, q_goal = group_problem(world, request)
        start_state = RobotState(world.joint_names, q_start)

        # 组外关节的采样区间收缩为起始值
        limits = [(v, v) for v in q_start.tolist()]
        for i in group_idx:
            limits[i] = world.joint_limits[i]

        search = self._search(algorithm, limits,
                              request.allowed_planning_time)
        extra = {}
        if algorithm in _GOAL_BIASED:
            extra = {"goal_bias": float(self._config.get("goal_bias", 0.05)),
                     "goal_tol": float(self._config.get("goal_tol", 0.3))}
        outcome = ALGORITHMS[algorithm](search, q_start, q_goal, **extra)

        if not outcome.success:
            logger.debug("%s/%s 未找到解 (%d nodes, %.3fs)", self._name,
                         algorithm, outcome.n_nodes, outcome.plan_time)
            return False, DetailedResult.failure(
                start_state, algorithm=algorithm, n_nodes=outcome.n_nodes)

        t0 = time.perf_counter()
        rng = np.random.default_rng(int(self._config.get("seed", 42)) + 9999)
        smooth = shortcut(outcome.waypoints, search.free,
                          int(self._config.get("shortcut_iters", 300)), rng)
        simplify_time = time.perf_counter() - t0

        def as_traj(path):
            pts = np.asarray(path, dtype=np.float64)[:, group_idx]
            return RobotTrajectory(joint_names=list(group), points=pts)

        return True, DetailedResult(
            trajectory_start=start_state,
            segments=[
                TrajectorySegment("plan", as_traj(outcome.waypoints),
                                  outcome.plan_time),
                TrajectorySegment("simplify", as_traj(smooth),
                                  simplify_time),
            ],
            metadata={
                "algorithm": algorithm,
                "n_nodes": outcome.n_nodes,
                "collision_checks": outcome.n_collision_checks,
                "config_checks": outcome.n_config_checks,
                "first_solution_time": outcome.first_solution_time,
                "raw_path_length": path_length(outcome.waypoints),
                "path_length": path_length(smooth),
            },
        )
