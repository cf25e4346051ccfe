"""
bench/metrics.py - 单次 trial 的路径质量指标

每次 trial 总是记录:
- ``total_time REAL``  : 整个 solve() 的 wall-clock 秒数
- ``solved BOOLEAN``

解出时, 对每段轨迹 ``d`` 另外记录:
- ``path_<d>_correct BOOLEAN``   : 所有路径点均无碰撞 (无裕度查询)
- ``path_<d>_length REAL``       : 相邻路径点距离之和
- ``path_<d>_clearance REAL``    : 路径点到最近碰撞的平均距离
- ``path_<d>_smoothness REAL``   : 外角平方惩罚 (见 compute_smoothness)
- ``path_<d>_time REAL``         : 后端报告的该段处理时间
以及 ``process_time REAL`` = total_time − Σ 段处理时间 (下限 0).

退化输入 (空路径 / 单点 / 零长度段 / 共线) 一律给出确定的默认值, 不抛异常.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

import numpy as np

from .records import (MetricKind, TrialRecord, format_bool, format_real,
                      metric_key, single_line)

logger = logging.getLogger(__name__)

Distance = Callable[[np.ndarray, np.ndarray], float]


@dataclass
class SampledSegment:
    """采样后的一段轨迹."""
    description: str
    waypoints: List[np.ndarray] = field(default_factory=list)
    processing_time: float = 0.0


def compute_path_length(path: Sequence[np.ndarray], distance: Distance) -> float:
    """相邻路径点距离之和; 少于 2 个点为 0"""
    if len(path) < 2:
        return 0.0
    return sum(distance(path[k - 1], path[k]) for k in range(1, len(path)))


def compute_clearance(path: Sequence[np.ndarray],
                      distance_to_collision: Callable[[np.ndarray], float]
                      ) -> float:
    """平均距碰撞距离; 空路径为 0"""
    if len(path) == 0:
        return 0.0
    return sum(distance_to_collision(q) for q in path) / len(path)


def compute_smoothness(path: Sequence[np.ndarray], distance: Distance) -> float:
    """外角平方惩罚

    把路径看作一串线段, 考察相邻两段构成的三角形::

              s1
              /\\
          a  /  \\ b
            /    \\
           /......\\
         s0    c   s2

    由余弦定理得 cosθ = (a² + b² − c²) / (2ab). 仅当 −1 < cosθ < 1 时累加
    (2·(π − acos(cosθ)))², 即外角的两倍的平方; 最后除以路径点数.
    a 或 b 为 0 (重合点) 以及 cosθ 落在开区间外 (共线) 的三元组贡献 0.
    """
    n = len(path)
    if n <= 2:
        return 0.0
    smoothness = 0.0
    a = distance(path[0], path[1])
    for k in range(2, n):
        b = distance(path[k - 1], path[k])
        if a > 0.0 and b > 0.0:
            c = distance(path[k - 2], path[k])
            cos_value = (a * a + b * b - c * c) / (2.0 * a * b)
            if -1.0 < cos_value < 1.0:
                u = 2.0 * (math.pi - math.acos(cos_value))
                smoothness += u * u
        a = b
    return smoothness / n


def check_correctness(path: Sequence[np.ndarray],
                      is_colliding: Callable[[np.ndarray], bool]) -> bool:
    """任意一个路径点碰撞即判为不正确"""
    correct = True
    for q in path:
        if is_colliding(q):
            correct = False
    return correct


class MetricsCollector:
    """把一次 trial 的 (分段路径点, 是否解出, 耗时) 转成 TrialRecord.

    Args:
        world: 提供 ``distance`` / ``is_state_colliding`` /
            ``distance_to_collision`` 的世界模型
    """

    def __init__(self, world) -> None:
        self.world = world

    def collect(self, segments: Sequence[SampledSegment], solved: bool,
                total_time: float) -> TrialRecord:
        data = {
            metric_key("total_time", MetricKind.REAL): format_real(total_time),
            metric_key("solved", MetricKind.BOOLEAN): format_bool(solved),
        }
        if not solved:
            return TrialRecord(data)

        world = self.world
        process_time = float(total_time)
        for j, seg in enumerate(segments):
            name = single_line(seg.description.strip()) or str(j)
            path = seg.waypoints

            correct = check_correctness(path, world.is_state_colliding)
            length = compute_path_length(path, world.distance)
            clearance = compute_clearance(path, world.distance_to_collision)
            smoothness = compute_smoothness(path, world.distance)

            prefix = f"path_{name}_"
            data[metric_key(prefix + "correct", MetricKind.BOOLEAN)] = \
                format_bool(correct)
            data[metric_key(prefix + "length", MetricKind.REAL)] = \
                format_real(length)
            data[metric_key(prefix + "clearance", MetricKind.REAL)] = \
                format_real(clearance)
            data[metric_key(prefix + "smoothness", MetricKind.REAL)] = \
                format_real(smoothness)
            data[metric_key(prefix + "time", MetricKind.REAL)] = \
                format_real(seg.processing_time)
            process_time -= seg.processing_time

        # 时钟漂移可能让各段时间之和超过总时间
        data[metric_key("process_time", MetricKind.REAL)] = \
            format_real(max(0.0, process_time))
        return TrialRecord(data)
