"""
baselines/ — 统一规划后端接口 + 参考后端

- base: PlannerBackend ABC, MotionPlanRequest, DetailedResult
- rrt_family: RRT / RRTConnect / RRT*
- linear: 直线插值对照基线
"""

import logging
from typing import Dict, Optional

from .base import (DetailedResult, MotionPlanRequest, PlannerBackend,
                   PlannerCapability, RobotTrajectory, TrajectorySegment,
                   strip_group_qualifier)
from .rrt_family import RRTBackend
from .linear import LinearBackend

logger = logging.getLogger(__name__)

BACKEND_TYPES = {
    "RRT": RRTBackend,
    "Linear": LinearBackend,
}

DEFAULT_BACKENDS = {
    "linear": {"type": "Linear"},
    "rrt_family": {"type": "RRT"},
}


def create_backend(name: str, cfg: dict, world) -> PlannerBackend:
    """从配置字典创建并 setup 一个后端实例."""
    ptype = cfg["type"]
    if ptype not in BACKEND_TYPES:
        raise ValueError(f"Unknown backend type: {ptype}. "
                         f"Choose from {list(BACKEND_TYPES)}")
    params = {k: v for k, v in cfg.items() if k != "type"}
    backend = BACKEND_TYPES[ptype](name=name)
    backend.setup(world, params)
    return backend


def create_backends(world, cfg: Optional[Dict[str, dict]] = None
                    ) -> Dict[str, PlannerBackend]:
    """name → 后端实例; 单个后端创建失败只记录错误, 不影响其他后端."""
    cfg = cfg or DEFAULT_BACKENDS
    backends: Dict[str, PlannerBackend] = {}
    for name, bcfg in cfg.items():
        logger.info("Attempting to load and configure %s", name)
        try:
            backends[name] = create_backend(name, bcfg, world)
        except (KeyError, ValueError) as exc:
            logger.error("Exception while loading planner '%s': %s", name, exc)
    if not backends:
        logger.error("No planning backends have been loaded.")
    return backends


__all__ = [
    "PlannerBackend",
    "PlannerCapability",
    "MotionPlanRequest",
    "DetailedResult",
    "RobotTrajectory",
    "TrajectorySegment",
    "strip_group_qualifier",
    "RRTBackend",
    "LinearBackend",
    "BACKEND_TYPES",
    "create_backend",
    "create_backends",
]
