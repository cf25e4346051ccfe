"""
bench/request.py — 基准测试请求

PlanningRequest 在交给 orchestrator 之后不可变.

JSON 结构::

    {
        "problem": {...},                         # MotionPlanRequest.from_dict
        "planner_interfaces": [
            {"name": "rrt_family", "planner_ids": ["RRT"], "average_count": 3}
        ],
        "default_average_count": 5,
        "filename": ""
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from baselines.base import MotionPlanRequest

from .errors import ConfigError


@dataclass(frozen=True)
class PlannerSelection:
    """请求中对单个后端的选择; planner_ids 为空表示全部算法."""
    name: str
    planner_ids: Tuple[str, ...] = ()
    average_count: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "planner_ids", tuple(self.planner_ids))

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"name": self.name,
                             "planner_ids": list(self.planner_ids)}
        if self.average_count is not None:
            d["average_count"] = self.average_count
        return d


@dataclass(frozen=True)
class PlanningRequest:
    problem: MotionPlanRequest
    planner_interfaces: Tuple[PlannerSelection, ...] = ()
    default_average_count: int = 1
    filename: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "planner_interfaces",
                           tuple(self.planner_interfaces))

    def selection(self, name: str) -> Optional[PlannerSelection]:
        """同名后端取第一个选择"""
        for sel in self.planner_interfaces:
            if sel.name == name:
                return sel
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "problem": self.problem.to_dict(),
            "planner_interfaces": [s.to_dict() for s in self.planner_interfaces],
            "default_average_count": self.default_average_count,
            "filename": self.filename,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanningRequest":
        try:
            problem = MotionPlanRequest.from_dict(data["problem"])
            selections = tuple(
                PlannerSelection(
                    name=item["name"],
                    planner_ids=tuple(item.get("planner_ids", ())),
                    average_count=item.get("average_count"),
                )
                for item in data.get("planner_interfaces", [])
            )
            return cls(
                problem=problem,
                planner_interfaces=selections,
                default_average_count=int(data.get("default_average_count", 1)),
                filename=data.get("filename", ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"invalid planning request: {exc}") from exc

    @classmethod
    def from_json(cls, filepath: str | Path) -> "PlanningRequest":
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)
