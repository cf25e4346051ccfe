"""
world/models.py - 世界模型数据类

- Obstacle:   关节空间 (C-space) 中的轴对齐障碍物 box
- RobotModel: 关节名称 / 关节限制 / 平面 (multi-DOF) 关节 / 默认构型
- RobotState: 部分或完整的具名关节取值
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


@dataclass
class Obstacle:
    """C-space AABB 障碍物

    与机器人构型同维度的轴对齐超矩形, 配置点落入其中即视为碰撞.

    Attributes:
        min_point: 最小角点 (ndim,)
        max_point: 最大角点 (ndim,)
        name: 障碍物名称（可选）
    """
    min_point: np.ndarray
    max_point: np.ndarray
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.min_point, np.ndarray):
            self.min_point = np.array(self.min_point, dtype=np.float64)
        if not isinstance(self.max_point, np.ndarray):
            self.max_point = np.array(self.max_point, dtype=np.float64)
        if self.min_point.shape != self.max_point.shape:
            raise ValueError("min_point 和 max_point 维度不匹配")

    @property
    def ndim(self) -> int:
        return int(self.min_point.shape[0])

    @property
    def center(self) -> np.ndarray:
        """障碍物中心点"""
        return (self.min_point + self.max_point) / 2.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min': self.min_point.tolist(),
            'max': self.max_point.tolist(),
            'name': self.name,
        }

    def contains_point(self, point: np.ndarray, margin: float = 0.0) -> bool:
        """检查点是否在 (外扩 margin 后的) box 内"""
        return bool(np.all(point >= self.min_point - margin)
                    and np.all(point <= self.max_point + margin))

    def distance_to_point(self, point: np.ndarray) -> float:
        """点到 box 的最小距离 (0 表示在内部)"""
        clamped = np.clip(point, self.min_point, self.max_point)
        return float(np.linalg.norm(point - clamped))


@dataclass
class RobotModel:
    """关节空间机器人模型

    Attributes:
        name: 机器人名称
        joint_names: 全部关节名 (构型向量的顺序)
        joint_limits: [(lo, hi), ...] 与 joint_names 一一对应
        planar_joints: 平面基座关节名 (x, y, theta); 无平面基座时为 None
        default_positions: 默认构型; None 时取关节限制中点
        groups: 规划组名 → 组内关节名
    """
    name: str
    joint_names: List[str]
    joint_limits: List[Tuple[float, float]]
    planar_joints: Optional[Tuple[str, str, str]] = None
    default_positions: Optional[np.ndarray] = None
    groups: Dict[str, List[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if len(self.joint_names) != len(self.joint_limits):
            raise ValueError(
                f"joint_names ({len(self.joint_names)}) 与 joint_limits "
                f"({len(self.joint_limits)}) 长度不一致")
        self.joint_limits = [(float(lo), float(hi))
                             for lo, hi in self.joint_limits]
        if self.default_positions is None:
            self.default_positions = np.array(
                [(lo + hi) / 2.0 for lo, hi in self.joint_limits],
                dtype=np.float64)
        else:
            self.default_positions = np.asarray(self.default_positions,
                                                dtype=np.float64)
        if self.planar_joints is not None:
            self.planar_joints = tuple(self.planar_joints)
            missing = [j for j in self.planar_joints
                       if j not in self.joint_names]
            if len(self.planar_joints) != 3 or missing:
                raise ValueError(f"非法 planar_joints: {self.planar_joints}")
        if not self.groups:
            self.groups = {"all": list(self.joint_names)}

    @property
    def n_joints(self) -> int:
        return len(self.joint_names)

    def joint_index(self, name: str) -> int:
        return self.joint_names.index(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "joint_names": list(self.joint_names),
            "joint_limits": [list(lim) for lim in self.joint_limits],
            "planar_joints": (list(self.planar_joints)
                              if self.planar_joints else None),
            "default_positions": self.default_positions.tolist(),
            "groups": {k: list(v) for k, v in self.groups.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RobotModel":
        planar = data.get("planar_joints")
        return cls(
            name=data.get("name", "robot"),
            joint_names=list(data["joint_names"]),
            joint_limits=[tuple(lim) for lim in data["joint_limits"]],
            planar_joints=tuple(planar) if planar else None,
            default_positions=data.get("default_positions"),
            groups=dict(data.get("groups", {})),
        )


@dataclass
class RobotState:
    """具名关节取值; 可只覆盖部分关节, 其余由默认构型补全."""
    joint_names: List[str] = field(default_factory=list)
    positions: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.float64))

    def __post_init__(self) -> None:
        self.joint_names = list(self.joint_names)
        self.positions = np.asarray(self.positions, dtype=np.float64)
        if self.positions.shape != (len(self.joint_names),):
            raise ValueError(
                f"positions 形状 {self.positions.shape} 与 "
                f"{len(self.joint_names)} 个关节名不匹配")

    def to_dict(self) -> Dict[str, Any]:
        return {"joint_names": list(self.joint_names),
                "positions": self.positions.tolist()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RobotState":
        return cls(joint_names=data.get("joint_names", []),
                   positions=data.get("positions", []))
