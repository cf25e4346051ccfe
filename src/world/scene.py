"""
world/scene.py - 障碍物与场景管理

管理 C-space 中的 AABB 障碍物集合与具名坐标系变换, 提供场景配置和序列化.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .models import Obstacle

logger = logging.getLogger(__name__)

# 模型根坐标系; 平面位姿默认在此坐标系下表达
MODEL_FRAME = "world"


class Scene:
    """规划场景

    Args:
        name: 场景名称 (写入报告的 ``Experiment`` 行, 可为空)

    Example:
        >>> scene = Scene("cluttered")
        >>> scene.add_obstacle([0.5, -0.3], [0.8, 0.3], name="pillar")
        >>> scene.set_transform("odom", 1.0, 0.0, 0.0)
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._obstacles: List[Obstacle] = []
        # frame_id → (x, y, yaw)，相对模型根坐标系
        self._transforms: Dict[str, Tuple[float, float, float]] = {}

    @property
    def n_obstacles(self) -> int:
        return len(self._obstacles)

    def add_obstacle(self, min_point: Any, max_point: Any,
                     name: str = "") -> Obstacle:
        """添加一个 AABB 障碍物

        Returns:
            创建的 Obstacle 实例
        """
        if not name:
            name = f"obstacle_{self.n_obstacles}"
        obs = Obstacle(min_point=np.array(min_point, dtype=np.float64),
                       max_point=np.array(max_point, dtype=np.float64),
                       name=name)
        self._obstacles.append(obs)
        logger.debug("添加障碍物 '%s': min=%s, max=%s", name,
                     obs.min_point.tolist(), obs.max_point.tolist())
        return obs

    def remove_obstacle(self, name: str) -> bool:
        """按名称移除障碍物

        Returns:
            是否找到并移除
        """
        for i, obs in enumerate(self._obstacles):
            if obs.name == name:
                self._obstacles.pop(i)
                return True
        return False

    def get_obstacles(self) -> List[Obstacle]:
        return list(self._obstacles)

    # ── 坐标系变换 ──────────────────────────────────────────────

    def set_transform(self, frame_id: str, x: float, y: float,
                      yaw: float) -> None:
        """声明 frame_id 相对模型根坐标系的平面位姿"""
        if frame_id == MODEL_FRAME:
            raise ValueError(f"不能重定义根坐标系 '{MODEL_FRAME}'")
        self._transforms[frame_id] = (float(x), float(y), float(yaw))

    def get_transform(self, frame_id: str
                      ) -> Optional[Tuple[float, float, float]]:
        """frame_id 的平面位姿; 根坐标系或空 frame 返回恒等变换, 未知返回 None"""
        if not frame_id or frame_id == MODEL_FRAME:
            return (0.0, 0.0, 0.0)
        return self._transforms.get(frame_id)

    @property
    def frames(self) -> List[str]:
        return sorted(self._transforms)

    # ── 序列化 ──────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "obstacles": [obs.to_dict() for obs in self._obstacles],
            "transforms": {k: list(v) for k, v in self._transforms.items()},
        }

    def to_json(self, filepath: str) -> None:
        """保存场景到 JSON 文件"""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scene":
        """从字典加载场景

        Args:
            data: {'name': str,
                   'obstacles': [{'min': [...], 'max': [...], 'name': ...}],
                   'transforms': {frame_id: [x, y, yaw]}}
        """
        scene = cls(name=data.get("name", ""))
        for item in data.get("obstacles", []):
            scene.add_obstacle(item["min"], item["max"],
                               name=item.get("name", ""))
        for frame_id, (x, y, yaw) in data.get("transforms", {}).items():
            scene.set_transform(frame_id, x, y, yaw)
        return scene

    @classmethod
    def from_json(cls, filepath: str) -> "Scene":
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def __repr__(self) -> str:
        return f"Scene(name={self.name!r}, n_obstacles={self.n_obstacles})"
