"""
bench/config.py - 基准测试运行配置

JSON 结构::

    {
        "output_dir": "results",
        "report_prefix": "planning_benchmark",
        "log_level": "INFO",
        "world": {"robot": {...}, "scene": {...}, "safety_margin": 0.0},
        "backends": {"rrt_family": {"type": "RRT", "step_size": 0.3}}
    }

build_service(cfg) 完成环境侧的装配: 世界模型 → 后端 → 注册表 → 服务.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields as dc_fields
from pathlib import Path
from typing import Any, Dict, Optional

from baselines import create_backends
from world import load_world

from .errors import ConfigError
from .registry import BackendRegistry
from .report import DEFAULT_PREFIX, ReportWriter
from .service import BenchmarkService

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"


@dataclass
class BenchmarkConfig:
    output_dir: str = "."
    report_prefix: str = DEFAULT_PREFIX
    log_level: str = "INFO"
    world: Dict[str, Any] = field(default_factory=dict)
    backends: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in dc_fields(self)}

    def to_json(self, filepath: str | Path) -> str:
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        return str(filepath)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BenchmarkConfig':
        valid_fields = {f.name for f in dc_fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    @classmethod
    def from_json(cls, filepath: str | Path) -> 'BenchmarkConfig':
        filepath = Path(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format=LOG_FORMAT, datefmt=LOG_DATEFMT)


def build_service(cfg: BenchmarkConfig,
                  hostname: Optional[str] = None) -> BenchmarkService:
    """按配置装配 BenchmarkService.

    Raises:
        ConfigError: 世界模型缺失或无法解析
    """
    if not cfg.world:
        raise ConfigError("config has no 'world' section")
    try:
        world = load_world(cfg.world)
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"invalid world config: {exc}") from exc

    registry = BackendRegistry(create_backends(world, cfg.backends or None))
    writer = ReportWriter(cfg.output_dir, prefix=cfg.report_prefix)
    return BenchmarkService(registry, world, writer=writer, hostname=hostname)
