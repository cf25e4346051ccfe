"""
bench/service.py — 基准测试服务入口

BenchmarkService 把 orchestrator + writer 封装成两个调用:

- query_interfaces()   : 列出已加载后端及其算法
- compute_benchmark()  : 运行基准并写出报告, 返回 BenchmarkResponse

异常在这里转换为状态码; 调用方不需要捕获 BenchmarkError.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import EmptyMatrixError, ReportWriteError
from .orchestrator import (BenchmarkOrchestrator, ProgressCallback,
                           matches_planner_id)
from .report import ReportWriter
from .request import PlanningRequest

logger = logging.getLogger(__name__)


class BenchmarkStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"    # 报告已写出, 但有后端故障
    FAILURE = "FAILURE"                    # 没有报告文件


@dataclass
class PlannerInterfaceDescription:
    name: str
    planner_ids: List[str] = field(default_factory=list)


@dataclass
class BenchmarkResponse:
    """compute_benchmark 的结果.

    Attributes:
        status: 运行状态
        filename: 报告路径 (FAILURE 时为空串)
        planner_interfaces: 实际参与测试的后端
        responses: 后端名 → 第一个成功的 DetailedResult
        errors: 故障 / 失败原因
    """
    status: BenchmarkStatus
    filename: str = ""
    planner_interfaces: List[PlannerInterfaceDescription] = field(
        default_factory=list)
    responses: Dict[str, object] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is not BenchmarkStatus.FAILURE


class BenchmarkService:
    """Args:
        registry: BackendRegistry
        world: 共享世界模型
        writer: ReportWriter (None → 当前目录, 默认前缀)
        progress_callback: 透传给 orchestrator
        hostname: 透传给 orchestrator
    """

    def __init__(self, registry, world,
                 writer: Optional[ReportWriter] = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 hostname: Optional[str] = None) -> None:
        self.registry = registry
        self.world = world
        self.writer = writer or ReportWriter()
        self.orchestrator = BenchmarkOrchestrator(
            registry, world, progress_callback=progress_callback,
            hostname=hostname)

    def query_interfaces(self) -> List[PlannerInterfaceDescription]:
        return [PlannerInterfaceDescription(name, list(b.list_algorithms()))
                for name, b in self.registry.items()]

    def compute_benchmark(self, request: PlanningRequest) -> BenchmarkResponse:
        try:
            report = self.orchestrator.execute(request)
        except EmptyMatrixError as exc:
            return BenchmarkResponse(BenchmarkStatus.FAILURE,
                                     errors=[str(exc)])

        try:
            filename = self.writer.write(report, request.filename)
        except ReportWriteError as exc:
            logger.error("%s", exc)
            return BenchmarkResponse(BenchmarkStatus.FAILURE,
                                     errors=[str(exc)])

        interfaces = []
        group = request.problem.group_name
        for name in report.serviced_backends:
            known = list(self.registry[name].list_algorithms())
            selection = request.selection(name)
            if selection is not None and selection.planner_ids:
                ids = [pid for pid in selection.planner_ids
                       if matches_planner_id(pid, known, group)]
            else:
                ids = known
            interfaces.append(PlannerInterfaceDescription(name, ids))

        errors = [str(f) for f in report.faults]
        status = (BenchmarkStatus.PARTIAL_FAILURE if errors
                  else BenchmarkStatus.SUCCESS)
        return BenchmarkResponse(
            status=status,
            filename=filename,
            planner_interfaces=interfaces,
            responses=dict(report.first_solutions),
            errors=errors,
        )
