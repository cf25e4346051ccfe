"""
bench/orchestrator.py — 基准测试调度

BenchmarkOrchestrator.execute(request):
    1. 校验请求中的后端名 (未知名称记录错误后丢弃)
    2. 按注册表名称序遍历后端, can_service 拒绝的跳过
    3. 解析每个后端的算法列表 (支持 ``group[id]`` 限定形式)
    4. 解析重复次数 (至少 1)
    5. 调度矩阵为空 → EmptyMatrixError
    6. 顺序执行 (backend × algorithm × repetition)
    7. 汇总为 BenchmarkReport

用法:
    orch = BenchmarkOrchestrator(registry, world)
    report = orch.execute(request)
"""

from __future__ import annotations

import json
import logging
import socket
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .errors import BackendFault, EmptyMatrixError
from .metrics import MetricsCollector
from .records import (BenchmarkReport, ReportBuilder, ReportMetadata,
                      RunMatrixEntry, TrialFault)
from .request import PlanningRequest
from .runner import TrialRunner
from .sampler import TrajectorySampler

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, RunMatrixEntry], None]


def get_hostname() -> str:
    """主机名; 获取失败返回空串 (报告中写 UNKNOWN)"""
    try:
        return socket.gethostname()
    except OSError:
        return ""


class BenchmarkOrchestrator:
    """Args:
        registry: 只读后端注册表 (迭代顺序即执行顺序)
        world: 共享只读世界模型, 供采样与打分
        progress_callback: ``(done, total, entry)``, 每次 trial 后调用
        hostname: 覆盖主机名 (None → socket.gethostname())
    """

    def __init__(self, registry, world,
                 progress_callback: Optional[ProgressCallback] = None,
                 hostname: Optional[str] = None) -> None:
        self.registry = registry
        self.world = world
        self.progress_callback = progress_callback
        self.hostname = hostname
        self.runner = TrialRunner(MetricsCollector(world),
                                  TrajectorySampler(world))

    # ── 矩阵解析 ────────────────────────────────────────────────

    def resolve_matrix(self, request: PlanningRequest
                       ) -> Tuple[List[RunMatrixEntry], List[str]]:
        """解析请求得到运行矩阵.

        Returns:
            (按注册表顺序排列的矩阵, 至少有一个可测算法的后端名)
        """
        problem = request.problem
        requested = [sel.name for sel in request.planner_interfaces]
        for name in requested:
            if name not in self.registry:
                logger.error("Planning interface '%s' was not found", name)

        default_count = max(1, int(request.default_average_count))
        matrix: List[RunMatrixEntry] = []
        serviced: List[str] = []
        for name in self.registry:
            selection = request.selection(name)
            if requested and selection is None:
                continue
            backend = self.registry[name]

            ok, capability = backend.can_service(problem)
            if not ok:
                logger.warning("Planning interface '%s' is not able to solve "
                               "the specified benchmark problem (%s)",
                               backend.describe(), capability)
                continue

            known = list(backend.list_algorithms())
            if selection is None or not selection.planner_ids:
                planner_ids = known
            else:
                planner_ids = []
                for pid in selection.planner_ids:
                    if matches_planner_id(pid, known, problem.group_name):
                        planner_ids.append(pid)
                    else:
                        logger.error("The planner id '%s' is not known to the "
                                     "planning interface '%s'", pid, name)

            count = default_count
            if selection is not None and selection.average_count is not None:
                count = max(1, int(selection.average_count))

            if not planner_ids:
                logger.error("No planner ids left to test for '%s'", name)
                continue
            serviced.append(name)
            matrix.extend(RunMatrixEntry(backend_name=name, backend=backend,
                                         planner_id=pid, repetitions=count)
                          for pid in planner_ids)
        return matrix, serviced

    # ── 执行 ────────────────────────────────────────────────────

    def execute(self, request: PlanningRequest) -> BenchmarkReport:
        """运行完整矩阵.

        Raises:
            EmptyMatrixError: 没有可测试的后端 / 算法
        """
        matrix, serviced = self.resolve_matrix(request)
        if not matrix:
            logger.error("There are no planning interfaces to benchmark")
            raise EmptyMatrixError("There are no planning interfaces to "
                                   "benchmark")

        builder = ReportBuilder()
        for name in serviced:
            builder.add_serviced_backend(name)
        lines = []
        for name in serviced:
            ids = [e.planner_id for e in matrix if e.backend_name == name]
            lines.append(f"  * {self.registry[name].describe()} "
                         f"[ {' '.join(ids)} ]")
        logger.info("Benchmarking planning interfaces:\n%s", "\n".join(lines))

        total = sum(e.repetitions for e in matrix)
        done = 0
        start_time = datetime.now()
        t0 = time.perf_counter()

        for entry in matrix:
            def _on_trial(rep, record, entry=entry):
                nonlocal done
                done += 1
                if self.progress_callback is not None:
                    self.progress_callback(done, total, entry)
                elif done % 10 == 0 or done == total:
                    logger.info("[%d/%d] %s run %d → %s", done, total,
                                entry.label, rep,
                                "OK" if record.typed().get("solved")
                                else "FAIL")

            try:
                run = self.runner.run(entry.backend, entry.planner_id,
                                      request.problem, entry.repetitions,
                                      backend_name=entry.backend_name,
                                      on_trial=_on_trial)
            except BackendFault as fault:
                logger.error("Backend fault, aborting %s: %s", entry.label,
                             fault)
                builder.add_fault(TrialFault(fault.backend_name,
                                             fault.planner_id,
                                             fault.repetition, fault.message))
                # 故障 trial 之后的重复不再执行, 但仍计入进度
                done += entry.repetitions - len(fault.completed)
                if fault.completed:
                    builder.add_entry(entry.label, fault.completed)
                builder.record_first_solution(entry.backend_name,
                                              fault.first_solution)
                continue

            builder.add_entry(entry.label, run.records)
            builder.record_first_solution(entry.backend_name,
                                          run.first_solution)

        duration = time.perf_counter() - t0
        host = self.hostname if self.hostname is not None else get_hostname()
        metadata = ReportMetadata(
            experiment=self.world.name,
            host=host,
            start_time=start_time,
            problem_payload=json.dumps(request.problem.to_dict(),
                                       sort_keys=True, indent=2),
            allowed_planning_time=request.problem.allowed_planning_time,
            duration=duration,
        )
        report = builder.build(metadata)
        logger.info("Benchmark finished: %d planners, %d runs, %d faults, "
                    "%.3fs", report.n_planners, report.n_runs,
                    len(report.faults), duration)
        return report


def matches_planner_id(planner_id: str, known: List[str],
                       group_name: str) -> bool:
    """planner_id 是否等于某个已知 id, 或其 ``group[id]`` 限定形式"""
    return any(planner_id == k or planner_id == f"{group_name}[{k}]"
               for k in known)
