"""
bench/runner.py — 单个 (backend, planner_id) 的重复 trial 执行

TrialRunner.run() 对一个调度单元顺序执行 repetitions 次:
计时 solve() → 采样每段轨迹 → MetricsCollector 打分.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .errors import BackendFault
from .metrics import MetricsCollector, SampledSegment
from .records import TrialRecord
from .sampler import TrajectorySampler

logger = logging.getLogger(__name__)


@dataclass
class EntryRun:
    """一个调度单元的执行结果."""
    records: List[TrialRecord] = field(default_factory=list)
    first_solution: Any = None   # 第一个成功的 DetailedResult

    @property
    def n_solved(self) -> int:
        return sum(1 for r in self.records if r.typed().get("solved"))


class TrialRunner:
    """Args:
        collector: MetricsCollector
        sampler: TrajectorySampler
        clock: 计时函数, 默认 ``time.perf_counter``
    """

    def __init__(self, collector: MetricsCollector,
                 sampler: TrajectorySampler,
                 clock: Callable[[], float] = time.perf_counter) -> None:
        self.collector = collector
        self.sampler = sampler
        self.clock = clock

    def run(self, backend, planner_id: str, request, repetitions: int,
            backend_name: Optional[str] = None,
            on_trial: Optional[Callable[[int, TrialRecord], None]] = None
            ) -> EntryRun:
        """顺序执行 repetitions 次 trial.

        Raises:
            BackendFault: solve() 抛出异常; 携带此前已完成的 records
        """
        name = backend_name or backend.describe()
        out = EntryRun()
        for rep in range(repetitions):
            try:
                t0 = self.clock()
                solved, result = backend.solve(request, planner_id)
                total_time = self.clock() - t0
                segments = self._sample(result) if solved else []
                record = self.collector.collect(segments, bool(solved),
                                                total_time)
            except Exception as exc:
                raise BackendFault(name, planner_id, rep,
                                   f"{type(exc).__name__}: {exc}",
                                   completed=out.records,
                                   first_solution=out.first_solution) from exc

            out.records.append(record)
            if solved and out.first_solution is None:
                out.first_solution = result
            if on_trial is not None:
                on_trial(rep, record)
        return out

    def _sample(self, result) -> List[SampledSegment]:
        return [
            SampledSegment(description=seg.description,
                           waypoints=self.sampler.sample(result, j),
                           processing_time=float(seg.processing_time))
            for j, seg in enumerate(result.segments)
        ]
