"""
bench — 运动规划后端基准测试核心

- request: PlanningRequest (后端选择 + 重复次数)
- orchestrator: 调度矩阵解析与顺序执行
- runner / sampler / metrics: 单次 trial 的计时、采样与打分
- records / report: 只读报告模型, 日志文件的写出与解析
- statistics: 报告统计与绘图
- service / config / cli: 装配与入口
"""

from .errors import (BackendFault, BenchmarkError, ConfigError,
                     EmptyMatrixError, ReportFormatError, ReportWriteError)
from .records import (BenchmarkReport, MetricKind, ReportBuilder, ReportEntry,
                      ReportMetadata, RunMatrixEntry, TrialFault, TrialRecord)
from .request import PlannerSelection, PlanningRequest
from .sampler import TrajectorySampler
from .metrics import MetricsCollector, SampledSegment
from .runner import EntryRun, TrialRunner
from .registry import BackendRegistry
from .orchestrator import BenchmarkOrchestrator
from .report import ParsedReport, ReportWriter, parse_report
from .service import (BenchmarkResponse, BenchmarkService, BenchmarkStatus,
                      PlannerInterfaceDescription)
from .config import BenchmarkConfig, build_service

__all__ = [
    "BenchmarkError",
    "EmptyMatrixError",
    "BackendFault",
    "ReportWriteError",
    "ReportFormatError",
    "ConfigError",
    "MetricKind",
    "TrialRecord",
    "RunMatrixEntry",
    "TrialFault",
    "ReportEntry",
    "ReportMetadata",
    "BenchmarkReport",
    "ReportBuilder",
    "PlannerSelection",
    "PlanningRequest",
    "TrajectorySampler",
    "MetricsCollector",
    "SampledSegment",
    "EntryRun",
    "TrialRunner",
    "BackendRegistry",
    "BenchmarkOrchestrator",
    "ParsedReport",
    "ReportWriter",
    "parse_report",
    "BenchmarkResponse",
    "BenchmarkService",
    "BenchmarkStatus",
    "PlannerInterfaceDescription",
    "BenchmarkConfig",
    "build_service",
]
