"""
bench/records.py — 基准测试数据模型

TrialRecord     : 单次 trial 的指标表 ("<name> <KIND>" → 字符串值), 只读
RunMatrixEntry  : 调度单元 (backend, planner_id, repetitions)
ReportEntry     : 一个 (backend, planner_id) 的全部 trial + 属性名并集
BenchmarkReport : 最终只读报告
ReportBuilder   : 只追加的构建器, build() 产出 BenchmarkReport
"""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Tuple


class MetricKind(str, enum.Enum):
    """指标值类型; 作为属性名后缀写入报告."""
    BOOLEAN = "BOOLEAN"
    REAL = "REAL"


_LINE_BREAK = re.compile(r"\s*[\r\n]+\s*")


def single_line(text: str) -> str:
    """把换行 (及其两侧空白) 折叠成 ``_``; 报告按行解析, 名字不能跨行."""
    return _LINE_BREAK.sub("_", text)


def metric_key(name: str, kind: MetricKind) -> str:
    """``("total_time", REAL)`` → ``"total_time REAL"``"""
    return f"{name} {kind.value}"


def split_metric_key(key: str) -> Tuple[str, Optional[MetricKind]]:
    """``"total_time REAL"`` → ``("total_time", REAL)``; 无类型后缀时 kind=None"""
    name, _, suffix = key.rpartition(" ")
    try:
        return name, MetricKind(suffix)
    except ValueError:
        return key, None


def format_real(value: float) -> str:
    # repr 是最短的可往返十进制表示, inf / nan 原样保留
    return repr(float(value))


def format_bool(value: bool) -> str:
    return "1" if value else "0"


def parse_value(text: str, kind: Optional[MetricKind]) -> Any:
    """format_real / format_bool 的逆操作; 未知类型原样返回字符串"""
    if kind is MetricKind.BOOLEAN:
        if text not in ("0", "1"):
            raise ValueError(f"not a boolean token: {text!r}")
        return text == "1"
    if kind is MetricKind.REAL:
        return float(text)
    return text


# ═══════════════════════════════════════════════════════════════════════════
# TrialRecord
# ═══════════════════════════════════════════════════════════════════════════

class TrialRecord(Mapping):
    """一次 trial 的指标, 创建后不可变."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping) -> None:
        self._values = MappingProxyType(dict(values))

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def typed(self) -> Dict[str, Any]:
        """属性名 (去掉类型后缀) → bool / float"""
        out = {}
        for key, text in self._values.items():
            name, kind = split_metric_key(key)
            out[name] = parse_value(text, kind)
        return out

    def __repr__(self) -> str:
        return f"TrialRecord({dict(self._values)!r})"


# ═══════════════════════════════════════════════════════════════════════════
# Scheduling / report entities
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RunMatrixEntry:
    """调度单元: 一个后端上的一个算法, 重复 repetitions 次."""
    backend_name: str
    backend: Any = field(compare=False, repr=False)
    planner_id: str = ""
    repetitions: int = 1

    @property
    def label(self) -> str:
        return single_line(f"{self.backend.describe()}_{self.planner_id}")


@dataclass(frozen=True)
class TrialFault:
    """后端在 solve() 中抛出的故障."""
    backend_name: str
    planner_id: str
    repetition: int
    message: str

    def __str__(self) -> str:
        return (f"{self.backend_name}/{self.planner_id} run "
                f"{self.repetition}: {self.message}")


@dataclass(frozen=True)
class ReportEntry:
    """报告中的一个 (backend, planner_id) 块.

    property_names 是所有 records 属性名的并集, 按字典序排列.
    """
    label: str
    records: Tuple[TrialRecord, ...] = ()
    property_names: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "records", tuple(self.records))
        seen = set()
        for rec in self.records:
            seen.update(rec.keys())
        object.__setattr__(self, "property_names", tuple(sorted(seen)))

    @property
    def n_runs(self) -> int:
        return len(self.records)

    def row(self, record: TrialRecord) -> List[str]:
        """按 property_names 顺序取值; 缺失为空串"""
        return [record.get(name, "") for name in self.property_names]


@dataclass(frozen=True)
class ReportMetadata:
    experiment: str
    host: str
    start_time: datetime
    problem_payload: str
    allowed_planning_time: float
    duration: float
    payload_tag: str = "JSON"


@dataclass(frozen=True)
class BenchmarkReport:
    """一次基准运行的最终结果.

    faults / first_solutions / serviced_backends 返回给调用方,
    不写入报告文件.
    """
    metadata: ReportMetadata
    entries: Tuple[ReportEntry, ...] = ()
    faults: Tuple[TrialFault, ...] = ()
    first_solutions: Mapping = field(default_factory=dict)
    serviced_backends: Tuple[str, ...] = ()

    @property
    def n_planners(self) -> int:
        return len(self.entries)

    @property
    def n_runs(self) -> int:
        return sum(e.n_runs for e in self.entries)

    def entry(self, label: str) -> ReportEntry:
        for e in self.entries:
            if e.label == label:
                return e
        raise KeyError(label)


class ReportBuilder:
    """只追加的报告构建器."""

    def __init__(self) -> None:
        self._entries: List[ReportEntry] = []
        self._faults: List[TrialFault] = []
        self._first: Dict[str, Any] = {}
        self._serviced: List[str] = []

    @property
    def serviced_backends(self) -> Tuple[str, ...]:
        return tuple(self._serviced)

    def add_serviced_backend(self, name: str) -> None:
        if name not in self._serviced:
            self._serviced.append(name)

    def add_entry(self, label: str, records) -> ReportEntry:
        entry = ReportEntry(label=label, records=tuple(records))
        self._entries.append(entry)
        return entry

    def add_fault(self, fault: TrialFault) -> None:
        self._faults.append(fault)

    def record_first_solution(self, backend_name: str, result) -> bool:
        """记录该后端第一个成功解; 已有则不覆盖, 返回是否记录"""
        if result is None or backend_name in self._first:
            return False
        self._first[backend_name] = result
        return True

    def build(self, metadata: ReportMetadata) -> BenchmarkReport:
        return BenchmarkReport(
            metadata=metadata,
            entries=tuple(self._entries),
            faults=tuple(self._faults),
            first_solutions=MappingProxyType(dict(self._first)),
            serviced_backends=tuple(self._serviced),
        )
