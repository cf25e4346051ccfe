"""
bench/report.py — 基准测试日志的写出与解析

文件格式 (行序固定)::

    Experiment <name-or-NO_NAME>
    Running on <hostname-or-UNKNOWN>
    Starting at <ISO8601>
    <<<|
    JSON
    <problem payload>
    |>>>
    <allowed_planning_time> seconds per run
    <duration> seconds spent to collect the data
    <N> planners

之后每个 entry::

    <description>_<planner_id>
    0 common properties
    <K> properties for each run
    <property 1>
    ...
    <M> runs
    <v1>; <v2>; ...; <vK>;
    .

用法:
    path = ReportWriter("results").write(report)
    parsed = parse_report(path)
"""

from __future__ import annotations

import contextlib
import io
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from .errors import ReportFormatError, ReportWriteError
from .records import (BenchmarkReport, format_real, parse_value, single_line,
                      split_metric_key)

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "planning_benchmark"
REPORT_SUFFIX = ".log"
FIELD_SEPARATOR = "; "
PAYLOAD_OPEN = "<<<|"
PAYLOAD_CLOSE = "|>>>"
ENTRY_END = "."


# ═══════════════════════════════════════════════════════════════════════════
# Serialization
# ═══════════════════════════════════════════════════════════════════════════

def make_report_filename(host: str, start_time: datetime,
                         prefix: str = DEFAULT_PREFIX) -> str:
    """``<prefix>_<host>_<YYYY-MM-DDTHH-MM-SS>.log``"""
    stamp = start_time.strftime("%Y-%m-%dT%H-%M-%S")
    return f"{prefix}_{host or 'UNKNOWN'}_{stamp}{REPORT_SUFFIX}"


def dump_report(report: BenchmarkReport, out: TextIO) -> None:
    """把报告按固定文法写入文本流."""
    meta = report.metadata
    out.write(f"Experiment {single_line(meta.experiment) or 'NO_NAME'}\n")
    out.write(f"Running on {single_line(meta.host) or 'UNKNOWN'}\n")
    out.write(f"Starting at {meta.start_time.isoformat()}\n")
    out.write(f"{PAYLOAD_OPEN}\n{meta.payload_tag}\n{meta.problem_payload}\n"
              f"{PAYLOAD_CLOSE}\n")
    out.write(f"{format_real(meta.allowed_planning_time)} seconds per run\n")
    out.write(f"{format_real(meta.duration)} seconds spent to collect the "
              f"data\n")
    out.write(f"{report.n_planners} planners\n")

    for entry in report.entries:
        out.write(f"{entry.label}\n")
        # 暂不输出 planner 级公共属性
        out.write("0 common properties\n")
        out.write(f"{len(entry.property_names)} properties for each run\n")
        for name in entry.property_names:
            out.write(f"{name}\n")
        out.write(f"{entry.n_runs} runs\n")
        for record in entry.records:
            out.write("".join(v + FIELD_SEPARATOR for v in entry.row(record)))
            out.write("\n")
        out.write(f"{ENTRY_END}\n")


def format_report(report: BenchmarkReport) -> str:
    buf = io.StringIO()
    dump_report(report, buf)
    return buf.getvalue()


class ReportWriter:
    """把 BenchmarkReport 写成文件.

    先写同目录下的临时文件, 成功后 os.replace 到目标路径; 任何失败都会删除
    临时文件, 不留下半截报告.

    Args:
        output_dir: 相对文件名的根目录
        prefix: 自动生成文件名的前缀
    """

    def __init__(self, output_dir: str | Path = ".",
                 prefix: str = DEFAULT_PREFIX) -> None:
        self.output_dir = Path(output_dir)
        self.prefix = prefix

    def resolve_path(self, report: BenchmarkReport, filename: str = "") -> Path:
        if not filename:
            filename = make_report_filename(report.metadata.host,
                                            report.metadata.start_time,
                                            self.prefix)
        path = Path(filename)
        if not path.is_absolute():
            path = self.output_dir / path
        return path

    def write(self, report: BenchmarkReport, filename: str = "") -> str:
        """写出报告, 返回实际使用的文件路径.

        Raises:
            ReportWriteError: I/O 失败 (目标文件不会被创建)
        """
        path = self.resolve_path(report, filename)
        tmp: Optional[Path] = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                    "w", encoding="utf-8", newline="\n", dir=path.parent,
                    prefix=f".{path.name}.", suffix=".tmp",
                    delete=False) as f:
                tmp = Path(f.name)
                dump_report(report, f)
            # 与 open() 新建文件的权限一致 (umask)
            os.chmod(tmp, 0o666 & ~_current_umask())
            os.replace(tmp, path)
        except OSError as exc:
            _discard(tmp)
            raise ReportWriteError(
                f"cannot write report '{path}': {exc}") from exc
        except BaseException:
            _discard(tmp)
            raise
        logger.info("Results saved to '%s'", path)
        return str(path)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _discard(tmp: Optional[Path]) -> None:
    if tmp is None:
        return
    with contextlib.suppress(OSError):
        tmp.unlink()


# ═══════════════════════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ParsedEntry:
    label: str
    common_properties: List[str] = field(default_factory=list)
    property_names: List[str] = field(default_factory=list)
    runs: List[Dict[str, str]] = field(default_factory=list)

    def typed_runs(self) -> List[Dict[str, Any]]:
        """属性名 (去类型后缀) → bool / float; 空字段不出现"""
        out = []
        for run in self.runs:
            typed = {}
            for key, text in run.items():
                name, kind = split_metric_key(key)
                typed[name] = parse_value(text, kind)
            out.append(typed)
        return out

    def values(self, prop: str) -> List[Any]:
        """某属性 (带或不带类型后缀) 在各 run 中的取值, 缺失的 run 跳过"""
        result = []
        for typed in self.typed_runs():
            name = split_metric_key(prop)[0]
            if name in typed:
                result.append(typed[name])
        return result


@dataclass
class ParsedReport:
    experiment: str
    host: str
    start_time: str
    payload_tag: str
    problem_payload: str
    allowed_planning_time: float
    duration: float
    n_planners: int
    entries: List[ParsedEntry] = field(default_factory=list)

    def entry(self, label: str) -> ParsedEntry:
        for e in self.entries:
            if e.label == label:
                return e
        raise KeyError(label)


class _LineReader:
    def __init__(self, lines: List[str]) -> None:
        self.lines = lines
        self.pos = 0

    @property
    def line_no(self) -> int:
        return self.pos + 1

    def at_end(self) -> bool:
        return self.pos >= len(self.lines)

    def next(self, what: str) -> str:
        if self.at_end():
            raise ReportFormatError(self.line_no,
                                    f"unexpected end of file, expected {what}")
        line = self.lines[self.pos]
        self.pos += 1
        return line

    def prefixed(self, prefix: str) -> str:
        line = self.next(repr(prefix))
        if not line.startswith(prefix):
            raise ReportFormatError(self.pos, f"expected {prefix!r}, "
                                              f"got {line!r}")
        return line[len(prefix):]

    def suffixed(self, suffix: str, convert):
        line = self.next(repr(suffix))
        if not line.endswith(suffix):
            raise ReportFormatError(self.pos, f"expected '<n>{suffix}', "
                                              f"got {line!r}")
        try:
            return convert(line[:-len(suffix)])
        except ValueError as exc:
            raise ReportFormatError(self.pos, str(exc)) from exc


def parse_report_text(text: str) -> ParsedReport:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    rd = _LineReader(lines)

    experiment = rd.prefixed("Experiment ")
    host = rd.prefixed("Running on ")
    start_time = rd.prefixed("Starting at ")
    if rd.next(repr(PAYLOAD_OPEN)) != PAYLOAD_OPEN:
        raise ReportFormatError(rd.pos, f"expected {PAYLOAD_OPEN!r}")
    tag = rd.next("payload tag")
    payload = []
    while True:
        line = rd.next(repr(PAYLOAD_CLOSE))
        if line == PAYLOAD_CLOSE:
            break
        payload.append(line)
    allowed = rd.suffixed(" seconds per run", float)
    duration = rd.suffixed(" seconds spent to collect the data", float)
    n_planners = rd.suffixed(" planners", int)

    entries = []
    while not rd.at_end():
        entry = ParsedEntry(label=rd.next("entry label"))
        n_common = rd.suffixed(" common properties", int)
        entry.common_properties = [rd.next("common property")
                                   for _ in range(n_common)]
        n_props = rd.suffixed(" properties for each run", int)
        entry.property_names = [rd.next("property name")
                                for _ in range(n_props)]
        n_runs = rd.suffixed(" runs", int)
        for _ in range(n_runs):
            line = rd.next("run line")
            fields = line.split(FIELD_SEPARATOR.strip())
            # 每个字段后跟 "; ", 末尾多出一个空串
            fields = [f.strip() for f in fields]
            if len(fields) != n_props + 1 or fields[-1] != "":
                raise ReportFormatError(
                    rd.pos, f"expected {n_props} fields, got {line!r}")
            entry.runs.append({name: value for name, value
                               in zip(entry.property_names, fields)
                               if value != ""})
        if rd.next(repr(ENTRY_END)) != ENTRY_END:
            raise ReportFormatError(rd.pos, f"expected {ENTRY_END!r}")
        entries.append(entry)

    if len(entries) != n_planners:
        logger.warning("header announces %d planners, found %d entries",
                       n_planners, len(entries))
    return ParsedReport(
        experiment=experiment, host=host, start_time=start_time,
        payload_tag=tag, problem_payload="\n".join(payload),
        allowed_planning_time=allowed, duration=duration,
        n_planners=n_planners, entries=entries)


def parse_report(path: str | Path) -> ParsedReport:
    """解析 ReportWriter 写出的报告文件.

    Raises:
        ReportFormatError: 文件不符合报告文法
    """
    with open(path, 'r', encoding='utf-8') as f:
        return parse_report_text(f.read())
