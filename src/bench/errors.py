"""
bench/errors.py — 基准测试核心的异常层次

BenchmarkError 及其子类表示整次运行级别的失败; ConfigError 表示配置或
请求文件不合法.
"""

from __future__ import annotations

from typing import Sequence


class BenchmarkError(RuntimeError):
    """运行级失败的基类"""


class EmptyMatrixError(BenchmarkError):
    """没有可测试的后端 / 算法; 不生成报告"""


class BackendFault(BenchmarkError):
    """后端在 solve() 中抛出异常 (与"未解出"不同).

    携带故障之前已完成的 trial 记录及其中的首个解, 调度器据此保留这些结果.
    """

    def __init__(self, backend_name: str, planner_id: str, repetition: int,
                 message: str, completed: Sequence = (),
                 first_solution=None):
        super().__init__(f"{backend_name}/{planner_id} run {repetition}: "
                         f"{message}")
        self.backend_name = backend_name
        self.planner_id = planner_id
        self.repetition = repetition
        self.message = message
        self.completed = tuple(completed)
        self.first_solution = first_solution


class ReportWriteError(BenchmarkError):
    """报告文件写入失败; 磁盘上不留任何文件"""


class ReportFormatError(BenchmarkError):
    """报告文件不符合基准日志文法; line_no 为出错行号 (从 1 开始)"""

    def __init__(self, line_no: int, message: str):
        super().__init__(f"line {line_no}: {message}")
        self.line_no = line_no


class ConfigError(ValueError):
    """基准配置或请求文件不合法"""
