"""
bench/cli.py — 命令行入口

用法:
    # 列出后端及其算法
    planning-bench query --config examples/planar_config.json

    # 运行基准, 打印报告路径 (失败退出码 1)
    planning-bench run --config examples/planar_config.json \\
        --request examples/planar_request.json --output-dir results

    # 汇总已有报告, 可选绘制某属性的箱线图
    planning-bench stats results/planning_benchmark_host_....log \\
        --plot total_time --out total_time.png
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .config import BenchmarkConfig, build_service, setup_logging
from .errors import BenchmarkError, ConfigError
from .report import parse_report
from .request import PlanningRequest
from .service import BenchmarkStatus
from .statistics import format_summary_table, plot_property, summarize


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="planning-bench",
        description="运动规划后端基准测试")
    parser.add_argument("--log-level", default=None,
                        help="覆盖配置中的日志级别 (DEBUG/INFO/WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_query = sub.add_parser("query", help="列出已加载的后端及其算法")
    p_query.add_argument("--config", required=True, help="运行配置 JSON")

    p_run = sub.add_parser("run", help="运行基准测试并写出报告")
    p_run.add_argument("--config", required=True, help="运行配置 JSON")
    p_run.add_argument("--request", required=True, help="基准请求 JSON")
    p_run.add_argument("--output-dir", default=None,
                       help="报告目录 (覆盖配置)")
    p_run.add_argument("--filename", default=None,
                       help="报告文件名 (覆盖请求)")

    p_stats = sub.add_parser("stats", help="汇总报告文件")
    p_stats.add_argument("report", help="报告文件路径")
    p_stats.add_argument("--plot", default=None, metavar="PROPERTY",
                         help="绘制该属性的箱线图")
    p_stats.add_argument("--out", default=None,
                         help="图像输出路径 (默认 <PROPERTY>.png)")
    return parser


def _load_config(path: str, log_level: Optional[str]) -> BenchmarkConfig:
    cfg = BenchmarkConfig.from_json(path)
    setup_logging(log_level or cfg.log_level)
    return cfg


def _cmd_query(args) -> int:
    cfg = _load_config(args.config, args.log_level)
    service = build_service(cfg)
    for desc in service.query_interfaces():
        print(f"{desc.name}: {' '.join(desc.planner_ids)}")
    return 0


def _cmd_run(args) -> int:
    cfg = _load_config(args.config, args.log_level)
    if args.output_dir is not None:
        cfg.output_dir = args.output_dir
    request = PlanningRequest.from_json(args.request)
    if args.filename is not None:
        request = PlanningRequest(
            problem=request.problem,
            planner_interfaces=request.planner_interfaces,
            default_average_count=request.default_average_count,
            filename=args.filename)

    response = build_service(cfg).compute_benchmark(request)
    for err in response.errors:
        print(f"ERROR: {err}", file=sys.stderr)
    if response.status is BenchmarkStatus.FAILURE:
        return 1
    print(response.filename)
    return 0


def _cmd_stats(args) -> int:
    setup_logging(args.log_level or "WARNING")
    parsed = parse_report(args.report)
    print(f"Experiment {parsed.experiment} on {parsed.host} "
          f"({parsed.n_planners} planners)")
    print(format_summary_table(summarize(parsed)))
    if args.plot:
        out = args.out or f"{args.plot.split(' ')[0]}.png"
        print(plot_property(parsed, args.plot, out))
    return 0


_COMMANDS = {
    "query": _cmd_query,
    "run": _cmd_run,
    "stats": _cmd_stats,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        return _COMMANDS[args.command](args)
    except (BenchmarkError, ConfigError, OSError, KeyError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
