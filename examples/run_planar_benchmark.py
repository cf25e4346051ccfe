"""
examples/run_planar_benchmark.py — 平面基座场景基准测试 + 汇总

  1. 读取 planar_config.json / planar_request.json
  2. 运行全部后端, 报告写入 results/
  3. 打印统计表, 绘制 total_time 箱线图

用法:
    python examples/run_planar_benchmark.py [--repeat 5] [--out results]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# ── path setup ──
_ROOT = Path(__file__).resolve().parents[1]
_SRC = _ROOT / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from bench.config import BenchmarkConfig, build_service, setup_logging
from bench.report import parse_report
from bench.request import PlanningRequest
from bench.statistics import format_summary_table, plot_property, summarize

_HERE = Path(__file__).resolve().parent


def main():
    parser = argparse.ArgumentParser(description="平面基座基准测试示例")
    parser.add_argument("--repeat", type=int, default=None,
                        help="覆盖请求中的默认重复次数")
    parser.add_argument("--out", default="results", help="报告目录")
    args = parser.parse_args()

    cfg = BenchmarkConfig.from_json(_HERE / "planar_config.json")
    cfg.output_dir = args.out
    setup_logging(cfg.log_level)

    request = PlanningRequest.from_json(_HERE / "planar_request.json")
    if args.repeat is not None:
        request = PlanningRequest(request.problem, request.planner_interfaces,
                                  default_average_count=args.repeat)

    response = build_service(cfg).compute_benchmark(request)
    print(f"status: {response.status.value}")
    for err in response.errors:
        print(f"  error: {err}")
    if not response.filename:
        return 1

    parsed = parse_report(response.filename)
    print(format_summary_table(summarize(parsed)))
    fig = plot_property(parsed, "total_time REAL",
                        Path(args.out) / "total_time.png")
    print(f"report: {response.filename}")
    print(f"figure: {fig}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
