"""
bench/statistics.py — 报告统计汇总

- 每个 entry × 属性的 n / mean / std / median / min / max
- 文本汇总表
- Matplotlib 箱线图

用法:
    parsed = parse_report("planning_benchmark_host_2026-01-01T10-00-00.log")
    print(format_summary_table(summarize(parsed)))
    plot_property(parsed, "total_time", "total_time.png")
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from .records import MetricKind, split_metric_key
from .report import ParsedReport

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = ("n", "mean", "std", "median", "min", "max")


def _stats(values: Sequence[float]) -> Dict[str, float]:
    arr = np.asarray(values, dtype=np.float64)
    # inf (无障碍物场景的 clearance) 参与 min/max, 但不参与均值
    finite = arr[np.isfinite(arr)]
    if finite.size == 0:
        finite = arr
    return {
        "n": int(arr.size),
        "mean": float(np.mean(finite)),
        "std": float(np.std(finite)),
        "median": float(np.median(arr)),
        "min": float(np.min(arr)),
        "max": float(np.max(arr)),
    }


def summarize(report: ParsedReport
              ) -> Dict[str, Dict[str, Dict[str, float]]]:
    """label → 属性名 (去类型后缀) → 统计量.

    BOOLEAN 属性按 0/1 统计, mean 即成功率. 某个 entry 中从未出现的
    属性不会出现在它的结果里.
    """
    out: Dict[str, Dict[str, Dict[str, float]]] = {}
    for entry in report.entries:
        per_prop: Dict[str, Dict[str, float]] = {}
        for key in entry.property_names:
            name, kind = split_metric_key(key)
            if kind is None:
                continue
            values = [float(v) for v in entry.values(key)]
            if not values:
                continue
            stats = _stats(values)
            if kind is MetricKind.BOOLEAN:
                stats["rate"] = stats["mean"]
            per_prop[name] = stats
        out[entry.label] = per_prop
    return out


def _fmt(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isinf(value) or math.isnan(value):
        return str(value)
    return f"{value:.4g}"


def format_summary_table(summary: Dict[str, Dict[str, Dict[str, float]]],
                         properties: Optional[Sequence[str]] = None,
                         columns: Sequence[str] = DEFAULT_COLUMNS) -> str:
    """对齐的纯文本表: 每行一个 (entry, 属性)."""
    header = ["planner", "property"] + list(columns)
    rows: List[List[str]] = []
    for label, per_prop in summary.items():
        for name, stats in sorted(per_prop.items()):
            if properties is not None and name not in properties:
                continue
            rows.append([label, name] + [_fmt(stats[c]) for c in columns])

    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    def _line(cells):
        return "  ".join(c.ljust(w) for c, w in zip(cells, widths)).rstrip()

    lines = [_line(header), _line(["-" * w for w in widths])]
    lines.extend(_line(r) for r in rows)
    return "\n".join(lines)


# ═══════════════════════════════════════════════════════════════════════════
# Figure generation (matplotlib)
# ═══════════════════════════════════════════════════════════════════════════

def plot_property(report: ParsedReport, prop: str,
                  output: str | Path) -> Path:
    """按 entry 绘制某属性的箱线图并保存.

    Raises:
        KeyError: 没有任何 entry 含该属性
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    labels, data = [], []
    for entry in report.entries:
        vals = [float(v) for v in entry.values(prop)]
        vals = [v for v in vals if math.isfinite(v)]
        if vals:
            labels.append(entry.label)
            data.append(vals)
    if not data:
        raise KeyError(f"no entry reports property '{prop}'")

    fig, ax = plt.subplots(1, 1, figsize=(max(6, 1.5 * len(labels)), 5))
    ax.boxplot(data)
    ax.set_xticks(range(1, len(labels) + 1))
    ax.set_xticklabels(labels, rotation=30, ha="right")
    ax.set_ylabel(split_metric_key(prop)[0].replace("_", " "))
    ax.set_title(f"{report.experiment}: {split_metric_key(prop)[0]}")
    ax.grid(True, alpha=0.3)

    out = Path(output)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info("Saved figure → %s", out)
    return out
