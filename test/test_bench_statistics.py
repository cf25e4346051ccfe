"""
Tests for bench/statistics.py — per-entry summaries and plots.
"""

import pytest

from bench.report import parse_report_text
from bench.statistics import format_summary_table, plot_property, summarize

REPORT = """\
Experiment box_room
Running on testhost
Starting at 2026-01-02T03:04:05
<<<|
JSON
{}
|>>>
1.0 seconds per run
3.0 seconds spent to collect the data
2 planners
A_alg1
0 common properties
3 properties for each run
path_plan_clearance REAL
solved BOOLEAN
total_time REAL
4 runs
1.0; 1; 0.1;
inf; 1; 0.3;
; 0; 0.2;
3.0; 1; 0.4;
.
B_y1
0 common properties
2 properties for each run
solved BOOLEAN
total_time REAL
2 runs
0; 1.0;
0; 3.0;
.
"""


@pytest.fixture()
def parsed():
    return parse_report_text(REPORT)


class TestSummarize:
    def test_real_property(self, parsed):
        stats = summarize(parsed)["A_alg1"]["total_time"]
        assert stats["n"] == 4
        assert stats["mean"] == pytest.approx(0.25)
        assert stats["median"] == pytest.approx(0.25)
        assert stats["min"] == pytest.approx(0.1)
        assert stats["max"] == pytest.approx(0.4)

    def test_boolean_rate(self, parsed):
        summary = summarize(parsed)
        assert summary["A_alg1"]["solved"]["rate"] == pytest.approx(0.75)
        assert summary["B_y1"]["solved"]["rate"] == 0.0

    def test_missing_values_skipped_and_inf_excluded_from_mean(self, parsed):
        stats = summarize(parsed)["A_alg1"]["path_plan_clearance"]
        assert stats["n"] == 3
        assert stats["mean"] == pytest.approx(2.0)
        assert stats["max"] == float("inf")

    def test_property_absent_from_entry(self, parsed):
        assert "path_plan_clearance" not in summarize(parsed)["B_y1"]

    def test_table(self, parsed):
        table = format_summary_table(summarize(parsed),
                                     properties=["total_time"])
        lines = table.splitlines()
        assert lines[0].split() == ["planner", "property", "n", "mean",
                                    "std", "median", "min", "max"]
        assert len(lines) == 4
        assert lines[2].split()[:3] == ["A_alg1", "total_time", "4"]


class TestPlot:
    def test_writes_png(self, parsed, tmp_path):
        out = plot_property(parsed, "total_time REAL", tmp_path / "t.png")
        assert out.exists()
        assert out.stat().st_size > 0

    def test_unknown_property(self, parsed, tmp_path):
        with pytest.raises(KeyError):
            plot_property(parsed, "nope REAL", tmp_path / "t.png")
