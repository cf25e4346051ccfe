"""
Tests for bench/service.py — status mapping around orchestrator + writer.
"""

import os

import pytest

import bench.report as report_mod
from bench.registry import BackendRegistry
from bench.report import ReportWriter, parse_report
from bench.request import PlannerSelection, PlanningRequest
from bench.service import BenchmarkService, BenchmarkStatus


@pytest.fixture()
def make_service(planar_world, tmp_path):
    def _make(backends):
        return BenchmarkService(BackendRegistry(backends), planar_world,
                                writer=ReportWriter(tmp_path),
                                hostname="testhost")
    return _make


class TestQueryInterfaces:
    def test_sorted_with_algorithms(self, make_service, scripted_backend):
        service = make_service({"b": scripted_backend("b", ["y1"]),
                                "a": scripted_backend("a", ["x1", "x2"])})
        assert [(d.name, d.planner_ids)
                for d in service.query_interfaces()] == [
            ("a", ["x1", "x2"]), ("b", ["y1"])]


class TestComputeBenchmark:
    def test_success_writes_report(self, make_service, scripted_backend,
                                   problem, tmp_path):
        service = make_service({"A": scripted_backend("A")})
        req = PlanningRequest(problem, (PlannerSelection("A", ("alg1",
                                                               "nope")),),
                              default_average_count=2, filename="out.log")
        resp = service.compute_benchmark(req)

        assert resp.status is BenchmarkStatus.SUCCESS
        assert resp.ok
        assert resp.filename == str(tmp_path / "out.log")
        assert [(d.name, d.planner_ids) for d in resp.planner_interfaces] == [
            ("A", ["alg1"])]
        assert set(resp.responses) == {"A"}
        assert resp.errors == []
        parsed = parse_report(resp.filename)
        assert parsed.entry("A_alg1").runs and parsed.n_planners == 1

    def test_unknown_backend_fails_without_file(self, make_service,
                                                scripted_backend, problem,
                                                tmp_path):
        service = make_service({"A": scripted_backend("A")})
        resp = service.compute_benchmark(
            PlanningRequest(problem, (PlannerSelection("B"),)))
        assert resp.status is BenchmarkStatus.FAILURE
        assert not resp.ok
        assert resp.filename == ""
        assert resp.errors
        assert os.listdir(tmp_path) == []

    def test_fault_is_partial_failure(self, make_service, scripted_backend,
                                      problem):
        service = make_service({"A": scripted_backend("A", fail_at=0)})
        resp = service.compute_benchmark(PlanningRequest(problem))
        assert resp.status is BenchmarkStatus.PARTIAL_FAILURE
        assert resp.filename
        assert len(resp.errors) == 1
        assert "boom" in resp.errors[0]

    def test_write_failure(self, make_service, scripted_backend, problem,
                           tmp_path, monkeypatch):
        def _fail(src, dst):
            raise OSError("read-only")
        monkeypatch.setattr(report_mod.os, "replace", _fail)
        service = make_service({"A": scripted_backend("A")})
        resp = service.compute_benchmark(PlanningRequest(problem))
        assert resp.status is BenchmarkStatus.FAILURE
        assert "read-only" in resp.errors[0]
        assert os.listdir(tmp_path) == []
