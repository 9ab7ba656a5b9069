import json
import os
import time

from siteprobe.framework.results import FAILED, PASSED, SuiteRun, TestResult
from siteprobe.reporting.logger import TestLogger
from siteprobe.reporting.manager import ReportManager
from siteprobe.reporting.reporter import (
    TestReporter,
    calculate_analytics,
    calculate_performance,
    categorize_error,
    median,
    percentile,
)


def _result(name, status=PASSED, duration=100, error=None):
    return TestResult(name=name, status=status, duration_ms=duration, suite="Smoke", error=error)


def test_error_categories():
    assert categorize_error("Tool call timeout: get-text (no response after 30.0s)") == "timeout"
    assert categorize_error("net::ERR_NAME_NOT_RESOLVED") == "network"
    assert categorize_error('Element "#x" not found') == "element"
    assert categorize_error("Expected text to contain") == "validation"
    assert categorize_error("weird") == "other"
    assert categorize_error(None) == "unknown"


def test_percentile_and_median():
    values = [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
    assert percentile(values, 95) == 100
    assert percentile(values, 50) == 50
    assert percentile([], 95) == 0
    assert median([3, 1, 2]) == 2.0
    assert median([4, 1, 2, 3]) == 2.5


def test_analytics_and_performance():
    results = [
        _result("a", duration=100),
        _result("b", FAILED, 300, "Test timeout after 50ms"),
        _result("c", duration=200),
    ]
    analytics = calculate_analytics(results)
    assert analytics["total"] == 3
    assert analytics["passed"] == 2
    assert analytics["successRate"] == 66.67
    assert analytics["avgDuration"] == 200
    assert analytics["errorPatterns"] == {"timeout": 1}
    assert analytics["reliability"] == 66.7
    perf = calculate_performance(results)
    assert (perf["fastest"], perf["slowest"], perf["median"]) == (100, 300, 200.0)


def test_generate_report_writes_all_formats(tmp_path):
    run = SuiteRun(
        suite_name="Smoke <Suite>",
        results=[_result("<script>alert(1)</script>"), _result("broken", FAILED, error="Expected x & y")],
        total_duration_ms=1234,
        website="caliber",
    )
    paths = TestReporter(tmp_path).generate_report(run)
    assert set(paths) == {"html", "json", "summary"}
    assert all(path.exists() for path in paths.values())

    html = paths["html"].read_text()
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html
    assert "Expected x &amp; y" in html

    data = json.loads(paths["json"].read_text())
    assert data["meta"]["suiteName"] == "Smoke <Suite>"
    assert data["analytics"]["failed"] == 1
    assert len(data["results"]) == 2

    summary = paths["summary"].read_text()
    assert "[FAILED] broken" in summary
    assert "Error: Expected x & y" in summary


def test_report_manager_layout_and_paths(tmp_path):
    manager = ReportManager(tmp_path / "reports")
    created = manager.initialize_directories()
    assert (tmp_path / "reports" / "e2e" / "smoke").is_dir()
    assert (tmp_path / "reports" / "artifacts" / "screenshots").is_dir()
    assert created
    assert manager.initialize_directories() == []
    path = manager.get_report_path("e2e/smoke", "critical", "json")
    assert path.parent == tmp_path / "reports" / "e2e" / "smoke"
    assert path.name.startswith("e2e-smoke-critical-") and path.suffix == ".json"
    assert manager.get_artifact_path("screenshots", "home").suffix == ".png"


def test_report_manager_cleans_by_retention(tmp_path):
    manager = ReportManager(tmp_path / "reports")
    manager.initialize_directories()
    old = tmp_path / "reports" / "e2e" / "smoke" / "old.html"
    fresh = tmp_path / "reports" / "e2e" / "smoke" / "fresh.html"
    shot = tmp_path / "reports" / "artifacts" / "screenshots" / "s.png"
    for path in (old, fresh, shot):
        path.write_text("x")
    twenty_days_ago = time.time() - 20 * 86400
    os.utime(old, (twenty_days_ago - 20 * 86400, twenty_days_ago - 20 * 86400))
    os.utime(shot, (twenty_days_ago, twenty_days_ago))

    removed = manager.clean_old_reports()
    assert set(removed) == {old, shot}
    assert fresh.exists()


def test_report_manager_summary(tmp_path):
    manager = ReportManager(tmp_path / "reports")
    manager.initialize_directories()
    (tmp_path / "reports" / "e2e" / "smoke" / "a.html").write_text("abc")
    (tmp_path / "reports" / "security" / "b.json").write_text("{}")
    (tmp_path / "reports" / "security" / "notes.md").write_text("ignored")
    (tmp_path / "reports" / "artifacts" / "screenshots" / "s.png").write_text("png")

    summary = manager.generate_summary()
    assert summary["reports"]["e2e"] == 1
    assert summary["reports"]["security"] == 1
    assert summary["artifacts"]["screenshots"] == 1
    assert summary["totalSize"] >= 3 + 2 + 7 + 3
    on_disk = json.loads((tmp_path / "reports" / "summary.json").read_text())
    assert on_disk["reports"] == summary["reports"]


def test_test_logger_filters_by_level_and_exports(tmp_path):
    log = TestLogger("warn", suite="Smoke")
    log.info("hidden")
    log.warn("shown")
    log.error("also shown")
    log.performance("slow page", 1234.4)
    assert [entry.message for entry in log.history] == ["shown", "also shown"]

    verbose = TestLogger("debug")
    verbose.performance("Page load", 1234.4)
    verbose.security("https ok")
    assert [(e.category, e.message) for e in verbose.history] == [
        ("performance", "Page load (1234ms)"),
        ("security", "https ok"),
    ]

    path = verbose.export_logs(tmp_path / "logs" / "run.json")
    data = json.loads(path.read_text())
    assert [entry["message"] for entry in data["logs"]][:2] == ["Page load (1234ms)", "https ok"]
    verbose.clear_history()
    assert verbose.history == []
