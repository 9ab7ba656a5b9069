"""HTML, JSON and text reports for finished suite runs."""

from __future__ import annotations

import html
import json
import math
import time
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from siteprobe import __version__
from siteprobe.framework.content import slugify
from siteprobe.framework.results import SuiteRun, TestResult

FRAMEWORK_NAME = f"siteprobe {__version__}"


def categorize_error(error: str | None) -> str:
    """Bucket a failure message: timeout, network, element, validation or other."""
    if not error:
        return "unknown"
    text = error.lower()
    if "timeout" in text or "timed out" in text:
        return "timeout"
    if "network" in text or "net::" in text:
        return "network"
    if "element" in text or "selector" in text:
        return "element"
    if "validation" in text or "expected" in text:
        return "validation"
    return "other"


def percentile(values: list[int], pct: float) -> int:
    """Nearest-rank percentile; 0 for an empty list."""
    if not values:
        return 0
    ordered = sorted(values)
    rank = max(1, math.ceil(pct / 100.0 * len(ordered)))
    return ordered[rank - 1]


def median(values: list[int]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2.0


def calculate_analytics(results: list[TestResult]) -> dict[str, Any]:
    total = len(results)
    passed = sum(1 for r in results if r.passed)
    failed = total - passed
    durations = [r.duration_ms for r in results]
    recent = results[-10:]
    recent_passed = sum(1 for r in recent if r.passed)
    return {
        "total": total,
        "passed": passed,
        "failed": failed,
        "successRate": round(passed / total * 100, 2) if total else 0.0,
        "avgDuration": round(sum(durations) / total) if total else 0,
        "categories": dict(Counter(r.status for r in results)),
        "errorPatterns": dict(Counter(categorize_error(r.error) for r in results if not r.passed)),
        "reliability": round(recent_passed / len(recent) * 100, 1) if recent else 100.0,
    }


def calculate_performance(results: list[TestResult]) -> dict[str, Any]:
    durations = [r.duration_ms for r in results]
    return {
        "fastest": min(durations) if durations else 0,
        "slowest": max(durations) if durations else 0,
        "median": median(durations),
        "percentile95": percentile(durations, 95),
    }


class TestReporter:
    """Writes report files for a suite run into one directory."""

    __test__ = False  # not a pytest class

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def prepare(self, run: SuiteRun) -> dict[str, Any]:
        return {
            "meta": {
                "suiteName": run.suite_name,
                "timestamp": run.timestamp,
                "totalDuration": run.total_duration_ms,
                "framework": FRAMEWORK_NAME,
                "environment": run.environment,
                "browser": run.browser,
                "website": run.website,
            },
            "analytics": calculate_analytics(run.results),
            "performance": calculate_performance(run.results),
            "results": [r.to_dict() for r in run.results],
        }

    def generate_report(self, run: SuiteRun) -> dict[str, Path]:
        """Write HTML, JSON and text summary; returns their paths by format."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        data = self.prepare(run)
        stem = f"{slugify(run.suite_name)}-{int(time.time() * 1000)}"
        paths = {
            "html": self.output_dir / f"{stem}.html",
            "json": self.output_dir / f"{stem}.json",
            "summary": self.output_dir / f"{stem}-summary.txt",
        }
        paths["html"].write_text(self.render_html(data), encoding="utf-8")
        paths["json"].write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        paths["summary"].write_text(self.render_summary(data), encoding="utf-8")
        logger.info("Reports generated in: {}", self.output_dir)
        return paths

    def render_summary(self, data: dict[str, Any]) -> str:
        meta, analytics, perf = data["meta"], data["analytics"], data["performance"]
        lines = [
            f"Test Report - {meta['suiteName']}",
            "=" * 60,
            f"Website:      {meta['website'] or '-'}",
            f"Timestamp:    {meta['timestamp']}",
            f"Duration:     {meta['totalDuration'] / 1000:.1f}s",
            f"Total:        {analytics['total']}",
            f"Passed:       {analytics['passed']}",
            f"Failed:       {analytics['failed']}",
            f"Success rate: {analytics['successRate']}%",
            f"Fastest/slowest/p95: {perf['fastest']}ms / {perf['slowest']}ms / {perf['percentile95']}ms",
            "",
        ]
        for row in data["results"]:
            lines.append(f"[{row['status']}] {row['name']} ({row['duration_ms']}ms)")
            if row.get("error"):
                lines.append(f"    Error: {row['error']}")
        return "\n".join(lines) + "\n"

    def render_html(self, data: dict[str, Any]) -> str:
        meta, analytics, perf = data["meta"], data["analytics"], data["performance"]
        esc = html.escape
        items = []
        for row in data["results"]:
            status = row["status"].lower()
            error = f'<div class="error">{esc(row["error"])}</div>' if row.get("error") else ""
            shot = f'<div class="test-meta">Screenshot: {esc(row["screenshot"])}</div>' if row.get("screenshot") else ""
            items.append(
                f'<div class="test-item test-{status}">'
                f'<div class="test-name">{esc(row["name"])}</div>'
                f'<div class="test-meta"><span class="status-{status}">{esc(row["status"])}</span>'
                f' &middot; {row["duration_ms"]}ms &middot; {esc(row["timestamp"])}</div>{error}{shot}</div>'
            )
        metrics = [
            (analytics["total"], "Total Tests"),
            (analytics["passed"], "Passed"),
            (analytics["failed"], "Failed"),
            (f'{analytics["successRate"]}%', "Success Rate"),
            (f'{analytics["avgDuration"]}ms', "Avg Duration"),
            (f'{perf["percentile95"]}ms', "95th Percentile"),
        ]
        metric_html = "".join(
            f'<div class="metric"><div class="metric-value">{esc(str(value))}</div>'
            f'<div class="metric-label">{label}</div></div>'
            for value, label in metrics
        )
        generated = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Test Report - {esc(meta["suiteName"])}</title>
<style>
body {{ font-family: 'Segoe UI', Tahoma, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }}
.container {{ max-width: 1200px; margin: 0 auto; background: white; padding: 30px; border-radius: 8px; }}
.title {{ color: #2c5aa0; margin: 0; font-weight: 300; }}
.metrics {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(160px, 1fr)); gap: 16px; margin: 24px 0; }}
.metric {{ background: #2c5aa0; color: white; padding: 16px; border-radius: 8px; text-align: center; }}
.metric-value {{ font-size: 2em; font-weight: bold; }}
.test-item {{ border: 1px solid #ddd; border-radius: 6px; padding: 12px; margin: 8px 0; background: #fafafa; }}
.test-passed {{ border-left: 4px solid #28a745; }}
.test-failed {{ border-left: 4px solid #dc3545; }}
.test-name {{ font-weight: bold; }}
.test-meta {{ font-size: 0.9em; color: #666; }}
.status-passed {{ color: #28a745; font-weight: bold; }}
.status-failed {{ color: #dc3545; font-weight: bold; }}
.error {{ background: #f8d7da; color: #721c24; padding: 8px; border-radius: 4px; margin-top: 8px; font-family: monospace; }}
</style>
</head>
<body>
<div class="container">
<h1 class="title">{esc(meta["suiteName"])}</h1>
<p>{esc(meta["website"] or "")} &middot; {esc(meta["browser"])} &middot; {esc(meta["environment"])} &middot; {esc(meta["timestamp"])}</p>
<div class="metrics">{metric_html}</div>
<h2>Test Results</h2>
{"".join(items)}
<p class="test-meta">Generated by {esc(meta["framework"])} on {generated}</p>
</div>
</body>
</html>
"""
