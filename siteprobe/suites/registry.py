"""Suite registry, run strategies and the code that executes them."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from siteprobe.config.schema import Config
from siteprobe.config.sites import WebsiteConfig, current_website
from siteprobe.framework.results import SuiteSummary, utc_now_iso
from siteprobe.framework.runner import SuiteRunner
from siteprobe.reporting.logger import TestLogger
from siteprobe.reporting.manager import ReportManager
from siteprobe.reporting.reporter import TestReporter
from siteprobe.rpc.client import AutomationClient
from siteprobe.suites.accessibility import AccessibilitySuite
from siteprobe.suites.base import Suite
from siteprobe.suites.content import ContentSuite
from siteprobe.suites.performance import PerformanceSuite
from siteprobe.suites.security import SecuritySuite
from siteprobe.suites.smoke import SmokeSuite
from siteprobe.utils.exceptions import ConfigError, SiteProbeError

SUITES: dict[str, type[Suite]] = {
    cls.name: cls for cls in (SmokeSuite, ContentSuite, PerformanceSuite, AccessibilitySuite, SecuritySuite)
}


@dataclass(frozen=True)
class Strategy:
    name: str
    title: str
    suites: tuple[str, ...]
    description: str


STRATEGIES: dict[str, Strategy] = {
    s.name: s
    for s in (
        Strategy("smoke", "Smoke Tests (Critical Path)", ("smoke",), "Quick validation of critical functionality"),
        Strategy("functional", "Functional Test Suite", ("smoke", "content"), "Business logic and content validation"),
        Strategy(
            "quality", "Quality Assurance Suite", ("performance", "accessibility"),
            "Performance and accessibility validation",
        ),
        Strategy("security", "Security & Compliance Suite", ("security",), "Security and regulatory compliance checks"),
        Strategy(
            "comprehensive", "Comprehensive Test Suite", ("smoke", "content", "performance", "accessibility", "security"),
            "Complete validation across all test categories",
        ),
    )
}


def recommendation(passed: int, total: int) -> str:
    rate = (passed / total * 100) if total else 0.0
    if total and rate == 100:
        return "All tests passed - Ready for deployment"
    if rate >= 80:
        return "Most tests passed - Review failures before deployment"
    if rate >= 60:
        return "Moderate test success - Address failures before deployment"
    return "High failure rate - Do not deploy until issues are resolved"


def get_strategy(name: str) -> Strategy:
    strategy = STRATEGIES.get(name)
    if strategy is None:
        raise ConfigError(f"Unknown strategy: {name}. Available: {', '.join(STRATEGIES)}", key="strategy")
    return strategy


def get_suite(name: str) -> type[Suite]:
    suite = SUITES.get(name)
    if suite is None:
        raise ConfigError(f"Unknown suite: {name}. Available: {', '.join(SUITES)}", key="suite")
    return suite


def client_from_config(config: Config) -> AutomationClient:
    server = config.server
    return AutomationClient(
        server.command or None,
        cwd=server.cwd or None,
        env=server.env or None,
        default_timeout=config.timeouts.rpc_ms / 1000.0,
        handshake_timeout=config.timeouts.handshake_ms / 1000.0,
    )


@dataclass
class SuiteOutcome:
    """Result of running one suite within a strategy."""

    suite: str
    success: bool
    duration_ms: int
    summary: SuiteSummary | None = None
    reports: dict[str, Path] = field(default_factory=dict)
    error: str | None = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "suite": self.suite,
            "success": self.success,
            "duration": self.duration_ms,
            "summary": self.summary.to_dict() if self.summary else None,
            "reports": {fmt: str(path) for fmt, path in self.reports.items()},
            "error": self.error,
            "timestamp": self.timestamp,
        }


async def run_suite(
    name: str,
    config: Config,
    *,
    site: WebsiteConfig | None = None,
    client: AutomationClient | None = None,
    manager: ReportManager | None = None,
) -> SuiteOutcome:
    """Run one suite end to end; failures to even start are reported, not raised."""
    suite_cls = get_suite(name)
    site = site or current_website(config)
    manager = manager or ReportManager(config.paths.reports_path, config.paths.artifacts_path)
    client = client or client_from_config(config)
    runner = SuiteRunner(
        client,
        config,
        logger=TestLogger(config.logging.level, suite=name),
        reporter=TestReporter(manager.report_dir(suite_cls.report_type)),
    )
    started = time.monotonic()
    try:
        summary = await suite_cls(runner, site, config).run()
    except SiteProbeError as exc:
        logger.error("Suite {} aborted: {}", name, exc.message)
        return SuiteOutcome(
            suite=name,
            success=False,
            duration_ms=int((time.monotonic() - started) * 1000),
            summary=runner.summary(),
            error=exc.message,
        )
    finally:
        await client.close()
    return SuiteOutcome(
        suite=name,
        success=summary.total > 0 and summary.failed == 0,
        duration_ms=int((time.monotonic() - started) * 1000),
        summary=summary,
        reports=runner.last_reports,
    )


@dataclass
class StrategyReport:
    strategy: Strategy
    outcomes: list[SuiteOutcome]
    total_duration_ms: int

    @property
    def passed(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def success(self) -> bool:
        return bool(self.outcomes) and self.passed == len(self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        total = len(self.outcomes)
        return {
            "testRun": {
                "strategy": self.strategy.name,
                "timestamp": utc_now_iso(),
                "totalDuration": self.total_duration_ms,
                "totalSuites": total,
                "passedSuites": self.passed,
                "failedSuites": total - self.passed,
                "successRate": round(self.passed / total * 100, 2) if total else 0.0,
            },
            "results": [o.to_dict() for o in self.outcomes],
            "summary": {
                "status": "PASSED" if self.success else "FAILED",
                "recommendation": recommendation(self.passed, total),
            },
        }


async def run_strategy(name: str, config: Config, *, site: WebsiteConfig | None = None) -> StrategyReport:
    """Run every suite of a strategy in order, each with its own server process."""
    strategy = get_strategy(name)
    site = site or current_website(config)
    manager = ReportManager(config.paths.reports_path, config.paths.artifacts_path)
    manager.initialize_directories()
    started = time.monotonic()
    outcomes = []
    for suite_name in strategy.suites:
        logger.info("Starting suite {} ({})", suite_name, strategy.title)
        outcomes.append(await run_suite(suite_name, config, site=site, manager=manager))
    report = StrategyReport(strategy, outcomes, int((time.monotonic() - started) * 1000))
    manager.generate_summary()
    return report
