"""Suite runner: launches the browser, times test cases and records results."""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from siteprobe.config.schema import Config
from siteprobe.framework.content import (
    PageInfo,
    parse_js_result,
    parse_page_info,
    parse_text_output,
    slugify,
)
from siteprobe.framework.content import validate_text as check_text
from siteprobe.framework.results import FAILED, PASSED, SuiteRun, SuiteSummary, TestResult
from siteprobe.reporting.logger import TestLogger
from siteprobe.rpc.client import AutomationClient
from siteprobe.utils.exceptions import ContentAssertionError, SiteProbeError

if TYPE_CHECKING:
    from siteprobe.reporting.reporter import TestReporter

TestFn = Callable[[], Awaitable[Any]]

PERFORMANCE_JS = """
(() => {
  const nav = performance.getEntriesByType('navigation')[0];
  if (!nav) return null;
  return {
    loadTime: nav.loadEventEnd - nav.loadEventStart,
    domContentLoaded: nav.domContentLoadedEventEnd - nav.domContentLoadedEventStart,
    totalTime: nav.loadEventEnd - nav.fetchStart,
    networkTime: nav.responseEnd - nav.fetchStart
  };
})()
"""

CLICKABLE_JS = """
(() => {
  const el = document.querySelector(%s);
  return !!(el && !el.disabled && el.offsetParent !== null);
})()
"""


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class SuiteRunner:
    """
    Runs the test cases of one suite against a single browser session.

    Failures are recorded rather than raised (unless a case asks to stop the
    suite), and each failure gets a full-page screenshot when enabled.
    """

    def __init__(
        self,
        client: AutomationClient,
        config: Config | None = None,
        *,
        logger: TestLogger | None = None,
        reporter: TestReporter | None = None,
    ):
        self.client = client
        self.config = config or Config()
        self.logger = logger or TestLogger(self.config.logging.level)
        self.reporter = reporter
        self.results: list[TestResult] = []
        self.suite_name = ""
        self.browser_type = self.config.browser.browser_type
        self.website = self.config.target_website
        self._started: float | None = None
        self.last_reports: dict[str, Path] = {}

    async def initialize(self, suite_name: str, browser_type: str | None = None) -> None:
        """Start a suite and launch its browser."""
        self.suite_name = suite_name
        self.browser_type = browser_type or self.config.browser.browser_type
        self._started = time.monotonic()
        self.logger.suite_start(suite_name)
        try:
            await self.client.launch_browser(self.browser_type, self.config.browser.headless)
        except SiteProbeError as exc:
            self.logger.error(f"Failed to launch browser: {exc.message}")
            raise
        self.logger.success(f"Browser launched: {self.browser_type}")

    async def execute_test(
        self,
        name: str,
        fn: TestFn,
        *,
        timeout_ms: int | None = None,
        stop_on_failure: bool = False,
    ) -> TestResult:
        """Run one test case with a deadline and record its outcome."""
        timeout_ms = timeout_ms or self.config.timeouts.default_ms
        started = time.monotonic()
        self.logger.test_start(name)
        try:
            await asyncio.wait_for(fn(), timeout=timeout_ms / 1000.0)
        except Exception as exc:
            if isinstance(exc, asyncio.TimeoutError):
                message = f"Test timeout after {timeout_ms}ms"
            elif isinstance(exc, SiteProbeError):
                message = exc.message
            else:
                message = str(exc) or type(exc).__name__
            result = TestResult(
                name=name,
                status=FAILED,
                duration_ms=_elapsed_ms(started),
                suite=self.suite_name,
                error=message,
            )
            result.screenshot = await self._failure_screenshot(name)
            self.results.append(result)
            self.logger.test_end(name, FAILED, result.duration_ms)
            self.logger.error(f"{name}: {message}")
            if stop_on_failure:
                raise
            return result
        result = TestResult(name=name, status=PASSED, duration_ms=_elapsed_ms(started), suite=self.suite_name)
        self.results.append(result)
        self.logger.test_end(name, PASSED, result.duration_ms)
        return result

    async def _failure_screenshot(self, name: str) -> str | None:
        if not self.config.logging.screenshots_on_failure:
            return None
        path = (
            self.config.paths.artifacts_path
            / "screenshots"
            / f"failure-{slugify(name)}-{int(time.time() * 1000)}.png"
        )
        try:
            await self.client.take_screenshot(str(path), full_page=True)
        except SiteProbeError as exc:
            self.logger.warn(f"Failed to capture screenshot: {exc.message}")
            return None
        self.logger.info(f"Failure screenshot saved: {path}")
        return str(path)

    async def navigate_to_page(self, url: str, expected_title: str | None = None) -> PageInfo:
        await self.client.navigate_to(url, "load")
        info = parse_page_info((await self.client.get_page_info()).output)
        if expected_title and expected_title.lower() not in info.title.lower():
            raise ContentAssertionError(
                f'Expected page title to contain "{expected_title}" but got "{info.title}"',
                actual=info.title,
            )
        self.logger.info(f"Navigated to: {url}")
        return info

    async def wait_for_element(self, selector: str, state: str = "visible", timeout_ms: int | None = None) -> bool:
        timeout_ms = timeout_ms or self.config.timeouts.default_ms
        try:
            await self.client.wait_for_element(selector, state, timeout_ms)
        except SiteProbeError as exc:
            self.logger.error(f"Element not found: {selector} (state: {state})")
            raise ContentAssertionError(
                f'Element "{selector}" not found in state "{state}" within {timeout_ms}ms', selector
            ) from exc
        return True

    async def click_element(self, selector: str, *, validate_clickable: bool = False) -> None:
        await self.wait_for_element(selector, "visible")
        if validate_clickable:
            result = await self.client.evaluate_javascript(CLICKABLE_JS % json.dumps(selector))
            if not parse_js_result(result.output):
                raise ContentAssertionError(f'Element "{selector}" is not clickable', selector)
        await self.client.click_element(selector)
        self.logger.info(f"Clicked: {selector}")

    async def fill_form(self, fields: dict[str, str]) -> None:
        for selector, value in fields.items():
            await self.wait_for_element(selector, "visible")
            await self.client.fill_input(selector, value)
            self.logger.info(f'Filled "{selector}"')
            # give client-side validation a moment
            await asyncio.sleep(0.2)

    async def validate_text(self, selector: str, expected: str, *, exact: bool = False) -> str:
        result = await self.client.get_text(selector)
        actual = check_text(parse_text_output(result.output, selector), expected, exact=exact, selector=selector)
        self.logger.info(f"Text validation passed: {selector}")
        return actual

    async def measure_page_performance(self) -> dict[str, float]:
        """Navigation timing of the current page; empty when unavailable."""
        result = await self.client.evaluate_javascript(PERFORMANCE_JS)
        timing = parse_js_result(result.output)
        if not isinstance(timing, dict):
            self.logger.warn("Navigation timing unavailable")
            return {}
        self.logger.performance(f"Performance: {json.dumps(timing)}", timing.get("totalTime"))
        return timing

    def summary(self) -> SuiteSummary:
        return SuiteSummary.from_results(self.results)

    def to_run(self) -> SuiteRun:
        return SuiteRun(
            suite_name=self.suite_name,
            results=list(self.results),
            total_duration_ms=_elapsed_ms(self._started) if self._started is not None else 0,
            website=self.website,
            browser=self.browser_type,
            environment=self.config.environment,
        )

    async def cleanup(self) -> dict[str, Path]:
        """Close the browser and write reports; returns report paths by format."""
        try:
            await self.client.close_browser()
            self.logger.success("Browser closed")
        except SiteProbeError as exc:
            self.logger.error(f"Cleanup error: {exc.message}")
        self.logger.suite_end(self.suite_name, self.summary())
        if self.reporter is not None:
            self.last_reports = self.reporter.generate_report(self.to_run())
        return self.last_reports
