"""Load-time checks against the configured thresholds."""

from __future__ import annotations

from siteprobe.framework.runner import TestFn
from siteprobe.suites.base import Suite
from siteprobe.utils.exceptions import ContentAssertionError

RESOURCES_JS = """
(() => {
  const entries = performance.getEntriesByType('resource');
  return {
    count: entries.length,
    transferKb: Math.round(entries.reduce((sum, e) => sum + (e.transferSize || 0), 0) / 1024)
  };
})()
"""

TTFB_JS = """
(() => {
  const nav = performance.getEntriesByType('navigation')[0];
  return nav ? nav.responseStart - nav.requestStart : null;
})()
"""


def threshold_violations(timing: dict, limits: dict[str, int]) -> list[str]:
    """Metrics in timing that exceed their limit, formatted for an error message."""
    violations = []
    for metric, limit in limits.items():
        value = timing.get(metric)
        if isinstance(value, (int, float)) and value > limit:
            violations.append(f"{metric} {value:.0f}ms > {limit}ms")
    return violations


class PerformanceSuite(Suite):
    name = "performance"
    title = "Performance Tests"
    report_type = "performance"

    def cases(self) -> list[tuple[str, TestFn]]:
        return [
            ("Page Load Timing", self.test_page_load),
            ("Time To First Byte", self.test_ttfb),
            ("Resource Footprint", self.test_resources),
        ]

    async def test_page_load(self) -> None:
        await self.runner.navigate_to_page(self.site.base_url)
        timing = await self.runner.measure_page_performance()
        if not timing:
            raise ContentAssertionError("Navigation timing unavailable")
        limits = self.config.performance
        violations = threshold_violations(
            timing,
            {
                "totalTime": limits.page_load_time,
                "networkTime": limits.network_time,
                "domContentLoaded": limits.dom_content_loaded,
            },
        )
        if violations:
            raise ContentAssertionError("Performance thresholds exceeded: " + "; ".join(violations))

    async def test_ttfb(self) -> None:
        ttfb = await self.evaluate(TTFB_JS)
        if not isinstance(ttfb, (int, float)):
            raise ContentAssertionError("Navigation timing unavailable")
        self.log.performance("Time to first byte", ttfb)
        if ttfb > self.config.performance.network_time:
            raise ContentAssertionError(
                f"Time to first byte {ttfb:.0f}ms > {self.config.performance.network_time}ms"
            )

    async def test_resources(self) -> None:
        stats = await self.evaluate(RESOURCES_JS)
        if not isinstance(stats, dict):
            raise ContentAssertionError("Resource timing unavailable")
        self.log.performance(f"{stats.get('count', 0)} resources, {stats.get('transferKb', 0)} KB transferred")
