"""Result records produced by suite runs."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

PASSED = "PASSED"
FAILED = "FAILED"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class TestResult:
    """Outcome of one test case."""

    __test__ = False  # not a pytest class

    name: str
    status: str
    duration_ms: int
    suite: str
    timestamp: str = field(default_factory=utc_now_iso)
    error: str | None = None
    screenshot: str | None = None

    @property
    def passed(self) -> bool:
        return self.status == PASSED

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SuiteSummary:
    total: int
    passed: int
    failed: int

    @property
    def success_rate(self) -> float:
        return (self.passed / self.total * 100.0) if self.total else 0.0

    @classmethod
    def from_results(cls, results: list[TestResult]) -> "SuiteSummary":
        passed = sum(1 for r in results if r.passed)
        return cls(total=len(results), passed=passed, failed=len(results) - passed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "successRate": round(self.success_rate, 2),
        }


@dataclass(slots=True)
class SuiteRun:
    """Everything a reporter needs about one finished suite."""

    suite_name: str
    results: list[TestResult]
    total_duration_ms: int
    website: str = ""
    browser: str = "chromium"
    environment: str = "production"
    timestamp: str = field(default_factory=utc_now_iso)

    @property
    def summary(self) -> SuiteSummary:
        return SuiteSummary.from_results(self.results)
