"""Test-run logging on top of loguru."""

from __future__ import annotations

import json
import sys
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

_SINK_IDS: dict[str, int] = {}
_CONSOLE_SINK_ID: int | None = None

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[category]}</cyan> | {message}"
)

# error > warn > info > debug; success/step/category logs count as info
LEVELS = {"error": 0, "warn": 1, "info": 2, "debug": 3}
_LOGURU_LEVEL = {"error": "ERROR", "warn": "WARNING", "info": "INFO", "debug": "DEBUG", "success": "SUCCESS"}


def configure_logging(level: str = "INFO", colors: bool = True) -> None:
    """Replace the default stderr sink with the test-run console format."""
    global _CONSOLE_SINK_ID
    if _CONSOLE_SINK_ID is None:
        logger.remove()
    else:
        logger.remove(_CONSOLE_SINK_ID)
    logger.configure(extra={"category": "-"})
    _CONSOLE_SINK_ID = logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT, colorize=colors)


def ensure_rotating_log_file(name: str, log_dir: Path, level: str = "INFO") -> Path:
    """Ensure a rotating log sink for the given run name."""
    log_path = log_dir / f"{name}.log"
    if name in _SINK_IDS:
        return log_path
    log_dir.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        str(log_path),
        level=level,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[name] = sink_id
    return log_path


@dataclass(slots=True)
class LogEntry:
    timestamp: str
    level: str
    category: str
    message: str


class TestLogger:
    """Leveled test logger that keeps a history of everything it emitted."""

    __test__ = False  # not a pytest class

    def __init__(self, level: str = "info", suite: str = ""):
        self.level = level.lower() if level.lower() in LEVELS else "info"
        self.suite = suite
        self._history: list[LogEntry] = []

    def should_log(self, level: str) -> bool:
        wanted = LEVELS.get(level, LEVELS["info"])
        return wanted <= LEVELS[self.level]

    def log(self, level: str, message: str, category: str = "general") -> None:
        if not self.should_log(level):
            return
        bound = logger.bind(category=category, suite=self.suite)
        bound.opt(depth=2).log(_LOGURU_LEVEL.get(level, "INFO"), message)
        self._history.append(
            LogEntry(
                timestamp=datetime.now(timezone.utc).isoformat(),
                level=level,
                category=category,
                message=message,
            )
        )

    def error(self, message: str) -> None:
        self.log("error", message)

    def warn(self, message: str) -> None:
        self.log("warn", message)

    def info(self, message: str) -> None:
        self.log("info", message)

    def debug(self, message: str) -> None:
        self.log("debug", message)

    def success(self, message: str) -> None:
        self.log("success", message)

    def step(self, message: str) -> None:
        self.log("info", message, category="step")

    def performance(self, message: str, timing_ms: float | None = None) -> None:
        text = f"{message} ({timing_ms:.0f}ms)" if timing_ms is not None else message
        self.log("info", text, category="performance")

    def business(self, message: str) -> None:
        self.log("info", message, category="business")

    def security(self, message: str) -> None:
        self.log("info", message, category="security")

    def accessibility(self, message: str) -> None:
        self.log("info", message, category="accessibility")

    def suite_start(self, suite_name: str) -> None:
        self.suite = suite_name
        self.log("info", f"{'=' * 20} Starting Test Suite: {suite_name} {'=' * 20}", category="suite")

    def suite_end(self, suite_name: str, summary: Any) -> None:
        self.log("info", f"Completed Test Suite: {suite_name}", category="suite")
        self.log(
            "info",
            f"Results: {summary.passed}/{summary.total} passed ({summary.success_rate:.2f}%)",
            category="suite",
        )

    def test_start(self, test_name: str) -> None:
        self.log("info", f"Starting test: {test_name}", category="test")

    def test_end(self, test_name: str, status: str, duration_ms: int) -> None:
        level = "success" if status == "PASSED" else "error"
        self.log(level, f"{test_name} - {status} ({duration_ms}ms)", category="test")

    @property
    def history(self) -> list[LogEntry]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()

    def export_logs(self, file_path: Path) -> Path:
        """Write the history as JSON; returns the path written."""
        file_path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "suite": self.suite,
            "logs": [asdict(entry) for entry in self._history],
        }
        file_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        self.log("info", f"Logs exported to: {file_path}")
        return file_path
