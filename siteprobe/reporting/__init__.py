"""Logging and reporting for test runs."""

from siteprobe.reporting.logger import TestLogger, configure_logging, ensure_rotating_log_file
from siteprobe.reporting.manager import ReportManager
from siteprobe.reporting.reporter import TestReporter

__all__ = ["ReportManager", "TestLogger", "TestReporter", "configure_logging", "ensure_rotating_log_file"]
