"""Test framework: suite runner, results and content checks."""

from siteprobe.framework.content import (
    PageInfo,
    find_keywords,
    parse_js_result,
    parse_page_info,
    parse_text_output,
    require_keywords,
    validate_text,
)
from siteprobe.framework.results import FAILED, PASSED, SuiteRun, SuiteSummary, TestResult
from siteprobe.framework.runner import SuiteRunner

__all__ = [
    "FAILED",
    "PASSED",
    "PageInfo",
    "SuiteRun",
    "SuiteRunner",
    "SuiteSummary",
    "TestResult",
    "find_keywords",
    "parse_js_result",
    "parse_page_info",
    "parse_text_output",
    "require_keywords",
    "validate_text",
]
