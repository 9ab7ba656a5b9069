"""Test suites and the strategies that group them."""

from siteprobe.suites.base import Suite
from siteprobe.suites.registry import (
    STRATEGIES,
    SUITES,
    Strategy,
    StrategyReport,
    SuiteOutcome,
    client_from_config,
    get_strategy,
    get_suite,
    recommendation,
    run_strategy,
    run_suite,
)

__all__ = [
    "STRATEGIES",
    "SUITES",
    "Strategy",
    "StrategyReport",
    "Suite",
    "SuiteOutcome",
    "client_from_config",
    "get_strategy",
    "get_suite",
    "recommendation",
    "run_strategy",
    "run_suite",
]
