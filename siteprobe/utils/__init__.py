"""Utility functions for siteprobe."""

from siteprobe.utils.exceptions import (
    ConfigError,
    ContentAssertionError,
    ErrorCategory,
    ProcessClosedError,
    RpcTimeoutError,
    ServerStartError,
    SiteProbeError,
    ToolCallError,
    ValidationError,
    best_effort,
    classify_exception,
    sanitize_error_message,
)

__all__ = [
    "ConfigError",
    "ContentAssertionError",
    "ErrorCategory",
    "ProcessClosedError",
    "RpcTimeoutError",
    "ServerStartError",
    "SiteProbeError",
    "ToolCallError",
    "ValidationError",
    "best_effort",
    "classify_exception",
    "sanitize_error_message",
]
