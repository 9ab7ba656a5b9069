"""
Exception hierarchy and error handling utilities for siteprobe.

Provides:
- Custom exception classes with error codes
- Error categorization (recoverable, retryable, fatal)
- Safe error message formatting (no sensitive data leak)
- A decorator for best-effort page helpers
"""

from __future__ import annotations

import asyncio
import functools
import json
import re
from enum import Enum
from typing import Any, Callable, TypeVar

from loguru import logger

F = TypeVar("F", bound=Callable[..., Any])


class ErrorCategory(Enum):
    """Error categories for classification."""
    RECOVERABLE = "recoverable"
    RETRYABLE = "retryable"
    FATAL = "fatal"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    ASSERTION = "assertion"


class SiteProbeError(Exception):
    """Base exception for all siteprobe errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ValidationError(SiteProbeError):
    """Input validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", category=ErrorCategory.VALIDATION, details=details)


class ConfigError(SiteProbeError):
    """Invalid or unknown configuration."""

    def __init__(self, message: str, key: str | None = None):
        details = {"key": key} if key else {}
        super().__init__(message, code="CONFIG_ERROR", category=ErrorCategory.VALIDATION, details=details)


class RpcTimeoutError(SiteProbeError):
    """No response arrived for a request within its window."""

    def __init__(self, method: str, timeout_seconds: float, elapsed_seconds: float | None = None):
        elapsed = timeout_seconds if elapsed_seconds is None else elapsed_seconds
        super().__init__(
            f"Tool call timeout: {method} (no response after {elapsed:.1f}s)",
            code="TIMEOUT",
            category=ErrorCategory.TIMEOUT,
            details={"method": method, "timeout_seconds": timeout_seconds, "elapsed_seconds": elapsed},
        )
        self.method = method


class ToolCallError(SiteProbeError):
    """Automation server reported a failure for a call."""

    def __init__(
        self,
        method: str,
        message: str,
        rpc_code: Any = None,
        data: dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            code="TOOL_ERROR",
            category=ErrorCategory.RECOVERABLE,
            details={"method": method, "rpc_code": rpc_code, "data": data},
        )
        self.method = method
        self.rpc_code = rpc_code


class ProcessClosedError(SiteProbeError):
    """Automation server process exited while requests were outstanding."""

    def __init__(self, exit_code: int | None):
        super().__init__(
            f"Server closed with code {exit_code}",
            code="PROCESS_CLOSED",
            category=ErrorCategory.FATAL,
            details={"exit_code": exit_code},
        )
        self.exit_code = exit_code


class ServerStartError(SiteProbeError):
    """Automation server could not be spawned."""

    def __init__(self, command: list[str], message: str):
        super().__init__(
            f"Failed to start automation server {' '.join(command)}: {message}",
            code="SERVER_START_FAILED",
            category=ErrorCategory.FATAL,
            details={"command": command},
        )


class ContentAssertionError(SiteProbeError):
    """Page content did not match expectations."""

    def __init__(self, message: str, selector: str | None = None, actual: str | None = None):
        details: dict[str, Any] = {}
        if selector:
            details["selector"] = selector
        if actual is not None:
            details["actual"] = actual
        super().__init__(message, code="ASSERTION_FAILED", category=ErrorCategory.ASSERTION, details=details)


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"[a-zA-Z0-9]{32,}"),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove sensitive information from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def classify_exception(exc: Exception) -> tuple[str, ErrorCategory, bool]:
    """
    Classify an exception and return (error_code, category, should_retry).

    Returns:
        Tuple of (error_code, category, should_retry)
    """
    exc_str = str(exc).lower()

    if isinstance(exc, SiteProbeError):
        return exc.code, exc.category, exc.category == ErrorCategory.RETRYABLE

    if isinstance(exc, FileNotFoundError):
        return "FILE_NOT_FOUND", ErrorCategory.NOT_FOUND, False

    if isinstance(exc, asyncio.TimeoutError):
        return "TIMEOUT", ErrorCategory.TIMEOUT, True

    if isinstance(exc, ConnectionError):
        return "CONNECTION_ERROR", ErrorCategory.RETRYABLE, True

    if isinstance(exc, json.JSONDecodeError):
        return "JSON_PARSE_ERROR", ErrorCategory.VALIDATION, False

    if isinstance(exc, AssertionError):
        return "ASSERTION_FAILED", ErrorCategory.ASSERTION, False

    if isinstance(exc, ValueError):
        return "INVALID_VALUE", ErrorCategory.VALIDATION, False

    if "timeout" in exc_str or "timed out" in exc_str:
        return "TIMEOUT", ErrorCategory.TIMEOUT, True

    if "not found" in exc_str or "404" in exc_str:
        return "NOT_FOUND", ErrorCategory.NOT_FOUND, False

    if "connection" in exc_str or "network" in exc_str:
        return "CONNECTION_ERROR", ErrorCategory.RETRYABLE, True

    return "INTERNAL_ERROR", ErrorCategory.FATAL, False


def best_effort(default: Any = None, log_errors: bool = True) -> Callable[[F], F]:
    """
    Decorator for page helpers that log-and-continue on failure.

    Usage:
        @best_effort(default=[])
        async def get_destinations(self) -> list[str]:
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except SiteProbeError as e:
                if log_errors:
                    logger.debug(f"{func.__name__} failed: {e.code} - {e.message}")
                return default
            except Exception as e:
                code, _, _ = classify_exception(e)
                if log_errors:
                    logger.warning(f"{func.__name__} failed [{code}]: {sanitize_error_message(str(e))}")
                return default

        return wrapper  # type: ignore[return-value]

    return decorator
