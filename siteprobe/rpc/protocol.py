"""RPC frame and tool result models for the automation server protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

TOOL_CALL_METHOD = "tools/call"
TOOL_LIST_METHOD = "tools/list"
INITIALIZE_METHOD = "initialize"

TOOL_NAMES = (
    "launch-browser",
    "navigate-to",
    "click-element",
    "fill-input",
    "get-text",
    "take-screenshot",
    "wait-for-element",
    "evaluate-javascript",
    "get-page-info",
    "close-browser",
)


@dataclass(slots=True)
class RpcError:
    """Normalized RPC error payload."""

    code: Any
    message: str
    data: dict[str, Any] | None = None


@dataclass(slots=True, frozen=True)
class RpcRequest:
    """JSON-RPC request frame."""

    id: int
    method: str
    params: dict[str, Any]


@dataclass(slots=True)
class RpcResponse:
    """JSON-RPC response frame."""

    id: int
    ok: bool
    result: Any = None
    error: RpcError | None = None


@dataclass(slots=True, frozen=True)
class ToolSuccess:
    """Tool call completed; `output` is the first text payload."""

    output: str
    raw: Any = None

    @property
    def success(self) -> bool:
        return True


@dataclass(slots=True, frozen=True)
class ToolFailure:
    """Tool call failed (server error, timeout or closed process)."""

    message: str

    @property
    def success(self) -> bool:
        return False


ToolResult = Union[ToolSuccess, ToolFailure]
