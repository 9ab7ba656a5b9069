"""Stdio JSON-RPC client for the browser automation server."""

from .client import AutomationClient, ClientState, default_server_command
from .demux import LineDemultiplexer
from .pending import PendingCalls, PendingRequest
from .protocol import RpcError, RpcRequest, RpcResponse, ToolFailure, ToolResult, ToolSuccess
from .serialization import decode_response_payload, encode_request_line, normalize_rpc_error, safe_dict

__all__ = [
    "AutomationClient",
    "ClientState",
    "default_server_command",
    "LineDemultiplexer",
    "PendingCalls",
    "PendingRequest",
    "RpcError",
    "RpcRequest",
    "RpcResponse",
    "ToolFailure",
    "ToolResult",
    "ToolSuccess",
    "safe_dict",
    "encode_request_line",
    "decode_response_payload",
    "normalize_rpc_error",
]
