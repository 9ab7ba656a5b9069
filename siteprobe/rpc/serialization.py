"""Serialization helpers for RPC frames."""

from __future__ import annotations

import json
from typing import Any

from siteprobe.utils.exceptions import ToolCallError

from .protocol import JSONRPC_VERSION, RpcError, RpcRequest, RpcResponse, ToolSuccess


def safe_dict(value: Any) -> dict[str, Any]:
    """Return the value when dict-like, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def encode_request_line(request: RpcRequest) -> str:
    """Encode a request frame into one line of JSON (no trailing newline)."""
    payload = {
        "jsonrpc": JSONRPC_VERSION,
        "id": request.id,
        "method": request.method,
        "params": request.params,
    }
    return json.dumps(payload, ensure_ascii=False)


def normalize_rpc_error(error: Any) -> RpcError:
    """Normalize unknown error payloads into RpcError."""
    if isinstance(error, str):
        return RpcError(code="RPC_ERROR", message=error)
    row = safe_dict(error)
    data = row.get("data")
    return RpcError(
        code=row.get("code", "RPC_ERROR"),
        message=str(row.get("message") or "Tool call failed"),
        data=data if isinstance(data, dict) else None,
    )


def decode_response_payload(payload: Any, *, fallback_id: int = 0) -> RpcResponse:
    """Decode raw dict payload into normalized RpcResponse."""
    row = safe_dict(payload)
    req_id = row.get("id")
    if not isinstance(req_id, int):
        req_id = fallback_id
    if row.get("error") is not None:
        return RpcResponse(id=req_id, ok=False, error=normalize_rpc_error(row.get("error")))
    return RpcResponse(id=req_id, ok=True, result=row.get("result"))


def extract_text_output(result: Any) -> str:
    """First text payload of a tool result, or the JSON dump of the result."""
    content = safe_dict(result).get("content")
    if isinstance(content, list) and content:
        first = safe_dict(content[0])
        text = first.get("text")
        if isinstance(text, str):
            return text
    return json.dumps(result, ensure_ascii=False)


def to_tool_result(result: Any, *, method: str) -> ToolSuccess:
    """Normalize a tool result; results flagged `isError` raise ToolCallError."""
    output = extract_text_output(result)
    if safe_dict(result).get("isError") is True:
        raise ToolCallError(method, output, data=safe_dict(result))
    return ToolSuccess(output=output, raw=result)


def to_tool_call_error(response: RpcResponse, *, fallback_method: str) -> ToolCallError:
    """Convert an error response to ToolCallError."""
    err = response.error or RpcError(code="RPC_ERROR", message=f"{fallback_method} failed")
    return ToolCallError(fallback_method, err.message, rpc_code=err.code, data=err.data)
