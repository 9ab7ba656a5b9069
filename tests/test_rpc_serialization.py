import json

import pytest

from siteprobe.rpc.protocol import RpcRequest, ToolSuccess
from siteprobe.rpc.serialization import (
    decode_response_payload,
    encode_request_line,
    extract_text_output,
    normalize_rpc_error,
    to_tool_call_error,
    to_tool_result,
)
from siteprobe.utils.exceptions import ToolCallError


def test_encode_request_line_shape():
    line = encode_request_line(RpcRequest(id=4, method="tools/call", params={"name": "get-page-info"}))
    assert "\n" not in line
    assert json.loads(line) == {
        "jsonrpc": "2.0",
        "id": 4,
        "method": "tools/call",
        "params": {"name": "get-page-info"},
    }


def test_decode_error_payload_and_convert_to_tool_error():
    response = decode_response_payload(
        {"id": 2, "error": {"code": -32602, "message": "Unknown tool: nope", "data": {"x": 1}}}
    )
    assert not response.ok
    err = to_tool_call_error(response, fallback_method="nope")
    assert err.message == "Unknown tool: nope"
    assert err.rpc_code == -32602
    assert err.details["data"] == {"x": 1}


def test_decode_uses_fallback_id_for_missing_id():
    response = decode_response_payload({"result": {"ok": True}}, fallback_id=9)
    assert response.ok
    assert response.id == 9
    assert response.result == {"ok": True}


def test_normalize_rpc_error_with_string_and_empty_payloads():
    assert normalize_rpc_error("boom").message == "boom"
    err = normalize_rpc_error({})
    assert err.code == "RPC_ERROR"
    assert err.message == "Tool call failed"


def test_extract_text_output_prefers_first_text_item():
    result = {"content": [{"type": "text", "text": "first"}, {"type": "text", "text": "second"}]}
    assert extract_text_output(result) == "first"


def test_extract_text_output_falls_back_to_json():
    assert extract_text_output({"foo": 1}) == '{"foo": 1}'
    assert extract_text_output({"content": []}) == '{"content": []}'
    assert extract_text_output(None) == "null"


def test_to_tool_result_success_and_is_error():
    ok = to_tool_result({"content": [{"type": "text", "text": "done"}]}, method="click-element")
    assert ok == ToolSuccess(output="done", raw={"content": [{"type": "text", "text": "done"}]})
    assert ok.success

    with pytest.raises(ToolCallError) as exc_info:
        to_tool_result(
            {"content": [{"type": "text", "text": "Failed to click element: boom"}], "isError": True},
            method="click-element",
        )
    assert exc_info.value.message == "Failed to click element: boom"
    assert exc_info.value.method == "click-element"
