import asyncio
import json

import pytest
from loguru import logger
from conftest import attach_fake_process, fake_server_command, response_line, wait_for_frames

from siteprobe.rpc.client import AutomationClient, ClientState
from siteprobe.rpc.protocol import ToolFailure
from siteprobe.utils.exceptions import ProcessClosedError, RpcTimeoutError, ToolCallError, ValidationError


@pytest.mark.asyncio
async def test_out_of_order_responses_resolve_their_own_calls():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    nav = asyncio.create_task(client.navigate_to("https://example.com"))
    text = asyncio.create_task(client.get_text("h1"))
    frames = await wait_for_frames(proc, 2)
    assert [(f["id"], f["params"]["name"]) for f in frames] == [(1, "navigate-to"), (2, "get-text")]

    client.feed(response_line(2, "Text from h1: Example Domain"))
    text_result = await text
    assert text_result.output == "Text from h1: Example Domain"
    assert not nav.done()

    client.feed(response_line(1, "Successfully navigated to: https://example.com/\nPage title: Example Domain"))
    nav_result = await nav
    assert nav_result.output.startswith("Successfully navigated to: https://example.com/")
    assert client.pending_count == 0


@pytest.mark.asyncio
async def test_many_concurrent_calls_each_get_their_payload():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    tasks = [asyncio.create_task(client.get_text(f"#item-{i}")) for i in range(5)]
    frames = await wait_for_frames(proc, 5)
    for frame in reversed(frames):
        selector = frame["params"]["arguments"]["selector"]
        client.feed(response_line(frame["id"], f"Text from {selector}: {selector}"))
    results = await asyncio.gather(*tasks)
    assert [r.output for r in results] == [f"Text from #item-{i}: #item-{i}" for i in range(5)]


@pytest.mark.asyncio
async def test_unknown_id_has_no_effect():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    task = asyncio.create_task(client.get_page_info())
    await wait_for_frames(proc, 1)
    client.feed(response_line(99, "stray"))
    await asyncio.sleep(0)
    assert not task.done()
    assert client.pending_count == 1
    client.feed(response_line(1, "Page Information:\nTitle: t\nURL: u\nViewport: 1x1"))
    assert (await task).output.startswith("Page Information:")


@pytest.mark.asyncio
async def test_two_responses_split_across_chunks():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    first = asyncio.create_task(client.request("ping"))
    second = asyncio.create_task(client.request("ping"))
    await wait_for_frames(proc, 2)

    client.feed('{"id":1,"result":{}}\n{"i')
    assert await first == {}
    await asyncio.sleep(0)
    assert not second.done()

    client.feed('d":2,"result":{}}\n')
    assert await second == {}


@pytest.mark.asyncio
async def test_timeout_rejects_and_late_response_is_ignored():
    client = AutomationClient(default_timeout=0.05)
    proc = attach_fake_process(client)
    with pytest.raises(RpcTimeoutError) as exc_info:
        await client.call_tool("get-page-info")
    assert "Tool call timeout: get-page-info" in exc_info.value.message
    assert client.pending_count == 0
    client.feed(response_line(1, "too late"))
    assert client.pending_count == 0
    assert len(proc.stdin.frames()) == 1


@pytest.mark.asyncio
async def test_process_exit_rejects_every_pending_call_once():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    tasks = [asyncio.create_task(client.get_text(f"p:nth-of-type({i})")) for i in range(1, 4)]
    await wait_for_frames(proc, 3)

    client._on_process_exit(proc, 1)
    results = await asyncio.gather(*tasks, return_exceptions=True)
    assert all(isinstance(r, ProcessClosedError) for r in results)
    assert [r.exit_code for r in results] == [1, 1, 1]
    assert "Server closed with code 1" in results[0].message
    assert client.state is ClientState.CLOSED
    assert client.pending_count == 0


@pytest.mark.asyncio
async def test_stale_process_exit_is_ignored():
    client = AutomationClient(default_timeout=5)
    old = attach_fake_process(client)
    current = attach_fake_process(client)
    task = asyncio.create_task(client.get_page_info())
    await wait_for_frames(current, 1)
    client._on_process_exit(old, 0)
    assert client.state is ClientState.STARTED
    assert client.pending_count == 1
    client.feed(response_line(1, "Page Information:"))
    await task


@pytest.mark.asyncio
async def test_error_response_raises_tool_call_error():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    task = asyncio.create_task(client.call_tool("nope"))
    await wait_for_frames(proc, 1)
    client.feed(json.dumps({"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Unknown tool: nope"}}) + "\n")
    with pytest.raises(ToolCallError) as exc_info:
        await task
    assert exc_info.value.message == "Unknown tool: nope"
    assert exc_info.value.rpc_code == -32602


@pytest.mark.asyncio
async def test_is_error_result_raises_and_try_call_returns_failure():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)

    task = asyncio.create_task(client.click_element("#missing"))
    await wait_for_frames(proc, 1)
    client.feed(response_line(1, "Failed to click element: Timeout 30000ms exceeded", isError=True))
    with pytest.raises(ToolCallError, match="Failed to click element"):
        await task

    soft = asyncio.create_task(client.try_call_tool("click-element", {"selector": "#missing"}))
    await wait_for_frames(proc, 2)
    client.feed(response_line(2, "Failed to click element: gone", isError=True))
    result = await soft
    assert isinstance(result, ToolFailure)
    assert not result.success
    assert result.message == "Failed to click element: gone"


@pytest.mark.asyncio
async def test_result_without_text_content_is_serialized():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    task = asyncio.create_task(client.call_tool("get-page-info"))
    await wait_for_frames(proc, 1)
    client.feed(json.dumps({"id": 1, "result": {"foo": 1}}) + "\n")
    assert (await task).output == '{"foo": 1}'


@pytest.mark.asyncio
async def test_tool_timeout_extends_rpc_window():
    client = AutomationClient(default_timeout=1)
    proc = attach_fake_process(client)
    task = asyncio.create_task(client.wait_for_element("#slow", timeout=60000))
    frames = await wait_for_frames(proc, 1)
    assert frames[0]["params"]["arguments"] == {"selector": "#slow", "state": "visible", "timeout": 60000}
    assert client._pending._entries[1].timeout_seconds == 65.0
    client.feed(response_line(1, "Element #slow is now visible"))
    await task


@pytest.mark.asyncio
async def test_invalid_arguments_are_rejected_before_sending():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    with pytest.raises(ValidationError):
        await client.navigate_to("")
    with pytest.raises(ValidationError):
        await client.launch_browser("opera")
    with pytest.raises(ValidationError):
        await client.wait_for_element("#x", state="gone")
    with pytest.raises(ValidationError):
        await client.get_text("  ")
    assert proc.stdin.frames() == []


@pytest.mark.asyncio
async def test_request_without_process_raises_closed():
    client = AutomationClient(default_timeout=5)
    with pytest.raises(ProcessClosedError):
        await client.request("ping")


@pytest.mark.asyncio
async def test_broken_pipe_discards_entry():
    client = AutomationClient(default_timeout=5)
    attach_fake_process(client, broken_stdin=True)
    with pytest.raises(ProcessClosedError):
        await client.request("ping")
    assert client.pending_count == 0


@pytest.mark.asyncio
async def test_close_rejects_pending_and_marks_closed():
    client = AutomationClient(default_timeout=5)
    proc = attach_fake_process(client)
    task = asyncio.create_task(client.get_page_info())
    await wait_for_frames(proc, 1)
    await client.close()
    with pytest.raises(ProcessClosedError):
        await task
    assert proc.stdin.closed
    assert proc.returncode == -15
    assert client.state is ClientState.CLOSED
    assert not client.running


# ---------------------------------------------------------------------------
# Real subprocess
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_subprocess_handshake_and_tool_calls():
    async with AutomationClient(fake_server_command(), default_timeout=10) as client:
        assert client.state is ClientState.STARTED
        assert client.server_info == {"name": "fake", "version": "0"}
        result = await client.navigate_to("https://example.com")
        assert result.output == 'navigate-to: {"url": "https://example.com", "waitUntil": "load"}'
        results = await asyncio.gather(*(client.get_text(f"#n{i}", timeout=1000) for i in range(5)))
        assert [r.output for r in results] == [
            f'get-text: {{"selector": "#n{i}", "timeout": 1000}}' for i in range(5)
        ]
        with pytest.raises(ToolCallError, match="Method not found"):
            await client.list_tools()
    assert client.state is ClientState.CLOSED


@pytest.mark.asyncio
async def test_subprocess_unacknowledged_handshake_continues():
    client = AutomationClient(
        fake_server_command(), env={"FAKE_SERVER_MODE": "silent-init"}, default_timeout=10, handshake_timeout=0.2
    )
    try:
        await client.start()
        assert client.server_info == {}
        assert client.pending_count == 0
        result = await client.get_page_info()
        assert result.output == "get-page-info: {}"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_subprocess_exit_rejects_call_and_next_call_relaunches():
    client = AutomationClient(fake_server_command(), env={"FAKE_SERVER_MODE": "exit-on-call"}, default_timeout=10)
    try:
        with pytest.raises(ProcessClosedError) as exc_info:
            await client.get_page_info()
        assert exc_info.value.exit_code == 3
        assert client.state is ClientState.CLOSED
        # relaunched process answers non-tool requests
        with pytest.raises(ToolCallError, match="Method not found"):
            await client.list_tools()
        assert client.running
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_subprocess_long_stderr_lines_do_not_stall_calls():
    client = AutomationClient(fake_server_command(), env={"FAKE_SERVER_MODE": "noisy-stderr"}, default_timeout=10)
    try:
        first = await client.get_page_info()
        second = await client.get_text("h1", timeout=1000)
        assert first.output == "get-page-info: {}"
        assert second.output == 'get-text: {"selector": "h1", "timeout": 1000}'
        assert client.running
    finally:
        await client.close()


class _StderrOnly:
    def __init__(self, reader):
        self.stderr = reader


@pytest.mark.asyncio
async def test_stderr_drain_survives_lines_over_stream_limit():
    reader = asyncio.StreamReader(limit=1024)
    reader.feed_data(b"y" * 200_000 + b"\nserver ready\npartial")
    reader.feed_eof()
    messages: list[str] = []
    sink = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    try:
        await asyncio.wait_for(AutomationClient(["unused"])._stderr_loop(_StderrOnly(reader)), timeout=5)
    finally:
        logger.remove(sink)
    assert "[automation-server] server ready" in messages
    assert "[automation-server] partial" in messages
    assert all(len(m) < 2100 for m in messages)
