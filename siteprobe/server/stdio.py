"""Line-delimited JSON-RPC automation server over stdin/stdout."""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from typing import Any, Callable

from loguru import logger

from siteprobe import __version__
from siteprobe.rpc.protocol import (
    INITIALIZE_METHOD,
    JSONRPC_VERSION,
    PROTOCOL_VERSION,
    TOOL_CALL_METHOD,
    TOOL_LIST_METHOD,
)
from siteprobe.rpc.serialization import safe_dict
from siteprobe.server.state import BrowserSession
from siteprobe.server.tools import TOOLS, ToolArgumentError, ToolSpec

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

SERVER_NAME = "siteprobe-automation"


def _text_result(text: str, *, is_error: bool = False) -> dict[str, Any]:
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


def _error(req_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "error": {"code": code, "message": message}}


class AutomationServer:
    """Executes browser tools for one client connected over stdio."""

    def __init__(self, session: BrowserSession | None = None, tools: dict[str, ToolSpec] | None = None):
        self.session = session or BrowserSession()
        self.tools = tools if tools is not None else TOOLS
        self.initialized = False

    async def handle_line(self, line: str) -> dict[str, Any] | None:
        """Handle one raw line; returns the response frame, if any."""
        text = line.strip()
        if not text:
            return None
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Unparseable request line: {}", text[:200])
            return _error(None, PARSE_ERROR, "Parse error")
        try:
            return await self.handle_message(payload)
        except Exception as exc:
            req_id = payload.get("id") if isinstance(payload, dict) else None
            logger.exception("Request {} failed", req_id)
            if isinstance(payload, dict) and "id" not in payload:
                return None
            return _error(req_id, INTERNAL_ERROR, f"Internal error: {exc}")

    async def handle_message(self, payload: Any) -> dict[str, Any] | None:
        if not isinstance(payload, dict) or not isinstance(payload.get("method"), str):
            req_id = payload.get("id") if isinstance(payload, dict) else None
            return _error(req_id, INVALID_REQUEST, "Invalid Request")
        method = payload["method"]
        if "id" not in payload:
            logger.debug("Notification received: {}", method)
            return None
        req_id = payload["id"]
        params = payload.get("params") or {}
        if not isinstance(params, dict):
            return _error(req_id, INVALID_PARAMS, "params must be an object")

        if method == INITIALIZE_METHOD:
            client = params.get("clientInfo")
            if client is not None and not isinstance(client, dict):
                return _error(req_id, INVALID_PARAMS, "clientInfo must be an object")
            client = safe_dict(client)
            self.initialized = True
            logger.info("Client connected: {} {}", client.get("name", "?"), client.get("version", "?"))
            return self._result(req_id, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            })
        if method == TOOL_LIST_METHOD:
            return self._result(req_id, {"tools": [tool.describe() for tool in self.tools.values()]})
        if method == TOOL_CALL_METHOD:
            return await self._call_tool(req_id, params)
        return _error(req_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    async def _call_tool(self, req_id: Any, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        tool = self.tools.get(name) if isinstance(name, str) else None
        if tool is None:
            return _error(req_id, INVALID_PARAMS, f"Unknown tool: {name}")
        try:
            args = tool.validate(params.get("arguments"))
        except ToolArgumentError as exc:
            return _error(req_id, INVALID_PARAMS, f"Invalid arguments for {tool.name}: {exc}")
        try:
            text = await tool.handler(self.session, args)
        except Exception as exc:
            logger.warning("Tool {} failed: {}", tool.name, exc)
            return self._result(req_id, _text_result(f"{tool.failure_prefix}: {exc}", is_error=True))
        return self._result(req_id, _text_result(text))

    @staticmethod
    def _result(req_id: Any, result: Any) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "result": result}

    async def serve(self, reader: asyncio.StreamReader, write: Callable[[str], None]) -> None:
        """Answer requests until the reader hits EOF; calls run concurrently."""
        in_flight: set[asyncio.Task[None]] = set()

        async def answer(line: bytes) -> None:
            response = await self.handle_line(line.decode("utf-8", errors="replace"))
            if response is None:
                return
            try:
                frame = json.dumps(response, ensure_ascii=False)
            except (TypeError, ValueError) as exc:
                logger.error("Unserializable response for request {}: {}", response.get("id"), exc)
                frame = json.dumps(_error(response.get("id"), INTERNAL_ERROR, f"Internal error: {exc}"))
            write(frame + "\n")

        while True:
            line = await reader.readline()
            if not line:
                break
            task = asyncio.create_task(answer(line))
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)
        if in_flight:
            await asyncio.gather(*in_flight)
        logger.info("stdin closed, shutting down")


async def _stdin_reader() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=4 * 1024 * 1024)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


def _stdout_write(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


async def run_stdio_server(viewport: dict[str, int] | None = None) -> None:
    """Serve on the process's stdio; stdout carries protocol frames only."""
    server = AutomationServer(BrowserSession(viewport=viewport))
    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, main_task.cancel)  # type: ignore[union-attr]
        except (NotImplementedError, RuntimeError):
            pass
    logger.info("Automation server running on stdio")
    try:
        reader = await _stdin_reader()
        await server.serve(reader, _stdout_write)
    except asyncio.CancelledError:
        logger.info("Received shutdown signal, cleaning up")
    finally:
        await server.session.shutdown()
