"""Line-delimited JSON-RPC client for the browser automation server."""

from __future__ import annotations

import asyncio
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger

from siteprobe import __version__
from siteprobe.utils.exceptions import (
    ProcessClosedError,
    RpcTimeoutError,
    ServerStartError,
    SiteProbeError,
    ToolCallError,
    ValidationError,
)

from .demux import LineDemultiplexer
from .pending import PendingCalls
from .protocol import (
    INITIALIZE_METHOD,
    PROTOCOL_VERSION,
    TOOL_CALL_METHOD,
    RpcRequest,
    ToolFailure,
    ToolResult,
    ToolSuccess,
)
from .serialization import (
    decode_response_payload,
    encode_request_line,
    safe_dict,
    to_tool_call_error,
    to_tool_result,
)

BROWSER_TYPES = ("chromium", "firefox", "webkit")
WAIT_UNTIL_STATES = ("load", "domcontentloaded", "networkidle", "commit")
ELEMENT_STATES = ("attached", "detached", "visible", "hidden")

DEFAULT_TOOL_TIMEOUT_MS = 30000
# Extra time given to the RPC window over a tool's own timeout.
RPC_GRACE_SECONDS = 5.0
STDERR_LOG_CHARS = 2000


class ClientState(str, Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    CLOSED = "closed"


def default_server_command() -> list[str]:
    """Run the bundled automation server with the current interpreter."""
    return [sys.executable, "-m", "siteprobe", "serve"]


class AutomationClient:
    """
    Drives an automation server subprocess over stdio.

    Each call gets a fresh integer id and a pending entry; the reader task
    matches response lines back to entries by id, so concurrent calls may
    complete in any order. The server is started lazily by the first tool call
    and relaunched by the next call after it exits.
    """

    def __init__(
        self,
        command: list[str] | None = None,
        *,
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
        default_timeout: float = 30.0,
        handshake_timeout: float = 2.0,
        client_name: str = "siteprobe",
    ):
        self.command = list(command) if command else default_server_command()
        self.cwd = str(cwd) if cwd else None
        self.env = env
        self.default_timeout = default_timeout
        self.handshake_timeout = handshake_timeout
        self.client_name = client_name
        self.state = ClientState.NOT_STARTED
        self.server_info: dict[str, Any] = {}
        self._proc: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._pending = PendingCalls()
        self._demux = LineDemultiplexer()
        self._write_lock = asyncio.Lock()
        self._start_lock = asyncio.Lock()

    async def __aenter__(self) -> "AutomationClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def running(self) -> bool:
        return self._proc is not None and self._proc.returncode is None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Process lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Spawn the server and send the handshake, unless already running."""
        if self.running:
            return
        async with self._start_lock:
            if self.running:
                return
            await self._spawn()
            await self._handshake()

    async def _spawn(self) -> None:
        env = os.environ.copy()
        if self.env:
            env.update(self.env)
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
                env=env,
            )
        except OSError as exc:
            raise ServerStartError(self.command, str(exc)) from exc
        if proc.stdin is None or proc.stdout is None:
            raise ServerStartError(self.command, "server stdio is unavailable")
        logger.debug("Started automation server pid={} cmd={}", proc.pid, " ".join(self.command))
        self._proc = proc
        self._demux = LineDemultiplexer()
        self.state = ClientState.STARTED
        self._reader_task = asyncio.create_task(self._reader_loop(proc))
        self._stderr_task = asyncio.create_task(self._stderr_loop(proc))

    async def _handshake(self) -> None:
        params = {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": self.client_name, "version": __version__},
        }
        try:
            result = await self.request(INITIALIZE_METHOD, params, timeout=self.handshake_timeout)
        except (RpcTimeoutError, ToolCallError) as exc:
            # The server may still serve tool calls without acknowledging.
            logger.warning("Handshake not acknowledged, continuing: {}", exc.message)
            return
        self.server_info = safe_dict(safe_dict(result).get("serverInfo"))

    async def _reader_loop(self, proc: asyncio.subprocess.Process) -> None:
        assert proc.stdout is not None
        while True:
            chunk = await proc.stdout.read(65536)
            if not chunk:
                break
            self.feed(chunk)
        code = await proc.wait()
        self._on_process_exit(proc, code)

    async def _stderr_loop(self, proc: asyncio.subprocess.Process) -> None:
        assert proc.stderr is not None
        # overlong lines are logged truncated; the drain never stops before EOF
        buffer = b""
        while True:
            chunk = await proc.stderr.read(65536)
            if not chunk:
                self._log_stderr(buffer)
                return
            *lines, buffer = (buffer + chunk).split(b"\n")
            for line in lines:
                self._log_stderr(line)
            if len(buffer) > STDERR_LOG_CHARS:
                self._log_stderr(buffer)
                buffer = b""

    @staticmethod
    def _log_stderr(line: bytes) -> None:
        text = line[:STDERR_LOG_CHARS].decode("utf-8", errors="replace").strip()
        if text:
            logger.debug("[automation-server] {}", text)

    def _on_process_exit(self, proc: Any, code: int | None) -> None:
        if self._proc is not None and self._proc is not proc:
            return
        self._proc = None
        self.state = ClientState.CLOSED
        rejected = self._pending.reject_all(lambda: ProcessClosedError(code))
        if rejected:
            logger.warning("Automation server exited with code {}; failed {} pending request(s)", code, rejected)
        else:
            logger.debug("Automation server exited with code {}", code)

    async def close(self) -> None:
        """Stop the server process and fail anything still pending."""
        proc = self._proc
        self._proc = None
        code: int | None = None
        if proc is not None:
            try:
                if proc.stdin is not None:
                    proc.stdin.close()
                if proc.returncode is None:
                    proc.terminate()
                    try:
                        await asyncio.wait_for(proc.wait(), timeout=2.0)
                    except asyncio.TimeoutError:
                        proc.kill()
                        await proc.wait()
            except ProcessLookupError:
                pass
            code = proc.returncode
        if self.state is ClientState.STARTED:
            self.state = ClientState.CLOSED
        self._pending.reject_all(lambda: ProcessClosedError(code))
        for task in (self._reader_task, self._stderr_task):
            if task is not None and not task.done():
                task.cancel()
        self._reader_task = None
        self._stderr_task = None

    # ------------------------------------------------------------------
    # Dispatch / demultiplex
    # ------------------------------------------------------------------

    def feed(self, chunk: bytes | str) -> None:
        """Hand raw stdout bytes to the demultiplexer and resolve matches."""
        for payload in self._demux.feed(chunk):
            req_id = payload.get("id")
            if not self._pending.resolve(req_id, payload):
                logger.debug("Dropping frame without pending request (id={})", req_id)

    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
        label: str | None = None,
    ) -> Any:
        """Send one request and wait for its result."""
        if not method or not method.strip():
            raise ValidationError("method name must be non-empty", field="method")
        proc = self._proc
        if proc is None or proc.stdin is None:
            raise ProcessClosedError(None)
        window = self.default_timeout if timeout is None else timeout
        entry = self._pending.register(label or method, window)
        line = encode_request_line(RpcRequest(id=entry.id, method=method, params=params or {})) + "\n"
        try:
            async with self._write_lock:
                proc.stdin.write(line.encode("utf-8"))
                await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            self._pending.discard(entry.id)
            raise ProcessClosedError(proc.returncode) from exc
        try:
            payload = await entry.future
        except asyncio.CancelledError:
            self._pending.discard(entry.id)
            raise
        response = decode_response_payload(payload, fallback_id=entry.id)
        if not response.ok:
            raise to_tool_call_error(response, fallback_method=label or method)
        return response.result

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> ToolSuccess:
        """Invoke a named tool; raises on error, timeout or process exit."""
        await self.start()
        result = await self.request(
            TOOL_CALL_METHOD,
            {"name": name, "arguments": arguments or {}},
            timeout=timeout,
            label=name,
        )
        return to_tool_result(result, method=name)

    async def try_call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> ToolResult:
        """Like call_tool, but failures come back as ToolFailure."""
        try:
            return await self.call_tool(name, arguments, timeout=timeout)
        except SiteProbeError as exc:
            return ToolFailure(message=exc.message)

    async def list_tools(self) -> list[dict[str, Any]]:
        await self.start()
        result = await self.request("tools/list")
        tools = safe_dict(result).get("tools")
        return tools if isinstance(tools, list) else []

    # ------------------------------------------------------------------
    # Tool facade
    # ------------------------------------------------------------------

    def _rpc_window(self, timeout_ms: int) -> float:
        return max(self.default_timeout, timeout_ms / 1000.0 + RPC_GRACE_SECONDS)

    @staticmethod
    def _require_selector(selector: str) -> str:
        if not selector or not selector.strip():
            raise ValidationError("selector must be non-empty", field="selector")
        return selector

    async def launch_browser(self, browser_type: str = "chromium", headless: bool = False) -> ToolSuccess:
        if browser_type not in BROWSER_TYPES:
            raise ValidationError(f"unsupported browser type: {browser_type}", field="browserType")
        return await self.call_tool("launch-browser", {"browserType": browser_type, "headless": headless})

    async def navigate_to(self, url: str, wait_until: str = "load") -> ToolSuccess:
        if not url:
            raise ValidationError("url must be non-empty", field="url")
        if wait_until not in WAIT_UNTIL_STATES:
            raise ValidationError(f"unsupported waitUntil: {wait_until}", field="waitUntil")
        return await self.call_tool("navigate-to", {"url": url, "waitUntil": wait_until})

    async def click_element(self, selector: str, timeout: int = DEFAULT_TOOL_TIMEOUT_MS) -> ToolSuccess:
        self._require_selector(selector)
        return await self.call_tool(
            "click-element", {"selector": selector, "timeout": timeout}, timeout=self._rpc_window(timeout)
        )

    async def fill_input(self, selector: str, text: str, timeout: int = DEFAULT_TOOL_TIMEOUT_MS) -> ToolSuccess:
        self._require_selector(selector)
        return await self.call_tool(
            "fill-input",
            {"selector": selector, "text": text, "timeout": timeout},
            timeout=self._rpc_window(timeout),
        )

    async def get_text(self, selector: str, timeout: int = DEFAULT_TOOL_TIMEOUT_MS) -> ToolSuccess:
        self._require_selector(selector)
        return await self.call_tool(
            "get-text", {"selector": selector, "timeout": timeout}, timeout=self._rpc_window(timeout)
        )

    async def take_screenshot(self, path: str | None = None, full_page: bool = False) -> ToolSuccess:
        args: dict[str, Any] = {"fullPage": full_page}
        if path:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            args["path"] = str(path)
        return await self.call_tool("take-screenshot", args)

    async def wait_for_element(
        self,
        selector: str,
        state: str = "visible",
        timeout: int = DEFAULT_TOOL_TIMEOUT_MS,
    ) -> ToolSuccess:
        self._require_selector(selector)
        if state not in ELEMENT_STATES:
            raise ValidationError(f"unsupported element state: {state}", field="state")
        return await self.call_tool(
            "wait-for-element",
            {"selector": selector, "state": state, "timeout": timeout},
            timeout=self._rpc_window(timeout),
        )

    async def evaluate_javascript(self, code: str) -> ToolSuccess:
        if not code or not code.strip():
            raise ValidationError("code must be non-empty", field="code")
        return await self.call_tool("evaluate-javascript", {"code": code})

    async def get_page_info(self) -> ToolSuccess:
        return await self.call_tool("get-page-info")

    async def close_browser(self) -> ToolSuccess:
        """Close the browser, then the server process itself."""
        try:
            return await self.call_tool("close-browser")
        finally:
            await self.close()
