"""Pytest hooks and fixtures."""

import asyncio
import json
import os
import sys
from pathlib import Path

import pytest

from siteprobe.config.schema import Config
from siteprobe.rpc.client import AutomationClient, ClientState
from siteprobe.rpc.protocol import ToolFailure, ToolSuccess
from siteprobe.utils.exceptions import ToolCallError

FAKE_SERVER = Path(__file__).parent / "fake_server.py"


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line("markers", "e2e: drives a real browser through Playwright")


def pytest_collection_modifyitems(config, items):
    """Skip e2e tests unless SITEPROBE_E2E=1 (needs installed browsers)."""
    if os.environ.get("SITEPROBE_E2E") == "1":
        return
    skip = pytest.mark.skip(reason="Set SITEPROBE_E2E=1 to run browser tests")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip)


# ---------------------------------------------------------------------------
# Fake automation server process (stdin capture only)
# ---------------------------------------------------------------------------


class FakeStdin:
    def __init__(self, broken: bool = False):
        self.data = b""
        self.broken = broken
        self.closed = False

    def write(self, data: bytes) -> None:
        if self.broken:
            raise BrokenPipeError("pipe closed")
        self.data += data

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        self.closed = True

    def frames(self) -> list[dict]:
        return [json.loads(line) for line in self.data.decode().splitlines() if line.strip()]


class FakeProcess:
    def __init__(self, broken_stdin: bool = False):
        self.stdin = FakeStdin(broken=broken_stdin)
        self.returncode = None
        self.pid = 4242

    def terminate(self) -> None:
        self.returncode = -15

    def kill(self) -> None:
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode


def attach_fake_process(client: AutomationClient, broken_stdin: bool = False) -> FakeProcess:
    """Make the client believe its server is running, without spawning one."""
    proc = FakeProcess(broken_stdin=broken_stdin)
    client._proc = proc
    client.state = ClientState.STARTED
    return proc


async def wait_for_frames(proc: FakeProcess, count: int) -> list[dict]:
    for _ in range(100):
        frames = proc.stdin.frames()
        if len(frames) >= count:
            return frames
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} frames, got {proc.stdin.frames()}")


def response_line(req_id, text: str = "", **extra) -> str:
    result = {"content": [{"type": "text", "text": text}], **extra}
    return json.dumps({"jsonrpc": "2.0", "id": req_id, "result": result}) + "\n"


def fake_server_command() -> list[str]:
    return [sys.executable, str(FAKE_SERVER)]


# ---------------------------------------------------------------------------
# Fake client for page objects, runner and suites
# ---------------------------------------------------------------------------


class FakeClient:
    """Scripted stand-in for AutomationClient that records tool calls."""

    def __init__(self, *, title="Example Domain", url="https://example.com/", texts=None, js=None, missing=(), fail=()):
        self.title = title
        self.url = url
        self.texts = dict(texts or {})
        self.js = js or (lambda code: None)
        self.missing = set(missing)
        self.fail = set(fail)
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    async def _tool(self, name: str, args: dict, output: str) -> ToolSuccess:
        self.calls.append((name, args))
        if name in self.fail:
            raise ToolCallError(name, f"{name} failed")
        return ToolSuccess(output=output)

    def called(self, name: str) -> list[dict]:
        return [args for tool, args in self.calls if tool == name]

    async def launch_browser(self, browser_type="chromium", headless=False):
        return await self._tool(
            "launch-browser",
            {"browserType": browser_type, "headless": headless},
            f"Successfully launched {browser_type} browser (headless: {str(headless).lower()})",
        )

    async def navigate_to(self, url, wait_until="load"):
        result = await self._tool(
            "navigate-to", {"url": url, "waitUntil": wait_until}, f"Successfully navigated to: {url}\nPage title: {self.title}"
        )
        self.url = url
        return result

    async def get_page_info(self):
        return await self._tool(
            "get-page-info", {}, f"Page Information:\nTitle: {self.title}\nURL: {self.url}\nViewport: 1280x720"
        )

    async def wait_for_element(self, selector, state="visible", timeout=30000):
        if selector in self.missing:
            self.calls.append(("wait-for-element", {"selector": selector}))
            raise ToolCallError("wait-for-element", f"Failed to wait for element: Timeout {timeout}ms exceeded")
        return await self._tool(
            "wait-for-element",
            {"selector": selector, "state": state, "timeout": timeout},
            f"Element {selector} is now {state}",
        )

    async def click_element(self, selector, timeout=30000):
        if selector in self.missing:
            self.calls.append(("click-element", {"selector": selector}))
            raise ToolCallError("click-element", "Failed to click element: not found")
        return await self._tool("click-element", {"selector": selector, "timeout": timeout}, f"Successfully clicked element: {selector}")

    async def fill_input(self, selector, text, timeout=30000):
        return await self._tool(
            "fill-input", {"selector": selector, "text": text, "timeout": timeout}, f"Successfully filled input {selector} with: {text}"
        )

    async def get_text(self, selector, timeout=30000):
        if selector not in self.texts:
            self.calls.append(("get-text", {"selector": selector}))
            raise ToolCallError("get-text", f"Failed to get text: Timeout {timeout}ms exceeded")
        text = self.texts[selector] or "(no text found)"
        return await self._tool("get-text", {"selector": selector, "timeout": timeout}, f"Text from {selector}: {text}")

    async def take_screenshot(self, path=None, full_page=False):
        return await self._tool("take-screenshot", {"path": path, "fullPage": full_page}, f"Screenshot saved to: {path}")

    async def evaluate_javascript(self, code):
        value = self.js(code)
        return await self._tool("evaluate-javascript", {"code": code}, f"JavaScript execution result: {json.dumps(value)}")

    async def close_browser(self):
        result = await self._tool("close-browser", {}, "Browser closed successfully")
        self.closed = True
        return result

    async def close(self):
        self.closed = True

    async def try_call_tool(self, name, arguments=None, *, timeout=None):
        args = arguments or {}
        self.calls.append((name, args))
        if name in self.fail or args.get("selector") in self.missing:
            return ToolFailure(message=f"{name} failed")
        return ToolSuccess(output=f"{name} ok")


@pytest.fixture
def config(tmp_path):
    cfg = Config()
    cfg.paths.reports_dir = str(tmp_path / "reports")
    cfg.paths.artifacts_dir = str(tmp_path / "reports" / "artifacts")
    cfg.paths.logs_dir = str(tmp_path / "logs")
    cfg.browser.headless = True
    return cfg
