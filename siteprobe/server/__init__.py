"""Playwright-backed automation server speaking line-delimited JSON-RPC."""

from siteprobe.server.state import BrowserSession
from siteprobe.server.stdio import AutomationServer, run_stdio_server
from siteprobe.server.tools import TOOLS, ToolSpec

__all__ = ["AutomationServer", "BrowserSession", "TOOLS", "ToolSpec", "run_stdio_server"]
