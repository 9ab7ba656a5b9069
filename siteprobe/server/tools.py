"""Tool handlers executed by the automation server."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from siteprobe.server.state import BrowserSession

ToolHandler = Callable[[BrowserSession, dict[str, Any]], Awaitable[str]]


class ToolArgumentError(ValueError):
    """Tool arguments failed validation."""


@dataclass(slots=True)
class ToolSpec:
    """A named tool with its JSON schema and handler."""

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler
    failure_prefix: str

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}

    def validate(self, args: Any) -> dict[str, Any]:
        """Apply schema defaults and check required keys, types and enums."""
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise ToolArgumentError("arguments must be an object")
        props: dict[str, Any] = self.input_schema.get("properties", {})
        out = dict(args)
        for key in self.input_schema.get("required", []):
            if out.get(key) in (None, ""):
                raise ToolArgumentError(f"missing required argument: {key}")
        for key, prop in props.items():
            if key not in out or out[key] is None:
                if "default" in prop:
                    out[key] = prop["default"]
                continue
            value = out[key]
            expected = prop.get("type")
            if expected == "string" and not isinstance(value, str):
                raise ToolArgumentError(f"{key} must be a string")
            if expected == "boolean" and not isinstance(value, bool):
                raise ToolArgumentError(f"{key} must be a boolean")
            if expected == "number" and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ToolArgumentError(f"{key} must be a number")
            if "enum" in prop and value not in prop["enum"]:
                raise ToolArgumentError(f"{key} must be one of {', '.join(prop['enum'])}")
        return out


def _schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required or []}


_TIMEOUT_PROP = {"type": "number", "default": 30000, "description": "Timeout in milliseconds"}


async def launch_browser(session: BrowserSession, args: dict[str, Any]) -> str:
    await session.launch(args["browserType"], args["headless"])
    return f"Successfully launched {args['browserType']} browser (headless: {str(args['headless']).lower()})"


async def navigate_to(session: BrowserSession, args: dict[str, Any]) -> str:
    page = await session.ensure_page()
    await page.goto(args["url"], wait_until=args["waitUntil"])
    title = await page.title()
    return f"Successfully navigated to: {page.url}\nPage title: {title}"


async def click_element(session: BrowserSession, args: dict[str, Any]) -> str:
    page = await session.ensure_page()
    await page.click(args["selector"], timeout=args["timeout"])
    return f"Successfully clicked element: {args['selector']}"


async def fill_input(session: BrowserSession, args: dict[str, Any]) -> str:
    page = await session.ensure_page()
    await page.fill(args["selector"], args["text"], timeout=args["timeout"])
    return f"Successfully filled input {args['selector']} with: {args['text']}"


async def get_text(session: BrowserSession, args: dict[str, Any]) -> str:
    page = await session.ensure_page()
    text = await page.text_content(args["selector"], timeout=args["timeout"])
    return f"Text from {args['selector']}: {text or '(no text found)'}"


async def take_screenshot(session: BrowserSession, args: dict[str, Any]) -> str:
    page = await session.ensure_page()
    path = args.get("path") or None
    await page.screenshot(path=path, full_page=args["fullPage"], type="png")
    return f"Screenshot saved to: {path}" if path else "Screenshot captured (buffer returned)"


async def wait_for_element(session: BrowserSession, args: dict[str, Any]) -> str:
    page = await session.ensure_page()
    await page.wait_for_selector(args["selector"], state=args["state"], timeout=args["timeout"])
    return f"Element {args['selector']} is now {args['state']}"


async def evaluate_javascript(session: BrowserSession, args: dict[str, Any]) -> str:
    page = await session.ensure_page()
    result = await page.evaluate(args["code"])
    return f"JavaScript execution result: {json.dumps(result, ensure_ascii=False)}"


async def get_page_info(session: BrowserSession, args: dict[str, Any]) -> str:
    page = await session.ensure_page()
    title = await page.title()
    viewport = page.viewport_size or {}
    return (
        "Page Information:\n"
        f"Title: {title}\n"
        f"URL: {page.url}\n"
        f"Viewport: {viewport.get('width')}x{viewport.get('height')}"
    )


async def close_browser(session: BrowserSession, args: dict[str, Any]) -> str:
    await session.stop()
    return "Browser closed successfully"


TOOLS: dict[str, ToolSpec] = {
    tool.name: tool
    for tool in (
        ToolSpec(
            "launch-browser",
            "Launch a browser instance",
            _schema({
                "browserType": {"type": "string", "enum": ["chromium", "firefox", "webkit"], "default": "chromium"},
                "headless": {"type": "boolean", "default": False},
            }),
            launch_browser,
            "Failed to launch browser",
        ),
        ToolSpec(
            "navigate-to",
            "Navigate to a URL",
            _schema(
                {
                    "url": {"type": "string"},
                    "waitUntil": {
                        "type": "string",
                        "enum": ["load", "domcontentloaded", "networkidle", "commit"],
                        "default": "load",
                    },
                },
                ["url"],
            ),
            navigate_to,
            "Failed to navigate",
        ),
        ToolSpec(
            "click-element",
            "Click on an element by selector",
            _schema({"selector": {"type": "string"}, "timeout": _TIMEOUT_PROP}, ["selector"]),
            click_element,
            "Failed to click element",
        ),
        ToolSpec(
            "fill-input",
            "Fill an input field with text",
            _schema(
                {
                    "selector": {"type": "string"},
                    "text": {"type": "string", "default": ""},
                    "timeout": _TIMEOUT_PROP,
                },
                ["selector"],
            ),
            fill_input,
            "Failed to fill input",
        ),
        ToolSpec(
            "get-text",
            "Get text content from an element",
            _schema({"selector": {"type": "string"}, "timeout": _TIMEOUT_PROP}, ["selector"]),
            get_text,
            "Failed to get text",
        ),
        ToolSpec(
            "take-screenshot",
            "Take a screenshot of the current page",
            _schema({"path": {"type": "string"}, "fullPage": {"type": "boolean", "default": False}}),
            take_screenshot,
            "Failed to take screenshot",
        ),
        ToolSpec(
            "wait-for-element",
            "Wait for an element to reach a state",
            _schema(
                {
                    "selector": {"type": "string"},
                    "state": {
                        "type": "string",
                        "enum": ["attached", "detached", "visible", "hidden"],
                        "default": "visible",
                    },
                    "timeout": _TIMEOUT_PROP,
                },
                ["selector"],
            ),
            wait_for_element,
            "Failed to wait for element",
        ),
        ToolSpec(
            "evaluate-javascript",
            "Execute JavaScript code in the browser context",
            _schema({"code": {"type": "string"}}, ["code"]),
            evaluate_javascript,
            "Failed to execute JavaScript",
        ),
        ToolSpec(
            "get-page-info",
            "Get information about the current page",
            _schema({}),
            get_page_info,
            "Failed to get page info",
        ),
        ToolSpec(
            "close-browser",
            "Close the current browser instance",
            _schema({}),
            close_browser,
            "Failed to close browser",
        ),
    )
}
