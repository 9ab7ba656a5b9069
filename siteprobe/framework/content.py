"""Parsing of tool output and keyword-based content checks."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from siteprobe.utils.exceptions import ContentAssertionError

JS_RESULT_PREFIX = "JavaScript execution result:"
NO_TEXT_MARKER = "(no text found)"


@dataclass(slots=True)
class PageInfo:
    title: str = ""
    url: str = ""
    width: int | None = None
    height: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url, "viewport": {"width": self.width, "height": self.height}}


def parse_text_output(output: str, selector: str | None = None) -> str:
    """Element text from a `get-text` result."""
    text = output or ""
    if selector and text.startswith(f"Text from {selector}: "):
        text = text[len(f"Text from {selector}: "):]
    elif text.startswith("Text from "):
        # selector may itself contain ": "
        _, _, text = text.partition(": ")
    text = text.strip()
    return "" if text == NO_TEXT_MARKER else text


def parse_js_result(output: str) -> Any:
    """Decoded value from an `evaluate-javascript` result; None when undecodable."""
    text = (output or "").strip()
    if text.startswith(JS_RESULT_PREFIX):
        text = text[len(JS_RESULT_PREFIX):].strip()
    if not text or text == "undefined":
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


_VIEWPORT_RE = re.compile(r"(\d+)x(\d+)")


def parse_page_info(output: str) -> PageInfo:
    """Title, URL and viewport from a `get-page-info` result."""
    info = PageInfo()
    for line in (output or "").splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        value = value.strip()
        if key == "title":
            info.title = value
        elif key == "url":
            info.url = value
        elif key == "viewport":
            match = _VIEWPORT_RE.search(value)
            if match:
                info.width, info.height = int(match.group(1)), int(match.group(2))
    return info


def find_keywords(text: str, keywords: list[str]) -> list[str]:
    """Keywords present in text, case-insensitively, in the given order."""
    haystack = (text or "").lower()
    return [kw for kw in keywords if kw.lower() in haystack]


def require_keywords(text: str, keywords: list[str], min_matches: int = 1, label: str = "content") -> list[str]:
    """Keywords found in text; raises when fewer than min_matches are present."""
    found = find_keywords(text, keywords)
    if len(found) < min_matches:
        raise ContentAssertionError(
            f"Expected at least {min_matches} {label} keyword(s) from {keywords}, found {found or 'none'}",
            actual=(text or "")[:200],
        )
    return found


def validate_text(actual: str | None, expected: str, *, exact: bool = False, selector: str | None = None) -> str:
    """Check actual text equals (exact) or contains expected; returns actual."""
    value = actual or ""
    if exact and value != expected:
        raise ContentAssertionError(f'Expected exact text "{expected}" but got "{value}"', selector, value)
    if not exact and expected not in value:
        raise ContentAssertionError(f'Expected text to contain "{expected}" but got "{value}"', selector, value)
    return value


def slugify(value: str) -> str:
    """Lowercase, dash-separated form for file names."""
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
    return slug or "unnamed"
