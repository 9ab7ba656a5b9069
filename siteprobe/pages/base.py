"""Base page object with fallback-selector helpers."""

from __future__ import annotations

import asyncio
import time
from typing import Any
from urllib.parse import urlparse

from loguru import logger

from siteprobe.config.schema import Config
from siteprobe.config.sites import WebsiteConfig
from siteprobe.framework.content import PageInfo, parse_js_result, parse_page_info, parse_text_output, slugify
from siteprobe.rpc.client import AutomationClient
from siteprobe.utils.exceptions import SiteProbeError, best_effort

# Per-selector floor when a timeout budget is split across fallbacks.
MIN_SELECTOR_TIMEOUT_MS = 500

BODY_TEXT_JS = "document.body ? document.body.innerText : ''"


class BasePage:
    """
    Page object for any registered website.

    Sites rarely agree on markup, so lookups take a list of candidate
    selectors and use the first one that matches.
    """

    def __init__(
        self,
        client: AutomationClient,
        site: WebsiteConfig,
        config: Config | None = None,
        *,
        settle_seconds: float = 1.0,
    ):
        self.client = client
        self.site = site
        self.config = config or Config()
        self.settle_seconds = settle_seconds

    @property
    def short_timeout_ms(self) -> int:
        return self.config.timeouts.short_ms

    def _split_timeout(self, selectors: list[str], timeout_ms: int | None) -> int:
        budget = timeout_ms or self.short_timeout_ms
        return max(MIN_SELECTOR_TIMEOUT_MS, budget // max(1, len(selectors)))

    async def find_element_by_selectors(self, selectors: list[str], timeout_ms: int | None = None) -> str | None:
        """First selector that becomes visible, or None."""
        per_selector = self._split_timeout(selectors, timeout_ms)
        for selector in selectors:
            try:
                await self.client.wait_for_element(selector, "visible", per_selector)
            except SiteProbeError as exc:
                logger.debug("Selector {} not found: {}", selector, exc.message)
                continue
            return selector
        return None

    async def get_text_by_selectors(self, selectors: list[str], timeout_ms: int | None = None) -> str | None:
        """Text of the first selector with non-empty text, or None."""
        per_selector = self._split_timeout(selectors, timeout_ms)
        for selector in selectors:
            try:
                result = await self.client.get_text(selector, per_selector)
            except SiteProbeError as exc:
                logger.debug("No text for {}: {}", selector, exc.message)
                continue
            text = parse_text_output(result.output, selector)
            if text:
                return text
        return None

    async def click_by_selectors(self, selectors: list[str], timeout_ms: int | None = None) -> str | None:
        """Click the first clickable selector; returns it, or None."""
        per_selector = self._split_timeout(selectors, timeout_ms)
        for selector in selectors:
            try:
                await self.client.click_element(selector, per_selector)
            except SiteProbeError as exc:
                logger.debug("Could not click {}: {}", selector, exc.message)
                continue
            return selector
        return None

    async def navigate(self, path: str = "") -> str:
        result = await self.client.navigate_to(self.site.url(path), "load")
        return result.output

    async def capture_screenshot(self, name: str, full_page: bool = True) -> str:
        stamp = time.strftime("%Y%m%dT%H%M%S")
        path = self.config.paths.artifacts_path / "screenshots" / f"{slugify(self.site.name)}-{slugify(name)}-{stamp}.png"
        await self.client.take_screenshot(str(path), full_page=full_page)
        return str(path)

    async def page_info(self) -> PageInfo:
        return parse_page_info((await self.client.get_page_info()).output)

    async def get_page_info(self) -> dict[str, Any]:
        """Page info merged with the site's identity."""
        data = (await self.page_info()).to_dict()
        data.update({"website": self.site.name, "type": self.site.type, "features": list(self.site.features)})
        return data

    async def evaluate(self, code: str) -> Any:
        return parse_js_result((await self.client.evaluate_javascript(code)).output)

    @best_effort(default="")
    async def page_text(self) -> str:
        value = await self.evaluate(BODY_TEXT_JS)
        return value if isinstance(value, str) else ""

    async def wait_for_page_ready(self) -> None:
        """Wait for the body plus whatever marks this kind of site as ready."""
        await self.client.wait_for_element("body", "visible", self.config.timeouts.default_ms)
        if self.site.type == "cruise-booking":
            await self.find_element_by_selectors(self.site.selector_list("booking", "search_form", ["form"]), 10000)
        else:
            await self.find_element_by_selectors(self.site.selector_list("hero", "title", ["h1"]), 10000)
        if self.settle_seconds > 0:
            await asyncio.sleep(self.settle_seconds)

    async def validate_website(self) -> bool:
        """Whether the current page is on the site's domain."""
        current = (await self.page_info()).url
        expected = urlparse(self.site.base_url).hostname or ""
        actual = urlparse(current).hostname or ""
        return bool(expected) and expected.removeprefix("www.") in actual
