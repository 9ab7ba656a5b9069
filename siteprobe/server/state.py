"""Browser process state for the automation server (one browser, one page)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from loguru import logger


@dataclass
class BrowserSession:
    """Playwright browser, context and current page owned by the server."""
    browser_type: str = "chromium"
    headless: bool = False
    viewport: dict[str, int] | None = None
    browser: Any = None  # playwright.async_api.Browser
    context: Any = None  # playwright.async_api.BrowserContext
    page: Any = None  # playwright.async_api.Page
    _playwright: Any = None  # playwright.async_api.Playwright
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def running(self) -> bool:
        return self.browser is not None and self.browser.is_connected()

    async def launch(self, browser_type: str = "chromium", headless: bool = False) -> None:
        """Close any current browser and launch a fresh one with a blank page."""
        await self.stop()
        async with self._lock:
            from playwright.async_api import async_playwright

            if self._playwright is None:
                self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, browser_type)
            self.browser = await launcher.launch(headless=headless)
            context_opts: dict[str, Any] = {}
            if self.viewport:
                context_opts["viewport"] = dict(self.viewport)
            self.context = await self.browser.new_context(**context_opts)
            self.page = await self.context.new_page()
            self.browser_type = browser_type
            self.headless = headless
            logger.info("Launched {} browser (headless: {})", browser_type, headless)

    async def ensure_page(self) -> Any:
        """Return the current page, launching a browser or page when needed."""
        if self.page is not None and not self.page.is_closed():
            return self.page
        if not self.running:
            await self.launch(self.browser_type, self.headless)
            return self.page
        async with self._lock:
            if self.context is None:
                self.context = await self.browser.new_context()
            self.page = await self.context.new_page()
            logger.debug("Created new page")
            return self.page

    async def stop(self) -> None:
        """Close page, context and browser; keep the Playwright driver."""
        async with self._lock:
            try:
                if self.page is not None and not self.page.is_closed():
                    await self.page.close()
                if self.context is not None:
                    await self.context.close()
                if self.browser is not None and self.browser.is_connected():
                    await self.browser.close()
            except Exception as exc:
                logger.warning("Error during browser cleanup: {}", exc)
            finally:
                self.page = None
                self.context = None
                self.browser = None

    async def shutdown(self) -> None:
        """Stop the browser and the Playwright driver."""
        await self.stop()
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
