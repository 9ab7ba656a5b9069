"""Home page objects and the factory that picks one per website type."""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from siteprobe.config.schema import Config
from siteprobe.config.sites import WebsiteConfig
from siteprobe.framework.content import find_keywords
from siteprobe.pages.base import BasePage
from siteprobe.rpc.client import AutomationClient
from siteprobe.utils.exceptions import best_effort

VISIBLE_LINKS_JS = """
(() => Array.from(document.querySelectorAll('a[href]'))
  .map(a => ({ text: a.textContent.trim(), href: a.href, visible: a.offsetParent !== null }))
  .filter(a => a.text && a.visible))()
"""

HEADINGS_JS = """
(() => Array.from(document.querySelectorAll('h1, h2, h3, h4'))
  .map(h => h.textContent.trim().toLowerCase()))()
"""

CARD_TITLES_JS = """
(() => {
  const selectors = %s;
  const titles = [];
  for (const sel of selectors) {
    document.querySelectorAll(sel).forEach(el => {
      const heading = el.querySelector('h1, h2, h3, h4, .title');
      const text = (heading || el).textContent.trim();
      if (text) titles.push(text.slice(0, 120));
    });
    if (titles.length) break;
  }
  return titles.slice(0, 20);
})()
"""


class HomePage(BasePage):
    """Landing page of a registered website."""

    async def open(self) -> None:
        await self.navigate()
        await self.wait_for_page_ready()

    async def get_hero_title(self) -> str | None:
        return await self.get_text_by_selectors(self.site.selector_list("hero", "title", ["h1"]))

    async def get_hero_subtitle(self) -> str | None:
        return await self.get_text_by_selectors(self.site.selector_list("hero", "subtitle"))

    async def click_main_cta(self) -> str | None:
        return await self.click_by_selectors(self.site.selector_list("hero", "cta"))

    async def has_navigation(self) -> bool:
        return await self.find_element_by_selectors(self.site.selector_list("navigation", "menu", ["nav"])) is not None

    async def navigate_to_section(self, section: str) -> str | None:
        """Follow a navigation link by its selector name (about, contact...)."""
        selectors = self.site.selector_list("navigation", section.lower())
        if not selectors:
            selectors = [f'a[href*="{section.lower()}"]']
        return await self.click_by_selectors(selectors)

    @best_effort(default=[])
    async def validate_navigation(self) -> list[dict[str, Any]]:
        """Visible links on the page."""
        links = await self.evaluate(VISIBLE_LINKS_JS)
        return links if isinstance(links, list) else []

    @best_effort(default={})
    async def validate_content_sections(self) -> dict[str, bool]:
        """Which expected section headings appear on the page."""
        headings = await self.evaluate(HEADINGS_JS)
        if not isinstance(headings, list):
            headings = []
        return {
            section: any(section.lower() in str(heading) for heading in headings)
            for section in self.site.expected_sections
        }

    async def validate_keywords(self, group: str = "brand") -> dict[str, Any]:
        """Keyword coverage of the page text for one keyword group."""
        keywords = self.site.keywords.get(group, [])
        required = self.site.min_keyword_matches.get(group, 1)
        found = find_keywords(await self.page_text(), keywords)
        logger.debug("Keywords [{}] found: {}", group, found)
        return {"group": group, "found": found, "required": required, "passed": len(found) >= required}

    @best_effort(default=[])
    async def card_titles(self, group: str, name: str) -> list[str]:
        selectors = self.site.selector_list(group, name)
        if not selectors:
            return []
        titles = await self.evaluate(CARD_TITLES_JS % json.dumps(selectors))
        return [str(t) for t in titles] if isinstance(titles, list) else []


class CruiseHomePage(HomePage):
    """Home page of a cruise-booking site."""

    async def is_cruise_search_visible(self) -> bool:
        selectors = self.site.selector_list("booking", "search_form", ["form"])
        return await self.find_element_by_selectors(selectors) is not None

    async def search_for_cruises(self, destination: str | None = None) -> bool:
        """Fill what the search form offers and submit it."""
        if not await self.is_cruise_search_visible():
            return False
        if destination:
            for selector in self.site.selector_list("booking", "destination"):
                result = await self.client.try_call_tool(
                    "fill-input", {"selector": selector, "text": destination, "timeout": self.short_timeout_ms}
                )
                if result.success:
                    break
        return await self.click_by_selectors(self.site.selector_list("booking", "search_button")) is not None

    async def get_destinations(self) -> list[str]:
        return await self.card_titles("content", "cards")

    async def get_featured_deals(self) -> list[str]:
        return await self.card_titles("content", "deals")


def create_home_page(
    client: AutomationClient,
    site: WebsiteConfig,
    config: Config | None = None,
    **kwargs: Any,
) -> HomePage:
    """Home page object suited to the website's type."""
    if site.type == "cruise-booking":
        return CruiseHomePage(client, site, config, **kwargs)
    return HomePage(client, site, config, **kwargs)
