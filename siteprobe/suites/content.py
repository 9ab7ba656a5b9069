"""Content validation: brand language, navigation, sections and interactivity."""

from __future__ import annotations

from siteprobe.framework.content import require_keywords
from siteprobe.framework.runner import TestFn
from siteprobe.suites.base import Suite
from siteprobe.utils.exceptions import ContentAssertionError

MIN_NAVIGATION_LINKS = 3

INTERACTIVE_JS = """
(() => ({
  buttons: document.querySelectorAll('button, [role="button"], input[type="submit"]').length,
  links: document.querySelectorAll('a[href]').length,
  forms: document.querySelectorAll('form').length,
  inputs: document.querySelectorAll('input, select, textarea').length
}))()
"""


class ContentSuite(Suite):
    name = "content"
    title = "Content Validation Tests"
    report_type = "e2e/functional"

    def cases(self) -> list[tuple[str, TestFn]]:
        return [
            ("Brand Keywords", self.test_brand_keywords),
            ("Navigation Links", self.test_navigation),
            ("Expected Sections", self.test_expected_sections),
            ("Interactive Elements", self.test_interactive_elements),
        ]

    async def test_brand_keywords(self) -> None:
        await self.home.open()
        text = await self.home.page_text()
        for group, keywords in self.site.keywords.items():
            minimum = self.site.min_keyword_matches.get(group)
            if minimum is None:
                found = [kw for kw in keywords if kw.lower() in text.lower()]
                self.log.debug(f"Optional keywords [{group}]: {found}")
                continue
            found = require_keywords(text, keywords, minimum, label=group)
            self.log.business(f"Keywords [{group}]: {', '.join(found)}")

    async def test_navigation(self) -> None:
        links = await self.home.validate_navigation()
        if len(links) < MIN_NAVIGATION_LINKS:
            raise ContentAssertionError(
                f"Expected at least {MIN_NAVIGATION_LINKS} visible links, found {len(links)}"
            )
        self.log.step(f"{len(links)} visible links")

    async def test_expected_sections(self) -> None:
        if not self.site.expected_sections:
            self.log.info("No expected sections configured")
            return
        sections = await self.home.validate_content_sections()
        missing = [name for name in self.site.expected_sections if not sections.get(name)]
        if missing:
            raise ContentAssertionError(f"Missing sections: {', '.join(missing)}")

    async def test_interactive_elements(self) -> None:
        counts = await self.evaluate(INTERACTIVE_JS)
        if not isinstance(counts, dict):
            raise ContentAssertionError("Could not inspect interactive elements")
        if not (counts.get("buttons") or counts.get("links")):
            raise ContentAssertionError("Page has no buttons or links")
        self.log.step(
            "Interactive elements: "
            + ", ".join(f"{key}={counts.get(key, 0)}" for key in ("buttons", "links", "forms", "inputs"))
        )
