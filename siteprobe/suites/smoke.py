"""Critical-path smoke tests: is the site up and usable at all."""

from __future__ import annotations

from siteprobe.framework.runner import TestFn
from siteprobe.suites.base import Suite
from siteprobe.utils.exceptions import ContentAssertionError


class SmokeSuite(Suite):
    name = "smoke"
    title = "Critical Path Smoke Tests"
    report_type = "e2e/smoke"

    def cases(self) -> list[tuple[str, TestFn]]:
        return [
            ("Website Availability", self.test_availability),
            ("Homepage Core Elements", self.test_core_elements),
            ("Contact Support", self.test_contact_support),
        ]

    async def test_availability(self) -> None:
        info = await self.runner.navigate_to_page(self.site.base_url, self.site.title_fragment or None)
        if not await self.home.validate_website():
            raise ContentAssertionError(f"Landed on {info.url}, outside {self.site.base_url}")
        self.log.business(f"{self.site.name} is available: {info.title}")

    async def test_core_elements(self) -> None:
        await self.home.wait_for_page_ready()
        title = await self.home.get_hero_title()
        if not title:
            raise ContentAssertionError("Homepage has no hero title")
        if not await self.home.has_navigation():
            raise ContentAssertionError("Homepage has no navigation menu")
        self.log.step(f"Hero title: {title}")

    async def test_contact_support(self) -> None:
        await self.contact.open()
        info = await self.contact.validate_support_info()
        self.log.business(f"Support contact: phone={info.get('phone')} email={info.get('email')}")
