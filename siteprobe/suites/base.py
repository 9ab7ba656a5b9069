"""Common shape of a test suite."""

from __future__ import annotations

from typing import Any

from siteprobe.config.schema import Config
from siteprobe.config.sites import WebsiteConfig
from siteprobe.framework.results import SuiteSummary
from siteprobe.framework.runner import SuiteRunner, TestFn
from siteprobe.pages.contact import ContactPage
from siteprobe.pages.homepage import create_home_page


class Suite:
    """
    A named list of test cases run through one SuiteRunner.

    Subclasses set `name`, `title` and `report_type`, and return their
    cases from `cases()`; `run()` handles browser setup and reporting.
    """

    name = ""
    title = ""
    report_type = "e2e/smoke"

    def __init__(self, runner: SuiteRunner, site: WebsiteConfig, config: Config | None = None):
        self.runner = runner
        self.site = site
        self.config = config or runner.config
        self.log = runner.logger
        self.home = create_home_page(runner.client, site, self.config)
        self.contact = ContactPage(runner.client, site, self.config)

    def cases(self) -> list[tuple[str, TestFn]]:
        raise NotImplementedError

    async def evaluate(self, code: str) -> Any:
        return await self.home.evaluate(code)

    async def run(self) -> SuiteSummary:
        await self.runner.initialize(f"{self.site.name} {self.title}")
        try:
            for case_name, fn in self.cases():
                await self.runner.execute_test(case_name, fn)
        finally:
            await self.runner.cleanup()
        return self.runner.summary()
