"""Basic WCAG checks on the home page."""

from __future__ import annotations

from typing import Any

from siteprobe.framework.runner import TestFn
from siteprobe.suites.base import Suite
from siteprobe.utils.exceptions import ContentAssertionError

AUDIT_JS = """
(() => {
  const images = Array.from(document.querySelectorAll('img'));
  const inputs = Array.from(document.querySelectorAll('input:not([type="hidden"]):not([type="submit"]), select, textarea'));
  const labelled = el => (el.id && document.querySelector(`label[for="${CSS.escape(el.id)}"]`))
    || el.closest('label') || el.getAttribute('aria-label') || el.getAttribute('aria-labelledby')
    || el.getAttribute('title');
  return {
    lang: document.documentElement.getAttribute('lang') || '',
    h1Count: document.querySelectorAll('h1').length,
    totalImages: images.length,
    imagesWithoutAlt: images.filter(img => !img.hasAttribute('alt')).length,
    totalInputs: inputs.length,
    unlabeledInputs: inputs.filter(el => !labelled(el)).length
  };
})()
"""


class AccessibilitySuite(Suite):
    name = "accessibility"
    title = "Accessibility Tests"
    report_type = "accessibility"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._audit: dict[str, Any] | None = None

    def cases(self) -> list[tuple[str, TestFn]]:
        return [
            ("Page Language", self.test_lang),
            ("Heading Structure", self.test_headings),
            ("Image Alt Text", self.test_alt_text),
            ("Form Labels", self.test_form_labels),
        ]

    async def audit(self) -> dict[str, Any]:
        if self._audit is None:
            await self.home.open()
            result = await self.evaluate(AUDIT_JS)
            if not isinstance(result, dict):
                raise ContentAssertionError("Accessibility audit returned no data")
            self._audit = result
            self.log.accessibility(f"Audit: {result}")
        return self._audit

    async def test_lang(self) -> None:
        if not (await self.audit()).get("lang"):
            raise ContentAssertionError("<html> element has no lang attribute")

    async def test_headings(self) -> None:
        if (await self.audit()).get("h1Count", 0) < 1:
            raise ContentAssertionError("Page has no <h1> heading")

    async def test_alt_text(self) -> None:
        audit = await self.audit()
        missing = audit.get("imagesWithoutAlt", 0)
        if missing:
            raise ContentAssertionError(f"{missing} of {audit.get('totalImages', 0)} images lack alt text")

    async def test_form_labels(self) -> None:
        audit = await self.audit()
        unlabeled = audit.get("unlabeledInputs", 0)
        if unlabeled:
            raise ContentAssertionError(f"{unlabeled} of {audit.get('totalInputs', 0)} form fields lack a label")
