"""Contact page object."""

from __future__ import annotations

from typing import Any

from siteprobe.pages.base import BasePage
from siteprobe.utils.exceptions import ContentAssertionError

FORM_STRUCTURE_JS = """
(() => {
  const form = document.querySelector('form');
  if (!form) return { hasForm: false, fields: {}, allFieldsPresent: false };
  const q = s => !!form.querySelector(s);
  const fields = {
    name: q('input[name*="name" i], input[id*="name" i]'),
    email: q('input[type="email"], input[name*="email" i], input[id*="email" i]'),
    message: q('textarea, input[name*="message" i]'),
    submit: q('input[type="submit"], button[type="submit"], button')
  };
  return {
    hasForm: true,
    formAction: form.action,
    formMethod: form.method,
    requiredFieldCount: form.querySelectorAll('[required]').length,
    fields,
    allFieldsPresent: Object.values(fields).every(Boolean)
  };
})()
"""

SUPPORT_INFO_JS = r"""
(() => {
  const text = document.body ? document.body.innerText : '';
  const phone = text.match(/\(?\d{3}\)?[\s.-]*\d{3}[\s.-]*\d{4}/);
  const email = text.match(/[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}/);
  return {
    phone: phone ? phone[0] : null,
    email: email ? email[0] : null,
    hasTelLink: !!document.querySelector('a[href^="tel:"]'),
    hasMailLink: !!document.querySelector('a[href^="mailto:"]')
  };
})()
"""

FIELD_SELECTORS = {
    "name": ['input[name="name"]', "#name", 'input[name*="name" i]'],
    "email": ['input[type="email"]', 'input[name="Email"]', 'input[name*="email" i]'],
    "confirm_email": ['input[name="Confirm-Email"]', "#Confirm-Email"],
    "message": ["textarea", 'input[name="Message"]', "#Message"],
}


class ContactPage(BasePage):
    """Contact page of a registered website."""

    async def open(self) -> None:
        await self.navigate(self.site.contact_path)
        await self.client.wait_for_element("body", "visible", self.config.timeouts.default_ms)

    async def validate_form_structure(self) -> dict[str, Any]:
        result = await self.evaluate(FORM_STRUCTURE_JS)
        return result if isinstance(result, dict) else {"hasForm": False, "fields": {}, "allFieldsPresent": False}

    async def fill_contact_form(self, data: dict[str, str]) -> list[str]:
        """Fill the named fields that exist; returns the names filled."""
        filled = []
        for field, value in data.items():
            for selector in FIELD_SELECTORS.get(field, []):
                result = await self.client.try_call_tool(
                    "fill-input", {"selector": selector, "text": value, "timeout": self.short_timeout_ms}
                )
                if result.success:
                    filled.append(field)
                    break
        return filled

    async def get_support_info(self) -> dict[str, Any]:
        result = await self.evaluate(SUPPORT_INFO_JS)
        return result if isinstance(result, dict) else {}

    async def validate_support_info(self) -> dict[str, Any]:
        """Support info; raises when the page offers no phone or email at all."""
        info = await self.get_support_info()
        has_contact = bool(info.get("phone") or info.get("email") or info.get("hasTelLink") or info.get("hasMailLink"))
        if not has_contact:
            raise ContentAssertionError(f"No phone number or email address found on {self.site.url(self.site.contact_path)}")
        return {**info, "hasContactInfo": has_contact}
