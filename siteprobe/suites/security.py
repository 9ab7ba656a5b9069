"""Transport, content and privacy checks run from inside the page."""

from __future__ import annotations

import re

from siteprobe.framework.runner import TestFn
from siteprobe.suites.base import Suite
from siteprobe.utils.exceptions import ContentAssertionError

MIXED_CONTENT_JS = """
(() => {
  if (location.protocol !== 'https:') return [];
  const urls = [];
  document.querySelectorAll('img[src], script[src], iframe[src], link[href][rel="stylesheet"]').forEach(el => {
    const url = el.getAttribute('src') || el.getAttribute('href');
    if (url && url.startsWith('http:')) urls.push(url);
  });
  return urls.slice(0, 20);
})()
"""

HEADERS_JS = """
(async () => {
  const response = await fetch(location.href, { method: 'HEAD', credentials: 'same-origin' });
  const headers = {};
  response.headers.forEach((value, key) => { headers[key] = value; });
  return headers;
})()
"""

COOKIE_NAMES_JS = "document.cookie.split(';').map(c => c.split('=')[0].trim()).filter(Boolean)"

POLICY_LINKS_JS = """
(() => Array.from(document.querySelectorAll('a[href]'))
  .map(a => (a.textContent + ' ' + a.getAttribute('href')).toLowerCase()))()
"""

# cookie names that should never be readable from script
SENSITIVE_COOKIE_RE = re.compile(r"sess|token|auth|jwt", re.IGNORECASE)


class SecuritySuite(Suite):
    name = "security"
    title = "Security & Data Protection"
    report_type = "security"

    def cases(self) -> list[tuple[str, TestFn]]:
        return [
            ("HTTPS Enforcement", self.test_https),
            ("Mixed Content", self.test_mixed_content),
            ("Security Headers", self.test_headers),
            ("Cookie Flags", self.test_cookies),
            ("Privacy Policy", self.test_privacy_policy),
        ]

    async def test_https(self) -> None:
        info = await self.runner.navigate_to_page(self.site.base_url)
        if self.config.compliance.require_https and not info.url.startswith("https://"):
            raise ContentAssertionError(f"Page is not served over HTTPS: {info.url}")
        self.log.security(f"Served from {info.url}")

    async def test_mixed_content(self) -> None:
        insecure = await self.evaluate(MIXED_CONTENT_JS) or []
        if insecure:
            raise ContentAssertionError(f"Insecure resources on HTTPS page: {', '.join(map(str, insecure))}")

    async def test_headers(self) -> None:
        headers = await self.evaluate(HEADERS_JS)
        if not isinstance(headers, dict):
            raise ContentAssertionError("Could not read response headers")
        present = {key.lower() for key in headers}
        missing = [h for h in self.config.compliance.required_headers if h.lower() not in present]
        if missing:
            raise ContentAssertionError(f"Missing security headers: {', '.join(missing)}")

    async def test_cookies(self) -> None:
        names = await self.evaluate(COOKIE_NAMES_JS) or []
        exposed = [name for name in names if SENSITIVE_COOKIE_RE.search(str(name))]
        if exposed:
            raise ContentAssertionError(f"Session cookies readable from script (no HttpOnly): {', '.join(exposed)}")
        self.log.security(f"{len(names)} script-visible cookie(s)")

    async def test_privacy_policy(self) -> None:
        links = await self.evaluate(POLICY_LINKS_JS) or []
        compliance = self.config.compliance
        if compliance.privacy_policy_required and not any("privacy" in str(link) for link in links):
            raise ContentAssertionError("No privacy policy link found")
        if compliance.terms_of_service_required and not any(
            "terms" in str(link) or "legal" in str(link) for link in links
        ):
            raise ContentAssertionError("No terms of service link found")
