"""Registry of websites under test with their selectors and content keywords."""

from __future__ import annotations

from pydantic import BaseModel, Field

from siteprobe.config.schema import Config
from siteprobe.utils.exceptions import ConfigError

SelectorGroups = dict[str, dict[str, list[str]]]


class WebsiteConfig(BaseModel):
    """One website: where it lives, how to find things, what it should say."""
    key: str
    name: str
    base_url: str
    type: str
    industry: str = "generic"
    title_fragment: str = ""
    contact_path: str = "/contact"
    selectors: SelectorGroups = Field(default_factory=dict)
    features: list[str] = Field(default_factory=list)
    # keyword group name -> words expected somewhere in page text
    keywords: dict[str, list[str]] = Field(default_factory=dict)
    # group name -> minimum number of words that must be present
    min_keyword_matches: dict[str, int] = Field(default_factory=dict)
    expected_sections: list[str] = Field(default_factory=list)

    def selector_list(self, group: str, name: str, default: list[str] | None = None) -> list[str]:
        """Fallback selectors for group/name, or default when unknown."""
        found = self.selectors.get(group, {}).get(name)
        return list(found) if found else list(default or [])

    def url(self, path: str = "") -> str:
        if not path:
            return self.base_url
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")


_GENERIC_SELECTORS: SelectorGroups = {
    "hero": {
        "title": ["h1", ".hero-title", ".banner-title", ".main-title", ".title"],
        "subtitle": [".hero-subtitle", ".banner-subtitle", ".subtitle", ".tagline"],
        "cta": [".hero .btn", ".cta-button", ".btn-primary", "button"],
    },
    "navigation": {
        "menu": ["nav", ".navigation", ".nav", "[role=\"navigation\"]"],
        "menu_items": ["nav a", ".nav-item", ".menu-link", ".nav-link"],
        "logo": [".logo", ".brand", ".brand-logo", ".header-logo"],
    },
    "content": {
        "main": ["main", ".main-content", ".page-content", ".container"],
        "headings": ["h1", "h2", "h3", ".heading"],
    },
    "forms": {
        "search": [".search-form", ".search", "[data-testid=\"search\"]", "input[type=\"search\"]"],
        "contact": [".contact-form", "form"],
        "submit": ["button[type=\"submit\"]", "input[type=\"submit\"]", ".btn"],
    },
    "footer": {
        "root": ["footer", ".footer"],
    },
}


def _merge(overrides: SelectorGroups) -> SelectorGroups:
    merged = {group: dict(items) for group, items in _GENERIC_SELECTORS.items()}
    for group, items in overrides.items():
        merged.setdefault(group, {}).update(items)
    return merged


WEBSITES: dict[str, WebsiteConfig] = {
    "caliber": WebsiteConfig(
        key="caliber",
        name="Caliber Financial Services",
        base_url="https://www.caliberfs.com",
        type="financial-services",
        industry="financial",
        title_fragment="Caliber Financial Services",
        contact_path="/contact",
        selectors=_merge({
            "hero": {
                "title": ["h1"],
                "subtitle": ["h2", ".hero-subtitle"],
                "cta": ["a[href=\"/our-services\"]", "a[href=\"/about\"]", ".button.button-alt"],
            },
            "navigation": {
                "menu": ["nav", ".nav", ".navbar"],
                "about": ["a[href=\"/about\"]", "a[href*=\"about\"]"],
                "services": ["a[href=\"/our-services\"]", "a[href*=\"services\"]"],
                "contact": ["a[href=\"/contact\"]", "a[href*=\"contact\"]"],
                "careers": ["a[href=\"/careers\"]", "a[href*=\"careers\"]"],
            },
            "footer": {
                "root": ["footer", ".footer"],
                "address": [".address", "[class*=\"address\"]"],
                "phone": ["[href*=\"tel\"]", ".phone"],
            },
        }),
        features=["services-overview", "contact-form", "careers"],
        keywords={
            "brand": ["financial", "investment", "portfolio", "fintech", "services", "solutions", "compliance", "analytics"],
            "trust": ["tulsa", "oklahoma", "855", "phone"],
        },
        min_keyword_matches={"brand": 3},
        expected_sections=["our focus", "our promise", "our mission"],
    ),
    "royalcaribbean": WebsiteConfig(
        key="royalcaribbean",
        name="Royal Caribbean",
        base_url="https://www.royalcaribbean.com",
        type="cruise-booking",
        industry="travel",
        title_fragment="Royal Caribbean",
        contact_path="/contact-us",
        selectors=_merge({
            "hero": {
                "title": ["h1", ".hero-title", ".banner-title", ".main-title", "[data-testid=\"hero-title\"]"],
                "subtitle": [".hero-subtitle", ".banner-subtitle", ".hero p", ".main-subtitle"],
                "cta": [".hero .btn", ".cta-button", ".book-now", ".find-cruise", "[data-testid=\"hero-cta\"]"],
            },
            "navigation": {
                "menu": ["nav", ".main-navigation", ".header-nav", "[role=\"navigation\"]"],
                "menu_items": ["nav a", ".nav-item", ".menu-link", ".navigation a"],
                "logo": [".logo", ".brand-logo", ".rc-logo", ".header-logo"],
            },
            "booking": {
                "search_form": [".search-form", ".cruise-search", ".booking-form", "[data-testid=\"search-form\"]"],
                "destination": [".destination-select", "#destination", "[name=\"destination\"]"],
                "dates": [".date-picker", ".departure-date", "[name=\"departureDate\"]"],
                "guests": [".guest-select", ".passenger-count", "[name=\"guests\"]"],
                "search_button": [".search-btn", ".find-cruises", "[type=\"submit\"]", ".search-button"],
            },
            "content": {
                "main": ["main", ".main-content", ".page-content"],
                "cards": [".cruise-card", ".ship-card", ".offer-card", ".destination-card"],
                "deals": [".deal-card", ".promotion", ".special-offer", ".savings"],
            },
        }),
        features=["cruise-search", "booking-flow", "destination-browsing", "deals-promotions"],
        keywords={
            "brand": ["cruise", "vacation", "ship", "sail", "caribbean", "royal"],
            "navigation": ["cruise", "destination", "ship", "deal", "plan"],
        },
        min_keyword_matches={"brand": 2},
    ),
    "newsela": WebsiteConfig(
        key="newsela",
        name="Newsela",
        base_url="https://newsela.com",
        type="educational-platform",
        industry="education",
        title_fragment="Newsela",
        contact_path="/about/contact",
        selectors=_merge({
            "content": {
                "main": ["main", ".main-content", "#main"],
                "articles": ["article", ".article-card", "[data-testid*=\"article\"]", ".content-card"],
                "subjects": ["a[href*=\"subject\"]", ".subject", "[data-testid*=\"subject\"]"],
                "grade_levels": ["[data-testid*=\"grade\"]", ".grade-level", "select[name*=\"grade\"]"],
            },
        }),
        features=["article-library", "grade-levels", "teacher-tools", "search"],
        keywords={
            "brand": ["learning", "students", "teachers", "reading", "classroom", "literacy", "content"],
            "subjects": ["science", "social studies", "ela", "math", "arts"],
            "teacher_tools": ["assign", "quiz", "dashboard", "insights", "differentiat"],
        },
        min_keyword_matches={"brand": 2},
    ),
}


def list_websites() -> list[WebsiteConfig]:
    return list(WEBSITES.values())


def get_website(key: str) -> WebsiteConfig:
    """Look up a website by key; unknown keys raise ConfigError."""
    site = WEBSITES.get((key or "").strip().lower())
    if site is None:
        raise ConfigError(
            f"Website configuration not found for: {key}. Available: {', '.join(WEBSITES)}",
            key="target_website",
        )
    return site


def current_website(config: Config) -> WebsiteConfig:
    """The configured target website, with `base_url` applied when set."""
    site = get_website(config.target_website)
    if config.base_url:
        return site.model_copy(update={"base_url": config.base_url.rstrip("/")})
    return site
