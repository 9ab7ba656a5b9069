"""Page objects for the websites under test."""

from siteprobe.pages.base import BasePage
from siteprobe.pages.contact import ContactPage
from siteprobe.pages.homepage import CruiseHomePage, HomePage, create_home_page

__all__ = ["BasePage", "ContactPage", "CruiseHomePage", "HomePage", "create_home_page"]
