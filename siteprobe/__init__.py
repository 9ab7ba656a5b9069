"""siteprobe - browser end-to-end checks for content websites."""

__version__ = "0.1.0"
__logo__ = "🔎"
