"""Configuration module for siteprobe."""

from siteprobe.config.loader import get_config_path, load_config, save_config
from siteprobe.config.schema import Config
from siteprobe.config.sites import WebsiteConfig, current_website, get_website, list_websites

__all__ = [
    "Config",
    "WebsiteConfig",
    "current_website",
    "get_config_path",
    "get_website",
    "list_websites",
    "load_config",
    "save_config",
]
