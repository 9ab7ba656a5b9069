"""Command-line interface for siteprobe."""
