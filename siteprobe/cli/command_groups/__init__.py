"""Grouped CLI command modules."""
