"""Entry point for `python -m siteprobe`."""

from siteprobe.cli.commands import app

if __name__ == "__main__":
    app()
