"""Reports command group: set up, prune and summarize the reports tree."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import typer
from rich.console import Console
from rich.table import Table

from siteprobe.config.schema import Config
from siteprobe.reporting.manager import ReportManager


def register_reports_commands(app: typer.Typer, console: Console, load: Callable[..., Config]) -> None:
    """Register reports command group."""
    reports_app = typer.Typer(help="Manage test reports")
    app.add_typer(reports_app, name="reports")

    def _manager(config_path: Path | None) -> ReportManager:
        config = load(config_path)
        return ReportManager(config.paths.reports_path, config.paths.artifacts_path)

    @reports_app.command("init")
    def reports_init(
        config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    ) -> None:
        """Create the reports directory tree."""
        manager = _manager(config_path)
        created = manager.initialize_directories()
        for path in created:
            console.print(f"[green]✓[/green] Created {path}")
        console.print(f"Reports directory ready at {manager.reports_root}")

    @reports_app.command("clean")
    def reports_clean(
        config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    ) -> None:
        """Delete reports and artifacts past their retention period."""
        removed = _manager(config_path).clean_old_reports()
        console.print(f"Removed {len(removed)} old file(s)")

    @reports_app.command("status")
    def reports_status(
        config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    ) -> None:
        """Summarize reports on disk and write summary.json."""
        summary = _manager(config_path).generate_summary()
        table = Table(title="Test Reports Status")
        table.add_column("Kind", style="cyan")
        table.add_column("Type")
        table.add_column("Files", justify="right")
        for kind in ("reports", "artifacts"):
            for name, count in summary[kind].items():
                table.add_row(kind, name, str(count))
        console.print(table)
        console.print(f"Total size: {summary['totalSize'] / 1024 / 1024:.2f} MB (updated {summary['timestamp']})")
